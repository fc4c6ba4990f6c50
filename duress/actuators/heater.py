"""
加热器模型
==========

- Heater: 操作员可调的加热器，热流以一阶惯性跟踪设定
- HiddenHeater: 只受故障调度驱动的隐藏热源 (不可观测的干扰)

进水温度源同样以 HiddenHeater 建模，其输出即供水温度。
"""

from typing import Optional, Union

from ..config.settings import HeaterConfig, HiddenHeaterConfig
from ..core.base_physics import LaggedComponent, FaultSchedule


class Heater(LaggedComponent):
    """操作员加热器"""

    def __init__(self, name: str, maximum_heat_flow_out: float,
                 setting: float = 0.0, heat_flow_out: float = 0.0,
                 time_constant: float = 1000.0,
                 fault1: Optional[FaultSchedule] = None,
                 fault2: Optional[FaultSchedule] = None):
        super().__init__(name, maximum_heat_flow_out, setting, heat_flow_out,
                         time_constant, fault1, fault2)

    @classmethod
    def from_config(cls, cfg: Union[HeaterConfig, HiddenHeaterConfig]):
        """由配置创建"""
        return cls(
            cfg.name, cfg.maximum_heat_flow_out, cfg.setting, cfg.heat_flow_out,
            cfg.time_constant,
            FaultSchedule(cfg.fault1_setpoint, cfg.fault1_time),
            FaultSchedule(cfg.fault2_setpoint, cfg.fault2_time)
        )

    @property
    def maximum_heat_flow_out(self) -> float:
        return self.maximum

    @property
    def heat_flow_out(self) -> float:
        return self.output

    def set_heat_flow_out(self, t: int, dt: int) -> float:
        return self.advance(t, dt)

    def get_heat_flow_out(self) -> float:
        return self.output

    def get_state_dict(self) -> dict:
        return {'setting': self.setting, 'heat_flow_out': self.output}


class HiddenHeater(Heater):
    """
    隐藏热源

    没有操作员设定入口，只在故障调度到期后改变输出。
    """

    def check_for_fault(self, t: int, dt: int) -> float:
        return self.advance(t, dt)

    def set_setting(self, value: float):
        raise AttributeError(f"隐藏热源 {self.name} 不接受操作员设定")

    def get_state_dict(self) -> dict:
        return {'heat_flow_out': self.output}
