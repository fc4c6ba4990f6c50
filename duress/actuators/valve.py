"""
阀门与需求模型
==============

阀门开度以一阶惯性跟踪设定值:
- 操作员设定 (由核心限幅到 [0, 最大流量])
- 两个计划故障 (到期后强制设定值，后者优先)
- 开度即允许通过的最大流量 (流阻)

需求 (Demand) 与阀门同形，但只产生目标出流，不承载实际流量。
"""

from dataclasses import dataclass, asdict
from typing import Optional

from ..config.settings import ValveConfig, DemandConfig
from ..core.base_physics import LaggedComponent, FaultSchedule


@dataclass
class ValveState:
    """阀门状态"""
    setting: float         # 设定值
    opening: float         # 当前开度
    mass_flow_out: float   # 出流
    temperature_out: float # 出口温度


class Valve(LaggedComponent):
    """
    阀门仿真

    计算顺序:
    1. calculate_resistance(t, dt): 更新开度
    2. 上游流量确定后 set_mass_flow_out / set_temperature_out 透传
    """

    def __init__(self, name: str, maximum_mass_flow_out: float,
                 setting: float = 0.0, opening: float = 0.0,
                 time_constant: float = 1000.0,
                 fault1: Optional[FaultSchedule] = None,
                 fault2: Optional[FaultSchedule] = None):
        super().__init__(name, maximum_mass_flow_out, setting, opening,
                         time_constant, fault1, fault2)
        self.mass_flow_out = 0.0
        self.temperature_out = 0.0

    @classmethod
    def from_config(cls, cfg: ValveConfig) -> 'Valve':
        """由配置创建"""
        return cls(
            cfg.name, cfg.maximum_mass_flow_out, cfg.setting, cfg.opening,
            cfg.time_constant,
            FaultSchedule(cfg.fault1_setpoint, cfg.fault1_time),
            FaultSchedule(cfg.fault2_setpoint, cfg.fault2_time)
        )

    @property
    def maximum_mass_flow_out(self) -> float:
        return self.maximum

    @property
    def opening(self) -> float:
        return self.output

    def calculate_resistance(self, t: int, dt: int) -> float:
        """
        推进开度动态

        Returns:
            更新后的开度
        """
        return self.advance(t, dt)

    def get_valve_opening(self) -> float:
        """当前开度 (允许流量)"""
        return self.output

    def set_mass_flow_out(self, mass_flow: float):
        self.mass_flow_out = mass_flow

    def set_temperature_out(self, temperature: float):
        self.temperature_out = temperature

    def get_state(self) -> ValveState:
        """获取当前状态"""
        return ValveState(
            setting=self.setting,
            opening=self.output,
            mass_flow_out=self.mass_flow_out,
            temperature_out=self.temperature_out
        )

    def get_state_dict(self) -> dict:
        return asdict(self.get_state())


class Demand(LaggedComponent):
    """
    需求设定发生器

    代表水箱出流的目标值，只受故障调度驱动，操作员不可调。
    """

    def __init__(self, name: str, maximum: float, setting: float = 0.0,
                 flow: float = 0.0, time_constant: float = 1000.0,
                 fault1: Optional[FaultSchedule] = None,
                 fault2: Optional[FaultSchedule] = None):
        super().__init__(name, maximum, setting, flow, time_constant, fault1, fault2)

    @classmethod
    def from_config(cls, cfg: DemandConfig) -> 'Demand':
        """由配置创建"""
        return cls(
            cfg.name, cfg.maximum, cfg.setting, cfg.flow, cfg.time_constant,
            FaultSchedule(cfg.fault1_setpoint, cfg.fault1_time),
            FaultSchedule(cfg.fault2_setpoint, cfg.fault2_time)
        )

    @property
    def flow(self) -> float:
        return self.output

    def calculate_demand(self, t: int, dt: int) -> float:
        return self.advance(t, dt)

    def get_flow(self) -> float:
        return self.output

    def set_setting(self, value: float):
        raise AttributeError(f"需求 {self.name} 不接受操作员设定")

    def get_state_dict(self) -> dict:
        return {'setting': self.setting, 'flow': self.output}
