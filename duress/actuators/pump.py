"""
水泵模型
========

供水泵仿真:
- 启停状态 (操作员控制或计划跳闸)
- 出流以一阶惯性逼近目标，目标受下游流阻限制
- 下游全关时水泵损坏 (致命)
"""

from dataclasses import dataclass, asdict
from enum import Enum, auto

import numpy as np

from ..config.settings import PumpConfig
from ..core.constants import NEVER, is_due


class PumpStatus(Enum):
    """水泵状态"""
    STOPPED = auto()
    RUNNING = auto()
    TRIPPED = auto()      # 计划故障跳闸
    BROKEN = auto()       # 下游全关导致损坏


@dataclass
class PumpState:
    """水泵状态"""
    status: PumpStatus
    mass_flow_out: float          # 出流
    temperature_out: float        # 出口温度
    maximum_mass_flow_out: float  # 当前允许最大出流
    is_broken: bool


class Pump:
    """
    供水泵仿真

    每步:
    1. set_maximum_pipe_flow: 最大出流 = min(上游阀开度, 分流器允许流量)
    2. set_mass_flow_out: 出流向目标 (开=最大出流, 关=0) 逼近
    3. check_breakdown: 最大出流为零即损坏
    """

    def __init__(self, name: str, on: bool = True, mass_flow_out: float = 0.0,
                 time_constant: float = 1000.0, fault_time: int = NEVER):
        self.name = name
        self.is_on = on
        self.mass_flow_out = mass_flow_out
        self.temperature_out = 0.0
        self.maximum_mass_flow_out = 0.0
        self.time_constant = time_constant
        self.fault_time = fault_time

        # 故障
        self.is_tripped = False
        self.is_broken = False

    @classmethod
    def from_config(cls, cfg: PumpConfig) -> 'Pump':
        """由配置创建"""
        return cls(cfg.name, cfg.on, cfg.mass_flow_out, cfg.time_constant, cfg.fault_time)

    @property
    def status(self) -> PumpStatus:
        if self.is_broken:
            return PumpStatus.BROKEN
        if self.is_tripped:
            return PumpStatus.TRIPPED
        return PumpStatus.RUNNING if self.is_on else PumpStatus.STOPPED

    def set_pump_state(self, on: bool):
        """操作员启停 (跳闸后无法重新启动)"""
        self.is_on = bool(on) and not self.is_tripped

    def set_maximum_pipe_flow(self, valve_opening: float, splitter_maximum: float):
        """由下游流阻确定最大出流"""
        self.maximum_mass_flow_out = min(valve_opening, splitter_maximum)

    def set_mass_flow_out(self, t: int, dt: int) -> float:
        """
        推进出流动态

        Parameters:
            t: 当前时间
            dt: 时间步长

        Returns:
            更新后的出流
        """
        if is_due(self.fault_time, t):
            self.is_tripped = True
            self.is_on = False

        target = self.maximum_mass_flow_out if self.is_on else 0.0
        if self.time_constant <= 0:
            alpha = 1.0
        else:
            alpha = min(dt / self.time_constant, 1.0)

        self.mass_flow_out += (target - self.mass_flow_out) * alpha
        self.mass_flow_out = float(np.clip(self.mass_flow_out, 0.0,
                                           max(self.maximum_mass_flow_out, 0.0)))
        return self.mass_flow_out

    def set_temperature_out(self, temperature: float):
        self.temperature_out = temperature

    def check_breakdown(self) -> bool:
        """下游全关检查 (损坏为粘滞状态)"""
        if self.maximum_mass_flow_out == 0:
            self.is_broken = True
        return self.is_broken

    def get_state(self) -> PumpState:
        """获取当前状态"""
        return PumpState(
            status=self.status,
            mass_flow_out=self.mass_flow_out,
            temperature_out=self.temperature_out,
            maximum_mass_flow_out=self.maximum_mass_flow_out,
            is_broken=self.is_broken
        )

    def get_state_dict(self) -> dict:
        state = asdict(self.get_state())
        state['status'] = state['status'].name
        return state
