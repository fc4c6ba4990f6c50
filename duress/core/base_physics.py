"""
物理组件基类 (Base Physics Components)
======================================

提供热工水力组件的公共部分：
- 故障调度 (设定点 + 触发时间)
- 一阶惯性 (显式欧拉) 的设定跟踪
- 致命故障记录

设计原则：
- 组件方法在步进中从不抛出异常，只设置粘滞标志
- 编排层 (TickPipeline) 在检查点把标志转换为终止信号
"""

from dataclasses import dataclass
from typing import Optional

import numpy as np

from .constants import NEVER, FaultKind, is_due


@dataclass
class FaultSchedule:
    """
    故障调度

    触发时间到达后，设定值被强制为 setpoint，且不再恢复。
    """
    setpoint: float = 0.0       # 故障设定值
    time: int = NEVER           # 触发时间 (缩放毫秒)

    def is_due(self, t: int) -> bool:
        """故障是否已触发"""
        return is_due(self.time, t)


@dataclass
class FatalFault:
    """致命故障 (终止运行)"""
    kind: FaultKind
    component: str
    message: str
    time: int = 0


class LaggedComponent:
    """
    一阶惯性组件基类

    输出量以时间常数 time_constant 向设定值逼近:
        output += (setting - output) * dt / time_constant

    阀门开度、需求流量、加热器热流均使用此动态。
    两个故障调度同时到期时，后者 (fault2) 优先。
    """

    def __init__(self, name: str, maximum: float, setting: float,
                 output: float, time_constant: float,
                 fault1: Optional[FaultSchedule] = None,
                 fault2: Optional[FaultSchedule] = None):
        self.name = name
        self.maximum = maximum
        self.setting = self._clamp(setting)
        self.output = output
        self.time_constant = time_constant

        # 故障调度
        self.fault1 = fault1 or FaultSchedule()
        self.fault2 = fault2 or FaultSchedule()

    def _clamp(self, value: float) -> float:
        """限幅到 [0, maximum]"""
        return float(np.clip(value, 0.0, self.maximum))

    def _lag_fraction(self, dt: int) -> float:
        """
        单步逼近比例 dt / time_constant

        上限为1: 时间常数为零或小于步长时直接到达设定值，不越过。
        """
        if self.time_constant <= 0:
            return 1.0
        return min(dt / self.time_constant, 1.0)

    def active_fault(self, t: int) -> int:
        """当前生效的故障编号 (0 表示无故障)"""
        if self.fault2.is_due(t):
            return 2
        if self.fault1.is_due(t):
            return 1
        return 0

    def apply_faults(self, t: int):
        """到期故障覆盖设定值"""
        active = self.active_fault(t)
        if active == 2:
            self.setting = self._clamp(self.fault2.setpoint)
        elif active == 1:
            self.setting = self._clamp(self.fault1.setpoint)

    def advance(self, t: int, dt: int) -> float:
        """
        推进一个时间步

        Args:
            t: 当前时间 (缩放毫秒)
            dt: 时间步长 (缩放毫秒)

        Returns:
            更新后的输出量
        """
        self.apply_faults(t)
        self.output = self._clamp(self.output)
        self.output += (self.setting - self.output) * self._lag_fraction(dt)
        return self.output

    def set_setting(self, value: float):
        """操作员设定 (由核心限幅)"""
        self.setting = self._clamp(value)
