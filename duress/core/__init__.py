"""
通用核心框架 (Core Framework)
=============================

- constants: 时间刻度、哨兵值、故障与终止类型
- base_physics: 故障调度与一阶惯性组件基类
"""

from .constants import (
    NEVER,
    TIME_SCALE,
    MIN_MASS_FLOW_IN,
    FaultKind,
    TerminationReason,
    is_due
)
from .base_physics import FaultSchedule, FatalFault, LaggedComponent

__all__ = [
    'NEVER',
    'TIME_SCALE',
    'MIN_MASS_FLOW_IN',
    'FaultKind',
    'TerminationReason',
    'is_due',
    'FaultSchedule',
    'FatalFault',
    'LaggedComponent'
]
