"""
全局常量 (Global Constants)
===========================

定义仿真中使用的时间刻度、哨兵值和故障类型。
时间 t 与步长 dt 均为整数，单位为缩放毫秒 (1 单位 = 1/1000 s)。
"""

from enum import Enum, auto


# 故障/计时器禁用的哨兵值 ("永不发生")
NEVER = -60000

# 时间刻度: 缩放毫秒 -> 秒
TIME_SCALE = 1000

# 入流判定阈值: 低于该值视为无入流，入流温度置零
MIN_MASS_FLOW_IN = 0.00005


class FaultKind(Enum):
    """致命故障类型 (均终止本次运行)"""
    PUMP_BREAKDOWN = auto()        # 下游阀门全关导致水泵损坏
    RESERVOIR_BOIL = auto()        # 水箱沸腾
    RESERVOIR_OVERHEAT = auto()    # 空箱加热过热
    RESERVOIR_OVERFLOW = auto()    # 水箱溢流


class TerminationReason(Enum):
    """运行终止原因"""
    FATAL_ERROR = auto()           # 致命故障
    STEADY_STATE = auto()          # 达到稳态 (成功)
    STOPPED = auto()               # 外部停止
    TICK_LIMIT = auto()            # 达到步数上限


def is_due(fault_time: int, t: int) -> bool:
    """判断调度时间是否已到 (NEVER 表示禁用)"""
    return fault_time != NEVER and fault_time <= t


__all__ = [
    'NEVER',
    'TIME_SCALE',
    'MIN_MASS_FLOW_IN',
    'FaultKind',
    'TerminationReason',
    'is_due'
]
