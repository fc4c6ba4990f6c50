"""
执行器仿真模块
==============

- 阀门/需求: 一阶惯性开度与计划故障
- 水泵: 受下游流阻限制的出流与损坏检测
- 加热器/隐藏热源: 热流注入
"""

from .valve import Valve, Demand, ValveState
from .pump import Pump, PumpState, PumpStatus
from .heater import Heater, HiddenHeater

__all__ = [
    'Valve',
    'Demand',
    'ValveState',
    'Pump',
    'PumpState',
    'PumpStatus',
    'Heater',
    'HiddenHeater'
]
