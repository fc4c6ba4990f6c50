"""
数据分析模块
============

- 绩效矩阵与稳态计时
- 试验记录器
"""

from .score import Score, SteadyStateTracker, classify
from .logger import TrialLogger, ReservoirRow, SettingChange, TerminationRecord

__all__ = [
    'Score',
    'SteadyStateTracker',
    'classify',
    'TrialLogger',
    'ReservoirRow',
    'SettingChange',
    'TerminationRecord'
]
