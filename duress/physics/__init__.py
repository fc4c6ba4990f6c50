"""
物理模型模块
============

- Splitter: 分流器 (按开度比例分配)
- Mixer: 混合器 (质量/能量守恒)
- Reservoir: 水箱 (水量/能量积分与故障检测)
"""

from .splitter import Splitter
from .mixer import Mixer
from .reservoir import Reservoir, ReservoirError, ReservoirState

__all__ = [
    'Splitter',
    'Mixer',
    'Reservoir',
    'ReservoirError',
    'ReservoirState'
]
