"""
仿真运行模块
============

- pipeline: 单步有序管线
- plant: 双支路热工水力系统
- runner: 运行生命周期、评分与终止信号
"""

from .pipeline import TickPipeline, PipelineStep, TickResult
from .plant import DuressPlant, SupplyBranch
from .runner import SimulationRunner, SimulationStatus, SimulationClock, SimulationResult

__all__ = [
    'TickPipeline',
    'PipelineStep',
    'TickResult',
    'DuressPlant',
    'SupplyBranch',
    'SimulationRunner',
    'SimulationStatus',
    'SimulationClock',
    'SimulationResult'
]
