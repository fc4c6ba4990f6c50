"""
DURESS 热工水力微世界 (DUal REservoir System Simulation)
=======================================================

双水箱供水系统的离散时间仿真，用于操作员监控与故障诊断研究。

模块结构:
- core: 常量、故障调度与一阶惯性基类
- config: 组件与仿真配置
- actuators: 阀门、需求、水泵、加热器
- physics: 分流器、混合器、水箱
- analysis: 绩效评分与试验记录
- simulation: 单步管线、工厂模型与运行器
"""

__version__ = "1.0.0"

from .config.settings import PlantConfig, SimulationConfig
from .core.constants import NEVER, TIME_SCALE, FaultKind, TerminationReason
from .simulation.plant import DuressPlant
from .simulation.runner import SimulationRunner, SimulationStatus, SimulationResult
from .analysis.score import Score
from .analysis.logger import TrialLogger

__all__ = [
    'PlantConfig',
    'SimulationConfig',
    'NEVER',
    'TIME_SCALE',
    'FaultKind',
    'TerminationReason',
    'DuressPlant',
    'SimulationRunner',
    'SimulationStatus',
    'SimulationResult',
    'Score',
    'TrialLogger'
]
