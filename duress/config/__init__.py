"""
配置模块
========

组件参数与仿真参数的数据类定义。
"""

from .settings import (
    ValidationSeverity,
    ValidationResult,
    ValveConfig,
    DemandConfig,
    PumpConfig,
    SplitterConfig,
    HeaterConfig,
    HiddenHeaterConfig,
    ReservoirConfig,
    BranchConfig,
    SimulationConfig,
    PlantConfig
)

__all__ = [
    'ValidationSeverity',
    'ValidationResult',
    'ValveConfig',
    'DemandConfig',
    'PumpConfig',
    'SplitterConfig',
    'HeaterConfig',
    'HiddenHeaterConfig',
    'ReservoirConfig',
    'BranchConfig',
    'SimulationConfig',
    'PlantConfig'
]
