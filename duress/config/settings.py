"""
全局配置参数
============

DURESS 热工水力微世界的全部组件参数、仿真参数与默认场景。
时间量均为缩放毫秒 (1 单位 = 1/1000 s)，NEVER 表示故障/功能禁用。

默认场景为一个接近平衡的工况:
两路各 5 单位流量进入两个水箱，出流与需求均为 5，
加热器把 10°C 的进水加热到约 40°C 的目标温度。
"""

from dataclasses import dataclass, field, fields, asdict, is_dataclass
from typing import Dict, List, Optional, Any
from enum import Enum, auto

from ..core.constants import NEVER


class ValidationSeverity(Enum):
    """验证结果严重程度"""
    WARNING = auto()    # 警告
    ERROR = auto()      # 错误


@dataclass
class ValidationResult:
    """配置验证结果"""
    severity: ValidationSeverity                # 严重程度
    message: str                                # 消息
    field_name: Optional[str] = None            # 相关字段名


@dataclass
class ValveConfig:
    """阀门配置 (一阶惯性开度 + 两个故障调度)"""
    name: str = "V"
    maximum_mass_flow_out: float = 10.0   # 最大流量 (开度上限)
    setting: float = 2.5                  # 初始设定
    opening: float = 2.5                  # 初始开度
    time_constant: float = 2000.0         # 时间常数 (缩放毫秒)
    fault1_setpoint: float = 0.0          # 故障1设定值
    fault1_time: int = NEVER              # 故障1触发时间
    fault2_setpoint: float = 0.0          # 故障2设定值
    fault2_time: int = NEVER              # 故障2触发时间


@dataclass
class DemandConfig:
    """需求配置 (目标出流的设定发生器)"""
    name: str = "D"
    maximum: float = 10.0                 # 最大需求
    setting: float = 5.0                  # 初始设定
    flow: float = 5.0                     # 初始需求流量
    time_constant: float = 2000.0         # 时间常数
    fault1_setpoint: float = 0.0
    fault1_time: int = NEVER
    fault2_setpoint: float = 0.0
    fault2_time: int = NEVER


@dataclass
class PumpConfig:
    """水泵配置"""
    name: str = "P"
    on: bool = True                       # 启停状态
    mass_flow_out: float = 0.0            # 初始出流
    time_constant: float = 1000.0         # 时间常数
    fault_time: int = NEVER               # 计划跳闸时间 (到达后强制停泵)


@dataclass
class SplitterConfig:
    """分流器配置"""
    name: str = "S"
    maximum: float = 20.0                 # 最大允许流量


@dataclass
class HeaterConfig:
    """加热器配置"""
    name: str = "H"
    maximum_heat_flow_out: float = 300.0  # 最大热流
    setting: float = 150.0                # 初始设定
    heat_flow_out: float = 150.0          # 初始热流
    time_constant: float = 2000.0         # 时间常数
    fault1_setpoint: float = 0.0
    fault1_time: int = NEVER
    fault2_setpoint: float = 0.0
    fault2_time: int = NEVER


@dataclass
class HiddenHeaterConfig:
    """隐藏加热器配置 (仅故障调度，操作员不可见)"""
    name: str = "HH"
    maximum_heat_flow_out: float = 100.0
    setting: float = 0.0
    heat_flow_out: float = 0.0
    time_constant: float = 2000.0
    fault1_setpoint: float = 0.0
    fault1_time: int = NEVER
    fault2_setpoint: float = 0.0
    fault2_time: int = NEVER


@dataclass
class ReservoirConfig:
    """水箱配置"""
    name: str = "Reservoir"

    # 质量
    maximum_mass_flow_in: float = 20.0    # 最大入流 (显示量程)
    water_level: float = 50.0             # 初始水位
    minimum_water_level: float = 1.0      # 最低水位 (沸腾/过热判定)
    maximum_water_level: float = 100.0    # 最高水位 (溢流判定)

    # 目标
    demand_temperature: float = 40.0      # 目标出水温度 (°C)
    maximum_temperature: float = 100.0    # 温度量程

    # 能量
    minimum_energy_in: float = 1.0        # 空箱加热判定阈值
    maximum_energy_in: float = 600.0      # 入口能量量程
    maximum_energy_out: float = 600.0     # 出口能量量程
    energy: float = 500.0                 # 初始能量
    maximum_energy: float = 20000.0       # 最大能量

    # 物性
    tank_area: float = 1.0                # 水箱截面积
    water_density: float = 1.0            # 水密度
    water_heat_capacity: float = 1.0      # 比热容
    water_boiling_temperature: float = 100.0  # 沸点 (°C)

    # 泄漏/注入故障
    fault_mass_flow: float = 0.0          # 正值=额外入流，负值=额外出流
    fault_temperature: float = 0.0        # 额外入流温度
    fault_time: int = NEVER               # 触发时间

    # 空箱加热宽限时间
    break_time: int = 30000
    overheat_timer_resets_on_recovery: bool = False

    # 出口阀与需求
    outlet: ValveConfig = field(default_factory=lambda: ValveConfig(
        name="Outlet", setting=5.0, opening=5.0))
    demand: DemandConfig = field(default_factory=DemandConfig)


@dataclass
class BranchConfig:
    """供水支路配置: 水泵 -> 阀门 -> 分流器 -> 两个下游阀门"""
    pump: PumpConfig = field(default_factory=PumpConfig)
    valve: ValveConfig = field(default_factory=lambda: ValveConfig(
        setting=10.0, opening=10.0))
    splitter: SplitterConfig = field(default_factory=SplitterConfig)
    valve1: ValveConfig = field(default_factory=ValveConfig)
    valve2: ValveConfig = field(default_factory=ValveConfig)


@dataclass
class SimulationConfig:
    """仿真配置"""
    dt: int = 1000                        # 时间步长 (缩放毫秒)
    steady_limit: int = 300000            # 稳态持续时长要求 (5 min)
    steady_min_time: int = 60000          # NEVER 表示禁用稳态终止
    temperature_margin: float = 2.0       # 温度容差
    demand_margin: float = 1.0            # 流量容差

    # 节拍
    realtime: bool = False                # 按墙钟节拍运行
    time_scale: float = 1.0               # 墙钟节拍缩放 (1.0 = 实时)

    # 记录
    history_size: int = 10000             # 轨迹缓冲长度


def _branch(letter: str) -> BranchConfig:
    return BranchConfig(
        pump=PumpConfig(name=f"P{letter}"),
        valve=ValveConfig(name=f"V{letter}", setting=10.0, opening=10.0),
        splitter=SplitterConfig(name=f"S{letter}"),
        valve1=ValveConfig(name=f"V{letter}1"),
        valve2=ValveConfig(name=f"V{letter}2")
    )


def _reservoir(index: int) -> ReservoirConfig:
    return ReservoirConfig(
        name=f"Reservoir {index}",
        outlet=ValveConfig(name=f"R{index}", setting=5.0, opening=5.0),
        demand=DemandConfig(name=f"D{index}")
    )


@dataclass
class PlantConfig:
    """完整工厂配置"""
    simulation: SimulationConfig = field(default_factory=SimulationConfig)

    # 进水温度源 (隐藏加热器，输出即进水温度)
    feed: HiddenHeaterConfig = field(default_factory=lambda: HiddenHeaterConfig(
        name="HH0", maximum_heat_flow_out=50.0, setting=10.0, heat_flow_out=10.0))

    branch_a: BranchConfig = field(default_factory=lambda: _branch("A"))
    branch_b: BranchConfig = field(default_factory=lambda: _branch("B"))

    heater_1: HeaterConfig = field(default_factory=lambda: HeaterConfig(name="H1"))
    heater_2: HeaterConfig = field(default_factory=lambda: HeaterConfig(name="H2"))
    hidden_heater_1: HiddenHeaterConfig = field(
        default_factory=lambda: HiddenHeaterConfig(name="HH1"))
    hidden_heater_2: HiddenHeaterConfig = field(
        default_factory=lambda: HiddenHeaterConfig(name="HH2"))

    reservoir_1: ReservoirConfig = field(default_factory=lambda: _reservoir(1))
    reservoir_2: ReservoirConfig = field(default_factory=lambda: _reservoir(2))

    def to_dict(self) -> dict:
        """导出配置为嵌套字典"""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PlantConfig':
        """
        从嵌套字典构建配置

        未给出的字段保留默认值；未知字段抛出 ValueError。
        """
        return _update_dataclass(cls(), data, cls.__name__)

    def component_names(self) -> List[str]:
        """所有可寻址组件名称"""
        names = [self.feed.name]
        for branch in (self.branch_a, self.branch_b):
            names.extend([branch.pump.name, branch.valve.name, branch.splitter.name,
                          branch.valve1.name, branch.valve2.name])
        names.extend([self.heater_1.name, self.heater_2.name,
                      self.hidden_heater_1.name, self.hidden_heater_2.name])
        for reservoir in (self.reservoir_1, self.reservoir_2):
            names.extend([reservoir.name, reservoir.outlet.name, reservoir.demand.name])
        return names

    def validate(self) -> List[ValidationResult]:
        """验证配置"""
        results: List[ValidationResult] = []
        sim = self.simulation

        if sim.dt <= 0:
            results.append(_error(f"dt 必须为正数，当前值: {sim.dt}", 'simulation.dt'))
        if sim.steady_limit < 0:
            results.append(_error("steady_limit 不能为负", 'simulation.steady_limit'))
        if sim.temperature_margin < 0 or sim.demand_margin < 0:
            results.append(_error("容差不能为负", 'simulation.margin'))
        if sim.time_scale < 0:
            results.append(_error("time_scale 不能为负", 'simulation.time_scale'))

        lagged = [self.feed, self.heater_1, self.heater_2,
                  self.hidden_heater_1, self.hidden_heater_2]
        for branch in (self.branch_a, self.branch_b):
            lagged.extend([branch.valve, branch.valve1, branch.valve2])
            if branch.splitter.maximum < 0:
                results.append(_error(f"{branch.splitter.name} 最大流量不能为负",
                                      f"{branch.splitter.name}.maximum"))
            if branch.pump.time_constant < 0:
                results.append(_error(f"{branch.pump.name} 时间常数不能为负",
                                      f"{branch.pump.name}.time_constant"))
        for reservoir in (self.reservoir_1, self.reservoir_2):
            lagged.extend([reservoir.outlet, reservoir.demand])
            results.extend(_validate_reservoir(reservoir))

        for item in lagged:
            if item.time_constant < 0:
                results.append(_error(f"{item.name} 时间常数不能为负",
                                      f"{item.name}.time_constant"))

        names = self.component_names()
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            results.append(_error(f"组件名称重复: {duplicates}", 'name'))

        return results

    def errors(self) -> List[ValidationResult]:
        """仅返回错误级别的验证结果"""
        return [r for r in self.validate() if r.severity == ValidationSeverity.ERROR]


def _error(message: str, field_name: str) -> ValidationResult:
    return ValidationResult(ValidationSeverity.ERROR, message, field_name)


def _validate_reservoir(cfg: ReservoirConfig) -> List[ValidationResult]:
    results = []
    for attr in ('tank_area', 'water_density', 'water_heat_capacity', 'maximum_energy'):
        if getattr(cfg, attr) <= 0:
            results.append(_error(f"{cfg.name}.{attr} 必须为正数", f"{cfg.name}.{attr}"))
    if not 0 <= cfg.minimum_water_level < cfg.maximum_water_level:
        results.append(_error(
            f"{cfg.name} 水位限值无效: min={cfg.minimum_water_level}, "
            f"max={cfg.maximum_water_level}", f"{cfg.name}.minimum_water_level"))
    if not 0 <= cfg.water_level <= cfg.maximum_water_level:
        results.append(_error(f"{cfg.name} 初始水位超出范围", f"{cfg.name}.water_level"))
    if cfg.energy < 0:
        results.append(_error(f"{cfg.name} 初始能量不能为负", f"{cfg.name}.energy"))
    if cfg.energy > cfg.maximum_energy:
        results.append(ValidationResult(
            ValidationSeverity.WARNING,
            f"{cfg.name} 初始能量超过最大能量，将被限幅", f"{cfg.name}.energy"))
    return results


def _update_dataclass(instance, data: Dict[str, Any], path: str):
    """用字典递归覆盖数据类字段"""
    known = {f.name: f for f in fields(instance)}
    for key, value in data.items():
        if key not in known:
            raise ValueError(f"未知配置项: {path}.{key}")
        current = getattr(instance, key)
        if is_dataclass(current) and isinstance(value, dict):
            _update_dataclass(current, value, f"{path}.{key}")
        else:
            setattr(instance, key, value)
    return instance


