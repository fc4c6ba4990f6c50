"""
热工水力工厂模型
================

集成全部物理组件的完整系统:

    HH0 (进水温度)
      │
    PA ─ VA ─ SA ─┬─ VA1 ─┐            PB ─ VB ─ SB ─┬─ VB1 ─┐
                  └─ VA2 ─┼─┐                        └─ VB2 ─┼─┐
                          │ │                                │ │
    M1 = VA1 + VB1 ───────┘ │   M2 = VA2 + VB2 ──────────────┘ │
    M1 + H1 + HH1 → Reservoir 1 → 出口阀 R1
    M2 + H2 + HH2 → Reservoir 2 → 出口阀 R2

每步按固定拓扑顺序执行 (见 build_pipeline)。
"""

import logging
from typing import Dict, List, Optional

from ..config.settings import PlantConfig, BranchConfig, ValidationSeverity
from ..core.constants import FaultKind
from ..core.base_physics import FatalFault
from ..actuators.valve import Valve
from ..actuators.pump import Pump
from ..actuators.heater import Heater, HiddenHeater
from ..physics.splitter import Splitter
from ..physics.mixer import Mixer
from ..physics.reservoir import Reservoir
from .pipeline import TickPipeline, PipelineStep, TickResult

logger = logging.getLogger('DURESS.Plant')


class SupplyBranch:
    """
    供水支路: 水泵 -> 上游阀 -> 分流器 -> 两个下游阀
    """

    def __init__(self, config: BranchConfig):
        self.pump = Pump.from_config(config.pump)
        self.valve = Valve.from_config(config.valve)
        self.splitter = Splitter.from_config(config.splitter)
        self.valve1 = Valve.from_config(config.valve1)
        self.valve2 = Valve.from_config(config.valve2)

    def calculate_resistance(self, t: int, dt: int):
        """下游阀 -> 分流器 -> 上游阀"""
        self.valve1.calculate_resistance(t, dt)
        self.valve2.calculate_resistance(t, dt)
        self.splitter.calculate_resistance(self.valve1.get_valve_opening(),
                                           self.valve2.get_valve_opening())
        self.valve.calculate_resistance(t, dt)

    def drive_pump(self, t: int, dt: int, feed_temperature: float):
        """由下游流阻限制水泵并计算出流"""
        self.pump.set_maximum_pipe_flow(self.valve.get_valve_opening(),
                                        self.splitter.get_maximum_allowable_mass_flow())
        self.pump.set_mass_flow_out(t, dt)
        self.pump.set_temperature_out(feed_temperature)

    def propagate(self):
        """上游阀 -> 分流器 -> 下游阀"""
        self.valve.set_mass_flow_out(self.pump.mass_flow_out)
        self.valve.set_temperature_out(self.pump.temperature_out)

        opening1 = self.valve1.get_valve_opening()
        opening2 = self.valve2.get_valve_opening()
        self.splitter.set_mass_flow_out(self.valve.mass_flow_out, opening1, opening2)
        self.splitter.set_temperature_out(self.valve.temperature_out)

        self.valve1.set_mass_flow_out(self.splitter.mass_flow_out)
        self.valve1.set_temperature_out(self.splitter.temperature_out)
        self.valve2.set_mass_flow_out(self.splitter.mass_flow_out2)
        self.valve2.set_temperature_out(self.splitter.temperature_out2)

    def components(self) -> list:
        return [self.pump, self.valve, self.splitter, self.valve1, self.valve2]


class DuressPlant:
    """
    双支路热工水力系统

    包含:
    - 进水温度源与两个隐藏热源
    - A/B 两条供水支路
    - 两个混合器、两个加热器
    - 两个水箱 (各含出口阀与需求)
    """

    def __init__(self, config: PlantConfig = None):
        self.cfg = config or PlantConfig()
        self._check_config()
        sim = self.cfg.simulation

        # 热源
        self.feed = HiddenHeater.from_config(self.cfg.feed)
        self.hidden_heater_1 = HiddenHeater.from_config(self.cfg.hidden_heater_1)
        self.hidden_heater_2 = HiddenHeater.from_config(self.cfg.hidden_heater_2)
        self.heater_1 = Heater.from_config(self.cfg.heater_1)
        self.heater_2 = Heater.from_config(self.cfg.heater_2)

        # 供水支路
        self.branch_a = SupplyBranch(self.cfg.branch_a)
        self.branch_b = SupplyBranch(self.cfg.branch_b)

        # 混合器
        self.mixer_1 = Mixer("M1")
        self.mixer_2 = Mixer("M2")

        # 水箱
        self.reservoir_1 = Reservoir(self.cfg.reservoir_1, sim.demand_margin,
                                     sim.temperature_margin)
        self.reservoir_2 = Reservoir(self.cfg.reservoir_2, sim.demand_margin,
                                     sim.temperature_margin)

        self.components: Dict[str, object] = {}
        for component in self._all_components():
            self.components[component.name] = component

        self.fatal: Optional[FatalFault] = None

    def _check_config(self):
        """加载前验证配置"""
        for result in self.cfg.validate():
            if result.severity == ValidationSeverity.WARNING:
                logger.warning(result.message)
        errors = self.cfg.errors()
        if errors:
            for error in errors:
                logger.error(f"  - {error.message}")
            raise ValueError(f"配置验证失败: {len(errors)} 个错误")

    def _all_components(self) -> list:
        return ([self.feed, self.hidden_heater_1, self.hidden_heater_2,
                 self.heater_1, self.heater_2]
                + self.branch_a.components() + self.branch_b.components()
                + [self.mixer_1, self.mixer_2,
                   self.reservoir_1, self.reservoir_1.outlet, self.reservoir_1.demand,
                   self.reservoir_2, self.reservoir_2.outlet, self.reservoir_2.demand])

    @property
    def reservoirs(self) -> List[Reservoir]:
        return [self.reservoir_1, self.reservoir_2]

    @property
    def pumps(self) -> List[Pump]:
        return [self.branch_a.pump, self.branch_b.pump]

    # ------------------------------------------------------------------
    # 单步管线
    # ------------------------------------------------------------------

    def build_pipeline(self) -> TickPipeline:
        """构建单步物理管线 (顺序即因果顺序)"""
        return TickPipeline([
            PipelineStep('hidden_heaters', self._update_hidden_heaters),
            PipelineStep('demands', self._update_demands),
            PipelineStep('resistance_a', self._branch_step(self.branch_a.calculate_resistance)),
            PipelineStep('resistance_b', self._branch_step(self.branch_b.calculate_resistance)),
            PipelineStep('pump_a', self._pump_step(self.branch_a),
                         after=('hidden_heaters', 'resistance_a')),
            PipelineStep('pump_b', self._pump_step(self.branch_b),
                         after=('hidden_heaters', 'resistance_b')),
            PipelineStep('propagate_a', lambda t, dt: self.branch_a.propagate(),
                         after=('pump_a',)),
            PipelineStep('propagate_b', lambda t, dt: self.branch_b.propagate(),
                         after=('pump_b',)),
            PipelineStep('pump_breakdown', self._check_pumps,
                         after=('pump_a', 'pump_b'), checkpoint=True),
            PipelineStep('mixers', self._update_mixers,
                         after=('propagate_a', 'propagate_b', 'pump_breakdown')),
            PipelineStep('heaters', self._update_heaters),
            PipelineStep('reservoir_resistance', self._update_outlets),
            PipelineStep('reservoir_1', self._reservoir_step(self.reservoir_1, self.mixer_1,
                                                             self.heater_1, self.hidden_heater_1),
                         after=('demands', 'mixers', 'heaters', 'reservoir_resistance')),
            PipelineStep('check_reservoir_1', self._reservoir_check(self.reservoir_1),
                         after=('reservoir_1',), checkpoint=True),
            PipelineStep('reservoir_2', self._reservoir_step(self.reservoir_2, self.mixer_2,
                                                             self.heater_2, self.hidden_heater_2),
                         after=('demands', 'mixers', 'heaters', 'reservoir_resistance',
                                'check_reservoir_1')),
            PipelineStep('check_reservoir_2', self._reservoir_check(self.reservoir_2),
                         after=('reservoir_2',), checkpoint=True),
        ])

    def step(self, t: int, dt: int, pipeline: TickPipeline = None) -> TickResult:
        """
        推进一个时间步

        Parameters:
            t: 当前时间 (缩放毫秒)
            dt: 时间步长
            pipeline: 外部扩展的管线 (默认仅物理步骤)

        Returns:
            TickResult: 执行结果，fatal 非空表示运行终止
        """
        pipeline = pipeline or self.build_pipeline()
        result = pipeline.run(t, dt)
        if result.fatal is not None:
            self.fatal = result.fatal
            logger.error(f"[t={t}] {result.fatal.message}")
        return result

    def _update_hidden_heaters(self, t: int, dt: int):
        self.feed.check_for_fault(t, dt)
        self.hidden_heater_1.check_for_fault(t, dt)
        self.hidden_heater_2.check_for_fault(t, dt)

    def _update_demands(self, t: int, dt: int):
        self.reservoir_1.calculate_demand(t, dt)
        self.reservoir_2.calculate_demand(t, dt)

    @staticmethod
    def _branch_step(method):
        def action(t: int, dt: int):
            method(t, dt)
        return action

    def _pump_step(self, branch: SupplyBranch):
        def action(t: int, dt: int):
            branch.drive_pump(t, dt, self.feed.get_heat_flow_out())
        return action

    def _check_pumps(self, t: int, dt: int) -> Optional[FatalFault]:
        fault = None
        for pump in self.pumps:
            if pump.check_breakdown() and fault is None:
                fault = FatalFault(
                    kind=FaultKind.PUMP_BREAKDOWN,
                    component=pump.name,
                    message=f"{pump.name} 因下游阀门全关而损坏",
                    time=t
                )
        return fault

    def _update_mixers(self, t: int, dt: int):
        a, b = self.branch_a, self.branch_b
        self.mixer_1.set_mass_flow_out(a.valve1.mass_flow_out, b.valve1.mass_flow_out)
        self.mixer_1.set_temperature_out(a.valve1.temperature_out, b.valve1.temperature_out)
        self.mixer_2.set_mass_flow_out(a.valve2.mass_flow_out, b.valve2.mass_flow_out)
        self.mixer_2.set_temperature_out(a.valve2.temperature_out, b.valve2.temperature_out)

    def _update_heaters(self, t: int, dt: int):
        self.heater_1.set_heat_flow_out(t, dt)
        self.heater_2.set_heat_flow_out(t, dt)

    def _update_outlets(self, t: int, dt: int):
        self.reservoir_1.calculate_resistance(t, dt)
        self.reservoir_2.calculate_resistance(t, dt)

    @staticmethod
    def _reservoir_step(reservoir: Reservoir, mixer: Mixer, heater: Heater,
                        hidden_heater: HiddenHeater):
        def action(t: int, dt: int):
            reservoir.set_mass_flow_in(mixer.mass_flow_out)
            reservoir.set_temperature_in(mixer.temperature_out)
            reservoir.set_mass_flow_out(reservoir.get_valve_opening())
            reservoir.set_heater_energy_in(heater.get_heat_flow_out())
            reservoir.set_hidden_heater_energy_in(hidden_heater.get_heat_flow_out())
            reservoir.calculate_reservoir(t, dt)
        return action

    @staticmethod
    def _reservoir_check(reservoir: Reservoir):
        def action(t: int, dt: int) -> Optional[FatalFault]:
            return reservoir.fatal_fault(t)
        return action

    # ------------------------------------------------------------------
    # 操作员控制
    # ------------------------------------------------------------------

    def apply_control(self, control_inputs: Dict[str, float]):
        """
        应用操作员设定

        Parameters:
            control_inputs: {组件名: 设定值}，组件须为阀门、水箱出口或加热器
        """
        for name, value in control_inputs.items():
            component = self.components.get(name)
            if not isinstance(component, (Valve, Reservoir, Heater)) or \
                    isinstance(component, HiddenHeater):
                raise KeyError(f"不可控组件: {name}")
            component.set_setting(value)
            logger.debug(f"{name} 设定 -> {component.setting:.3f}")

    def set_pump_state(self, name: str, on: bool):
        """水泵启停"""
        pump = self.components.get(name)
        if not isinstance(pump, Pump):
            raise KeyError(f"未知水泵: {name}")
        pump.set_pump_state(on)
        logger.debug(f"{name} {'启动' if pump.is_on else '停止'}")

    # ------------------------------------------------------------------
    # 状态查询
    # ------------------------------------------------------------------

    def get_state_dict(self) -> Dict[str, dict]:
        """获取全部组件状态 (步进完成后调用)"""
        return {name: component.get_state_dict()
                for name, component in self.components.items()}
