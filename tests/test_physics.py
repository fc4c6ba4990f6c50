"""
物理模块单元测试
"""

import pytest
import os
import sys
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from duress.config.settings import ReservoirConfig, ValveConfig
from duress.core.constants import FaultKind
from duress.physics.mixer import Mixer
from duress.physics.splitter import Splitter
from duress.physics.reservoir import Reservoir, ReservoirError


def make_reservoir(**overrides) -> Reservoir:
    """出口阀开度固定的水箱"""
    opening = overrides.pop('opening', 0.0)
    cfg = ReservoirConfig(
        name="Reservoir 1",
        outlet=ValveConfig(name="R1", setting=opening, opening=opening, time_constant=0),
        **overrides
    )
    return Reservoir(cfg, demand_margin=1.0, temperature_margin=2.0)


def step(reservoir: Reservoir, t: int, mass_in: float = 0.0, temperature_in: float = 0.0,
         heater: float = 0.0, hidden: float = 0.0, dt: int = 1000):
    """按工厂管线的顺序推进水箱"""
    reservoir.calculate_demand(t, dt)
    reservoir.calculate_resistance(t, dt)
    reservoir.set_mass_flow_in(mass_in)
    reservoir.set_temperature_in(temperature_in)
    reservoir.set_mass_flow_out(reservoir.get_valve_opening())
    reservoir.set_heater_energy_in(heater)
    reservoir.set_hidden_heater_energy_in(hidden)
    reservoir.calculate_reservoir(t, dt)


class TestMixer:
    """混合器测试"""

    def test_energy_conservation(self):
        mixer = Mixer("M1")
        mixer.set_mass_flow_out(2.0, 3.0)
        mixer.set_temperature_out(10.0, 60.0)
        assert mixer.mass_flow_out == pytest.approx(5.0)
        assert mixer.mass_flow_out * mixer.temperature_out == pytest.approx(2 * 10 + 3 * 60)

    def test_zero_flow_temperature(self):
        """总流量为零时温度为 0"""
        mixer = Mixer("M1")
        mixer.set_mass_flow_out(0.0, 0.0)
        assert mixer.set_temperature_out(50.0, 80.0) == 0.0

    def test_single_inlet(self):
        mixer = Mixer("M2")
        mixer.set_mass_flow_out(0.0, 4.0)
        assert mixer.set_temperature_out(99.0, 20.0) == pytest.approx(20.0)


class TestSplitter:
    """分流器测试"""

    def test_resistance_capped(self):
        splitter = Splitter("SA", 5.0)
        assert splitter.calculate_resistance(3.0, 4.0) == 5.0
        assert splitter.calculate_resistance(1.0, 2.0) == 3.0

    def test_proportional_split(self):
        splitter = Splitter("SA", 20.0)
        splitter.set_mass_flow_out(7.0, 3.0, 4.0)
        assert splitter.mass_flow_out == pytest.approx(3.0)
        assert splitter.mass_flow_out2 == pytest.approx(4.0)

    def test_closed_outlets(self):
        splitter = Splitter("SA", 20.0)
        splitter.set_mass_flow_out(7.0, 0.0, 0.0)
        assert splitter.mass_flow_out == 0.0
        assert splitter.mass_flow_out2 == 0.0

    def test_temperature_unchanged(self):
        splitter = Splitter("SA", 20.0)
        splitter.set_temperature_out(33.0)
        assert splitter.temperature_out2 == 33.0


class TestReservoirBalance:
    """水箱水量/能量平衡测试"""

    def test_initial_temperature(self):
        reservoir = make_reservoir(water_level=50.0, energy=500.0)
        assert reservoir.temperature == pytest.approx(10.0)
        assert reservoir.get_temperature_out() == pytest.approx(10.0)

    def test_mass_conservation(self):
        """入流比出流多 1，10 步后水位 +10"""
        reservoir = make_reservoir(water_level=50.0, opening=4.0)
        for k in range(10):
            step(reservoir, k * 1000, mass_in=5.0, temperature_in=20.0)
        assert reservoir.water_level == pytest.approx(60.0)
        assert not reservoir.has_error

    def test_energy_balance(self):
        """出口能量使用上一步温度"""
        reservoir = make_reservoir(water_level=50.0, energy=500.0, opening=5.0)
        step(reservoir, 0, mass_in=5.0, temperature_in=10.0, heater=150.0)
        assert reservoir.energy_in == pytest.approx(50.0)
        assert reservoir.energy_out == pytest.approx(50.0)
        assert reservoir.energy == pytest.approx(650.0)
        assert reservoir.temperature == pytest.approx(13.0)

    def test_hidden_heater_adds_energy(self):
        reservoir = make_reservoir(water_level=10.0, energy=100.0)
        step(reservoir, 0, hidden=20.0)
        assert reservoir.energy == pytest.approx(120.0)

    def test_low_inflow_temperature_ignored(self):
        reservoir = make_reservoir()
        reservoir.set_mass_flow_in(0.00001)
        reservoir.set_temperature_in(80.0)
        assert reservoir.temperature_in == 0.0

    def test_empty_tank_outflow_clamped(self):
        """空箱时出流不能超过来水"""
        reservoir = make_reservoir(water_level=0.0, energy=0.0, opening=5.0)
        step(reservoir, 0, mass_in=1.0, temperature_in=30.0)
        assert reservoir.get_mass_flow_out() == pytest.approx(1.0)
        assert reservoir.water_level == pytest.approx(0.0)
        assert reservoir.energy == 0.0

    def test_leak_fault(self):
        """泄漏故障到期后额外出流"""
        reservoir = make_reservoir(water_level=50.0, energy=1000.0,
                                   fault_mass_flow=-2.0, fault_time=3000)
        for k in range(3):
            step(reservoir, k * 1000)
        assert reservoir.water_level == pytest.approx(50.0)
        step(reservoir, 3000)
        assert reservoir.water_level == pytest.approx(48.0)

    def test_injection_fault(self):
        reservoir = make_reservoir(water_level=50.0, energy=0.0,
                                   fault_mass_flow=3.0, fault_temperature=10.0, fault_time=0)
        step(reservoir, 0)
        assert reservoir.water_level == pytest.approx(53.0)
        assert reservoir.energy == pytest.approx(30.0)

    def test_energy_goal(self):
        reservoir = make_reservoir(water_level=20.0, tank_area=2.0)
        assert reservoir.energy_goal(40.0) == pytest.approx(1600.0)


class TestReservoirErrors:
    """水箱故障测试"""

    def test_overflow(self):
        reservoir = make_reservoir(water_level=99.5, energy=0.0)
        step(reservoir, 0, mass_in=5.0, temperature_in=20.0)
        assert reservoir.get_error() == ReservoirError.OVERFLOW
        assert reservoir.water_level == 100.0

    def test_boil(self):
        reservoir = make_reservoir(water_level=10.0, energy=950.0)
        step(reservoir, 0, heater=1000.0)
        assert reservoir.get_error() == ReservoirError.BOIL

    def test_error_sticky(self):
        """首个故障不被后续故障覆盖"""
        reservoir = make_reservoir(water_level=10.0, energy=950.0)
        step(reservoir, 0, heater=1000.0)
        reservoir.set_error(ReservoirError.OVERFLOW)
        step(reservoir, 1000)
        assert reservoir.get_error() == ReservoirError.BOIL

    def test_overheat_after_break_time(self):
        """空箱加热超过宽限时间即过热"""
        reservoir = make_reservoir(water_level=0.5, energy=0.0, break_time=3000)
        for k in range(4):
            step(reservoir, k * 1000, heater=10.0)
            assert not reservoir.has_error
        step(reservoir, 4000, heater=10.0)
        assert reservoir.get_error() == ReservoirError.OVERHEAT

    def test_overheat_timer_resumes(self):
        """默认: 加热中断后计时从剩余值继续"""
        reservoir = make_reservoir(water_level=0.5, energy=0.0, break_time=3000)
        heaters = [10.0, 10.0, 10.0, 0.0, 10.0, 10.0]
        for k, heater in enumerate(heaters):
            step(reservoir, k * 1000, heater=heater)
        assert reservoir.get_error() == ReservoirError.OVERHEAT

    def test_overheat_timer_resets(self):
        reservoir = make_reservoir(water_level=0.5, energy=0.0, break_time=3000,
                                   overheat_timer_resets_on_recovery=True)
        heaters = [10.0, 10.0, 10.0, 0.0, 10.0, 10.0]
        for k, heater in enumerate(heaters):
            step(reservoir, k * 1000, heater=heater)
        assert not reservoir.has_error
        for k in range(6, 9):
            step(reservoir, k * 1000, heater=10.0)
        assert reservoir.get_error() == ReservoirError.OVERHEAT

    def test_fatal_fault(self):
        reservoir = make_reservoir(water_level=99.5)
        assert reservoir.fatal_fault(0) is None
        step(reservoir, 0, mass_in=5.0)
        fault = reservoir.fatal_fault(0)
        assert fault.kind == FaultKind.RESERVOIR_OVERFLOW
        assert fault.component == "Reservoir 1"


class TestReservoirTargets:
    """目标带判定测试"""

    def test_on_target_inclusive(self):
        reservoir = make_reservoir(water_level=50.0, energy=2100.0, opening=6.0)
        step(reservoir, 0, mass_in=6.0, temperature_in=42.0)
        assert reservoir.get_demand() == pytest.approx(5.0)
        assert reservoir.get_mass_flow_out() == pytest.approx(6.0)
        assert reservoir.is_flow_on_target()
        assert reservoir.is_temperature_on_target()
        assert reservoir.is_on_target()

    def test_off_target(self):
        reservoir = make_reservoir(water_level=50.0, energy=500.0, opening=2.0)
        step(reservoir, 0, mass_in=2.0, temperature_in=10.0)
        assert not reservoir.is_flow_on_target()
        assert not reservoir.is_temperature_on_target()

    def test_operator_setting(self):
        reservoir = make_reservoir(opening=1.0)
        reservoir.set_setting(3.0)
        assert reservoir.setting == 3.0
        step(reservoir, 0)
        assert reservoir.get_valve_opening() == pytest.approx(3.0)
