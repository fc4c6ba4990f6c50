"""
执行器测试
"""

import pytest
import os
import sys
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from duress.core.constants import NEVER
from duress.core.base_physics import FaultSchedule
from duress.actuators.valve import Valve, Demand
from duress.actuators.pump import Pump, PumpStatus
from duress.actuators.heater import Heater, HiddenHeater
from duress.config.settings import ValveConfig, DemandConfig, PumpConfig, HiddenHeaterConfig


class TestValve:
    """阀门测试"""

    def test_setting_clamped(self):
        """设定值限幅到 [0, 最大流量]"""
        valve = Valve("V", 10.0, setting=2.0, opening=2.0)
        valve.set_setting(25.0)
        assert valve.setting == 10.0
        valve.set_setting(-3.0)
        assert valve.setting == 0.0

    def test_first_order_lag(self):
        """开度以 dt/τ 比例逼近设定"""
        valve = Valve("V", 10.0, setting=10.0, opening=0.0, time_constant=4000)
        assert valve.calculate_resistance(0, 1000) == pytest.approx(2.5)
        assert valve.calculate_resistance(1000, 1000) == pytest.approx(4.375)

    def test_zero_time_constant(self):
        """时间常数为零时一步到位"""
        valve = Valve("V", 10.0, setting=7.0, opening=0.0, time_constant=0)
        assert valve.calculate_resistance(0, 1000) == pytest.approx(7.0)

    def test_opening_bounds(self):
        """开度始终在 [0, 最大流量] 内"""
        valve = Valve("V", 10.0, setting=10.0, opening=0.0, time_constant=500)
        for k in range(20):
            valve.set_setting(10.0 if k % 2 else 0.0)
            opening = valve.calculate_resistance(k * 1000, 1000)
            assert 0.0 <= opening <= 10.0

    def test_fault_forces_setting(self):
        """故障到期后设定被强制，操作员无法恢复"""
        valve = Valve("V", 10.0, setting=5.0, opening=5.0, time_constant=2000,
                      fault1=FaultSchedule(0.0, 5000))
        for t in range(0, 11000, 1000):
            valve.calculate_resistance(t, 1000)
            if t < 5000:
                assert valve.setting == 5.0
            else:
                assert valve.setting == 0.0
            if t == 7000:
                valve.set_setting(8.0)
        assert valve.opening < 5.0

    def test_fault_inactive_before_time(self):
        valve = Valve("V", 10.0, setting=5.0, opening=5.0,
                      fault1=FaultSchedule(0.0, 5000))
        valve.calculate_resistance(4000, 1000)
        assert valve.setting == 5.0
        assert valve.active_fault(4000) == 0
        assert valve.active_fault(5000) == 1

    def test_fault2_wins(self):
        """两个故障同时到期时后者优先"""
        valve = Valve("V", 10.0, setting=5.0, opening=5.0, time_constant=0,
                      fault1=FaultSchedule(1.0, 2000),
                      fault2=FaultSchedule(9.0, 2000))
        valve.calculate_resistance(2000, 1000)
        assert valve.setting == 9.0
        assert valve.opening == pytest.approx(9.0)

    def test_never_disables_fault(self):
        valve = Valve("V", 10.0, setting=5.0, opening=5.0,
                      fault1=FaultSchedule(0.0, NEVER))
        valve.calculate_resistance(10 ** 9, 1000)
        assert valve.setting == 5.0

    def test_from_config(self):
        cfg = ValveConfig(name="VA1", setting=3.0, opening=1.0, fault2_time=4000)
        valve = Valve.from_config(cfg)
        assert valve.name == "VA1"
        assert valve.opening == 1.0
        assert valve.fault2.time == 4000

    def test_pass_through(self):
        valve = Valve("V", 10.0)
        valve.set_mass_flow_out(3.0)
        valve.set_temperature_out(25.0)
        state = valve.get_state_dict()
        assert state['mass_flow_out'] == 3.0
        assert state['temperature_out'] == 25.0


class TestDemand:
    """需求测试"""

    def test_follows_fault(self):
        demand = Demand.from_config(DemandConfig(
            name="D1", setting=5.0, flow=5.0, time_constant=0,
            fault1_setpoint=8.0, fault1_time=3000))
        demand.calculate_demand(2000, 1000)
        assert demand.get_flow() == 5.0
        demand.calculate_demand(3000, 1000)
        assert demand.get_flow() == pytest.approx(8.0)

    def test_no_operator_setting(self):
        demand = Demand("D", 10.0, 5.0, 5.0)
        with pytest.raises(AttributeError):
            demand.set_setting(3.0)


class TestPump:
    """水泵测试"""

    def test_capacity_limited_by_downstream(self):
        """最大出流 = min(阀门开度, 分流器允许流量)"""
        pump = Pump("PA", time_constant=0)
        pump.set_maximum_pipe_flow(10.0, 5.0)
        assert pump.maximum_mass_flow_out == 5.0
        assert pump.set_mass_flow_out(0, 1000) == pytest.approx(5.0)

    def test_lag_toward_capacity(self):
        pump = Pump("PA", time_constant=2000)
        pump.set_maximum_pipe_flow(4.0, 8.0)
        assert pump.set_mass_flow_out(0, 1000) == pytest.approx(2.0)

    def test_flow_clipped_when_capacity_drops(self):
        pump = Pump("PA", mass_flow_out=6.0, time_constant=10000)
        pump.set_maximum_pipe_flow(2.0, 8.0)
        assert pump.set_mass_flow_out(0, 1000) == pytest.approx(2.0)

    def test_stopped_pump_decays(self):
        pump = Pump("PA", on=False, mass_flow_out=4.0, time_constant=0)
        pump.set_maximum_pipe_flow(5.0, 5.0)
        assert pump.set_mass_flow_out(0, 1000) == 0.0
        assert pump.status == PumpStatus.STOPPED

    def test_breakdown_sticky(self):
        """下游全关即损坏，且不可恢复"""
        pump = Pump("PA")
        pump.set_maximum_pipe_flow(0.0, 5.0)
        assert pump.check_breakdown()
        pump.set_maximum_pipe_flow(5.0, 5.0)
        assert pump.check_breakdown()
        assert pump.status == PumpStatus.BROKEN

    def test_no_breakdown_with_open_path(self):
        pump = Pump("PA")
        pump.set_maximum_pipe_flow(2.0, 5.0)
        assert not pump.check_breakdown()

    def test_scheduled_trip(self):
        """计划跳闸后无法重新启动"""
        pump = Pump.from_config(PumpConfig(name="PB", time_constant=0, fault_time=3000))
        pump.set_maximum_pipe_flow(5.0, 5.0)
        assert pump.set_mass_flow_out(2000, 1000) == pytest.approx(5.0)
        assert pump.set_mass_flow_out(3000, 1000) == 0.0
        pump.set_pump_state(True)
        assert not pump.is_on
        assert pump.status == PumpStatus.TRIPPED

    def test_state_dict(self):
        pump = Pump("PA")
        pump.set_temperature_out(12.0)
        state = pump.get_state_dict()
        assert state['status'] == 'RUNNING'
        assert state['temperature_out'] == 12.0


class TestHeater:
    """加热器测试"""

    def test_lag(self):
        heater = Heater("H1", 300.0, setting=300.0, heat_flow_out=0.0, time_constant=2000)
        assert heater.set_heat_flow_out(0, 1000) == pytest.approx(150.0)

    def test_setting_clamped(self):
        heater = Heater("H1", 300.0)
        heater.set_setting(1000.0)
        assert heater.setting == 300.0

    def test_hidden_heater_fault(self):
        """隐藏热源只受故障调度驱动"""
        hidden = HiddenHeater.from_config(HiddenHeaterConfig(
            name="HH1", time_constant=0, fault1_setpoint=50.0, fault1_time=2000))
        hidden.check_for_fault(1000, 1000)
        assert hidden.get_heat_flow_out() == 0.0
        hidden.check_for_fault(2000, 1000)
        assert hidden.get_heat_flow_out() == pytest.approx(50.0)

    def test_hidden_heater_not_operable(self):
        hidden = HiddenHeater("HH1", 100.0)
        with pytest.raises(AttributeError):
            hidden.set_setting(10.0)
