"""
水箱模型
========

热工水力系统的中心积分环节:
- 水量平衡: dL/dt = (m_in - m_out) / (A * ρ)
- 能量平衡: dE/dt = E_in + Q_heater + Q_hidden - E_out
- 温度由能量与水量导出 (不单独积分)
- 沸腾/空箱过热/溢流检测 (首个故障粘滞)

水箱持有出口阀与需求 (组合关系)，出流由出口阀开度决定。
"""

from dataclasses import dataclass, asdict
from enum import Enum, auto
from typing import Optional

import numpy as np

from ..config.settings import ReservoirConfig
from ..core.constants import NEVER, TIME_SCALE, MIN_MASS_FLOW_IN, FaultKind, is_due
from ..core.base_physics import FatalFault
from ..actuators.valve import Valve, Demand


class ReservoirError(Enum):
    """水箱故障状态 (单向迁移，不可清除)"""
    NONE = 0
    BOIL = 1
    OVERHEAT = 2
    OVERFLOW = 3


_FAULT_KINDS = {
    ReservoirError.BOIL: FaultKind.RESERVOIR_BOIL,
    ReservoirError.OVERHEAT: FaultKind.RESERVOIR_OVERHEAT,
    ReservoirError.OVERFLOW: FaultKind.RESERVOIR_OVERFLOW,
}


@dataclass
class ReservoirState:
    """水箱状态"""
    water_level: float
    energy: float
    temperature: float
    mass_flow_in: float
    temperature_in: float
    mass_flow_out: float
    demand: float
    energy_in: float
    energy_out: float
    heater_energy_in: float
    hidden_heater_energy_in: float
    error_state: ReservoirError


class Reservoir:
    """
    水箱仿真模型

    每步调用顺序 (由编排层保证):
    1. calculate_demand
    2. calculate_resistance (出口阀开度)
    3. set_mass_flow_in / set_temperature_in / set_mass_flow_out /
       set_heater_energy_in / set_hidden_heater_energy_in
    4. calculate_reservoir
    """

    def __init__(self, config: ReservoirConfig,
                 demand_margin: float = 0.0,
                 temperature_margin: float = 0.0):
        self.cfg = config
        self.name = config.name

        # 组合: 出口阀与需求
        self.outlet = Valve.from_config(config.outlet)
        self.demand = Demand.from_config(config.demand)

        # 容差
        self.demand_margin = demand_margin
        self.demand_temperature = config.demand_temperature
        self.temperature_margin = temperature_margin

        # 限值与物性
        self.maximum_mass_flow_in = config.maximum_mass_flow_in
        self.minimum_water_level = config.minimum_water_level
        self.maximum_water_level = config.maximum_water_level
        self.maximum_temperature = config.maximum_temperature
        self.minimum_energy_in = config.minimum_energy_in
        self.maximum_energy_in = config.maximum_energy_in
        self.maximum_energy_out = config.maximum_energy_out
        self.maximum_energy = config.maximum_energy
        self.tank_area = config.tank_area
        self.water_density = config.water_density
        self.water_heat_capacity = config.water_heat_capacity
        self.water_boiling_temperature = config.water_boiling_temperature

        # 泄漏/注入故障
        self.fault_mass_flow = config.fault_mass_flow
        self.fault_temperature = config.fault_temperature
        self.fault_time = config.fault_time

        # 空箱加热计时
        self.break_time = config.break_time
        self.fault_time_left = NEVER
        self.timer_resets_on_recovery = config.overheat_timer_resets_on_recovery

        # 状态变量
        self.water_level = config.water_level
        self.energy = float(np.clip(config.energy, 0.0, config.maximum_energy))
        self.temperature = self._derive_temperature(0.0)
        self.outlet.set_temperature_out(self.temperature)
        self.error_state = ReservoirError.NONE

        # 步进输入/输出
        self.mass_flow_in = 0.0
        self.temperature_in = 0.0
        self.heater_energy_in = 0.0
        self.hidden_heater_energy_in = 0.0
        self.energy_in = 0.0
        self.energy_out = 0.0

    # ------------------------------------------------------------------
    # 出口阀与需求
    # ------------------------------------------------------------------

    def calculate_demand(self, t: int, dt: int) -> float:
        return self.demand.calculate_demand(t, dt)

    def calculate_resistance(self, t: int, dt: int) -> float:
        return self.outlet.calculate_resistance(t, dt)

    def get_valve_opening(self) -> float:
        return self.outlet.get_valve_opening()

    def set_setting(self, value: float):
        """操作员设定出口阀"""
        self.outlet.set_setting(value)

    @property
    def setting(self) -> float:
        return self.outlet.setting

    def get_demand(self) -> float:
        return self.demand.get_flow()

    def get_demand_temperature(self) -> float:
        return self.demand_temperature

    def get_mass_flow_out(self) -> float:
        return self.outlet.mass_flow_out

    def get_temperature_out(self) -> float:
        return self.outlet.temperature_out

    # ------------------------------------------------------------------
    # 输入
    # ------------------------------------------------------------------

    def set_mass_flow_in(self, mass_flow: float):
        self.mass_flow_in = mass_flow

    def set_temperature_in(self, temperature: float):
        """入流过小时温度无意义，置零"""
        if self.mass_flow_in > MIN_MASS_FLOW_IN:
            self.temperature_in = temperature
        else:
            self.temperature_in = 0.0

    def set_mass_flow_out(self, mass_flow: float):
        self.outlet.set_mass_flow_out(mass_flow)

    def set_heater_energy_in(self, heat_flow: float):
        self.heater_energy_in = heat_flow

    def set_hidden_heater_energy_in(self, heat_flow: float):
        self.hidden_heater_energy_in = heat_flow

    # ------------------------------------------------------------------
    # 积分
    # ------------------------------------------------------------------

    def _derive_temperature(self, fallback: float) -> float:
        """由能量与水量导出温度，水量为零时返回 fallback"""
        capacity = (self.water_level * self.tank_area *
                    self.water_density * self.water_heat_capacity)
        if capacity != 0:
            return self.energy / capacity
        return fallback

    def _leak_terms(self, t: int):
        """泄漏/注入故障的附加流量与能量 (入流, 出流, 入能, 出能)"""
        if not is_due(self.fault_time, t):
            return 0.0, 0.0, 0.0, 0.0
        if self.fault_mass_flow > 0:
            add_in = self.fault_mass_flow
            return add_in, 0.0, add_in * self.water_heat_capacity * self.fault_temperature, 0.0
        add_out = -self.fault_mass_flow
        return 0.0, add_out, 0.0, add_out * self.water_heat_capacity * self.temperature

    def calculate_reservoir(self, t: int, dt: int):
        """
        推进一个时间步

        顺序不可调换:
        1. 泄漏/注入故障
        2. 水量平衡与溢流检测
        3. 能量平衡 (出口能量使用上一步温度)
        4. 温度导出与沸腾检测
        5. 空箱加热计时与过热检测
        """
        add_in, add_out, add_in_energy, add_out_energy = self._leak_terms(t)

        # 水量平衡: 空箱不能放出多于来水的量
        mass_flow_out = self.get_mass_flow_out()
        if self.water_level == 0 and self.mass_flow_in + add_in < mass_flow_out + add_out:
            mass_flow_out = max(self.mass_flow_in + add_in - add_out, 0.0)
            self.set_mass_flow_out(mass_flow_out)

        if 0 <= self.water_level <= self.maximum_water_level:
            net_flow = self.mass_flow_in + add_in - mass_flow_out - add_out
            self.water_level += net_flow * dt / TIME_SCALE / self.tank_area / self.water_density
        if self.water_level > self.maximum_water_level:
            self.set_error(ReservoirError.OVERFLOW)
        self.water_level = float(np.clip(self.water_level, 0.0, self.maximum_water_level))

        # 能量平衡
        self.energy_in = self.mass_flow_in * self.water_heat_capacity * self.temperature_in
        self.energy_out = mass_flow_out * self.water_heat_capacity * self.temperature
        energy_rate = (self.energy_in + self.heater_energy_in + self.hidden_heater_energy_in
                       - self.energy_out + add_in_energy - add_out_energy)
        self.energy = float(np.clip(self.energy + energy_rate * dt / TIME_SCALE,
                                    0.0, self.maximum_energy))
        if self.water_level == 0:
            self.energy = 0.0

        # 温度
        self.temperature = self._derive_temperature(self.temperature_in)
        if (self.temperature > self.water_boiling_temperature and
                self.water_level > self.minimum_water_level):
            self.set_error(ReservoirError.BOIL)
        if self.temperature < 0:
            self.temperature = 0.0
        self.outlet.set_temperature_out(self.temperature)

        self._update_overheat_timer(dt)

    def _update_overheat_timer(self, dt: int):
        """空箱加热: 宽限时间耗尽即过热"""
        heating_empty = (self.heater_energy_in > self.minimum_energy_in and
                         self.water_level < self.minimum_water_level)
        if not heating_empty:
            if self.timer_resets_on_recovery:
                self.fault_time_left = NEVER
            return

        if self.fault_time_left == NEVER:
            self.fault_time_left = self.break_time
        elif self.fault_time_left <= 0:
            self.set_error(ReservoirError.OVERHEAT)
        else:
            self.fault_time_left -= dt

    # ------------------------------------------------------------------
    # 故障与目标
    # ------------------------------------------------------------------

    def set_error(self, error: ReservoirError):
        """首个故障粘滞"""
        if self.error_state == ReservoirError.NONE:
            self.error_state = error

    def get_error(self) -> ReservoirError:
        return self.error_state

    @property
    def has_error(self) -> bool:
        return self.error_state != ReservoirError.NONE

    def fatal_fault(self, t: int = 0) -> Optional[FatalFault]:
        """将故障状态转换为致命故障记录"""
        if not self.has_error:
            return None
        messages = {
            ReservoirError.BOIL: f"{self.name} 中的水达到沸点",
            ReservoirError.OVERHEAT: f"{self.name} 被空箱加热",
            ReservoirError.OVERFLOW: f"{self.name} 溢流",
        }
        return FatalFault(
            kind=_FAULT_KINDS[self.error_state],
            component=self.name,
            message=messages[self.error_state],
            time=t
        )

    def is_flow_on_target(self) -> bool:
        flow = self.get_mass_flow_out()
        demand = self.get_demand()
        return demand - self.demand_margin <= flow <= demand + self.demand_margin

    def is_temperature_on_target(self) -> bool:
        temperature = self.get_temperature_out()
        return (self.demand_temperature - self.temperature_margin <= temperature
                <= self.demand_temperature + self.temperature_margin)

    def is_on_target(self) -> bool:
        return self.is_flow_on_target() and self.is_temperature_on_target()

    def energy_goal(self, temperature: float) -> float:
        """当前水量下达到给定温度所需的能量"""
        return (temperature * self.water_level * self.tank_area *
                self.water_density * self.water_heat_capacity)

    def get_state(self) -> ReservoirState:
        """获取当前状态"""
        return ReservoirState(
            water_level=self.water_level,
            energy=self.energy,
            temperature=self.temperature,
            mass_flow_in=self.mass_flow_in,
            temperature_in=self.temperature_in,
            mass_flow_out=self.get_mass_flow_out(),
            demand=self.get_demand(),
            energy_in=self.energy_in,
            energy_out=self.energy_out,
            heater_energy_in=self.heater_energy_in,
            hidden_heater_energy_in=self.hidden_heater_energy_in,
            error_state=self.error_state
        )

    def get_state_dict(self) -> dict:
        state = asdict(self.get_state())
        state['error_state'] = self.error_state.name
        state['setting'] = self.outlet.setting
        state['opening'] = self.outlet.opening
        return state
