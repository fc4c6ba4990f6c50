"""
操作绩效评分
============

3×3 绩效矩阵:
- 行: 温度 {偏低, 正常, 偏高}
- 列: 流量 {不足, 达标, 过量}

每步按各水箱出水 (温度, 流量) 相对需求 ± 容差分类，
累加本步交付的水量 m_out * dt / 1000。矩阵元素单调不减。

稳态计时: 所有水箱同时处于两条容差带内则累加 dt，否则清零。
"""

from typing import Iterable, Tuple

import numpy as np

from ..core.constants import NEVER, TIME_SCALE

LOW_TEMPERATURE, NORMAL_TEMPERATURE, HIGH_TEMPERATURE = 0, 1, 2
UNDERFLOW, ON_TARGET, OVERFLOW = 0, 1, 2


class Score:
    """绩效矩阵累加器"""

    def __init__(self):
        self.matrix = np.zeros((3, 3))

    def set_score(self, row: int, column: int, value: float):
        """累加 (负值按零计，保证单调)"""
        self.matrix[row, column] += max(value, 0.0)

    def record(self, reservoir, dt: int):
        """
        对单个水箱分类并累加

        温度优先: 温度越界时整步出水计入 (偏低/偏高, 不足) 格；
        温度正常时按流量分类，过量部分单独计入 (正常, 过量)。
        """
        flow = reservoir.get_mass_flow_out()
        temperature = reservoir.get_temperature_out()
        demand = reservoir.get_demand()
        demand_temperature = reservoir.get_demand_temperature()
        demand_margin = reservoir.demand_margin
        temperature_margin = reservoir.temperature_margin
        scale = dt / TIME_SCALE

        if temperature < demand_temperature - temperature_margin:
            self.set_score(LOW_TEMPERATURE, UNDERFLOW, flow * scale)
        elif temperature > demand_temperature + temperature_margin:
            self.set_score(HIGH_TEMPERATURE, UNDERFLOW, flow * scale)
        elif flow < demand - demand_margin:
            self.set_score(NORMAL_TEMPERATURE, UNDERFLOW, flow * scale)
        elif flow > demand + demand_margin:
            self.set_score(NORMAL_TEMPERATURE, ON_TARGET, (demand + demand_margin) * scale)
            self.set_score(NORMAL_TEMPERATURE, OVERFLOW,
                           (flow - demand - demand_margin) * scale)
        else:
            self.set_score(NORMAL_TEMPERATURE, ON_TARGET, flow * scale)

    def record_all(self, reservoirs: Iterable, dt: int):
        for reservoir in reservoirs:
            self.record(reservoir, dt)

    @property
    def total(self) -> float:
        return float(self.matrix.sum())

    @property
    def on_target_fraction(self) -> float:
        """达标交付量占比"""
        total = self.total
        if total == 0:
            return 0.0
        return float(self.matrix[NORMAL_TEMPERATURE, ON_TARGET] / total)

    def to_list(self):
        return self.matrix.tolist()

    def reset(self):
        self.matrix[:] = 0.0


class SteadyStateTracker:
    """
    稳态计时器

    steady_min_time 为 NEVER 时禁用稳态终止，但仍然计时。
    达到 steady_limit 的信号每次运行只发出一次。
    """

    def __init__(self, steady_limit: int, steady_min_time: int = 0):
        self.steady_limit = steady_limit
        self.steady_min_time = steady_min_time
        self.steady_time = 0
        self.reached = False

    @property
    def enabled(self) -> bool:
        return self.steady_min_time != NEVER

    def update(self, reservoirs: Iterable, dt: int) -> bool:
        """
        推进计时

        Returns:
            本步是否首次达到稳态
        """
        if all(r.is_on_target() for r in reservoirs):
            self.steady_time += dt
        else:
            self.steady_time = 0

        if self.enabled and not self.reached and self.steady_time >= self.steady_limit:
            self.reached = True
            return True
        return False

    def reset(self):
        self.steady_time = 0
        self.reached = False


def classify(reservoir) -> Tuple[int, int]:
    """返回水箱当前所在的 (温度行, 流量列)"""
    temperature = reservoir.get_temperature_out()
    flow = reservoir.get_mass_flow_out()
    if temperature < reservoir.demand_temperature - reservoir.temperature_margin:
        row = LOW_TEMPERATURE
    elif temperature > reservoir.demand_temperature + reservoir.temperature_margin:
        row = HIGH_TEMPERATURE
    else:
        row = NORMAL_TEMPERATURE
    demand = reservoir.get_demand()
    if flow < demand - reservoir.demand_margin:
        column = UNDERFLOW
    elif flow > demand + reservoir.demand_margin:
        column = OVERFLOW
    else:
        column = ON_TARGET
    return row, column
