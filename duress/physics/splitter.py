"""
分流器模型
==========

一路来流按下游两阀开度比例分配:
- 允许流量 = min(开度1 + 开度2, 最大流量)
- 总开度为零时两路出流均为零
- 不改变温度
"""

from ..config.settings import SplitterConfig


class Splitter:
    """分流器"""

    def __init__(self, name: str, maximum: float):
        self.name = name
        self.maximum = maximum
        self.maximum_allowable_mass_flow = 0.0
        self.mass_flow_out = 0.0
        self.mass_flow_out2 = 0.0
        self.temperature_out = 0.0

    @classmethod
    def from_config(cls, cfg: SplitterConfig) -> 'Splitter':
        return cls(cfg.name, cfg.maximum)

    def calculate_resistance(self, opening1: float, opening2: float) -> float:
        """由下游开度计算上游允许流量"""
        self.maximum_allowable_mass_flow = min(opening1 + opening2, self.maximum)
        return self.maximum_allowable_mass_flow

    def get_maximum_allowable_mass_flow(self) -> float:
        return self.maximum_allowable_mass_flow

    def set_mass_flow_out(self, mass_flow: float, opening1: float, opening2: float):
        """按开度比例分配来流"""
        total = opening1 + opening2
        if total > 0:
            self.mass_flow_out = mass_flow * opening1 / total
            self.mass_flow_out2 = mass_flow * opening2 / total
        else:
            self.mass_flow_out = 0.0
            self.mass_flow_out2 = 0.0

    def set_temperature_out(self, temperature: float):
        self.temperature_out = temperature

    @property
    def temperature_out2(self) -> float:
        return self.temperature_out

    def get_state_dict(self) -> dict:
        return {
            'maximum_allowable_mass_flow': self.maximum_allowable_mass_flow,
            'mass_flow_out': self.mass_flow_out,
            'mass_flow_out2': self.mass_flow_out2,
            'temperature_out': self.temperature_out
        }
