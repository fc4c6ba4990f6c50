"""
混合器模型
==========

两路 (流量, 温度) 按质量/能量守恒合并:
    m_out = m_a + m_b
    T_out = (m_a*T_a + m_b*T_b) / (m_a + m_b)

总流量为零时出口温度定义为 0。
"""


class Mixer:
    """混合器"""

    def __init__(self, name: str):
        self.name = name
        self.mass_flow_out = 0.0
        self.temperature_out = 0.0
        self._flow_a = 0.0
        self._flow_b = 0.0

    def set_mass_flow_out(self, flow_a: float, flow_b: float) -> float:
        self._flow_a = flow_a
        self._flow_b = flow_b
        self.mass_flow_out = flow_a + flow_b
        return self.mass_flow_out

    def set_temperature_out(self, temperature_a: float, temperature_b: float) -> float:
        """流量加权平均温度 (须先调用 set_mass_flow_out)"""
        total = self._flow_a + self._flow_b
        if total == 0:
            self.temperature_out = 0.0
        else:
            self.temperature_out = (self._flow_a * temperature_a +
                                    self._flow_b * temperature_b) / total
        return self.temperature_out

    def get_state_dict(self) -> dict:
        return {
            'mass_flow_out': self.mass_flow_out,
            'temperature_out': self.temperature_out
        }
