"""
配置模块测试
"""

import pytest
import json
import os
import sys
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from duress.config.settings import PlantConfig, ValidationSeverity
from duress.core.constants import NEVER


class TestPlantConfig:
    """工厂配置测试"""

    def test_defaults_valid(self):
        assert PlantConfig().errors() == []

    def test_default_names(self):
        names = PlantConfig().component_names()
        for name in ('HH0', 'PA', 'VA', 'SA', 'VA1', 'VA2', 'PB', 'VB2',
                     'H1', 'HH2', 'Reservoir 1', 'R1', 'D2'):
            assert name in names
        assert len(names) == len(set(names))

    def test_dict_round_trip(self):
        config = PlantConfig()
        config.reservoir_1.break_time = 12000
        restored = PlantConfig.from_dict(json.loads(json.dumps(config.to_dict())))
        assert restored == config

    def test_partial_override(self):
        config = PlantConfig.from_dict({
            'simulation': {'dt': 500},
            'branch_b': {'valve1': {'fault1_time': 8000}}
        })
        assert config.simulation.dt == 500
        assert config.branch_b.valve1.fault1_time == 8000
        assert config.branch_b.valve1.name == 'VB1'
        assert config.branch_a.valve1.fault1_time == NEVER

    def test_unknown_key(self):
        with pytest.raises(ValueError):
            PlantConfig.from_dict({'reservoir_1': {'volume': 3}})


class TestValidation:
    """配置验证测试"""

    def test_non_positive_dt(self):
        config = PlantConfig()
        config.simulation.dt = 0
        assert any(e.field_name == 'simulation.dt' for e in config.errors())

    def test_negative_area(self):
        config = PlantConfig()
        config.reservoir_2.tank_area = -1.0
        assert config.errors()

    def test_inverted_levels(self):
        config = PlantConfig()
        config.reservoir_1.minimum_water_level = 80.0
        config.reservoir_1.maximum_water_level = 10.0
        assert config.errors()

    def test_duplicate_names(self):
        config = PlantConfig()
        config.branch_b.valve1.name = 'VA1'
        assert any('VA1' in e.message for e in config.errors())

    def test_energy_warning(self):
        config = PlantConfig()
        config.reservoir_1.energy = config.reservoir_1.maximum_energy + 1
        results = config.validate()
        assert any(r.severity == ValidationSeverity.WARNING for r in results)
        assert config.errors() == []
