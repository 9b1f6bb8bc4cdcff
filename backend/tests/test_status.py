"""
Tests for fill-percentage status classification.
"""

import math

import pytest

from fuelwatch.services.status import FuelStatus, classify


class TestClassify:
    """Threshold tiers, boundaries and malformed input."""

    @pytest.mark.parametrize("percent", [-5.0, 0, 0.1, 10, 19.99, 20, 20.0])
    def test_critical_at_or_below_twenty(self, percent):
        assert classify(percent) == FuelStatus.CRITICAL

    @pytest.mark.parametrize("percent", [20.0001, 25, 39.9, 40, 40.0])
    def test_low_above_twenty_up_to_forty(self, percent):
        assert classify(percent) == FuelStatus.LOW

    @pytest.mark.parametrize("percent", [40.0001, 41, 75, 100, 130])
    def test_normal_above_forty(self, percent):
        assert classify(percent) == FuelStatus.NORMAL

    @pytest.mark.parametrize("percent", [None, math.nan, float("nan"), "18", True])
    def test_malformed_input_is_unknown_not_normal(self, percent):
        assert classify(percent) == FuelStatus.UNKNOWN

    def test_tank_at_eighteen_percent_is_critical(self, tank_factory):
        tank = tank_factory(safe_level=10000, current_level=1800)

        assert tank.current_level_percent == 18
        assert classify(tank.current_level_percent) == FuelStatus.CRITICAL

    def test_does_not_alter_input_record(self, tank_factory):
        tank = tank_factory(safe_level=1000, current_level=1300)

        assert classify(tank.current_level_percent) == FuelStatus.NORMAL
        assert tank.current_level_percent == 130
