"""
Tests for the platform fee calculator
"""
from decimal import Decimal

import pytest

from domestiq.errors import AppError
from domestiq.paystack import to_minor_units
from domestiq.services import FeeService, PlatformService


class TestCalculate:
    def test_ten_percent_on_five_hundred(self):
        breakdown = FeeService.calculate(Decimal("500.00"), Decimal("0.1"))

        assert breakdown.worker_amount == Decimal("500.00")
        assert breakdown.platform_fee == Decimal("50.00")
        assert breakdown.total_amount == Decimal("550.00")
        assert breakdown.to_dict() == {
            "worker_amount": 500.0,
            "platform_fee": 50.0,
            "total_amount": 550.0,
            "fee_percent": 0.1,
        }

    def test_fee_rounds_half_up_to_cents(self):
        breakdown = FeeService.calculate("0.125", "0.12")
        assert breakdown.worker_amount == Decimal("0.13")
        assert breakdown.platform_fee == Decimal("0.02")

        breakdown = FeeService.calculate("333.33", "0.15")
        assert breakdown.platform_fee == Decimal("50.00")
        assert breakdown.total_amount == Decimal("383.33")

    def test_minimum_and_maximum_clamp_the_fee(self):
        assert FeeService.calculate("50", "0.15", minimum="15", maximum="500").platform_fee == Decimal("15.00")
        assert FeeService.calculate("10000", "0.15", minimum="15", maximum="500").platform_fee == Decimal("500.00")
        assert FeeService.calculate("1000", "0.15", minimum="15", maximum="500").platform_fee == Decimal("150.00")

    def test_total_is_always_worker_plus_fee(self):
        for amount in ("1.01", "99.99", "250", "1234.56"):
            breakdown = FeeService.calculate(amount, "0.12")
            assert breakdown.total_amount == breakdown.worker_amount + breakdown.platform_fee


class TestCurrentRate:
    def test_uses_config_rate_by_default(self, app):
        assert FeeService.current_rate() == Decimal("0.1")

    def test_platform_setting_overrides_config(self, app):
        PlatformService.set_setting("platform_fee_rate", "0.15")

        assert FeeService.current_rate() == Decimal("0.15")
        assert FeeService.breakdown_for("200").platform_fee == Decimal("30.00")

    def test_rejects_non_numeric_setting(self, app):
        with pytest.raises(AppError):
            PlatformService.set_setting("platform_fee_rate", "lots")


def test_minor_units_are_cents():
    assert to_minor_units(Decimal("550.00")) == 55000
    assert to_minor_units("10.005") == 1001
