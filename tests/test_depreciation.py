from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from car_equity.data_models import VehicleCategory
from car_equity.depreciation import (
    category_profile,
    classify_vehicle,
    depreciation_factor,
    market_value,
    private_value,
    trade_in_value,
    vehicle_age_months,
)


@pytest.mark.parametrize(
    "category, expected",
    [
        (VehicleCategory.ECONOMY, 24640),
        (VehicleCategory.PREMIUM, 23800),
        (VehicleCategory.ELECTRIC, 22960),
        (VehicleCategory.EXOTIC, 25760),
    ],
)
def test_drive_off_drop_applies_at_month_zero(category, expected):
    assert trade_in_value(28000, category, 0, 0) == Decimal(expected)


def test_monthly_rate_compounds():
    value = trade_in_value(28000, VehicleCategory.ECONOMY, 12, 10000, 10000)
    assert float(value) == pytest.approx(24640 * 0.996 ** 12, rel=1e-9)


def test_value_never_increases_on_schedule_mileage():
    previous = None
    for month in range(0, 121):
        on_schedule = Decimal(10000) / 12 * month
        value = trade_in_value(Decimal("35000"), VehicleCategory.PREMIUM, month, on_schedule, 10000)
        if previous is not None:
            assert value <= previous
        previous = value


def test_each_5000_miles_over_costs_two_percent():
    base = trade_in_value(28000, VehicleCategory.ECONOMY, 0, 0)
    over = trade_in_value(28000, VehicleCategory.ECONOMY, 0, 5000)
    assert over == base * Decimal("0.98")


def test_mileage_adjustment_is_clamped():
    base = trade_in_value(28000, VehicleCategory.ECONOMY, 0, 0)
    assert trade_in_value(28000, VehicleCategory.ECONOMY, 0, 200000) == base * Decimal("0.7")
    low = trade_in_value(28000, VehicleCategory.ECONOMY, 120, 0, 10000)
    expected = Decimal("24640") * Decimal("0.996") ** 120 * Decimal("1.3")
    assert float(low) == pytest.approx(float(expected), rel=1e-12)


def test_value_floored_at_zero():
    assert trade_in_value(0, VehicleCategory.EXOTIC, 24, 0) == 0


def test_private_sale_premium():
    assert private_value(Decimal("10000")) == Decimal("11200.00")


def test_three_phase_curve_changes_rate_at_12_and_36_months():
    category = VehicleCategory.ECONOMY
    first_year = float(depreciation_factor(category, 12))
    assert first_year == pytest.approx((1 - 0.004 * 1.15) ** 12)
    mid = float(depreciation_factor(category, 24)) / first_year
    assert mid == pytest.approx((1 - 0.004 * 0.95) ** 12)
    late = float(depreciation_factor(category, 48)) / float(depreciation_factor(category, 36))
    assert late == pytest.approx((1 - 0.004 * 0.65) ** 12)


def test_market_value_range_and_rounding():
    new = market_value(30000, VehicleCategory.EXOTIC, 0)
    assert new.base_value == Decimal("30000")
    assert new.range_min == Decimal("25500")
    assert new.range_max == Decimal("34500")

    aged = market_value(30000, VehicleCategory.EXOTIC, 60)
    assert aged.base_value == aged.base_value.to_integral_value()
    assert aged.base_value < new.base_value


def test_both_paths_disagree_on_purpose():
    # trade-in applies a drive-off drop, the market curve does not
    assert trade_in_value(30000, VehicleCategory.PREMIUM, 0, 0) < market_value(30000, VehicleCategory.PREMIUM, 0).base_value


def test_vehicle_age_months():
    assert vehicle_age_months(2020, date(2024, 3, 15)) == 50
    assert vehicle_age_months(2030, date(2024, 3, 15)) == 0


@pytest.mark.parametrize(
    "make, body_type, expected",
    [
        ("Porsche", "electric", VehicleCategory.EXOTIC),
        ("Tesla", None, VehicleCategory.ELECTRIC),
        ("Hyundai", "Electric hatchback", VehicleCategory.ELECTRIC),
        ("BMW", "saloon", VehicleCategory.PREMIUM),
        ("Land Rover", None, VehicleCategory.PREMIUM),
        ("Ford", None, VehicleCategory.ECONOMY),
    ],
)
def test_classify_vehicle(make, body_type, expected):
    assert classify_vehicle(make, body_type) == expected


def test_category_profile_matches_rate_tables():
    profile = category_profile(VehicleCategory.ELECTRIC)
    assert profile.monthly_depreciation_rate == Decimal("0.0052")
    assert profile.drive_off_depreciation == Decimal("0.18")
    assert profile.name == "Electric Vehicle"
