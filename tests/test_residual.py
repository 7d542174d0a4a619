from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from car_equity.data_models import Condition, VehicleCategory
from car_equity.residual import (
    available_terms,
    condition_adjustment,
    estimate_balloon,
    mileage_adjustment,
    residual_category,
    residual_percent,
    year_adjustment,
)

AS_OF = date(2024, 6, 1)
TABLE = {24: Decimal("0.55"), 48: Decimal("0.40")}


@pytest.mark.parametrize(
    "term, expected",
    [
        (24, "0.55"),
        (48, "0.40"),
        (36, "0.475"),
        (30, "0.5125"),
        (12, "0.55"),
        (60, "0.40"),
    ],
)
def test_residual_percent_interpolates_and_clamps(term, expected):
    assert residual_percent(TABLE, term) == Decimal(expected)


def test_residual_percent_single_entry_and_empty_tables():
    assert residual_percent({36: Decimal("0.5")}, 12) == Decimal("0.5")
    assert residual_percent({36: Decimal("0.5")}, 60) == Decimal("0.5")
    assert residual_percent({}, 36) == 0


def test_available_terms():
    assert available_terms() == [12, 24, 36, 48, 60]


def test_plain_estimate_has_five_percent_range():
    estimate = estimate_balloon(20000, 36, market_trend=1, as_of=AS_OF)
    assert estimate.error is None
    assert estimate.category == VehicleCategory.ECONOMY
    assert estimate.estimated == Decimal("11000")
    assert estimate.min == Decimal("10450")
    assert estimate.max == Decimal("11550")
    assert estimate.base_residual_percent == Decimal("0.55")
    assert not estimate.has_adjustments


def test_interpolated_term_estimate():
    estimate = estimate_balloon(20000, 30, market_trend=1, as_of=AS_OF)
    assert estimate.base_residual_percent == Decimal("0.60")
    assert estimate.estimated == Decimal("12000")


def test_adjustments_multiply():
    estimate = estimate_balloon(
        20000,
        36,
        make="Ford",
        model="Focus",
        year=2023,
        current_mileage=15000,
        condition=Condition.EXCELLENT,
        market_trend=Decimal("0.95"),
        as_of=AS_OF,
    )
    assert estimate.estimated == Decimal("10649")
    assert estimate.min == Decimal("10117")
    assert estimate.max == Decimal("11181")
    assert estimate.adjustments["mileage"].adjustment == Decimal("-0.030")
    assert estimate.adjustments["year"].adjustment == Decimal("0.02")
    assert estimate.adjustments["condition"].percent_change == "3.00%"
    assert estimate.adjustments["market_trend"].percent_change == "-5.00%"
    assert estimate.adjustments["condition"].details == "Condition: excellent"
    assert estimate.has_adjustments


@pytest.mark.parametrize("price", [0, None, -5000])
def test_invalid_price_returns_error(price):
    estimate = estimate_balloon(price, 36)
    assert estimate.error == "Purchase price is required"
    assert estimate.estimated == 0


@pytest.mark.parametrize("term", [0, None, -12])
def test_invalid_term_returns_error(term):
    estimate = estimate_balloon(20000, term)
    assert estimate.error == "Term is required"


def test_condition_adjustment_accepts_strings():
    assert condition_adjustment("Fair") == Decimal("-0.03")
    assert condition_adjustment(" poor ") == Decimal("-0.06")
    assert condition_adjustment("pristine") == 0
    assert condition_adjustment(None) == 0


def test_year_adjustment_bands():
    assert year_adjustment(1) == Decimal("0.02")
    assert year_adjustment(3) == 0
    assert year_adjustment(9) == Decimal("-0.03")
    assert year_adjustment(None) == 0


def test_mileage_adjustment_counts_full_increments():
    # 3 years at 12k a year is 36k expected
    assert mileage_adjustment(36000, 3) == 0
    assert mileage_adjustment(39000, 3) == 0
    assert mileage_adjustment(43200, 3) == Decimal("-0.030")
    assert mileage_adjustment(28800, 3) == Decimal("0.020")
    assert mileage_adjustment(50000, 0) == 0
    assert mileage_adjustment(None, 3) == 0


def test_old_vehicle_penalty_applied():
    estimate = estimate_balloon(20000, 36, year=2015, market_trend=1, as_of=AS_OF)
    assert estimate.adjustments["year"].applied
    assert estimate.estimated == Decimal("10670")


@pytest.mark.parametrize(
    "make, model, expected",
    [
        ("Porsche", "911", VehicleCategory.EXOTIC),
        ("Chevrolet", "Corvette", VehicleCategory.EXOTIC),
        ("BMW", "X5", VehicleCategory.PREMIUM),
        ("Land Rover", "Range Rover Sport", VehicleCategory.PREMIUM),
        ("Tesla", "Model 3", VehicleCategory.ELECTRIC),
        ("Nissan", "Leaf", VehicleCategory.ELECTRIC),
        ("Kia", "Niro EV", VehicleCategory.ELECTRIC),
        ("Mitsubishi", "Lancer Evolution", VehicleCategory.ECONOMY),
        ("Ford", "Focus", VehicleCategory.ECONOMY),
        ("Ford", None, VehicleCategory.ECONOMY),
    ],
)
def test_residual_category(make, model, expected):
    assert residual_category(make, model) == expected


def test_category_override_skips_classification():
    estimate = estimate_balloon(20000, 36, make="Ford", model="Focus", category=VehicleCategory.EXOTIC, market_trend=1)
    assert estimate.estimated == Decimal("14000")
