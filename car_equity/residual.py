"""Residual value and balloon payment estimation.

Estimates the balloon (GMFV) a lender would quote on a not-yet-signed PCP
deal. A base residual percentage is read from a per-category table, with
linear interpolation between tabulated terms, then adjusted for mileage,
vehicle age, condition and the state of the used-car market.
"""

from __future__ import annotations

import re
from datetime import date
from decimal import Decimal
from typing import Dict, List, Mapping, Optional, Union

from . import settings
from .data_models import BalloonEstimate, Condition, ResidualAdjustment, VehicleCategory
from .utils import Number, round_currency, to_decimal

# Expected residual as a fraction of purchase price, by term in months
RESIDUAL_TABLE: Dict[VehicleCategory, Dict[int, Decimal]] = {
    VehicleCategory.ECONOMY: {
        12: Decimal("0.75"),
        24: Decimal("0.65"),
        36: Decimal("0.55"),
        48: Decimal("0.48"),
        60: Decimal("0.42"),
    },
    VehicleCategory.PREMIUM: {
        12: Decimal("0.78"),
        24: Decimal("0.68"),
        36: Decimal("0.58"),
        48: Decimal("0.50"),
        60: Decimal("0.44"),
    },
    VehicleCategory.EXOTIC: {
        12: Decimal("0.85"),
        24: Decimal("0.77"),
        36: Decimal("0.70"),
        48: Decimal("0.65"),
        60: Decimal("0.60"),
    },
    VehicleCategory.ELECTRIC: {
        12: Decimal("0.75"),
        24: Decimal("0.65"),
        36: Decimal("0.55"),
        48: Decimal("0.48"),
        60: Decimal("0.43"),
    },
}

BASE_ANNUAL_MILEAGE = Decimal("12000")
MILEAGE_INCREMENT = Decimal("0.10")
HIGH_MILEAGE_PENALTY = Decimal("0.015")  # per full 10% over expected
LOW_MILEAGE_BONUS = Decimal("0.010")  # per full 10% under expected

NEW_VEHICLE_BONUS = Decimal("0.02")  # under 2 years old
OLD_VEHICLE_PENALTY = Decimal("-0.03")  # over 5 years old

CONDITION_ADJUSTMENTS: Dict[Condition, Decimal] = {
    Condition.EXCELLENT: Decimal("0.03"),
    Condition.GOOD: Decimal("0.00"),
    Condition.FAIR: Decimal("-0.03"),
    Condition.POOR: Decimal("-0.06"),
}

EXOTIC_MAKES = {"ferrari", "porsche", "lamborghini", "corvette", "mclaren", "aston martin"}
EXOTIC_MODELS = ("911", "corvette", "amg", "gt-r", "nsx")
LUXURY_MAKES = {
    "range rover",
    "mercedes",
    "mercedes-benz",
    "bmw",
    "audi",
    "lexus",
    "bentley",
    "rolls-royce",
    "jaguar",
    "maserati",
}
LUXURY_MODELS = ("range rover", "s-class", "7 series", "a8", "x5", "q7", "gle", "cayenne", "escalade")
ELECTRIC_MAKES = {"tesla", "polestar", "rivian", "lucid"}
ELECTRIC_MODELS = ("leaf", "e-tron", "i3", "i4", "taycan", "electric", "id.4", "mach-e")
_EV_WORD = re.compile(r"\bev\b")

ZERO = Decimal("0")


def residual_category(make: Optional[str], model: Optional[str]) -> VehicleCategory:
    """Classify a vehicle for residual lookup from its make and model."""
    if not make or not model:
        return VehicleCategory.ECONOMY
    make_lower = make.strip().lower()
    model_lower = model.strip().lower()

    if make_lower in EXOTIC_MAKES or any(m in model_lower for m in EXOTIC_MODELS):
        return VehicleCategory.EXOTIC
    if make_lower in LUXURY_MAKES or any(m in model_lower for m in LUXURY_MODELS):
        return VehicleCategory.PREMIUM
    if (
        make_lower in ELECTRIC_MAKES
        or any(m in model_lower for m in ELECTRIC_MODELS)
        or _EV_WORD.search(model_lower)
    ):
        return VehicleCategory.ELECTRIC
    return VehicleCategory.ECONOMY


def residual_percent(table: Mapping[int, Decimal], term_months: int) -> Decimal:
    """Residual fraction for ``term_months``.

    Exact tabulated terms are returned as-is. Terms outside the table clamp
    to the nearest end; terms between two entries are linearly
    interpolated. An empty table yields zero.
    """
    if not table:
        return ZERO
    if term_months in table:
        return table[term_months]

    known_terms = sorted(table)
    if term_months <= known_terms[0]:
        return table[known_terms[0]]
    if term_months >= known_terms[-1]:
        return table[known_terms[-1]]

    lower_term, upper_term = known_terms[0], known_terms[-1]
    for low, high in zip(known_terms, known_terms[1:]):
        if low < term_months < high:
            lower_term, upper_term = low, high
            break

    lower_value = table[lower_term]
    upper_value = table[upper_term]
    ratio = Decimal(term_months - lower_term) / Decimal(upper_term - lower_term)
    return lower_value + (upper_value - lower_value) * ratio


def available_terms(category: VehicleCategory = VehicleCategory.ECONOMY) -> List[int]:
    return sorted(RESIDUAL_TABLE.get(category, RESIDUAL_TABLE[VehicleCategory.ECONOMY]))


def mileage_adjustment(current_mileage: Optional[Number], vehicle_age: Optional[int]) -> Decimal:
    """-1.5 % per full 10 % over 12,000 miles a year, +1 % per full 10 % under.

    No adjustment without both a mileage reading and a positive age.
    """
    if not current_mileage or not vehicle_age or vehicle_age <= 0:
        return ZERO
    expected = BASE_ANNUAL_MILEAGE * vehicle_age
    difference = (to_decimal(current_mileage) - expected) / expected
    increments = int(abs(difference) / MILEAGE_INCREMENT)
    if difference > 0:
        return -(increments * HIGH_MILEAGE_PENALTY)
    if difference < 0:
        return increments * LOW_MILEAGE_BONUS
    return ZERO


def year_adjustment(vehicle_age: Optional[int]) -> Decimal:
    if vehicle_age is None:
        return ZERO
    if vehicle_age < 2:
        return NEW_VEHICLE_BONUS
    if vehicle_age > 5:
        return OLD_VEHICLE_PENALTY
    return ZERO


def condition_tier(condition: Optional[Union[Condition, str]]) -> Optional[Condition]:
    """Normalise a condition input; unknown tiers count as no input."""
    if not condition:
        return None
    if isinstance(condition, Condition):
        return condition
    try:
        return Condition(condition.strip().lower())
    except ValueError:
        return None


def condition_adjustment(condition: Optional[Union[Condition, str]]) -> Decimal:
    tier = condition_tier(condition)
    return CONDITION_ADJUSTMENTS[tier] if tier else ZERO


def _error_estimate(message: str) -> BalloonEstimate:
    return BalloonEstimate(
        estimated=ZERO,
        min=ZERO,
        max=ZERO,
        category=VehicleCategory.ECONOMY,
        base_residual_percent=ZERO,
        base_residual_value=ZERO,
        adjusted_residual_percent=ZERO,
        adjustments={},
        total_adjustment=ZERO,
        error=message,
    )


def estimate_balloon(
    purchase_price: Optional[Number],
    term_months: Optional[int],
    make: Optional[str] = None,
    model: Optional[str] = None,
    year: Optional[int] = None,
    current_mileage: Optional[Number] = None,
    condition: Optional[Union[Condition, str]] = None,
    market_trend: Optional[Number] = None,
    category: Optional[VehicleCategory] = None,
    as_of: Optional[date] = None,
) -> BalloonEstimate:
    """Estimate a PCP balloon payment with a +/-5 % range.

    Adjustments are multiplicative:

        estimate = price * residual * (1 + mileage) * (1 + year) * (1 + condition) * market_trend

    Each adjustment contributes nothing when its input is missing. Invalid
    price or term returns a zeroed estimate carrying ``error``; this
    function never raises for those inputs.
    """
    price = to_decimal(purchase_price) if purchase_price else ZERO
    if price <= 0:
        return _error_estimate("Purchase price is required")
    if not term_months or term_months <= 0:
        return _error_estimate("Term is required")

    category = category or residual_category(make, model)
    base_percent = residual_percent(RESIDUAL_TABLE[category], int(term_months))
    base_value = price * base_percent

    as_of = as_of or date.today()
    vehicle_age = as_of.year - year if year else None

    mileage_adj = mileage_adjustment(current_mileage, vehicle_age)
    year_adj = year_adjustment(vehicle_age)
    condition_adj = condition_adjustment(condition)
    trend = settings.MARKET_TREND if market_trend is None else to_decimal(market_trend)

    total_factor = (1 + mileage_adj) * (1 + year_adj) * (1 + condition_adj) * trend
    adjusted_value = base_value * total_factor
    estimated = round_currency(adjusted_value)
    variance = settings.BALLOON_VARIANCE

    adjustments = {
        "mileage": ResidualAdjustment(
            applied=mileage_adj != 0,
            adjustment=mileage_adj,
            details=(
                f"{int(to_decimal(current_mileage)):,} miles vs expected "
                f"{int(BASE_ANNUAL_MILEAGE * vehicle_age):,} miles"
            )
            if mileage_adj != 0
            else None,
        ),
        "year": ResidualAdjustment(
            applied=year_adj != 0,
            adjustment=year_adj,
            details=f"{vehicle_age} year old vehicle" if year_adj != 0 else None,
        ),
        "condition": ResidualAdjustment(
            applied=condition_adj != 0,
            adjustment=condition_adj,
            details=f"Condition: {condition_tier(condition).value}" if condition_adj != 0 else None,
        ),
        "market_trend": ResidualAdjustment(
            applied=trend != 1,
            adjustment=trend - 1,
            details=f"Market trend factor: {trend}" if trend != 1 else None,
        ),
    }

    return BalloonEstimate(
        estimated=estimated,
        min=round_currency(estimated * (1 - variance)),
        max=round_currency(estimated * (1 + variance)),
        category=category,
        base_residual_percent=base_percent,
        base_residual_value=round_currency(base_value),
        adjusted_residual_percent=adjusted_value / price,
        adjustments=adjustments,
        total_adjustment=total_factor - 1,
        error=None,
    )
