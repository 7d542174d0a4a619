"""Vehicle value model.

Two independent depreciation paths live here and are deliberately kept
apart because their callers expect different numbers:

* ``trade_in_value`` - what a dealer pays at a given month of ownership:
  an immediate drive-off drop, then a constant monthly rate, then a
  mileage correction. The projection engine uses this one.
* ``market_value`` - a three-phase curve (steep first year, normal to
  month 36, flattened after) used for long-range dashboard estimates.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Dict, Optional

from .data_models import CategoryProfile, MarketValue, VehicleCategory
from .settings import DEFAULT_ANNUAL_MILEAGE
from .utils import Number, round_currency, to_decimal

# Retail to trade-in gap on day one
DRIVE_OFF_RATES: Dict[VehicleCategory, Decimal] = {
    VehicleCategory.ECONOMY: Decimal("0.12"),
    VehicleCategory.PREMIUM: Decimal("0.15"),
    VehicleCategory.ELECTRIC: Decimal("0.18"),
    VehicleCategory.EXOTIC: Decimal("0.08"),
}

MONTHLY_DEPRECIATION: Dict[VehicleCategory, Decimal] = {
    VehicleCategory.ECONOMY: Decimal("0.0040"),
    VehicleCategory.PREMIUM: Decimal("0.0042"),
    VehicleCategory.ELECTRIC: Decimal("0.0052"),
    VehicleCategory.EXOTIC: Decimal("0.0023"),
}

PRIVATE_SALE_PREMIUM = Decimal("1.12")

MILEAGE_STEP = Decimal("5000")
MILEAGE_STEP_ADJUSTMENT = Decimal("0.02")
MILEAGE_FACTOR_MIN = Decimal("0.7")
MILEAGE_FACTOR_MAX = Decimal("1.3")

# Three-phase curve multipliers on the category's monthly rate
FIRST_YEAR_MULTIPLIER = Decimal("1.15")
MID_LIFE_MULTIPLIER = Decimal("0.95")
LATE_LIFE_MULTIPLIER = Decimal("0.65")
MARKET_RANGE = Decimal("0.15")

EXOTIC_MAKES = {"lamborghini", "ferrari", "porsche", "mclaren", "aston martin", "bugatti"}
PREMIUM_MAKES = {
    "bmw",
    "mercedes",
    "mercedes-benz",
    "audi",
    "lexus",
    "jaguar",
    "land rover",
    "volvo",
    "cadillac",
}

_PROFILES: Dict[VehicleCategory, CategoryProfile] = {
    VehicleCategory.ECONOMY: CategoryProfile(
        name="Economy",
        monthly_depreciation_rate=MONTHLY_DEPRECIATION[VehicleCategory.ECONOMY],
        annual_depreciation_rate=Decimal("4.8"),
        drive_off_depreciation=DRIVE_OFF_RATES[VehicleCategory.ECONOMY],
        description="Reliable vehicles with steady, moderate depreciation",
        guidance="Economy vehicles depreciate predictably. Focus on loan paydown timing for optimal selling.",
    ),
    VehicleCategory.PREMIUM: CategoryProfile(
        name="Premium",
        monthly_depreciation_rate=MONTHLY_DEPRECIATION[VehicleCategory.PREMIUM],
        annual_depreciation_rate=Decimal("5.0"),
        drive_off_depreciation=DRIVE_OFF_RATES[VehicleCategory.PREMIUM],
        description="Luxury vehicles with brand value retention",
        guidance="Premium vehicles hold value well initially but depreciate faster after 3-4 years. Timing is crucial.",
    ),
    VehicleCategory.ELECTRIC: CategoryProfile(
        name="Electric Vehicle",
        monthly_depreciation_rate=MONTHLY_DEPRECIATION[VehicleCategory.ELECTRIC],
        annual_depreciation_rate=Decimal("6.2"),
        drive_off_depreciation=DRIVE_OFF_RATES[VehicleCategory.ELECTRIC],
        description="Electric vehicles with technology-driven depreciation",
        guidance="EVs depreciate faster due to rapid technology advancement. Consider selling before major tech updates.",
    ),
    VehicleCategory.EXOTIC: CategoryProfile(
        name="Exotic",
        monthly_depreciation_rate=MONTHLY_DEPRECIATION[VehicleCategory.EXOTIC],
        annual_depreciation_rate=Decimal("2.8"),
        drive_off_depreciation=DRIVE_OFF_RATES[VehicleCategory.EXOTIC],
        description="Limited production vehicles with collector potential",
        guidance="Exotic vehicles depreciate slowly and may appreciate. Longer holds often beneficial if financially viable.",
    ),
}


def mileage_factor(months_owned: int, current_mileage: Decimal, expected_annual_mileage: Decimal) -> Decimal:
    """Return the value multiplier for mileage above or below schedule.

    Every 5,000 miles over the linear expectation costs 2 %, every 5,000
    under adds 2 %, and the factor never leaves [0.7, 1.3].
    """
    expected = expected_annual_mileage / 12 * months_owned
    deviation = current_mileage - expected
    factor = 1 - deviation / MILEAGE_STEP * MILEAGE_STEP_ADJUSTMENT
    return max(MILEAGE_FACTOR_MIN, min(MILEAGE_FACTOR_MAX, factor))


def trade_in_value(
    retail_price: Number,
    category: VehicleCategory,
    months_owned: int,
    current_mileage: Number,
    expected_annual_mileage: Number = DEFAULT_ANNUAL_MILEAGE,
) -> Decimal:
    """Return the dealer trade-in value after ``months_owned`` months.

    The drive-off drop is applied once at month 0, then the category's
    monthly rate compounds. The result is never negative.
    """
    price = to_decimal(retail_price)
    after_drive_off = price * (1 - DRIVE_OFF_RATES[category])
    depreciated = after_drive_off * (1 - MONTHLY_DEPRECIATION[category]) ** months_owned
    factor = mileage_factor(months_owned, to_decimal(current_mileage), to_decimal(expected_annual_mileage))
    return max(Decimal("0"), depreciated * factor)


def private_value(trade_in: Decimal) -> Decimal:
    """Private buyers typically pay 12 % over a dealer's trade-in offer."""
    return trade_in * PRIVATE_SALE_PREMIUM


def depreciation_factor(category: VehicleCategory, age_months: int) -> Decimal:
    """Fraction of the purchase price left after ``age_months`` on the three-phase curve."""
    rate = MONTHLY_DEPRECIATION[category]
    age = max(0, age_months)
    first_year = 1 - rate * FIRST_YEAR_MULTIPLIER
    mid_life = 1 - rate * MID_LIFE_MULTIPLIER
    late_life = 1 - rate * LATE_LIFE_MULTIPLIER
    if age <= 12:
        return first_year ** age
    if age <= 36:
        return first_year ** 12 * mid_life ** (age - 12)
    return first_year ** 12 * mid_life ** 24 * late_life ** (age - 36)


def market_value(purchase_price: Number, category: VehicleCategory, age_months: int) -> MarketValue:
    """Estimate market value on the three-phase curve, with a +/-15 % range."""
    base = round_currency(to_decimal(purchase_price) * depreciation_factor(category, age_months))
    return MarketValue(
        base_value=base,
        range_min=round_currency(base * (1 - MARKET_RANGE)),
        range_max=round_currency(base * (1 + MARKET_RANGE)),
        age_months=max(0, age_months),
    )


def vehicle_age_months(model_year: int, as_of: Optional[date] = None) -> int:
    """Age of a vehicle in months, counting from January of its model year."""
    as_of = as_of or date.today()
    return max(0, (as_of.year - model_year) * 12 + as_of.month - 1)


def classify_vehicle(make: str, body_type: Optional[str] = None) -> VehicleCategory:
    """Derive the depreciation category from make and body type.

    Exotic brands win over everything, then electric (Tesla or an electric
    body type), then premium brands. Everything else is economy.
    """
    make_lower = (make or "").strip().lower()
    type_lower = (body_type or "").strip().lower()
    if make_lower in EXOTIC_MAKES:
        return VehicleCategory.EXOTIC
    if make_lower == "tesla" or "electric" in type_lower or type_lower == "ev":
        return VehicleCategory.ELECTRIC
    if make_lower in PREMIUM_MAKES:
        return VehicleCategory.PREMIUM
    return VehicleCategory.ECONOMY


def category_profile(category: VehicleCategory) -> CategoryProfile:
    return _PROFILES[category]
