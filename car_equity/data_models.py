"""Data models for the equity calculator.

This module defines the enums and dataclasses used across the calculator:
the vehicle and its financing record (the inputs), and the settlement,
projection, swap-window, balloon and recommendation records (the outputs).
Outputs are frozen; every calculation builds fresh instances.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

from .settings import DEFAULT_ANNUAL_MILEAGE
from .utils import to_decimal


class VehicleCategory(str, Enum):
    ECONOMY = "economy"
    PREMIUM = "premium"
    ELECTRIC = "electric"
    EXOTIC = "exotic"


class FinanceType(str, Enum):
    CASH = "cash"
    HP = "hp"
    PCP = "pcp"


class FinancialStatus(str, Enum):
    WINNING = "winning"
    LOSING = "losing"
    BREAKEVEN = "breakeven"


class Condition(str, Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"


@dataclass
class Financing:
    """How the vehicle was paid for.

    Attributes
    ----------
    finance_type: FinanceType
        ``cash``, ``hp`` or ``pcp``.
    loan_amount: Decimal
        Original amount financed. Zero for cash purchases.
    apr: Decimal
        Annual rate in percent (``4.5`` means 4.5 %).
    term_months: int
        Contract length. For cash purchases this is the ownership horizon
        the projection should cover, usually zero.
    monthly_payment: Decimal
        Fixed contractual payment.
    months_elapsed: int
        Payments made so far; drives the "current month" of a projection.
    balloon_payment: Decimal
        Guaranteed minimum future value due at the end of a PCP deal.
        Only meaningful for PCP.
    """

    finance_type: FinanceType = FinanceType.CASH
    loan_amount: Decimal = Decimal("0")
    apr: Decimal = Decimal("0")
    term_months: int = 0
    monthly_payment: Decimal = Decimal("0")
    months_elapsed: int = 0
    balloon_payment: Decimal = Decimal("0")
    deposit: Decimal = Decimal("0")
    start_date: Optional[date] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.finance_type.value,
            "loan_amount": str(self.loan_amount),
            "apr": str(self.apr),
            "term_months": self.term_months,
            "monthly_payment": str(self.monthly_payment),
            "months_elapsed": self.months_elapsed,
            "balloon_payment": str(self.balloon_payment),
            "deposit": str(self.deposit),
            "start_date": self.start_date.isoformat() if self.start_date else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Financing":
        start = data.get("start_date")
        return cls(
            finance_type=FinanceType(data.get("type", "cash")),
            loan_amount=to_decimal(data.get("loan_amount", 0)),
            apr=to_decimal(data.get("apr", 0)),
            term_months=int(data.get("term_months", 0)),
            monthly_payment=to_decimal(data.get("monthly_payment", 0)),
            months_elapsed=int(data.get("months_elapsed", 0)),
            balloon_payment=to_decimal(data.get("balloon_payment", 0)),
            deposit=to_decimal(data.get("deposit", 0)),
            start_date=date.fromisoformat(start) if start else None,
        )


@dataclass
class Vehicle:
    """A car in the garage.

    ``category`` is decided once when the vehicle is created and never
    re-derived afterwards. ``purchase_price`` is the retail price paid.
    """

    make: str
    model: str
    year: int
    category: VehicleCategory
    purchase_price: Decimal
    current_mileage: Decimal = Decimal("0")
    expected_annual_mileage: Decimal = DEFAULT_ANNUAL_MILEAGE
    financing: Financing = field(default_factory=Financing)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "make": self.make,
            "model": self.model,
            "year": self.year,
            "category": self.category.value,
            "purchase_price": str(self.purchase_price),
            "current_mileage": str(self.current_mileage),
            "expected_annual_mileage": str(self.expected_annual_mileage),
            "financing": self.financing.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Vehicle":
        return cls(
            make=data["make"],
            model=data["model"],
            year=int(data["year"]),
            category=VehicleCategory(data["category"]),
            purchase_price=to_decimal(data["purchase_price"]),
            current_mileage=to_decimal(data.get("current_mileage", 0)),
            expected_annual_mileage=to_decimal(data.get("expected_annual_mileage", DEFAULT_ANNUAL_MILEAGE)),
            financing=Financing.from_dict(data.get("financing") or {}),
        )


@dataclass(frozen=True)
class SettlementFigure:
    """Cost to clear finance at a point in time."""

    principal_remaining: Decimal
    interest_penalty: Decimal
    total_settlement: Decimal
    months_remaining: int


@dataclass(frozen=True)
class CashPosition:
    """Sale value minus settlement under each sale channel."""

    trade_in: Decimal
    private: Decimal


@dataclass(frozen=True)
class ProjectionEntry:
    """One simulated month.

    ``date`` is only set when the financing record carries a start date.
    """

    month: int
    trade_in_value: Decimal
    private_value: Decimal
    settlement_figure: Decimal
    cash_position: CashPosition
    status: FinancialStatus
    is_optimal_month: bool
    is_break_even_month: bool
    is_balloon_month: bool
    is_contract_end: bool
    date: Optional[date] = None


@dataclass(frozen=True)
class SwapWindow:
    """Summary of the months in which selling returns money."""

    start_month: int
    end_month: int
    peak_month: int
    peak_equity: Decimal
    current_month: int
    is_in_window: bool


@dataclass(frozen=True)
class MarketValue:
    """Three-phase curve estimate with its market range."""

    base_value: Decimal
    range_min: Decimal
    range_max: Decimal
    age_months: int


@dataclass(frozen=True)
class CategoryProfile:
    name: str
    monthly_depreciation_rate: Decimal
    annual_depreciation_rate: Decimal
    drive_off_depreciation: Decimal
    description: str
    guidance: str


@dataclass(frozen=True)
class ResidualAdjustment:
    """A single adjustment applied to the base residual.

    ``adjustment`` is the fractional change (``-0.03`` = -3 %); for the market
    trend it is the factor less one.
    """

    applied: bool
    adjustment: Decimal = Decimal("0")
    details: Optional[str] = None

    @property
    def percent_change(self) -> str:
        return f"{self.adjustment * 100:.2f}%"


@dataclass(frozen=True)
class BalloonEstimate:
    estimated: Decimal
    min: Decimal
    max: Decimal
    category: VehicleCategory
    base_residual_percent: Decimal
    base_residual_value: Decimal
    adjusted_residual_percent: Decimal
    adjustments: Dict[str, ResidualAdjustment]
    total_adjustment: Decimal
    error: Optional[str] = None

    @property
    def has_adjustments(self) -> bool:
        return any(adj.applied for adj in self.adjustments.values())


@dataclass(frozen=True)
class ApathyWarning:
    """What a PCP customer forgoes by handing the keys back."""

    hand_back_value: Decimal
    sell_value: Decimal
    lost_money: Decimal


@dataclass(frozen=True)
class FinancialSummary:
    cash_position: Decimal
    status: FinancialStatus
    trade_in_value: Decimal
    private_value: Decimal
    settlement_figure: Decimal
    status_label: str
    action_label: str


@dataclass(frozen=True)
class Recommendation:
    action: str  # "sell_now", "wait" or "urgent"
    headline: str
    subtext: str
    current_cash_position: Decimal
    optimal_cash_position: Decimal
    optimal_month: int
    improvement_potential: Decimal
    apathy_warning: Optional[ApathyWarning] = None


@dataclass(frozen=True)
class PortfolioSummary:
    total_trade_in_value: Decimal
    total_private_value: Decimal
    total_settlement: Decimal
    total_cash_position: Decimal
    vehicle_count: int
    summaries: List[FinancialSummary]
