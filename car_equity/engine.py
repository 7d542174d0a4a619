"""Core equity engine.

Combines the value model and the settlement calculator into the figure an
owner actually cares about: if the car were sold this month, would they get
a cheque or have to write one? ``generate_projections`` runs that question
month by month from purchase to six months past the contract end and tags
the months that matter (contract end, balloon due, break-even, peak).
"""

from __future__ import annotations

import logging
from dataclasses import replace
from decimal import Decimal
from typing import Iterable, List, Optional

from .data_models import (
    ApathyWarning,
    CashPosition,
    FinanceType,
    FinancialStatus,
    FinancialSummary,
    PortfolioSummary,
    ProjectionEntry,
    Recommendation,
    SwapWindow,
    Vehicle,
)
from .depreciation import private_value, trade_in_value
from .settings import BREAKEVEN_BAND, POST_CONTRACT_MONTHS
from .settlement import settlement_figure
from .utils import Number, add_months, money, to_decimal

logger = logging.getLogger(__name__)

# A PCP deal this close to the balloon needs a decision now
URGENT_BALLOON_MONTHS = 3


def cash_position(sale_value: Decimal, total_settlement: Decimal) -> Decimal:
    """Positive means money back on sale, negative means money owed."""
    return sale_value - total_settlement


def financial_status(cash: Decimal, band: Optional[Number] = None) -> FinancialStatus:
    """Classify a cash position using a symmetric dead band around zero."""
    limit = BREAKEVEN_BAND if band is None else to_decimal(band)
    if cash > limit:
        return FinancialStatus.WINNING
    if cash < -limit:
        return FinancialStatus.LOSING
    return FinancialStatus.BREAKEVEN


def status_label(cash: Decimal) -> str:
    return "Cash for Next Deposit" if cash >= 0 else "Cost to Change"


def action_label(cash: Decimal) -> str:
    return "You get a check" if cash >= 0 else "You write a check"


def projected_mileage(vehicle: Vehicle, month: int, current_month: int) -> Decimal:
    """Mileage at ``month``, extrapolated from today's odometer.

    Months before today keep the current reading; the odometer never runs
    backwards in a projection.
    """
    monthly = vehicle.expected_annual_mileage / 12
    projected = vehicle.current_mileage + monthly * (month - current_month)
    return max(vehicle.current_mileage, projected)


def _values_at(vehicle: Vehicle, month: int, current_month: int):
    financing = vehicle.financing
    trade_in = trade_in_value(
        vehicle.purchase_price,
        vehicle.category,
        month,
        projected_mileage(vehicle, month, current_month),
        vehicle.expected_annual_mileage,
    )
    settlement = settlement_figure(
        financing.loan_amount,
        financing.monthly_payment,
        financing.apr,
        financing.term_months,
        month,
        financing.finance_type,
        financing.balloon_payment,
    )
    return trade_in, private_value(trade_in), settlement


def generate_projections(
    vehicle: Vehicle,
    current_month: Optional[int] = None,
    band: Optional[Number] = None,
) -> List[ProjectionEntry]:
    """Simulate every month from purchase to six months past contract end.

    Parameters
    ----------
    vehicle: Vehicle
        The car and its financing record.
    current_month: Optional[int]
        Month of ownership the odometer reading belongs to. Defaults to the
        financing record's ``months_elapsed``.
    band: Optional[Number]
        Break-even dead band; defaults to ``settings.BREAKEVEN_BAND``.

    Returns
    -------
    List[ProjectionEntry]
        One entry per month ``0 .. term_months + 6``. Exactly one entry has
        ``is_optimal_month`` set: the first month with the highest trade-in
        cash position.
    """
    financing = vehicle.financing
    if current_month is None:
        current_month = financing.months_elapsed
    financed = financing.finance_type != FinanceType.CASH
    total_months = max(0, financing.term_months) + POST_CONTRACT_MONTHS

    projections: List[ProjectionEntry] = []
    peak_equity: Optional[Decimal] = None
    peak_month = 0
    break_even_month = -1

    for month in range(total_months + 1):
        trade_in, private, settlement = _values_at(vehicle, month, current_month)
        trade_in_cash = cash_position(trade_in, settlement.total_settlement)
        private_cash = cash_position(private, settlement.total_settlement)

        # keep the first maximum; only a strictly greater value moves the peak
        if peak_equity is None or trade_in_cash > peak_equity:
            peak_equity = trade_in_cash
            peak_month = month
        if break_even_month == -1 and trade_in_cash >= 0:
            break_even_month = month

        is_contract_end = financed and month == financing.term_months
        projections.append(
            ProjectionEntry(
                month=month,
                trade_in_value=trade_in,
                private_value=private,
                settlement_figure=settlement.total_settlement,
                cash_position=CashPosition(trade_in=trade_in_cash, private=private_cash),
                status=financial_status(trade_in_cash, band),
                is_optimal_month=False,
                is_break_even_month=month == break_even_month,
                is_balloon_month=financing.finance_type == FinanceType.PCP and month == financing.term_months,
                is_contract_end=is_contract_end,
                date=add_months(financing.start_date, month) if financing.start_date else None,
            )
        )

    projections[peak_month] = replace(projections[peak_month], is_optimal_month=True)
    logger.debug(
        "Projected %s %s over %d months: peak %s at month %d, break-even month %d",
        vehicle.make,
        vehicle.model,
        total_months,
        peak_equity,
        peak_month,
        break_even_month,
    )
    return projections


def financial_summary(vehicle: Vehicle, month: Optional[int] = None, band: Optional[Number] = None) -> FinancialSummary:
    """Where the owner stands if they sell at ``month`` (default: today)."""
    if month is None:
        month = vehicle.financing.months_elapsed
    trade_in, private, settlement = _values_at(vehicle, month, month)
    cash = cash_position(trade_in, settlement.total_settlement)
    return FinancialSummary(
        cash_position=cash,
        status=financial_status(cash, band),
        trade_in_value=trade_in,
        private_value=private,
        settlement_figure=settlement.total_settlement,
        status_label=status_label(cash),
        action_label=action_label(cash),
    )


def apathy_warning(trade_in: Decimal, settlement: Decimal, balloon_payment: Decimal) -> Optional[ApathyWarning]:
    """Money left on the table by handing a PCP car back instead of selling.

    Only meaningful with positive equity; returns ``None`` otherwise.
    """
    cash = trade_in - settlement
    if cash <= 0:
        return None
    return ApathyWarning(hand_back_value=Decimal("0"), sell_value=cash, lost_money=cash)


def recommend(vehicle: Vehicle, projections: List[ProjectionEntry], window: SwapWindow) -> Recommendation:
    """Turn a projection and its swap window into sell/wait advice.

    ``urgent`` when a PCP balloon is at most three months away and selling
    would return money; ``sell_now`` when no later month beats today;
    otherwise ``wait`` for the best month still ahead.
    """
    financing = vehicle.financing
    current = min(max(0, window.current_month), len(projections) - 1)
    today = projections[current]
    current_cash = today.cash_position.trade_in

    ahead = projections[current:]
    best = ahead[0]
    for entry in ahead:
        if entry.cash_position.trade_in > best.cash_position.trade_in:
            best = entry
    optimal_cash = best.cash_position.trade_in
    improvement = optimal_cash - current_cash

    warning = None
    months_to_balloon = financing.term_months - current
    if financing.finance_type == FinanceType.PCP:
        warning = apathy_warning(today.trade_in_value, today.settlement_figure, financing.balloon_payment)

    if warning is not None and 0 <= months_to_balloon <= URGENT_BALLOON_MONTHS:
        action = "urgent"
        headline = f"Balloon due in {months_to_balloon} months"
        subtext = (
            f"Handing the car back forfeits {money(warning.lost_money)} of equity. "
            "Sell or part-exchange before the balloon falls due."
        )
    elif best.month == today.month:
        action = "sell_now"
        if current_cash >= 0:
            headline = "You're winning!"
            subtext = f"Selling now returns {money(current_cash)}; it does not get better from here."
        else:
            headline = f"Cost to change: {money(abs(current_cash))}"
            subtext = "Sell now to minimize losses"
    else:
        action = "wait"
        headline = "Hold for a better position"
        if optimal_cash > 0:
            subtext = f"Hold until Month {best.month} to profit {money(optimal_cash)}"
        else:
            subtext = f"Hold until Month {best.month} to minimize loss to {money(abs(optimal_cash))}"

    return Recommendation(
        action=action,
        headline=headline,
        subtext=subtext,
        current_cash_position=current_cash,
        optimal_cash_position=optimal_cash,
        optimal_month=best.month,
        improvement_potential=improvement,
        apathy_warning=warning,
    )


def summarise_portfolio(vehicles: Iterable[Vehicle], band: Optional[Number] = None) -> PortfolioSummary:
    """Totals across a garage, each car valued at its own current month."""
    summaries = [financial_summary(vehicle, band=band) for vehicle in vehicles]
    return PortfolioSummary(
        total_trade_in_value=sum((s.trade_in_value for s in summaries), Decimal("0")),
        total_private_value=sum((s.private_value for s in summaries), Decimal("0")),
        total_settlement=sum((s.settlement_figure for s in summaries), Decimal("0")),
        total_cash_position=sum((s.cash_position for s in summaries), Decimal("0")),
        vehicle_count=len(summaries),
        summaries=summaries,
    )
