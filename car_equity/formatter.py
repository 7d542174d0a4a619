"""Output helpers for the equity calculator.

This module renders projections, settlement figures, swap windows and
balloon estimates as plain text tables for the terminal. Values are shown
rounded to whole currency units.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Dict, Iterable

from .data_models import (
    BalloonEstimate,
    FinancialSummary,
    PortfolioSummary,
    ProjectionEntry,
    Recommendation,
    SettlementFigure,
    SwapWindow,
    Vehicle,
)
from .utils import money


def percent(value: Decimal, decimals: int = 1) -> str:
    return f"{value * 100:.{decimals}f}%"


def print_settlement(settlement: SettlementFigure) -> None:
    print("Settlement")
    print("-" * 72)
    print(f"Principal remaining : {settlement.principal_remaining:.2f}")
    print(f"Interest penalty    : {settlement.interest_penalty:.2f}")
    print(f"Total settlement    : {settlement.total_settlement:.2f}")
    print(f"Months remaining    : {settlement.months_remaining}")
    print("-" * 72)


def print_summary(summary: FinancialSummary) -> None:
    """Print where the owner stands if they sell today."""
    print("Position today")
    print("-" * 72)
    print(f"Trade-in value      : {money(summary.trade_in_value)}")
    print(f"Private sale value  : {money(summary.private_value)}")
    print(f"Settlement figure   : {money(summary.settlement_figure)}")
    print(f"{summary.status_label:20s}: {money(summary.cash_position, show_sign=True)} ({summary.status.value})")
    print(f"{summary.action_label}")
    print("-" * 72)


def print_projection(projections: Iterable[ProjectionEntry]) -> None:
    """Print the month-by-month projection as a simple table.

    Markers: ``*`` optimal month, ``B`` break-even, ``$`` balloon due,
    ``E`` contract end.
    """
    headers = ["Month", "Date", "TradeIn", "Private", "Settle", "CashTI", "CashPriv", "Status", "Flags"]
    print("\t".join(headers))
    for entry in projections:
        flags = ""
        if entry.is_optimal_month:
            flags += "*"
        if entry.is_break_even_month:
            flags += "B"
        if entry.is_balloon_month:
            flags += "$"
        if entry.is_contract_end:
            flags += "E"
        row = [
            str(entry.month),
            entry.date.strftime("%Y-%m") if entry.date else "-",
            f"{entry.trade_in_value:.0f}",
            f"{entry.private_value:.0f}",
            f"{entry.settlement_figure:.0f}",
            f"{entry.cash_position.trade_in:.0f}",
            f"{entry.cash_position.private:.0f}",
            entry.status.value,
            flags,
        ]
        print("\t".join(row))


def print_swap_window(window: SwapWindow) -> None:
    print("Swap window")
    print("-" * 72)
    print(f"Opens at month      : {window.start_month}")
    print(f"Closes at month     : {window.end_month}")
    print(f"Peak equity         : {money(window.peak_equity, show_sign=True)} at month {window.peak_month}")
    state = "inside" if window.is_in_window else "outside"
    print(f"Month {window.current_month} is {state} the window")
    print("-" * 72)


def print_recommendation(recommendation: Recommendation) -> None:
    print(f"[{recommendation.action}] {recommendation.headline}")
    print(recommendation.subtext)
    if recommendation.improvement_potential > 0:
        print(f"Waiting could improve your position by {money(recommendation.improvement_potential)}")
    if recommendation.apathy_warning:
        print(
            f"Handing the keys back returns {money(recommendation.apathy_warning.hand_back_value)}; "
            f"selling returns {money(recommendation.apathy_warning.sell_value)}"
        )


def print_balloon_estimate(estimate: BalloonEstimate) -> None:
    if estimate.error:
        print(f"Error: {estimate.error}")
        return
    print("Balloon estimate")
    print("-" * 72)
    print(f"Category            : {estimate.category.value}")
    print(f"Base residual       : {percent(estimate.base_residual_percent)} ({money(estimate.base_residual_value)})")
    for name, adjustment in estimate.adjustments.items():
        if adjustment.applied:
            print(f"  {name:18s}: {adjustment.percent_change:>8s}  {adjustment.details or ''}")
    print(f"Total adjustment    : {percent(estimate.total_adjustment, 2)}")
    print(f"Estimated balloon   : {money(estimate.estimated)}")
    print(f"Range               : {money(estimate.min)} - {money(estimate.max)}")
    print("-" * 72)


def print_garage(vehicles: Dict[str, Vehicle], portfolio: PortfolioSummary) -> None:
    """Print one line per stored vehicle followed by garage totals."""
    print(f"{'Key':12s} {'Vehicle':30s} {'Finance':>8s} {'TradeIn':>10s} {'Settle':>10s} {'Cash':>10s}")
    for (key, vehicle), summary in zip(vehicles.items(), portfolio.summaries):
        name = f"{vehicle.year} {vehicle.make} {vehicle.model}"
        print(
            f"{key:12s} {name[:30]:30s} {vehicle.financing.finance_type.value:>8s} "
            f"{money(summary.trade_in_value):>10s} {money(summary.settlement_figure):>10s} "
            f"{money(summary.cash_position, show_sign=True):>10s}"
        )
    print("=" * 84)
    print(
        f"{portfolio.vehicle_count} vehicles, total cash position "
        f"{money(portfolio.total_cash_position, show_sign=True)}"
    )
