"""Command-line interface for the equity calculator.

This module uses the ``click`` library to implement a multi-command
interface. Users can value a car, compute a settlement figure, project the
cash position month by month, estimate a PCP balloon and keep a garage of
vehicles in the vehicle store. Projections can be printed to the terminal
or exported to JSON/CSV files.
"""

from __future__ import annotations

import csv
import json
import logging
import os
from datetime import date
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import click

from . import settings
from .data_models import (
    BalloonEstimate,
    FinanceType,
    Financing,
    ProjectionEntry,
    SettlementFigure,
    SwapWindow,
    Vehicle,
    VehicleCategory,
)
from .depreciation import classify_vehicle, market_value, vehicle_age_months
from .engine import financial_summary, generate_projections, recommend, summarise_portfolio
from .formatter import (
    print_balloon_estimate,
    print_garage,
    print_projection,
    print_recommendation,
    print_settlement,
    print_summary,
    print_swap_window,
)
from .residual import estimate_balloon
from .settlement import monthly_payment, settlement_figure
from .swap_window import calculate_swap_window
from .utils import money, parse_amount, parse_year_month, to_decimal
from .vehicle_store import create_store_from_env

logger = logging.getLogger(__name__)

CATEGORY_CHOICES = [c.value for c in VehicleCategory]
FINANCE_CHOICES = [f.value for f in FinanceType]


def build_vehicle_from_options(
    make: str,
    model: str,
    year: int,
    price: str,
    category: Optional[str] = None,
    body_type: Optional[str] = None,
    mileage: Optional[str] = None,
    annual_mileage: Optional[str] = None,
    finance: str = "cash",
    loan: Optional[str] = None,
    apr: Optional[str] = None,
    term: Optional[int] = None,
    payment: Optional[str] = None,
    elapsed: int = 0,
    balloon: Optional[str] = None,
    deposit: Optional[str] = None,
    start_date: Optional[str] = None,
) -> Vehicle:
    """Validate raw option values and assemble a ``Vehicle``.

    Numbers arrive as strings (or numbers, from the web layer) and may use
    ``k``/``m`` suffixes. Raises ``ValueError`` with a readable message on
    bad input; the engine itself assumes clean values.
    """
    try:
        finance_type = FinanceType(str(finance).lower())
    except ValueError:
        raise ValueError(f"Finance type must be one of {', '.join(FINANCE_CHOICES)}; got {finance}")

    price_value = _amount(price, "price")
    if price_value <= 0:
        raise ValueError("Purchase price must be positive")

    if category:
        try:
            vehicle_category = VehicleCategory(str(category).lower())
        except ValueError:
            raise ValueError(f"Category must be one of {', '.join(CATEGORY_CHOICES)}; got {category}")
    else:
        vehicle_category = classify_vehicle(make, body_type)

    term_months = int(term or 0)
    months_elapsed = int(elapsed or 0)
    if term_months < 0 or months_elapsed < 0:
        raise ValueError("Term and elapsed months cannot be negative")

    loan_value = _amount(loan, "loan")
    apr_value = _amount(apr, "apr")
    balloon_value = _amount(balloon, "balloon")
    if loan_value < 0 or apr_value < 0 or balloon_value < 0:
        raise ValueError("Loan, APR and balloon cannot be negative")

    if finance_type != FinanceType.CASH:
        if term_months <= 0:
            raise ValueError("Financed vehicles need a positive term")
        if loan_value <= 0:
            raise ValueError("Financed vehicles need a positive loan amount")
    if balloon_value and finance_type != FinanceType.PCP:
        raise ValueError("Balloon payment only applies to PCP finance")
    if balloon_value > loan_value and finance_type == FinanceType.PCP:
        logger.warning("Balloon %s exceeds the amount financed %s", balloon_value, loan_value)

    payment_value = _amount(payment, "payment")
    if not payment_value and finance_type != FinanceType.CASH:
        payment_value = monthly_payment(loan_value, apr_value, term_months, balloon_value)

    financing = Financing(
        finance_type=finance_type,
        loan_amount=loan_value,
        apr=apr_value,
        term_months=term_months,
        monthly_payment=payment_value,
        months_elapsed=months_elapsed,
        balloon_payment=balloon_value,
        deposit=_amount(deposit, "deposit"),
        start_date=parse_year_month(start_date) if start_date else None,
    )
    return Vehicle(
        make=make,
        model=model,
        year=int(year),
        category=vehicle_category,
        purchase_price=price_value,
        current_mileage=_amount(mileage, "mileage"),
        expected_annual_mileage=_amount(annual_mileage, "annual mileage") or settings.DEFAULT_ANNUAL_MILEAGE,
        financing=financing,
    )


def _amount(value: Any, name: str):
    if value is None or value == "":
        return to_decimal(0)
    if isinstance(value, str):
        try:
            return parse_amount(value)
        except ValueError:
            raise ValueError(f"Invalid {name}: {value}")
    return to_decimal(value)


def projection_to_dicts(projections: List[ProjectionEntry]) -> List[Dict[str, Any]]:
    """Convert projection entries into JSON-serialisable dictionaries."""
    rows = []
    for entry in projections:
        rows.append(
            {
                "month": entry.month,
                "date": entry.date.strftime("%Y-%m") if entry.date else None,
                "trade_in_value": float(entry.trade_in_value),
                "private_value": float(entry.private_value),
                "settlement_figure": float(entry.settlement_figure),
                "cash_position": {
                    "trade_in": float(entry.cash_position.trade_in),
                    "private": float(entry.cash_position.private),
                },
                "status": entry.status.value,
                "is_optimal_month": entry.is_optimal_month,
                "is_break_even_month": entry.is_break_even_month,
                "is_balloon_month": entry.is_balloon_month,
                "is_contract_end": entry.is_contract_end,
            }
        )
    return rows


def window_to_dict(window: SwapWindow) -> Dict[str, Any]:
    return {
        "start_month": window.start_month,
        "end_month": window.end_month,
        "peak_month": window.peak_month,
        "peak_equity": float(window.peak_equity),
        "current_month": window.current_month,
        "is_in_window": window.is_in_window,
    }


def settlement_to_dict(settlement: SettlementFigure) -> Dict[str, Any]:
    return {
        "principal_remaining": float(settlement.principal_remaining),
        "interest_penalty": float(settlement.interest_penalty),
        "total_settlement": float(settlement.total_settlement),
        "months_remaining": settlement.months_remaining,
    }


def balloon_to_dict(estimate: BalloonEstimate) -> Dict[str, Any]:
    return {
        "estimated": float(estimate.estimated),
        "min": float(estimate.min),
        "max": float(estimate.max),
        "category": estimate.category.value,
        "base_residual_percent": float(estimate.base_residual_percent),
        "base_residual_value": float(estimate.base_residual_value),
        "adjusted_residual_percent": float(estimate.adjusted_residual_percent),
        "adjustments": {
            name: {
                "applied": adj.applied,
                "adjustment": float(adj.adjustment),
                "percent_change": adj.percent_change,
                "details": adj.details,
            }
            for name, adj in estimate.adjustments.items()
        },
        "total_adjustment": float(estimate.total_adjustment),
        "has_adjustments": estimate.has_adjustments,
        "error": estimate.error,
    }


def export_to_json(path: Path, projections: List[ProjectionEntry], window: SwapWindow) -> None:
    """Export projection and swap window to a JSON file."""
    data = {"swap_window": window_to_dict(window), "projection": projection_to_dicts(projections)}
    with path.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)


def export_to_csv(path: Path, projections: List[ProjectionEntry]) -> None:
    """Export projection to a CSV file."""
    header = [
        "Month",
        "Date",
        "Trade_In_Value",
        "Private_Value",
        "Settlement",
        "Cash_Trade_In",
        "Cash_Private",
        "Status",
        "Optimal",
        "Break_Even",
        "Balloon_Due",
        "Contract_End",
    ]
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(header)
        for e in projections:
            writer.writerow(
                [
                    e.month,
                    e.date.strftime("%Y-%m") if e.date else "",
                    float(e.trade_in_value),
                    float(e.private_value),
                    float(e.settlement_figure),
                    float(e.cash_position.trade_in),
                    float(e.cash_position.private),
                    e.status.value,
                    e.is_optimal_month,
                    e.is_break_even_month,
                    e.is_balloon_month,
                    e.is_contract_end,
                ]
            )


def vehicle_options(func: Callable) -> Callable:
    """Attach the options that describe a vehicle and its financing."""
    options = [
        click.option("--make", required=True, help="Manufacturer, e.g. Ford"),
        click.option("--model", required=True, help="Model name, e.g. Focus"),
        click.option("--year", required=True, type=int, help="Model year"),
        click.option("--price", "-p", required=True, help="Retail price paid (e.g. 28000 or 28k)"),
        click.option("--category", type=click.Choice(CATEGORY_CHOICES), help="Depreciation category; derived from make if omitted"),
        click.option("--body-type", help="Body or fuel type used to derive the category (e.g. electric)"),
        click.option("--mileage", help="Current odometer reading"),
        click.option("--annual-mileage", help="Expected miles per year"),
        click.option("--finance", type=click.Choice(FINANCE_CHOICES), default="cash", help="Financing type"),
        click.option("--loan", help="Amount financed"),
        click.option("--apr", help="Annual percentage rate (percent)"),
        click.option("--term", "-t", type=int, default=0, help="Term in months"),
        click.option("--payment", help="Monthly payment; calculated if omitted"),
        click.option("--elapsed", "-e", type=int, default=0, help="Months of the contract already elapsed"),
        click.option("--balloon", help="PCP balloon payment (GMFV)"),
        click.option("--deposit", help="Deposit paid"),
        click.option("--start-date", "-s", help="Contract start (YYYY-MM)"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _vehicle_from_kwargs(kwargs: Dict[str, Any]) -> Vehicle:
    try:
        return build_vehicle_from_options(**kwargs)
    except ValueError as exc:
        raise click.BadParameter(str(exc))


@click.group()
@click.option("--log-level", default=None, help="Logging level (default from CAR_EQUITY_LOG_LEVEL)")
def cli(log_level: Optional[str]) -> None:
    """Track what a financed car is worth against what it costs to clear."""
    settings.configure_logging(log_level)


@cli.command()
@vehicle_options
def value(**kwargs: Any) -> None:
    """Print trade-in, private and market value estimates."""
    vehicle = _vehicle_from_kwargs(kwargs)
    print_summary(financial_summary(vehicle))
    age = vehicle_age_months(vehicle.year, date.today())
    market = market_value(vehicle.purchase_price, vehicle.category, age)
    click.echo(
        f"Market value at {age} months: {money(market.base_value)} "
        f"(range {money(market.range_min)} - {money(market.range_max)})"
    )


@cli.command()
@vehicle_options
def settlement(**kwargs: Any) -> None:
    """Compute the cost to clear finance at the elapsed month."""
    vehicle = _vehicle_from_kwargs(kwargs)
    f = vehicle.financing
    print_settlement(
        settlement_figure(
            f.loan_amount,
            f.monthly_payment,
            f.apr,
            f.term_months,
            f.months_elapsed,
            f.finance_type,
            f.balloon_payment,
        )
    )


@cli.command()
@vehicle_options
@click.option("--band", help="Break-even dead band (default from CAR_EQUITY_BREAKEVEN_BAND)")
@click.option("--output", "output", type=str, help="Output file path (.json or .csv)")
def project(band: Optional[str], output: Optional[str], **kwargs: Any) -> None:
    """Project value, settlement and cash position month by month."""
    vehicle = _vehicle_from_kwargs(kwargs)
    projections = generate_projections(vehicle, band=band)
    window = calculate_swap_window(projections, vehicle.financing.months_elapsed)
    if output:
        path = Path(output)
        if path.suffix.lower() == ".json":
            export_to_json(path, projections, window)
        elif path.suffix.lower() == ".csv":
            export_to_csv(path, projections)
        else:
            raise click.BadParameter("Unsupported output format; use .json or .csv")
        click.echo(f"Projection exported to {path}")
        return
    print_summary(financial_summary(vehicle, band=band))
    print_projection(projections)
    print_swap_window(window)
    print_recommendation(recommend(vehicle, projections, window))


@cli.command()
@vehicle_options
@click.option("--current-month", "-c", type=int, help="Month to test against the window (default: elapsed months)")
def window(current_month: Optional[int], **kwargs: Any) -> None:
    """Show when selling the car returns money."""
    vehicle = _vehicle_from_kwargs(kwargs)
    if current_month is None:
        current_month = vehicle.financing.months_elapsed
    projections = generate_projections(vehicle, current_month=vehicle.financing.months_elapsed)
    print_swap_window(calculate_swap_window(projections, current_month))


@cli.command()
@click.option("--price", "-p", required=True, help="Purchase price")
@click.option("--term", "-t", required=True, type=int, help="PCP term in months")
@click.option("--make", help="Vehicle make")
@click.option("--model", help="Vehicle model")
@click.option("--year", type=int, help="Model year")
@click.option("--mileage", help="Current mileage")
@click.option("--condition", type=click.Choice(["excellent", "good", "fair", "poor"]), help="Condition tier")
@click.option("--market-trend", help="Market trend factor (e.g. 0.95)")
def balloon(
    price: str,
    term: int,
    make: Optional[str],
    model: Optional[str],
    year: Optional[int],
    mileage: Optional[str],
    condition: Optional[str],
    market_trend: Optional[str],
) -> None:
    """Estimate the balloon payment for a PCP quote."""
    try:
        price_value = _amount(price, "price")
        mileage_value = _amount(mileage, "mileage") if mileage else None
        trend = _amount(market_trend, "market trend") if market_trend else None
    except ValueError as exc:
        raise click.BadParameter(str(exc))
    estimate = estimate_balloon(
        price_value,
        term,
        make=make,
        model=model,
        year=year,
        current_mileage=mileage_value,
        condition=condition,
        market_trend=trend,
    )
    print_balloon_estimate(estimate)
    if estimate.error:
        raise SystemExit(1)


@cli.group()
@click.option("--owner", default=lambda: os.environ.get("USER", "local"), help="Garage owner")
@click.option("--database", help="SQLAlchemy URL (default from CAR_EQUITY_DATABASE_URL)")
@click.pass_context
def garage(ctx: click.Context, owner: str, database: Optional[str]) -> None:
    """Manage stored vehicles."""
    ctx.obj = {"owner": owner, "store": create_store_from_env(database)}


@garage.command("add")
@click.argument("key")
@vehicle_options
@click.pass_obj
def garage_add(obj: Dict[str, Any], key: str, **kwargs: Any) -> None:
    """Store (or replace) a vehicle under KEY."""
    vehicle = _vehicle_from_kwargs(kwargs)
    try:
        obj["store"].set(obj["owner"], key, vehicle)
    except ValueError as exc:
        raise click.ClickException(str(exc))
    click.echo(f"Saved {vehicle.year} {vehicle.make} {vehicle.model} as {key}")


@garage.command("list")
@click.pass_obj
def garage_list(obj: Dict[str, Any]) -> None:
    """List stored vehicles with their position today."""
    vehicles = obj["store"].list(obj["owner"])
    if not vehicles:
        click.echo("Garage is empty")
        return
    print_garage(vehicles, summarise_portfolio(vehicles.values()))


@garage.command("show")
@click.argument("key")
@click.pass_obj
def garage_show(obj: Dict[str, Any], key: str) -> None:
    """Show the projection summary for a stored vehicle."""
    vehicle = obj["store"].get(obj["owner"], key)
    if vehicle is None:
        raise click.ClickException(f"No vehicle stored as {key}")
    projections = generate_projections(vehicle)
    window = calculate_swap_window(projections, vehicle.financing.months_elapsed)
    print_summary(financial_summary(vehicle))
    print_swap_window(window)
    print_recommendation(recommend(vehicle, projections, window))


@garage.command("remove")
@click.argument("key")
@click.pass_obj
def garage_remove(obj: Dict[str, Any], key: str) -> None:
    """Remove a stored vehicle."""
    if not obj["store"].delete(obj["owner"], key):
        raise click.ClickException(f"No vehicle stored as {key}")
    click.echo(f"Removed {key}")


if __name__ == "__main__":
    cli()
