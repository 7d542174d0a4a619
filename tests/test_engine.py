from __future__ import annotations

from dataclasses import replace
from datetime import date
from decimal import Decimal

import pytest

from car_equity.data_models import FinanceType, FinancialStatus
from car_equity.engine import (
    apathy_warning,
    cash_position,
    financial_status,
    financial_summary,
    generate_projections,
    projected_mileage,
    recommend,
    summarise_portfolio,
)
from car_equity.swap_window import calculate_swap_window
from car_equity.utils import money


@pytest.mark.parametrize(
    "cash, expected",
    [
        (Decimal("201"), FinancialStatus.WINNING),
        (Decimal("200"), FinancialStatus.BREAKEVEN),
        (Decimal("0"), FinancialStatus.BREAKEVEN),
        (Decimal("-200"), FinancialStatus.BREAKEVEN),
        (Decimal("-201"), FinancialStatus.LOSING),
    ],
)
def test_status_uses_symmetric_dead_band(cash, expected):
    assert financial_status(cash) == expected


def test_status_band_is_configurable():
    assert financial_status(Decimal("300"), band=500) == FinancialStatus.BREAKEVEN
    assert financial_status(Decimal("300"), band=0) == FinancialStatus.WINNING


def test_cash_position_is_value_minus_settlement():
    assert cash_position(Decimal("10000"), Decimal("12500")) == Decimal("-2500")


def test_projection_covers_term_plus_six_months(hp_vehicle):
    projections = generate_projections(hp_vehicle)
    assert [p.month for p in projections] == list(range(67))


def test_exactly_one_optimal_month_at_series_maximum(hp_vehicle):
    projections = generate_projections(hp_vehicle)
    optimal = [p for p in projections if p.is_optimal_month]
    assert len(optimal) == 1
    best = max(p.cash_position.trade_in for p in projections)
    assert optimal[0].cash_position.trade_in == best


def test_optimal_month_ties_go_to_earliest(cash_vehicle):
    worthless = replace(cash_vehicle, purchase_price=Decimal("0"))
    projections = generate_projections(worthless)
    assert [p.month for p in projections if p.is_optimal_month] == [0]


def test_break_even_marks_first_non_negative_month(hp_vehicle):
    projections = generate_projections(hp_vehicle)
    flagged = [p.month for p in projections if p.is_break_even_month]
    first = next(p.month for p in projections if p.cash_position.trade_in >= 0)
    assert flagged == [first]
    assert projections[0].cash_position.trade_in < 0


def test_hp_scenario_month_zero_and_term_end(hp_vehicle):
    projections = generate_projections(hp_vehicle)
    assert float(projections[0].settlement_figure) == pytest.approx(25187.5)
    assert float(projections[0].trade_in_value) == pytest.approx(24640)
    assert projections[0].status == FinancialStatus.LOSING
    assert projections[60].settlement_figure == 0
    assert projections[60].is_contract_end
    assert not projections[60].is_balloon_month
    assert [p.month for p in projections if p.is_contract_end] == [60]


def test_private_cash_position_uses_private_value(hp_vehicle):
    entry = generate_projections(hp_vehicle)[10]
    assert entry.private_value == entry.trade_in_value * Decimal("1.12")
    assert entry.cash_position.private == entry.private_value - entry.settlement_figure


def test_pcp_balloon_month_flag(pcp_vehicle):
    projections = generate_projections(pcp_vehicle)
    assert [p.month for p in projections if p.is_balloon_month] == [48]
    assert projections[48].settlement_figure > Decimal("18000")


def test_cash_vehicle_has_no_settlement_or_contract_end(cash_vehicle):
    projections = generate_projections(cash_vehicle)
    assert len(projections) == 31
    assert all(p.settlement_figure == 0 for p in projections)
    assert not any(p.is_contract_end or p.is_balloon_month for p in projections)
    assert projections[0].is_optimal_month


def test_projection_dates_follow_start_date(hp_vehicle):
    dated = replace(hp_vehicle, financing=replace(hp_vehicle.financing, start_date=date(2024, 11, 1)))
    projections = generate_projections(dated)
    assert projections[0].date == date(2024, 11, 1)
    assert projections[3].date == date(2025, 2, 1)
    assert generate_projections(hp_vehicle)[0].date is None


def test_projected_mileage_never_runs_backwards(pcp_vehicle):
    assert projected_mileage(pcp_vehicle, 10, 46) == Decimal("38000")
    assert float(projected_mileage(pcp_vehicle, 58, 46)) == pytest.approx(48000)


def test_financial_summary_labels(hp_vehicle, pcp_vehicle):
    losing = financial_summary(hp_vehicle)
    assert losing.status == FinancialStatus.LOSING
    assert losing.status_label == "Cost to Change"
    assert losing.action_label == "You write a check"

    winning = financial_summary(pcp_vehicle)
    assert winning.cash_position > 0
    assert winning.status_label == "Cash for Next Deposit"
    assert winning.action_label == "You get a check"


def test_apathy_warning_only_with_positive_equity():
    assert apathy_warning(Decimal("15000"), Decimal("18000"), Decimal("18000")) is None
    warning = apathy_warning(Decimal("21000"), Decimal("18000"), Decimal("18000"))
    assert warning.hand_back_value == 0
    assert warning.lost_money == Decimal("3000")


def test_recommend_wait_while_equity_is_building(hp_vehicle):
    projections = generate_projections(hp_vehicle)
    window = calculate_swap_window(projections, 0)
    rec = recommend(hp_vehicle, projections, window)
    assert rec.action == "wait"
    assert rec.optimal_month > 0
    assert rec.improvement_potential > 0
    assert rec.subtext.startswith(f"Hold until Month {rec.optimal_month}")
    assert rec.apathy_warning is None


def test_recommend_urgent_before_pcp_balloon(pcp_vehicle):
    projections = generate_projections(pcp_vehicle)
    window = calculate_swap_window(projections, 46)
    rec = recommend(pcp_vehicle, projections, window)
    assert rec.action == "urgent"
    assert rec.apathy_warning is not None
    assert rec.apathy_warning.lost_money == rec.current_cash_position


def test_recommend_sell_now_for_depreciating_cash_car(cash_vehicle):
    projections = generate_projections(cash_vehicle)
    window = calculate_swap_window(projections, 0)
    rec = recommend(cash_vehicle, projections, window)
    assert rec.action == "sell_now"
    assert rec.headline == "You're winning!"
    assert rec.improvement_potential == 0


def test_portfolio_totals(hp_vehicle, pcp_vehicle, cash_vehicle):
    vehicles = [hp_vehicle, pcp_vehicle, cash_vehicle]
    portfolio = summarise_portfolio(vehicles)
    assert portfolio.vehicle_count == 3
    assert portfolio.total_cash_position == sum(s.cash_position for s in portfolio.summaries)
    assert portfolio.total_settlement == sum(financial_summary(v).settlement_figure for v in vehicles)
    assert summarise_portfolio([]).total_cash_position == 0


def test_inputs_are_not_mutated(hp_vehicle):
    before = hp_vehicle.to_dict()
    generate_projections(hp_vehicle)
    assert hp_vehicle.to_dict() == before
    assert hp_vehicle.financing.finance_type == FinanceType.HP


def test_engine_formats_advice_without_the_terminal_formatter():
    import car_equity.engine as engine

    assert engine.money is money
    assert engine.money.__module__ == "car_equity.utils"
