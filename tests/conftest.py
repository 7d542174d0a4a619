from __future__ import annotations

import os
from decimal import Decimal

import pytest

# keep the web module's import-time store off the working directory
os.environ.setdefault("CAR_EQUITY_DATABASE_URL", "sqlite://")

from car_equity.data_models import FinanceType, Financing, Vehicle, VehicleCategory


@pytest.fixture()
def hp_vehicle() -> Vehicle:
    """Economy car, £28k retail, £25k HP at 4.5% over 60 months, brand new."""
    return Vehicle(
        make="Ford",
        model="Focus",
        year=2024,
        category=VehicleCategory.ECONOMY,
        purchase_price=Decimal("28000"),
        current_mileage=Decimal("0"),
        expected_annual_mileage=Decimal("10000"),
        financing=Financing(
            finance_type=FinanceType.HP,
            loan_amount=Decimal("25000"),
            apr=Decimal("4.5"),
            term_months=60,
            monthly_payment=Decimal("466.08"),
            months_elapsed=0,
        ),
    )


@pytest.fixture()
def pcp_vehicle() -> Vehicle:
    """£50k car on a 48 month PCP with an £18k balloon, two months from the end."""
    return Vehicle(
        make="Volkswagen",
        model="Golf",
        year=2021,
        category=VehicleCategory.ECONOMY,
        purchase_price=Decimal("50000"),
        current_mileage=Decimal("38000"),
        expected_annual_mileage=Decimal("10000"),
        financing=Financing(
            finance_type=FinanceType.PCP,
            loan_amount=Decimal("43000"),
            apr=Decimal("6.9"),
            term_months=48,
            monthly_payment=Decimal("650"),
            months_elapsed=46,
            balloon_payment=Decimal("18000"),
        ),
    )


@pytest.fixture()
def cash_vehicle() -> Vehicle:
    return Vehicle(
        make="Toyota",
        model="Yaris",
        year=2024,
        category=VehicleCategory.ECONOMY,
        purchase_price=Decimal("20000"),
        financing=Financing(finance_type=FinanceType.CASH, term_months=24),
    )
