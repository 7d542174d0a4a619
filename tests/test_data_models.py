from __future__ import annotations

from decimal import Decimal

from car_equity import settings
from car_equity.data_models import FinanceType, Vehicle, VehicleCategory


def test_vehicle_default_mileage_follows_settings():
    vehicle = Vehicle(
        make="Toyota",
        model="Yaris",
        year=2024,
        category=VehicleCategory.ECONOMY,
        purchase_price=Decimal("20000"),
    )
    assert vehicle.expected_annual_mileage == settings.DEFAULT_ANNUAL_MILEAGE


def test_from_dict_fills_missing_fields_from_settings():
    vehicle = Vehicle.from_dict(
        {"make": "Toyota", "model": "Yaris", "year": 2024, "category": "economy", "purchase_price": "20000"}
    )
    assert vehicle.expected_annual_mileage == settings.DEFAULT_ANNUAL_MILEAGE
    assert vehicle.financing.finance_type == FinanceType.CASH


def test_round_trip(pcp_vehicle):
    assert Vehicle.from_dict(pcp_vehicle.to_dict()) == pcp_vehicle
