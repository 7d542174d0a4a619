"""JSON API over the equity calculator.

Each endpoint parses a JSON body into the same vehicle record the CLI
builds, runs the calculation and returns plain JSON. Garage endpoints keep
vehicles per browser session in the vehicle store.
"""

import logging
from http import HTTPStatus
from uuid import uuid4

from flask import Flask, jsonify, request, session

from car_equity import settings
from car_equity.depreciation import market_value, vehicle_age_months
from car_equity.engine import financial_summary, generate_projections, recommend, summarise_portfolio
from car_equity.main import (
    balloon_to_dict,
    build_vehicle_from_options,
    projection_to_dicts,
    settlement_to_dict,
    window_to_dict,
)
from car_equity.residual import estimate_balloon
from car_equity.settlement import settlement_figure
from car_equity.swap_window import calculate_swap_window
from car_equity.utils import to_decimal
from car_equity.vehicle_store import create_store_from_env

logger = logging.getLogger(__name__)

app = Flask(__name__)
app.secret_key = settings.SECRET_KEY
vehicle_store = create_store_from_env(settings.DATABASE_URL)

VEHICLE_FIELDS = (
    "make",
    "model",
    "year",
    "price",
    "category",
    "body_type",
    "mileage",
    "annual_mileage",
    "finance",
    "loan",
    "apr",
    "term",
    "payment",
    "elapsed",
    "balloon",
    "deposit",
    "start_date",
)


class PayloadError(ValueError):
    """Request body could not be turned into a calculation input."""


def _ensure_user_token() -> str:
    token = session.get("user_token")
    if not token:
        token = uuid4().hex
        session["user_token"] = token
        session.modified = True
    return token


def _payload() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise PayloadError("Request body must be a JSON object")
    return data


def _payload_to_vehicle(data: dict):
    missing = [name for name in ("make", "model", "year", "price") if data.get(name) in (None, "")]
    if missing:
        raise PayloadError(f"Missing required fields: {', '.join(missing)}")
    for name in ("make", "model", "category", "body_type", "finance", "start_date"):
        if data.get(name) is not None and not isinstance(data[name], str):
            raise PayloadError(f"Field {name} must be a string")
    options = {name: data[name] for name in VEHICLE_FIELDS if data.get(name) is not None}
    try:
        return build_vehicle_from_options(**options)
    except (TypeError, ValueError) as exc:
        raise PayloadError(str(exc)) from exc


def _summary_to_dict(summary) -> dict:
    return {
        "cash_position": float(summary.cash_position),
        "status": summary.status.value,
        "trade_in_value": float(summary.trade_in_value),
        "private_value": float(summary.private_value),
        "settlement_figure": float(summary.settlement_figure),
        "status_label": summary.status_label,
        "action_label": summary.action_label,
    }


def _recommendation_to_dict(rec) -> dict:
    warning = rec.apathy_warning
    return {
        "action": rec.action,
        "headline": rec.headline,
        "subtext": rec.subtext,
        "current_cash_position": float(rec.current_cash_position),
        "optimal_cash_position": float(rec.optimal_cash_position),
        "optimal_month": rec.optimal_month,
        "improvement_potential": float(rec.improvement_potential),
        "apathy_warning": {
            "hand_back_value": float(warning.hand_back_value),
            "sell_value": float(warning.sell_value),
            "lost_money": float(warning.lost_money),
        }
        if warning
        else None,
    }


def _projection_response(vehicle, band=None) -> dict:
    projections = generate_projections(vehicle, band=band)
    window = calculate_swap_window(projections, vehicle.financing.months_elapsed)
    return {
        "vehicle": vehicle.to_dict(),
        "summary": _summary_to_dict(financial_summary(vehicle, band=band)),
        "swap_window": window_to_dict(window),
        "recommendation": _recommendation_to_dict(recommend(vehicle, projections, window)),
        "projection": projection_to_dicts(projections),
    }


@app.errorhandler(PayloadError)
def handle_payload_error(exc: PayloadError):
    logger.info("Rejected %s %s: %s", request.method, request.path, exc)
    return jsonify({"error": str(exc)}), HTTPStatus.BAD_REQUEST


@app.post("/api/projection")
def projection():
    """Month-by-month projection, swap window and recommendation."""
    data = _payload()
    vehicle = _payload_to_vehicle(data)
    band = data.get("band")
    try:
        band_value = to_decimal(band) if band is not None else None
    except ValueError as exc:
        raise PayloadError(str(exc)) from exc
    return jsonify(_projection_response(vehicle, band_value)), HTTPStatus.OK


@app.post("/api/settlement")
def settlement():
    vehicle = _payload_to_vehicle(_payload())
    f = vehicle.financing
    figure = settlement_figure(
        f.loan_amount, f.monthly_payment, f.apr, f.term_months, f.months_elapsed, f.finance_type, f.balloon_payment
    )
    return jsonify(settlement_to_dict(figure)), HTTPStatus.OK


@app.post("/api/value")
def value():
    vehicle = _payload_to_vehicle(_payload())
    age = vehicle_age_months(vehicle.year)
    market = market_value(vehicle.purchase_price, vehicle.category, age)
    body = _summary_to_dict(financial_summary(vehicle))
    body["market_value"] = {
        "age_months": market.age_months,
        "base_value": float(market.base_value),
        "range_min": float(market.range_min),
        "range_max": float(market.range_max),
    }
    return jsonify(body), HTTPStatus.OK


@app.post("/api/balloon")
def balloon():
    """Balloon estimate; validation errors come back in the body with 400."""
    data = _payload()
    try:
        price = to_decimal(data["price"]) if data.get("price") not in (None, "") else None
        term = int(data["term"]) if data.get("term") not in (None, "") else None
        trend = to_decimal(data["market_trend"]) if data.get("market_trend") is not None else None
        mileage = to_decimal(data["mileage"]) if data.get("mileage") not in (None, "") else None
        year = int(data["year"]) if data.get("year") not in (None, "") else None
    except (TypeError, ValueError) as exc:
        raise PayloadError(str(exc)) from exc
    estimate = estimate_balloon(
        price,
        term,
        make=data.get("make"),
        model=data.get("model"),
        year=year,
        current_mileage=mileage,
        condition=data.get("condition"),
        market_trend=trend,
    )
    status = HTTPStatus.BAD_REQUEST if estimate.error else HTTPStatus.OK
    return jsonify(balloon_to_dict(estimate)), status


@app.get("/api/garage")
def garage_list():
    owner = _ensure_user_token()
    vehicles = vehicle_store.list(owner)
    portfolio = summarise_portfolio(vehicles.values())
    return (
        jsonify(
            {
                "vehicles": [
                    {"id": key, "vehicle": vehicle.to_dict(), "summary": _summary_to_dict(summary)}
                    for (key, vehicle), summary in zip(vehicles.items(), portfolio.summaries)
                ],
                "total_cash_position": float(portfolio.total_cash_position),
                "total_settlement": float(portfolio.total_settlement),
                "total_trade_in_value": float(portfolio.total_trade_in_value),
            }
        ),
        HTTPStatus.OK,
    )


@app.get("/api/garage/<vehicle_id>")
def garage_get(vehicle_id: str):
    owner = _ensure_user_token()
    vehicle = vehicle_store.get(owner, vehicle_id)
    if vehicle is None:
        return jsonify({"error": f"No vehicle {vehicle_id}"}), HTTPStatus.NOT_FOUND
    return jsonify(_projection_response(vehicle)), HTTPStatus.OK


@app.put("/api/garage/<vehicle_id>")
def garage_put(vehicle_id: str):
    owner = _ensure_user_token()
    vehicle = _payload_to_vehicle(_payload())
    try:
        vehicle_store.set(owner, vehicle_id, vehicle)
    except ValueError as exc:
        raise PayloadError(str(exc)) from exc
    return jsonify({"id": vehicle_id, "vehicle": vehicle.to_dict()}), HTTPStatus.OK


@app.delete("/api/garage/<vehicle_id>")
def garage_delete(vehicle_id: str):
    owner = _ensure_user_token()
    if not vehicle_store.delete(owner, vehicle_id):
        return jsonify({"error": f"No vehicle {vehicle_id}"}), HTTPStatus.NOT_FOUND
    return "", HTTPStatus.NO_CONTENT


if __name__ == "__main__":
    settings.configure_logging()
    logger.info("Starting car equity API...")
    app.run(host="0.0.0.0", port=8710, debug=True)
