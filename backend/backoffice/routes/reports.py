# Overview: Flask API routes for the profit summary and its manual inputs.

# backend/backoffice/routes/reports.py
"""
Profit report endpoints.

GET returns the computed summary; the POST endpoints record the inputs it
nets out (deductions, retained capital, partner purchases).
"""

from datetime import datetime, timedelta

from flask import Blueprint, request, jsonify, current_app

from ..extensions import db
from ..services import profit_service
from ..services.concurrency import transaction
from ..validation import ValidationError, parse_date, parse_decimal
from backoffice.time_utils import day_bounds, today


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")

DEFAULT_REPORT_DAYS = 14


def _flag(value, default: bool) -> bool:
    if value is None or value == "":
        return default
    return str(value).strip().lower() in {"1", "true", "yes", "on"}


@reports_bp.get("/profit")
def profit_summary_route():
    """
    Query: start, end (default: last 14 days), include_unpaid (default true),
    percent_fee (default 1.0), partner1_share (default 40)
    """
    try:
        end = parse_date(request.args.get("end"), "end", default=today())
        start = parse_date(request.args.get("start"), "start", default=end - timedelta(days=DEFAULT_REPORT_DAYS))
        percent_fee = parse_decimal(
            request.args.get("percent_fee", str(profit_service.DEFAULT_PERCENT_FEE)), "percent_fee"
        )
        partner1_share = parse_decimal(
            request.args.get("partner1_share", str(profit_service.DEFAULT_PARTNER1_SHARE)), "partner1_share"
        )
        if not 0 <= partner1_share <= 100:
            raise ValidationError("partner1_share must be between 0 and 100")

        summary = profit_service.profit_summary(
            db.session,
            start,
            end,
            include_unpaid=_flag(request.args.get("include_unpaid"), True),
            percent_fee=percent_fee,
            partner1_share=partner1_share,
        )
        return jsonify(summary), 200

    except ValidationError as e:
        return jsonify({"error": str(e), "errors": e.errors}), 400
    except Exception:
        current_app.logger.exception("Failed to build profit summary")
        return jsonify({"error": "Internal server error"}), 500


def _entry_date(data) -> datetime:
    return day_bounds(parse_date(data.get("date"), "date", default=today()))[0]


@reports_bp.post("/profit/deductions")
def add_deduction_route():
    try:
        data = request.get_json() or {}
        with transaction(db.session) as session:
            deduction = profit_service.add_deduction(
                session,
                on_date=_entry_date(data),
                description=data.get("description"),
                amount=parse_decimal(data.get("amount"), "amount"),
                category=data.get("category"),
                applied_to=data.get("applied_to"),
            )
            payload = deduction.to_dict()
        return jsonify({"deduction": payload}), 201

    except ValidationError as e:
        return jsonify({"error": str(e), "errors": e.errors}), 400
    except Exception:
        current_app.logger.exception("Failed to add deduction")
        return jsonify({"error": "Internal server error"}), 500


@reports_bp.post("/profit/capital")
def add_capital_route():
    try:
        data = request.get_json() or {}
        with transaction(db.session) as session:
            capital = profit_service.add_capital(
                session,
                on_date=_entry_date(data),
                amount=parse_decimal(data.get("amount"), "amount"),
                description=data.get("description"),
            )
            payload = capital.to_dict()
        return jsonify({"capital": payload}), 201

    except ValidationError as e:
        return jsonify({"error": str(e), "errors": e.errors}), 400
    except Exception:
        current_app.logger.exception("Failed to add capital fund")
        return jsonify({"error": "Internal server error"}), 500


@reports_bp.post("/profit/partner-purchases")
def add_partner_purchase_route():
    try:
        data = request.get_json() or {}
        with transaction(db.session) as session:
            purchase = profit_service.add_partner_purchase(
                session,
                partner_name=data.get("partner_name"),
                on_date=_entry_date(data),
                amount=parse_decimal(data.get("amount"), "amount"),
                notes=data.get("notes"),
            )
            payload = purchase.to_dict()
        return jsonify({"partner_purchase": payload}), 201

    except ValidationError as e:
        return jsonify({"error": str(e), "errors": e.errors}), 400
    except Exception:
        current_app.logger.exception("Failed to add partner purchase")
        return jsonify({"error": "Internal server error"}), 500
