# Overview: Flask API routes for weekly price comparison and cloning.

# backend/backoffice/routes/weekly_prices.py
from flask import Blueprint, request, jsonify, current_app

from ..extensions import db
from ..services import pricing_service
from ..services.concurrency import run_with_retry, transaction
from ..validation import ValidationError, parse_date, parse_id_map
from backoffice.time_utils import today


weekly_prices_bp = Blueprint("weekly_prices", __name__, url_prefix="/api/weekly-prices")


@weekly_prices_bp.get("/versus")
def get_price_versus_route():
    try:
        target_date = parse_date(request.args.get("date"), "date", default=today())
        return jsonify(pricing_service.price_versus(db.session, target_date)), 200

    except ValidationError as e:
        return jsonify({"error": str(e), "errors": e.errors}), 400
    except Exception:
        current_app.logger.exception("Failed to load price comparison")
        return jsonify({"error": "Internal server error"}), 500


@weekly_prices_bp.post("/versus")
def save_price_versus_route():
    """
    Body: {"date": "2026-03-10", "markups": {"1": "3.00"}}

    Each markup is stored as the weekly delivery price cost + markup + fee.
    """
    try:
        data = request.get_json() or {}
        target_date = parse_date(data.get("date"), "date")
        markups = parse_id_map(data.get("markups"), "markups")

        def _op():
            with transaction(db.session) as session:
                changed = pricing_service.save_price_versus(session, target_date, markups)
                return [wp.to_dict() for wp in changed]

        saved = run_with_retry(_op)
        return jsonify({"weekly_prices": saved, "count": len(saved)}), 200

    except ValidationError as e:
        return jsonify({"error": str(e), "errors": e.errors}), 400
    except Exception:
        current_app.logger.exception("Failed to save weekly prices")
        return jsonify({"error": "Internal server error"}), 500


@weekly_prices_bp.post("/clone-last-week")
def clone_last_week_route():
    try:
        data = request.get_json(silent=True) or {}
        on_date = parse_date(data.get("date"), "date", default=today())

        with transaction(db.session) as session:
            created = [wp.to_dict() for wp in pricing_service.clone_last_week(session, on_date)]

        return jsonify({"weekly_prices": created, "count": len(created)}), 201

    except ValidationError as e:
        return jsonify({"error": str(e), "errors": e.errors}), 400
    except Exception:
        current_app.logger.exception("Failed to clone last week's prices")
        return jsonify({"error": "Internal server error"}), 500
