# Overview: Flask API routes for the day matrix and single-outlet order entry.

# backend/backoffice/routes/orders.py
"""Order entry API routes (vegetable matrix and outlet order)."""

from flask import Blueprint, request, jsonify, current_app

from ..extensions import db
from ..services import matrix_service, outlet_order_service
from ..validation import (
    ValidationError,
    NotFoundError,
    parse_date,
    parse_id_map,
    parse_int,
    parse_quantity_grid,
)
from backoffice.time_utils import today


orders_bp = Blueprint("orders", __name__, url_prefix="/api/orders")


def _flag(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value or "").strip().lower() in {"1", "true", "yes", "on"}


@orders_bp.get("/matrix")
def get_matrix_route():
    """
    Day matrix read model.

    Query: date, page, product_page, with_orders_only
    """
    try:
        on_date = parse_date(request.args.get("date"), "date", default=today())
        page = request.args.get("page", 1, type=int)
        product_page = request.args.get("product_page", 1, type=int)

        matrix = matrix_service.build_matrix(
            db.session,
            on_date,
            page,
            product_page,
            with_orders_only=_flag(request.args.get("with_orders_only")),
        )
        return jsonify(matrix), 200

    except ValidationError as e:
        return jsonify({"error": str(e), "errors": e.errors}), 400
    except Exception:
        current_app.logger.exception("Failed to build order matrix")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.post("/matrix")
def save_matrix_route():
    """
    Save the day grid.

    Body:
    {
        "date": "2026-03-10",
        "quantities": [{"product_id": 1, "outlet_id": 2, "quantity": 5}, ...],
        "prices": {"1": "15.00"},
        "created_by": "encoder"
    }
    """
    try:
        data = request.get_json() or {}
        on_date = parse_date(data.get("date"), "date")
        quantities = parse_quantity_grid(data.get("quantities"))
        prices = parse_id_map(data.get("prices"), "prices")

        result = matrix_service.save_matrix(
            db.session,
            on_date,
            quantities,
            prices,
            created_by=data.get("created_by"),
        )
        return jsonify(result), 200

    except ValidationError as e:
        return jsonify({"error": str(e), "errors": e.errors}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to save order matrix")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.get("/outlet")
def get_outlet_order_route():
    """Query: date, customer_id, all_outlets"""
    try:
        on_date = parse_date(request.args.get("date"), "date", default=today())
        raw_customer = request.args.get("customer_id")
        customer_id = parse_int(raw_customer, "customer_id") if raw_customer else None

        order = outlet_order_service.get_outlet_order(
            db.session,
            on_date,
            customer_id=customer_id,
            all_outlets=_flag(request.args.get("all_outlets")),
        )
        return jsonify(order), 200

    except ValidationError as e:
        return jsonify({"error": str(e), "errors": e.errors}), 400
    except Exception:
        current_app.logger.exception("Failed to load outlet order")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.post("/outlet")
def save_outlet_order_route():
    """
    Save one outlet's order for the day.

    Body:
    {
        "date": "2026-03-10",
        "customer_id": 2,
        "quantities": {"1": 5},
        "prices": {"1": "15.00"},
        "all_outlets": false
    }
    """
    try:
        data = request.get_json() or {}
        on_date = parse_date(data.get("date"), "date")
        all_outlets = _flag(data.get("all_outlets"))
        raw_customer = data.get("customer_id")
        customer_id = parse_int(raw_customer, "customer_id") if raw_customer is not None else None
        quantities = parse_id_map(data.get("quantities"), "quantities")
        prices = parse_id_map(data.get("prices"), "prices")

        result = outlet_order_service.save_outlet_order(
            db.session,
            on_date,
            customer_id,
            quantities,
            prices,
            all_outlets,
            created_by=data.get("created_by"),
        )
        return jsonify(result), 200

    except ValidationError as e:
        return jsonify({"error": str(e), "errors": e.errors}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to save outlet order")
        return jsonify({"error": "Internal server error"}), 500
