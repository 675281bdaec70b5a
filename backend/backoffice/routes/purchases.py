# Overview: Flask API routes for supplier purchases and purchase payments.

# backend/backoffice/routes/purchases.py
from flask import Blueprint, request, jsonify, current_app

from ..extensions import db
from ..services import purchase_service
from ..services.concurrency import run_with_retry, transaction
from ..validation import NotFoundError, ValidationError, parse_date, parse_decimal, parse_int
from ..models.receipts import METHOD_CASH
from backoffice.time_utils import day_bounds


purchases_bp = Blueprint("purchases", __name__, url_prefix="/api/purchases")


@purchases_bp.post("")
def create_purchase_route():
    """
    Record a purchase.

    Body:
    {
        "supplier_id": 1,                 # or "supplier_name": "Carbon Market"
        "date": "2026-03-10",
        "lines": [{"product_id": 1, "quantity": 10, "cost": "8.50"}],
        "paid_amount": "0",
        "notes": "..."
    }
    """
    try:
        data = request.get_json() or {}
        raw_supplier = data.get("supplier_id")
        supplier_id = parse_int(raw_supplier, "supplier_id") if raw_supplier is not None else None
        lines = data.get("lines")
        if not isinstance(lines, list):
            raise ValidationError("lines must be a list")
        paid_amount = parse_decimal(data.get("paid_amount", 0), "paid_amount")
        purchase_date = None
        if data.get("date"):
            purchase_date = day_bounds(parse_date(data.get("date"), "date"))[0]

        def _op():
            with transaction(db.session) as session:
                purchase = purchase_service.create_purchase(
                    session,
                    lines=lines,
                    supplier_id=supplier_id,
                    supplier_name=data.get("supplier_name"),
                    supplier_address=data.get("supplier_address"),
                    contact_number=data.get("contact_number"),
                    paid_amount=paid_amount,
                    purchase_date=purchase_date,
                    notes=data.get("notes"),
                    created_by=data.get("created_by"),
                )
                return purchase.to_dict(include_lines=True)

        return jsonify({"purchase": run_with_retry(_op)}), 201

    except ValidationError as e:
        return jsonify({"error": str(e), "errors": e.errors}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to create purchase")
        return jsonify({"error": "Internal server error"}), 500


@purchases_bp.post("/<int:purchase_id>/payments")
def add_purchase_payment_route(purchase_id: int):
    """Body: {"amount": "100.00", "payment_method": "CASH", "reference_no": null}"""
    try:
        data = request.get_json() or {}
        amount = parse_decimal(data.get("amount"), "amount")

        with transaction(db.session) as session:
            purchase = purchase_service.add_purchase_payment(
                session,
                purchase_id,
                amount,
                payment_method=data.get("payment_method") or METHOD_CASH,
                reference_no=data.get("reference_no"),
                recorded_by=data.get("recorded_by"),
            )
            payload = purchase.to_dict(include_lines=True)

        return jsonify({"purchase": payload}), 200

    except ValidationError as e:
        return jsonify({"error": str(e), "errors": e.errors}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to add purchase payment")
        return jsonify({"error": "Internal server error"}), 500


@purchases_bp.post("/<int:purchase_id>/mark-paid")
def mark_purchase_paid_route(purchase_id: int):
    try:
        with transaction(db.session) as session:
            payload = purchase_service.mark_purchase_paid(session, purchase_id).to_dict()

        return jsonify({"purchase": payload}), 200

    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to mark purchase paid")
        return jsonify({"error": "Internal server error"}), 500
