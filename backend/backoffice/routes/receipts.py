# Overview: Flask API routes for receipt lookup and settlement.

# backend/backoffice/routes/receipts.py
from flask import Blueprint, request, jsonify, current_app

from ..extensions import db
from ..services import receipt_service
from ..services.concurrency import transaction
from ..validation import ConflictError, NotFoundError, ValidationError
from ..models.receipts import METHOD_CASH, PAYMENT_METHODS


receipts_bp = Blueprint("receipts", __name__, url_prefix="/api/receipts")


@receipts_bp.get("/<int:receipt_id>")
def get_receipt_route(receipt_id: int):
    try:
        receipt = receipt_service.get_receipt(db.session, receipt_id)
        return jsonify({"receipt": receipt.to_dict(include_lines=True)}), 200

    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to get receipt")
        return jsonify({"error": "Internal server error"}), 500


@receipts_bp.post("/<int:receipt_id>/mark-paid")
def mark_receipt_paid_route(receipt_id: int):
    """
    Settle an unpaid receipt in full.

    Body (optional): {"recorded_by": "cashier", "method": "CASH"}
    """
    try:
        data = request.get_json(silent=True) or {}
        method = data.get("method") or METHOD_CASH
        if method not in PAYMENT_METHODS:
            raise ValidationError(f"Unknown payment method: {method}")

        with transaction(db.session) as session:
            receipt = receipt_service.mark_receipt_paid(
                session, receipt_id, data.get("recorded_by"), method=method
            )
            payload = receipt.to_dict(include_lines=True)

        return jsonify({"receipt": payload}), 200

    except ValidationError as e:
        return jsonify({"error": str(e), "errors": e.errors}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to mark receipt paid")
        return jsonify({"error": "Internal server error"}), 500
