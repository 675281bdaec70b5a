# backend/backoffice/routes/system.py
"""
System health endpoint.

Reports database reachability plus the counts the order screens depend on
(active outlets in the matrix groups, active products, this year's receipt
sequence).
"""

import time
from flask import Blueprint, current_app

from ..extensions import db
from ..models import Customer, Product, ReceiptSequence
from backoffice.time_utils import utcnow, today

system_bp = Blueprint("system", __name__, url_prefix="/api/system")


def check_database_health() -> dict:
    """
    Check database connectivity and basic operations.

    Returns dict with status and details.
    """
    start_time = time.time()
    try:
        outlet_count = db.session.query(Customer).filter(Customer.is_active.is_(True)).count()
        product_count = db.session.query(Product).filter(Product.is_active.is_(True)).count()
        sequence = db.session.query(ReceiptSequence).filter_by(year=today().year).first()

        elapsed_ms = (time.time() - start_time) * 1000

        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {
                "active_outlets": outlet_count,
                "active_products": product_count,
                "receipt_sequence": sequence.last_number if sequence else None,
            }
        }
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error"
        }


def check_matrix_health() -> dict:
    """Degraded when no active outlet belongs to a matrix group."""
    try:
        groups = list(current_app.config["MATRIX_OUTLET_GROUPS"])
        grouped = (
            db.session.query(Customer)
            .filter(Customer.is_active.is_(True), Customer.group_name.in_(groups))
            .count()
        )
        if grouped == 0:
            return {
                "status": "degraded",
                "warning": "No active outlets in matrix groups: " + ", ".join(groups),
            }
        return {"status": "healthy", "details": {"matrix_outlets": grouped}}
    except Exception:
        current_app.logger.exception("Matrix health check failed")
        return {"status": "unhealthy", "error": "Matrix check error"}


@system_bp.get("/health")
def health():
    """
    Returns:
    - 200: healthy or degraded
    - 503: database unreachable
    """
    start_time = time.time()

    database_health = check_database_health()
    matrix_health = check_matrix_health()

    all_checks = [database_health, matrix_health]
    unhealthy_count = sum(1 for check in all_checks if check["status"] == "unhealthy")
    degraded_count = sum(1 for check in all_checks if check["status"] == "degraded")

    if unhealthy_count > 0:
        overall_status = "unhealthy"
        http_status = 503
    elif degraded_count > 0:
        overall_status = "degraded"
        http_status = 200  # Degraded is still operational
    else:
        overall_status = "healthy"
        http_status = 200

    total_elapsed_ms = (time.time() - start_time) * 1000

    response = {
        "status": overall_status,
        "timestamp": utcnow().isoformat() + "Z",
        "total_latency_ms": round(total_elapsed_ms, 2),
        "checks": {
            "database": database_health,
            "matrix": matrix_health,
        }
    }

    return response, http_status
