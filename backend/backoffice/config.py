# backend/backoffice/config.py
from __future__ import annotations
import os


def _csv_env(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    raw = os.environ.get(name)
    if not raw:
        return default
    return tuple(part.strip() for part in raw.split(",") if part.strip())


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/backoffice.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///backoffice.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Customer groups that make up the vegetable matrix columns.
    # The first entry is also the group assigned by the self-heal step.
    MATRIX_OUTLET_GROUPS = _csv_env(
        "MATRIX_OUTLET_GROUPS",
        ("EIGHT2EIGHT OUTLETS", "Taste 8 outlets"),
    )
    MATRIX_DEFAULT_GROUP = os.environ.get("MATRIX_DEFAULT_GROUP", MATRIX_OUTLET_GROUPS[0])

    MATRIX_OUTLET_PAGE_SIZE = int(os.environ.get("MATRIX_OUTLET_PAGE_SIZE", "12"))
    MATRIX_PRODUCT_PAGE_SIZE = int(os.environ.get("MATRIX_PRODUCT_PAGE_SIZE", "25"))

    # Outlets matching an earlier token are printed first on delivery sheets.
    OUTLET_PRIORITY_TOKENS = _csv_env(
        "OUTLET_PRIORITY_TOKENS",
        (
            "autoliv", "autolive", "taiyo", "gmc", "global", "uct", "knowles", "knowless",
            "merasenko", "teradyne", "jpkitchen", "jpmorgan", "cebukitchen", "cebukit",
            "bakery", "wlahug", "mitsumi", "feeder", "mphokim", "phokim",
        ),
    )

    # Receipt numbers continue from the paper booklet series (DR-YYYY-005001 onwards).
    RECEIPT_SEQUENCE_START = int(os.environ.get("RECEIPT_SEQUENCE_START", "5000"))
