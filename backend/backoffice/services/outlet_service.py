# Overview: Outlet lookup, delivery-sheet ordering, matrix group membership and
# legacy receipt-to-outlet matching.

from __future__ import annotations

import logging
import re
from typing import Iterable, Sequence

from flask import current_app
from sqlalchemy import func, or_

from ..models import Customer, Receipt
from ..validation import NotFoundError
from ..config import Config

logger = logging.getLogger(__name__)

_NON_ALNUM = re.compile(r"[^a-z0-9]")

MIN_SHORT_NAME_MATCH = 2


def _setting(name: str):
    return current_app.config.get(name, getattr(Config, name))


def normalize_outlet_name(name: str | None) -> str:
    """Lowercase alphanumerics only: "Cebu Kitchen (2)" -> "cebukitchen2"."""
    return _NON_ALNUM.sub("", (name or "").lower())


def outlet_order_index(name: str | None, tokens: Sequence[str] | None = None) -> int:
    """
    Position of the first priority token matching the outlet name.

    A token matches when it is contained in the normalized name, or the name
    is a prefix of the token at least MIN_SHORT_NAME_MATCH characters long
    ("JP" matches "jpkitchen", "U" and "Al" match nothing). Blank or
    unmatched names get len(tokens) so they sort after every match.
    """
    tokens = tokens if tokens is not None else _setting("OUTLET_PRIORITY_TOKENS")
    normalized = normalize_outlet_name(name)
    if not normalized:
        return len(tokens)
    short_name = len(normalized) >= MIN_SHORT_NAME_MATCH
    for index, token in enumerate(tokens):
        if token in normalized or (short_name and token.startswith(normalized)):
            return index
    return len(tokens)


def order_outlets(outlets: Iterable[Customer], tokens: Sequence[str] | None = None) -> list[Customer]:
    tokens = tokens if tokens is not None else _setting("OUTLET_PRIORITY_TOKENS")
    return sorted(
        outlets,
        key=lambda c: (outlet_order_index(c.name, tokens), (c.name or "").lower(), c.id or 0),
    )


def active_outlets(session) -> list[Customer]:
    return order_outlets(session.query(Customer).filter(Customer.is_active.is_(True)).all())


def _group_outlets(session, groups: Sequence[str]) -> list[Customer]:
    return (
        session.query(Customer)
        .filter(Customer.is_active.is_(True), Customer.group_name.in_(list(groups)))
        .all()
    )


def matrix_outlets(session) -> list[Customer]:
    """
    Active outlets that form the matrix columns, in delivery-sheet order.

    When no outlet belongs to a matrix group, active outlets with a NULL or
    empty group are moved into the default group and committed, then the
    list is loaded again.
    """
    groups = _setting("MATRIX_OUTLET_GROUPS")
    outlets = _group_outlets(session, groups)

    if not outlets:
        default_group = _setting("MATRIX_DEFAULT_GROUP")
        ungrouped = (
            session.query(Customer)
            .filter(
                Customer.is_active.is_(True),
                or_(Customer.group_name.is_(None), Customer.group_name == ""),
            )
            .all()
        )
        if ungrouped:
            for customer in ungrouped:
                customer.group_name = default_group
            session.commit()
            logger.info("Assigned %d ungrouped outlets to %r", len(ungrouped), default_group)
            outlets = _group_outlets(session, groups)

    return order_outlets(outlets)


def get_outlet(session, customer_id: int) -> Customer:
    customer = session.get(Customer, customer_id)
    if customer is None:
        raise NotFoundError(f"Outlet {customer_id} not found")
    return customer


def load_outlets(session, customer_ids: Iterable[int]) -> dict[int, Customer]:
    """Load every requested outlet or raise NotFoundError naming the missing ids."""
    ids = sorted(set(customer_ids))
    if not ids:
        return {}
    found = {c.id: c for c in session.query(Customer).filter(Customer.id.in_(ids)).all()}
    missing = [cid for cid in ids if cid not in found]
    if missing:
        raise NotFoundError(f"Unknown outlet id(s): {', '.join(str(m) for m in missing)}")
    return found


def receipt_matches_outlet(receipt: Receipt, outlet: Customer) -> bool:
    if receipt.customer_id is not None:
        return receipt.customer_id == outlet.id
    return (receipt.customer_name or "").strip().lower() == (outlet.name or "").strip().lower()


def receipt_outlet_filter(outlets: Sequence[Customer]):
    """
    SQL filter for receipts belonging to any of `outlets`: linked by id, or
    legacy rows with no customer_id whose name matches case-insensitively.
    """
    ids = [o.id for o in outlets]
    names = sorted({(o.name or "").strip().lower() for o in outlets if o.name})
    clauses = [Receipt.customer_id.in_(ids)]
    if names:
        clauses.append(
            (Receipt.customer_id.is_(None)) & (func.lower(func.trim(Receipt.customer_name)).in_(names))
        )
    return or_(*clauses)


def backfill_receipt_outlets(session, *, dry_run: bool = False) -> dict:
    """
    Link legacy name-only receipts to their outlet.

    A receipt is linked only when its name matches exactly one customer
    (case-insensitive). Ambiguous and unmatched names are reported and left
    alone. Flushes; the caller commits.
    """
    by_name: dict[str, list[Customer]] = {}
    for customer in session.query(Customer).all():
        key = (customer.name or "").strip().lower()
        if key:
            by_name.setdefault(key, []).append(customer)

    legacy = (
        session.query(Receipt)
        .filter(Receipt.customer_id.is_(None))
        .order_by(Receipt.id)
        .all()
    )

    linked = 0
    ambiguous: set[str] = set()
    unmatched: set[str] = set()
    for receipt in legacy:
        key = (receipt.customer_name or "").strip().lower()
        matches = by_name.get(key, [])
        if len(matches) == 1:
            if not dry_run:
                receipt.customer_id = matches[0].id
            linked += 1
        elif matches:
            ambiguous.add(receipt.customer_name)
        else:
            unmatched.add(receipt.customer_name or "")

    if not dry_run:
        session.flush()

    logger.info(
        "Receipt outlet backfill%s: %d linked, %d ambiguous names, %d unmatched names",
        " (dry run)" if dry_run else "", linked, len(ambiguous), len(unmatched),
    )
    return {
        "scanned": len(legacy),
        "linked": linked,
        "ambiguous": sorted(ambiguous),
        "unmatched": sorted(unmatched),
        "dry_run": dry_run,
    }
