"""
Purchase Service - supplier purchase orders and their payments

Purchases carry the same UNPAID / PARTIAL / PAID status as receipts, derived
from paid_amount against total_amount. All functions flush and leave the
commit to the caller.
"""

from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, Iterable

from sqlalchemy import func

from ..models import Product, Purchase, PurchaseLine, PurchasePayment, Supplier
from ..models.receipts import STATUS_PAID, STATUS_PARTIAL, STATUS_UNPAID, METHOD_CASH, PAYMENT_METHODS
from ..validation import NotFoundError, ValidationError, money, parse_decimal, parse_int
from backoffice.time_utils import utcnow
from .sequence_service import next_purchase_number

logger = logging.getLogger(__name__)


def payment_status(paid: Decimal, total: Decimal) -> str:
    if paid >= total:
        return STATUS_PAID
    if paid > 0:
        return STATUS_PARTIAL
    return STATUS_UNPAID


def _resolve_supplier(session, supplier_id: int | None, supplier_name: str | None) -> Supplier | None:
    if supplier_id is not None:
        supplier = session.get(Supplier, supplier_id)
        if supplier is None:
            raise NotFoundError(f"Supplier {supplier_id} not found")
        return supplier

    name = (supplier_name or "").strip()
    if not name:
        return None

    supplier = (
        session.query(Supplier)
        .filter(func.lower(Supplier.name) == name.lower())
        .order_by(Supplier.id)
        .first()
    )
    if supplier is None:
        supplier = Supplier(name=name, is_active=True)
        session.add(supplier)
        session.flush()
        logger.info("Created supplier %r (id=%s) from purchase entry", name, supplier.id)
    return supplier


def _clean_lines(session, lines: Iterable[dict[str, Any]]) -> list[PurchaseLine]:
    cleaned: list[PurchaseLine] = []
    for index, raw in enumerate(lines or []):
        label = f"lines[{index}]"
        if not isinstance(raw, dict):
            raise ValidationError(f"{label} must be an object")
        quantity = parse_int(raw.get("quantity", 0), f"{label}.quantity")
        cost = parse_decimal(raw.get("cost", 0), f"{label}.cost")
        if quantity <= 0 or cost < 0:
            continue

        product_id = raw.get("product_id")
        item_name = (raw.get("item_name") or "").strip()
        unit = (raw.get("unit") or "").strip()
        if product_id is not None:
            product_id = parse_int(product_id, f"{label}.product_id")
            if not item_name:
                product = session.get(Product, product_id)
                if product is not None:
                    item_name = product.name
                    unit = unit or product.unit

        if not item_name:
            raise ValidationError(f"{label}.item_name is required")

        cost = money(cost)
        cleaned.append(PurchaseLine(
            product_id=product_id,
            item_name=item_name,
            quantity=quantity,
            unit=unit or "pc",
            cost=cost,
            amount=money(cost * quantity),
        ))
    return cleaned


def create_purchase(
    session,
    *,
    lines: Iterable[dict[str, Any]],
    supplier_id: int | None = None,
    supplier_name: str | None = None,
    supplier_address: str | None = None,
    contact_number: str | None = None,
    paid_amount: Decimal = Decimal("0"),
    purchase_date: datetime | None = None,
    notes: str | None = None,
    created_by: str | None = None,
) -> Purchase:
    """
    Record a purchase order.

    Lines with quantity <= 0 or a negative cost are dropped; item name and
    unit default from the product. At least one line must remain.
    A supplier given only by name is matched case-insensitively or created.
    """
    cleaned = _clean_lines(session, lines)
    if not cleaned:
        raise ValidationError("Please add at least one valid item.")

    supplier = _resolve_supplier(session, supplier_id, supplier_name)

    total = sum((line.amount for line in cleaned), Decimal("0"))
    paid = money(max(Decimal(paid_amount), Decimal("0")))

    purchase = Purchase(
        purchase_number=next_purchase_number(session),
        date=purchase_date or utcnow(),
        supplier_id=supplier.id if supplier is not None else None,
        supplier_name=supplier.name if supplier is not None else (supplier_name or "").strip(),
        supplier_address=supplier_address or (supplier.address if supplier is not None else None),
        contact_number=contact_number or (supplier.contact_number if supplier is not None else None),
        total_amount=total,
        paid_amount=paid,
        status=payment_status(paid, total),
        notes=notes,
        created_by=created_by,
        lines=cleaned,
    )
    session.add(purchase)
    session.flush()
    return purchase


def get_purchase(session, purchase_id: int) -> Purchase:
    purchase = session.get(Purchase, purchase_id)
    if purchase is None:
        raise NotFoundError(f"Purchase {purchase_id} not found")
    return purchase


def add_purchase_payment(
    session,
    purchase_id: int,
    amount: Decimal,
    *,
    payment_method: str = METHOD_CASH,
    reference_no: str | None = None,
    recorded_by: str | None = None,
) -> Purchase:
    purchase = get_purchase(session, purchase_id)

    amount = Decimal(amount)
    if amount <= 0:
        raise ValidationError("Payment amount must be greater than 0.")
    if payment_method not in PAYMENT_METHODS:
        raise ValidationError(f"Unknown payment method: {payment_method}")

    amount = money(amount)
    purchase.payments.append(PurchasePayment(
        date=utcnow(),
        amount=amount,
        payment_method=payment_method,
        reference_no=reference_no,
        recorded_by=recorded_by,
    ))
    purchase.paid_amount = purchase.paid_amount + amount
    purchase.status = STATUS_PAID if purchase.paid_amount >= purchase.total_amount else STATUS_PARTIAL
    session.flush()
    return purchase


def mark_purchase_paid(session, purchase_id: int) -> Purchase:
    """Settle the full total without recording a separate payment row."""
    purchase = get_purchase(session, purchase_id)
    purchase.paid_amount = purchase.total_amount
    purchase.status = STATUS_PAID
    session.flush()
    return purchase
