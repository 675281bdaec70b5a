"""
Receipt Service - day receipts per outlet and unpaid-draft reconciliation

FLOOR RULE: quantities on PAID receipts are locked. The single UNPAID receipt
for (outlet, day) only ever carries the delta above them:

    unpaid = max(round(requested) - paid, 0)

Nothing here commits. Callers own the transaction and pass the session in.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Iterable, Sequence

from ..models import Customer, Product, Receipt, ReceiptLine, Payment
from ..models.receipts import (
    STATUS_UNPAID,
    STATUS_PAID,
    STATUS_VOID,
    RECEIPT_TYPE_DELIVERY,
    METHOD_CASH,
)
from ..validation import ConflictError, NotFoundError, money
from backoffice.time_utils import day_bounds, utcnow
from .concurrency import lock_for_update
from .outlet_service import receipt_matches_outlet, receipt_outlet_filter
from .pricing_service import PriceResult
from .sequence_service import next_receipt_number

logger = logging.getLogger(__name__)

UNKNOWN_ITEM_NAME = "Unknown"


@dataclass
class OutletDay:
    """Non-void receipts of one outlet for one calendar day."""
    outlet: Customer
    receipts: list[Receipt] = field(default_factory=list)

    @property
    def draft(self) -> Receipt | None:
        for receipt in self.receipts:
            if receipt.status == STATUS_UNPAID:
                return receipt
        return None

    @property
    def paid_quantities(self) -> dict[int, int]:
        totals: dict[int, int] = {}
        for receipt in self.receipts:
            if receipt.status != STATUS_PAID:
                continue
            for line in receipt.lines:
                if line.product_id is None:
                    continue
                totals[line.product_id] = totals.get(line.product_id, 0) + line.quantity
        return totals


def load_day_receipts(session, outlets: Sequence[Customer], on_date: date, *, lock: bool = False) -> dict[int, OutletDay]:
    """
    Non-void receipts dated on_date for each outlet, keyed by outlet id.

    Legacy receipts without customer_id are attributed by name. With
    lock=True the rows are selected FOR UPDATE.
    """
    days = {outlet.id: OutletDay(outlet) for outlet in outlets}
    if not outlets:
        return days

    start, end = day_bounds(on_date)
    query = (
        session.query(Receipt)
        .filter(
            Receipt.date >= start,
            Receipt.date < end,
            Receipt.status != STATUS_VOID,
            receipt_outlet_filter(outlets),
        )
        .order_by(Receipt.id)
    )
    if lock:
        query = lock_for_update(query)

    for receipt in query.all():
        for outlet in outlets:
            if receipt_matches_outlet(receipt, outlet):
                days[outlet.id].receipts.append(receipt)
                break
    return days


def _new_draft(session, outlet: Customer, on_date: date, created_by: str | None) -> Receipt:
    start, _ = day_bounds(on_date)
    receipt = Receipt(
        receipt_number=next_receipt_number(session, year=on_date.year),
        date=start,
        customer_id=outlet.id,
        customer_name=outlet.name,
        customer_address=outlet.address,
        contact_number=outlet.contact_number,
        total_amount=Decimal("0"),
        paid_amount=Decimal("0"),
        receipt_type=RECEIPT_TYPE_DELIVERY,
        status=STATUS_UNPAID,
        created_by=created_by,
    )
    session.add(receipt)
    logger.info("Created draft receipt %s for outlet %s on %s", receipt.receipt_number, outlet.id, on_date)
    return receipt


def reconcile_outlet(
    session,
    day: OutletDay,
    on_date: date,
    targets: dict[int, int],
    products: dict[int, Product],
    prices: dict[int, PriceResult],
    posted_prices: dict[int, Decimal] | None = None,
    *,
    remove_missing: bool = False,
    created_by: str | None = None,
) -> Receipt | None:
    """
    Rewrite the outlet's unpaid draft so that paid + unpaid == target per product.

    targets: product_id -> whole-unit target (already rounded and clamped).
    prices: resolver output for every product in targets.
    posted_prices: user-entered prices; used for the line price when > 0.
    remove_missing: also drop draft lines for products not in targets.

    Returns the draft, or None when the outlet was skipped because nothing
    needs an unpaid line and no draft exists.
    """
    posted_prices = posted_prices or {}
    paid = day.paid_quantities
    unpaid = {pid: max(target - paid.get(pid, 0), 0) for pid, target in targets.items()}

    draft = day.draft
    if draft is None:
        if not any(qty > 0 for qty in unpaid.values()):
            return None
        draft = _new_draft(session, day.outlet, on_date, created_by)
        day.receipts.append(draft)

    existing = {line.product_id: line for line in draft.lines if line.product_id is not None}

    for pid, qty in unpaid.items():
        line = existing.get(pid)
        if qty <= 0:
            if line is not None:
                draft.lines.remove(line)
            continue

        price_info = prices.get(pid)
        posted = posted_prices.get(pid)
        if posted is not None and posted > 0:
            price = money(posted)
        else:
            price = money(price_info.delivery_price) if price_info is not None else Decimal("0.00")
        cost = money(price_info.cost) if price_info is not None else Decimal("0.00")

        if line is None:
            product = products.get(pid)
            draft.lines.append(ReceiptLine(
                product_id=pid,
                item_name=product.name if product is not None else UNKNOWN_ITEM_NAME,
                unit=product.unit if product is not None else "pc",
                quantity=qty,
                price=price,
                amount=money(price * qty),
                cost_price_snapshot=cost,
            ))
        else:
            line.quantity = qty
            line.price = price
            line.amount = money(price * qty)
            line.cost_price_snapshot = cost

    if remove_missing:
        for pid, line in existing.items():
            if pid not in targets and line in draft.lines:
                draft.lines.remove(line)

    return draft


def recompute_totals(receipts: Iterable[Receipt]) -> None:
    for receipt in receipts:
        if receipt.status != STATUS_VOID:
            receipt.recompute_total()


def get_receipt(session, receipt_id: int) -> Receipt:
    receipt = session.get(Receipt, receipt_id)
    if receipt is None:
        raise NotFoundError(f"Receipt {receipt_id} not found")
    return receipt


def mark_receipt_paid(session, receipt_id: int, recorded_by: str | None = None, *, method: str = METHOD_CASH) -> Receipt:
    """
    Settle an UNPAID receipt in full: status PAID, paid_amount = total and a
    Payment row for the amount. Flushes; the caller commits.
    """
    receipt = get_receipt(session, receipt_id)
    if receipt.status != STATUS_UNPAID:
        raise ConflictError(f"Receipt {receipt.receipt_number} is {receipt.status}, not UNPAID")

    total = receipt.recompute_total()
    receipt.paid_amount = total
    receipt.status = STATUS_PAID
    receipt.payments.append(Payment(
        date=utcnow(),
        amount=total,
        method=method,
        recorded_by=recorded_by,
    ))
    session.flush()
    return receipt
