# Overview: Single-outlet order entry for one day, plus the all-outlets price view.

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal

from ..models import Product
from ..validation import ValidationError, round_quantity
from .concurrency import run_with_retry, transaction
from .outlet_service import active_outlets, get_outlet
from .pricing_service import apply_posted_prices, load_products, resolve_prices
from .receipt_service import load_day_receipts, reconcile_outlet, recompute_totals

logger = logging.getLogger(__name__)


def get_outlet_order(session, on_date: date, customer_id: int | None = None, all_outlets: bool = False) -> dict:
    """
    Order-entry screen data.

    Quantities are summed over the selected outlet's non-void receipts, or
    over every active outlet when all_outlets is set. A line price replaces
    the displayed price only for products without a weekly record.
    """
    outlets = active_outlets(session)
    if customer_id is None and outlets:
        customer_id = outlets[0].id

    products = (
        session.query(Product)
        .filter(Product.is_active.is_(True))
        .order_by(Product.name.asc(), Product.id.asc())
        .all()
    )
    resolved = resolve_prices(session, [p.id for p in products], on_date, products={p.id: p for p in products})
    display_prices = {pid: price.delivery_price for pid, price in resolved.items()}

    if all_outlets:
        selected = outlets
    else:
        selected = [o for o in outlets if o.id == customer_id]

    quantities: dict[int, int] = {}
    for day in load_day_receipts(session, selected, on_date).values():
        for receipt in day.receipts:
            for line in receipt.lines:
                if line.product_id is None:
                    continue
                quantities[line.product_id] = quantities.get(line.product_id, 0) + line.quantity
                price = resolved.get(line.product_id)
                if line.price > 0 and price is not None and not price.has_override:
                    display_prices[line.product_id] = line.price

    return {
        "date": on_date.isoformat(),
        "all_outlets": all_outlets,
        "selected_customer_id": customer_id,
        "outlets": [o.to_dict() for o in outlets],
        "products": [
            {
                "id": p.id,
                "name": p.name,
                "unit": p.unit,
                "price": str(display_prices[p.id]),
                "has_weekly_record": resolved[p.id].has_override,
                "quantity": quantities.get(p.id, 0),
            }
            for p in products
        ],
    }


def _orphan_price_errors(quantities: dict[int, Decimal], prices: dict[int, Decimal]) -> list[str]:
    errors = []
    for pid, price in sorted(prices.items()):
        if price > 0 and quantities.get(pid, Decimal("0")) <= 0:
            errors.append(
                f"A price was entered for product {pid} but its quantity is 0. Enter a quantity."
            )
    return errors


def _save_outlet_order(session, on_date, customer_id, quantities, prices, created_by):
    outlet = get_outlet(session, customer_id)

    product_ids = set(quantities)
    products = load_products(session, product_ids)
    resolved = resolve_prices(session, product_ids, on_date, products=products)
    targets = {pid: round_quantity(qty) for pid, qty in quantities.items()}

    days = load_day_receipts(session, [outlet], on_date, lock=True)
    day = days[outlet.id]
    draft = reconcile_outlet(
        session,
        day,
        on_date,
        targets,
        products,
        resolved,
        prices,
        remove_missing=True,
        created_by=created_by,
    )
    recompute_totals(day.receipts)
    session.flush()

    return {
        "date": on_date.isoformat(),
        "customer_id": outlet.id,
        "receipt": draft.to_dict(include_lines=True) if draft is not None else None,
    }


def save_outlet_order(
    session,
    on_date: date,
    customer_id: int | None,
    quantities: dict[int, Decimal],
    prices: dict[int, Decimal] | None = None,
    all_outlets: bool = False,
    *,
    created_by: str | None = None,
) -> dict:
    """
    Save one outlet's order for the day.

    all_outlets: only the posted prices are stored, as weekly overrides.
    Otherwise every "price without quantity" entry is reported in a single
    ValidationError before anything is written, and the outlet's unpaid draft
    is reconciled like a matrix column. Draft lines for products that were
    not posted are removed as well.
    """
    prices = prices or {}

    if all_outlets:
        def _prices_only():
            with transaction(session):
                changed = apply_posted_prices(session, on_date, prices)
                return {"date": on_date.isoformat(), "weekly_prices": [wp.to_dict() for wp in changed]}

        return run_with_retry(_prices_only, session=session)

    errors = _orphan_price_errors(quantities, prices)
    if errors:
        raise ValidationError("Order has prices without quantities", errors)
    if customer_id is None:
        raise ValidationError("customer_id is required")

    def _op():
        with transaction(session):
            return _save_outlet_order(session, on_date, customer_id, quantities, prices, created_by)

    return run_with_retry(_op, session=session)
