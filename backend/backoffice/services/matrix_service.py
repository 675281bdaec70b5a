"""
Matrix Service - day-level outlet x product quantity grid

save_matrix(): reconcile a posted grid against the day's receipts, all
outlets in one transaction (price overrides included).

build_matrix(): the read model for the grid. Totals and statuses per product
cover the whole outlet group; cells cover the visible page only.
"""

from __future__ import annotations

import logging
import math
from datetime import date
from decimal import Decimal

from flask import current_app

from ..config import Config
from ..models import Customer, Product
from ..models.receipts import STATUS_PAID, STATUS_RANK, STATUS_UNPAID
from ..validation import money, round_quantity
from .concurrency import run_with_retry, transaction
from .outlet_service import load_outlets, matrix_outlets
from .pricing_service import apply_posted_prices, load_products, resolve_prices
from .receipt_service import load_day_receipts, reconcile_outlet, recompute_totals

logger = logging.getLogger(__name__)

PRODUCT_NO_ORDERS = "NO_ORDERS"
PRODUCT_UNPAID = "UNPAID"
PRODUCT_PAID = "PAID"
PRODUCT_THREE_PLUS = "THREE_PLUS"
PRODUCT_NORMAL = "NORMAL"

THREE_PLUS_THRESHOLD = 3


def _save_matrix(session, on_date, quantities, prices, created_by) -> dict:
    outlets = load_outlets(session, {oid for _, oid in quantities})

    apply_posted_prices(session, on_date, prices)

    product_ids = {pid for pid, _ in quantities}
    products = load_products(session, product_ids)
    resolved = resolve_prices(session, product_ids, on_date, products=products)

    targets: dict[int, dict[int, int]] = {oid: {} for oid in outlets}
    for (pid, oid), requested in quantities.items():
        targets[oid][pid] = round_quantity(requested)

    days = load_day_receipts(session, list(outlets.values()), on_date, lock=True)

    touched = []
    for oid in sorted(targets):
        draft = reconcile_outlet(
            session,
            days[oid],
            on_date,
            targets[oid],
            products,
            resolved,
            prices,
            created_by=created_by,
        )
        if draft is not None:
            touched.append(draft)

    for day in days.values():
        recompute_totals(day.receipts)
    session.flush()

    return {
        "date": on_date.isoformat(),
        "outlets": len(outlets),
        "receipts": [r.to_dict() for r in touched],
    }


def save_matrix(
    session,
    on_date: date,
    quantities: dict[tuple[int, int], Decimal],
    prices: dict[int, Decimal] | None = None,
    *,
    created_by: str | None = None,
) -> dict:
    """
    Apply a posted day grid.

    quantities: {(product_id, outlet_id): requested quantity}
    prices: {product_id: posted delivery price}; <= 0 means "not entered"

    Unknown outlet ids raise NotFoundError before anything is written. Any
    error rolls back price overrides and receipts together.
    """
    prices = prices or {}

    def _op():
        with transaction(session):
            return _save_matrix(session, on_date, quantities, prices, created_by)

    return run_with_retry(_op, session=session)


def _page(items: list, page: int, size: int) -> tuple[list, int, int]:
    size = max(int(size), 1)
    pages = max(math.ceil(len(items) / size), 1)
    page = min(max(int(page), 1), pages)
    start = (page - 1) * size
    return items[start:start + size], page, pages


def _product_status(total: int, flags: dict | None) -> str:
    if total <= 0:
        return PRODUCT_NO_ORDERS
    if flags is not None:
        if flags["has_unpaid"]:
            return PRODUCT_UNPAID
        if flags["all_paid"]:
            return PRODUCT_PAID
    return PRODUCT_THREE_PLUS if total >= THREE_PLUS_THRESHOLD else PRODUCT_NORMAL


def build_matrix(
    session,
    on_date: date,
    page: int = 1,
    product_page: int = 1,
    *,
    with_orders_only: bool = False,
    outlet_page_size: int | None = None,
    product_page_size: int | None = None,
) -> dict:
    outlet_page_size = outlet_page_size or current_app.config.get(
        "MATRIX_OUTLET_PAGE_SIZE", Config.MATRIX_OUTLET_PAGE_SIZE
    )
    product_page_size = product_page_size or current_app.config.get(
        "MATRIX_PRODUCT_PAGE_SIZE", Config.MATRIX_PRODUCT_PAGE_SIZE
    )

    outlets: list[Customer] = matrix_outlets(session)
    products: list[Product] = (
        session.query(Product)
        .filter(Product.is_active.is_(True))
        .order_by(Product.name.asc(), Product.id.asc())
        .all()
    )

    days = load_day_receipts(session, outlets, on_date)

    # Aggregate over the whole group.
    cell_qty: dict[tuple[int, int], int] = {}
    cell_status: dict[tuple[int, int], str] = {}
    product_totals: dict[int, int] = {}
    product_flags: dict[int, dict] = {}
    outlet_has_orders: dict[int, bool] = {}

    for oid, day in days.items():
        has_orders = False
        for receipt in day.receipts:
            for line in receipt.lines:
                if line.product_id is None or line.quantity <= 0:
                    continue
                has_orders = True
                key = (line.product_id, oid)
                cell_qty[key] = cell_qty.get(key, 0) + line.quantity
                current = cell_status.get(key)
                if current is None or STATUS_RANK[receipt.status] < STATUS_RANK[current]:
                    cell_status[key] = receipt.status

                product_totals[line.product_id] = product_totals.get(line.product_id, 0) + line.quantity
                flags = product_flags.setdefault(line.product_id, {"has_unpaid": False, "all_paid": True})
                if receipt.status == STATUS_UNPAID:
                    flags["has_unpaid"] = True
                if receipt.status != STATUS_PAID:
                    flags["all_paid"] = False
        outlet_has_orders[oid] = has_orders

    prices = resolve_prices(session, [p.id for p in products], on_date, products={p.id: p for p in products})

    grand_quantity = 0
    grand_amount = Decimal("0")
    for product in products:
        qty = product_totals.get(product.id, 0)
        grand_quantity += qty
        grand_amount += prices[product.id].delivery_price * qty

    if with_orders_only:
        outlets = [o for o in outlets if outlet_has_orders.get(o.id)]

    visible_outlets, page, outlet_pages = _page(outlets, page, outlet_page_size)
    visible_products, product_page, product_pages = _page(products, product_page, product_page_size)

    product_rows = []
    for product in visible_products:
        total = product_totals.get(product.id, 0)
        price = prices[product.id]
        product_rows.append({
            "id": product.id,
            "name": product.name,
            "unit": product.unit,
            "delivery_price": str(price.delivery_price),
            "has_weekly_record": price.has_override,
            "total_quantity": total,
            "status": _product_status(total, product_flags.get(product.id)),
        })

    cells = []
    for product in visible_products:
        for outlet in visible_outlets:
            key = (product.id, outlet.id)
            if key in cell_qty:
                cells.append({
                    "product_id": product.id,
                    "outlet_id": outlet.id,
                    "quantity": cell_qty[key],
                    "status": cell_status[key],
                })

    outlet_rows = []
    for outlet in visible_outlets:
        row = outlet.to_dict()
        row["has_orders"] = outlet_has_orders.get(outlet.id, False)
        outlet_rows.append(row)

    return {
        "date": on_date.isoformat(),
        "outlets": outlet_rows,
        "products": product_rows,
        "cells": cells,
        "grand_quantity": grand_quantity,
        "grand_amount": str(money(grand_amount)),
        "pagination": {
            "outlet_page": page,
            "outlet_pages": outlet_pages,
            "outlet_total": len(outlets),
            "product_page": product_page,
            "product_pages": product_pages,
            "product_total": len(products),
        },
    }
