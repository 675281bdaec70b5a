"""
Pricing Service - weekly price overrides layered over product master pricing

READ PATH: resolve_price() is a pure function of (product, override, date).
Nothing here consults request state or caches across calls; the batched
helpers only load rows and hand them to resolve_price().

WRITE PATH: apply_posted_prices() turns a user-entered delivery price into a
WeeklyPrice override, but only when it differs from what the resolver would
have produced anyway.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable

from ..models import Product, WeeklyPrice
from ..validation import money
from backoffice.time_utils import week_bounds

logger = logging.getLogger(__name__)

ZERO = Decimal("0")

# Posted prices closer than this to the computed default are not stored.
PRICE_TOLERANCE = Decimal("0.005")


@dataclass(frozen=True)
class PriceResult:
    product_id: int
    cost: Decimal
    markup: Decimal
    delivery_fee: Decimal
    delivery_price: Decimal
    override_id: int | None = None

    @property
    def has_override(self) -> bool:
        return self.override_id is not None

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "cost": str(self.cost),
            "markup": str(self.markup),
            "delivery_fee": str(self.delivery_fee),
            "delivery_price": str(self.delivery_price),
            "override_id": self.override_id,
            "has_override": self.has_override,
        }


def _dec(value) -> Decimal:
    return ZERO if value is None else Decimal(value)


def _override_sort_key(wp: WeeklyPrice):
    return (wp.effective_from, wp.id or 0)


def pick_override(candidates: Iterable[WeeklyPrice], on_date: date) -> WeeklyPrice | None:
    """
    Choose the override in force on `on_date`.

    Stored ranges may overlap; the latest effective_from wins, then the highest id.
    """
    covering = [wp for wp in candidates if wp.covers(on_date)]
    if not covering:
        return None
    return max(covering, key=_override_sort_key)


def resolve_price(product: Product | None, override: WeeklyPrice | None, on_date: date) -> PriceResult:
    """
    Effective (cost, markup, delivery_fee, delivery_price) for a product on a date.

    1. Start from the product's master cost / markup / delivery fee.
    2. Ignore the override unless its range covers on_date.
    3. cost_override / delivery_fee_override replace their master value when set.
    4. Markup: override.markup if non-zero; else base_price - cost when both are
       positive (rows saved before markup was stored); else master markup.
    5. A stored delivery_price > 0 wins over recomputation so manually set
       prices survive; otherwise price = cost + markup + delivery_fee.
    """
    cost = _dec(product.unit_cost) if product is not None else ZERO
    markup = _dec(product.markup) if product is not None else ZERO
    delivery_fee = _dec(product.delivery_fee) if product is not None else ZERO
    product_id = product.id if product is not None else (override.product_id if override is not None else None)

    if override is None or not override.covers(on_date):
        return PriceResult(
            product_id=product_id,
            cost=cost,
            markup=markup,
            delivery_fee=delivery_fee,
            delivery_price=cost + markup + delivery_fee,
        )

    if override.cost_override is not None:
        cost = Decimal(override.cost_override)
    if override.delivery_fee_override is not None:
        delivery_fee = Decimal(override.delivery_fee_override)

    override_markup = _dec(override.markup)
    base_price = _dec(override.base_price)
    if override_markup != 0:
        markup = override_markup
    elif base_price > 0 and cost > 0:
        markup = base_price - cost

    stored_price = _dec(override.delivery_price)
    price = stored_price if stored_price > 0 else cost + markup + delivery_fee

    return PriceResult(
        product_id=product_id,
        cost=cost,
        markup=markup,
        delivery_fee=delivery_fee,
        delivery_price=price,
        override_id=override.id,
    )


def load_override_candidates(session, product_ids: Iterable[int], on_date: date) -> dict[int, list[WeeklyPrice]]:
    """All overrides covering on_date, grouped by product, best first."""
    ids = list(set(product_ids))
    if not ids:
        return {}

    rows = (
        session.query(WeeklyPrice)
        .filter(
            WeeklyPrice.product_id.in_(ids),
            WeeklyPrice.effective_from <= on_date,
            WeeklyPrice.effective_to >= on_date,
        )
        .order_by(WeeklyPrice.product_id, WeeklyPrice.effective_from.desc(), WeeklyPrice.id.desc())
        .all()
    )

    grouped: dict[int, list[WeeklyPrice]] = {}
    for wp in rows:
        grouped.setdefault(wp.product_id, []).append(wp)
    return grouped


def load_overrides(session, product_ids: Iterable[int], on_date: date) -> dict[int, WeeklyPrice]:
    return {
        pid: candidates[0]
        for pid, candidates in load_override_candidates(session, product_ids, on_date).items()
    }


def load_products(session, product_ids: Iterable[int]) -> dict[int, Product]:
    ids = list(set(product_ids))
    if not ids:
        return {}
    return {p.id: p for p in session.query(Product).filter(Product.id.in_(ids)).all()}


def resolve_prices(
    session,
    product_ids: Iterable[int],
    on_date: date,
    *,
    products: dict[int, Product] | None = None,
) -> dict[int, PriceResult]:
    """
    Batched read path. Unknown product ids resolve from their override alone
    (zero master values), or to an all-zero price when there is none.
    """
    ids = list(set(product_ids))
    products = products if products is not None else load_products(session, ids)
    overrides = load_overrides(session, ids, on_date)

    results: dict[int, PriceResult] = {}
    for pid in ids:
        result = resolve_price(products.get(pid), overrides.get(pid), on_date)
        if result.product_id is None:
            result = PriceResult(pid, ZERO, ZERO, ZERO, ZERO)
        results[pid] = result
    return results


def apply_posted_prices(session, on_date: date, posted_prices: dict[int, Decimal] | None) -> list[WeeklyPrice]:
    """
    Store user-entered delivery prices as weekly overrides.

    - price <= 0 means "no price entered" and is skipped
    - unknown products are skipped
    - a price within PRICE_TOLERANCE of the resolver default writes nothing
    - otherwise markup is re-derived so that cost + markup + fee == posted price,
      updating the override in force or creating one for the Monday..Sunday week

    Overlapping overrides shadowed by the winner are deleted for every product
    touched here. Flushes; never commits.
    """
    if not posted_prices:
        return []

    week_start, week_end = week_bounds(on_date)
    pids = list(posted_prices.keys())

    products = load_products(session, pids)
    candidates = load_override_candidates(session, pids, on_date)

    changed: list[WeeklyPrice] = []
    for pid, posted in posted_prices.items():
        posted = Decimal(posted)
        if posted <= 0:
            continue
        product = products.get(pid)
        if product is None:
            continue

        group = candidates.get(pid, [])
        wp = group[0] if group else None

        for shadowed in group[1:]:
            logger.info(
                "Removing shadowed weekly price id=%s for product %s on %s (kept id=%s)",
                shadowed.id, pid, on_date, wp.id,
            )
            session.delete(shadowed)

        current = resolve_price(product, wp, on_date)
        if abs(posted - current.delivery_price) < PRICE_TOLERANCE:
            continue

        new_markup = money(posted - current.cost - current.delivery_fee)
        new_base = money(current.cost + new_markup)

        if wp is not None:
            wp.markup = new_markup
            wp.base_price = new_base
            wp.delivery_price = money(posted)
        else:
            wp = WeeklyPrice(
                product_id=pid,
                effective_from=week_start,
                effective_to=week_end,
                markup=new_markup,
                base_price=new_base,
                delivery_price=money(posted),
            )
            session.add(wp)
        changed.append(wp)

    session.flush()
    return changed


def price_versus(session, target_date: date) -> dict:
    """
    Price comparison screen: every active product's resolved pricing for the
    week containing target_date.
    """
    week_start, week_end = week_bounds(target_date)
    products = (
        session.query(Product)
        .filter(Product.is_active.is_(True))
        .order_by(Product.name.asc(), Product.id.asc())
        .all()
    )
    product_map = {p.id: p for p in products}
    resolved = resolve_prices(session, product_map.keys(), target_date, products=product_map)

    items = []
    for p in products:
        price = resolved[p.id]
        items.append({
            "product_id": p.id,
            "product_name": p.name,
            "unit": p.unit,
            "master_cost": str(p.unit_cost),
            "cost": str(price.cost),
            "markup": str(price.markup),
            "delivery_fee": str(price.delivery_fee),
            "delivery_price": str(price.delivery_price),
            "has_weekly_record": price.has_override,
        })

    return {
        "target_date": target_date.isoformat(),
        "week_start": week_start.isoformat(),
        "week_end": week_end.isoformat(),
        "items": items,
    }


def save_price_versus(session, target_date: date, markups: dict[int, Decimal]) -> list[WeeklyPrice]:
    """
    Persist markups edited on the comparison screen.

    Each markup becomes a posted price (effective cost + markup + effective fee)
    and goes through the same write path as the order screens.
    """
    if not markups:
        return []

    resolved = resolve_prices(session, markups.keys(), target_date)
    posted: dict[int, Decimal] = {}
    for pid, markup in markups.items():
        current = resolved.get(pid)
        if current is None:
            continue
        posted[pid] = current.cost + Decimal(markup) + current.delivery_fee

    return apply_posted_prices(session, target_date, posted)


def clone_last_week(session, on_date: date) -> list[WeeklyPrice]:
    """
    Copy last week's overrides into the week containing on_date for products
    that have no row starting this week yet. Flushes; never commits.
    """
    this_start, this_end = week_bounds(on_date)
    last_start = this_start - timedelta(days=7)

    last_week = (
        session.query(WeeklyPrice)
        .filter(WeeklyPrice.effective_from == last_start)
        .order_by(WeeklyPrice.product_id, WeeklyPrice.id.desc())
        .all()
    )
    already = {
        pid for (pid,) in session.query(WeeklyPrice.product_id)
        .filter(WeeklyPrice.effective_from == this_start)
        .all()
    }

    created: list[WeeklyPrice] = []
    for wp in last_week:
        if wp.product_id in already:
            continue
        clone = WeeklyPrice(
            product_id=wp.product_id,
            effective_from=this_start,
            effective_to=this_end,
            cost_override=wp.cost_override,
            delivery_fee_override=wp.delivery_fee_override,
            markup=wp.markup,
            base_price=wp.base_price,
            delivery_price=wp.delivery_price,
        )
        session.add(clone)
        created.append(clone)
        already.add(wp.product_id)

    session.flush()
    return created
