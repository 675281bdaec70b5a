"""
Profit Service - period profit summary and partner split

    gross   = sum((line.price - cost) * line.quantity)
              cost = cost_price_snapshot, or product.unit_cost when the snapshot is 0
    net     = gross - deductions - capital funds
    share_n = net * percent_n / 100
    final_n = share_n - partner n purchases

The ledger lists deductions and partner purchases as outflows, oldest first,
with a running balance starting from partner 1's opening balance.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy.orm import selectinload

from ..models import Deduction, PartnerBalanceConfig, PartnerCapital, PartnerPurchase, Receipt, ReceiptLine
from ..models.receipts import STATUS_PAID, STATUS_UNPAID, STATUS_VOID
from ..validation import ValidationError, money
from backoffice.time_utils import day_bounds, to_iso_datetime

ZERO = Decimal("0")
HUNDRED = Decimal("100")

DEFAULT_PERCENT_FEE = Decimal("1.0")
DEFAULT_PARTNER1_SHARE = Decimal("40")

TOP_ITEMS_LIMIT = 20


def _period(start: date, end: date) -> tuple[datetime, datetime]:
    if end < start:
        raise ValidationError("end date must not be before start date")
    return day_bounds(start)[0], day_bounds(end)[1]


def _line_cost(line: ReceiptLine) -> Decimal:
    cost = line.cost_price_snapshot or ZERO
    if cost == 0 and line.product is not None:
        cost = line.product.unit_cost or ZERO
    return cost


def profit_summary(
    session,
    start: date,
    end: date,
    include_unpaid: bool = True,
    percent_fee: Decimal = DEFAULT_PERCENT_FEE,
    partner1_share: Decimal = DEFAULT_PARTNER1_SHARE,
) -> dict:
    period_start, period_end = _period(start, end)
    partner1_share = Decimal(partner1_share)
    partner2_share = HUNDRED - partner1_share
    percent_fee = Decimal(percent_fee)

    query = (
        session.query(Receipt)
        .options(selectinload(Receipt.lines).selectinload(ReceiptLine.product))
        .filter(Receipt.date >= period_start, Receipt.date < period_end, Receipt.status != STATUS_VOID)
        .order_by(Receipt.date, Receipt.id)
    )
    if not include_unpaid:
        query = query.filter(Receipt.status == STATUS_PAID)
    receipts = query.all()

    deductions = (
        session.query(Deduction)
        .filter(Deduction.date >= period_start, Deduction.date < period_end)
        .order_by(Deduction.date, Deduction.id)
        .all()
    )
    purchases = (
        session.query(PartnerPurchase)
        .filter(PartnerPurchase.date >= period_start, PartnerPurchase.date < period_end)
        .order_by(PartnerPurchase.date, PartnerPurchase.id)
        .all()
    )
    capitals = (
        session.query(PartnerCapital)
        .filter(PartnerCapital.date >= period_start, PartnerCapital.date < period_end)
        .order_by(PartnerCapital.date, PartnerCapital.id)
        .all()
    )
    balances = session.query(PartnerBalanceConfig).order_by(PartnerBalanceConfig.partner_name).all()

    partner1 = balances[0] if len(balances) >= 1 else None
    partner2 = balances[1] if len(balances) >= 2 else None
    partner1_name = partner1.partner_name if partner1 else "Partner 1"
    partner2_name = partner2.partner_name if partner2 else "Partner 2"
    partner1_opening = partner1.opening_balance if partner1 else ZERO
    partner2_opening = partner2.opening_balance if partner2 else ZERO

    # Per-day sales, fee and gross profit.
    by_day: dict[date, list[Receipt]] = defaultdict(list)
    for receipt in receipts:
        by_day[receipt.date.date()].append(receipt)

    daily = []
    for day in sorted(by_day):
        day_receipts = by_day[day]
        sales = sum((r.total_amount for r in day_receipts), ZERO)
        gross = ZERO
        for receipt in day_receipts:
            for line in receipt.lines:
                gross += (line.price - _line_cost(line)) * line.quantity
        daily.append({
            "date": day.isoformat(),
            "sales": sales,
            "fee": sales * percent_fee / HUNDRED,
            "gross_profit": gross,
        })

    total_sales = sum((d["sales"] for d in daily), ZERO)
    total_fees = sum((d["fee"] for d in daily), ZERO)
    total_gross = sum((d["gross_profit"] for d in daily), ZERO)
    total_deductions = sum((d.amount for d in deductions), ZERO)
    total_capital = sum((c.amount for c in capitals), ZERO)

    net = total_gross - total_deductions - total_capital
    share1 = net * partner1_share / HUNDRED
    share2 = net * partner2_share / HUNDRED
    purchases1 = sum((p.amount for p in purchases if p.partner_name == partner1_name), ZERO)
    purchases2 = sum((p.amount for p in purchases if p.partner_name == partner2_name), ZERO)

    ledger_rows = [
        (d.date, d.description, -d.amount) for d in deductions
    ] + [
        (p.date, f"{p.partner_name}: {p.notes or ''}".rstrip(), -p.amount) for p in purchases
    ]
    ledger_rows.sort(key=lambda row: row[0])

    running = partner1_opening
    ledger = []
    for when, description, amount in ledger_rows:
        running += amount
        ledger.append({
            "date": to_iso_datetime(when),
            "description": description,
            "amount": str(money(amount)),
            "balance": str(money(running)),
        })

    top_items: dict[str, dict] = {}
    outlets: dict[str, dict] = {}
    for receipt in receipts:
        for line in receipt.lines:
            item = top_items.setdefault(line.item_name, {"item_name": line.item_name, "quantity": 0, "amount": ZERO})
            item["quantity"] += line.quantity
            item["amount"] += line.amount
        outlet = outlets.setdefault(
            receipt.customer_name,
            {"outlet_name": receipt.customer_name, "paid": ZERO, "unpaid": ZERO, "total": ZERO},
        )
        outlet["total"] += receipt.total_amount
        if receipt.status == STATUS_PAID:
            outlet["paid"] += receipt.total_amount
        elif receipt.status == STATUS_UNPAID:
            outlet["unpaid"] += receipt.total_amount

    top = sorted(top_items.values(), key=lambda i: (-i["quantity"], i["item_name"]))[:TOP_ITEMS_LIMIT]
    outlet_rows = sorted(outlets.values(), key=lambda o: (-o["total"], o["outlet_name"]))

    return {
        "start": start.isoformat(),
        "end": end.isoformat(),
        "include_unpaid": include_unpaid,
        "percent_fee": str(percent_fee),
        "daily": [
            {
                "date": d["date"],
                "sales": str(money(d["sales"])),
                "fee": str(money(d["fee"])),
                "gross_profit": str(money(d["gross_profit"])),
            }
            for d in daily
        ],
        "total_sales": str(money(total_sales)),
        "total_fees": str(money(total_fees)),
        "total_gross_profit": str(money(total_gross)),
        "total_deductions": str(money(total_deductions)),
        "total_capital": str(money(total_capital)),
        "net_profit": str(money(net)),
        "partners": [
            {
                "name": partner1_name,
                "share_percent": str(partner1_share),
                "opening_balance": str(money(partner1_opening)),
                "share": str(money(share1)),
                "purchases": str(money(purchases1)),
                "final": str(money(share1 - purchases1)),
            },
            {
                "name": partner2_name,
                "share_percent": str(partner2_share),
                "opening_balance": str(money(partner2_opening)),
                "share": str(money(share2)),
                "purchases": str(money(purchases2)),
                "final": str(money(share2 - purchases2)),
            },
        ],
        "ledger": ledger,
        "total_paid_receipts": str(money(sum(
            (r.total_amount for r in receipts if r.status == STATUS_PAID), ZERO
        ))),
        "total_unpaid_receipts": str(money(sum(
            (r.total_amount for r in receipts if r.status == STATUS_UNPAID), ZERO
        ))),
        "receipt_count": len(receipts),
        "items_sold": sum(line.quantity for r in receipts for line in r.lines),
        "top_items": [
            {"item_name": i["item_name"], "quantity": i["quantity"], "amount": str(money(i["amount"]))}
            for i in top
        ],
        "outlets": [
            {
                "outlet_name": o["outlet_name"],
                "paid": str(money(o["paid"])),
                "unpaid": str(money(o["unpaid"])),
                "total": str(money(o["total"])),
            }
            for o in outlet_rows
        ],
    }


def _require_positive(amount, field: str) -> Decimal:
    amount = Decimal(amount)
    if amount <= 0:
        raise ValidationError(f"{field} must be greater than 0")
    return money(amount)


def add_deduction(
    session,
    *,
    on_date: datetime,
    description: str,
    amount: Decimal,
    category: str | None = None,
    applied_to: str | None = None,
) -> Deduction:
    if not (description or "").strip():
        raise ValidationError("description is required")
    deduction = Deduction(
        date=on_date,
        description=description.strip(),
        amount=_require_positive(amount, "amount"),
        category=category,
        applied_to=applied_to or "General",
    )
    session.add(deduction)
    session.flush()
    return deduction


def add_capital(session, *, on_date: datetime, amount: Decimal, description: str | None = None) -> PartnerCapital:
    capital = PartnerCapital(
        date=on_date,
        amount=_require_positive(amount, "amount"),
        description=(description or "").strip() or "Capital Fund",
    )
    session.add(capital)
    session.flush()
    return capital


def add_partner_purchase(
    session,
    *,
    partner_name: str,
    on_date: datetime,
    amount: Decimal,
    notes: str | None = None,
) -> PartnerPurchase:
    if not (partner_name or "").strip():
        raise ValidationError("partner_name is required")
    purchase = PartnerPurchase(
        partner_name=partner_name.strip(),
        date=on_date,
        amount=_require_positive(amount, "amount"),
        notes=notes,
    )
    session.add(purchase)
    session.flush()
    return purchase
