from __future__ import annotations

from decimal import Decimal

from ..extensions import db
from backoffice.time_utils import to_iso_datetime


# Payment status shared by receipts and purchases.
# Order matters: the matrix shows the lowest-ranked status present in a cell.
STATUS_UNPAID = "UNPAID"
STATUS_PARTIAL = "PARTIAL"
STATUS_PAID = "PAID"
STATUS_VOID = "VOID"

STATUS_RANK = {
    STATUS_UNPAID: 0,
    STATUS_PARTIAL: 1,
    STATUS_PAID: 2,
    STATUS_VOID: 3,
}

RECEIPT_TYPE_SALE = "SALE"  # walk-in
RECEIPT_TYPE_DELIVERY = "DELIVERY"

METHOD_CASH = "CASH"
METHOD_GCASH = "GCASH"
METHOD_BANK_TRANSFER = "BANK_TRANSFER"
METHOD_CHECK = "CHECK"

PAYMENT_METHODS = {METHOD_CASH, METHOD_GCASH, METHOD_BANK_TRANSFER, METHOD_CHECK}


class Receipt(db.Model):
    """
    Delivery / sale document for one outlet on one date.

    OUTLET REFERENCE: customer_id is the real link. customer_name is a snapshot,
    and for receipts created before customer_id existed it is the only link.

    INVARIANT: at most one UNPAID receipt per (outlet, calendar day). The
    matrix and outlet-order reconcilers reuse it or create exactly one.
    PAID receipts are never edited by the reconcilers.
    """
    __tablename__ = "receipts"
    __table_args__ = (
        db.Index("ix_receipts_date_status", "date", "status"),
        db.Index("ix_receipts_customer_date", "customer_id", "date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    receipt_number = db.Column(db.String(20), nullable=False, unique=True)  # DR-2026-005001

    date = db.Column(db.DateTime, nullable=False, index=True)

    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=True)
    customer_name = db.Column(db.String(100), nullable=False, default="")
    customer_address = db.Column(db.String(200), nullable=True)
    contact_number = db.Column(db.String(50), nullable=True)

    total_amount = db.Column(db.Numeric(18, 2), nullable=False, default=Decimal("0"))
    paid_amount = db.Column(db.Numeric(18, 2), nullable=False, default=Decimal("0"))

    receipt_type = db.Column(db.String(16), nullable=False, default=RECEIPT_TYPE_DELIVERY)
    status = db.Column(db.String(16), nullable=False, default=STATUS_UNPAID, index=True)

    created_by = db.Column(db.String(100), nullable=True)
    received_by = db.Column(db.String(100), nullable=True)  # signature name

    customer = db.relationship("Customer", backref=db.backref("receipts", lazy=True))
    lines = db.relationship(
        "ReceiptLine",
        back_populates="receipt",
        cascade="all, delete-orphan",
        order_by="ReceiptLine.id",
    )
    payments = db.relationship(
        "Payment",
        back_populates="receipt",
        cascade="all, delete-orphan",
        order_by="Payment.id",
    )

    def recompute_total(self) -> Decimal:
        self.total_amount = sum((line.amount for line in self.lines), Decimal("0"))
        return self.total_amount

    def __repr__(self) -> str:
        return f"<Receipt {self.receipt_number} status={self.status}>"

    def to_dict(self, include_lines: bool = False) -> dict:
        data = {
            "id": self.id,
            "receipt_number": self.receipt_number,
            "date": to_iso_datetime(self.date),
            "customer_id": self.customer_id,
            "customer_name": self.customer_name,
            "customer_address": self.customer_address,
            "contact_number": self.contact_number,
            "total_amount": str(self.total_amount),
            "paid_amount": str(self.paid_amount),
            "receipt_type": self.receipt_type,
            "status": self.status,
            "created_by": self.created_by,
            "received_by": self.received_by,
        }
        if include_lines:
            data["lines"] = [line.to_dict() for line in self.lines]
            data["payments"] = [payment.to_dict() for payment in self.payments]
        return data


class ReceiptLine(db.Model):
    """
    One product or free-text line on a receipt.

    price and cost_price_snapshot are frozen at sale time so profit reports
    do not move when catalog costs change later.
    """
    __tablename__ = "receipt_lines"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    receipt_id = db.Column(db.Integer, db.ForeignKey("receipts.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=True, index=True)

    item_name = db.Column(db.String(100), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    unit = db.Column(db.String(20), nullable=False, default="pc")

    price = db.Column(db.Numeric(18, 2), nullable=False)
    cost_price_snapshot = db.Column(db.Numeric(18, 2), nullable=False, default=Decimal("0"))
    amount = db.Column(db.Numeric(18, 2), nullable=False)  # quantity * price

    receipt = db.relationship("Receipt", back_populates="lines")
    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "receipt_id": self.receipt_id,
            "product_id": self.product_id,
            "item_name": self.item_name,
            "quantity": self.quantity,
            "unit": self.unit,
            "price": str(self.price),
            "cost_price_snapshot": str(self.cost_price_snapshot),
            "amount": str(self.amount),
        }


class Payment(db.Model):
    """Money received against a receipt."""
    __tablename__ = "payments"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    receipt_id = db.Column(db.Integer, db.ForeignKey("receipts.id"), nullable=False, index=True)

    date = db.Column(db.DateTime, nullable=False)
    amount = db.Column(db.Numeric(18, 2), nullable=False)
    method = db.Column(db.String(16), nullable=False, default=METHOD_CASH)  # CASH, GCASH, BANK_TRANSFER, CHECK
    reference_no = db.Column(db.String(50), nullable=True)
    recorded_by = db.Column(db.String(100), nullable=True)

    receipt = db.relationship("Receipt", back_populates="payments")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "receipt_id": self.receipt_id,
            "date": to_iso_datetime(self.date),
            "amount": str(self.amount),
            "method": self.method,
            "reference_no": self.reference_no,
            "recorded_by": self.recorded_by,
        }


class ReceiptSequence(db.Model):
    """
    Per-year running counter behind DR-{year}-{number} receipt numbers.

    Incremented with a single UPDATE inside the caller's transaction.
    """
    __tablename__ = "receipt_sequences"
    __table_args__ = (
        db.UniqueConstraint("year", name="uq_receipt_sequences_year"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    year = db.Column(db.Integer, nullable=False)
    last_number = db.Column(db.Integer, nullable=False, default=0)

    def to_dict(self) -> dict:
        return {"id": self.id, "year": self.year, "last_number": self.last_number}
