from __future__ import annotations

from decimal import Decimal

from ..extensions import db
from backoffice.time_utils import to_iso_datetime
from .receipts import STATUS_UNPAID, METHOD_CASH


class Supplier(db.Model):
    __tablename__ = "suppliers"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False, index=True)
    contact_person = db.Column(db.String(100), nullable=True)
    contact_number = db.Column(db.String(50), nullable=True)
    address = db.Column(db.String(200), nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "contact_person": self.contact_person,
            "contact_number": self.contact_number,
            "address": self.address,
            "is_active": self.is_active,
        }


class Purchase(db.Model):
    """
    Purchase order from a supplier.

    supplier_name / supplier_address / contact_number are snapshots taken when
    the purchase is recorded.
    """
    __tablename__ = "purchases"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    purchase_number = db.Column(db.String(20), nullable=False, unique=True)  # PO-2026-000001

    date = db.Column(db.DateTime, nullable=False, index=True)

    supplier_id = db.Column(db.Integer, db.ForeignKey("suppliers.id"), nullable=True, index=True)
    supplier_name = db.Column(db.String(120), nullable=False, default="")
    supplier_address = db.Column(db.String(200), nullable=True)
    contact_number = db.Column(db.String(50), nullable=True)

    total_amount = db.Column(db.Numeric(18, 2), nullable=False, default=Decimal("0"))
    paid_amount = db.Column(db.Numeric(18, 2), nullable=False, default=Decimal("0"))
    status = db.Column(db.String(16), nullable=False, default=STATUS_UNPAID, index=True)

    notes = db.Column(db.String(200), nullable=True)
    created_by = db.Column(db.String(100), nullable=True)

    supplier = db.relationship("Supplier", backref=db.backref("purchases", lazy=True))
    lines = db.relationship(
        "PurchaseLine",
        back_populates="purchase",
        cascade="all, delete-orphan",
        order_by="PurchaseLine.id",
    )
    payments = db.relationship(
        "PurchasePayment",
        back_populates="purchase",
        cascade="all, delete-orphan",
        order_by="PurchasePayment.id",
    )

    @property
    def balance(self) -> Decimal:
        return self.total_amount - self.paid_amount

    def to_dict(self, include_lines: bool = False) -> dict:
        data = {
            "id": self.id,
            "purchase_number": self.purchase_number,
            "date": to_iso_datetime(self.date),
            "supplier_id": self.supplier_id,
            "supplier_name": self.supplier_name,
            "supplier_address": self.supplier_address,
            "contact_number": self.contact_number,
            "total_amount": str(self.total_amount),
            "paid_amount": str(self.paid_amount),
            "balance": str(self.balance),
            "status": self.status,
            "notes": self.notes,
            "created_by": self.created_by,
        }
        if include_lines:
            data["lines"] = [line.to_dict() for line in self.lines]
            data["payments"] = [payment.to_dict() for payment in self.payments]
        return data


class PurchaseLine(db.Model):
    __tablename__ = "purchase_lines"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    purchase_id = db.Column(db.Integer, db.ForeignKey("purchases.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=True)

    item_name = db.Column(db.String(120), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    unit = db.Column(db.String(20), nullable=False, default="pc")
    cost = db.Column(db.Numeric(18, 2), nullable=False)
    amount = db.Column(db.Numeric(18, 2), nullable=False)

    purchase = db.relationship("Purchase", back_populates="lines")
    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "purchase_id": self.purchase_id,
            "product_id": self.product_id,
            "item_name": self.item_name,
            "quantity": self.quantity,
            "unit": self.unit,
            "cost": str(self.cost),
            "amount": str(self.amount),
        }


class PurchasePayment(db.Model):
    __tablename__ = "purchase_payments"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    purchase_id = db.Column(db.Integer, db.ForeignKey("purchases.id"), nullable=False, index=True)

    date = db.Column(db.DateTime, nullable=False)
    amount = db.Column(db.Numeric(18, 2), nullable=False)
    payment_method = db.Column(db.String(16), nullable=False, default=METHOD_CASH)
    reference_no = db.Column(db.String(50), nullable=True)
    recorded_by = db.Column(db.String(100), nullable=True)

    purchase = db.relationship("Purchase", back_populates="payments")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "purchase_id": self.purchase_id,
            "date": to_iso_datetime(self.date),
            "amount": str(self.amount),
            "payment_method": self.payment_method,
            "reference_no": self.reference_no,
            "recorded_by": self.recorded_by,
        }


class PurchaseSequence(db.Model):
    """Per-year running counter behind PO-{year}-{number} purchase numbers."""
    __tablename__ = "purchase_sequences"
    __table_args__ = (
        db.UniqueConstraint("year", name="uq_purchase_sequences_year"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    year = db.Column(db.Integer, nullable=False)
    last_number = db.Column(db.Integer, nullable=False, default=0)

    def to_dict(self) -> dict:
        return {"id": self.id, "year": self.year, "last_number": self.last_number}
