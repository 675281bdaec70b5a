from __future__ import annotations

from decimal import Decimal

from ..extensions import db
from backoffice.time_utils import to_iso_datetime


class Deduction(db.Model):
    """Operating outflow subtracted from gross profit before partner shares."""
    __tablename__ = "deductions"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    date = db.Column(db.DateTime, nullable=False, index=True)
    description = db.Column(db.String(200), nullable=False)
    amount = db.Column(db.Numeric(18, 2), nullable=False, default=Decimal("0"))
    category = db.Column(db.String(50), nullable=True)  # e.g. "Operational", "Salary"
    applied_to = db.Column(db.String(50), nullable=True, default="General")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "date": to_iso_datetime(self.date),
            "description": self.description,
            "amount": str(self.amount),
            "category": self.category,
            "applied_to": self.applied_to,
        }


class PartnerPurchase(db.Model):
    """Personal draw by a partner, netted against that partner's profit share."""
    __tablename__ = "partner_purchases"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    partner_name = db.Column(db.String(50), nullable=False, index=True)
    date = db.Column(db.DateTime, nullable=False, index=True)
    amount = db.Column(db.Numeric(18, 2), nullable=False, default=Decimal("0"))
    notes = db.Column(db.String(200), nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "partner_name": self.partner_name,
            "date": to_iso_datetime(self.date),
            "amount": str(self.amount),
            "notes": self.notes,
        }


class PartnerBalanceConfig(db.Model):
    """
    Partner roster and opening balance.

    The first two rows by partner_name are partner 1 and partner 2 on the
    profit report.
    """
    __tablename__ = "partner_balance_configs"
    __table_args__ = (
        db.UniqueConstraint("partner_name", name="uq_partner_balance_configs_partner_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    partner_name = db.Column(db.String(50), nullable=False)
    opening_balance = db.Column(db.Numeric(18, 2), nullable=False, default=Decimal("0"))
    as_of_date = db.Column(db.DateTime, nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "partner_name": self.partner_name,
            "opening_balance": str(self.opening_balance),
            "as_of_date": to_iso_datetime(self.as_of_date),
        }


class PartnerCapital(db.Model):
    """Profit retained as capital; reduces net profit before sharing."""
    __tablename__ = "partner_capitals"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    date = db.Column(db.DateTime, nullable=False, index=True)
    amount = db.Column(db.Numeric(18, 2), nullable=False, default=Decimal("0"))
    description = db.Column(db.String(100), nullable=False, default="Capital Fund")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "date": to_iso_datetime(self.date),
            "amount": str(self.amount),
            "description": self.description,
        }
