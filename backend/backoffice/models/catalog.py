from __future__ import annotations

from decimal import Decimal

from ..extensions import db
from backoffice.time_utils import to_iso_date


class Product(db.Model):
    """
    Master catalog item.

    unit_cost / markup / delivery_fee are the defaults used for pricing on any
    date that has no WeeklyPrice override.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.Index("ix_products_active_name", "is_active", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    sku = db.Column(db.String(50), nullable=False, default="")
    name = db.Column(db.String(100), nullable=False)
    category = db.Column(db.String(50), nullable=False, default="")
    unit = db.Column(db.String(20), nullable=False, default="pc")  # kg, pc, box

    unit_cost = db.Column(db.Numeric(18, 2), nullable=False, default=Decimal("0"))
    markup = db.Column(db.Numeric(18, 2), nullable=False, default=Decimal("0"))
    delivery_fee = db.Column(db.Numeric(18, 2), nullable=False, default=Decimal("0"))

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<Product id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sku": self.sku,
            "name": self.name,
            "category": self.category,
            "unit": self.unit,
            "unit_cost": str(self.unit_cost),
            "markup": str(self.markup),
            "delivery_fee": str(self.delivery_fee),
            "is_active": self.is_active,
        }


class WeeklyPrice(db.Model):
    """
    Time-boxed price override for one product over [effective_from, effective_to].

    Nominally one Monday..Sunday week. Ranges are NOT unique per product:
    readers pick the covering row with the latest effective_from, then highest id.

    cost_override / delivery_fee_override are independently optional; a row may
    override only the markup and inherit cost from the product.
    base_price is kept for rows written before markup existed as a column.
    """
    __tablename__ = "weekly_prices"
    __table_args__ = (
        db.Index("ix_weekly_prices_product_range", "product_id", "effective_from", "effective_to"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    effective_from = db.Column(db.Date, nullable=False)
    effective_to = db.Column(db.Date, nullable=False)

    cost_override = db.Column(db.Numeric(18, 2), nullable=True)
    delivery_fee_override = db.Column(db.Numeric(18, 2), nullable=True)

    markup = db.Column(db.Numeric(18, 2), nullable=False, default=Decimal("0"))
    base_price = db.Column(db.Numeric(18, 2), nullable=False, default=Decimal("0"))
    delivery_price = db.Column(db.Numeric(18, 2), nullable=False, default=Decimal("0"))

    product = db.relationship("Product", backref=db.backref("weekly_prices", lazy=True))

    def covers(self, on_date) -> bool:
        return self.effective_from <= on_date <= self.effective_to

    def __repr__(self) -> str:
        return (
            f"<WeeklyPrice id={self.id} product_id={self.product_id} "
            f"{self.effective_from}..{self.effective_to}>"
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "effective_from": to_iso_date(self.effective_from),
            "effective_to": to_iso_date(self.effective_to),
            "cost_override": str(self.cost_override) if self.cost_override is not None else None,
            "delivery_fee_override": (
                str(self.delivery_fee_override) if self.delivery_fee_override is not None else None
            ),
            "markup": str(self.markup),
            "base_price": str(self.base_price),
            "delivery_price": str(self.delivery_price),
        }
