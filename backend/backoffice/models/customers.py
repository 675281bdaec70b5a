from __future__ import annotations

from ..extensions import db


DEFAULT_OUTLET_GROUP = "EIGHT2EIGHT OUTLETS"


class Customer(db.Model):
    """
    Delivery outlet.

    group_name selects which outlets appear as columns of the vegetable matrix.
    Rows imported before grouping existed may carry NULL or "" here.
    """
    __tablename__ = "customers"
    __table_args__ = (
        db.Index("ix_customers_active_group", "is_active", "group_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False, index=True)
    address = db.Column(db.String(200), nullable=True)
    contact_person = db.Column(db.String(50), nullable=True)
    contact_number = db.Column(db.String(50), nullable=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    group_name = db.Column(db.String(100), nullable=True, default=DEFAULT_OUTLET_GROUP)
    sub_label = db.Column(db.String(50), nullable=True)  # e.g. "Kitchen", shown under the header

    def __repr__(self) -> str:
        return f"<Customer id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "address": self.address,
            "contact_person": self.contact_person,
            "contact_number": self.contact_number,
            "is_active": self.is_active,
            "group_name": self.group_name,
            "sub_label": self.sub_label,
        }
