from __future__ import annotations

from ..extensions import db
from bakerist.time_utils import to_utc_z


class StoreSettings(db.Model):
    """
    Single-row store document: order counter and storefront metadata.

    next_order_number is advanced only by checkout. It is independent of the
    number of rows in `orders`.
    """
    __tablename__ = "store_settings"

    id = db.Column(db.Integer, primary_key=True)

    next_order_number = db.Column(db.Integer, nullable=False, default=1)

    store_name = db.Column(db.String(255), nullable=True)
    contact_number = db.Column(db.String(64), nullable=True)
    operating_hours = db.Column(db.String(120), nullable=True)
    address = db.Column(db.String(255), nullable=True)

    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def to_dict(self) -> dict:
        return {
            "next_order_number": self.next_order_number,
            "store_name": self.store_name,
            "contact_number": self.contact_number,
            "operating_hours": self.operating_hours,
            "address": self.address,
            "updated_at": to_utc_z(self.updated_at),
        }
