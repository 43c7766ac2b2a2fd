from __future__ import annotations

from ..extensions import db
from bakerist.time_utils import to_utc_z


class Product(db.Model):
    """
    Product master data with on-hand stock.

    Stock is a plain counter (never negative). Products are never deleted:
    `available=False` hides them from the customer menu while admin views
    still list them.

    Prices are stored in centavos.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.Index("ix_products_category_available", "category", "available"),
        db.CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    name = db.Column(db.String(255), nullable=False)
    category = db.Column(db.String(64), nullable=False, index=True)
    description = db.Column(db.Text, nullable=True)
    image = db.Column(db.String(255), nullable=True)

    # e.g. {"type": "customization", "choices": ["Add celebrant name"]}
    options = db.Column(db.JSON, nullable=True)

    price_cents = db.Column(db.Integer, nullable=False)
    stock = db.Column(db.Integer, nullable=False, default=0)
    available = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def __repr__(self) -> str:
        return f"<Product id={self.id} name={self.name!r} stock={self.stock}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "description": self.description,
            "image": self.image,
            "options": self.options,
            "price_cents": self.price_cents,
            "stock": self.stock,
            "available": self.available,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class DeliveryZone(db.Model):
    """Per-barangay shipping fee."""
    __tablename__ = "delivery_zones"
    __table_args__ = (
        db.UniqueConstraint("barangay", name="uq_delivery_zones_barangay"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    barangay = db.Column(db.String(120), nullable=False)
    shipping_fee_cents = db.Column(db.Integer, nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "barangay": self.barangay,
            "shipping_fee_cents": self.shipping_fee_cents,
        }
