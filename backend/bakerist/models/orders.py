from __future__ import annotations

from ..extensions import db
from bakerist.time_utils import to_utc_z


class Order(db.Model):
    """
    Customer order created at checkout.

    The primary key is the human-readable order number
    (ORD-YYYYMMDD-NNNN) allocated from StoreSettings.next_order_number.

    Amounts are centavos and fixed at creation:
        subtotal_cents = sum(line qty * price)
        total_cents    = subtotal_cents + shipping_fee_cents

    After creation only tracking_status and payment_status change.
    """
    __tablename__ = "orders"
    __table_args__ = (
        db.Index("ix_orders_user_created", "user_id", "created_at"),
        db.Index("ix_orders_status_created", "tracking_status", "created_at"),
    )

    id = db.Column(db.String(32), primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    subtotal_cents = db.Column(db.Integer, nullable=False)
    shipping_fee_cents = db.Column(db.Integer, nullable=False)
    total_cents = db.Column(db.Integer, nullable=False)

    # Delivery details as entered at checkout
    full_name = db.Column(db.String(120), nullable=False)
    barangay = db.Column(db.String(120), nullable=False)
    sitio = db.Column(db.String(120), nullable=False)
    contact = db.Column(db.String(32), nullable=False)
    delivery_method = db.Column(db.String(32), nullable=False, default="Delivery")
    delivery_instructions = db.Column(db.Text, nullable=True)

    tracking_status = db.Column(db.String(32), nullable=False, index=True)
    payment_method = db.Column(db.String(32), nullable=False)
    payment_status = db.Column(db.String(16), nullable=False, index=True)

    order_notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=True, onupdate=db.func.now())

    user = db.relationship("User", backref=db.backref("orders", lazy=True))
    items = db.relationship(
        "OrderItem",
        backref="order",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
    )

    def __repr__(self) -> str:
        return f"<Order id={self.id!r} status={self.tracking_status!r}>"

    @property
    def delivery_info(self) -> dict:
        return {
            "full_name": self.full_name,
            "barangay": self.barangay,
            "sitio": self.sitio,
            "contact": self.contact,
            "delivery_method": self.delivery_method,
            "instructions": self.delivery_instructions,
        }

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "items": [item.to_dict() for item in self.items],
            "subtotal_cents": self.subtotal_cents,
            "shipping_fee_cents": self.shipping_fee_cents,
            "total_cents": self.total_cents,
            "delivery_info": self.delivery_info,
            "tracking_status": self.tracking_status,
            "payment_method": self.payment_method,
            "payment_status": self.payment_status,
            "order_notes": self.order_notes,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class OrderItem(db.Model):
    """Line snapshot of a cart entry at checkout."""
    __tablename__ = "order_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.String(32), db.ForeignKey("orders.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False)

    name = db.Column(db.String(255), nullable=False)
    qty = db.Column(db.Integer, nullable=False)
    price_cents = db.Column(db.Integer, nullable=False)
    options = db.Column(db.JSON, nullable=True)

    @property
    def line_total_cents(self) -> int:
        return self.qty * self.price_cents

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "name": self.name,
            "qty": self.qty,
            "price_cents": self.price_cents,
            "line_total_cents": self.line_total_cents,
            "options": self.options,
        }
