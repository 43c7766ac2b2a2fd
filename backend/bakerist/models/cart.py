from __future__ import annotations

from ..extensions import db
from bakerist.time_utils import to_utc_z


class CartItem(db.Model):
    """
    One cart line, owned by a login session.

    Name, price and image are copied from the product when the line is first
    added; later catalog edits do not reach an existing line.
    """
    __tablename__ = "cart_items"
    __table_args__ = (
        db.UniqueConstraint("session_id", "product_id", name="uq_cart_items_session_product"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    session_id = db.Column(
        db.Integer,
        db.ForeignKey("session_tokens.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False)

    name = db.Column(db.String(255), nullable=False)
    unit_price_cents = db.Column(db.Integer, nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    image = db.Column(db.String(255), nullable=True)
    options = db.Column(db.JSON, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    session = db.relationship(
        "SessionToken",
        backref=db.backref("cart_items", lazy=True, cascade="all, delete-orphan", order_by="CartItem.id"),
    )

    @property
    def line_total_cents(self) -> int:
        return self.unit_price_cents * self.quantity

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "name": self.name,
            "unit_price_cents": self.unit_price_cents,
            "quantity": self.quantity,
            "line_total_cents": self.line_total_cents,
            "image": self.image,
            "options": self.options,
            "created_at": to_utc_z(self.created_at),
        }
