# Overview: Checkout orchestration; turns a session's cart into an order.

"""
Checkout Service

process_order runs in two phases:

1. Validate (no writes): cart non-empty, delivery form, payment method and
   its details, totals, stock for every line.
2. Commit: decrement stock, allocate the order id, insert the order and its
   lines, advance the counter, clear the cart. One commit.

Any exception rolls the session back, so a failed checkout leaves products,
orders, the counter and the cart exactly as they were.

There is no payment gateway: well-formed GCash and card details are accepted
as paid. Card details are validated and discarded, never stored.
"""

from __future__ import annotations

from datetime import datetime

from flask import current_app

from ..extensions import db
from ..models import Order, OrderItem, User
from ..repositories import CartRepository, OrderRepository, ProductRepository, SettingsRepository
from ..time_utils import utcnow
from ..validation import NotFoundError, ValidationError, is_valid_phone, require_fields
from . import catalog_service, delivery_service, document_service
from .order_service import (
    INITIAL_STATUS,
    PAYMENT_CARD,
    PAYMENT_GCASH,
    PAYMENT_METHODS,
    initial_payment_status,
)


DELIVERY_FIELDS = ["full_name", "barangay", "sitio", "contact"]
CARD_FIELDS = ["card_number", "expiry_date", "cvv", "card_name"]
DEFAULT_DELIVERY_METHOD = "Delivery"


class CheckoutError(ValidationError):
    """Checkout refused before any write. `details` carries context for the client."""

    def __init__(self, message: str, field: str | None = None, details: dict | None = None):
        super().__init__(message, field=field)
        self.details = details or {}


def validate_delivery(delivery: dict | None) -> dict:
    """Required delivery fields present and contact a valid PH number."""
    delivery = delivery or {}
    if not isinstance(delivery, dict):
        raise ValidationError("delivery must be an object", field="delivery")
    require_fields(delivery, DELIVERY_FIELDS)
    if not is_valid_phone(delivery["contact"]):
        raise ValidationError("Please enter a valid Philippine phone number", field="contact")

    return {
        "full_name": str(delivery["full_name"]).strip(),
        "barangay": str(delivery["barangay"]).strip(),
        "sitio": str(delivery["sitio"]).strip(),
        "contact": str(delivery["contact"]).strip(),
        "delivery_method": str(delivery.get("delivery_method") or DEFAULT_DELIVERY_METHOD).strip(),
        "instructions": str(delivery.get("instructions") or "").strip() or None,
    }


def validate_payment(payment_method: str | None, payment_details: dict | None) -> None:
    if payment_method not in PAYMENT_METHODS:
        raise ValidationError(
            f"payment_method must be one of: {', '.join(PAYMENT_METHODS)}",
            field="payment_method",
        )

    details = payment_details or {}
    if not isinstance(details, dict):
        raise ValidationError("payment_details must be an object", field="payment_details")
    if payment_method == PAYMENT_GCASH:
        if not is_valid_phone(details.get("gcash_number")):
            raise ValidationError("Please enter a valid GCash number", field="gcash_number")
    elif payment_method == PAYMENT_CARD:
        require_fields(details, CARD_FIELDS)


def quote(lines, barangay: str | None) -> dict:
    """Subtotal, shipping and total for cart lines delivered to `barangay`."""
    subtotal = sum(line.line_total_cents for line in lines)
    shipping = delivery_service.resolve_shipping_fee(barangay, subtotal)
    return {
        "subtotal_cents": subtotal,
        "shipping_fee_cents": shipping,
        "total_cents": subtotal + shipping,
    }


def _check_stock(lines, products: ProductRepository) -> dict:
    """Resolve every line's product and confirm stock. Returns {product_id: Product}."""
    needed: dict[int, int] = {}
    for line in lines:
        needed[line.product_id] = needed.get(line.product_id, 0) + line.quantity

    resolved = {}
    for product_id, qty in needed.items():
        product = products.get(product_id)
        if product is None:
            raise NotFoundError("Product", product_id)
        catalog_service.check_stock(product, qty)
        resolved[product_id] = product
    return resolved


def process_order(
    *,
    user: User,
    session_id: int,
    delivery: dict | None,
    payment_method: str | None,
    payment_details: dict | None = None,
    order_notes: str | None = None,
    now: datetime | None = None,
) -> Order:
    """
    Place an order from the session's cart.

    Raises CheckoutError (empty cart), ValidationError (delivery or payment
    input), NotFoundError (product gone) or InsufficientStockError. Nothing is
    written when any of these is raised.
    """
    session = db.session
    cart = CartRepository(session)
    products = ProductRepository(session)
    orders = OrderRepository(session)

    lines = cart.lines(session_id)
    if not lines:
        raise CheckoutError("Your cart is empty", field="cart")

    form = validate_delivery(delivery)
    validate_payment(payment_method, payment_details)
    totals = quote(lines, form["barangay"])
    _check_stock(lines, products)

    now = now or utcnow()

    try:
        for line in lines:
            catalog_service.decrement_stock(line.product_id, line.quantity, commit=False, products=products)

        order_id = document_service.next_order_id(
            now, settings=SettingsRepository(session), orders=orders
        )
        order = Order(
            id=order_id,
            user_id=user.id,
            subtotal_cents=totals["subtotal_cents"],
            shipping_fee_cents=totals["shipping_fee_cents"],
            total_cents=totals["total_cents"],
            full_name=form["full_name"],
            barangay=form["barangay"],
            sitio=form["sitio"],
            contact=form["contact"],
            delivery_method=form["delivery_method"],
            delivery_instructions=form["instructions"],
            tracking_status=INITIAL_STATUS,
            payment_method=payment_method,
            payment_status=initial_payment_status(payment_method),
            order_notes=str(order_notes or "").strip() or None,
            created_at=now,
        )
        orders.add(order)
        for line in lines:
            orders.add_item(OrderItem(
                order=order,
                product_id=line.product_id,
                name=line.name,
                qty=line.quantity,
                price_cents=line.unit_price_cents,
                options=line.options,
            ))

        cart.clear(session_id)
        session.commit()
    except Exception:
        session.rollback()
        raise

    current_app.logger.info(
        "Order %s created for user %s: %s lines, total %s (%s, %s)",
        order.id, user.id, len(lines), order.total_cents, order.payment_method, order.payment_status,
    )
    return order
