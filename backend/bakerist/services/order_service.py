# Overview: Service-layer operations for orders; tracking lifecycle and read side.

"""
BAKERIST Order Lifecycle Service

================================================================================
PURPOSE: Move orders forward through the fixed tracking sequence
================================================================================

STATE MACHINE:
    TO_PAY -> TO_PREPARE -> OUT_FOR_DELIVERY -> DELIVERED

    Checkout creates every order at TO_PREPARE. TO_PAY is part of the
    sequence but no current operation assigns it.

RULES:
1. advance_order_status moves exactly one step forward
2. No skipping, no backward transition, no cancellation
3. Advancing a DELIVERED order is a no-op
4. Entering DELIVERED on a COD order marks it Paid; other methods are
   already Paid at checkout and are left alone

PAYMENT STATUS:
    COD orders start Pending; GCash and Credit Card orders start Paid.
================================================================================
"""

from __future__ import annotations

from datetime import datetime

from flask import current_app

from ..money import format_peso
from ..models import Order, User
from ..repositories import OrderRepository, UserRepository
from ..time_utils import range_start, utcnow
from ..validation import NotFoundError, ValidationError
from ..permissions import VIEW_ORDERS
from . import permission_service, settings_service


STATUS_TO_PAY = "To Pay"
STATUS_TO_PREPARE = "To Prepare"
STATUS_OUT_FOR_DELIVERY = "Out for Delivery"
STATUS_DELIVERED = "Delivered"

ORDER_STATUSES = (STATUS_TO_PAY, STATUS_TO_PREPARE, STATUS_OUT_FOR_DELIVERY, STATUS_DELIVERED)
INITIAL_STATUS = STATUS_TO_PREPARE

PAYMENT_PENDING = "Pending"
PAYMENT_PAID = "Paid"
PAYMENT_STATUSES = (PAYMENT_PENDING, PAYMENT_PAID)

PAYMENT_COD = "COD"
PAYMENT_GCASH = "GCash"
PAYMENT_CARD = "Credit Card"
PAYMENT_METHODS = (PAYMENT_COD, PAYMENT_GCASH, PAYMENT_CARD)

DATE_RANGES = ("today", "week", "month")

TRACKING_STEPS = {
    STATUS_TO_PAY: ("Awaiting Payment", "Waiting for payment confirmation"),
    STATUS_TO_PREPARE: ("Preparing Order", "Our bakers are preparing your items"),
    STATUS_OUT_FOR_DELIVERY: ("Out for Delivery", "Your order is on the way"),
    STATUS_DELIVERED: ("Delivered", "Order has been delivered"),
}


class OrderStatusError(ValidationError):
    """Stored order carries a status outside the tracking sequence."""


def initial_payment_status(payment_method: str) -> str:
    return PAYMENT_PENDING if payment_method == PAYMENT_COD else PAYMENT_PAID


def next_status(status: str) -> str | None:
    """Successor in the tracking sequence, or None at DELIVERED."""
    if status not in ORDER_STATUSES:
        raise OrderStatusError(f"Invalid status '{status}'", field="tracking_status")
    index = ORDER_STATUSES.index(status)
    if index == len(ORDER_STATUSES) - 1:
        return None
    return ORDER_STATUSES[index + 1]


def get_order(order_id: str, *, orders: OrderRepository | None = None) -> Order:
    orders = orders or OrderRepository()
    order = orders.get((order_id or "").strip())
    if order is None:
        raise NotFoundError("Order", order_id)
    return order


def advance_order_status(
    order_id: str,
    *,
    actor: User | None = None,
    orders: OrderRepository | None = None,
) -> Order:
    """
    Move an order one step forward. A DELIVERED order is returned unchanged.
    """
    orders = orders or OrderRepository()
    order = get_order(order_id, orders=orders)

    previous = order.tracking_status
    new_status = next_status(previous)
    if new_status is None:
        return order

    order.tracking_status = new_status
    if new_status == STATUS_DELIVERED and order.payment_method == PAYMENT_COD:
        order.payment_status = PAYMENT_PAID

    orders.session.commit()

    current_app.logger.info(
        "Order %s advanced %s -> %s by user %s",
        order.id, previous, new_status, getattr(actor, "id", None),
    )
    return order


def tracking_steps(status: str) -> list[dict]:
    """One entry per status, marked completed, current or pending."""
    current_index = ORDER_STATUSES.index(status)
    steps = []
    for index, step_status in enumerate(ORDER_STATUSES):
        title, description = TRACKING_STEPS[step_status]
        if index < current_index or (index == current_index and status == STATUS_DELIVERED):
            state = "completed"
        elif index == current_index:
            state = "current"
        else:
            state = "pending"
        steps.append({
            "tracking_status": step_status,
            "title": title,
            "description": description,
            "status": state,
        })
    return steps


def track_order(order_number: str, *, orders: OrderRepository | None = None) -> dict:
    order = get_order(order_number, orders=orders)
    return {
        "order": order.to_dict(),
        "steps": tracking_steps(order.tracking_status),
    }


def user_order_history(user_id: int, *, limit: int | None = None, orders: OrderRepository | None = None) -> list[Order]:
    """A user's orders, newest first."""
    orders = orders or OrderRepository()
    return orders.list(user_id=user_id, limit=limit)


def list_orders(
    *,
    search: str | None = None,
    tracking_status: str | None = None,
    payment_status: str | None = None,
    date_range: str | None = None,
    now: datetime | None = None,
    orders: OrderRepository | None = None,
) -> list[Order]:
    """
    Admin order list, newest first.

    search is case-insensitive over order id, customer name and contact.
    date_range is one of today / week / month.
    """
    if tracking_status and tracking_status not in ORDER_STATUSES:
        raise ValidationError(f"Invalid status '{tracking_status}'", field="status")
    if payment_status and payment_status not in PAYMENT_STATUSES:
        raise ValidationError(f"Invalid payment status '{payment_status}'", field="payment_status")
    if date_range and date_range not in DATE_RANGES:
        raise ValidationError(
            f"date_range must be one of: {', '.join(DATE_RANGES)}", field="date_range"
        )

    created_since = range_start(date_range, now or utcnow()) if date_range else None

    orders = orders or OrderRepository()
    return orders.list(
        search=(search or "").strip() or None,
        tracking_status=tracking_status or None,
        payment_status=payment_status or None,
        created_since=created_since,
    )


def can_view_order(user: User, order: Order) -> bool:
    """Owners always; anyone holding view_orders otherwise."""
    return order.user_id == user.id or permission_service.has_permission(user, VIEW_ORDERS)


def build_receipt(order: Order) -> dict:
    """Store header, delivery details and line totals for one order."""
    store = settings_service.get_settings()
    customer = UserRepository().get(order.user_id)

    return {
        "store": {
            "name": store.store_name,
            "contact_number": store.contact_number,
            "address": store.address,
            "operating_hours": store.operating_hours,
        },
        "order_id": order.id,
        "created_at": order.to_dict()["created_at"],
        "customer": {
            "name": order.full_name,
            "email": customer.email if customer else None,
            "contact": order.contact,
        },
        "delivery_info": order.delivery_info,
        "lines": [
            {**item.to_dict(), "line_total_display": format_peso(item.line_total_cents)}
            for item in order.items
        ],
        "subtotal_cents": order.subtotal_cents,
        "shipping_fee_cents": order.shipping_fee_cents,
        "total_cents": order.total_cents,
        "totals_display": {
            "subtotal": format_peso(order.subtotal_cents),
            "shipping": "FREE" if order.shipping_fee_cents == 0 else format_peso(order.shipping_fee_cents),
            "total": format_peso(order.total_cents),
        },
        "payment_method": order.payment_method,
        "payment_status": order.payment_status,
        "tracking_status": order.tracking_status,
    }
