# Overview: Service-layer operations for the per-session shopping cart.

"""
Cart Service

The cart belongs to a login session (SessionToken). Lines snapshot the
product's name, price and image when first added.

Stock is checked on every add/update but not reserved: checkout checks again
and is the only place stock is decremented.
"""

from __future__ import annotations

from flask import current_app

from ..models import CartItem, Order
from ..repositories import CartRepository, ProductRepository
from ..validation import NotFoundError, ValidationError
from . import catalog_service, delivery_service
from .catalog_service import InsufficientStockError


def _require_quantity(quantity) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise ValidationError("quantity must be an integer", field="quantity")
    return quantity


def get_cart(session_id: int, *, cart: CartRepository | None = None) -> list[CartItem]:
    cart = cart or CartRepository()
    return cart.lines(session_id)


def add_to_cart(
    session_id: int,
    product_id: int,
    quantity: int = 1,
    *,
    options: dict | None = None,
    cart: CartRepository | None = None,
    commit: bool = True,
) -> CartItem:
    """
    Add units of a product to the cart, merging with an existing line.

    Refuses unknown or hidden products, quantity above stock, and a merged
    quantity above stock.
    """
    quantity = _require_quantity(quantity)
    if quantity < 1:
        raise ValidationError("quantity must be at least 1", field="quantity")

    cart = cart or CartRepository()
    product = catalog_service.get_product(
        product_id, include_unavailable=False, products=ProductRepository(cart.session)
    )
    catalog_service.check_stock(product, quantity)

    line = cart.line_for_product(session_id, product.id)
    if line is not None:
        merged = line.quantity + quantity
        if merged > product.stock:
            raise InsufficientStockError(product.id, merged, product.stock, product.name)
        line.quantity = merged
        if options is not None:
            line.options = options
    else:
        line = cart.add(CartItem(
            session_id=session_id,
            product_id=product.id,
            name=product.name,
            unit_price_cents=product.price_cents,
            quantity=quantity,
            image=product.image,
            options=options,
        ))

    if commit:
        cart.session.commit()
    return line


def update_cart_quantity(
    session_id: int,
    product_id: int,
    quantity: int,
    *,
    cart: CartRepository | None = None,
) -> CartItem | None:
    """
    Set a line's quantity. Below 1 removes the line and returns None.
    """
    quantity = _require_quantity(quantity)
    cart = cart or CartRepository()

    line = cart.line_for_product(session_id, product_id)
    if line is None:
        raise NotFoundError("Cart item", product_id)

    if quantity < 1:
        cart.delete(line)
        cart.session.commit()
        return None

    product = catalog_service.get_product(product_id, products=ProductRepository(cart.session))
    catalog_service.check_stock(product, quantity)

    line.quantity = quantity
    cart.session.commit()
    return line


def remove_from_cart(session_id: int, product_id: int, *, cart: CartRepository | None = None) -> None:
    cart = cart or CartRepository()
    line = cart.line_for_product(session_id, product_id)
    if line is None:
        raise NotFoundError("Cart item", product_id)
    cart.delete(line)
    cart.session.commit()


def clear_cart(session_id: int, *, cart: CartRepository | None = None, commit: bool = True) -> int:
    cart = cart or CartRepository()
    removed = cart.clear(session_id)
    if commit:
        cart.session.commit()
    return removed


def summarize(lines: list[CartItem]) -> dict:
    subtotal = sum(line.line_total_cents for line in lines)
    shipping = delivery_service.estimate_shipping_fee(subtotal) if lines else 0
    return {
        "items": [line.to_dict() for line in lines],
        "item_count": sum(line.quantity for line in lines),
        "subtotal_cents": subtotal,
        "shipping_fee_cents": shipping,
        "total_cents": subtotal + shipping,
        "free_shipping_threshold_cents": delivery_service.FREE_SHIPPING_THRESHOLD_CENTS,
    }


def cart_summary(session_id: int, *, cart: CartRepository | None = None) -> dict:
    """Lines plus subtotal, estimated shipping and total."""
    return summarize(get_cart(session_id, cart=cart))


def reorder(session_id: int, order: Order, *, cart: CartRepository | None = None) -> dict:
    """
    Re-add an order's lines to the cart at current prices.

    Lines that can no longer be added (hidden product, not enough stock) are
    skipped and reported back. Returns {"added": [...], "skipped": [...]}.
    """
    cart = cart or CartRepository()
    added, skipped = [], []

    for item in order.items:
        try:
            add_to_cart(
                session_id,
                item.product_id,
                item.qty,
                options=item.options,
                cart=cart,
                commit=False,
            )
        except (NotFoundError, InsufficientStockError) as exc:
            skipped.append({"product_id": item.product_id, "name": item.name, "reason": str(exc)})
            continue
        added.append({"product_id": item.product_id, "name": item.name, "qty": item.qty})

    cart.session.commit()
    current_app.logger.info(
        "Reorder of %s into session %s: %s added, %s skipped",
        order.id, session_id, len(added), len(skipped),
    )
    return {"added": added, "skipped": skipped}
