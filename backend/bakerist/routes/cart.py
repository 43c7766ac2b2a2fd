# Overview: Flask API routes for the session cart; parses input and returns JSON responses.

"""
Cart routes. The cart belongs to the caller's login session and is dropped on
logout. All routes require PLACE_ORDERS.
"""
from flask import Blueprint, request, jsonify, g

from ..services import cart_service, order_service
from ..services.catalog_service import InsufficientStockError
from ..permissions import PLACE_ORDERS
from ..validation import ValidationError, NotFoundError
from ..decorators import require_auth, require_permission


cart_bp = Blueprint("cart", __name__, url_prefix="/api/cart")


def _summary():
    return cart_service.cart_summary(g.session_context.session_id)


def _stock_error(e: InsufficientStockError):
    return jsonify({"error": str(e), "details": e.details}), 409


@cart_bp.get("")
@require_auth
@require_permission(PLACE_ORDERS)
def view_cart():
    return jsonify(_summary()), 200


@cart_bp.post("/items")
@require_auth
@require_permission(PLACE_ORDERS)
def add_item():
    """Body: product_id, quantity (default 1), optional options."""
    data = request.get_json(silent=True) or {}
    product_id = data.get("product_id")

    if not isinstance(product_id, int) or isinstance(product_id, bool):
        return jsonify({"error": "product_id must be an integer", "field": "product_id"}), 400

    try:
        cart_service.add_to_cart(
            g.session_context.session_id,
            product_id,
            data.get("quantity", 1),
            options=data.get("options"),
        )
    except InsufficientStockError as e:
        return _stock_error(e)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ValidationError as e:
        return jsonify({"error": str(e), "field": e.field}), 400

    return jsonify(_summary()), 201


@cart_bp.patch("/items/<int:product_id>")
@require_auth
@require_permission(PLACE_ORDERS)
def update_item(product_id: int):
    """Body: quantity. Anything below 1 removes the line."""
    data = request.get_json(silent=True) or {}

    try:
        cart_service.update_cart_quantity(
            g.session_context.session_id, product_id, data.get("quantity")
        )
    except InsufficientStockError as e:
        return _stock_error(e)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ValidationError as e:
        return jsonify({"error": str(e), "field": e.field}), 400

    return jsonify(_summary()), 200


@cart_bp.delete("/items/<int:product_id>")
@require_auth
@require_permission(PLACE_ORDERS)
def remove_item(product_id: int):
    try:
        cart_service.remove_from_cart(g.session_context.session_id, product_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404

    return jsonify(_summary()), 200


@cart_bp.delete("")
@require_auth
@require_permission(PLACE_ORDERS)
def clear_cart():
    cart_service.clear_cart(g.session_context.session_id)
    return jsonify(_summary()), 200


@cart_bp.post("/reorder/<order_id>")
@require_auth
@require_permission(PLACE_ORDERS)
def reorder(order_id: str):
    """Copy a past order's lines back into the cart."""
    try:
        order = order_service.get_order(order_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404

    if order.user_id != g.current_user.id:
        return jsonify({"error": "Order not found"}), 404

    result = cart_service.reorder(g.session_context.session_id, order)
    body = _summary()
    body.update(result)
    return jsonify(body), 200
