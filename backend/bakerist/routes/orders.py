# Overview: Flask API routes for orders operations; parses input and returns JSON responses.

"""
Order routes.

- Tracking by order number is public (the number is what the customer has).
- Customers see their own orders and receipts.
- Staff/admin list every order (VIEW_ORDERS) and advance tracking status
  (UPDATE_ORDER_STATUS). There is no arbitrary status edit.
"""
from flask import Blueprint, request, jsonify, current_app, g

from ..services import order_service
from ..permissions import VIEW_OWN_ORDERS, VIEW_ORDERS, UPDATE_ORDER_STATUS
from ..validation import ValidationError, NotFoundError
from ..decorators import require_auth, require_permission


orders_bp = Blueprint("orders", __name__, url_prefix="/api/orders")


@orders_bp.get("/track/<order_id>")
def track_order(order_id: str):
    try:
        result = order_service.track_order(order_id)
    except NotFoundError:
        return jsonify({"error": "Order not found. Please check your order number."}), 404
    return jsonify(result), 200


@orders_bp.get("/mine")
@require_auth
@require_permission(VIEW_OWN_ORDERS)
def my_orders():
    """Caller's orders, newest first. Optional ?limit=."""
    limit = request.args.get("limit", type=int)
    orders = order_service.user_order_history(g.current_user.id, limit=limit)
    return jsonify({"items": [o.to_dict() for o in orders], "count": len(orders)}), 200


@orders_bp.get("")
@require_auth
@require_permission(VIEW_ORDERS)
def list_orders():
    """
    Every order, newest first.

    Query params:
    - search: matches order id, customer name or contact
    - status: tracking status
    - payment_status: Pending | Paid
    - date_range: today | week | month
    """
    try:
        orders = order_service.list_orders(
            search=request.args.get("search"),
            tracking_status=request.args.get("status"),
            payment_status=request.args.get("payment_status"),
            date_range=request.args.get("date_range"),
        )
    except ValidationError as e:
        return jsonify({"error": str(e), "field": e.field}), 400

    return jsonify({"items": [o.to_dict() for o in orders], "count": len(orders)}), 200


def _visible_order(order_id: str):
    order = order_service.get_order(order_id)
    if not order_service.can_view_order(g.current_user, order):
        raise NotFoundError("Order", order_id)
    return order


@orders_bp.get("/<order_id>")
@require_auth
def get_order(order_id: str):
    try:
        order = _visible_order(order_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify(order.to_dict()), 200


@orders_bp.get("/<order_id>/receipt")
@require_auth
def order_receipt(order_id: str):
    try:
        order = _visible_order(order_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify(order_service.build_receipt(order)), 200


@orders_bp.post("/<order_id>/advance")
@require_auth
@require_permission(UPDATE_ORDER_STATUS)
def advance_status(order_id: str):
    """Move the order one step along To Pay -> To Prepare -> Out for Delivery -> Delivered."""
    try:
        order = order_service.advance_order_status(order_id, actor=g.current_user)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ValidationError as e:
        return jsonify({"error": str(e), "field": e.field}), 400
    except Exception:
        current_app.logger.exception("Failed to advance order status")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify(order.to_dict()), 200
