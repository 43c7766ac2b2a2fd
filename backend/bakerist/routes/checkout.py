# Overview: Flask API routes for checkout; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, current_app, g

from ..services import checkout_service, cart_service
from ..services.checkout_service import CheckoutError
from ..services.catalog_service import InsufficientStockError
from ..permissions import PLACE_ORDERS
from ..validation import ValidationError, NotFoundError
from ..decorators import require_auth, require_permission


checkout_bp = Blueprint("checkout", __name__, url_prefix="/api/checkout")


@checkout_bp.get("/quote")
@require_auth
@require_permission(PLACE_ORDERS)
def shipping_quote():
    """
    Totals for the current cart delivered to ?barangay=.

    Unmapped or missing barangays get the default fee; subtotals above
    PHP 300.00 ship free.
    """
    lines = cart_service.get_cart(g.session_context.session_id)
    totals = checkout_service.quote(lines, request.args.get("barangay"))
    totals["item_count"] = sum(line.quantity for line in lines)
    return jsonify(totals), 200


@checkout_bp.post("")
@require_auth
@require_permission(PLACE_ORDERS)
def place_order():
    """
    Place an order from the session cart.

    Body:
    - delivery: {full_name, barangay, sitio, contact, delivery_method?, instructions?}
    - payment_method: COD | GCash | Credit Card
    - payment_details: {gcash_number} or {card_number, expiry_date, cvv, card_name}
    - order_notes: optional

    Nothing is written unless the whole order goes through.
    """
    data = request.get_json(silent=True) or {}

    try:
        order = checkout_service.process_order(
            user=g.current_user,
            session_id=g.session_context.session_id,
            delivery=data.get("delivery"),
            payment_method=data.get("payment_method"),
            payment_details=data.get("payment_details"),
            order_notes=data.get("order_notes"),
        )
    except InsufficientStockError as e:
        return jsonify({"error": str(e), "details": e.details}), 409
    except CheckoutError as e:
        return jsonify({"error": str(e), "field": e.field, "details": e.details}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ValidationError as e:
        return jsonify({"error": str(e), "field": e.field}), 400
    except Exception:
        current_app.logger.exception("Failed to place order")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"order": order.to_dict(), "message": "Order placed"}), 201
