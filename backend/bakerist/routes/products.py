# Overview: Flask API routes for products operations; parses input and returns JSON responses.

"""
Product catalog routes.

- The customer menu (list, detail, categories) is public and shows only
  available products.
- Everything else requires MANAGE_INVENTORY (staff and admin) and sees hidden
  products too.
"""
from flask import Blueprint, request, jsonify, current_app

from ..services import catalog_service
from ..services.catalog_service import product_to_dict
from ..models import Product
from ..permissions import MANAGE_INVENTORY
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_product,
    ValidationError,
    NotFoundError,
)
from ..decorators import require_auth, require_permission

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={"name", "category", "description", "image", "options", "price_cents", "stock", "available"},
    required_on_create={"name", "category", "price_cents"},
)

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


def _list_response(products):
    return {"items": [product_to_dict(p) for p in products], "count": len(products)}


@products_bp.get("")
def list_products():
    """
    Customer menu.

    Query params:
    - category: str (optional, "all" means no filter)
    - search: str (optional) - matches name or description
    - sort: name | price-low | price-high | popular (default name)
    """
    try:
        products = catalog_service.list_products(
            category=request.args.get("category"),
            search=request.args.get("search"),
            sort=request.args.get("sort") or "name",
        )
    except ValidationError as e:
        return jsonify({"error": str(e), "field": e.field}), 400

    return jsonify(_list_response(products)), 200


@products_bp.get("/categories")
def list_categories():
    return jsonify({"categories": catalog_service.list_categories()}), 200


@products_bp.get("/<int:product_id>")
def get_product(product_id: int):
    try:
        product = catalog_service.get_product(product_id, include_unavailable=False)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify(product_to_dict(product)), 200


@products_bp.get("/admin")
@require_auth
@require_permission(MANAGE_INVENTORY)
def admin_list_products():
    """Every product, hidden ones included. Same filters as the menu."""
    try:
        products = catalog_service.list_products(
            category=request.args.get("category"),
            search=request.args.get("search"),
            sort=request.args.get("sort") or "name",
            include_unavailable=True,
        )
    except ValidationError as e:
        return jsonify({"error": str(e), "field": e.field}), 400

    return jsonify(_list_response(products)), 200


@products_bp.get("/inventory")
@require_auth
@require_permission(MANAGE_INVENTORY)
def inventory_report():
    """Stock classification for every product plus low / out-of-stock counts."""
    return jsonify(catalog_service.inventory_report()), 200


@products_bp.get("/low-stock")
@require_auth
@require_permission(MANAGE_INVENTORY)
def low_stock():
    products = catalog_service.low_stock_products()
    return jsonify(_list_response(products)), 200


@products_bp.post("")
@require_auth
@require_permission(MANAGE_INVENTORY)
def create_product_route():
    """Create a product. Requires name, category and price_cents."""
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
        enforce_rules_product(patch)
    except ValidationError as e:
        return jsonify({"error": str(e), "field": e.field}), 400

    try:
        created = catalog_service.create_product(patch=patch)
    except Exception:
        current_app.logger.exception("Failed to create product")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify(product_to_dict(created)), 201


@products_bp.patch("/<int:product_id>")
@require_auth
@require_permission(MANAGE_INVENTORY)
def update_product_route(product_id: int):
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=True)
        enforce_rules_product(patch)
        product = catalog_service.update_product(product_id, patch)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ValidationError as e:
        return jsonify({"error": str(e), "field": e.field}), 400

    return jsonify(product_to_dict(product)), 200


@products_bp.put("/<int:product_id>/stock")
@require_auth
@require_permission(MANAGE_INVENTORY)
def set_stock_route(product_id: int):
    """Overwrite on-hand stock. Body: {"stock": int >= 0}."""
    payload = request.get_json(silent=True) or {}

    try:
        product = catalog_service.set_stock(product_id, payload.get("stock"))
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ValidationError as e:
        return jsonify({"error": str(e), "field": e.field}), 400

    return jsonify(product_to_dict(product)), 200


@products_bp.post("/<int:product_id>/restock")
@require_auth
@require_permission(MANAGE_INVENTORY)
def restock_route(product_id: int):
    """Add units to stock. Body: {"amount": int > 0}."""
    payload = request.get_json(silent=True) or {}

    try:
        product = catalog_service.restock(product_id, payload.get("amount"))
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ValidationError as e:
        return jsonify({"error": str(e), "field": e.field}), 400

    return jsonify(product_to_dict(product)), 200


@products_bp.post("/<int:product_id>/toggle-availability")
@require_auth
@require_permission(MANAGE_INVENTORY)
def toggle_availability_route(product_id: int):
    try:
        product = catalog_service.toggle_availability(product_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404

    return jsonify(product_to_dict(product)), 200
