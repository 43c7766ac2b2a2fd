# Overview: Flask API routes for admin operations; parses input and returns JSON responses.

"""
Admin routes.

Provides endpoints for:
- Dashboard overview (VIEW_ORDERS, so staff see it too)
- Staff accounts (MANAGE_STAFF, admin only)
- Delivery zones and store settings (MANAGE_SETTINGS, admin only)
- CSV exports (VIEW_ORDERS / MANAGE_INVENTORY)
"""

from flask import Blueprint, request, jsonify, g, current_app, Response

from ..services import (
    auth_service,
    delivery_service,
    export_service,
    reporting_service,
    settings_service,
)
from ..services.auth_service import DuplicateEmailError, AccountError
from ..decorators import require_auth, require_permission
from ..permissions import VIEW_ORDERS, MANAGE_INVENTORY, MANAGE_STAFF, MANAGE_SETTINGS
from ..time_utils import utcnow
from ..validation import ValidationError, NotFoundError

admin_bp = Blueprint("admin", __name__, url_prefix="/api/admin")


# =============================================================================
# DASHBOARD
# =============================================================================

@admin_bp.get("/dashboard")
@require_auth
@require_permission(VIEW_ORDERS)
def dashboard():
    try:
        return jsonify(reporting_service.dashboard_overview()), 200
    except Exception:
        current_app.logger.exception("Failed to build dashboard")
        return jsonify({"error": "Internal server error"}), 500


# =============================================================================
# STAFF MANAGEMENT
# =============================================================================

@admin_bp.get("/staff")
@require_auth
@require_permission(MANAGE_STAFF)
def list_staff():
    staff = auth_service.list_staff_accounts()
    return jsonify({"items": [s.to_dict() for s in staff], "count": len(staff)}), 200


@admin_bp.post("/staff")
@require_auth
@require_permission(MANAGE_STAFF)
def create_staff():
    """
    Create a staff or admin account.

    Body: name, email, password, optional role (staff|admin), contact_no,
    permissions (list), department.
    """
    data = request.get_json(silent=True) or {}

    try:
        staff = auth_service.create_staff_account(data, created_by=g.current_user)
    except ValidationError as e:
        return jsonify({"error": str(e), "field": e.field}), 400
    except DuplicateEmailError as e:
        return jsonify({"error": str(e), "field": "email"}), 409
    except Exception:
        current_app.logger.exception("Failed to create staff account")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify(staff.to_dict()), 201


@admin_bp.patch("/staff/<int:staff_id>")
@require_auth
@require_permission(MANAGE_STAFF)
def update_staff(staff_id: int):
    data = request.get_json(silent=True) or {}

    try:
        staff = auth_service.update_staff_account(staff_id, data, actor=g.current_user)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ValidationError as e:
        return jsonify({"error": str(e), "field": e.field}), 400
    except AccountError as e:
        return jsonify({"error": str(e)}), 409

    return jsonify(staff.to_dict()), 200


@admin_bp.post("/staff/<int:staff_id>/deactivate")
@require_auth
@require_permission(MANAGE_STAFF)
def deactivate_staff(staff_id: int):
    return _set_active(staff_id, False)


@admin_bp.post("/staff/<int:staff_id>/activate")
@require_auth
@require_permission(MANAGE_STAFF)
def activate_staff(staff_id: int):
    return _set_active(staff_id, True)


def _set_active(staff_id: int, is_active: bool):
    try:
        staff = auth_service.set_staff_active(staff_id, is_active, actor=g.current_user)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except AccountError as e:
        return jsonify({"error": str(e)}), 409

    return jsonify(staff.to_dict()), 200


# =============================================================================
# DELIVERY ZONES & SETTINGS
# =============================================================================

@admin_bp.get("/delivery-zones")
@require_auth
@require_permission(MANAGE_SETTINGS)
def list_delivery_zones():
    zones = delivery_service.list_zones()
    return jsonify({
        "items": [z.to_dict() for z in zones],
        "default_shipping_fee_cents": delivery_service.DEFAULT_SHIPPING_FEE_CENTS,
        "free_shipping_threshold_cents": delivery_service.FREE_SHIPPING_THRESHOLD_CENTS,
    }), 200


@admin_bp.put("/delivery-zones")
@require_auth
@require_permission(MANAGE_SETTINGS)
def upsert_delivery_zone():
    """Body: barangay, shipping_fee_cents."""
    data = request.get_json(silent=True) or {}

    try:
        zone = delivery_service.upsert_zone(data.get("barangay"), data.get("shipping_fee_cents"))
    except ValidationError as e:
        return jsonify({"error": str(e), "field": e.field}), 400

    return jsonify(zone.to_dict()), 200


@admin_bp.get("/settings")
@require_auth
@require_permission(MANAGE_SETTINGS)
def get_settings():
    return jsonify(settings_service.get_settings().to_dict()), 200


@admin_bp.patch("/settings")
@require_auth
@require_permission(MANAGE_SETTINGS)
def update_settings():
    """Store metadata only: store_name, contact_number, operating_hours, address."""
    data = request.get_json(silent=True) or {}

    try:
        settings = settings_service.update_settings(data)
    except ValidationError as e:
        return jsonify({"error": str(e), "field": e.field}), 400

    return jsonify(settings.to_dict()), 200


# =============================================================================
# EXPORTS
# =============================================================================

def _csv_response(content: str, prefix: str) -> Response:
    filename = f"{prefix}-{utcnow().strftime('%Y-%m-%d')}.csv"
    return Response(
        content,
        mimetype="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@admin_bp.get("/exports/orders.csv")
@require_auth
@require_permission(VIEW_ORDERS)
def export_orders():
    return _csv_response(export_service.export_orders_csv(), "bakerist-orders")


@admin_bp.get("/exports/products.csv")
@require_auth
@require_permission(MANAGE_INVENTORY)
def export_products():
    return _csv_response(export_service.export_products_csv(), "bakerist-products")
