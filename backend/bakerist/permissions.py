"""
Permission codes and the static role -> permission table.

Authorization is decided by role alone. `admin` carries the wildcard and
satisfies every check.

Per-user `permissions` stored on staff accounts are NOT part of this table.
"""

from .models import ROLE_CUSTOMER, ROLE_STAFF, ROLE_ADMIN


ALL = "all"

VIEW_PRODUCTS = "view_products"
PLACE_ORDERS = "place_orders"
VIEW_OWN_ORDERS = "view_own_orders"
VIEW_ORDERS = "view_orders"
UPDATE_ORDER_STATUS = "update_order_status"
MANAGE_INVENTORY = "manage_inventory"

# Not granted to any non-admin role; only the admin wildcard satisfies these.
MANAGE_STAFF = "manage_staff"
MANAGE_SETTINGS = "manage_settings"


# Each permission is defined as: (code, description)
PERMISSION_DEFINITIONS = [
    (VIEW_PRODUCTS, "Browse the product catalog"),
    (PLACE_ORDERS, "Use the cart and check out"),
    (VIEW_OWN_ORDERS, "See own order history and receipts"),
    (VIEW_ORDERS, "See every order and the dashboard"),
    (UPDATE_ORDER_STATUS, "Advance order tracking status"),
    (MANAGE_INVENTORY, "Create products, edit prices, stock and availability"),
    (MANAGE_STAFF, "Create, edit and deactivate staff accounts"),
    (MANAGE_SETTINGS, "Edit store settings and delivery zones"),
]


ROLE_PERMISSIONS = {
    ROLE_CUSTOMER: frozenset({VIEW_PRODUCTS, PLACE_ORDERS, VIEW_OWN_ORDERS}),
    ROLE_STAFF: frozenset({VIEW_PRODUCTS, VIEW_ORDERS, UPDATE_ORDER_STATUS, MANAGE_INVENTORY}),
    ROLE_ADMIN: frozenset({ALL}),
}
