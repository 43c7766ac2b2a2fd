# Overview: CSV exports of orders and products.

"""
CSV layout:
- header row, then one row per record, joined with "\\n", no trailing newline
- no records -> empty string (no header either)
- falsy values (None, "", 0, False) are written as an empty field
- strings containing a comma or double quote are wrapped in double quotes
  with inner quotes doubled; nothing else is quoted
- amounts use the shortest decimal form (196, 226.5, 19.99)
"""

from __future__ import annotations

from typing import Iterable

from ..money import format_amount
from ..models import Order, Product
from ..repositories import OrderRepository, ProductRepository
from ..time_utils import to_utc_millis_z


ORDER_HEADERS = [
    "Order ID", "Customer Name", "Contact", "Barangay", "Items", "Subtotal",
    "Shipping", "Total", "Status", "Payment Method", "Payment Status", "Date",
]

PRODUCT_HEADERS = ["Product ID", "Name", "Category", "Price", "Stock", "Available", "Description"]


def _amount(cents: int | None) -> str:
    return format_amount(cents) if cents else ""


def csv_field(value) -> str:
    if not value:
        return ""
    if isinstance(value, str):
        if "," in value or '"' in value:
            return '"' + value.replace('"', '""') + '"'
        return value
    return str(value)


def generate_csv(rows: list[dict], headers: list[str]) -> str:
    if not rows:
        return ""
    lines = [",".join(headers)]
    for row in rows:
        lines.append(",".join(csv_field(row.get(header)) for header in headers))
    return "\n".join(lines)


def order_row(order: Order) -> dict:
    return {
        "Order ID": order.id,
        "Customer Name": order.full_name,
        "Contact": order.contact,
        "Barangay": order.barangay,
        "Items": "; ".join(f"{item.name} ({item.qty})" for item in order.items),
        "Subtotal": _amount(order.subtotal_cents),
        "Shipping": _amount(order.shipping_fee_cents),
        "Total": _amount(order.total_cents),
        "Status": order.tracking_status,
        "Payment Method": order.payment_method,
        "Payment Status": order.payment_status,
        "Date": to_utc_millis_z(order.created_at),
    }


def product_row(product: Product) -> dict:
    return {
        "Product ID": product.id,
        "Name": product.name,
        "Category": product.category,
        "Price": _amount(product.price_cents),
        "Stock": product.stock,
        "Available": "Yes" if product.available else "No",
        "Description": product.description,
    }


def export_orders_csv(orders: Iterable[Order] | None = None) -> str:
    """Every order (newest first) unless a list is given."""
    if orders is None:
        orders = OrderRepository().list()
    return generate_csv([order_row(o) for o in orders], ORDER_HEADERS)


def export_products_csv(products: Iterable[Product] | None = None) -> str:
    """Every product, hidden ones included, unless a list is given."""
    if products is None:
        products = ProductRepository().list(include_unavailable=True)
    return generate_csv([product_row(p) for p in products], PRODUCT_HEADERS)
