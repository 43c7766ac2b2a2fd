# Overview: Service-layer operations for the product catalog and on-hand stock.

"""
Catalog & Inventory Service

Inventory model:
- Stock is a plain integer counter on the product row; it never goes negative.
- Checkout decrements it; staff set it directly or restock by an amount.
- No history is kept: every edit is a direct overwrite.

Visibility:
- available=False hides a product from the customer menu only. Admin listings
  include every product.

Stock classification (used for badges and alerts):
    0    -> OUT_OF_STOCK
    1-4  -> CRITICAL
    5-9  -> LOW
    >=10 -> IN_STOCK
"""

from __future__ import annotations

from enum import Enum

from flask import current_app

from ..models import Product
from ..repositories import ProductRepository
from ..validation import NotFoundError, ValidationError


CRITICAL_STOCK_THRESHOLD = 5
LOW_STOCK_THRESHOLD = 10

SORT_OPTIONS = ("name", "price-low", "price-high", "popular")

PRODUCT_MUTABLE_FIELDS = {
    "name", "category", "description", "image", "options", "price_cents", "stock", "available",
}


class StockStatus(str, Enum):
    OUT_OF_STOCK = "OutOfStock"
    CRITICAL = "Critical"
    LOW = "Low"
    IN_STOCK = "InStock"

    @property
    def label(self) -> str:
        return _STOCK_LABELS[self]


_STOCK_LABELS = {
    StockStatus.OUT_OF_STOCK: "Out of Stock",
    StockStatus.CRITICAL: "Very Low",
    StockStatus.LOW: "Low",
    StockStatus.IN_STOCK: "In Stock",
}


class InsufficientStockError(ValueError):
    """Requested quantity exceeds on-hand stock. Stock is left unchanged."""

    def __init__(self, product_id: int, requested: int, on_hand: int, name: str | None = None):
        label = name or f"product {product_id}"
        super().__init__(f"Only {on_hand} {label} available in stock")
        self.product_id = product_id
        self.requested = requested
        self.on_hand = on_hand

    @property
    def details(self) -> dict:
        return {
            "product_id": self.product_id,
            "requested_quantity": self.requested,
            "on_hand": self.on_hand,
        }


def stock_status(stock: int) -> StockStatus:
    if stock <= 0:
        return StockStatus.OUT_OF_STOCK
    if stock < CRITICAL_STOCK_THRESHOLD:
        return StockStatus.CRITICAL
    if stock < LOW_STOCK_THRESHOLD:
        return StockStatus.LOW
    return StockStatus.IN_STOCK


def product_to_dict(product: Product) -> dict:
    data = product.to_dict()
    status = stock_status(product.stock)
    data["stock_status"] = status.value
    data["stock_status_label"] = status.label
    return data


def _sort_products(products: list[Product], sort: str) -> list[Product]:
    if sort == "price-low":
        return sorted(products, key=lambda p: (p.price_cents, p.id))
    if sort == "price-high":
        return sorted(products, key=lambda p: (-p.price_cents, p.id))
    if sort == "popular":
        # Lowest stock first stands in for popularity
        return sorted(products, key=lambda p: (p.stock, p.id))
    return sorted(products, key=lambda p: (p.name.casefold(), p.id))


def list_products(
    *,
    category: str | None = None,
    search: str | None = None,
    sort: str = "name",
    include_unavailable: bool = False,
    products: ProductRepository | None = None,
) -> list[Product]:
    """
    Filtered, sorted product list.

    search matches name or description, case-insensitively. Unknown sort
    keys raise ValidationError.
    """
    if sort not in SORT_OPTIONS:
        raise ValidationError(f"sort must be one of: {', '.join(SORT_OPTIONS)}", field="sort")

    products = products or ProductRepository()
    rows = products.list(
        include_unavailable=include_unavailable,
        category=category,
        search=(search or "").strip() or None,
    )
    return _sort_products(rows, sort)


def list_categories(*, include_unavailable: bool = False) -> list[str]:
    return ProductRepository().categories(include_unavailable=include_unavailable)


def get_product(
    product_id: int,
    *,
    include_unavailable: bool = True,
    products: ProductRepository | None = None,
) -> Product:
    products = products or ProductRepository()
    product = products.get(product_id)
    if product is None or (not include_unavailable and not product.available):
        raise NotFoundError("Product", product_id)
    return product


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(p, k, v)


def create_product(*, patch: dict, products: ProductRepository | None = None) -> Product:
    """Create a product from a validated patch dict."""
    products = products or ProductRepository()

    product = Product(stock=0, available=True)
    apply_product_patch(product, patch)
    products.add(product)
    products.session.commit()

    current_app.logger.info("Product %s created (%s)", product.id, product.name)
    return product


def update_product(product_id: int, patch: dict, *, products: ProductRepository | None = None) -> Product:
    """Overwrite product fields (price, name, description, ...)."""
    products = products or ProductRepository()
    product = get_product(product_id, products=products)
    apply_product_patch(product, patch)
    products.session.commit()
    return product


def set_stock(product_id: int, new_stock: int, *, products: ProductRepository | None = None) -> Product:
    products = products or ProductRepository()

    if isinstance(new_stock, bool) or not isinstance(new_stock, int):
        raise ValidationError("stock must be an integer", field="stock")
    if new_stock < 0:
        raise ValidationError("stock must be >= 0", field="stock")

    product = get_product(product_id, products=products)
    previous = product.stock
    product.stock = new_stock
    products.session.commit()

    current_app.logger.info("Stock for product %s set %s -> %s", product.id, previous, new_stock)
    return product


def restock(product_id: int, amount: int, *, products: ProductRepository | None = None) -> Product:
    """Add `amount` units to on-hand stock."""
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise ValidationError("Restock amount must be a positive integer", field="amount")

    products = products or ProductRepository()
    product = get_product(product_id, products=products)
    return set_stock(product.id, product.stock + amount, products=products)


def toggle_availability(product_id: int, *, products: ProductRepository | None = None) -> Product:
    products = products or ProductRepository()
    product = get_product(product_id, products=products)
    product.available = not product.available
    products.session.commit()

    current_app.logger.info(
        "Product %s %s", product.id, "enabled" if product.available else "disabled"
    )
    return product


def check_stock(product: Product, qty: int) -> None:
    """Raise InsufficientStockError if `qty` exceeds on-hand stock."""
    if qty > product.stock:
        raise InsufficientStockError(product.id, qty, product.stock, product.name)


def decrement_stock(
    product_id: int,
    qty: int,
    *,
    commit: bool = True,
    products: ProductRepository | None = None,
) -> Product:
    """
    Remove `qty` units from stock.

    Raises InsufficientStockError (stock untouched) if qty > stock.
    With commit=False the caller owns the transaction (checkout).
    """
    if isinstance(qty, bool) or not isinstance(qty, int) or qty <= 0:
        raise ValidationError("Quantity must be a positive integer", field="quantity")

    products = products or ProductRepository()
    product = get_product(product_id, products=products)
    check_stock(product, qty)

    product.stock -= qty
    if commit:
        products.session.commit()
    return product


def low_stock_products(*, limit: int | None = None, products: ProductRepository | None = None) -> list[Product]:
    """Available products with fewer than LOW_STOCK_THRESHOLD units."""
    products = products or ProductRepository()
    rows = products.low_stock(LOW_STOCK_THRESHOLD)
    return rows[:limit] if limit else rows


def inventory_report(*, products: ProductRepository | None = None) -> dict:
    """Every product with its stock classification, plus alert counts."""
    products = products or ProductRepository()
    rows = products.list(include_unavailable=True)
    low = [p for p in rows if p.available and p.stock < LOW_STOCK_THRESHOLD]
    out = [p for p in rows if p.available and p.stock == 0]
    return {
        "items": [product_to_dict(p) for p in rows],
        "count": len(rows),
        "low_stock_count": len(low),
        "out_of_stock_count": len(out),
    }
