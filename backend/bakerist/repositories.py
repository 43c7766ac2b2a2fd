# Overview: Per-entity data access over an injected SQLAlchemy session.

"""
Repositories for the bakery's persisted documents.

Each repository wraps a SQLAlchemy session (``db.session`` unless another is
injected) and gives record-level get/list/add access. Repositories never
commit; the calling service owns the unit of work.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import func, or_

from .extensions import db
from .models import User, Product, DeliveryZone, Order, OrderItem, StoreSettings, CartItem, SessionToken


class _Repository:
    model = None

    def __init__(self, session=None):
        self.session = session if session is not None else db.session

    def get(self, key):
        return self.session.get(self.model, key)

    def add(self, obj):
        self.session.add(obj)
        return obj

    def query(self):
        return self.session.query(self.model)


class UserRepository(_Repository):
    model = User

    def get_by_email(self, email: str) -> User | None:
        return self.query().filter(User.email == email).first()

    def email_exists(self, email: str) -> bool:
        return self.session.query(User.id).filter(User.email == email).first() is not None

    def list(self, *, roles: tuple[str, ...] | None = None) -> list[User]:
        query = self.query()
        if roles:
            query = query.filter(User.role.in_(roles))
        return query.order_by(User.created_at.asc(), User.id.asc()).all()

    def count_by_role(self, role: str) -> int:
        return self.query().filter(User.role == role).count()


class SessionRepository(_Repository):
    model = SessionToken

    def get_by_hash(self, token_hash: str, *, include_revoked: bool = False) -> SessionToken | None:
        query = self.query().filter(SessionToken.token_hash == token_hash)
        if not include_revoked:
            query = query.filter(SessionToken.is_revoked.is_(False))
        return query.first()

    def active_for_user(self, user_id: int) -> list[SessionToken]:
        return self.query().filter(
            SessionToken.user_id == user_id,
            SessionToken.is_revoked.is_(False),
        ).all()


class ProductRepository(_Repository):
    model = Product

    def list(
        self,
        *,
        include_unavailable: bool = False,
        category: str | None = None,
        search: str | None = None,
    ) -> list[Product]:
        query = self.query()
        if not include_unavailable:
            query = query.filter(Product.available.is_(True))
        if category and category != "all":
            query = query.filter(Product.category == category)
        if search:
            pattern = f"%{search.lower()}%"
            query = query.filter(or_(
                func.lower(Product.name).like(pattern),
                func.lower(func.coalesce(Product.description, "")).like(pattern),
            ))
        return query.order_by(Product.id.asc()).all()

    def categories(self, *, include_unavailable: bool = False) -> list[str]:
        query = self.session.query(Product.category).distinct()
        if not include_unavailable:
            query = query.filter(Product.available.is_(True))
        return sorted(row[0] for row in query.all())

    def low_stock(self, threshold: int) -> list[Product]:
        return self.query().filter(
            Product.available.is_(True),
            Product.stock < threshold,
        ).order_by(Product.stock.asc(), Product.id.asc()).all()


class DeliveryZoneRepository(_Repository):
    model = DeliveryZone

    def get_by_barangay(self, barangay: str) -> DeliveryZone | None:
        return self.query().filter(DeliveryZone.barangay == barangay).first()

    def list(self) -> list[DeliveryZone]:
        return self.query().order_by(DeliveryZone.barangay.asc()).all()


class CartRepository(_Repository):
    model = CartItem

    def lines(self, session_id: int) -> list[CartItem]:
        return self.query().filter(CartItem.session_id == session_id).order_by(CartItem.id.asc()).all()

    def line_for_product(self, session_id: int, product_id: int) -> CartItem | None:
        return self.query().filter(
            CartItem.session_id == session_id,
            CartItem.product_id == product_id,
        ).first()

    def delete(self, line: CartItem) -> None:
        self.session.delete(line)

    def clear(self, session_id: int) -> int:
        lines = self.lines(session_id)
        for line in lines:
            self.session.delete(line)
        return len(lines)


class OrderRepository(_Repository):
    model = Order

    def list(
        self,
        *,
        user_id: int | None = None,
        tracking_status: str | None = None,
        payment_status: str | None = None,
        created_since: datetime | None = None,
        search: str | None = None,
        newest_first: bool = True,
        limit: int | None = None,
    ) -> list[Order]:
        query = self.query()
        if user_id is not None:
            query = query.filter(Order.user_id == user_id)
        if tracking_status:
            query = query.filter(Order.tracking_status == tracking_status)
        if payment_status:
            query = query.filter(Order.payment_status == payment_status)
        if created_since is not None:
            query = query.filter(Order.created_at >= created_since)
        if search:
            pattern = f"%{search.lower()}%"
            query = query.filter(or_(
                func.lower(Order.id).like(pattern),
                func.lower(Order.full_name).like(pattern),
                func.lower(Order.contact).like(pattern),
            ))
        if newest_first:
            query = query.order_by(Order.created_at.desc(), Order.id.desc())
        else:
            query = query.order_by(Order.created_at.asc(), Order.id.asc())
        if limit:
            query = query.limit(limit)
        return query.all()

    def count(self) -> int:
        return self.query().count()

    def add_item(self, item: OrderItem) -> OrderItem:
        self.session.add(item)
        return item


class SettingsRepository(_Repository):
    model = StoreSettings

    SINGLETON_ID = 1

    def get_or_create(self) -> StoreSettings:
        settings = self.get(self.SINGLETON_ID)
        if settings is None:
            settings = StoreSettings(id=self.SINGLETON_ID, next_order_number=1)
            self.session.add(settings)
            self.session.flush()
        return settings
