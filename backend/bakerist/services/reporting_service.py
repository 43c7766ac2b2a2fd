# Overview: Service-layer operations for reporting; dashboard aggregates.

from __future__ import annotations

from datetime import datetime, timedelta

from sqlalchemy import func

from ..extensions import db
from ..models import Order, ROLE_CUSTOMER
from ..repositories import OrderRepository, UserRepository
from ..time_utils import start_of_day, utcnow
from . import catalog_service
from .catalog_service import product_to_dict
from .order_service import STATUS_TO_PREPARE


RECENT_ORDERS_LIMIT = 5
LOW_STOCK_ALERTS_LIMIT = 5


def _order_totals(since: datetime | None = None, until: datetime | None = None) -> tuple[int, int]:
    """(order count, sum of totals) for orders created in [since, until)."""
    query = db.session.query(
        func.count(Order.id),
        func.coalesce(func.sum(Order.total_cents), 0),
    )
    if since is not None:
        query = query.filter(Order.created_at >= since)
    if until is not None:
        query = query.filter(Order.created_at < until)
    count, total = query.one()
    return int(count), int(total)


def dashboard_overview(*, now: datetime | None = None) -> dict:
    """
    Admin overview metrics.

    "Today" is the current UTC calendar day. Pending means waiting in
    To Prepare. Revenue counts every order regardless of payment status.
    """
    now = now or utcnow()
    today = start_of_day(now)
    tomorrow = today + timedelta(days=1)

    total_orders, total_revenue = _order_totals()
    today_orders, today_revenue = _order_totals(today, tomorrow)

    pending = db.session.query(func.count(Order.id)).filter(
        Order.tracking_status == STATUS_TO_PREPARE
    ).scalar() or 0

    low_stock = catalog_service.low_stock_products()
    recent = OrderRepository().list(limit=RECENT_ORDERS_LIMIT)

    return {
        "total_orders": total_orders,
        "today_orders": today_orders,
        "pending_orders": int(pending),
        "total_revenue_cents": total_revenue,
        "today_revenue_cents": today_revenue,
        "low_stock_count": len(low_stock),
        "total_customers": UserRepository().count_by_role(ROLE_CUSTOMER),
        "recent_orders": [
            {
                "id": o.id,
                "full_name": o.full_name,
                "total_cents": o.total_cents,
                "tracking_status": o.tracking_status,
                "created_at": o.to_dict()["created_at"],
            }
            for o in recent
        ],
        "low_stock_alerts": [product_to_dict(p) for p in low_stock[:LOW_STOCK_ALERTS_LIMIT]],
    }
