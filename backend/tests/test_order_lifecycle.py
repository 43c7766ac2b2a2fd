"""
Order lifecycle tests.

Verifies:
- Tracking moves To Pay -> To Prepare -> Out for Delivery -> Delivered,
  one step per advance, never backward
- Advancing a Delivered order is a no-op
- COD becomes Paid only on entering Delivered; prepaid methods stay Paid
- Tracking step states, admin filters and the receipt view
"""

from datetime import timedelta

import pytest

from bakerist.services import order_service
from bakerist.services.order_service import (
    OrderStatusError,
    STATUS_DELIVERED,
    STATUS_OUT_FOR_DELIVERY,
    STATUS_TO_PAY,
    STATUS_TO_PREPARE,
    next_status,
    tracking_steps,
)
from bakerist.validation import NotFoundError, ValidationError

from conftest import NOW, make_order, make_user


# =============================================================================
# STATUS SEQUENCE
# =============================================================================


class TestNextStatus:
    @pytest.mark.parametrize(
        "current,expected",
        [
            (STATUS_TO_PAY, STATUS_TO_PREPARE),
            (STATUS_TO_PREPARE, STATUS_OUT_FOR_DELIVERY),
            (STATUS_OUT_FOR_DELIVERY, STATUS_DELIVERED),
            (STATUS_DELIVERED, None),
        ],
    )
    def test_sequence(self, current, expected):
        assert next_status(current) == expected

    def test_unknown_status(self):
        with pytest.raises(OrderStatusError):
            next_status("Cancelled")

class TestAdvance:
    def test_advances_one_step_at_a_time(self, db_session, customer):
        make_order(db_session, customer)

        seen = []
        for _ in range(3):
            seen.append(order_service.advance_order_status("ORD-20250120-0004").tracking_status)

        assert seen == [STATUS_OUT_FOR_DELIVERY, STATUS_DELIVERED, STATUS_DELIVERED]

    def test_delivered_is_noop(self, db_session, customer):
        make_order(db_session, customer, status=STATUS_DELIVERED)
        order = order_service.advance_order_status("ORD-20250120-0004")
        assert order.tracking_status == STATUS_DELIVERED
        assert order.payment_status == "Paid"

    def test_to_pay_advances_to_prepare(self, db_session, customer):
        make_order(db_session, customer, status=STATUS_TO_PAY)
        order = order_service.advance_order_status("ORD-20250120-0004")
        assert order.tracking_status == STATUS_TO_PREPARE

    def test_cod_paid_only_on_delivery(self, db_session, customer):
        make_order(db_session, customer, method="COD")

        order = order_service.advance_order_status("ORD-20250120-0004")
        assert order.tracking_status == STATUS_OUT_FOR_DELIVERY
        assert order.payment_status == "Pending"

        order = order_service.advance_order_status("ORD-20250120-0004")
        assert order.tracking_status == STATUS_DELIVERED
        assert order.payment_status == "Paid"

    def test_prepaid_payment_status_untouched(self, db_session, customer):
        make_order(db_session, customer, method="GCash")
        for _ in range(2):
            order = order_service.advance_order_status("ORD-20250120-0004")
        assert order.payment_status == "Paid"

    def test_unknown_order(self, db_session):
        with pytest.raises(NotFoundError):
            order_service.advance_order_status("ORD-20250120-9999")

    def test_lookup_trims_whitespace(self, db_session, customer):
        make_order(db_session, customer)
        assert order_service.get_order("  ORD-20250120-0004 ").id == "ORD-20250120-0004"


# =============================================================================
# TRACKING VIEW
# =============================================================================


class TestTrackingSteps:
    def test_in_progress(self):
        states = [step["status"] for step in tracking_steps(STATUS_TO_PREPARE)]
        assert states == ["completed", "current", "pending", "pending"]

    def test_delivered_completes_every_step(self):
        states = [step["status"] for step in tracking_steps(STATUS_DELIVERED)]
        assert states == ["completed"] * 4

    def test_titles(self):
        titles = [step["title"] for step in tracking_steps(STATUS_TO_PAY)]
        assert titles == ["Awaiting Payment", "Preparing Order", "Out for Delivery", "Delivered"]

    def test_track_order(self, db_session, customer):
        make_order(db_session, customer, status=STATUS_OUT_FOR_DELIVERY)
        result = order_service.track_order("ORD-20250120-0004")
        assert result["order"]["tracking_status"] == STATUS_OUT_FOR_DELIVERY
        assert result["order"]["created_at"] == "2025-01-20T09:15:00Z"
        assert [s["status"] for s in result["steps"]] == ["completed", "completed", "current", "pending"]


# =============================================================================
# LISTINGS
# =============================================================================


class TestListOrders:
    @pytest.fixture
    def orders(self, db_session, customer):
        other = make_user(db_session, email="maria@example.com", name="Maria Santos")
        return [
            make_order(db_session, customer, order_id="ORD-20250120-0004", created_at=NOW),
            make_order(
                db_session, other, order_id="ORD-20250115-0003", method="COD",
                created_at=NOW - timedelta(days=5), full_name="Maria Santos", contact="09181234567",
            ),
            make_order(
                db_session, customer, order_id="ORD-20241201-0002", status=STATUS_DELIVERED,
                created_at=NOW - timedelta(days=50),
            ),
        ]

    def test_newest_first(self, orders):
        ids = [o.id for o in order_service.list_orders()]
        assert ids == ["ORD-20250120-0004", "ORD-20250115-0003", "ORD-20241201-0002"]

    def test_search_by_name_id_and_contact(self, orders):
        assert [o.id for o in order_service.list_orders(search="maria")] == ["ORD-20250115-0003"]
        assert [o.id for o in order_service.list_orders(search="20241201")] == ["ORD-20241201-0002"]
        assert [o.id for o in order_service.list_orders(search="0918")] == ["ORD-20250115-0003"]

    def test_status_filters(self, orders):
        assert [o.id for o in order_service.list_orders(tracking_status=STATUS_DELIVERED)] == ["ORD-20241201-0002"]
        assert [o.id for o in order_service.list_orders(payment_status="Pending")] == ["ORD-20250115-0003"]

    @pytest.mark.parametrize(
        "date_range,expected",
        [
            ("today", ["ORD-20250120-0004"]),
            ("week", ["ORD-20250120-0004", "ORD-20250115-0003"]),
            ("month", ["ORD-20250120-0004", "ORD-20250115-0003"]),
        ],
    )
    def test_date_ranges(self, orders, date_range, expected):
        result = order_service.list_orders(date_range=date_range, now=NOW + timedelta(hours=2))
        assert [o.id for o in result] == expected

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"tracking_status": "Cancelled"},
            {"payment_status": "Refunded"},
            {"date_range": "year"},
        ],
    )
    def test_invalid_filters(self, db_session, kwargs):
        with pytest.raises(ValidationError):
            order_service.list_orders(**kwargs)

    def test_user_history(self, orders, customer):
        ids = [o.id for o in order_service.user_order_history(customer.id)]
        assert ids == ["ORD-20250120-0004", "ORD-20241201-0002"]


# =============================================================================
# RECEIPT
# =============================================================================


class TestReceipt:
    def test_receipt_totals(self, db_session, customer, store_settings):
        order = make_order(db_session, customer)
        receipt = order_service.build_receipt(order)

        assert receipt["order_id"] == "ORD-20250120-0004"
        assert receipt["customer"]["email"] == "juan@example.com"
        assert receipt["totals_display"] == {
            "subtotal": "₱196.00",
            "shipping": "₱30.00",
            "total": "₱226.00",
        }
        assert [line["line_total_display"] for line in receipt["lines"]] == ["₱96.00", "₱100.00"]

    def test_free_shipping_shown_as_free(self, db_session, customer, store_settings):
        order = make_order(db_session, customer, items=(("Ube Cake", 1, 45000),), shipping_cents=0)
        receipt = order_service.build_receipt(order)
        assert receipt["totals_display"]["shipping"] == "FREE"
        assert receipt["totals_display"]["total"] == "₱450.00"

    def test_owner_or_view_orders_can_view(self, db_session, customer, staff):
        other = make_user(db_session, email="maria@example.com")
        order = make_order(db_session, customer)

        assert order_service.can_view_order(customer, order) is True
        assert order_service.can_view_order(staff, order) is True
        assert order_service.can_view_order(other, order) is False
