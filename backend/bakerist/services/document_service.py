# Overview: Order number allocation from the store settings counter.

from __future__ import annotations

from datetime import datetime

from ..repositories import SettingsRepository, OrderRepository


ORDER_PREFIX = "ORD"


def format_order_id(number: int, when: datetime, *, pad: int = 4) -> str:
    """ORD-YYYYMMDD-NNNN using the UTC calendar date of `when`."""
    return f"{ORDER_PREFIX}-{when.strftime('%Y%m%d')}-{number:0{pad}d}"


def next_order_id(
    when: datetime,
    *,
    settings: SettingsRepository | None = None,
    orders: OrderRepository | None = None,
) -> str:
    """
    Allocate the next order id and advance the counter.

    Only the counter is consulted, never the number of stored orders. If the
    formatted id is already taken (counter reset or hand-edited), the counter
    keeps advancing until a free id is found.

    Caller owns the transaction: nothing is committed here.
    """
    settings = settings or SettingsRepository()
    orders = orders or OrderRepository(settings.session)

    row = settings.get_or_create()
    number = row.next_order_number
    order_id = format_order_id(number, when)
    while orders.get(order_id) is not None:
        number += 1
        order_id = format_order_id(number, when)

    row.next_order_number = number + 1
    return order_id
