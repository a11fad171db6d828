"""Shared BDD fixtures and step definitions for split-order cancellation."""

from marketplace.order.events import (
    CommissionReversalRequested,
    OrderPlaced,
    PartCancelled,
    PartStatusChanged,
)
from marketplace.order.order import Order
from pytest_bdd import given, parsers, then

_ORDER_EVENT_CLASSES = {
    "OrderPlaced": OrderPlaced,
    "PartStatusChanged": PartStatusChanged,
    "PartCancelled": PartCancelled,
    "CommissionReversalRequested": CommissionReversalRequested,
}


def _part_of_kind(order, kind):
    return next(p for p in order.parts if p.kind == kind)


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(
    parsers.cfparse('a mixed order with the admin part "{admin_status}" and the vendor part "{vendor_status}"'),
    target_fixture="order",
)
def mixed_order(admin_status, vendor_status):
    order = Order.place(
        customer_id="cust-bdd",
        parts_data=[
            {
                "kind": "admin",
                "status": admin_status,
                "items": [{"product_id": "prod-mug", "title": "Mug", "quantity": 2, "unit_price": 12.5}],
            },
            {
                "kind": "vendor",
                "vendor_id": "vendor-bdd",
                "status": vendor_status,
                "items": [{"product_id": "prod-rug", "title": "Handwoven rug", "quantity": 1, "unit_price": 150.0}],
            },
        ],
    )
    order._events.clear()
    return order


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the {kind} part status is "{status}"'))
def part_status_is(order, kind, status):
    assert _part_of_kind(order, kind).status == status


@then(parsers.cfparse('the unified order status is "{status}"'))
def unified_status_is(order, status):
    assert order.status_summary.unified_status == status


@then("the order cannot be cancelled any more")
def order_not_cancellable(order):
    assert not order.is_cancellable


@then(parsers.cfparse("a {event_type} event is raised"))
def order_event_raised(order, event_type):
    event_cls = _ORDER_EVENT_CLASSES[event_type]
    assert any(
        isinstance(e, event_cls) for e in order._events
    ), f"No {event_type} event found. Events: {[type(e).__name__ for e in order._events]}"


@then(parsers.cfparse("no {event_type} event is raised"))
def order_event_not_raised(order, event_type):
    event_cls = _ORDER_EVENT_CLASSES[event_type]
    assert not any(isinstance(e, event_cls) for e in order._events)
