"""Order domain events — immutable facts about split-order state changes.

Every event carries the unified order status recomputed at the moment it was
raised, so projections never have to re-aggregate parts themselves.
"""

from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String

from marketplace.domain import marketplace


@marketplace.event(part_of="Order")
class OrderPlaced:
    """A customer order was placed and split into parts."""

    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    order_type = String(required=True)
    part_count = Integer(required=True)
    grand_total = Float()
    unified_status = String(required=True)
    cancellable = Boolean(default=False)
    cancelled_part_count = Integer(default=0)
    placed_at = DateTime(required=True)


@marketplace.event(part_of="Order")
class PartStatusChanged:
    """A part moved forward in its fulfillment lifecycle."""

    __version__ = 1

    order_id = Identifier(required=True)
    part_id = Identifier(required=True)
    kind = String(required=True)
    vendor_id = Identifier()
    previous_status = String(required=True)
    new_status = String(required=True)
    unified_status = String(required=True)
    cancellable = Boolean(default=False)
    changed_at = DateTime(required=True)


@marketplace.event(part_of="Order")
class PartCancelled:
    """A part was cancelled by the customer, an admin or its vendor."""

    __version__ = 1

    order_id = Identifier(required=True)
    part_id = Identifier(required=True)
    kind = String(required=True)
    vendor_id = Identifier()
    cancelled_by = String(required=True)
    reason = String(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    refund_amount = Float(default=0.0)
    commission_reversal_required = Boolean(default=False)
    unified_status = String(required=True)
    cancellable = Boolean(default=False)
    cancelled_at = DateTime(required=True)


@marketplace.event(part_of="Order")
class CommissionReversalRequested:
    """A vendor commission accrued on a cancelled part must be reversed."""

    __version__ = 1

    order_id = Identifier(required=True)
    part_id = Identifier(required=True)
    vendor_id = Identifier(required=True)
    amount = Float(required=True)
    commission_rate = Float(required=True)
    reason = String(required=True)
    requested_at = DateTime(required=True)
