"""Order aggregate (CQRS) — a customer order split into fulfillment parts.

At checkout an order is split into one admin part (items the platform ships
itself) and one part per vendor. Each part moves through its own lifecycle;
the customer-facing status of the order is never stored, it is always
recomputed from the parts.

Part State Machine:
    PLACED → PROCESSING → SHIPPED → DELIVERED
    {PLACED, PROCESSING} → CANCELLED / CANCELLED_BY_CUSTOMER
"""

from datetime import UTC, datetime

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import (
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    String,
)

from marketplace.domain import marketplace
from marketplace.order import commission, workflow
from marketplace.order.aggregation import summarize, unify
from marketplace.order.events import (
    CommissionReversalRequested,
    OrderPlaced,
    PartCancelled,
    PartStatusChanged,
)
from marketplace.order.status import (
    CANCELLED_STATUSES,
    OrderType,
    PartKind,
    Status,
    normalize,
    value_of,
)
from marketplace.order.workflow import CancellationRequest


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@marketplace.entity(part_of="Order")
class OrderPart:
    """One fulfillment unit: the platform's own items, or a single vendor's."""

    kind = String(required=True, max_length=10, choices=PartKind)
    vendor_id = Identifier()
    status = String(
        max_length=50,
        choices=Status,
        default=Status.PLACED.value,
    )
    items = HasMany("LineItem")
    commission_rate = Float(min_value=0.0, max_value=1.0)
    cancelled_by = String(max_length=20)
    cancellation_reason = String(max_length=500)
    cancelled_at = DateTime()

    @invariant.post
    def vendor_id_only_on_vendor_parts(self):
        if self.kind == PartKind.VENDOR.value and not self.vendor_id:
            raise ValidationError({"vendor_id": ["Vendor parts must reference a vendor"]})
        if self.kind == PartKind.ADMIN.value and self.vendor_id:
            raise ValidationError({"vendor_id": ["Admin parts cannot reference a vendor"]})

    @property
    def subtotal(self) -> float:
        return workflow.part_subtotal(self)

    @property
    def is_cancellable(self) -> bool:
        return workflow.can_cancel(self)


@marketplace.entity(part_of=OrderPart)
class LineItem:
    """A product line within a part.

    An item normally follows its part's status; ``status`` is only set when
    the item has diverged from it.
    """

    product_id = Identifier(required=True)
    title = String(required=True, max_length=255)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)
    status = String(max_length=50, choices=Status)

    @property
    def total(self) -> float:
        return round(self.quantity * self.unit_price, 2)


# ---------------------------------------------------------------------------
# Aggregate Root (CQRS)
# ---------------------------------------------------------------------------
@marketplace.aggregate
class Order:
    customer_id = Identifier(required=True)
    parts = HasMany(OrderPart)
    placed_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def must_have_at_least_one_part(self):
        if not self.parts:
            raise ValidationError({"parts": ["An order must have at least one part"]})

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def place(cls, customer_id: str, parts_data: list[dict]):
        """Place a new order from checkout data that has already been split.

        Args:
            customer_id: The customer placing the order.
            parts_data: List of dicts with kind, vendor_id (vendor parts
                only), optional status and commission_rate, and items, a
                list of dicts with product_id, title, quantity, unit_price
                and an optional status.
        """
        if not parts_data:
            raise ValidationError({"parts": ["An order must have at least one part"]})

        now = datetime.now(UTC)
        parts = [
            OrderPart(
                kind=part_data.get("kind"),
                vendor_id=part_data.get("vendor_id"),
                status=value_of(part_data.get("status")),
                commission_rate=part_data.get("commission_rate"),
                items=[
                    LineItem(
                        **{
                            **item_data,
                            "status": value_of(item_data["status"]) if item_data.get("status") else None,
                        }
                    )
                    for item_data in part_data.get("items", [])
                ],
            )
            for part_data in parts_data
        ]
        order = cls(customer_id=customer_id, parts=parts, placed_at=now, updated_at=now)

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                customer_id=str(customer_id),
                order_type=order.order_type.value,
                part_count=len(order.parts),
                grand_total=order.grand_total,
                unified_status=value_of(order.unified_status),
                cancellable=order.is_cancellable,
                cancelled_part_count=order.cancelled_part_count,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Derived state
    # -------------------------------------------------------------------
    @property
    def unified_status(self) -> Status | str:
        return unify(self.parts or [])

    @property
    def status_summary(self):
        return summarize(self.parts or [])

    @property
    def order_type(self) -> OrderType:
        kinds = {PartKind(part.kind) for part in self.parts or []}
        if kinds == {PartKind.ADMIN, PartKind.VENDOR}:
            return OrderType.MIXED
        if kinds == {PartKind.VENDOR}:
            return OrderType.VENDOR_ONLY
        return OrderType.ADMIN_ONLY

    @property
    def is_cancellable(self) -> bool:
        return workflow.can_cancel_order(self)

    @property
    def cancelled_part_count(self) -> int:
        return sum(1 for part in self.parts or [] if normalize(part.status) in CANCELLED_STATUSES)

    @property
    def has_cancelled_parts(self) -> bool:
        return self.cancelled_part_count > 0

    @property
    def grand_total(self) -> float:
        return round(sum((part.subtotal for part in self.parts or []), 0.0), 2)

    def part(self, part_id):
        return workflow.find_part(self, part_id)

    # -------------------------------------------------------------------
    # Part lifecycle transitions
    # -------------------------------------------------------------------
    def advance_part(self, part_id, target_status) -> None:
        """Move a part forward; skipping a stage raises ``InvalidTransition``."""
        part = self.part(part_id)
        previous = workflow.advance(part, target_status)

        now = datetime.now(UTC)
        self.updated_at = now
        self.raise_(
            PartStatusChanged(
                order_id=str(self.id),
                part_id=str(part.id),
                kind=part.kind,
                vendor_id=part.vendor_id,
                previous_status=previous,
                new_status=part.status,
                unified_status=value_of(self.unified_status),
                cancellable=self.is_cancellable,
                changed_at=now,
            )
        )

    def mark_part_processing(self, part_id) -> None:
        self.advance_part(part_id, Status.PROCESSING)

    def mark_part_shipped(self, part_id) -> None:
        self.advance_part(part_id, Status.SHIPPED)

    def mark_part_delivered(self, part_id) -> None:
        self.advance_part(part_id, Status.DELIVERED)

    # -------------------------------------------------------------------
    # Cancellation
    # -------------------------------------------------------------------
    def cancel_part(self, part_id, request: CancellationRequest) -> workflow.CancellationOutcome:
        """Cancel a single part. A failed outcome leaves the order unchanged."""
        outcome = workflow.cancel_part(self.part(part_id), request)
        if outcome.success:
            self._record_cancellations([outcome], request)
        return outcome

    def cancel(self, request: CancellationRequest) -> workflow.OrderCancellationOutcome:
        """Cancel the requested part, or every part that can still be cancelled."""
        result = workflow.cancel_order(self, request)
        self._record_cancellations([o for o in result.outcomes if o.success], request)
        return result

    def _record_cancellations(self, outcomes, request: CancellationRequest) -> None:
        if not outcomes:
            return

        now = datetime.now(UTC)
        self.updated_at = now
        unified_status = value_of(self.unified_status)
        cancellable = self.is_cancellable

        for outcome in outcomes:
            part = self.part(outcome.part_id)
            self.raise_(
                PartCancelled(
                    order_id=str(self.id),
                    part_id=outcome.part_id,
                    kind=part.kind,
                    vendor_id=part.vendor_id,
                    cancelled_by=part.cancelled_by,
                    reason=request.reason,
                    previous_status=outcome.previous_status,
                    new_status=outcome.new_status,
                    refund_amount=outcome.refund_amount,
                    commission_reversal_required=outcome.commission_reversal_required,
                    unified_status=unified_status,
                    cancellable=cancellable,
                    cancelled_at=now,
                )
            )
            if outcome.commission_reversal_required:
                self.raise_(
                    CommissionReversalRequested(
                        order_id=str(self.id),
                        part_id=outcome.part_id,
                        vendor_id=part.vendor_id,
                        amount=outcome.commission_reversal_amount,
                        commission_rate=commission.rate_for(part),
                        reason=request.reason,
                        requested_at=now,
                    )
                )
