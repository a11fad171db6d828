"""Cancellation workflow for split orders.

Decides which parts and line items are still cancellable, cancels them, and
works out whether a vendor commission has to be clawed back. The functions
here touch part state only; the unified order status is recomputed by the
caller (``Order`` does so when it raises its events).

``cancel_part`` must be called with exclusive access to the part. Command
handlers get that from the unit of work and the aggregate version check, so
two concurrent cancellations cannot both pass the cancellability check.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Identifier, String

from marketplace.domain import marketplace
from marketplace.order import commission
from marketplace.order.aggregation import unify
from marketplace.order.status import (
    CANCELLED_STATUSES,
    CancellationActor,
    PartKind,
    Status,
    can_transition,
    is_cancellable,
    normalize,
    value_of,
)
from marketplace.utils.logging import get_logger

logger = get_logger(__name__)

NOT_CANCELLABLE = "not_cancellable"


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------
class NotCancellable(ValidationError):
    """The part has moved past the point where it can be cancelled."""


class InvalidTransition(ValidationError):
    """A status change that skips a stage or leaves a terminal status."""


# ---------------------------------------------------------------------------
# Request and outcomes
# ---------------------------------------------------------------------------
@marketplace.value_object
class CancellationRequest:
    """Who wants to cancel, what, and why.

    Without a ``target_part_id`` the request covers every part of the order
    that can still be cancelled.
    """

    actor = String(required=True, max_length=20, choices=CancellationActor)
    target_part_id = Identifier()
    reason = String(required=True, max_length=500)

    @invariant.post
    def reason_must_not_be_blank(self):
        if not self.reason or not self.reason.strip():
            raise ValidationError({"reason": ["A cancellation reason is required"]})


@dataclass(frozen=True)
class CancellationOutcome:
    """Result of cancelling a single part."""

    success: bool
    part_id: str
    previous_status: str
    new_status: str
    commission_reversal_required: bool = False
    commission_reversal_amount: float = 0.0
    refund_amount: float = 0.0
    failure_reason: str | None = None
    message: str = ""

    def raise_for_failure(self) -> None:
        if not self.success:
            raise NotCancellable({"status": [self.message]})


@dataclass(frozen=True)
class OrderCancellationOutcome:
    """Result of cancelling some or all parts of an order."""

    outcomes: list[CancellationOutcome] = field(default_factory=list)
    unified_status: str = Status.PLACED.value

    @property
    def success(self) -> bool:
        return any(o.success for o in self.outcomes)

    @property
    def any_commission_reversal_required(self) -> bool:
        return any(o.commission_reversal_required for o in self.outcomes)

    @property
    def cancelled_part_ids(self) -> list[str]:
        return [o.part_id for o in self.outcomes if o.success]

    @property
    def refund_amount(self) -> float:
        return round(sum(o.refund_amount for o in self.outcomes if o.success), 2)


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------
def effective_status(item, part) -> Status | str:
    """A line item's own status when it has one, else its part's."""
    return normalize(item.status) if item.status else normalize(part.status)


def part_subtotal(part) -> float:
    """Value of the part's items that have not been cancelled on their own."""
    return round(
        sum(
            (
                item.quantity * item.unit_price
                for item in (part.items or [])
                if effective_status(item, part) not in CANCELLED_STATUSES
            ),
            0.0,
        ),
        2,
    )


def can_cancel(part) -> bool:
    return is_cancellable(part.status)


def can_cancel_order(order) -> bool:
    """True when at least one part of the order can still be cancelled."""
    return any(can_cancel(part) for part in order.parts)


def cancellable_parts(order) -> list:
    return [part for part in order.parts if can_cancel(part)]


def cancellable_items(order) -> list:
    return [
        item for part in order.parts for item in (part.items or []) if is_cancellable(effective_status(item, part))
    ]


def commission_reversal_due(part, actor, previous_status) -> bool:
    """A vendor that already started work on a part keeps a commission
    accrual; when the customer walks away, that accrual is reversed.

    Admin parts carry no vendor commission, and an admin or vendor cancelling
    their own fulfillment is not owed a correction.
    """
    return (
        CancellationActor(actor) == CancellationActor.CUSTOMER
        and PartKind(part.kind) == PartKind.VENDOR
        and normalize(previous_status) != Status.PLACED
    )


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------
def _cancelled_message(actor: CancellationActor, reversal_required: bool) -> str:
    if reversal_required:
        return "Cancelled by customer, vendor commission reversed"
    return f"Cancelled by {actor.value}, no commission reversal"


def cancel_part(part, request: CancellationRequest) -> CancellationOutcome:
    """Cancel one part.

    A part that is no longer placed or processing is left untouched and a
    failed outcome explains why.
    """
    previous = value_of(part.status)
    if not can_cancel(part):
        logger.info("Order part not cancellable", part_id=str(part.id), status=previous)
        return CancellationOutcome(
            success=False,
            part_id=str(part.id),
            previous_status=previous,
            new_status=previous,
            failure_reason=NOT_CANCELLABLE,
            message=f"Cannot cancel: already {previous}",
        )

    actor = CancellationActor(request.actor)
    new_status = Status.CANCELLED_BY_CUSTOMER if actor == CancellationActor.CUSTOMER else Status.CANCELLED
    refund_amount = part_subtotal(part)
    reversal_required = commission_reversal_due(part, actor, previous)
    reversal_amount = commission.commission_for(refund_amount, commission.rate_for(part)) if reversal_required else 0.0

    part.status = new_status.value
    part.cancelled_by = actor.value
    part.cancellation_reason = request.reason
    part.cancelled_at = datetime.now(UTC)

    logger.info(
        "Order part cancelled",
        part_id=str(part.id),
        actor=actor.value,
        previous_status=previous,
        commission_reversal_required=reversal_required,
    )
    return CancellationOutcome(
        success=True,
        part_id=str(part.id),
        previous_status=previous,
        new_status=new_status.value,
        commission_reversal_required=reversal_required,
        commission_reversal_amount=reversal_amount,
        refund_amount=refund_amount,
        message=_cancelled_message(actor, reversal_required),
    )


def cancel_order(order, request: CancellationRequest) -> OrderCancellationOutcome:
    """Cancel the targeted part, or everything still cancellable.

    Parts that already shipped, delivered or were cancelled earlier are
    skipped when the whole order is cancelled.
    """
    if request.target_part_id:
        part = find_part(order, request.target_part_id)
        outcomes = [cancel_part(part, request)]
    else:
        outcomes = [cancel_part(part, request) for part in cancellable_parts(order)]

    return OrderCancellationOutcome(outcomes=outcomes, unified_status=value_of(unify(order.parts)))


def find_part(order, part_id):
    part = next((p for p in order.parts if str(p.id) == str(part_id)), None)
    if part is None:
        raise ValidationError({"part_id": ["Part not found in this order"]})
    return part


def advance(part, target) -> str:
    """Move a part forward through its fulfillment lifecycle.

    Cancellation has its own path; here only the forward stages are legal.
    Returns the previous status.
    """
    current, target = normalize(part.status), normalize(target)
    if target in CANCELLED_STATUSES or not can_transition(current, target):
        raise InvalidTransition({"status": [f"Cannot transition from {value_of(current)} to {value_of(target)}"]})

    part.status = target.value
    return value_of(current)
