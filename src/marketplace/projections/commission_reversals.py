"""Commission reversal ledger — one entry per vendor part whose commission
was clawed back after a customer cancellation.

Entries are keyed by part: a part is cancelled at most once, so it is
reversed at most once.
"""

from protean.core.projector import on
from protean.fields import DateTime, Float, Identifier, String
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.order.events import CommissionReversalRequested
from marketplace.order.order import Order
from marketplace.utils.logging import get_logger

logger = get_logger(__name__)


@marketplace.projection
class CommissionReversalLedger:
    part_id = Identifier(identifier=True, required=True)
    order_id = Identifier(required=True)
    vendor_id = Identifier(required=True)
    amount = Float(required=True)
    commission_rate = Float()
    reason = String(max_length=500)
    requested_at = DateTime()


@marketplace.projector(projector_for=CommissionReversalLedger, aggregates=[Order])
class CommissionReversalProjector:
    @on(CommissionReversalRequested)
    def on_commission_reversal_requested(self, event):
        current_domain.repository_for(CommissionReversalLedger).add(
            CommissionReversalLedger(
                part_id=event.part_id,
                order_id=event.order_id,
                vendor_id=event.vendor_id,
                amount=event.amount,
                commission_rate=event.commission_rate,
                reason=event.reason,
                requested_at=event.requested_at,
            )
        )
        logger.info(
            "Commission reversal recorded",
            order_id=str(event.order_id),
            part_id=str(event.part_id),
            vendor_id=str(event.vendor_id),
            amount=event.amount,
        )
