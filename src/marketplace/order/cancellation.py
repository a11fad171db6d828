"""Order cancellation — commands and handler.

Handlers return the workflow outcome so callers can tell "cancelled,
commission reversed" from "cancelled by vendor, no reversal". When nothing
could be cancelled they raise ``NotCancellable`` instead, carrying the
reason to show the user.
"""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.order.order import Order
from marketplace.order.status import CancellationActor
from marketplace.order.workflow import CancellationRequest, NotCancellable
from marketplace.utils.logging import get_logger

logger = get_logger(__name__)


@marketplace.command(part_of="Order")
class CancelOrderPart:
    order_id = Identifier(required=True)
    part_id = Identifier(required=True)
    actor = String(required=True, max_length=20, choices=CancellationActor)
    reason = String(required=True, max_length=500)


@marketplace.command(part_of="Order")
class CancelOrder:
    """Cancel everything in the order that has not shipped yet."""

    order_id = Identifier(required=True)
    actor = String(required=True, max_length=20, choices=CancellationActor)
    reason = String(required=True, max_length=500)


@marketplace.command_handler(part_of=Order)
class CancelOrderHandler:
    @handle(CancelOrderPart)
    def cancel_order_part(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        outcome = order.cancel_part(
            command.part_id,
            CancellationRequest(actor=command.actor, target_part_id=command.part_id, reason=command.reason),
        )
        outcome.raise_for_failure()
        repo.add(order)
        return outcome

    @handle(CancelOrder)
    def cancel_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        result = order.cancel(CancellationRequest(actor=command.actor, reason=command.reason))
        if not result.success:
            logger.info("Nothing left to cancel", order_id=str(order.id), unified_status=result.unified_status)
            raise NotCancellable({"status": [f"Cannot cancel: order already {result.unified_status}"]})

        repo.add(order)
        logger.info(
            "Order cancelled",
            order_id=str(order.id),
            cancelled_parts=len(result.cancelled_part_ids),
            commission_reversal_required=result.any_commission_reversal_required,
        )
        return result
