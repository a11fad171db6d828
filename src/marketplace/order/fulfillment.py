"""Order part fulfillment — commands and handler.

Admins and vendors move their own part forward: processing, shipped,
delivered. Each step is validated against the part state machine.
"""

from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.order.order import Order


@marketplace.command(part_of="Order")
class MarkPartProcessing:
    """Signal that the admin or vendor has started preparing the part."""

    order_id = Identifier(required=True)
    part_id = Identifier(required=True)


@marketplace.command(part_of="Order")
class MarkPartShipped:
    """Record that the part has been handed to a carrier."""

    order_id = Identifier(required=True)
    part_id = Identifier(required=True)


@marketplace.command(part_of="Order")
class MarkPartDelivered:
    """Record that the part has reached the customer."""

    order_id = Identifier(required=True)
    part_id = Identifier(required=True)


@marketplace.command_handler(part_of=Order)
class PartFulfillmentHandler:
    @handle(MarkPartProcessing)
    def mark_part_processing(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.mark_part_processing(command.part_id)
        repo.add(order)

    @handle(MarkPartShipped)
    def mark_part_shipped(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.mark_part_shipped(command.part_id)
        repo.add(order)

    @handle(MarkPartDelivered)
    def mark_part_delivered(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.mark_part_delivered(command.part_id)
        repo.add(order)
