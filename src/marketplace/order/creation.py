"""Order placement — command and handler."""

import json

from protean import handle
from protean.fields import Identifier, Text
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.order.order import Order
from marketplace.utils.logging import get_logger

logger = get_logger(__name__)


@marketplace.command(part_of="Order")
class PlaceOrder:
    """Place an order that checkout has already split into parts."""

    customer_id = Identifier(required=True)
    parts = Text(required=True)  # JSON: list of part dicts, each with its items


@marketplace.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        parts_data = json.loads(command.parts) if isinstance(command.parts, str) else command.parts
        order = Order.place(customer_id=command.customer_id, parts_data=parts_data)
        current_domain.repository_for(Order).add(order)

        logger.info(
            "Order placed",
            order_id=str(order.id),
            order_type=order.order_type.value,
            part_count=len(order.parts),
        )
        return str(order.id)
