"""Order status — the unified, customer-facing status of each order.

Kept current from order events, so status badges and cancel buttons read a
single record instead of re-aggregating parts on a timer.
"""

from protean.core.projector import on
from protean.fields import Boolean, DateTime, Identifier, Integer, String
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.order.events import OrderPlaced, PartCancelled, PartStatusChanged
from marketplace.order.order import Order
from marketplace.order.status import status_info


@marketplace.projection
class OrderStatusView:
    order_id = Identifier(identifier=True, required=True)
    customer_id = Identifier(required=True)
    unified_status = String(required=True)
    status_label = String()
    order_type = String()
    part_count = Integer(default=0)
    cancelled_part_count = Integer(default=0)
    cancellable = Boolean(default=True)
    placed_at = DateTime()
    updated_at = DateTime()


@marketplace.projector(projector_for=OrderStatusView, aggregates=[Order])
class OrderStatusProjector:
    @on(OrderPlaced)
    def on_order_placed(self, event):
        current_domain.repository_for(OrderStatusView).add(
            OrderStatusView(
                order_id=event.order_id,
                customer_id=event.customer_id,
                unified_status=event.unified_status,
                status_label=status_info(event.unified_status).label,
                order_type=event.order_type,
                part_count=event.part_count,
                cancelled_part_count=event.cancelled_part_count,
                cancellable=event.cancellable,
                placed_at=event.placed_at,
                updated_at=event.placed_at,
            )
        )

    def _update_status(self, order_id, unified_status, cancellable, updated_at):
        repo = current_domain.repository_for(OrderStatusView)
        view = repo.get(order_id)
        view.unified_status = unified_status
        view.status_label = status_info(unified_status).label
        view.cancellable = cancellable
        view.updated_at = updated_at
        return repo, view

    @on(PartStatusChanged)
    def on_part_status_changed(self, event):
        repo, view = self._update_status(event.order_id, event.unified_status, event.cancellable, event.changed_at)
        repo.add(view)

    @on(PartCancelled)
    def on_part_cancelled(self, event):
        repo, view = self._update_status(event.order_id, event.unified_status, event.cancellable, event.cancelled_at)
        view.cancelled_part_count = (view.cancelled_part_count or 0) + 1
        repo.add(view)
