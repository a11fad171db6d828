"""Marketplace bounded context — split-order status and cancellation.

An order placed on the storefront is split into parts: one fulfilled by the
platform (the admin part) and any number fulfilled by independent vendors.
This context computes the unified customer-facing status from those parts
and runs the cancellation workflow, including vendor commission reversal.
"""

import structlog
from protean.domain import Domain

marketplace = Domain(name="marketplace")

logger = structlog.get_logger(__name__)
