"""Order part statuses — the canonical status set, priorities and transitions.

State Machine (per part):
    PLACED → PROCESSING → SHIPPED → DELIVERED
    {PLACED, PROCESSING} → CANCELLED / CANCELLED_BY_CUSTOMER

Every lookup here is a fixed table. Legacy and alternate spellings coming
from older order records are folded into the canonical set by ``normalize``.
"""

from enum import Enum
from typing import NamedTuple

from marketplace.utils.logging import get_logger

logger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class Status(Enum):
    PLACED = "placed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    CANCELLED_BY_CUSTOMER = "cancelled_by_customer"


class PartKind(Enum):
    ADMIN = "admin"
    VENDOR = "vendor"


class OrderType(Enum):
    ADMIN_ONLY = "admin_only"
    VENDOR_ONLY = "vendor_only"
    MIXED = "mixed"


class CancellationActor(Enum):
    CUSTOMER = "customer"
    ADMIN = "admin"
    VENDOR = "vendor"


class StatusInfo(NamedTuple):
    label: str
    description: str


_PRIORITY = {
    Status.CANCELLED: 0,
    Status.CANCELLED_BY_CUSTOMER: 0,
    Status.PLACED: 1,
    Status.PROCESSING: 2,
    Status.SHIPPED: 3,
    Status.DELIVERED: 4,
}

# Unknown statuses rank alongside PLACED
_FALLBACK_PRIORITY = _PRIORITY[Status.PLACED]

_ALIASES = {
    "pending": Status.PLACED,
    "confirmed": Status.PROCESSING,
    "accepted": Status.PROCESSING,
    "rejected": Status.CANCELLED,
    "cancelled_by_user": Status.CANCELLED_BY_CUSTOMER,
}

CANCELLED_STATUSES = frozenset({Status.CANCELLED, Status.CANCELLED_BY_CUSTOMER})

TERMINAL_STATUSES = frozenset({Status.DELIVERED, Status.CANCELLED, Status.CANCELLED_BY_CUSTOMER})

# States from which a part may still be cancelled
CANCELLABLE_STATUSES = frozenset({Status.PLACED, Status.PROCESSING})

_VALID_TRANSITIONS = {
    Status.PLACED: {Status.PROCESSING, Status.CANCELLED, Status.CANCELLED_BY_CUSTOMER},
    Status.PROCESSING: {Status.SHIPPED, Status.CANCELLED, Status.CANCELLED_BY_CUSTOMER},
    Status.SHIPPED: {Status.DELIVERED},
    Status.DELIVERED: set(),  # Terminal
    Status.CANCELLED: set(),  # Terminal
    Status.CANCELLED_BY_CUSTOMER: set(),  # Terminal
}

_STATUS_INFO = {
    Status.PLACED: StatusInfo("Order Placed", "Order has been placed and is awaiting processing"),
    Status.PROCESSING: StatusInfo("Processing", "Order is being prepared"),
    Status.SHIPPED: StatusInfo("Shipped", "Order is on the way"),
    Status.DELIVERED: StatusInfo("Delivered", "Order has been delivered successfully"),
    Status.CANCELLED: StatusInfo("Cancelled", "Order has been cancelled"),
    Status.CANCELLED_BY_CUSTOMER: StatusInfo("Cancelled by Customer", "Order was cancelled at the customer's request"),
}


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------
def normalize(raw_status) -> Status | str:
    """Map a raw status string onto the canonical ``Status`` set.

    Matching is case-insensitive. Missing values mean a freshly placed order.
    Unrecognised values are returned lower-cased rather than rejected, so
    that display code degrades gracefully on records written by older
    clients.
    """
    if isinstance(raw_status, Status):
        return raw_status
    if not raw_status:
        return Status.PLACED

    value = str(raw_status).strip().lower()
    if value in _ALIASES:
        return _ALIASES[value]
    try:
        return Status(value)
    except ValueError:
        logger.debug("Unknown order status passed through", status=value)
        return value


def priority_of(status) -> int:
    """Aggregation priority of a status. Never fails."""
    return _PRIORITY.get(normalize(status), _FALLBACK_PRIORITY)


def is_terminal(status) -> bool:
    return normalize(status) in TERMINAL_STATUSES


def is_cancelled(status) -> bool:
    return normalize(status) in CANCELLED_STATUSES


def is_cancellable(status) -> bool:
    return normalize(status) in CANCELLABLE_STATUSES


def can_transition(current, target) -> bool:
    """Whether a part may move from ``current`` to ``target``."""
    current, target = normalize(current), normalize(target)
    if not isinstance(current, Status) or not isinstance(target, Status):
        return False
    return target in _VALID_TRANSITIONS[current]


def status_info(status) -> StatusInfo:
    """Display label and description; unknown statuses read as placed."""
    return _STATUS_INFO.get(normalize(status), _STATUS_INFO[Status.PLACED])


def value_of(status) -> str:
    """String form of a normalized status, for storage and events."""
    normalized = normalize(status)
    return normalized.value if isinstance(normalized, Status) else normalized
