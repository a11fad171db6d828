"""Unified order status — one customer-facing status from many part statuses.

A customer sees the most optimistic status the parts can defend: if one
vendor part has shipped while another is still processing, the order reads
"shipped". Cancelled parts never hold an order back once everything else has
been delivered.
"""

from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass, field

from marketplace.order.status import (
    CANCELLED_STATUSES,
    Status,
    normalize,
    priority_of,
    status_info,
    value_of,
)


def _status_of(part):
    # Raw statuses are accepted alongside part records
    if isinstance(part, (str, Status)) or part is None:
        return part
    return part.status


def unify(parts: Iterable) -> Status | str:
    """Compute the unified status of an order from its parts.

    Rules are applied in order, and the first one that matches wins:

    1. No parts yet: ``placed``.
    2. Every part has the same status: that status.
    3. Every part is cancelled: ``cancelled_by_customer`` if the customer
       cancelled any of them, otherwise ``cancelled``.
    4. Some parts delivered, the rest cancelled: ``delivered``.
    5. Otherwise the highest-priority status among the parts that are not
       cancelled.

    The result depends only on the multiset of statuses, so any permutation
    of ``parts`` produces the same answer.
    """
    statuses = [normalize(_status_of(part)) for part in parts]
    if not statuses:
        return Status.PLACED

    distinct = set(statuses)
    if len(distinct) == 1:
        return statuses[0]

    if distinct <= CANCELLED_STATUSES:
        if Status.CANCELLED_BY_CUSTOMER in distinct:
            return Status.CANCELLED_BY_CUSTOMER
        return Status.CANCELLED

    live = distinct - CANCELLED_STATUSES
    if live == {Status.DELIVERED}:
        return Status.DELIVERED

    # Ties between PLACED and unknown statuses resolve to PLACED
    return max(live, key=lambda s: (priority_of(s), isinstance(s, Status), value_of(s)))


@dataclass(frozen=True)
class StatusSummary:
    """Unified status plus the facts a status badge needs to render."""

    unified_status: str
    label: str
    description: str
    counts: dict[str, int] = field(default_factory=dict)
    has_cancelled_parts: bool = False
    partially_cancelled: bool = False


def summarize(parts: Iterable) -> StatusSummary:
    parts = list(parts)
    unified = unify(parts)
    statuses = [normalize(_status_of(part)) for part in parts]
    cancelled = [s for s in statuses if s in CANCELLED_STATUSES]
    info = status_info(unified)

    return StatusSummary(
        unified_status=value_of(unified),
        label=info.label,
        description=info.description,
        counts=dict(Counter(value_of(s) for s in statuses)),
        has_cancelled_parts=bool(cancelled),
        partially_cancelled=bool(cancelled) and len(cancelled) < len(statuses),
    )
