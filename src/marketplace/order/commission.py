"""Vendor commission rates.

The platform keeps a commission on every vendor sale. The global rate comes
from the ``COMMISSION_RATE`` custom setting in the domain configuration and
a vendor part may carry its own negotiated rate.
"""

from protean.exceptions import ValidationError

from marketplace.domain import marketplace

DEFAULT_COMMISSION_RATE = 0.20


def validate_rate(rate: float) -> float:
    if rate < 0 or rate > 1:
        raise ValidationError({"commission_rate": [f"Commission rate must be between 0 and 1, got {rate}"]})
    return rate


def default_rate() -> float:
    return validate_rate(float(getattr(marketplace, "COMMISSION_RATE", DEFAULT_COMMISSION_RATE)))


def rate_for(part) -> float:
    """Commission rate applying to a part: its own override, else the global rate."""
    override = getattr(part, "commission_rate", None)
    if override is not None:
        return validate_rate(override)
    return default_rate()


def commission_for(amount: float, rate: float) -> float:
    rate = validate_rate(rate)
    if not amount or amount <= 0:
        return 0.0
    return round(amount * rate, 2)
