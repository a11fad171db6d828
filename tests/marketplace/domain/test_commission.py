"""Tests for vendor commission rates and amounts."""

import pytest
from marketplace.domain import marketplace
from marketplace.order import commission
from marketplace.order.order import OrderPart
from protean.exceptions import ValidationError


class TestRates:
    def test_default_rate_comes_from_configuration(self):
        assert commission.default_rate() == 0.20

    def test_configured_rate_overrides_default(self, monkeypatch):
        monkeypatch.setattr(marketplace, "COMMISSION_RATE", 0.15)
        assert commission.default_rate() == 0.15

    def test_missing_configuration_falls_back(self, monkeypatch):
        monkeypatch.delattr(marketplace, "COMMISSION_RATE", raising=False)
        assert commission.default_rate() == commission.DEFAULT_COMMISSION_RATE

    def test_out_of_range_configuration_is_rejected(self, monkeypatch):
        monkeypatch.setattr(marketplace, "COMMISSION_RATE", 1.5)
        with pytest.raises(ValidationError):
            commission.default_rate()

    def test_part_override(self):
        part = OrderPart(kind="vendor", vendor_id="vendor-001", commission_rate=0.05)
        assert commission.rate_for(part) == 0.05

    def test_part_without_override_uses_global_rate(self):
        part = OrderPart(kind="vendor", vendor_id="vendor-001")
        assert commission.rate_for(part) == 0.20

    def test_part_rate_must_be_a_fraction(self):
        with pytest.raises(ValidationError):
            OrderPart(kind="vendor", vendor_id="vendor-001", commission_rate=2.0)


class TestAmounts:
    def test_commission_is_rounded_to_cents(self):
        assert commission.commission_for(33.33, 0.2) == 6.67

    def test_zero_amount(self):
        assert commission.commission_for(0, 0.2) == 0.0

    def test_negative_amount(self):
        assert commission.commission_for(-10.0, 0.2) == 0.0

    def test_invalid_rate(self):
        with pytest.raises(ValidationError):
            commission.commission_for(100.0, -0.1)

    def test_invalid_rate_is_rejected_even_for_zero_amount(self):
        with pytest.raises(ValidationError):
            commission.commission_for(0, 1.5)
