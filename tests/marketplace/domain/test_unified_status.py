"""Tests for unified order status aggregation."""

from itertools import permutations

import pytest
from marketplace.order.aggregation import summarize, unify
from marketplace.order.order import OrderPart
from marketplace.order.status import Status


def _part(status, kind="vendor", vendor_id="vendor-001"):
    if kind == "admin":
        return OrderPart(kind="admin", status=status)
    return OrderPart(kind=kind, vendor_id=vendor_id, status=status)


class TestUnifyRules:
    def test_no_parts_reads_as_placed(self):
        assert unify([]) == Status.PLACED

    def test_all_same_status(self):
        assert unify([_part("shipped"), _part("shipped")]) == Status.SHIPPED

    def test_single_part(self):
        assert unify([_part("processing", kind="admin")]) == Status.PROCESSING

    def test_mixed_progress_takes_highest(self):
        assert unify([_part("shipped"), _part("placed")]) == Status.SHIPPED

    def test_processing_and_placed(self):
        assert unify([_part("placed", kind="admin"), _part("processing")]) == Status.PROCESSING

    def test_all_cancelled_with_customer_marker(self):
        assert unify([_part("cancelled"), _part("cancelled_by_customer")]) == Status.CANCELLED_BY_CUSTOMER

    def test_all_cancelled_without_customer_marker(self):
        assert unify([_part("cancelled"), _part("cancelled", kind="admin")]) == Status.CANCELLED

    def test_all_customer_cancelled(self):
        parts = [_part("cancelled_by_customer"), _part("cancelled_by_customer", kind="admin")]
        assert unify(parts) == Status.CANCELLED_BY_CUSTOMER

    def test_delivered_with_cancelled_leftovers(self):
        assert unify([_part("delivered"), _part("cancelled")]) == Status.DELIVERED

    def test_delivered_with_customer_cancelled_leftovers(self):
        parts = [_part("delivered"), _part("delivered", kind="admin"), _part("cancelled_by_customer")]
        assert unify(parts) == Status.DELIVERED

    def test_cancelled_parts_are_ignored_for_progress(self):
        assert unify([_part("cancelled"), _part("processing")]) == Status.PROCESSING

    def test_delivered_and_shipped_reads_as_delivered(self):
        # Highest-priority live status wins
        assert unify([_part("delivered"), _part("shipped")]) == Status.DELIVERED


class TestUnifyInputs:
    def test_accepts_raw_statuses(self):
        assert unify(["shipped", "placed"]) == Status.SHIPPED

    def test_normalizes_legacy_statuses(self):
        assert unify(["Pending", "placed"]) == Status.PLACED
        assert unify(["confirmed", "pending"]) == Status.PROCESSING
        assert unify(["rejected", "cancelled_by_user"]) == Status.CANCELLED_BY_CUSTOMER

    def test_unknown_status_ranks_like_placed(self):
        assert unify(["banana", "placed"]) == Status.PLACED
        assert unify(["banana", "shipped"]) == Status.SHIPPED

    def test_all_unknown_identical_passes_through(self):
        assert unify(["banana", "Banana"]) == "banana"

    def test_accepts_generators(self):
        assert unify(s for s in ["processing", "shipped"]) == Status.SHIPPED


class TestDeterminism:
    @pytest.mark.parametrize(
        "statuses",
        [
            ["placed", "processing", "shipped"],
            ["delivered", "cancelled", "cancelled_by_customer"],
            ["cancelled", "cancelled_by_customer", "cancelled"],
            ["banana", "placed", "cancelled"],
            ["kiwi", "banana", "cancelled_by_customer"],
        ],
    )
    def test_permutations_agree(self, statuses):
        results = {unify(list(p)) for p in permutations(statuses)}
        assert len(results) == 1


class TestSummarize:
    def test_summary_of_mixed_order(self):
        summary = summarize([_part("shipped"), _part("placed", kind="admin"), _part("cancelled")])
        assert summary.unified_status == "shipped"
        assert summary.label == "Shipped"
        assert summary.counts == {"shipped": 1, "placed": 1, "cancelled": 1}
        assert summary.has_cancelled_parts
        assert summary.partially_cancelled

    def test_delivered_with_leftovers_is_flagged_partially_cancelled(self):
        summary = summarize([_part("delivered"), _part("cancelled")])
        assert summary.unified_status == "delivered"
        assert summary.partially_cancelled

    def test_fully_cancelled_is_not_partial(self):
        summary = summarize([_part("cancelled"), _part("cancelled_by_customer")])
        assert summary.unified_status == "cancelled_by_customer"
        assert summary.has_cancelled_parts
        assert not summary.partially_cancelled

    def test_empty_order(self):
        summary = summarize([])
        assert summary.unified_status == "placed"
        assert summary.counts == {}
        assert not summary.has_cancelled_parts
