import pytest

from splitbook.errors import SplitImbalanceError
from splitbook.models import ParticipantShare
from splitbook.splits import resolve_split


def test_equal_split():
    shares = resolve_split(120.0, ["A", "B", "C"])
    assert shares == {"A": 40.0, "B": 40.0, "C": 40.0}


def test_custom_and_equal_mix():
    shares = resolve_split(100.0, [("A", None), ("B", 30)])
    assert shares["A"] == pytest.approx(70.0)
    assert shares["B"] == pytest.approx(30.0)


def test_remaining_split_among_equal_participants():
    shares = resolve_split(100.0, [ParticipantShare("A", 40.0), ParticipantShare("B"), ParticipantShare("C")])
    assert shares == {"A": 40.0, "B": 30.0, "C": 30.0}


def test_all_custom_must_reconcile():
    with pytest.raises(SplitImbalanceError) as exc:
        resolve_split(100.0, [("A", 50), ("B", 49)])
    assert exc.value.custom_total == pytest.approx(99.0)
    assert exc.value.amount == 100.0


def test_all_custom_within_tolerance_is_accepted():
    shares = resolve_split(100.0, [("A", 33.33), ("B", 33.33), ("C", 33.335)])
    assert sum(shares.values()) == pytest.approx(100.0, abs=0.01)


def test_split_is_order_independent():
    forward = resolve_split(90.0, [("A", 10), ("B", None), ("C", None)])
    backward = resolve_split(90.0, [("C", None), ("B", None), ("A", 10)])
    assert forward == backward


def test_resolved_shares_sum_to_amount():
    shares = resolve_split(10.0, ["A", "B", "C"])
    assert sum(shares.values()) == pytest.approx(10.0)


def test_no_participants_resolves_to_nothing():
    assert resolve_split(50.0, []) == {}


def test_accepts_dict_records():
    shares = resolve_split(20.0, [{"id": "A", "amount": None}, {"id": "B", "amount": 5}])
    assert shares == {"B": 5.0, "A": 15.0}


def test_lenient_mode_keeps_fixed_amounts():
    shares = resolve_split(100.0, [("A", 50), ("B", 49)], strict=False)
    assert shares == {"A": 50.0, "B": 49.0}
