import datetime

import pytest

from fakes import make_expense, make_settlement
from splitbook.balances import compute_balances, is_settled
from splitbook.errors import SettlementError
from splitbook.settlements import (
    SettlementStrategy,
    compute_settlements,
    confirm_settlement,
    detailed_settlements,
    pairwise_debts,
    simplified_settlements,
)

WHEN = datetime.datetime(2025, 8, 22, 18, 30)


def apply(balances, settlements):
    out = dict(balances)
    for s in settlements:
        out[s.from_user] -= s.amount
        out[s.to_user] += s.amount
    return out


def test_simplified_dinner_example(users, dinner):
    balances = compute_balances(users, [dinner])
    proposed = simplified_settlements(balances, when=WHEN)
    assert [(s.from_user, s.to_user, s.amount) for s in proposed] == [("B", "A", 40.0), ("C", "A", 40.0)]
    assert all(not s.completed for s in proposed)
    assert proposed[0].date == "2025-08-22"
    assert is_settled(apply(balances, proposed))


def test_simplified_keeps_registration_order():
    # sorted by size this would start with D->X 50
    balances = {"B": 10.0, "X": -50.0, "D": 70.0, "Y": -30.0}
    proposed = simplified_settlements(balances)
    assert [(s.from_user, s.to_user, s.amount) for s in proposed] == [
        ("B", "X", 10.0),
        ("D", "X", 40.0),
        ("D", "Y", 30.0),
    ]


def test_simplified_skips_dust():
    assert simplified_settlements({"A": 0.004, "B": -0.004}) == []


def test_simplified_output_settles_everyone(users):
    expenses = [
        make_expense("e1", 120.0, "A", ["A", "B", "C"]),
        make_expense("e2", 80.0, "B", ["A", "B"]),
        make_expense("e3", 10.0, "C", ["A", "B", "C"]),
        make_expense("e4", 100.0, "C", [("A", 12.34), "B", "C"]),
    ]
    balances = compute_balances(users, expenses)
    proposed = simplified_settlements(balances)
    assert is_settled(apply(balances, proposed))


def test_confirming_simplified_output_is_idempotent(users, dinner):
    proposed = compute_settlements(SettlementStrategy.SIMPLIFIED, users, [dinner])
    confirmed = [confirm_settlement(s.from_user, s.to_user, s.amount, when=WHEN) for s in proposed]
    assert is_settled(compute_balances(users, [dinner], confirmed))
    assert compute_settlements("simplified", users, [dinner], confirmed) == []


def test_detailed_nets_pairs():
    expenses = [
        make_expense("e1", 100.0, "A", ["A", "B"]),
        make_expense("e2", 30.0, "B", ["A", "B"]),
        make_expense("e3", 60.0, "C", ["B", "C"]),
    ]
    proposed = detailed_settlements(expenses, when=WHEN)
    assert [(s.from_user, s.to_user, s.amount) for s in proposed] == [("B", "A", 35.0), ("B", "C", 30.0)]


def test_detailed_drops_cancelled_pairs():
    expenses = [
        make_expense("e1", 20.0, "A", ["A", "B"]),
        make_expense("e2", 20.0, "B", ["A", "B"]),
    ]
    assert detailed_settlements(expenses) == []
    assert pairwise_debts(expenses) == {("A", "B"): 0.0}


def test_detailed_skips_self_debt():
    expense = make_expense("e1", 50.0, "A", [("A", 20), ("B", 30)])
    proposed = detailed_settlements([expense])
    assert [(s.from_user, s.to_user, s.amount) for s in proposed] == [("B", "A", 30.0)]


def test_detailed_pairs_do_not_depend_on_id_order():
    expenses = [
        make_expense("e1", 90.0, "A", ["A", "B", "C"]),
        make_expense("e2", 45.0, "C", ["B", "C"]),
    ]
    # relabel so the string order of every pair flips
    relabel = {"A": "z", "B": "y", "C": "x"}
    flipped = [
        make_expense(e.id, e.amount, relabel[e.payer], [relabel[p.user_id] for p in e.participants])
        for e in expenses
    ]

    def pairs(settlements, names=None):
        names = names or {}
        return {
            (frozenset((names.get(s.from_user, s.from_user), names.get(s.to_user, s.to_user))), s.amount)
            for s in settlements
        }

    back = {v: k for k, v in relabel.items()}
    assert pairs(detailed_settlements(expenses)) == pairs(detailed_settlements(flipped), back)


def test_detailed_ignores_confirmed_settlements(users, dinner):
    settled = [make_settlement("B", "A", 40.0)]
    proposed = compute_settlements(SettlementStrategy.DETAILED, users, [dinner], settled)
    assert len(proposed) == 2


def test_unknown_strategy():
    with pytest.raises(ValueError):
        compute_settlements("optimal", [], [])


def test_confirm_settlement_record():
    s = confirm_settlement("B", "A", 40, when=WHEN)
    assert s.completed
    assert s.amount == 40.0
    assert s.date == "2025-08-22"
    assert s.id == f"B-A-{int(WHEN.timestamp() * 1000)}"


@pytest.mark.parametrize(
    "from_user,to_user,amount",
    [
        ("A", "A", 10),
        ("A", "B", 0),
        ("A", "B", -5),
        ("A", "B", "x"),
        ("A", "B", "nan"),
        ("A", "B", float("nan")),
        ("A", "B", float("inf")),
    ],
)
def test_confirm_settlement_rejects_bad_input(from_user, to_user, amount):
    with pytest.raises(SettlementError):
        confirm_settlement(from_user, to_user, amount)
