import random
from decimal import Decimal

import pytest

from balance_aggregator import BalanceAggregator
from conftest import SETTLED_AT, equal_expense, snapshot, transfer
from errors import ConservationViolation, CurrencyMismatch, EmptyLedger, LedgerInputError
from models import ExpenseRecord, LedgerSnapshot
from settlement_engine import SettlementEngine
from settlement_optimizer import SettlementOptimizer
from split_calculator import SplitCalculator


def as_dict(balances):
    return {b.user_id: b.amount for b in balances}


def entries(plan):
    return [(p.from_user, p.to_user, p.amount) for p in plan]


def test_three_way_dinner(dinner_for_three):
    result = SettlementEngine.calculate_settlements(dinner_for_three)
    assert as_dict(result.balances) == {"A": Decimal("60"), "B": Decimal("-30"), "C": Decimal("-30")}
    assert entries(result.plan) == [("B", "A", Decimal("30")), ("C", "A", Decimal("30"))]
    assert result.group_id == "g1"
    assert result.summary.debtor_count == 2


def test_expenses_in_both_directions(two_way_ledger):
    result = SettlementEngine.calculate_settlements(two_way_ledger)
    assert as_dict(result.balances) == {"A": Decimal("30"), "B": Decimal("-30")}
    assert entries(result.plan) == [("B", "A", Decimal("30"))]


def test_recording_the_plan_settles_the_group(two_way_ledger):
    first = SettlementEngine.calculate_settlements(two_way_ledger)
    recorded = [entry.to_transfer(SETTLED_AT) for entry in first.plan]

    settled = two_way_ledger.model_copy(update={"transfers": recorded})
    result = SettlementEngine.calculate_settlements(settled)

    assert as_dict(result.balances) == {"A": Decimal("0"), "B": Decimal("0")}
    assert result.plan == []
    assert result.summary.total_owed == Decimal("0")


def test_idempotent(dinner_for_three):
    first = SettlementEngine.calculate_settlements(dinner_for_three)
    second = SettlementEngine.calculate_settlements(dinner_for_three)
    assert first.model_dump_json(by_alias=True) == second.model_dump_json(by_alias=True)


def test_custom_split_one_cent_short_still_settles():
    expense = ExpenseRecord(id="e1", amount="100.00", paid_by="A", group_id="g1", split_method="custom")
    shares = SplitCalculator.compute_shares("100.00", "custom", ["A", "B"], {"A": "50.00", "B": "49.99"}, expense_id="e1")
    result = SettlementEngine.calculate_settlements(snapshot((expense, shares)))

    assert as_dict(result.balances) == {"A": Decimal("49.99"), "B": Decimal("-49.99")}
    assert entries(result.plan) == [("B", "A", Decimal("49.99"))]
    after = SettlementOptimizer.apply_plan(result.balances, result.plan)
    assert all(abs(b.amount) <= Decimal("0.01") for b in after)


def test_several_one_cent_short_custom_splits_still_settle():
    expenses = []
    for k in range(3):
        expense_id = f"e{k}"
        expense = ExpenseRecord(id=expense_id, amount="100.00", paid_by="A", group_id="g1", split_method="custom")
        shares = SplitCalculator.compute_shares(
            "100.00", "custom", ["A", "B"], {"A": "50.00", "B": "49.99"}, expense_id=expense_id
        )
        expenses.append((expense, shares))

    result = SettlementEngine.calculate_settlements(snapshot(*expenses))

    assert BalanceAggregator.net_total(result.balances) == Decimal("0")
    assert as_dict(result.balances) == {"A": Decimal("149.97"), "B": Decimal("-149.97")}
    assert entries(result.plan) == [("B", "A", Decimal("149.97"))]


def test_plan_validity_on_larger_group():
    ledger = snapshot(
        equal_expense("e1", "240.00", "A", ["A", "B", "C", "D"]),
        equal_expense("e2", "99.99", "B", ["B", "C", "D"]),
        equal_expense("e3", "15.50", "C", ["A", "C"]),
        equal_expense("e4", "71.13", "D", ["A", "B", "C", "D", "E"]),
        transfers=[transfer("E", "D", "5.00")],
    )
    result = SettlementEngine.calculate_settlements(ledger)

    non_zero = sum(1 for b in result.balances if b.amount != 0)
    assert len(result.plan) <= non_zero - 1
    after = SettlementOptimizer.apply_plan(result.balances, result.plan)
    assert all(abs(b.amount) <= Decimal("0.01") for b in after)


def test_transfers_only_ledger():
    ledger = LedgerSnapshot(transfers=[transfer("A", "B", 25)])
    result = SettlementEngine.calculate_settlements(ledger)
    assert as_dict(result.balances) == {"A": Decimal("25"), "B": Decimal("-25")}
    assert entries(result.plan) == [("B", "A", Decimal("25"))]


def test_empty_ledger():
    with pytest.raises(EmptyLedger):
        SettlementEngine.calculate_settlements(LedgerSnapshot(group_id="g1"))


def test_mixed_currencies_are_refused():
    ledger = snapshot(
        equal_expense("e1", 90, "A", ["A", "B", "C"]),
        transfers=[transfer("B", "A", 30, currency="USD")],
        currency="INR",
    )
    with pytest.raises(CurrencyMismatch) as exc_info:
        SettlementEngine.calculate_settlements(ledger)
    assert isinstance(exc_info.value, LedgerInputError)


def test_partial_membership_is_a_conservation_violation():
    expense, shares = equal_expense("e1", 90, "A", ["A", "B", "C"])
    ledger = snapshot((expense, shares[:2]))

    with pytest.raises(ConservationViolation) as exc_info:
        SettlementEngine.calculate_settlements(ledger)

    assert not isinstance(exc_info.value, LedgerInputError)
    assert exc_info.value.residual == Decimal("30.00")
    assert as_dict(exc_info.value.balances) == {"A": Decimal("60"), "B": Decimal("-30")}


def random_parts(rng, total, count):
    """Split an integer total into count non-negative integers"""
    cuts = sorted(rng.randint(0, total) for _ in range(count - 1))
    return [b - a for a, b in zip([0] + cuts, cuts + [total])]


def test_random_ledgers_built_from_splits():
    rng = random.Random(11)
    users = [f"u{k}" for k in range(8)]
    for _ in range(100):
        expenses = []
        for k in range(rng.randint(1, 6)):
            expense_id = f"e{k}"
            participants = rng.sample(users, rng.randint(1, len(users)))
            total_cents = rng.randint(1, 500000)
            amount = Decimal(total_cents) / 100
            method = rng.choice(["equal", "percentage", "custom"])

            if method == "percentage":
                basis_points = random_parts(rng, 10000, len(participants))
                params = {u: Decimal(bp) / 100 for u, bp in zip(participants, basis_points)}
            elif method == "custom":
                cents = random_parts(rng, total_cents, len(participants))
                # Off by a cent either way is still an accepted custom split
                offset = rng.choice([-1, 0, 1])
                k_off = rng.randrange(len(cents))
                if cents[k_off] + offset >= 0:
                    cents[k_off] += offset
                params = {u: Decimal(c) / 100 for u, c in zip(participants, cents)}
            else:
                params = None

            expense = ExpenseRecord(
                id=expense_id, amount=amount, paid_by=rng.choice(users), group_id="g1", split_method=method
            )
            shares = SplitCalculator.compute_shares(amount, method, participants, params, expense_id=expense_id)
            assert sum(s.amount_owed for s in shares) == amount
            expenses.append((expense, shares))

        ledger = snapshot(*expenses)
        balances = BalanceAggregator.compute_balances(ledger.expenses, ledger.shares, ledger.transfers)
        assert abs(BalanceAggregator.net_total(balances)) <= Decimal("0.01")

        result = SettlementEngine.calculate_settlements(ledger)
        assert all(p.amount > 0 for p in result.plan)
        after = SettlementOptimizer.apply_plan(result.balances, result.plan)
        assert all(abs(b.amount) <= Decimal("0.01") for b in after)
