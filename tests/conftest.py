from datetime import datetime, timezone

import pytest

from models import ExpenseRecord, LedgerSnapshot, SettledTransfer
from split_calculator import SplitCalculator

SETTLED_AT = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def equal_expense(expense_id, amount, paid_by, participants, group_id="g1"):
    """An equal-split expense together with its participant shares"""
    expense = ExpenseRecord(id=expense_id, amount=amount, paid_by=paid_by, group_id=group_id, split_method="equal")
    shares = SplitCalculator.compute_shares(amount, "equal", participants, expense_id=expense_id)
    return expense, shares


def transfer(from_user, to_user, amount, **kwargs):
    return SettledTransfer(from_user=from_user, to_user=to_user, amount=amount, settled_at=SETTLED_AT, **kwargs)


def snapshot(*expenses_with_shares, transfers=(), group_id="g1", currency="INR"):
    expenses, shares = [], []
    for expense, expense_shares in expenses_with_shares:
        expenses.append(expense)
        shares.extend(expense_shares)
    return LedgerSnapshot(
        group_id=group_id,
        currency=currency,
        expenses=expenses,
        shares=shares,
        transfers=list(transfers),
    )


@pytest.fixture
def dinner_for_three():
    """A pays 90 split equally between A, B and C"""
    return snapshot(equal_expense("e1", 90, "A", ["A", "B", "C"]))


@pytest.fixture
def two_way_ledger():
    """A pays 100 and B pays 40, both split equally between A and B"""
    return snapshot(
        equal_expense("e1", 100, "A", ["A", "B"]),
        equal_expense("e2", 40, "B", ["A", "B"]),
    )
