import logging
from collections import defaultdict
from decimal import Decimal
from typing import Dict, Iterable, List

from currency import ZERO, round_currency, within_epsilon
from models import Balance, BalanceSummary, ExpenseRecord, ParticipantShare, SettledTransfer, TransferStatus

logger = logging.getLogger(__name__)


class BalanceAggregator:
    @staticmethod
    def compute_balances(
        expenses: Iterable[ExpenseRecord],
        shares: Iterable[ParticipantShare],
        transfers: Iterable[SettledTransfer] = (),
    ) -> List[Balance]:
        """
        Calculate net balance for each user.

        Payers are credited with what they fronted, participants are debited
        with what they owe, and settled transfers move the difference back.
        Rounding happens once per user at the end, never per step.
        Users are returned in order of first appearance.
        """
        # dicts keep insertion order, which makes the output deterministic
        balances: Dict[str, Decimal] = defaultdict(lambda: ZERO)
        expense_ids = set()

        for expense in expenses:
            expense_ids.add(expense.id)
            balances[expense.paid_by] += expense.amount

        for share in shares:
            if share.expense_id not in expense_ids:
                logger.warning(f"Share for {share.user_id} references unknown expense {share.expense_id}")
            balances[share.user_id] -= share.amount_owed

        for transfer in transfers:
            if transfer.status != TransferStatus.SETTLED:
                continue
            # The payer's debt shrinks, the receiver has collected what was owed
            balances[transfer.from_user] += transfer.amount
            balances[transfer.to_user] -= transfer.amount

        return [Balance(user_id=user_id, amount=round_currency(amount)) for user_id, amount in balances.items()]

    @staticmethod
    def net_total(balances: Iterable[Balance]) -> Decimal:
        """Sum of all balances; zero within epsilon for a closed group"""
        return sum((b.amount for b in balances), ZERO)

    @staticmethod
    def summarize(balances: Iterable[Balance]) -> BalanceSummary:
        """Totals owed in each direction, ignoring balances that count as settled"""
        total_owed = total_owed_to = ZERO
        debtor_count = creditor_count = 0

        for balance in balances:
            if within_epsilon(balance.amount):
                continue
            if balance.amount < 0:
                total_owed += -balance.amount
                debtor_count += 1
            else:
                total_owed_to += balance.amount
                creditor_count += 1

        return BalanceSummary(
            total_owed=round_currency(total_owed),
            total_owed_to=round_currency(total_owed_to),
            debtor_count=debtor_count,
            creditor_count=creditor_count,
        )
