import logging
from decimal import Decimal
from typing import Dict, Iterable, List, Tuple

from currency import EPSILON, ZERO, round_currency, within_epsilon
from errors import ConservationViolation
from models import Balance, SettlementPlanEntry

logger = logging.getLogger(__name__)


class SettlementOptimizer:
    @staticmethod
    def optimize(balances: Iterable[Balance]) -> List[SettlementPlanEntry]:
        """
        Greedy netting: the largest debtor pays the largest creditor until one side is settled.

        Produces at most n - 1 transfers for n non-zero balances. This is not a
        global optimum (exact subset matching can beat it), but it is linear
        after sorting and fully deterministic. The input is never mutated.
        """
        balances = list(balances)
        debtor_rows, creditor_rows = SettlementOptimizer.partition(balances)

        # Working copies as [user_id, signed amount]
        debtors = [[b.user_id, b.amount] for b in debtor_rows]
        creditors = [[b.user_id, b.amount] for b in creditor_rows]

        # Stable sorts keep input order between equal amounts
        debtors.sort(key=lambda x: x[1])
        creditors.sort(key=lambda x: x[1], reverse=True)

        plan = []
        i = j = 0
        while i < len(debtors) and j < len(creditors):
            debtor, creditor = debtors[i], creditors[j]

            transfer = min(-debtor[1], creditor[1])
            plan.append(SettlementPlanEntry(
                from_user=debtor[0],
                to_user=creditor[0],
                amount=round_currency(transfer),
            ))

            debtor[1] += transfer
            creditor[1] -= transfer

            if within_epsilon(debtor[1]):
                i += 1
            if within_epsilon(creditor[1]):
                j += 1

        # Both sides run out together unless the balances never netted to zero
        leftover = debtors[i:] + creditors[j:]
        residual = sum((abs(amount) for _, amount in leftover), ZERO)
        if residual > EPSILON:
            logger.error(f"Settlement left {len(leftover)} balance(s) unsettled, residual {residual}")
            raise ConservationViolation(
                f"Balances do not net to zero, {round_currency(residual)} left unsettled",
                balances=balances,
                residual=round_currency(residual),
            )

        return plan

    @staticmethod
    def apply_plan(balances: Iterable[Balance], plan: Iterable[SettlementPlanEntry]) -> List[Balance]:
        """Return the balances left after every plan entry has been paid"""
        remaining: Dict[str, Decimal] = {b.user_id: b.amount for b in balances}
        for entry in plan:
            remaining[entry.from_user] = remaining.get(entry.from_user, ZERO) + entry.amount
            remaining[entry.to_user] = remaining.get(entry.to_user, ZERO) - entry.amount
        return [Balance(user_id=user_id, amount=round_currency(amount)) for user_id, amount in remaining.items()]

    @staticmethod
    def partition(balances: Iterable[Balance]) -> Tuple[List[Balance], List[Balance]]:
        """Split balances into (debtors, creditors), dropping those that count as settled"""
        debtors, creditors = [], []
        for balance in balances:
            if within_epsilon(balance.amount):
                continue
            if balance.amount < 0:
                debtors.append(balance)
            else:
                creditors.append(balance)
        return debtors, creditors
