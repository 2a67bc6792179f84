import logging

from balance_aggregator import BalanceAggregator
from currency import ZERO, reconciles, round_currency
from errors import ConservationViolation, CurrencyMismatch, EmptyLedger
from models import LedgerSnapshot, SettlementResult
from settlement_optimizer import SettlementOptimizer

logger = logging.getLogger(__name__)


class SettlementEngine:
    @staticmethod
    def validate(snapshot: LedgerSnapshot) -> None:
        if not snapshot.expenses and not snapshot.transfers:
            raise EmptyLedger()

        currency = snapshot.currency.upper()
        for transfer in snapshot.transfers:
            if transfer.currency and transfer.currency.upper() != currency:
                raise CurrencyMismatch(
                    f"Transfer from {transfer.from_user} to {transfer.to_user} is in "
                    f"{transfer.currency}, the ledger is in {snapshot.currency}"
                )

    @staticmethod
    def calculate_settlements(snapshot: LedgerSnapshot) -> SettlementResult:
        """Main method to calculate balances and the settlement plan for one ledger snapshot"""
        SettlementEngine.validate(snapshot)

        balances = BalanceAggregator.compute_balances(snapshot.expenses, snapshot.shares, snapshot.transfers)

        net = BalanceAggregator.net_total(balances)
        if not reconciles(net, ZERO):
            logger.error(f"Balances for group {snapshot.group_id} do not net to zero (residual {net})")
            raise ConservationViolation(
                f"Balances do not net to zero, residual {round_currency(net)}",
                balances=balances,
                residual=round_currency(net),
            )

        plan = SettlementOptimizer.optimize(balances)

        logger.info(f"Group {snapshot.group_id}: {len(balances)} balances, {len(plan)} transfers")

        return SettlementResult(
            group_id=snapshot.group_id,
            currency=snapshot.currency,
            balances=balances,
            plan=plan,
            summary=BalanceAggregator.summarize(balances),
        )
