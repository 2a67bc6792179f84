import logging
from decimal import Decimal
from typing import Dict, List, Optional, Sequence, Union

from currency import ZERO, floor_currency, reconciles, round_currency, to_decimal
from errors import EmptyParticipantSet, InvalidSplit
from models import ParticipantShare, SplitMethod

logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")


class SplitCalculator:
    @staticmethod
    def compute_shares(
        total_amount,
        split_method: Union[SplitMethod, str],
        participants: Sequence[str],
        method_params: Optional[Dict[str, object]] = None,
        *,
        expense_id: str,
    ) -> List[ParticipantShare]:
        """
        Apportion one expense among its participants.

        Args:
            total_amount: Expense total, any numeric type
            split_method: equal, percentage or custom
            participants: User IDs in input order; the first one absorbs rounding cents
            method_params: user ID -> percentage (percentage) or amount (custom)
            expense_id: Copied onto every returned share

        Returns:
            One ParticipantShare per participant, summing exactly to the total
        """
        if not participants:
            raise EmptyParticipantSet()
        if len(set(participants)) != len(participants):
            raise InvalidSplit("Each participant can only appear once in a split")

        try:
            method = SplitMethod(split_method)
        except ValueError:
            raise InvalidSplit(f"Unknown split method: {split_method}")

        try:
            total = to_decimal(total_amount)
        except ValueError:
            raise InvalidSplit(f"Invalid expense amount: {total_amount!r}")
        if total <= 0:
            raise InvalidSplit("Expense amount must be greater than zero")
        total = round_currency(total)

        if method == SplitMethod.EQUAL:
            owed = SplitCalculator._split_equal(total, participants)
        elif method == SplitMethod.PERCENTAGE:
            params = SplitCalculator._read_params(participants, method_params, "percentage")
            owed = SplitCalculator._split_percentage(total, participants, params)
        else:
            params = SplitCalculator._read_params(participants, method_params, "amount")
            owed = SplitCalculator._split_custom(total, participants, params)

        return [
            ParticipantShare(expense_id=expense_id, user_id=user_id, amount_owed=amount)
            for user_id, amount in zip(participants, owed)
        ]

    @staticmethod
    def _read_params(participants, method_params, label: str) -> List[Decimal]:
        """Return one value per participant, in participant order"""
        method_params = method_params or {}
        unknown = [user_id for user_id in method_params if user_id not in participants]
        if unknown:
            raise InvalidSplit(f"Split names users who are not participants: {', '.join(unknown)}")

        values = []
        for user_id in participants:
            if user_id not in method_params:
                raise InvalidSplit(f"Missing {label} for participant {user_id}")
            try:
                value = to_decimal(method_params[user_id])
            except ValueError:
                raise InvalidSplit(f"Invalid {label} for participant {user_id}")
            if value < 0:
                raise InvalidSplit(f"The {label} for participant {user_id} cannot be negative")
            values.append(value)
        return values

    @staticmethod
    def _split_equal(total: Decimal, participants) -> List[Decimal]:
        share = floor_currency(total / len(participants))
        owed = [share] * len(participants)
        owed[0] += total - share * len(participants)
        return owed

    @staticmethod
    def _split_percentage(total: Decimal, participants, percentages: List[Decimal]) -> List[Decimal]:
        pct_sum = sum(percentages, ZERO)
        if not reconciles(pct_sum, HUNDRED):
            raise InvalidSplit(f"Percentages sum to {pct_sum}, they must sum to 100")

        owed = [round_currency(total * pct / HUNDRED) for pct in percentages]
        return SplitCalculator._absorb_residue(total, participants, owed)

    @staticmethod
    def _split_custom(total: Decimal, participants, amounts: List[Decimal]) -> List[Decimal]:
        owed = [round_currency(amount) for amount in amounts]
        owed_sum = sum(owed, ZERO)
        if not reconciles(owed_sum, total):
            raise InvalidSplit(f"Shares do not sum to total: {owed_sum} against {total}")
        return SplitCalculator._absorb_residue(total, participants, owed)

    @staticmethod
    def _absorb_residue(total: Decimal, participants, owed: List[Decimal]) -> List[Decimal]:
        """Settle the cents between the shares and the total so the shares sum exactly"""
        residue = total - sum(owed, ZERO)
        if residue > 0:
            logger.debug(f"Assigning rounding residue {residue} to {participants[0]}")
            owed[0] += residue
            return owed
        # Surplus comes off participants in input order, never taking a share below zero
        for k, amount in enumerate(owed):
            if not residue:
                break
            taken = min(amount, -residue)
            if taken:
                logger.debug(f"Taking rounding surplus {taken} from {participants[k]}")
                owed[k] = amount - taken
                residue += taken
        return owed
