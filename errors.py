from decimal import Decimal
from typing import List, Optional


class LedgerError(Exception):
    """Base class for every error raised by the settlement engine"""


class LedgerInputError(LedgerError):
    """Caller supplied data that can be corrected and resubmitted"""


class InvalidSplit(LedgerInputError):
    pass


class EmptyParticipantSet(LedgerInputError):
    def __init__(self, message: str = "At least one participant must be selected"):
        super().__init__(message)


class EmptyLedger(LedgerInputError):
    def __init__(self, message: str = "Ledger snapshot has no expenses or settled transfers"):
        super().__init__(message)


class CurrencyMismatch(LedgerInputError):
    pass


class ConservationViolation(LedgerError):
    """
    Balances do not net to zero.

    This is a data-integrity fault upstream (partial membership, missing
    shares), never a user input problem. The raw balances are attached so the
    caller can still display them while withholding a plan.
    """

    def __init__(self, message: str, balances: Optional[List] = None, residual: Optional[Decimal] = None):
        super().__init__(message)
        self.balances = list(balances or [])
        self.residual = residual
