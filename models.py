from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from config import DEFAULT_CURRENCY
from currency import to_decimal


class SplitMethod(str, Enum):
    EQUAL = "equal"
    PERCENTAGE = "percentage"
    CUSTOM = "custom"


class TransferStatus(str, Enum):
    PENDING = "pending"
    SETTLED = "settled"


class LedgerModel(BaseModel):
    """Immutable ledger fact; numeric inputs are wrapped as Decimal on the way in"""
    model_config = ConfigDict(frozen=True, populate_by_name=True)


# ===== LEDGER RECORDS =====
class ExpenseRecord(LedgerModel):
    id: str = Field(..., description="ID of the expense")
    amount: Decimal = Field(..., gt=0, description="Total amount of the expense")
    paid_by: str = Field(..., description="ID of user who paid the expense")
    group_id: str = Field(..., description="ID of the group this expense belongs to")
    split_method: SplitMethod = Field(SplitMethod.EQUAL, description="How the expense is apportioned")
    description: Optional[str] = Field(None, description="Free text, never interpreted by the engine")

    @field_validator("amount", mode="before")
    @classmethod
    def wrap_amount(cls, value):
        return to_decimal(value)


class ParticipantShare(LedgerModel):
    expense_id: str = Field(..., description="ID of the expense this share belongs to")
    user_id: str = Field(..., description="ID of the participant")
    amount_owed: Decimal = Field(..., ge=0, description="Portion of the expense owed by the participant")

    @field_validator("amount_owed", mode="before")
    @classmethod
    def wrap_amount_owed(cls, value):
        return to_decimal(value)


class SettledTransfer(LedgerModel):
    from_user: str = Field(..., description="ID of user who paid")
    to_user: str = Field(..., description="ID of user who received the payment")
    amount: Decimal = Field(..., gt=0, description="Amount transferred")
    settled_at: datetime = Field(..., description="When the payment was recorded")
    status: TransferStatus = Field(TransferStatus.SETTLED, description="Only settled transfers affect balances")
    currency: Optional[str] = Field(None, description="Currency of the transfer, defaults to the ledger currency")
    notes: Optional[str] = None

    @field_validator("amount", mode="before")
    @classmethod
    def wrap_amount(cls, value):
        return to_decimal(value)

    @model_validator(mode="after")
    def check_parties(self):
        if self.from_user == self.to_user:
            raise ValueError("A transfer needs two different users")
        return self


# ===== ENGINE OUTPUT =====
class Balance(LedgerModel):
    user_id: str
    amount: Decimal = Field(..., description="Positive: the group owes this user. Negative: the user owes the group")


class SettlementPlanEntry(LedgerModel):
    from_user: str = Field(..., alias="from", description="Debtor who should pay")
    to_user: str = Field(..., alias="to", description="Creditor who should receive")
    amount: Decimal = Field(..., gt=0)

    def to_transfer(self, settled_at: datetime, currency: Optional[str] = None, notes: Optional[str] = None) -> SettledTransfer:
        """Record this entry as a payment once the debtor confirms it"""
        return SettledTransfer(
            from_user=self.from_user,
            to_user=self.to_user,
            amount=self.amount,
            settled_at=settled_at,
            currency=currency,
            notes=notes,
        )


class BalanceSummary(LedgerModel):
    total_owed: Decimal = Field(..., description="Sum of all negative balances, as a positive amount")
    total_owed_to: Decimal = Field(..., description="Sum of all positive balances")
    debtor_count: int
    creditor_count: int


# ===== REQUEST / RESPONSE =====
class LedgerSnapshot(LedgerModel):
    group_id: Optional[str] = Field(None, description="Group the snapshot was read for")
    currency: str = Field(DEFAULT_CURRENCY, description="Single currency shared by every amount")
    expenses: List[ExpenseRecord] = Field(default_factory=list)
    shares: List[ParticipantShare] = Field(default_factory=list)
    transfers: List[SettledTransfer] = Field(default_factory=list)


class SettlementResult(LedgerModel):
    group_id: Optional[str] = None
    currency: str
    balances: List[Balance]
    plan: List[SettlementPlanEntry]
    summary: BalanceSummary


class SplitRequest(LedgerModel):
    amount: Decimal = Field(..., description="Total amount of the expense")
    split_method: SplitMethod = Field(SplitMethod.EQUAL)
    participants: List[str] = Field(..., description="User IDs sharing the expense, in display order")
    params: Dict[str, Decimal] = Field(
        default_factory=dict,
        description="Percentage or explicit amount per participant, for percentage and custom splits",
    )
    expense_id: str = Field(..., description="ID of the expense being split")

    @field_validator("amount", mode="before")
    @classmethod
    def wrap_amount(cls, value):
        return to_decimal(value)

    @field_validator("params", mode="before")
    @classmethod
    def wrap_params(cls, value):
        if isinstance(value, dict):
            return {user_id: to_decimal(v) for user_id, v in value.items()}
        return value
