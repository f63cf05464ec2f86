"""
Core Data Models for Expense Ledger

These records are what storage hands to the services and what the services
hand to their callers. They are frozen: a change is made by copying a record
with `model_copy(update=...)` and passing the copy back to storage
explicitly. Nothing tracks mutations behind the caller's back.
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


CENT = Decimal("0.01")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TransactionKind(str, Enum):
    """
    Direction of a ledger entry.

    Amounts are always stored positive; the kind decides the sign.
    """
    INCOME = "Income"
    EXPENSE = "Expense"

    @classmethod
    def parse(cls, text: Optional[str]) -> Optional["TransactionKind"]:
        """Case-insensitive lookup by name or value. Returns None when unknown."""
        if text is None:
            return None
        wanted = text.strip().lower()
        for kind in cls:
            if wanted in (kind.value.lower(), kind.name.lower()):
                return kind
        return None

    @property
    def sign(self) -> int:
        return 1 if self is TransactionKind.INCOME else -1


# =============================================================================
# STORED RECORDS
# =============================================================================

class User(BaseModel):
    """A registered user as stored. Carries the password hash; never serialize it outward."""
    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: int
    email: str
    password_hash: str = Field(repr=False)
    full_name: str
    balance: Decimal = Decimal("0.00")
    is_active: bool = True
    created_at: datetime
    updated_at: datetime


class UserSession(BaseModel):
    """One issued token and its validity window."""
    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: int
    user_id: int
    token: str = Field(repr=False)
    created_at: datetime
    expires_at: datetime
    is_valid: bool = True

    def is_usable(self, now: datetime) -> bool:
        """Usable only while the flag is set and the expiry lies in the future."""
        return self.is_valid and now < self.expires_at


class Transaction(BaseModel):
    """A single income or expense entry."""
    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: int
    user_id: int
    description: str
    amount: Decimal
    kind: TransactionKind
    transaction_date: datetime
    created_at: datetime


# =============================================================================
# OUTWARD SUMMARIES
# =============================================================================

class UserSummary(BaseModel):
    """What callers get to see about a user."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    full_name: str


class TransactionSummary(BaseModel):
    """Result payload of ledger mutations."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    description: str
    amount: Decimal
    kind: TransactionKind
    transaction_date: datetime
