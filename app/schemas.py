"""
Request bodies for the HTTP layer.

Only shapes are declared here. Field rules (lengths, email format, amount
precision, kinds) are enforced by the services so the same checks apply to
direct callers, and violations come back as 400 with a list of issues.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field


class RegisterRequest(BaseModel):
    email: str
    full_name: str
    password: str
    confirm_password: str


class LoginRequest(BaseModel):
    email: str
    password: str


class TransactionRequest(BaseModel):
    """Body of POST and PUT on /transactions."""

    description: str
    amount: Decimal
    kind: str = Field(..., description="Income or Expense (case-insensitive)")
    transaction_date: datetime
