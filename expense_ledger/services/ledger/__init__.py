"""Ledger services package."""

from expense_ledger.services.ledger.ledger_service import (
    STALE_BALANCE_WARNING,
    LedgerService,
)

__all__ = ["LedgerService", "STALE_BALANCE_WARNING"]
