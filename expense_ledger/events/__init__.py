"""Event logging package."""

from expense_ledger.events.logger import EventLogger

__all__ = ["EventLogger"]
