"""
Expense Ledger - Source Package

Personal income/expense tracking with a running balance, gated behind
per-user authentication.

DESIGN PRINCIPLES:
1. Services never raise across their boundary; they return results
2. Every ledger lookup is scoped to its owner
3. The cached balance is derived, never edited directly
4. No hidden mutation: records are frozen and written back explicitly
5. Storage layer is swappable
"""

__version__ = "1.0.0"
