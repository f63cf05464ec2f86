"""HTTP layer for Expense Ledger."""
