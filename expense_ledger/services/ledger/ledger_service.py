"""
Ledger Service

Income/expense entries for one user at a time, plus the derived balance.

DESIGN DECISION: The balance is always recomputed from scratch
(SUM(Income) - SUM(Expense) over the persisted rows) and the result is
copied into the user's cached `balance` field after every mutation.
Recomputing is idempotent, so a failed or racing refresh is repaired by the
next one.

TRADEOFFS:
- The mutation and the refresh are separate units of work. If the refresh
  fails, the mutation stays committed and the result carries a warning.
- Two concurrent mutations for the same user may refresh out of order;
  the last write wins on the cached field.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Callable, Optional

from expense_ledger.events import EventLogger
from expense_ledger.models.ledger import (
    CENT,
    Transaction,
    TransactionKind,
    TransactionSummary,
    utcnow,
)
from expense_ledger.models.results import ErrorKind, ServiceResult
from expense_ledger.services.storage import (
    NotFoundError,
    TransactionStorageInterface,
    UserStorageInterface,
)
from expense_ledger.validation import TransactionValidator


STALE_BALANCE_WARNING = "Balance could not be refreshed; the cached balance may be stale."
TRANSACTION_NOT_FOUND_MESSAGE = "Transaction not found."
INTERNAL_FAILURE_MESSAGE = "An internal error occurred. Please try again later."

ZERO = Decimal("0.00")


class LedgerService:
    """
    Transaction CRUD and balance maintenance.

    Every lookup is owner-scoped: a transaction id that belongs to another
    user behaves exactly like one that does not exist.
    """

    def __init__(
        self,
        user_storage: UserStorageInterface,
        transaction_storage: TransactionStorageInterface,
        validator: Optional[TransactionValidator] = None,
        event_logger: Optional[EventLogger] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._users = user_storage
        self._transactions = transaction_storage
        self._validator = validator or TransactionValidator()
        self._events = event_logger or EventLogger()
        self._clock = clock or utcnow

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    async def add_transaction(
        self,
        user_id: int,
        description: str,
        amount: Any,
        kind: str,
        transaction_date: date,
    ) -> ServiceResult[TransactionSummary]:
        """
        Record a new entry and refresh the cached balance.

        Fails with INVALID_KIND, VALIDATION, NOT_FOUND (unknown user) or
        INTERNAL.
        """
        parsed_kind, failure = self._check_input(description, amount, kind, transaction_date)
        if failure is not None:
            return failure

        try:
            transaction = await self._transactions.add_transaction(
                user_id=user_id,
                description=self._validator.normalize_description(description),
                amount=self._validator.normalize_amount(amount),
                kind=parsed_kind,
                transaction_date=self._validator.normalize_date(transaction_date),
                created_at=self._clock(),
            )
        except NotFoundError:
            return ServiceResult.fail(ErrorKind.NOT_FOUND, "User not found.")
        except Exception as e:
            self._events.internal_failure("add_transaction", e, user_id=user_id)
            return ServiceResult.fail(ErrorKind.INTERNAL, INTERNAL_FAILURE_MESSAGE)

        self._events.transaction_added(user_id, transaction.id)
        result = ServiceResult.ok(
            TransactionSummary.model_validate(transaction),
            message="Transaction added.",
        )
        return await self._refresh_after_mutation(user_id, result)

    async def update_transaction(
        self,
        user_id: int,
        transaction_id: int,
        description: str,
        amount: Any,
        kind: str,
        transaction_date: date,
    ) -> ServiceResult[TransactionSummary]:
        """
        Overwrite description, amount, kind and date of an owned entry.

        The input is validated before the lookup, so invalid input for a
        foreign id reports the input problem, never the ownership.
        """
        parsed_kind, failure = self._check_input(description, amount, kind, transaction_date)
        if failure is not None:
            return failure

        try:
            existing = await self._transactions.get_transaction(user_id, transaction_id)
            if existing is None:
                return ServiceResult.fail(ErrorKind.NOT_FOUND, TRANSACTION_NOT_FOUND_MESSAGE)

            updated = existing.model_copy(update={
                "description": self._validator.normalize_description(description),
                "amount": self._validator.normalize_amount(amount),
                "kind": parsed_kind,
                "transaction_date": self._validator.normalize_date(transaction_date),
            })
            if not await self._transactions.update_transaction(updated):
                # Deleted between the read and the write
                return ServiceResult.fail(ErrorKind.NOT_FOUND, TRANSACTION_NOT_FOUND_MESSAGE)
        except Exception as e:
            self._events.internal_failure(
                "update_transaction", e, user_id=user_id, transaction_id=transaction_id
            )
            return ServiceResult.fail(ErrorKind.INTERNAL, INTERNAL_FAILURE_MESSAGE)

        self._events.transaction_updated(user_id, transaction_id)
        result = ServiceResult.ok(
            TransactionSummary.model_validate(updated),
            message="Transaction updated.",
        )
        return await self._refresh_after_mutation(user_id, result)

    async def delete_transaction(self, user_id: int, transaction_id: int) -> ServiceResult[None]:
        """Remove an owned entry and refresh the cached balance."""
        try:
            deleted = await self._transactions.delete_transaction(user_id, transaction_id)
        except Exception as e:
            self._events.internal_failure(
                "delete_transaction", e, user_id=user_id, transaction_id=transaction_id
            )
            return ServiceResult.fail(ErrorKind.INTERNAL, INTERNAL_FAILURE_MESSAGE)

        if not deleted:
            return ServiceResult.fail(ErrorKind.NOT_FOUND, TRANSACTION_NOT_FOUND_MESSAGE)

        self._events.transaction_deleted(user_id, transaction_id)
        result = ServiceResult.ok(message="Transaction deleted.")
        return await self._refresh_after_mutation(user_id, result)

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def list_transactions(self, user_id: int) -> ServiceResult[list[Transaction]]:
        """All entries of the user, newest transaction date first."""
        try:
            transactions = await self._transactions.list_transactions(user_id)
        except Exception as e:
            self._events.internal_failure("list_transactions", e, user_id=user_id)
            return ServiceResult.fail(ErrorKind.INTERNAL, INTERNAL_FAILURE_MESSAGE)
        return ServiceResult.ok(transactions)

    async def compute_balance(self, user_id: int) -> ServiceResult[Decimal]:
        """Balance from the persisted rows. Ignores the cached field."""
        try:
            balance = await self._compute(user_id)
        except Exception as e:
            self._events.internal_failure("compute_balance", e, user_id=user_id)
            return ServiceResult.fail(ErrorKind.INTERNAL, INTERNAL_FAILURE_MESSAGE)
        return ServiceResult.ok(balance)

    async def recompute_balance(self, user_id: int) -> ServiceResult[Decimal]:
        """Compute the balance and store it in the user's cached field."""
        try:
            balance = await self._refresh_balance(user_id)
        except NotFoundError:
            return ServiceResult.fail(ErrorKind.NOT_FOUND, "User not found.")
        except Exception as e:
            self._events.internal_failure("recompute_balance", e, user_id=user_id)
            return ServiceResult.fail(ErrorKind.INTERNAL, INTERNAL_FAILURE_MESSAGE)
        return ServiceResult.ok(balance, message="Balance recomputed.")

    async def get_cached_balance(self, user_id: int) -> ServiceResult[Decimal]:
        try:
            user = await self._users.get_user_by_id(user_id)
        except Exception as e:
            self._events.internal_failure("get_cached_balance", e, user_id=user_id)
            return ServiceResult.fail(ErrorKind.INTERNAL, INTERNAL_FAILURE_MESSAGE)

        if user is None:
            return ServiceResult.fail(ErrorKind.NOT_FOUND, "User not found.")
        return ServiceResult.ok(user.balance)

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _check_input(
        self,
        description: Any,
        amount: Any,
        kind: Any,
        transaction_date: Any,
    ) -> tuple[Optional[TransactionKind], Optional[ServiceResult]]:
        """Returns (kind, None) for valid input, else (None, failure result)."""
        parsed_kind = TransactionKind.parse(kind) if isinstance(kind, str) else None
        if parsed_kind is None:
            return None, ServiceResult.fail(
                ErrorKind.INVALID_KIND,
                "Transaction type must be Income or Expense.",
            )

        issues = self._validator.validate(description, amount, transaction_date)
        if issues:
            return None, ServiceResult.fail(
                ErrorKind.VALIDATION,
                "Transaction data is invalid.",
                issues=issues,
            )

        return parsed_kind, None

    async def _compute(self, user_id: int) -> Decimal:
        totals = await self._transactions.sum_by_kind(user_id)
        balance = sum((total * kind.sign for kind, total in totals.items()), ZERO)
        return balance.quantize(CENT)

    async def _refresh_balance(self, user_id: int) -> Decimal:
        balance = await self._compute(user_id)
        if not await self._users.update_balance(user_id, balance):
            raise NotFoundError(f"User {user_id} not found")
        self._events.balance_recomputed(user_id, balance)
        return balance

    async def _refresh_after_mutation(self, user_id: int, result: ServiceResult) -> ServiceResult:
        """Refresh the cached balance; a failure only adds a warning."""
        try:
            await self._refresh_balance(user_id)
        except Exception as e:
            self._events.balance_recompute_failed(user_id, e)
            result.warnings.append(STALE_BALANCE_WARNING)
        return result
