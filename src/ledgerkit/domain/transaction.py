"""Transaction domain service."""

from datetime import date
from decimal import Decimal
from typing import Optional, Sequence

from ledgerkit.database.base import Database
from ledgerkit.domain.balance import BalanceService
from ledgerkit.domain.entities import (
    BALANCE_TOLERANCE,
    LineItemInput,
    Transaction as TransactionEntity,
)
from ledgerkit.domain.errors import (
    NotFoundError,
    ValidationError,
    account_not_found,
    transaction_not_found,
    unbalanced_transaction,
)
from ledgerkit.logger import get_logger
from ledgerkit.write_guard import WriteGuard, require_write_access

logger = get_logger("transaction")


class TransactionService:
    """Service for managing transactions."""

    def __init__(
        self,
        db: Database,
        write_guard: Optional[WriteGuard] = None,
        balance_service: Optional[BalanceService] = None,
        default_currency: str = "USD",
    ):
        """Initialize transaction service.

        Args:
            db: Database instance
            write_guard: Optional guard consulted before every write
            balance_service: Balance service used after mutations
            default_currency: Currency code for transactions created without one
        """
        self.db = db
        self.write_guard = write_guard
        self.balance_service = balance_service or BalanceService(db, write_guard)
        self.default_currency = default_currency

    def create_transaction(
        self,
        date: date,
        title: str,
        line_items: Sequence[LineItemInput],
        note: Optional[str] = None,
        currency_code: Optional[str] = None,
    ) -> int:
        """Create a transaction with its line items.

        Args:
            date: Transaction date
            title: Payee / description
            line_items: Requested line items
            note: Optional note
            currency_code: Currency code (defaults to the configured currency)

        Returns:
            Transaction ID

        Raises:
            WriteBlockedError: If writes are currently blocked
            NotFoundError: If an account doesn't exist
            ValidationError: If the title is blank, there are no line items,
                or multiple line items don't sum to zero
        """
        if not title or not title.strip():
            raise ValidationError("Transaction title must not be empty")
        if not line_items:
            raise ValidationError("A transaction needs at least one line item")
        if len(line_items) > 1:
            total = sum((li.amount for li in line_items), Decimal("0"))
            if abs(total) >= BALANCE_TOLERANCE:
                raise ValidationError(unbalanced_transaction(total))

        require_write_access(self.write_guard)

        with self.db.write_transaction():
            # Verify accounts exist
            for li in line_items:
                if self.db.get_account(li.account_id) is None:
                    raise NotFoundError(account_not_found(li.account_id))

            transaction_id = self.db.create_transaction(
                date=date,
                title=title.strip(),
                currency_code=currency_code or self.default_currency,
                note=note,
            )
            for li in line_items:
                self.db.create_line_item(transaction_id, li.account_id, li.amount, li.memo)

        logger.info(f"Created transaction {transaction_id} '{title.strip()}' on {date}")
        self.balance_service.recalculate_accounts(li.account_id for li in line_items)
        return transaction_id

    def get_transaction(self, transaction_id: int) -> Optional[TransactionEntity]:
        """Get transaction by ID.

        Args:
            transaction_id: Transaction ID

        Returns:
            Transaction entity or None if not found
        """
        return self.db.get_transaction(transaction_id)

    def list_transactions(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        account_id: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> list[TransactionEntity]:
        """List transactions with filters, most recent first."""
        if account_id is not None and self.db.get_account(account_id) is None:
            raise NotFoundError(account_not_found(account_id))
        return self.db.list_transactions(
            start_date=start_date, end_date=end_date, account_id=account_id, limit=limit
        )

    def search_transactions(self, text: str, limit: Optional[int] = None) -> list[TransactionEntity]:
        """Find transactions whose title contains text (case-insensitive)."""
        if not text or not text.strip():
            raise ValidationError("Search text must not be empty")
        return self.db.search_transactions(text.strip(), limit=limit)

    def update_transaction(
        self,
        transaction_id: int,
        title: Optional[str] = None,
        note: Optional[str] = None,
        date: Optional[date] = None,
        cleared: Optional[bool] = None,
    ) -> None:
        """Update transaction fields.

        Changing the date reorders running balances, so every account touched
        by the transaction is recalculated afterwards.

        Args:
            transaction_id: Transaction ID to update
            title: Optional new title
            note: Optional new note
            date: Optional new date
            cleared: Optional new cleared flag

        Raises:
            WriteBlockedError: If writes are currently blocked
            NotFoundError: If the transaction doesn't exist
            ValidationError: If the new title is blank
        """
        if title is not None and not title.strip():
            raise ValidationError("Transaction title must not be empty")

        require_write_access(self.write_guard)

        with self.db.write_transaction():
            txn = self.db.get_transaction(transaction_id)
            if txn is None:
                raise NotFoundError(transaction_not_found(transaction_id))
            self.db.update_transaction(
                transaction_id,
                title=title.strip() if title is not None else None,
                note=note,
                date=date,
                cleared=cleared,
            )

        if date is not None and date != txn.date:
            self.balance_service.recalculate_accounts(li.account_id for li in txn.line_items)

    def delete_transaction(self, transaction_id: int) -> None:
        """Delete a transaction and recalculate the accounts it touched.

        Args:
            transaction_id: Transaction ID to delete

        Raises:
            WriteBlockedError: If writes are currently blocked
            NotFoundError: If the transaction doesn't exist
        """
        require_write_access(self.write_guard)

        with self.db.write_transaction():
            txn = self.db.get_transaction(transaction_id)
            if txn is None:
                raise NotFoundError(transaction_not_found(transaction_id))
            self.db.delete_transaction(transaction_id)

        logger.info(f"Deleted transaction {transaction_id} '{txn.title}'")
        self.balance_service.recalculate_accounts(li.account_id for li in txn.line_items)
