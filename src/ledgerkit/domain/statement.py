"""Statement reconciliation domain service."""

from datetime import date
from decimal import Decimal
from typing import Iterable, Optional, Union

from ledgerkit.database.base import Database
from ledgerkit.domain.entities import BALANCE_TOLERANCE, LineItem, Statement
from ledgerkit.domain.errors import (
    NotFoundError,
    ValidationError,
    account_not_found,
    line_item_not_found,
    statement_not_found,
)
from ledgerkit.logger import get_logger
from ledgerkit.utils.amount_parser import parse_amount
from ledgerkit.utils.date_parser import coerce_date
from ledgerkit.write_guard import WriteGuard, require_write_access

logger = get_logger("statement")

DateLike = Union[date, str]
AmountLike = Union[Decimal, int, float, str]


def _coerce_amount(value: AmountLike, field: str) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValidationError(f"Invalid {field}: {value!r}")
    if isinstance(value, (int, float)):
        value = str(value)
    if not isinstance(value, str):
        raise ValidationError(f"Invalid {field}: {value!r}")
    try:
        return parse_amount(value)
    except ValidationError as e:
        raise ValidationError(f"Invalid {field}: {e}")


class StatementService:
    """Service for bank statements and line item reconciliation."""

    def __init__(self, db: Database, write_guard: Optional[WriteGuard] = None):
        """Initialize statement service.

        Args:
            db: Database instance
            write_guard: Optional guard consulted before every write
        """
        self.db = db
        self.write_guard = write_guard

    def create(
        self,
        account_id: int,
        start_date: DateLike,
        end_date: DateLike,
        beginning_balance: AmountLike,
        ending_balance: AmountLike,
        name: Optional[str] = None,
        note: Optional[str] = None,
    ) -> Statement:
        """Create a statement for a real account.

        Args:
            account_id: Account the statement belongs to
            start_date: First day covered (date or date string)
            end_date: Last day covered (date or date string)
            beginning_balance: Balance at the start of the period
            ending_balance: Balance at the end of the period
            name: Optional display name
            note: Optional note

        Returns:
            The created statement

        Raises:
            WriteBlockedError: If writes are currently blocked
            NotFoundError: If the account doesn't exist
            ValidationError: If a date or balance is malformed, the range is empty, the
                account is a category, the range overlaps another statement, or
                the beginning balance doesn't continue the previous statement
        """
        start = coerce_date(start_date, "start date")
        end = coerce_date(end_date, "end date")
        if end <= start:
            raise ValidationError(f"End date {end} must be after start date {start}")
        beginning_balance = _coerce_amount(beginning_balance, "beginning balance")
        ending_balance = _coerce_amount(ending_balance, "ending balance")

        require_write_access(self.write_guard)

        with self.db.write_transaction():
            account = self.db.get_account(account_id)
            if account is None:
                raise NotFoundError(account_not_found(account_id))
            if account.is_category:
                raise ValidationError(
                    f"Statements belong to real accounts; '{account.full_name}' is a category"
                )

            # Checked inside the write transaction so concurrent writers can't race us
            if self.db.count_overlapping_statements(account_id, start, end) > 0:
                raise ValidationError(
                    f"Statement {start} to {end} overlaps an existing statement for '{account.full_name}'"
                )

            previous = self.db.get_previous_statement(account_id, start)
            if previous is not None and abs(previous.ending_balance - beginning_balance) >= BALANCE_TOLERANCE:
                raise ValidationError(
                    f"Beginning balance {beginning_balance} does not match the previous statement's "
                    f"ending balance {previous.ending_balance} (statement {previous.id})"
                )

            statement_id = self.db.create_statement(
                account_id=account_id,
                start_date=start,
                end_date=end,
                beginning_balance=beginning_balance,
                ending_balance=ending_balance,
                name=name,
                note=note,
            )
            statement = self.db.get_statement(statement_id)

        logger.info(f"Created statement {statement_id} for '{account.full_name}' ({start} to {end})")
        return statement

    def get(self, statement_id: int) -> Optional[Statement]:
        """Get statement by ID."""
        return self.db.get_statement(statement_id)

    def list_for_account(self, account_id: int) -> list[Statement]:
        """List an account's statements ordered by start date.

        Raises:
            NotFoundError: If the account doesn't exist
        """
        if self.db.get_account(account_id) is None:
            raise NotFoundError(account_not_found(account_id))
        return self.db.list_statements(account_id)

    def get_unreconciled_line_items(
        self,
        account_id: int,
        start_date: Optional[DateLike] = None,
        end_date: Optional[DateLike] = None,
    ) -> list[LineItem]:
        """List an account's line items not yet assigned to a statement.

        Raises:
            NotFoundError: If the account doesn't exist
            ValidationError: If a date is malformed
        """
        start = coerce_date(start_date, "start date") if start_date is not None else None
        end = coerce_date(end_date, "end date") if end_date is not None else None
        if self.db.get_account(account_id) is None:
            raise NotFoundError(account_not_found(account_id))
        return self.db.list_unreconciled_line_items(account_id, start, end)

    def reconcile_line_items(self, statement_id: int, line_item_ids: Iterable[int]) -> Statement:
        """Assign line items to a statement and mark them cleared.

        All assignments of a call commit together or not at all. A line item
        already on this statement is left as it is.

        Args:
            statement_id: Statement ID
            line_item_ids: Line items to reconcile

        Returns:
            The updated statement

        Raises:
            WriteBlockedError: If writes are currently blocked
            NotFoundError: If the statement or a line item doesn't exist
            ValidationError: If a line item belongs to another account, falls
                outside the statement period, or is on another statement
        """
        line_item_ids = list(line_item_ids)
        require_write_access(self.write_guard)

        with self.db.write_transaction():
            statement = self.db.get_statement(statement_id)
            if statement is None:
                raise NotFoundError(statement_not_found(statement_id))

            assigned = 0
            for line_item_id in line_item_ids:
                li = self.db.get_line_item(line_item_id)
                if li is None:
                    raise NotFoundError(line_item_not_found(line_item_id))
                if li.account_id is None or li.account_id != statement.account_id:
                    raise ValidationError(
                        f"Line item {line_item_id} does not belong to account '{statement.account_name}'"
                    )
                if not statement.start_date <= li.transaction_date <= statement.end_date:
                    raise ValidationError(
                        f"Line item {line_item_id} is dated {li.transaction_date}, outside the "
                        f"statement period {statement.start_date} to {statement.end_date}"
                    )
                if li.statement_id == statement_id:
                    continue
                if li.statement_id is not None:
                    raise ValidationError(
                        f"Line item {line_item_id} is already reconciled to statement {li.statement_id}"
                    )
                self.db.set_line_item_reconciliation(line_item_id, statement_id, True)
                assigned += 1

            statement = self.db.get_statement(statement_id)

        logger.info(f"Reconciled {assigned} line items to statement {statement_id}")
        return statement

    def unreconcile_line_items(self, statement_id: int, line_item_ids: Iterable[int]) -> Statement:
        """Remove line items from a statement and clear their cleared flag.

        Line items not on any statement are left as they are.

        Raises:
            WriteBlockedError: If writes are currently blocked
            NotFoundError: If the statement or a line item doesn't exist
            ValidationError: If a line item is on a different statement
        """
        line_item_ids = list(line_item_ids)
        require_write_access(self.write_guard)

        with self.db.write_transaction():
            if self.db.get_statement(statement_id) is None:
                raise NotFoundError(statement_not_found(statement_id))

            removed = 0
            for line_item_id in line_item_ids:
                li = self.db.get_line_item(line_item_id)
                if li is None:
                    raise NotFoundError(line_item_not_found(line_item_id))
                if li.statement_id is None:
                    continue
                if li.statement_id != statement_id:
                    raise ValidationError(
                        f"Line item {line_item_id} belongs to statement {li.statement_id}, not {statement_id}"
                    )
                self.db.set_line_item_reconciliation(line_item_id, None, False)
                removed += 1

            statement = self.db.get_statement(statement_id)

        logger.info(f"Unreconciled {removed} line items from statement {statement_id}")
        return statement

    def delete(self, statement_id: int) -> bool:
        """Delete a statement, unreconciling its line items first.

        Args:
            statement_id: Statement ID

        Returns:
            False if the statement doesn't exist, True otherwise

        Raises:
            WriteBlockedError: If writes are currently blocked
        """
        require_write_access(self.write_guard)

        with self.db.write_transaction():
            statement = self.db.get_statement(statement_id)
            if statement is None:
                return False
            for li in statement.line_items:
                self.db.set_line_item_reconciliation(li.id, None, False)
            self.db.delete_statement(statement_id)

        logger.info(
            f"Deleted statement {statement_id}; unreconciled {len(statement.line_items)} line items"
        )
        return True
