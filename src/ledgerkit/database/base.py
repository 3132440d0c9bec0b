"""Abstract database interface."""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from typing import Optional, Mapping, Sequence
from datetime import date
from decimal import Decimal

# Import entities directly to avoid circular import through domain/__init__.py
from ledgerkit.domain.entities import (
    Account,
    ImportRule,
    LineItem,
    Statement,
    Transaction,
    TransactionTemplate,
)


class Database(ABC):
    """Abstract entity store for the ledger.

    Mutating methods only stage their changes. They must be called inside
    ``write_transaction()``, which commits everything staged in the block at
    once, or rolls it all back if the block raises. Reads inside the block see
    the staged changes.
    """

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    @abstractmethod
    def write_transaction(self) -> AbstractContextManager[None]:
        """Open an isolated write transaction, committed when the block exits."""
        pass

    # Account operations
    @abstractmethod
    def create_account(
        self,
        name: str,
        account_class: int,
        full_name: Optional[str] = None,
        parent_id: Optional[int] = None,
    ) -> int:
        """Create an account of the variant matching its class. Returns account ID."""
        pass

    @abstractmethod
    def get_account(self, account_id: int) -> Optional[Account]:
        """Get account by ID, whichever variant it is stored as."""
        pass

    @abstractmethod
    def get_account_by_name(self, name: str) -> Optional[Account]:
        """Get account by full name, falling back to a unique short name."""
        pass

    @abstractmethod
    def list_accounts(self, account_classes: Optional[Sequence[int]] = None) -> list[Account]:
        """List accounts ordered by full name, optionally filtered by class."""
        pass

    @abstractmethod
    def list_child_accounts(self, parent_id: int) -> list[Account]:
        """List direct children of an account."""
        pass

    @abstractmethod
    def set_account_parent(self, account_id: int, parent_id: Optional[int], full_name: str) -> None:
        """Re-parent an account and store its new full name."""
        pass

    # Transaction operations
    @abstractmethod
    def create_transaction(
        self,
        date: date,
        title: str,
        currency_code: str,
        note: Optional[str] = None,
        intraday_sort_index: Optional[int] = None,
    ) -> int:
        """Create a transaction without line items. Returns transaction ID."""
        pass

    @abstractmethod
    def get_transaction(self, transaction_id: int) -> Optional[Transaction]:
        """Get transaction by ID, with its line items."""
        pass

    @abstractmethod
    def update_transaction(
        self,
        transaction_id: int,
        title: Optional[str] = None,
        note: Optional[str] = None,
        date: Optional[date] = None,
        cleared: Optional[bool] = None,
    ) -> None:
        """Update the provided transaction fields and touch the modification time."""
        pass

    @abstractmethod
    def touch_transaction(self, transaction_id: int) -> None:
        """Set the transaction's modification time to now."""
        pass

    @abstractmethod
    def delete_transaction(self, transaction_id: int) -> None:
        """Delete a transaction and its line items."""
        pass

    @abstractmethod
    def list_transactions(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        account_id: Optional[int] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> list[Transaction]:
        """List transactions, most recent first.

        Args:
            start_date: Optional start date filter (inclusive)
            end_date: Optional end date filter (inclusive)
            account_id: Only transactions with a line item in this account
            limit: Maximum number of transactions
            offset: Number of transactions to skip
        """
        pass

    @abstractmethod
    def search_transactions(self, title_contains: str, limit: Optional[int] = None) -> list[Transaction]:
        """Case-insensitive substring search on titles, most recent first."""
        pass

    # Line item operations
    @abstractmethod
    def create_line_item(
        self,
        transaction_id: int,
        account_id: Optional[int],
        amount: Decimal,
        memo: Optional[str] = None,
    ) -> int:
        """Create a line item. ``account_id`` may be None only for legacy data."""
        pass

    @abstractmethod
    def get_line_item(self, line_item_id: int) -> Optional[LineItem]:
        """Get line item by ID."""
        pass

    @abstractmethod
    def set_line_item_account(self, line_item_id: int, account_id: int) -> None:
        """Point a line item at another account."""
        pass

    @abstractmethod
    def set_line_item_amount(self, line_item_id: int, amount: Decimal) -> None:
        """Change a line item's amount."""
        pass

    @abstractmethod
    def set_line_item_reconciliation(
        self, line_item_id: int, statement_id: Optional[int], cleared: bool
    ) -> None:
        """Assign a line item to a statement (or clear it) and set its cleared flag."""
        pass

    @abstractmethod
    def delete_line_item(self, line_item_id: int) -> None:
        """Delete a line item."""
        pass

    @abstractmethod
    def list_line_items_for_account(self, account_id: int) -> list[LineItem]:
        """List an account's line items by date, intra-day index, then ID."""
        pass

    @abstractmethod
    def set_running_balances(self, balances: Mapping[int, Decimal]) -> None:
        """Write running balances keyed by line item ID."""
        pass

    @abstractmethod
    def list_unreconciled_line_items(
        self,
        account_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[LineItem]:
        """List an account's line items not assigned to any statement."""
        pass

    # Statement operations
    @abstractmethod
    def create_statement(
        self,
        account_id: int,
        start_date: date,
        end_date: date,
        beginning_balance: Decimal,
        ending_balance: Decimal,
        name: Optional[str] = None,
        note: Optional[str] = None,
    ) -> int:
        """Create a statement. Returns statement ID."""
        pass

    @abstractmethod
    def get_statement(self, statement_id: int) -> Optional[Statement]:
        """Get statement by ID, with its reconciled line items."""
        pass

    @abstractmethod
    def list_statements(self, account_id: int) -> list[Statement]:
        """List an account's statements ordered by start date."""
        pass

    @abstractmethod
    def count_overlapping_statements(self, account_id: int, start_date: date, end_date: date) -> int:
        """Count statements with ``start < end_date`` and ``end > start_date``."""
        pass

    @abstractmethod
    def get_previous_statement(self, account_id: int, before: date) -> Optional[Statement]:
        """Get the statement with the latest end date strictly before ``before``."""
        pass

    @abstractmethod
    def delete_statement(self, statement_id: int) -> None:
        """Delete a statement record."""
        pass

    # Template and import rule operations
    @abstractmethod
    def create_transaction_template(self, title: str, lines: Sequence[tuple[int, Decimal]]) -> int:
        """Create a template from (account_id, amount) lines. Returns template ID."""
        pass

    @abstractmethod
    def get_transaction_template(self, template_id: int) -> Optional[TransactionTemplate]:
        """Get template by ID."""
        pass

    @abstractmethod
    def create_import_rule(self, template_id: int, pattern: str) -> int:
        """Create an import rule. Returns rule ID."""
        pass

    @abstractmethod
    def list_import_rules(self) -> list[ImportRule]:
        """List import rules ordered by pattern."""
        pass
