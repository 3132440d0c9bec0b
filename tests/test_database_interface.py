"""Tests for the SQLAlchemy Database implementation."""

import warnings

import pytest
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy.exc import SAWarning

from ledgerkit.database.models import Account as ORMAccount, CategoryAccount, PrimaryAccount
from ledgerkit.domain import entities
from ledgerkit.domain.entities import AccountClass, AccountKind
from ledgerkit.domain.errors import NotFoundError


class TestDatabaseInterface:
    """Tests to verify the Database interface returns domain models."""

    def test_mutation_outside_write_transaction_fails(self, temp_db):
        """Mutations must run inside write_transaction()."""
        with pytest.raises(RuntimeError):
            temp_db.create_account(name="Checking", account_class=AccountClass.CHECKING)

    def test_create_account_uses_variant(self, temp_db):
        """Category classes are stored as category rows, others as primary rows."""
        with temp_db.write_transaction():
            checking_id = temp_db.create_account(name="Checking", account_class=AccountClass.CHECKING)
            food_id = temp_db.create_account(name="Food", account_class=AccountClass.EXPENSE)

        checking = temp_db.get_account(checking_id)
        food = temp_db.get_account(food_id)
        assert isinstance(checking, entities.Account)
        assert checking.kind is AccountKind.PRIMARY
        assert food.kind is AccountKind.CATEGORY
        assert food.is_category
        assert isinstance(checking.created_at, datetime)

        session = temp_db._get_session()
        assert isinstance(session.get(ORMAccount, food_id), CategoryAccount)
        assert isinstance(session.get(ORMAccount, checking_id), PrimaryAccount)

    def test_get_account_resolves_plain_variant(self, temp_db):
        """Legacy rows stored with the base variant are still found."""
        with temp_db.write_transaction():
            session = temp_db._get_session()
            legacy = ORMAccount(name="Legacy", full_name="Legacy", account_class=AccountClass.SAVINGS)
            session.add(legacy)
            session.flush()
            legacy_id = legacy.id

        account = temp_db.get_account(legacy_id)
        assert account.kind is AccountKind.ACCOUNT
        assert not account.is_category

    def test_rollback_on_error(self, temp_db):
        """Everything staged in a failed write transaction is discarded."""
        with pytest.raises(ValueError):
            with temp_db.write_transaction():
                temp_db.create_account(name="Checking", account_class=AccountClass.CHECKING)
                raise ValueError("boom")

        assert temp_db.list_accounts() == []

    def test_nested_write_transaction_joins_outer(self, temp_db):
        """An inner block failure rolls back the whole outer transaction."""
        with pytest.raises(ValueError):
            with temp_db.write_transaction():
                temp_db.create_account(name="Checking", account_class=AccountClass.CHECKING)
                with temp_db.write_transaction():
                    temp_db.create_account(name="Savings", account_class=AccountClass.SAVINGS)
                raise ValueError("boom")

        assert temp_db.list_accounts() == []

    def test_get_account_by_name(self, temp_db):
        with temp_db.write_transaction():
            food_id = temp_db.create_account(name="Food", account_class=AccountClass.EXPENSE)
            groceries_id = temp_db.create_account(
                name="Groceries", account_class=AccountClass.EXPENSE, full_name="Food > Groceries", parent_id=food_id
            )

        assert temp_db.get_account_by_name("Food > Groceries").id == groceries_id
        assert temp_db.get_account_by_name("Groceries").id == groceries_id
        assert temp_db.get_account_by_name("Missing") is None
        assert [acc.id for acc in temp_db.list_child_accounts(food_id)] == [groceries_id]

    def test_transaction_with_line_items(self, temp_db):
        """Transactions come back with their line items ordered by ID."""
        with temp_db.write_transaction():
            checking_id = temp_db.create_account(name="Checking", account_class=AccountClass.CHECKING)
            food_id = temp_db.create_account(name="Food", account_class=AccountClass.EXPENSE)
            txn_id = temp_db.create_transaction(date=date(2025, 1, 15), title="Store", currency_code="USD")
            temp_db.create_line_item(txn_id, checking_id, Decimal("-50.00"))
            temp_db.create_line_item(txn_id, food_id, Decimal("50.00"))
            temp_db.create_line_item(txn_id, None, Decimal("0"))

        txn = temp_db.get_transaction(txn_id)
        assert isinstance(txn, entities.Transaction)
        assert [li.account_name for li in txn.line_items] == ["Checking", "Food", None]
        assert txn.line_items[2].is_orphan
        assert txn.line_items[0].transaction_date == date(2025, 1, 15)
        assert txn.total == Decimal("0")

    def test_create_line_item_on_existing_transaction_is_warning_free(self, temp_db):
        """Adding a leg to a stored transaction must not trip the account backref."""
        with temp_db.write_transaction():
            checking_id = temp_db.create_account(name="Checking", account_class=AccountClass.CHECKING)
            txn_id = temp_db.create_transaction(date=date(2025, 1, 15), title="Store", currency_code="USD")

        with warnings.catch_warnings():
            warnings.simplefilter("error", SAWarning)
            with temp_db.write_transaction():
                temp_db.create_line_item(txn_id, checking_id, Decimal("-5.00"))

        (li,) = temp_db.get_transaction(txn_id).line_items
        assert li.account_id == checking_id
        assert [item.id for item in temp_db.list_line_items_for_account(checking_id)] == [li.id]

    def test_intraday_sort_index_increments(self, temp_db):
        with temp_db.write_transaction():
            first = temp_db.create_transaction(date=date(2025, 1, 15), title="A", currency_code="USD")
            second = temp_db.create_transaction(date=date(2025, 1, 15), title="B", currency_code="USD")
            other_day = temp_db.create_transaction(date=date(2025, 1, 16), title="C", currency_code="USD")

        assert temp_db.get_transaction(first).intraday_sort_index == 0
        assert temp_db.get_transaction(second).intraday_sort_index == 1
        assert temp_db.get_transaction(other_day).intraday_sort_index == 0

    def test_search_transactions_is_case_insensitive(self, temp_db):
        with temp_db.write_transaction():
            temp_db.create_transaction(date=date(2025, 1, 1), title="ACME Corp", currency_code="USD")
            temp_db.create_transaction(date=date(2025, 1, 2), title="acme corp #2", currency_code="USD")
            temp_db.create_transaction(date=date(2025, 1, 3), title="Other 100%", currency_code="USD")

        titles = [t.title for t in temp_db.search_transactions("Acme")]
        assert titles == ["acme corp #2", "ACME Corp"]
        assert len(temp_db.search_transactions("Acme", limit=1)) == 1
        # LIKE wildcards are matched literally
        assert [t.title for t in temp_db.search_transactions("0%")] == ["Other 100%"]

    def test_delete_line_item(self, temp_db):
        with temp_db.write_transaction():
            checking_id = temp_db.create_account(name="Checking", account_class=AccountClass.CHECKING)
            txn_id = temp_db.create_transaction(date=date(2025, 1, 15), title="Store", currency_code="USD")
            keep = temp_db.create_line_item(txn_id, checking_id, Decimal("-5"))
            orphan = temp_db.create_line_item(txn_id, None, Decimal("0"))

        with temp_db.write_transaction():
            temp_db.delete_line_item(orphan)

        assert temp_db.get_line_item(orphan) is None
        assert [li.id for li in temp_db.get_transaction(txn_id).line_items] == [keep]

    def test_missing_records_raise_not_found(self, temp_db):
        with temp_db.write_transaction():
            with pytest.raises(NotFoundError):
                temp_db.set_line_item_amount(999, Decimal("1"))
            with pytest.raises(NotFoundError):
                temp_db.create_import_rule(999, "x")

    def test_statement_queries(self, temp_db):
        with temp_db.write_transaction():
            checking_id = temp_db.create_account(name="Checking", account_class=AccountClass.CHECKING)
            jan = temp_db.create_statement(
                checking_id, date(2025, 1, 1), date(2025, 1, 31), Decimal("0"), Decimal("100")
            )
            temp_db.create_statement(
                checking_id, date(2025, 2, 1), date(2025, 2, 28), Decimal("100"), Decimal("150")
            )

        assert temp_db.count_overlapping_statements(checking_id, date(2025, 1, 15), date(2025, 2, 5)) == 2
        assert temp_db.count_overlapping_statements(checking_id, date(2025, 3, 1), date(2025, 3, 31)) == 0
        assert temp_db.get_previous_statement(checking_id, date(2025, 2, 1)).id == jan
        assert temp_db.get_previous_statement(checking_id, date(2025, 1, 1)) is None
        assert [s.start_date for s in temp_db.list_statements(checking_id)] == [date(2025, 1, 1), date(2025, 2, 1)]
