"""Shared pytest fixtures for ledgerkit tests."""

import logging
import os
import tempfile
from datetime import date
from decimal import Decimal
from types import SimpleNamespace

import pytest

from ledgerkit.config import (
    ENV_CONFIG_PATH,
    ENV_DB_PATH,
    ENV_DEFAULT_CURRENCY,
    ENV_GUARD_PROCESSES,
    ENV_LOG_LEVEL,
    ENV_SUGGESTION_SAMPLE_SIZE,
)
from ledgerkit.database.factories import create_sqlite_database
from ledgerkit.domain.account import AccountService
from ledgerkit.domain.balance import BalanceService
from ledgerkit.domain.categorization import CategorizationService
from ledgerkit.domain.entities import AccountClass
from ledgerkit.domain.import_rule import ImportRuleService
from ledgerkit.domain.statement import StatementService
from ledgerkit.domain.suggestion import SuggestionService
from ledgerkit.domain.transaction import TransactionService


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path):
    """Keep user config files and LEDGERKIT_* variables out of tests."""
    for name in (
        ENV_DB_PATH,
        ENV_LOG_LEVEL,
        ENV_DEFAULT_CURRENCY,
        ENV_SUGGESTION_SAMPLE_SIZE,
        ENV_GUARD_PROCESSES,
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv(ENV_CONFIG_PATH, str(tmp_path / "missing-config.toml"))
    yield
    # CLI runs attach handlers bound to CliRunner streams
    logging.getLogger("ledgerkit").handlers.clear()


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def account_service(temp_db):
    """Create an AccountService with a temporary database."""
    return AccountService(temp_db)


@pytest.fixture
def balance_service(temp_db):
    """Create a BalanceService with a temporary database."""
    return BalanceService(temp_db)


@pytest.fixture
def categorization_service(temp_db):
    """Create a CategorizationService with a temporary database."""
    return CategorizationService(temp_db)


@pytest.fixture
def statement_service(temp_db):
    """Create a StatementService with a temporary database."""
    return StatementService(temp_db)


@pytest.fixture
def suggestion_service(temp_db):
    """Create a SuggestionService with a temporary database."""
    return SuggestionService(temp_db)


@pytest.fixture
def transaction_service(temp_db):
    """Create a TransactionService with a temporary database."""
    return TransactionService(temp_db)


@pytest.fixture
def import_rule_service(temp_db):
    """Create an ImportRuleService with a temporary database."""
    return ImportRuleService(temp_db)


@pytest.fixture
def ledger(account_service):
    """Create a small chart of accounts and return their IDs by name."""
    ids = SimpleNamespace()
    ids.checking = account_service.create_account("Checking", AccountClass.CHECKING)
    ids.savings = account_service.create_account("Savings", AccountClass.SAVINGS)
    ids.credit_card = account_service.create_account("Visa", AccountClass.CREDIT_CARD)
    ids.salary = account_service.create_account("Salary", AccountClass.INCOME)
    ids.food = account_service.create_account("Food", AccountClass.EXPENSE)
    ids.groceries = account_service.create_account("Groceries", AccountClass.EXPENSE, parent_id=ids.food)
    ids.dining = account_service.create_account("Dining", AccountClass.EXPENSE)
    ids.utilities = account_service.create_account("Utilities", AccountClass.EXPENSE)
    ids.entertainment = account_service.create_account("Entertainment", AccountClass.EXPENSE)
    ids.office_supplies = account_service.create_account("Office Supplies", AccountClass.EXPENSE)
    ids.shipping = account_service.create_account("Shipping", AccountClass.EXPENSE)
    return ids


@pytest.fixture
def make_transaction(temp_db):
    """Return a helper that writes a transaction with raw line items.

    Each leg is an (account_id or None, amount) pair, so tests can seed
    orphaned and unbalanced legacy data the services never create.
    """

    def _make(legs, title="Test", txn_date=date(2025, 2, 10)):
        with temp_db.write_transaction():
            txn_id = temp_db.create_transaction(date=txn_date, title=title, currency_code="USD")
            for account_id, amount in legs:
                temp_db.create_line_item(txn_id, account_id, Decimal(str(amount)))
        return txn_id

    return _make


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()


class BlockingGuard:
    """Write guard stub that always vetoes."""

    def check_write_allowed(self):
        return "Banktivity currently has the ledger open."


@pytest.fixture
def blocking_guard():
    """A write guard that refuses every write."""
    return BlockingGuard()
