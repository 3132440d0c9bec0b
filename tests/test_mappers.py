"""Tests for database mappers."""

import pytest
from datetime import datetime, date, UTC
from decimal import Decimal

from ledgerkit.database.models import (
    CategoryAccount as ORMCategoryAccount,
    PrimaryAccount as ORMPrimaryAccount,
    Transaction as ORMTransaction,
    LineItem as ORMLineItem,
    Statement as ORMStatement,
    TransactionTemplate as ORMTransactionTemplate,
    LineItemTemplate as ORMLineItemTemplate,
    ImportRule as ORMImportRule,
)
from ledgerkit.database.mappers import (
    account_to_domain,
    import_rule_to_domain,
    line_item_to_domain,
    statement_to_domain,
    template_to_domain,
    transaction_to_domain,
)
from ledgerkit.domain.entities import Account, AccountClass, AccountKind, LineItem, Transaction


@pytest.fixture
def orm_accounts():
    now = datetime.now(UTC)
    checking = ORMPrimaryAccount(
        id=1, name="Checking", full_name="Checking", account_class=AccountClass.CHECKING, created_at=now
    )
    groceries = ORMCategoryAccount(
        id=2,
        name="Groceries",
        full_name="Food > Groceries",
        account_class=AccountClass.EXPENSE,
        parent_id=3,
        created_at=now,
    )
    return checking, groceries


@pytest.fixture
def orm_transaction(orm_accounts):
    checking, groceries = orm_accounts
    now = datetime.now(UTC)
    txn = ORMTransaction(
        id=10,
        date=date(2025, 2, 10),
        title="Store",
        note=None,
        cleared=False,
        voided=False,
        currency_code="USD",
        intraday_sort_index=0,
        created_at=now,
        modified_at=now,
    )
    txn.line_items.append(
        ORMLineItem(id=100, account=checking, amount=Decimal("-50.00"), running_balance=Decimal("-50.00"),
                    cleared=False, created_at=now)
    )
    txn.line_items.append(
        ORMLineItem(id=101, account=groceries, amount=Decimal("50.00"), running_balance=Decimal("50.00"),
                    cleared=False, created_at=now)
    )
    txn.line_items.append(
        ORMLineItem(id=102, account=None, amount=Decimal("0"), running_balance=None, cleared=False, created_at=now)
    )
    return txn


class TestAccountMapper:
    """Tests for Account mapper."""

    def test_account_to_domain(self, orm_accounts):
        """Test converting ORM Account variants to domain Account."""
        checking, groceries = orm_accounts

        domain_checking = account_to_domain(checking)
        domain_groceries = account_to_domain(groceries)

        assert isinstance(domain_checking, Account)
        assert domain_checking.kind is AccountKind.PRIMARY
        assert domain_groceries.kind is AccountKind.CATEGORY
        assert domain_groceries.full_name == "Food > Groceries"
        assert domain_groceries.parent_id == 3


class TestTransactionMapper:
    """Tests for Transaction and LineItem mappers."""

    def test_transaction_to_domain(self, orm_transaction):
        txn = transaction_to_domain(orm_transaction)

        assert isinstance(txn, Transaction)
        assert txn.id == 10
        assert len(txn.line_items) == 3
        assert all(isinstance(li, LineItem) for li in txn.line_items)

    def test_line_item_denormalizes_account(self, orm_transaction):
        checking_li, groceries_li, orphan_li = orm_transaction.line_items

        groceries = line_item_to_domain(groceries_li)
        assert groceries.account_id == 2
        assert groceries.account_name == "Groceries"
        assert groceries.account_class == AccountClass.EXPENSE
        assert groceries.transaction_date == date(2025, 2, 10)
        assert groceries.is_category

        orphan = line_item_to_domain(orphan_li)
        assert orphan.is_orphan
        assert orphan.account_name is None
        assert orphan.running_balance == Decimal("0")


class TestStatementMapper:
    """Tests for Statement mapper."""

    def test_statement_to_domain(self, orm_accounts, orm_transaction):
        checking, _ = orm_accounts
        now = datetime.now(UTC)
        stmt = ORMStatement(
            id=5,
            account=checking,
            start_date=date(2025, 2, 1),
            end_date=date(2025, 2, 28),
            beginning_balance=Decimal("1000"),
            ending_balance=Decimal("950"),
            created_at=now,
            modified_at=now,
        )
        stmt.line_items.append(orm_transaction.line_items[0])

        statement = statement_to_domain(stmt)
        assert statement.account_name == "Checking"
        assert statement.reconciled_balance == Decimal("-50.00")
        assert statement.is_balanced


class TestTemplateMappers:
    """Tests for TransactionTemplate and ImportRule mappers."""

    def test_template_and_rule_to_domain(self):
        now = datetime.now(UTC)
        template = ORMTransactionTemplate(id=1, title="Office", created_at=now)
        template.lines.append(ORMLineItemTemplate(id=1, account_id=2, amount=Decimal("0")))
        rule = ORMImportRule(id=7, template=template, template_id=1, pattern="Acme.*", created_at=now)

        domain_template = template_to_domain(template)
        assert domain_template.line_items[0].account_id == 2

        domain_rule = import_rule_to_domain(rule)
        assert domain_rule.template_title == "Office"
        assert domain_rule.pattern == "Acme.*"
