"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer isolates the name-keyed ORM access: the engine only ever sees the
frozen entities from ``ledgerkit.domain.entities``.
"""

from decimal import Decimal

from ledgerkit.domain import entities as domain
from ledgerkit.database.models import (
    Account as ORMAccount,
    Transaction as ORMTransaction,
    LineItem as ORMLineItem,
    Statement as ORMStatement,
    TransactionTemplate as ORMTransactionTemplate,
    ImportRule as ORMImportRule,
)


def _decimal(value) -> Decimal:
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def account_to_domain(orm_account: ORMAccount) -> domain.Account:
    """Convert SQLAlchemy Account model (any variant) to domain Account entity."""
    return domain.Account(
        id=orm_account.id,
        name=orm_account.name,
        full_name=orm_account.full_name,
        account_class=orm_account.account_class,
        kind=domain.AccountKind(orm_account.kind),
        parent_id=orm_account.parent_id,
        created_at=orm_account.created_at,
    )


def line_item_to_domain(orm_line_item: ORMLineItem) -> domain.LineItem:
    """Convert SQLAlchemy LineItem model to domain LineItem entity."""
    account = orm_line_item.account
    return domain.LineItem(
        id=orm_line_item.id,
        transaction_id=orm_line_item.transaction_id,
        account_id=account.id if account is not None else None,
        account_name=account.name if account is not None else None,
        account_class=account.account_class if account is not None else None,
        amount=_decimal(orm_line_item.amount),
        memo=orm_line_item.memo,
        running_balance=_decimal(orm_line_item.running_balance),
        cleared=orm_line_item.cleared,
        statement_id=orm_line_item.statement_id,
        transaction_date=orm_line_item.transaction.date,
        created_at=orm_line_item.created_at,
    )


def transaction_to_domain(orm_transaction: ORMTransaction) -> domain.Transaction:
    """Convert SQLAlchemy Transaction model to domain Transaction entity."""
    return domain.Transaction(
        id=orm_transaction.id,
        date=orm_transaction.date,
        title=orm_transaction.title,
        note=orm_transaction.note,
        cleared=orm_transaction.cleared,
        voided=orm_transaction.voided,
        currency_code=orm_transaction.currency_code,
        intraday_sort_index=orm_transaction.intraday_sort_index,
        created_at=orm_transaction.created_at,
        modified_at=orm_transaction.modified_at,
        line_items=tuple(line_item_to_domain(li) for li in orm_transaction.line_items),
    )


def statement_to_domain(orm_statement: ORMStatement) -> domain.Statement:
    """Convert SQLAlchemy Statement model to domain Statement entity."""
    return domain.Statement(
        id=orm_statement.id,
        account_id=orm_statement.account_id,
        account_name=orm_statement.account.name,
        start_date=orm_statement.start_date,
        end_date=orm_statement.end_date,
        beginning_balance=_decimal(orm_statement.beginning_balance),
        ending_balance=_decimal(orm_statement.ending_balance),
        name=orm_statement.name,
        note=orm_statement.note,
        created_at=orm_statement.created_at,
        modified_at=orm_statement.modified_at,
        line_items=tuple(line_item_to_domain(li) for li in orm_statement.line_items),
    )


def template_to_domain(orm_template: ORMTransactionTemplate) -> domain.TransactionTemplate:
    """Convert SQLAlchemy TransactionTemplate model to domain entity."""
    return domain.TransactionTemplate(
        id=orm_template.id,
        title=orm_template.title,
        line_items=tuple(
            domain.LineItemTemplate(account_id=line.account_id, amount=_decimal(line.amount))
            for line in orm_template.lines
        ),
    )


def import_rule_to_domain(orm_rule: ORMImportRule) -> domain.ImportRule:
    """Convert SQLAlchemy ImportRule model to domain ImportRule entity."""
    return domain.ImportRule(
        id=orm_rule.id,
        template_id=orm_rule.template_id,
        template_title=orm_rule.template.title,
        pattern=orm_rule.pattern,
        created_at=orm_rule.created_at,
    )
