"""Shared domain error messages and error types."""


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class WriteBlockedError(DomainError):
    """Write refused because another process holds the ledger file open."""


def account_not_found(account_id: int) -> str:
    """Return message for missing account."""
    return f"Account not found: {account_id}"


def category_not_found(category_id: int) -> str:
    """Return message for missing category by ID."""
    return f"Category not found: {category_id}"


def not_a_category(account_id: int, name: str) -> str:
    """Return message when a real account is used where a category is required."""
    return f"Account {account_id} ('{name}') is not an income or expense category"


def transaction_not_found(transaction_id: int) -> str:
    """Return message for missing transaction."""
    return f"Transaction not found: {transaction_id}"


def line_item_not_found(line_item_id: int) -> str:
    """Return message for missing line item."""
    return f"Line item not found: {line_item_id}"


def statement_not_found(statement_id: int) -> str:
    """Return message for missing statement."""
    return f"Statement not found: {statement_id}"


def template_not_found(template_id: int) -> str:
    """Return message for missing transaction template."""
    return f"Template not found: {template_id}"


def unbalanced_transaction(total) -> str:
    """Return message when line items do not sum to zero."""
    return f"Line items must sum to zero (got {total})"
