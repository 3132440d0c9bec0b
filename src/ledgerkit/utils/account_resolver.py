"""Utility for resolving account names to IDs."""

from ledgerkit.domain.account import AccountService
from ledgerkit.domain.errors import NotFoundError, ValidationError, not_a_category


def resolve_account(account_service: AccountService, account: str | int) -> int:
    """Resolve an account ID, full path or name to an account ID.

    Args:
        account_service: AccountService instance
        account: Account ID (int or numeric string), full path ("Food > Groceries") or name

    Returns:
        Account ID

    Raises:
        NotFoundError: If the account is not found
    """
    if isinstance(account, int):
        if account_service.get_account(account) is None:
            raise NotFoundError(f"Account ID {account} not found")
        return account

    try:
        account_id = int(account)
    except ValueError:
        account_id = None
    if account_id is not None:
        if account_service.get_account(account_id) is None:
            raise NotFoundError(f"Account ID {account_id} not found")
        return account_id

    found = account_service.get_account_by_name(account.strip())
    if found is None:
        raise NotFoundError(f"Account '{account}' not found")
    return found.id


def resolve_category(account_service: AccountService, category: str | int) -> int:
    """Resolve a category like resolve_account, rejecting real accounts.

    Raises:
        NotFoundError: If the account is not found
        ValidationError: If it is not a category
    """
    account_id = resolve_account(account_service, category)
    account = account_service.get_account(account_id)
    if not account.is_category:
        raise ValidationError(not_a_category(account_id, account.full_name))
    return account_id
