"""CLI helpers for account resolution and service wiring."""

from __future__ import annotations

import click

from ledgerkit.domain.account import AccountService
from ledgerkit.domain.errors import DomainError
from ledgerkit.utils.account_resolver import resolve_account, resolve_category
from ledgerkit.cli.error_handling import handle_domain_error


def account_service_from(ctx: click.Context) -> AccountService:
    """Build an AccountService from the CLI context."""
    return AccountService(ctx.obj["db"], ctx.obj.get("write_guard"))


def resolve_account_or_exit(
    ctx: click.Context, account_service: AccountService, account: str | int
) -> int:
    """Resolve account name, path or ID, or exit with a CLI error.

    This keeps error messaging and exit behavior consistent across commands.
    """
    try:
        return resolve_account(account_service, account)
    except DomainError as exc:
        handle_domain_error(ctx, exc)


def resolve_category_or_exit(
    ctx: click.Context, account_service: AccountService, category: str | int
) -> int:
    """Resolve a category name, path or ID, or exit with a CLI error."""
    try:
        return resolve_category(account_service, category)
    except DomainError as exc:
        handle_domain_error(ctx, exc)
