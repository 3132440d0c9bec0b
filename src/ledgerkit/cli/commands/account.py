"""Account management commands."""

import click

from ledgerkit.cli.account_resolution import account_service_from, resolve_category_or_exit
from ledgerkit.cli.error_handling import handle_domain_error
from ledgerkit.domain.entities import AccountClass
from ledgerkit.domain.errors import DomainError

CLASS_CHOICES = {cls.name.lower().replace("_", "-"): cls for cls in AccountClass}


@click.group()
def account_group():
    """Manage accounts and categories."""
    pass


@account_group.command("create")
@click.argument("name", metavar="ACCOUNT_NAME")
@click.option(
    "--class",
    "account_class",
    type=click.Choice(sorted(CLASS_CHOICES)),
    required=True,
    help="Account classification (income and expense create categories)",
)
@click.option("--parent", help="Parent category name, path or ID (categories only)")
@click.pass_context
def create_account(ctx, name: str, account_class: str, parent: str | None):
    """Create a new account or category.

    Examples:
        ledgerkit account create "Checking" --class checking
        ledgerkit account create "Food" --class expense
        ledgerkit account create "Groceries" --class expense --parent "Food"
    """
    service = account_service_from(ctx)

    parent_id = None
    if parent is not None:
        parent_id = resolve_category_or_exit(ctx, service, parent)

    try:
        account_id = service.create_account(
            name=name, account_class=CLASS_CHOICES[account_class], parent_id=parent_id
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    created = service.get_account(account_id)
    click.echo(f"Created account '{created.full_name}' (ID: {account_id})")


@account_group.command("list")
@click.option("--categories", "categories_only", is_flag=True, help="Only show categories")
@click.option("--real", "real_only", is_flag=True, help="Only show real accounts")
@click.pass_context
def list_accounts(ctx, categories_only: bool, real_only: bool):
    """List accounts."""
    service = account_service_from(ctx)

    try:
        accounts = service.list_accounts(categories_only=categories_only, real_only=real_only)
    except DomainError as e:
        handle_domain_error(ctx, e)

    if not accounts:
        click.echo("No accounts found.")
        return

    click.echo("\nAccounts:")
    click.echo("-" * 60)
    for acc in accounts:
        class_name = AccountClass(acc.account_class).display_name
        click.echo(f"ID: {acc.id:3d} | {acc.full_name:35s} | {class_name}")


@account_group.command("move")
@click.argument("category", metavar="CATEGORY")
@click.option("--parent", help="New parent category (omit to move to the top level)")
@click.pass_context
def move_category(ctx, category: str, parent: str | None):
    """Move a category under another parent.

    Examples:
        ledgerkit account move "Groceries" --parent "Food"
        ledgerkit account move "Food > Groceries"
    """
    service = account_service_from(ctx)
    category_id = resolve_category_or_exit(ctx, service, category)
    parent_id = resolve_category_or_exit(ctx, service, parent) if parent is not None else None

    try:
        service.move_category(category_id, parent_id)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Moved category to '{service.category_path(category_id)}'")


def register_commands(cli):
    """Register account commands with main CLI."""
    cli.add_command(account_group, name="account")
