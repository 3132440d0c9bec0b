"""Transaction commands: add, show, list, delete."""

import click

from ledgerkit.cli.account_resolution import (
    account_service_from,
    resolve_account_or_exit,
    resolve_category_or_exit,
)
from ledgerkit.cli.error_handling import handle_domain_error
from ledgerkit.domain.balance import BalanceService
from ledgerkit.domain.entities import LineItemInput, Transaction
from ledgerkit.domain.errors import DomainError
from ledgerkit.domain.transaction import TransactionService
from ledgerkit.utils.amount_parser import parse_amount
from ledgerkit.utils.date_parser import parse_date


def transaction_service_from(ctx: click.Context) -> TransactionService:
    """Build a TransactionService from the CLI context."""
    write_guard = ctx.obj.get("write_guard")
    config = ctx.obj.get("config")
    return TransactionService(
        ctx.obj["db"],
        write_guard=write_guard,
        balance_service=BalanceService(ctx.obj["db"], write_guard),
        default_currency=config.default_currency if config is not None else "USD",
    )


def format_line_items(txn: Transaction) -> list[str]:
    """Render each line item of a transaction on one line."""
    lines = []
    for li in txn.line_items:
        account = li.account_name if not li.is_orphan else "(no account)"
        reconciled = f" [statement {li.statement_id}]" if li.statement_id is not None else ""
        lines.append(
            f"    #{li.id:<5d} {account:30s} {li.amount:>12,.2f}  bal {li.running_balance:>12,.2f}{reconciled}"
        )
    return lines


@click.command("add")
@click.option("--account", required=True, help="Account name, path or ID")
@click.option(
    "--date",
    "date_str",
    required=True,
    help="Transaction date (YYYY-MM-DD or relative like 'today', 'yesterday')",
)
@click.option("--amount", required=True, help="Amount for the account (e.g., -50.00)")
@click.option("--title", required=True, help="Payee or description")
@click.option("--category", help="Category name, path or ID (receives the opposite amount)")
@click.option("--note", help="Note")
@click.option("--currency", help="Currency code (defaults to the configured currency)")
@click.pass_context
def add_transaction(
    ctx,
    account: str,
    date_str: str,
    amount: str,
    title: str,
    category: str | None,
    note: str | None,
    currency: str | None,
):
    """Add a transaction manually.

    Without --category the transaction has a single, uncategorized leg.

    Examples:
        ledgerkit add --account Checking --date 2025-01-15 --amount -50.00 --title "Grocery store" --category Groceries
        ledgerkit add --account 1 --date today --amount -12.5 --title "Coffee"
    """
    account_service = account_service_from(ctx)
    service = transaction_service_from(ctx)

    account_id = resolve_account_or_exit(ctx, account_service, account)
    category_id = None
    if category:
        category_id = resolve_category_or_exit(ctx, account_service, category)

    try:
        txn_date = parse_date(date_str)
        txn_amount = parse_amount(amount)
        line_items = [LineItemInput(account_id=account_id, amount=txn_amount)]
        if category_id is not None:
            line_items.append(LineItemInput(account_id=category_id, amount=-txn_amount))
        transaction_id = service.create_transaction(
            date=txn_date,
            title=title,
            line_items=line_items,
            note=note,
            currency_code=currency.upper() if currency else None,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Created transaction {transaction_id}")
    click.echo(f"  Date: {txn_date}")
    click.echo(f"  Title: {title}")
    click.echo(f"  Amount: {txn_amount:,.2f}")
    if category:
        click.echo(f"  Category: {account_service.get_account(category_id).full_name}")


@click.group()
def transaction_group():
    """Manage transactions."""
    pass


@transaction_group.command("show")
@click.argument("transaction_id", type=int)
@click.pass_context
def show_transaction(ctx, transaction_id: int) -> None:
    """Show a transaction with its line items."""
    service = transaction_service_from(ctx)

    txn = service.get_transaction(transaction_id)
    if txn is None:
        click.echo(f"Error: Transaction {transaction_id} not found", err=True)
        ctx.exit(1)

    click.echo(f"Transaction ID: {txn.id}")
    click.echo(f"  Date: {txn.date}")
    click.echo(f"  Title: {txn.title}")
    click.echo(f"  Currency: {txn.currency_code}")
    if txn.note:
        click.echo(f"  Note: {txn.note}")
    click.echo(f"  Cleared: {'yes' if txn.cleared else 'no'}")
    click.echo("  Line items:")
    for line in format_line_items(txn):
        click.echo(line)


@transaction_group.command("list")
@click.option("--account", help="Only transactions touching this account")
@click.option("--start-date", help="Start date (inclusive)")
@click.option("--end-date", help="End date (inclusive)")
@click.option("--limit", type=int, default=50, show_default=True, help="Maximum rows")
@click.pass_context
def list_transactions(
    ctx, account: str | None, start_date: str | None, end_date: str | None, limit: int
) -> None:
    """List transactions, most recent first."""
    service = transaction_service_from(ctx)

    account_id = None
    if account is not None:
        account_id = resolve_account_or_exit(ctx, account_service_from(ctx), account)

    try:
        start = parse_date(start_date) if start_date else None
        end = parse_date(end_date) if end_date else None
        transactions = service.list_transactions(
            start_date=start, end_date=end, account_id=account_id, limit=limit
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    if not transactions:
        click.echo("No transactions found.")
        return

    click.echo(f"\nFound {len(transactions)} transaction(s):")
    click.echo("-" * 90)
    click.echo(f"{'ID':>5s}  {'Date':10s}  {'Title':35s}  {'Legs':>4s}  {'Category':25s}")
    click.echo("-" * 90)
    for txn in transactions:
        categories = ", ".join(li.account_name for li in txn.line_items if li.is_category)
        click.echo(
            f"{txn.id:5d}  {txn.date.isoformat():10s}  {txn.title[:35]:35s}  "
            f"{len(txn.line_items):4d}  {categories or '(uncategorized)':25s}"
        )


@transaction_group.command("delete")
@click.argument("transaction_id", type=int)
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete_transaction(ctx, transaction_id: int, yes: bool) -> None:
    """Delete a transaction.

    Examples:
        ledgerkit transaction delete 1
    """
    service = transaction_service_from(ctx)

    txn = service.get_transaction(transaction_id)
    if txn is None:
        click.echo(f"Error: Transaction {transaction_id} not found", err=True)
        ctx.exit(1)

    if not yes and not click.confirm(f"Are you sure you want to delete transaction {transaction_id}?"):
        click.echo("Deletion cancelled.")
        return

    try:
        service.delete_transaction(transaction_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deleted transaction {transaction_id}")


def register_commands(cli: click.Group) -> None:
    """Register transaction commands with main CLI."""
    cli.add_command(add_transaction)
    cli.add_command(transaction_group, name="transaction")
