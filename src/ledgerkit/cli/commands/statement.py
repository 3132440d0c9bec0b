"""Statement reconciliation commands."""

import click

from ledgerkit.cli.account_resolution import account_service_from, resolve_account_or_exit
from ledgerkit.cli.error_handling import handle_domain_error
from ledgerkit.domain.entities import Statement
from ledgerkit.domain.errors import DomainError
from ledgerkit.domain.statement import StatementService
from ledgerkit.utils.amount_parser import parse_amount


def statement_service_from(ctx: click.Context) -> StatementService:
    """Build a StatementService from the CLI context."""
    return StatementService(ctx.obj["db"], write_guard=ctx.obj.get("write_guard"))


def echo_statement_summary(statement: Statement) -> None:
    click.echo(f"Statement {statement.id}: {statement.account_name} {statement.start_date} to {statement.end_date}")
    if statement.name:
        click.echo(f"  Name: {statement.name}")
    click.echo(f"  Beginning balance: {statement.beginning_balance:,.2f}")
    click.echo(f"  Ending balance:    {statement.ending_balance:,.2f}")
    click.echo(f"  Reconciled:        {statement.reconciled_balance:,.2f} ({len(statement.line_items)} line items)")
    click.echo(f"  Difference:        {statement.difference:,.2f}")
    click.echo(f"  Status: {statement.status.value}")


@click.group()
def statement_group():
    """Manage statements and reconcile line items."""
    pass


@statement_group.command("create")
@click.argument("account", metavar="ACCOUNT")
@click.option("--start", "start_date", required=True, help="First day of the statement")
@click.option("--end", "end_date", required=True, help="Last day of the statement")
@click.option("--beginning", "beginning_balance", required=True, help="Beginning balance")
@click.option("--ending", "ending_balance", required=True, help="Ending balance")
@click.option("--name", help="Statement name")
@click.option("--note", help="Note")
@click.pass_context
def create_statement(
    ctx,
    account: str,
    start_date: str,
    end_date: str,
    beginning_balance: str,
    ending_balance: str,
    name: str | None,
    note: str | None,
):
    """Create a statement for an account.

    Examples:
        ledgerkit statement create Checking --start 2025-02-01 --end 2025-02-28 --beginning 1000 --ending 1200
    """
    account_id = resolve_account_or_exit(ctx, account_service_from(ctx), account)
    service = statement_service_from(ctx)

    try:
        statement = service.create(
            account_id,
            start_date,
            end_date,
            parse_amount(beginning_balance),
            parse_amount(ending_balance),
            name=name,
            note=note,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Created statement {statement.id}")
    echo_statement_summary(statement)


@statement_group.command("list")
@click.argument("account", metavar="ACCOUNT")
@click.pass_context
def list_statements(ctx, account: str):
    """List an account's statements."""
    account_id = resolve_account_or_exit(ctx, account_service_from(ctx), account)
    service = statement_service_from(ctx)

    try:
        statements = service.list_for_account(account_id)
    except DomainError as e:
        handle_domain_error(ctx, e)

    if not statements:
        click.echo("No statements found.")
        return

    click.echo(f"{'ID':>5s}  {'Start':10s}  {'End':10s}  {'Beginning':>12s}  {'Ending':>12s}  {'Difference':>12s}  Status")
    click.echo("-" * 85)
    for s in statements:
        click.echo(
            f"{s.id:5d}  {s.start_date.isoformat():10s}  {s.end_date.isoformat():10s}  "
            f"{s.beginning_balance:12,.2f}  {s.ending_balance:12,.2f}  {s.difference:12,.2f}  {s.status.value}"
        )


@statement_group.command("show")
@click.argument("statement_id", type=int)
@click.pass_context
def show_statement(ctx, statement_id: int):
    """Show a statement and its reconciled line items."""
    statement = statement_service_from(ctx).get(statement_id)
    if statement is None:
        click.echo(f"Error: Statement {statement_id} not found", err=True)
        ctx.exit(1)

    echo_statement_summary(statement)
    for li in statement.line_items:
        click.echo(f"    #{li.id:<5d} {li.transaction_date.isoformat()}  {li.amount:>12,.2f}")


@statement_group.command("reconcile")
@click.argument("statement_id", type=int)
@click.argument("line_item_ids", nargs=-1, required=True, type=int)
@click.pass_context
def reconcile(ctx, statement_id: int, line_item_ids: tuple[int, ...]):
    """Reconcile line items to a statement (all or nothing)."""
    try:
        statement = statement_service_from(ctx).reconcile_line_items(statement_id, line_item_ids)
    except DomainError as e:
        handle_domain_error(ctx, e)
    echo_statement_summary(statement)


@statement_group.command("unreconcile")
@click.argument("statement_id", type=int)
@click.argument("line_item_ids", nargs=-1, required=True, type=int)
@click.pass_context
def unreconcile(ctx, statement_id: int, line_item_ids: tuple[int, ...]):
    """Remove line items from a statement."""
    try:
        statement = statement_service_from(ctx).unreconcile_line_items(statement_id, line_item_ids)
    except DomainError as e:
        handle_domain_error(ctx, e)
    echo_statement_summary(statement)


@statement_group.command("delete")
@click.argument("statement_id", type=int)
@click.pass_context
def delete_statement(ctx, statement_id: int):
    """Delete a statement. Its line items are unreconciled, not deleted."""
    try:
        deleted = statement_service_from(ctx).delete(statement_id)
    except DomainError as e:
        handle_domain_error(ctx, e)

    if not deleted:
        click.echo(f"Error: Statement {statement_id} not found", err=True)
        ctx.exit(1)
    click.echo(f"Deleted statement {statement_id}")


@statement_group.command("unreconciled")
@click.argument("account", metavar="ACCOUNT")
@click.option("--start-date", help="Start date (inclusive)")
@click.option("--end-date", help="End date (inclusive)")
@click.pass_context
def list_unreconciled(ctx, account: str, start_date: str | None, end_date: str | None):
    """List an account's line items not on any statement."""
    account_id = resolve_account_or_exit(ctx, account_service_from(ctx), account)

    try:
        items = statement_service_from(ctx).get_unreconciled_line_items(account_id, start_date, end_date)
    except DomainError as e:
        handle_domain_error(ctx, e)

    if not items:
        click.echo("No unreconciled line items.")
        return

    for li in items:
        click.echo(f"#{li.id:<5d} {li.transaction_date.isoformat()}  {li.amount:>12,.2f}  txn {li.transaction_id}")


def register_commands(cli):
    """Register statement commands with main CLI."""
    cli.add_command(statement_group, name="statement")
