"""Running balance commands."""

import click

from ledgerkit.cli.account_resolution import account_service_from, resolve_account_or_exit
from ledgerkit.cli.error_handling import handle_domain_error
from ledgerkit.domain.balance import BalanceService
from ledgerkit.domain.errors import DomainError


@click.command("recalculate")
@click.argument("accounts", nargs=-1, metavar="ACCOUNT...")
@click.option("--all", "all_accounts", is_flag=True, help="Recalculate every account")
@click.pass_context
def recalculate(ctx, accounts: tuple[str, ...], all_accounts: bool):
    """Recompute running balances for one or more accounts.

    Examples:
        ledgerkit recalculate Checking
        ledgerkit recalculate --all
    """
    account_service = account_service_from(ctx)
    service = BalanceService(ctx.obj["db"], ctx.obj.get("write_guard"))

    if all_accounts:
        account_ids = [acc.id for acc in account_service.list_accounts()]
    elif accounts:
        account_ids = [resolve_account_or_exit(ctx, account_service, acc) for acc in accounts]
    else:
        click.echo("Error: Provide at least one ACCOUNT or --all", err=True)
        ctx.exit(1)

    for account_id in account_ids:
        try:
            count = service.recalculate(account_id)
        except DomainError as e:
            handle_domain_error(ctx, e)
        name = account_service.get_account(account_id).full_name
        click.echo(f"Recalculated {count} running balance(s) for '{name}'")


def register_commands(cli):
    """Register balance commands with main CLI."""
    cli.add_command(recalculate)
