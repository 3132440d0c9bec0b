"""Main CLI entry point."""

import click

from ledgerkit.config import LOG_LEVELS, load_config
from ledgerkit.database.factories import create_sqlite_database
from ledgerkit.domain.errors import DomainError
from ledgerkit.logger import setup_logging
from ledgerkit.write_guard import WriteGuard

# Import and register all commands at module level
from ledgerkit.cli.commands import (
    account,
    balance,
    categorize,
    rule,
    statement,
    transaction,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides LEDGERKIT_DB_PATH environment variable)",
    envvar="LEDGERKIT_DB_PATH",
)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    help="Logging level (overrides LEDGERKIT_LOG_LEVEL and the config file)",
)
@click.pass_context
def cli(ctx, db_path: str | None, log_level: str | None):
    """Ledgerkit - personal ledger consistency tools.

    Recategorize transactions, reconcile statements against bank totals,
    keep running balances correct and get category suggestions.
    """
    ctx.ensure_object(dict)

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is None:
        return

    try:
        config = load_config(database_path=db_path, log_level=log_level)
    except DomainError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)
    setup_logging(config)

    database_path = str(config.resolved_database_path())
    db = create_sqlite_database(database_path=database_path)
    db.connect()
    db.initialize_schema()
    ctx.call_on_close(db.disconnect)

    write_guard = None
    if config.guard_process_names:
        write_guard = WriteGuard(
            database_path, config.guard_process_names, cache_ttl=config.guard_cache_ttl
        )

    ctx.obj["config"] = config
    ctx.obj["db"] = db
    ctx.obj["write_guard"] = write_guard


# Register all commands
account.register_commands(cli)
transaction.register_commands(cli)
categorize.register_commands(cli)
balance.register_commands(cli)
statement.register_commands(cli)
rule.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
