"""Categorization commands: recategorize, bulk-recategorize, uncategorized, review, payees, suggest."""

import click

from ledgerkit.cli.account_resolution import (
    account_service_from,
    resolve_account_or_exit,
    resolve_category_or_exit,
)
from ledgerkit.cli.error_handling import handle_domain_error
from ledgerkit.domain.categorization import CategorizationService
from ledgerkit.domain.errors import DomainError
from ledgerkit.domain.suggestion import SuggestionService
from ledgerkit.utils.date_parser import parse_date


def categorization_service_from(ctx: click.Context) -> CategorizationService:
    """Build a CategorizationService from the CLI context."""
    return CategorizationService(ctx.obj["db"], write_guard=ctx.obj.get("write_guard"))


@click.command("recategorize")
@click.argument("transaction_id", type=int)
@click.argument("category", metavar="CATEGORY")
@click.pass_context
def recategorize(ctx, transaction_id: int, category: str):
    """Move a transaction to another category.

    Orphaned line items left behind by other tools are repaired on the way.

    Examples:
        ledgerkit recategorize 12 "Dining"
        ledgerkit recategorize 12 "Food > Restaurants"
    """
    category_id = resolve_category_or_exit(ctx, account_service_from(ctx), category)
    service = categorization_service_from(ctx)

    try:
        result = service.recategorize(transaction_id, category_id)
    except DomainError as e:
        handle_domain_error(ctx, e)

    old = result.old_category_name or "(uncategorized)"
    click.echo(f"Transaction {result.transaction_id} '{result.title}': {old} -> {result.new_category_name}")


@click.command("bulk-recategorize")
@click.argument("pattern")
@click.argument("category", metavar="CATEGORY")
@click.option("--dry-run", is_flag=True, help="Show what would change without writing")
@click.option(
    "--uncategorized-only", is_flag=True, help="Skip transactions that already have a category"
)
@click.pass_context
def bulk_recategorize(ctx, pattern: str, category: str, dry_run: bool, uncategorized_only: bool):
    """Recategorize every transaction whose title contains PATTERN.

    Examples:
        ledgerkit bulk-recategorize "starbucks" "Coffee" --dry-run
        ledgerkit bulk-recategorize "amazon" "Shopping" --uncategorized-only
    """
    category_id = resolve_category_or_exit(ctx, account_service_from(ctx), category)
    service = categorization_service_from(ctx)

    try:
        result = service.bulk_recategorize(
            pattern, category_id, dry_run=dry_run, uncategorized_only=uncategorized_only
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    if result.count == 0:
        click.echo(f"No transactions match '{pattern}'.")
        return

    verb = "Would recategorize" if dry_run else "Recategorized"
    click.echo(f"{verb} {result.count} transaction(s):")
    for item in result.affected:
        old = item.old_category_name or "(uncategorized)"
        click.echo(f"  {item.transaction_id:5d}  {item.title[:40]:40s}  {old} -> {item.new_category_name}")


@click.command("uncategorized")
@click.option("--account", help="Only transactions touching this account")
@click.option("--start-date", help="Start date (inclusive)")
@click.option("--end-date", help="End date (inclusive)")
@click.option("--limit", type=int, default=50, show_default=True, help="Maximum rows")
@click.option("--include-transfers", is_flag=True, help="Include transfers between real accounts")
@click.pass_context
def list_uncategorized(
    ctx,
    account: str | None,
    start_date: str | None,
    end_date: str | None,
    limit: int,
    include_transfers: bool,
):
    """List transactions without a category."""
    account_id = None
    if account is not None:
        account_id = resolve_account_or_exit(ctx, account_service_from(ctx), account)
    service = categorization_service_from(ctx)

    try:
        transactions = service.get_uncategorized(
            account_id=account_id,
            start_date=parse_date(start_date) if start_date else None,
            end_date=parse_date(end_date) if end_date else None,
            limit=limit,
            exclude_transfers=not include_transfers,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    if not transactions:
        click.echo("No uncategorized transactions.")
        return

    click.echo(f"\nFound {len(transactions)} uncategorized transaction(s):")
    click.echo("-" * 70)
    for txn in transactions:
        amount = next((li.amount for li in txn.line_items if not li.is_orphan), None)
        amount_str = f"{amount:,.2f}" if amount is not None else ""
        click.echo(f"{txn.id:5d}  {txn.date.isoformat()}  {txn.title[:35]:35s}  {amount_str:>12s}")


@click.command("review")
@click.option("--account", help="Only transactions touching this account")
@click.option("--category", help="Only transactions currently in this category")
@click.option("--payee", help="Only titles containing this text (case-insensitive)")
@click.option("--start-date", help="Start date (inclusive)")
@click.option("--end-date", help="End date (inclusive)")
@click.option("--limit", type=int, default=50, show_default=True, help="Maximum rows")
@click.pass_context
def review(
    ctx,
    account: str | None,
    category: str | None,
    payee: str | None,
    start_date: str | None,
    end_date: str | None,
    limit: int,
):
    """Review how transactions are categorized.

    Examples:
        ledgerkit review --payee amazon
        ledgerkit review --category "Food > Groceries" --start-date "this month"
    """
    account_service = account_service_from(ctx)
    account_id = None
    if account is not None:
        account_id = resolve_account_or_exit(ctx, account_service, account)
    category_id = None
    if category is not None:
        category_id = resolve_category_or_exit(ctx, account_service, category)
    service = categorization_service_from(ctx)

    try:
        transactions = service.review_categorizations(
            account_id=account_id,
            category_id=category_id,
            payee_pattern=payee,
            start_date=parse_date(start_date) if start_date else None,
            end_date=parse_date(end_date) if end_date else None,
            limit=limit,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    if not transactions:
        click.echo("No transactions found.")
        return

    for txn in transactions:
        click.echo(
            f"{txn.id:5d}  {txn.date.isoformat()}  {txn.title[:30]:30s}  "
            f"{txn.account_name or '':15s} {txn.amount:>12,.2f}  {txn.category_path or '(uncategorized)'}"
        )


@click.command("payees")
@click.option("--account", help="Only transactions touching this account")
@click.option("--start-date", help="Start date (inclusive)")
@click.option("--end-date", help="End date (inclusive)")
@click.option("--min-transactions", type=int, default=1, show_default=True, help="Hide rarer payees")
@click.pass_context
def payees(ctx, account: str | None, start_date: str | None, end_date: str | None, min_transactions: int):
    """Summarize which categories each payee is filed under."""
    account_id = None
    if account is not None:
        account_id = resolve_account_or_exit(ctx, account_service_from(ctx), account)
    service = categorization_service_from(ctx)

    try:
        summaries = service.payee_category_summary(
            account_id=account_id,
            start_date=parse_date(start_date) if start_date else None,
            end_date=parse_date(end_date) if end_date else None,
            min_transactions=min_transactions,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    if not summaries:
        click.echo("No payees found.")
        return

    for summary in summaries:
        click.echo(f"{summary.title} ({summary.total_transactions} transaction(s))")
        for entry in summary.categories:
            click.echo(f"    {entry.count:4d}  {entry.category_path}")
        if summary.uncategorized_count:
            click.echo(f"    {summary.uncategorized_count:4d}  (uncategorized)")


@click.command("suggest")
@click.argument("merchant")
@click.pass_context
def suggest(ctx, merchant: str):
    """Suggest categories for a merchant from import rules and history.

    Examples:
        ledgerkit suggest "Acme Corp"
    """
    config = ctx.obj.get("config")
    sample_size = config.suggestion_sample_size if config is not None else 50
    service = SuggestionService(ctx.obj["db"], sample_size=sample_size)

    try:
        suggestions = service.suggest_category(merchant)
    except DomainError as e:
        handle_domain_error(ctx, e)

    if not suggestions:
        click.echo(f"No suggestions for '{merchant}'.")
        return

    for s in suggestions:
        click.echo(f"{s.confidence:5.0%}  {s.category_path:35s}  (ID: {s.category_id})  {s.reason}")


def register_commands(cli):
    """Register categorization commands with main CLI."""
    cli.add_command(recategorize)
    cli.add_command(bulk_recategorize)
    cli.add_command(list_uncategorized)
    cli.add_command(review)
    cli.add_command(payees)
    cli.add_command(suggest)
