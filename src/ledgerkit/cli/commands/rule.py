"""Import rule commands."""

from decimal import Decimal

import click

from ledgerkit.cli.account_resolution import account_service_from, resolve_category_or_exit
from ledgerkit.cli.error_handling import handle_domain_error
from ledgerkit.domain.errors import DomainError
from ledgerkit.domain.import_rule import ImportRuleService


@click.group()
def rule_group():
    """Manage import rules used for category suggestions."""
    pass


@rule_group.command("create")
@click.argument("pattern")
@click.option("--category", required=True, help="Category name, path or ID")
@click.pass_context
def create_rule(ctx, pattern: str, category: str):
    """Create an import rule mapping PATTERN (a regex) to a category.

    Examples:
        ledgerkit rule create "Acme.*" --category "Office Supplies"
    """
    account_service = account_service_from(ctx)
    category_id = resolve_category_or_exit(ctx, account_service, category)
    service = ImportRuleService(ctx.obj["db"], write_guard=ctx.obj.get("write_guard"))
    category_name = account_service.get_account(category_id).full_name

    try:
        # Template and rule commit together
        with ctx.obj["db"].write_transaction():
            template_id = service.create_template(category_name, [(category_id, Decimal("0"))])
            rule_id = service.create_rule(template_id, pattern)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Created rule {rule_id}: '{pattern}' -> {category_name}")


@rule_group.command("list")
@click.pass_context
def list_rules(ctx):
    """List import rules."""
    rules = ImportRuleService(ctx.obj["db"]).list_rules()
    if not rules:
        click.echo("No import rules found.")
        return

    for r in rules:
        click.echo(f"ID: {r.id:3d} | {r.pattern:30s} | Template: {r.template_title}")


def register_commands(cli):
    """Register rule commands with main CLI."""
    cli.add_command(rule_group, name="rule")
