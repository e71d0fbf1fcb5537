"""Account management commands."""

import click
from ledgerrecon.cli.error_handling import handle_domain_error
from ledgerrecon.config import ImportSettings
from ledgerrecon.domain.account import AccountService
from ledgerrecon.domain.entities import AccountType
from ledgerrecon.domain.errors import DomainError, NotFoundError
from ledgerrecon.domain.net_worth import NetWorthService
from ledgerrecon.utils.amount_parser import parse_amount
from ledgerrecon.utils.date_parser import parse_date


def resolve_account_id(service: AccountService, scope: str, account: str) -> int:
    """Resolve an account name or ID to an account ID.

    Raises:
        NotFoundError: If no account matches
    """
    if account.isdigit():
        found = service.get_account(int(account))
        if found is not None and found.scope == scope:
            return found.id
    found = service.get_account_by_name(scope, account)
    if found is None:
        raise NotFoundError(f"Account '{account}' not found")
    return found.id


@click.group()
def account_group():
    """Manage accounts and their ledger aliases."""
    pass


@account_group.command("create")
@click.argument("name", metavar="ACCOUNT_NAME")
@click.option(
    "--type",
    "account_type",
    type=click.Choice([t.value for t in AccountType], case_sensitive=False),
    required=True,
    help="Account type",
)
@click.option("--starting-balance", default="0", help="Balance on the starting date (e.g., 1250.00)")
@click.option("--starting-date", help="Transactions before this date are ignored (YYYY-MM-DD)")
@click.option("--market-value", help="Value shown in net worth instead of the computed balance")
@click.option("--alias", "aliases", multiple=True, help="Ledger label mapped to this account (repeatable)")
@click.option("--inactive", is_flag=True, help="Exclude the account from net worth")
@click.pass_context
def create_account(
    ctx,
    name: str,
    account_type: str,
    starting_balance: str,
    starting_date: str | None,
    market_value: str | None,
    aliases: tuple[str, ...],
    inactive: bool,
):
    """Create a new account.

    Examples:
        ledgerrecon account create "Chase Checking" --type checking --alias "1010 Checking"
        ledgerrecon account create "Visa" --type credit_card --starting-balance -420.00
    """
    db = ctx.obj["db"]
    service = AccountService(db)

    try:
        account_id = service.create_account(
            scope=ctx.obj["scope"],
            name=name,
            account_type=AccountType(account_type.lower()),
            starting_balance=parse_amount(starting_balance),
            starting_balance_date=parse_date(starting_date) if starting_date else None,
            market_value_override=parse_amount(market_value) if market_value else None,
            is_active=not inactive,
            aliases=aliases,
        )
        click.echo(f"Created account '{name}' (ID: {account_id})")
    except (DomainError, ValueError) as e:
        handle_domain_error(ctx, e)


@account_group.command("list")
@click.option("--balances", is_flag=True, help="Show computed balances and record today's net-worth snapshot")
@click.pass_context
def list_accounts(ctx, balances: bool):
    """List all accounts."""
    db = ctx.obj["db"]
    service = AccountService(db)
    scope = ctx.obj["scope"]

    accounts = service.list_accounts(scope)
    if not accounts:
        click.echo("No accounts found.")
        return

    balance_by_id = {}
    if balances:
        NetWorthService(db).refresh(scope)
        balance_by_id = {item.account.id: item.display_balance for item in service.balances(scope)}

    click.echo("\nAccounts:")
    click.echo("-" * 60)
    for acc in accounts:
        line = f"ID: {acc.id:3d} | {acc.name:20s} | {acc.account_type.value:12s}"
        if acc.id in balance_by_id:
            line += f" | {balance_by_id[acc.id]:>12.2f}"
        if not acc.is_active:
            line += " | inactive"
        click.echo(line)
        if acc.raw_label_aliases:
            click.echo(f"        aliases: {', '.join(sorted(acc.raw_label_aliases))}")


@account_group.command("alias")
@click.argument("account", metavar="ACCOUNT")
@click.argument("labels", nargs=-1, required=True)
@click.pass_context
def alias_account(ctx, account: str, labels: tuple[str, ...]):
    """Map ledger labels onto an account.

    ACCOUNT can be an account name or ID.

    Examples:
        ledgerrecon account alias "Chase Checking" "1010 Chase Checking" "Checking"
    """
    db = ctx.obj["db"]
    service = AccountService(db)

    try:
        account_id = resolve_account_id(service, ctx.obj["scope"], account)
        aliases = service.add_aliases(account_id, labels)
        click.echo(f"Aliases: {', '.join(sorted(aliases))}")
    except (DomainError, ValueError) as e:
        handle_domain_error(ctx, e)


@account_group.command("unalias")
@click.argument("account", metavar="ACCOUNT")
@click.argument("labels", nargs=-1, required=True)
@click.pass_context
def unalias_account(ctx, account: str, labels: tuple[str, ...]):
    """Remove ledger labels from an account."""
    db = ctx.obj["db"]
    service = AccountService(db)

    try:
        account_id = resolve_account_id(service, ctx.obj["scope"], account)
        aliases = service.remove_aliases(account_id, labels)
        click.echo(f"Aliases: {', '.join(sorted(aliases)) or '(none)'}")
    except (DomainError, ValueError) as e:
        handle_domain_error(ctx, e)


@account_group.command("suggest")
@click.argument("label", required=False)
@click.option("--threshold", type=float, help="Minimum similarity (0-1)")
@click.pass_context
def suggest_accounts(ctx, label: str | None, threshold: float | None):
    """Suggest accounts for unmapped ledger labels.

    With LABEL, suggest accounts for that label only. Without it, list the
    unmapped labels found on stored transactions with their best match.
    """
    db = ctx.obj["db"]
    service = AccountService(db)
    scope = ctx.obj["scope"]

    try:
        if threshold is None:
            threshold = ImportSettings.from_env().similarity_threshold
    except (DomainError, ValueError) as e:
        handle_domain_error(ctx, e)

    if label is not None:
        suggestions = service.suggest_aliases(scope, label, threshold)
        if not suggestions:
            click.echo(f"No account resembles '{label}'.")
            return
        for s in suggestions:
            click.echo(f"{s.similarity:5.0%}  {s.account_name} (ID: {s.account_id}) via '{s.matched}'")
        return

    unmapped = service.unmapped_labels(scope)
    if not unmapped:
        click.echo("All ledger labels are mapped.")
        return

    click.echo("\nUnmapped labels:")
    click.echo("-" * 60)
    for item in unmapped:
        suggestions = service.suggest_aliases(scope, item.label, threshold)
        hint = f" -> {suggestions[0].account_name} ({suggestions[0].similarity:.0%})" if suggestions else ""
        click.echo(f"{item.transaction_count:5d}  {item.label}{hint}")


def register_commands(cli):
    """Register account commands with main CLI."""
    cli.add_command(account_group, name="account")
