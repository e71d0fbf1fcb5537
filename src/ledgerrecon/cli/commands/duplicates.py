"""Duplicate review commands."""

import click
from ledgerrecon.cli.error_handling import handle_domain_error
from ledgerrecon.domain.errors import DomainError
from ledgerrecon.domain.transaction import TransactionService


@click.group()
def duplicates_group():
    """Find and remove duplicate transactions."""
    pass


@duplicates_group.command("find")
@click.pass_context
def find_duplicates(ctx):
    """List groups of stored transactions with the same fingerprint.

    The first transaction of each group is the newest one.
    """
    db = ctx.obj["db"]
    service = TransactionService(db)

    groups = service.find_duplicate_groups(ctx.obj["scope"])
    if not groups:
        click.echo("No duplicates found.")
        return

    click.echo(f"\n{len(groups)} duplicate group{'s' if len(groups) != 1 else ''}:")
    for group in groups:
        click.echo("-" * 60)
        click.echo(f"{group.date} {group.amount:>12.2f} ({group.extra_count} extra)")
        for txn in group.transactions:
            click.echo(
                f"  ID: {txn.id:5d} | {txn.raw_account_label or '':25s} | {txn.description or ''}"
                f" | batch {txn.import_batch_id}"
            )


@duplicates_group.command("delete")
@click.argument("transaction_ids", nargs=-1, type=int, required=True)
@click.option("--yes", is_flag=True, help="Skip the confirmation prompt")
@click.pass_context
def delete_duplicates(ctx, transaction_ids: tuple[int, ...], yes: bool):
    """Delete transactions confirmed as duplicates.

    Examples:
        ledgerrecon duplicates delete 41 42
    """
    db = ctx.obj["db"]
    service = TransactionService(db)

    if not yes and not click.confirm(f"Delete {len(transaction_ids)} transaction(s)?"):
        click.echo("Deletion cancelled.")
        return

    try:
        deleted = service.delete_duplicates(ctx.obj["scope"], transaction_ids)
        click.echo(f"Deleted {deleted} transaction{'s' if deleted != 1 else ''}")
    except (DomainError, ValueError) as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register duplicate commands with main CLI."""
    cli.add_command(duplicates_group, name="duplicates")
