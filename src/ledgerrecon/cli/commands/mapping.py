"""Type-hint mappings and ignored ledger labels."""

import click
from ledgerrecon.domain.entities import TransactionType


@click.group()
def mapping_group():
    """Manage type-hint mappings and ignored labels."""
    pass


@mapping_group.command("type-set")
@click.argument("hint")
@click.argument(
    "transaction_type",
    metavar="TYPE",
    type=click.Choice([t.value for t in TransactionType], case_sensitive=False),
)
@click.pass_context
def set_type(ctx, hint: str, transaction_type: str):
    """Map a ledger transaction-type hint (e.g., "Check") to a type."""
    db = ctx.obj["db"]
    db.set_type_mapping(ctx.obj["scope"], hint, TransactionType(transaction_type.lower()))
    click.echo(f"'{hint}' -> {transaction_type.lower()}")


@mapping_group.command("type-list")
@click.pass_context
def list_types(ctx):
    """List type-hint mappings."""
    db = ctx.obj["db"]
    mappings = db.list_type_mappings(ctx.obj["scope"])
    if not mappings:
        click.echo("No type mappings found.")
        return
    for hint, transaction_type in sorted(mappings.items()):
        click.echo(f"{hint:30s} {transaction_type.value}")


@mapping_group.command("ignore")
@click.argument("labels", nargs=-1, required=True)
@click.pass_context
def ignore_labels(ctx, labels: tuple[str, ...]):
    """Skip records whose account label matches on future imports."""
    db = ctx.obj["db"]
    for label in labels:
        db.add_ignored_label(ctx.obj["scope"], label)
        click.echo(f"Ignoring '{label}'")


@mapping_group.command("unignore")
@click.argument("label")
@click.pass_context
def unignore_label(ctx, label: str):
    """Stop ignoring a label."""
    db = ctx.obj["db"]
    if db.remove_ignored_label(ctx.obj["scope"], label):
        click.echo(f"No longer ignoring '{label}'")
    else:
        click.echo(f"Error: '{label}' is not ignored", err=True)
        ctx.exit(1)


@mapping_group.command("ignored")
@click.pass_context
def list_ignored(ctx):
    """List ignored labels."""
    db = ctx.obj["db"]
    labels = db.list_ignored_labels(ctx.obj["scope"])
    if not labels:
        click.echo("No ignored labels.")
        return
    for label in labels:
        click.echo(label)


def register_commands(cli):
    """Register mapping commands with main CLI."""
    cli.add_command(mapping_group, name="mapping")
