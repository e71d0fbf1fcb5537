"""Net-worth commands."""

import click
from ledgerrecon.domain.entities import NetWorthSnapshot
from ledgerrecon.domain.net_worth import NetWorthService


def print_snapshot(snapshot: NetWorthSnapshot) -> None:
    buckets = snapshot.buckets
    click.echo(f"\nNet worth on {snapshot.snapshot_date}:")
    click.echo("-" * 40)
    click.echo(f"  Cash:         {buckets.cash:>14.2f}")
    click.echo(f"  Investments:  {buckets.investments:>14.2f}")
    click.echo(f"  Real estate:  {buckets.real_estate:>14.2f}")
    click.echo(f"  Crypto:       {buckets.crypto:>14.2f}")
    click.echo(f"  Retirement:   {buckets.retirement:>14.2f}")
    click.echo(f"  Liabilities:  {buckets.liabilities:>14.2f}")
    click.echo("-" * 40)
    click.echo(f"  Total assets: {snapshot.total_assets:>14.2f}")
    click.echo(f"  Net worth:    {snapshot.net_worth:>14.2f}")


@click.group()
def networth_group():
    """Show and record net worth."""
    pass


@networth_group.command("show")
@click.pass_context
def show_networth(ctx):
    """Aggregate current balances and record today's snapshot."""
    service = NetWorthService(ctx.obj["db"])
    print_snapshot(service.refresh(ctx.obj["scope"]))


@networth_group.command("history")
@click.option("--limit", type=int, help="Only the most recent N snapshots")
@click.pass_context
def networth_history(ctx, limit: int | None):
    """List recorded snapshots, oldest first."""
    service = NetWorthService(ctx.obj["db"])
    snapshots = service.history(ctx.obj["scope"], limit=limit)
    if not snapshots:
        click.echo("No snapshots recorded.")
        return

    click.echo(f"{'Date':10s}  {'Assets':>14s}  {'Liabilities':>14s}  {'Net worth':>14s}")
    for snap in snapshots:
        click.echo(
            f"{snap.snapshot_date}  {snap.total_assets:>14.2f}  "
            f"{snap.total_liabilities:>14.2f}  {snap.net_worth:>14.2f}"
        )


def register_commands(cli):
    """Register net-worth commands with main CLI."""
    cli.add_command(networth_group, name="networth")
