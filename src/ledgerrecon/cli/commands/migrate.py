"""Maintenance jobs over stored transactions."""

import click
from ledgerrecon.domain.migrations import MIGRATION_JOBS


@click.group()
def migrate_group():
    """Re-apply mappings to transactions that are already stored."""
    pass


def _make_command(job_name: str, job_cls):
    @migrate_group.command(job_name, help=job_cls.__doc__)
    @click.option("--dry-run", is_flag=True, help="Report changes without writing them")
    @click.pass_context
    def run_job(ctx, dry_run: bool):
        report = job_cls(ctx.obj["db"]).run(ctx.obj["scope"], dry_run=dry_run)
        for change in report.changes:
            click.echo(change)
        verb = "would change" if dry_run else "changed"
        click.echo(f"{report.job}: examined {report.examined}, {verb} {report.changed}")

    return run_job


for _name, _cls in MIGRATION_JOBS.items():
    _make_command(_name, _cls)


def register_commands(cli):
    """Register migration commands with main CLI."""
    cli.add_command(migrate_group, name="migrate")
