"""Ledger import command."""

import click
from ledgerrecon.cli.error_handling import handle_domain_error
from ledgerrecon.config import ImportSettings
from ledgerrecon.domain.entities import ImportStatus, SourceSchema
from ledgerrecon.domain.errors import DomainError, NoParsableRecordsError
from ledgerrecon.domain.ledger_import import LedgerImportService
from ledgerrecon.utils.date_parser import parse_date


@click.command("import")
@click.argument("ledger_file", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--schema",
    type=click.Choice([schema.value for schema in SourceSchema], case_sensitive=False),
    help="Export schema (detected from the header row when omitted)",
)
@click.option("--as-of", help="As-of date for holdings exports without a date column (YYYY-MM-DD)")
@click.option("--show-duplicates", is_flag=True, help="List every potential duplicate")
@click.pass_context
def import_ledger(ctx, ledger_file: str, schema: str | None, as_of: str | None, show_duplicates: bool):
    """Import a general-ledger, flat transaction or holdings export.

    Examples:
        ledgerrecon import general_ledger.xlsx
        ledgerrecon import transactions.csv --schema flat_transaction
        ledgerrecon import positions.csv --as-of 2024-03-31
    """
    db = ctx.obj["db"]
    scope = ctx.obj["scope"]

    try:
        settings = ImportSettings.from_env()
        as_of_date = parse_date(as_of) if as_of else None
        service = LedgerImportService(db, settings=settings)
        result = service.import_file(
            scope,
            ledger_file,
            schema=SourceSchema(schema.lower()) if schema else None,
            as_of=as_of_date,
        )
    except NoParsableRecordsError as e:
        click.echo(f"Error: {e}", err=True)
        for error in e.errors:
            click.echo(f"    {error}", err=True)
        ctx.exit(1)
    except (DomainError, ValueError) as e:
        handle_domain_error(ctx, e)

    noun = "holdings" if result.source_schema == SourceSchema.BROKERAGE_HOLDING else "transactions"
    click.echo(f"\nImport batch {result.batch_id} ({result.source_schema.value}): {result.status.value}")
    click.echo(f"  Imported: {result.imported} {noun}")
    click.echo(f"  Skipped rows: {result.skipped_rows}")
    if result.merged_rows:
        click.echo(f"  Merged mirror rows: {result.merged_rows}")
    click.echo(f"  Duplicates skipped: {result.duplicates_skipped}")
    click.echo(f"  Ignored account records: {result.ignored_account_records}")
    click.echo(f"  Potential duplicates: {len(result.potential_duplicates)}")
    if show_duplicates:
        for dup in result.potential_duplicates:
            click.echo(
                f"    {dup.record.date} {dup.record.amount:>12} {dup.record.description!r} "
                f"~ #{dup.existing_id} {dup.existing_description!r}"
            )
    if result.parse_errors:
        click.echo(f"  Errors: {len(result.parse_errors)}")
        for error in result.parse_errors:
            click.echo(f"    {error}", err=True)

    if result.status == ImportStatus.FAILED:
        click.echo(f"Error: {result.error_message}", err=True)
        ctx.exit(1)


def register_commands(cli):
    """Register import command with main CLI."""
    cli.add_command(import_ledger)
