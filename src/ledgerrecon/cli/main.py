"""Main CLI entry point."""

import click
from ledgerrecon.config import DEFAULT_SCOPE, LOG_LEVEL_ENV_VAR, SCOPE_ENV_VAR
from ledgerrecon.database.factories import DB_PATH_ENV_VAR, create_sqlite_store
from ledgerrecon.utils.logging_config import setup_logging

# Import and register all commands at module level
from ledgerrecon.cli.commands import (
    account,
    category,
    duplicates,
    import_cmd,
    mapping,
    migrate,
    networth,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides LEDGERRECON_DB_PATH environment variable)",
    envvar=DB_PATH_ENV_VAR,
)
@click.option(
    "--scope",
    default=DEFAULT_SCOPE,
    show_default=True,
    help="User scope every command reads and writes",
    envvar=SCOPE_ENV_VAR,
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    show_default=True,
    help="Log level for messages written to stderr",
    envvar=LOG_LEVEL_ENV_VAR,
)
@click.pass_context
def cli(ctx, db_path: str | None, scope: str, log_level: str):
    """Ledgerrecon - Ledger import and reconciliation.

    Import general-ledger, flat transaction and brokerage holdings exports,
    link them to your accounts and categories, and track net worth.
    """
    ctx.ensure_object(dict)
    setup_logging(level=log_level)
    ctx.obj["scope"] = scope

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_sqlite_store(database_path=db_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db


# Register all commands
import_cmd.register_commands(cli)
account.register_commands(cli)
category.register_commands(cli)
mapping.register_commands(cli)
duplicates.register_commands(cli)
networth.register_commands(cli)
migrate.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
