"""Store factory functions for creating ledger store instances."""

import os
from pathlib import Path
from typing import Optional

from ledgerrecon.database.sqlalchemy_db import SQLAlchemyLedgerStore

DB_PATH_ENV_VAR = "LEDGERRECON_DB_PATH"


def default_database_path() -> Path:
    """~/.ledgerrecon/ledgerrecon.db, creating the directory if needed."""
    db_dir = Path.home() / ".ledgerrecon"
    db_dir.mkdir(exist_ok=True)
    return db_dir / "ledgerrecon.db"


def create_sqlite_store(database_path: Optional[str] = None) -> SQLAlchemyLedgerStore:
    """Create a SQLite-backed ledger store.

    Args:
        database_path: Path to SQLite database file. If None, checks the
            LEDGERRECON_DB_PATH environment variable, then defaults to
            ~/.ledgerrecon/ledgerrecon.db

    Returns:
        SQLAlchemyLedgerStore instance configured for SQLite
    """
    if database_path is None:
        database_path = os.environ.get(DB_PATH_ENV_VAR)

    if database_path is None:
        database_path = str(default_database_path())

    database_url = f"sqlite:///{database_path}"
    return SQLAlchemyLedgerStore(database_url)
