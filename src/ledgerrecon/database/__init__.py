"""Storage layer for ledgerrecon."""

from ledgerrecon.database.base import LedgerStore
from ledgerrecon.database.factories import create_sqlite_store

__all__ = ["LedgerStore", "create_sqlite_store"]
