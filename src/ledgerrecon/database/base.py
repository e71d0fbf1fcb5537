"""Abstract ledger store interface."""

from abc import ABC, abstractmethod
from datetime import date
from decimal import Decimal
from typing import Any, Iterable, Optional, Sequence

# Import entities directly to avoid circular import through domain/__init__.py
from ledgerrecon.domain.entities import (
    Account,
    AccountType,
    Category,
    ExistingRecord,
    HoldingRecord,
    ImportBatch,
    ImportStatus,
    NetWorthBuckets,
    NetWorthSnapshot,
    NewTransaction,
    SourceSchema,
    StoredHolding,
    StoredTransaction,
    TransactionType,
)


class LedgerStore(ABC):
    """Abstract storage interface for ledgerrecon.

    Every row belongs to a scope (the user partition). Write operations that
    fail at the I/O level raise PersistenceError.
    """

    @abstractmethod
    def connect(self) -> None:
        """Connect to the store."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the store."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize the schema (create tables)."""
        pass

    # Account operations
    @abstractmethod
    def create_account(
        self,
        scope: str,
        name: str,
        account_type: AccountType,
        is_active: bool = True,
        starting_balance: Decimal = Decimal("0"),
        starting_balance_date: Optional[date] = None,
        market_value_override: Optional[Decimal] = None,
    ) -> int:
        """Create a new account. Returns account ID."""
        pass

    @abstractmethod
    def get_account(self, account_id: int) -> Optional[Account]:
        """Get account by ID."""
        pass

    @abstractmethod
    def get_account_by_name(self, scope: str, name: str) -> Optional[Account]:
        """Get account by name within a scope."""
        pass

    @abstractmethod
    def list_accounts(self, scope: str) -> list[Account]:
        """List all accounts of a scope, with their alias sets."""
        pass

    @abstractmethod
    def upsert_account_aliases(self, account_id: int, aliases: Iterable[str]) -> None:
        """Replace an account's alias set."""
        pass

    @abstractmethod
    def sum_account_transactions(self, account_id: int, since: Optional[date] = None) -> tuple[Decimal, int]:
        """Sum and count the transactions linked to an account.

        Args:
            account_id: Account ID
            since: Only include transactions on or after this date
        """
        pass

    # Category operations
    @abstractmethod
    def create_category(
        self, scope: str, name: str, category_type: TransactionType, parent_id: Optional[int] = None
    ) -> int:
        """Create a category. Returns category ID."""
        pass

    @abstractmethod
    def get_category(self, category_id: int) -> Optional[Category]:
        """Get category by ID."""
        pass

    @abstractmethod
    def get_category_by_path(self, scope: str, path: str) -> Optional[Category]:
        """Get category by path (e.g., 'Food & Dining > Groceries')."""
        pass

    @abstractmethod
    def list_categories(self, scope: str) -> list[Category]:
        """List all categories of a scope, with their alias sets."""
        pass

    @abstractmethod
    def upsert_category_aliases(self, category_id: int, aliases: Iterable[str]) -> None:
        """Replace a category's alias set."""
        pass

    # Transaction operations
    @abstractmethod
    def find_existing_fingerprints(self, scope: str, start_date: date, end_date: date) -> list[ExistingRecord]:
        """Stored transactions of a scope dated within [start_date, end_date]."""
        pass

    @abstractmethod
    def insert_transactions(self, transactions: Sequence[NewTransaction]) -> int:
        """Insert transactions in one unit of work. Returns number inserted.

        Raises:
            PersistenceError: If the write fails; nothing from this call is kept
        """
        pass

    @abstractmethod
    def list_transactions(
        self,
        scope: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        account_id: Optional[int] = None,
        uncategorized: bool = False,
        unlinked: bool = False,
        import_batch_id: Optional[int] = None,
    ) -> list[StoredTransaction]:
        """List transactions with optional filters.

        Args:
            scope: User scope
            start_date: Optional start date filter
            end_date: Optional end date filter
            account_id: Optional account ID filter
            uncategorized: If True, only return transactions without a category
            unlinked: If True, only return transactions without an account
            import_batch_id: Optional import batch filter
        """
        pass

    @abstractmethod
    def update_transaction(
        self,
        transaction_id: int,
        account_id: Optional[int] = None,
        amount: Optional[Decimal] = None,
        transaction_type: Optional[TransactionType] = None,
        category_id: Optional[int] = None,
    ) -> None:
        """Update transaction fields that are not None."""
        pass

    @abstractmethod
    def delete_transactions(self, scope: str, transaction_ids: Iterable[int]) -> int:
        """Delete transactions of a scope by ID. Returns number deleted."""
        pass

    # Holding operations
    @abstractmethod
    def insert_holdings(self, scope: str, holdings: Sequence[HoldingRecord], import_batch_id: Optional[int]) -> int:
        """Insert holdings. Returns number inserted."""
        pass

    @abstractmethod
    def list_holdings(self, scope: str) -> list[StoredHolding]:
        """List holdings of a scope."""
        pass

    # Import batch operations
    @abstractmethod
    def create_import_batch(
        self,
        scope: str,
        filename: str,
        source_schema: SourceSchema,
        status: ImportStatus = ImportStatus.PENDING,
        record_count: int = 0,
    ) -> int:
        """Create an import batch. Returns batch ID."""
        pass

    @abstractmethod
    def update_import_batch(
        self,
        batch_id: int,
        status: Optional[ImportStatus] = None,
        record_count: Optional[int] = None,
        error_message: Optional[str] = None,
        metadata: Optional[dict[str, Any]] = None,
    ) -> None:
        """Update an import batch.

        Raises:
            NotFoundError: If the batch doesn't exist
            ConflictError: If the batch is already completed or failed
        """
        pass

    @abstractmethod
    def get_import_batch(self, batch_id: int) -> Optional[ImportBatch]:
        """Get import batch by ID."""
        pass

    @abstractmethod
    def list_import_batches(self, scope: str) -> list[ImportBatch]:
        """List import batches of a scope, newest first."""
        pass

    # Net-worth snapshot operations
    @abstractmethod
    def upsert_net_worth_snapshot(self, scope: str, snapshot_date: date, buckets: NetWorthBuckets) -> None:
        """Insert or replace the snapshot for (scope, snapshot_date)."""
        pass

    @abstractmethod
    def list_snapshots(self, scope: str, limit: Optional[int] = None) -> list[NetWorthSnapshot]:
        """List snapshots ordered by date ascending; limit keeps the most recent."""
        pass

    # Mapping operations
    @abstractmethod
    def set_type_mapping(self, scope: str, type_hint: str, transaction_type: TransactionType) -> None:
        """Map a raw transaction-type hint to income or expense."""
        pass

    @abstractmethod
    def list_type_mappings(self, scope: str) -> dict[str, TransactionType]:
        """Type mappings keyed by lower-cased hint."""
        pass

    @abstractmethod
    def add_ignored_label(self, scope: str, label: str) -> None:
        """Exclude a raw label from future imports."""
        pass

    @abstractmethod
    def remove_ignored_label(self, scope: str, label: str) -> bool:
        """Stop ignoring a raw label. Returns False if it was not ignored."""
        pass

    @abstractmethod
    def list_ignored_labels(self, scope: str) -> list[str]:
        """Ignored raw labels of a scope."""
        pass

    @abstractmethod
    def upsert_label_classifications(self, scope: str, classifications: dict[str, TransactionType]) -> int:
        """Store income/expense classifications for raw labels. Returns number written."""
        pass

    @abstractmethod
    def list_label_classifications(self, scope: str) -> dict[str, TransactionType]:
        """Label classifications of a scope keyed by raw label."""
        pass
