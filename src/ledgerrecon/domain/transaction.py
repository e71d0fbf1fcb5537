"""Transaction domain service."""

from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from ledgerrecon.database.base import LedgerStore
from ledgerrecon.domain.deduplication import exact_fingerprint
from ledgerrecon.domain.entities import StoredTransaction
from ledgerrecon.domain.errors import ValidationError
from ledgerrecon.utils.logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class DuplicateGroup:
    """Stored transactions sharing one exact fingerprint, newest first."""

    fingerprint: str
    transactions: list[StoredTransaction]

    @property
    def date(self) -> date:
        return self.transactions[0].date

    @property
    def amount(self) -> Decimal:
        return abs(self.transactions[0].amount)

    @property
    def extra_count(self) -> int:
        return len(self.transactions) - 1


class TransactionService:
    """Service for reading and cleaning up stored transactions."""

    def __init__(self, db: LedgerStore):
        """Initialize transaction service.

        Args:
            db: Ledger store instance
        """
        self.db = db

    def list_transactions(
        self,
        scope: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        account_id: Optional[int] = None,
        uncategorized: bool = False,
    ) -> list[StoredTransaction]:
        """List transactions with optional filters."""
        return self.db.list_transactions(
            scope,
            start_date=start_date,
            end_date=end_date,
            account_id=account_id,
            uncategorized=uncategorized,
        )

    def find_duplicate_groups(self, scope: str) -> list[DuplicateGroup]:
        """Group stored transactions by exact fingerprint.

        The two legs of one double entry carry different account labels, so
        they never land in the same group. The key matches the one import
        dedup uses, so memos play no part.

        Returns:
            Groups with more than one member, largest first, then newest date
        """
        groups: dict[str, list[StoredTransaction]] = defaultdict(list)
        for txn in self.db.list_transactions(scope):
            key = exact_fingerprint(txn.date, txn.amount, txn.description, txn.raw_account_label)
            groups[key].append(txn)

        duplicates = [
            DuplicateGroup(fingerprint=key, transactions=sorted(txns, key=lambda t: t.id, reverse=True))
            for key, txns in groups.items()
            if len(txns) > 1
        ]
        duplicates.sort(key=lambda g: (-len(g.transactions), -g.date.toordinal(), g.fingerprint))
        return duplicates

    def delete_duplicates(self, scope: str, transaction_ids: Iterable[int]) -> int:
        """Delete transactions a user confirmed as duplicates.

        Returns:
            Number of transactions deleted

        Raises:
            ValidationError: If no IDs are given
        """
        ids = sorted(set(transaction_ids))
        if not ids:
            raise ValidationError("No transaction IDs provided")
        deleted = self.db.delete_transactions(scope, ids)
        logger.info("Deleted %d of %d requested duplicate transactions in scope %s", deleted, len(ids), scope)
        return deleted
