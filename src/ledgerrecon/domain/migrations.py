"""One-shot maintenance jobs over already-stored transactions.

Each job re-applies part of the import pipeline to rows stored before the
relevant aliases or mappings existed. With dry_run the job only reports
what it would change.
"""

from abc import ABC, abstractmethod
from collections import Counter, defaultdict
from dataclasses import dataclass, field

from ledgerrecon.database.base import LedgerStore
from ledgerrecon.domain.categorization import (
    classify_label,
    normalize_alias,
    resolve_category_for_record,
)
from ledgerrecon.domain.entities import TransactionType
from ledgerrecon.domain.sign_normalizer import (
    GENERAL_LEDGER_RULES,
    MULTI_SPLIT_LABEL,
    AliasIndex,
    link_account,
)
from ledgerrecon.utils.logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class MigrationReport:
    """What a job examined and changed."""

    job: str
    dry_run: bool
    examined: int = 0
    changed: int = 0
    changes: list[str] = field(default_factory=list)

    def record(self, change: str) -> None:
        self.changed += 1
        self.changes.append(change)
        prefix = "[dry-run] " if self.dry_run else ""
        logger.info("%s%s: %s", prefix, self.job, change)


class MigrationJob(ABC):
    """Base class for maintenance jobs."""

    name = "migration"

    def __init__(self, db: LedgerStore):
        """Initialize migration job.

        Args:
            db: Ledger store instance
        """
        self.db = db

    def run(self, scope: str, dry_run: bool = False) -> MigrationReport:
        """Run the job for one scope.

        Args:
            scope: User scope
            dry_run: Report changes without writing them

        Returns:
            MigrationReport
        """
        report = MigrationReport(job=self.name, dry_run=dry_run)
        logger.info("Running %s for scope %s%s", self.name, scope, " (dry run)" if dry_run else "")
        self._run(scope, report)
        logger.info("%s finished: %d examined, %d changed", self.name, report.examined, report.changed)
        return report

    @abstractmethod
    def _run(self, scope: str, report: MigrationReport) -> None:
        pass


class RelinkAccountsJob(MigrationJob):
    """Link transactions stored without an account to accounts whose aliases
    now match their raw labels."""

    name = "relink-accounts"

    def _run(self, scope: str, report: MigrationReport) -> None:
        accounts = AliasIndex(self.db.list_accounts(scope))
        if not len(accounts):
            return

        for txn in self.db.list_transactions(scope, unlinked=True):
            report.examined += 1
            account, via_split = link_account(txn.raw_account_label, txn.raw_split_label, accounts)
            if account is None:
                continue

            amount = GENERAL_LEDGER_RULES.linked_amount(txn.amount, account, via_split)
            report.record(
                f"transaction {txn.id} -> account {account.name} "
                f"({'split' if via_split else 'primary'} label, amount {txn.amount} -> {amount})"
            )
            if not report.dry_run:
                self.db.update_transaction(
                    txn.id,
                    account_id=account.id,
                    amount=amount,
                    transaction_type=TransactionType.TRANSFER,
                )


class ApplyCategoryMappingsJob(MigrationJob):
    """Categorize uncategorized transactions from category aliases."""

    name = "apply-categories"

    def _run(self, scope: str, report: MigrationReport) -> None:
        categories = self.db.list_categories(scope)
        if not categories:
            return
        names = {category.id: category.name for category in categories}

        for txn in self.db.list_transactions(scope, uncategorized=True):
            report.examined += 1
            category_id = resolve_category_for_record(
                txn.raw_account_label, txn.raw_split_label, txn.transaction_type, categories
            )
            if category_id is None:
                continue

            report.record(f"transaction {txn.id} -> category {names[category_id]}")
            if not report.dry_run:
                self.db.update_transaction(txn.id, category_id=category_id)


class BackfillClassificationsJob(MigrationJob):
    """Infer income/expense for raw labels nothing maps yet."""

    name = "backfill-classifications"

    def _mapped_labels(self, scope: str) -> set[str]:
        mapped = {MULTI_SPLIT_LABEL}
        for account in self.db.list_accounts(scope):
            mapped.update(normalize_alias(alias) for alias in account.raw_label_aliases)
        for category in self.db.list_categories(scope):
            mapped.update(normalize_alias(alias) for alias in category.raw_label_aliases)
        mapped.update(normalize_alias(label) for label in self.db.list_ignored_labels(scope))
        mapped.update(normalize_alias(label) for label in self.db.list_label_classifications(scope))
        return mapped

    def _run(self, scope: str, report: MigrationReport) -> None:
        mapped = self._mapped_labels(scope)

        recorded: dict[str, Counter] = defaultdict(Counter)
        display: dict[str, str] = {}
        for txn in self.db.list_transactions(scope):
            for label in (txn.raw_account_label, txn.raw_split_label):
                key = normalize_alias(label)
                if not key or key in mapped:
                    continue
                display.setdefault(key, label.strip())
                recorded[key][txn.transaction_type] += 1

        classifications: dict[str, TransactionType] = {}
        for key in sorted(recorded):
            report.examined += 1
            transaction_type = classify_label(display[key], recorded[key])
            if transaction_type is None:
                continue
            classifications[display[key]] = transaction_type
            report.record(f"label '{display[key]}' -> {transaction_type.value}")

        if classifications and not report.dry_run:
            self.db.upsert_label_classifications(scope, classifications)


MIGRATION_JOBS: dict[str, type[MigrationJob]] = {
    job.name: job for job in (RelinkAccountsJob, ApplyCategoryMappingsJob, BackfillClassificationsJob)
}
