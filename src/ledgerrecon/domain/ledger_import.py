"""Ledger import pipeline.

parse -> drop ignored labels -> fingerprint check -> link accounts and
normalize signs -> categorize -> insert in chunks.
"""

from dataclasses import dataclass, field, replace
from datetime import date
from pathlib import Path
from typing import Any, Iterator, Optional

from ledgerrecon.config import ImportSettings
from ledgerrecon.database.base import LedgerStore
from ledgerrecon.domain.categorization import normalize_alias, resolve_category_for_record
from ledgerrecon.domain.deduplication import (
    DuplicateDetector,
    FingerprintIndex,
    PotentialDuplicate,
    date_range,
)
from ledgerrecon.domain.entities import (
    DiscoveredAccount,
    HoldingRecord,
    ImportStatus,
    LedgerRecord,
    NewTransaction,
    ParseResult,
    RowError,
    SourceSchema,
)
from ledgerrecon.domain.errors import NoParsableRecordsError, PersistenceError, ValidationError
from ledgerrecon.domain.record_parser import RecordParser, guess_general_ledger_type
from ledgerrecon.domain.sign_normalizer import MULTI_SPLIT_LABEL, AliasIndex, resolve_entry
from ledgerrecon.utils.logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ImportResult:
    """Outcome of one import.

    A failed status means a chunk could not be written; chunks written before
    it stay in place and are counted in imported.
    """

    batch_id: Optional[int]
    status: ImportStatus
    source_schema: SourceSchema
    imported: int = 0
    skipped_rows: int = 0
    duplicates_skipped: int = 0
    ignored_account_records: int = 0
    potential_duplicates: list[PotentialDuplicate] = field(default_factory=list)
    parse_errors: list[RowError] = field(default_factory=list)
    error_message: Optional[str] = None
    merged_rows: int = 0
    discovered_accounts: list[DiscoveredAccount] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.status == ImportStatus.COMPLETED

    def as_dict(self) -> dict[str, Any]:
        """Payload shape returned to callers."""
        return {
            "imported": self.imported,
            "skippedRows": self.skipped_rows,
            "duplicatesSkipped": self.duplicates_skipped,
            "ignoredAccountRecords": self.ignored_account_records,
            "potentialDuplicates": [p.as_dict() for p in self.potential_duplicates],
            "parseErrors": [str(e) for e in self.parse_errors],
        }


def validate_holdings(holdings: list[HoldingRecord]) -> None:
    """Reject holdings that must never reach the store.

    Raises:
        ValidationError: On an empty symbol or a negative quantity
    """
    for holding in holdings:
        where = f"Row {holding.line_number}: " if holding.line_number is not None else ""
        if not (holding.symbol or "").strip():
            raise ValidationError(f"{where}holding symbol must not be empty")
        if holding.quantity < 0:
            raise ValidationError(f"{where}holding quantity for {holding.symbol} must not be negative")


def from_split_side(record: LedgerRecord) -> Optional[LedgerRecord]:
    """The same entry as printed under its split account, or None.

    A general ledger prints a two-sided entry under both accounts and only
    the first row survives the mirror merge, so this recovers the other row:
    labels swapped, amount negated.
    """
    split = normalize_alias(record.raw_split_label)
    if not split or split == MULTI_SPLIT_LABEL:
        return None
    amount = -record.amount
    type_guess = record.type_guess
    if record.source_schema == SourceSchema.GENERAL_LEDGER:
        type_guess = guess_general_ledger_type(
            amount, record.raw_split_label, record.raw_account_label, record.raw_transaction_type_hint
        )
    return replace(
        record,
        raw_account_label=record.raw_split_label,
        raw_split_label=record.raw_account_label,
        amount=amount,
        type_guess=type_guess,
    )


def chunk_entries(entries: list[list[NewTransaction]], chunk_size: int) -> Iterator[list[NewTransaction]]:
    """Pack per-record legs into insert chunks without splitting a record.

    A record with more legs than chunk_size gets a chunk of its own.
    """
    chunk: list[NewTransaction] = []
    for legs in entries:
        if chunk and len(chunk) + len(legs) > chunk_size:
            yield chunk
            chunk = []
        chunk.extend(legs)
    if chunk:
        yield chunk


class LedgerImportService:
    """Service for importing ledger exports into the store."""

    def __init__(
        self,
        db: LedgerStore,
        settings: Optional[ImportSettings] = None,
        parser: Optional[RecordParser] = None,
    ):
        """Initialize import service.

        Args:
            db: Ledger store instance
            settings: Pipeline settings; defaults to ImportSettings()
            parser: Record parser; defaults to one built from settings
        """
        self.db = db
        self.settings = settings or ImportSettings()
        self.parser = parser or RecordParser(description_max_length=self.settings.description_max_length)
        self.detector = DuplicateDetector()

    def import_file(
        self,
        scope: str,
        file_path: str,
        schema: Optional[SourceSchema] = None,
        as_of: Optional[date] = None,
    ) -> ImportResult:
        """Import a ledger or holdings export.

        Args:
            scope: User scope
            file_path: Path to a .csv/.txt/.xlsx/.xlsm export
            schema: Declared schema; inferred from the header row when None
            as_of: As-of date for holdings exports without a date column

        Returns:
            ImportResult with counts, flags and parse errors

        Raises:
            ValidationError: If the file is missing or unreadable, or holdings are invalid
            NoParsableRecordsError: If the file yields zero usable records
        """
        path = Path(file_path)
        if not path.is_file():
            raise ValidationError(f"File not found: {file_path}")

        parsed = self.parser.parse_file(path, schema=schema, as_of=as_of)
        return self.import_parsed(scope, path.name, parsed)

    def import_text(
        self,
        scope: str,
        text: str,
        filename: str = "upload.csv",
        schema: Optional[SourceSchema] = None,
        as_of: Optional[date] = None,
    ) -> ImportResult:
        """Import delimited text that is already in memory."""
        parsed = self.parser.parse_text(text, schema=schema, as_of=as_of)
        return self.import_parsed(scope, filename, parsed)

    def import_parsed(self, scope: str, filename: str, parsed: ParseResult) -> ImportResult:
        """Run the pipeline on a parse result.

        Raises:
            NoParsableRecordsError: If the parse result holds no usable records
        """
        if parsed.usable_count == 0:
            logger.warning("No parsable records in %s (%d row errors)", filename, len(parsed.errors))
            raise NoParsableRecordsError(filename, parsed.errors)

        logger.info(
            "Importing %s as %s: %d records, %d holdings, %d rows skipped, %d row errors",
            filename,
            parsed.schema.value,
            len(parsed.records),
            len(parsed.holdings),
            parsed.skipped_count,
            len(parsed.errors),
        )

        if parsed.schema == SourceSchema.BROKERAGE_HOLDING:
            return self._import_holdings(scope, filename, parsed)
        return self._import_records(scope, filename, parsed)

    def _import_records(self, scope: str, filename: str, parsed: ParseResult) -> ImportResult:
        ignored = {normalize_alias(label) for label in self.db.list_ignored_labels(scope)}
        candidates: list[LedgerRecord] = []
        ignored_count = 0
        for record in parsed.records:
            if normalize_alias(record.raw_account_label) not in ignored:
                candidates.append(record)
                continue
            swapped = from_split_side(record)
            if swapped is None or normalize_alias(swapped.raw_account_label) in ignored:
                ignored_count += 1
            else:
                candidates.append(swapped)

        span = date_range(candidates)
        index = FingerprintIndex(self.db.find_existing_fingerprints(scope, *span) if span else ())
        dedup = self.detector.detect(candidates, index)

        batch_id = self.db.create_import_batch(
            scope=scope,
            filename=filename,
            source_schema=parsed.schema,
            status=ImportStatus.PROCESSING,
            record_count=len(dedup.records),
        )
        logger.info("Created import batch %d for %s", batch_id, filename)

        entries = self._build_transactions(scope, batch_id, dedup.records, ignored)
        total = sum(len(legs) for legs in entries)

        def result(status: ImportStatus, imported: int, error_message: Optional[str] = None) -> ImportResult:
            return ImportResult(
                batch_id=batch_id,
                status=status,
                source_schema=parsed.schema,
                imported=imported,
                skipped_rows=parsed.skipped_count,
                duplicates_skipped=dedup.duplicates_skipped,
                ignored_account_records=ignored_count,
                potential_duplicates=dedup.potential_duplicates,
                parse_errors=parsed.errors,
                error_message=error_message,
                merged_rows=parsed.merged_count,
                discovered_accounts=parsed.discovered_accounts,
            )

        imported = 0
        for chunk in chunk_entries(entries, self.settings.chunk_size):
            try:
                imported += self.db.insert_transactions(chunk)
            except PersistenceError as e:
                return self._fail(batch_id, result(ImportStatus.FAILED, imported, str(e)), parsed)
            logger.debug("Batch %d: inserted %d/%d transactions", batch_id, imported, total)

        completed = result(ImportStatus.COMPLETED, imported)
        self.db.update_import_batch(
            batch_id, status=ImportStatus.COMPLETED, metadata=self._metadata(completed, parsed)
        )
        logger.info(
            "Import batch %d completed: %d transactions from %d records, %d duplicates skipped, "
            "%d ignored, %d potential duplicates",
            batch_id,
            imported,
            len(dedup.records),
            dedup.duplicates_skipped,
            ignored_count,
            len(dedup.potential_duplicates),
        )
        return completed

    def _build_transactions(
        self,
        scope: str,
        batch_id: int,
        records: list[LedgerRecord],
        ignored: set[str],
    ) -> list[list[NewTransaction]]:
        """Legs to store, grouped per record."""
        accounts = AliasIndex(self.db.list_accounts(scope))
        categories = self.db.list_categories(scope)
        type_mappings = self.db.list_type_mappings(scope)

        entries: list[list[NewTransaction]] = []
        for record in records:
            legs = resolve_entry(record, accounts, type_mappings)
            transactions: list[NewTransaction] = []
            for position, leg in enumerate(legs):
                if position > 0 and normalize_alias(leg.raw_account_label) in ignored:
                    continue
                # The split label only stands in for a category when it has no leg of its own
                fallback = leg.raw_split_label if len(legs) == 1 else None
                category_id = resolve_category_for_record(
                    leg.raw_account_label, fallback, leg.transaction_type, categories
                )
                transactions.append(
                    NewTransaction(
                        scope=scope,
                        date=record.date,
                        amount=leg.amount,
                        description=record.description,
                        memo=record.memo,
                        account_id=leg.account_id,
                        category_id=category_id,
                        transaction_type=leg.transaction_type,
                        raw_account_label=leg.raw_account_label,
                        raw_split_label=leg.raw_split_label,
                        raw_transaction_type_hint=record.raw_transaction_type_hint,
                        import_batch_id=batch_id,
                    )
                )
            entries.append(transactions)
        return entries

    def _import_holdings(self, scope: str, filename: str, parsed: ParseResult) -> ImportResult:
        validate_holdings(parsed.holdings)

        batch_id = self.db.create_import_batch(
            scope=scope,
            filename=filename,
            source_schema=SourceSchema.BROKERAGE_HOLDING,
            status=ImportStatus.PROCESSING,
            record_count=len(parsed.holdings),
        )
        logger.info("Created import batch %d for %s", batch_id, filename)

        def result(status: ImportStatus, imported: int, error_message: Optional[str] = None) -> ImportResult:
            return ImportResult(
                batch_id=batch_id,
                status=status,
                source_schema=SourceSchema.BROKERAGE_HOLDING,
                imported=imported,
                skipped_rows=parsed.skipped_count,
                parse_errors=parsed.errors,
                error_message=error_message,
            )

        imported = 0
        chunk_size = self.settings.chunk_size
        for start in range(0, len(parsed.holdings), chunk_size):
            chunk = parsed.holdings[start : start + chunk_size]
            try:
                imported += self.db.insert_holdings(scope, chunk, batch_id)
            except PersistenceError as e:
                return self._fail(batch_id, result(ImportStatus.FAILED, imported, str(e)), parsed)

        completed = result(ImportStatus.COMPLETED, imported)
        self.db.update_import_batch(
            batch_id, status=ImportStatus.COMPLETED, metadata=self._metadata(completed, parsed)
        )
        logger.info("Import batch %d completed: %d holdings", batch_id, imported)
        return completed

    def _fail(self, batch_id: int, failed: ImportResult, parsed: ParseResult) -> ImportResult:
        logger.error(
            "Import batch %d failed after %d inserted: %s", batch_id, failed.imported, failed.error_message
        )
        self.db.update_import_batch(
            batch_id,
            status=ImportStatus.FAILED,
            error_message=failed.error_message,
            metadata=self._metadata(failed, parsed),
        )
        return failed

    @staticmethod
    def _metadata(result: ImportResult, parsed: ParseResult) -> dict[str, Any]:
        return {
            "rowCount": parsed.row_count,
            "skippedCount": parsed.skipped_count,
            "mergedCount": parsed.merged_count,
            "imported": result.imported,
            "duplicatesSkipped": result.duplicates_skipped,
            "ignoredAccountRecords": result.ignored_account_records,
            "potentialDuplicates": len(result.potential_duplicates),
            "discoveredAccounts": len(parsed.discovered_accounts),
            "errors": [str(e) for e in parsed.errors],
        }
