"""Duplicate detection against previously stored transactions."""

import re
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional

from ledgerrecon.domain.entities import ExistingRecord, LedgerRecord
from ledgerrecon.utils.logging_config import get_logger

logger = get_logger(__name__)

_CENT = Decimal("0.01")
_DOMAIN_SUFFIX = re.compile(r"\.(com|net|org|co|io)\b")
_NON_ALNUM = re.compile(r"[^a-z0-9]")


def normalize_description(description: Optional[str]) -> str:
    """Lowercase, drop web-domain suffixes and every non-alphanumeric character.

    "Amazon", "AMAZON.COM" and "Amazon!" all normalize to "amazon".
    """
    if not description:
        return ""
    text = _DOMAIN_SUFFIX.sub("", description.lower().strip())
    return _NON_ALNUM.sub("", text)


def normalize_account_label(label: Optional[str]) -> str:
    return (label or "").lower().strip()


def _amount_key(amount: Decimal) -> str:
    return str(abs(Decimal(amount)).quantize(_CENT, rounding=ROUND_HALF_UP))


def exact_fingerprint(
    txn_date: date, amount: Decimal, description: Optional[str], account_label: Optional[str]
) -> str:
    """date|abs(amount)|normalized description|normalized account label."""
    return "|".join(
        (
            txn_date.isoformat(),
            _amount_key(amount),
            normalize_description(description),
            normalize_account_label(account_label),
        )
    )


def partial_fingerprint(txn_date: date, amount: Decimal, account_label: Optional[str]) -> str:
    """date|abs(amount)|normalized account label (description excluded)."""
    return "|".join((txn_date.isoformat(), _amount_key(amount), normalize_account_label(account_label)))


def record_fingerprints(record: LedgerRecord) -> tuple[str, str]:
    return (
        exact_fingerprint(record.date, record.amount, record.description, record.raw_account_label),
        partial_fingerprint(record.date, record.amount, record.raw_account_label),
    )


@dataclass(frozen=True)
class PotentialDuplicate:
    """A new record that looks like an existing one but differs in description."""

    record: LedgerRecord
    existing_id: int
    existing_description: Optional[str]

    def as_dict(self) -> dict:
        return {
            "line": self.record.line_number,
            "date": self.record.date.isoformat(),
            "amount": str(self.record.amount),
            "description": self.record.description,
            "accountLabel": self.record.raw_account_label,
            "existingId": self.existing_id,
            "existingDescription": self.existing_description,
        }


@dataclass(frozen=True)
class DedupResult:
    """Records that survived exact-duplicate filtering, plus flags."""

    records: list[LedgerRecord]
    duplicates_skipped: int = 0
    potential_duplicates: list[PotentialDuplicate] = field(default_factory=list)


class FingerprintIndex:
    """Exact and partial fingerprints of stored records.

    Computed once per import from the store; it is not refreshed while the
    import runs, so imports for one scope must not overlap.
    """

    def __init__(self, existing: Iterable[ExistingRecord] = ()):
        self.exact: set[str] = set()
        self.partial: dict[str, list[ExistingRecord]] = defaultdict(list)
        for item in existing:
            self.add(item)

    def add(self, item: ExistingRecord) -> None:
        self.exact.add(exact_fingerprint(item.date, item.amount, item.description, item.raw_account_label))
        self.partial[partial_fingerprint(item.date, item.amount, item.raw_account_label)].append(item)

    def __len__(self) -> int:
        return len(self.exact)


def date_range(records: Iterable[LedgerRecord]) -> Optional[tuple[date, date]]:
    """[min, max] dates of a batch, or None for an empty batch."""
    dates = [record.date for record in records]
    if not dates:
        return None
    return min(dates), max(dates)


class DuplicateDetector:
    """Filters exact repeats and flags probable duplicates.

    Deterministic and side-effect free: it never deletes anything. Removing
    confirmed duplicates is a separate, explicit operation.
    """

    def detect(self, records: Iterable[LedgerRecord], index: FingerprintIndex) -> DedupResult:
        """Split a batch into new records and exact duplicates.

        Args:
            records: Candidate records in file order
            index: Fingerprints of stored records in the batch's date range

        Returns:
            DedupResult with exact duplicates removed and partial matches flagged
        """
        kept: list[LedgerRecord] = []
        potential: list[PotentialDuplicate] = []
        skipped = 0

        for record in records:
            exact, partial = record_fingerprints(record)
            if exact in index.exact:
                skipped += 1
                continue

            for existing in index.partial.get(partial, ()):
                potential.append(
                    PotentialDuplicate(
                        record=record,
                        existing_id=existing.id,
                        existing_description=existing.description,
                    )
                )
            kept.append(record)

        if skipped or potential:
            logger.info(
                "Duplicate check: %d exact duplicates skipped, %d potential duplicates flagged",
                skipped,
                len(potential),
            )
        return DedupResult(records=kept, duplicates_skipped=skipped, potential_duplicates=potential)
