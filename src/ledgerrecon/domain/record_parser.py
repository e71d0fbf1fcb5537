"""Record parser for ledger exports.

Turns delimited text or spreadsheet rows into LedgerRecords (general-ledger
and flat transaction exports) or HoldingRecords (brokerage exports). Bad rows
never abort a file: they are counted as skipped and reported as RowErrors.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Iterable, Optional, Sequence

from ledgerrecon.domain.account_types import classify_account_label
from ledgerrecon.domain.categorization import match_hint
from ledgerrecon.domain.entities import (
    DiscoveredAccount,
    HoldingRecord,
    LedgerRecord,
    ParseResult,
    RowError,
    SourceSchema,
    TransactionType,
)
from ledgerrecon.domain.errors import ValidationError
from ledgerrecon.domain.sign_normalizer import MULTI_SPLIT_LABEL
from ledgerrecon.utils.amount_parser import parse_amount, parse_optional_amount
from ledgerrecon.utils.date_parser import parse_date
from ledgerrecon.utils.logging_config import get_logger
from ledgerrecon.utils.tabular import read_rows, read_text_rows

logger = get_logger(__name__)

HEADER_SEARCH_ROWS = 10
DEFAULT_DESCRIPTION_MAX_LENGTH = 500

FLAT_HEADER_KEYWORDS = ("date", "amount", "total", "transaction type", "type", "account", "name")

FLAT_DATE_COLUMNS = ("date", "trans date", "transaction date", "txn date")
FLAT_AMOUNT_COLUMNS = ("amount", "total", "debit", "credit")
FLAT_TYPE_COLUMNS = ("transaction type", "type", "txn type")
FLAT_NAME_COLUMNS = ("name", "payee", "customer", "vendor")
FLAT_MEMO_COLUMNS = ("memo", "description", "memo/description")
FLAT_NUMBER_COLUMNS = ("num", "number", "doc num", "ref #")
FLAT_ACCOUNT_COLUMNS = ("account full name",)
FLAT_ACCOUNT_FALLBACK_COLUMNS = ("account",)

HOLDING_SYMBOL_COLUMNS = ("symbol",)
HOLDING_NAME_COLUMNS = ("security name", "name", "description")
HOLDING_QUANTITY_COLUMNS = ("quantity", "shares")
HOLDING_COST_COLUMNS = ("cost basis", "cost")
HOLDING_VALUE_COLUMNS = ("market value", "current value", "value")
HOLDING_PRICE_COLUMNS = ("price", "current price")
HOLDING_CLASS_COLUMNS = ("asset class", "asset type")
HOLDING_SECTOR_COLUMNS = ("sector",)
HOLDING_DATE_COLUMNS = ("as of", "as of date", "date")

_PRICE_PLACES = Decimal("0.0001")


def _text(row: Sequence[Any], index: Optional[int]) -> str:
    if index is None or index < 0 or index >= len(row):
        return ""
    value = row[index]
    if value is None:
        return ""
    if isinstance(value, date):
        return value.isoformat()
    return str(value).strip()


def _raw(row: Sequence[Any], index: Optional[int]) -> Any:
    if index is None or index < 0 or index >= len(row):
        return ""
    value = row[index]
    if isinstance(value, date):
        return value
    return "" if value is None else str(value).strip()


def _is_blank(row: Sequence[Any]) -> bool:
    return all(not _text(row, i) for i in range(len(row)))


def _normalize_headers(row: Sequence[Any]) -> list[str]:
    return [_text(row, i).lower() for i in range(len(row))]


def _column_indexes(headers: list[str], aliases: Iterable[str]) -> list[int]:
    """Indexes of the columns matching the aliases, in alias priority order."""
    indexes = []
    for alias in aliases:
        indexes.extend(i for i, header in enumerate(headers) if header == alias)
    return indexes


def _first_value(row: Sequence[Any], indexes: list[int]) -> Any:
    for index in indexes:
        value = _raw(row, index)
        if value != "":
            return value
    return ""


def _last_value(row: Sequence[Any], indexes: list[int]) -> str:
    found = ""
    for index in sorted(indexes):
        value = _text(row, index)
        if value:
            found = value
    return found


def is_flat_header_row(row: Sequence[Any]) -> bool:
    """A row is a flat-export header when at least two keywords appear in it."""
    cells = _normalize_headers(row)
    matches = sum(1 for keyword in FLAT_HEADER_KEYWORDS if any(keyword in cell for cell in cells))
    return matches >= 2


def _is_holdings_header(row: Sequence[Any]) -> bool:
    cells = set(_normalize_headers(row))
    return "symbol" in cells and bool(cells & set(HOLDING_QUANTITY_COLUMNS))


def _is_general_ledger_header(row: Sequence[Any]) -> bool:
    return any("distribution account" in cell for cell in _normalize_headers(row))


_HEADER_TESTS = (
    (SourceSchema.GENERAL_LEDGER, _is_general_ledger_header),
    (SourceSchema.BROKERAGE_HOLDING, _is_holdings_header),
    (SourceSchema.FLAT_TRANSACTION, is_flat_header_row),
)


def find_header_row(rows: Sequence[Sequence[Any]], schema: SourceSchema) -> Optional[int]:
    """Index of the header row for a schema within the first rows, or None."""
    test = dict(_HEADER_TESTS)[schema]
    for index, row in enumerate(rows[:HEADER_SEARCH_ROWS]):
        if test(row):
            return index
    return None


def detect_schema(rows: Sequence[Sequence[Any]]) -> tuple[SourceSchema, int]:
    """Infer the export family from its header row.

    Returns:
        (schema, header row index)

    Raises:
        ValidationError: If no known header row is found
    """
    for index, row in enumerate(rows[:HEADER_SEARCH_ROWS]):
        for schema, test in _HEADER_TESTS:
            if test(row):
                return schema, index
    raise ValidationError("Could not find a header row in the first 10 rows")


def guess_general_ledger_type(
    amount: Decimal,
    section_label: Optional[str],
    split_label: Optional[str],
    type_hint: Optional[str],
) -> TransactionType:
    """Best-effort income/expense guess for a general-ledger row.

    The guess only matters for rows that end up unlinked; linked legs are
    always transfers.
    """
    hint = (type_hint or "").strip().lower()
    split = (split_label or "").strip().lower()

    if hint == "deposit":
        return TransactionType.INCOME
    if "income" in split and "income tax" not in split:
        if split.startswith("income") or "income -" in split or "income:" in split:
            return TransactionType.INCOME
    if "payment" in hint or "credit card" in hint:
        return TransactionType.EXPENSE
    if hint in ("expense", "check", "bill", "bill payment"):
        return TransactionType.EXPENSE

    if classify_account_label(section_label).is_liability:
        return TransactionType.EXPENSE
    return TransactionType.EXPENSE if amount < 0 else TransactionType.INCOME


def guess_flat_type(amount: Decimal, type_hint: Optional[str]) -> TransactionType:
    """Keyword table first, then the amount sign."""
    matched = match_hint(type_hint)
    if matched is not None:
        return matched
    return TransactionType.INCOME if amount > 0 else TransactionType.EXPENSE


def build_description(
    name: Optional[str], memo: Optional[str], fallback: Optional[str], max_length: int
) -> str:
    description = " - ".join(part for part in (name, memo) if part) or fallback or "Unknown"
    return description[:max_length]


@dataclass
class _Section:
    name: str
    beginning_balance: Optional[Decimal] = None
    ending_balance: Optional[Decimal] = None
    amounts: list[Decimal] = field(default_factory=list)

    def summarize(self) -> DiscoveredAccount:
        classification = classify_account_label(self.name)
        debits = sum((a for a in self.amounts if a > 0), Decimal("0"))
        credits = sum((-a for a in self.amounts if a < 0), Decimal("0"))
        return DiscoveredAccount(
            name=self.name,
            suggested_type=classification.account_type,
            is_asset=classification.is_asset,
            is_liability=classification.is_liability,
            is_income_expense_category=classification.is_income_expense_category,
            transaction_count=len(self.amounts),
            total_debits=debits,
            total_credits=credits,
            beginning_balance=self.beginning_balance,
            ending_balance=self.ending_balance,
        )


def _mirror_key(record: LedgerRecord, swap: bool) -> tuple:
    account = (record.raw_account_label or "").lower()
    split = (record.raw_split_label or "").lower()
    if swap:
        account, split = split, account
    return (
        record.date,
        (record.raw_transaction_type_hint or "").lower(),
        record.reference_number or "",
        record.payee_name or "",
        record.memo or "",
        account,
        split,
        -record.amount if swap else record.amount,
    )


def merge_mirrored_records(records: list[LedgerRecord]) -> tuple[list[LedgerRecord], int]:
    """Collapse the two rows a general ledger prints for one split.

    A ledger lists each two-sided entry once under each account: the row under
    "Checking" with split "Groceries" is mirrored by a row under "Groceries"
    with split "Checking" and the opposite amount. The first row of each pair
    is kept.

    Returns:
        (records in file order, number of rows merged away)
    """
    pending: dict[tuple, int] = {}
    kept: list[LedgerRecord] = []
    merged = 0

    for record in records:
        split = (record.raw_split_label or "").strip().lower()
        if not split or split == MULTI_SPLIT_LABEL or not record.raw_account_label:
            kept.append(record)
            continue

        mirror = _mirror_key(record, swap=True)
        if pending.get(mirror, 0) > 0:
            pending[mirror] -= 1
            merged += 1
            continue

        own = _mirror_key(record, swap=False)
        pending[own] = pending.get(own, 0) + 1
        kept.append(record)

    return kept, merged


class RecordParser:
    """Parses ledger exports into records of one source schema."""

    def __init__(self, description_max_length: int = DEFAULT_DESCRIPTION_MAX_LENGTH):
        self.description_max_length = description_max_length

    def parse_file(
        self,
        file_path: str | Path,
        schema: Optional[SourceSchema] = None,
        as_of: Optional[date] = None,
    ) -> ParseResult:
        """Parse a .csv/.txt or .xlsx/.xlsm export.

        Args:
            file_path: Path to the export
            schema: Declared schema; inferred from the header row when None
            as_of: As-of date for holdings exports without a date column

        Raises:
            ValidationError: If the file is missing, unsupported or has no
                recognizable header row
        """
        try:
            rows = read_rows(file_path)
        except FileNotFoundError as e:
            raise ValidationError(str(e)) from e
        except ValueError as e:
            raise ValidationError(f"Could not read '{file_path}': {e}") from e
        return self.parse_rows(rows, schema=schema, as_of=as_of)

    def parse_text(
        self,
        text: str,
        schema: Optional[SourceSchema] = None,
        as_of: Optional[date] = None,
    ) -> ParseResult:
        """Parse delimited text content."""
        return self.parse_rows(read_text_rows(text), schema=schema, as_of=as_of)

    def parse_rows(
        self,
        rows: Sequence[Sequence[Any]],
        schema: Optional[SourceSchema] = None,
        as_of: Optional[date] = None,
    ) -> ParseResult:
        """Parse already-split rows.

        Raises:
            ValidationError: If no header row for the schema is found
        """
        rows = list(rows)
        if schema is None:
            schema, header_index = detect_schema(rows)
        else:
            schema = SourceSchema(schema)
            header_index = find_header_row(rows, schema)
            if header_index is None:
                raise ValidationError(f"Could not find a {schema.value} header row in the first 10 rows")

        logger.debug("Parsing %d rows as %s (header at row %d)", len(rows), schema.value, header_index + 1)

        if schema == SourceSchema.GENERAL_LEDGER:
            return self._parse_general_ledger(rows, header_index)
        if schema == SourceSchema.BROKERAGE_HOLDING:
            return self._parse_holdings(rows, header_index, as_of or date.today())
        return self._parse_flat(rows, header_index)

    def _parse_general_ledger(self, rows: list, header_index: int) -> ParseResult:
        headers = _normalize_headers(rows[header_index])

        def col(name: str) -> Optional[int]:
            return headers.index(name) if name in headers else None

        account_col = next(i for i, h in enumerate(headers) if "distribution account" in h)
        date_col = col("transaction date")
        type_col = col("transaction type")
        num_col = col("num")
        name_col = col("name")
        memo_col = next((i for i, h in enumerate(headers) if "memo" in h or "description" in h), None)
        split_col = col("split account")
        amount_col = col("amount")
        balance_col = col("balance")

        records: list[LedgerRecord] = []
        errors: list[RowError] = []
        sections: dict[str, _Section] = {}
        current: Optional[_Section] = None
        in_deleted = False
        skipped = 0

        for index in range(header_index + 1, len(rows)):
            row = rows[index]
            line = index + 1
            if _is_blank(row):
                skipped += 1
                continue

            first = _text(row, 0)
            distribution = _text(row, account_col) if account_col != 0 else ""
            first_lower = first.lower()

            if first and not first_lower.startswith("total") and not distribution:
                skipped += 1
                if "deleted" in first_lower:
                    current, in_deleted = None, True
                    continue
                in_deleted = False
                current = sections.setdefault(first, _Section(first))
                continue

            if first_lower.startswith("total"):
                skipped += 1
                amount_text = _text(row, amount_col)
                if current is not None and amount_text:
                    current.ending_balance = self._lenient_amount(amount_text)
                continue

            if distribution.lower() == "beginning balance":
                skipped += 1
                if current is not None:
                    balance_text = _text(row, balance_col) or _text(row, amount_col)
                    current.beginning_balance = self._lenient_amount(balance_text)
                continue

            if in_deleted:
                skipped += 1
                continue

            date_value = _raw(row, date_col)
            if date_value == "":
                skipped += 1
                continue
            try:
                txn_date = parse_date(date_value)
            except ValueError:
                errors.append(RowError(line, f'Invalid date format "{date_value}"'))
                skipped += 1
                continue

            amount_text = _text(row, amount_col)
            if not amount_text:
                skipped += 1
                continue
            try:
                amount = parse_amount(amount_text)
            except ValueError as e:
                errors.append(RowError(line, str(e)))
                skipped += 1
                continue
            if amount == 0:
                skipped += 1
                continue

            type_hint = _text(row, type_col) or None
            name = _text(row, name_col) or None
            memo = _text(row, memo_col) or None
            split = _text(row, split_col) or None
            label = current.name if current is not None else (distribution or None)

            records.append(
                LedgerRecord(
                    date=txn_date,
                    amount=amount,
                    description=build_description(name, memo, type_hint, self.description_max_length),
                    memo=memo,
                    raw_account_label=label,
                    raw_split_label=split,
                    raw_transaction_type_hint=type_hint,
                    source_schema=SourceSchema.GENERAL_LEDGER,
                    type_guess=guess_general_ledger_type(amount, label, split, type_hint),
                    reference_number=_text(row, num_col) or None,
                    payee_name=name,
                    line_number=line,
                )
            )
            if current is not None:
                current.amounts.append(amount)

        records, merged = merge_mirrored_records(records)

        discovered = sorted(
            (section.summarize() for section in sections.values()),
            key=lambda a: (a.is_income_expense_category, -a.transaction_count),
        )

        return ParseResult(
            schema=SourceSchema.GENERAL_LEDGER,
            records=records,
            errors=errors,
            row_count=len(rows) - header_index - 1,
            skipped_count=skipped,
            merged_count=merged,
            discovered_accounts=discovered,
        )

    def _parse_flat(self, rows: list, header_index: int) -> ParseResult:
        headers = _normalize_headers(rows[header_index])
        date_cols = _column_indexes(headers, FLAT_DATE_COLUMNS)
        amount_cols = _column_indexes(headers, FLAT_AMOUNT_COLUMNS)
        type_cols = _column_indexes(headers, FLAT_TYPE_COLUMNS)
        name_cols = _column_indexes(headers, FLAT_NAME_COLUMNS)
        memo_cols = _column_indexes(headers, FLAT_MEMO_COLUMNS)
        number_cols = _column_indexes(headers, FLAT_NUMBER_COLUMNS)
        account_cols = _column_indexes(headers, FLAT_ACCOUNT_COLUMNS)
        fallback_account_cols = _column_indexes(headers, FLAT_ACCOUNT_FALLBACK_COLUMNS)

        records: list[LedgerRecord] = []
        errors: list[RowError] = []
        skipped = 0

        for index in range(header_index + 1, len(rows)):
            row = rows[index]
            line = index + 1
            if _is_blank(row):
                skipped += 1
                continue

            date_value = _first_value(row, date_cols)
            amount_value = _first_value(row, amount_cols)
            if date_value == "" or amount_value == "":
                skipped += 1
                continue

            try:
                txn_date = parse_date(date_value)
            except ValueError:
                errors.append(RowError(line, f'Invalid date format "{date_value}"'))
                skipped += 1
                continue
            try:
                amount = parse_amount(str(amount_value))
            except ValueError as e:
                errors.append(RowError(line, str(e)))
                skipped += 1
                continue

            type_hint = str(_first_value(row, type_cols)) or None
            name = str(_first_value(row, name_cols)) or None
            memo = str(_first_value(row, memo_cols)) or None
            label = _last_value(row, account_cols) or str(_first_value(row, fallback_account_cols)) or None
            description = " - ".join(part for part in (name, memo, type_hint) if part) or "Unknown"

            records.append(
                LedgerRecord(
                    date=txn_date,
                    amount=amount,
                    description=description[: self.description_max_length],
                    memo=memo,
                    raw_account_label=label,
                    raw_split_label=None,
                    raw_transaction_type_hint=type_hint,
                    source_schema=SourceSchema.FLAT_TRANSACTION,
                    type_guess=guess_flat_type(amount, type_hint),
                    reference_number=str(_first_value(row, number_cols)) or None,
                    payee_name=name,
                    line_number=line,
                )
            )

        return ParseResult(
            schema=SourceSchema.FLAT_TRANSACTION,
            records=records,
            errors=errors,
            row_count=len(rows) - header_index - 1,
            skipped_count=skipped,
        )

    def _parse_holdings(self, rows: list, header_index: int, as_of: date) -> ParseResult:
        headers = _normalize_headers(rows[header_index])
        symbol_cols = _column_indexes(headers, HOLDING_SYMBOL_COLUMNS)
        name_cols = _column_indexes(headers, HOLDING_NAME_COLUMNS)
        quantity_cols = _column_indexes(headers, HOLDING_QUANTITY_COLUMNS)
        cost_cols = _column_indexes(headers, HOLDING_COST_COLUMNS)
        value_cols = _column_indexes(headers, HOLDING_VALUE_COLUMNS)
        price_cols = _column_indexes(headers, HOLDING_PRICE_COLUMNS)
        class_cols = _column_indexes(headers, HOLDING_CLASS_COLUMNS)
        sector_cols = _column_indexes(headers, HOLDING_SECTOR_COLUMNS)
        date_cols = _column_indexes(headers, HOLDING_DATE_COLUMNS)

        holdings: list[HoldingRecord] = []
        errors: list[RowError] = []
        skipped = 0

        for index in range(header_index + 1, len(rows)):
            row = rows[index]
            line = index + 1

            symbol = str(_first_value(row, symbol_cols))
            symbol_lower = symbol.lower()
            if not symbol or symbol_lower == "cash" or "total" in symbol_lower:
                skipped += 1
                continue

            quantity_text = str(_first_value(row, quantity_cols))
            if not quantity_text:
                skipped += 1
                continue

            try:
                quantity = parse_amount(quantity_text)
                cost_basis = parse_optional_amount(_first_value(row, cost_cols))
                current_value = parse_optional_amount(_first_value(row, value_cols))
                current_price = parse_optional_amount(_first_value(row, price_cols))
            except ValueError as e:
                errors.append(RowError(line, str(e)))
                skipped += 1
                continue

            if quantity == 0:
                skipped += 1
                continue

            if not current_price and current_value:
                try:
                    current_price = (current_value / quantity).quantize(_PRICE_PLACES)
                except InvalidOperation:
                    current_price = None

            row_date = as_of
            date_value = _first_value(row, date_cols)
            if date_value != "":
                try:
                    row_date = parse_date(date_value)
                except ValueError:
                    errors.append(RowError(line, f'Invalid date format "{date_value}"'))
                    skipped += 1
                    continue

            holdings.append(
                HoldingRecord(
                    symbol=symbol,
                    quantity=quantity,
                    as_of_date=row_date,
                    name=str(_first_value(row, name_cols)) or None,
                    cost_basis=cost_basis,
                    current_price=current_price,
                    current_value=current_value,
                    asset_class=str(_first_value(row, class_cols)) or None,
                    sector=str(_first_value(row, sector_cols)) or None,
                    line_number=line,
                )
            )

        return ParseResult(
            schema=SourceSchema.BROKERAGE_HOLDING,
            holdings=holdings,
            errors=errors,
            row_count=len(rows) - header_index - 1,
            skipped_count=skipped,
        )

    @staticmethod
    def _lenient_amount(text: str) -> Optional[Decimal]:
        try:
            return parse_amount(text)
        except ValueError:
            return None
