"""Category inference for imported ledger records."""

from collections import Counter
from typing import Iterable, Optional

from ledgerrecon.domain.entities import Category, TransactionType
from ledgerrecon.domain.similarity import are_equivalent

# Order matters: "credit card expense" must hit the expense table before the
# income table's "credit"-like entries get a chance.
EXPENSE_HINTS = (
    "credit card expense",
    "credit card charge",
    "credit card credit",
    "credit card",
    "check",
    "bill payment",
    "bill",
    "expense",
    "debit",
    "purchase",
)
TRANSFER_HINTS = ("transfer", "journal entry")
INCOME_HINTS = ("deposit", "payment", "invoice", "sales receipt", "refund", "sales", "income")

INCOME_PREFIXES = frozenset("4")
EXPENSE_PREFIXES = frozenset("56789")
UNCLASSIFIABLE_PREFIXES = frozenset("123")


def normalize_alias(label: Optional[str]) -> str:
    """Normalize a raw label for alias comparison (case-insensitive, trimmed)."""
    return (label or "").strip().lower()


def match_hint(hint: Optional[str]) -> Optional[TransactionType]:
    """Match a free-text type hint against the keyword tables.

    Returns None when no keyword matches.
    """
    text = normalize_alias(hint)
    if not text:
        return None
    if any(keyword in text for keyword in EXPENSE_HINTS):
        return TransactionType.EXPENSE
    if any(keyword in text for keyword in TRANSFER_HINTS):
        return TransactionType.TRANSFER
    if any(keyword in text for keyword in INCOME_HINTS):
        return TransactionType.INCOME
    return None


def transaction_type_from_hint(hint: Optional[str]) -> TransactionType:
    """Map a ledger transaction type ("Check", "Deposit", ...) to a type.

    Unknown or empty hints default to expense.
    """
    return match_hint(hint) or TransactionType.EXPENSE


def _category_accepts(category: Category, type_hint: Optional[TransactionType]) -> bool:
    if type_hint is None or type_hint == TransactionType.TRANSFER:
        return True
    return category.type == type_hint


def resolve_category(
    label: Optional[str],
    type_hint: Optional[TransactionType],
    categories: Iterable[Category],
) -> Optional[int]:
    """Find the category whose alias set contains the label.

    Exact (case-insensitive, trimmed) alias matches win. Failing that, an
    alias that normalizes to the same text ("Meals & Ent" vs "Meals and
    Entertainment") is accepted.

    Args:
        label: Raw ledger label
        type_hint: Resolved transaction type; categories of a different type
            are skipped unless the hint is transfer or None
        categories: Categories of the scope

    Returns:
        Category ID, or None when nothing matches
    """
    normalized = normalize_alias(label)
    if not normalized:
        return None

    candidates = [c for c in categories if _category_accepts(c, type_hint)]
    for category in candidates:
        if any(normalize_alias(alias) == normalized for alias in category.raw_label_aliases):
            return category.id
    for category in candidates:
        if any(are_equivalent(alias, label) for alias in category.raw_label_aliases):
            return category.id
    return None


def resolve_category_for_record(
    primary_label: Optional[str],
    split_label: Optional[str],
    type_hint: Optional[TransactionType],
    categories: Iterable[Category],
) -> Optional[int]:
    """Apply the fallback chain: primary label, then split label, then None."""
    categories = list(categories)
    category_id = resolve_category(primary_label, type_hint, categories)
    if category_id is not None:
        return category_id
    return resolve_category(split_label, type_hint, categories)


def classify_label(label: str, recorded_types: Counter) -> Optional[TransactionType]:
    """Infer income/expense for a label that has no mapping yet.

    Numbered labels follow the chart-of-accounts convention: 4xxx income,
    5xxx-9xxx expense. 1xxx-3xxx labels are balance-sheet or equity accounts
    and are never auto-classified. Other labels take the majority of the
    transaction types already recorded under them.

    Args:
        label: Raw ledger label
        recorded_types: Counter of TransactionType values stored for the label

    Returns:
        TransactionType.INCOME, TransactionType.EXPENSE or None
    """
    stripped = (label or "").strip()
    if stripped[:1].isdigit():
        prefix = stripped[0]
        if prefix in INCOME_PREFIXES:
            return TransactionType.INCOME
        if prefix in EXPENSE_PREFIXES:
            return TransactionType.EXPENSE
        if prefix in UNCLASSIFIABLE_PREFIXES:
            return None

    income = recorded_types.get(TransactionType.INCOME, 0)
    expense = recorded_types.get(TransactionType.EXPENSE, 0)
    if income > expense:
        return TransactionType.INCOME
    if expense > 0:
        return TransactionType.EXPENSE
    return None
