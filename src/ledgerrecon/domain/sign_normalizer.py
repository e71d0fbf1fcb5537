"""Account linkage and sign normalization for ledger records.

Everything here is a pure function over (record, accounts, type mappings):
no store access, no mutation.

Stored amounts follow one convention: the general-ledger debit-positive sign
is kept for asset accounts, flipped for liability accounts, flipped for the
counter leg of a double entry, and for unlinked records forced to
"income positive, expense negative".
"""

from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Iterable, Mapping, Optional

from ledgerrecon.domain.categorization import normalize_alias
from ledgerrecon.domain.entities import (
    Account,
    LedgerRecord,
    ResolvedRecord,
    SourceSchema,
    TransactionType,
)

# Placeholder QuickBooks writes into the split column for multi-split entries.
MULTI_SPLIT_LABEL = "-split-"


@dataclass(frozen=True)
class SignRules:
    """How a source schema's native sign maps onto the stored sign."""

    negate_split_link: bool = True
    negate_liability_link: bool = False
    negate_asset_link: bool = False

    def linked_amount(self, amount: Decimal, account: Account, linked_via_split: bool) -> Decimal:
        if linked_via_split:
            return -amount if self.negate_split_link else amount
        if account.is_liability:
            return -amount if self.negate_liability_link else amount
        return -amount if self.negate_asset_link else amount


GENERAL_LEDGER_RULES = SignRules(negate_split_link=True, negate_liability_link=True)

# Every documented schema uses the general-ledger convention. A second
# double-entry source with a different convention gets its own entry here.
SIGN_RULES: dict[SourceSchema, SignRules] = {
    SourceSchema.GENERAL_LEDGER: GENERAL_LEDGER_RULES,
    SourceSchema.FLAT_TRANSACTION: GENERAL_LEDGER_RULES,
}


class AliasIndex:
    """Lookup from normalized raw label to the account that owns it.

    Built once per import from the account list; when two accounts share an
    alias the first one listed wins.
    """

    def __init__(self, accounts: Iterable[Account]):
        self._by_alias: dict[str, Account] = {}
        for account in accounts:
            for alias in account.raw_label_aliases:
                self._by_alias.setdefault(normalize_alias(alias), account)

    def find(self, label: Optional[str]) -> Optional[Account]:
        key = normalize_alias(label)
        if not key:
            return None
        return self._by_alias.get(key)

    def __contains__(self, label: object) -> bool:
        return isinstance(label, str) and self.find(label) is not None

    def __len__(self) -> int:
        return len(self._by_alias)


def _as_index(accounts: "AliasIndex | Iterable[Account]") -> AliasIndex:
    return accounts if isinstance(accounts, AliasIndex) else AliasIndex(accounts)


def _is_concrete_split(label: Optional[str]) -> bool:
    key = normalize_alias(label)
    return bool(key) and key != MULTI_SPLIT_LABEL


def link_account(
    primary_label: Optional[str],
    split_label: Optional[str],
    accounts: "AliasIndex | Iterable[Account]",
) -> tuple[Optional[Account], bool]:
    """Link a record to an account: primary label first, then split label.

    Returns:
        (account or None, linked_via_split)
    """
    index = _as_index(accounts)
    account = index.find(primary_label)
    if account is not None:
        return account, False
    if _is_concrete_split(split_label):
        account = index.find(split_label)
        if account is not None:
            return account, True
    return None, False


def apply_income_expense_sign(amount: Decimal, transaction_type: TransactionType) -> Decimal:
    """Force expenses negative and income positive; transfers keep their sign."""
    if transaction_type == TransactionType.EXPENSE and amount > 0:
        return -amount
    if transaction_type == TransactionType.INCOME and amount < 0:
        return -amount
    return amount


def mapped_type(
    record: LedgerRecord,
    type_mappings: Optional[Mapping[str, TransactionType]],
) -> TransactionType:
    """User's type mapping for the record's hint, else the parser's guess."""
    if type_mappings:
        hint = normalize_alias(record.raw_transaction_type_hint)
        if hint and hint in type_mappings:
            return TransactionType(type_mappings[hint])
    return record.type_guess


def resolve_record(
    record: LedgerRecord,
    accounts: "AliasIndex | Iterable[Account]",
    type_mappings: Optional[Mapping[str, TransactionType]] = None,
    sign_rules: Optional[Mapping[SourceSchema, SignRules]] = None,
) -> ResolvedRecord:
    """Decide the linked account, stored amount and type of one record.

    1. Match the primary label against account aliases, then the split label.
    2. Split links negate the amount (the split side is the opposite leg).
    3. Primary links keep the sign for assets and negate it for liabilities.
    4. Unlinked records use the type mapping (or the parser's guess) and the
       income/expense sign convention.
    5. Linked records are always transfers, so one double-entry event is
       never counted both as a balance movement and as income/expense.

    Never raises; an unmatched label just leaves account_id unset.
    """
    rules = (sign_rules or SIGN_RULES).get(record.source_schema, GENERAL_LEDGER_RULES)
    account, via_split = link_account(record.raw_account_label, record.raw_split_label, accounts)

    if account is not None:
        return ResolvedRecord(
            record=record,
            amount=rules.linked_amount(record.amount, account, via_split),
            transaction_type=TransactionType.TRANSFER,
            account_id=account.id,
            linked_via_split=via_split,
            raw_account_label=record.raw_account_label,
            raw_split_label=record.raw_split_label,
        )

    transaction_type = mapped_type(record, type_mappings)
    return ResolvedRecord(
        record=record,
        amount=apply_income_expense_sign(record.amount, transaction_type),
        transaction_type=transaction_type,
        raw_account_label=record.raw_account_label,
        raw_split_label=record.raw_split_label,
    )


def resolve_entry(
    record: LedgerRecord,
    accounts: "AliasIndex | Iterable[Account]",
    type_mappings: Optional[Mapping[str, TransactionType]] = None,
    sign_rules: Optional[Mapping[SourceSchema, SignRules]] = None,
) -> list[ResolvedRecord]:
    """Resolve a record into the legs that get stored.

    A record whose primary label links to an account also produces the
    counter leg for its split label (amount negated). A record linked through
    its split label also produces the leg for its primary label, which is not
    allowed to fall back to the split again. Unlinked records produce a
    single leg.
    """
    index = _as_index(accounts)
    first = resolve_record(record, index, type_mappings, sign_rules)
    if not first.is_linked:
        return [first]

    if first.linked_via_split:
        other_label = record.raw_account_label
        other_amount = record.amount
        trace_label = record.raw_split_label
    else:
        if not _is_concrete_split(record.raw_split_label):
            return [first]
        other_label = record.raw_split_label
        other_amount = -record.amount
        trace_label = record.raw_account_label

    if not normalize_alias(other_label):
        return [first]

    counter = replace(record, raw_account_label=other_label, raw_split_label=None, amount=other_amount)
    second = resolve_record(counter, index, type_mappings, sign_rules)
    return [first, replace(second, raw_split_label=trace_label)]
