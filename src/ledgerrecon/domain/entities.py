"""Domain model entities for ledgerrecon.

These are pure data classes representing business concepts, independent of
database schema. The store converts its rows into these entities, so the
import pipeline only ever works with immutable values.
"""

from dataclasses import dataclass, field
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Any, Optional


class SourceSchema(str, Enum):
    """Export families the record parser understands."""

    GENERAL_LEDGER = "general_ledger"
    FLAT_TRANSACTION = "flat_transaction"
    BROKERAGE_HOLDING = "brokerage_holding"


class AccountType(str, Enum):
    """Balance-sheet account types."""

    CHECKING = "checking"
    SAVINGS = "savings"
    CREDIT_CARD = "credit_card"
    INVESTMENT = "investment"
    RETIREMENT = "retirement"
    LOAN = "loan"
    MORTGAGE = "mortgage"
    OTHER = "other"

    @property
    def is_liability(self) -> bool:
        return self in LIABILITY_TYPES


LIABILITY_TYPES = frozenset({AccountType.CREDIT_CARD, AccountType.LOAN, AccountType.MORTGAGE})


class TransactionType(str, Enum):
    """Classification of a stored transaction."""

    INCOME = "income"
    EXPENSE = "expense"
    TRANSFER = "transfer"


class ImportStatus(str, Enum):
    """Lifecycle states of an import batch."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class Account:
    """Tracked balance-sheet account."""

    id: int
    scope: str
    name: str
    account_type: AccountType
    is_active: bool = True
    raw_label_aliases: frozenset[str] = frozenset()
    market_value_override: Optional[Decimal] = None
    starting_balance: Decimal = Decimal("0")
    starting_balance_date: Optional[date] = None
    created_at: Optional[datetime] = None

    @property
    def is_liability(self) -> bool:
        return self.account_type.is_liability


@dataclass(frozen=True)
class Category:
    """Income/expense/transfer category in a two-tier tree."""

    id: int
    scope: str
    name: str
    type: TransactionType
    parent_id: Optional[int] = None
    raw_label_aliases: frozenset[str] = frozenset()
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class LedgerRecord:
    """One parsed line item, with the ledger-native amount sign."""

    date: date
    amount: Decimal
    description: str
    memo: Optional[str]
    raw_account_label: Optional[str]
    raw_split_label: Optional[str]
    raw_transaction_type_hint: Optional[str]
    source_schema: SourceSchema
    type_guess: TransactionType = TransactionType.EXPENSE
    reference_number: Optional[str] = None
    payee_name: Optional[str] = None
    line_number: Optional[int] = None


@dataclass(frozen=True)
class HoldingRecord:
    """One parsed brokerage position."""

    symbol: str
    quantity: Decimal
    as_of_date: date
    name: Optional[str] = None
    cost_basis: Optional[Decimal] = None
    current_price: Optional[Decimal] = None
    current_value: Optional[Decimal] = None
    asset_class: Optional[str] = None
    sector: Optional[str] = None
    line_number: Optional[int] = None


@dataclass(frozen=True)
class RowError:
    """Row-level parse problem; collected, never fatal on its own."""

    line: int
    reason: str

    def __str__(self) -> str:
        return f"Row {self.line}: {self.reason}"


@dataclass(frozen=True)
class DiscoveredAccount:
    """Summary of one general-ledger section."""

    name: str
    suggested_type: AccountType
    is_asset: bool
    is_liability: bool
    is_income_expense_category: bool
    transaction_count: int
    total_debits: Decimal
    total_credits: Decimal
    beginning_balance: Optional[Decimal] = None
    ending_balance: Optional[Decimal] = None

    @property
    def net_change(self) -> Decimal:
        return self.total_debits - self.total_credits


@dataclass(frozen=True)
class ParseResult:
    """Output of the record parser for one file."""

    schema: SourceSchema
    records: list[LedgerRecord] = field(default_factory=list)
    holdings: list[HoldingRecord] = field(default_factory=list)
    errors: list[RowError] = field(default_factory=list)
    row_count: int = 0
    skipped_count: int = 0
    merged_count: int = 0
    discovered_accounts: list[DiscoveredAccount] = field(default_factory=list)

    @property
    def usable_count(self) -> int:
        return len(self.records) + len(self.holdings)


@dataclass(frozen=True)
class ResolvedRecord:
    """A ledger record after account linkage and sign normalization."""

    record: LedgerRecord
    amount: Decimal
    transaction_type: TransactionType
    account_id: Optional[int] = None
    linked_via_split: bool = False
    raw_account_label: Optional[str] = None
    raw_split_label: Optional[str] = None

    @property
    def is_linked(self) -> bool:
        return self.account_id is not None


@dataclass(frozen=True)
class NewTransaction:
    """Transaction ready to be inserted by the store."""

    scope: str
    date: date
    amount: Decimal
    description: str
    memo: Optional[str]
    account_id: Optional[int]
    category_id: Optional[int]
    transaction_type: TransactionType
    raw_account_label: Optional[str]
    raw_split_label: Optional[str]
    raw_transaction_type_hint: Optional[str]
    import_batch_id: Optional[int]


@dataclass(frozen=True)
class StoredTransaction:
    """Persisted transaction with its resolved sign."""

    id: int
    scope: str
    date: date
    amount: Decimal
    description: Optional[str]
    memo: Optional[str]
    account_id: Optional[int]
    category_id: Optional[int]
    transaction_type: TransactionType
    raw_account_label: Optional[str]
    raw_split_label: Optional[str]
    raw_transaction_type_hint: Optional[str]
    import_batch_id: Optional[int]
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class StoredHolding:
    """Persisted brokerage position."""

    id: int
    scope: str
    symbol: str
    quantity: Decimal
    as_of_date: date
    name: Optional[str]
    cost_basis: Optional[Decimal]
    current_price: Optional[Decimal]
    current_value: Optional[Decimal]
    asset_class: Optional[str]
    sector: Optional[str]
    import_batch_id: Optional[int]


@dataclass(frozen=True)
class ExistingRecord:
    """Projection of a stored transaction used for fingerprinting."""

    id: int
    date: date
    amount: Decimal
    description: Optional[str]
    raw_account_label: Optional[str]


@dataclass(frozen=True)
class ImportBatch:
    """One import run."""

    id: int
    scope: str
    filename: str
    source_schema: SourceSchema
    record_count: int
    status: ImportStatus
    error_message: Optional[str] = None
    metadata: dict[str, Any] = field(default_factory=dict)
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class NetWorthBuckets:
    """Bucketed balances for one point in time."""

    cash: Decimal = Decimal("0")
    investments: Decimal = Decimal("0")
    real_estate: Decimal = Decimal("0")
    crypto: Decimal = Decimal("0")
    retirement: Decimal = Decimal("0")
    liabilities: Decimal = Decimal("0")

    @property
    def total_assets(self) -> Decimal:
        return self.cash + self.investments + self.real_estate + self.crypto + self.retirement

    @property
    def net_worth(self) -> Decimal:
        return self.total_assets - self.liabilities


@dataclass(frozen=True)
class NetWorthSnapshot:
    """Persisted daily net-worth row."""

    scope: str
    snapshot_date: date
    buckets: NetWorthBuckets

    @property
    def total_assets(self) -> Decimal:
        return self.buckets.total_assets

    @property
    def total_liabilities(self) -> Decimal:
        return self.buckets.liabilities

    @property
    def net_worth(self) -> Decimal:
        return self.buckets.net_worth


@dataclass(frozen=True)
class AccountBalance:
    """An account with its computed balance."""

    account: Account
    balance: Decimal
    transaction_count: int = 0

    @property
    def display_balance(self) -> Decimal:
        if self.account.market_value_override is not None:
            return self.account.market_value_override
        return self.balance
