"""Net-worth bucketing and daily snapshots.

Each active account lands in exactly one bucket. Routing is an ordered
decision table: the first rule whose account types and name keywords both
match wins. The name keywords are a heuristic ("Crypto Wallet", "Beach
House") and can misroute an account whose name happens to contain one of
them; setting a more specific account type avoids that.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Iterable, Optional

from ledgerrecon.database.base import LedgerStore
from ledgerrecon.domain.account import AccountService
from ledgerrecon.domain.entities import (
    Account,
    AccountBalance,
    AccountType,
    LIABILITY_TYPES,
    NetWorthBuckets,
    NetWorthSnapshot,
)
from ledgerrecon.utils.logging_config import get_logger

logger = get_logger(__name__)


class Bucket(str, Enum):
    CASH = "cash"
    INVESTMENTS = "investments"
    REAL_ESTATE = "real_estate"
    CRYPTO = "crypto"
    RETIREMENT = "retirement"
    LIABILITIES = "liabilities"


@dataclass(frozen=True)
class BucketRule:
    """One row of the bucket decision table.

    An empty account_types set matches every type; an empty keywords tuple
    matches every name.
    """

    tag: str
    bucket: Bucket
    account_types: frozenset[AccountType] = frozenset()
    keywords: tuple[str, ...] = ()

    def matches(self, account: Account) -> bool:
        if self.account_types and account.account_type not in self.account_types:
            return False
        if self.keywords:
            name = account.name.lower()
            return any(keyword in name for keyword in self.keywords)
        return True


BUCKET_RULES: tuple[BucketRule, ...] = (
    BucketRule("liability-type", Bucket.LIABILITIES, frozenset(LIABILITY_TYPES)),
    BucketRule("cash-type", Bucket.CASH, frozenset({AccountType.CHECKING, AccountType.SAVINGS})),
    BucketRule("investment-crypto-name", Bucket.CRYPTO, frozenset({AccountType.INVESTMENT}), ("crypto",)),
    BucketRule("investment-type", Bucket.INVESTMENTS, frozenset({AccountType.INVESTMENT})),
    BucketRule("retirement-type", Bucket.RETIREMENT, frozenset({AccountType.RETIREMENT})),
    BucketRule("crypto-name", Bucket.CRYPTO, keywords=("crypto",)),
    BucketRule("real-estate-name", Bucket.REAL_ESTATE, keywords=("house", "property", "real estate")),
    BucketRule("default", Bucket.INVESTMENTS),
)


def classify_bucket(account: Account) -> BucketRule:
    """Return the first rule that routes the account."""
    for rule in BUCKET_RULES:
        if rule.matches(account):
            return rule
    return BUCKET_RULES[-1]


def aggregate(balances: Iterable[AccountBalance]) -> NetWorthBuckets:
    """Sum active account balances into the six net-worth buckets.

    Liabilities are summed as absolute values.
    """
    totals = {bucket: Decimal("0") for bucket in Bucket}

    for item in balances:
        if not item.account.is_active:
            continue
        bucket = classify_bucket(item.account).bucket
        amount = item.display_balance
        if bucket == Bucket.LIABILITIES:
            amount = abs(amount)
        totals[bucket] += amount

    return NetWorthBuckets(
        cash=totals[Bucket.CASH],
        investments=totals[Bucket.INVESTMENTS],
        real_estate=totals[Bucket.REAL_ESTATE],
        crypto=totals[Bucket.CRYPTO],
        retirement=totals[Bucket.RETIREMENT],
        liabilities=totals[Bucket.LIABILITIES],
    )


class NetWorthService:
    """Service that keeps the daily net-worth snapshot current."""

    def __init__(self, db: LedgerStore):
        """Initialize net-worth service.

        Args:
            db: Ledger store instance
        """
        self.db = db

    def refresh(self, scope: str, today: Optional[date] = None) -> NetWorthSnapshot:
        """Aggregate current balances and upsert today's snapshot.

        Calling this several times on the same day leaves a single row holding
        the latest values.
        """
        balances = AccountService(self.db).balances(scope)
        buckets = aggregate(balances)
        snapshot_date = today or date.today()
        self.db.upsert_net_worth_snapshot(scope, snapshot_date, buckets)
        logger.info("Net-worth snapshot for %s on %s: %s", scope, snapshot_date, buckets.net_worth)
        return NetWorthSnapshot(scope=scope, snapshot_date=snapshot_date, buckets=buckets)

    def history(self, scope: str, limit: Optional[int] = None) -> list[NetWorthSnapshot]:
        """Snapshots ordered by date ascending."""
        return self.db.list_snapshots(scope, limit=limit)
