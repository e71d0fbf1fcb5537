"""Account domain service."""

from collections import Counter
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from ledgerrecon.database.base import LedgerStore
from ledgerrecon.domain.categorization import normalize_alias
from ledgerrecon.domain.entities import Account, AccountBalance, AccountType
from ledgerrecon.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    account_not_found,
    duplicate_name,
)
from ledgerrecon.domain.sign_normalizer import MULTI_SPLIT_LABEL
from ledgerrecon.domain.similarity import DEFAULT_THRESHOLD, find_similar
from ledgerrecon.utils.logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class UnmappedLabel:
    """A raw label seen on stored transactions that nothing maps yet."""

    label: str
    transaction_count: int


@dataclass(frozen=True)
class AliasSuggestion:
    """An account that probably owns a raw label."""

    account_id: int
    account_name: str
    matched: str
    similarity: float


def account_balance(account: Account, transaction_sum: Decimal, transaction_count: int = 0) -> AccountBalance:
    """Balance of an account from its starting balance and linked transactions.

    Asset balances add the transaction sum. Liability balances subtract it, so
    money owed is negative.
    """
    if account.is_liability:
        balance = account.starting_balance - transaction_sum
    else:
        balance = account.starting_balance + transaction_sum
    return AccountBalance(account=account, balance=balance, transaction_count=transaction_count)


class AccountService:
    """Service for managing accounts and their raw-label aliases."""

    def __init__(self, db: LedgerStore):
        """Initialize account service.

        Args:
            db: Ledger store instance
        """
        self.db = db

    def create_account(
        self,
        scope: str,
        name: str,
        account_type: AccountType,
        starting_balance: Decimal = Decimal("0"),
        starting_balance_date: Optional[date] = None,
        market_value_override: Optional[Decimal] = None,
        is_active: bool = True,
        aliases: Iterable[str] = (),
    ) -> int:
        """Create a new account.

        Args:
            scope: User scope
            name: Account name
            account_type: Account type
            starting_balance: Balance on starting_balance_date
            starting_balance_date: Transactions before this date are ignored for the balance
            market_value_override: Value shown instead of the computed balance
            is_active: Inactive accounts are left out of net worth
            aliases: Raw ledger labels that map to this account

        Returns:
            Account ID

        Raises:
            ValidationError: If the name is empty
            ConflictError: If an account with the same name exists in the scope
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError("Account name must not be empty")
        if self.db.get_account_by_name(scope, name) is not None:
            raise ConflictError(duplicate_name("Account", name))

        account_id = self.db.create_account(
            scope=scope,
            name=name,
            account_type=AccountType(account_type),
            is_active=is_active,
            starting_balance=starting_balance,
            starting_balance_date=starting_balance_date,
            market_value_override=market_value_override,
        )
        aliases = list(aliases)
        if aliases:
            self.add_aliases(account_id, aliases)
        return account_id

    def get_account(self, account_id: int) -> Optional[Account]:
        """Get account by ID.

        Args:
            account_id: Account ID

        Returns:
            Account entity or None if not found
        """
        return self.db.get_account(account_id)

    def get_account_by_name(self, scope: str, name: str) -> Optional[Account]:
        return self.db.get_account_by_name(scope, name)

    def list_accounts(self, scope: str) -> list[Account]:
        """List all accounts of a scope."""
        return self.db.list_accounts(scope)

    def _require(self, account_id: int) -> Account:
        account = self.db.get_account(account_id)
        if account is None:
            raise NotFoundError(account_not_found(account_id))
        return account

    def add_aliases(self, account_id: int, aliases: Iterable[str]) -> frozenset[str]:
        """Map raw labels onto an account.

        Labels already on the account (case-insensitively) are left alone.

        Returns:
            The account's new alias set

        Raises:
            NotFoundError: If the account doesn't exist
            ConflictError: If a label already belongs to another account in the scope
        """
        account = self._require(account_id)
        owners = {
            normalize_alias(alias): other
            for other in self.db.list_accounts(account.scope)
            if other.id != account.id
            for alias in other.raw_label_aliases
        }

        current = list(account.raw_label_aliases)
        present = {normalize_alias(alias) for alias in current}
        for alias in aliases:
            alias = (alias or "").strip()
            key = normalize_alias(alias)
            if not key or key in present:
                continue
            if key in owners:
                raise ConflictError(f"Label '{alias}' is already mapped to account '{owners[key].name}'")
            current.append(alias)
            present.add(key)

        self.db.upsert_account_aliases(account.id, current)
        logger.info("Account %s now has %d aliases", account.name, len(current))
        return frozenset(current)

    def remove_aliases(self, account_id: int, aliases: Iterable[str]) -> frozenset[str]:
        """Unmap raw labels from an account (case-insensitive).

        Returns:
            The account's new alias set
        """
        account = self._require(account_id)
        removed = {normalize_alias(alias) for alias in aliases}
        remaining = [alias for alias in account.raw_label_aliases if normalize_alias(alias) not in removed]
        self.db.upsert_account_aliases(account.id, remaining)
        return frozenset(remaining)

    def unmapped_labels(self, scope: str) -> list[UnmappedLabel]:
        """Raw labels on stored transactions that no account, category or
        ignore entry covers, most frequent first."""
        mapped: set[str] = set()
        for account in self.db.list_accounts(scope):
            mapped.update(normalize_alias(a) for a in account.raw_label_aliases)
        for category in self.db.list_categories(scope):
            mapped.update(normalize_alias(a) for a in category.raw_label_aliases)
        mapped.update(normalize_alias(label) for label in self.db.list_ignored_labels(scope))
        mapped.add(MULTI_SPLIT_LABEL)

        counts: Counter = Counter()
        display: dict[str, str] = {}
        for txn in self.db.list_transactions(scope):
            for label in (txn.raw_account_label, txn.raw_split_label):
                key = normalize_alias(label)
                if not key or key in mapped:
                    continue
                counts[key] += 1
                display.setdefault(key, label.strip())

        return [
            UnmappedLabel(label=display[key], transaction_count=count)
            for key, count in sorted(counts.items(), key=lambda item: (-item[1], item[0]))
        ]

    def suggest_aliases(
        self, scope: str, label: str, threshold: float = DEFAULT_THRESHOLD
    ) -> list[AliasSuggestion]:
        """Suggest accounts for a raw label by comparing it to account names
        and existing aliases.

        Returns:
            At most one suggestion per account, best first
        """
        candidates: dict[str, Account] = {}
        for account in self.db.list_accounts(scope):
            for text in (account.name, *sorted(account.raw_label_aliases)):
                candidates.setdefault(text, account)

        best: dict[int, AliasSuggestion] = {}
        key = normalize_alias(label)
        for text, account in candidates.items():
            if normalize_alias(text) == key and account.id not in best:
                best[account.id] = AliasSuggestion(account.id, account.name, text, 1.0)

        for match in find_similar(label, candidates, threshold):
            account = candidates[match.name]
            current = best.get(account.id)
            if current is None or match.similarity > current.similarity:
                best[account.id] = AliasSuggestion(account.id, account.name, match.name, match.similarity)

        return sorted(best.values(), key=lambda s: (-s.similarity, s.account_name))

    def balances(self, scope: str) -> list[AccountBalance]:
        """Current balance of every account in the scope."""
        result = []
        for account in self.db.list_accounts(scope):
            total, count = self.db.sum_account_transactions(account.id, since=account.starting_balance_date)
            result.append(account_balance(account, total, count))
        return result
