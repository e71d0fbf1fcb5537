"""Account-label classification for general-ledger section names.

Ledger exports name balance-sheet accounts and income/expense categories in
the same column. The rules below guess which is which from the label text.
They are an ordered decision table: the first rule that matches wins, and
each rule carries a tag so callers can report why a label was classified the
way it was.

Keyword heuristics are a known source of misclassification (a category named
"Visa fees" looks like a credit card). The result is only ever a suggestion;
the user's alias mapping is authoritative.
"""

import re
from dataclasses import dataclass
from typing import Optional

from ledgerrecon.domain.entities import AccountType

_ACCOUNT_NUMBER = re.compile(r"^(\d{4})")


@dataclass(frozen=True)
class LabelClassification:
    """Suggested account type for a raw ledger label."""

    tag: str
    account_type: AccountType
    is_asset: bool
    is_liability: bool
    is_income_expense_category: bool


@dataclass(frozen=True)
class LabelRule:
    """One row of the label decision table."""

    tag: str
    account_type: AccountType
    kind: str  # "asset", "liability" or "category"
    keywords: tuple[str, ...] = ()
    number_prefixes: tuple[str, ...] = ()

    def matches(self, label_lower: str, number_prefix: Optional[str]) -> bool:
        if self.number_prefixes:
            return number_prefix is not None and number_prefix in self.number_prefixes
        return any(keyword in label_lower for keyword in self.keywords)

    def classify(self) -> LabelClassification:
        return LabelClassification(
            tag=self.tag,
            account_type=self.account_type,
            is_asset=self.kind == "asset",
            is_liability=self.kind == "liability",
            is_income_expense_category=self.kind == "category",
        )


# Numbered charts of accounts: 1xxx assets, 2xxx liabilities, 3xxx equity,
# 4xxx income, 5xxx-9xxx expenses.
LABEL_RULES: tuple[LabelRule, ...] = (
    LabelRule("number-income", AccountType.OTHER, "category", number_prefixes=("4",)),
    LabelRule("number-expense", AccountType.OTHER, "category", number_prefixes=("5", "6", "7", "8", "9")),
    LabelRule("number-equity", AccountType.OTHER, "category", number_prefixes=("3",)),
    LabelRule(
        "credit-card",
        AccountType.CREDIT_CARD,
        "liability",
        keywords=("credit card", "visa", "mastercard", "amex", "discover", "chase sapphire"),
    ),
    LabelRule("line-of-credit", AccountType.LOAN, "liability", keywords=("heloc", "line of credit", "credit line")),
    LabelRule("loan", AccountType.LOAN, "liability", keywords=("loan",)),
    LabelRule("mortgage", AccountType.MORTGAGE, "liability", keywords=("mortgage",)),
    LabelRule("savings", AccountType.SAVINGS, "asset", keywords=("savings", "money market")),
    LabelRule("checking", AccountType.CHECKING, "asset", keywords=("checking",)),
    LabelRule(
        "retirement",
        AccountType.RETIREMENT,
        "asset",
        keywords=("401k", "ira", "retirement", "pension"),
    ),
    LabelRule(
        "investment",
        AccountType.INVESTMENT,
        "asset",
        keywords=(
            "investment",
            "brokerage",
            "schwab",
            "fidelity",
            "vanguard",
            "ameritrade",
            "morgan stanley",
            "raymond james",
            "crypto",
        ),
    ),
    LabelRule(
        "real-estate",
        AccountType.OTHER,
        "asset",
        keywords=("house", "property", "real estate", "escrow", "prepaid"),
    ),
    LabelRule("other-liability", AccountType.OTHER, "liability", keywords=("payable", "liability", "accrued")),
    LabelRule("number-asset", AccountType.OTHER, "asset", number_prefixes=("1",)),
    LabelRule("number-liability", AccountType.OTHER, "liability", number_prefixes=("2",)),
)

DEFAULT_CLASSIFICATION = LabelClassification(
    tag="default-category",
    account_type=AccountType.OTHER,
    is_asset=False,
    is_liability=False,
    is_income_expense_category=True,
)


def classify_account_label(label: Optional[str]) -> LabelClassification:
    """Suggest an account type for a ledger label.

    Labels that match no balance-sheet rule are treated as income/expense
    categories ("Dining", "Groceries", "Pet expense", ...).
    """
    if not label:
        return DEFAULT_CLASSIFICATION

    label_lower = label.strip().lower()
    match = _ACCOUNT_NUMBER.match(label.strip())
    number_prefix = match.group(1)[0] if match else None

    for rule in LABEL_RULES:
        if rule.matches(label_lower, number_prefix):
            return rule.classify()
    return DEFAULT_CLASSIFICATION
