"""Tests for domain entities."""

from dataclasses import FrozenInstanceError
from datetime import date
from decimal import Decimal

import pytest
from ledgerrecon.domain.entities import (
    Account,
    AccountBalance,
    AccountType,
    DiscoveredAccount,
    LedgerRecord,
    NetWorthBuckets,
    ParseResult,
    RowError,
    SourceSchema,
)


def test_ledger_record_is_immutable():
    record = LedgerRecord(
        date=date(2024, 1, 15),
        amount=Decimal("-50.00"),
        description="Whole Foods",
        memo=None,
        raw_account_label="Checking",
        raw_split_label="Groceries",
        raw_transaction_type_hint="Expense",
        source_schema=SourceSchema.GENERAL_LEDGER,
    )
    with pytest.raises(FrozenInstanceError):
        record.amount = Decimal("50.00")


@pytest.mark.parametrize(
    "account_type, liability",
    [
        (AccountType.CREDIT_CARD, True),
        (AccountType.LOAN, True),
        (AccountType.MORTGAGE, True),
        (AccountType.CHECKING, False),
        (AccountType.INVESTMENT, False),
    ],
)
def test_liability_types(account_type, liability):
    account = Account(id=1, scope="u", name="x", account_type=account_type)
    assert account.is_liability is liability


def test_display_balance_prefers_override():
    account = Account(
        id=1, scope="u", name="House", account_type=AccountType.OTHER, market_value_override=Decimal("350000")
    )
    assert AccountBalance(account, Decimal("0")).display_balance == Decimal("350000")


def test_net_worth_buckets():
    buckets = NetWorthBuckets(cash=Decimal("10"), crypto=Decimal("5"), liabilities=Decimal("3"))
    assert buckets.total_assets == Decimal("15")
    assert buckets.net_worth == Decimal("12")


def test_parse_result_usable_count():
    assert ParseResult(schema=SourceSchema.FLAT_TRANSACTION).usable_count == 0


def test_row_error_str():
    assert str(RowError(5, "Could not parse amount 'x'")) == "Row 5: Could not parse amount 'x'"


def test_discovered_account_net_change():
    account = DiscoveredAccount(
        name="Checking",
        suggested_type=AccountType.CHECKING,
        is_asset=True,
        is_liability=False,
        is_income_expense_category=False,
        transaction_count=3,
        total_debits=Decimal("2000"),
        total_credits=Decimal("350"),
    )
    assert account.net_change == Decimal("1650")
