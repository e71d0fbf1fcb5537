"""Tests for the ledger store returning domain models."""

from datetime import date
from decimal import Decimal

import pytest

from ledgerrecon.domain import entities
from ledgerrecon.domain.entities import (
    AccountType,
    HoldingRecord,
    ImportStatus,
    NetWorthBuckets,
    NewTransaction,
    SourceSchema,
    TransactionType,
)
from ledgerrecon.domain.errors import ConflictError, NotFoundError

from conftest import SCOPE


def new_transaction(batch_id=None, **overrides):
    values = dict(
        scope=SCOPE,
        date=date(2024, 1, 15),
        amount=Decimal("-12.50"),
        description="Coffee",
        memo=None,
        account_id=None,
        category_id=None,
        transaction_type=TransactionType.EXPENSE,
        raw_account_label="Dining",
        raw_split_label="Checking",
        raw_transaction_type_hint="Expense",
        import_batch_id=batch_id,
    )
    values.update(overrides)
    return NewTransaction(**values)


class TestAccounts:
    def test_get_account_returns_domain_model(self, temp_db):
        account_id = temp_db.create_account(
            scope=SCOPE,
            name="Checking",
            account_type=AccountType.CHECKING,
            starting_balance=Decimal("10.00"),
        )

        account = temp_db.get_account(account_id)

        assert isinstance(account, entities.Account)
        assert account.account_type == AccountType.CHECKING
        assert account.starting_balance == Decimal("10.00")
        assert account.raw_label_aliases == frozenset()
        assert account.created_at is not None

    def test_accounts_are_scoped(self, temp_db):
        temp_db.create_account(scope=SCOPE, name="Checking", account_type=AccountType.CHECKING)
        temp_db.create_account(scope="someone-else", name="Checking", account_type=AccountType.CHECKING)

        assert [a.name for a in temp_db.list_accounts(SCOPE)] == ["Checking"]
        assert temp_db.get_account_by_name("nobody", "Checking") is None

    def test_upsert_aliases_replaces_set(self, temp_db):
        account_id = temp_db.create_account(scope=SCOPE, name="Visa", account_type=AccountType.CREDIT_CARD)

        temp_db.upsert_account_aliases(account_id, ["Visa Card", "VISA 1234"])
        temp_db.upsert_account_aliases(account_id, ["Visa Card", " Visa Card ", ""])

        assert temp_db.get_account(account_id).raw_label_aliases == frozenset({"Visa Card"})

    def test_upsert_aliases_unknown_account(self, temp_db):
        with pytest.raises(NotFoundError):
            temp_db.upsert_account_aliases(999, ["x"])


class TestCategories:
    def test_get_category_by_path(self, temp_db):
        parent = temp_db.create_category(SCOPE, "Food & Dining", TransactionType.EXPENSE)
        child = temp_db.create_category(SCOPE, "Groceries", TransactionType.EXPENSE, parent_id=parent)

        category = temp_db.get_category_by_path(SCOPE, "Food & Dining > Groceries")

        assert isinstance(category, entities.Category)
        assert category.id == child
        assert category.parent_id == parent
        assert category.type == TransactionType.EXPENSE
        assert temp_db.get_category_by_path(SCOPE, "Groceries") is None


class TestTransactions:
    def test_insert_and_list(self, temp_db):
        assert temp_db.insert_transactions([new_transaction(), new_transaction(amount=Decimal("3.00"))]) == 2

        transactions = temp_db.list_transactions(SCOPE)

        assert all(isinstance(t, entities.StoredTransaction) for t in transactions)
        assert [t.amount for t in transactions] == [Decimal("-12.50"), Decimal("3.00")]
        assert transactions[0].raw_split_label == "Checking"

    def test_find_existing_fingerprints_uses_date_window(self, temp_db):
        temp_db.insert_transactions(
            [
                new_transaction(date=date(2024, 1, 1)),
                new_transaction(date=date(2024, 1, 15)),
                new_transaction(date=date(2024, 2, 1)),
            ]
        )

        existing = temp_db.find_existing_fingerprints(SCOPE, date(2024, 1, 10), date(2024, 1, 31))

        assert [e.date for e in existing] == [date(2024, 1, 15)]
        assert isinstance(existing[0], entities.ExistingRecord)

    def test_filters(self, temp_db):
        account_id = temp_db.create_account(scope=SCOPE, name="Checking", account_type=AccountType.CHECKING)
        temp_db.insert_transactions([new_transaction(), new_transaction(account_id=account_id)])

        assert len(temp_db.list_transactions(SCOPE, unlinked=True)) == 1
        assert len(temp_db.list_transactions(SCOPE, account_id=account_id)) == 1
        assert len(temp_db.list_transactions(SCOPE, uncategorized=True)) == 2

    def test_update_transaction_only_touches_given_fields(self, temp_db):
        temp_db.insert_transactions([new_transaction()])
        [txn] = temp_db.list_transactions(SCOPE)

        temp_db.update_transaction(txn.id, transaction_type=TransactionType.TRANSFER)

        [updated] = temp_db.list_transactions(SCOPE)
        assert updated.transaction_type == TransactionType.TRANSFER
        assert updated.amount == txn.amount

    def test_delete_is_scoped(self, temp_db):
        temp_db.insert_transactions([new_transaction(), new_transaction(scope="other")])
        ids = [t.id for t in temp_db.list_transactions(SCOPE) + temp_db.list_transactions("other")]

        assert temp_db.delete_transactions(SCOPE, ids) == 1
        assert len(temp_db.list_transactions("other")) == 1

    def test_sum_account_transactions(self, temp_db):
        account_id = temp_db.create_account(scope=SCOPE, name="Checking", account_type=AccountType.CHECKING)
        temp_db.insert_transactions(
            [
                new_transaction(account_id=account_id, amount=Decimal("100.00"), date=date(2024, 1, 1)),
                new_transaction(account_id=account_id, amount=Decimal("-40.00"), date=date(2024, 1, 20)),
            ]
        )

        assert temp_db.sum_account_transactions(account_id) == (Decimal("60.00"), 2)
        assert temp_db.sum_account_transactions(account_id, since=date(2024, 1, 10)) == (Decimal("-40.00"), 1)


class TestImportBatches:
    def test_batch_lifecycle(self, temp_db):
        batch_id = temp_db.create_import_batch(
            SCOPE, "ledger.csv", SourceSchema.GENERAL_LEDGER, ImportStatus.PROCESSING, record_count=3
        )

        temp_db.update_import_batch(batch_id, status=ImportStatus.COMPLETED, metadata={"rowCount": 12})

        batch = temp_db.get_import_batch(batch_id)
        assert isinstance(batch, entities.ImportBatch)
        assert batch.status == ImportStatus.COMPLETED
        assert batch.record_count == 3
        assert batch.metadata == {"rowCount": 12}

    def test_terminal_batches_are_final(self, temp_db):
        batch_id = temp_db.create_import_batch(SCOPE, "ledger.csv", SourceSchema.GENERAL_LEDGER)
        temp_db.update_import_batch(batch_id, status=ImportStatus.FAILED, error_message="disk full")

        with pytest.raises(ConflictError):
            temp_db.update_import_batch(batch_id, status=ImportStatus.COMPLETED)
        assert temp_db.get_import_batch(batch_id).error_message == "disk full"

    def test_update_unknown_batch(self, temp_db):
        with pytest.raises(NotFoundError):
            temp_db.update_import_batch(42, status=ImportStatus.COMPLETED)


class TestHoldingsAndSnapshots:
    def test_insert_holdings(self, temp_db):
        holdings = [
            HoldingRecord(symbol="VTI", quantity=Decimal("10"), as_of_date=date(2024, 3, 31), current_price=Decimal("250")),
        ]

        assert temp_db.insert_holdings(SCOPE, holdings, None) == 1

        [stored] = temp_db.list_holdings(SCOPE)
        assert isinstance(stored, entities.StoredHolding)
        assert stored.quantity == Decimal("10")
        assert stored.cost_basis is None

    def test_snapshot_upsert(self, temp_db):
        day = date(2024, 3, 31)
        temp_db.upsert_net_worth_snapshot(SCOPE, day, NetWorthBuckets(cash=Decimal("100")))
        temp_db.upsert_net_worth_snapshot(SCOPE, day, NetWorthBuckets(cash=Decimal("80"), liabilities=Decimal("30")))

        [snapshot] = temp_db.list_snapshots(SCOPE)
        assert snapshot.buckets.cash == Decimal("80")
        assert snapshot.net_worth == Decimal("50")


class TestMappings:
    def test_type_mappings_are_case_insensitive(self, temp_db):
        temp_db.set_type_mapping(SCOPE, " Deposit ", TransactionType.INCOME)
        temp_db.set_type_mapping(SCOPE, "DEPOSIT", TransactionType.TRANSFER)

        assert temp_db.list_type_mappings(SCOPE) == {"deposit": TransactionType.TRANSFER}

    def test_ignored_labels(self, temp_db):
        temp_db.add_ignored_label(SCOPE, "Opening Balance Equity")
        temp_db.add_ignored_label(SCOPE, "Opening Balance Equity")

        assert temp_db.list_ignored_labels(SCOPE) == ["Opening Balance Equity"]
        assert temp_db.remove_ignored_label(SCOPE, "Opening Balance Equity") is True
        assert temp_db.remove_ignored_label(SCOPE, "Opening Balance Equity") is False

    def test_label_classifications(self, temp_db):
        temp_db.upsert_label_classifications(SCOPE, {"Payroll": TransactionType.INCOME})
        temp_db.upsert_label_classifications(SCOPE, {"Payroll": TransactionType.EXPENSE, "Fees": TransactionType.EXPENSE})

        assert temp_db.list_label_classifications(SCOPE) == {
            "Fees": TransactionType.EXPENSE,
            "Payroll": TransactionType.EXPENSE,
        }
