"""Tests for the ledger import pipeline."""

import logging
from datetime import date
from decimal import Decimal

import pytest

from ledgerrecon.config import ImportSettings
from ledgerrecon.database.sqlalchemy_db import SQLAlchemyLedgerStore
from ledgerrecon.domain.entities import ImportStatus, SourceSchema, TransactionType
from ledgerrecon.domain.errors import NoParsableRecordsError, PersistenceError, ValidationError
from ledgerrecon.domain.ledger_import import LedgerImportService

from conftest import SCOPE


class FailingStore(SQLAlchemyLedgerStore):
    """Store whose Nth insert_transactions call fails."""

    def __init__(self, database_url: str, fail_on_call: int):
        super().__init__(database_url)
        self.fail_on_call = fail_on_call
        self.calls = 0

    def insert_transactions(self, transactions):
        self.calls += 1
        if self.calls == self.fail_on_call:
            raise PersistenceError("Failed to insert transactions: disk full")
        return super().insert_transactions(transactions)


def _legs_by_label(transactions):
    return {txn.raw_account_label: txn for txn in transactions}


class TestGeneralLedgerImport:
    def test_double_entry_legs(self, temp_db, import_service, sample_accounts, sample_categories, fixtures_dir):
        result = import_service.import_file(SCOPE, str(fixtures_dir / "general_ledger.csv"))

        assert result.status == ImportStatus.COMPLETED
        assert result.source_schema == SourceSchema.GENERAL_LEDGER
        assert result.imported == 6
        assert result.merged_rows == 2
        assert result.duplicates_skipped == 0
        assert result.parse_errors == []

        transactions = temp_db.list_transactions(SCOPE)
        checking = [t for t in transactions if t.account_id == sample_accounts["checking"].id]
        assert sorted(t.amount for t in checking) == [Decimal("-300.00"), Decimal("-50.00"), Decimal("2000.00")]
        assert all(t.transaction_type == TransactionType.TRANSFER for t in checking)

        unlinked = _legs_by_label(t for t in transactions if t.account_id is None)
        groceries = unlinked["Groceries"]
        assert groceries.amount == Decimal("-50.00")
        assert groceries.transaction_type == TransactionType.EXPENSE
        assert groceries.category_id == sample_categories["Food & Dining > Groceries"]
        assert groceries.raw_split_label == "Checking"

        salary = unlinked["Salary"]
        assert salary.amount == Decimal("2000.00")
        assert salary.transaction_type == TransactionType.INCOME
        assert salary.category_id == sample_categories["Salary"]

    def test_credit_card_payment_reduces_liability(
        self, temp_db, import_service, account_service, sample_accounts, fixtures_dir
    ):
        import_service.import_file(SCOPE, str(fixtures_dir / "general_ledger.csv"))

        visa_legs = temp_db.list_transactions(SCOPE, account_id=sample_accounts["visa"].id)
        assert [t.amount for t in visa_legs] == [Decimal("-300.00")]

        balances = {b.account.name: b.balance for b in account_service.balances(SCOPE)}
        assert balances["Chase Checking"] == Decimal("2650.00")
        assert balances["Visa"] == Decimal("-700.00")

    def test_linked_legs_never_income_or_expense(self, temp_db, import_service, sample_accounts, fixtures_dir):
        import_service.import_file(SCOPE, str(fixtures_dir / "general_ledger.csv"))

        for txn in temp_db.list_transactions(SCOPE):
            if txn.account_id is not None:
                assert txn.transaction_type == TransactionType.TRANSFER
            else:
                assert txn.transaction_type != TransactionType.TRANSFER

    def test_reimport_is_idempotent(self, temp_db, import_service, sample_accounts, fixtures_dir):
        path = str(fixtures_dir / "general_ledger.csv")
        first = import_service.import_file(SCOPE, path)
        count_after_first = len(temp_db.list_transactions(SCOPE))

        second = import_service.import_file(SCOPE, path)

        assert second.status == ImportStatus.COMPLETED
        assert second.imported == 0
        assert len(temp_db.list_transactions(SCOPE)) == count_after_first
        first_batch = temp_db.get_import_batch(first.batch_id)
        assert second.duplicates_skipped == first_batch.record_count == 3
        assert temp_db.get_import_batch(second.batch_id).record_count == 0

    def test_without_accounts_every_record_is_one_leg(self, temp_db, import_service, fixtures_dir):
        result = import_service.import_file(SCOPE, str(fixtures_dir / "general_ledger.csv"))

        assert result.imported == 3
        assert all(t.account_id is None for t in temp_db.list_transactions(SCOPE))

    def test_discovered_accounts(self, import_service, fixtures_dir):
        result = import_service.import_file(SCOPE, str(fixtures_dir / "general_ledger.csv"))

        names = [a.name for a in result.discovered_accounts]
        assert names == ["Checking", "Visa Card", "Groceries"]
        checking = result.discovered_accounts[0]
        assert checking.is_asset
        assert checking.beginning_balance == Decimal("1000.00")
        assert checking.ending_balance == Decimal("1650.00")
        assert result.discovered_accounts[1].is_liability


class TestFlatImport:
    def test_counts_and_signs(self, temp_db, import_service, sample_categories, fixtures_dir):
        result = import_service.import_file(SCOPE, str(fixtures_dir / "flat_transactions.csv"))

        assert result.status == ImportStatus.COMPLETED
        assert result.imported == 4
        assert result.skipped_rows == 1
        assert [str(e) for e in result.parse_errors] == ["Row 5: Could not parse amount 'not-a-number'"]

        by_label = _legs_by_label(temp_db.list_transactions(SCOPE))
        assert by_label["Dining"].amount == Decimal("-4.50")
        assert by_label["Dining"].transaction_type == TransactionType.EXPENSE
        assert by_label["Salary"].transaction_type == TransactionType.INCOME
        assert by_label["Opening Balance Equity"].transaction_type == TransactionType.TRANSFER
        assert by_label["Rent"].amount == Decimal("-1200.00")
        assert by_label["Rent"].category_id == sample_categories["Housing"]

    def test_ignored_labels_are_counted_not_stored(self, temp_db, import_service, fixtures_dir):
        temp_db.add_ignored_label(SCOPE, "opening balance equity")

        result = import_service.import_file(SCOPE, str(fixtures_dir / "flat_transactions.csv"))

        assert result.ignored_account_records == 1
        assert result.imported == 3
        labels = {t.raw_account_label for t in temp_db.list_transactions(SCOPE)}
        assert "Opening Balance Equity" not in labels

    @pytest.mark.parametrize("ignored_section_first", [True, False])
    def test_ignored_section_order_does_not_matter(self, temp_db, import_service, ignored_section_first):
        checking = temp_db.create_account(SCOPE, "Chase Checking", "checking")
        temp_db.upsert_account_aliases(checking, ["Checking"])
        temp_db.add_ignored_label(SCOPE, "Accounts Receivable")
        sections = [
            "Accounts Receivable,,,,,,,,,\n"
            ",,03/04/2024,Payment,,Client,Invoice 7,Checking,75.00,75.00\n"
            "Total for Accounts Receivable,,,,,,,,75.00,\n",
            "Checking,,,,,,,,,\n"
            ",,03/04/2024,Payment,,Client,Invoice 7,Accounts Receivable,-75.00,-75.00\n"
            "Total for Checking,,,,,,,,-75.00,\n",
        ]
        if not ignored_section_first:
            sections.reverse()
        text = (
            ",Distribution account,Transaction date,Transaction type,Num,Name,"
            "Memo/Description,Split account,Amount,Balance\n" + "".join(sections)
        )

        result = import_service.import_text(SCOPE, text)

        assert result.ignored_account_records == 0
        stored = [(t.raw_account_label, t.account_id, t.amount) for t in temp_db.list_transactions(SCOPE)]
        assert stored == [("Checking", checking, Decimal("-75.00"))]

    def test_entry_with_both_sides_ignored_is_counted(self, temp_db, import_service):
        temp_db.add_ignored_label(SCOPE, "Accounts Receivable")
        temp_db.add_ignored_label(SCOPE, "Undeposited Funds")
        text = (
            ",Distribution account,Transaction date,Transaction type,Num,Name,"
            "Memo/Description,Split account,Amount,Balance\n"
            "Accounts Receivable,,,,,,,,,\n"
            ",,03/04/2024,Payment,,Client,Invoice 7,Undeposited Funds,-75.00,-75.00\n"
        )

        result = import_service.import_text(SCOPE, text)

        assert result.ignored_account_records == 1
        assert temp_db.list_transactions(SCOPE) == []

    def test_type_mapping_overrides_guess(self, temp_db, import_service):
        temp_db.set_type_mapping(SCOPE, "Journal Entry", TransactionType.EXPENSE)
        text = "Date,Transaction Type,Name,Account,Amount\n03/01/2024,Journal Entry,Adj,Misc,25.00\n"

        import_service.import_text(SCOPE, text)

        [txn] = temp_db.list_transactions(SCOPE)
        assert txn.transaction_type == TransactionType.EXPENSE
        assert txn.amount == Decimal("-25.00")

    def test_potential_duplicates_are_flagged_and_kept(self, temp_db, import_service):
        import_service.import_text(
            SCOPE, "Date,Name,Account,Amount\n03/01/2024,Corner Store,Dining,-12.00\n"
        )

        result = import_service.import_text(
            SCOPE, "Date,Name,Account,Amount\n03/01/2024,Corner Market,Dining,-12.00\n"
        )

        assert result.imported == 1
        assert len(result.potential_duplicates) == 1
        assert result.potential_duplicates[0].existing_description == "Corner Store"
        assert result.as_dict()["potentialDuplicates"][0]["description"] == "Corner Market"

    def test_exact_duplicate_ignores_punctuation_and_case(self, temp_db, import_service):
        import_service.import_text(SCOPE, "Date,Name,Account,Amount\n03/02/2024,Amazon,Shopping,-30.00\n")

        result = import_service.import_text(
            SCOPE, "Date,Name,Account,Amount\n03/02/2024,AMAZON.COM,shopping,-30.00\n"
        )

        assert result.duplicates_skipped == 1
        assert result.imported == 0

    def test_spreadsheet_import(self, temp_db, import_service, tmp_path):
        import openpyxl

        workbook = openpyxl.Workbook()
        sheet = workbook.active
        sheet.append(["Transactions by account"])
        sheet.append(["Date", "Transaction Type", "Name", "Account", "Amount"])
        sheet.append([date(2024, 4, 2), "Expense", "Gas Station", "Auto", -40.25])
        sheet.append([date(2024, 4, 3), "Deposit", "Refund", "Auto", 10])
        path = tmp_path / "transactions.xlsx"
        workbook.save(path)

        result = import_service.import_file(SCOPE, str(path))

        assert result.imported == 2
        amounts = sorted(t.amount for t in temp_db.list_transactions(SCOPE))
        assert amounts == [Decimal("-40.25"), Decimal("10.00")]


class TestHoldingsImport:
    def test_holdings(self, temp_db, import_service, fixtures_dir):
        result = import_service.import_file(
            SCOPE, str(fixtures_dir / "holdings.csv"), as_of=date(2024, 3, 31)
        )

        assert result.status == ImportStatus.COMPLETED
        assert result.source_schema == SourceSchema.BROKERAGE_HOLDING
        assert result.imported == 2
        assert result.skipped_rows == 2

        holdings = {h.symbol: h for h in temp_db.list_holdings(SCOPE)}
        assert set(holdings) == {"VTI", "BND"}
        assert holdings["BND"].current_price == Decimal("72.5000")
        assert holdings["VTI"].as_of_date == date(2024, 3, 31)

    def test_negative_quantity_rejected_before_batch(self, temp_db, import_service):
        text = "Symbol,Quantity,Market Value\nVTI,-5,100.00\n"

        with pytest.raises(ValidationError, match="must not be negative"):
            import_service.import_text(SCOPE, text)

        assert temp_db.list_import_batches(SCOPE) == []
        assert temp_db.list_holdings(SCOPE) == []


class TestFailures:
    def test_no_parsable_records(self, temp_db, import_service):
        text = "Date,Name,Account,Amount\nnot a date,Shop,Dining,-5.00\n"

        with pytest.raises(NoParsableRecordsError) as exc_info:
            import_service.import_text(SCOPE, text, filename="bad.csv")

        assert exc_info.value.filename == "bad.csv"
        assert len(exc_info.value.errors) == 1
        assert temp_db.list_import_batches(SCOPE) == []

    def test_missing_file(self, import_service, tmp_path):
        with pytest.raises(ValidationError, match="File not found"):
            import_service.import_file(SCOPE, str(tmp_path / "missing.csv"))

    def test_chunk_failure_marks_batch_failed(self, tmp_path, fixtures_dir, caplog):
        store = FailingStore(f"sqlite:///{tmp_path / 'failing.db'}", fail_on_call=2)
        checking = store.create_account(SCOPE, "Chase Checking", "checking")
        store.upsert_account_aliases(checking, ["Checking"])
        service = LedgerImportService(store, settings=ImportSettings(chunk_size=2))

        with caplog.at_level(logging.ERROR, logger="ledgerrecon"):
            result = service.import_file(SCOPE, str(fixtures_dir / "general_ledger.csv"))

        assert result.status == ImportStatus.FAILED
        assert result.imported == 2
        assert "disk full" in result.error_message

        batch = store.get_import_batch(result.batch_id)
        assert batch.status == ImportStatus.FAILED
        assert "disk full" in batch.error_message
        assert batch.metadata["imported"] == 2
        # Chunks written before the failure stay in place
        assert len(store.list_transactions(SCOPE)) == 2
        assert any("failed" in record.getMessage() for record in caplog.records)
        store.disconnect()

    def test_retry_after_chunk_failure_stores_every_leg(self, tmp_path, fixtures_dir):
        url = f"sqlite:///{tmp_path / 'retry.db'}"
        store = FailingStore(url, fail_on_call=2)
        checking = store.create_account(SCOPE, "Chase Checking", "checking")
        store.upsert_account_aliases(checking, ["Checking"])
        path = str(fixtures_dir / "general_ledger.csv")

        first = LedgerImportService(store, settings=ImportSettings(chunk_size=3)).import_file(SCOPE, path)

        assert first.status == ImportStatus.FAILED
        # Both legs of the first entry went in together
        assert sorted(t.raw_account_label for t in store.list_transactions(SCOPE)) == ["Checking", "Groceries"]
        store.disconnect()

        healthy = SQLAlchemyLedgerStore(url)
        retry = LedgerImportService(healthy, settings=ImportSettings(chunk_size=3)).import_file(SCOPE, path)

        assert retry.status == ImportStatus.COMPLETED
        assert retry.duplicates_skipped == 1
        assert retry.imported == 4
        labels = sorted(t.raw_account_label for t in healthy.list_transactions(SCOPE))
        assert labels == ["Checking", "Checking", "Checking", "Groceries", "Salary", "Visa Card"]
        healthy.disconnect()

    def test_completed_batch_metadata(self, temp_db, import_service, fixtures_dir):
        result = import_service.import_file(SCOPE, str(fixtures_dir / "general_ledger.csv"))

        batch = temp_db.get_import_batch(result.batch_id)
        assert batch.status == ImportStatus.COMPLETED
        assert batch.filename == "general_ledger.csv"
        assert batch.metadata["rowCount"] == 12
        assert batch.metadata["skippedCount"] == 7
        assert batch.metadata["mergedCount"] == 2
        assert batch.metadata["discoveredAccounts"] == 3

    def test_result_payload_keys(self, import_service, fixtures_dir):
        result = import_service.import_file(SCOPE, str(fixtures_dir / "flat_transactions.csv"))

        assert set(result.as_dict()) == {
            "imported",
            "skippedRows",
            "duplicatesSkipped",
            "ignoredAccountRecords",
            "potentialDuplicates",
            "parseErrors",
        }
