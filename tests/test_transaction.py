"""Tests for stored-transaction cleanup and the duplicates commands."""

from dataclasses import replace
from datetime import date
from decimal import Decimal

import pytest
from ledgerrecon.cli.main import cli
from ledgerrecon.domain.deduplication import exact_fingerprint
from ledgerrecon.domain.entities import NewTransaction, TransactionType
from ledgerrecon.domain.errors import ValidationError

from conftest import SCOPE


def stored(temp_db, *rows):
    temp_db.insert_transactions(
        [
            NewTransaction(
                scope=SCOPE,
                date=day,
                amount=Decimal(amount),
                description=description,
                memo=None,
                account_id=None,
                category_id=None,
                transaction_type=TransactionType.EXPENSE,
                raw_account_label=label,
                raw_split_label=None,
                raw_transaction_type_hint=None,
                import_batch_id=None,
            )
            for day, amount, description, label in rows
        ]
    )
    return temp_db.list_transactions(SCOPE)


def test_find_duplicate_groups(temp_db, transaction_service):
    stored(
        temp_db,
        (date(2024, 1, 5), "-20.00", "Netflix", "Streaming"),
        (date(2024, 1, 5), "-20.00", "NETFLIX", "streaming"),
        (date(2024, 1, 5), "-20.00", "Netflix", "Checking"),
        (date(2024, 2, 5), "-20.00", "Netflix", "Streaming"),
    )

    [group] = transaction_service.find_duplicate_groups(SCOPE)

    assert group.date == date(2024, 1, 5)
    assert group.amount == Decimal("20.00")
    assert group.extra_count == 1
    assert group.transactions[0].id > group.transactions[1].id


def test_duplicate_groups_ignore_memo(temp_db, transaction_service):
    template = NewTransaction(
        scope=SCOPE,
        date=date(2024, 1, 5),
        amount=Decimal("-20.00"),
        description=None,
        memo=None,
        account_id=None,
        category_id=None,
        transaction_type=TransactionType.EXPENSE,
        raw_account_label="Streaming",
        raw_split_label=None,
        raw_transaction_type_hint=None,
        import_batch_id=None,
    )
    temp_db.insert_transactions([replace(template, memo="Card 1234"), replace(template, memo="Card 9876")])

    [group] = transaction_service.find_duplicate_groups(SCOPE)

    assert {t.memo for t in group.transactions} == {"Card 1234", "Card 9876"}
    assert group.fingerprint == exact_fingerprint(date(2024, 1, 5), Decimal("-20.00"), None, "Streaming")


def test_no_duplicates(temp_db, transaction_service):
    stored(temp_db, (date(2024, 1, 5), "-20.00", "Netflix", "Streaming"))
    assert transaction_service.find_duplicate_groups(SCOPE) == []


def test_delete_duplicates(temp_db, transaction_service):
    first, second = stored(
        temp_db,
        (date(2024, 1, 5), "-20.00", "Netflix", "Streaming"),
        (date(2024, 1, 5), "-20.00", "Netflix", "Streaming"),
    )

    assert transaction_service.delete_duplicates(SCOPE, [second.id, second.id]) == 1
    assert [t.id for t in transaction_service.list_transactions(SCOPE)] == [first.id]


def test_delete_duplicates_requires_ids(transaction_service):
    with pytest.raises(ValidationError):
        transaction_service.delete_duplicates(SCOPE, [])


def test_duplicates_find_command(cli_runner, temp_db):
    stored(
        temp_db,
        (date(2024, 1, 5), "-20.00", "Netflix", "Streaming"),
        (date(2024, 1, 5), "-20.00", "Netflix", "Streaming"),
    )

    result = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "--scope", SCOPE, "duplicates", "find"])

    assert result.exit_code == 0
    assert "Netflix" in result.output


def test_duplicates_delete_command(cli_runner, temp_db):
    _, second = stored(
        temp_db,
        (date(2024, 1, 5), "-20.00", "Netflix", "Streaming"),
        (date(2024, 1, 5), "-20.00", "Netflix", "Streaming"),
    )

    result = cli_runner.invoke(
        cli,
        ["--db-path", temp_db.database_path, "--scope", SCOPE, "duplicates", "delete", str(second.id), "--yes"],
    )

    assert result.exit_code == 0
    assert len(temp_db.list_transactions(SCOPE)) == 1
