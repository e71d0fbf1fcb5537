"""Shared pytest fixtures for ledgerrecon tests."""

import logging
import os
import tempfile
from decimal import Decimal
from pathlib import Path

import pytest

from ledgerrecon.database.factories import create_sqlite_store
from ledgerrecon.domain.account import AccountService
from ledgerrecon.domain.category import CategoryService
from ledgerrecon.domain.entities import AccountType, TransactionType
from ledgerrecon.domain.ledger_import import LedgerImportService
from ledgerrecon.domain.net_worth import NetWorthService
from ledgerrecon.domain.transaction import TransactionService

SCOPE = "test-user"


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    # Create a temporary file for the database
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    db = create_sqlite_store(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    # Cleanup
    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop handlers the CLI attaches to streams that CliRunner closes."""
    yield
    logging.getLogger("ledgerrecon").handlers.clear()


@pytest.fixture
def scope():
    return SCOPE


@pytest.fixture
def account_service(temp_db):
    """Create an AccountService with a temporary database."""
    return AccountService(temp_db)


@pytest.fixture
def category_service(temp_db):
    """Create a CategoryService with a temporary database."""
    return CategoryService(temp_db)


@pytest.fixture
def transaction_service(temp_db):
    """Create a TransactionService with a temporary database."""
    return TransactionService(temp_db)


@pytest.fixture
def import_service(temp_db):
    """Create a LedgerImportService with a temporary database."""
    return LedgerImportService(temp_db)


@pytest.fixture
def net_worth_service(temp_db):
    """Create a NetWorthService with a temporary database."""
    return NetWorthService(temp_db)


@pytest.fixture
def sample_accounts(account_service):
    """Checking, credit card and brokerage accounts keyed by short name."""
    ids = {
        "checking": account_service.create_account(
            SCOPE,
            "Chase Checking",
            AccountType.CHECKING,
            starting_balance=Decimal("1000.00"),
            aliases=["Checking"],
        ),
        "visa": account_service.create_account(
            SCOPE,
            "Visa",
            AccountType.CREDIT_CARD,
            starting_balance=Decimal("-1000.00"),
            aliases=["Visa Card"],
        ),
        "brokerage": account_service.create_account(
            SCOPE,
            "Brokerage",
            AccountType.INVESTMENT,
            market_value_override=Decimal("5000.00"),
        ),
    }
    return {key: account_service.get_account(account_id) for key, account_id in ids.items()}


@pytest.fixture
def sample_categories(category_service):
    """Category IDs keyed by path, with aliases matching the ledger fixtures."""
    ids = {}
    ids["Food & Dining"] = category_service.create_category(SCOPE, "Food & Dining", TransactionType.EXPENSE)
    ids["Food & Dining > Groceries"] = category_service.create_category(
        SCOPE, "Groceries", TransactionType.EXPENSE, parent_path="Food & Dining"
    )
    ids["Salary"] = category_service.create_category(SCOPE, "Salary", TransactionType.INCOME)
    ids["Housing"] = category_service.create_category(SCOPE, "Housing", TransactionType.EXPENSE)

    category_service.add_aliases(ids["Food & Dining > Groceries"], ["Groceries"])
    category_service.add_aliases(ids["Salary"], ["Salary"])
    category_service.add_aliases(ids["Housing"], ["Rent"])
    return ids


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()


@pytest.fixture
def fixtures_dir():
    """Return the path to the test fixtures directory."""
    return Path(__file__).parent / "fixtures"
