"""Tests for categories and the category commands."""

import pytest
from ledgerrecon.cli.main import cli
from ledgerrecon.domain.entities import TransactionType
from ledgerrecon.domain.errors import ConflictError, NotFoundError, ValidationError

from conftest import SCOPE


class TestCategoryService:
    def test_categories_are_two_levels(self, category_service, sample_categories):
        with pytest.raises(ValidationError, match="two levels"):
            category_service.create_category(
                SCOPE, "Organic", TransactionType.EXPENSE, parent_path="Food & Dining > Groceries"
            )

    def test_sibling_names_are_unique(self, category_service, sample_categories):
        with pytest.raises(ConflictError):
            category_service.create_category(SCOPE, "Groceries", TransactionType.EXPENSE, parent_path="Food & Dining")

    def test_same_name_under_other_parent(self, category_service, sample_categories):
        category_id = category_service.create_category(
            SCOPE, "Groceries", TransactionType.EXPENSE, parent_path="Housing"
        )
        assert category_service.format_category_path(category_id) == "Housing > Groceries"

    def test_missing_parent(self, category_service):
        with pytest.raises(NotFoundError, match="Nope"):
            category_service.create_category(SCOPE, "Child", TransactionType.EXPENSE, parent_path="Nope")

    def test_format_category_path(self, category_service, sample_categories):
        path = category_service.format_category_path(sample_categories["Food & Dining > Groceries"])
        assert path == "Food & Dining > Groceries"
        assert category_service.format_category_path(999) == ""

    def test_add_aliases_keeps_existing(self, category_service, sample_categories):
        aliases = category_service.add_aliases(sample_categories["Salary"], ["salary", "Payroll"])
        assert aliases == frozenset({"Salary", "Payroll"})


def test_category_list(cli_runner, temp_db, sample_categories):
    result = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "--scope", SCOPE, "category", "list"])

    assert result.exit_code == 0
    assert "Food & Dining (expense" in result.output
    assert "  Groceries (expense" in result.output
    assert "[Salary]" in result.output


def test_category_create_child(cli_runner, temp_db, sample_categories):
    result = cli_runner.invoke(
        cli,
        [
            "--db-path", temp_db.database_path, "--scope", SCOPE,
            "category", "create", "Restaurants", "--parent", "Food & Dining",
        ],
    )

    assert result.exit_code == 0
    assert "Created category 'Restaurants' under 'Food & Dining'" in result.output
    category = temp_db.get_category_by_path(SCOPE, "Food & Dining > Restaurants")
    assert category.type == TransactionType.EXPENSE


def test_category_create_invalid_parent(cli_runner, temp_db):
    result = cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "--scope", SCOPE, "category", "create", "Child", "--parent", "Nope"]
    )

    assert result.exit_code == 1
    assert "Error:" in result.output


def test_category_alias(cli_runner, temp_db, sample_categories):
    result = cli_runner.invoke(
        cli,
        [
            "--db-path", temp_db.database_path, "--scope", SCOPE,
            "category", "alias", "Food & Dining > Groceries", "6100 Groceries",
        ],
    )

    assert result.exit_code == 0
    assert "Food & Dining > Groceries: 6100 Groceries, Groceries" in result.output
