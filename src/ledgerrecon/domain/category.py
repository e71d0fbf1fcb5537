"""Category domain service."""

from typing import Iterable, Optional

from ledgerrecon.database.base import LedgerStore
from ledgerrecon.domain.categorization import normalize_alias
from ledgerrecon.domain.entities import Category, TransactionType
from ledgerrecon.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    category_not_found,
    category_path_not_found,
    duplicate_name,
)


class CategoryService:
    """Service for managing categories."""

    def __init__(self, db: LedgerStore):
        """Initialize category service.

        Args:
            db: Ledger store instance
        """
        self.db = db

    def create_category(
        self,
        scope: str,
        name: str,
        category_type: TransactionType,
        parent_path: Optional[str] = None,
    ) -> int:
        """Create a category.

        Args:
            scope: User scope
            name: Category name
            category_type: income, expense or transfer
            parent_path: Optional parent category name (e.g., "Food & Dining")

        Returns:
            Category ID

        Raises:
            NotFoundError: If parent category doesn't exist
            ValidationError: If the parent is itself a subcategory
            ConflictError: If a sibling with the same name exists
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError("Category name must not be empty")

        parent_id = None
        if parent_path is not None:
            parent = self.db.get_category_by_path(scope, parent_path)
            if parent is None:
                raise NotFoundError(category_path_not_found(parent_path))
            if parent.parent_id is not None:
                raise ValidationError("Categories are limited to two levels")
            parent_id = parent.id

        for existing in self.db.list_categories(scope):
            if existing.parent_id == parent_id and existing.name == name:
                raise ConflictError(duplicate_name("Category", name))

        return self.db.create_category(
            scope=scope, name=name, category_type=TransactionType(category_type), parent_id=parent_id
        )

    def get_category(self, category_id: int) -> Optional[Category]:
        """Get category by ID.

        Args:
            category_id: Category ID

        Returns:
            Category entity or None if not found
        """
        return self.db.get_category(category_id)

    def get_category_by_path(self, scope: str, path: str) -> Optional[Category]:
        """Get category by path.

        Args:
            scope: User scope
            path: Category path (e.g., "Food & Dining > Groceries")

        Returns:
            Category entity or None if not found
        """
        return self.db.get_category_by_path(scope, path)

    def list_categories(self, scope: str) -> list[Category]:
        """List all categories of a scope."""
        return self.db.list_categories(scope)

    def add_aliases(self, category_id: int, aliases: Iterable[str]) -> frozenset[str]:
        """Map raw labels onto a category.

        Returns:
            The category's new alias set

        Raises:
            NotFoundError: If the category doesn't exist
        """
        category = self.db.get_category(category_id)
        if category is None:
            raise NotFoundError(category_not_found(category_id))

        current = list(category.raw_label_aliases)
        present = {normalize_alias(alias) for alias in current}
        for alias in aliases:
            alias = (alias or "").strip()
            key = normalize_alias(alias)
            if key and key not in present:
                current.append(alias)
                present.add(key)

        self.db.upsert_category_aliases(category.id, current)
        return frozenset(current)

    def format_category_path(self, category_id: int) -> str:
        """Get full path for a category.

        Args:
            category_id: Category ID

        Returns:
            Full category path (e.g., "Food & Dining > Groceries")
        """
        cat = self.get_category(category_id)
        if cat is None:
            return ""

        path_parts = [cat.name]
        current_parent_id = cat.parent_id

        while current_parent_id is not None:
            parent = self.get_category(current_parent_id)
            if parent is None:
                break
            path_parts.append(parent.name)
            current_parent_id = parent.parent_id

        return " > ".join(reversed(path_parts))
