"""Shared domain error messages and error types."""


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NoParsableRecordsError(ValidationError):
    """A file produced zero usable records."""

    def __init__(self, filename: str, errors: list | None = None):
        self.filename = filename
        self.errors = list(errors or [])
        message = f"No parsable records in '{filename}'"
        if self.errors:
            message += f" ({len(self.errors)} row error{'s' if len(self.errors) != 1 else ''})"
        super().__init__(message)


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations."""


class PersistenceError(DomainError):
    """The store failed to write a chunk of records."""


def account_not_found(account_id: int) -> str:
    """Return message for missing account."""
    return f"Account {account_id} not found"


def category_not_found(category_id: int) -> str:
    """Return message for missing category by ID."""
    return f"Category {category_id} not found"


def category_path_not_found(path: str) -> str:
    """Return message for missing category by path."""
    return f"Category '{path}' not found"


def import_batch_not_found(batch_id: int) -> str:
    """Return message for missing import batch."""
    return f"Import batch {batch_id} not found"


def duplicate_name(kind: str, name: str) -> str:
    """Return message for a name that already exists in the scope."""
    return f"{kind} with name '{name}' already exists"
