"""Mapper functions to convert SQLAlchemy models into domain entities.

The domain layer only ever sees frozen dataclasses; this module is the single
place that knows how the ORM columns line up with them.
"""

from decimal import Decimal

from ledgerrecon.domain import entities as domain
from ledgerrecon.database.models import (
    Account as ORMAccount,
    Category as ORMCategory,
    Holding as ORMHolding,
    ImportBatch as ORMImportBatch,
    NetWorthSnapshot as ORMNetWorthSnapshot,
    Transaction as ORMTransaction,
)


def _decimal(value) -> Decimal:
    return Decimal("0") if value is None else Decimal(str(value))


def account_to_domain(orm_account: ORMAccount) -> domain.Account:
    """Convert SQLAlchemy Account model to domain Account entity."""
    override = orm_account.market_value_override
    return domain.Account(
        id=orm_account.id,
        scope=orm_account.scope,
        name=orm_account.name,
        account_type=domain.AccountType(orm_account.account_type),
        is_active=orm_account.is_active,
        raw_label_aliases=frozenset(a.alias for a in orm_account.aliases),
        market_value_override=None if override is None else _decimal(override),
        starting_balance=_decimal(orm_account.starting_balance),
        starting_balance_date=orm_account.starting_balance_date,
        created_at=orm_account.created_at,
    )


def category_to_domain(orm_category: ORMCategory) -> domain.Category:
    """Convert SQLAlchemy Category model to domain Category entity."""
    return domain.Category(
        id=orm_category.id,
        scope=orm_category.scope,
        name=orm_category.name,
        type=domain.TransactionType(orm_category.category_type),
        parent_id=orm_category.parent_id,
        raw_label_aliases=frozenset(a.alias for a in orm_category.aliases),
        created_at=orm_category.created_at,
    )


def transaction_to_domain(orm_transaction: ORMTransaction) -> domain.StoredTransaction:
    """Convert SQLAlchemy Transaction model to domain StoredTransaction entity."""
    return domain.StoredTransaction(
        id=orm_transaction.id,
        scope=orm_transaction.scope,
        date=orm_transaction.date,
        amount=_decimal(orm_transaction.amount),
        description=orm_transaction.description,
        memo=orm_transaction.memo,
        account_id=orm_transaction.account_id,
        category_id=orm_transaction.category_id,
        transaction_type=domain.TransactionType(orm_transaction.transaction_type),
        raw_account_label=orm_transaction.raw_account_label,
        raw_split_label=orm_transaction.raw_split_label,
        raw_transaction_type_hint=orm_transaction.raw_transaction_type_hint,
        import_batch_id=orm_transaction.import_batch_id,
        created_at=orm_transaction.created_at,
    )


def transaction_to_existing(orm_transaction: ORMTransaction) -> domain.ExistingRecord:
    """Project a stored transaction onto the fields used for fingerprints."""
    return domain.ExistingRecord(
        id=orm_transaction.id,
        date=orm_transaction.date,
        amount=_decimal(orm_transaction.amount),
        description=orm_transaction.description,
        raw_account_label=orm_transaction.raw_account_label,
    )


def holding_to_domain(orm_holding: ORMHolding) -> domain.StoredHolding:
    """Convert SQLAlchemy Holding model to domain StoredHolding entity."""

    def optional(value):
        return None if value is None else _decimal(value)

    return domain.StoredHolding(
        id=orm_holding.id,
        scope=orm_holding.scope,
        symbol=orm_holding.symbol,
        quantity=_decimal(orm_holding.quantity),
        as_of_date=orm_holding.as_of_date,
        name=orm_holding.name,
        cost_basis=optional(orm_holding.cost_basis),
        current_price=optional(orm_holding.current_price),
        current_value=optional(orm_holding.current_value),
        asset_class=orm_holding.asset_class,
        sector=orm_holding.sector,
        import_batch_id=orm_holding.import_batch_id,
    )


def import_batch_to_domain(orm_batch: ORMImportBatch) -> domain.ImportBatch:
    """Convert SQLAlchemy ImportBatch model to domain ImportBatch entity."""
    return domain.ImportBatch(
        id=orm_batch.id,
        scope=orm_batch.scope,
        filename=orm_batch.filename,
        source_schema=domain.SourceSchema(orm_batch.source_schema),
        record_count=orm_batch.record_count,
        status=domain.ImportStatus(orm_batch.status),
        error_message=orm_batch.error_message,
        metadata=dict(orm_batch.batch_metadata or {}),
        created_at=orm_batch.created_at,
    )


def snapshot_to_domain(orm_snapshot: ORMNetWorthSnapshot) -> domain.NetWorthSnapshot:
    """Convert SQLAlchemy NetWorthSnapshot model to domain NetWorthSnapshot entity."""
    return domain.NetWorthSnapshot(
        scope=orm_snapshot.scope,
        snapshot_date=orm_snapshot.snapshot_date,
        buckets=domain.NetWorthBuckets(
            cash=_decimal(orm_snapshot.cash),
            investments=_decimal(orm_snapshot.investments),
            real_estate=_decimal(orm_snapshot.real_estate),
            crypto=_decimal(orm_snapshot.crypto),
            retirement=_decimal(orm_snapshot.retirement),
            liabilities=_decimal(orm_snapshot.liabilities),
        ),
    )
