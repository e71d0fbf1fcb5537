"""SQLAlchemy models for the ledgerrecon store."""

from datetime import datetime, UTC
from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()


def utc_now() -> datetime:
    return datetime.now(UTC)


class Account(Base):
    """Tracked balance-sheet account model."""

    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True)
    scope = Column(String, nullable=False, index=True)
    name = Column(String, nullable=False)
    account_type = Column(String, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    market_value_override = Column(Numeric(14, 2), nullable=True)
    starting_balance = Column(Numeric(14, 2), default=0, nullable=False)
    starting_balance_date = Column(Date, nullable=True)
    created_at = Column(DateTime, default=utc_now, nullable=False)

    __table_args__ = (UniqueConstraint("scope", "name", name="uq_account_scope_name"),)

    # Relationships
    aliases = relationship("AccountAlias", back_populates="account", cascade="all, delete-orphan")
    transactions = relationship("Transaction", back_populates="account")


class AccountAlias(Base):
    """Raw ledger label mapped onto an account."""

    __tablename__ = "account_aliases"

    id = Column(Integer, primary_key=True)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False)
    alias = Column(String, nullable=False)

    __table_args__ = (UniqueConstraint("account_id", "alias", name="uq_account_alias"),)

    account = relationship("Account", back_populates="aliases")


class Category(Base):
    """Category model with two-tier hierarchy."""

    __tablename__ = "categories"

    id = Column(Integer, primary_key=True)
    scope = Column(String, nullable=False, index=True)
    name = Column(String, nullable=False)
    category_type = Column(String, nullable=False)
    parent_id = Column(Integer, ForeignKey("categories.id"), nullable=True)
    created_at = Column(DateTime, default=utc_now, nullable=False)

    # Relationships
    parent = relationship("Category", remote_side=[id], backref="children")
    aliases = relationship("CategoryAlias", back_populates="category", cascade="all, delete-orphan")
    transactions = relationship("Transaction", back_populates="category")


class CategoryAlias(Base):
    """Raw ledger label mapped onto a category."""

    __tablename__ = "category_aliases"

    id = Column(Integer, primary_key=True)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False)
    alias = Column(String, nullable=False)

    __table_args__ = (UniqueConstraint("category_id", "alias", name="uq_category_alias"),)

    category = relationship("Category", back_populates="aliases")


class ImportBatch(Base):
    """Import run model."""

    __tablename__ = "import_batches"

    id = Column(Integer, primary_key=True)
    scope = Column(String, nullable=False, index=True)
    filename = Column(String, nullable=False)
    source_schema = Column(String, nullable=False)
    record_count = Column(Integer, default=0, nullable=False)
    status = Column(String, nullable=False)
    error_message = Column(Text, nullable=True)
    # "metadata" is reserved on declarative classes
    batch_metadata = Column("metadata", JSON, nullable=True)
    created_at = Column(DateTime, default=utc_now, nullable=False)

    transactions = relationship("Transaction", back_populates="import_batch")


class Transaction(Base):
    """Transaction model; amount carries the resolved sign."""

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True)
    scope = Column(String, nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)
    amount = Column(Numeric(14, 2), nullable=False)
    description = Column(String, nullable=True)
    memo = Column(String, nullable=True)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=True)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=True)
    transaction_type = Column(String, nullable=False)
    raw_account_label = Column(String, nullable=True)
    raw_split_label = Column(String, nullable=True)
    raw_transaction_type_hint = Column(String, nullable=True)
    import_batch_id = Column(Integer, ForeignKey("import_batches.id"), nullable=True)
    created_at = Column(DateTime, default=utc_now, nullable=False)

    # Relationships
    account = relationship("Account", back_populates="transactions")
    category = relationship("Category", back_populates="transactions")
    import_batch = relationship("ImportBatch", back_populates="transactions")


class Holding(Base):
    """Brokerage position model."""

    __tablename__ = "holdings"

    id = Column(Integer, primary_key=True)
    scope = Column(String, nullable=False, index=True)
    symbol = Column(String, nullable=False)
    name = Column(String, nullable=True)
    quantity = Column(Numeric(18, 6), nullable=False)
    cost_basis = Column(Numeric(14, 2), nullable=True)
    current_price = Column(Numeric(14, 4), nullable=True)
    current_value = Column(Numeric(14, 2), nullable=True)
    asset_class = Column(String, nullable=True)
    sector = Column(String, nullable=True)
    as_of_date = Column(Date, nullable=False)
    import_batch_id = Column(Integer, ForeignKey("import_batches.id"), nullable=True)
    created_at = Column(DateTime, default=utc_now, nullable=False)


class NetWorthSnapshot(Base):
    """One row per scope and day."""

    __tablename__ = "net_worth_snapshots"

    id = Column(Integer, primary_key=True)
    scope = Column(String, nullable=False)
    snapshot_date = Column(Date, nullable=False)
    cash = Column(Numeric(14, 2), nullable=False)
    investments = Column(Numeric(14, 2), nullable=False)
    real_estate = Column(Numeric(14, 2), nullable=False)
    crypto = Column(Numeric(14, 2), nullable=False)
    retirement = Column(Numeric(14, 2), nullable=False)
    liabilities = Column(Numeric(14, 2), nullable=False)
    total_assets = Column(Numeric(14, 2), nullable=False)
    total_liabilities = Column(Numeric(14, 2), nullable=False)
    net_worth = Column(Numeric(14, 2), nullable=False)
    updated_at = Column(DateTime, default=utc_now, nullable=False)

    __table_args__ = (UniqueConstraint("scope", "snapshot_date", name="uq_snapshot_scope_date"),)


class TypeMapping(Base):
    """User override for a raw transaction-type hint."""

    __tablename__ = "type_mappings"

    id = Column(Integer, primary_key=True)
    scope = Column(String, nullable=False)
    type_hint = Column(String, nullable=False)
    transaction_type = Column(String, nullable=False)

    __table_args__ = (UniqueConstraint("scope", "type_hint", name="uq_type_mapping"),)


class IgnoredLabel(Base):
    """Raw label excluded from imports."""

    __tablename__ = "ignored_labels"

    id = Column(Integer, primary_key=True)
    scope = Column(String, nullable=False)
    label = Column(String, nullable=False)

    __table_args__ = (UniqueConstraint("scope", "label", name="uq_ignored_label"),)


class LabelClassification(Base):
    """Inferred income/expense classification of a raw label."""

    __tablename__ = "label_classifications"

    id = Column(Integer, primary_key=True)
    scope = Column(String, nullable=False)
    label = Column(String, nullable=False)
    transaction_type = Column(String, nullable=False)

    __table_args__ = (UniqueConstraint("scope", "label", name="uq_label_classification"),)


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
