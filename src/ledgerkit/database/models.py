"""SQLAlchemy models for the ledgerkit database."""

from datetime import datetime, UTC
from sqlalchemy import (
    Column,
    Integer,
    String,
    ForeignKey,
    DateTime,
    Date,
    Numeric,
    Boolean,
    Index,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()


def _now() -> datetime:
    return datetime.now(UTC)


class Account(Base):
    """Account model.

    Accounts use single-table inheritance: ``kind`` selects the variant, so a
    lookup against ``Account`` also resolves category and primary rows.
    """

    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    full_name = Column(String, nullable=False)
    account_class = Column(Integer, nullable=False)
    kind = Column(String(16), nullable=False)
    parent_id = Column(Integer, ForeignKey("accounts.id"), nullable=True)
    created_at = Column(DateTime, default=_now, nullable=False)

    __mapper_args__ = {
        "polymorphic_on": kind,
        "polymorphic_identity": "account",
    }

    # Relationships
    parent = relationship("Account", remote_side=[id], backref="children")
    line_items = relationship("LineItem", back_populates="account")
    statements = relationship("Statement", back_populates="account", cascade="all, delete-orphan")


class CategoryAccount(Account):
    """Income or expense category."""

    __mapper_args__ = {"polymorphic_identity": "category"}


class PrimaryAccount(Account):
    """Real-world account (checking, savings, credit card, ...)."""

    __mapper_args__ = {"polymorphic_identity": "primary"}


class Transaction(Base):
    """Transaction model."""

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True)
    date = Column(Date, nullable=False)
    title = Column(String, nullable=False, default="")
    note = Column(String, nullable=True)
    cleared = Column(Boolean, default=False, nullable=False)
    voided = Column(Boolean, default=False, nullable=False)
    currency_code = Column(String(3), nullable=False)
    intraday_sort_index = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=_now, nullable=False)
    modified_at = Column(DateTime, default=_now, nullable=False)

    # Relationships
    line_items = relationship(
        "LineItem",
        back_populates="transaction",
        cascade="all, delete-orphan",
        order_by="LineItem.id",
    )


class LineItem(Base):
    """Line item model. ``account_id`` is NULL for orphaned slots."""

    __tablename__ = "line_items"

    id = Column(Integer, primary_key=True)
    transaction_id = Column(Integer, ForeignKey("transactions.id"), nullable=False)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=True)
    amount = Column(Numeric(14, 2), nullable=False, default=0)
    memo = Column(String, nullable=True)
    running_balance = Column(Numeric(14, 2), nullable=False, default=0)
    cleared = Column(Boolean, default=False, nullable=False)
    statement_id = Column(Integer, ForeignKey("statements.id"), nullable=True)
    created_at = Column(DateTime, default=_now, nullable=False)

    __table_args__ = (
        Index("ix_line_items_account_id", "account_id"),
        Index("ix_line_items_statement_id", "statement_id"),
    )

    # Relationships
    transaction = relationship("Transaction", back_populates="line_items")
    account = relationship("Account", back_populates="line_items")
    statement = relationship("Statement", back_populates="line_items")


class Statement(Base):
    """Reconciliation statement model."""

    __tablename__ = "statements"

    id = Column(Integer, primary_key=True)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    beginning_balance = Column(Numeric(14, 2), nullable=False)
    ending_balance = Column(Numeric(14, 2), nullable=False)
    name = Column(String, nullable=True)
    note = Column(String, nullable=True)
    created_at = Column(DateTime, default=_now, nullable=False)
    modified_at = Column(DateTime, default=_now, nullable=False)

    # Relationships
    account = relationship("Account", back_populates="statements")
    line_items = relationship("LineItem", back_populates="statement", order_by="LineItem.id")


class TransactionTemplate(Base):
    """Transaction template model."""

    __tablename__ = "transaction_templates"

    id = Column(Integer, primary_key=True)
    title = Column(String, nullable=False)
    created_at = Column(DateTime, default=_now, nullable=False)

    # Relationships
    lines = relationship(
        "LineItemTemplate",
        back_populates="template",
        cascade="all, delete-orphan",
        order_by="LineItemTemplate.id",
    )
    import_rules = relationship("ImportRule", back_populates="template", cascade="all, delete-orphan")


class LineItemTemplate(Base):
    """Line of a transaction template."""

    __tablename__ = "line_item_templates"

    id = Column(Integer, primary_key=True)
    template_id = Column(Integer, ForeignKey("transaction_templates.id"), nullable=False)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False)
    amount = Column(Numeric(14, 2), nullable=False, default=0)

    # Relationships
    template = relationship("TransactionTemplate", back_populates="lines")


class ImportRule(Base):
    """Import rule model: a regex over imported descriptions."""

    __tablename__ = "import_rules"

    id = Column(Integer, primary_key=True)
    template_id = Column(Integer, ForeignKey("transaction_templates.id"), nullable=False)
    pattern = Column(String, nullable=False)
    created_at = Column(DateTime, default=_now, nullable=False)

    # Relationships
    template = relationship("TransactionTemplate", back_populates="import_rules")


ACCOUNT_VARIANTS: dict[str, type[Account]] = {
    "account": Account,
    "category": CategoryAccount,
    "primary": PrimaryAccount,
}


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
