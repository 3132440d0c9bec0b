"""Domain model entities for ledgerkit.

These are pure data classes representing ledger concepts, independent of the
database schema. The SQLAlchemy layer converts its rows into these in
``ledgerkit.database.mappers`` so the engine never touches ORM objects.
"""

from dataclasses import dataclass, field
from datetime import datetime, date
from decimal import Decimal
from enum import Enum, IntEnum
from typing import Optional

# Differences below this are treated as zero when comparing balances.
BALANCE_TOLERANCE = Decimal("0.005")


class AccountClass(IntEnum):
    """Classification codes for accounts."""

    REAL_ESTATE = 2
    CASH = 1000
    CHECKING = 1001
    SAVINGS = 1002
    MONEY_MARKET = 1006
    INVESTMENT = 2000
    RETIREMENT = 2001
    EDUCATION = 2003
    LOAN = 4001
    CREDIT_CARD = 5001
    INCOME = 6000
    EXPENSE = 7000

    @property
    def display_name(self) -> str:
        return self.name.replace("_", " ").title()


CATEGORY_CLASSES = frozenset({AccountClass.INCOME, AccountClass.EXPENSE})


def is_category_class(account_class: Optional[int]) -> bool:
    """Return True if the classification code denotes a category account."""
    return account_class in CATEGORY_CLASSES


class AccountKind(str, Enum):
    """Store variants of the account kind.

    ``ACCOUNT`` is the base variant; legacy rows may carry it for either role.
    """

    ACCOUNT = "account"
    CATEGORY = "category"
    PRIMARY = "primary"

    @classmethod
    def for_class(cls, account_class: int) -> "AccountKind":
        return cls.CATEGORY if is_category_class(account_class) else cls.PRIMARY


class StatementStatus(str, Enum):
    """Reconciliation state of a statement, derived on read."""

    PENDING = "pending"
    PARTIAL = "partial"
    BALANCED = "balanced"


@dataclass(frozen=True)
class Account:
    """Ledger account: a real account or a category."""

    id: int
    name: str
    full_name: str
    account_class: int
    kind: AccountKind
    parent_id: Optional[int]
    created_at: datetime

    @property
    def is_category(self) -> bool:
        return is_category_class(self.account_class)


@dataclass(frozen=True)
class LineItem:
    """One leg of a transaction.

    ``account_name`` and ``account_class`` are copied from the owning account
    when the line item is read, so callers can classify legs without another
    lookup. A line item without an account is an orphaned slot.
    """

    id: int
    transaction_id: int
    account_id: Optional[int]
    account_name: Optional[str]
    account_class: Optional[int]
    amount: Decimal
    memo: Optional[str]
    running_balance: Decimal
    cleared: bool
    statement_id: Optional[int]
    transaction_date: date
    created_at: datetime

    @property
    def is_orphan(self) -> bool:
        return self.account_id is None

    @property
    def is_category(self) -> bool:
        return not self.is_orphan and is_category_class(self.account_class)


@dataclass(frozen=True)
class Transaction:
    """Transaction entity with its line items ordered by id."""

    id: int
    date: date
    title: str
    note: Optional[str]
    cleared: bool
    voided: bool
    currency_code: str
    intraday_sort_index: int
    created_at: datetime
    modified_at: datetime
    line_items: tuple[LineItem, ...] = ()

    @property
    def total(self) -> Decimal:
        return sum((li.amount for li in self.line_items), Decimal("0"))


@dataclass(frozen=True)
class Statement:
    """Bank statement used to reconcile one real account."""

    id: int
    account_id: int
    account_name: str
    start_date: date
    end_date: date
    beginning_balance: Decimal
    ending_balance: Decimal
    name: Optional[str]
    note: Optional[str]
    created_at: datetime
    modified_at: datetime
    line_items: tuple[LineItem, ...] = ()

    @property
    def reconciled_balance(self) -> Decimal:
        return sum((li.amount for li in self.line_items), Decimal("0"))

    @property
    def expected_change(self) -> Decimal:
        return self.ending_balance - self.beginning_balance

    @property
    def difference(self) -> Decimal:
        return self.expected_change - self.reconciled_balance

    @property
    def is_balanced(self) -> bool:
        return abs(self.difference) < BALANCE_TOLERANCE

    @property
    def status(self) -> StatementStatus:
        if self.is_balanced:
            return StatementStatus.BALANCED
        if not self.line_items:
            return StatementStatus.PENDING
        return StatementStatus.PARTIAL


@dataclass(frozen=True)
class LineItemTemplate:
    """Line of a transaction template."""

    account_id: int
    amount: Decimal


@dataclass(frozen=True)
class TransactionTemplate:
    """Reusable transaction shape referenced by import rules."""

    id: int
    title: str
    line_items: tuple[LineItemTemplate, ...] = ()


@dataclass(frozen=True)
class ImportRule:
    """Regex rule mapping imported descriptions to a template."""

    id: int
    template_id: int
    template_title: str
    pattern: str
    created_at: datetime


@dataclass(frozen=True)
class LineItemInput:
    """Requested line item when creating a transaction."""

    account_id: int
    amount: Decimal
    memo: Optional[str] = None


@dataclass(frozen=True)
class RecategorizationResult:
    """Outcome of recategorizing a single transaction."""

    transaction_id: int
    title: str
    old_category_name: Optional[str]
    new_category_name: str


@dataclass(frozen=True)
class BulkRecategorizationResult:
    """Outcome of recategorizing every transaction matching a payee pattern."""

    affected: tuple[RecategorizationResult, ...] = field(default_factory=tuple)

    @property
    def count(self) -> int:
        return len(self.affected)


@dataclass(frozen=True)
class ReviewedTransaction:
    """A transaction as shown when auditing categorizations."""

    id: int
    date: date
    title: str
    note: Optional[str]
    account_name: Optional[str]
    amount: Decimal
    category_id: Optional[int]
    category_name: Optional[str]
    category_path: Optional[str]


@dataclass(frozen=True)
class PayeeCategoryCount:
    """How often one category was used for a payee."""

    category_id: int
    category_name: str
    category_path: str
    count: int


@dataclass(frozen=True)
class PayeeCategorySummary:
    """Category usage of all transactions sharing a title."""

    title: str
    total_transactions: int
    categories: tuple[PayeeCategoryCount, ...]
    uncategorized_count: int


@dataclass(frozen=True)
class CategorySuggestion:
    """Scored category suggestion for a merchant name."""

    category_id: int
    category_name: str
    category_path: str
    confidence: float
    reason: str
    match_count: int
