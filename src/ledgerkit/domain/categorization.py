"""Recategorization domain service."""

from collections import Counter
from datetime import date
from decimal import Decimal
from typing import NamedTuple, Optional, Sequence

from ledgerkit.database.base import Database
from ledgerkit.domain.balance import BalanceService
from ledgerkit.domain.entities import (
    Account,
    BulkRecategorizationResult,
    LineItem,
    PayeeCategoryCount,
    PayeeCategorySummary,
    RecategorizationResult,
    ReviewedTransaction,
    Transaction,
)
from ledgerkit.domain.errors import (
    NotFoundError,
    ValidationError,
    account_not_found,
    category_not_found,
    not_a_category,
    transaction_not_found,
)
from ledgerkit.logger import get_logger
from ledgerkit.write_guard import WriteGuard, require_write_access

logger = get_logger("categorization")


class LineItemPartition(NamedTuple):
    """A transaction's line items split by role."""

    category: Optional[LineItem]
    primary: Optional[LineItem]
    orphans: list[LineItem]


def partition_line_items(line_items: Sequence[LineItem]) -> LineItemPartition:
    """Split line items (in ID order) into category, primary and orphaned slots.

    The category line item is the first whose account is income or expense,
    the primary line item the first other one with an account. Line items
    without an account are orphans.
    """
    category = None
    primary = None
    orphans = []
    for li in sorted(line_items, key=lambda item: item.id):
        if li.is_orphan:
            orphans.append(li)
        elif li.is_category:
            if category is None:
                category = li
        elif primary is None:
            primary = li
    return LineItemPartition(category, primary, orphans)


class CategorizationService:
    """Service for reassigning the category of transactions."""

    def __init__(
        self,
        db: Database,
        write_guard: Optional[WriteGuard] = None,
        balance_service: Optional[BalanceService] = None,
    ):
        """Initialize categorization service.

        Args:
            db: Database instance
            write_guard: Optional guard consulted before every write
            balance_service: Balance service used after mutations
        """
        self.db = db
        self.write_guard = write_guard
        self.balance_service = balance_service or BalanceService(db, write_guard)

    def _get_category(self, category_id: int) -> Account:
        category = self.db.get_account(category_id)
        if category is None:
            raise NotFoundError(category_not_found(category_id))
        if not category.is_category:
            raise ValidationError(not_a_category(category_id, category.full_name))
        return category

    def recategorize(self, transaction_id: int, category_id: int) -> RecategorizationResult:
        """Move a transaction to another category.

        Repairs orphaned line items on the way: the existing category slot (or
        the first orphan) is reused and remaining orphans are deleted. A new
        line item is created only when neither exists.

        Args:
            transaction_id: Transaction ID
            category_id: Target category account ID

        Returns:
            RecategorizationResult

        Raises:
            WriteBlockedError: If writes are currently blocked
            NotFoundError: If the transaction or category doesn't exist
            ValidationError: If the target is not a category or the transaction has no line items
        """
        require_write_access(self.write_guard)

        with self.db.write_transaction():
            result, old_category_id = self._recategorize_in_transaction(transaction_id, category_id)

        logger.info(
            f"Recategorized transaction {transaction_id}: "
            f"{result.old_category_name or '(none)'} -> {result.new_category_name}"
        )
        self.balance_service.recalculate_accounts([old_category_id, category_id])
        return result

    def _recategorize_in_transaction(
        self, transaction_id: int, category_id: int
    ) -> tuple[RecategorizationResult, Optional[int]]:
        txn = self.db.get_transaction(transaction_id)
        if txn is None:
            raise NotFoundError(transaction_not_found(transaction_id))
        category = self._get_category(category_id)
        if not txn.line_items:
            raise ValidationError(f"Transaction {transaction_id} has no line items")

        parts = partition_line_items(txn.line_items)
        old_category_name = None
        old_category_id = None

        if parts.category is not None:
            slot = parts.category
            old_category_name = slot.account_name
            old_category_id = slot.account_id
            removed = parts.orphans
        elif parts.orphans:
            slot = parts.orphans[0]
            removed = parts.orphans[1:]
        else:
            slot = None
            removed = []

        for orphan in removed:
            logger.debug(f"Deleting orphaned line item {orphan.id} of transaction {transaction_id}")
            self.db.delete_line_item(orphan.id)

        # The slot takes whatever amount balances the line items that remain
        dropped = {li.id for li in removed}
        if slot is not None:
            dropped.add(slot.id)
        others = sum(
            (li.amount for li in txn.line_items if li.id not in dropped),
            Decimal("0"),
        )
        amount = -others

        if slot is not None:
            self.db.set_line_item_account(slot.id, category.id)
            if slot.amount != amount:
                self.db.set_line_item_amount(slot.id, amount)
        else:
            self.db.create_line_item(transaction_id, category.id, amount)

        self.db.touch_transaction(transaction_id)

        result = RecategorizationResult(
            transaction_id=transaction_id,
            title=txn.title,
            old_category_name=old_category_name,
            new_category_name=category.name,
        )
        return result, old_category_id

    def bulk_recategorize(
        self,
        payee_pattern: str,
        category_id: int,
        dry_run: bool = False,
        uncategorized_only: bool = False,
    ) -> BulkRecategorizationResult:
        """Recategorize every transaction whose title contains a payee pattern.

        Args:
            payee_pattern: Case-insensitive substring matched against titles
            category_id: Target category account ID
            dry_run: If True, report what would change without writing
            uncategorized_only: Skip transactions that already have a category

        Returns:
            BulkRecategorizationResult, most recent transaction first

        Raises:
            WriteBlockedError: If writes are blocked (live runs only)
            NotFoundError: If the category doesn't exist
            ValidationError: If the pattern is blank or the target is not a category
        """
        if not payee_pattern or not payee_pattern.strip():
            raise ValidationError("Payee pattern must not be empty")
        category = self._get_category(category_id)

        candidates = self._bulk_candidates(payee_pattern, uncategorized_only)

        if dry_run:
            affected = []
            for txn in candidates:
                parts = partition_line_items(txn.line_items)
                affected.append(
                    RecategorizationResult(
                        transaction_id=txn.id,
                        title=txn.title,
                        old_category_name=parts.category.account_name if parts.category else None,
                        new_category_name=category.name,
                    )
                )
            logger.info(f"Dry run: {len(affected)} transactions match '{payee_pattern}'")
            return BulkRecategorizationResult(affected=tuple(affected))

        require_write_access(self.write_guard)

        affected = []
        touched = {category_id}
        for txn in candidates:
            with self.db.write_transaction():
                result, old_category_id = self._recategorize_in_transaction(txn.id, category_id)
            affected.append(result)
            touched.add(old_category_id)

        self.balance_service.recalculate_accounts(touched)
        logger.info(
            f"Recategorized {len(affected)} transactions matching '{payee_pattern}' "
            f"to {category.full_name}"
        )
        return BulkRecategorizationResult(affected=tuple(affected))

    def _bulk_candidates(self, payee_pattern: str, uncategorized_only: bool) -> list[Transaction]:
        candidates = []
        for txn in self.db.search_transactions(payee_pattern.strip()):
            if not txn.line_items:
                logger.debug(f"Skipping transaction {txn.id}: no line items")
                continue
            if uncategorized_only and partition_line_items(txn.line_items).category is not None:
                continue
            candidates.append(txn)
        return candidates

    def get_uncategorized(
        self,
        account_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        limit: int = 50,
        exclude_transfers: bool = True,
    ) -> list[Transaction]:
        """List transactions that have no category line item.

        Args:
            account_id: Only transactions touching this account
            start_date: Optional start date filter (inclusive)
            end_date: Optional end date filter (inclusive)
            limit: Maximum number of transactions to return
            exclude_transfers: Skip two-leg transactions between real accounts

        Returns:
            List of transactions, most recent first
        """
        uncategorized = []
        for txn in self.db.list_transactions(
            start_date=start_date, end_date=end_date, account_id=account_id
        ):
            parts = partition_line_items(txn.line_items)
            if parts.category is not None or parts.primary is None:
                continue
            if exclude_transfers and self._is_transfer(txn):
                continue
            uncategorized.append(txn)
            if len(uncategorized) >= limit:
                break
        return uncategorized

    @staticmethod
    def _is_transfer(txn: Transaction) -> bool:
        return len(txn.line_items) == 2 and all(
            not li.is_orphan and not li.is_category for li in txn.line_items
        )

    def review_categorizations(
        self,
        account_id: Optional[int] = None,
        category_id: Optional[int] = None,
        payee_pattern: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        limit: Optional[int] = None,
    ) -> list[ReviewedTransaction]:
        """List transactions with their primary account, amount and category.

        Args:
            account_id: Only transactions touching this account
            category_id: Only transactions currently in this category
            payee_pattern: Case-insensitive substring of the title
            start_date: Optional start date filter (inclusive)
            end_date: Optional end date filter (inclusive)
            limit: Maximum number of transactions to return

        Returns:
            List of reviewed transactions, most recent first

        Raises:
            NotFoundError: If the account or category doesn't exist
            ValidationError: If the category is not a category or the pattern is blank
        """
        self._check_account(account_id)
        if category_id is not None:
            self._get_category(category_id)
        needle = None
        if payee_pattern is not None:
            if not payee_pattern.strip():
                raise ValidationError("Payee pattern must not be empty")
            needle = payee_pattern.strip().casefold()

        paths: dict[int, Account] = {}
        reviewed = []
        for txn in self.db.list_transactions(
            start_date=start_date, end_date=end_date, account_id=account_id
        ):
            if needle is not None and needle not in txn.title.casefold():
                continue
            parts = partition_line_items(txn.line_items)
            if category_id is not None and (
                parts.category is None or parts.category.account_id != category_id
            ):
                continue

            category = None
            if parts.category is not None:
                category = self._cached_account(parts.category.account_id, paths)
            reviewed.append(
                ReviewedTransaction(
                    id=txn.id,
                    date=txn.date,
                    title=txn.title,
                    note=txn.note,
                    account_name=parts.primary.account_name if parts.primary else None,
                    amount=parts.primary.amount if parts.primary else Decimal("0"),
                    category_id=category.id if category else None,
                    category_name=category.name if category else None,
                    category_path=category.full_name if category else None,
                )
            )
            if limit is not None and len(reviewed) >= limit:
                break
        return reviewed

    def payee_category_summary(
        self,
        account_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        min_transactions: int = 1,
    ) -> list[PayeeCategorySummary]:
        """Group transactions by title and count the categories used for each.

        A category counts once per transaction even when it appears on
        several line items.

        Args:
            account_id: Only transactions touching this account
            start_date: Optional start date filter (inclusive)
            end_date: Optional end date filter (inclusive)
            min_transactions: Skip payees with fewer transactions

        Returns:
            Summaries ordered by transaction count (descending), then title
        """
        if min_transactions < 1:
            raise ValidationError("Minimum transaction count must be at least 1")
        self._check_account(account_id)

        totals: Counter[str] = Counter()
        uncategorized: Counter[str] = Counter()
        usage: dict[str, Counter[int]] = {}
        for txn in self.db.list_transactions(
            start_date=start_date, end_date=end_date, account_id=account_id
        ):
            totals[txn.title] += 1
            category_ids = {li.account_id for li in txn.line_items if li.is_category}
            if not category_ids:
                uncategorized[txn.title] += 1
            usage.setdefault(txn.title, Counter()).update(category_ids)

        paths: dict[int, Account] = {}
        summaries = []
        for title, total in totals.items():
            if total < min_transactions:
                continue
            counts = []
            for cat_id, count in usage[title].items():
                account = self._cached_account(cat_id, paths)
                counts.append(
                    PayeeCategoryCount(
                        category_id=cat_id,
                        category_name=account.name,
                        category_path=account.full_name,
                        count=count,
                    )
                )
            counts.sort(key=lambda c: (-c.count, c.category_path))
            summaries.append(
                PayeeCategorySummary(
                    title=title,
                    total_transactions=total,
                    categories=tuple(counts),
                    uncategorized_count=uncategorized[title],
                )
            )
        summaries.sort(key=lambda s: (-s.total_transactions, s.title))
        return summaries

    def _check_account(self, account_id: Optional[int]) -> None:
        if account_id is not None and self.db.get_account(account_id) is None:
            raise NotFoundError(account_not_found(account_id))

    def _cached_account(self, account_id: int, cache: dict[int, Account]) -> Account:
        if account_id not in cache:
            cache[account_id] = self.db.get_account(account_id)
        return cache[account_id]
