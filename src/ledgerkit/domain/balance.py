"""Running balance domain service."""

from decimal import Decimal
from typing import Iterable, Optional

from ledgerkit.database.base import Database
from ledgerkit.domain.errors import NotFoundError, account_not_found
from ledgerkit.logger import get_logger
from ledgerkit.write_guard import WriteGuard, require_write_access

logger = get_logger("balance")


class BalanceService:
    """Service for recomputing per-account running balances."""

    def __init__(self, db: Database, write_guard: Optional[WriteGuard] = None):
        """Initialize balance service.

        Args:
            db: Database instance
            write_guard: Optional guard consulted before every write
        """
        self.db = db
        self.write_guard = write_guard

    def recalculate(self, account_id: int) -> int:
        """Recompute running balances for every line item of an account.

        Line items are walked by transaction date, intra-day index, then line
        item ID; each receives the cumulative sum up to and including itself.

        Args:
            account_id: Account ID

        Returns:
            Number of line items rewritten

        Raises:
            WriteBlockedError: If writes are currently blocked
            NotFoundError: If the account doesn't exist
        """
        require_write_access(self.write_guard)

        with self.db.write_transaction():
            if self.db.get_account(account_id) is None:
                raise NotFoundError(account_not_found(account_id))

            line_items = self.db.list_line_items_for_account(account_id)
            if not line_items:
                return 0

            running = Decimal("0")
            balances = {}
            for li in line_items:
                running += li.amount
                balances[li.id] = running
            self.db.set_running_balances(balances)

        logger.info(f"Recalculated {len(balances)} running balances for account {account_id}")
        return len(balances)

    def recalculate_accounts(self, account_ids: Iterable[Optional[int]]) -> None:
        """Recalculate each distinct account, one write transaction each.

        Args:
            account_ids: Account IDs; None entries are ignored
        """
        for account_id in sorted({aid for aid in account_ids if aid is not None}):
            self.recalculate(account_id)
