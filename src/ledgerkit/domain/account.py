"""Account domain service."""

from typing import Optional

from ledgerkit.database.base import Database
from ledgerkit.domain.entities import Account as AccountEntity, AccountClass, is_category_class
from ledgerkit.domain.errors import (
    NotFoundError,
    ValidationError,
    account_not_found,
    category_not_found,
    not_a_category,
)
from ledgerkit.logger import get_logger
from ledgerkit.write_guard import WriteGuard, require_write_access

logger = get_logger("account")

PATH_SEPARATOR = " > "


class AccountService:
    """Service for managing accounts and the category tree."""

    def __init__(self, db: Database, write_guard: Optional[WriteGuard] = None):
        """Initialize account service.

        Args:
            db: Database instance
            write_guard: Optional guard consulted before every write
        """
        self.db = db
        self.write_guard = write_guard

    def create_account(
        self, name: str, account_class: int, parent_id: Optional[int] = None
    ) -> int:
        """Create a new account or category.

        Args:
            name: Account name (without parent path)
            account_class: AccountClass code
            parent_id: Optional parent category ID (categories only)

        Returns:
            Account ID

        Raises:
            WriteBlockedError: If writes are currently blocked
            NotFoundError: If the parent doesn't exist
            ValidationError: If the name is blank or taken, the class is unknown,
                or the parent is not a category
        """
        name = name.strip() if name else ""
        if not name:
            raise ValidationError("Account name must not be empty")
        if PATH_SEPARATOR.strip() in name:
            raise ValidationError(f"Account name must not contain '{PATH_SEPARATOR.strip()}'")
        try:
            account_class = AccountClass(account_class)
        except ValueError:
            raise ValidationError(f"Unknown account class: {account_class}")

        require_write_access(self.write_guard)

        with self.db.write_transaction():
            full_name = name
            if parent_id is not None:
                parent = self.db.get_account(parent_id)
                if parent is None:
                    raise NotFoundError(category_not_found(parent_id))
                if not parent.is_category:
                    raise ValidationError(not_a_category(parent_id, parent.full_name))
                if not is_category_class(account_class):
                    raise ValidationError("Only categories can have a parent")
                full_name = f"{parent.full_name}{PATH_SEPARATOR}{name}"
                siblings = self.db.list_child_accounts(parent_id)
            else:
                siblings = [acc for acc in self.db.list_accounts() if acc.parent_id is None]

            # Check if an account with the same name exists at this level
            for acc in siblings:
                if acc.name == name:
                    raise ValidationError(f"Account with name '{full_name}' already exists")

            account_id = self.db.create_account(
                name=name, account_class=account_class, full_name=full_name, parent_id=parent_id
            )

        logger.info(f"Created {account_class.display_name} account '{full_name}' ({account_id})")
        return account_id

    def get_account(self, account_id: int) -> Optional[AccountEntity]:
        """Get account by ID.

        Args:
            account_id: Account ID

        Returns:
            Account entity or None if not found
        """
        return self.db.get_account(account_id)

    def get_account_by_name(self, name: str) -> Optional[AccountEntity]:
        """Get account by full path, or by name when that name is unique."""
        return self.db.get_account_by_name(name)

    def list_accounts(self, categories_only: bool = False, real_only: bool = False) -> list[AccountEntity]:
        """List accounts.

        Args:
            categories_only: Only income and expense categories
            real_only: Only real (non-category) accounts

        Returns:
            List of account entities ordered by full name
        """
        if categories_only and real_only:
            raise ValidationError("Cannot combine categories_only and real_only")
        accounts = self.db.list_accounts()
        if categories_only:
            return [acc for acc in accounts if acc.is_category]
        if real_only:
            return [acc for acc in accounts if not acc.is_category]
        return accounts

    def category_path(self, account_id: int) -> str:
        """Get the full path for an account by walking its parents.

        Args:
            account_id: Account ID

        Returns:
            Full path (e.g., "Food & Dining > Groceries")

        Raises:
            NotFoundError: If the account doesn't exist
            ValidationError: If the parent chain contains a cycle
        """
        account = self.db.get_account(account_id)
        if account is None:
            raise NotFoundError(account_not_found(account_id))

        path_parts = [account.name]
        seen = {account.id}
        current_parent_id = account.parent_id

        while current_parent_id is not None:
            if current_parent_id in seen:
                raise ValidationError(f"Category hierarchy of account {account_id} contains a cycle")
            seen.add(current_parent_id)
            parent = self.db.get_account(current_parent_id)
            if parent is None:
                break
            path_parts.append(parent.name)
            current_parent_id = parent.parent_id

        return PATH_SEPARATOR.join(reversed(path_parts))

    def move_category(self, category_id: int, parent_id: Optional[int]) -> None:
        """Move a category under another parent (or to the top level).

        Full names of the category and its whole subtree are recomputed.

        Args:
            category_id: Category to move
            parent_id: New parent category ID, or None for top level

        Raises:
            WriteBlockedError: If writes are currently blocked
            NotFoundError: If either category doesn't exist
            ValidationError: If either is not a category or the move creates a cycle
        """
        require_write_access(self.write_guard)

        with self.db.write_transaction():
            category = self.db.get_account(category_id)
            if category is None:
                raise NotFoundError(category_not_found(category_id))
            if not category.is_category:
                raise ValidationError(not_a_category(category_id, category.full_name))

            prefix = ""
            if parent_id is not None:
                parent = self.db.get_account(parent_id)
                if parent is None:
                    raise NotFoundError(category_not_found(parent_id))
                if not parent.is_category:
                    raise ValidationError(not_a_category(parent_id, parent.full_name))
                # The new parent must not sit inside the moved subtree
                ancestor = parent
                while ancestor is not None:
                    if ancestor.id == category_id:
                        raise ValidationError(
                            f"Cannot move '{category.full_name}' under its own descendant"
                        )
                    ancestor = (
                        self.db.get_account(ancestor.parent_id)
                        if ancestor.parent_id is not None
                        else None
                    )
                prefix = f"{parent.full_name}{PATH_SEPARATOR}"

            for sibling in (
                self.db.list_child_accounts(parent_id)
                if parent_id is not None
                else [acc for acc in self.db.list_accounts() if acc.parent_id is None]
            ):
                if sibling.id != category_id and sibling.name == category.name:
                    raise ValidationError(f"Account with name '{prefix}{category.name}' already exists")

            self.db.set_account_parent(category_id, parent_id, f"{prefix}{category.name}")
            self._rename_subtree(category_id, f"{prefix}{category.name}")

        logger.info(f"Moved category {category_id} to '{prefix}{category.name}'")

    def _rename_subtree(self, account_id: int, full_name: str) -> None:
        for child in self.db.list_child_accounts(account_id):
            child_name = f"{full_name}{PATH_SEPARATOR}{child.name}"
            self.db.set_account_parent(child.id, account_id, child_name)
            self._rename_subtree(child.id, child_name)
