"""Import rule domain service."""

import re
from decimal import Decimal
from typing import Optional, Sequence

from ledgerkit.database.base import Database
from ledgerkit.domain.entities import ImportRule, TransactionTemplate
from ledgerkit.domain.errors import NotFoundError, ValidationError, template_not_found
from ledgerkit.logger import get_logger
from ledgerkit.write_guard import WriteGuard, require_write_access

logger = get_logger("import_rule")


def compile_rule_pattern(pattern: str) -> Optional[re.Pattern]:
    """Compile an import rule pattern case-insensitively, or None if invalid."""
    try:
        return re.compile(pattern, re.IGNORECASE)
    except re.error as e:
        logger.warning(f"Skipping invalid import rule pattern '{pattern}': {e}")
        return None


class ImportRuleService:
    """Service for transaction templates and the import rules that use them."""

    def __init__(self, db: Database, write_guard: Optional[WriteGuard] = None):
        """Initialize import rule service.

        Args:
            db: Database instance
            write_guard: Optional guard consulted before every write
        """
        self.db = db
        self.write_guard = write_guard

    def create_template(self, title: str, lines: Sequence[tuple[int, Decimal]]) -> int:
        """Create a transaction template.

        Args:
            title: Template title
            lines: (account_id, amount) pairs

        Returns:
            Template ID

        Raises:
            WriteBlockedError: If writes are currently blocked
            NotFoundError: If an account doesn't exist
            ValidationError: If the title is blank
        """
        if not title or not title.strip():
            raise ValidationError("Template title must not be empty")
        require_write_access(self.write_guard)
        with self.db.write_transaction():
            return self.db.create_transaction_template(title.strip(), list(lines))

    def create_rule(self, template_id: int, pattern: str) -> int:
        """Create an import rule.

        Args:
            template_id: Template the rule applies
            pattern: Regular expression matched against imported descriptions

        Returns:
            Rule ID

        Raises:
            WriteBlockedError: If writes are currently blocked
            NotFoundError: If the template doesn't exist
            ValidationError: If the pattern is blank or doesn't compile
        """
        if not pattern or not pattern.strip():
            raise ValidationError("Rule pattern must not be empty")
        try:
            re.compile(pattern)
        except re.error as e:
            raise ValidationError(f"Invalid rule pattern '{pattern}': {e}")

        require_write_access(self.write_guard)
        with self.db.write_transaction():
            if self.db.get_transaction_template(template_id) is None:
                raise NotFoundError(template_not_found(template_id))
            rule_id = self.db.create_import_rule(template_id, pattern)

        logger.info(f"Created import rule {rule_id} '{pattern}' -> template {template_id}")
        return rule_id

    def get_template(self, template_id: int) -> Optional[TransactionTemplate]:
        """Get template by ID."""
        return self.db.get_transaction_template(template_id)

    def list_rules(self) -> list[ImportRule]:
        """List import rules ordered by pattern."""
        return self.db.list_import_rules()

    def match(self, description: str) -> list[ImportRule]:
        """Return every rule whose pattern matches the description."""
        matches = []
        for rule in self.db.list_import_rules():
            compiled = compile_rule_pattern(rule.pattern)
            if compiled is not None and compiled.search(description):
                matches.append(rule)
        return matches
