"""Category suggestion domain service."""

from collections import Counter

from ledgerkit.database.base import Database
from ledgerkit.domain.entities import Account, CategorySuggestion
from ledgerkit.domain.errors import ValidationError
from ledgerkit.domain.import_rule import compile_rule_pattern
from ledgerkit.logger import get_logger

logger = get_logger("suggestion")

RULE_CONFIDENCE = 0.9
HISTORY_MAX_CONFIDENCE = 0.8
HISTORY_BASE_CONFIDENCE = 0.3


class SuggestionService:
    """Scores categories for a merchant from import rules and history."""

    def __init__(self, db: Database, sample_size: int = 50):
        """Initialize suggestion service.

        Args:
            db: Database instance
            sample_size: Number of recent matching transactions to learn from
        """
        self.db = db
        self.sample_size = sample_size

    def suggest_category(self, merchant_name: str) -> list[CategorySuggestion]:
        """Suggest categories for a merchant name.

        Import rules whose pattern matches the name contribute the categories
        of their template at a fixed confidence. Recent transactions with the
        name in their title contribute the categories they were booked to,
        scored by share of all category line items seen.

        Args:
            merchant_name: Merchant or payee text

        Returns:
            Suggestions, highest confidence first

        Raises:
            ValidationError: If the merchant name is blank
        """
        if not merchant_name or not merchant_name.strip():
            raise ValidationError("Merchant name must not be empty")
        merchant_name = merchant_name.strip()

        suggestions = self._rule_suggestions(merchant_name)
        seen = {s.category_id for s in suggestions}
        for suggestion in self._historical_suggestions(merchant_name):
            if suggestion.category_id not in seen:
                suggestions.append(suggestion)

        suggestions.sort(key=lambda s: (-s.confidence, -s.match_count, s.category_name))
        logger.debug(f"{len(suggestions)} category suggestions for '{merchant_name}'")
        return suggestions

    def _rule_suggestions(self, merchant_name: str) -> list[CategorySuggestion]:
        suggestions = []
        seen = set()
        for rule in self.db.list_import_rules():
            compiled = compile_rule_pattern(rule.pattern)
            if compiled is None or not compiled.search(merchant_name):
                continue
            template = self.db.get_transaction_template(rule.template_id)
            if template is None:
                continue
            for line in template.line_items:
                account = self.db.get_account(line.account_id)
                if account is None or not account.is_category or account.id in seen:
                    continue
                seen.add(account.id)
                suggestions.append(
                    _suggestion(account, RULE_CONFIDENCE, f"Matched import rule: {rule.pattern}", 1)
                )
        return suggestions

    def _historical_suggestions(self, merchant_name: str) -> list[CategorySuggestion]:
        counts: Counter[int] = Counter()
        accounts: dict[int, Account] = {}
        for txn in self.db.search_transactions(merchant_name, limit=self.sample_size):
            for li in txn.line_items:
                if not li.is_category:
                    continue
                counts[li.account_id] += 1
                if li.account_id not in accounts:
                    accounts[li.account_id] = self.db.get_account(li.account_id)

        total = max(1, sum(counts.values()))
        suggestions = []
        for category_id, count in counts.items():
            confidence = min(
                HISTORY_MAX_CONFIDENCE, count / total * HISTORY_MAX_CONFIDENCE + HISTORY_BASE_CONFIDENCE
            )
            suggestions.append(
                _suggestion(
                    accounts[category_id], confidence, f"Historical: {count} matching transactions", count
                )
            )
        return suggestions


def _suggestion(account: Account, confidence: float, reason: str, match_count: int) -> CategorySuggestion:
    return CategorySuggestion(
        category_id=account.id,
        category_name=account.name,
        category_path=account.full_name,
        confidence=confidence,
        reason=reason,
        match_count=match_count,
    )
