"""Amount parsing utilities."""

from decimal import Decimal, InvalidOperation
import re

from ledgerkit.domain.errors import ValidationError


def parse_amount(amount_str: str) -> Decimal:
    """Parse a money amount as typed on the command line or a bank statement.

    Currency symbols, thousands separators and whitespace are ignored and an
    amount wrapped in parentheses is negative, so "(1,234.56)" and
    "-$1,234.56" both give Decimal("-1234.56").

    Raises:
        ValidationError: If the string is empty, not a number, or not finite
    """
    if not amount_str or not amount_str.strip():
        raise ValidationError("Empty amount string")

    original = amount_str
    amount_str = amount_str.strip()

    # Parentheses mean negative
    is_negative = False
    if amount_str.startswith("(") and amount_str.endswith(")"):
        is_negative = True
        amount_str = amount_str[1:-1]

    amount_str = re.sub(r"[$€£¥,\s]", "", amount_str)

    try:
        amount = Decimal(amount_str)
    except InvalidOperation:
        raise ValidationError(f"Could not parse amount '{original}'")
    if not amount.is_finite():
        raise ValidationError(f"Could not parse amount '{original}'")
    return -amount if is_negative else amount
