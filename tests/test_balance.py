"""Tests for running balance recalculation."""

import pytest
from datetime import date
from decimal import Decimal

from ledgerkit.domain.balance import BalanceService
from ledgerkit.domain.errors import NotFoundError, WriteBlockedError


def balances(temp_db, account_id):
    return [(li.amount, li.running_balance) for li in temp_db.list_line_items_for_account(account_id)]


def test_recalculate_orders_by_date_then_intraday_index(temp_db, ledger, make_transaction, balance_service):
    """Running balances follow date order, not insertion order."""
    make_transaction([(ledger.checking, "-30")], title="Later", txn_date=date(2025, 3, 5))
    make_transaction([(ledger.checking, "100")], title="Early", txn_date=date(2025, 3, 1))
    make_transaction([(ledger.checking, "-20")], title="Same day", txn_date=date(2025, 3, 1))

    count = balance_service.recalculate(ledger.checking)

    assert count == 3
    assert balances(temp_db, ledger.checking) == [
        (Decimal("100"), Decimal("100")),
        (Decimal("-20"), Decimal("80")),
        (Decimal("-30"), Decimal("50")),
    ]


def test_recalculate_is_idempotent(temp_db, ledger, make_transaction, balance_service):
    make_transaction([(ledger.checking, "250.10"), (ledger.salary, "-250.10")])
    make_transaction([(ledger.checking, "-12.34"), (ledger.dining, "12.34")], txn_date=date(2025, 2, 11))

    balance_service.recalculate(ledger.checking)
    first = balances(temp_db, ledger.checking)
    balance_service.recalculate(ledger.checking)

    assert balances(temp_db, ledger.checking) == first
    assert first[-1][1] == Decimal("237.76")


def test_recalculate_account_without_line_items(ledger, balance_service):
    assert balance_service.recalculate(ledger.savings) == 0


def test_recalculate_unknown_account(ledger, balance_service):
    with pytest.raises(NotFoundError, match="Account not found: 999"):
        balance_service.recalculate(999)


def test_recalculate_accounts_skips_none(temp_db, ledger, make_transaction, balance_service):
    make_transaction([(ledger.checking, "-40"), (ledger.dining, "40")])

    balance_service.recalculate_accounts([ledger.dining, None, ledger.checking, ledger.dining])

    assert balances(temp_db, ledger.dining) == [(Decimal("40"), Decimal("40"))]
    assert balances(temp_db, ledger.checking) == [(Decimal("-40"), Decimal("-40"))]


@pytest.mark.parametrize("operation", ["recalculate", "recalculate_accounts"])
def test_write_blocked(temp_db, ledger, make_transaction, blocking_guard, operation):
    make_transaction([(ledger.checking, "-40"), (ledger.dining, "40")])
    service = BalanceService(temp_db, write_guard=blocking_guard)

    with pytest.raises(WriteBlockedError):
        if operation == "recalculate":
            service.recalculate(ledger.checking)
        else:
            service.recalculate_accounts([ledger.checking, ledger.dining])

    assert balances(temp_db, ledger.checking) == [(Decimal("-40"), Decimal("0"))]
    assert balances(temp_db, ledger.dining) == [(Decimal("40"), Decimal("0"))]
