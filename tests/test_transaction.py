"""Tests for TransactionService."""

from datetime import datetime, timedelta, UTC
from decimal import Decimal

import pytest

from debtbook.domain.entities import DEFAULT_CURRENCY, TransactionType
from debtbook.domain.errors import NotFoundError, ValidationError


def test_add_transaction(transaction_service, sample_debtor):
    """Test adding a debt with defaults."""
    txn = transaction_service.add_transaction(
        debtor_id=sample_debtor.id,
        type="debt",
        amount=Decimal("100000"),
        product="Rice 50kg",
    )

    assert txn.type is TransactionType.DEBT
    assert txn.amount == Decimal("100000")
    assert txn.currency == DEFAULT_CURRENCY
    assert txn.product == "Rice 50kg"
    assert transaction_service.get_transaction(txn.id) == txn


def test_add_transaction_touches_debtor(ledger, sample_debtor):
    txn = ledger.transactions.add_transaction(sample_debtor.id, TransactionType.DEBT, Decimal(5000))

    debtor = ledger.debtors.get_debtor(sample_debtor.id)
    assert debtor.updated_at >= txn.updated_at
    assert debtor.updated_at >= sample_debtor.updated_at


def test_add_transaction_unknown_debtor(transaction_service):
    with pytest.raises(NotFoundError):
        transaction_service.add_transaction("missing", "debt", Decimal(1))

    assert transaction_service.list_transactions() == []


def test_add_transaction_invalid_type(transaction_service, sample_debtor):
    with pytest.raises(ValidationError, match="Invalid transaction type"):
        transaction_service.add_transaction(sample_debtor.id, "loan", Decimal(1))


def test_add_backdated_transaction(transaction_service, sample_debtor):
    created_at = datetime(2024, 3, 1, tzinfo=UTC)

    txn = transaction_service.add_transaction(
        sample_debtor.id, "payment", Decimal("2500.50"), created_at=created_at
    )

    assert txn.created_at == created_at
    assert txn.updated_at >= txn.created_at
    assert transaction_service.get_transaction(txn.id).amount == Decimal("2500.50")


def test_list_transactions_newest_first(transaction_service, sample_debtor):
    base = datetime(2024, 1, 1, tzinfo=UTC)
    for days in (3, 1, 2):
        transaction_service.add_transaction(
            sample_debtor.id, "debt", Decimal(days), created_at=base + timedelta(days=days)
        )

    amounts = [t.amount for t in transaction_service.list_transactions()]
    assert amounts == [Decimal(3), Decimal(2), Decimal(1)]


def test_update_transaction(ledger, sample_debtor):
    txn = ledger.transactions.add_transaction(sample_debtor.id, "debt", Decimal(100))

    updated = ledger.transactions.update_transaction(txn.id, amount=Decimal(150), type="payment", notes="fixed")

    assert updated.amount == Decimal(150)
    assert updated.type is TransactionType.PAYMENT
    assert updated.notes == "fixed"
    assert updated.debtor_id == txn.debtor_id
    assert updated.updated_at >= txn.updated_at
    assert ledger.summary.get_debtor_balance(sample_debtor.id) == Decimal(-150)


def test_update_transaction_cannot_move_to_other_debtor(transaction_service, sample_debtor):
    txn = transaction_service.add_transaction(sample_debtor.id, "debt", Decimal(100))

    with pytest.raises(ValidationError, match="debtor_id"):
        transaction_service.update_transaction(txn.id, debtor_id="other")


def test_update_missing_transaction(transaction_service):
    with pytest.raises(NotFoundError, match="Transaction missing not found"):
        transaction_service.update_transaction("missing", notes="x")


def test_delete_transaction(ledger, sample_debtor):
    txn = ledger.transactions.add_transaction(sample_debtor.id, "debt", Decimal(100))
    before = ledger.debtors.get_debtor(sample_debtor.id).updated_at

    ledger.transactions.delete_transaction(txn.id)

    assert ledger.transactions.get_transaction(txn.id) is None
    assert ledger.debtors.get_debtor(sample_debtor.id).updated_at >= before


def test_delete_missing_transaction(transaction_service):
    with pytest.raises(NotFoundError):
        transaction_service.delete_transaction("missing")


def test_transactions_in_date_range_is_inclusive(transaction_service, sample_debtor):
    start = datetime(2024, 1, 1, tzinfo=UTC)
    end = datetime(2024, 1, 31, 23, 59, 59, tzinfo=UTC)
    on_start = transaction_service.add_transaction(sample_debtor.id, "debt", Decimal(1), created_at=start)
    on_end = transaction_service.add_transaction(sample_debtor.id, "debt", Decimal(2), created_at=end)
    transaction_service.add_transaction(
        sample_debtor.id, "debt", Decimal(3), created_at=end + timedelta(seconds=1)
    )

    result = transaction_service.get_transactions_in_date_range(start, end)

    assert {t.id for t in result} == {on_start.id, on_end.id}


def test_transactions_in_date_range_accepts_naive_bounds(transaction_service, sample_debtor):
    inside = transaction_service.add_transaction(
        sample_debtor.id, "debt", Decimal(1), created_at=datetime(2024, 1, 15, 12, 0, tzinfo=UTC)
    )
    transaction_service.add_transaction(
        sample_debtor.id, "debt", Decimal(2), created_at=datetime(2024, 2, 1, 0, 0, 1, tzinfo=UTC)
    )

    result = transaction_service.get_transactions_in_date_range(
        datetime(2024, 1, 1), datetime(2024, 2, 1)
    )

    assert [t.id for t in result] == [inside.id]


def test_search_transactions(transaction_service, sample_debtor):
    rice = transaction_service.add_transaction(sample_debtor.id, "debt", Decimal(25000), product="Rice")
    sugar = transaction_service.add_transaction(
        sample_debtor.id, "debt", Decimal(7000), product="Sugar", notes="brown rice too"
    )
    cash = transaction_service.add_transaction(sample_debtor.id, "payment", Decimal(12345))

    assert {t.id for t in transaction_service.search_transactions("RICE")} == {rice.id, sugar.id}
    assert [t.id for t in transaction_service.search_transactions("2345")] == [cash.id]
    assert transaction_service.search_transactions("flour") == []
