"""Tests for CSV export and import."""

import csv
import io
from dataclasses import replace
from datetime import date, datetime, UTC
from decimal import Decimal

import pytest

from debtbook.domain.csv_exchange import ROW_HEADERS
from debtbook.domain.entities import TransactionType
from debtbook.domain.errors import NotFoundError, ValidationError


def _rows(text):
    return list(csv.reader(io.StringIO(text)))


def test_ledger_csv_has_debtor_column(ledger, sample_debtor):
    ledger.transactions.add_transaction(
        sample_debtor.id,
        "debt",
        Decimal("100000"),
        product="Rice, 50kg",
        created_at=datetime(2024, 5, 2, 14, 0, tzinfo=UTC),
    )

    rows = _rows(ledger.csv.transactions_to_csv(ledger.transactions.list_transactions()))

    assert rows[0] == ["Debtor"] + ROW_HEADERS
    assert rows[1] == ["Ahmed Ali", "2024-05-02", "debt", "100000", "IQD", "Rice, 50kg", "", ""]


def test_ledger_csv_names_unknown_debtors(ledger, sample_debtor):
    txn = ledger.transactions.add_transaction(sample_debtor.id, "debt", Decimal(1))
    orphan = replace(txn, debtor_id="gone")

    rows = _rows(ledger.csv.transactions_to_csv([orphan]))

    assert rows[1][0] == "Unknown"


def test_debtor_statement(ledger, sample_debtor):
    ledger.transactions.add_transaction(sample_debtor.id, "debt", Decimal("100000"))
    ledger.transactions.add_transaction(sample_debtor.id, "payment", Decimal("40000"), payment_method="cash")

    rows = _rows(ledger.csv.debtor_statement_csv(sample_debtor.id))

    assert rows[0] == ["Debtor", "Ahmed Ali"]
    assert rows[3] == ["Current Balance", "60000"]
    assert rows[5] == ROW_HEADERS
    assert [row[1] for row in rows[6:]] == ["debt", "payment"]
    assert rows[7][6] == "cash"


def test_debtor_statement_missing_debtor(ledger):
    with pytest.raises(NotFoundError):
        ledger.csv.debtor_statement_csv("missing")


def test_import_csv(ledger, sample_debtor, tmp_path):
    path = tmp_path / "history.csv"
    path.write_text(
        "Date,Type,Amount,Currency,Product,Notes,Payment Method\n"
        "2024-01-15,debt,\"100,000\",IQD,Rice,,\n"
        "20/01/2024,payment,40000,,,,cash\n"
        "2024-01-21,debt,not-a-number,,,,\n"
        "2024-01-22,debt,0,,,,\n"
        ",,,,,,\n"
        "2024-01-23,Something else,500,USD,Tea,,\n",
        encoding="utf-8",
    )

    count = ledger.csv.import_transactions_csv(str(path), sample_debtor.id)

    assert count == 3
    transactions = ledger.transactions.get_transactions_by_debtor(sample_debtor.id)
    assert [t.created_at.date() for t in transactions] == [date(2024, 1, 15), date(2024, 1, 20), date(2024, 1, 23)]
    assert transactions[1].type is TransactionType.PAYMENT
    assert transactions[1].payment_method == "cash"
    assert transactions[2].type is TransactionType.DEBT
    assert transactions[2].currency == "USD"
    assert ledger.summary.get_debtor_balance(sample_debtor.id) == Decimal("60500")


def test_import_csv_missing_columns(ledger, sample_debtor, tmp_path):
    path = tmp_path / "bad.csv"
    path.write_text("Date,Amount\n2024-01-15,100\n", encoding="utf-8")

    with pytest.raises(ValidationError, match="type"):
        ledger.csv.import_transactions_csv(str(path), sample_debtor.id)


def test_import_csv_bad_date_keeps_nothing(ledger, sample_debtor, tmp_path):
    path = tmp_path / "bad.csv"
    path.write_text("Date,Type,Amount\n2024-01-15,debt,100\nsomeday,debt,200\n", encoding="utf-8")

    with pytest.raises(ValidationError, match="line 3"):
        ledger.csv.import_transactions_csv(str(path), sample_debtor.id)

    assert ledger.transactions.get_transactions_by_debtor(sample_debtor.id) == []


def test_import_csv_missing_file(ledger, sample_debtor, tmp_path):
    with pytest.raises(FileNotFoundError):
        ledger.csv.import_transactions_csv(str(tmp_path / "nope.csv"), sample_debtor.id)


def test_import_csv_missing_debtor(ledger, tmp_path):
    path = tmp_path / "history.csv"
    path.write_text("Date,Type,Amount\n2024-01-15,debt,100\n", encoding="utf-8")

    with pytest.raises(NotFoundError):
        ledger.csv.import_transactions_csv(str(path), "missing")
