"""Tests for the PostgreSQL repository, with the transaction/cursor mocked."""

from contextlib import contextmanager
from datetime import datetime
from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest

from models.obligation import Frequency
from repositories.obligation_repo import ObligationRepository
from tests.conftest import make_obligation

ROW = {
    "id": "ob1", "title": "Rent", "amount": Decimal("800.00"), "currency": "EUR",
    "due_at": datetime(2026, 4, 1, 9, 0), "frequency": "monthly",
    "notification_handle": "reminder-1", "notes": None,
    "created_at": datetime(2026, 1, 1, 8, 0),
}


@pytest.fixture
def cursor():
    cur = MagicMock()

    @contextmanager
    def fake_transaction():
        yield cur

    with patch("repositories.obligation_repo.transaction", fake_transaction):
        yield cur


def test_get_maps_row(cursor):
    cursor.fetchone.return_value = ROW

    ob = ObligationRepository().get("ob1")

    assert ob.frequency is Frequency.MONTHLY
    assert ob.amount == Decimal("800.00")
    assert ob.notification_handle == "reminder-1"
    assert cursor.execute.call_args.args[1] == ("ob1",)


def test_get_missing_returns_none(cursor):
    cursor.fetchone.return_value = None
    assert ObligationRepository().get("nope") is None


def test_list_all_orders_by_due(cursor):
    cursor.fetchall.return_value = [ROW]
    obligations = ObligationRepository().list_all()
    assert [o.id for o in obligations] == ["ob1"]
    assert "ORDER BY due_at ASC" in cursor.execute.call_args.args[0]


def test_upsert_writes_mutable_fields_on_conflict(cursor):
    cursor.fetchone.return_value = {"created_at": datetime(2026, 3, 1)}
    ob = make_obligation(id="ob9", created_at=None, notification_handle="h1")

    ObligationRepository().upsert(ob)

    sql, params = cursor.execute.call_args.args
    assert "ON CONFLICT (id) DO UPDATE" in sql
    assert params[0] == "ob9"
    assert params[5] == "monthly"
    assert params[6] == "h1"
    assert ob.created_at == datetime(2026, 3, 1)


def test_upsert_failure_is_reraised(cursor):
    cursor.execute.side_effect = RuntimeError("connection lost")
    with pytest.raises(RuntimeError):
        ObligationRepository().upsert(make_obligation())
