"""Shared pytest fixtures for debtbook tests."""

import os
import tempfile

import pytest

from debtbook.database.factories import create_sqlite_store
from debtbook.domain.ledger import Ledger
from debtbook.domain.settings import SYNC_ENABLED
from debtbook.sync.sqlalchemy_remote import create_remote_store


@pytest.fixture
def temp_store():
    """Create a temporary local store for testing."""
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    store = create_sqlite_store(database_path=db_path)
    store.connect()
    store.initialize_schema()

    yield store

    store.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def ledger(temp_store):
    """Create a Ledger around the temporary store, with sync disabled."""
    return Ledger(temp_store)


@pytest.fixture
def sync_ledger(ledger):
    """Ledger with syncEnabled set, so mutations are queued in the outbox."""
    ledger.settings.set(SYNC_ENABLED, True)
    return ledger


@pytest.fixture
def make_ledger(tmp_path):
    """Factory for extra ledgers on their own store, e.g. a second device."""
    stores = []

    def factory(name: str, sync_enabled: bool = True) -> Ledger:
        store = create_sqlite_store(database_path=str(tmp_path / f"{name}.db"))
        store.connect()
        store.initialize_schema()
        stores.append(store)
        device = Ledger(store)
        device.settings.set(SYNC_ENABLED, sync_enabled)
        return device

    yield factory

    for store in stores:
        store.disconnect()


@pytest.fixture
def debtor_service(ledger):
    return ledger.debtors


@pytest.fixture
def transaction_service(ledger):
    return ledger.transactions


@pytest.fixture
def sample_debtor(debtor_service):
    """Create a sample debtor for testing."""
    return debtor_service.add_debtor(name="Ahmed Ali", phone="07701234567", address="Erbil")


@pytest.fixture
def remote_store():
    """Create a temporary SQLite-backed remote store."""
    fd, db_path = tempfile.mkstemp(suffix=".remote.db")
    os.close(fd)

    remote = create_remote_store(f"sqlite:///{db_path}")

    yield remote

    remote.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


class FakeScheduler:
    """Records scheduled callbacks instead of starting timers."""

    class Handle:
        def __init__(self, delay, callback):
            self.delay = delay
            self.callback = callback
            self.cancelled = False

        def cancel(self):
            self.cancelled = True

    def __init__(self):
        self.handles = []

    def __call__(self, delay, callback):
        handle = self.Handle(delay, callback)
        self.handles.append(handle)
        return handle

    @property
    def active(self):
        return [handle for handle in self.handles if not handle.cancelled]

    def run_all(self):
        for handle in self.active:
            handle.cancelled = True
            handle.callback()


@pytest.fixture
def scheduler():
    return FakeScheduler()


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
