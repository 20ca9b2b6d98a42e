"""Pytest configuration and fixtures: in-memory store, recording gateway, fixed clock."""

import asyncio
import dataclasses
import itertools
from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from models.obligation import Frequency, Obligation, ObligationDraft
from notifications.gateway import NotificationGateway
from repositories.obligation_repo import ObligationStore
from services.currency_service import CurrencyResolver
from services.scheduling_service import SchedulingService
from utils.errors import GatewayError

NOW = datetime(2026, 3, 15, 12, 0)


class FixedClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class InMemoryStore(ObligationStore):
    """Dict-backed store that hands out copies, like a real database would."""

    def __init__(self, journal: list | None = None):
        self.rows: dict[str, Obligation] = {}
        self.journal = journal if journal is not None else []
        self.fail_writes = False

    def list_all(self):
        return sorted((dataclasses.replace(o) for o in self.rows.values()), key=lambda o: o.due_at)

    def get(self, obligation_id):
        row = self.rows.get(obligation_id)
        return dataclasses.replace(row) if row else None

    def upsert(self, obligation):
        if self.fail_writes:
            raise RuntimeError("disk full")
        self.journal.append(("upsert", obligation.id))
        self.rows[obligation.id] = dataclasses.replace(obligation)

    def delete(self, obligation_id):
        self.journal.append(("delete", obligation_id))
        self.rows.pop(obligation_id, None)

    def snapshot(self):
        return {k: dataclasses.asdict(v) for k, v in self.rows.items()}


class FakeGateway(NotificationGateway):
    """Records every schedule/cancel call and tracks which handles are live."""

    def __init__(self, journal: list | None = None):
        self.journal = journal if journal is not None else []
        self.scheduled: list[tuple] = []
        self.cancelled: list[str] = []
        self.live: set[str] = set()
        self.callbacks: list = []
        self.fail_schedule = False
        self.fail_cancel = False
        self.delay = 0.0
        self._ids = itertools.count(1)

    async def schedule(self, content, trigger):
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail_schedule:
            raise GatewayError("Notifications not allowed")
        handle = f"h{next(self._ids)}"
        self.scheduled.append((handle, content, trigger))
        self.live.add(handle)
        self.journal.append(("schedule", handle))
        return handle

    async def cancel(self, handle):
        self.journal.append(("cancel", handle))
        self.cancelled.append(handle)
        if self.fail_cancel:
            raise GatewayError("cancel failed")
        self.live.discard(handle)

    async def is_live(self, handle):
        return handle in self.live

    def on_action_response(self, callback):
        self.callbacks.append(callback)

    @property
    def reminders(self):
        """Scheduled due-date reminders, excluding acknowledgements."""
        return [s for s in self.scheduled if s[1].actions]

    @property
    def acknowledgements(self):
        return [s for s in self.scheduled if not s[1].actions]


def make_draft(**overrides) -> ObligationDraft:
    fields = dict(title="Rent", amount="800", due_at=NOW + timedelta(days=3),
                  frequency=Frequency.MONTHLY)
    fields.update(overrides)
    return ObligationDraft(**fields)


_seq = itertools.count(1)


def make_obligation(**overrides) -> Obligation:
    """Build a stored obligation with sensible defaults."""
    fields = dict(
        id=f"ob{next(_seq)}",
        title="Rent",
        amount=Decimal("800"),
        currency="EUR",
        due_at=NOW + timedelta(days=10),
        frequency=Frequency.MONTHLY,
        notification_handle=None,
        created_at=NOW - timedelta(days=100),
    )
    fields.update(overrides)
    return Obligation(**fields)


@pytest.fixture
def journal():
    return []


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def store(journal):
    return InMemoryStore(journal)


@pytest.fixture
def gateway(journal):
    return FakeGateway(journal)


@pytest.fixture
def engine(store, gateway, clock):
    """An engine that has not run roll-forward yet."""
    return SchedulingService(
        store=store,
        gateway=gateway,
        currency=CurrencyResolver(override="EUR"),
        clock=clock,
        gateway_timeout=0.5,
    )


@pytest.fixture
async def ready_engine(engine):
    """An engine past its startup roll-forward, on an empty store."""
    await engine.roll_forward()
    return engine
