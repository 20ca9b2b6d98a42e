"""Tests for startup roll-forward: catch-up, idempotence, re-arming lost reminders."""

from datetime import datetime, timedelta

from dateutil.relativedelta import relativedelta

from models.notification import DateTrigger, WeeklyTrigger
from models.obligation import Frequency
from tests.conftest import NOW, make_obligation


def seed(store, gateway, **overrides):
    """Store an obligation whose handle (if any) is live in the gateway."""
    ob = make_obligation(**overrides)
    store.rows[ob.id] = ob
    if ob.notification_handle:
        gateway.live.add(ob.notification_handle)
    return ob


async def test_monthly_catches_up_in_one_jump(engine, store, gateway):
    ob = seed(store, gateway, due_at=datetime(2025, 12, 10, 9, 0),
              frequency=Frequency.MONTHLY, notification_handle="stale-1")

    advanced = await engine.roll_forward()

    stored = store.get(ob.id)
    assert [o.id for o in advanced] == [ob.id]
    assert NOW < stored.due_at <= NOW + relativedelta(months=1)
    assert stored.due_at == datetime(2026, 4, 10, 9, 0)
    assert gateway.cancelled == ["stale-1"]
    assert len(gateway.reminders) == 1
    handle, _, trigger = gateway.reminders[0]
    assert stored.notification_handle == handle
    assert trigger == DateTrigger(at=stored.due_at)


async def test_yearly_leap_day_catch_up(engine, store, gateway):
    ob = seed(store, gateway, due_at=datetime(2024, 2, 29, 10, 0), frequency=Frequency.YEARLY)

    await engine.roll_forward()

    assert store.get(ob.id).due_at == datetime(2027, 2, 28, 10, 0)
    assert len(gateway.reminders) == 1


async def test_month_end_clamping_carries_forward(engine, store, gateway):
    ob = seed(store, gateway, due_at=datetime(2026, 1, 31, 9, 0), frequency=Frequency.MONTHLY)

    await engine.roll_forward()

    assert store.get(ob.id).due_at == datetime(2026, 3, 28, 9, 0)


async def test_overdue_earlier_today_moves_a_full_cycle(engine, store, gateway):
    ob = seed(store, gateway, due_at=NOW - timedelta(hours=1), frequency=Frequency.MONTHLY)

    await engine.roll_forward()

    assert store.get(ob.id).due_at == datetime(2026, 4, 15, 11, 0)


async def test_one_time_past_due_is_not_advanced(engine, store, gateway):
    past = NOW - timedelta(days=5)
    ob = seed(store, gateway, due_at=past, frequency=Frequency.ONE_TIME)

    advanced = await engine.roll_forward()

    assert advanced == []
    assert store.get(ob.id).due_at == past
    assert gateway.scheduled == []


async def test_fired_one_time_reminder_loses_stale_handle(engine, store, gateway):
    past = NOW - timedelta(days=5)
    ob = seed(store, gateway, due_at=past, frequency=Frequency.ONE_TIME,
              notification_handle="fired-1")
    gateway.live.discard("fired-1")

    await engine.roll_forward()

    stored = store.get(ob.id)
    assert stored.due_at == past
    assert stored.notification_handle is None
    assert gateway.scheduled == []


async def test_weekly_is_not_advanced(engine, store, gateway):
    past = NOW - timedelta(days=20)
    ob = seed(store, gateway, due_at=past, frequency=Frequency.WEEKLY,
              notification_handle="weekly-1")

    await engine.roll_forward()

    stored = store.get(ob.id)
    assert stored.due_at == past
    assert stored.notification_handle == "weekly-1"
    assert gateway.cancelled == []


async def test_lost_reminders_are_rearmed(engine, store, gateway):
    future = seed(store, gateway, due_at=NOW + timedelta(days=3),
                  frequency=Frequency.ONE_TIME, notification_handle="lost-1")
    weekly = seed(store, gateway, due_at=NOW - timedelta(days=2),
                  frequency=Frequency.WEEKLY, notification_handle="lost-2")
    never = seed(store, gateway, due_at=NOW + timedelta(days=8), frequency=Frequency.YEARLY)
    gateway.live.clear()

    advanced = await engine.roll_forward()

    assert advanced == []
    assert store.get(future.id).notification_handle not in (None, "lost-1")
    assert store.get(never.id).notification_handle is not None
    weekly_trigger = next(t for _, c, t in gateway.reminders if c.obligation_id == weekly.id)
    assert isinstance(weekly_trigger, WeeklyTrigger)
    assert store.get(weekly.id).due_at == weekly.due_at


async def test_roll_forward_is_idempotent(engine, store, gateway):
    seed(store, gateway, due_at=datetime(2025, 11, 30, 9, 0),
         frequency=Frequency.MONTHLY, notification_handle="a")
    seed(store, gateway, due_at=datetime(2023, 7, 1, 9, 0),
         frequency=Frequency.YEARLY, notification_handle="b")
    seed(store, gateway, due_at=NOW - timedelta(days=1), frequency=Frequency.ONE_TIME)
    seed(store, gateway, due_at=NOW - timedelta(days=3),
         frequency=Frequency.WEEKLY, notification_handle="c")
    seed(store, gateway, due_at=NOW + timedelta(days=2),
         frequency=Frequency.MONTHLY, notification_handle="d")

    await engine.roll_forward()
    first = store.snapshot()
    scheduled, cancelled = len(gateway.scheduled), len(gateway.cancelled)

    await engine.roll_forward()

    assert store.snapshot() == first
    assert len(gateway.scheduled) == scheduled
    assert len(gateway.cancelled) == cancelled


async def test_no_live_past_due_reminder_after_roll_forward(engine, store, gateway):
    for months_ago in (1, 2, 7, 13):
        seed(store, gateway, due_at=NOW - relativedelta(months=months_ago),
             frequency=Frequency.MONTHLY, notification_handle=f"old-{months_ago}")

    await engine.roll_forward()

    for ob in store.list_all():
        assert ob.due_at >= NOW
        assert ob.notification_handle in gateway.live
    assert not any(h.startswith("old-") for h in gateway.live)


async def test_gateway_outage_still_advances(engine, store, gateway):
    ob = seed(store, gateway, due_at=NOW - timedelta(days=40),
              frequency=Frequency.MONTHLY, notification_handle="x")
    gateway.fail_cancel = True
    gateway.fail_schedule = True

    await engine.roll_forward()

    stored = store.get(ob.id)
    assert stored.due_at > NOW
    assert stored.notification_handle is None
    assert engine.ready
