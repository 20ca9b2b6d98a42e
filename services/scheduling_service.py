"""
services/scheduling_service.py
------------------------------
The scheduling engine: keeps stored obligations and scheduled reminders in step.

Responsibilities:
    - Validate and create obligations, scheduling their first reminder.
    - Snooze and delete, always cancelling the stale reminder first.
    - Roll overdue recurring obligations forward on startup.

Every obligation has at most one live reminder, referenced by
``notification_handle``. The store is the source of truth; the gateway is
best-effort, so its failures are logged and never block persistence.
"""

import asyncio
import dataclasses
import uuid
from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Awaitable, Callable, Optional, TypeVar

from config import (
    ACK_DELAY_SECONDS,
    DEFAULT_SNOOZE_DAYS,
    GATEWAY_TIMEOUT_SECONDS,
    SHORT_WINDOW_SECONDS,
)
from models.notification import (
    ActionKind,
    DateTrigger,
    DelayTrigger,
    NotificationContent,
    Trigger,
    WeeklyTrigger,
)
from models.obligation import Frequency, Obligation, ObligationDraft
from notifications.gateway import NotificationGateway
from repositories.obligation_repo import ObligationStore
from services.currency_service import CurrencyResolver, format_money
from utils.calendar import add_days, next_occurrence
from utils.errors import GatewayError, NotFoundError, NotificationUnavailable, ValidationError
from utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

_ROLLING_FREQUENCIES = (Frequency.MONTHLY, Frequency.YEARLY)


@dataclass
class AddResult:
    """Outcome of ``add``: the stored obligation, plus the reminder failure if any."""
    obligation: Obligation
    notification_error: Optional[NotificationUnavailable] = None

    @property
    def scheduled(self) -> bool:
        return self.notification_error is None


# ── Trigger & content policy ──────────────────────────────

def build_trigger(obligation: Obligation, now: datetime) -> Trigger:
    """
    Pick how the gateway should fire the reminder for ``obligation.due_at``.

    Weekly obligations get a repeating weekday/hour/minute trigger.
    Anything due within SHORT_WINDOW_SECONDS gets a relative delay of at
    least one second; the rest fire at the absolute due time.
    """
    due = obligation.due_at
    if obligation.frequency == Frequency.WEEKLY:
        return WeeklyTrigger(weekday=due.weekday(), hour=due.hour, minute=due.minute)

    delta = round((due - now).total_seconds())
    if delta <= SHORT_WINDOW_SECONDS:
        return DelayTrigger(seconds=max(1, delta))
    return DateTrigger(at=due)


def reminder_content(obligation: Obligation) -> NotificationContent:
    if obligation.amount is not None:
        body = f"Amount: {format_money(obligation.amount, obligation.currency)}"
    else:
        body = "Due today"
    return NotificationContent(
        title=f"💸 Payment due: {obligation.title}",
        body=body,
        obligation_id=obligation.id,
        actions=(ActionKind.SNOOZE, ActionKind.DELETE),
    )


def acknowledgement_content(obligation: Obligation) -> NotificationContent:
    when = f"{obligation.due_at:%Y-%m-%d}"
    if obligation.amount is not None:
        body = f"Reminder added for {format_money(obligation.amount, obligation.currency)} on {when}"
    else:
        body = f"Reminder added for {when}"
    return NotificationContent(
        title=f"✅ Saved: {obligation.title}",
        body=body,
        obligation_id=obligation.id,
    )


def catch_up(obligation: Obligation, now: datetime) -> tuple[datetime, int]:
    """
    First occurrence at or after ``now``, and how many occurrences were skipped.

    Occurrences are chained from the previous result, so month-end clamping
    carries forward (Jan 31 -> Feb 28 -> Mar 28).
    """
    current = obligation
    skipped = 0
    due = next_occurrence(current)
    while due < now:
        skipped += 1
        current = dataclasses.replace(current, due_at=due)
        due = next_occurrence(current)
    return due, skipped


def parse_amount(raw: Optional[str]) -> Optional[Decimal]:
    """
    Parse a user-typed amount.

    Returns None for blank input.

    Raises:
        ValidationError: If the text is not a finite, non-negative number.
    """
    if raw is None or not str(raw).strip():
        return None
    text = str(raw).strip().replace(" ", "")
    try:
        amount = Decimal(text)
    except InvalidOperation:
        raise ValidationError(f"Amount {raw!r} is not a valid number")
    if not amount.is_finite() or amount < 0:
        raise ValidationError("Amount must be a non-negative number")
    return amount


class SchedulingService:
    """
    Coordinates the obligation store, the notification gateway and calendar maths.

    Mutations wait until ``roll_forward`` has completed once. Per-obligation
    operations are serialized on a lock keyed by id.
    """

    def __init__(
        self,
        store: ObligationStore,
        gateway: NotificationGateway,
        currency: CurrencyResolver,
        clock: Callable[[], datetime] = datetime.now,
        gateway_timeout: float = GATEWAY_TIMEOUT_SECONDS,
    ):
        self.store = store
        self.gateway = gateway
        self.currency = currency
        self.clock = clock
        self.gateway_timeout = gateway_timeout

        self._ready = asyncio.Event()
        self._roll_lock = asyncio.Lock()
        self._locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)
        self._background: set[asyncio.Task] = set()

    @property
    def ready(self) -> bool:
        return self._ready.is_set()

    # ── Read accessors ────────────────────────────────────

    def list_obligations(self) -> list[Obligation]:
        """All obligations ordered by due date, earliest first."""
        return sorted(self.store.list_all(), key=lambda o: o.due_at)

    def get(self, obligation_id: str) -> Optional[Obligation]:
        return self.store.get(obligation_id)

    # ── Add ───────────────────────────────────────────────

    async def add(self, draft: ObligationDraft) -> AddResult:
        """
        Validate ``draft``, schedule its reminder and persist it.

        A failed reminder does not stop the save: the obligation is stored
        with no handle and the failure is returned in ``AddResult``.

        Raises:
            ValidationError: Empty title, bad amount, or due date not in the future.
        """
        await self._ready.wait()
        now = self.clock()

        title = (draft.title or "").strip()
        if not title:
            raise ValidationError("Please enter a name for the payment.")
        amount = parse_amount(draft.amount)
        if draft.due_at <= now:
            raise ValidationError("Please choose a future date.")

        obligation = Obligation(
            id=uuid.uuid4().hex,
            title=title,
            amount=amount,
            currency=self.currency.current_currency(),
            due_at=draft.due_at,
            frequency=Frequency(draft.frequency),
            notes=(draft.notes or "").strip() or None,
            created_at=now,
        )

        error = None
        try:
            obligation.notification_handle = await self._schedule_reminder(obligation)
        except NotificationUnavailable as e:
            logger.warning(f"Saving '{title}' without a reminder: {e}")
            error = e

        await self._persist(obligation)
        logger.info(f"Added obligation '{obligation.title}' #{obligation.id} due {obligation.due_at}")

        if error is None:
            self._send_acknowledgement(obligation)
        return AddResult(obligation=obligation, notification_error=error)

    # ── Remove ────────────────────────────────────────────

    async def remove(self, obligation_id: str) -> None:
        """Cancel the reminder (best-effort) and delete. Unknown ids are ignored."""
        await self._ready.wait()
        async with self._locks[obligation_id]:
            obligation = self.store.get(obligation_id)
            if obligation is None:
                logger.debug(f"Remove: #{obligation_id} not found, nothing to do")
                return
            await self._cancel_quietly(obligation)
            self.store.delete(obligation_id)
            self._locks.pop(obligation_id, None)
            logger.info(f"Removed obligation '{obligation.title}' #{obligation_id}")

    # ── Snooze ────────────────────────────────────────────

    async def snooze(self, obligation_id: str, days: int = DEFAULT_SNOOZE_DAYS) -> Obligation:
        """
        Push the due instant forward by ``days`` calendar days.

        The frequency is unchanged; only the immediate due instant moves.

        Raises:
            ValidationError: If ``days`` is less than 1.
            NotFoundError: If the obligation does not exist.
        """
        if days < 1:
            raise ValidationError("Snooze needs at least one day.")
        await self._ready.wait()
        async with self._locks[obligation_id]:
            obligation = self.store.get(obligation_id)
            if obligation is None:
                raise NotFoundError(obligation_id)
            await self._reschedule(obligation, add_days(obligation.due_at, days))
            logger.info(f"Snoozed '{obligation.title}' #{obligation_id} to {obligation.due_at}")
            return obligation

    # ── Roll-forward ──────────────────────────────────────

    async def roll_forward(self) -> list[Obligation]:
        """
        Advance overdue monthly/yearly obligations to their next future occurrence.

        Runs once at startup before any mutation is accepted. Missed
        occurrences collapse into a single jump with one new reminder.
        One-time and weekly obligations keep their due dates. Reminders that
        no longer exist in the gateway are re-armed when they can still fire.
        Running it again without time passing changes nothing.

        Returns:
            The obligations that were advanced.
        """
        async with self._roll_lock:
            now = self.clock()
            advanced: list[Obligation] = []
            for obligation in self.store.list_all():
                if obligation.frequency not in _ROLLING_FREQUENCIES or obligation.due_at >= now:
                    await self._rearm(obligation, now)
                    continue
                async with self._locks[obligation.id]:
                    new_due, skipped = catch_up(obligation, now)
                    await self._reschedule(obligation, new_due)
                if skipped:
                    logger.info(
                        f"Rolled '{obligation.title}' #{obligation.id} forward to {new_due} "
                        f"({skipped} missed occurrence(s) dropped)"
                    )
                else:
                    logger.info(f"Rolled '{obligation.title}' #{obligation.id} forward to {new_due}")
                advanced.append(obligation)

            if not self._ready.is_set():
                self._ready.set()
                logger.info(f"Roll-forward complete ({len(advanced)} advanced); accepting changes.")
            return advanced

    async def wait_idle(self) -> None:
        """Wait for pending acknowledgements (used on shutdown and in tests)."""
        if self._background:
            await asyncio.gather(*self._background, return_exceptions=True)

    # ── Internals ─────────────────────────────────────────

    async def _rearm(self, obligation: Obligation, now: datetime) -> None:
        """
        Bring an obligation that needs no advancing back in line with the gateway.

        A reminder that vanished (e.g. an in-memory scheduler lost across a
        restart) is scheduled again when it can still fire. A past-due one-time
        obligation keeps its due date; only its stale handle is cleared.
        """
        can_fire = obligation.frequency == Frequency.WEEKLY or obligation.due_at >= now
        handle = obligation.notification_handle
        if handle and await self._handle_is_live(handle):
            return
        if not handle and not can_fire:
            return

        async with self._locks[obligation.id]:
            obligation.notification_handle = None
            if can_fire:
                try:
                    obligation.notification_handle = await self._schedule_reminder(obligation)
                    logger.info(f"Re-armed reminder for '{obligation.title}' #{obligation.id}")
                except NotificationUnavailable as e:
                    logger.warning(str(e))
            await self._persist(obligation)

    async def _handle_is_live(self, handle: str) -> bool:
        """Ask the gateway; when it cannot answer, assume the reminder is still there."""
        try:
            return await self._call_gateway(self.gateway.is_live(handle))
        except (GatewayError, asyncio.TimeoutError) as e:
            logger.warning(f"Could not check reminder {handle}: {e!r}")
            return True

    async def _reschedule(self, obligation: Obligation, new_due_at: datetime) -> None:
        """
        Move ``obligation`` to ``new_due_at`` with exactly one live reminder.

        Cancels the stale handle, schedules the new reminder, then persists.
        A scheduling failure leaves the handle as None but still persists.
        A store failure withdraws the new reminder and propagates.
        """
        await self._cancel_quietly(obligation)
        obligation.notification_handle = None
        obligation.due_at = new_due_at
        try:
            obligation.notification_handle = await self._schedule_reminder(obligation)
        except NotificationUnavailable as e:
            logger.warning(str(e))
        await self._persist(obligation)

    async def _persist(self, obligation: Obligation) -> None:
        """Upsert; if the store refuses, cancel the reminder nothing would point to."""
        try:
            self.store.upsert(obligation)
        except Exception:
            await self._cancel_quietly(obligation)
            obligation.notification_handle = None
            raise

    async def _schedule_reminder(self, obligation: Obligation) -> str:
        trigger = build_trigger(obligation, self.clock())
        try:
            return await self._call_gateway(
                self.gateway.schedule(reminder_content(obligation), trigger)
            )
        except (GatewayError, asyncio.TimeoutError) as e:
            raise NotificationUnavailable(obligation.id, e) from e

    async def _cancel_quietly(self, obligation: Obligation) -> None:
        handle = obligation.notification_handle
        if not handle:
            return
        try:
            await self._call_gateway(self.gateway.cancel(handle))
        except (GatewayError, asyncio.TimeoutError) as e:
            logger.warning(f"Could not cancel reminder {handle} for #{obligation.id}: {e!r}")

    async def _call_gateway(self, call: Awaitable[T]) -> T:
        return await asyncio.wait_for(call, timeout=self.gateway_timeout)

    def _send_acknowledgement(self, obligation: Obligation) -> None:
        """
        Dispatch the short "saved" notification and return immediately.

        Fire-and-forget: the handle is not tracked, never cancelled and
        never rescheduled, and failures are only logged.
        """
        task = asyncio.create_task(self._acknowledge(obligation))
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _acknowledge(self, obligation: Obligation) -> None:
        try:
            await self._call_gateway(
                self.gateway.schedule(
                    acknowledgement_content(obligation),
                    DelayTrigger(seconds=ACK_DELAY_SECONDS),
                )
            )
        except (GatewayError, asyncio.TimeoutError) as e:
            logger.warning(f"Acknowledgement for #{obligation.id} not sent: {e!r}")
