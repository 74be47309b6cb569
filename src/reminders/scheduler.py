# remindbot - Slack Reminder Bot
# Copyright (c) 2025-2026 Slash Daemon slashdaemon@protonmail.com
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published by
# the Free Software Foundation, version 3 of the License.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE. See the
# GNU Affero General Public License for more details.
#
# You should have received a copy of the GNU Affero General Public License
# along with this program. If not, see <https://www.gnu.org/licenses/>.
#
# Commercial licensing: [slashdaemon@protonmail.com]

"""
Reminder Scheduler Module

Turns parsed commands into pending reminders and delivers them when due.

Delivery is driven by a sweep that runs on a cron cadence (once a minute by
default). In "timer" mode each reminder also gets a one-shot asyncio timer for
prompter delivery; the sweep then acts as a backstop. Either path retires the
reminder through ReminderStore.claim(), so a reminder fires at most once and
a concurrent cancel and delivery cannot both succeed.
"""

import asyncio
import logging
from datetime import datetime
from typing import Optional

import pytz
from croniter import croniter

from analytics import track_error, track_reminder

from .config import ReminderConfig
from .dispatcher import MessageDispatcher
from .errors import DeliveryChannelUnavailable, TimeUnparseable, TooSoon
from .models import Reminder, RemindCommand, ReminderStatus
from .store import ReminderStore
from .time_parser import TimeParseError, parse_time_expression, validate_timezone

logger = logging.getLogger("remindbot.reminders.scheduler")

ACK_TEXT = "I will do it."


class ReminderScheduler:
    """
    Scheduling core for reminders.

    Validates and registers reminders, sends acknowledgments, and runs the
    due-reminder sweep. Holds a reference to the store rather than owning
    global state.
    """

    def __init__(
        self,
        store: ReminderStore,
        dispatcher: MessageDispatcher,
        config: Optional[ReminderConfig] = None,
    ):
        """
        Initialize the reminder scheduler.

        Args:
            store: Reminder store shared with the command handlers
            dispatcher: Outbound messaging client
            config: Scheduler configuration (defaults if omitted)
        """
        self.store = store
        self.dispatcher = dispatcher
        self.config = config or ReminderConfig()

        if not validate_timezone(self.config.timezone):
            logger.warning(f"Invalid timezone '{self.config.timezone}', falling back to UTC")
            self.config.timezone = "UTC"
        self.tz = pytz.timezone(self.config.timezone)

        try:
            croniter(self.config.sweep_cron)
        except (ValueError, KeyError) as e:
            raise ValueError(f"Invalid sweep CRON expression: {e}") from e

        self._loop_task: Optional[asyncio.Task] = None
        self._timers: dict[str, asyncio.Task] = {}
        self._deliveries: set[asyncio.Task] = set()

    # =========================================================================
    # Lifecycle
    # =========================================================================

    @property
    def is_running(self) -> bool:
        return self._loop_task is not None and not self._loop_task.done()

    def start(self) -> None:
        """Start the sweep loop. Must be called from a running event loop."""
        if not self.is_running:
            self._loop_task = asyncio.get_running_loop().create_task(self._run())
            logger.info(
                f"Reminder scheduler started (cron='{self.config.sweep_cron}', "
                f"mode={self.config.delivery_mode})"
            )

    def stop(self) -> None:
        """Stop the sweep loop, drop armed timers and abandon in-flight sends."""
        if self._loop_task is not None:
            self._loop_task.cancel()
            self._loop_task = None
            logger.info("Reminder scheduler stopped")

        for task in [*self._timers.values(), *self._deliveries]:
            task.cancel()
        self._timers.clear()
        self._deliveries.clear()

    def next_sweep_at(self, now: Optional[datetime] = None) -> datetime:
        """Next cron tick after now."""
        now = now or datetime.now(pytz.UTC)
        return croniter(self.config.sweep_cron, now).get_next(datetime)

    async def _run(self) -> None:
        while True:
            now = datetime.now(pytz.UTC)
            delay = (self.next_sweep_at(now) - now).total_seconds()
            await asyncio.sleep(max(delay, 0.0))

            try:
                self.dispatch_due()
            except Exception as e:
                logger.error(f"Error in reminder sweep: {e}", exc_info=True)
                track_error("scheduler_error", e)

    # =========================================================================
    # Scheduling
    # =========================================================================

    async def schedule(
        self,
        command: RemindCommand,
        requester: str,
        origin_channel: str,
        origin_thread: Optional[str] = None,
        now: Optional[datetime] = None,
        acknowledge: bool = True,
    ) -> Reminder:
        """
        Resolve a command's time phrase and register the reminder.

        Args:
            command: Parsed remind command
            requester: User who issued the command
            origin_channel: Channel the command came from
            origin_thread: Message timestamp to thread the acknowledgment under
            now: Reference time (defaults to the current time)
            acknowledge: Post the acknowledgment to the origin channel

        Returns:
            The pending reminder

        Raises:
            TimeUnparseable: If the time phrase cannot be resolved
            TooSoon: If the resolved time is inside the minimum lead time
        """
        now = now or datetime.now(pytz.UTC)

        try:
            parsed = parse_time_expression(
                command.raw_time_phrase, now, self.config.timezone
            )
        except TimeParseError as e:
            raise TimeUnparseable(str(e)) from e

        reminder = await self.schedule_at(
            requester=requester,
            target=command.target,
            task=command.task,
            fire_at=parsed.fire_at,
            origin_channel=origin_channel,
            origin_thread=origin_thread,
            now=now,
        )

        if acknowledge:
            await self._acknowledge(reminder)

        return reminder

    async def schedule_at(
        self,
        requester: str,
        target: str,
        task: str,
        fire_at: datetime,
        origin_channel: str,
        origin_thread: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Reminder:
        """
        Register a reminder for an already-resolved instant.

        Raises:
            TooSoon: If fire_at is less than the minimum lead time away
        """
        now = now or datetime.now(pytz.UTC)
        lead_seconds = (fire_at - now).total_seconds()
        if lead_seconds < self.config.min_lead_seconds:
            raise TooSoon(lead_seconds, self.config.min_lead_seconds)

        task = task.strip()
        if not task:
            raise ValueError("Reminder task must not be empty")

        reminder = Reminder(
            id=self.store.next_id(),
            requester=requester,
            target=target,
            task=task,
            fire_at=fire_at,
            origin_channel=origin_channel,
            origin_thread=origin_thread,
            created_at=now,
        )
        self.store.add(reminder)

        if self.config.delivery_mode == "timer":
            self._arm_timer(reminder)

        track_reminder("reminder_created", reminder)
        return reminder

    def _arm_timer(self, reminder: Reminder) -> None:
        delay = max((reminder.fire_at - datetime.now(pytz.UTC)).total_seconds(), 0.0)
        timer = asyncio.get_running_loop().create_task(
            self._fire_after(reminder.id, delay)
        )
        self._timers[reminder.id] = timer
        timer.add_done_callback(lambda _t, rid=reminder.id: self._timers.pop(rid, None))

    async def _fire_after(self, reminder_id: str, delay: float) -> None:
        await asyncio.sleep(delay)
        await self.deliver(reminder_id)

    async def _acknowledge(self, reminder: Reminder) -> None:
        """Confirm the reminder in the originating thread."""
        when = self.format_local(reminder.fire_at)
        if reminder.target == reminder.requester:
            text = f"{ACK_TEXT} Reminder set for {when}: {reminder.task}"
        else:
            text = f"{ACK_TEXT} I'll remind <@{reminder.target}> at {when}: {reminder.task}"

        try:
            await self.dispatcher.post_message(
                reminder.origin_channel, text, thread_ref=reminder.origin_thread
            )
        except Exception as e:
            logger.warning(f"Failed to acknowledge reminder {reminder.id}: {e}")

    # =========================================================================
    # Listing and cancellation
    # =========================================================================

    def list_reminders(self, user_id: str) -> list[Reminder]:
        """Pending reminders involving a user, soonest first."""
        return sorted(self.store.list_by_user(user_id), key=lambda r: r.fire_at)

    def cancel_reminder(self, reminder_id: str, user_id: Optional[str] = None) -> bool:
        """
        Cancel a pending reminder.

        Args:
            reminder_id: Reminder ID
            user_id: If given, only the requester or target may cancel

        Returns:
            True if cancelled, False if not found, not owned, or already fired
        """
        reminder = self.store.get(reminder_id)
        if reminder is None:
            return False
        if user_id is not None and not reminder.involves(user_id):
            return False

        cancelled = self.store.claim(reminder_id, ReminderStatus.CANCELLED)
        if cancelled is None:
            return False

        timer = self._timers.pop(reminder_id, None)
        if timer is not None:
            timer.cancel()

        track_reminder("reminder_cancelled", cancelled, user_id=user_id)
        return True

    def format_local(self, instant: datetime) -> str:
        """Render an instant in the configured timezone."""
        return instant.astimezone(self.tz).strftime("%Y-%m-%d %H:%M %Z")

    # =========================================================================
    # Delivery
    # =========================================================================

    @property
    def in_flight(self) -> int:
        """Deliveries started by dispatch_due that have not finished."""
        return len(self._deliveries)

    def dispatch_due(self, now: Optional[datetime] = None) -> list[asyncio.Task]:
        """
        Start a delivery task for every reminder due as of now.

        Does not await the sends. Each task claims its reminder on its first
        step, so a reminder picked up by two sweeps is delivered once.

        Returns:
            The delivery tasks started by this call
        """
        now = now or datetime.now(pytz.UTC)
        due = self.store.due_as_of(now)
        if not due:
            return []

        logger.info(f"Processing {len(due)} due reminder(s)")
        loop = asyncio.get_running_loop()
        tasks = []
        for reminder in due:
            task = loop.create_task(self.deliver(reminder.id))
            self._deliveries.add(task)
            task.add_done_callback(self._deliveries.discard)
            tasks.append(task)
        return tasks

    async def sweep(self, now: Optional[datetime] = None) -> int:
        """
        Deliver every reminder due as of now and wait for the sends.

        The due set is snapshotted up front; reminders added while the sweep
        runs wait for the next tick.

        Returns:
            Number of reminders this sweep delivered
        """
        tasks = self.dispatch_due(now)
        if not tasks:
            return 0
        results = await asyncio.gather(*tasks, return_exceptions=True)
        return sum(1 for r in results if r is True)

    async def deliver(self, reminder_id: str) -> bool:
        """
        Deliver a single reminder, preferring a DM to the target.

        The reminder is retired before any network call, so a failed send is
        logged and never retried.

        Returns:
            True if this call retired the reminder, False if it was already gone
        """
        reminder = self.store.claim(reminder_id, ReminderStatus.FIRED)
        if reminder is None:
            logger.debug(f"Reminder {reminder_id} no longer pending, skipping")
            return False

        delivery_type = "dm"
        try:
            try:
                channel = await self.dispatcher.open_direct_channel(reminder.target)
            except DeliveryChannelUnavailable as e:
                logger.info(
                    f"No DM with {reminder.target} for reminder {reminder.id} ({e}), "
                    f"falling back to {reminder.origin_channel}"
                )
                delivery_type = "channel"
                await self.dispatcher.post_message(
                    reminder.origin_channel,
                    self._build_message(reminder, in_channel=True),
                )
            else:
                await self.dispatcher.post_message(
                    channel, self._build_message(reminder, in_channel=False)
                )

            logger.info(f"Delivered reminder {reminder.id} to {reminder.target} via {delivery_type}")
            track_reminder(
                "reminder_delivered",
                reminder,
                user_id=reminder.target,
                delivery_type=delivery_type,
            )

        except Exception as e:
            logger.error(f"Failed to deliver reminder {reminder.id}: {e}", exc_info=True)
            track_error(
                "reminder_delivery_error",
                e,
                user_id=reminder.target,
                reminder_id=reminder.id,
            )

        return True

    def _build_message(self, reminder: Reminder, in_channel: bool) -> str:
        """Reminder text; channel fallbacks tag the target."""
        text = f"Reminder: {reminder.task}"
        if reminder.requester != reminder.target:
            text = f"{text} (from <@{reminder.requester}>)"
        if in_channel:
            text = f"<@{reminder.target}> {text}"
        return text

