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
Reminder Analytics

Records what happens to reminders (created, rejected, delivered, cancelled),
how the slash command is used, and scheduler failures. Rows go to the
analytics_events table through a small asyncpg pool.

Callers use the typed helpers rather than building events by hand:

    track_reminder("reminder_created", reminder)
    track_rejection(error, user_id="U123", channel_id="C456")
    track_command("list", user_id="U123", channel_id="C456")
    track_error("reminder_delivery_error", exc, reminder_id="7")

All helpers are fire-and-forget. With ANALYTICS_ENABLED=false or no
DATABASE_URL they do nothing, and a failed insert is only logged.
"""

import asyncio
import json
import logging
import os
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Optional

import asyncpg

if TYPE_CHECKING:
    from reminders.errors import ReminderRejected
    from reminders.models import Reminder

logger = logging.getLogger("remindbot.analytics")

CATEGORY_REMINDER = "reminder"
CATEGORY_COMMAND = "command"
CATEGORY_ERROR = "error"

INSERT_EVENT = """
    INSERT INTO analytics_events
        (event_name, event_category, user_id, channel_id, team_id, properties)
    VALUES ($1, $2, $3, $4, $5, $6)
"""


@dataclass
class AnalyticsEvent:
    """One row of analytics_events."""

    name: str
    category: str
    user_id: Optional[str] = None
    channel_id: Optional[str] = None
    team_id: Optional[str] = None
    properties: dict[str, Any] = field(default_factory=dict)

    def row(self) -> tuple:
        return (
            self.name,
            self.category,
            self.user_id,
            self.channel_id,
            self.team_id,
            json.dumps(self.properties, default=str),
        )


class EventRecorder:
    """
    Writes analytics events to Postgres.

    The pool is opened on first use. A recorder whose pool cannot be created
    stays quiet rather than failing the caller.
    """

    def __init__(self, database_url: Optional[str] = None, enabled: bool = True):
        self.database_url = database_url
        self.enabled = enabled
        self._pool: Optional[asyncpg.Pool] = None
        self._pending: set[asyncio.Task] = set()

    @classmethod
    def from_env(cls) -> "EventRecorder":
        return cls(
            database_url=os.getenv("DATABASE_URL"),
            enabled=os.getenv("ANALYTICS_ENABLED", "true").lower() == "true",
        )

    async def _get_pool(self) -> Optional[asyncpg.Pool]:
        if self._pool is None and self.enabled and self.database_url:
            try:
                self._pool = await asyncpg.create_pool(
                    self.database_url, min_size=1, max_size=2
                )
            except Exception as e:
                logger.warning(f"Analytics disabled, pool creation failed: {e}")
                self.enabled = False
        return self._pool

    async def record(self, event: AnalyticsEvent) -> bool:
        """Insert one event. Returns True if the row was written."""
        if not self.enabled:
            return False

        pool = await self._get_pool()
        if pool is None:
            return False

        try:
            await pool.execute(INSERT_EVENT, *event.row())
        except Exception as e:
            logger.debug(f"Dropped analytics event {event.name}: {e}")
            return False
        return True

    def submit(self, event: AnalyticsEvent) -> None:
        """Record in the background; outside an event loop this is a no-op."""
        if not self.enabled:
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return

        task = loop.create_task(self.record(event))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def close(self) -> None:
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)
        if self._pool is not None:
            await self._pool.close()
            self._pool = None


recorder = EventRecorder.from_env()


def track_reminder(
    event_name: str,
    reminder: "Reminder",
    user_id: Optional[str] = None,
    **properties: Any,
) -> None:
    """
    Record a reminder lifecycle event.

    Args:
        event_name: reminder_created, reminder_delivered or reminder_cancelled
        reminder: The reminder the event is about
        user_id: Acting user (defaults to the requester)
        **properties: Extra event properties, e.g. delivery_type
    """
    props: dict[str, Any] = {
        "reminder_id": reminder.id,
        "is_self": reminder.target == reminder.requester,
    }
    if reminder.created_at is not None:
        props["lead_seconds"] = int((reminder.fire_at - reminder.created_at).total_seconds())
    props.update(properties)

    recorder.submit(AnalyticsEvent(
        name=event_name,
        category=CATEGORY_REMINDER,
        user_id=user_id or reminder.requester,
        channel_id=reminder.origin_channel,
        properties=props,
    ))


def track_rejection(
    error: "ReminderRejected",
    user_id: Optional[str] = None,
    channel_id: Optional[str] = None,
    team_id: Optional[str] = None,
) -> None:
    """Record a remind command that parsed but was refused."""
    recorder.submit(AnalyticsEvent(
        name="reminder_rejected",
        category=CATEGORY_REMINDER,
        user_id=user_id,
        channel_id=channel_id,
        team_id=team_id,
        properties={"reason": error.reason},
    ))


def track_command(
    subcommand: str,
    user_id: Optional[str] = None,
    channel_id: Optional[str] = None,
) -> None:
    """Record a /reminder invocation."""
    recorder.submit(AnalyticsEvent(
        name="command_used",
        category=CATEGORY_COMMAND,
        user_id=user_id,
        channel_id=channel_id,
        properties={"command_name": "reminder", "subcommand": subcommand or "none"},
    ))


def track_error(
    event_name: str,
    error: BaseException,
    user_id: Optional[str] = None,
    **properties: Any,
) -> None:
    """Record a failure in the scheduler or delivery path."""
    props: dict[str, Any] = {
        "error_type": type(error).__name__,
        "error_message": str(error)[:200],
    }
    props.update(properties)

    recorder.submit(AnalyticsEvent(
        name=event_name,
        category=CATEGORY_ERROR,
        user_id=user_id,
        properties=props,
    ))


async def shutdown() -> None:
    """Flush in-flight events and close the pool. Call on app shutdown."""
    await recorder.close()
