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
Reminder Slash Commands

Plain-text `/reminder` command surface. Text is split on whitespace into
`action timespec [message...]` and dispatched straight to the scheduler,
bypassing the mention grammar.

Commands:
- /reminder set <time> <message> - Create a reminder for yourself
- /reminder list - List your pending reminders
- /reminder delete <id> - Cancel a reminder
"""

import logging
from datetime import datetime
from typing import Optional

from analytics import track_command
from reminders import RemindCommand, ReminderScheduler, TimeUnparseable, TooSoon

logger = logging.getLogger("remindbot.commands.reminder")

USAGE = "Usage: `/reminder set|list|delete <time> [message]`"


class ReminderCommands:
    """Handlers for the `/reminder` slash command."""

    def __init__(self, scheduler: ReminderScheduler):
        self.scheduler = scheduler

    async def handle(
        self,
        text: str,
        user_id: str,
        channel_id: str,
        now: Optional[datetime] = None,
    ) -> str:
        """
        Run a slash command and return the reply text.

        Args:
            text: Command text after the slash command name
            user_id: Slack user who ran the command
            channel_id: Channel the command was run in
            now: Reference time (defaults to the current time)
        """
        tokens = (text or "").split()
        action = tokens[0].lower() if tokens else ""

        track_command(action, user_id=user_id, channel_id=channel_id)

        if action == "set":
            return await self.set_reminder(tokens[1:], user_id, channel_id, now)
        if action == "list":
            return self.list_reminders(user_id)
        if action == "delete":
            return self.delete_reminder(tokens[1:], user_id)
        return USAGE

    # =========================================================================
    # /reminder set
    # =========================================================================

    async def set_reminder(
        self,
        args: list[str],
        user_id: str,
        channel_id: str,
        now: Optional[datetime] = None,
    ) -> str:
        """Create a new reminder for the caller."""
        if len(args) < 2:
            return USAGE

        timespec = args[0]
        message = " ".join(args[1:])
        command = RemindCommand(target=user_id, task=message, raw_time_phrase=timespec)

        try:
            reminder = await self.scheduler.schedule(
                command,
                requester=user_id,
                origin_channel=channel_id,
                now=now,
                acknowledge=False,
            )
        except TimeUnparseable:
            return (
                f"Could not parse time: `{timespec}`. "
                "Try `5pm`, `17:30`, or `tomorrow`."
            )
        except TooSoon as e:
            return f"Reminders must be at least {e.min_lead_seconds} seconds away."

        when = self.scheduler.format_local(reminder.fire_at)
        return f"Reminder [{reminder.id}] set for {when}: {reminder.task}"

    # =========================================================================
    # /reminder list
    # =========================================================================

    def list_reminders(self, user_id: str) -> str:
        """List the caller's pending reminders."""
        reminders = self.scheduler.list_reminders(user_id)
        if not reminders:
            return "No upcoming reminders."

        return "\n".join(
            f"• [{r.id}] {r.task} at {self.scheduler.format_local(r.fire_at)}"
            for r in reminders
        )

    # =========================================================================
    # /reminder delete
    # =========================================================================

    def delete_reminder(self, args: list[str], user_id: str) -> str:
        """Cancel one of the caller's reminders."""
        if not args:
            return USAGE

        reminder_id = args[0]
        if self.scheduler.cancel_reminder(reminder_id, user_id):
            logger.info(f"User {user_id} deleted reminder {reminder_id}")
            return f"Deleted reminder {reminder_id}."
        return f"Reminder {reminder_id} not found or not yours."
