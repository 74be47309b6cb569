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
Mention Commands

Handles Slack events that can create reminders:
- app_mention: "remind me to ... at ..." / "remind @user to ... at ..."
- message: keyword follow-ups ("#followup", "#urgent")

Nothing here ever raises to the webhook. Unrecognized or rejected commands
are logged and dropped without replying, since the bot is mentioned in plenty
of conversations that are not meant for it.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional

import pytz

from analytics import track_rejection
from reminders import (
    MessageDispatcher,
    Reminder,
    ReminderConfig,
    ReminderRejected,
    ReminderScheduler,
    parse_remind_command,
)

logger = logging.getLogger("remindbot.commands.mention")


def format_delay(minutes: int) -> str:
    """60 -> "1h", 90 -> "90m"."""
    if minutes % 60 == 0:
        return f"{minutes // 60}h"
    return f"{minutes}m"


class MentionCommands:
    """Event handlers for reminder creation from conversation."""

    def __init__(
        self,
        scheduler: ReminderScheduler,
        dispatcher: MessageDispatcher,
        config: Optional[ReminderConfig] = None,
    ):
        self.scheduler = scheduler
        self.dispatcher = dispatcher
        self.config = config or scheduler.config

    def bot_id_for(self, event: dict) -> Optional[str]:
        """The bot's user ID, from the event's authorizations or config."""
        authorizations = event.get("authorizations") or []
        if authorizations and authorizations[0].get("user_id"):
            return authorizations[0]["user_id"]
        return self.config.bot_user_id

    # =========================================================================
    # app_mention
    # =========================================================================

    async def handle_mention(
        self, event: dict, now: Optional[datetime] = None
    ) -> Optional[Reminder]:
        """
        Create a reminder from a mention, if it is a remind command.

        Returns:
            The scheduled reminder, or None if the mention was ignored
        """
        sender = event.get("user")
        channel = event.get("channel")
        text = event.get("text") or ""
        if not sender or not channel:
            logger.debug("Ignoring mention without user or channel")
            return None

        try:
            command = await parse_remind_command(
                text,
                sender,
                self.bot_id_for(event),
                self.dispatcher.lookup_user,
                allow_self_mention=self.config.allow_self_mention,
            )
            if command is None:
                return None

            reminder = await self.scheduler.schedule(
                command,
                requester=sender,
                origin_channel=channel,
                origin_thread=event.get("ts"),
                now=now,
            )
        except ReminderRejected as e:
            logger.info(f"Ignoring remind command from {sender}: {e}")
            track_rejection(e, user_id=sender, channel_id=channel, team_id=event.get("team"))
            return None
        except Exception as e:
            logger.error(f"Failed to handle mention from {sender}: {e}", exc_info=True)
            return None

        logger.info(
            f"Scheduled reminder {reminder.id} for {reminder.target} "
            f"at {reminder.fire_at.isoformat()}"
        )
        return reminder

    # =========================================================================
    # message (keyword follow-ups)
    # =========================================================================

    def has_followup_keyword(self, text: str) -> bool:
        lowered = text.lower()
        return any(kw in lowered for kw in self.config.followup_keywords)

    async def handle_message(
        self, event: dict, now: Optional[datetime] = None
    ) -> Optional[Reminder]:
        """
        Schedule a follow-up for plain messages tagged with a keyword.

        Returns:
            The scheduled reminder, or None if the message was ignored
        """
        if event.get("bot_id") or event.get("subtype"):
            return None

        text = event.get("text") or ""
        sender = event.get("user")
        channel = event.get("channel")
        if not sender or not channel or not self.has_followup_keyword(text):
            return None

        now = now or datetime.now(pytz.UTC)
        delay = self.config.followup_delay_minutes

        try:
            reminder = await self.scheduler.schedule_at(
                requester=sender,
                target=sender,
                task=text,
                fire_at=now + timedelta(minutes=delay),
                origin_channel=channel,
                now=now,
            )
        except Exception as e:
            logger.error(f"Failed to schedule follow-up for {sender}: {e}", exc_info=True)
            return None

        try:
            await self.dispatcher.post_message(
                channel, f"Noted, reminding in {format_delay(delay)}."
            )
        except Exception as e:
            logger.warning(f"Failed to acknowledge follow-up {reminder.id}: {e}")

        return reminder
