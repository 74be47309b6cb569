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
Slack Dispatcher

MessageDispatcher backed by the Slack Web API (slack_sdk AsyncWebClient).
Slack API errors are translated into the reminder engine's dispatch errors.
"""

import logging
from typing import Optional

from slack_sdk.errors import SlackApiError
from slack_sdk.web.async_client import AsyncWebClient

from reminders import (
    DeliveryChannelUnavailable,
    DeliveryFailed,
    DispatchError,
    MessageDispatcher,
    UserInfo,
)

logger = logging.getLogger("remindbot.slack_client")

# Slackbot is flagged by ID rather than is_bot
SLACKBOT_USER_ID = "USLACKBOT"


def _slack_error(e: SlackApiError) -> str:
    """Slack's short error code (e.g. "cannot_dm_bot"), if present."""
    try:
        return e.response.get("error") or str(e)
    except AttributeError:
        return str(e)


class SlackDispatcher(MessageDispatcher):
    """Slack Web API client for the reminder engine."""

    def __init__(
        self,
        token: Optional[str] = None,
        client: Optional[AsyncWebClient] = None,
    ):
        if client is None:
            if not token:
                logger.warning("SLACK_BOT_TOKEN not set - Slack calls will fail authentication")
            client = AsyncWebClient(token=token)
        self.client = client

    async def open_direct_channel(self, user_id: str) -> str:
        try:
            response = await self.client.conversations_open(users=user_id)
        except SlackApiError as e:
            code = _slack_error(e)
            raise DeliveryChannelUnavailable(
                f"Could not open DM with {user_id}: {code}", platform_error=code
            ) from e

        channel = (response.get("channel") or {}).get("id")
        if not channel:
            raise DeliveryChannelUnavailable(f"Slack returned no DM channel for {user_id}")
        return channel

    async def post_message(
        self,
        channel: str,
        text: str,
        thread_ref: Optional[str] = None,
    ) -> None:
        kwargs = {"channel": channel, "text": text}
        if thread_ref:
            kwargs["thread_ts"] = thread_ref

        try:
            await self.client.chat_postMessage(**kwargs)
        except SlackApiError as e:
            code = _slack_error(e)
            raise DeliveryFailed(
                f"Failed to post to {channel}: {code}", platform_error=code
            ) from e

    async def lookup_user(self, user_id: str) -> UserInfo:
        try:
            response = await self.client.users_info(user=user_id)
        except SlackApiError as e:
            code = _slack_error(e)
            raise DispatchError(
                f"Failed to look up user {user_id}: {code}", platform_error=code
            ) from e

        user = response.get("user") or {}
        is_automated = bool(user.get("is_bot")) or user_id == SLACKBOT_USER_ID
        return UserInfo(user_id=user_id, is_automated=is_automated)

