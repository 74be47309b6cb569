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
Message Dispatcher Interface

The outbound capabilities the reminder engine needs from a chat platform.
Implementations map platform failures onto DispatchError subclasses.
"""

from abc import ABC, abstractmethod
from typing import Optional

from .models import UserInfo


class MessageDispatcher(ABC):
    """Outbound messaging capabilities used by the scheduler and parsers."""

    @abstractmethod
    async def open_direct_channel(self, user_id: str) -> str:
        """
        Open (or reuse) a one-to-one conversation with a user.

        Returns:
            Channel handle

        Raises:
            DeliveryChannelUnavailable: If the platform refuses the channel
        """

    @abstractmethod
    async def post_message(
        self,
        channel: str,
        text: str,
        thread_ref: Optional[str] = None,
    ) -> None:
        """
        Post a message to a channel, optionally inside a thread.

        Raises:
            DeliveryFailed: If the send fails
        """

    @abstractmethod
    async def lookup_user(self, user_id: str) -> UserInfo:
        """
        Fetch the user profile fields needed for target validation.

        Raises:
            DispatchError: If the lookup fails
        """
