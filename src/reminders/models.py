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
Reminder Models

Plain data types shared by the parsers, the store, and the scheduler.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class ReminderStatus(str, Enum):
    """Lifecycle state of a reminder. FIRED and CANCELLED are terminal."""

    PENDING = "pending"
    FIRED = "fired"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class RemindCommand:
    """Result of parsing a mention into who/what/when."""

    target: str
    task: str
    raw_time_phrase: str
    is_self: bool = True


@dataclass(frozen=True)
class UserInfo:
    """Subset of platform user profile needed for target validation."""

    user_id: str
    is_automated: bool = False


@dataclass(frozen=True)
class Reminder:
    """A scheduled notification. Instances are immutable; status changes produce copies."""

    id: str
    requester: str
    target: str
    task: str
    fire_at: datetime  # UTC, timezone-aware
    origin_channel: str
    origin_thread: Optional[str] = None
    status: ReminderStatus = ReminderStatus.PENDING
    created_at: Optional[datetime] = None

    @property
    def is_pending(self) -> bool:
        return self.status is ReminderStatus.PENDING

    def involves(self, user_id: str) -> bool:
        """True if the user either asked for this reminder or will receive it."""
        return user_id in (self.requester, self.target)
