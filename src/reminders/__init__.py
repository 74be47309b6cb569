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
Reminders Package

Natural-language reminder extraction, scheduling, and delivery.
"""

from .command_parser import (
    CommandMatch,
    match_remind_command,
    parse_remind_command,
    resolve_remind_command,
)
from .config import ReminderConfig
from .dispatcher import MessageDispatcher
from .errors import (
    CommandNotRecognized,
    DeliveryChannelUnavailable,
    DeliveryFailed,
    DispatchError,
    ReminderError,
    ReminderRejected,
    TargetRejected,
    TimeUnparseable,
    TooSoon,
)
from .models import Reminder, RemindCommand, ReminderStatus, UserInfo
from .scheduler import ReminderScheduler
from .store import ReminderStore
from .time_parser import (
    ParsedTime,
    TimeParseError,
    normalize_time_phrase,
    parse_time_expression,
    validate_timezone,
)

__all__ = [
    "CommandMatch",
    "match_remind_command",
    "parse_remind_command",
    "resolve_remind_command",
    "ReminderConfig",
    "MessageDispatcher",
    "CommandNotRecognized",
    "DeliveryChannelUnavailable",
    "DeliveryFailed",
    "DispatchError",
    "ReminderError",
    "ReminderRejected",
    "TargetRejected",
    "TimeUnparseable",
    "TooSoon",
    "Reminder",
    "RemindCommand",
    "ReminderStatus",
    "UserInfo",
    "ReminderScheduler",
    "ReminderStore",
    "ParsedTime",
    "TimeParseError",
    "normalize_time_phrase",
    "parse_time_expression",
    "validate_timezone",
]
