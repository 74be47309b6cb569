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
Reminder Errors

Failure taxonomy for the mention-to-delivery pipeline. Everything on the
mention path is handled locally (logged, never surfaced to the webhook).
"""

from typing import Optional


class ReminderError(Exception):
    """Base class for reminder pipeline errors."""

    pass


class CommandNotRecognized(ReminderError):
    """Text does not match any accepted remind grammar."""

    pass


class TargetRejected(ReminderError):
    """The mentioned target is an automated account and not the sender."""

    def __init__(self, target: str, reason: str = "automated account"):
        super().__init__(f"Target {target} rejected: {reason}")
        self.target = target
        self.reason = reason


class ReminderRejected(ReminderError):
    """A parsed command could not be turned into a reminder."""

    reason = "rejected"


class TimeUnparseable(ReminderRejected):
    """The time phrase produced no interpretation."""

    reason = "time_unparseable"


class TooSoon(ReminderRejected):
    """The resolved instant is closer than the minimum lead time."""

    reason = "too_soon"

    def __init__(self, lead_seconds: float, min_lead_seconds: int):
        super().__init__(
            f"Reminder would fire in {lead_seconds:.0f}s, "
            f"minimum lead time is {min_lead_seconds}s"
        )
        self.lead_seconds = lead_seconds
        self.min_lead_seconds = min_lead_seconds


class DispatchError(ReminderError):
    """An outbound messaging call failed."""

    def __init__(self, message: str, platform_error: Optional[str] = None):
        super().__init__(message)
        self.platform_error = platform_error


class DeliveryChannelUnavailable(DispatchError):
    """A private channel could not be opened with the target."""

    pass


class DeliveryFailed(DispatchError):
    """Sending the message itself failed."""

    pass
