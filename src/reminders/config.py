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
Reminder Configuration

Tunable parameters for parsing, scheduling, and delivery.
Values can be overridden via environment variables.
"""

import os
from dataclasses import dataclass, field
from typing import Optional

DELIVERY_MODES = ("sweep", "timer")


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


def _env_list(name: str, default: str) -> tuple:
    raw = os.getenv(name, default)
    return tuple(item.strip().lower() for item in raw.split(",") if item.strip())


@dataclass
class ReminderConfig:
    """Configuration for the reminder bot."""

    # Slack credentials
    slack_bot_token: Optional[str] = None
    bot_user_id: Optional[str] = None

    # Time resolution (fixed, not per-user)
    timezone: str = "America/Moncton"

    # Scheduling
    min_lead_seconds: int = 60
    sweep_cron: str = "* * * * *"
    delivery_mode: str = "sweep"

    # Self-mentions skip the automated-account check
    allow_self_mention: bool = True

    # Keyword follow-ups on plain channel messages
    followup_keywords: tuple = field(default_factory=lambda: ("#followup", "#urgent"))
    followup_delay_minutes: int = 60

    # HTTP server
    port: int = 10000
    log_level: str = "INFO"

    def __post_init__(self):
        if self.delivery_mode not in DELIVERY_MODES:
            raise ValueError(
                f"Invalid delivery mode '{self.delivery_mode}'. "
                f"Must be one of: {', '.join(DELIVERY_MODES)}"
            )

    @classmethod
    def from_env(cls) -> "ReminderConfig":
        """Create config from environment variables with defaults."""
        return cls(
            slack_bot_token=os.getenv("SLACK_BOT_TOKEN"),
            bot_user_id=os.getenv("SLACK_BOT_USER_ID"),
            timezone=os.getenv("REMINDER_TIMEZONE", "America/Moncton"),
            min_lead_seconds=int(os.getenv("REMINDER_MIN_LEAD_SECONDS", "60")),
            sweep_cron=os.getenv("REMINDER_SWEEP_CRON", "* * * * *"),
            delivery_mode=os.getenv("REMINDER_DELIVERY_MODE", "sweep").lower(),
            allow_self_mention=_env_bool("REMINDER_ALLOW_SELF_MENTION", "true"),
            followup_keywords=_env_list("REMINDER_FOLLOWUP_KEYWORDS", "#followup,#urgent"),
            followup_delay_minutes=int(
                os.getenv("REMINDER_FOLLOWUP_DELAY_MINUTES", "60")
            ),
            port=int(os.getenv("PORT", "10000")),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )
