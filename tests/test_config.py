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

"""Tests for reminder configuration."""

import sys
from pathlib import Path
from unittest.mock import patch

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from reminders.config import ReminderConfig


class TestReminderConfig:
    def test_default_config(self):
        config = ReminderConfig()
        assert config.timezone == "America/Moncton"
        assert config.min_lead_seconds == 60
        assert config.sweep_cron == "* * * * *"
        assert config.delivery_mode == "sweep"
        assert config.allow_self_mention is True
        assert config.followup_keywords == ("#followup", "#urgent")
        assert config.followup_delay_minutes == 60
        assert config.port == 10000

    def test_config_from_env_default(self):
        with patch.dict("os.environ", {}, clear=True):
            config = ReminderConfig.from_env()
            assert config.slack_bot_token is None
            assert config.timezone == "America/Moncton"
            assert config.delivery_mode == "sweep"

    def test_config_from_env_custom_values(self):
        with patch.dict("os.environ", {
            "SLACK_BOT_TOKEN": "xoxb-test",
            "SLACK_BOT_USER_ID": "UBOT",
            "REMINDER_TIMEZONE": "Europe/London",
            "REMINDER_MIN_LEAD_SECONDS": "120",
            "REMINDER_SWEEP_CRON": "*/5 * * * *",
            "REMINDER_DELIVERY_MODE": "TIMER",
            "REMINDER_ALLOW_SELF_MENTION": "false",
            "REMINDER_FOLLOWUP_KEYWORDS": "#FollowUp, #later ,",
            "REMINDER_FOLLOWUP_DELAY_MINUTES": "30",
            "PORT": "8080",
        }):
            config = ReminderConfig.from_env()
            assert config.slack_bot_token == "xoxb-test"
            assert config.bot_user_id == "UBOT"
            assert config.timezone == "Europe/London"
            assert config.min_lead_seconds == 120
            assert config.sweep_cron == "*/5 * * * *"
            assert config.delivery_mode == "timer"
            assert config.allow_self_mention is False
            assert config.followup_keywords == ("#followup", "#later")
            assert config.followup_delay_minutes == 30
            assert config.port == 8080

    def test_invalid_delivery_mode(self):
        with patch.dict("os.environ", {"REMINDER_DELIVERY_MODE": "fax"}):
            with pytest.raises(ValueError):
                ReminderConfig.from_env()
