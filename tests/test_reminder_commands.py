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

"""Tests for the /reminder slash command."""

import sys
from datetime import datetime
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytz

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from commands.reminder_commands import USAGE, ReminderCommands
from reminders.config import ReminderConfig
from reminders.scheduler import ReminderScheduler
from reminders.store import ReminderStore

TZ = pytz.timezone("America/Moncton")
NOW = TZ.localize(datetime(2026, 1, 15, 14, 0)).astimezone(pytz.UTC)


@pytest.fixture
def dispatcher():
    mock = MagicMock()
    mock.open_direct_channel = AsyncMock(return_value="D123")
    mock.post_message = AsyncMock()
    mock.lookup_user = AsyncMock()
    return mock


@pytest.fixture
def slash(dispatcher):
    scheduler = ReminderScheduler(
        ReminderStore(), dispatcher, ReminderConfig(timezone="America/Moncton")
    )
    return ReminderCommands(scheduler)


class TestSet:
    @pytest.mark.asyncio
    async def test_set_reminder(self, slash, dispatcher):
        reply = await slash.handle("set 5pm call mom", "U1", "C1", now=NOW)

        assert reply == "Reminder [1] set for 2026-01-15 17:00 AST: call mom"
        reminder = slash.scheduler.store.get("1")
        assert reminder.requester == "U1"
        assert reminder.target == "U1"
        assert reminder.origin_channel == "C1"
        # The reply is the acknowledgment; nothing is posted to the channel
        dispatcher.post_message.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_set_collapses_extra_spaces(self, slash):
        reply = await slash.handle("  set   17:30   stand   up  ", "U1", "C1", now=NOW)
        assert reply.endswith(": stand up")

    @pytest.mark.asyncio
    async def test_set_unparseable_time(self, slash):
        reply = await slash.handle("set whenever call mom", "U1", "C1", now=NOW)
        assert reply.startswith("Could not parse time")
        assert len(slash.scheduler.store) == 0

    @pytest.mark.asyncio
    async def test_set_too_soon(self, slash):
        now = TZ.localize(datetime(2026, 1, 15, 16, 59, 30)).astimezone(pytz.UTC)
        reply = await slash.handle("set 5pm call mom", "U1", "C1", now=now)
        assert reply == "Reminders must be at least 60 seconds away."
        assert len(slash.scheduler.store) == 0

    @pytest.mark.asyncio
    async def test_set_missing_message(self, slash):
        assert await slash.handle("set 5pm", "U1", "C1", now=NOW) == USAGE


class TestList:
    @pytest.mark.asyncio
    async def test_empty(self, slash):
        assert await slash.handle("list", "U1", "C1") == "No upcoming reminders."

    @pytest.mark.asyncio
    async def test_lists_own_reminders(self, slash):
        await slash.handle("set 9pm call mom", "U1", "C1", now=NOW)
        await slash.handle("set 3pm stretch", "U1", "C1", now=NOW)
        await slash.handle("set 4pm other", "U2", "C1", now=NOW)

        reply = await slash.handle("list", "U1", "C1")

        assert reply.splitlines() == [
            "• [2] stretch at 2026-01-15 15:00 AST",
            "• [1] call mom at 2026-01-15 21:00 AST",
        ]


class TestDelete:
    @pytest.mark.asyncio
    async def test_delete_own(self, slash):
        await slash.handle("set 9pm call mom", "U1", "C1", now=NOW)
        assert await slash.handle("delete 1", "U1", "C1") == "Deleted reminder 1."
        assert await slash.handle("list", "U1", "C1") == "No upcoming reminders."

    @pytest.mark.asyncio
    async def test_delete_unknown(self, slash):
        reply = await slash.handle("delete 77", "U1", "C1")
        assert reply == "Reminder 77 not found or not yours."

    @pytest.mark.asyncio
    async def test_delete_someone_elses(self, slash):
        await slash.handle("set 9pm call mom", "U1", "C1", now=NOW)
        reply = await slash.handle("delete 1", "U2", "C1")
        assert reply == "Reminder 1 not found or not yours."
        assert "1" in slash.scheduler.store

    @pytest.mark.asyncio
    async def test_delete_missing_id(self, slash):
        assert await slash.handle("delete", "U1", "C1") == USAGE


class TestUsage:
    @pytest.mark.asyncio
    async def test_unknown_action(self, slash):
        assert await slash.handle("snooze 5", "U1", "C1") == USAGE

    @pytest.mark.asyncio
    async def test_empty_text(self, slash):
        assert await slash.handle("", "U1", "C1") == USAGE
