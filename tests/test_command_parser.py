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

"""Tests for the mention command parser."""

import sys
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from reminders.command_parser import (
    match_remind_command,
    parse_remind_command,
    resolve_remind_command,
    split_task_and_time,
    strip_bot_mention,
)
from reminders.errors import CommandNotRecognized, DispatchError, TargetRejected
from reminders.models import UserInfo

BOT = "UBOT"
SENDER = "U1"


def human_lookup():
    return AsyncMock(side_effect=lambda uid: UserInfo(user_id=uid, is_automated=False))


def bot_lookup():
    return AsyncMock(side_effect=lambda uid: UserInfo(user_id=uid, is_automated=True))


class TestStripBotMention:
    def test_removes_only_bot_token(self):
        text = "<@UBOT> remind <@U2> to stretch at 5pm"
        assert strip_bot_mention(text, BOT) == "remind <@U2> to stretch at 5pm"

    def test_removes_labelled_bot_token(self):
        assert strip_bot_mention("<@UBOT|remindbot> remind me", BOT) == "remind me"

    def test_removes_first_bot_token_only(self):
        text = "<@UBOT> remind <@UBOT> to reboot at 5pm"
        assert strip_bot_mention(text, BOT) == "remind <@UBOT> to reboot at 5pm"

    def test_no_bot_id(self):
        assert strip_bot_mention("<@UBOT>  hi", None) == "<@UBOT> hi"


class TestSplitTaskAndTime:
    def test_last_at_wins(self):
        assert split_task_and_time("to meet at the office at 5pm") == (
            "meet at the office",
            "5pm",
        )

    def test_case_insensitive_separator(self):
        assert split_task_and_time("to call mom AT 9:30 pm") == ("call mom", "9:30 pm")

    def test_missing_separator(self):
        assert split_task_and_time("to call mom tomorrow") is None

    def test_empty_task(self):
        assert split_task_and_time("at 5pm") is None
        assert split_task_and_time("to at 5pm") is None


class TestMatchRemindCommand:
    def test_remind_me(self):
        matched = match_remind_command("<@UBOT> remind me to call mom at 9:30 pm", BOT)
        assert matched.form == "self"
        assert matched.target is None
        assert matched.task == "call mom"
        assert matched.raw_time_phrase == "9:30 pm"

    def test_remind_mention_splits_on_last_at(self):
        matched = match_remind_command("remind <@U2> to meet at the office at 5pm", BOT)
        assert matched.form == "mention"
        assert matched.target == "U2"
        assert matched.task == "meet at the office"
        assert matched.raw_time_phrase == "5pm"

    def test_labelled_mention(self):
        matched = match_remind_command("remind <@U2|bob> to deploy at 5pm", BOT)
        assert matched.target == "U2"
        assert matched.task == "deploy"

    def test_please_and_case(self):
        matched = match_remind_command("<@UBOT> Please Remind Me to water plants At 6pm", BOT)
        assert matched.form == "self"
        assert matched.task == "water plants"
        assert matched.raw_time_phrase == "6pm"

    def test_without_to(self):
        matched = match_remind_command("remind me stand-up at 10am", BOT)
        assert matched.task == "stand-up"

    def test_relative_time_phrase(self):
        matched = match_remind_command("remind me to stretch at 5 minutes", BOT)
        assert matched.raw_time_phrase == "5 minutes"

    def test_unrelated_text(self):
        with pytest.raises(CommandNotRecognized):
            match_remind_command("<@UBOT> what's the weather at noon?", BOT)

    def test_no_time(self):
        with pytest.raises(CommandNotRecognized):
            match_remind_command("remind me to call mom", BOT)

    def test_empty_time(self):
        with pytest.raises(CommandNotRecognized):
            match_remind_command("remind me to call mom at", BOT)

    def test_remind_bot_itself_is_not_a_target(self):
        # The bot token is stripped, leaving "remind to x at 5pm"
        with pytest.raises(CommandNotRecognized):
            match_remind_command("remind <@UBOT> to x at 5pm", BOT)


class TestResolveRemindCommand:
    @pytest.mark.asyncio
    async def test_self_targets_sender(self):
        lookup = human_lookup()
        cmd = await resolve_remind_command(
            "<@UBOT> remind me to call mom at 9:30 pm", SENDER, BOT, lookup
        )
        assert cmd.target == SENDER
        assert cmd.task == "call mom"
        assert cmd.raw_time_phrase == "9:30 pm"
        assert cmd.is_self is True
        lookup.assert_not_called()

    @pytest.mark.asyncio
    async def test_mention_targets_user(self):
        lookup = human_lookup()
        cmd = await resolve_remind_command(
            "<@UBOT> remind <@U2> to meet at the office at 5pm", SENDER, BOT, lookup
        )
        assert cmd.target == "U2"
        assert cmd.is_self is False
        lookup.assert_awaited_once_with("U2")

    @pytest.mark.asyncio
    async def test_automated_target_rejected(self):
        with pytest.raises(TargetRejected):
            await resolve_remind_command(
                "remind <@U2> to deploy at 5pm", SENDER, BOT, bot_lookup()
            )

    @pytest.mark.asyncio
    async def test_bot_named_as_target_rejected(self):
        lookup = bot_lookup()
        with pytest.raises(TargetRejected):
            await resolve_remind_command(
                "<@UBOT> remind <@UBOT> to reboot at 5pm", SENDER, BOT, lookup
            )
        lookup.assert_awaited_once_with("UBOT")

    @pytest.mark.asyncio
    async def test_self_mention_bypasses_automated_check(self):
        lookup = bot_lookup()
        cmd = await resolve_remind_command(
            "remind <@U1> to deploy at 5pm", SENDER, BOT, lookup
        )
        assert cmd.target == SENDER
        assert cmd.is_self is True
        lookup.assert_not_called()

    @pytest.mark.asyncio
    async def test_self_mention_checked_when_bypass_disabled(self):
        with pytest.raises(TargetRejected):
            await resolve_remind_command(
                "remind <@U1> to deploy at 5pm", SENDER, BOT, bot_lookup(),
                allow_self_mention=False,
            )

    @pytest.mark.asyncio
    async def test_lookup_failure_rejects(self):
        lookup = AsyncMock(side_effect=DispatchError("user_not_found"))
        with pytest.raises(TargetRejected):
            await resolve_remind_command(
                "remind <@U9> to deploy at 5pm", SENDER, BOT, lookup
            )


class TestParseRemindCommand:
    @pytest.mark.asyncio
    async def test_returns_command(self):
        cmd = await parse_remind_command(
            "remind me to call mom at 9:30 pm", SENDER, BOT, human_lookup()
        )
        assert cmd is not None
        assert cmd.task == "call mom"

    @pytest.mark.asyncio
    async def test_unrecognized_returns_none(self):
        assert await parse_remind_command("hello there", SENDER, BOT, human_lookup()) is None

    @pytest.mark.asyncio
    async def test_rejected_target_returns_none(self):
        cmd = await parse_remind_command(
            "remind <@U2> to deploy at 5pm", SENDER, BOT, bot_lookup()
        )
        assert cmd is None
