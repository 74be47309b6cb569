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
Mention Command Parser

Extracts (target, task, time phrase) from the text of a message that mentions
the bot. The accepted surface forms are:

    [please] remind me [to] <task> at <time>
    [please] remind <@USER> [to] <task> at <time>

The task/time boundary is the LAST " at " in the text, so tasks may contain
the word themselves ("meet at the office at 5pm" -> "meet at the office").
"""

import logging
import re
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from .errors import CommandNotRecognized, DispatchError, TargetRejected
from .models import RemindCommand, UserInfo

logger = logging.getLogger("remindbot.reminders.command_parser")

# Slack user mention token, optionally carrying a display label: <@U123> or <@U123|bob>
MENTION_TOKEN = r"<@(?P<target>[A-Z0-9]+)(?:\|[^>]*)?>"

TIME_SEPARATOR = " at "

LEADING_FILLER = re.compile(r"^(?:remind\b\s*)?(?:to\b\s*)?", re.IGNORECASE)

# Prioritized grammar: first match wins
COMMAND_FORMS = [
    ("self", re.compile(r"^(?:please\s+)?remind\s+me\b\s*(?P<body>.*)$", re.IGNORECASE | re.DOTALL)),
    (
        "mention",
        re.compile(
            r"^(?:please\s+)?remind\s+" + MENTION_TOKEN + r"\s*(?P<body>.*)$",
            re.IGNORECASE | re.DOTALL,
        ),
    ),
]

UserLookup = Callable[[str], Awaitable[UserInfo]]


@dataclass(frozen=True)
class CommandMatch:
    """Tagged result of matching the remind grammar, before target validation."""

    form: str  # "self" or "mention"
    target: Optional[str]  # None for "self"
    task: str
    raw_time_phrase: str


def strip_bot_mention(text: str, bot_id: Optional[str]) -> str:
    """Remove the first mention of the bot, leaving other mentions intact."""
    if bot_id:
        text = re.sub(r"<@" + re.escape(bot_id) + r"(?:\|[^>]*)?>", " ", text, count=1)
    return " ".join(text.split())


def split_task_and_time(body: str) -> Optional[tuple[str, str]]:
    """
    Split on the last " at " into (task, time phrase).

    Returns:
        (task, raw_time_phrase), or None if the separator is missing or either
        side is empty
    """
    padded = f" {body}"
    idx = padded.lower().rfind(TIME_SEPARATOR)
    if idx == -1:
        return None

    task = padded[:idx].strip()
    time_phrase = padded[idx + len(TIME_SEPARATOR):].strip()

    task = LEADING_FILLER.sub("", task, count=1).strip()
    if not task or not time_phrase:
        return None
    return task, time_phrase


def match_remind_command(text: str, bot_id: Optional[str] = None) -> CommandMatch:
    """
    Match text against the remind grammar.

    Args:
        text: Raw message text, possibly containing the bot mention
        bot_id: The bot's own user ID

    Returns:
        CommandMatch for the first accepted form

    Raises:
        CommandNotRecognized: If no form matches or the task/time split fails
    """
    cleaned = strip_bot_mention(text or "", bot_id)

    for form, pattern in COMMAND_FORMS:
        match = pattern.match(cleaned)
        if not match:
            continue

        parts = split_task_and_time(match.group("body"))
        if parts is None:
            raise CommandNotRecognized(f"No task/time split in '{cleaned}'")

        task, time_phrase = parts
        target = match.group("target") if form == "mention" else None
        return CommandMatch(form=form, target=target, task=task, raw_time_phrase=time_phrase)

    raise CommandNotRecognized(f"No remind form matches '{cleaned}'")


async def resolve_remind_command(
    text: str,
    sender_id: str,
    bot_id: Optional[str],
    lookup_user: UserLookup,
    allow_self_mention: bool = True,
) -> RemindCommand:
    """
    Parse a remind command and validate its target.

    Raises:
        CommandNotRecognized: Text does not match the grammar
        TargetRejected: Mentioned target is an automated account (and not the
            sender, when self-mentions are allowed)
    """
    matched = match_remind_command(text, bot_id)

    if matched.form == "self":
        return RemindCommand(
            target=sender_id,
            task=matched.task,
            raw_time_phrase=matched.raw_time_phrase,
            is_self=True,
        )

    target = matched.target
    is_self = target == sender_id

    if not (is_self and allow_self_mention):
        try:
            info = await lookup_user(target)
        except DispatchError as e:
            raise TargetRejected(target, f"lookup failed: {e}") from e
        if info.is_automated:
            raise TargetRejected(target)

    return RemindCommand(
        target=target,
        task=matched.task,
        raw_time_phrase=matched.raw_time_phrase,
        is_self=is_self,
    )


async def parse_remind_command(
    text: str,
    sender_id: str,
    bot_id: Optional[str],
    lookup_user: UserLookup,
    allow_self_mention: bool = True,
) -> Optional[RemindCommand]:
    """Like resolve_remind_command, but returns None instead of raising."""
    try:
        return await resolve_remind_command(
            text, sender_id, bot_id, lookup_user, allow_self_mention
        )
    except CommandNotRecognized as e:
        logger.debug(f"Ignoring mention from {sender_id}: {e}")
    except TargetRejected as e:
        logger.info(f"Ignoring mention from {sender_id}: {e}")
    return None
