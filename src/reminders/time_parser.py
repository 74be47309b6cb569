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
Time Parser Module

Resolves natural language time phrases ("9:30 pm", "in 2 minutes",
"tomorrow at 5") into absolute UTC instants relative to a reference time.

Plain clock times are resolved against the current calendar day in the
configured timezone and rolled forward a day if already past. Everything else
goes through dateparser with a future bias; a bare time of day such as "noon"
that dateparser leaves in the past is moved to the next day.
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

import dateparser
import pytz

from .errors import ReminderError

logger = logging.getLogger("remindbot.reminders.time_parser")

# "H", "H:MM", with optional am/pm ("5pm", "9:30 pm", "17:45")
CLOCK_TIME_PATTERN = re.compile(
    r"^(?P<hour>\d{1,2})(?::(?P<minute>\d{2}))?\s*(?P<meridiem>[ap]\.?m\.?)?$",
    re.IGNORECASE,
)

# Bare durations missing their leading "in" ("5 minutes", "2 hrs")
BARE_DURATION_PATTERN = re.compile(
    r"^(?P<amount>\d+)\s*(?P<unit>minutes?|mins?|hours?|hrs?)$",
    re.IGNORECASE,
)

# Phrases naming only a time of day ("noon", "7 in the evening", "8:15am")
TIME_OF_DAY_PATTERN = re.compile(
    r"\b(?:noon|midday|midnight|morning|afternoon|evening|tonight|night)\b"
    r"|\d{1,2}(?::\d{2})?\s*[ap]\.?m\b"
    r"|\d{1,2}:\d{2}",
    re.IGNORECASE,
)

# Words or numerals that fix the day or give a relative offset
EXPLICIT_DATE_PATTERN = re.compile(
    r"\b(?:today|tomorrow|yesterday|now|ago|in\s+\d+"
    r"|(?:mon|tues?|wed(?:nes)?|thu(?:rs)?|fri|sat(?:ur)?|sun)(?:day)?"
    r"|jan(?:uary)?|feb(?:ruary)?|mar(?:ch)?|apr(?:il)?|may|june?|july?"
    r"|aug(?:ust)?|sep(?:t(?:ember)?)?|oct(?:ober)?|nov(?:ember)?|dec(?:ember)?"
    r"|week|month|year)\b"
    r"|\d{1,4}[/-]\d{1,2}",
    re.IGNORECASE,
)


@dataclass
class ParsedTime:
    """Result of parsing a time expression."""

    fire_at: datetime  # UTC timestamp
    original_input: str
    timezone: str
    is_clock_time: bool  # True when resolved by the clock-time path


class TimeParseError(ReminderError):
    """Raised when a time expression cannot be parsed."""

    pass


def validate_timezone(tz_name: str) -> bool:
    """
    Validate that a timezone name is valid.

    Args:
        tz_name: IANA timezone name (e.g., "America/Moncton")

    Returns:
        True if valid, False otherwise
    """
    try:
        pytz.timezone(tz_name)
        return True
    except pytz.UnknownTimeZoneError:
        return False


def normalize_time_phrase(expr: str) -> str:
    """Prefix bare durations with "in" so they parse as relative times."""
    expr = " ".join(expr.split())
    if BARE_DURATION_PATTERN.match(expr):
        return f"in {expr}"
    return expr


def _clock_hours(hour: int, meridiem: Optional[str]) -> list[int]:
    """
    Candidate 24-hour values for a clock hour.

    With am/pm there is exactly one. Without it, hours that could be either
    half of the day yield both so the caller can pick the next occurrence.
    """
    if meridiem:
        if hour < 1 or hour > 12:
            return []
        is_pm = meridiem.lower().startswith("p")
        if hour == 12:
            return [12 if is_pm else 0]
        return [hour + 12 if is_pm else hour]

    if hour > 23:
        return []
    if hour == 12:
        return [12, 0]
    if 1 <= hour < 12:
        return [hour, hour + 12]
    return [hour]


def _roll_forward_time_of_day(
    parsed: datetime,
    phrase: str,
    reference_now: datetime,
    user_tz: pytz.BaseTzInfo,
) -> datetime:
    """
    Move a bare time of day that has already passed to the next day.

    dateparser resolves "noon" to today's noon even after it has passed.
    Phrases that name a day or an offset are returned unchanged.
    """
    if parsed > reference_now:
        return parsed
    if not TIME_OF_DAY_PATTERN.search(phrase) or EXPLICIT_DATE_PATTERN.search(phrase):
        return parsed

    local = parsed.astimezone(user_tz)
    if local.date() != reference_now.astimezone(user_tz).date():
        return parsed

    return user_tz.localize(local.replace(tzinfo=None) + timedelta(days=1))


def _resolve_clock_time(
    match: re.Match,
    reference_now: datetime,
    user_tz: pytz.BaseTzInfo,
) -> Optional[datetime]:
    """
    Resolve a clock time on the reference day, rolling a day forward if past.

    Returns:
        UTC datetime, or None if the hour/minute values are out of range
    """
    hour = int(match.group("hour"))
    minute = int(match.group("minute") or 0)
    if minute > 59:
        return None

    hours = _clock_hours(hour, match.group("meridiem"))
    if not hours:
        return None

    local_now = reference_now.astimezone(user_tz)
    today = local_now.date()

    candidates = []
    for h in hours:
        for day in (today, today + timedelta(days=1)):
            naive = datetime(day.year, day.month, day.day, h, minute)
            candidate = user_tz.localize(naive)
            if candidate > reference_now:
                candidates.append(candidate)
                break

    if not candidates:
        return None

    return min(candidates).astimezone(pytz.UTC)


def parse_time_expression(
    expr: str,
    reference_now: Optional[datetime] = None,
    user_timezone: str = "UTC",
) -> ParsedTime:
    """
    Parse a time expression into an absolute instant.

    Supports:
    - Clock times: "5pm", "9:30 pm", "17:45" (today, or tomorrow if past)
    - Relative: "in 2 hours", "5 minutes" (treated as "in 5 minutes")
    - Natural language: "tomorrow at 10am", "next Monday 3pm"

    Args:
        expr: The time expression to parse
        reference_now: Anchor for relative phrases (defaults to now, UTC)
        user_timezone: IANA timezone used to interpret local clock times

    Returns:
        ParsedTime with the resolved UTC instant

    Raises:
        TimeParseError: If the expression cannot be parsed
    """
    expr = (expr or "").strip()
    if not expr:
        raise TimeParseError("Empty time expression")

    if not validate_timezone(user_timezone):
        logger.warning(f"Invalid timezone '{user_timezone}', falling back to UTC")
        user_timezone = "UTC"

    user_tz = pytz.timezone(user_timezone)

    if reference_now is None:
        reference_now = datetime.now(pytz.UTC)
    elif reference_now.tzinfo is None:
        reference_now = pytz.UTC.localize(reference_now)

    normalized = normalize_time_phrase(expr)

    # Clock times take precedence over the general grammar
    clock_match = CLOCK_TIME_PATTERN.match(normalized)
    if clock_match:
        fire_at = _resolve_clock_time(clock_match, reference_now, user_tz)
        if fire_at is None:
            raise TimeParseError(f"Invalid clock time: '{expr}'")
        return ParsedTime(
            fire_at=fire_at,
            original_input=expr,
            timezone=user_timezone,
            is_clock_time=True,
        )

    settings = {
        "TIMEZONE": user_timezone,
        "RETURN_AS_TIMEZONE_AWARE": True,
        "PREFER_DATES_FROM": "future",
        "RELATIVE_BASE": reference_now.astimezone(user_tz).replace(tzinfo=None),
    }

    parsed = dateparser.parse(normalized, settings=settings)

    if parsed is None:
        raise TimeParseError(
            f"Could not parse time expression: '{expr}'. "
            "Try formats like '9:30 pm', 'in 2 hours', or 'tomorrow at 10am'."
        )

    if parsed.tzinfo is None:
        parsed = user_tz.localize(parsed)

    parsed = _roll_forward_time_of_day(parsed, normalized, reference_now, user_tz)

    return ParsedTime(
        fire_at=parsed.astimezone(pytz.UTC),
        original_input=expr,
        timezone=user_timezone,
        is_clock_time=False,
    )
