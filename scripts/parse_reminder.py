"""
Reminder Parser CLI

Dry-runs the mention grammar and time parser without touching Slack.

Usage:
    # Parse a full mention
    python scripts/parse_reminder.py mention "remind me to call mom at 9:30 pm" --sender U1

    # Mention another user; --bot-users marks accounts as automated
    python scripts/parse_reminder.py mention "remind <@U2> to deploy at 5pm" --sender U1 --bot-users U2

    # Resolve just a time phrase against a fixed "now"
    python scripts/parse_reminder.py time "5 minutes" --now 2026-01-15T14:00:00+00:00
"""

import argparse
import asyncio
import logging
import sys
from datetime import datetime
from pathlib import Path

import pytz

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from reminders import (  # noqa: E402
    CommandNotRecognized,
    ReminderConfig,
    TargetRejected,
    TimeParseError,
    UserInfo,
    parse_time_expression,
    resolve_remind_command,
)

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(message)s",
)
logger = logging.getLogger(__name__)


def parse_now(value: str) -> datetime:
    """Parse --now, treating naive values as UTC."""
    if not value:
        return datetime.now(pytz.UTC)
    dt = datetime.fromisoformat(value)
    if dt.tzinfo is None:
        dt = pytz.UTC.localize(dt)
    return dt


def show_time(phrase: str, now: datetime, timezone: str) -> bool:
    try:
        parsed = parse_time_expression(phrase, now, timezone)
    except TimeParseError as e:
        logger.error(f"Time: {e}")
        return False

    tz = pytz.timezone(parsed.timezone)
    lead = (parsed.fire_at - now).total_seconds()
    logger.info(f"Phrase:   {phrase}")
    logger.info(f"Path:     {'clock time' if parsed.is_clock_time else 'natural language'}")
    logger.info(f"Fire at:  {parsed.fire_at.astimezone(tz).strftime('%Y-%m-%d %H:%M %Z')}")
    logger.info(f"Lead:     {lead:.0f}s")
    return True


async def show_mention(args, now: datetime, timezone: str) -> bool:
    bot_users = set(args.bot_users or [])

    async def lookup_user(user_id: str) -> UserInfo:
        return UserInfo(user_id=user_id, is_automated=user_id in bot_users)

    try:
        command = await resolve_remind_command(
            args.text, args.sender, args.bot, lookup_user,
            allow_self_mention=not args.strict_self,
        )
    except (CommandNotRecognized, TargetRejected) as e:
        logger.error(f"Ignored: {e}")
        return False

    logger.info(f"Target:   {command.target}{' (self)' if command.is_self else ''}")
    logger.info(f"Task:     {command.task}")
    return show_time(command.raw_time_phrase, now, timezone)


def main():
    parser = argparse.ArgumentParser(
        description="Reminder Parser CLI - Dry-run mention and time parsing"
    )
    parser.add_argument("--now", default="", help="Reference time (ISO 8601, default: now)")
    parser.add_argument(
        "--timezone", default=None,
        help="IANA timezone (default: REMINDER_TIMEZONE or America/Moncton)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    mention_parser = subparsers.add_parser("mention", help="Parse a full mention")
    mention_parser.add_argument("text", help="Message text")
    mention_parser.add_argument("--sender", default="U0SENDER", help="Sender user ID")
    mention_parser.add_argument("--bot", default="U0BOT", help="Bot user ID")
    mention_parser.add_argument(
        "--bot-users", nargs="*", help="User IDs to treat as automated accounts"
    )
    mention_parser.add_argument(
        "--strict-self", action="store_true",
        help="Check self-mentions against --bot-users too",
    )

    time_parser = subparsers.add_parser("time", help="Resolve a time phrase")
    time_parser.add_argument("phrase", help="Time phrase, e.g. '9:30 pm'")

    args = parser.parse_args()
    now = parse_now(args.now)
    timezone = args.timezone or ReminderConfig.from_env().timezone

    if args.command == "mention":
        ok = asyncio.run(show_mention(args, now, timezone))
    else:
        ok = show_time(args.phrase, now, timezone)
    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    main()
