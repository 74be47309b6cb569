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
Reminder Store Module

In-memory home for pending reminders. State lives only as long as the
process; there is no persistence.

Status transitions go through claim(), which is the single point where a
reminder leaves PENDING. Because claim() never awaits, the first caller on
the event loop wins and every later caller sees the reminder gone.
"""

import itertools
import logging
from dataclasses import replace
from datetime import datetime
from typing import Optional

from .models import Reminder, ReminderStatus

logger = logging.getLogger("remindbot.reminders.store")


class ReminderStore:
    """
    Owns all Reminder records for the process.

    Provides methods to add, look up, list, and retire reminders, plus the
    due-reminder query used by the sweep.
    """

    def __init__(self):
        self._reminders: dict[str, Reminder] = {}
        self._ids = itertools.count(1)

    def __len__(self) -> int:
        return len(self._reminders)

    def __contains__(self, reminder_id: str) -> bool:
        return reminder_id in self._reminders

    def next_id(self) -> str:
        """Issue a fresh identifier. Identifiers are never reused."""
        return str(next(self._ids))

    def add(self, reminder: Reminder) -> str:
        """
        Store a new pending reminder.

        Args:
            reminder: Reminder in PENDING state

        Returns:
            The reminder ID
        """
        if not reminder.is_pending:
            raise ValueError(f"Only pending reminders can be stored, got {reminder.status.value}")
        if reminder.id in self._reminders:
            raise ValueError(f"Reminder {reminder.id} already exists")

        self._reminders[reminder.id] = reminder
        logger.info(
            f"Stored reminder {reminder.id} for {reminder.target} "
            f"(requested by {reminder.requester}): next={reminder.fire_at}"
        )
        return reminder.id

    def get(self, reminder_id: str) -> Optional[Reminder]:
        return self._reminders.get(reminder_id)

    def list_by_user(self, user_id: str) -> list[Reminder]:
        """
        List pending reminders a user requested or will receive.

        Returns a new list; callers never hold references into the store.
        """
        return [r for r in self._reminders.values() if r.involves(user_id)]

    def due_as_of(self, instant: datetime) -> list[Reminder]:
        """
        Snapshot of reminders whose fire time has been reached.

        Args:
            instant: Cutoff (inclusive)

        Returns:
            Reminders with fire_at <= instant, earliest first
        """
        due = [r for r in self._reminders.values() if r.fire_at <= instant]
        due.sort(key=lambda r: r.fire_at)
        return due

    def claim(self, reminder_id: str, status: ReminderStatus) -> Optional[Reminder]:
        """
        Move a pending reminder to a terminal state and remove it.

        Args:
            reminder_id: Reminder ID
            status: FIRED or CANCELLED

        Returns:
            The retired reminder, or None if it no longer exists (already
            fired, cancelled, or never stored)
        """
        if status is ReminderStatus.PENDING:
            raise ValueError("claim() requires a terminal status")

        reminder = self._reminders.get(reminder_id)
        if reminder is None or not reminder.is_pending:
            return None

        del self._reminders[reminder_id]
        retired = replace(reminder, status=status)
        logger.info(f"Reminder {reminder_id} {status.value}")
        return retired

    def remove(self, reminder_id: str) -> bool:
        """
        Drop a reminder without delivering it.

        Returns:
            True if it was pending and is now cancelled, False otherwise
        """
        return self.claim(reminder_id, ReminderStatus.CANCELLED) is not None
