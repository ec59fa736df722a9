"""
Reminder helpers (birthday reminders for now).
"""

from __future__ import annotations

from datetime import date
from typing import Optional

from core.models import Contact, Reminder, ReminderFrequency


def _anniversary(source: date, year: int) -> date:
    try:
        return source.replace(year=year)
    except ValueError:
        # Feb 29 in a non-leap year
        return date(year, 2, 28)


def next_occurrence(source: date, today: date) -> date:
    """Next anniversary of `source` on or after `today`."""
    candidate = _anniversary(source, today.year)
    if candidate < today:
        candidate = _anniversary(source, today.year + 1)
    return candidate


def add_birthday_reminder(db, contact: Contact, birthdate: date, today: Optional[date] = None) -> Reminder:
    today = today or date.today()
    reminder = Reminder(
        account_id=contact.account_id,
        contact_id=contact.id,
        title=f"Wish happy birthday to {contact.first_name}",
        frequency_type=ReminderFrequency.year.value,
        frequency_number=1,
        next_expected_date=next_occurrence(birthdate, today),
        is_birthday=True,
    )
    db.add(reminder)
    db.flush()
    return reminder
