"""
Contact mutations: creation, names, birthdays, avatar colors, calls,
activity statistics and the contact event log.

Functions flush but never commit; the caller owns the transaction.
"""

from __future__ import annotations

import random
from collections import Counter
from datetime import date
from typing import Optional

import core.config as config
from core import audit
from core.errors import RecordNotFoundError, ValidationIssue
from core.models import (
    ActivityStatistic,
    BirthdateApproximation,
    Call,
    Contact,
    Reminder,
)
from core.services.contact_profile import gravatar_url
from core.services.reminders import add_birthday_reminder
from core.services.shared import (
    MAX_AGE_YEARS,
    _parse_date,
    _validate_age,
    _validate_color,
    logger,
)


# =============================================================================
# Names
# =============================================================================

def normalize_first_name(value: Optional[str]) -> str:
    if value is None:
        return ""
    return value.strip()


def normalize_last_name(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    return value.strip() or None


def update_name(
    db,
    contact: Contact,
    first_name: str,
    middle_name: Optional[str] = None,
    last_name: Optional[str] = None,
) -> bool:
    """Rename the contact. Returns False (and changes nothing) for an empty first name."""
    first_name = normalize_first_name(first_name)
    if first_name == "":
        return False
    contact.first_name = first_name
    if middle_name is not None:
        contact.middle_name = normalize_last_name(middle_name)
    if last_name is not None:
        contact.last_name = normalize_last_name(last_name)
    db.flush()
    return True


def update_food_preferences(db, contact: Contact, value: Optional[str]) -> None:
    contact.food_preferences = value or None
    db.flush()


# =============================================================================
# Creation & avatar
# =============================================================================

def set_avatar_color(
    db,
    contact: Contact,
    color: Optional[str] = None,
    rng: Optional[random.Random] = None,
) -> str:
    """Use `color` if given, otherwise pick one of the default colors."""
    if color is None:
        color = (rng or random).choice(config.AVATAR_COLORS)
    else:
        _validate_color(color, "color")
    contact.default_avatar_color = color
    db.flush()
    return color


def create_contact(
    db,
    account_id: int,
    first_name: str,
    middle_name: Optional[str] = None,
    last_name: Optional[str] = None,
    *,
    gender: Optional[str] = None,
    email: Optional[str] = None,
    is_partial: bool = False,
    rng: Optional[random.Random] = None,
) -> Contact:
    contact = Contact(
        account_id=account_id,
        first_name=normalize_first_name(first_name),
        middle_name=normalize_last_name(middle_name),
        last_name=normalize_last_name(last_name),
        gender=gender,
        email=email,
        is_partial=is_partial,
        is_birthdate_approximate=BirthdateApproximation.unknown.value,
        avatar_location=config.DEFAULT_AVATAR_LOCATION,
    )
    db.add(contact)
    db.flush()
    set_avatar_color(db, contact, rng=rng)
    if config.GRAVATAR_ENABLED and email:
        contact.gravatar_url = gravatar_url(contact)
        db.flush()
    logger.info(
        "contact_created",
        extra={"account_id": account_id, "contact_id": contact.id, "is_partial": is_partial},
    )
    return contact


# =============================================================================
# Birthday
# =============================================================================

def clear_birthdate_reminder(db, contact: Contact) -> None:
    if not contact.birthday_reminder_id:
        return
    reminder = (
        db.query(Reminder)
        .filter(Reminder.account_id == contact.account_id)
        .filter(Reminder.contact_id == contact.id)
        .filter(Reminder.id == contact.birthday_reminder_id)
        .first()
    )
    if reminder is None:
        raise RecordNotFoundError("Reminder", contact.birthday_reminder_id)
    contact.birthday_reminder_id = None
    db.flush()
    db.delete(reminder)
    db.flush()
    db.expire(contact, ["reminders"])


def set_birthdate_reminder(db, contact: Contact, today: Optional[date] = None) -> Reminder:
    reminder = add_birthday_reminder(db, contact, contact.birthdate, today=today)
    contact.birthday_reminder_id = reminder.id
    db.flush()
    db.expire(contact, ["reminders"])
    return reminder


def set_birthday(
    db,
    contact: Contact,
    approximation: str,
    date_of_birth=None,
    age: Optional[int] = None,
    today: Optional[date] = None,
) -> Contact:
    """
    Set the birthdate from what the user knows.

    - approximate: January 1st, `age` years before today
    - exact: `date_of_birth`, with a yearly birthday reminder
    - anything else: no birthdate

    Any previous birthday reminder is removed first.
    """
    today = today or date.today()
    clear_birthdate_reminder(db, contact)

    if approximation == BirthdateApproximation.approximate.value:
        _validate_age(age, "age", MAX_AGE_YEARS)
        contact.birthdate = date(today.year - age, 1, 1)
        contact.is_birthdate_approximate = BirthdateApproximation.approximate.value
        db.flush()
    elif approximation == BirthdateApproximation.exact.value:
        if date_of_birth is None:
            raise ValidationIssue(
                "date_of_birth is required for an exact birthdate",
                field="date_of_birth",
                error_type="required",
            )
        contact.birthdate = _parse_date(date_of_birth, "date_of_birth")
        contact.is_birthdate_approximate = BirthdateApproximation.exact.value
        db.flush()
        set_birthdate_reminder(db, contact, today=today)
    else:
        contact.birthdate = None
        contact.is_birthdate_approximate = BirthdateApproximation.unknown.value
        db.flush()
    return contact


# =============================================================================
# Calls & activities
# =============================================================================

def update_last_called_info(db, contact: Contact, call: Call) -> None:
    """Move last_talked_to forward to the call date; older calls change nothing."""
    if contact.last_talked_to is None or call.called_at > contact.last_talked_to:
        contact.last_talked_to = call.called_at
    db.flush()


def calculate_activities_statistics(db, contact: Contact) -> list[ActivityStatistic]:
    """Rebuild the per-year activity counts of the contact."""
    for statistic in list(contact.activity_statistics):
        contact.activity_statistics.remove(statistic)
    db.flush()

    per_year = Counter(activity.date_it_happened.year for activity in contact.activities)
    for year in sorted(per_year):
        contact.activity_statistics.append(
            ActivityStatistic(account_id=contact.account_id, year=year, count=per_year[year])
        )
    db.flush()
    return list(contact.activity_statistics)


# =============================================================================
# Events
# =============================================================================

def log_event(db, contact: Contact, object_type: str, object_id: Optional[int], nature_of_operation: str) -> Optional[int]:
    event = audit.log_event(
        db,
        contact=contact,
        object_type=object_type,
        object_id=object_id,
        nature_of_operation=nature_of_operation,
    )
    return event.id if event is not None else None


def delete_events_about_these_two_contacts(db, contact: Contact, other: Contact, object_type: str) -> int:
    deleted = audit.delete_events_between(db, contact, other, object_type)
    db.expire(contact, ["events"])
    db.expire(other, ["events"])
    return deleted
