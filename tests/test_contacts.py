import os
import random
from datetime import date

os.environ.setdefault("DB_BACKEND", "sqlite")

import pytest

import core.config as config
from core.errors import RecordNotFoundError, ValidationIssue
from core.models import Activity, ActivityContact, Call, Reminder
from core.services import contacts as contact_ops
from core.services.reminders import next_occurrence


@pytest.fixture
def contact(db_session, account):
    contact = contact_ops.create_contact(db_session, account.id, "  Jim ", last_name=" Halpert ", rng=random.Random(3))
    db_session.commit()
    return contact


def test_name_normalization():
    assert contact_ops.normalize_first_name(None) == ""
    assert contact_ops.normalize_first_name("  Pam ") == "Pam"
    assert contact_ops.normalize_last_name("") is None
    assert contact_ops.normalize_last_name("   ") is None
    assert contact_ops.normalize_last_name(" Beesly ") == "Beesly"


def test_create_contact_trims_names_and_picks_color(contact):
    assert contact.first_name == "Jim"
    assert contact.last_name == "Halpert"
    assert contact.is_partial is False
    assert contact.default_avatar_color == random.Random(3).choice(config.AVATAR_COLORS)


def test_avatar_color_explicit_and_invalid(db_session, contact):
    assert contact_ops.set_avatar_color(db_session, contact, "#123abc") == "#123abc"
    with pytest.raises(ValidationIssue):
        contact_ops.set_avatar_color(db_session, contact, "blue")


def test_update_name(db_session, contact):
    assert contact_ops.update_name(db_session, contact, "", "X", "Y") is False
    assert contact.first_name == "Jim"

    assert contact_ops.update_name(db_session, contact, "James", None, None) is True
    assert contact.first_name == "James"
    assert contact.last_name == "Halpert"

    contact_ops.update_name(db_session, contact, "James", "Duncan", "H.")
    assert (contact.middle_name, contact.last_name) == ("Duncan", "H.")

    assert contact_ops.update_name(db_session, contact, "  Jim ", "   ", "") is True
    assert contact.first_name == "Jim"
    assert contact.middle_name is None
    assert contact.last_name is None

    assert contact_ops.update_name(db_session, contact, "   ") is False
    assert contact.first_name == "Jim"


def test_update_food_preferences(db_session, contact):
    contact_ops.update_food_preferences(db_session, contact, "Vegetarian")
    assert contact.food_preferences == "Vegetarian"
    contact_ops.update_food_preferences(db_session, contact, "")
    assert contact.food_preferences is None


def test_next_occurrence():
    today = date(2026, 10, 19)
    assert next_occurrence(date(1981, 10, 29), today) == date(2026, 10, 29)
    assert next_occurrence(date(1981, 10, 19), today) == date(2026, 10, 19)
    assert next_occurrence(date(1981, 1, 2), today) == date(2027, 1, 2)
    assert next_occurrence(date(2000, 2, 29), date(2026, 3, 1)) == date(2027, 2, 28)
    assert next_occurrence(date(2000, 2, 29), date(2027, 12, 31)) == date(2028, 2, 29)


def test_set_exact_birthday_creates_reminder(db_session, contact):
    today = date(2026, 10, 19)
    contact_ops.set_birthday(db_session, contact, "exact", date_of_birth="1978-10-01", today=today)
    db_session.commit()

    assert contact.birthdate == date(1978, 10, 1)
    assert contact.is_birthdate_approximate == "exact"
    reminder = db_session.get(Reminder, contact.birthday_reminder_id)
    assert reminder.title == "Wish happy birthday to Jim"
    assert reminder.frequency_type == "year"
    assert reminder.is_birthday is True
    assert reminder.next_expected_date == date(2027, 10, 1)


def test_set_birthday_again_replaces_reminder(db_session, contact):
    today = date(2026, 10, 19)
    contact_ops.set_birthday(db_session, contact, "exact", date_of_birth=date(1978, 10, 1), today=today)
    first_reminder_id = contact.birthday_reminder_id

    contact_ops.set_birthday(db_session, contact, "approximate", age=30, today=today)
    db_session.commit()

    assert contact.birthdate == date(1996, 1, 1)
    assert contact.is_birthdate_approximate == "approximate"
    assert contact.birthday_reminder_id is None
    assert db_session.get(Reminder, first_reminder_id) is None
    assert contact.reminders == []


def test_set_unknown_birthday_clears_date(db_session, contact):
    contact_ops.set_birthday(db_session, contact, "exact", date_of_birth="1978-10-01", today=date(2026, 1, 1))
    contact_ops.set_birthday(db_session, contact, "unknown")

    assert contact.birthdate is None
    assert contact.is_birthdate_approximate == "unknown"
    assert db_session.query(Reminder).count() == 0


def test_set_birthday_validates_input(db_session, contact):
    with pytest.raises(ValidationIssue):
        contact_ops.set_birthday(db_session, contact, "exact")
    with pytest.raises(ValidationIssue):
        contact_ops.set_birthday(db_session, contact, "exact", date_of_birth="not a date")
    with pytest.raises(ValidationIssue):
        contact_ops.set_birthday(db_session, contact, "approximate", age=-1)


def test_clear_missing_birthday_reminder_is_not_found(db_session, contact):
    contact.birthday_reminder_id = 4242
    with pytest.raises(RecordNotFoundError):
        contact_ops.clear_birthdate_reminder(db_session, contact)


def test_update_last_called_info_only_moves_forward(db_session, account, contact):
    recent = Call(account_id=account.id, contact_id=contact.id, called_at=date(2026, 5, 1))
    older = Call(account_id=account.id, contact_id=contact.id, called_at=date(2025, 5, 1))

    contact_ops.update_last_called_info(db_session, contact, recent)
    assert contact.last_talked_to == date(2026, 5, 1)

    contact_ops.update_last_called_info(db_session, contact, older)
    assert contact.last_talked_to == date(2026, 5, 1)


def test_calculate_activities_statistics(db_session, account, contact):
    for day in (date(2024, 1, 5), date(2024, 7, 1), date(2025, 2, 2)):
        activity = Activity(account_id=account.id, summary="Coffee", date_it_happened=day)
        db_session.add(activity)
        db_session.flush()
        db_session.add(ActivityContact(account_id=account.id, activity_id=activity.id, contact_id=contact.id))
    db_session.commit()
    db_session.expire(contact)

    stats = contact_ops.calculate_activities_statistics(db_session, contact)
    assert [(item.year, item.count) for item in stats] == [(2024, 2), (2025, 1)]

    stats = contact_ops.calculate_activities_statistics(db_session, contact)
    db_session.commit()
    assert len(stats) == 2
