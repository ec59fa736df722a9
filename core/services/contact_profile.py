"""
Read-only views over a contact: names, addresses, dates, avatars, money,
gifts, tasks and how the user met them.
"""

from __future__ import annotations

import hashlib
import posixpath
import re
from datetime import date, datetime
from typing import Optional
from urllib.parse import quote
from zoneinfo import ZoneInfo

import httpx

import core.config as config
from core.models import BirthdateApproximation, Contact, DebtStatus
from core.services.shared import logger

INITIAL_RE = re.compile(r"(?<!\S)[a-zA-Z0-9]")
DEAD_MARKER = " ⚰"

SORT_CRITERIA = {
    "firstnameAZ": ("first_name", "asc"),
    "firstnameZA": ("first_name", "desc"),
    "lastnameAZ": ("last_name", "asc"),
    "lastnameZA": ("last_name", "desc"),
}
DEFAULT_SORT = "firstnameAZ"


# =============================================================================
# Names
# =============================================================================

def complete_name(contact: Contact, name_order: str = "firstname_first") -> str:
    if name_order == "lastname_first":
        parts = [contact.last_name, contact.middle_name, contact.first_name]
    else:
        parts = [contact.first_name, contact.middle_name, contact.last_name]
    name = " ".join(part for part in parts if part is not None)
    if contact.is_dead:
        name += DEAD_MARKER
    return name.strip()


def initials(contact: Contact) -> str:
    return "".join(INITIAL_RE.findall(complete_name(contact)))


# =============================================================================
# Address
# =============================================================================

def partial_address(contact: Contact) -> Optional[str]:
    """'Scranton' or 'Scranton, PA'."""
    if contact.city is None:
        return None
    if contact.province is not None:
        return f"{contact.city}, {contact.province}"
    return contact.city


def country_name(contact: Contact) -> Optional[str]:
    if contact.country is None:
        return None
    return contact.country.country


def country_iso(contact: Contact) -> Optional[str]:
    if contact.country is None:
        return None
    return contact.country.iso


def full_address(contact: Contact) -> str:
    parts = [
        contact.street,
        contact.city,
        contact.province,
        contact.postal_code,
        country_name(contact),
    ]
    return ", ".join(part for part in parts if part)


def google_maps_url(contact: Contact) -> str:
    return config.MAPS_PLACE_URL + quote(full_address(contact), safe="")


# =============================================================================
# Dates
# =============================================================================

def age(contact: Contact, today: Optional[date] = None) -> Optional[int]:
    """Whole years since the birthdate."""
    if contact.birthdate is None:
        return None
    today = today or date.today()
    born = contact.birthdate
    years = today.year - born.year
    if (today.month, today.day) < (born.month, born.day):
        years -= 1
    return years


def is_birthdate_approximate(contact: Contact) -> bool:
    return contact.is_birthdate_approximate != BirthdateApproximation.exact.value


def format_short_date(value, timezone: Optional[str] = None) -> Optional[str]:
    """Format as 'Oct 29, 1981'. Datetimes are moved to `timezone` first."""
    if value is None:
        return None
    if isinstance(value, datetime):
        if timezone and value.tzinfo is not None:
            value = value.astimezone(ZoneInfo(timezone))
        value = value.date()
    return value.strftime("%b %d, %Y")


def last_activity_date(contact: Contact, timezone: Optional[str] = None) -> Optional[str]:
    if not contact.activities:
        return None
    latest = max(activity.date_it_happened for activity in contact.activities)
    return format_short_date(latest, timezone)


def last_called(contact: Contact, timezone: Optional[str] = None) -> Optional[str]:
    return format_short_date(contact.last_talked_to, timezone)


# =============================================================================
# Avatars
# =============================================================================

def avatar_color(contact: Contact) -> Optional[str]:
    return contact.default_avatar_color


def _storage_url(location: Optional[str], path: str) -> str:
    base = config.AVATAR_STORAGE_URLS.get(location or config.DEFAULT_AVATAR_LOCATION, "")
    return f"{base.rstrip('/')}/{path.lstrip('/')}"


def avatar_url(contact: Contact, size: int = config.AVATAR_DEFAULT_SIZE) -> Optional[str]:
    """URL of the resized copy `avatars/<stem>_<size>.<ext>` of the uploaded avatar."""
    if not contact.avatar_file_name:
        return None
    stem, extension = posixpath.splitext(posixpath.basename(contact.avatar_file_name))
    return _storage_url(contact.avatar_location, f"avatars/{stem}_{size}{extension}")


def gravatar_url(
    contact: Contact,
    size: int = config.AVATAR_DEFAULT_SIZE,
    client: Optional[httpx.Client] = None,
) -> Optional[str]:
    """
    Gravatar for the contact's email, or None when there is no email or
    Gravatar answers 404 for it.
    """
    if not contact.email or not contact.email.strip():
        return None
    digest = hashlib.md5(contact.email.strip().lower().encode("utf-8")).hexdigest()
    url = f"{config.GRAVATAR_BASE_URL}{digest}"

    owns_client = client is None
    if owns_client:
        client = httpx.Client(timeout=config.GRAVATAR_TIMEOUT_SECONDS)
    try:
        response = client.head(url, params={"d": "404"})
    except httpx.HTTPError as exc:
        logger.warning("gravatar_probe_failed", extra={"contact_id": contact.id, "error": str(exc)})
        return None
    finally:
        if owns_client:
            client.close()

    if response.status_code == 404:
        return None
    return f"{url}?s={size}"


# =============================================================================
# Money
# =============================================================================

def has_debt(contact: Contact) -> bool:
    return len(contact.debts) != 0


def total_outstanding_debt_amount(contact: Contact) -> int:
    """Positive: the contact owes the user. Negative: the user owes the contact."""
    total = 0
    for debt in contact.debts:
        if debt.status != DebtStatus.inprogress.value:
            continue
        total += -debt.amount if debt.in_debt == "yes" else debt.amount
    return total


def is_owed_money(contact: Contact) -> bool:
    return total_outstanding_debt_amount(contact) > 0


# =============================================================================
# Tags, gifts, tasks
# =============================================================================

def tags_as_string(contact: Contact) -> str:
    return ",".join(tag.name for tag in contact.tags)


def gifts_offered(contact: Contact) -> list:
    return [gift for gift in contact.gifts if gift.has_been_offered]


def gift_ideas(contact: Contact) -> list:
    return [gift for gift in contact.gifts if gift.is_an_idea]


def tasks_in_progress(contact: Contact) -> list:
    return [task for task in contact.tasks if not task.completed]


def completed_tasks(contact: Contact) -> list:
    return [task for task in contact.tasks if task.completed]


# =============================================================================
# How we met
# =============================================================================

def has_first_met_information(contact: Contact) -> bool:
    return (
        contact.first_met_additional_info is not None
        or contact.first_met is not None
        or contact.first_met_through_contact_id is not None
    )


def get_introducer(db, contact: Contact) -> Optional[Contact]:
    """The contact who introduced this one to the user; None when unknown or gone."""
    if not contact.first_met_through_contact_id:
        return None
    return (
        db.query(Contact)
        .filter(Contact.account_id == contact.account_id)
        .filter(Contact.id == contact.first_met_through_contact_id)
        .first()
    )


# =============================================================================
# Query scopes
# =============================================================================

def sorted_contacts_query(query, criteria: Optional[str] = None):
    column_name, direction = SORT_CRITERIA.get(criteria or DEFAULT_SORT, SORT_CRITERIA[DEFAULT_SORT])
    column = getattr(Contact, column_name)
    return query.order_by(column.desc() if direction == "desc" else column.asc())


def real_contacts_query(query):
    """Drop partial contacts (kids or partners that only exist as someone's relative)."""
    return query.filter(Contact.is_partial.is_(False))
