"""
Plain-dict projections of contacts and related records for the HTTP API
and MCP tools.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from core.models import Contact, ContactEvent, Reminder, Tag
from core.services import contact_profile as profile


def _iso(value) -> Optional[str]:
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return None


def serialize_contact_short(contact: Contact, object_name: str = "contact") -> dict:
    return {
        "id": contact.id,
        "object": object_name,
        "first_name": contact.first_name,
        "last_name": contact.last_name,
        "complete_name": profile.complete_name(contact),
        "initials": profile.initials(contact),
        "is_partial": bool(contact.is_partial),
        "is_dead": bool(contact.is_dead),
        "information": {
            "avatar": {
                "has_avatar": bool(contact.has_avatar),
                "avatar_url": profile.avatar_url(contact),
                "default_avatar_color": profile.avatar_color(contact),
                "gravatar_url": contact.gravatar_url,
            },
        },
        "account": {"id": contact.account_id},
    }


def serialize_tag(tag: Tag) -> dict:
    return {
        "id": tag.id,
        "object": "tag",
        "name": tag.name,
        "name_slug": tag.name_slug,
        "account": {"id": tag.account_id},
    }


def serialize_reminder(reminder: Reminder) -> dict:
    return {
        "id": reminder.id,
        "object": "reminder",
        "title": reminder.title,
        "description": reminder.description,
        "frequency_type": reminder.frequency_type,
        "frequency_number": reminder.frequency_number,
        "next_expected_date": _iso(reminder.next_expected_date),
        "is_birthday": bool(reminder.is_birthday),
        "contact_id": reminder.contact_id,
        "account": {"id": reminder.account_id},
    }


def serialize_event(event: ContactEvent) -> dict:
    return {
        "id": event.id,
        "object": "event",
        "contact_id": event.contact_id,
        "object_type": event.object_type,
        "object_id": event.object_id,
        "nature_of_operation": event.nature_of_operation,
        "created_at": _iso(event.created_at),
    }


def serialize_edge(edge, kind: str) -> dict:
    """Relationship, Offspring or Progenitor row as {kind, id, from, to}."""
    if kind == "relationship":
        target_id = edge.with_contact_id
    elif kind == "offspring":
        target_id = edge.is_the_child_of
    elif kind == "progenitor":
        target_id = edge.is_the_parent_of
    else:
        raise ValueError(f"Unknown edge kind '{kind}'")
    payload = {
        "id": edge.id,
        "kind": kind,
        "contact_id": edge.contact_id,
        "target_id": target_id,
    }
    if kind == "relationship":
        payload["is_active"] = bool(edge.is_active)
    return payload


def serialize_contact(contact: Contact, today: Optional[date] = None) -> dict:
    payload = serialize_contact_short(contact)
    payload.update(
        {
            "middle_name": contact.middle_name,
            "gender": contact.gender,
            "is_birthdate_approximate": contact.is_birthdate_approximate,
            "birthdate": _iso(contact.birthdate),
            "age": profile.age(contact, today=today),
            "deceased_date": _iso(contact.deceased_date),
            "email": contact.email,
            "phone_number": contact.phone_number,
            "job": contact.job,
            "company": contact.company,
            "food_preferences": contact.food_preferences,
            "last_talked_to": _iso(contact.last_talked_to),
            "addresses": {
                "street": contact.street,
                "city": contact.city,
                "province": contact.province,
                "postal_code": contact.postal_code,
                "country_name": profile.country_name(contact),
                "country_iso": profile.country_iso(contact),
                "partial": profile.partial_address(contact),
                "full": profile.full_address(contact) or None,
            },
            "tags": [serialize_tag(tag) for tag in contact.tags],
            "how_you_met": {
                "first_met": _iso(contact.first_met),
                "general_information": contact.first_met_additional_info,
                "first_met_through_contact_id": contact.first_met_through_contact_id,
            },
            "created_at": _iso(contact.created_at),
            "updated_at": _iso(contact.updated_at),
        }
    )
    return payload
