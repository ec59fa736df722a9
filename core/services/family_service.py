"""
Contact and family service tools.

Each tool scopes every query to the account of the request context, runs
in its own session, commits on success and returns a dict with a "status"
key. Edge mutations are recorded in the contact event log.
"""

from __future__ import annotations

import random
from datetime import date
from typing import Optional

from core.audit import list_events
from core.audit_constants import (
    OBJECT_CONTACT,
    OBJECT_KID,
    OBJECT_PROGENITOR,
    OBJECT_SIGNIFICANT_OTHER,
    OPERATION_ADD,
    OPERATION_DELETE,
    OPERATION_UPDATE,
)
from core.context import RequestContext, resolve_account_id
from core.db import DB
from core.errors import ValidationIssue
from core.models import BirthdateApproximation, Contact
from core.services import contact_graph as graph
from core.services import contacts as contact_ops
from core.services.contact_serializers import (
    serialize_contact,
    serialize_contact_short,
    serialize_edge,
    serialize_event,
    serialize_reminder,
)
from core.services.shared import (
    _validate_id,
    _validate_limit,
    _validate_optional_text,
    _validate_required_text,
    MAX_NAME_LENGTH,
    MAX_RESULT_LIMIT,
    MAX_SHORT_TEXT_LENGTH,
    MAX_TEXT_LENGTH,
    service_tool,
    logger,
)

APPROXIMATIONS = {item.value for item in BirthdateApproximation}
EVENT_OBJECT_TYPES = {OBJECT_SIGNIFICANT_OTHER, OBJECT_KID, OBJECT_PROGENITOR, OBJECT_CONTACT}


def _validate_pair(contact_id: int, other_id: int, other_field: str) -> None:
    _validate_id(contact_id, "contact_id")
    _validate_id(other_id, other_field)
    if contact_id == other_id:
        raise ValidationIssue(
            "A contact cannot be linked to itself",
            field=other_field,
            error_type="invalid_value",
        )


def _validate_names(first_name: str, middle_name: Optional[str], last_name: Optional[str]) -> None:
    _validate_required_text(first_name, "first_name", MAX_NAME_LENGTH)
    _validate_optional_text(middle_name, "middle_name", MAX_NAME_LENGTH)
    _validate_optional_text(last_name, "last_name", MAX_NAME_LENGTH)


def _relative_or_new(
    db,
    account_id: int,
    contact: Contact,
    *,
    relative_id: Optional[int],
    first_name: Optional[str],
    last_name: Optional[str],
    field: str,
    rng: Optional[random.Random],
) -> Contact:
    """Existing contact `relative_id`, or a new partial contact named first_name/last_name."""
    if relative_id is not None:
        _validate_pair(contact.id, relative_id, field)
        return graph.find_contact_or_fail(db, account_id, relative_id)
    if first_name is None:
        raise ValidationIssue(
            f"{field} or first_name is required",
            field=field,
            error_type="required",
        )
    _validate_names(first_name, None, last_name)
    return contact_ops.create_contact(
        db,
        account_id,
        first_name,
        last_name=last_name,
        is_partial=True,
        rng=rng,
    )


# =============================================================================
# Contacts
# =============================================================================

@service_tool
def contact_create(
    first_name: str,
    middle_name: Optional[str] = None,
    last_name: Optional[str] = None,
    gender: Optional[str] = None,
    email: Optional[str] = None,
    is_partial: bool = False,
    context: Optional[RequestContext] = None,
    rng: Optional[random.Random] = None,
) -> dict:
    """Create a contact with a default avatar color."""
    _validate_names(first_name, middle_name, last_name)
    _validate_optional_text(gender, "gender", 20)
    _validate_optional_text(email, "email", MAX_SHORT_TEXT_LENGTH)
    account_id = resolve_account_id(context)

    db = DB.SessionLocal()
    try:
        contact = contact_ops.create_contact(
            db,
            account_id,
            first_name,
            middle_name,
            last_name,
            gender=gender,
            email=email,
            is_partial=bool(is_partial),
            rng=rng,
        )
        contact_ops.log_event(db, contact, OBJECT_CONTACT, contact.id, OPERATION_ADD)
        db.commit()
        db.refresh(contact)
        return {"status": "ok", "contact": serialize_contact(contact)}
    finally:
        db.close()


@service_tool
def contact_get(contact_id: int, context: Optional[RequestContext] = None, today: Optional[date] = None) -> dict:
    """Full profile of a contact with its partners, children and parents."""
    _validate_id(contact_id, "contact_id")
    account_id = resolve_account_id(context)

    db = DB.SessionLocal()
    try:
        contact = graph.find_contact_or_fail(db, account_id, contact_id)
        payload = serialize_contact(contact, today=today)
        payload["partners"] = graph.get_current_partners_for_api(db, contact)
        payload["offsprings"] = graph.get_offsprings_for_api(db, contact)
        payload["progenitors"] = graph.get_progenitors_for_api(db, contact)
        return {"status": "ok", "contact": payload}
    finally:
        db.close()


@service_tool
def contact_update_name(
    contact_id: int,
    first_name: str,
    middle_name: Optional[str] = None,
    last_name: Optional[str] = None,
    context: Optional[RequestContext] = None,
) -> dict:
    """Rename a contact. Omitted middle/last names are left as they are."""
    _validate_id(contact_id, "contact_id")
    _validate_names(first_name, middle_name, last_name)
    account_id = resolve_account_id(context)

    db = DB.SessionLocal()
    try:
        contact = graph.find_contact_or_fail(db, account_id, contact_id)
        updated = contact_ops.update_name(
            db,
            contact,
            first_name,
            middle_name,
            last_name,
        )
        if updated:
            contact_ops.log_event(db, contact, OBJECT_CONTACT, contact.id, OPERATION_UPDATE)
        db.commit()
        return {"status": "ok", "updated": updated, "contact": serialize_contact_short(contact)}
    finally:
        db.close()


@service_tool
def contact_update_food_preferences(
    contact_id: int,
    food_preferences: Optional[str] = None,
    context: Optional[RequestContext] = None,
) -> dict:
    _validate_id(contact_id, "contact_id")
    _validate_optional_text(food_preferences, "food_preferences", MAX_TEXT_LENGTH)
    account_id = resolve_account_id(context)

    db = DB.SessionLocal()
    try:
        contact = graph.find_contact_or_fail(db, account_id, contact_id)
        contact_ops.update_food_preferences(db, contact, food_preferences)
        db.commit()
        return {"status": "ok", "food_preferences": contact.food_preferences}
    finally:
        db.close()


@service_tool
def contact_set_birthday(
    contact_id: int,
    approximation: str,
    date_of_birth: Optional[str] = None,
    age: Optional[int] = None,
    context: Optional[RequestContext] = None,
    today: Optional[date] = None,
) -> dict:
    """Set an exact or approximate birthdate, or clear it with 'unknown'."""
    _validate_id(contact_id, "contact_id")
    if approximation not in APPROXIMATIONS:
        raise ValidationIssue(
            "approximation must be one of: unknown, exact, approximate",
            field="approximation",
            error_type="invalid_value",
        )
    account_id = resolve_account_id(context)

    db = DB.SessionLocal()
    try:
        contact = graph.find_contact_or_fail(db, account_id, contact_id)
        contact_ops.set_birthday(
            db,
            contact,
            approximation,
            date_of_birth=date_of_birth,
            age=age,
            today=today,
        )
        db.commit()
        db.refresh(contact)
        reminder = None
        if contact.birthday_reminder_id:
            reminder = next(
                (item for item in contact.reminders if item.id == contact.birthday_reminder_id),
                None,
            )
        return {
            "status": "ok",
            "birthdate": contact.birthdate.isoformat() if contact.birthdate else None,
            "is_birthdate_approximate": contact.is_birthdate_approximate,
            "birthday_reminder": serialize_reminder(reminder) if reminder else None,
        }
    finally:
        db.close()


@service_tool
def contact_set_avatar_color(
    contact_id: int,
    color: Optional[str] = None,
    context: Optional[RequestContext] = None,
    rng: Optional[random.Random] = None,
) -> dict:
    """Set the default avatar color, or pick one at random when color is omitted."""
    _validate_id(contact_id, "contact_id")
    account_id = resolve_account_id(context)

    db = DB.SessionLocal()
    try:
        contact = graph.find_contact_or_fail(db, account_id, contact_id)
        chosen = contact_ops.set_avatar_color(db, contact, color=color, rng=rng)
        db.commit()
        return {"status": "ok", "default_avatar_color": chosen}
    finally:
        db.close()


# =============================================================================
# Family graph
# =============================================================================

@service_tool
def contact_potential_relatives(contact_id: int, context: Optional[RequestContext] = None) -> dict:
    """Real contacts that can still be linked to this one as partner or child."""
    _validate_id(contact_id, "contact_id")
    account_id = resolve_account_id(context)

    db = DB.SessionLocal()
    try:
        contact = graph.find_contact_or_fail(db, account_id, contact_id)
        candidates = graph.get_potential_contacts(db, contact)
        return {
            "status": "ok",
            "count": len(candidates),
            "contacts": [serialize_contact_short(item) for item in candidates],
        }
    finally:
        db.close()


@service_tool
def contact_link_partner(
    contact_id: int,
    partner_id: Optional[int] = None,
    bilateral: bool = False,
    first_name: Optional[str] = None,
    last_name: Optional[str] = None,
    context: Optional[RequestContext] = None,
    rng: Optional[random.Random] = None,
) -> dict:
    """
    Record that contact_id is partnered with partner_id.

    Without partner_id a partial contact named first_name/last_name is
    created as the partner. bilateral also records the reverse edge.
    """
    _validate_id(contact_id, "contact_id")
    account_id = resolve_account_id(context)

    db = DB.SessionLocal()
    try:
        contact = graph.find_contact_or_fail(db, account_id, contact_id)
        partner = _relative_or_new(
            db,
            account_id,
            contact,
            relative_id=partner_id,
            first_name=first_name,
            last_name=last_name,
            field="partner_id",
            rng=rng,
        )
        edges = graph.set_relationship_with(db, contact, partner, bilateral=bool(bilateral))
        contact_ops.log_event(db, contact, OBJECT_SIGNIFICANT_OTHER, partner.id, OPERATION_ADD)
        if bilateral:
            contact_ops.log_event(db, partner, OBJECT_SIGNIFICANT_OTHER, contact.id, OPERATION_ADD)
        db.commit()
        return {
            "status": "ok",
            "partner": serialize_contact_short(partner, object_name="partner"),
            "edges": [serialize_edge(edge, "relationship") for edge in edges],
        }
    finally:
        db.close()


@service_tool
def contact_make_partnership_bilateral(
    contact_id: int,
    partner_id: int,
    context: Optional[RequestContext] = None,
) -> dict:
    """Add the partner -> contact edge to an existing one-way partnership."""
    _validate_pair(contact_id, partner_id, "partner_id")
    account_id = resolve_account_id(context)

    db = DB.SessionLocal()
    try:
        contact = graph.find_contact_or_fail(db, account_id, contact_id)
        partner = graph.find_contact_or_fail(db, account_id, partner_id)
        edge = graph.update_relationship_with(db, contact, partner)
        contact_ops.log_event(db, partner, OBJECT_SIGNIFICANT_OTHER, contact.id, OPERATION_ADD)
        db.commit()
        return {"status": "ok", "edge": serialize_edge(edge, "relationship")}
    finally:
        db.close()


@service_tool
def contact_unlink_partner(
    contact_id: int,
    partner_id: int,
    bilateral: bool = False,
    context: Optional[RequestContext] = None,
) -> dict:
    """Remove contact -> partner (and partner -> contact when bilateral)."""
    _validate_pair(contact_id, partner_id, "partner_id")
    account_id = resolve_account_id(context)

    db = DB.SessionLocal()
    try:
        contact = graph.find_contact_or_fail(db, account_id, contact_id)
        partner = graph.find_contact_or_fail(db, account_id, partner_id)
        graph.unset_relationship_with(db, contact, partner, bilateral=bool(bilateral))
        contact_ops.delete_events_about_these_two_contacts(db, contact, partner, OBJECT_SIGNIFICANT_OTHER)
        contact_ops.log_event(db, contact, OBJECT_SIGNIFICANT_OTHER, partner.id, OPERATION_DELETE)
        db.commit()
        return {"status": "ok", "contact_id": contact_id, "partner_id": partner_id, "bilateral": bool(bilateral)}
    finally:
        db.close()


@service_tool
def contact_link_offspring(
    parent_id: int,
    child_id: Optional[int] = None,
    bilateral: bool = False,
    first_name: Optional[str] = None,
    last_name: Optional[str] = None,
    context: Optional[RequestContext] = None,
    rng: Optional[random.Random] = None,
) -> dict:
    """
    Record that child_id is a child of parent_id.

    Without child_id a partial contact named first_name/last_name is
    created as the child. bilateral also records the parent-side edge.
    """
    _validate_id(parent_id, "parent_id")
    account_id = resolve_account_id(context)

    db = DB.SessionLocal()
    try:
        parent = graph.find_contact_or_fail(db, account_id, parent_id)
        child = _relative_or_new(
            db,
            account_id,
            parent,
            relative_id=child_id,
            first_name=first_name,
            last_name=last_name,
            field="child_id",
            rng=rng,
        )
        edges = graph.is_the_offspring_of(db, child, parent, bilateral=bool(bilateral))
        contact_ops.log_event(db, parent, OBJECT_KID, child.id, OPERATION_ADD)
        if bilateral:
            contact_ops.log_event(db, child, OBJECT_PROGENITOR, parent.id, OPERATION_ADD)
        db.commit()
        kinds = ["offspring", "progenitor"]
        return {
            "status": "ok",
            "child": serialize_contact_short(child, object_name="offspring"),
            "edges": [serialize_edge(edge, kind) for edge, kind in zip(edges, kinds)],
        }
    finally:
        db.close()


@service_tool
def contact_unlink_offspring(
    parent_id: int,
    child_id: int,
    bilateral: bool = False,
    context: Optional[RequestContext] = None,
) -> dict:
    """Remove the child -> parent edge (and parent -> child when bilateral)."""
    _validate_pair(parent_id, child_id, "child_id")
    account_id = resolve_account_id(context)

    db = DB.SessionLocal()
    try:
        parent = graph.find_contact_or_fail(db, account_id, parent_id)
        child = graph.find_contact_or_fail(db, account_id, child_id)
        graph.unset_offspring(db, parent, child, bilateral=bool(bilateral))
        contact_ops.delete_events_about_these_two_contacts(db, parent, child, OBJECT_KID)
        if bilateral:
            contact_ops.delete_events_about_these_two_contacts(db, parent, child, OBJECT_PROGENITOR)
        contact_ops.log_event(db, parent, OBJECT_KID, child.id, OPERATION_DELETE)
        db.commit()
        return {"status": "ok", "parent_id": parent_id, "child_id": child_id, "bilateral": bool(bilateral)}
    finally:
        db.close()


@service_tool
def contact_family(contact_id: int, context: Optional[RequestContext] = None) -> dict:
    """Children then active partners of a contact."""
    _validate_id(contact_id, "contact_id")
    account_id = resolve_account_id(context)

    db = DB.SessionLocal()
    try:
        contact = graph.find_contact_or_fail(db, account_id, contact_id)
        members = graph.get_family_members(db, contact)
        return {
            "status": "ok",
            "count": len(members),
            "members": [serialize_contact_short(member) for member in members],
        }
    finally:
        db.close()


@service_tool
def contact_first_partner(contact_id: int, context: Optional[RequestContext] = None) -> dict:
    _validate_id(contact_id, "contact_id")
    account_id = resolve_account_id(context)

    db = DB.SessionLocal()
    try:
        contact = graph.find_contact_or_fail(db, account_id, contact_id)
        partner = graph.get_first_partner(db, contact)
        return {"status": "ok", "partner": serialize_contact_short(partner, object_name="partner")}
    finally:
        db.close()


@service_tool
def contact_first_progenitor(contact_id: int, context: Optional[RequestContext] = None) -> dict:
    _validate_id(contact_id, "contact_id")
    account_id = resolve_account_id(context)

    db = DB.SessionLocal()
    try:
        contact = graph.find_contact_or_fail(db, account_id, contact_id)
        parent = graph.get_first_progenitor(db, contact)
        return {"status": "ok", "progenitor": serialize_contact_short(parent, object_name="progenitor")}
    finally:
        db.close()


@service_tool
def contact_relative_reminders(contact_id: int, context: Optional[RequestContext] = None) -> dict:
    """Reminders about the contact and its partial partners and children."""
    _validate_id(contact_id, "contact_id")
    account_id = resolve_account_id(context)

    db = DB.SessionLocal()
    try:
        contact = graph.find_contact_or_fail(db, account_id, contact_id)
        reminders = graph.get_reminders_about_relatives(db, contact)
        return {
            "status": "ok",
            "count": len(reminders),
            "reminders": [serialize_reminder(reminder) for reminder in reminders],
        }
    finally:
        db.close()


# =============================================================================
# Event log
# =============================================================================

@service_tool
def contact_events(
    contact_id: int,
    object_type: Optional[str] = None,
    limit: int = 50,
    context: Optional[RequestContext] = None,
) -> dict:
    """Most recent events recorded on a contact."""
    _validate_id(contact_id, "contact_id")
    _validate_limit(limit, "limit", MAX_RESULT_LIMIT)
    _validate_optional_text(object_type, "object_type", MAX_SHORT_TEXT_LENGTH)
    account_id = resolve_account_id(context)

    db = DB.SessionLocal()
    try:
        graph.find_contact_or_fail(db, account_id, contact_id)
        events = list_events(
            db,
            account_id=account_id,
            contact_id=contact_id,
            object_type=object_type,
            limit=limit,
        )
        return {
            "status": "ok",
            "count": len(events),
            "events": [serialize_event(event) for event in events],
        }
    finally:
        db.close()


@service_tool
def contact_delete_events_between(
    contact_id: int,
    other_id: int,
    object_type: str,
    context: Optional[RequestContext] = None,
) -> dict:
    """Delete events on either contact that mention the other as object_type."""
    _validate_pair(contact_id, other_id, "other_id")
    if object_type not in EVENT_OBJECT_TYPES:
        raise ValidationIssue(
            "object_type must be one of: " + ", ".join(sorted(EVENT_OBJECT_TYPES)),
            field="object_type",
            error_type="invalid_value",
        )
    account_id = resolve_account_id(context)

    db = DB.SessionLocal()
    try:
        contact = graph.find_contact_or_fail(db, account_id, contact_id)
        other = graph.find_contact_or_fail(db, account_id, other_id)
        deleted = contact_ops.delete_events_about_these_two_contacts(db, contact, other, object_type)
        db.commit()
        logger.info(
            "contact_events_deleted",
            extra={"account_id": account_id, "contact_id": contact_id, "other_id": other_id, "deleted": deleted},
        )
        return {"status": "ok", "deleted": deleted}
    finally:
        db.close()


__all__ = [
    "contact_create",
    "contact_get",
    "contact_update_name",
    "contact_update_food_preferences",
    "contact_set_birthday",
    "contact_set_avatar_color",
    "contact_potential_relatives",
    "contact_link_partner",
    "contact_make_partnership_bilateral",
    "contact_unlink_partner",
    "contact_link_offspring",
    "contact_unlink_offspring",
    "contact_family",
    "contact_first_partner",
    "contact_first_progenitor",
    "contact_relative_reminders",
    "contact_events",
    "contact_delete_events_between",
]
