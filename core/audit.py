"""
Contact event log helpers (what happened to which object, on which contact).
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import and_, or_

import core.config as config
from core.audit_constants import (
    OBJECT_ACTIVITY,
    OBJECT_CALL,
    OBJECT_CONTACT,
    OBJECT_DEBT,
    OBJECT_GIFT,
    OBJECT_KID,
    OBJECT_NOTE,
    OBJECT_PROGENITOR,
    OBJECT_REMINDER,
    OBJECT_SIGNIFICANT_OTHER,
    OBJECT_TAG,
    OBJECT_TASK,
    OPERATION_ADD,
    OPERATION_DELETE,
    OPERATION_UPDATE,
)
from core.models import Contact, ContactEvent

ALLOWED_OBJECT_TYPES = {
    OBJECT_CONTACT,
    OBJECT_SIGNIFICANT_OTHER,
    OBJECT_KID,
    OBJECT_PROGENITOR,
    OBJECT_ACTIVITY,
    OBJECT_REMINDER,
    OBJECT_GIFT,
    OBJECT_TASK,
    OBJECT_DEBT,
    OBJECT_CALL,
    OBJECT_NOTE,
    OBJECT_TAG,
}
ALLOWED_OPERATIONS = {OPERATION_ADD, OPERATION_UPDATE, OPERATION_DELETE}


def _coerce_object_id(object_id) -> Optional[int]:
    if object_id is None:
        return None
    if isinstance(object_id, bool) or not isinstance(object_id, int):
        raise ValueError("object_id must be an integer")
    return object_id


def log_event(
    db,
    *,
    contact: Contact,
    object_type: str,
    object_id: Optional[int],
    nature_of_operation: str,
) -> Optional[ContactEvent]:
    """
    Append an event about `contact` to the log.

    Returns None when event logging is disabled.
    """
    if object_type not in ALLOWED_OBJECT_TYPES:
        raise ValueError(f"object_type '{object_type}' is not allowed")
    if nature_of_operation not in ALLOWED_OPERATIONS:
        raise ValueError("nature_of_operation must be one of: add|update|delete")
    safe_object_id = _coerce_object_id(object_id)

    if not config.EVENTS_ENABLED:
        return None

    event = ContactEvent(
        created_at=datetime.utcnow(),
        account_id=contact.account_id,
        contact_id=contact.id,
        object_type=object_type,
        object_id=safe_object_id,
        nature_of_operation=nature_of_operation,
    )
    db.add(event)
    db.flush()
    return event


def delete_events_between(db, contact: Contact, other: Contact, object_type: str) -> int:
    """Delete events on either contact that mention the other one as `object_type`."""
    deleted = (
        db.query(ContactEvent)
        .filter(ContactEvent.account_id == contact.account_id)
        .filter(ContactEvent.object_type == object_type)
        .filter(
            or_(
                and_(
                    ContactEvent.contact_id == contact.id,
                    ContactEvent.object_id == other.id,
                ),
                and_(
                    ContactEvent.contact_id == other.id,
                    ContactEvent.object_id == contact.id,
                ),
            )
        )
        .delete(synchronize_session="fetch")
    )
    return deleted


def list_events(
    db,
    *,
    account_id: int,
    contact_id: Optional[int] = None,
    object_type: Optional[str] = None,
    limit: int = 100,
) -> list[ContactEvent]:
    """Most recent events first."""
    if limit <= 0:
        raise ValueError("limit must be positive")

    query = db.query(ContactEvent).filter(ContactEvent.account_id == account_id)
    if contact_id is not None:
        query = query.filter(ContactEvent.contact_id == contact_id)
    if object_type:
        query = query.filter(ContactEvent.object_type == object_type)

    return (
        query.order_by(ContactEvent.created_at.desc(), ContactEvent.id.desc())
        .limit(limit)
        .all()
    )


__all__ = [
    "ContactEvent",
    "log_event",
    "delete_events_between",
    "list_events",
    "ALLOWED_OBJECT_TYPES",
    "ALLOWED_OPERATIONS",
]
