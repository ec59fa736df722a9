"""
Family graph services for contacts.

Three directed edge kinds link contacts of the same account:
- Relationship: contact_id is partnered with with_contact_id
- Offspring: contact_id is the child of is_the_child_of
- Progenitor: contact_id is the parent of is_the_parent_of

Functions here work on an open session and never commit. Bilateral links
are two independent rows; unlinking only removes the directions asked for.
"""

from __future__ import annotations

from typing import Iterable

from sqlalchemy import select

from core.errors import RecordNotFoundError, ValidationIssue
from core.models import Contact, Offspring, Progenitor, Relationship, Reminder
from core.services.contact_serializers import serialize_contact_short
from core.services.shared import logger


def _ensure_same_account(contact: Contact, other: Contact, *, field: str) -> None:
    if contact.account_id != other.account_id:
        raise ValidationIssue(
            "Contacts belong to different accounts",
            field=field,
            error_type="cross_account",
        )


def find_contact_or_fail(db, account_id: int, contact_id: int) -> Contact:
    contact = (
        db.query(Contact)
        .filter(Contact.account_id == account_id)
        .filter(Contact.id == contact_id)
        .first()
    )
    if contact is None:
        raise RecordNotFoundError("Contact", contact_id)
    return contact


def _resolve_contacts(db, account_id: int, contact_ids: Iterable[int]) -> list[Contact]:
    """Load contacts by id in one query, keeping the order (and repeats) of contact_ids."""
    ordered_ids = list(contact_ids)
    if not ordered_ids:
        return []
    rows = (
        db.query(Contact)
        .filter(Contact.account_id == account_id)
        .filter(Contact.id.in_(set(ordered_ids)))
        .all()
    )
    by_id = {row.id: row for row in rows}
    for contact_id in ordered_ids:
        if contact_id not in by_id:
            raise RecordNotFoundError("Contact", contact_id)
    return [by_id[contact_id] for contact_id in ordered_ids]


# =============================================================================
# Linking candidates
# =============================================================================

def get_potential_contacts(db, contact: Contact) -> list[Contact]:
    """
    Real contacts of the account that `contact` could be linked to.

    Excludes the contact itself, partial contacts, contacts `contact` already
    partners with, its children and its parents (Progenitor side).
    """
    partnered = (
        select(Relationship.with_contact_id)
        .where(Relationship.account_id == contact.account_id)
        .where(Relationship.contact_id == contact.id)
    )
    children = (
        select(Offspring.contact_id)
        .where(Offspring.account_id == contact.account_id)
        .where(Offspring.is_the_child_of == contact.id)
    )
    parents = (
        select(Progenitor.contact_id)
        .where(Progenitor.account_id == contact.account_id)
        .where(Progenitor.is_the_parent_of == contact.id)
    )
    return (
        db.query(Contact)
        .filter(Contact.account_id == contact.account_id)
        .filter(Contact.is_partial.is_(False))
        .filter(Contact.id != contact.id)
        .filter(~Contact.id.in_(partnered))
        .filter(~Contact.id.in_(children))
        .filter(~Contact.id.in_(parents))
        .order_by(Contact.first_name.asc(), Contact.last_name.asc())
        .all()
    )


# =============================================================================
# Partners
# =============================================================================

def set_relationship_with(db, contact: Contact, partner: Contact, bilateral: bool = False) -> list[Relationship]:
    """Create contact -> partner, plus partner -> contact when bilateral. Duplicates are not checked."""
    _ensure_same_account(contact, partner, field="partner_id")
    edges = [
        Relationship(
            account_id=contact.account_id,
            contact_id=contact.id,
            with_contact_id=partner.id,
            is_active=True,
        )
    ]
    if bilateral:
        edges.append(
            Relationship(
                account_id=contact.account_id,
                contact_id=partner.id,
                with_contact_id=contact.id,
                is_active=True,
            )
        )
    for edge in edges:
        db.add(edge)
    db.flush()
    logger.info(
        "contact_edge_created",
        extra={"kind": "relationship", "contact_id": contact.id, "target_id": partner.id, "bilateral": bilateral},
    )
    return edges


def update_relationship_with(db, contact: Contact, partner: Contact) -> Relationship:
    """Turn a unilateral partnership into a bilateral one by adding partner -> contact."""
    _ensure_same_account(contact, partner, field="partner_id")
    edge = Relationship(
        account_id=contact.account_id,
        contact_id=partner.id,
        with_contact_id=contact.id,
        is_active=True,
    )
    db.add(edge)
    db.flush()
    return edge


def _first_relationship(db, account_id: int, contact_id: int, with_contact_id: int) -> Relationship:
    edge = (
        db.query(Relationship)
        .filter(Relationship.account_id == account_id)
        .filter(Relationship.contact_id == contact_id)
        .filter(Relationship.with_contact_id == with_contact_id)
        .order_by(Relationship.id.asc())
        .first()
    )
    if edge is None:
        raise RecordNotFoundError(
            "Relationship",
            message=f"Relationship not found: {contact_id} -> {with_contact_id}",
        )
    return edge


def unset_relationship_with(db, contact: Contact, partner: Contact, bilateral: bool = False) -> None:
    """Delete contact -> partner, plus partner -> contact when bilateral."""
    edge = _first_relationship(db, contact.account_id, contact.id, partner.id)
    db.delete(edge)
    if bilateral:
        reverse = _first_relationship(db, contact.account_id, partner.id, contact.id)
        db.delete(reverse)
    db.flush()
    logger.info(
        "contact_edge_deleted",
        extra={"kind": "relationship", "contact_id": contact.id, "target_id": partner.id, "bilateral": bilateral},
    )


def _relationship_edges(db, contact: Contact, *, active_only: bool) -> list[Relationship]:
    query = (
        db.query(Relationship)
        .filter(Relationship.account_id == contact.account_id)
        .filter(Relationship.contact_id == contact.id)
    )
    if active_only:
        query = query.filter(Relationship.is_active.is_(True))
    return query.order_by(Relationship.id.asc()).all()


def get_current_partners(db, contact: Contact) -> list[Contact]:
    edges = _relationship_edges(db, contact, active_only=True)
    return _resolve_contacts(db, contact.account_id, [edge.with_contact_id for edge in edges])


def get_current_partners_for_api(db, contact: Contact) -> list[dict]:
    return [
        serialize_contact_short(partner, object_name="partner")
        for partner in get_current_partners(db, contact)
    ]


def get_partial_partners(db, contact: Contact) -> list[Contact]:
    """Partners (active or not) that are partial contacts."""
    edges = _relationship_edges(db, contact, active_only=False)
    partners = _resolve_contacts(db, contact.account_id, [edge.with_contact_id for edge in edges])
    return [partner for partner in partners if partner.is_partial]


def get_first_partner(db, contact: Contact) -> Contact:
    """The contact on the other side of the first edge pointing at `contact`."""
    edge = (
        db.query(Relationship)
        .filter(Relationship.account_id == contact.account_id)
        .filter(Relationship.with_contact_id == contact.id)
        .order_by(Relationship.id.asc())
        .first()
    )
    if edge is None:
        raise RecordNotFoundError("Relationship", message=f"No partner for contact {contact.id}")
    return find_contact_or_fail(db, contact.account_id, edge.contact_id)


# =============================================================================
# Parents & children
# =============================================================================

def is_the_offspring_of(db, child: Contact, parent: Contact, bilateral: bool = False) -> list:
    """Create Offspring(child -> parent), plus Progenitor(parent -> child) when bilateral."""
    _ensure_same_account(child, parent, field="parent_id")
    edges: list = [
        Offspring(
            account_id=child.account_id,
            contact_id=child.id,
            is_the_child_of=parent.id,
        )
    ]
    if bilateral:
        edges.append(
            Progenitor(
                account_id=child.account_id,
                contact_id=parent.id,
                is_the_parent_of=child.id,
            )
        )
    for edge in edges:
        db.add(edge)
    db.flush()
    logger.info(
        "contact_edge_created",
        extra={"kind": "offspring", "contact_id": child.id, "target_id": parent.id, "bilateral": bilateral},
    )
    return edges


def unset_offspring(db, parent: Contact, child: Contact, bilateral: bool = False) -> None:
    """Delete Offspring(child -> parent), plus Progenitor(parent -> child) when bilateral."""
    offspring = (
        db.query(Offspring)
        .filter(Offspring.account_id == parent.account_id)
        .filter(Offspring.contact_id == child.id)
        .filter(Offspring.is_the_child_of == parent.id)
        .order_by(Offspring.id.asc())
        .first()
    )
    if offspring is None:
        raise RecordNotFoundError("Offspring", message=f"Offspring not found: {child.id} -> {parent.id}")
    db.delete(offspring)

    if bilateral:
        progenitor = (
            db.query(Progenitor)
            .filter(Progenitor.account_id == parent.account_id)
            .filter(Progenitor.contact_id == parent.id)
            .filter(Progenitor.is_the_parent_of == child.id)
            .order_by(Progenitor.id.asc())
            .first()
        )
        if progenitor is None:
            raise RecordNotFoundError("Progenitor", message=f"Progenitor not found: {parent.id} -> {child.id}")
        db.delete(progenitor)
    db.flush()
    logger.info(
        "contact_edge_deleted",
        extra={"kind": "offspring", "contact_id": child.id, "target_id": parent.id, "bilateral": bilateral},
    )


def get_offsprings(db, contact: Contact) -> list[Contact]:
    edges = (
        db.query(Offspring)
        .filter(Offspring.account_id == contact.account_id)
        .filter(Offspring.is_the_child_of == contact.id)
        .order_by(Offspring.id.asc())
        .all()
    )
    return _resolve_contacts(db, contact.account_id, [edge.contact_id for edge in edges])


def get_offsprings_for_api(db, contact: Contact) -> list[dict]:
    return [
        serialize_contact_short(kid, object_name="offspring")
        for kid in get_offsprings(db, contact)
    ]


def get_partial_offsprings(db, contact: Contact) -> list[Contact]:
    return [kid for kid in get_offsprings(db, contact) if kid.is_partial]


def get_progenitors(db, contact: Contact) -> list[Contact]:
    edges = (
        db.query(Progenitor)
        .filter(Progenitor.account_id == contact.account_id)
        .filter(Progenitor.is_the_parent_of == contact.id)
        .order_by(Progenitor.id.asc())
        .all()
    )
    return _resolve_contacts(db, contact.account_id, [edge.contact_id for edge in edges])


def get_progenitors_for_api(db, contact: Contact) -> list[dict]:
    return [
        serialize_contact_short(parent, object_name="progenitor")
        for parent in get_progenitors(db, contact)
    ]


def get_first_progenitor(db, contact: Contact) -> Contact:
    """The parent named by the first Offspring edge of `contact`."""
    edge = (
        db.query(Offspring)
        .filter(Offspring.account_id == contact.account_id)
        .filter(Offspring.contact_id == contact.id)
        .order_by(Offspring.id.asc())
        .first()
    )
    if edge is None:
        raise RecordNotFoundError("Offspring", message=f"No parent for contact {contact.id}")
    return find_contact_or_fail(db, contact.account_id, edge.is_the_child_of)


# =============================================================================
# Family
# =============================================================================

def get_family_members(db, contact: Contact) -> list[Contact]:
    """Children, then active partners.

    Parents linked only through Progenitor edges are not part of the result.
    """
    return get_offsprings(db, contact) + get_current_partners(db, contact)


def get_reminders_about_relatives(db, contact: Contact) -> list[Reminder]:
    """Reminders of the contact, then of each partial partner, then of each partial child."""
    reminders = list(contact.reminders)
    for partner in get_partial_partners(db, contact):
        reminders.extend(partner.reminders)
    for kid in get_partial_offsprings(db, contact):
        reminders.extend(kid.reminders)
    return reminders
