import os
import random
from datetime import date

os.environ.setdefault("DB_BACKEND", "sqlite")

import pytest

from core.errors import RecordNotFoundError, ValidationIssue
from core.models import Offspring, Progenitor, Relationship, Reminder
from core.services import contact_graph as graph
from core.services import contacts as contact_ops


def _contact(db, account, first_name, last_name=None, is_partial=False):
    return contact_ops.create_contact(
        db,
        account.id,
        first_name,
        last_name=last_name,
        is_partial=is_partial,
        rng=random.Random(7),
    )


@pytest.fixture
def family(db_session, account):
    """A and B are real contacts, C is partial."""
    a = _contact(db_session, account, "Alice", "Archer")
    b = _contact(db_session, account, "Bob", "Baker")
    c = _contact(db_session, account, "Cleo", "Archer", is_partial=True)
    db_session.commit()
    return a, b, c


def test_bilateral_partnership_is_visible_from_both_sides(db_session, family):
    a, b, _ = family
    edges = graph.set_relationship_with(db_session, a, b, bilateral=True)

    assert len(edges) == 2
    assert graph.get_current_partners(db_session, a) == [b]
    assert graph.get_current_partners(db_session, b) == [a]


def test_unilateral_partnership_only_creates_one_edge(db_session, family):
    a, b, _ = family
    graph.set_relationship_with(db_session, a, b)

    assert graph.get_current_partners(db_session, a) == [b]
    assert graph.get_current_partners(db_session, b) == []


def test_unlink_without_bilateral_keeps_reverse_edge(db_session, family):
    a, b, _ = family
    graph.set_relationship_with(db_session, a, b, bilateral=True)

    graph.unset_relationship_with(db_session, a, b, bilateral=False)

    assert graph.get_current_partners(db_session, a) == []
    assert graph.get_current_partners(db_session, b) == [a]


def test_bilateral_unlink_removes_both_edges(db_session, family):
    a, b, _ = family
    graph.set_relationship_with(db_session, a, b, bilateral=True)

    graph.unset_relationship_with(db_session, a, b, bilateral=True)

    assert db_session.query(Relationship).count() == 0


def test_unlink_missing_edge_is_not_found(db_session, family):
    a, b, _ = family
    with pytest.raises(RecordNotFoundError):
        graph.unset_relationship_with(db_session, a, b)


def test_bilateral_unlink_fails_when_reverse_edge_is_missing(db_session, family):
    a, b, _ = family
    graph.set_relationship_with(db_session, a, b)

    with pytest.raises(RecordNotFoundError) as exc_info:
        graph.unset_relationship_with(db_session, a, b, bilateral=True)
    assert exc_info.value.model == "Relationship"


def test_duplicate_edges_are_accepted(db_session, family):
    a, b, _ = family
    graph.set_relationship_with(db_session, a, b)
    graph.set_relationship_with(db_session, a, b)

    assert graph.get_current_partners(db_session, a) == [b, b]

    graph.unset_relationship_with(db_session, a, b)
    assert graph.get_current_partners(db_session, a) == [b]


def test_update_relationship_adds_reverse_edge(db_session, family):
    a, b, _ = family
    graph.set_relationship_with(db_session, a, b)

    edge = graph.update_relationship_with(db_session, a, b)

    assert edge.contact_id == b.id
    assert edge.with_contact_id == a.id
    assert graph.get_current_partners(db_session, b) == [a]


def test_inactive_partners_are_not_current(db_session, family):
    a, b, c = family
    edges = graph.set_relationship_with(db_session, a, c)
    edges[0].is_active = False
    db_session.flush()

    assert graph.get_current_partners(db_session, a) == []
    assert graph.get_partial_partners(db_session, a) == [c]


def test_bilateral_offspring_links_both_directions(db_session, family):
    a, _, c = family
    edges = graph.is_the_offspring_of(db_session, c, a, bilateral=True)

    assert isinstance(edges[0], Offspring)
    assert isinstance(edges[1], Progenitor)
    assert graph.get_offsprings(db_session, a) == [c]
    assert graph.get_progenitors(db_session, c) == [a]
    assert graph.get_partial_offsprings(db_session, a) == [c]


def test_unilateral_offspring_has_no_progenitor_edge(db_session, family):
    a, b, _ = family
    graph.is_the_offspring_of(db_session, b, a)

    assert graph.get_offsprings(db_session, a) == [b]
    assert graph.get_progenitors(db_session, b) == []
    assert graph.get_partial_offsprings(db_session, a) == []


def test_unset_offspring_only_removes_requested_side(db_session, family):
    a, _, c = family
    graph.is_the_offspring_of(db_session, c, a, bilateral=True)

    graph.unset_offspring(db_session, a, c)

    assert graph.get_offsprings(db_session, a) == []
    assert graph.get_progenitors(db_session, c) == [a]


def test_unset_offspring_bilateral(db_session, family):
    a, _, c = family
    graph.is_the_offspring_of(db_session, c, a, bilateral=True)

    graph.unset_offspring(db_session, a, c, bilateral=True)

    assert db_session.query(Offspring).count() == 0
    assert db_session.query(Progenitor).count() == 0


def test_unset_missing_offspring_is_not_found(db_session, family):
    a, b, _ = family
    with pytest.raises(RecordNotFoundError):
        graph.unset_offspring(db_session, a, b)


def test_potential_contacts_exclude_self_partials_and_linked(db_session, account, family):
    a, b, c = family
    d = _contact(db_session, account, "Dora")
    e = _contact(db_session, account, "Eli")
    f = _contact(db_session, account, "Fay")
    graph.set_relationship_with(db_session, a, b)
    graph.is_the_offspring_of(db_session, d, a)
    db_session.add(Progenitor(account_id=account.id, contact_id=e.id, is_the_parent_of=a.id))
    db_session.flush()

    candidates = graph.get_potential_contacts(db_session, a)

    assert candidates == [f]
    assert a not in candidates
    assert c not in candidates


def test_potential_contacts_only_check_edges_from_the_contact(db_session, family):
    a, b, _ = family
    graph.set_relationship_with(db_session, b, a)

    assert graph.get_potential_contacts(db_session, a) == [b]
    assert graph.get_potential_contacts(db_session, b) == []


def test_potential_contacts_are_ordered_by_name(db_session, account):
    me = _contact(db_session, account, "Zed")
    _contact(db_session, account, "Mia", "Young")
    _contact(db_session, account, "Mia", "Adams")
    _contact(db_session, account, "Ada")

    names = [
        (item.first_name, item.last_name)
        for item in graph.get_potential_contacts(db_session, me)
    ]
    assert names == [("Ada", None), ("Mia", "Adams"), ("Mia", "Young")]


def test_potential_contacts_are_scoped_to_account(db_session, account, other_account, family):
    a, b, _ = family
    _contact(db_session, other_account, "Stranger")

    assert graph.get_potential_contacts(db_session, a) == [b]


def test_scenario_partner_and_partial_child(db_session, family):
    a, b, c = family
    graph.set_relationship_with(db_session, a, b, bilateral=True)
    graph.is_the_offspring_of(db_session, c, a, bilateral=True)

    assert graph.get_current_partners(db_session, a) == [b]
    assert graph.get_current_partners(db_session, b) == [a]
    assert graph.get_offsprings(db_session, a) == [c]
    assert graph.get_progenitors(db_session, c) == [a]
    assert graph.get_partial_offsprings(db_session, a) == [c]
    assert graph.get_family_members(db_session, a) == [c, b]


def test_family_members_exclude_progenitor_only_links(db_session, account, family):
    a, b, c = family
    parent = _contact(db_session, account, "Gus")
    graph.set_relationship_with(db_session, a, b, bilateral=True)
    graph.is_the_offspring_of(db_session, c, a, bilateral=True)
    db_session.add(Progenitor(account_id=account.id, contact_id=parent.id, is_the_parent_of=a.id))
    db_session.add(Progenitor(account_id=account.id, contact_id=a.id, is_the_parent_of=parent.id))
    db_session.flush()

    members = graph.get_family_members(db_session, a)

    assert set(member.id for member in members) == {b.id, c.id}
    assert parent not in members


def test_api_variants_return_public_projection(db_session, family):
    a, b, c = family
    graph.set_relationship_with(db_session, a, b)
    graph.is_the_offspring_of(db_session, c, a, bilateral=True)

    partners = graph.get_current_partners_for_api(db_session, a)
    kids = graph.get_offsprings_for_api(db_session, a)
    parents = graph.get_progenitors_for_api(db_session, c)

    assert partners[0]["id"] == b.id
    assert partners[0]["object"] == "partner"
    assert partners[0]["complete_name"] == "Bob Baker"
    assert kids[0]["object"] == "offspring"
    assert kids[0]["is_partial"] is True
    assert parents[0]["id"] == a.id
    assert parents[0]["account"] == {"id": a.account_id}


def test_first_partner_and_first_progenitor(db_session, family):
    a, b, c = family
    graph.set_relationship_with(db_session, a, c)
    graph.set_relationship_with(db_session, b, c)
    graph.is_the_offspring_of(db_session, c, a)

    assert graph.get_first_partner(db_session, c) == a
    assert graph.get_first_progenitor(db_session, c) == a


def test_first_partner_without_edge_is_not_found(db_session, family):
    a, _, c = family
    with pytest.raises(RecordNotFoundError):
        graph.get_first_partner(db_session, c)
    with pytest.raises(RecordNotFoundError):
        graph.get_first_progenitor(db_session, a)


def test_edge_to_missing_contact_fails_fast(db_session, account, family):
    a, _, _ = family
    db_session.add(Relationship(account_id=account.id, contact_id=a.id, with_contact_id=9999, is_active=True))
    db_session.flush()

    with pytest.raises(RecordNotFoundError) as exc_info:
        graph.get_current_partners(db_session, a)
    assert exc_info.value.record_id == 9999


def test_linking_across_accounts_is_rejected(db_session, other_account, family):
    a, _, _ = family
    stranger = _contact(db_session, other_account, "Stranger")

    with pytest.raises(ValidationIssue):
        graph.set_relationship_with(db_session, a, stranger)
    with pytest.raises(ValidationIssue):
        graph.is_the_offspring_of(db_session, stranger, a)


def test_reminders_about_relatives(db_session, account, family):
    a, b, c = family
    kid = _contact(db_session, account, "Kit", is_partial=True)
    graph.set_relationship_with(db_session, a, c)
    graph.set_relationship_with(db_session, a, b)
    graph.is_the_offspring_of(db_session, kid, a)

    def _reminder(contact, title):
        reminder = Reminder(
            account_id=account.id,
            contact_id=contact.id,
            title=title,
            next_expected_date=date(2030, 1, 1),
        )
        db_session.add(reminder)
        return reminder

    _reminder(a, "own")
    _reminder(b, "real partner")
    _reminder(c, "partial partner")
    _reminder(kid, "partial kid")
    db_session.commit()
    db_session.expire_all()

    titles = [item.title for item in graph.get_reminders_about_relatives(db_session, a)]
    assert titles == ["own", "partial partner", "partial kid"]
