import os
import random

os.environ.setdefault("DB_BACKEND", "sqlite")

import pytest

import core.config as config
from core import audit
from core.audit_constants import OBJECT_KID, OBJECT_SIGNIFICANT_OTHER, OPERATION_ADD, OPERATION_DELETE
from core.models import ContactEvent
from core.services import contacts as contact_ops


@pytest.fixture
def pair(db_session, account):
    rng = random.Random(1)
    a = contact_ops.create_contact(db_session, account.id, "Andy", rng=rng)
    b = contact_ops.create_contact(db_session, account.id, "Erin", rng=rng)
    db_session.commit()
    return a, b


def test_log_event_returns_id(db_session, pair):
    a, b = pair
    event_id = contact_ops.log_event(db_session, a, OBJECT_SIGNIFICANT_OTHER, b.id, OPERATION_ADD)

    event = db_session.get(ContactEvent, event_id)
    assert event.account_id == a.account_id
    assert event.contact_id == a.id
    assert event.object_type == "significantother"
    assert event.object_id == b.id
    assert event.nature_of_operation == "add"


def test_log_event_rejects_unknown_values(db_session, pair):
    a, b = pair
    with pytest.raises(ValueError):
        audit.log_event(db_session, contact=a, object_type="spaceship", object_id=b.id, nature_of_operation="add")
    with pytest.raises(ValueError):
        audit.log_event(db_session, contact=a, object_type=OBJECT_KID, object_id=b.id, nature_of_operation="merge")
    with pytest.raises(ValueError):
        audit.log_event(db_session, contact=a, object_type=OBJECT_KID, object_id="7", nature_of_operation="add")


def test_log_event_disabled(db_session, pair, monkeypatch):
    a, b = pair
    monkeypatch.setattr(config, "EVENTS_ENABLED", False)

    assert contact_ops.log_event(db_session, a, OBJECT_KID, b.id, OPERATION_ADD) is None
    assert db_session.query(ContactEvent).count() == 0


def test_delete_events_about_two_contacts(db_session, account, pair):
    a, b = pair
    c = contact_ops.create_contact(db_session, account.id, "Oscar", rng=random.Random(2))
    contact_ops.log_event(db_session, a, OBJECT_SIGNIFICANT_OTHER, b.id, OPERATION_ADD)
    contact_ops.log_event(db_session, b, OBJECT_SIGNIFICANT_OTHER, a.id, OPERATION_ADD)
    contact_ops.log_event(db_session, a, OBJECT_KID, b.id, OPERATION_ADD)
    contact_ops.log_event(db_session, a, OBJECT_SIGNIFICANT_OTHER, c.id, OPERATION_ADD)

    deleted = contact_ops.delete_events_about_these_two_contacts(db_session, a, b, OBJECT_SIGNIFICANT_OTHER)
    db_session.commit()

    assert deleted == 2
    remaining = {(event.object_type, event.object_id) for event in db_session.query(ContactEvent).all()}
    assert remaining == {("kid", b.id), ("significantother", c.id)}


def test_list_events_newest_first(db_session, pair):
    a, b = pair
    contact_ops.log_event(db_session, a, OBJECT_SIGNIFICANT_OTHER, b.id, OPERATION_ADD)
    contact_ops.log_event(db_session, a, OBJECT_SIGNIFICANT_OTHER, b.id, OPERATION_DELETE)
    contact_ops.log_event(db_session, b, OBJECT_KID, a.id, OPERATION_ADD)

    events = audit.list_events(db_session, account_id=a.account_id, contact_id=a.id)
    assert [event.nature_of_operation for event in events] == ["delete", "add"]

    kids = audit.list_events(db_session, account_id=a.account_id, object_type=OBJECT_KID)
    assert [event.contact_id for event in kids] == [b.id]

    with pytest.raises(ValueError):
        audit.list_events(db_session, account_id=a.account_id, limit=0)
