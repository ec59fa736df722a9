import hashlib
import os
from datetime import date, datetime, timezone

os.environ.setdefault("DB_BACKEND", "sqlite")

import httpx

from core.models import (
    Activity,
    ActivityContact,
    Contact,
    ContactTag,
    Country,
    Debt,
    Gift,
    Tag,
    Task,
)
from core.services import contact_profile as profile


def test_complete_name_orders_and_dead_marker():
    contact = Contact(first_name="Jean", middle_name="Luc", last_name="Picard")
    assert profile.complete_name(contact) == "Jean Luc Picard"
    assert profile.complete_name(contact, "lastname_first") == "Picard Luc Jean"

    contact.middle_name = None
    contact.is_dead = True
    assert profile.complete_name(contact) == "Jean Picard ⚰"


def test_initials_skip_symbols():
    contact = Contact(first_name="jean", last_name="Picard", is_dead=True)
    assert profile.initials(contact) == "jP"


def test_partial_and_full_address():
    contact = Contact(first_name="Pam", street="1725 Slough Avenue", postal_code="18505")
    assert profile.partial_address(contact) is None

    contact.city = "Scranton"
    assert profile.partial_address(contact) == "Scranton"
    contact.province = "PA"
    assert profile.partial_address(contact) == "Scranton, PA"

    contact.country = Country(iso="US", country="United States")
    assert profile.full_address(contact) == "1725 Slough Avenue, Scranton, PA, 18505, United States"
    assert profile.country_iso(contact) == "US"
    assert profile.google_maps_url(contact) == (
        "https://www.google.ca/maps/place/1725%20Slough%20Avenue%2C%20Scranton%2C%20PA%2C%2018505%2C%20United%20States"
    )


def test_age_uses_injected_today():
    contact = Contact(first_name="Dwight", birthdate=date(1981, 10, 29))
    assert profile.age(contact, today=date(2026, 10, 19)) == 44
    assert profile.age(contact, today=date(2026, 10, 29)) == 45
    assert profile.age(Contact(first_name="Nobody")) is None


def test_birthdate_approximation_flag():
    contact = Contact(first_name="Kevin", is_birthdate_approximate="unknown")
    assert profile.is_birthdate_approximate(contact) is True
    contact.is_birthdate_approximate = "approximate"
    assert profile.is_birthdate_approximate(contact) is True
    contact.is_birthdate_approximate = "exact"
    assert profile.is_birthdate_approximate(contact) is False


def test_short_dates():
    assert profile.format_short_date(date(1981, 10, 29)) == "Oct 29, 1981"
    assert profile.format_short_date(None) is None
    assert profile.format_short_date(datetime(2020, 1, 1, 3, 0)) == "Jan 01, 2020"
    assert profile.format_short_date(datetime(2020, 1, 1, 3, 0, tzinfo=timezone.utc), "UTC") == "Jan 01, 2020"

    contact = Contact(first_name="Oscar", last_talked_to=date(2024, 2, 3))
    assert profile.last_called(contact) == "Feb 03, 2024"


def test_avatar_url_uses_storage_location():
    contact = Contact(
        first_name="Angela",
        avatar_file_name="avatars/cat.jpg",
        avatar_location="public",
        default_avatar_color="#fdb660",
    )
    assert profile.avatar_url(contact, 110) == "/storage/avatars/cat_110.jpg"
    assert profile.avatar_color(contact) == "#fdb660"

    contact.avatar_location = "s3"
    assert profile.avatar_url(contact, 42) == "https://s3.amazonaws.com/contactgraph/avatars/cat_42.jpg"
    assert profile.avatar_url(Contact(first_name="Noavatar")) is None


def test_gravatar_probe():
    digest = hashlib.md5(b"pam@example.com").hexdigest()
    seen = []

    def handler(request):
        seen.append(request)
        if digest in str(request.url):
            return httpx.Response(200)
        return httpx.Response(404)

    client = httpx.Client(transport=httpx.MockTransport(handler))
    contact = Contact(first_name="Pam", email="  Pam@Example.com ")

    url = profile.gravatar_url(contact, 80, client=client)

    assert url == f"https://www.gravatar.com/avatar/{digest}?s=80"
    assert seen[0].url.params["d"] == "404"

    contact.email = "nobody@example.com"
    assert profile.gravatar_url(contact, 80, client=client) is None
    contact.email = None
    assert profile.gravatar_url(contact, 80, client=client) is None


def test_gravatar_probe_network_error_returns_none():
    def handler(request):
        raise httpx.ConnectError("offline", request=request)

    client = httpx.Client(transport=httpx.MockTransport(handler))
    contact = Contact(id=1, first_name="Pam", email="pam@example.com")
    assert profile.gravatar_url(contact, client=client) is None


def test_debts_sum_in_progress_only():
    contact = Contact(first_name="Stanley")
    assert profile.has_debt(contact) is False

    contact.debts = [
        Debt(in_debt="no", status="inprogress", amount=100),
        Debt(in_debt="yes", status="inprogress", amount=30),
        Debt(in_debt="no", status="complete", amount=500),
    ]
    assert profile.has_debt(contact) is True
    assert profile.total_outstanding_debt_amount(contact) == 70
    assert profile.is_owed_money(contact) is True

    contact.debts.append(Debt(in_debt="yes", status="inprogress", amount=200))
    assert profile.is_owed_money(contact) is False


def test_gifts_and_tasks_filters():
    contact = Contact(first_name="Phyllis")
    offered = Gift(name="Scarf", is_an_idea=False, has_been_offered=True)
    idea = Gift(name="Book", is_an_idea=True, has_been_offered=False)
    open_task = Task(title="Call back", completed=False)
    done_task = Task(title="Send card", completed=True)
    contact.gifts = [offered, idea]
    contact.tasks = [open_task, done_task]

    assert profile.gifts_offered(contact) == [offered]
    assert profile.gift_ideas(contact) == [idea]
    assert profile.tasks_in_progress(contact) == [open_task]
    assert profile.completed_tasks(contact) == [done_task]


def test_first_met_information_and_introducer(db_session, account, other_account):
    introducer = Contact(account_id=account.id, first_name="Michael")
    stranger = Contact(account_id=other_account.id, first_name="David")
    db_session.add_all([introducer, stranger])
    db_session.flush()

    contact = Contact(account_id=account.id, first_name="Holly")
    assert profile.has_first_met_information(contact) is False
    assert profile.get_introducer(db_session, contact) is None

    contact.first_met_through_contact_id = introducer.id
    assert profile.has_first_met_information(contact) is True
    assert profile.get_introducer(db_session, contact) == introducer

    contact.first_met_through_contact_id = stranger.id
    assert profile.get_introducer(db_session, contact) is None


def test_tags_and_last_activity(db_session, account):
    contact = Contact(account_id=account.id, first_name="Creed")
    db_session.add(contact)
    db_session.flush()
    for name in ("work", "family"):
        tag = Tag(account_id=account.id, name=name, name_slug=name)
        db_session.add(tag)
        db_session.flush()
        db_session.add(ContactTag(account_id=account.id, contact_id=contact.id, tag_id=tag.id))
    for day in (date(2024, 5, 1), date(2025, 3, 9)):
        activity = Activity(account_id=account.id, summary="Lunch", date_it_happened=day)
        db_session.add(activity)
        db_session.flush()
        db_session.add(ActivityContact(account_id=account.id, activity_id=activity.id, contact_id=contact.id))
    db_session.commit()
    db_session.expire(contact)

    assert profile.tags_as_string(contact) == "family,work"
    assert profile.last_activity_date(contact) == "Mar 09, 2025"


def test_sorted_and_real_contacts_queries(db_session, account):
    for first, last, partial in (("Bea", "Zane", False), ("Al", "Young", False), ("Cy", "Xu", True)):
        db_session.add(Contact(account_id=account.id, first_name=first, last_name=last, is_partial=partial))
    db_session.flush()

    query = profile.real_contacts_query(db_session.query(Contact))
    assert [c.first_name for c in profile.sorted_contacts_query(query).all()] == ["Al", "Bea"]
    assert [c.first_name for c in profile.sorted_contacts_query(query, "firstnameZA").all()] == ["Bea", "Al"]
    assert [c.last_name for c in profile.sorted_contacts_query(query, "lastnameAZ").all()] == ["Young", "Zane"]
    assert [c.last_name for c in profile.sorted_contacts_query(query, "lastnameZA").all()] == ["Zane", "Young"]
    assert [c.first_name for c in profile.sorted_contacts_query(query, "bogus").all()] == ["Al", "Bea"]
