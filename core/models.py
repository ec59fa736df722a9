"""
ContactGraph Database Models
PostgreSQL / SQLite schema
"""

from datetime import datetime
from enum import Enum as PyEnum
from sqlalchemy import (
    Column, Integer, String, Text, Boolean, Date, DateTime, ForeignKey, Index, UniqueConstraint
)
from sqlalchemy.orm import relationship, declarative_base

Base = declarative_base()

# =============================================================================
# Enums
# =============================================================================

class BirthdateApproximation(str, PyEnum):
    unknown = "unknown"
    exact = "exact"
    approximate = "approximate"


class ReminderFrequency(str, PyEnum):
    one_time = "one_time"
    day = "day"
    week = "week"
    month = "month"
    year = "year"


class DebtStatus(str, PyEnum):
    inprogress = "inprogress"
    complete = "complete"


# =============================================================================
# Accounts & reference data
# =============================================================================

class Account(Base):
    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True)
    name = Column(String(255))
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow)

    contacts = relationship("Contact", back_populates="account")


class Country(Base):
    __tablename__ = "countries"

    id = Column(Integer, primary_key=True)
    iso = Column(String(2), nullable=False)
    country = Column(String(255), nullable=False)

    __table_args__ = (
        UniqueConstraint("iso", name="uq_countries_iso"),
    )


# =============================================================================
# Contacts
# =============================================================================

class Contact(Base):
    __tablename__ = "contacts"

    id = Column(Integer, primary_key=True)
    account_id = Column(Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)
    first_name = Column(String(255), nullable=False)
    middle_name = Column(String(255))
    last_name = Column(String(255))
    gender = Column(String(20))

    # Birth & death
    birthdate = Column(Date)
    is_birthdate_approximate = Column(
        String(20), nullable=False, default=BirthdateApproximation.unknown.value
    )
    birthday_reminder_id = Column(
        Integer,
        ForeignKey("reminders.id", use_alter=True, name="fk_contacts_birthday_reminder_id", ondelete="SET NULL"),
    )
    is_dead = Column(Boolean, default=False, nullable=False)
    deceased_date = Column(Date)

    # Placeholder contact that only exists inside another contact's family graph
    is_partial = Column(Boolean, default=False, nullable=False)

    # Contact information
    email = Column(String(255))
    phone_number = Column(String(100))
    job = Column(String(255))
    company = Column(String(255))
    facebook_profile_url = Column(String(1000))
    twitter_profile_url = Column(String(1000))
    linkedin_profile_url = Column(String(1000))
    food_preferences = Column(Text)

    # Address
    street = Column(String(255))
    city = Column(String(255))
    province = Column(String(255))
    postal_code = Column(String(50))
    country_id = Column(Integer, ForeignKey("countries.id"))

    # How we met
    last_talked_to = Column(Date)
    first_met = Column(Date)
    first_met_additional_info = Column(Text)
    first_met_through_contact_id = Column(Integer, ForeignKey("contacts.id", ondelete="SET NULL"))

    # Avatar
    has_avatar = Column(Boolean, default=False, nullable=False)
    avatar_file_name = Column(String(255))
    avatar_location = Column(String(50))
    gravatar_url = Column(String(1000))
    default_avatar_color = Column(String(7))

    created_at = Column(DateTime(timezone=True), default=datetime.utcnow)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    account = relationship("Account", back_populates="contacts")
    country = relationship("Country")
    activities = relationship(
        "Activity",
        secondary="activity_contact",
        order_by="Activity.date_it_happened.desc()",
        viewonly=True,
    )
    activity_statistics = relationship(
        "ActivityStatistic",
        back_populates="contact",
        cascade="all, delete-orphan",
        order_by="ActivityStatistic.year",
    )
    debts = relationship("Debt", back_populates="contact", cascade="all, delete-orphan")
    gifts = relationship("Gift", back_populates="contact", cascade="all, delete-orphan")
    events = relationship(
        "ContactEvent",
        back_populates="contact",
        cascade="all, delete-orphan",
        order_by="ContactEvent.created_at.desc()",
    )
    notes = relationship("Note", back_populates="contact", cascade="all, delete-orphan")
    reminders = relationship(
        "Reminder",
        back_populates="contact",
        foreign_keys="Reminder.contact_id",
        cascade="all, delete-orphan",
        order_by="Reminder.next_expected_date",
    )
    tasks = relationship("Task", back_populates="contact", cascade="all, delete-orphan")
    tags = relationship(
        "Tag",
        secondary="contact_tag",
        order_by="Tag.name",
        viewonly=True,
    )
    calls = relationship(
        "Call",
        back_populates="contact",
        cascade="all, delete-orphan",
        order_by="Call.called_at.desc()",
    )

    __table_args__ = (
        Index("ix_contacts_account_partial", "account_id", "is_partial"),
        Index("ix_contacts_account_names", "account_id", "first_name", "last_name"),
    )


# =============================================================================
# Family graph edges
# =============================================================================

class Relationship(Base):
    """Directed "is partnered with" edge. A bilateral partnership is two rows."""

    __tablename__ = "relationships"

    id = Column(Integer, primary_key=True)
    account_id = Column(Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)
    contact_id = Column(Integer, ForeignKey("contacts.id", ondelete="CASCADE"), nullable=False)
    with_contact_id = Column(Integer, ForeignKey("contacts.id", ondelete="CASCADE"), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)

    __table_args__ = (
        Index("ix_relationships_from", "account_id", "contact_id"),
        Index("ix_relationships_to", "account_id", "with_contact_id"),
    )


class Offspring(Base):
    """Directed "contact_id is the child of is_the_child_of" edge."""

    __tablename__ = "offsprings"

    id = Column(Integer, primary_key=True)
    account_id = Column(Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)
    contact_id = Column(Integer, ForeignKey("contacts.id", ondelete="CASCADE"), nullable=False)
    is_the_child_of = Column(Integer, ForeignKey("contacts.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)

    __table_args__ = (
        Index("ix_offsprings_child", "account_id", "contact_id"),
        Index("ix_offsprings_parent", "account_id", "is_the_child_of"),
    )


class Progenitor(Base):
    """Directed "contact_id is the parent of is_the_parent_of" edge."""

    __tablename__ = "progenitors"

    id = Column(Integer, primary_key=True)
    account_id = Column(Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)
    contact_id = Column(Integer, ForeignKey("contacts.id", ondelete="CASCADE"), nullable=False)
    is_the_parent_of = Column(Integer, ForeignKey("contacts.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)

    __table_args__ = (
        Index("ix_progenitors_parent", "account_id", "contact_id"),
        Index("ix_progenitors_child", "account_id", "is_the_parent_of"),
    )


# =============================================================================
# Contact events (audit log)
# =============================================================================

class ContactEvent(Base):
    __tablename__ = "events"

    id = Column(Integer, primary_key=True)
    account_id = Column(Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)
    contact_id = Column(Integer, ForeignKey("contacts.id", ondelete="CASCADE"), nullable=False)
    object_type = Column(String(50), nullable=False)
    object_id = Column(Integer)
    nature_of_operation = Column(String(20), nullable=False)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)

    contact = relationship("Contact", back_populates="events")

    __table_args__ = (
        Index("ix_events_contact", "account_id", "contact_id"),
        Index("ix_events_object", "object_type", "object_id"),
    )


# =============================================================================
# Reminders
# =============================================================================

class Reminder(Base):
    __tablename__ = "reminders"

    id = Column(Integer, primary_key=True)
    account_id = Column(Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)
    contact_id = Column(Integer, ForeignKey("contacts.id", ondelete="CASCADE"), nullable=False)
    title = Column(String(255), nullable=False)
    description = Column(Text)
    frequency_type = Column(String(20), nullable=False, default=ReminderFrequency.one_time.value)
    frequency_number = Column(Integer, default=1)
    next_expected_date = Column(Date, nullable=False)
    is_birthday = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow)

    contact = relationship("Contact", back_populates="reminders", foreign_keys=[contact_id])

    __table_args__ = (
        Index("ix_reminders_contact", "account_id", "contact_id"),
        Index("ix_reminders_next_expected_date", "next_expected_date"),
    )


# =============================================================================
# Activities
# =============================================================================

class Activity(Base):
    __tablename__ = "activities"

    id = Column(Integer, primary_key=True)
    account_id = Column(Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)
    summary = Column(String(255), nullable=False)
    description = Column(Text)
    date_it_happened = Column(Date, nullable=False)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow)


class ActivityContact(Base):
    __tablename__ = "activity_contact"

    activity_id = Column(Integer, ForeignKey("activities.id", ondelete="CASCADE"), primary_key=True)
    contact_id = Column(Integer, ForeignKey("contacts.id", ondelete="CASCADE"), primary_key=True)
    account_id = Column(Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)


class ActivityStatistic(Base):
    __tablename__ = "activity_statistics"

    id = Column(Integer, primary_key=True)
    account_id = Column(Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)
    contact_id = Column(Integer, ForeignKey("contacts.id", ondelete="CASCADE"), nullable=False)
    year = Column(Integer, nullable=False)
    count = Column(Integer, nullable=False, default=0)

    contact = relationship("Contact", back_populates="activity_statistics")


# =============================================================================
# Debts, gifts, tasks
# =============================================================================

class Debt(Base):
    __tablename__ = "debts"

    id = Column(Integer, primary_key=True)
    account_id = Column(Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)
    contact_id = Column(Integer, ForeignKey("contacts.id", ondelete="CASCADE"), nullable=False)
    in_debt = Column(String(3), nullable=False, default="no")  # yes: the user owes the contact
    status = Column(String(20), nullable=False, default=DebtStatus.inprogress.value)
    amount = Column(Integer, nullable=False, default=0)
    reason = Column(Text)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow)

    contact = relationship("Contact", back_populates="debts")


class Gift(Base):
    __tablename__ = "gifts"

    id = Column(Integer, primary_key=True)
    account_id = Column(Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)
    contact_id = Column(Integer, ForeignKey("contacts.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(255), nullable=False)
    comment = Column(Text)
    url = Column(String(1000))
    value = Column(Integer)
    is_an_idea = Column(Boolean, default=True, nullable=False)
    has_been_offered = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow)

    contact = relationship("Contact", back_populates="gifts")


class Task(Base):
    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True)
    account_id = Column(Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)
    contact_id = Column(Integer, ForeignKey("contacts.id", ondelete="CASCADE"), nullable=False)
    title = Column(String(255), nullable=False)
    description = Column(Text)
    completed = Column(Boolean, default=False, nullable=False)
    completed_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow)

    contact = relationship("Contact", back_populates="tasks")


# =============================================================================
# Tags
# =============================================================================

class Tag(Base):
    __tablename__ = "tags"

    id = Column(Integer, primary_key=True)
    account_id = Column(Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(255), nullable=False)
    name_slug = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("account_id", "name_slug", name="uq_tags_account_slug"),
    )


class ContactTag(Base):
    __tablename__ = "contact_tag"

    contact_id = Column(Integer, ForeignKey("contacts.id", ondelete="CASCADE"), primary_key=True)
    tag_id = Column(Integer, ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True)
    account_id = Column(Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow)


# =============================================================================
# Calls & notes
# =============================================================================

class Call(Base):
    __tablename__ = "calls"

    id = Column(Integer, primary_key=True)
    account_id = Column(Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)
    contact_id = Column(Integer, ForeignKey("contacts.id", ondelete="CASCADE"), nullable=False)
    called_at = Column(Date, nullable=False)
    content = Column(Text)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow)

    contact = relationship("Contact", back_populates="calls")


class Note(Base):
    __tablename__ = "notes"

    id = Column(Integer, primary_key=True)
    account_id = Column(Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)
    contact_id = Column(Integer, ForeignKey("contacts.id", ondelete="CASCADE"), nullable=False)
    body = Column(Text, nullable=False)
    is_favorited = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow)

    contact = relationship("Contact", back_populates="notes")
