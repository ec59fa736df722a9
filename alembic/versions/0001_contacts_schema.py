"""Create accounts, contacts, reminders, family edges and events.

Revision ID: 0001_contacts_schema
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa


revision = "0001_contacts_schema"
down_revision = None
branch_labels = None
depends_on = None


def _account_fk() -> sa.Column:
    return sa.Column(
        "account_id",
        sa.Integer(),
        sa.ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
    )


def upgrade() -> None:
    op.create_table(
        "accounts",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=255)),
        sa.Column("created_at", sa.DateTime(timezone=True)),
    )

    op.create_table(
        "countries",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("iso", sa.String(length=2), nullable=False),
        sa.Column("country", sa.String(length=255), nullable=False),
        sa.UniqueConstraint("iso", name="uq_countries_iso"),
    )

    op.create_table(
        "contacts",
        sa.Column("id", sa.Integer(), primary_key=True),
        _account_fk(),
        sa.Column("first_name", sa.String(length=255), nullable=False),
        sa.Column("middle_name", sa.String(length=255)),
        sa.Column("last_name", sa.String(length=255)),
        sa.Column("gender", sa.String(length=20)),
        sa.Column("birthdate", sa.Date()),
        sa.Column("is_birthdate_approximate", sa.String(length=20), nullable=False, server_default="unknown"),
        sa.Column("birthday_reminder_id", sa.Integer()),
        sa.Column("is_dead", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("deceased_date", sa.Date()),
        sa.Column("is_partial", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("email", sa.String(length=255)),
        sa.Column("phone_number", sa.String(length=100)),
        sa.Column("job", sa.String(length=255)),
        sa.Column("company", sa.String(length=255)),
        sa.Column("facebook_profile_url", sa.String(length=1000)),
        sa.Column("twitter_profile_url", sa.String(length=1000)),
        sa.Column("linkedin_profile_url", sa.String(length=1000)),
        sa.Column("food_preferences", sa.Text()),
        sa.Column("street", sa.String(length=255)),
        sa.Column("city", sa.String(length=255)),
        sa.Column("province", sa.String(length=255)),
        sa.Column("postal_code", sa.String(length=50)),
        sa.Column("country_id", sa.Integer(), sa.ForeignKey("countries.id")),
        sa.Column("last_talked_to", sa.Date()),
        sa.Column("first_met", sa.Date()),
        sa.Column("first_met_additional_info", sa.Text()),
        sa.Column(
            "first_met_through_contact_id",
            sa.Integer(),
            sa.ForeignKey("contacts.id", ondelete="SET NULL"),
        ),
        sa.Column("has_avatar", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("avatar_file_name", sa.String(length=255)),
        sa.Column("avatar_location", sa.String(length=50)),
        sa.Column("gravatar_url", sa.String(length=1000)),
        sa.Column("default_avatar_color", sa.String(length=7)),
        sa.Column("created_at", sa.DateTime(timezone=True)),
        sa.Column("updated_at", sa.DateTime(timezone=True)),
    )
    op.create_index("ix_contacts_account_partial", "contacts", ["account_id", "is_partial"])
    op.create_index("ix_contacts_account_names", "contacts", ["account_id", "first_name", "last_name"])

    op.create_table(
        "reminders",
        sa.Column("id", sa.Integer(), primary_key=True),
        _account_fk(),
        sa.Column("contact_id", sa.Integer(), sa.ForeignKey("contacts.id", ondelete="CASCADE"), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("frequency_type", sa.String(length=20), nullable=False, server_default="one_time"),
        sa.Column("frequency_number", sa.Integer(), server_default="1"),
        sa.Column("next_expected_date", sa.Date(), nullable=False),
        sa.Column("is_birthday", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True)),
    )
    op.create_index("ix_reminders_contact", "reminders", ["account_id", "contact_id"])
    op.create_index("ix_reminders_next_expected_date", "reminders", ["next_expected_date"])

    # contacts <-> reminders is circular; add the contacts side once both exist
    with op.batch_alter_table("contacts") as batch_op:
        batch_op.create_foreign_key(
            "fk_contacts_birthday_reminder_id",
            "reminders",
            ["birthday_reminder_id"],
            ["id"],
            ondelete="SET NULL",
        )

    op.create_table(
        "relationships",
        sa.Column("id", sa.Integer(), primary_key=True),
        _account_fk(),
        sa.Column("contact_id", sa.Integer(), sa.ForeignKey("contacts.id", ondelete="CASCADE"), nullable=False),
        sa.Column("with_contact_id", sa.Integer(), sa.ForeignKey("contacts.id", ondelete="CASCADE"), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_relationships_from", "relationships", ["account_id", "contact_id"])
    op.create_index("ix_relationships_to", "relationships", ["account_id", "with_contact_id"])

    op.create_table(
        "offsprings",
        sa.Column("id", sa.Integer(), primary_key=True),
        _account_fk(),
        sa.Column("contact_id", sa.Integer(), sa.ForeignKey("contacts.id", ondelete="CASCADE"), nullable=False),
        sa.Column("is_the_child_of", sa.Integer(), sa.ForeignKey("contacts.id", ondelete="CASCADE"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_offsprings_child", "offsprings", ["account_id", "contact_id"])
    op.create_index("ix_offsprings_parent", "offsprings", ["account_id", "is_the_child_of"])

    op.create_table(
        "progenitors",
        sa.Column("id", sa.Integer(), primary_key=True),
        _account_fk(),
        sa.Column("contact_id", sa.Integer(), sa.ForeignKey("contacts.id", ondelete="CASCADE"), nullable=False),
        sa.Column("is_the_parent_of", sa.Integer(), sa.ForeignKey("contacts.id", ondelete="CASCADE"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_progenitors_parent", "progenitors", ["account_id", "contact_id"])
    op.create_index("ix_progenitors_child", "progenitors", ["account_id", "is_the_parent_of"])

    op.create_table(
        "events",
        sa.Column("id", sa.Integer(), primary_key=True),
        _account_fk(),
        sa.Column("contact_id", sa.Integer(), sa.ForeignKey("contacts.id", ondelete="CASCADE"), nullable=False),
        sa.Column("object_type", sa.String(length=50), nullable=False),
        sa.Column("object_id", sa.Integer()),
        sa.Column("nature_of_operation", sa.String(length=20), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_events_contact", "events", ["account_id", "contact_id"])
    op.create_index("ix_events_object", "events", ["object_type", "object_id"])


def downgrade() -> None:
    op.drop_index("ix_events_object", table_name="events")
    op.drop_index("ix_events_contact", table_name="events")
    op.drop_table("events")
    for table, indexes in (
        ("progenitors", ("ix_progenitors_child", "ix_progenitors_parent")),
        ("offsprings", ("ix_offsprings_parent", "ix_offsprings_child")),
        ("relationships", ("ix_relationships_to", "ix_relationships_from")),
    ):
        for index in indexes:
            op.drop_index(index, table_name=table)
        op.drop_table(table)
    with op.batch_alter_table("contacts") as batch_op:
        batch_op.drop_constraint("fk_contacts_birthday_reminder_id", type_="foreignkey")
    op.drop_index("ix_reminders_next_expected_date", table_name="reminders")
    op.drop_index("ix_reminders_contact", table_name="reminders")
    op.drop_table("reminders")
    op.drop_index("ix_contacts_account_names", table_name="contacts")
    op.drop_index("ix_contacts_account_partial", table_name="contacts")
    op.drop_table("contacts")
    op.drop_table("countries")
    op.drop_table("accounts")
