"""Add activities, debts, gifts, tasks, tags, calls and notes.

Revision ID: 0002_contact_records
Revises: 0001_contacts_schema
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa


revision = "0002_contact_records"
down_revision = "0001_contacts_schema"
branch_labels = None
depends_on = None


def _account_fk() -> sa.Column:
    return sa.Column(
        "account_id",
        sa.Integer(),
        sa.ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
    )


def _contact_fk(primary_key: bool = False) -> sa.Column:
    return sa.Column(
        "contact_id",
        sa.Integer(),
        sa.ForeignKey("contacts.id", ondelete="CASCADE"),
        primary_key=primary_key,
        nullable=False,
    )


def upgrade() -> None:
    op.create_table(
        "activities",
        sa.Column("id", sa.Integer(), primary_key=True),
        _account_fk(),
        sa.Column("summary", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("date_it_happened", sa.Date(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True)),
    )
    op.create_table(
        "activity_contact",
        sa.Column(
            "activity_id",
            sa.Integer(),
            sa.ForeignKey("activities.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        _contact_fk(primary_key=True),
        _account_fk(),
    )
    op.create_table(
        "activity_statistics",
        sa.Column("id", sa.Integer(), primary_key=True),
        _account_fk(),
        _contact_fk(),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("count", sa.Integer(), nullable=False, server_default="0"),
    )
    op.create_table(
        "debts",
        sa.Column("id", sa.Integer(), primary_key=True),
        _account_fk(),
        _contact_fk(),
        sa.Column("in_debt", sa.String(length=3), nullable=False, server_default="no"),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="inprogress"),
        sa.Column("amount", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("reason", sa.Text()),
        sa.Column("created_at", sa.DateTime(timezone=True)),
    )
    op.create_table(
        "gifts",
        sa.Column("id", sa.Integer(), primary_key=True),
        _account_fk(),
        _contact_fk(),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("comment", sa.Text()),
        sa.Column("url", sa.String(length=1000)),
        sa.Column("value", sa.Integer()),
        sa.Column("is_an_idea", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("has_been_offered", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True)),
    )
    op.create_table(
        "tasks",
        sa.Column("id", sa.Integer(), primary_key=True),
        _account_fk(),
        _contact_fk(),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("completed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("completed_at", sa.DateTime(timezone=True)),
        sa.Column("created_at", sa.DateTime(timezone=True)),
    )
    op.create_table(
        "tags",
        sa.Column("id", sa.Integer(), primary_key=True),
        _account_fk(),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("name_slug", sa.String(length=255), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True)),
        sa.UniqueConstraint("account_id", "name_slug", name="uq_tags_account_slug"),
    )
    op.create_table(
        "contact_tag",
        _contact_fk(primary_key=True),
        sa.Column("tag_id", sa.Integer(), sa.ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
        _account_fk(),
        sa.Column("created_at", sa.DateTime(timezone=True)),
        sa.Column("updated_at", sa.DateTime(timezone=True)),
    )
    op.create_table(
        "calls",
        sa.Column("id", sa.Integer(), primary_key=True),
        _account_fk(),
        _contact_fk(),
        sa.Column("called_at", sa.Date(), nullable=False),
        sa.Column("content", sa.Text()),
        sa.Column("created_at", sa.DateTime(timezone=True)),
    )
    op.create_table(
        "notes",
        sa.Column("id", sa.Integer(), primary_key=True),
        _account_fk(),
        _contact_fk(),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("is_favorited", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True)),
    )


def downgrade() -> None:
    for table in (
        "notes",
        "calls",
        "contact_tag",
        "tags",
        "tasks",
        "gifts",
        "debts",
        "activity_statistics",
        "activity_contact",
        "activities",
    ):
        op.drop_table(table)
