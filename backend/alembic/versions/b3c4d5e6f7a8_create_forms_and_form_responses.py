"""create forms and form_responses tables

Revision ID: b3c4d5e6f7a8
Revises:
Create Date: 2026-10-18 09:12:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "b3c4d5e6f7a8"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    notification_destination = postgresql.ENUM(
        "none", "email", "webhook", name="notification_destination", create_type=False
    )
    notification_destination.create(op.get_bind(), checkfirst=True)

    op.create_table(
        "forms",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("owner_id", sa.String(length=128), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("questions", postgresql.JSONB(), nullable=False),
        sa.Column("background_image_url", sa.String(length=2048), nullable=True),
        sa.Column(
            "notification_destination",
            postgresql.ENUM(
                "none", "email", "webhook",
                name="notification_destination",
                create_type=False,
            ),
            server_default="none",
            nullable=False,
        ),
        sa.Column("receiver_email", sa.String(length=255), nullable=True),
        sa.Column("webhook_url", sa.String(length=2048), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(),
            server_default=sa.text("timezone('utc', now())"),
            nullable=False,
        ),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    # Backs the owner listing (filter on owner, newest first)
    op.create_index(
        "ix_forms_owner_created", "forms", ["owner_id", "created_at"], unique=False
    )

    op.create_table(
        "form_responses",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("form_id", sa.UUID(), nullable=False),
        sa.Column("answers", postgresql.JSONB(), nullable=False),
        sa.Column(
            "submitted_at",
            sa.DateTime(),
            server_default=sa.text("timezone('utc', now())"),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["form_id"], ["forms.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_form_responses_form_id", "form_responses", ["form_id"], unique=False
    )
    op.create_index(
        "ix_form_responses_form_submitted",
        "form_responses",
        ["form_id", "submitted_at"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_form_responses_form_submitted", table_name="form_responses")
    op.drop_index("ix_form_responses_form_id", table_name="form_responses")
    op.drop_table("form_responses")

    op.drop_index("ix_forms_owner_created", table_name="forms")
    op.drop_table("forms")

    op.execute("DROP TYPE IF EXISTS notification_destination")
