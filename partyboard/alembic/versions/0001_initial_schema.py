"""Initial PartyBoard schema: the RSVP and Topics sheets."""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "rsvp",
        sa.Column("row_id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("guest_id", sa.String(length=128), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("status", sa.String(length=64), nullable=False, server_default=""),
        sa.Column(
            "plus_one", sa.Boolean(), nullable=False, server_default=sa.text("0")
        ),
        sa.Column(
            "show_public", sa.Boolean(), nullable=False, server_default=sa.text("0")
        ),
        sa.Column("timestamp", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("row_id"),
        sa.UniqueConstraint("guest_id"),
    )

    op.create_table(
        "topics",
        sa.Column("row_id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("topic_id", sa.String(length=36), nullable=False),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column("author_id", sa.String(length=128), nullable=False),
        sa.Column(
            "author_name", sa.String(length=255), nullable=False, server_default=""
        ),
        sa.Column("likes", sa.Text(), nullable=False, server_default="[]"),
        sa.Column("timestamp", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("row_id"),
        sa.UniqueConstraint("topic_id"),
    )


def downgrade() -> None:
    op.drop_table("topics")
    op.drop_table("rsvp")
