"""Contributions and flashcards schema

Revision ID: 001_contributions
Revises:
Create Date: 2026-10-19

Creates the following tables:
- user_contributions: Append-only contribution event log
- flashcard_sets: User-owned flashcard sets
- flashcards: Cards belonging to a set
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "001_contributions"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # ===========================================
    # Contribution event log
    # ===========================================
    op.create_table(
        "user_contributions",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("contribution_type", sa.String(50), nullable=False),
        sa.Column(
            "contribution_value", sa.Integer(), nullable=False, server_default="1"
        ),
        sa.Column("metadata", postgresql.JSONB(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("contribution_value >= 1", name="ck_contribution_value_positive"),
    )
    op.create_index("ix_user_contributions_user_id", "user_contributions", ["user_id"])
    op.create_index(
        "ix_user_contributions_contribution_type",
        "user_contributions",
        ["contribution_type"],
    )
    op.create_index(
        "ix_user_contributions_created_at", "user_contributions", ["created_at"]
    )
    op.create_index(
        "ix_user_contributions_user_created",
        "user_contributions",
        ["user_id", "created_at"],
    )

    # ===========================================
    # Flashcard sets and cards
    # ===========================================
    op.create_table(
        "flashcard_sets",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_flashcard_sets_user_id", "flashcard_sets", ["user_id"])

    op.create_table(
        "flashcards",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("set_id", sa.String(36), nullable=True),
        sa.Column("question", sa.Text(), nullable=False),
        sa.Column("answer", sa.Text(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.ForeignKeyConstraint(["set_id"], ["flashcard_sets.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_flashcards_set_id", "flashcards", ["set_id"])


def downgrade() -> None:
    op.drop_index("ix_flashcards_set_id", table_name="flashcards")
    op.drop_table("flashcards")
    op.drop_index("ix_flashcard_sets_user_id", table_name="flashcard_sets")
    op.drop_table("flashcard_sets")
    op.drop_index("ix_user_contributions_user_created", table_name="user_contributions")
    op.drop_index("ix_user_contributions_created_at", table_name="user_contributions")
    op.drop_index(
        "ix_user_contributions_contribution_type", table_name="user_contributions"
    )
    op.drop_index("ix_user_contributions_user_id", table_name="user_contributions")
    op.drop_table("user_contributions")
