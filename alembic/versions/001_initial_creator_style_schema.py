"""initial_creator_style_schema

Revision ID: 001
Revises: 
Create Date: 2026-10-19 09:00:00.000000

- Creates creators, creator_styles, style_examples, response_examples and
  creator_responses tables
- Child rows reference their parent with ON DELETE CASCADE
- Composite indexes for per-creator listings ordered by recency or category
"""

from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list:
    return [
        sa.Column("created_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
    ]


def _creator_fk() -> sa.Column:
    return sa.Column(
        "creator_id",
        sa.Integer,
        sa.ForeignKey("creators.id", ondelete="CASCADE"),
        nullable=False,
    )


def upgrade() -> None:
    """Create the creator registry, style profile and example corpus tables."""
    op.create_table(
        "creators",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("description", sa.String(500), nullable=True),
        sa.Column("avatar_url", sa.String(1000), nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index("ix_creators_is_active", "creators", ["is_active"])
    op.create_index("ix_creators_created_at", "creators", ["created_at"])

    op.create_table(
        "creator_styles",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        _creator_fk(),
        sa.Column("case_style", sa.String(20), nullable=False),
        sa.Column("approved_emojis", sa.JSON, nullable=False),
        sa.Column("sentence_separators", sa.JSON, nullable=False),
        sa.Column("text_replacements", sa.JSON, nullable=False),
        sa.Column("common_abbreviations", sa.JSON, nullable=False),
        sa.Column("message_length_preferences", sa.JSON, nullable=False),
        sa.Column("punctuation_rules", sa.JSON, nullable=False),
        sa.Column("style_instructions", sa.Text, nullable=True),
        sa.Column("tone_range", sa.JSON, nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("creator_id", name="uq_creator_styles_creator_id"),
    )

    op.create_table(
        "style_examples",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        _creator_fk(),
        sa.Column("fan_message", sa.Text, nullable=False),
        sa.Column("creator_response", sa.Text, nullable=False),
        sa.Column("category", sa.String(32), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_style_examples_creator_id", "style_examples", ["creator_id"])
    op.create_index(
        "idx_style_examples_creator_created", "style_examples", ["creator_id", "created_at"]
    )
    op.create_index(
        "idx_style_examples_creator_category", "style_examples", ["creator_id", "category"]
    )

    op.create_table(
        "response_examples",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        _creator_fk(),
        sa.Column("fan_message", sa.Text, nullable=False),
        sa.Column("category", sa.String(32), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_response_examples_creator_id", "response_examples", ["creator_id"])
    op.create_index(
        "idx_response_examples_creator_created",
        "response_examples",
        ["creator_id", "created_at"],
    )
    op.create_index(
        "idx_response_examples_creator_category",
        "response_examples",
        ["creator_id", "category"],
    )

    op.create_table(
        "creator_responses",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "response_example_id",
            sa.Integer,
            sa.ForeignKey("response_examples.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("response_text", sa.Text, nullable=False),
        sa.Column("ranking", sa.Integer, nullable=True),
        sa.Column("position", sa.Integer, nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint(
            "ranking IS NULL OR (ranking >= 0 AND ranking <= 5)",
            name="ck_creator_responses_ranking_range",
        ),
    )
    op.create_index(
        "ix_creator_responses_response_example_id",
        "creator_responses",
        ["response_example_id"],
    )
    op.create_index(
        "idx_creator_responses_example_position",
        "creator_responses",
        ["response_example_id", "position"],
    )


def downgrade() -> None:
    """Drop every table, children first."""
    op.drop_table("creator_responses")
    op.drop_table("response_examples")
    op.drop_table("style_examples")
    op.drop_table("creator_styles")
    op.drop_table("creators")
