"""
Database Schema: SQLAlchemy Core Table Definitions

Defines the creator, style profile and example corpus tables using
SQLAlchemy Core for type-safe query building. Column types are portable so
the same metadata serves PostgreSQL in production and SQLite in tests.
"""

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
)
from sqlalchemy.orm import declarative_base

from config.constants import CREATOR_LIMITS
from core.models import utcnow

# Metadata instance for all tables
metadata = MetaData()

# Declarative base for Alembic autogenerate
Base = declarative_base(metadata=metadata)

# Creators Table
creators_table = Table(
    "creators",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(CREATOR_LIMITS.NAME_MAX_LENGTH), nullable=False),
    Column("description", String(CREATOR_LIMITS.DESCRIPTION_MAX_LENGTH)),
    Column("avatar_url", String(CREATOR_LIMITS.AVATAR_URL_MAX_LENGTH)),
    Column("is_active", Boolean, nullable=False, default=True, index=True),
    Column("created_at", DateTime, nullable=False, default=utcnow, index=True),
    Column("updated_at", DateTime, nullable=False, default=utcnow, onupdate=utcnow),
)

# Creator Style Profiles Table (1:1 with creators)
creator_styles_table = Table(
    "creator_styles",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column(
        "creator_id",
        Integer,
        ForeignKey("creators.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    ),
    Column("case_style", String(20), nullable=False),
    Column("approved_emojis", JSON, nullable=False),
    Column("sentence_separators", JSON, nullable=False),
    Column("text_replacements", JSON, nullable=False),
    Column("common_abbreviations", JSON, nullable=False),
    Column("message_length_preferences", JSON, nullable=False),
    Column("punctuation_rules", JSON, nullable=False),
    Column("style_instructions", Text),
    Column("tone_range", JSON, nullable=False),
    Column("created_at", DateTime, nullable=False, default=utcnow),
    Column("updated_at", DateTime, nullable=False, default=utcnow, onupdate=utcnow),
)

# Style Examples Table
style_examples_table = Table(
    "style_examples",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column(
        "creator_id",
        Integer,
        ForeignKey("creators.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    Column("fan_message", Text, nullable=False),
    Column("creator_response", Text, nullable=False),
    Column("category", String(32)),
    Column("created_at", DateTime, nullable=False, default=utcnow),
    Column("updated_at", DateTime, nullable=False, default=utcnow, onupdate=utcnow),
    Index("idx_style_examples_creator_created", "creator_id", "created_at"),
    Index("idx_style_examples_creator_category", "creator_id", "category"),
)

# Response Examples Table
response_examples_table = Table(
    "response_examples",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column(
        "creator_id",
        Integer,
        ForeignKey("creators.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    Column("fan_message", Text, nullable=False),
    Column("category", String(32)),
    Column("created_at", DateTime, nullable=False, default=utcnow),
    Column("updated_at", DateTime, nullable=False, default=utcnow, onupdate=utcnow),
    Index("idx_response_examples_creator_created", "creator_id", "created_at"),
    Index("idx_response_examples_creator_category", "creator_id", "category"),
)

# Candidate Responses Table (ordered children of a response example)
creator_responses_table = Table(
    "creator_responses",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column(
        "response_example_id",
        Integer,
        ForeignKey("response_examples.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    Column("response_text", Text, nullable=False),
    Column("ranking", Integer),
    Column("position", Integer, nullable=False, default=0),
    Column("created_at", DateTime, nullable=False, default=utcnow),
    Index("idx_creator_responses_example_position", "response_example_id", "position"),
    CheckConstraint(
        "ranking IS NULL OR (ranking >= 0 AND ranking <= 5)",
        name="ck_creator_responses_ranking_range",
    ),
)
