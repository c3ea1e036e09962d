"""SQLAlchemy Core table definitions."""

from sqlalchemy import (
    TIMESTAMP,
    Boolean,
    Column,
    Float,
    Index,
    Integer,
    MetaData,
    PrimaryKeyConstraint,
    Table,
    Text,
    func,
)

metadata = MetaData()


# One row per (learner, course). Written as a full-record upsert.
course_progress = Table(
    "course_progress",
    metadata,
    Column("learner_id", Text, nullable=False),
    Column("course_id", Text, nullable=False),
    Column("time_spent_s", Integer, nullable=False, server_default="0"),
    Column("percent_complete", Float, nullable=False, server_default="0"),
    Column("last_position_s", Integer, nullable=False, server_default="0"),
    Column(
        "updated_at",
        TIMESTAMP(timezone=True),
        nullable=False,
        server_default=func.now(),
    ),
    PrimaryKeyConstraint("learner_id", "course_id"),
)


# Last course opened per (learner, formation), used for resume
last_opened_courses = Table(
    "last_opened_courses",
    metadata,
    Column("learner_id", Text, nullable=False),
    Column("formation_id", Text, nullable=False),
    Column("course_id", Text, nullable=False),
    Column(
        "updated_at",
        TIMESTAMP(timezone=True),
        nullable=False,
        server_default=func.now(),
    ),
    PrimaryKeyConstraint("learner_id", "formation_id"),
)


# Login/logout log. At most one is_active row per learner.
learner_sessions = Table(
    "learner_sessions",
    metadata,
    Column("session_id", Integer, primary_key=True, autoincrement=True),
    Column("learner_id", Text, nullable=False),
    Column("login_at", TIMESTAMP(timezone=True), nullable=False),
    Column("logout_at", TIMESTAMP(timezone=True), nullable=True),
    Column("duration_s", Integer, nullable=False, server_default="0"),
    Column("is_active", Boolean, nullable=False, server_default="true"),
    Column("logout_type", Text, nullable=True),
    Index("ix_learner_sessions_learner_active", "learner_id", "is_active"),
)
