"""
Progress persistence.

Every write is a full-record upsert keyed by (learner, course), so a
repeated or retried write leaves the stored state unchanged. Concurrent
writers for the same course (several tabs or devices) are reconciled by
keeping the largest time_spent_s: stored time never goes backwards.

Two implementations share the ProgressStore protocol:
- SqlProgressStore: PostgreSQL via async SQLAlchemy Core
- MemoryProgressStore: process-local, used when no database is configured
"""

import logging
from datetime import datetime, timezone
from typing import Iterable, Protocol

from sqlalchemy import and_, func, insert, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.exc import SQLAlchemyError

from core.config import DATABASE_URL
from core.database import get_connection, get_transaction
from core.enums import LogoutType
from core.tables import course_progress, last_opened_courses, learner_sessions

from .types import ProgressRecord

logger = logging.getLogger(__name__)


class PersistenceError(Exception):
    """Raised when the progress store cannot be read or written."""

    pass


class ProgressStore(Protocol):
    async def read_progress(self, learner_id: str, course_id: str) -> ProgressRecord | None: ...

    async def read_progress_map(
        self, learner_id: str, course_ids: Iterable[str]
    ) -> dict[str, ProgressRecord]: ...

    async def write_progress(
        self, learner_id: str, course_id: str, record: ProgressRecord
    ) -> None: ...

    async def read_last_opened(self, learner_id: str, formation_id: str) -> str | None: ...

    async def write_last_opened(
        self, learner_id: str, formation_id: str, course_id: str
    ) -> None: ...

    async def get_active_session(self, learner_id: str) -> dict | None: ...

    async def log_login(self, learner_id: str) -> dict: ...

    async def log_logout(
        self, learner_id: str, logout_type: LogoutType = LogoutType.explicit
    ) -> dict | None: ...


def _merge(existing: ProgressRecord | None, incoming: ProgressRecord) -> ProgressRecord:
    if existing is None:
        return incoming.copy()
    return ProgressRecord(
        time_spent_s=max(existing.time_spent_s, incoming.time_spent_s),
        percent_complete=max(existing.percent_complete, incoming.percent_complete),
        last_position_s=incoming.last_position_s,
        updated_at=incoming.updated_at,
    )


def _session_duration_s(login_at: datetime, logout_at: datetime) -> int:
    return max(0, int((logout_at - login_at).total_seconds()))


# =============================================================================
# In-memory store
# =============================================================================


class MemoryProgressStore:
    """Process-local store. Data is lost on restart."""

    def __init__(self):
        self._progress: dict[tuple[str, str], ProgressRecord] = {}
        self._last_opened: dict[tuple[str, str], str] = {}
        self._sessions: list[dict] = []

    async def read_progress(self, learner_id: str, course_id: str) -> ProgressRecord | None:
        record = self._progress.get((learner_id, course_id))
        return record.copy() if record else None

    async def read_progress_map(
        self, learner_id: str, course_ids: Iterable[str]
    ) -> dict[str, ProgressRecord]:
        result = {}
        for course_id in course_ids:
            record = self._progress.get((learner_id, course_id))
            if record is not None:
                result[course_id] = record.copy()
        return result

    async def write_progress(
        self, learner_id: str, course_id: str, record: ProgressRecord
    ) -> None:
        key = (learner_id, course_id)
        self._progress[key] = _merge(self._progress.get(key), record)

    async def read_last_opened(self, learner_id: str, formation_id: str) -> str | None:
        return self._last_opened.get((learner_id, formation_id))

    async def write_last_opened(
        self, learner_id: str, formation_id: str, course_id: str
    ) -> None:
        self._last_opened[(learner_id, formation_id)] = course_id

    async def get_active_session(self, learner_id: str) -> dict | None:
        active = [
            s for s in self._sessions if s["learner_id"] == learner_id and s["is_active"]
        ]
        if not active:
            return None
        return dict(max(active, key=lambda s: s["login_at"]))

    def _close_active(self, learner_id: str, logout_type: LogoutType, now: datetime) -> list[dict]:
        closed = []
        for session in self._sessions:
            if session["learner_id"] == learner_id and session["is_active"]:
                session.update(
                    logout_at=now,
                    duration_s=_session_duration_s(session["login_at"], now),
                    is_active=False,
                    logout_type=logout_type.value,
                )
                closed.append(dict(session))
        return closed

    async def log_login(self, learner_id: str) -> dict:
        now = datetime.now(timezone.utc)
        self._close_active(learner_id, LogoutType.navigation, now)
        session = {
            "session_id": len(self._sessions) + 1,
            "learner_id": learner_id,
            "login_at": now,
            "logout_at": None,
            "duration_s": 0,
            "is_active": True,
            "logout_type": None,
        }
        self._sessions.append(session)
        return dict(session)

    async def log_logout(
        self, learner_id: str, logout_type: LogoutType = LogoutType.explicit
    ) -> dict | None:
        closed = self._close_active(learner_id, logout_type, datetime.now(timezone.utc))
        return closed[-1] if closed else None


# =============================================================================
# PostgreSQL store
# =============================================================================


class SqlProgressStore:
    """Store backed by the course_progress / last_opened_courses / learner_sessions tables."""

    async def read_progress(self, learner_id: str, course_id: str) -> ProgressRecord | None:
        try:
            async with get_connection() as conn:
                result = await conn.execute(
                    select(course_progress).where(
                        and_(
                            course_progress.c.learner_id == learner_id,
                            course_progress.c.course_id == course_id,
                        )
                    )
                )
                row = result.mappings().first()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Could not read progress for {course_id}") from e
        return ProgressRecord.from_row(row) if row else None

    async def read_progress_map(
        self, learner_id: str, course_ids: Iterable[str]
    ) -> dict[str, ProgressRecord]:
        course_ids = list(course_ids)
        if not course_ids:
            return {}
        try:
            async with get_connection() as conn:
                result = await conn.execute(
                    select(course_progress).where(
                        and_(
                            course_progress.c.learner_id == learner_id,
                            course_progress.c.course_id.in_(course_ids),
                        )
                    )
                )
                rows = result.mappings().all()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Could not read progress for learner {learner_id}") from e
        return {row["course_id"]: ProgressRecord.from_row(row) for row in rows}

    async def write_progress(
        self, learner_id: str, course_id: str, record: ProgressRecord
    ) -> None:
        stmt = pg_insert(course_progress).values(
            learner_id=learner_id,
            course_id=course_id,
            time_spent_s=record.time_spent_s,
            percent_complete=record.percent_complete,
            last_position_s=record.last_position_s,
            updated_at=record.updated_at or datetime.now(timezone.utc),
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[course_progress.c.learner_id, course_progress.c.course_id],
            set_={
                "time_spent_s": func.greatest(
                    course_progress.c.time_spent_s, stmt.excluded.time_spent_s
                ),
                "percent_complete": func.greatest(
                    course_progress.c.percent_complete, stmt.excluded.percent_complete
                ),
                "last_position_s": stmt.excluded.last_position_s,
                "updated_at": stmt.excluded.updated_at,
            },
        )
        try:
            async with get_transaction() as conn:
                await conn.execute(stmt)
        except SQLAlchemyError as e:
            raise PersistenceError(f"Could not write progress for {course_id}") from e

    async def read_last_opened(self, learner_id: str, formation_id: str) -> str | None:
        try:
            async with get_connection() as conn:
                result = await conn.execute(
                    select(last_opened_courses.c.course_id).where(
                        and_(
                            last_opened_courses.c.learner_id == learner_id,
                            last_opened_courses.c.formation_id == formation_id,
                        )
                    )
                )
                row = result.mappings().first()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Could not read last course for {formation_id}") from e
        return row["course_id"] if row else None

    async def write_last_opened(
        self, learner_id: str, formation_id: str, course_id: str
    ) -> None:
        now = datetime.now(timezone.utc)
        stmt = pg_insert(last_opened_courses).values(
            learner_id=learner_id,
            formation_id=formation_id,
            course_id=course_id,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[
                last_opened_courses.c.learner_id,
                last_opened_courses.c.formation_id,
            ],
            set_={"course_id": stmt.excluded.course_id, "updated_at": now},
        )
        try:
            async with get_transaction() as conn:
                await conn.execute(stmt)
        except SQLAlchemyError as e:
            raise PersistenceError(f"Could not write last course for {formation_id}") from e

    async def get_active_session(self, learner_id: str) -> dict | None:
        try:
            async with get_connection() as conn:
                result = await conn.execute(
                    select(learner_sessions)
                    .where(
                        and_(
                            learner_sessions.c.learner_id == learner_id,
                            learner_sessions.c.is_active.is_(True),
                        )
                    )
                    .order_by(learner_sessions.c.login_at.desc())
                    .limit(1)
                )
                row = result.mappings().first()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Could not read active session for {learner_id}") from e
        return dict(row) if row else None

    async def _close_active(
        self, conn, learner_id: str, logout_type: LogoutType, now: datetime
    ) -> list[dict]:
        result = await conn.execute(
            select(learner_sessions).where(
                and_(
                    learner_sessions.c.learner_id == learner_id,
                    learner_sessions.c.is_active.is_(True),
                )
            )
        )
        closed = []
        for row in result.mappings().all():
            updated = await conn.execute(
                update(learner_sessions)
                .where(learner_sessions.c.session_id == row["session_id"])
                .values(
                    logout_at=now,
                    duration_s=_session_duration_s(row["login_at"], now),
                    is_active=False,
                    logout_type=logout_type.value,
                )
                .returning(learner_sessions)
            )
            closed.append(dict(updated.mappings().first()))
        return closed

    async def log_login(self, learner_id: str) -> dict:
        now = datetime.now(timezone.utc)
        try:
            async with get_transaction() as conn:
                await self._close_active(conn, learner_id, LogoutType.navigation, now)
                result = await conn.execute(
                    insert(learner_sessions)
                    .values(learner_id=learner_id, login_at=now, is_active=True)
                    .returning(learner_sessions)
                )
                row = result.mappings().first()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Could not log login for {learner_id}") from e
        return dict(row)

    async def log_logout(
        self, learner_id: str, logout_type: LogoutType = LogoutType.explicit
    ) -> dict | None:
        now = datetime.now(timezone.utc)
        try:
            async with get_transaction() as conn:
                closed = await self._close_active(conn, learner_id, logout_type, now)
        except SQLAlchemyError as e:
            raise PersistenceError(f"Could not log logout for {learner_id}") from e
        return closed[-1] if closed else None


# =============================================================================
# Store selection
# =============================================================================

_store: ProgressStore | None = None


def get_store() -> ProgressStore:
    """Get the process-wide store, picking SQL when DATABASE_URL is set."""
    global _store
    if _store is None:
        if DATABASE_URL:
            _store = SqlProgressStore()
        else:
            logger.warning("DATABASE_URL not set, progress is kept in memory only")
            _store = MemoryProgressStore()
    return _store


def set_store(store: ProgressStore | None) -> None:
    global _store
    _store = store
