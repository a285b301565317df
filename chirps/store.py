"""
chirps/store.py -- SQLAlchemy-backed persistence layer for chirps.

Uses SQLAlchemy Core (not ORM) so the dataclass in chirps/models.py remains
the authoritative domain representation.

Pattern: Repository + Data Mapper. ChirpStore is the repository and
_row_to_chirp is the mapper. Route handlers never touch SQL directly.

Security: all queries use bound parameters. No f-strings in SQL.

Usage:
    store = ChirpStore("sqlite:///chirpy.db")
    chirp = store.create_chirp(Chirp(body="hello", user_id=user.id))
    store.list_chirps(author_id=user.id, descending=True)
    store.close()
"""

from __future__ import annotations

import uuid
from collections.abc import Callable
from datetime import datetime, timezone

from sqlalchemy import Column, MetaData, String, Table, Text, create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

from chirps.models import Chirp

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

_chirps = Table(
    "chirps",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("body", Text, nullable=False),
    Column("user_id", String(36), nullable=False, index=True),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _to_iso(dt: datetime) -> str:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat(timespec="microseconds")


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class ChirpStore:
    def __init__(self, db_url: str, clock: Callable[[], datetime] = _utcnow) -> None:
        connect_args: dict = {}
        engine_args: dict = {}
        if db_url.startswith("sqlite"):
            # FastAPI runs sync handlers in a thread pool, so one connection
            # may be used from several threads.
            connect_args["check_same_thread"] = False
            if ":memory:" in db_url or "mode=memory" in db_url:
                engine_args["poolclass"] = StaticPool
        self.engine: Engine = create_engine(db_url, connect_args=connect_args, **engine_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        metadata.create_all(self.engine)
        self._clock = clock

    def create_chirp(self, chirp: Chirp) -> Chirp:
        """Insert a chirp and return it with id and timestamps filled in.

        The body is stored as given; callers run chirps.validation first.
        """
        chirp_id = chirp.id or uuid.uuid4()
        now = _to_iso(self._clock())
        with self.engine.connect() as conn:
            conn.execute(
                _chirps.insert().values(
                    id=str(chirp_id),
                    body=chirp.body,
                    user_id=str(chirp.user_id),
                    created_at=now,
                    updated_at=now,
                )
            )
            conn.commit()
        return self.get_chirp(chirp_id)

    def get_chirp(self, chirp_id: uuid.UUID) -> Chirp | None:
        """Fetch a single chirp by ID. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_chirps.select().where(_chirps.c.id == str(chirp_id))).fetchone()
        return _row_to_chirp(row) if row is not None else None

    def list_chirps(self, author_id: uuid.UUID | None = None, descending: bool = False) -> list[Chirp]:
        """Return chirps ordered by created_at, optionally filtered by author."""
        order = _chirps.c.created_at.desc() if descending else _chirps.c.created_at.asc()
        query = _chirps.select().order_by(order)
        if author_id is not None:
            query = query.where(_chirps.c.user_id == str(author_id))
        with self.engine.connect() as conn:
            rows = conn.execute(query).fetchall()
        return [_row_to_chirp(r) for r in rows]

    def delete_chirp(self, chirp_id: uuid.UUID) -> bool:
        """Delete a chirp. Returns True if deleted, False if not found.

        Ownership is the caller's check (DELETE /api/chirps/{id}).
        """
        with self.engine.connect() as conn:
            result = conn.execute(_chirps.delete().where(_chirps.c.id == str(chirp_id)))
            conn.commit()
        return result.rowcount > 0

    def delete_all(self) -> int:
        with self.engine.connect() as conn:
            result = conn.execute(_chirps.delete())
            conn.commit()
        return result.rowcount

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper
# ---------------------------------------------------------------------------


def _row_to_chirp(row) -> Chirp:
    return Chirp(
        id=uuid.UUID(row.id),
        body=row.body,
        user_id=uuid.UUID(row.user_id),
        created_at=datetime.fromisoformat(row.created_at),
        updated_at=datetime.fromisoformat(row.updated_at),
    )
