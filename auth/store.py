"""
auth/store.py -- SQLAlchemy Core persistence layer for auth entities.

Pattern: Repository + Data Mapper. UserStore and RefreshTokenStore are the
repositories; _row_to_user / _row_to_refresh_token are the mappers. Route and
service code never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.

  RefreshTokenStore.revoke() is one conditional UPDATE
  (WHERE token = :t AND revoked_at IS NULL). A revoke that commits before a
  concurrent refresh lookup is always seen by that lookup, and a second revoke
  can never move revoked_at forward.

Timestamps are stored as ISO 8601 UTC strings with microseconds, which sort
lexicographically in time order, so expiry filters can compare them in SQL.

Layer rule: no imports from api/, core/, or chirps/.
"""

from __future__ import annotations

import secrets
import uuid
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

from auth.errors import RefreshTokenNotFound
from auth.models import RefreshToken, User

REFRESH_TOKEN_LIFETIME = timedelta(days=60)

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", String(36), primary_key=True),
    Column("email", String(255), nullable=False, unique=True),
    Column("hashed_password", Text, nullable=False),
    Column("is_chirpy_red", Integer, nullable=False, server_default="0"),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
)

_refresh_tokens = Table(
    "refresh_tokens",
    _metadata,
    Column("token", String(64), primary_key=True),
    Column("user_id", String(36), nullable=False, index=True),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
    Column("expires_at", String(32), nullable=False),
    Column("revoked_at", String(32)),  # NULL while the token is live
)


# ---------------------------------------------------------------------------
# Engine / helpers
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def _is_memory_db(db_url: str) -> bool:
    return db_url.startswith("sqlite") and (":memory:" in db_url or "mode=memory" in db_url)


def _make_engine(db_url: str) -> Engine:
    connect_args: dict = {}
    engine_args: dict = {}
    if db_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    if _is_memory_db(db_url):
        # One connection for the engine's lifetime keeps the in-memory
        # database alive between checkouts.
        engine_args["poolclass"] = StaticPool
    engine = create_engine(db_url, connect_args=connect_args, **engine_args)
    if db_url.startswith("sqlite"):
        event.listen(engine, "connect", _set_wal_mode)
    _metadata.create_all(engine)
    return engine


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _to_iso(dt: datetime) -> str:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat(timespec="microseconds")


def _from_iso(value: str | None) -> datetime | None:
    if value is None:
        return None
    return datetime.fromisoformat(value)


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User records.

    Usage:
        store = UserStore("sqlite:///chirpy.db")
        user = store.create_user(User(email="a@b.com", hashed_password=hash_password("pw")))
        store.get_by_email("a@b.com")
        store.close()
    """

    def __init__(self, db_url: str, clock: Callable[[], datetime] = _utcnow) -> None:
        self.engine: Engine = _make_engine(db_url)
        self._clock = clock

    def create_user(self, user: User) -> User:
        """Insert a new user and return it with id and timestamps filled in.

        Raises sqlalchemy.exc.IntegrityError if the email is already taken.
        """
        user_id = user.id or uuid.uuid4()
        now = _to_iso(self._clock())
        with self.engine.connect() as conn:
            conn.execute(
                _users.insert().values(
                    id=str(user_id),
                    email=user.email,
                    hashed_password=user.hashed_password,
                    is_chirpy_red=1 if user.is_chirpy_red else 0,
                    created_at=now,
                    updated_at=now,
                )
            )
            conn.commit()
        return self.get_by_id(user_id)

    def get_by_email(self, email: str) -> User | None:
        """Look up a user by exact email (case-sensitive). Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.email == email)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_id(self, user_id: uuid.UUID) -> User | None:
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == str(user_id))).fetchone()
        return _row_to_user(row) if row is not None else None

    def update_credentials(self, user_id: uuid.UUID, email: str, hashed_password: str) -> User | None:
        """Replace a user's email and password hash. Returns the updated user, or None if not found.

        Raises sqlalchemy.exc.IntegrityError if the new email belongs to someone else.
        """
        with self.engine.connect() as conn:
            result = conn.execute(
                _users.update()
                .where(_users.c.id == str(user_id))
                .values(email=email, hashed_password=hashed_password, updated_at=_to_iso(self._clock()))
            )
            conn.commit()
        if result.rowcount == 0:
            return None
        return self.get_by_id(user_id)

    def upgrade_to_chirpy_red(self, user_id: uuid.UUID) -> bool:
        """Set is_chirpy_red. Returns False if user_id was not found."""
        with self.engine.connect() as conn:
            result = conn.execute(
                _users.update()
                .where(_users.c.id == str(user_id))
                .values(is_chirpy_red=1, updated_at=_to_iso(self._clock()))
            )
            conn.commit()
        return result.rowcount > 0

    def delete_all(self) -> int:
        """Delete every user. Dev reset only. Returns the number of rows removed."""
        with self.engine.connect() as conn:
            result = conn.execute(_users.delete())
            conn.commit()
        return result.rowcount

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Refresh tokens
# ---------------------------------------------------------------------------


class RefreshTokenStore:
    """Persisted registry of refresh tokens.

    Pure data layer: lookup() returns the record as stored and never decides
    whether it is usable. That policy lives in auth.service.is_usable().

    Lifecycle per token:
        Active -> Expired   (time passes expires_at, no write)
        Active -> Revoked   (revoke(), one write, terminal)
    """

    def __init__(
        self,
        db_url: str,
        lifetime: timedelta = REFRESH_TOKEN_LIFETIME,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.engine: Engine = _make_engine(db_url)
        self.lifetime = lifetime
        self._clock = clock

    def issue(self, user_id: uuid.UUID) -> str:
        """Create a refresh token for user_id and return its plaintext value.

        secrets.token_hex(32) gives 256 bits of entropy. The returned string
        is the only copy the caller will ever get.
        """
        token = secrets.token_hex(32)
        now = self._clock()
        with self.engine.connect() as conn:
            conn.execute(
                _refresh_tokens.insert().values(
                    token=token,
                    user_id=str(user_id),
                    created_at=_to_iso(now),
                    updated_at=_to_iso(now),
                    expires_at=_to_iso(now + self.lifetime),
                    revoked_at=None,
                )
            )
            conn.commit()
        return token

    def lookup(self, token: str) -> RefreshToken:
        """Return the stored record for an exact token match.

        Raises RefreshTokenNotFound if no record matches.
        """
        with self.engine.connect() as conn:
            row = conn.execute(_refresh_tokens.select().where(_refresh_tokens.c.token == token)).fetchone()
        if row is None:
            raise RefreshTokenNotFound("refresh token not found")
        return _row_to_refresh_token(row)

    def revoke(self, token: str) -> None:
        """Mark a token revoked.

        Already-revoked tokens are left untouched: the conditional UPDATE
        matches no row and revoked_at keeps its original value. Raises
        RefreshTokenNotFound only when the token does not exist at all.
        """
        now = _to_iso(self._clock())
        with self.engine.connect() as conn:
            result = conn.execute(
                _refresh_tokens.update()
                .where((_refresh_tokens.c.token == token) & (_refresh_tokens.c.revoked_at.is_(None)))
                .values(revoked_at=now, updated_at=now)
            )
            if result.rowcount == 0:
                exists = conn.execute(
                    _refresh_tokens.select().where(_refresh_tokens.c.token == token)
                ).fetchone()
                if exists is None:
                    conn.rollback()
                    raise RefreshTokenNotFound("refresh token not found")
            conn.commit()

    def revoke_all_for_user(self, user_id: uuid.UUID) -> int:
        """Revoke every live token owned by user_id. Returns the number revoked.

        Used after a password change so existing sessions cannot keep minting
        access tokens.
        """
        now = _to_iso(self._clock())
        with self.engine.connect() as conn:
            result = conn.execute(
                _refresh_tokens.update()
                .where((_refresh_tokens.c.user_id == str(user_id)) & (_refresh_tokens.c.revoked_at.is_(None)))
                .values(revoked_at=now, updated_at=now)
            )
            conn.commit()
        return result.rowcount

    def purge_expired(self, now: datetime | None = None) -> int:
        """Delete tokens whose expires_at has passed. Returns rows removed."""
        cutoff = _to_iso(now or self._clock())
        with self.engine.connect() as conn:
            result = conn.execute(_refresh_tokens.delete().where(_refresh_tokens.c.expires_at <= cutoff))
            conn.commit()
        return result.rowcount

    def delete_all(self) -> int:
        with self.engine.connect() as conn:
            result = conn.execute(_refresh_tokens.delete())
            conn.commit()
        return result.rowcount

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=uuid.UUID(row.id),
        email=row.email,
        hashed_password=row.hashed_password,
        is_chirpy_red=bool(row.is_chirpy_red),
        created_at=_from_iso(row.created_at),
        updated_at=_from_iso(row.updated_at),
    )


def _row_to_refresh_token(row) -> RefreshToken:
    return RefreshToken(
        token=row.token,
        user_id=uuid.UUID(row.user_id),
        created_at=_from_iso(row.created_at),
        updated_at=_from_iso(row.updated_at),
        expires_at=_from_iso(row.expires_at),
        revoked_at=_from_iso(row.revoked_at),
    )
