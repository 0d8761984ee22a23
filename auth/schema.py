"""
auth/schema.py -- SQLAlchemy Core schema and engine factory shared by the auth stores.

UserStore and RevocationLedger live in one database so a revocation entry
is as durable as the user record whose deletion produced it. Both take the
same Engine built here.

DB path default: auth/userhub.db (see core.config.Settings.database_url).

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from auth.errors import StoreError

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

users = Table(
    "users",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("username", String(255), nullable=False, unique=True),
    Column("email", String(255), nullable=False, unique=True),
    Column("hashed_password", Text, nullable=False),
    Column("role_id", Integer, nullable=False, server_default="0"),
    Column("client_id", Integer, nullable=False, server_default="0"),
    Column("created_at", String(32), nullable=False),
)

revoked_tokens = Table(
    "revoked_tokens",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("token", Text, nullable=False, unique=True),  # exact presented string
    Column("revoked_at", String(32), nullable=False),
    Column("expires_at", String(32), index=True),  # token exp; NULL = never pruned
)


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def make_engine(db_url: str) -> Engine:
    """Create the process-wide engine and make sure both tables exist."""
    connect_args: dict = {}
    if db_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    engine = create_engine(db_url, connect_args=connect_args)
    if db_url.startswith("sqlite"):
        event.listen(engine, "connect", _set_wal_mode)
    metadata.create_all(engine)
    return engine


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@contextmanager
def wrap_store_errors(action: str, error_cls: type[StoreError] = StoreError):
    """Re-raise driver failures as StoreError with the failed action as context.

    IntegrityError passes through untouched: callers use it to detect
    uniqueness conflicts, which are client errors rather than outages.
    """
    try:
        yield
    except IntegrityError:
        raise
    except SQLAlchemyError as exc:
        raise error_cls(f"{action} failed") from exc
