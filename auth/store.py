"""
auth/store.py -- SQLAlchemy Core persistence layer for user identities.

Pattern: Repository + Data Mapper.
UserStore is the repository; _row_to_user is the mapper.
Route and dependency code never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.
  hashed_password is loaded into the User dataclass for the login path
  only; API response models do not have a field for it.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.engine import Engine

from auth.errors import StoreError
from auth.models import User
from auth.schema import metadata, now_iso, users, wrap_store_errors

# Fields a profile update may touch. The credential hash and timestamps are
# deliberately absent.
_UPDATABLE_FIELDS = frozenset({"username", "email", "role_id", "client_id"})


class UserStore:
    """Repository for User entities.

    Usage:
        store = UserStore(make_engine("sqlite:///auth/userhub.db"))
        uid = store.create_user(User(username="ana", email="ana@example.com",
                                     hashed_password=hash_password("secret")))
        user = store.get_by_email("ana@example.com")
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def has_users(self) -> bool:
        """Return True if at least one user record exists."""
        with wrap_store_errors("count users"), self.engine.connect() as conn:
            result = conn.execute(select(func.count()).select_from(users)).scalar()
        return (result or 0) > 0

    def list_users(self) -> list[User]:
        """Return all users ordered by id."""
        with wrap_store_errors("list users"), self.engine.connect() as conn:
            rows = conn.execute(users.select().order_by(users.c.id)).fetchall()
        return [_row_to_user(r) for r in rows]

    def get_by_id(self, user_id: int) -> User | None:
        """Look up a user by primary key. Returns None if not found."""
        with wrap_store_errors("fetch user by id"), self.engine.connect() as conn:
            row = conn.execute(users.select().where(users.c.id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_email(self, email: str) -> User | None:
        """Look up a user by exact email. Returns None if not found."""
        with wrap_store_errors("fetch user by email"), self.engine.connect() as conn:
            row = conn.execute(users.select().where(users.c.email == email)).fetchone()
        return _row_to_user(row) if row is not None else None

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def create_user(self, user: User) -> int:
        """Insert a new user and return its assigned database ID.

        Raises sqlalchemy.exc.IntegrityError if the username or email
        already exists. Routes turn that into a 409.
        """
        with wrap_store_errors("create user"), self.engine.connect() as conn:
            result = conn.execute(
                users.insert().values(
                    username=user.username,
                    email=user.email,
                    hashed_password=user.hashed_password,
                    role_id=user.role_id,
                    client_id=user.client_id,
                    created_at=now_iso(),
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def update_user(self, user_id: int, **fields) -> bool:
        """Update profile fields on an existing user.

        Accepted fields: username, email, role_id, client_id. Unknown keys
        raise ValueError rather than being silently dropped.

        Returns True if a row was updated, False if user_id was not found.
        Raises IntegrityError on a username/email collision.
        """
        unknown = set(fields) - _UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown user fields: {sorted(unknown)!r}")
        if not fields:
            return False
        with wrap_store_errors("update user"), self.engine.connect() as conn:
            result = conn.execute(users.update().where(users.c.id == user_id).values(**fields))
            conn.commit()
        return result.rowcount > 0

    def delete_user(self, user_id: int) -> bool:
        """Permanently delete a user record. Returns True if deleted, False if not found.

        Token revocation is the caller's job -- this store knows nothing about
        tokens.
        """
        with wrap_store_errors("delete user"), self.engine.connect() as conn:
            result = conn.execute(users.delete().where(users.c.id == user_id))
            conn.commit()
        return result.rowcount > 0

    def ping(self) -> bool:
        """Return True if the database answers a trivial query. Used by /api/health."""
        try:
            self.has_users()
        except StoreError:
            return False
        return True


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        username=row.username,
        email=row.email,
        hashed_password=row.hashed_password,
        role_id=row.role_id,
        client_id=row.client_id,
        created_at=row.created_at,
    )
