"""
auth/revocation.py -- Revocation Ledger: durable set of revoked token strings.

Tokens are stateless, so the only way to kill one before its exp is to
remember it here. AuthGate asks is_revoked() on every protected request,
before the token's claims are trusted.

Pruning:
  Each entry stores the token's own expiry. Once that moment has passed the
  token fails verification on its own, so purge_expired() may drop the row
  without changing what the gate admits. Entries with no known expiry are
  kept forever. The API lifespan runs purge_expired() on a fixed interval.

Timestamps are stored as second-precision UTC ISO-8601 strings so that SQL
string comparison orders them correctly.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from auth.errors import RevocationStoreError
from auth.models import RevokedToken
from auth.schema import metadata, revoked_tokens, wrap_store_errors

logger = logging.getLogger("userhub.auth")


def _iso(moment: datetime) -> str:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec="seconds")


class RevocationLedger:
    """Append-only (modulo pruning) record of revoked tokens.

    Usage:
        ledger = RevocationLedger(engine)
        ledger.revoke(token, expires_at=tokens.expires_at(token))
        ledger.is_revoked(token)   # True
        ledger.purge_expired()     # call periodically
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        metadata.create_all(self.engine)

    def revoke(self, token: str, expires_at: datetime | None = None) -> bool:
        """Record token as revoked. Returns True if a new entry was written.

        Revoking an already-revoked token is not an error: the existing entry
        is left as is and False is returned.
        """
        try:
            with wrap_store_errors("revoke token", RevocationStoreError), self.engine.connect() as conn:
                conn.execute(
                    revoked_tokens.insert().values(
                        token=token,
                        revoked_at=_iso(datetime.now(timezone.utc)),
                        expires_at=_iso(expires_at) if expires_at is not None else None,
                    )
                )
                conn.commit()
        except IntegrityError:
            return False
        return True

    def is_revoked(self, token: str) -> bool:
        """Return True if token has an entry. Point lookup on the unique token index."""
        with wrap_store_errors("revocation lookup", RevocationStoreError), self.engine.connect() as conn:
            row = conn.execute(
                select(revoked_tokens.c.id).where(revoked_tokens.c.token == token).limit(1)
            ).fetchone()
        return row is not None

    def get(self, token: str) -> RevokedToken | None:
        """Return the full entry for token, or None."""
        with wrap_store_errors("revocation lookup", RevocationStoreError), self.engine.connect() as conn:
            row = conn.execute(revoked_tokens.select().where(revoked_tokens.c.token == token)).fetchone()
        if row is None:
            return None
        return RevokedToken(id=row.id, token=row.token, revoked_at=row.revoked_at, expires_at=row.expires_at)

    def purge_expired(self, now: datetime | None = None) -> int:
        """Delete entries whose token has already expired. Returns rows removed."""
        cutoff = _iso(now or datetime.now(timezone.utc))
        with wrap_store_errors("revocation purge", RevocationStoreError), self.engine.connect() as conn:
            result = conn.execute(
                revoked_tokens.delete().where(
                    revoked_tokens.c.expires_at.is_not(None) & (revoked_tokens.c.expires_at < cutoff)
                )
            )
            conn.commit()
        if result.rowcount:
            logger.info("Pruned %d expired revocation entries", result.rowcount)
        return result.rowcount

    def count(self) -> int:
        with wrap_store_errors("revocation count", RevocationStoreError), self.engine.connect() as conn:
            result = conn.execute(select(func.count()).select_from(revoked_tokens)).scalar()
        return result or 0
