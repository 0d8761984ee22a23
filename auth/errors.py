"""
auth/errors.py -- Exception types raised by the auth package.

Two families:
  TokenError  -- a presented token failed verification. The four subclasses
                 exist for logging and tests; every caller outside auth/
                 treats them as one "invalid or expired token" case.
  StoreError  -- the database behind UserStore / RevocationLedger failed.
                 Always an internal error (HTTP 500), never a client error.

CredentialHashError is separate from both: bcrypt could not produce a
digest, which is a server fault rather than a wrong password.

Layer rule: no imports from api/ or core/.
"""


class TokenError(Exception):
    """Base class for every token verification failure."""


class MalformedToken(TokenError):
    """The token cannot be decoded or its claims do not fit the schema."""


class UnsupportedAlgorithm(TokenError):
    """The token header names an algorithm outside the HMAC family."""


class InvalidSignature(TokenError):
    """The HMAC signature does not match the configured secret."""


class TokenExpired(TokenError):
    """The token's exp claim is in the past."""


class StoreError(Exception):
    """A database round-trip failed. Carries the operation that failed as context."""


class RevocationStoreError(StoreError):
    """The Revocation Ledger could not be read or written."""


class CredentialHashError(Exception):
    """bcrypt failed to hash a secret."""
