"""
auth/dependencies.py -- FastAPI Depends() adapter for the Auth Gate.

require_auth() runs app.state.auth_gate against the Authorization header.
On Admit it stores the identity on request.state (user_id, username, token)
and returns the verified TokenClaims. On Reject it raises a 401 whose body
is the same for all reasons -- missing, invalid, expired and revoked tokens
are indistinguishable to the client. The reason is logged server-side.

Layer rule: no imports from api/ or core/.
  This module may import from fastapi because it is part of the FastAPI
  dependency injection system.
"""

from __future__ import annotations

import logging

from fastapi import HTTPException, Request

from auth.gate import Admit, AuthGate
from auth.models import TokenClaims

logger = logging.getLogger("userhub.auth")

UNAUTHORIZED_DETAIL = {"code": "unauthorized", "message": "Invalid or expired token."}


def require_auth(request: Request) -> TokenClaims:
    """Require a valid, unrevoked bearer token. Raises HTTP 401 otherwise.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(claims: TokenClaims = Depends(require_auth)): ...

    Declared sync so FastAPI runs it in the worker thread pool; the ledger
    lookup is a blocking DB round-trip.
    """
    gate: AuthGate = request.app.state.auth_gate
    decision = gate.intercept(request.headers.get("Authorization"))
    if not isinstance(decision, Admit):
        logger.info(
            "Rejected %s %s: %s%s",
            request.method,
            request.url.path,
            decision.reason.value,
            f" ({decision.detail})" if decision.detail else "",
        )
        raise HTTPException(
            status_code=401,
            detail=UNAUTHORIZED_DETAIL,
            headers={"WWW-Authenticate": "Bearer"},
        )

    request.state.user_id = decision.claims.user_id
    request.state.username = decision.claims.username
    request.state.token = decision.token
    return decision.claims
