"""
api/routes/auth.py -- Login and current-identity endpoints.

Routes:
  POST /api/login  -- email/password login; returns a bearer token
  GET  /api/me     -- identity carried by the presented token (requires auth)

Security:
  authenticate_user() provides timing equalization -- use it, never inline
  get_by_email() + verify_password().
  Unknown email and wrong password share one 401 body ("bad_credentials").
  Cache-Control: no-store on login responses so tokens are not cached.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.errors import Unauthorized
from api.models import LoginRequest, LoginResponse, MeResponse
from auth.credentials import authenticate_user
from auth.dependencies import require_auth
from auth.models import TokenClaims
from auth.store import UserStore
from auth.tokens import TokenService

logger = logging.getLogger("userhub.api")

# Auth policy:
# - POST /api/login: public -- login endpoint must be unauthenticated
# - GET  /api/me:    requires auth (require_auth)
router = APIRouter()


@router.post("/login", response_model=LoginResponse)
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with email and password; return a signed bearer token.

    Declared sync: bcrypt is CPU-bound and must run on a worker thread, not
    the event loop.

    A body that fails LoginRequest validation is answered by the app-wide
    422 validation_error handler, not with a 400 from this route.
    """
    user_store: UserStore = request.app.state.user_store
    tokens: TokenService = request.app.state.token_service

    user = authenticate_user(user_store, body.email, body.password)
    if user is None:
        raise Unauthorized(
            "Invalid email or password.",
            code="bad_credentials",
            headers={"Cache-Control": "no-store"},
        )

    token = tokens.issue(user.id, user.username)
    logger.info("User %d logged in", user.id)
    resp = JSONResponse(
        status_code=200,
        content=LoginResponse(token=token, expires_in=tokens.expire_seconds).model_dump(),
    )
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.get("/me", response_model=MeResponse)
def me(claims: TokenClaims = Depends(require_auth)) -> MeResponse:
    """Return the identity the gate attached to this request."""
    return MeResponse(
        user_id=claims.user_id,
        username=claims.username,
        expires_at=claims.expires_at.isoformat(),
    )
