"""
api/routes/users.py -- User management REST endpoints.

Routes (all require a valid bearer token):
  GET   /api/users          -- list users
  GET   /api/users/{id}     -- one user
  POST  /api/users          -- create user
  PATCH /api/users/{id}     -- update profile fields
  POST  /api/users/delete   -- delete by {"id": N}, then revoke the caller's token

Deletion and revocation are two separate writes. The delete commits first;
if the revocation insert then fails it is logged and the request still
succeeds. The user is gone either way, and rolling back would need a
transaction spanning both stores for no real gain.

Only the token presented with the delete request is revoked. Tokens are not
stored, so other tokens issued to the deleted user (including that user's
own, when someone else performs the delete) stay valid until they expire.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.exc import IntegrityError

from api.errors import BadRequest, Conflict, NotFound
from api.models import (
    UserCreate,
    UserCreatedResponse,
    UserDeletedResponse,
    UserDeleteRequest,
    UserPatch,
    UserResponse,
)
from auth.credentials import hash_password
from auth.dependencies import require_auth
from auth.errors import RevocationStoreError
from auth.models import User
from auth.revocation import RevocationLedger
from auth.store import UserStore
from auth.tokens import TokenService

logger = logging.getLogger("userhub.api")

# Auth policy:
# - every route here requires auth (router-level require_auth)
router = APIRouter(dependencies=[Depends(require_auth)])


@router.get("/users", response_model=list[UserResponse])
def list_users(request: Request) -> list[UserResponse]:
    user_store: UserStore = request.app.state.user_store
    return [UserResponse.from_user(u) for u in user_store.list_users()]


@router.get("/users/{user_id}", response_model=UserResponse)
def get_user(request: Request, user_id: int) -> UserResponse:
    user_store: UserStore = request.app.state.user_store
    user = user_store.get_by_id(user_id)
    if user is None:
        raise NotFound("User not found.")
    return UserResponse.from_user(user)


@router.post("/users", response_model=UserCreatedResponse, status_code=201)
def create_user(request: Request, body: UserCreate) -> UserCreatedResponse:
    """Create a new user. The password is bcrypt-hashed before it reaches the store."""
    user_store: UserStore = request.app.state.user_store

    new_user = User(
        username=body.username,
        email=body.email,
        hashed_password=hash_password(body.password),
        role_id=body.role_id,
        client_id=body.client_id,
    )
    try:
        user_id = user_store.create_user(new_user)
    except IntegrityError as exc:
        raise Conflict("A user with that username or email already exists.") from exc

    logger.info("User %d created by user %d", user_id, request.state.user_id)
    return UserCreatedResponse(id=user_id)


@router.patch("/users/{user_id}", response_model=UserResponse)
def update_user(request: Request, user_id: int, body: UserPatch) -> UserResponse:
    """Update username, email, role_id and/or client_id."""
    user_store: UserStore = request.app.state.user_store

    updates = body.model_dump(exclude_none=True)
    if not updates:
        raise BadRequest("No fields to update.", code="no_changes")

    if user_store.get_by_id(user_id) is None:
        raise NotFound("User not found.")

    try:
        user_store.update_user(user_id, **updates)
    except IntegrityError as exc:
        raise Conflict("A user with that username or email already exists.") from exc

    updated = user_store.get_by_id(user_id)
    if updated is None:
        raise NotFound("User not found.")
    return UserResponse.from_user(updated)


@router.post("/users/delete", response_model=UserDeletedResponse)
def delete_user(request: Request, body: UserDeleteRequest) -> UserDeletedResponse:
    """Delete a user, then push the caller's presented token into the ledger."""
    user_store: UserStore = request.app.state.user_store

    if body.id == 0:
        raise BadRequest("ID is required.")

    target = user_store.get_by_id(body.id)
    if target is None:
        raise NotFound("User not found.")

    if not user_store.delete_user(body.id):
        # Deleted by a concurrent request between the lookup and the delete.
        raise NotFound("User not found.")
    logger.info("User %d deleted by user %d", body.id, request.state.user_id)

    _revoke_presented_token(request)

    return UserDeletedResponse(id=body.id, user=UserResponse.from_user(target))


def _revoke_presented_token(request: Request) -> None:
    """Best-effort revocation of the token that authorized this request."""
    ledger: RevocationLedger = request.app.state.ledger
    tokens: TokenService = request.app.state.token_service
    token: str = request.state.token
    try:
        ledger.revoke(token, expires_at=tokens.expires_at(token))
    except RevocationStoreError:
        logger.warning("Failed to revoke token after deleting a user", exc_info=True)
