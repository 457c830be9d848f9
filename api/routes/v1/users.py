"""
api/routes/v1/users.py -- Account administration REST endpoints (ADMIN only).

Routes:
  GET    /api/v1/users                        -- list all accounts
  POST   /api/v1/users                        -- create an account (any role)
  PUT    /api/v1/users/{user_id}              -- update name/email/phone/role/is_active
  DELETE /api/v1/users/{user_id}              -- delete an account
  POST   /api/v1/users/{user_id}/reset-password -- set a new password directly

Guards:
  - The bootstrap admin (DEFAULT_ADMIN_EMAIL) cannot be deleted.
  - Admins cannot delete or deactivate their own account.
  - The last active admin cannot be deactivated, demoted or deleted (only
    reachable when two admins remove each other concurrently).
  - Email changes are rejected with 409 when another account uses the address.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.exc import IntegrityError

from api.models import AdminPasswordReset, MessageResponse, RoleEnum, UserCreate, UserResponse, UserUpdate
from api.routes.v1.auth import weak_password_error
from auth.dependencies import require_admin
from auth.models import ROLE_ADMIN, User
from auth.store import UserStore, normalize_email
from auth.tokens import hash_password, validate_password
from core.config import get_settings

logger = logging.getLogger("designportal.api")

# Router-level dependency: every route below is ADMIN only.
router = APIRouter(dependencies=[Depends(require_admin)])


def _get_user_or_404(store: UserStore, user_id: int) -> User:
    user = store.get_by_id(user_id)
    if user is None:
        raise HTTPException(
            status_code=404,
            detail={"code": "not_found", "message": "User not found."},
        )
    return user


def _conflict() -> HTTPException:
    return HTTPException(
        status_code=409,
        detail={"code": "conflict", "message": "User with this email already exists."},
    )


def _is_last_active_admin(store: UserStore, user: User) -> bool:
    # A single request cannot reach this: the caller is an active admin and
    # self-targeting is rejected first. It only catches two admins demoting
    # or deleting each other at the same time.
    return user.role == ROLE_ADMIN and user.is_active and store.count_active_admins() <= 1


@router.get("/users", response_model=list[UserResponse])
def list_users(request: Request) -> list[UserResponse]:
    user_store: UserStore = request.app.state.user_store
    return [UserResponse.from_user(u) for u in user_store.list_users()]


@router.post("/users", response_model=UserResponse, status_code=201)
def create_user(request: Request, body: UserCreate) -> UserResponse:
    """Create an account on someone's behalf. The password policy still applies."""
    errors = validate_password(body.password)
    if errors:
        raise weak_password_error(errors)

    user_store: UserStore = request.app.state.user_store
    if user_store.email_taken(body.email):
        raise _conflict()

    new_user = User(
        email=body.email,
        name=body.name,
        phone=body.phone,
        role=body.role.value,
        hashed_password=hash_password(body.password),
    )
    try:
        user_id = user_store.create_user(new_user)
    except IntegrityError as exc:
        raise _conflict() from exc

    logger.info("Admin created user_id=%d role=%s", user_id, new_user.role)
    return UserResponse.from_user(user_store.get_by_id(user_id))


@router.put("/users/{user_id}", response_model=UserResponse)
def update_user(
    request: Request,
    user_id: int,
    body: UserUpdate,
    current_user: User = Depends(require_admin),
) -> UserResponse:
    user_store: UserStore = request.app.state.user_store
    target = _get_user_or_404(user_store, user_id)

    updates: dict = {}
    if body.name is not None:
        updates["name"] = body.name
    if body.phone is not None:
        updates["phone"] = body.phone
    if body.email is not None and normalize_email(body.email) != target.email:
        if user_store.email_taken(body.email, exclude_id=user_id):
            raise _conflict()
        updates["email"] = body.email

    losing_admin = (body.role is not None and body.role != RoleEnum.ADMIN) or body.is_active is False
    if losing_admin:
        if target.id == current_user.id:
            raise HTTPException(
                status_code=400,
                detail={"code": "self_lockout", "message": "You cannot deactivate or demote your own account."},
            )
        if _is_last_active_admin(user_store, target):
            raise HTTPException(
                status_code=400,
                detail={"code": "last_admin", "message": "Cannot remove the last active admin account."},
            )
    if body.role is not None:
        updates["role"] = body.role.value
    if body.is_active is not None:
        updates["is_active"] = body.is_active

    if not updates:
        return UserResponse.from_user(target)

    try:
        user_store.update_user(user_id, **updates)
    except IntegrityError as exc:
        raise _conflict() from exc
    return UserResponse.from_user(user_store.get_by_id(user_id))


@router.delete("/users/{user_id}", response_model=MessageResponse)
def delete_user(
    request: Request,
    user_id: int,
    current_user: User = Depends(require_admin),
) -> MessageResponse:
    user_store: UserStore = request.app.state.user_store
    target = _get_user_or_404(user_store, user_id)

    if target.email == normalize_email(get_settings().default_admin_email):
        raise HTTPException(
            status_code=400,
            detail={"code": "protected_account", "message": "Cannot delete the default admin account."},
        )
    if target.id == current_user.id:
        raise HTTPException(
            status_code=400,
            detail={"code": "self_lockout", "message": "You cannot delete your own account."},
        )
    if _is_last_active_admin(user_store, target):
        raise HTTPException(
            status_code=400,
            detail={"code": "last_admin", "message": "Cannot remove the last active admin account."},
        )

    user_store.delete_user(user_id)
    logger.info("Admin user_id=%d deleted user_id=%d", current_user.id, user_id)
    return MessageResponse(message="User deleted successfully.")


@router.post("/users/{user_id}/reset-password", response_model=MessageResponse)
def reset_user_password(request: Request, user_id: int, body: AdminPasswordReset) -> MessageResponse:
    user_store: UserStore = request.app.state.user_store
    target = _get_user_or_404(user_store, user_id)

    errors = validate_password(body.new_password)
    if errors:
        raise weak_password_error(errors)

    user_store.set_password(target.id, hash_password(body.new_password))
    return MessageResponse(message="User password reset successfully.")
