"""
api/routes/v1/auth.py -- Account self-service REST endpoints.

Routes:
  POST /api/v1/auth/signup            -- create a USER account; returns token
  POST /api/v1/auth/login             -- email/password login; returns token
  GET  /api/v1/auth/me                -- current user info (requires auth)
  POST /api/v1/auth/change-password   -- change own password (requires auth)
  POST /api/v1/auth/request-reset     -- issue a reset OTP for an email
  POST /api/v1/auth/reset-password    -- set a new password with a valid OTP

Security:
  POST /login, /signup, /request-reset and /reset-password are rate-limited
  per client IP.
  authenticate_user() provides timing equalization -- use it, never inline.
  /request-reset answers identically whether or not the email is registered.
  Cache-Control: no-store on every response that carries a token.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

from api.limiter import limiter
from api.models import (
    AuthResponse,
    ChangePasswordRequest,
    ErrorDetail,
    LoginRequest,
    MessageResponse,
    ResetPasswordRequest,
    ResetRequest,
    ResetRequestResponse,
    SignupRequest,
    UserResponse,
    UserSummary,
)
from auth.dependencies import get_current_user
from auth.models import ROLE_USER, User
from auth.otp import OTPStore
from auth.store import UserStore
from auth.tokens import (
    authenticate_user,
    create_access_token,
    hash_password,
    token_expires_in,
    validate_password,
    verify_password,
)
from core.config import get_settings

logger = logging.getLogger("designportal.auth")

_settings = get_settings()

# Auth policy:
# - POST /api/v1/auth/signup:           public (can be disabled by SELF_REGISTRATION_ENABLED)
# - POST /api/v1/auth/login:            public
# - POST /api/v1/auth/request-reset:    public
# - POST /api/v1/auth/reset-password:   public, OTP-gated
# - GET  /api/v1/auth/me:               requires auth (get_current_user)
# - POST /api/v1/auth/change-password:  requires auth (get_current_user)
router = APIRouter()

_RESET_MESSAGE = "If this email is registered, a reset code has been sent."


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def weak_password_error(errors: list[str]) -> HTTPException:
    """400 carrying every failed password rule, joined for display."""
    return HTTPException(
        status_code=400,
        detail=ErrorDetail(
            code="weak_password",
            message="Password validation failed.",
            detail="; ".join(errors),
        ).model_dump(),
    )


def _token_response(user: User, status_code: int = 200) -> JSONResponse:
    token = create_access_token(user.id, user.role)
    resp = JSONResponse(
        status_code=status_code,
        content=AuthResponse(
            user=UserSummary.from_user(user),
            token=token,
            expires_in=token_expires_in(),
        ).model_dump(),
    )
    resp.headers["Cache-Control"] = "no-store"
    return resp


# ---------------------------------------------------------------------------
# Public endpoints
# ---------------------------------------------------------------------------


@router.post("/auth/signup", response_model=AuthResponse, status_code=201)
@limiter.limit("5/minute")  # must sit BELOW @router so FastAPI registers the limited wrapper
def signup(request: Request, body: SignupRequest) -> JSONResponse:
    """Register a customer account and log it in.

    New accounts always get the USER role; admins are created through
    POST /users or the create-user CLI command.
    """
    if not _settings.self_registration_enabled:
        raise HTTPException(
            status_code=403,
            detail={"code": "registration_disabled", "message": "Self-registration is disabled."},
        )

    errors = validate_password(body.password)
    if errors:
        raise weak_password_error(errors)

    user_store: UserStore = request.app.state.user_store
    if user_store.email_taken(body.email):
        raise HTTPException(
            status_code=409,
            detail={"code": "conflict", "message": "User with this email already exists."},
        )

    new_user = User(
        email=body.email,
        name=body.name,
        phone=body.phone,
        role=ROLE_USER,
        hashed_password=hash_password(body.password),
    )
    try:
        user_id = user_store.create_user(new_user)
    except IntegrityError as exc:
        raise HTTPException(
            status_code=409,
            detail={"code": "conflict", "message": "User with this email already exists."},
        ) from exc

    created = user_store.get_by_id(user_id)
    logger.info("New account registered: user_id=%d", user_id)
    return _token_response(created, status_code=201)


@router.post("/auth/login", response_model=AuthResponse)
@limiter.limit(_settings.login_rate_limit)
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with email and password; return a bearer token.

    Wrong email and wrong password produce the same 401 so the response does
    not reveal which accounts exist. Disabled accounts get a 403 -- only
    after the password has been verified.
    """
    user_store: UserStore = request.app.state.user_store
    user = authenticate_user(user_store, body.email, body.password)
    if user is None:
        resp = JSONResponse(
            status_code=401,
            content={"error": {"code": "bad_credentials", "message": "Invalid email or password."}},
        )
        resp.headers["Cache-Control"] = "no-store"
        return resp

    if not user.is_active:
        return JSONResponse(
            status_code=403,
            content={"error": {"code": "account_disabled", "message": "Account is disabled."}},
        )

    return _token_response(user)


@router.post("/auth/request-reset", response_model=ResetRequestResponse)
@limiter.limit("5/minute")
def request_password_reset(request: Request, body: ResetRequest) -> ResetRequestResponse:
    """Issue a password-reset OTP for the given email.

    The code is delivered out of band; here that is the application log. In
    debug mode the code is also echoed in the response so the flow can be
    exercised without a mailbox.
    """
    user_store: UserStore = request.app.state.user_store
    otp_store: OTPStore = request.app.state.otp_store

    user = user_store.get_by_email(body.email)
    if user is None:
        return ResetRequestResponse(message=_RESET_MESSAGE)

    code = otp_store.issue(user.email)
    logger.info("Password reset OTP for %s: %s", user.email, code)
    return ResetRequestResponse(message=_RESET_MESSAGE, otp=code if _settings.debug else None)


@router.post("/auth/reset-password", response_model=MessageResponse)
@limiter.limit("10/minute")
def reset_password(request: Request, body: ResetPasswordRequest) -> MessageResponse:
    """Replace a forgotten password using the OTP from /request-reset.

    The new password is checked against the policy before the OTP is
    consumed, so a rejected password does not burn the code.
    """
    errors = validate_password(body.new_password)
    if errors:
        raise weak_password_error(errors)

    otp_store: OTPStore = request.app.state.otp_store
    if not otp_store.verify(body.email, body.otp):
        raise HTTPException(
            status_code=401,
            detail={"code": "invalid_otp", "message": "Invalid or expired OTP."},
        )

    user_store: UserStore = request.app.state.user_store
    user = user_store.get_by_email(body.email)
    if user is None:
        raise HTTPException(
            status_code=404,
            detail={"code": "not_found", "message": "User not found."},
        )

    user_store.set_password(user.id, hash_password(body.new_password))
    logger.info("Password reset via OTP: user_id=%d", user.id)
    return MessageResponse(message="Password reset successfully.")


# ---------------------------------------------------------------------------
# Authenticated endpoints
# ---------------------------------------------------------------------------


@router.get("/auth/me", response_model=UserResponse)
async def me(current_user: User = Depends(get_current_user)) -> UserResponse:
    """Return profile information for the currently authenticated user."""
    return UserResponse.from_user(current_user)


@router.post("/auth/change-password", response_model=MessageResponse)
def change_password(
    request: Request,
    body: ChangePasswordRequest,
    current_user: User = Depends(get_current_user),
) -> MessageResponse:
    """Change the caller's password after re-checking the current one."""
    if not current_user.hashed_password or not verify_password(body.current_password, current_user.hashed_password):
        raise HTTPException(
            status_code=401,
            detail={"code": "bad_credentials", "message": "Current password is incorrect."},
        )

    errors = validate_password(body.new_password)
    if errors:
        raise weak_password_error(errors)

    user_store: UserStore = request.app.state.user_store
    user_store.set_password(current_user.id, hash_password(body.new_password))
    return MessageResponse(message="Password changed successfully.")
