"""
auth/tokens.py -- Bearer tokens, password hashing, and password policy.

Security design decisions:
  Tokens: python-jose with HS256. A token is an HMAC-SHA256 signature over a
       JSON payload carrying user_id, role, iat and exp. Verification returns
       None on any failure (bad signature, expired, malformed, missing
       claims) -- the dependency layer turns that into a 401.

  Passwords: bcrypt, salted per hash. The _DUMMY_HASH constant enables
       timing equalization in authenticate_user() so response time does not
       reveal whether an email is registered.

  Policy: validate_password() returns the list of failed rules so the API can
       report all of them at once.

  SECRET_KEY: sourced from core.config.get_settings().

Layer rule: no imports from api/ or designs/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

import bcrypt
from jose import ExpiredSignatureError, JWTError, jwt

from core.config import get_settings

if TYPE_CHECKING:
    from auth.models import User
    from auth.store import UserStore

logger = logging.getLogger("designportal.auth")

_settings = get_settings()

_ALGORITHM = "HS256"

# ---------------------------------------------------------------------------
# Password hashing (bcrypt -- direct usage, no passlib wrapper)
# ---------------------------------------------------------------------------


def hash_password(plain: str) -> str:
    """Return a salted bcrypt hash of the given plaintext password.

    bcrypt refuses input longer than 72 bytes; validate_password() rejects
    such passwords before they reach here.
    """
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash."""
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


# Always verify against something, even for unknown emails.
_DUMMY_HASH: str = hash_password("designportal_timing_dummy")


# ---------------------------------------------------------------------------
# Password policy
# ---------------------------------------------------------------------------

_MIN_PASSWORD_LENGTH = 8
# bcrypt input limit, counted in UTF-8 bytes rather than characters.
_MAX_PASSWORD_BYTES = 72
_SPECIAL_RE = re.compile(r"[!@#$%^&*()_+\-=\[\]{};':\"\\|,.<>/?]")


def validate_password(password: str) -> list[str]:
    """Return the list of password policy violations (empty list = valid)."""
    errors: list[str] = []
    if len(password) < _MIN_PASSWORD_LENGTH:
        errors.append(f"Password must be at least {_MIN_PASSWORD_LENGTH} characters long")
    if len(password.encode("utf-8")) > _MAX_PASSWORD_BYTES:
        errors.append(f"Password must be at most {_MAX_PASSWORD_BYTES} bytes long")
    if not re.search(r"[A-Z]", password):
        errors.append("Password must contain at least one uppercase letter")
    if not re.search(r"[0-9]", password):
        errors.append("Password must contain at least one number")
    if not _SPECIAL_RE.search(password):
        errors.append("Password must contain at least one special character")
    return errors


# ---------------------------------------------------------------------------
# Token encode / decode
# ---------------------------------------------------------------------------


def create_access_token(user_id: int, role: str, expire_seconds: int = 0) -> str:
    """Encode a signed bearer token with user identity and expiry.

    Args:
        user_id:        Numeric user ID stored in the DB.
        role:           "USER" or "ADMIN".
        expire_seconds: Lifetime in seconds. 0 (default) uses
                        Settings.token_expire_seconds. Negative values issue
                        an already-expired token.
    """
    duration = expire_seconds if expire_seconds != 0 else _settings.token_expire_seconds
    issued = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "user_id": user_id,
        "role": role,
        "iat": issued,
        "exp": issued + timedelta(seconds=duration),
    }
    return jwt.encode(payload, _settings.secret_key, algorithm=_ALGORITHM)


def decode_access_token(token: str) -> dict | None:
    """Decode and verify a token. Returns the payload dict or None on any failure."""
    try:
        payload = jwt.decode(token, _settings.secret_key, algorithms=[_ALGORITHM])
    except ExpiredSignatureError:
        logger.debug("Rejected expired token")
        return None
    except JWTError:
        return None
    if "user_id" not in payload or "role" not in payload:
        return None
    return payload


def token_expires_in() -> int:
    """Seconds until a freshly issued default token expires."""
    return _settings.token_expire_seconds


# ---------------------------------------------------------------------------
# User authentication (constant-time)
# ---------------------------------------------------------------------------


def authenticate_user(store: UserStore, email: str, password: str) -> User | None:
    """Check an email/password pair with timing equalization.

    Returns the User when the password matches, whether or not the account
    is active -- the login route reports disabled accounts with a distinct
    403. Returns None for unknown emails and wrong passwords alike.
    """
    user = store.get_by_email(email)
    if user is None or user.hashed_password is None:
        verify_password(password, _DUMMY_HASH)
        return None
    if not verify_password(password, user.hashed_password):
        return None
    return user
