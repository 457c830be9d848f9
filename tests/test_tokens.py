"""
tests/test_tokens.py -- Unit tests for auth/tokens.py.

Covers:
  - bcrypt hash/verify round trip and malformed hashes
  - password policy messages, including the 72-byte bcrypt limit
  - token claims, expiry and tampering
  - authenticate_user with unknown email, wrong password, inactive account
"""

from __future__ import annotations

import os

os.environ.setdefault("DEBUG", "true")

import uuid

import pytest
from jose import jwt

from auth.models import ROLE_ADMIN, ROLE_USER, User
from auth.store import UserStore
from auth.tokens import (
    authenticate_user,
    create_access_token,
    decode_access_token,
    hash_password,
    token_expires_in,
    validate_password,
    verify_password,
)
from core.config import get_settings


@pytest.fixture()
def store():
    s = UserStore(db_url=f"sqlite:///file:test_tokens_{uuid.uuid4().hex[:8]}?mode=memory&cache=shared&uri=true")
    yield s
    s.close()


class TestPasswordHashing:
    def test_hash_is_not_plaintext(self) -> None:
        hashed = hash_password("Secret!123")
        assert hashed != "Secret!123"
        assert hashed.startswith("$2")

    def test_verify_roundtrip(self) -> None:
        hashed = hash_password("Secret!123")
        assert verify_password("Secret!123", hashed)
        assert not verify_password("secret!123", hashed)

    def test_same_password_hashes_differ(self) -> None:
        """Each hash carries its own salt."""
        assert hash_password("Secret!123") != hash_password("Secret!123")

    def test_malformed_hash_returns_false(self) -> None:
        assert verify_password("Secret!123", "not-a-bcrypt-hash") is False


class TestPasswordPolicy:
    def test_strong_password_passes(self) -> None:
        assert validate_password("Admin@123") == []

    @pytest.mark.parametrize(
        "password, fragment",
        [
            ("Ab1!", "at least 8 characters"),
            ("lowercase1!", "uppercase"),
            ("NoDigits!!", "number"),
            ("NoSpecial12", "special character"),
        ],
    )
    def test_each_rule_reported(self, password: str, fragment: str) -> None:
        errors = validate_password(password)
        assert any(fragment in e for e in errors), errors

    def test_all_failures_reported_together(self) -> None:
        assert len(validate_password("abc")) == 4

    def test_long_multibyte_password_rejected(self) -> None:
        """44 characters, 84 bytes: under the field cap but over bcrypt's limit."""
        password = "Aa1!" + "é" * 40
        assert len(password) < 72
        errors = validate_password(password)
        assert errors == ["Password must be at most 72 bytes long"]

    def test_long_ascii_password_rejected(self) -> None:
        assert any("72 bytes" in e for e in validate_password("Aa1!" + "x" * 76))

    def test_password_at_byte_limit_hashes(self) -> None:
        password = "Aa1!" + "x" * 68
        assert validate_password(password) == []
        assert verify_password(password, hash_password(password))


class TestAccessTokens:
    def test_claims(self) -> None:
        token = create_access_token(42, ROLE_ADMIN)
        payload = decode_access_token(token)
        assert payload is not None
        assert payload["sub"] == "42"
        assert payload["user_id"] == 42
        assert payload["role"] == ROLE_ADMIN
        assert payload["exp"] - payload["iat"] == token_expires_in()

    def test_default_lifetime_is_a_day(self) -> None:
        assert token_expires_in() == 86400

    def test_expired_token_rejected(self) -> None:
        token = create_access_token(1, ROLE_USER, expire_seconds=-10)
        assert decode_access_token(token) is None

    def test_tampered_token_rejected(self) -> None:
        token = create_access_token(1, ROLE_USER)
        head, body, sig = token.split(".")
        forged = f"{head}.{body}.{sig[:-2]}{'A' if sig[-2] != 'A' else 'B'}{sig[-1]}"
        assert decode_access_token(forged) is None

    def test_wrong_key_rejected(self) -> None:
        token = jwt.encode({"user_id": 1, "role": ROLE_ADMIN}, "x" * 40, algorithm="HS256")
        assert decode_access_token(token) is None

    def test_missing_claims_rejected(self) -> None:
        token = jwt.encode({"sub": "1"}, get_settings().secret_key, algorithm="HS256")
        assert decode_access_token(token) is None

    def test_garbage_rejected(self) -> None:
        assert decode_access_token("not.a.token") is None
        assert decode_access_token("") is None


class TestAuthenticateUser:
    def test_success(self, store: UserStore) -> None:
        store.create_user(User(email="ring@jewelers.io", name="Ring", hashed_password=hash_password("Gold!2024")))
        user = authenticate_user(store, "Ring@Jewelers.io", "Gold!2024")
        assert user is not None
        assert user.email == "ring@jewelers.io"

    def test_wrong_password(self, store: UserStore) -> None:
        store.create_user(User(email="ring@jewelers.io", name="Ring", hashed_password=hash_password("Gold!2024")))
        assert authenticate_user(store, "ring@jewelers.io", "Gold!2025") is None

    def test_unknown_email(self, store: UserStore) -> None:
        assert authenticate_user(store, "nobody@jewelers.io", "Gold!2024") is None

    def test_inactive_user_still_returned(self, store: UserStore) -> None:
        """The login route distinguishes disabled accounts after the password check."""
        store.create_user(
            User(email="off@jewelers.io", name="Off", hashed_password=hash_password("Gold!2024"), is_active=False)
        )
        user = authenticate_user(store, "off@jewelers.io", "Gold!2024")
        assert user is not None
        assert user.is_active is False
