"""
tests/test_otp.py -- Unit tests for the in-memory password-reset code store.

A fake clock drives expiry so no test sleeps.
"""

from __future__ import annotations

from auth.otp import OTPStore, generate_otp


class FakeClock:
    def __init__(self, now: float = 1_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def test_generate_otp_is_six_digits() -> None:
    for _ in range(200):
        code = generate_otp()
        assert len(code) == 6
        assert 100000 <= int(code) <= 999999


def test_issue_then_verify_consumes_code() -> None:
    store = OTPStore()
    code = store.issue("Buyer@Jewelers.io")
    assert store.verify("buyer@jewelers.io", code) is True
    # Single use
    assert store.verify("buyer@jewelers.io", code) is False


def test_verify_unknown_email() -> None:
    assert OTPStore().verify("nobody@jewelers.io", "123456") is False


def test_reissue_replaces_pending_code() -> None:
    store = OTPStore()
    store.set("a@jewelers.io", "111111")
    store.set("a@jewelers.io", "222222")
    assert store.verify("a@jewelers.io", "111111") is False
    assert store.verify("a@jewelers.io", "222222") is True


def test_expired_code_rejected_and_removed() -> None:
    clock = FakeClock()
    store = OTPStore(ttl_seconds=300, clock=clock)
    store.set("a@jewelers.io", "123456")
    clock.now += 301
    assert store.verify("a@jewelers.io", "123456") is False
    assert len(store) == 0


def test_code_valid_until_ttl() -> None:
    clock = FakeClock()
    store = OTPStore(ttl_seconds=300, clock=clock)
    store.set("a@jewelers.io", "123456")
    clock.now += 299
    assert store.verify("a@jewelers.io", "123456") is True


def test_wrong_code_keeps_entry_until_max_attempts() -> None:
    store = OTPStore(max_attempts=3)
    store.set("a@jewelers.io", "123456")
    assert store.verify("a@jewelers.io", "000000") is False
    assert store.verify("a@jewelers.io", "000001") is False
    # Still pending after two misses
    assert len(store) == 1
    assert store.verify("a@jewelers.io", "000002") is False
    assert len(store) == 0
    assert store.verify("a@jewelers.io", "123456") is False


def test_verify_strips_whitespace() -> None:
    store = OTPStore()
    store.set("a@jewelers.io", "123456")
    assert store.verify("a@jewelers.io", " 123456 ") is True


def test_purge_expired() -> None:
    clock = FakeClock()
    store = OTPStore(ttl_seconds=300, clock=clock)
    store.set("old@jewelers.io", "111111")
    clock.now += 200
    store.set("new@jewelers.io", "222222")
    clock.now += 150
    assert store.purge_expired() == 1
    assert len(store) == 1
    assert store.verify("new@jewelers.io", "222222") is True


def test_per_entry_ttl_override() -> None:
    clock = FakeClock()
    store = OTPStore(ttl_seconds=300, clock=clock)
    store.set("a@jewelers.io", "123456", ttl_seconds=10)
    clock.now += 11
    assert store.verify("a@jewelers.io", "123456") is False
