"""
Tests for stateless admin tokens and the fixed-window rate limiter.
"""

from __future__ import annotations

import pytest
from starlette.requests import Request

from bookingdesk.api.v1.guards import client_key
from bookingdesk.application.exceptions import AuthenticationError
from bookingdesk.application.use_cases.admin_auth import AdminAuthenticator
from bookingdesk.application.utils.rate_limiter import FixedWindowRateLimiter
from conftest import FakeClock


def test_login_returns_64_char_token_that_verifies():
    auth = AdminAuthenticator("secret", lambda: "hunter22")

    token = auth.login("hunter22")

    assert len(token) == 64
    assert auth.verify(token)
    assert not auth.verify(token[:-1] + ("0" if token[-1] != "0" else "1"))
    assert not auth.verify(None)
    assert not auth.verify("short")


def test_wrong_password_rejected():
    auth = AdminAuthenticator("secret", lambda: "hunter22")

    with pytest.raises(AuthenticationError):
        auth.login("hunter2")


def test_no_configured_password_rejects_everything():
    auth = AdminAuthenticator("secret", lambda: "")

    with pytest.raises(AuthenticationError):
        auth.login("")
    assert not auth.verify(AdminAuthenticator("secret", lambda: "x").make_token(""))


def test_password_change_invalidates_old_tokens():
    current = {"password": "first-pass"}
    auth = AdminAuthenticator("secret", lambda: current["password"])
    token = auth.login("first-pass")

    current["password"] = "second-pass"

    assert not auth.verify(token)
    assert auth.verify(auth.login("second-pass"))


def test_tokens_depend_on_secret():
    a = AdminAuthenticator("secret-a", lambda: "pw")
    b = AdminAuthenticator("secret-b", lambda: "pw")

    assert not b.verify(a.login("pw"))


def test_missing_secret_falls_back_to_dev_secret():
    auth = AdminAuthenticator(None, lambda: "pw")

    assert auth.verify(auth.login("pw"))


def test_rate_limiter_blocks_after_limit_and_resets():
    clock = FakeClock()
    limiter = FixedWindowRateLimiter(max_requests=5, window_seconds=60, clock=clock)

    results = [limiter.hit("1.2.3.4", "admin_login") for _ in range(6)]
    assert results == [True] * 5 + [False]

    # Other clients and routes have their own windows.
    assert limiter.hit("5.6.7.8", "admin_login")
    assert limiter.hit("1.2.3.4", "bookings")

    clock.advance(61)
    assert limiter.hit("1.2.3.4", "admin_login")


def test_rate_limiter_prunes_expired_windows():
    clock = FakeClock()
    limiter = FixedWindowRateLimiter(max_requests=1, window_seconds=10, clock=clock, prune_every=3)
    limiter.hit("a", "r")
    limiter.hit("b", "r")
    clock.advance(11)

    limiter.hit("c", "r")

    assert set(limiter._windows) == {("c", "r")}


def _request(forwarded: str | None = None, peer: str = "10.1.1.1") -> Request:
    headers = [(b"x-forwarded-for", forwarded.encode("latin-1"))] if forwarded else []
    return Request({"type": "http", "method": "POST", "path": "/", "headers": headers, "client": (peer, 5000)})


def test_client_key_ignores_forwarded_header_without_trusted_proxy():
    assert client_key(_request("203.0.113.9"), trusted_hops=0) == "10.1.1.1"


def test_client_key_uses_entry_appended_by_trusted_proxy():
    spoofed = _request("6.6.6.6, 203.0.113.9")

    assert client_key(spoofed, trusted_hops=1) == "203.0.113.9"
    assert client_key(_request("6.6.6.6, 203.0.113.9, 10.0.0.2"), trusted_hops=2) == "203.0.113.9"


def test_client_key_falls_back_to_peer_when_chain_too_short():
    assert client_key(_request("203.0.113.9"), trusted_hops=2) == "10.1.1.1"
