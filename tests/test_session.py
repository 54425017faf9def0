"""
Tests for session cookies.
"""
import pytest
from flask import Response

from tech_incidents.exceptions import AuthenticationError
from tech_incidents.session import (
    AuthSession,
    clear_session_cookies,
    cookie_options,
    set_session_cookies,
)


def test_from_cookies():
    session = AuthSession.from_cookies({"sb-access-token": "acc", "sb-refresh-token": "ref"})

    assert session.access_token == "acc"
    assert session.refresh_token == "ref"
    assert session.is_complete


def test_partial_cookies_incomplete():
    """Both tokens are needed."""
    session = AuthSession.from_cookies({"sb-access-token": "acc"})

    assert not session.is_complete
    with pytest.raises(AuthenticationError):
        session.require()


def test_empty_cookie_treated_as_missing():
    session = AuthSession.from_cookies({"sb-access-token": "", "sb-refresh-token": "ref"})

    assert session.access_token is None


def test_from_backend():
    session = AuthSession.from_backend({"access_token": "a", "refresh_token": "r", "expires_in": 3600})

    assert session == AuthSession("a", "r")
    assert AuthSession.from_backend(None) is None
    assert AuthSession.from_backend({}) is None


def test_cookie_header():
    assert AuthSession("a", "r").cookie_header() == "sb-access-token=a; sb-refresh-token=r"


def test_cookie_options():
    assert cookie_options(60, secure=True) == {
        "max_age": 60,
        "httponly": True,
        "secure": True,
        "path": "/",
        "samesite": "Lax",
    }


def test_set_session_cookies():
    response = Response()

    set_session_cookies(response, AuthSession("acc", "ref"), secure=False)

    cookies = response.headers.getlist("Set-Cookie")
    assert len(cookies) == 2
    access = next(c for c in cookies if c.startswith("sb-access-token=acc"))
    refresh = next(c for c in cookies if c.startswith("sb-refresh-token=ref"))
    assert "HttpOnly" in access
    assert "Max-Age=3600" in access
    assert "SameSite=Lax" in access
    assert "Secure" not in access
    assert "Max-Age=7776000" in refresh


def test_secure_cookies():
    response = Response()

    set_session_cookies(response, AuthSession("acc", "ref"), secure=True)

    assert all("Secure" in c for c in response.headers.getlist("Set-Cookie"))


def test_clear_session_cookies():
    response = Response()

    clear_session_cookies(response, secure=False)

    cookies = response.headers.getlist("Set-Cookie")
    assert len(cookies) == 2
    assert all("Max-Age=0" in c for c in cookies)
