"""
Session cookies and application state.

The service never stores sessions itself: the backend issues an access
token and a refresh token at sign in, and they travel back and forth in two
httpOnly cookies. Protected routes need both.
"""
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, Mapping, Optional

from .config import AppConfig
from .constants import (
    ACCESS_TOKEN_COOKIE,
    ACCESS_TOKEN_MAX_AGE,
    REFRESH_TOKEN_COOKIE,
    REFRESH_TOKEN_MAX_AGE,
)
from .exceptions import AuthenticationError

if TYPE_CHECKING:
    from .backend.client import BackendClient

logger = logging.getLogger(__name__)

STATE_KEY = "tech_incidents"


@dataclass(frozen=True)
class AuthSession:
    """The two opaque tokens of a signed-in user."""
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None

    @property
    def is_complete(self) -> bool:
        return bool(self.access_token and self.refresh_token)

    @classmethod
    def from_cookies(cls, cookies: Mapping[str, str]) -> 'AuthSession':
        return cls(
            access_token=cookies.get(ACCESS_TOKEN_COOKIE) or None,
            refresh_token=cookies.get(REFRESH_TOKEN_COOKIE) or None,
        )

    @classmethod
    def from_backend(cls, session: Optional[Mapping[str, Any]]) -> Optional['AuthSession']:
        """Tokens from a backend ``session`` object, or None if absent."""
        if not session:
            return None
        return cls(
            access_token=session.get("access_token"),
            refresh_token=session.get("refresh_token"),
        )

    def require(self) -> 'AuthSession':
        """
        Return self if both tokens are present.

        Raises:
            AuthenticationError: If either cookie is missing
        """
        if not self.is_complete:
            raise AuthenticationError("Authentication required")
        return self

    def cookie_header(self) -> str:
        return (
            f"{ACCESS_TOKEN_COOKIE}={self.access_token}; "
            f"{REFRESH_TOKEN_COOKIE}={self.refresh_token}"
        )


def cookie_options(max_age: int, secure: bool) -> Dict[str, Any]:
    """
    Keyword arguments for ``Response.set_cookie``.

    Example:
        >>> cookie_options(3600, secure=False)["samesite"]
        'Lax'
    """
    return {
        "max_age": max_age,
        "httponly": True,
        "secure": secure,
        "path": "/",
        "samesite": "Lax",
    }


def set_session_cookies(response, session: AuthSession, secure: bool) -> None:
    """Attach both session cookies to a Flask response."""
    response.set_cookie(
        ACCESS_TOKEN_COOKIE,
        session.access_token or "",
        **cookie_options(ACCESS_TOKEN_MAX_AGE, secure),
    )
    response.set_cookie(
        REFRESH_TOKEN_COOKIE,
        session.refresh_token or "",
        **cookie_options(REFRESH_TOKEN_MAX_AGE, secure),
    )


def clear_session_cookies(response, secure: bool) -> None:
    """Expire both session cookies immediately."""
    for name in (ACCESS_TOKEN_COOKIE, REFRESH_TOKEN_COOKIE):
        response.set_cookie(name, "", **cookie_options(0, secure))


@dataclass
class AppState:
    """
    Everything a request handler needs, created once by the app factory.

    Attributes:
        config: Loaded service configuration
        backend: Client relaying calls to the hosted backend
        extras: Free slot for collaborators added by extensions
    """
    config: AppConfig
    backend: "BackendClient"
    extras: Dict[str, Any] = field(default_factory=dict)


def get_state(app) -> AppState:
    """The AppState registered on a Flask app."""
    return app.extensions[STATE_KEY]
