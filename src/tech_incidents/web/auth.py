"""
Session enforcement for protected Flask routes.
"""
import logging
from functools import wraps
from typing import Callable

from flask import g, jsonify, request

from ..exceptions import AuthenticationError
from ..sanitization import sanitize_for_logging
from ..session import AuthSession

logger = logging.getLogger(__name__)

UNAUTHORIZED_BODY = {"error": "Unauthorized", "message": "Authentication required"}


def current_session() -> AuthSession:
    """Session tokens carried by the current request's cookies."""
    return AuthSession.from_cookies(request.cookies)


def require_session(f: Callable) -> Callable:
    """
    Decorator requiring both session cookies.

    The session is available to the view as ``g.auth_session``.

    Usage:
        @app.route('/api/auth/user')
        @require_session
        def user():
            ...
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        try:
            g.auth_session = current_session().require()
        except AuthenticationError:
            logger.warning(
                f"Unauthenticated request to {sanitize_for_logging(request.path)} "
                f"from {sanitize_for_logging(request.remote_addr)}"
            )
            return jsonify(UNAUTHORIZED_BODY), 401

        return f(*args, **kwargs)

    return decorated_function
