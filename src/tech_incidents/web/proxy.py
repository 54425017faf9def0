"""
Proxy routes relaying incident mutations and auth flows to the backend.

Each handler validates its input first, so a malformed request is answered
with a 400 before anything is sent upstream.
"""
import logging
from typing import Any, Dict

from flask import Flask, current_app, g, jsonify, request

from ..exceptions import TechIncidentsError, ValidationError
from ..metrics import track_incidents_loaded
from ..sanitization import sanitize_api_error, sanitize_for_logging
from ..session import AuthSession, clear_session_cookies, get_state, set_session_cookies
from ..validation import (
    collect_delete_ids,
    normalize_reset_token,
    prepare_incident_update,
    prepare_new_incident,
    require_fields,
    validate_email,
    validate_password,
)
from .auth import current_session, require_session

logger = logging.getLogger(__name__)


def json_body(required: bool = True) -> Dict[str, Any]:
    """
    The request's JSON object body.

    Raises:
        ValidationError: If a body is required and is not a JSON object
    """
    body = request.get_json(silent=True)
    if body is None and not required:
        return {}
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object", error_type="bad_request")
    return body


def _check(result) -> None:
    is_valid, message = result
    if not is_valid:
        raise ValidationError(message)


def register_proxy_routes(app: Flask) -> None:
    """Attach the incident and auth relay routes to ``app``."""

    # Incidents

    @app.route('/api/fetch-incidents', methods=['GET'])
    def fetch_incidents():
        """Relay the full incident collection."""
        incidents = get_state(current_app).backend.fetch_incidents()
        track_incidents_loaded(len(incidents))
        return jsonify(incidents)

    @app.route('/api/new-incident', methods=['POST'])
    def new_incident():
        """Create an incident; answers with the backend's updated collection."""
        state = get_state(current_app)
        payload = prepare_new_incident(json_body(), state.config.max_image_size_mb)
        logger.info(
            f"Creating incident {sanitize_for_logging(payload['addition'].get('name'))}"
        )
        return jsonify(state.backend.create_incident(payload))

    @app.route('/api/update-incident', methods=['PUT'])
    def update_incident():
        state = get_state(current_app)
        payload = prepare_incident_update(json_body(), state.config.max_image_size_mb)
        logger.info(f"Updating incident {sanitize_for_logging(payload['id'])}")
        return jsonify(state.backend.update_incident(payload))

    @app.route('/api/delete-incident', methods=['DELETE'])
    def delete_incident():
        """Delete one (``{id}``) or many (``{ids: [...]}``) incidents."""
        ids = collect_delete_ids(json_body(required=False))
        logger.info(f"Deleting {len(ids)} incident(s)")
        return jsonify(get_state(current_app).backend.delete_incidents(ids))

    # Authentication

    @app.route('/api/auth/signin', methods=['POST'])
    def signin():
        """Sign in and set both session cookies."""
        state = get_state(current_app)
        body = json_body()
        require_fields(body, "email", "password")

        data = state.backend.sign_in(body["email"], body["password"])
        backend_session = data.get("session")

        response = jsonify({"user": data.get("user"), "session": backend_session})
        auth = AuthSession.from_backend(backend_session)
        if auth is not None:
            set_session_cookies(response, auth, state.config.cookies_secure)
            logger.info("Sign in succeeded, session cookies set")
        else:
            logger.warning("Sign in answered without a session")
        return response

    @app.route('/api/auth/signup', methods=['POST'])
    def signup():
        body = json_body()
        require_fields(body, "email", "password")
        _check(validate_email(body["email"]))
        _check(validate_password(body["password"]))

        data = get_state(current_app).backend.sign_up(
            body["email"], body["password"], body.get("displayName")
        )
        return jsonify(data)

    @app.route('/api/auth/signout', methods=['POST'])
    def signout():
        """
        Clear both session cookies.

        Always succeeds: a failed backend sign out is logged and the
        response carries a warning.
        """
        state = get_state(current_app)
        auth = current_session()
        body: Dict[str, Any] = {"success": True}

        if auth.is_complete:
            try:
                state.backend.sign_out(auth)
            except TechIncidentsError as e:
                logger.warning(
                    f"Backend sign out failed, cookies cleared anyway: {sanitize_api_error(e)}"
                )
                body["warning"] = "Signout partially completed with errors"
        else:
            logger.info("No session cookies present, skipping backend sign out")

        response = jsonify(body)
        clear_session_cookies(response, state.config.cookies_secure)
        return response

    @app.route('/api/auth/user', methods=['GET'])
    @require_session
    def auth_user():
        return jsonify(get_state(current_app).backend.get_user(g.auth_session))

    @app.route('/api/auth/protected', methods=['GET', 'POST'])
    @require_session
    def auth_protected():
        """Check the session against the backend's auth validator."""
        payload = json_body() if request.method == 'POST' else None
        data = get_state(current_app).backend.validate_auth(
            g.auth_session, request.method, payload
        )
        return jsonify(data)

    @app.route('/api/user-tasks', methods=['GET', 'POST'])
    @require_session
    def user_tasks():
        payload = json_body() if request.method == 'POST' else None
        data = get_state(current_app).backend.user_tasks(
            g.auth_session, request.method, payload
        )
        return jsonify(data)

    # Password recovery

    @app.route('/api/auth/password-recovery', methods=['POST'])
    def password_recovery():
        """Ask the backend to mail reset instructions."""
        body = json_body()
        require_fields(body, "email")
        _check(validate_email(body["email"]))

        get_state(current_app).backend.request_password_reset(body["email"])
        return jsonify({"message": "Password reset instructions sent"})

    @app.route('/api/auth/password-recovery/confirm', methods=['POST'])
    def password_recovery_confirm():
        body = json_body()
        if not all(body.get(key) for key in ("email", "password", "token")):
            raise ValidationError("Email, password, and token are required")

        token = normalize_reset_token(str(body["token"]))
        get_state(current_app).backend.confirm_password_reset(
            body["email"], body["password"], token
        )
        return jsonify({"message": "Password has been reset successfully"})
