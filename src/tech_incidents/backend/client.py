"""
Client for the hosted backend's edge functions.

Every operation is one synchronous request to
``<backend_url>/functions/v1/<function>`` through a shared
``requests.Session``. Public calls authenticate with the project's anon
key; calls made on behalf of a signed-in user carry the user's access
token and both session cookies. There are no retries: a failure is
classified into the error envelope tags and raised.
"""
import logging
import time
from typing import Any, Dict, Iterable, List, Mapping, Optional

import requests

from ..config import AppConfig
from ..constants import (
    BACKEND_FUNCTIONS_PATH,
    DEFAULT_REQUEST_TIMEOUT_SECONDS,
    INCIDENTS_FUNCTION,
)
from ..errors import classify_status
from ..exceptions import (
    BackendConnectionError,
    BackendError,
    BackendTimeoutError,
    MissingConfigError,
)
from ..metrics import track_backend_call
from ..sanitization import redact_secrets, sanitize_payload
from ..session import AuthSession

logger = logging.getLogger(__name__)

SIGNIN_FUNCTION = "authentication/signin"
SIGNUP_FUNCTION = "authentication/signup"
SIGNOUT_FUNCTION = "authentication/signout"
USER_FUNCTION = "authentication/user"
VALIDATE_AUTH_FUNCTION = "validate-auth"
USER_TASKS_FUNCTION = "protected"
PASSWORD_RECOVERY_FUNCTION = "password-recovery"
PASSWORD_RESET_CONFIRM_FUNCTION = "password-recovery/confirm"


def _error_message(body: Any, status: int) -> str:
    if isinstance(body, Mapping):
        message = body.get("error") or body.get("message")
        if message:
            return str(message)
    return f"Error: {status}"


class BackendClient:
    """
    Relay for the backend's incident, authentication and recovery functions.

    Args:
        base_url: Backend project URL (``https://<project>.supabase.co``)
        anon_key: Public API key sent as the bearer token of public calls
        timeout: Per-request timeout in seconds
        session: HTTP session to use; a new one is created if omitted

    Example:
        >>> client = BackendClient("https://demo.supabase.co", "anon-key")
        >>> incidents = client.fetch_incidents()
    """

    def __init__(
        self,
        base_url: str,
        anon_key: str,
        timeout: int = DEFAULT_REQUEST_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = (base_url or "").rstrip("/")
        self.anon_key = anon_key or ""
        self.timeout = timeout
        self.session = session or requests.Session()

    @classmethod
    def from_config(cls, config: AppConfig, session: Optional[requests.Session] = None) -> 'BackendClient':
        return cls(
            base_url=config.backend_url,
            anon_key=config.backend_anon_key,
            timeout=config.request_timeout,
            session=session,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.base_url and self.anon_key)

    def function_url(self, function: str) -> str:
        """
        Full URL of a backend function.

        Raises:
            MissingConfigError: If no backend URL is configured
        """
        if not self.base_url:
            raise MissingConfigError("Backend URL is not configured")
        return f"{self.base_url}{BACKEND_FUNCTIONS_PATH}/{function}"

    def _headers(self, auth: Optional[AuthSession]) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if auth is not None and auth.access_token:
            headers["Authorization"] = f"Bearer {auth.access_token}"
            if auth.refresh_token:
                headers["Cookie"] = auth.cookie_header()
        else:
            if not self.anon_key:
                raise MissingConfigError("Backend API key is not configured")
            headers["Authorization"] = f"Bearer {self.anon_key}"
        return headers

    def call(
        self,
        function: str,
        method: str = "GET",
        payload: Optional[Any] = None,
        auth: Optional[AuthSession] = None,
    ) -> Any:
        """
        Send one request to a backend function and return its JSON body.

        Args:
            function: Function path below ``/functions/v1/``
            method: HTTP method
            payload: JSON body (omitted when None)
            auth: User session for protected calls; the anon key otherwise

        Returns:
            Parsed JSON response (None for an empty body)

        Raises:
            BackendConnectionError: If the backend cannot be reached
            BackendTimeoutError: If the request times out
            BackendError: If the backend answers with a non-2xx status
            MissingConfigError: If the backend is not configured
        """
        url = self.function_url(function)
        method = method.upper()
        headers = self._headers(auth)

        logger.debug(f"{method} {function} payload={sanitize_payload(payload)}")
        start = time.monotonic()
        try:
            response = self.session.request(
                method=method,
                url=url,
                headers=headers,
                json=payload,
                timeout=self.timeout,
            )
        except requests.Timeout as e:
            track_backend_call(function, method, "timeout", time.monotonic() - start)
            logger.error(f"Backend {method} {function} timed out after {self.timeout}s")
            raise BackendTimeoutError(
                f"Backend request timed out after {self.timeout}s"
            ) from e
        except requests.ConnectionError as e:
            track_backend_call(function, method, "network_error", time.monotonic() - start)
            logger.error(f"Backend {method} {function} unreachable: {redact_secrets(str(e))}")
            raise BackendConnectionError(f"Network error: {redact_secrets(str(e))}") from e

        duration = time.monotonic() - start
        body = self._parse_body(response)

        if not response.ok:
            error_type = classify_status(response.status_code, body)
            track_backend_call(function, method, error_type.value, duration)
            message = _error_message(body, response.status_code)
            logger.warning(
                f"Backend {method} {function} failed with {response.status_code}: "
                f"{redact_secrets(message)}"
            )
            raise BackendError(
                message,
                status=response.status_code,
                error_type=error_type.value,
                details=body,
            )

        track_backend_call(function, method, "success", duration)
        logger.info(f"Backend {method} {function} -> {response.status_code} ({duration:.3f}s)")
        return body

    def _parse_body(self, response: requests.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            if response.ok:
                raise BackendError(
                    "Invalid JSON response from backend",
                    status=502,
                    error_type="service_unavailable",
                )
            return {"error": f"Error: {response.status_code} {response.reason or ''}".strip()}

    # Incidents

    def fetch_incidents(self) -> List[Dict[str, Any]]:
        """
        Fetch the full incident collection.

        Raises:
            BackendError: If the backend does not return a list
        """
        data = self.call(INCIDENTS_FUNCTION, "GET")
        if data is None:
            return []
        if not isinstance(data, list):
            raise BackendError(
                "Unexpected incidents response from backend",
                status=502,
                details={"received": type(data).__name__},
            )
        return data

    def create_incident(self, payload: Mapping[str, Any]) -> Any:
        """Relay a validated ``{addition, fileData?, ...}`` submission."""
        return self.call(INCIDENTS_FUNCTION, "POST", dict(payload))

    def update_incident(self, payload: Mapping[str, Any]) -> Any:
        """Relay a validated ``{id, update, fileData?, ...}`` submission."""
        return self.call(INCIDENTS_FUNCTION, "PUT", dict(payload))

    def delete_incidents(self, ids: Iterable[Any]) -> Any:
        return self.call(INCIDENTS_FUNCTION, "DELETE", {"ids": list(ids)})

    # Authentication

    def sign_in(self, email: str, password: str) -> Dict[str, Any]:
        """Returns the backend's ``{user, session}`` answer."""
        return self.call(SIGNIN_FUNCTION, "POST", {"email": email, "password": password}) or {}

    def sign_up(self, email: str, password: str, display_name: Optional[str] = None) -> Any:
        return self.call(
            SIGNUP_FUNCTION,
            "POST",
            {"email": email, "password": password, "displayName": display_name},
        )

    def sign_out(self, auth: AuthSession) -> Any:
        return self.call(SIGNOUT_FUNCTION, "POST", None, auth=auth)

    def get_user(self, auth: AuthSession) -> Any:
        return self.call(USER_FUNCTION, "GET", auth=auth)

    def validate_auth(self, auth: AuthSession, method: str = "GET", payload: Optional[Any] = None) -> Any:
        return self.call(VALIDATE_AUTH_FUNCTION, method, payload, auth=auth)

    def user_tasks(self, auth: AuthSession, method: str = "GET", payload: Optional[Any] = None) -> Any:
        return self.call(USER_TASKS_FUNCTION, method, payload, auth=auth)

    # Password recovery

    def request_password_reset(self, email: str) -> Any:
        return self.call(PASSWORD_RECOVERY_FUNCTION, "POST", {"email": email})

    def confirm_password_reset(self, email: str, password: str, token: str) -> Any:
        return self.call(
            PASSWORD_RESET_CONFIRM_FUNCTION,
            "POST",
            {"email": email, "password": password, "token": token},
        )

    def ping(self) -> bool:
        """
        True if the backend answers at all (any HTTP status).

        Used by the readiness probe; never raises.
        """
        if not self.is_configured:
            return False
        try:
            self.session.request(
                method="OPTIONS",
                url=self.function_url(INCIDENTS_FUNCTION),
                headers=self._headers(None),
                timeout=self.timeout,
            )
            return True
        except requests.RequestException as e:
            logger.warning(f"Backend ping failed: {redact_secrets(str(e))}")
            return False

    def close(self) -> None:
        self.session.close()
