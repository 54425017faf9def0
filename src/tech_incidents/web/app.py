"""
Flask application for the Tech Incidents service.
"""
import logging
import time
from typing import Optional

import requests
from flask import Flask, Response, g, jsonify, request
from werkzeug.exceptions import HTTPException

from ..api.health import get_health_status, get_readiness_status, get_version_info
from ..backend.client import BackendClient
from ..config import AppConfig
from ..constants import CORS_HEADERS
from ..errors import ErrorEnvelope, build_envelope, classify_status, get_error_message
from ..exceptions import TechIncidentsError
from ..logging_context import new_request_id, request_context, set_context
from ..metrics import get_metrics_text, track_http_request
from ..sanitization import sanitize_api_error, sanitize_for_logging
from ..session import STATE_KEY, AppState
from .catalog_views import register_catalog_routes
from .proxy import register_proxy_routes

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


def _error_response(envelope: ErrorEnvelope):
    return jsonify(envelope.to_dict()), envelope.status


def create_app(
    config: Optional[AppConfig] = None,
    backend: Optional[BackendClient] = None,
    http_session: Optional[requests.Session] = None,
) -> Flask:
    """
    Create the Flask application.

    Args:
        config: Service configuration; loaded from file/environment if omitted
        backend: Backend client; built from ``config`` if omitted
        http_session: HTTP session for the built backend client

    Returns:
        Flask app instance

    Raises:
        ValueError: If the configuration is invalid
    """
    config = config or AppConfig.load()
    config.validate()
    if not config.is_backend_configured:
        logger.warning("Backend URL or API key missing; relay routes will answer 503")

    backend = backend or BackendClient.from_config(config, session=http_session)

    app = Flask(__name__)
    app.config['DEBUG'] = config.environment == "development"
    app.config['TESTING'] = config.environment == "test"
    # Base64 inflates uploads by a third; leave room for the rest of the form
    app.config['MAX_CONTENT_LENGTH'] = config.max_image_size_mb * 2 * 1024 * 1024
    app.extensions[STATE_KEY] = AppState(config=config, backend=backend)

    @app.before_request
    def start_request():
        """Attach a request id and answer CORS preflights."""
        g.start_time = time.monotonic()
        g.request_id = request.headers.get(REQUEST_ID_HEADER) or new_request_id()
        g.log_token = set_context(request_id=g.request_id)

        if request.method == 'OPTIONS':
            return Response(status=204, headers=CORS_HEADERS)
        return None

    @app.after_request
    def finish_request(response):
        """Add CORS and security headers and record request metrics."""
        if request.path.startswith('/api/'):
            for name, value in CORS_HEADERS.items():
                response.headers[name] = value

        response.headers['X-Content-Type-Options'] = 'nosniff'
        response.headers['X-Frame-Options'] = 'DENY'
        if 'request_id' in g:
            response.headers[REQUEST_ID_HEADER] = g.request_id

        if 'start_time' in g:
            endpoint = request.url_rule.rule if request.url_rule else 'unmatched'
            track_http_request(
                endpoint, request.method, response.status_code,
                time.monotonic() - g.start_time,
            )
        return response

    @app.teardown_request
    def clear_request_context(exc):
        token = g.pop('log_token', None)
        if token is not None:
            request_context.reset(token)

    # Errors

    @app.errorhandler(TechIncidentsError)
    def handle_service_error(error: TechIncidentsError):
        envelope = build_envelope(error)
        if envelope.status >= 500:
            logger.error(f"{type(error).__name__}: {sanitize_api_error(error)}")
        else:
            logger.warning(
                f"{request.method} {sanitize_for_logging(request.path)} -> "
                f"{envelope.status} {envelope.type.value}: {sanitize_api_error(error)}"
            )
        return _error_response(envelope)

    @app.errorhandler(HTTPException)
    def handle_http_error(error: HTTPException):
        error_type = classify_status(error.code or 500)
        envelope = ErrorEnvelope(
            error=error.description or get_error_message(error_type),
            type=error_type,
            status=error.code or 500,
        )
        return _error_response(envelope)

    @app.errorhandler(Exception)
    def handle_unexpected_error(error: Exception):
        logger.error(f"Unhandled error: {sanitize_api_error(error)}", exc_info=True)
        return _error_response(build_envelope(error))

    # Monitoring

    @app.route('/health')
    def health():
        """Liveness probe."""
        return jsonify(get_health_status())

    @app.route('/ready')
    def ready():
        """Readiness probe; 503 until the backend is configured and reachable."""
        status = get_readiness_status(app.extensions[STATE_KEY])
        return jsonify(status), 200 if status["status"] == "ready" else 503

    @app.route('/version')
    def version():
        return jsonify(get_version_info())

    @app.route('/metrics')
    def metrics():
        return Response(get_metrics_text(), mimetype='text/plain; version=0.0.4')

    register_proxy_routes(app)
    register_catalog_routes(app)

    logger.info(f"Tech Incidents app created ({config.environment})")
    return app


def run_server(
    host: str = '127.0.0.1',
    port: int = 5000,
    config: Optional[AppConfig] = None,
    debug: Optional[bool] = None,
):
    """
    Run the development server.

    Args:
        host: Host to bind to
        port: Port to listen on
        config: Service configuration (loaded if omitted)
        debug: Override debug mode (defaults to development environment)
    """
    app = create_app(config)
    debug = app.config['DEBUG'] if debug is None else debug
    logger.info(f"Starting Tech Incidents service on {host}:{port}")
    app.run(host=host, port=port, debug=debug)
