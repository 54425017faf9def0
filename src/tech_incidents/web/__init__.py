"""
Web service: proxy routes, catalog routes and monitoring endpoints.
"""

from .app import create_app, run_server

__all__ = ["create_app", "run_server"]
