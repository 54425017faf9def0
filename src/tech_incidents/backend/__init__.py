"""
Relay to the hosted backend.
"""

from .client import BackendClient

__all__ = ["BackendClient"]
