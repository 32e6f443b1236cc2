"""
Adapters layer - External integrations (hosted booking backend).
"""

from .backend_client import BackendClient
from .mock_backend_client import MockBackendClient

__all__ = ["BackendClient", "MockBackendClient"]
