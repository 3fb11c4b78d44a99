"""Mock implementations of external services for testing."""

from .mock_http import MockHttpSession, MockResponse
from .mock_storage import MockObjectStore

__all__ = [
    "MockHttpSession",
    "MockObjectStore",
    "MockResponse",
]
