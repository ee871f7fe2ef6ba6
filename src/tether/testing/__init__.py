"""Test utilities for tether applications.

    from tether.testing import TestClient
"""

from tether.testing.client import TestClient

__all__ = ["TestClient"]
