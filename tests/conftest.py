"""Shared test fixtures."""

import pytest
from fastapi.testclient import TestClient

from storefront.main import create_app


@pytest.fixture
def client() -> TestClient:
    """Client for an app without backing stores (lifespan is not run)."""
    return TestClient(create_app())
