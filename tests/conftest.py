"""Global pytest configuration and fixtures.

This module provides shared fixtures and configuration for all tests.
"""

import os
import sys
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

# =============================================================================
# Path and Environment Setup
# =============================================================================

PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

# Read at import time by storefront modules, so set before they are imported
TEST_JWT_SECRET = "storefront-test-secret-0123456789abcdef0123456789"
os.environ["AUTH_JWT_SECRET"] = TEST_JWT_SECRET
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_CHECK_ON_STARTUP"] = "false"
os.environ.pop("SENTRY_DSN", None)

from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession  # noqa: E402

from tests.helpers import make_result, make_token  # noqa: E402


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests (fast, no external dependencies)"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests (may require external services)"
    )


# =============================================================================
# Database Mocks
# =============================================================================


@pytest.fixture
def mock_db():
    """Mock async session: async methods are AsyncMocks, add() is sync."""
    db = AsyncMock(spec=AsyncSession)
    db.execute.return_value = make_result()
    db.get.return_value = None
    return db


# =============================================================================
# Auth
# =============================================================================


@pytest.fixture
def admin_headers():
    return {"Authorization": f"Bearer {make_token(role='admin')}"}


@pytest.fixture
def customer_headers():
    return {"Authorization": f"Bearer {make_token(role='customer')}"}


# =============================================================================
# Application
# =============================================================================


@pytest.fixture
def app(mock_db):
    """Application with the database dependency replaced by ``mock_db``."""
    from storefront.api.app import app as storefront_app
    from storefront.db.session import get_db

    storefront_app.dependency_overrides[get_db] = lambda: mock_db
    yield storefront_app
    storefront_app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    return TestClient(app)
