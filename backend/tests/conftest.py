"""
Root pytest configuration for backend tests.

Provides:
- backend/ on sys.path (imports like `from api.contracts import ...`)
- Shared fixtures (registry, app, client)
"""

import sys
from pathlib import Path

# Add backend directory to Python path so imports like
# `from api.contracts import ...` and `from utils.normalize import ...` work
backend_dir = Path(__file__).parent.parent
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))

import pytest


class ContractTestConfig:
    TESTING = True
    LOG_LEVEL = "WARNING"
    CORS_ORIGINS = "*"
    CONTRACT_VERSION_HEADER = "X-API-Contract-Version"
    CONTRACT_VERSION_PARAM = "version"
    CONTRACT_SEAL_ON_STARTUP = True


@pytest.fixture
def registry():
    """Empty, unsealed contract registry."""
    from api.contracts import ContractRegistry
    return ContractRegistry()


@pytest.fixture
def app():
    """Create test Flask application with every endpoint contract loaded."""
    from app import create_app

    return create_app(config_object=ContractTestConfig)


@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()
