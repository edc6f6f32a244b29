"""
Pytest configuration and shared fixtures for all tests.

This module provides shared fixtures for the test suite, including:
- A fresh ValidationEngine per test (empty compiled-validator cache)
- A Flask test client wired to that engine
"""

import pytest

from api import create_app
from config import get_default_config
from validation import ValidationEngine


@pytest.fixture
def engine():
    """Validation engine with the default keyword registry."""
    return ValidationEngine()


@pytest.fixture
def app(engine):
    """Flask app using the test engine and the default configuration."""
    app = create_app(engine=engine, config=get_default_config())
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    """Flask test client."""
    return app.test_client()
