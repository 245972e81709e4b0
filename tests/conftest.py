"""
Shared test fixtures for trello-cli tests.
Patches config module to avoid loading a real .env and making API calls.
"""

import os
import sys

import pytest

# Add project root to path so imports work without an install
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


@pytest.fixture(autouse=True)
def _isolate_config(monkeypatch):
    """Ensure every test starts with a clean config state.
    Prevents tests from reading the real .env or the user's $EDITOR."""
    from trello_cli import config

    monkeypatch.setattr(config, "env", {})
    monkeypatch.setattr(config, "API_KEY", "fake-key")
    monkeypatch.setattr(config, "TOKEN", "fake-token")
    monkeypatch.setattr(config, "BASE_URL", "https://api.trello.com")
    monkeypatch.setattr(config, "EDITOR", "")
    monkeypatch.setattr(config, "HTTP_LOG_ENABLED", False)
    monkeypatch.setattr(config, "DEBUG_LOG_ENABLED", False)
    monkeypatch.setattr(config, "RUNTIME_QUIET", False)
    monkeypatch.setattr(config, "RUNTIME_VERBOSE", False)
    monkeypatch.delenv("EDITOR", raising=False)
