"""
Top-level test configuration for claimsync.
"""

import os

import pytest

# Ensure test-friendly defaults
os.environ.setdefault("CLAIMSYNC_CONFIG_PATH", "/nonexistent/claimsync/config.yaml")
os.environ.setdefault("CLAIMSYNC_JSON_LOGS", "false")
os.environ.setdefault("CLAIMSYNC_LOG_LEVEL", "DEBUG")

from claimsync.store.memory import InMemoryRealm, InMemoryUser  # noqa: E402


@pytest.fixture
def realm() -> InMemoryRealm:
    return InMemoryRealm(name="test-realm")


@pytest.fixture
def user(realm: InMemoryRealm) -> InMemoryUser:
    return InMemoryUser(username="jdoe", realm=realm)
