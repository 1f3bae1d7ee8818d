"""
Pytest configuration and fixtures for the test suite.
"""
import os
import sys

import pytest
import pytest_asyncio

# Add src directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from planner_client import ClientConfig, MemoryCredentialStore, PlannerClient
from planner_client.credential_store import ACCESS_TOKEN, REFRESH_TOKEN
from planner_client.failure_logger import configure_failure_logger
from tests.fixtures.backend_mocks import FakeBackend, LoginHookRecorder


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "asyncio: mark test as an async test"
    )


@pytest.fixture(autouse=True)
def isolated_failure_log(tmp_path):
    """Keep failures.log out of the working directory."""
    configure_failure_logger(tmp_path / "logs")
    yield
    configure_failure_logger(None)


@pytest.fixture
def config(tmp_path):
    return ClientConfig(
        api_url="http://planner.test/api",
        credentials_file=tmp_path / "credentials.json",
    )


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def store(backend):
    """A session holding the backend's current (soon to expire) token."""
    return MemoryCredentialStore(
        {ACCESS_TOKEN: backend.current_token, REFRESH_TOKEN: backend.refresh_token}
    )


@pytest.fixture
def login_hook():
    return LoginHookRecorder()


@pytest_asyncio.fixture
async def client(config, store, backend, login_hook):
    client = PlannerClient(
        config=config,
        store=store,
        on_login_required=login_hook,
        transport=backend.transport(),
    )
    yield client
    await client.aclose()
