"""
Tests for environment-driven configuration and timeout settings.
"""

from pathlib import Path

import pytest

from planner_client.config import (
    DEFAULT_PUBLIC_PATHS,
    ClientConfig,
    ConfigValidationError,
)
from planner_client.timeout_config import TimeoutConfig


class TestClientConfig:
    def test_defaults(self):
        config = ClientConfig.from_env({})

        assert config.api_url == "http://localhost:5000/api"
        assert config.login_path == "/login"
        assert config.refresh_path == "/refresh"
        assert config.public_paths == DEFAULT_PUBLIC_PATHS
        assert config.expired_token_message == "Token has expired"
        assert config.credentials_file is None

    def test_env_overrides(self, tmp_path):
        config = ClientConfig.from_env(
            {
                "PLANNER_API_URL": "https://planner.example.com/api/",
                "PLANNER_LOGIN_PATH": "/signin",
                "PLANNER_REFRESH_PATH": "/auth/refresh",
                "PLANNER_PUBLIC_PATHS": "/signin, /signup,,",
                "PLANNER_EXPIRED_TOKEN_MESSAGE": "jwt expired",
                "PLANNER_CREDENTIALS_FILE": str(tmp_path / "creds.json"),
            }
        )

        assert config.api_url == "https://planner.example.com/api"
        assert config.login_path == "/signin"
        assert config.refresh_path == "/auth/refresh"
        assert config.public_paths == frozenset({"/signin", "/signup"})
        assert config.expired_token_message == "jwt expired"
        assert config.resolved_credentials_file() == tmp_path / "creds.json"

    def test_blank_values_fall_back_to_defaults(self):
        config = ClientConfig.from_env({"PLANNER_API_URL": "   ", "PLANNER_PUBLIC_PATHS": ""})

        assert config.api_url == "http://localhost:5000/api"
        assert config.public_paths == DEFAULT_PUBLIC_PATHS

    def test_default_credentials_file_in_working_directory(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        assert ClientConfig().resolved_credentials_file() == Path.cwd() / "credentials.json"

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"api_url": ""},
            {"api_url": "localhost:5000"},
            {"login_path": "login"},
            {"refresh_path": "refresh"},
            {"public_paths": frozenset({"login"})},
            {"expired_token_message": ""},
        ],
    )
    def test_invalid_values_rejected(self, kwargs):
        with pytest.raises(ConfigValidationError):
            ClientConfig(**kwargs)

    def test_is_public(self):
        config = ClientConfig()
        assert config.is_public("/login")
        assert config.is_public("/users/register")
        assert not config.is_public("/users/profile")


class TestTimeoutConfig:
    def test_defaults(self, monkeypatch):
        for key in ("TIMEOUT_CONNECT", "TIMEOUT_READ", "TIMEOUT_RENEWAL"):
            monkeypatch.delenv(key, raising=False)

        timeout = TimeoutConfig.api()
        assert timeout.connect == 10.0
        assert timeout.read == 120.0
        assert TimeoutConfig.renewal().read == 15.0

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("TIMEOUT_RENEWAL", "5")
        assert TimeoutConfig.renewal_seconds() == 5.0

    @pytest.mark.parametrize("value", ["soon", "0", "-3"])
    def test_invalid_values_use_default(self, monkeypatch, value):
        monkeypatch.setenv("TIMEOUT_READ", value)
        assert TimeoutConfig.read() == 120.0
