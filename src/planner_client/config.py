# src/planner_client/config.py
"""
Client configuration loaded from environment variables.

    PLANNER_API_URL               - Base URL of the backend API
    PLANNER_LOGIN_PATH            - Where the user is sent when a login is required
    PLANNER_REFRESH_PATH          - Token refresh endpoint
    PLANNER_PUBLIC_PATHS          - Comma-separated endpoints sent without a token
    PLANNER_EXPIRED_TOKEN_MESSAGE - `msg` value the server uses for expired tokens
    PLANNER_CREDENTIALS_FILE      - Where tokens are persisted between runs
"""

import os
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import FrozenSet, Mapping, Optional

from .utils.paths import get_credentials_file

lib_logger = logging.getLogger("planner_client")

DEFAULT_API_URL = "http://localhost:5000/api"
DEFAULT_LOGIN_PATH = "/login"
DEFAULT_REFRESH_PATH = "/refresh"
DEFAULT_PUBLIC_PATHS = frozenset({"/login", "/users/register"})
DEFAULT_EXPIRED_TOKEN_MESSAGE = "Token has expired"


class ConfigValidationError(Exception):
    """Raised when configuration validation fails."""

    pass


def _parse_paths(raw: str) -> FrozenSet[str]:
    return frozenset(p.strip() for p in raw.split(",") if p.strip())


@dataclass(frozen=True)
class ClientConfig:
    api_url: str = DEFAULT_API_URL
    login_path: str = DEFAULT_LOGIN_PATH
    refresh_path: str = DEFAULT_REFRESH_PATH
    public_paths: FrozenSet[str] = field(default_factory=lambda: DEFAULT_PUBLIC_PATHS)
    expired_token_message: str = DEFAULT_EXPIRED_TOKEN_MESSAGE
    credentials_file: Optional[Path] = None

    def __post_init__(self):
        if not self.api_url or not self.api_url.strip():
            raise ConfigValidationError("API URL must not be empty")
        if not self.api_url.startswith(("http://", "https://")):
            raise ConfigValidationError(
                f"API URL must start with http:// or https://, got '{self.api_url}'"
            )
        for name in ("login_path", "refresh_path"):
            value = getattr(self, name)
            if not value.startswith("/"):
                raise ConfigValidationError(f"{name} must start with '/', got '{value}'")
        bad = sorted(p for p in self.public_paths if not p.startswith("/"))
        if bad:
            raise ConfigValidationError(f"Public paths must start with '/': {bad}")
        if not self.expired_token_message:
            raise ConfigValidationError("Expired-token message must not be empty")

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "ClientConfig":
        """
        Build a config from environment variables (defaults to os.environ).
        Unset or blank variables fall back to the defaults.
        """
        env = os.environ if env is None else env

        def get(key: str) -> Optional[str]:
            value = env.get(key)
            return value.strip() if value and value.strip() else None

        public_raw = get("PLANNER_PUBLIC_PATHS")
        public_paths = _parse_paths(public_raw) if public_raw else DEFAULT_PUBLIC_PATHS
        creds_file = get("PLANNER_CREDENTIALS_FILE")

        config = cls(
            api_url=(get("PLANNER_API_URL") or DEFAULT_API_URL).rstrip("/"),
            login_path=get("PLANNER_LOGIN_PATH") or DEFAULT_LOGIN_PATH,
            refresh_path=get("PLANNER_REFRESH_PATH") or DEFAULT_REFRESH_PATH,
            public_paths=public_paths,
            expired_token_message=get("PLANNER_EXPIRED_TOKEN_MESSAGE")
            or DEFAULT_EXPIRED_TOKEN_MESSAGE,
            credentials_file=Path(creds_file).expanduser() if creds_file else None,
        )
        lib_logger.debug(f"Loaded client config: {config.api_url}")
        return config

    def resolved_credentials_file(self) -> Path:
        """Credential file location, falling back to the default root."""
        return self.credentials_file or get_credentials_file()

    def is_public(self, path: str) -> bool:
        return path in self.public_paths
