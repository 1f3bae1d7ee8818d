# src/planner_client/timeout_config.py
"""
Centralized timeout configuration for HTTP requests.

All values can be overridden via environment variables:
    TIMEOUT_CONNECT - Connection establishment timeout (default: 10s)
    TIMEOUT_READ - Read timeout for API responses (default: 120s, itinerary
                   generation runs an LLM on the server side)
    TIMEOUT_WRITE - Request body send timeout (default: 30s)
    TIMEOUT_POOL - Connection pool acquisition timeout (default: 30s)
    TIMEOUT_RENEWAL - Total bound on the token refresh call (default: 15s)
"""

import os
import logging
import httpx

lib_logger = logging.getLogger("planner_client")


class TimeoutConfig:
    """
    Centralized timeout configuration for HTTP requests.

    All values can be overridden via environment variables.
    """

    # Default values (in seconds)
    _CONNECT = 10.0
    _READ = 120.0
    _WRITE = 30.0
    _POOL = 30.0
    _RENEWAL = 15.0

    @classmethod
    def _get_env_float(cls, key: str, default: float) -> float:
        """Get a float value from environment variable, or return default."""
        value = os.environ.get(key)
        if value is not None:
            try:
                parsed = float(value)
            except ValueError:
                lib_logger.warning(
                    f"Invalid value for {key}: {value}. Using default: {default}"
                )
                return default
            if parsed <= 0:
                lib_logger.warning(
                    f"Non-positive value for {key}: {value}. Using default: {default}"
                )
                return default
            return parsed
        return default

    @classmethod
    def connect(cls) -> float:
        """Connection establishment timeout."""
        return cls._get_env_float("TIMEOUT_CONNECT", cls._CONNECT)

    @classmethod
    def read(cls) -> float:
        """Read timeout for API responses."""
        return cls._get_env_float("TIMEOUT_READ", cls._READ)

    @classmethod
    def write(cls) -> float:
        """Request body send timeout."""
        return cls._get_env_float("TIMEOUT_WRITE", cls._WRITE)

    @classmethod
    def pool(cls) -> float:
        """Connection pool acquisition timeout."""
        return cls._get_env_float("TIMEOUT_POOL", cls._POOL)

    @classmethod
    def renewal_seconds(cls) -> float:
        """Upper bound for a single token refresh call."""
        return cls._get_env_float("TIMEOUT_RENEWAL", cls._RENEWAL)

    @classmethod
    def api(cls) -> httpx.Timeout:
        """Timeout configuration for regular API requests."""
        return httpx.Timeout(
            connect=cls.connect(),
            read=cls.read(),
            write=cls.write(),
            pool=cls.pool(),
        )

    @classmethod
    def renewal(cls) -> httpx.Timeout:
        """
        Timeout configuration for the refresh call.

        Every request queued behind the refresh waits on it, so it gets a
        single tight bound instead of the long API read timeout.
        """
        return httpx.Timeout(cls.renewal_seconds())
