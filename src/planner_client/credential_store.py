# src/planner_client/credential_store.py

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional, Union

from .error_handler import mask_credential
from .utils.resilient_io import safe_read_json, safe_remove, safe_write_json

lib_logger = logging.getLogger("planner_client")

# Slot names match the cookie names the web front end used
ACCESS_TOKEN = "token"
REFRESH_TOKEN = "refresh_token"


class CredentialStore(ABC):
    """
    Named-slot storage for the access token and the refresh token.

    Implementations only need get/set/remove; clear() removes both slots.
    """

    @abstractmethod
    def get(self, name: str) -> Optional[str]:
        pass

    @abstractmethod
    def set(self, name: str, value: str) -> None:
        pass

    @abstractmethod
    def remove(self, name: str) -> None:
        pass

    def clear(self) -> None:
        self.remove(ACCESS_TOKEN)
        self.remove(REFRESH_TOKEN)


class MemoryCredentialStore(CredentialStore):
    """Process-local store. Tokens are lost when the process exits."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._values: Dict[str, str] = dict(initial or {})

    def get(self, name: str) -> Optional[str]:
        return self._values.get(name)

    def set(self, name: str, value: str) -> None:
        self._values[name] = value

    def remove(self, name: str) -> None:
        self._values.pop(name, None)


class FileCredentialStore(CredentialStore):
    """
    JSON-file store that keeps tokens across CLI invocations.

    The file is loaded once and cached in memory; every mutation rewrites it
    atomically with owner-only permissions. If the write fails the new value
    is still served from memory for the rest of the process.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._cache: Optional[Dict[str, str]] = None

    def _load(self) -> Dict[str, str]:
        if self._cache is None:
            data = safe_read_json(self.path, lib_logger) or {}
            self._cache = {k: v for k, v in data.items() if isinstance(v, str)}
        return self._cache

    def _save(self) -> None:
        values = self._load()
        if not values:
            safe_remove(self.path, lib_logger)
            return
        if not safe_write_json(self.path, values, lib_logger, secure_permissions=True):
            lib_logger.warning(
                f"Credentials for '{self.path.name}' cached in memory only."
            )

    def get(self, name: str) -> Optional[str]:
        return self._load().get(name)

    def set(self, name: str, value: str) -> None:
        self._load()[name] = value
        self._save()
        lib_logger.debug(f"Stored '{name}' ({mask_credential(value)}) in '{self.path.name}'")

    def remove(self, name: str) -> None:
        values = self._load()
        if name in values:
            del values[name]
            self._save()
