from .client import PlannerClient
from .config import ClientConfig, ConfigValidationError
from .credential_store import (
    ACCESS_TOKEN,
    REFRESH_TOKEN,
    CredentialStore,
    FileCredentialStore,
    MemoryCredentialStore,
)
from .error_handler import (
    InvalidResponseError,
    PlannerClientError,
    RefreshError,
    ServerError,
    SessionExpiredRecoverable,
    SessionExpiredTerminal,
    TransportError,
    Unauthenticated,
)
from .refresh_coordinator import RequestDescriptor, TokenRefreshCoordinator

__all__ = [
    "PlannerClient",
    "ClientConfig",
    "ConfigValidationError",
    "ACCESS_TOKEN",
    "REFRESH_TOKEN",
    "CredentialStore",
    "FileCredentialStore",
    "MemoryCredentialStore",
    "InvalidResponseError",
    "PlannerClientError",
    "RefreshError",
    "ServerError",
    "SessionExpiredRecoverable",
    "SessionExpiredTerminal",
    "TransportError",
    "Unauthenticated",
    "RequestDescriptor",
    "TokenRefreshCoordinator",
]
