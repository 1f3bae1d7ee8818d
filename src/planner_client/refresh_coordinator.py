# src/planner_client/refresh_coordinator.py

"""
Single-flight access-token refresh.

When the API answers 401 "Token has expired", the first failing request
(the leader) performs the one refresh call for that expiry episode. Every
other request that fails the same way while the refresh is in flight is
parked on its own future and re-issued with the new token once the refresh
settles, or failed with the refresh error if it does not.

State lives on the coordinator instance (one per PlannerClient), so
independent clients never share a refresh episode.
"""

import asyncio
import logging
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Deque, Dict, Optional

import httpx

from .credential_store import ACCESS_TOKEN, CredentialStore
from .error_handler import (
    RefreshError,
    SessionExpiredRecoverable,
    SessionExpiredTerminal,
    is_token_expired_response,
    mask_credential,
)

lib_logger = logging.getLogger("planner_client")


@dataclass
class RequestDescriptor:
    """An outgoing API request, kept so it can be re-issued after a refresh."""

    method: str
    path: str
    json: Any = None
    params: Optional[Dict[str, Any]] = None
    headers: Dict[str, str] = field(default_factory=dict)
    # Set once the request has ridden a refresh; a second 401 is terminal
    retried: bool = False

    def set_bearer(self, token: str) -> None:
        self.headers["Authorization"] = f"Bearer {token}"

    def __str__(self):
        return f"{self.method} {self.path}"


@dataclass
class PendingRequest:
    """A request parked behind an in-flight refresh."""

    request: RequestDescriptor
    future: "asyncio.Future[str]"
    queued_at: float = field(default_factory=time.time)


RenewFunc = Callable[[], Awaitable[str]]
ReplayFunc = Callable[[RequestDescriptor], Awaitable[httpx.Response]]
LoginRequiredHook = Callable[[str], Any]


class TokenRefreshCoordinator:
    """
    Guarantees at most one in-flight refresh per expiry episode.

    Args:
        store: Where the access and refresh tokens live
        renew: Coroutine function performing the refresh call; returns the
            new access token or raises
        replay: Coroutine function that re-sends a request through the
            transport and returns the response
        login_path: Passed to the login-required hook
        expired_message: The `msg` value identifying an expired access token
        on_login_required: Side effect fired when the session is over
    """

    def __init__(
        self,
        store: CredentialStore,
        renew: RenewFunc,
        replay: ReplayFunc,
        login_path: str = "/login",
        expired_message: str = "Token has expired",
        on_login_required: Optional[LoginRequiredHook] = None,
    ):
        self._store = store
        self._renew = renew
        self._replay = replay
        self.login_path = login_path
        self.expired_message = expired_message
        self.on_login_required = on_login_required

        self._refreshing: bool = False
        self._pending: Deque[PendingRequest] = deque()
        self._refresh_started: Optional[float] = None
        # Bumped whenever stored credentials are discarded
        self._session_generation: int = 0

        # Statistics
        self._total_refreshes: int = 0
        self._successful_refreshes: int = 0
        self._failed_refreshes: int = 0
        self._queued_requests: int = 0
        self._login_redirects: int = 0

    # =========================================================================
    # RESPONSE INTERCEPTION
    # =========================================================================

    async def handle_unauthorized(
        self, request: RequestDescriptor, response: httpx.Response
    ) -> httpx.Response:
        """
        Recover from a 401 response or end the session.

        Returns the response of the re-issued request when the token could
        be refreshed. Raises SessionExpiredTerminal otherwise.
        """
        if not is_token_expired_response(response, self.expired_message):
            self.end_session(f"{request} rejected with HTTP 401")
            raise SessionExpiredTerminal(
                "Credentials were rejected by the server", response=response
            )

        if request.retried:
            expired = SessionExpiredRecoverable(response)
            self.end_session(f"{request} still unauthorized after token refresh")
            raise SessionExpiredTerminal(
                "Access token expired again after refresh",
                cause=expired,
                response=response,
            ) from expired

        request.retried = True
        if self._refreshing:
            token = await self._wait_for_refresh(request)
        else:
            token = await self._run_refresh(request)

        request.set_bearer(token)
        lib_logger.debug(f"Replaying {request} with refreshed token")
        return await self._replay(request)

    async def refresh(self) -> str:
        """
        Obtain a new access token, joining the current episode if one is
        already running. Used for explicit refreshes outside a 401.
        """
        if self._refreshing:
            return await self._wait_for_refresh(None)
        return await self._run_refresh(None)

    # =========================================================================
    # EPISODE HANDLING
    # =========================================================================

    async def _wait_for_refresh(self, request: Optional[RequestDescriptor]) -> str:
        """Park behind the in-flight refresh and return its token."""
        future: "asyncio.Future[str]" = asyncio.get_running_loop().create_future()
        descriptor = request or RequestDescriptor("POST", "<explicit refresh>")
        self._pending.append(PendingRequest(request=descriptor, future=future))
        self._queued_requests += 1
        lib_logger.info(
            f"[TokenRefresh] {descriptor} queued behind in-flight refresh. "
            f"Position in queue: {len(self._pending)}"
        )
        return await future

    async def _run_refresh(self, request: Optional[RequestDescriptor]) -> str:
        """Lead an episode: perform the single refresh call and settle the queue."""
        self._refreshing = True
        self._refresh_started = time.time()
        self._total_refreshes += 1
        generation = self._session_generation
        leader = str(request) if request else "explicit refresh"
        lib_logger.info(f"[TokenRefresh] Access token expired, refreshing (leader: {leader})")

        try:
            try:
                token = await self._renew()
                if not token:
                    raise RefreshError("Refresh response did not contain an access token")
            except Exception as e:
                self._failed_refreshes += 1
                duration = time.time() - self._refresh_started
                lib_logger.error(
                    f"[TokenRefresh] Refresh FAILED after {duration:.1f}s: {e}. "
                    f"Failing {len(self._pending)} queued request(s)."
                )
                self._reject_pending(e)
                self.end_session(f"token refresh failed: {e}")
                raise SessionExpiredTerminal(
                    "Session expired and the token could not be refreshed", cause=e
                ) from e

            if self._session_generation != generation:
                # Logged out or rejected while the refresh was in flight
                self._failed_refreshes += 1
                error = RefreshError("Session ended while the token was being refreshed")
                lib_logger.warning(
                    f"[TokenRefresh] {error}. Discarding the new token, "
                    f"failing {len(self._pending)} queued request(s)."
                )
                self._reject_pending(error)
                raise SessionExpiredTerminal(
                    "Session ended during token refresh", cause=error
                ) from error

            self._store.set(ACCESS_TOKEN, token)
            self._successful_refreshes += 1
            duration = time.time() - self._refresh_started
            lib_logger.info(
                f"[TokenRefresh] Refresh SUCCESS in {duration:.1f}s "
                f"(token {mask_credential(token)}). "
                f"Releasing {len(self._pending)} queued request(s)."
            )
            self._resolve_pending(token)
            return token
        finally:
            # Only reachable with a non-empty queue when the leader was cancelled
            if self._pending:
                lib_logger.warning(
                    f"[TokenRefresh] Refresh interrupted, failing {len(self._pending)} queued request(s)"
                )
                self._reject_pending(RefreshError("Token refresh was cancelled"))
            self._refreshing = False
            self._refresh_started = None

    def _resolve_pending(self, token: str) -> None:
        while self._pending:
            pending = self._pending.popleft()
            # A caller cancelled while waiting has already settled its future
            if not pending.future.done():
                pending.future.set_result(token)

    def _reject_pending(self, error: BaseException) -> None:
        while self._pending:
            pending = self._pending.popleft()
            if not pending.future.done():
                terminal = SessionExpiredTerminal(
                    "Session expired and the token could not be refreshed",
                    cause=error,
                )
                terminal.__cause__ = error
                pending.future.set_exception(terminal)

    def end_session(self, reason: str) -> None:
        """Clear stored credentials and fire the login-required hook."""
        lib_logger.warning(f"[TokenRefresh] Ending session: {reason}")
        self.clear_session()
        self.require_login()

    def clear_session(self) -> None:
        """Discard stored credentials. A refresh still in flight will not restore them."""
        self._store.clear()
        self._session_generation += 1

    def require_login(self) -> None:
        """Fire the login-required hook (the web client's redirect to /login)."""
        self._login_redirects += 1
        if self.on_login_required is None:
            return
        try:
            self.on_login_required(self.login_path)
        except Exception as e:
            lib_logger.error(f"Login-required hook raised: {e}")

    # =========================================================================
    # OBSERVABILITY
    # =========================================================================

    def is_refreshing(self) -> bool:
        """Check if a refresh is currently in progress."""
        return self._refreshing

    @property
    def session_generation(self) -> int:
        return self._session_generation

    def get_pending_count(self) -> int:
        """Get number of requests waiting on the current refresh."""
        return len(self._pending)

    def get_status(self) -> Dict[str, Any]:
        """Get current coordinator status for debugging/monitoring."""
        return {
            "refreshing": self._refreshing,
            "refresh_duration": (time.time() - self._refresh_started)
            if self._refresh_started
            else None,
            "pending_count": len(self._pending),
            "stats": {
                "total": self._total_refreshes,
                "successful": self._successful_refreshes,
                "failed": self._failed_refreshes,
                "queued_requests": self._queued_requests,
                "login_redirects": self._login_redirects,
            },
        }
