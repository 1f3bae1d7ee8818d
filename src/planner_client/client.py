# src/planner_client/client.py

import logging
from typing import Any, Dict, List, Mapping, Optional

import httpx
from pydantic import ValidationError

from .config import ClientConfig
from .credential_store import (
    ACCESS_TOKEN,
    REFRESH_TOKEN,
    CredentialStore,
    FileCredentialStore,
)
from .error_handler import (
    InvalidResponseError,
    PlannerClientError,
    RefreshError,
    ServerError,
    TransportError,
    Unauthenticated,
    mask_credential,
    response_json,
)
from .failure_logger import log_failure
from .models import (
    LoginResponse,
    PlanRequest,
    RefreshResponse,
    RegisterRequest,
    SuggestionRequest,
    TravelPlan,
    UpdateProfileRequest,
)
from .refresh_coordinator import (
    LoginRequiredHook,
    RequestDescriptor,
    TokenRefreshCoordinator,
)
from .timeout_config import TimeoutConfig

lib_logger = logging.getLogger("planner_client")


def _whole_days(value: Any) -> int:
    days = float(value)
    if not days.is_integer():
        raise ValueError(f"Trip duration must be a whole number of days, got {value!r}")
    return int(days)


class PlannerClient:
    """
    Async client for the travel planner API.

    Every request goes through the same pipeline:
      1. pre-flight: attach the stored access token (public endpoints excepted)
      2. send through the httpx transport
      3. 401 responses are handed to the TokenRefreshCoordinator, which
         refreshes once per expiry episode and replays the request

    Args:
        config: Client configuration (defaults to ClientConfig.from_env())
        store: Token storage (defaults to a FileCredentialStore at the
            configured credentials file)
        on_login_required: Called with the login path whenever the session
            is over and the user has to log in again
        transport: Optional httpx transport (tests inject httpx.MockTransport)
        event_hooks: Optional httpx event hooks (request/response logging)
        log_failures: Record failed requests in failures.log
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        store: Optional[CredentialStore] = None,
        on_login_required: Optional[LoginRequiredHook] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        event_hooks: Optional[Mapping[str, List[Any]]] = None,
        log_failures: bool = True,
    ):
        self.config = config or ClientConfig.from_env()
        self.store = store or FileCredentialStore(
            self.config.resolved_credentials_file()
        )
        self.log_failures = log_failures

        self._http = httpx.AsyncClient(
            base_url=self.config.api_url,
            headers={"Content-Type": "application/json"},
            timeout=TimeoutConfig.api(),
            transport=transport,
            event_hooks=dict(event_hooks) if event_hooks else None,
        )
        self._coordinator = TokenRefreshCoordinator(
            store=self.store,
            renew=self._renew_access_token,
            replay=self._dispatch,
            login_path=self.config.login_path,
            expired_message=self.config.expired_token_message,
            on_login_required=on_login_required,
        )

    @property
    def coordinator(self) -> TokenRefreshCoordinator:
        return self._coordinator

    async def __aenter__(self) -> "PlannerClient":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    # =========================================================================
    # DISPATCH
    # =========================================================================

    async def request(
        self,
        method: str,
        path: str,
        json: Any = None,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> httpx.Response:
        """
        Send a request through the authenticated pipeline.

        Returns the successful response. Raises Unauthenticated,
        SessionExpiredTerminal, TransportError or ServerError.
        """
        descriptor = RequestDescriptor(
            method=method.upper(),
            path=path,
            json=json,
            params=params,
            headers=dict(headers or {}),
        )
        try:
            return await self._dispatch(descriptor)
        except Unauthenticated:
            raise
        except PlannerClientError as e:
            if self.log_failures:
                log_failure(
                    descriptor.method,
                    descriptor.path,
                    e,
                    access_token=self.store.get(ACCESS_TOKEN),
                )
            raise

    async def _dispatch(self, request: RequestDescriptor) -> httpx.Response:
        self._attach_credential(request)
        response = await self._send(request)

        if response.is_success:
            return response

        # Public endpoints answer 401 for bad login details, not for sessions
        if response.status_code == 401 and not self.config.is_public(request.path):
            return await self._coordinator.handle_unauthorized(request, response)

        raise ServerError(response)

    def _attach_credential(self, request: RequestDescriptor) -> None:
        if self.config.is_public(request.path):
            return

        token = self.store.get(ACCESS_TOKEN)
        if not token:
            lib_logger.warning(f"No access token for {request}, login required")
            self._coordinator.require_login()
            raise Unauthenticated(request.path)

        request.set_bearer(token)

    async def _send(self, request: RequestDescriptor) -> httpx.Response:
        try:
            return await self._http.request(
                request.method,
                request.path,
                json=request.json,
                params=request.params,
                headers=request.headers,
            )
        except httpx.RequestError as e:
            raise TransportError(request.method, request.path, e) from e

    async def _renew_access_token(self) -> str:
        """
        Exchange the refresh token for a new access token.

        Sent straight to the transport: the refresh call must never itself
        go through the 401 interception.
        """
        refresh_token = self.store.get(REFRESH_TOKEN)
        if not refresh_token:
            raise RefreshError("No refresh token available")
        generation = self._coordinator.session_generation

        lib_logger.debug(
            f"Calling {self.config.refresh_path} with refresh token {mask_credential(refresh_token)}"
        )
        try:
            response = await self._http.post(
                self.config.refresh_path,
                json={},
                headers={"Authorization": f"Bearer {refresh_token}"},
                timeout=TimeoutConfig.renewal(),
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise RefreshError(
                f"Refresh endpoint returned HTTP {e.response.status_code}"
            ) from e
        except httpx.RequestError as e:
            raise TransportError("POST", self.config.refresh_path, e) from e

        try:
            data = RefreshResponse.model_validate(response_json(response))
        except ValidationError as e:
            raise RefreshError("Failed to refresh token") from e

        # The server may rotate the refresh token as well
        if data.refresh_token and self._coordinator.session_generation == generation:
            self.store.set(REFRESH_TOKEN, data.refresh_token)
        return data.access_token

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        data = response_json(response)
        if data is None:
            raise InvalidResponseError(response, "Response body is not valid JSON")
        return data

    # =========================================================================
    # AUTHENTICATION
    # =========================================================================

    async def login(self, email: str, password: str) -> Dict[str, Any]:
        """Log in and persist the returned tokens."""
        response = await self.request(
            "POST", "/login", json={"email": email, "password": password}
        )
        data = self._json(response)
        tokens = LoginResponse.model_validate(data)
        if tokens.access_token:
            self.store.set(ACCESS_TOKEN, tokens.access_token)
            if tokens.refresh_token:
                self.store.set(REFRESH_TOKEN, tokens.refresh_token)
            lib_logger.info(f"Logged in as {email}")
        else:
            lib_logger.warning("Login response did not contain an access token")
        return data

    async def register(
        self,
        email: str,
        username: str,
        password: str,
        nickname: Optional[str] = None,
    ) -> Dict[str, Any]:
        payload = RegisterRequest(
            email=email, username=username, password=password, nickname=nickname
        )
        response = await self.request(
            "POST", "/users/register", json=payload.model_dump(exclude_none=True)
        )
        return self._json(response)

    async def refresh_token(self) -> str:
        """Force a token refresh. Shares the single-flight guarantee."""
        return await self._coordinator.refresh()

    def is_authenticated(self) -> bool:
        return bool(self.store.get(ACCESS_TOKEN))

    def logout(self) -> None:
        self._coordinator.clear_session()
        lib_logger.info("Logged out, credentials cleared")

    # =========================================================================
    # PROFILE
    # =========================================================================

    async def get_user_profile(self) -> Dict[str, Any]:
        response = await self.request("GET", "/users/profile")
        return self._json(response)

    async def update_profile(
        self,
        nickname: Optional[str] = None,
        current_password: Optional[str] = None,
        new_password: Optional[str] = None,
    ) -> Dict[str, Any]:
        payload = UpdateProfileRequest(
            nickname=nickname,
            current_password=current_password,
            new_password=new_password,
        )
        response = await self.request(
            "PUT",
            "/users/profile",
            json=payload.model_dump(by_alias=True, exclude_none=True),
        )
        return self._json(response)

    # =========================================================================
    # TRAVEL PLANNER
    # =========================================================================

    async def generate_travel_plan(
        self,
        destination: str,
        duration: Any,
        interests: Optional[str] = None,
        start_date: Optional[str] = None,
        preferences: Optional[List[str]] = None,
        budget: Optional[float] = None,
    ) -> TravelPlan:
        """
        Ask the backend to generate an itinerary.

        `duration` may come straight from user input (`3`, "3", "3.0");
        it is sent as an int. Fractional or non-numeric values raise ValueError.
        """
        try:
            payload = PlanRequest(
                destination=destination,
                duration=_whole_days(duration),
                interests=interests,
                start_date=start_date,
                preferences=preferences,
                budget=budget,
            )
            response = await self.request(
                "POST", "/ai/plan", json=payload.model_dump(exclude_none=True)
            )
            try:
                return TravelPlan.model_validate(self._json(response))
            except ValidationError as e:
                raise InvalidResponseError(
                    response, "Invalid response structure from server"
                ) from e
        except (PlannerClientError, ValueError) as e:
            lib_logger.error(f"Error generating travel plan: {e}")
            raise

    async def get_travel_suggestions(self, destination: str, query: str) -> Any:
        payload = SuggestionRequest(destination=destination, query=query)
        response = await self.request(
            "POST", "/ai/suggestions", json=payload.model_dump()
        )
        return self._json(response)
