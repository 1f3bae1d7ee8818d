import json
import logging
from typing import Any, Dict, Optional

import httpx

lib_logger = logging.getLogger("planner_client")


class PlannerClientError(Exception):
    """Base class for every error raised by the planner client."""

    pass


class Unauthenticated(PlannerClientError):
    """
    Raised by the pre-flight dispatcher when a protected endpoint is called
    and no access token is stored. The request is never sent.
    """

    def __init__(self, path: str, message: str = ""):
        self.path = path
        self.message = message or f"No access token available for '{path}'"
        super().__init__(self.message)


class SessionExpiredRecoverable(PlannerClientError):
    """
    Internal signal: a request failed because the access token expired and a
    refresh may fix it. Callers never see this on a successful refresh.
    """

    def __init__(self, response: httpx.Response):
        self.response = response
        super().__init__(
            f"Access token expired ({response.request.method} {response.request.url.path})"
        )


class SessionExpiredTerminal(PlannerClientError):
    """
    Raised when the session cannot be recovered: the refresh failed, or the
    server rejected the credentials outright. Stored credentials have been
    cleared and the login-required hook has fired by the time this surfaces.

    Attributes:
        cause: The underlying failure (renewal error or the 401 response error)
        response: The 401 response that ended the session, if any
    """

    def __init__(
        self,
        message: str,
        cause: Optional[BaseException] = None,
        response: Optional[httpx.Response] = None,
    ):
        self.message = message
        self.cause = cause
        self.response = response
        super().__init__(message)


class RefreshError(PlannerClientError):
    """Raised by the renewal call when no new access token could be obtained."""

    pass


class TransportError(PlannerClientError):
    """Network-level failure (connection refused, timeout, protocol error)."""

    def __init__(self, method: str, path: str, original: Exception):
        self.method = method
        self.path = path
        self.original = original
        super().__init__(
            f"{method} {path} failed: {type(original).__name__}: {original}"
        )


class ServerError(PlannerClientError):
    """
    Non-authentication failure reported by the server. Carries the original
    response so callers can inspect status and body.
    """

    def __init__(self, response: Optional[httpx.Response], message: str = ""):
        self.response = response
        self.status_code = response.status_code if response is not None else None
        self.message = message or _extract_message(response)
        super().__init__(self.message)


class InvalidResponseError(ServerError):
    """A 2xx response whose body does not have the expected structure."""

    pass


def _extract_message(response: Optional[httpx.Response]) -> str:
    """Pull a human-readable message out of an error response."""
    if response is None:
        return "Unknown server error"
    body = response_json(response)
    if isinstance(body, dict):
        for key in ("msg", "message", "error", "detail"):
            if body.get(key):
                return f"HTTP {response.status_code}: {body[key]}"
    return f"HTTP {response.status_code}"


def response_json(response: httpx.Response) -> Any:
    """Decode a response body as JSON, returning None if it isn't JSON."""
    try:
        return response.json()
    except (ValueError, json.JSONDecodeError):
        return None


def is_token_expired_response(response: httpx.Response, expired_message: str) -> bool:
    """
    Check whether a response is the server's "access token expired" signal:
    HTTP 401 with a JSON body whose `msg` equals the configured reason.
    """
    if response.status_code != 401:
        return False
    body = response_json(response)
    return isinstance(body, dict) and body.get("msg") == expired_message


def mask_credential(credential: Optional[str]) -> str:
    """
    Mask a token for safe display in logs and error messages.
    Shows only the last 6 characters (e.g., "...xyz123").
    """
    if not credential:
        return "<none>"
    if len(credential) > 6:
        return f"...{credential[-6:]}"
    return "***"


class ClassifiedError:
    """A structured representation of a classified error."""

    def __init__(
        self,
        error_type: str,
        original_exception: BaseException,
        status_code: Optional[int] = None,
    ):
        self.error_type = error_type
        self.original_exception = original_exception
        self.status_code = status_code

    def __str__(self):
        return (
            f"ClassifiedError(type={self.error_type}, status={self.status_code}, "
            f"original_exc={self.original_exception})"
        )

    def as_dict(self) -> Dict[str, Any]:
        return {
            "error_type": self.error_type,
            "status_code": self.status_code,
            "message": str(self.original_exception),
        }


def classify_error(e: BaseException) -> ClassifiedError:
    """
    Classifies an exception into a structured ClassifiedError object.

    Error types:
    - authentication: no token stored, user must log in
    - session_expired: refresh failed or credentials rejected
    - transport: network errors and timeouts
    - invalid_request (4xx) / server_error (5xx, malformed responses)
    - unknown: anything else
    """
    if isinstance(e, Unauthenticated):
        return ClassifiedError("authentication", e)

    if isinstance(e, SessionExpiredTerminal):
        status_code = e.response.status_code if e.response is not None else None
        return ClassifiedError("session_expired", e, status_code)

    if isinstance(e, TransportError) or isinstance(
        e, (httpx.TimeoutException, httpx.RequestError)
    ):
        return ClassifiedError("transport", e)

    status_code = None
    if isinstance(e, ServerError):
        status_code = e.status_code
    elif isinstance(e, httpx.HTTPStatusError):
        status_code = e.response.status_code

    if status_code is not None:
        if status_code == 401:
            return ClassifiedError("session_expired", e, status_code)
        if 400 <= status_code < 500:
            return ClassifiedError("invalid_request", e, status_code)
        return ClassifiedError("server_error", e, status_code)

    if isinstance(e, InvalidResponseError):
        return ClassifiedError("server_error", e)

    return ClassifiedError("unknown", e)
