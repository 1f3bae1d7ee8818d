"""
Tests for error classification and helpers.
"""

import json

import httpx
import pytest

from planner_client.error_handler import (
    InvalidResponseError,
    ServerError,
    SessionExpiredTerminal,
    TransportError,
    Unauthenticated,
    classify_error,
    is_token_expired_response,
    mask_credential,
)
from planner_client.failure_logger import log_failure


def response(status: int, body=None, content: bytes = None) -> httpx.Response:
    request = httpx.Request("GET", "http://planner.test/api/x")
    if content is not None:
        return httpx.Response(status, content=content, request=request)
    return httpx.Response(status, json=body, request=request)


class TestTokenExpiredDetection:
    def test_expired_message(self):
        assert is_token_expired_response(response(401, {"msg": "Token has expired"}), "Token has expired")

    @pytest.mark.parametrize(
        "resp",
        [
            response(401, {"msg": "Invalid token"}),
            response(403, {"msg": "Token has expired"}),
            response(401, content=b"Token has expired"),
            response(401, ["Token has expired"]),
        ],
    )
    def test_not_expired(self, resp):
        assert not is_token_expired_response(resp, "Token has expired")


class TestClassifyError:
    def test_unauthenticated(self):
        assert classify_error(Unauthenticated("/users/profile")).error_type == "authentication"

    def test_session_expired(self):
        err = SessionExpiredTerminal("gone", response=response(401, {"msg": "x"}))
        classified = classify_error(err)
        assert classified.error_type == "session_expired"
        assert classified.status_code == 401

    def test_transport(self):
        err = TransportError("GET", "/x", httpx.ConnectError("refused"))
        assert classify_error(err).error_type == "transport"
        assert classify_error(httpx.ReadTimeout("slow")).error_type == "transport"

    @pytest.mark.parametrize(
        "status,expected",
        [(400, "invalid_request"), (404, "invalid_request"), (500, "server_error"), (503, "server_error")],
    )
    def test_server_errors(self, status, expected):
        classified = classify_error(ServerError(response(status, {"msg": "x"})))
        assert classified.error_type == expected
        assert classified.status_code == status

    def test_invalid_response(self):
        err = InvalidResponseError(response(200, {}), "Invalid response structure from server")
        assert classify_error(err).error_type == "server_error"

    def test_unknown(self):
        assert classify_error(RuntimeError("boom")).error_type == "unknown"


class TestServerErrorMessage:
    def test_message_from_body(self):
        assert str(ServerError(response(422, {"message": "bad date"}))) == "HTTP 422: bad date"

    def test_message_without_json(self):
        assert str(ServerError(response(502, content=b"<html>"))) == "HTTP 502"


def test_mask_credential():
    assert mask_credential("eyJhbGciOiJIUzI1NiJ9.payload.signature") == "...nature"
    assert mask_credential("short") == "***"
    assert mask_credential(None) == "<none>"


def test_log_failure_writes_json_record(tmp_path):
    cause = RuntimeError("refresh endpoint down")
    err = SessionExpiredTerminal("gone", cause=cause)
    err.__cause__ = cause

    log_failure("GET", "/users/profile", err, access_token="eyJhbGciOiJIUzI1NiJ9.sig123456")

    lines = (tmp_path / "logs" / "failures.log").read_text(encoding="utf-8").splitlines()
    record = json.loads(lines[-1])
    assert record["path"] == "/users/profile"
    assert record["error_type"] == "session_expired"
    assert record["token_ending"] == "...123456"
    assert [e["type"] for e in record["error_chain"]] == ["SessionExpiredTerminal", "RuntimeError"]
