from __future__ import annotations

from typing import Any, Optional

import pytest
import requests

from app.infrastructure.external.excel_sync.remote_client import RemoteJobSyncClient
from app.infrastructure.external.excel_sync.types import JobRow
from app.shared.exceptions.sync import SyncConfigError, SyncTransportError


URL = "https://panel.example.com/api/sync/jobs"


class _DummyResponse:
    def __init__(self, status_code: int, payload: Any = None, text: str = "") -> None:
        self.status_code = status_code
        self._payload = payload
        self.text = text

    def json(self) -> Any:
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


class _DummySession:
    def __init__(self, response: Optional[_DummyResponse] = None, error: Optional[Exception] = None) -> None:
        self.response = response
        self.error = error
        self.calls: list[dict[str, Any]] = []

    def post(self, url: str, **kwargs: Any) -> _DummyResponse:
        self.calls.append({"url": url, **kwargs})
        if self.error is not None:
            raise self.error
        return self.response


def _client(session: _DummySession) -> RemoteJobSyncClient:
    return RemoteJobSyncClient(url=URL, token="s3cret", session=session, timeout_s=5)


def test_push_sends_token_header_and_camel_case_body() -> None:
    session = _DummySession(_DummyResponse(200, {"success": True, "count": 1, "saved": ["1234"], "errors": []}))

    payload = _client(session).push_jobs([JobRow("1234", "Main St", client="Acme")])

    assert payload["count"] == 1
    call = session.calls[0]
    assert call["url"] == URL
    assert call["headers"]["x-sync-token"] == "s3cret"
    assert call["json"] == {"jobs": [{"jobNumber": "1234", "siteName": "Main St", "client": "Acme"}]}
    assert call["timeout"] == 5


def test_unauthorized_response_raises() -> None:
    session = _DummySession(_DummyResponse(401, {"error": "UNAUTHORIZED"}))

    with pytest.raises(SyncTransportError) as exc_info:
        _client(session).push_jobs([JobRow("1", "A")])

    assert exc_info.value.remote_status == 401


def test_server_error_raises_with_status() -> None:
    session = _DummySession(_DummyResponse(500, text="boom"))

    with pytest.raises(SyncTransportError) as exc_info:
        _client(session).push_jobs([JobRow("1", "A")])

    assert exc_info.value.remote_status == 500
    assert "boom" in exc_info.value.message


def test_network_error_raises() -> None:
    session = _DummySession(error=requests.ConnectionError("refused"))

    with pytest.raises(SyncTransportError):
        _client(session).push_jobs([JobRow("1", "A")])


def test_non_json_response_raises() -> None:
    session = _DummySession(_DummyResponse(200, None, text="<html>"))

    with pytest.raises(SyncTransportError):
        _client(session).push_jobs([JobRow("1", "A")])


@pytest.mark.parametrize("url, token", [("", "t"), (URL, "")])
def test_missing_configuration_raises(url: str, token: str) -> None:
    with pytest.raises(SyncConfigError):
        RemoteJobSyncClient(url=url, token=token)
