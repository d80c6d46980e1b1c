"""AuthenticatedTransport 테스트.

``respx``가 httpx 전송 계층을 가로채므로 실제 네트워크 요청은 나가지 않습니다.
"""

import json

import httpx
import pytest
import respx

from crawl_dashboard.domain.model import Job
from crawl_dashboard.infrastructure.exceptions import (
    RequestFailedError,
    ServerRejectedError,
    TransportError,
)
from crawl_dashboard.infrastructure.transport import (
    AuthenticatedTransport,
    decode_payload,
    resolve_auth_headers,
)

BASE_URL = "http://localhost:8081/api"


class StaticCredentials:
    def __init__(self, token: str | None = None, api_key: str | None = None):
        self.token = token
        self.key = api_key

    def bearer_token(self) -> str | None:
        return self.token

    def api_key(self) -> str | None:
        return self.key


@pytest.mark.parametrize(
    "token, api_key, expected",
    [
        ("tok", "key", {"Authorization": "Bearer tok"}),
        (None, "key", {"X-API-Key": "key"}),
        ("", "key", {"X-API-Key": "key"}),
        (None, None, {}),
    ],
)
def test_resolve_auth_headers_prefers_token(token, api_key, expected):
    assert resolve_auth_headers(StaticCredentials(token, api_key)) == expected


@pytest.mark.asyncio
async def test_request_sends_auth_and_json_headers():
    with respx.mock:
        route = respx.get(host="localhost", path="/api/urls").mock(
            return_value=httpx.Response(200, json={"jobs": [], "total": 0})
        )
        async with AuthenticatedTransport(
            BASE_URL, StaticCredentials(api_key="secret")
        ) as transport:
            payload = await transport.request("GET", "/urls", params={"page": "1"})

    assert payload == {"jobs": [], "total": 0}
    request = route.calls.last.request
    assert request.url.params["page"] == "1"
    assert request.headers["X-API-Key"] == "secret"
    assert "Authorization" not in request.headers
    assert request.headers["Content-Type"] == "application/json"


@pytest.mark.asyncio
async def test_credentials_are_read_per_request():
    credentials = StaticCredentials(api_key="key")

    with respx.mock:
        route = respx.get(host="localhost", path="/api/urls").mock(
            return_value=httpx.Response(200, json={})
        )
        async with AuthenticatedTransport(BASE_URL, credentials) as transport:
            await transport.request("GET", "/urls")
            credentials.token = "fresh-token"
            await transport.request("GET", "/urls")

    first, second = (call.request for call in route.calls)
    assert "Authorization" not in first.headers
    assert second.headers["Authorization"] == "Bearer fresh-token"


@pytest.mark.asyncio
async def test_request_sends_json_body():
    with respx.mock:
        route = respx.delete(host="localhost", path="/api/urls").mock(
            return_value=httpx.Response(200, json={"message": "Analyses deleted", "deleted": 2})
        )
        async with AuthenticatedTransport(BASE_URL, StaticCredentials()) as transport:
            payload = await transport.request("DELETE", "/urls", json={"ids": [3, 7]})

    assert json.loads(route.calls.last.request.content) == {"ids": [3, 7]}
    assert payload["deleted"] == 2


@pytest.mark.asyncio
async def test_server_error_message_is_passed_through():
    with respx.mock:
        respx.post(host="localhost", path="/api/urls").mock(
            return_value=httpx.Response(400, json={"error": "Invalid URL format"})
        )
        async with AuthenticatedTransport(BASE_URL, StaticCredentials()) as transport:
            with pytest.raises(ServerRejectedError) as exc_info:
                await transport.request(
                    "POST", "/urls", json={"url": "x"}, error_message="Failed to add URL"
                )

    assert exc_info.value.message == "Invalid URL format"
    assert exc_info.value.status_code == 400


@pytest.mark.asyncio
async def test_rejection_without_error_payload_uses_fallback_message():
    with respx.mock:
        respx.post(host="localhost", path="/api/urls/1/start").mock(
            return_value=httpx.Response(502, text="<html>Bad Gateway</html>")
        )
        async with AuthenticatedTransport(BASE_URL, StaticCredentials()) as transport:
            with pytest.raises(ServerRejectedError) as exc_info:
                await transport.request(
                    "POST", "/urls/1/start", error_message="Failed to start crawl"
                )

    assert exc_info.value.message == "Failed to start crawl"
    assert exc_info.value.status_code == 502


@pytest.mark.asyncio
@pytest.mark.parametrize("error", [httpx.ConnectError, httpx.ReadTimeout])
async def test_network_failure_is_request_failed(error):
    with respx.mock:
        respx.get(host="localhost", path="/api/urls").mock(side_effect=error)
        async with AuthenticatedTransport(BASE_URL, StaticCredentials()) as transport:
            with pytest.raises(RequestFailedError) as exc_info:
                await transport.request(
                    "GET", "/urls", error_message="Failed to fetch analyses"
                )

    assert isinstance(exc_info.value, TransportError)
    assert exc_info.value.message == "Failed to fetch analyses"
    assert exc_info.value.status_code is None


@pytest.mark.asyncio
async def test_empty_success_body_decodes_to_empty_dict():
    with respx.mock:
        respx.post(host="localhost", path="/api/urls/1/stop").mock(
            return_value=httpx.Response(204)
        )
        async with AuthenticatedTransport(BASE_URL, StaticCredentials()) as transport:
            payload = await transport.request("POST", "/urls/1/stop")

    assert payload == {}


def test_decode_payload_returns_decoded_value():
    assert decode_payload(lambda data: data["id"], {"id": 3}, "Failed") == 3


@pytest.mark.parametrize(
    "payload",
    [
        {"id": 1, "status": "paused"},
        {"status": "queued"},
        ["not", "an", "object"],
        None,
    ],
)
def test_malformed_payload_is_request_failed(payload):
    with pytest.raises(RequestFailedError) as exc_info:
        decode_payload(Job.from_dict, payload, "Failed to fetch analyses")

    assert exc_info.value.message == "Failed to fetch analyses"
    assert exc_info.value.status_code is None
