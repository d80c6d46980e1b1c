from __future__ import annotations

from types import TracebackType
from typing import Any, Callable, Final, Mapping, Type, TypeVar

import httpx
from loguru import logger

from crawl_dashboard.infrastructure.credentials import CredentialSource
from crawl_dashboard.infrastructure.exceptions import (
    RequestFailedError,
    ServerRejectedError,
)
from crawl_dashboard.infrastructure.logging_utils import log_function_call

DEFAULT_HEADERS: Final = {
    "Content-Type": "application/json",
    "Accept": "application/json",
}
GENERIC_ERROR_MESSAGE: Final = "Request failed"

T = TypeVar("T")


def resolve_auth_headers(credentials: CredentialSource) -> dict[str, str]:
    """현재 자격 증명으로 인증 헤더를 만듭니다.

    우선순위: 세션 bearer 토큰 > API 키 > 인증 없음.
    인증 없이 보낸 요청을 거절하는 것은 서버의 몫입니다.
    """
    token = credentials.bearer_token()
    if token:
        return {"Authorization": f"Bearer {token}"}
    api_key = credentials.api_key()
    if api_key:
        return {"X-API-Key": api_key}
    return {}


def _extract_error_message(response: httpx.Response, fallback: str) -> str:
    try:
        payload = response.json()
    except ValueError:
        return fallback
    if isinstance(payload, dict) and payload.get("error"):
        return str(payload["error"])
    return fallback


class AuthenticatedTransport:
    """모든 API 요청에 동일한 인증/콘텐츠 협상 헤더를 붙여 보내는 전송 계층.

    자격 증명은 요청마다 CredentialSource에서 새로 읽으며, 저장하거나 바꾸지 않습니다.
    """

    def __init__(
        self,
        base_url: str,
        credentials: CredentialSource,
        timeout: float = 10.0,
    ) -> None:
        self._credentials: Final = credentials
        self._client: Final = httpx.AsyncClient(base_url=base_url, timeout=timeout)

    async def __aenter__(self) -> AuthenticatedTransport:
        return self

    async def __aexit__(
        self,
        exc_type: Type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    @log_function_call
    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, str] | None = None,
        json: Any = None,
        error_message: str = GENERIC_ERROR_MESSAGE,
    ) -> Any:
        """요청을 보내고 디코딩된 JSON 본문을 반환합니다.

        Raises:
            RequestFailedError: 네트워크 오류, 타임아웃
            ServerRejectedError: 2xx가 아닌 응답. 메시지는 서버의 "error" 값을 사용합니다.
        """
        headers = {**DEFAULT_HEADERS, **resolve_auth_headers(self._credentials)}
        try:
            response = await self._client.request(
                method, path, params=params, json=json, headers=headers
            )
        except httpx.RequestError as e:
            logger.bind(event_name="request_failed").warning(
                f"{method} {path} failed: {e.__class__.__name__}: {e}"
            )
            raise RequestFailedError(error_message) from e

        if response.is_error:
            message = _extract_error_message(response, error_message)
            logger.bind(
                event_name="request_rejected", status_code=response.status_code
            ).warning(f"{method} {path} rejected with {response.status_code}: {message}")
            raise ServerRejectedError(message, status_code=response.status_code)

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise RequestFailedError(error_message) from e


def decode_payload(decoder: Callable[[Any], T], payload: Any, error_message: str) -> T:
    """응답 본문을 도메인 객체로 바꿉니다.

    필드가 빠졌거나 알 수 없는 값이 들어 있는 응답은 네트워크 실패와 같은
    RequestFailedError로 분류합니다.
    """
    try:
        return decoder(payload)
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        logger.bind(event_name="malformed_payload").warning(
            f"Malformed response payload: {e.__class__.__name__}: {e}"
        )
        raise RequestFailedError(error_message) from e
