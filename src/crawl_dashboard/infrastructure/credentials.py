"""API 자격 증명 조회.

토큰/API 키를 발급하고 저장하는 것은 외부 로그인 흐름의 몫이며,
대시보드는 저장된 값을 읽기만 합니다.
"""

import json
from pathlib import Path
from typing import Any, Protocol

from loguru import logger


class CredentialSource(Protocol):
    """전송 계층이 요청마다 읽는 자격 증명 인터페이스 (읽기 전용, 동기)"""

    def bearer_token(self) -> str | None:
        ...

    def api_key(self) -> str | None:
        ...


class FileCredentialStore(CredentialSource):
    """로그인 세션 파일에서 자격 증명을 읽습니다.

    - 파일 형식: {"token": "...", "api_key": "..."}
    - 매 호출마다 파일을 다시 읽으므로 외부에서 로그인/로그아웃하면 즉시 반영됩니다.
    - 파일에 API 키가 없으면 설정(CRAWL_API_KEY)의 값을 사용합니다.
    """

    def __init__(self, storage_path: Path, fallback_api_key: str | None = None):
        self.storage_path = storage_path
        self._fallback_api_key = fallback_api_key

    def has_saved_session(self) -> bool:
        """저장된 로그인 세션이 있는지 확인합니다."""
        return self.storage_path.exists()

    def bearer_token(self) -> str | None:
        return self._load_session().get("token") or None

    def api_key(self) -> str | None:
        return self._load_session().get("api_key") or self._fallback_api_key

    def _load_session(self) -> dict[str, Any]:
        if not self.has_saved_session():
            return {}
        try:
            data = json.loads(self.storage_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.bind(path=str(self.storage_path)).warning(f"세션 파일을 읽을 수 없습니다: {e}")
            return {}
        return data if isinstance(data, dict) else {}
