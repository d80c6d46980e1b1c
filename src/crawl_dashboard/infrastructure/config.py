"""대시보드 실행 설정.

환경 변수 또는 프로젝트 루트의 `.env` 파일로 값을 덮어쓸 수 있습니다.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

_env_path = Path(__file__).resolve().parents[3] / ".env"
load_dotenv(_env_path, override=False)


@dataclass
class Settings:
    # ------------------------------------------------------------------
    # API server
    # ------------------------------------------------------------------
    api_base_url: str = field(
        default_factory=lambda: os.environ.get(
            "CRAWL_API_BASE_URL", "http://localhost:8081/api"
        )
    )
    api_key: str | None = field(
        default_factory=lambda: os.environ.get("CRAWL_API_KEY") or None
    )
    request_timeout: float = field(
        default_factory=lambda: float(os.environ.get("CRAWL_REQUEST_TIMEOUT", "10.0"))
    )

    # ------------------------------------------------------------------
    # List view / polling
    # ------------------------------------------------------------------
    poll_interval: float = field(
        default_factory=lambda: float(os.environ.get("CRAWL_POLL_INTERVAL", "5.0"))
    )
    page_size: int = field(
        default_factory=lambda: int(os.environ.get("CRAWL_PAGE_SIZE", "10"))
    )

    # ------------------------------------------------------------------
    # Local storage
    # ------------------------------------------------------------------
    data_dir: Path = field(
        default_factory=lambda: Path(
            os.environ.get("CRAWL_DATA_DIR", Path.home() / ".crawl-dashboard")
        )
    )

    @property
    def session_path(self) -> Path:
        """로그인 흐름이 기록하는 토큰/API 키 파일"""
        return self.data_dir / "session.json"

    @property
    def preferences_path(self) -> Path:
        return self.data_dir / "preferences.json"

    @property
    def log_path(self) -> Path:
        return self.data_dir / "debug.log"

    def ensure_data_dir(self) -> None:
        self.data_dir.mkdir(parents=True, exist_ok=True)


# 모듈 단위 싱글톤:
#   from crawl_dashboard.infrastructure.config import settings
settings = Settings()
