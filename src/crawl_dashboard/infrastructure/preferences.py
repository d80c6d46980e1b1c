"""사용자 환경설정 (자동 시작 여부, 새로고침 주기) 저장/로드"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from pathlib import Path

from loguru import logger

POLL_INTERVAL_CHOICES: tuple[float, ...] = (2.0, 5.0, 10.0, 30.0, 60.0)


def nearest_poll_interval(seconds: float) -> float:
    """화면에서 고를 수 있는 주기 중 가장 가까운 값. 같은 거리면 짧은 쪽을 고릅니다."""
    return min(POLL_INTERVAL_CHOICES, key=lambda choice: abs(choice - seconds))


@dataclass
class Preferences:
    auto_start: bool = True
    poll_interval: float = 5.0

    def to_json(self) -> str:
        return json.dumps(asdict(self), indent=2)

    @classmethod
    def from_json(cls, data: str) -> Preferences:
        """JSON 문자열에서 환경설정을 만듭니다.

        주기는 선택지 중 가장 가까운 값으로 맞춥니다.

        Raises:
            ValueError: JSON이 아니거나 알 수 없는 키/잘못된 타입/잘못된 주기가 들어 있을 때
        """
        raw = json.loads(data)
        if not isinstance(raw, dict):
            raise ValueError("Preferences must be a JSON object")
        try:
            prefs = cls(**raw)
        except TypeError as e:
            raise ValueError(str(e)) from e
        if not isinstance(prefs.auto_start, bool):
            raise ValueError(f"Invalid auto_start: {prefs.auto_start!r}")
        if isinstance(prefs.poll_interval, bool) or not isinstance(
            prefs.poll_interval, (int, float)
        ):
            raise ValueError(f"Invalid poll interval: {prefs.poll_interval!r}")
        if not prefs.poll_interval > 0:
            raise ValueError(f"Invalid poll interval: {prefs.poll_interval}")
        prefs.poll_interval = nearest_poll_interval(prefs.poll_interval)
        return prefs


def load_preferences(path: Path, default_interval: float = 5.0) -> Preferences:
    """환경설정을 읽습니다. 파일이 없거나 손상되었으면 기본값을 반환합니다."""
    defaults = Preferences(poll_interval=nearest_poll_interval(default_interval))
    if not path.exists():
        return defaults
    try:
        return Preferences.from_json(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.warning(f"Could not read preferences, using defaults: {e}")
        return defaults


def save_preferences(path: Path, prefs: Preferences) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(prefs.to_json(), encoding="utf-8")
    logger.debug(f"Preferences saved to {path}")
