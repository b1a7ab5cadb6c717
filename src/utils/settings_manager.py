"""
오버레이 설정 저장/불러오기.

저장소는 비동기 key/value (get/set) 인터페이스만 가정합니다.
읽기 실패 → 기본값, 쓰기 실패 → 로그만 남기고 무시 (렌더링은 절대 멈추지 않음).
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
from pathlib import Path
from typing import Any, Optional, Protocol, Union

from src.overlay.models import DEFAULT_SETTINGS, OverlaySettings

logger = logging.getLogger(__name__)

STORAGE_KEY = "youtube-chat-settings"


def _project_root() -> Path:
    return Path(__file__).resolve().parent.parent.parent


def default_settings_path() -> Path:
    env = (os.environ.get("OVERLAY_SETTINGS_PATH") or "").strip()
    return Path(env) if env else _project_root() / "config" / "overlay_settings.json"


class KeyValueStore(Protocol):
    async def get(self, key: str) -> Optional[Any]: ...

    async def set(self, key: str, value: Any) -> None: ...


class JsonFileStore:
    """JSON 파일 하나에 key/value 저장. 파일 I/O는 스레드로 넘김."""

    def __init__(self, path: Optional[Union[Path, str]] = None):
        self.path = Path(path) if path else default_settings_path()

    def _read_all(self) -> dict:
        if not self.path.exists():
            return {}
        data = json.loads(self.path.read_text(encoding="utf-8"))
        return data if isinstance(data, dict) else {}

    def _write(self, key: str, value: Any) -> None:
        data = self._read_all()
        data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
        tmp.replace(self.path)

    async def get(self, key: str) -> Optional[Any]:
        data = await asyncio.to_thread(self._read_all)
        return data.get(key)

    async def set(self, key: str, value: Any) -> None:
        await asyncio.to_thread(self._write, key, value)


class SettingsManager:
    """OverlaySettings ↔ 저장소"""

    def __init__(self, store: KeyValueStore, key: str = STORAGE_KEY):
        self.store = store
        self.key = key

    async def load_settings(self) -> OverlaySettings:
        try:
            raw = await self.store.get(self.key)
        except Exception as e:
            logger.error("설정 로드 실패, 기본값 사용: %s", e)
            return DEFAULT_SETTINGS
        if raw is None:
            return DEFAULT_SETTINGS
        if not isinstance(raw, dict):
            logger.warning("설정 형식 오류(%s), 기본값 사용", type(raw).__name__)
            return DEFAULT_SETTINGS
        return OverlaySettings.from_dict(raw)

    async def save_settings(self, settings: OverlaySettings) -> None:
        try:
            await self.store.set(self.key, settings.to_dict())
        except Exception as e:
            logger.error("설정 저장 실패: %s", e)
