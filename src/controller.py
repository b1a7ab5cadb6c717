"""
수집기 ↔ 오버레이 연결 및 재초기화.

호스트 페이지 레이아웃이 바뀌면(전체화면/극장 모드, 페이지 이동) 감시 루트가 무효가 되므로
수집기 중지 → 오버레이 초기화 → 잠시 대기 → 새 수집기 시작 (중복 인덱스도 새로).
"""

from __future__ import annotations

import asyncio
import logging
import os
from typing import Any, Optional

from src.chat import ChatClient, ChatClientFactory, HostDocument
from src.overlay.models import OverlaySettings
from src.overlay.store import OverlayStore
from src.utils.settings_manager import SettingsManager

logger = logging.getLogger(__name__)

DEFAULT_REINIT_DELAY = 1.0


class OverlayController:
    """채팅 오버레이 전체 수명 관리"""

    def __init__(
        self,
        document: HostDocument,
        store: OverlayStore,
        settings_manager: Optional[SettingsManager] = None,
        platform: str = "youtube",
        reinit_delay: Optional[float] = None,
        **client_kwargs: Any,
    ):
        """
        Args:
            document: 감시할 호스트 페이지
            store: 오버레이 저장소
            settings_manager: 설정 저장 (None이면 저장 안 함)
            platform: ChatClientFactory 플랫폼 이름
            reinit_delay: 재초기화 전 대기 (초, 기본 OVERLAY_REINIT_DELAY_SEC 또는 1.0)
            **client_kwargs: 수집기 추가 설정 (retry_interval 등)
        """
        self.document = document
        self.store = store
        self.settings_manager = settings_manager
        self.platform = platform
        if reinit_delay is None:
            reinit_delay = float(os.environ.get("OVERLAY_REINIT_DELAY_SEC") or DEFAULT_REINIT_DELAY)
        self.reinit_delay = reinit_delay
        self.client_kwargs = client_kwargs
        self.client: Optional[ChatClient] = None
        self._client_task: Optional[asyncio.Task] = None
        self._reinit_task: Optional[asyncio.Task] = None
        self.document.on_layout_change(self._on_layout_change)

    def _new_client(self) -> ChatClient:
        return ChatClientFactory.create(
            self.platform,
            document=self.document,
            on_message=self.store.insert,
            **self.client_kwargs,
        )

    async def start(self) -> None:
        """수집 시작. 감시 루트를 찾는 동안에도 바로 반환 (탐색은 백그라운드)."""
        if self.client is not None:
            return
        self.client = self._new_client()
        self._client_task = asyncio.create_task(self.client.start())
        logger.info("오버레이 컨트롤러 시작 (platform=%s)", self.platform)

    async def stop(self) -> None:
        if self._reinit_task is not None and self._reinit_task is not asyncio.current_task():
            self._reinit_task.cancel()
            self._reinit_task = None
        client, self.client = self.client, None
        task, self._client_task = self._client_task, None
        if client is not None:
            await client.stop()
        if task is not None:
            if not task.done():
                task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

    async def reinitialize(self) -> None:
        """수집기 중지 → 오버레이 초기화 → 대기 → 새 수집기"""
        logger.info("채팅 수집 재초기화...")
        await self.stop()
        self.store.reset()
        await asyncio.sleep(self.reinit_delay)
        await self.start()

    async def apply_settings(self, settings: OverlaySettings) -> None:
        """설정 UI 변경 반영 + 저장 (저장 실패는 무시)"""
        self.store.update_settings(settings)
        if self.settings_manager is not None:
            await self.settings_manager.save_settings(settings)

    def _on_layout_change(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("이벤트 루프 없음: 재초기화 생략")
            return
        if self._reinit_task is not None and not self._reinit_task.done():
            return
        self._reinit_task = loop.create_task(self.reinitialize())

    @property
    def is_observing(self) -> bool:
        return self.client is not None and self.client.is_observing
