"""
오버레이 메시지 저장소: 화면에 떠 있는 메시지 목록(오래된 순)과 수명 관리.

- 추가: 표시 정책 통과 시 노드 생성 → 표면에 붙임 → 모드 표시 시간 뒤 제거 예약
- 개수 초과: 가장 오래된 것 하나를 즉시 제거 (만료 타이머보다 우선)
- 만료: 타이머가 울리면 제거 (이미 제거됐으면 아무 일 없음)
- 목록에서 빼는 것과 노드 떼는 것은 항상 같이 (_remove 한 곳에서만)
"""

from __future__ import annotations

import asyncio
import logging
import random
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Protocol

from src.chat.base_client import ChatMessage

from .models import DEFAULT_SETTINGS, OverlaySettings
from .policy import Measure, compute_layout, estimate_content_width, is_eligible
from .surface import OverlayNode, OverlaySurface

logger = logging.getLogger(__name__)


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """asyncio 이벤트 루프의 call_later 와 같은 형태"""

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> TimerHandle: ...


@dataclass(eq=False)
class VisibleMessage:
    message: ChatMessage
    node: OverlayNode
    timer: TimerHandle


class OverlayStore:
    """표시 중인 메시지 저장소 (단일 이벤트 루프 전용, 락 없음)"""

    def __init__(
        self,
        settings: OverlaySettings = DEFAULT_SETTINGS,
        surface: Optional[OverlaySurface] = None,
        scheduler: Optional[Scheduler] = None,
        rng: Optional[random.Random] = None,
        measure: Measure = estimate_content_width,
    ):
        """
        Args:
            settings: 초기 설정
            surface: 렌더링 표면 (None이면 새로 생성)
            scheduler: 만료 타이머 스케줄러 (None이면 실행 중인 asyncio 루프)
            rng: 말풍선 위치용 랜덤 소스
            measure: 본문 폭 측정 함수
        """
        self._settings = settings
        self.surface = surface or OverlaySurface()
        self._scheduler = scheduler
        self.rng = rng or random.Random()
        self.measure = measure
        self._visible: "OrderedDict[str, VisibleMessage]" = OrderedDict()

    @property
    def settings(self) -> OverlaySettings:
        return self._settings

    @property
    def visible(self) -> List[ChatMessage]:
        """표시 중인 메시지 (오래된 것 먼저)"""
        return [entry.message for entry in self._visible.values()]

    def __len__(self) -> int:
        return len(self._visible)

    def __contains__(self, message_id: object) -> bool:
        return message_id in self._visible

    def insert(self, message: ChatMessage) -> bool:
        """
        메시지 추가

        Returns:
            화면에 추가됐으면 True (정책상 미표시/이미 표시 중이면 False)
        """
        settings = self._settings
        if not is_eligible(message, settings.mode):
            return False
        if message.message_id in self._visible:
            logger.debug("이미 표시 중인 메시지: %s", message.message_id)
            return False

        node = self.surface.create_node(
            message.message_id, message.author, message.body_html, self._layout_for(message, settings)
        )
        # 예약 실패 시 표면에 붙이지 않음
        delay = settings.mode_config.visible_duration_ms / 1000
        timer = self._get_scheduler().call_later(delay, self._expire, message.message_id, node)
        self.surface.append(node)
        self._visible[message.message_id] = VisibleMessage(message, node, timer)

        if len(self._visible) > settings.max_visible:
            self._evict_oldest()
        return True

    def update_settings(self, settings: OverlaySettings) -> None:
        """설정 교체 → 초과분 제거 → 남은 메시지 재배치 (만료 타이머는 그대로)"""
        previous, self._settings = self._settings, settings
        while len(self._visible) > settings.max_visible:
            self._evict_oldest()
        for entry in self._visible.values():
            self.surface.relayout(entry.node, self._layout_for(entry.message, settings))
        logger.info(
            "오버레이 설정 변경: mode %s→%s, max %d→%d (표시 중 %d)",
            previous.mode.value, settings.mode.value,
            previous.max_visible, settings.max_visible, len(self._visible),
        )

    def reset(self) -> None:
        """전부 제거 (재초기화용)"""
        for entry in self._visible.values():
            entry.timer.cancel()
        self._visible.clear()
        self.surface.clear()
        logger.info("오버레이 초기화")

    def _layout_for(self, message: ChatMessage, settings: OverlaySettings):
        return compute_layout(
            message, settings.mode, settings, self.surface.bounds, rng=self.rng, measure=self.measure
        )

    def _evict_oldest(self) -> None:
        message_id = next(iter(self._visible))
        entry = self._remove(message_id)
        if entry is not None:
            entry.timer.cancel()
            logger.debug("개수 초과로 제거: %s", message_id)

    def _expire(self, message_id: str, node: OverlayNode) -> None:
        entry = self._visible.get(message_id)
        # 같은 id가 다시 들어온 경우 이전 타이머는 새 노드를 건드리지 않음
        if entry is None or entry.node is not node:
            return
        self._remove(message_id)
        logger.debug("표시 시간 만료로 제거: %s", message_id)

    def _remove(self, message_id: str) -> Optional[VisibleMessage]:
        entry = self._visible.pop(message_id, None)
        if entry is not None:
            self.surface.detach(entry.node)
        return entry

    def _get_scheduler(self) -> Scheduler:
        if self._scheduler is None:
            return asyncio.get_running_loop()
        return self._scheduler
