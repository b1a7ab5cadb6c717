"""
채팅 수집 클라이언트 추상 기본 클래스
모든 페이지(유튜브 라이브 채팅, 일반 채팅 위젯 등) 수집기가 구현해야 하는 인터페이스
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChatMessage:
    """채팅 메시지 레코드 (한 번 만들어지면 변하지 않음)"""
    message_id: str  # 같은 id = 같은 논리 메시지
    author: str
    body_html: str  # 본문 inner HTML (이모지 img 유지)
    observed_at_ms: int  # 수집 시각 (wall clock, ms)
    timestamp_text: Optional[str] = None  # 페이지에 표시된 시각 문자열
    platform: str = ""


class ClientState(str, Enum):
    IDLE = "idle"
    LOCATING = "locating"
    OBSERVING = "observing"
    STOPPED = "stopped"


class ChatClient(ABC):
    """채팅 수집 클라이언트 추상 기본 클래스"""

    def __init__(self, on_message: Optional[Callable[[ChatMessage], Any]] = None):
        """
        Args:
            on_message: 새 메시지마다 호출할 콜백 (동기 함수 또는 코루틴 함수)
        """
        self.on_message = on_message
        self.state = ClientState.IDLE
        self._stopped = asyncio.Event()
        self._callback_tasks: set[asyncio.Task] = set()

    @property
    @abstractmethod
    def platform_name(self) -> str:
        """플랫폼 이름 반환 (예: 'youtube', 'generic')"""
        pass

    @abstractmethod
    async def connect(self):
        """감시 대상 연결 로직 구현"""
        pass

    @abstractmethod
    async def disconnect(self):
        """감시 해제 로직 구현"""
        pass

    @property
    def is_observing(self) -> bool:
        return self.state == ClientState.OBSERVING

    async def start(self):
        """클라이언트 시작 (감시 상태가 되면 반환)"""
        self._stopped.clear()
        await self.connect()

    async def stop(self):
        """클라이언트 중지. 여러 번 호출해도 결과 동일."""
        await self.disconnect()
        self._stopped.set()

    async def listen(self):
        """stop() 될 때까지 대기 (메시지는 이벤트 콜백으로 처리됨)"""
        await self._stopped.wait()

    async def run(self):
        """start + listen"""
        await self.start()
        await self.listen()

    def _dispatch(self, message: ChatMessage) -> None:
        """콜백 호출. 콜백 오류는 기록만 하고 수집은 계속."""
        if not self.on_message:
            return
        try:
            cb = self.on_message(message)
            if asyncio.iscoroutine(cb):
                task = asyncio.get_running_loop().create_task(cb)
                self._callback_tasks.add(task)
                task.add_done_callback(lambda t: self._on_callback_done(t, message))
        except Exception:
            logger.exception(f"[{self.platform_name}] 메시지 콜백 오류: {message.message_id}")

    def _on_callback_done(self, task: asyncio.Task, message: ChatMessage) -> None:
        self._callback_tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(
                f"[{self.platform_name}] 메시지 콜백 오류: {message.message_id}",
                exc_info=exc,
            )
