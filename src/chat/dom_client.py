"""
페이지 DOM 감시 채팅 수집기
감시 루트의 구조 변경(추가된 노드)에서 메시지를 추출해 한 번씩만 전달합니다.

상태: IDLE → (LOCATING) → OBSERVING → STOPPED, STOPPED 에서 다시 start 가능
"""

import asyncio
import logging
from typing import Any, Callable, List, Optional

from bs4 import Tag

from .base_client import ChatClient, ChatMessage, ClientState
from .chat_parser import ChatParser
from .dedup import DeduplicationIndex
from .host_page import HostDocument, MutationRecord, MutationSubscription
from .locator import DEFAULT_FRAME_POLL_INTERVAL, DEFAULT_RETRY_INTERVAL, LocatedRoot, SourceLocator
from .profiles import PageProfile, YOUTUBE_PROFILE

logger = logging.getLogger(__name__)


class DomChatClient(ChatClient):
    """HostDocument 변경 감시 기반 채팅 수집기"""

    def __init__(
        self,
        document: HostDocument,
        profile: PageProfile = YOUTUBE_PROFILE,
        on_message: Optional[Callable[[ChatMessage], Any]] = None,
        parser: Optional[ChatParser] = None,
        frame_poll_interval: float = DEFAULT_FRAME_POLL_INTERVAL,
        retry_interval: float = DEFAULT_RETRY_INTERVAL,
    ):
        """
        Args:
            document: 감시할 호스트 페이지
            profile: 페이지 구조 프로필
            on_message: 새 메시지 콜백
            parser: 노드 파서 (None이면 profile 로 생성)
            frame_poll_interval: 프레임 문서 로딩 대기 간격 (초)
            retry_interval: 컨테이너 재탐색 간격 (초)
        """
        super().__init__(on_message)
        self.document = document
        self.profile = profile
        self.parser = parser or ChatParser(profile)
        self.dedup = DeduplicationIndex()
        self.locator = SourceLocator(document, profile, frame_poll_interval, retry_interval)
        self.root: Optional[LocatedRoot] = None
        self._subscription: Optional[MutationSubscription] = None
        self._locate_task: Optional[asyncio.Task] = None

    @property
    def platform_name(self) -> str:
        return self.profile.name

    async def connect(self):
        """감시 루트 탐색 → 중복 인덱스 초기화 → 구독"""
        if self.state in (ClientState.LOCATING, ClientState.OBSERVING):
            logger.debug(f"[{self.platform_name}] 이미 시작됨 ({self.state.value})")
            return
        self.state = ClientState.LOCATING
        self._locate_task = asyncio.create_task(self.locator.locate())
        try:
            located = await self._locate_task
        except asyncio.CancelledError:
            # stop() 이 탐색을 취소한 경우
            if self.state == ClientState.STOPPED:
                return
            raise
        finally:
            self._locate_task = None
        if self.state != ClientState.LOCATING:
            # 탐색이 끝난 직후 stop() 된 경우: 구독하지 않음
            return

        self.root = located
        self.dedup.clear()
        self._subscription = located.document.observe(located.node, self._handle_mutations)
        self.state = ClientState.OBSERVING
        logger.info(f"[{self.platform_name}] 채팅 감시 시작")

    async def disconnect(self):
        """구독 해제 (이미 표시 중인 메시지의 만료 타이머는 건드리지 않음)"""
        if self.state in (ClientState.IDLE, ClientState.STOPPED):
            return
        self.state = ClientState.STOPPED
        if self._locate_task is not None and not self._locate_task.done():
            self._locate_task.cancel()
        if self._subscription is not None:
            self._subscription.disconnect()
            self._subscription = None
        logger.info(f"[{self.platform_name}] 채팅 감시 중지")

    def _handle_mutations(self, records: List[MutationRecord]) -> None:
        if self.state != ClientState.OBSERVING:
            return
        for record in records:
            if record.type != "childList":
                continue
            for node in record.added_nodes:
                if not isinstance(node, Tag) or not self.parser.is_candidate(node):
                    continue
                message = self.parser.parse(node)
                if message is None:
                    logger.debug(f"[{self.platform_name}] 작성자/본문 없는 노드 무시: <{node.name}>")
                    continue
                if not self.dedup.add(message.message_id):
                    logger.debug(f"[{self.platform_name}] 중복 메시지 무시: {message.message_id}")
                    continue
                self._dispatch(message)
