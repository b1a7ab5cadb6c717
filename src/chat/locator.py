"""
감시 루트(채팅 컨테이너) 탐색

- iframe 우선: 프레임은 있는데 내부 문서가 아직 없으면 0.5초 간격으로 재확인
- 프레임이 없거나 교차 출처면 최상위 문서에서 후보 셀렉터 순서대로 탐색
- 못 찾으면 1초 후 전체 탐색 재시도 (포기하지 않음: 페이지가 아직 로딩 중일 수 있음)
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from bs4 import Tag

from .host_page import FrameAccessError, HostDocument
from .profiles import PageProfile

logger = logging.getLogger(__name__)

DEFAULT_FRAME_POLL_INTERVAL = 0.5
DEFAULT_RETRY_INTERVAL = 1.0


@dataclass
class LocatedRoot:
    """찾은 감시 루트와 그 루트가 속한 문서"""
    document: HostDocument
    node: Tag
    via_frame: bool = False


class SourceLocator:
    """감시 루트 탐색기. locate()는 찾을 때까지 반환하지 않음 (취소는 가능)."""

    def __init__(
        self,
        document: HostDocument,
        profile: PageProfile,
        frame_poll_interval: float = DEFAULT_FRAME_POLL_INTERVAL,
        retry_interval: float = DEFAULT_RETRY_INTERVAL,
    ):
        self.document = document
        self.profile = profile
        self.frame_poll_interval = frame_poll_interval
        self.retry_interval = retry_interval
        self.attempts = 0

    async def locate(self) -> LocatedRoot:
        self.attempts = 0
        while True:
            self.attempts += 1
            found = await self._locate_in_frame()
            if found is None:
                found = self._locate_top_level()
            if found is not None:
                logger.info(
                    "[%s] 채팅 컨테이너 발견: <%s> (frame=%s, 시도 %d회)",
                    self.profile.name, found.node.name, found.via_frame, self.attempts,
                )
                return found
            logger.debug("[%s] 채팅 컨테이너 없음, %.1f초 후 재시도", self.profile.name, self.retry_interval)
            await asyncio.sleep(self.retry_interval)

    async def _locate_in_frame(self) -> Optional[LocatedRoot]:
        if not self.profile.frame_selector:
            return None
        while True:
            frame = self.document.query_selector(self.profile.frame_selector)
            if frame is None:
                return None
            try:
                frame_doc = self.document.content_document(frame)
            except FrameAccessError as e:
                logger.debug("[%s] 프레임 접근 불가, 최상위 문서로 대체: %s", self.profile.name, e)
                return None
            if frame_doc is not None:
                node = self._query_roots(frame_doc)
                return LocatedRoot(frame_doc, node, via_frame=True) if node is not None else None
            logger.debug("[%s] 프레임 문서 로딩 대기", self.profile.name)
            await asyncio.sleep(self.frame_poll_interval)

    def _locate_top_level(self) -> Optional[LocatedRoot]:
        node = self._query_roots(self.document)
        return LocatedRoot(self.document, node) if node is not None else None

    def _query_roots(self, document: HostDocument) -> Optional[Tag]:
        for selector in self.profile.root_selectors:
            node = document.query_selector(selector)
            if node is not None:
                return node
        return None
