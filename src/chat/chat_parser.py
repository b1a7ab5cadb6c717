"""
채팅 메시지 노드 파싱 (노드 → ChatMessage)
"""

import hashlib
import logging
import time
import uuid
from typing import Callable, Optional

from bs4 import Tag

from .base_client import ChatMessage
from .profiles import PageProfile, YOUTUBE_PROFILE

logger = logging.getLogger(__name__)

# 메시지 id 해시 입력 구분자
_KEY_SEP = "\x1f"


def _wall_clock_ms() -> int:
    return int(time.time() * 1000)


def derive_message_id(author: str, text: str, key: str) -> str:
    """(작성자, 본문 텍스트, 고정 키) → 결정적 id"""
    raw = _KEY_SEP.join((author, text, key))
    return hashlib.sha1(raw.encode("utf-8")).hexdigest()[:20]


class ChatParser:
    """채팅 메시지 노드 파싱 클래스 (읽기 전용, 부수효과 없음)"""

    def __init__(
        self,
        profile: PageProfile = YOUTUBE_PROFILE,
        clock: Callable[[], int] = _wall_clock_ms,
    ):
        """
        Args:
            profile: 페이지 구조 프로필
            clock: 수집 시각(ms) 함수 (테스트에서 고정용)
        """
        self.profile = profile
        self.clock = clock

    def is_candidate(self, node: object) -> bool:
        """메시지 노드 시그니처와 일치하거나 그런 노드를 포함하는지"""
        if not isinstance(node, Tag):
            return False
        return any(
            node.css.match(selector) or node.select_one(selector) is not None
            for selector in self.profile.message_selectors
        )

    def parse(self, node: Tag) -> Optional[ChatMessage]:
        """
        메시지 노드를 ChatMessage로 파싱

        Args:
            node: 후보 노드

        Returns:
            파싱된 ChatMessage 또는 None (작성자/본문 요소가 없으면)
        """
        author_el = node.select_one(self.profile.author_selector)
        body_el = node.select_one(self.profile.body_selector)
        if author_el is None or body_el is None:
            return None

        author = author_el.get_text().strip()
        body_html = body_el.decode_contents().strip()
        timestamp_text = None
        if self.profile.timestamp_selector:
            ts_el = node.select_one(self.profile.timestamp_selector)
            if ts_el is not None:
                timestamp_text = ts_el.get_text().strip() or None

        return ChatMessage(
            message_id=self._message_id(node, author, body_el.get_text(), timestamp_text),
            author=author,
            body_html=body_html,
            observed_at_ms=self.clock(),
            timestamp_text=timestamp_text,
            platform=self.profile.name,
        )

    def _message_id(self, node: Tag, author: str, text: str, timestamp_text: Optional[str]) -> str:
        # 1) 표시 시각  2) 호스트가 붙인 노드 id  3) 랜덤 (중복 방지 불가)
        if timestamp_text:
            return derive_message_id(author, text, timestamp_text)
        node_id = node.get("id")
        if node_id and not node_id.startswith("message"):
            return derive_message_id(author, text, f"#{node_id}")
        return uuid.uuid4().hex
