"""
플랫폼별 페이지 구조 정의 (셀렉터 모음).

호스트 페이지의 구조는 예고 없이 바뀌므로 셀렉터는 한 곳에서만 관리합니다.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class PageProfile:
    """채팅 페이지 구조 프로필"""
    name: str
    root_selectors: tuple[str, ...]  # 감시 루트 후보 (구체적인 것부터)
    message_selectors: tuple[str, ...]  # 메시지 노드 시그니처
    frame_selector: Optional[str] = None  # 채팅이 들어있는 iframe
    author_selector: str = "#author-name"
    body_selector: str = "#message"
    timestamp_selector: Optional[str] = "#timestamp"


YOUTUBE_PROFILE = PageProfile(
    name="youtube",
    frame_selector="iframe#chatframe",
    root_selectors=("#chat-messages", "#chat", "yt-live-chat-app"),
    message_selectors=(
        "yt-live-chat-text-message-renderer",
        "yt-live-chat-paid-message-renderer",  # 슈퍼챗 포함
        '[id^="message"]',
        ".chat-message",
        ".yt-live-chat-item-list-renderer",
    ),
)

# 프레임 없는 일반 채팅 페이지 (자체 호스팅 위젯 등)
GENERIC_PROFILE = PageProfile(
    name="generic",
    root_selectors=("#chat-messages", "#chat"),
    message_selectors=(".chat-message",),
)
