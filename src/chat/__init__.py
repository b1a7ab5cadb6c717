"""
채팅 수집 모듈
호스트 페이지(유튜브 라이브 채팅 등)의 DOM 변경에서 채팅을 수집하는 모듈
"""

from .base_client import ChatClient, ChatMessage, ClientState
from .chat_parser import ChatParser
from .client_factory import ChatClientFactory
from .dedup import DeduplicationIndex
from .dom_client import DomChatClient
from .host_page import FrameAccessError, HostDocument, MutationRecord
from .locator import LocatedRoot, SourceLocator
from .profiles import GENERIC_PROFILE, PageProfile, YOUTUBE_PROFILE

__all__ = [
    "ChatClient",
    "ChatMessage",
    "ClientState",
    "ChatParser",
    "ChatClientFactory",
    "DeduplicationIndex",
    "DomChatClient",
    "FrameAccessError",
    "HostDocument",
    "MutationRecord",
    "LocatedRoot",
    "SourceLocator",
    "PageProfile",
    "YOUTUBE_PROFILE",
    "GENERIC_PROFILE",
]
