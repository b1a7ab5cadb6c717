"""
채팅 수집기 팩토리
플랫폼(페이지 구조 프로필)별 수집기를 생성하는 팩토리 패턴
"""

from typing import Dict

from .base_client import ChatClient
from .dom_client import DomChatClient
from .host_page import HostDocument
from .profiles import GENERIC_PROFILE, PageProfile, YOUTUBE_PROFILE


class ChatClientFactory:
    """채팅 수집기 팩토리 클래스"""

    _platforms: Dict[str, PageProfile] = {
        "youtube": YOUTUBE_PROFILE,
        "generic": GENERIC_PROFILE,
    }

    @classmethod
    def create(
        cls,
        platform: str,
        document: HostDocument,
        **kwargs
    ) -> ChatClient:
        """
        플랫폼별 채팅 수집기 생성

        Args:
            platform: 플랫폼 이름 ("youtube", "generic" 등)
            document: 감시할 호스트 페이지
            **kwargs: DomChatClient 추가 설정 (on_message, retry_interval 등)

        Returns:
            ChatClient 인스턴스

        Raises:
            ValueError: 지원하지 않는 플랫폼인 경우
        """
        if platform not in cls._platforms:
            supported = ", ".join(cls._platforms.keys())
            raise ValueError(
                f"지원하지 않는 플랫폼: {platform}. "
                f"지원 플랫폼: {supported}"
            )
        return DomChatClient(document=document, profile=cls._platforms[platform], **kwargs)

    @classmethod
    def register_platform(cls, profile: PageProfile):
        """
        새로운 플랫폼 등록 (런타임에 페이지 구조 추가 가능)

        Args:
            profile: 페이지 구조 프로필 (profile.name 으로 등록)
        """
        if not isinstance(profile, PageProfile):
            raise TypeError(
                f"profile은 PageProfile이어야 합니다. "
                f"현재: {type(profile).__name__}"
            )
        if not profile.root_selectors or not profile.message_selectors:
            raise ValueError(f"root/message 셀렉터가 비어 있습니다: {profile.name}")
        cls._platforms[profile.name] = profile

    @classmethod
    def get_supported_platforms(cls) -> list[str]:
        """지원하는 플랫폼 목록 반환"""
        return list(cls._platforms.keys())
