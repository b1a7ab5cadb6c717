"""이미 전달한 메시지 id 집합 (수집 세션 단위)."""

from typing import Iterable


class DeduplicationIndex:
    """start() 이후 전달한 id 기록. 새 수집 세션에서만 비움."""

    def __init__(self, ids: Iterable[str] = ()):
        self._seen: set[str] = set(ids)

    def add(self, message_id: str) -> bool:
        """처음 보는 id면 기록하고 True, 이미 있으면 False"""
        if message_id in self._seen:
            return False
        self._seen.add(message_id)
        return True

    def clear(self) -> None:
        self._seen.clear()

    def __contains__(self, message_id: object) -> bool:
        return message_id in self._seen

    def __len__(self) -> int:
        return len(self._seen)
