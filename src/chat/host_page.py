"""
감시 대상 페이지의 인프로세스 미러 (HostDocument).

브라우저 쪽 브리지가 보내는 페이지 스냅샷/추가 노드를 BeautifulSoup 트리에 반영하고,
MutationObserver처럼 구조 변경 묶음(batch)을 구독자에게 전달합니다.

- 트리는 외부(호스트 페이지) 소유: 오버레이 코드는 읽기만 함
- 중첩 프레임(iframe)의 문서는 attach_frame 으로 등록, 교차 출처면 접근 시 FrameAccessError
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Callable, Iterator, List, Optional

from bs4 import BeautifulSoup, Tag
from bs4.element import PageElement

logger = logging.getLogger(__name__)

MutationCallback = Callable[[List["MutationRecord"]], None]


class FrameAccessError(Exception):
    """교차 출처 등으로 프레임 내부 문서에 접근할 수 없음."""


@dataclass
class MutationRecord:
    """구조 변경 한 건 (childList / attributes / characterData)"""
    type: str
    target: Tag
    added_nodes: List[PageElement] = field(default_factory=list)
    removed_nodes: List[PageElement] = field(default_factory=list)
    attribute_name: Optional[str] = None


def _is_within(node: PageElement, root: Tag) -> bool:
    # Tag.__eq__ 는 구조 비교라서 반드시 identity 로 확인
    if node is root:
        return True
    return any(parent is root for parent in node.parents)


class MutationSubscription:
    """observe() 가 돌려주는 구독 핸들. disconnect 는 여러 번 불러도 안전."""

    def __init__(self, document: "HostDocument", root: Tag, callback: MutationCallback):
        self.document = document
        self.root = root
        self.callback = callback
        self.active = True

    def disconnect(self) -> None:
        if not self.active:
            return
        self.active = False
        self.document._unsubscribe(self)

    def covers(self, record: MutationRecord) -> bool:
        return _is_within(record.target, self.root)


class HostDocument:
    """호스트 페이지 문서 미러"""

    def __init__(self, html: str = "", cross_origin: bool = False):
        """
        Args:
            html: 초기 페이지 HTML
            cross_origin: True면 상위 문서에서 이 문서(프레임)로 접근 불가
        """
        self.soup = BeautifulSoup(html, "html.parser")
        self.cross_origin = cross_origin
        self._frames: dict[str, HostDocument] = {}
        self._subscriptions: List[MutationSubscription] = []
        self._layout_listeners: List[Callable[[], None]] = []
        self._pending: Optional[List[MutationRecord]] = None

    # ----- 조회

    def query_selector(self, selector: str) -> Optional[Tag]:
        return self.soup.select_one(selector)

    def attach_frame(self, frame_id: str, document: Optional["HostDocument"]) -> None:
        """<iframe id=frame_id> 의 내부 문서 등록 (None 이면 아직 로드 안 됨)."""
        if document is None:
            self._frames.pop(frame_id, None)
        else:
            self._frames[frame_id] = document

    def frame_document(self, frame_id: str) -> Optional["HostDocument"]:
        """브리지용: 접근 가능 여부와 무관하게 등록된 프레임 문서 반환."""
        return self._frames.get(frame_id)

    def content_document(self, frame: Tag) -> Optional["HostDocument"]:
        """
        프레임 요소의 내부 문서

        Returns:
            내부 문서, 아직 로드되지 않았으면 None

        Raises:
            FrameAccessError: 교차 출처 문서
        """
        doc = self._frames.get(frame.get("id") or "")
        if doc is None:
            return None
        if doc.cross_origin:
            raise FrameAccessError(f"cross-origin frame: #{frame.get('id')}")
        return doc

    # ----- 구독

    def observe(self, root: Tag, callback: MutationCallback) -> MutationSubscription:
        if not _is_within(root, self.soup):
            raise ValueError("root 가 이 문서에 속하지 않습니다")
        sub = MutationSubscription(self, root, callback)
        self._subscriptions.append(sub)
        logger.debug("observe 시작: <%s> (구독 %d개)", root.name, len(self._subscriptions))
        return sub

    def _unsubscribe(self, sub: MutationSubscription) -> None:
        self._subscriptions = [s for s in self._subscriptions if s is not sub]

    def on_layout_change(self, listener: Callable[[], None]) -> None:
        self._layout_listeners.append(listener)

    @property
    def subscription_count(self) -> int:
        return len(self._subscriptions)

    # ----- 변경 (호스트 페이지 쪽 동작을 재현)

    def load(self, html: str) -> None:
        """페이지 전체 교체 (이동/레이아웃 전환). 기존 노드와 구독 대상은 더 이상 유효하지 않음."""
        self.soup = BeautifulSoup(html, "html.parser")
        self._frames.clear()
        logger.info("호스트 페이지 교체 (%d bytes)", len(html))
        for listener in list(self._layout_listeners):
            listener()

    def append_html(self, parent: Tag, html: str) -> List[PageElement]:
        """HTML 조각을 parent 의 마지막 자식으로 추가하고 childList 변경 기록."""
        fragment = BeautifulSoup(html, "html.parser")
        added: List[PageElement] = []
        for child in list(fragment.contents):
            parent.append(child)
            added.append(child)
        if added:
            self._record(MutationRecord(type="childList", target=parent, added_nodes=added))
        return added

    def remove(self, node: PageElement) -> None:
        parent = node.parent
        if parent is None:
            return
        node.extract()
        self._record(MutationRecord(type="childList", target=parent, removed_nodes=[node]))

    def set_attribute(self, node: Tag, name: str, value: str) -> None:
        node[name] = value
        self._record(MutationRecord(type="attributes", target=node, attribute_name=name))

    @contextmanager
    def batch(self) -> Iterator[None]:
        """블록 안의 변경을 한 번에 전달 (중첩 시 바깥 블록이 끝날 때 전달)."""
        if self._pending is not None:
            yield
            return
        self._pending = []
        try:
            yield
        finally:
            records, self._pending = self._pending, None
            self._deliver(records)

    def _record(self, record: MutationRecord) -> None:
        if self._pending is not None:
            self._pending.append(record)
        else:
            self._deliver([record])

    def _deliver(self, records: List[MutationRecord]) -> None:
        if not records:
            return
        for sub in list(self._subscriptions):
            if not sub.active:
                continue
            relevant = [r for r in records if sub.covers(r)]
            if relevant:
                sub.callback(relevant)
