"""
오버레이 렌더링 표면: 오버레이가 전부 소유하는 노드 컨테이너.

호스트 페이지 HTML은 신뢰하지 않으므로 본문은 넣기 전에 정리합니다
(script/style/iframe 제거, on* 속성 제거, img는 referrer 없이 로드).
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass
from typing import Any, List, Optional

from bs4 import BeautifulSoup

from .models import ContainerBounds, LayoutParams

logger = logging.getLogger(__name__)

_DROP_TAGS = ["script", "style", "iframe", "object", "embed", "link", "meta"]
# 말풍선 모드 컨테이너: 화면 아래 400px 영역
DEFAULT_BOUNDS = ContainerBounds(width=1280, height=400)


def sanitize_body_html(html: str) -> str:
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup.find_all(_DROP_TAGS):
        tag.decompose()
    for tag in soup.find_all(True):
        for attr in [a for a in tag.attrs if a.lower().startswith("on")]:
            del tag[attr]
        if tag.name == "img":
            tag["referrerpolicy"] = "no-referrer"
            tag["crossorigin"] = "anonymous"
    return soup.decode()


@dataclass(eq=False)
class OverlayNode:
    """화면에 붙는 메시지 노드 (렌더링 핸들)"""
    node_id: int
    message_id: str
    author: str
    body_html: str
    layout: LayoutParams
    attached: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "nodeId": self.node_id,
            "messageId": self.message_id,
            "author": self.author,
            "bodyHtml": self.body_html,
            "layout": self.layout.to_dict(),
        }


class OverlaySurface:
    """노드 컨테이너. 노드는 추가된 순서(오래된 것 먼저)로 유지."""

    def __init__(self, bounds: Optional[ContainerBounds] = DEFAULT_BOUNDS):
        self.bounds = bounds
        self._nodes: List[OverlayNode] = []
        self._ids = itertools.count(1)
        self.version = 0  # 변경마다 증가 (오버레이 페이지 갱신 판단용)

    def create_node(self, message_id: str, author: str, body_html: str, layout: LayoutParams) -> OverlayNode:
        return OverlayNode(
            node_id=next(self._ids),
            message_id=message_id,
            author=author,
            body_html=sanitize_body_html(body_html),
            layout=layout,
        )

    def append(self, node: OverlayNode) -> None:
        if node.attached:
            return
        self._nodes.append(node)
        node.attached = True
        self.version += 1

    def detach(self, node: OverlayNode) -> bool:
        if not node.attached:
            return False
        self._nodes = [n for n in self._nodes if n is not node]
        node.attached = False
        self.version += 1
        return True

    def relayout(self, node: OverlayNode, layout: LayoutParams) -> None:
        node.layout = layout
        self.version += 1

    def clear(self) -> None:
        if self._nodes:
            logger.debug("표면 노드 %d개 제거", len(self._nodes))
        for node in self._nodes:
            node.attached = False
        self._nodes = []
        self.version += 1

    @property
    def nodes(self) -> List[OverlayNode]:
        return list(self._nodes)

    def __len__(self) -> int:
        return len(self._nodes)
