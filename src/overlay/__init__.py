"""
채팅 오버레이: 수집한 채팅을 모드별 배치로 잠깐 띄웠다가 지움. OBS 브라우저 소스로 노출.

- OverlayStore: 표시 중인 메시지 목록 (개수/시간 제한)
- policy: 표시 여부·배치 계산
- server: /api/state JSON, / 오버레이 HTML (OBS에서 http://127.0.0.1:8765/?obs=1)
"""

from src.overlay.models import (
    DEFAULT_SETTINGS,
    ContainerBounds,
    DisplayMode,
    LayoutParams,
    OverlaySettings,
)
from src.overlay.state import overlay_state
from src.overlay.store import OverlayStore
from src.overlay.surface import OverlayNode, OverlaySurface

__all__ = [
    "DEFAULT_SETTINGS",
    "ContainerBounds",
    "DisplayMode",
    "LayoutParams",
    "OverlaySettings",
    "overlay_state",
    "OverlayStore",
    "OverlayNode",
    "OverlaySurface",
]
