"""
오버레이 데이터 모델
표시 모드, 모드별 설정, 사용자 설정(OverlaySettings), 배치 결과(LayoutParams)
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Mapping, Optional


class DisplayMode(str, Enum):
    """표시 모드 (값은 저장 포맷과 동일)"""
    TOP_RIGHT = "topRight"
    TOP_LEFT = "topLeft"
    BOTTOM_RIGHT = "bottomRight"
    BOTTOM_LEFT = "bottomLeft"
    BOTTOM_BUBBLE = "bottomBubble"


class Corner(str, Enum):
    TOP_RIGHT = "top-right"
    TOP_LEFT = "top-left"
    BOTTOM_RIGHT = "bottom-right"
    BOTTOM_LEFT = "bottom-left"


@dataclass(frozen=True)
class ModeConfig:
    """모드별 글자 수 제한 / 표시 시간 / 배치 방식"""
    max_body_length: int
    visible_duration_ms: int
    layout: str  # "stack" | "bubble"
    anchor: Optional[Corner] = None


MODE_CONFIGS: dict[DisplayMode, ModeConfig] = {
    DisplayMode.TOP_RIGHT: ModeConfig(200, 5000, "stack", Corner.TOP_RIGHT),
    DisplayMode.TOP_LEFT: ModeConfig(200, 5000, "stack", Corner.TOP_LEFT),
    DisplayMode.BOTTOM_RIGHT: ModeConfig(200, 5000, "stack", Corner.BOTTOM_RIGHT),
    DisplayMode.BOTTOM_LEFT: ModeConfig(200, 5000, "stack", Corner.BOTTOM_LEFT),
    # 말풍선은 화면을 덮으므로 짧은 메시지만
    DisplayMode.BOTTOM_BUBBLE: ModeConfig(30, 5000, "bubble"),
}


def mode_config(mode: DisplayMode) -> ModeConfig:
    return MODE_CONFIGS[mode]


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


@dataclass(frozen=True)
class OverlaySettings:
    """사용자 설정 스냅샷. 변경 시 통째로 교체 (제자리 수정 없음)."""
    font_size_px: int = 14
    message_width_px: int = 300
    opacity: float = 0.8
    show_author: bool = True
    mode: DisplayMode = DisplayMode.TOP_RIGHT
    max_visible: int = 200

    def __post_init__(self):
        # frozen 이라 object.__setattr__ 로 보정
        object.__setattr__(self, "opacity", _clamp(float(self.opacity), 0.0, 1.0))
        object.__setattr__(self, "max_visible", max(1, int(self.max_visible)))
        if not isinstance(self.mode, DisplayMode):
            object.__setattr__(self, "mode", DisplayMode(self.mode))

    @property
    def mode_config(self) -> ModeConfig:
        return MODE_CONFIGS[self.mode]

    def with_changes(self, **changes: Any) -> "OverlaySettings":
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        """저장용 dict (키 이름은 기존 저장 포맷 유지)"""
        return {
            "fontSize": self.font_size_px,
            "messageWidth": self.message_width_px,
            "opacity": self.opacity,
            "showUsername": self.show_author,
            "design": self.mode.value,
            "maxMessages": self.max_visible,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "OverlaySettings":
        """저장된 dict → 설정. 없거나 잘못된 값은 기본값 사용."""
        default = cls()
        try:
            mode = DisplayMode(data.get("design", default.mode.value))
        except ValueError:
            mode = default.mode

        def _num(key: str, fallback, cast):
            try:
                return cast(data.get(key, fallback))
            except (TypeError, ValueError):
                return fallback

        show = data.get("showUsername", default.show_author)
        return cls(
            font_size_px=_num("fontSize", default.font_size_px, int),
            message_width_px=_num("messageWidth", default.message_width_px, int),
            opacity=_num("opacity", default.opacity, float),
            show_author=show if isinstance(show, bool) else default.show_author,
            mode=mode,
            max_visible=_num("maxMessages", default.max_visible, int),
        )


DEFAULT_SETTINGS = OverlaySettings()


@dataclass(frozen=True)
class ContainerBounds:
    """오버레이 컨테이너 크기 (px)"""
    width: float
    height: float

    @property
    def is_measurable(self) -> bool:
        return self.width > 0 and self.height > 0


@dataclass(frozen=True)
class LayoutParams:
    """메시지 하나의 배치/스타일 값"""
    kind: str  # "stack" | "bubble"
    width_px: int
    font_size_px: int
    opacity: float
    show_author: bool
    emoji_size_px: float
    anchor: Optional[Corner] = None
    grow: Optional[str] = None  # stack: "down"(위쪽 앵커) | "up"(아래쪽 앵커)
    x_percent: Optional[float] = None  # bubble: 컨테이너 왼쪽 기준 %
    bottom_px: Optional[float] = None  # bubble: 컨테이너 아래 기준 px

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "widthPx": self.width_px,
            "fontSizePx": self.font_size_px,
            "opacity": self.opacity,
            "showAuthor": self.show_author,
            "emojiSizePx": self.emoji_size_px,
            "anchor": self.anchor.value if self.anchor else None,
            "grow": self.grow,
            "xPercent": self.x_percent,
            "bottomPx": self.bottom_px,
        }
