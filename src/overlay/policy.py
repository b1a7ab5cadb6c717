"""
표시 정책: 메시지 표시 여부와 배치 계산 (순수 함수)

- 글자 수 제한은 태그를 제거한 실제 텍스트 기준
- 스탬프/이모지(img.emoji, img.small-emoji)가 든 메시지는 사실상 무제한 (5000자)
- 말풍선 모드 위치: 왼쪽 40% / 오른쪽 40% / 가운데 20% 세 구간에서 랜덤
"""

import logging
import random
import re
from typing import Callable, Optional

from bs4 import BeautifulSoup

from src.chat.base_client import ChatMessage

from .models import (
    ContainerBounds,
    DisplayMode,
    LayoutParams,
    ModeConfig,
    OverlaySettings,
    mode_config,
)

logger = logging.getLogger(__name__)

SPECIAL_CONTENT_MAX_LENGTH = 5000
SPECIAL_IMAGE_CLASSES = frozenset({"emoji", "small-emoji"})
_IMG_PATTERN = re.compile(r"<img\b", re.IGNORECASE)

EMOJI_SCALE = 1.8
BUBBLE_HORIZONTAL_PADDING_PX = 40
BUBBLE_DEFAULT_BOTTOM_PX = 50.0
# 텍스트 폭 추정용 평균 글자 폭 (font-size 배수)
AVERAGE_CHAR_WIDTH = 0.6

Measure = Callable[[ChatMessage, OverlaySettings], float]


def strip_markup(html: str) -> str:
    """HTML 태그 제거 후 텍스트만"""
    return BeautifulSoup(html, "html.parser").get_text()


def is_special_content(body_html: str) -> bool:
    """class 토큰이 정확히 emoji / small-emoji 인 img 가 있는지"""
    soup = BeautifulSoup(body_html, "html.parser")
    return any(SPECIAL_IMAGE_CLASSES.intersection(img.get("class") or ()) for img in soup.find_all("img"))


def max_length_for(body_html: str, config: ModeConfig) -> int:
    if is_special_content(body_html):
        return SPECIAL_CONTENT_MAX_LENGTH
    return config.max_body_length


def is_eligible(message: ChatMessage, mode: DisplayMode) -> bool:
    """현재 모드에서 이 메시지를 표시할지"""
    text_length = len(strip_markup(message.body_html))
    limit = max_length_for(message.body_html, mode_config(mode))
    if text_length > limit:
        logger.debug("글자 수 초과로 미표시: %d / %d (%s)", text_length, limit, message.message_id)
        return False
    return True


def estimate_content_width(message: ChatMessage, settings: OverlaySettings) -> float:
    """렌더링 엔진 없이 본문 폭 추정 (px): 글자 수 × 평균 글자 폭 + 이모지 + 좌우 여백"""
    text = strip_markup(message.body_html)
    if settings.show_author:
        text = max(text, message.author, key=len)
    images = len(_IMG_PATTERN.findall(message.body_html))
    width = len(text) * settings.font_size_px * AVERAGE_CHAR_WIDTH
    width += images * (settings.font_size_px * EMOJI_SCALE + 4)
    return width + BUBBLE_HORIZONTAL_PADDING_PX


def _bubble_position(rng: random.Random) -> tuple[float, float]:
    """(x 오프셋 %, bottom px). x 는 중앙(50%) 기준 오프셋."""
    bucket = rng.random() * 100
    if bucket < 40:
        # 왼쪽 구간
        return rng.random() * 30 - 45, rng.random() * 170 + 50
    if bucket < 80:
        # 오른쪽 구간
        return rng.random() * 30 + 15, rng.random() * 170 + 50
    # 가운데는 아래쪽 좁은 범위에만
    return rng.random() * 40 - 20, rng.random() * 100 + 50


def compute_layout(
    message: ChatMessage,
    mode: DisplayMode,
    settings: OverlaySettings,
    bounds: Optional[ContainerBounds],
    rng: Optional[random.Random] = None,
    measure: Measure = estimate_content_width,
) -> LayoutParams:
    """
    메시지 배치 계산

    Args:
        message: 표시할 메시지
        mode: 표시 모드
        settings: 현재 설정 스냅샷
        bounds: 컨테이너 크기 (None/0 이면 측정 실패로 보고 기본 배치)
        rng: 랜덤 소스 (테스트에서 시드 고정)
        measure: 본문 폭 측정 함수

    Returns:
        LayoutParams
    """
    config = mode_config(mode)
    common = dict(
        font_size_px=settings.font_size_px,
        opacity=settings.opacity,
        show_author=settings.show_author,
        emoji_size_px=settings.font_size_px * EMOJI_SCALE,
    )
    if config.layout == "stack":
        grow = "down" if config.anchor.value.startswith("top") else "up"
        return LayoutParams(
            kind="stack",
            width_px=settings.message_width_px,
            anchor=config.anchor,
            grow=grow,
            **common,
        )

    if bounds is None or not bounds.is_measurable:
        logger.warning("컨테이너 크기 측정 실패, 기본 배치 사용: %s", bounds)
        return LayoutParams(
            kind="bubble",
            width_px=settings.message_width_px,
            x_percent=50.0,
            bottom_px=BUBBLE_DEFAULT_BOTTOM_PX,
            **common,
        )

    try:
        measured = measure(message, settings)
    except Exception as e:
        logger.warning("본문 폭 측정 실패, 기본 폭 사용: %s", e)
        measured = settings.message_width_px
    width = int(min(max(measured, 1), settings.message_width_px))

    x_offset, bottom = _bubble_position(rng or random.Random())
    bottom = min(bottom, max(bounds.height - BUBBLE_DEFAULT_BOTTOM_PX, 0.0))
    return LayoutParams(
        kind="bubble",
        width_px=width,
        x_percent=50 + x_offset,
        bottom_px=bottom,
        **common,
    )
