"""오버레이용 공유 상태. 메인 스크립트가 컨트롤러를 등록하고, 서버가 /api/* 에서 꺼내 씀."""

from typing import Any

# "controller": src.controller.OverlayController (메인 스크립트에서 설정)
overlay_state: dict[str, Any] = {
    "controller": None,
}
# 오버레이 페이지의 /api/state 폴링 간격
STATE_POLL_INTERVAL_MS = 500
