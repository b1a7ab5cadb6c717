"""
유튜브 라이브 채팅 오버레이 실행 예제

브라우저 쪽 브리지(유저스크립트 등)가 호스트 페이지 스냅샷을 POST /api/page 로,
새 채팅 노드를 POST /api/mutations 로 보내면 이 프로세스가 수집 → 중복 제거 → 오버레이 표시.

실행: python examples/chat_overlay_example.py  (프로젝트 루트에서)
방송 오버레이: OBS에서 브라우저 소스 추가 → URL에 http://127.0.0.1:8765/?obs=1 입력.
설정 패널은 ?obs 없이 http://127.0.0.1:8765/ 로 열기. 포트 변경 시 .env에 OVERLAY_PORT=8765 설정.
"""

import sys
from pathlib import Path

# 프로젝트 루트를 path에 넣어서 'import src' 가능하게 함
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import asyncio
import logging
import os

import uvicorn
from dotenv import load_dotenv

from src.chat import HostDocument
from src.controller import OverlayController
from src.overlay import OverlayStore, overlay_state
from src.overlay.server import app
from src.utils import JsonFileStore, SettingsManager, setup_logging

load_dotenv(Path(__file__).resolve().parent.parent / ".env")
LOG_DIR = setup_logging()
logger = logging.getLogger(__name__)


async def main():
    host = os.getenv("OVERLAY_HOST", "127.0.0.1")
    port = int(os.getenv("OVERLAY_PORT", "8765"))
    platform = os.getenv("OVERLAY_PLATFORM", "youtube")

    settings_manager = SettingsManager(JsonFileStore())
    settings = await settings_manager.load_settings()

    document = HostDocument()
    store = OverlayStore(settings=settings)
    controller = OverlayController(document, store, settings_manager, platform=platform)
    overlay_state["controller"] = controller

    # 같은 이벤트 루프에서 서버 실행 (타이머/변경 전달이 한 루프에서만 일어나도록)
    config = uvicorn.Config(app, host=host, port=port, log_level=(os.getenv("UVICORN_LOG_LEVEL") or "warning").lower())
    server = uvicorn.Server(config)

    print(f"방송 오버레이: http://{host}:{port}/?obs=1 (설정 패널: http://{host}:{port}/)")
    print(f"플랫폼: {platform}, 표시 모드: {settings.mode.value}, 최대 {settings.max_visible}개")
    print(f"로그 저장 경로: {LOG_DIR}")
    print("호스트 페이지 대기 중... (종료: Ctrl+C)\n")

    await controller.start()
    try:
        await server.serve()
    finally:
        await controller.stop()
        store.reset()
        overlay_state["controller"] = None
        logger.info("오버레이 종료")


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass
