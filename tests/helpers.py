"""테스트 공용 헬퍼: 수동 스케줄러, 채팅 노드 HTML 생성."""

from __future__ import annotations

import asyncio
from typing import Callable, Optional

PAGE_HTML = '<html><body><div id="chat"><div id="items"></div></div></body></html>'


class FakeTimer:
    def __init__(self, when: float, callback, args, honor_cancel: bool) -> None:
        self.when = when
        self.callback = callback
        self.args = args
        self.cancelled = False
        self.fired = False
        self._honor_cancel = honor_cancel

    def cancel(self) -> None:
        self.cancelled = True

    @property
    def live(self) -> bool:
        if self.fired:
            return False
        return not (self.cancelled and self._honor_cancel)


class FakeScheduler:
    """call_later 호환 수동 시계. honor_cancel=False 면 취소된 타이머도 울림 (경쟁 상황 재현)."""

    def __init__(self, honor_cancel: bool = True) -> None:
        self.now = 0.0
        self.timers: list[FakeTimer] = []
        self.honor_cancel = honor_cancel

    def call_later(self, delay: float, callback, *args) -> FakeTimer:
        timer = FakeTimer(self.now + delay, callback, args, self.honor_cancel)
        self.timers.append(timer)
        return timer

    def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while True:
            due = [t for t in self.timers if t.live and t.when <= target + 1e-9]
            if not due:
                break
            timer = min(due, key=lambda t: t.when)
            self.now = timer.when
            timer.fired = True
            timer.callback(*timer.args)
        self.now = target

    @property
    def pending(self) -> list[FakeTimer]:
        return [t for t in self.timers if t.live]


def chat_item(
    author: str,
    body: str,
    timestamp: Optional[str] = None,
    node_id: Optional[str] = None,
    tag: str = "yt-live-chat-text-message-renderer",
) -> str:
    ts = f'<span id="timestamp">{timestamp}</span>' if timestamp else ""
    id_attr = f' id="{node_id}"' if node_id else ""
    return (
        f"<{tag}{id_attr}>{ts}"
        f'<span id="author-name"> {author} </span>'
        f'<span id="message">{body}</span>'
        f"</{tag}>"
    )


async def wait_until(predicate: Callable[[], bool], timeout: float = 1.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.005)


class MemoryStore:
    """get/set 비동기 key/value 저장소 (실패 주입 가능)."""

    def __init__(self, data=None, fail_get: bool = False, fail_set: bool = False) -> None:
        self.data = dict(data or {})
        self.fail_get = fail_get
        self.fail_set = fail_set

    async def get(self, key):
        if self.fail_get:
            raise OSError("storage unavailable")
        return self.data.get(key)

    async def set(self, key, value):
        if self.fail_set:
            raise OSError("quota exceeded")
        self.data[key] = value
