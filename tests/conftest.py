import pytest

from helpers import FakeScheduler, PAGE_HTML
from src.chat import ChatMessage, HostDocument


@pytest.fixture
def scheduler() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture
def page() -> HostDocument:
    return HostDocument(PAGE_HTML)


@pytest.fixture
def make_message():
    def _make(n: int, body: str = "hi", author: str = "user", observed_at_ms: int = 0) -> ChatMessage:
        return ChatMessage(
            message_id=f"m{n}",
            author=author,
            body_html=body,
            observed_at_ms=observed_at_ms,
        )

    return _make
