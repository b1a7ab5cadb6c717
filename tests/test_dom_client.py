import asyncio
import logging

from helpers import PAGE_HTML, chat_item, wait_until
from src.chat import ClientState, DomChatClient, HostDocument

FAST = dict(frame_poll_interval=0.01, retry_interval=0.01)


def _client(doc: HostDocument, received: list, **kwargs) -> DomChatClient:
    return DomChatClient(doc, on_message=received.append, **{**FAST, **kwargs})


def test_start_observes_and_delivers_new_messages():
    doc = HostDocument(PAGE_HTML)
    received = []
    client = _client(doc, received)

    async def scenario():
        await client.start()
        doc.append_html(doc.query_selector("#items"), chat_item("Alice", "hi", timestamp="12:00"))

    asyncio.run(scenario())

    assert client.state == ClientState.OBSERVING
    assert [m.author for m in received] == ["Alice"]


def test_duplicate_observation_delivers_once():
    doc = HostDocument(PAGE_HTML)
    received = []
    client = _client(doc, received)
    html = chat_item("Alice", "hi", timestamp="12:00")

    async def scenario():
        await client.start()
        items = doc.query_selector("#items")
        doc.append_html(items, html)
        doc.append_html(items, html)
        with doc.batch():
            doc.append_html(items, html)
            doc.append_html(items, html)

    asyncio.run(scenario())

    assert len(received) == 1
    assert received[0].message_id in client.dedup


def test_batch_delivery_keeps_observation_order():
    doc = HostDocument(PAGE_HTML)
    received = []
    client = _client(doc, received)

    async def scenario():
        await client.start()
        items = doc.query_selector("#items")
        with doc.batch():
            for i in range(3):
                doc.append_html(items, chat_item(f"u{i}", f"msg {i}", timestamp="12:00"))

    asyncio.run(scenario())

    assert [m.author for m in received] == ["u0", "u1", "u2"]


def test_incomplete_and_non_childlist_mutations_are_ignored():
    doc = HostDocument(PAGE_HTML)
    received = []
    client = _client(doc, received)

    async def scenario():
        await client.start()
        items = doc.query_selector("#items")
        doc.append_html(items, '<yt-live-chat-text-message-renderer><span id="message">no author</span></yt-live-chat-text-message-renderer>')
        doc.append_html(items, "<p>banner</p>")
        doc.set_attribute(items, "class", "scrolled")

    asyncio.run(scenario())

    assert received == []


def test_stop_is_idempotent_and_detaches():
    doc = HostDocument(PAGE_HTML)
    received = []
    client = _client(doc, received)

    async def scenario():
        await client.start()
        await client.stop()
        await client.stop()
        doc.append_html(doc.query_selector("#items"), chat_item("Alice", "late", timestamp="12:00"))

    asyncio.run(scenario())

    assert client.state == ClientState.STOPPED
    assert doc.subscription_count == 0
    assert received == []


def test_restart_begins_a_fresh_dedup_session():
    doc = HostDocument(PAGE_HTML)
    received = []
    client = _client(doc, received)
    html = chat_item("Alice", "hi", timestamp="12:00")

    async def scenario():
        await client.start()
        doc.append_html(doc.query_selector("#items"), html)
        await client.stop()
        await client.start()
        doc.append_html(doc.query_selector("#items"), html)

    asyncio.run(scenario())

    assert len(received) == 2
    assert doc.subscription_count == 1


def test_callback_error_does_not_stop_ingestion():
    doc = HostDocument(PAGE_HTML)
    received = []

    def on_message(message):
        if message.author == "boom":
            raise RuntimeError("downstream failure")
        received.append(message)

    client = DomChatClient(doc, on_message=on_message, **FAST)

    async def scenario():
        await client.start()
        items = doc.query_selector("#items")
        doc.append_html(items, chat_item("boom", "x", timestamp="1"))
        doc.append_html(items, chat_item("ok", "y", timestamp="2"))

    asyncio.run(scenario())

    assert [m.author for m in received] == ["ok"]


def test_coroutine_callback_is_scheduled():
    doc = HostDocument(PAGE_HTML)
    received = []

    async def on_message(message):
        received.append(message)

    client = DomChatClient(doc, on_message=on_message, **FAST)

    async def scenario():
        await client.start()
        doc.append_html(doc.query_selector("#items"), chat_item("Alice", "hi", timestamp="1"))
        await wait_until(lambda: len(received) == 1)

    asyncio.run(scenario())

    assert received[0].author == "Alice"


def test_stop_while_locating_ends_start():
    doc = HostDocument("<p>loading</p>")
    client = _client(doc, [])

    async def scenario():
        task = asyncio.create_task(client.run())
        await wait_until(lambda: client.state == ClientState.LOCATING)
        await client.stop()
        await asyncio.wait_for(task, timeout=1.0)

    asyncio.run(scenario())

    assert client.state == ClientState.STOPPED
    assert doc.subscription_count == 0


def test_start_waits_for_root_to_appear():
    doc = HostDocument("<p>loading</p>")
    received = []
    client = _client(doc, received)

    async def scenario():
        asyncio.get_running_loop().call_later(0.03, doc.load, PAGE_HTML)
        await client.start()
        doc.append_html(doc.query_selector("#items"), chat_item("Alice", "hi", timestamp="1"))

    asyncio.run(scenario())

    assert client.root.node.get("id") == "chat"
    assert len(received) == 1


def test_stop_right_after_root_found_does_not_subscribe():
    doc = HostDocument(PAGE_HTML)
    received = []
    client = _client(doc, received)

    async def scenario():
        task = asyncio.create_task(client.start())
        # locate 완료 후, connect 재개 전
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        await client.stop()
        await task
        doc.append_html(doc.query_selector("#items"), chat_item("Alice", "hi", timestamp="1"))

    asyncio.run(scenario())

    assert client.state == ClientState.STOPPED
    assert doc.subscription_count == 0
    assert received == []


def test_failing_coroutine_callback_is_logged(caplog):
    doc = HostDocument(PAGE_HTML)

    async def on_message(message):
        raise RuntimeError("async downstream failure")

    client = DomChatClient(doc, on_message=on_message, **FAST)

    async def scenario():
        await client.start()
        doc.append_html(doc.query_selector("#items"), chat_item("Alice", "hi", timestamp="1"))
        assert len(client._callback_tasks) == 1
        await wait_until(lambda: not client._callback_tasks)

    with caplog.at_level(logging.ERROR, logger="src.chat.base_client"):
        asyncio.run(scenario())

    assert "async downstream failure" in caplog.text
    assert client.state == ClientState.OBSERVING
