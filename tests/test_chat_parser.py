from bs4 import BeautifulSoup

from helpers import chat_item
from src.chat import ChatParser, GENERIC_PROFILE
from src.chat.chat_parser import derive_message_id


def _node(html: str):
    return BeautifulSoup(html, "html.parser").contents[0]


def test_parse_extracts_fields():
    parser = ChatParser(clock=lambda: 1234)
    body = 'hello <img class="emoji" src="https://example.com/e.png" alt="wave">'
    message = parser.parse(_node(chat_item("Alice", body, timestamp="12:00")))

    assert message is not None
    assert message.author == "Alice"
    assert message.body_html.startswith("hello <img")
    assert 'class="emoji"' in message.body_html
    assert 'alt="wave"' in message.body_html
    assert message.timestamp_text == "12:00"
    assert message.observed_at_ms == 1234
    assert message.platform == "youtube"


def test_parse_rejects_incomplete_nodes():
    parser = ChatParser()
    no_author = '<yt-live-chat-text-message-renderer><span id="message">hi</span></yt-live-chat-text-message-renderer>'
    no_body = '<yt-live-chat-text-message-renderer><span id="author-name">a</span></yt-live-chat-text-message-renderer>'

    assert parser.parse(_node(no_author)) is None
    assert parser.parse(_node(no_body)) is None


def test_message_id_is_deterministic_with_timestamp():
    parser = ChatParser()
    first = parser.parse(_node(chat_item("Alice", "hi", timestamp="12:00")))
    again = parser.parse(_node(chat_item("Alice", "hi", timestamp="12:00")))
    later = parser.parse(_node(chat_item("Alice", "hi", timestamp="12:01")))

    assert first.message_id == again.message_id
    assert first.message_id != later.message_id
    assert first.message_id == derive_message_id("Alice", "hi", "12:00")


def test_message_id_falls_back_to_host_node_id():
    parser = ChatParser()
    html = chat_item("Bob", "yo", node_id="ChwKGkNKX")

    assert parser.parse(_node(html)).message_id == parser.parse(_node(html)).message_id


def test_message_id_is_random_without_key_material():
    parser = ChatParser()
    html = chat_item("Bob", "yo")

    assert parser.parse(_node(html)).message_id != parser.parse(_node(html)).message_id


def test_is_candidate_signatures():
    parser = ChatParser()

    assert parser.is_candidate(_node(chat_item("a", "b")))
    assert parser.is_candidate(_node("<div>" + chat_item("a", "b") + "</div>"))
    assert parser.is_candidate(_node('<div class="chat-message"></div>'))
    assert not parser.is_candidate(_node('<div class="banner">ad</div>'))
    assert not parser.is_candidate(BeautifulSoup("text", "html.parser").contents[0])


def test_generic_profile_uses_its_own_signature():
    parser = ChatParser(GENERIC_PROFILE)
    html = '<li class="chat-message"><b id="author-name">Kim</b><p id="message">안녕</p></li>'

    message = parser.parse(_node(html))

    assert parser.is_candidate(_node(html))
    assert not parser.is_candidate(_node(chat_item("a", "b")))
    assert message.author == "Kim"
    assert message.platform == "generic"
