import pytest
from fastapi.testclient import TestClient

from helpers import PAGE_HTML, chat_item
from src.chat import HostDocument
from src.overlay import OverlayStore, overlay_state
from src.overlay.server import app


class StubController:
    def __init__(self, scheduler):
        self.document = HostDocument(PAGE_HTML)
        self.store = OverlayStore(scheduler=scheduler)
        self.is_observing = True
        self.saved = []

    async def apply_settings(self, settings):
        self.store.update_settings(settings)
        self.saved.append(settings)


@pytest.fixture
def controller(monkeypatch, scheduler):
    stub = StubController(scheduler)
    monkeypatch.setitem(overlay_state, "controller", stub)
    return stub


@pytest.fixture
def client():
    return TestClient(app)


def test_api_unavailable_without_controller(monkeypatch, client):
    monkeypatch.setitem(overlay_state, "controller", None)

    assert client.get("/api/state").status_code == 503


def test_state_lists_nodes_oldest_first(controller, client, make_message):
    controller.store.insert(make_message(1, author="a"))
    controller.store.insert(make_message(2, author="b"))

    data = client.get("/api/state").json()

    assert data["observing"] is True
    assert data["settings"]["design"] == "topRight"
    assert [n["messageId"] for n in data["nodes"]] == ["m1", "m2"]
    assert data["nodes"][0]["layout"]["anchor"] == "top-right"
    assert data["bounds"] == {"width": 1280, "height": 400}


def test_settings_update_is_partial(controller, client):
    res = client.post("/api/settings", json={"design": "bottomBubble", "maxMessages": 5})

    assert res.status_code == 200
    assert res.json()["design"] == "bottomBubble"
    assert res.json()["fontSize"] == 14
    assert controller.store.settings.max_visible == 5
    assert len(controller.saved) == 1
    assert client.get("/api/settings").json()["maxMessages"] == 5


@pytest.mark.parametrize("body", [{"maxMessages": 0}, {"design": "sideways"}, {"opacity": 2}])
def test_settings_validation(controller, client, body):
    assert client.post("/api/settings", json=body).status_code == 422
    assert controller.saved == []


def test_mutations_append_into_document(controller, client):
    res = client.post(
        "/api/mutations",
        json={"parent": "#items", "html": [chat_item("a", "1"), chat_item("b", "2")]},
    )

    assert res.json() == {"added": 2}
    assert len(controller.document.query_selector("#items").find_all("yt-live-chat-text-message-renderer")) == 2


def test_mutations_unknown_target(controller, client):
    assert client.post("/api/mutations", json={"parent": "#nope", "html": ["<p>x</p>"]}).status_code == 404
    assert client.post("/api/mutations", json={"parent": "#items", "html": [], "frame": "chatframe"}).status_code == 404


def test_page_snapshot_attaches_frames(controller, client):
    res = client.post(
        "/api/page",
        json={
            "html": '<iframe id="chatframe"></iframe>',
            "frames": {"chatframe": {"html": "<yt-live-chat-app></yt-live-chat-app>"}},
        },
    )

    assert res.status_code == 200
    frame_doc = controller.document.frame_document("chatframe")
    assert frame_doc.query_selector("yt-live-chat-app") is not None

    res = client.post("/api/mutations", json={"parent": "yt-live-chat-app", "html": ["<p>x</p>"], "frame": "chatframe"})
    assert res.json() == {"added": 1}


def test_clear_resets_store(controller, client, make_message):
    controller.store.insert(make_message(1))

    client.post("/api/clear")

    assert len(controller.store) == 0


def test_overlay_page(client):
    res = client.get("/")

    assert res.status_code == 200
    assert "text/html" in res.headers["content-type"]
    assert "/api/state" in res.text
    assert "__POLL_MS__" not in res.text
