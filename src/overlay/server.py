"""
채팅 오버레이용 로컬 HTTP 서버. / 오버레이 HTML, /api/state JSON, /api/settings 설정 UI,
/api/mutations · /api/page 는 브라우저 쪽 브리지가 호스트 페이지 변경을 보내는 입구.

메인 스크립트와 같은 이벤트 루프에서 실행 (uvicorn.Server.serve). 상태를 바꾸는 핸들러는
모두 async def 라서 루프 스레드에서 실행됨.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse
from pydantic import BaseModel, Field

from src.chat.host_page import HostDocument
from src.overlay.models import DisplayMode
from src.overlay.state import STATE_POLL_INTERVAL_MS, overlay_state

logger = logging.getLogger(__name__)
app = FastAPI(title="Chat Overlay", docs_url=None, redoc_url=None)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["GET", "POST"],
)


class SettingsPayload(BaseModel):
    """설정 UI 변경 (보낸 항목만 바뀜, 저장 키 이름 그대로)"""
    fontSize: Optional[int] = Field(default=None, ge=8, le=72)
    messageWidth: Optional[int] = Field(default=None, ge=100, le=1200)
    opacity: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    showUsername: Optional[bool] = None
    design: Optional[DisplayMode] = None
    maxMessages: Optional[int] = Field(default=None, ge=1, le=500)


class MutationPayload(BaseModel):
    """브리지가 보낸 추가 노드 묶음 (한 batch로 전달)"""
    parent: str
    html: list[str]
    frame: Optional[str] = None  # iframe id (프레임 내부 문서에 추가할 때)


class FramePayload(BaseModel):
    html: str = ""
    crossOrigin: bool = False


class PagePayload(BaseModel):
    """호스트 페이지 전체 스냅샷 (이동/레이아웃 전환 시)"""
    html: str
    frames: dict[str, FramePayload] = Field(default_factory=dict)


def _controller():
    controller = overlay_state.get("controller")
    if controller is None:
        raise HTTPException(status_code=503, detail="overlay controller not running")
    return controller


@app.get("/api/state")
async def get_state():
    """오버레이: 표시 중인 노드(오래된 순) + 현재 설정."""
    controller = _controller()
    store = controller.store
    surface = store.surface
    bounds = surface.bounds
    return JSONResponse({
        "version": surface.version,
        "observing": controller.is_observing,
        "settings": store.settings.to_dict(),
        "bounds": {"width": bounds.width, "height": bounds.height} if bounds else None,
        "nodes": [node.to_dict() for node in surface.nodes],
    })


@app.get("/api/settings")
async def get_settings():
    return JSONResponse(_controller().store.settings.to_dict())


@app.post("/api/settings")
async def update_settings(payload: SettingsPayload):
    """설정 UI → 새 설정 스냅샷 적용 + 저장."""
    controller = _controller()
    changes = {}
    if payload.fontSize is not None:
        changes["font_size_px"] = payload.fontSize
    if payload.messageWidth is not None:
        changes["message_width_px"] = payload.messageWidth
    if payload.opacity is not None:
        changes["opacity"] = payload.opacity
    if payload.showUsername is not None:
        changes["show_author"] = payload.showUsername
    if payload.design is not None:
        changes["mode"] = payload.design
    if payload.maxMessages is not None:
        changes["max_visible"] = payload.maxMessages
    settings = controller.store.settings.with_changes(**changes)
    await controller.apply_settings(settings)
    logger.info("Overlay API: settings %s", changes)
    return JSONResponse(settings.to_dict())


@app.post("/api/mutations")
async def push_mutations(payload: MutationPayload):
    """브리지: parent 셀렉터 아래에 HTML 조각 추가 (호스트 페이지의 새 채팅 노드)."""
    document: HostDocument = _controller().document
    if payload.frame:
        document = document.frame_document(payload.frame)
        if document is None:
            raise HTTPException(status_code=404, detail=f"frame not attached: {payload.frame}")
    parent = document.query_selector(payload.parent)
    if parent is None:
        raise HTTPException(status_code=404, detail=f"parent not found: {payload.parent}")
    added = 0
    with document.batch():
        for fragment in payload.html:
            added += len(document.append_html(parent, fragment))
    return JSONResponse({"added": added})


@app.post("/api/page")
async def replace_page(payload: PagePayload):
    """브리지: 호스트 페이지 스냅샷 교체 → 컨트롤러가 재초기화."""
    document: HostDocument = _controller().document
    document.load(payload.html)
    for frame_id, frame in payload.frames.items():
        document.attach_frame(frame_id, HostDocument(frame.html, cross_origin=frame.crossOrigin))
    logger.info("Overlay API: page snapshot (frames=%s)", list(payload.frames))
    return JSONResponse({"ok": True})


@app.post("/api/clear")
async def clear_overlay():
    """표시 중인 메시지 전부 제거."""
    _controller().store.reset()
    logger.info("Overlay API: clear")
    return JSONResponse({"ok": True})


OVERLAY_HTML = """<!DOCTYPE html>
<html lang="ko">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>Chat Overlay</title>
  <style>
    * { margin: 0; padding: 0; box-sizing: border-box; }
    body { background: transparent; overflow: hidden; font-family: sans-serif; }

    /* OBS 모드일 때 설정 패널 숨김 */
    body.obs-mode .settings { display: none !important; }

    #overlay { position: fixed; z-index: 9999; pointer-events: none; display: flex; flex-direction: column; }
    #overlay.bubble { bottom: 0; left: 0; right: 0; height: 400px; }

    .msg { color: white; display: flex; flex-direction: column; }
    .msg.stack { padding: 8px 12px; border-radius: 4px; margin-bottom: 8px; animation: slideIn 0.3s ease-out; }
    .msg.bubble {
      position: absolute; padding: 12px 20px; border-radius: 20px; text-align: center;
      transform: translateX(-50%); animation: fadeInOut 5s ease-in-out;
    }
    .msg .author { font-weight: bold; margin-bottom: 4px; line-height: 1.2; }
    .msg .body { word-wrap: break-word; white-space: pre-wrap; line-height: 1.4; }
    .msg .body img { width: auto; vertical-align: middle; margin: 0 2px; }

    @keyframes slideIn { from { opacity: 0; transform: translateY(-8px); } to { opacity: 1; transform: none; } }
    @keyframes fadeInOut {
      0% { opacity: 0; transform: translateX(-50%) scale(0.9); }
      10% { opacity: 1; transform: translateX(-50%) scale(1); }
      90% { opacity: 1; transform: translateX(-50%) scale(1); }
      100% { opacity: 0; transform: translateX(-50%) scale(0.9); }
    }

    .settings {
      position: fixed; top: 10px; left: 10px; z-index: 10000; padding: 12px;
      background: rgba(0, 0, 0, 0.85); color: white; border-radius: 8px; font-size: 13px;
    }
    .settings button { margin: 2px; padding: 6px 8px; background: #333; color: white; border: 2px solid transparent; border-radius: 4px; cursor: pointer; }
    .settings button.active { border-color: #fff; }
    .settings label { display: block; margin-top: 8px; }
  </style>
</head>
<body>
  <div id="overlay"></div>
  <div class="settings">
    <div id="designs"></div>
    <label><input type="checkbox" data-setting="showUsername"> 사용자 이름 표시</label>
    <label>동시 표시 수 <input type="range" min="5" max="50" data-setting="maxMessages"></label>
    <label>글자 크기 (px) <input type="range" min="10" max="24" data-setting="fontSize"></label>
    <label>메시지 폭 (px) <input type="range" min="200" max="500" data-setting="messageWidth"></label>
    <label>투명도 <input type="range" min="1" max="100" data-setting="opacity"></label>
  </div>
  <script>
    // URL 파라미터 확인 (?obs=1)
    if (new URLSearchParams(window.location.search).has('obs')) {
      document.body.classList.add('obs-mode');
    }
    var DESIGNS = [["topLeft", "왼쪽 위"], ["topRight", "오른쪽 위"], ["bottomLeft", "왼쪽 아래"], ["bottomRight", "오른쪽 아래"], ["bottomBubble", "말풍선"]];
    var lastVersion = -1;
    var overlay = document.getElementById("overlay");

    function postSettings(body) {
      fetch("/api/settings", { method: "POST", headers: { "Content-Type": "application/json" }, body: JSON.stringify(body) });
    }

    DESIGNS.forEach(function(d) {
      var b = document.createElement("button");
      b.textContent = d[1];
      b.dataset.design = d[0];
      b.onclick = function() { postSettings({ design: d[0] }); };
      document.getElementById("designs").appendChild(b);
    });
    document.querySelectorAll("input[type=range]").forEach(function(input) {
      input.oninput = function() {
        var body = {};
        var v = Number(input.value);
        body[input.dataset.setting] = input.dataset.setting === "opacity" ? v / 100 : v;
        postSettings(body);
      };
    });
    document.querySelector("input[type=checkbox]").onchange = function(e) {
      postSettings({ showUsername: e.target.checked });
    };

    function placeContainer(settings) {
      overlay.className = settings.design === "bottomBubble" ? "bubble" : "stack";
      overlay.style.top = overlay.style.bottom = overlay.style.left = overlay.style.right = "";
      if (settings.design === "bottomBubble") return;
      if (settings.design.indexOf("top") === 0) overlay.style.top = "20px"; else overlay.style.bottom = "20px";
      if (/Right$/.test(settings.design)) overlay.style.right = "20px"; else overlay.style.left = "20px";
    }

    function buildNode(node) {
      var L = node.layout;
      var el = document.createElement("div");
      el.className = "msg " + L.kind;
      el.style.background = "rgba(0, 0, 0, " + L.opacity + ")";
      el.style.width = L.widthPx + "px";
      if (L.kind === "bubble") {
        el.style.left = L.xPercent + "%";
        el.style.bottom = L.bottomPx + "px";
      }
      var author = document.createElement("span");
      author.className = "author";
      author.textContent = node.author;
      author.style.fontSize = L.fontSizePx + "px";
      author.style.display = L.showAuthor ? "block" : "none";
      var body = document.createElement("span");
      body.className = "body";
      body.innerHTML = node.bodyHtml;
      body.style.fontSize = L.fontSizePx + "px";
      body.querySelectorAll("img").forEach(function(img) {
        img.style.height = img.style.maxHeight = L.emojiSizePx + "px";
        img.onerror = function() {
          var alt = img.getAttribute("alt");
          if (!alt) return;
          var span = document.createElement("span");
          span.textContent = ":" + alt + ":";
          span.style.opacity = "0.7";
          img.replaceWith(span);
        };
      });
      el.appendChild(author);
      el.appendChild(body);
      return el;
    }

    function render() {
      fetch("/api/state")
        .then(function(res) { return res.json(); })
        .then(function(data) {
          if (!data.settings || data.version === lastVersion) return;
          lastVersion = data.version;
          var s = data.settings;
          placeContainer(s);
          document.querySelectorAll("#designs button").forEach(function(b) {
            b.classList.toggle("active", b.dataset.design === s.design);
          });
          document.querySelectorAll("input[type=range]").forEach(function(input) {
            var v = s[input.dataset.setting];
            input.value = input.dataset.setting === "opacity" ? Math.round(v * 100) : v;
          });
          document.querySelector("input[type=checkbox]").checked = s.showUsername;

          // 앵커에서 멀어지는 방향으로 쌓임: 새 메시지가 앵커 쪽
          var nodes = data.nodes.slice();
          if (nodes.length && nodes[0].layout.grow === "down") nodes.reverse();
          overlay.innerHTML = "";
          nodes.forEach(function(node) { overlay.appendChild(buildNode(node)); });
        })
        .catch(function() {});
    }

    setInterval(render, __POLL_MS__);
    render();
  </script>
</body>
</html>
""".replace("__POLL_MS__", str(STATE_POLL_INTERVAL_MS))


@app.get("/", response_class=HTMLResponse)
def overlay_page():
    """OBS 브라우저 소스에 넣을 URL (?obs=1 이면 설정 패널 숨김). /api/state 를 폴링해 표시."""
    return HTMLResponse(OVERLAY_HTML)
