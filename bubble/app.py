# ============================================================
# Bubble Orchestrator FastAPI App
# ------------------------------------------------------------
# This app wires everything together:
#   - Native (Gemini) and secondary (OpenRouter) stream clients
#   - Web search augmentation + memory + canvas handoff
#   - Echo client when no provider key is configured
#   - Instant (guest) mode over a key-less completion service
# ============================================================

import base64
import binascii
import logging
import queue
import threading
from functools import lru_cache
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import StreamingResponse
from pydantic import BaseModel

# --- Local imports ---
from bubble.settings import settings
from bubble.agent import CanvasAgent, InMemoryMessageStore, InstantResponder, Orchestrator, StaticMemory, parse_directives
from bubble.generate import (
    Attachment,
    CancellationToken,
    EchoStreamClient,
    GenerationRequest,
    Message,
    RetryPolicy,
    StreamAdapter,
)
from bubble.generate.clients.free_client import FreeCompletionClient
from bubble.generate.config import load_config
from bubble.search import SearchAugmenter, WebSearchClient

logging.basicConfig(level=settings.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger("bubble.app")

store = InMemoryMessageStore()

# /chat/stream checks for a client disconnect at least this often.
POLL_SECONDS = 0.25
PENDING = object()


# ------------------------------------------------------------
# 🔧 Orchestrator wiring
# ------------------------------------------------------------
@lru_cache(maxsize=1)
def get_orchestrator() -> Orchestrator:
    cfg = load_config()
    if settings.GEMINI_API_KEY:
        from bubble.generate.clients.native_client import NativeStreamClient
        native = NativeStreamClient(api_key=settings.GEMINI_API_KEY)
    else:
        logger.warning("GEMINI_API_KEY not set; using the echo client for the native backend")
        native = EchoStreamClient()

    secondary = None
    if settings.OPENROUTER_API_KEY:
        from bubble.generate.clients.compat_client import CompatStreamClient
        secondary = CompatStreamClient(api_key=settings.OPENROUTER_API_KEY, url=settings.OPENROUTER_URL)

    r_cfg = cfg["retry"]
    retry = RetryPolicy(
        fallback_model=cfg["fallback_model"],
        max_rate_retries=r_cfg["max_rate_retries"],
        base_delay=r_cfg["base_delay"],
        delay_offset=r_cfg["delay_offset"],
    )
    adapter = StreamAdapter(native=native, secondary=secondary, retry=retry)

    instant = InstantResponder(FreeCompletionClient(url=settings.FREE_LLM_URL))

    search_client = WebSearchClient(url=settings.SEARCH_API_URL, api_key=settings.SEARCH_API_KEY) if settings.SEARCH_API_URL else None

    orchestrator = Orchestrator(
        adapter=adapter,
        search=SearchAugmenter(search_client, result_count=cfg["search"]["result_count"]),
        memory=StaticMemory.from_yaml(settings.MEMORY_PATH),
        store=store,
        instant=instant,
        config=cfg,
        default_model=settings.DEFAULT_MODEL,
        deep_model=settings.DEEP_MODEL,
    )
    orchestrator.canvas = CanvasAgent(adapter, planner=orchestrator.plan)
    return orchestrator


# ------------------------------------------------------------
# 🚀 FastAPI init
# ------------------------------------------------------------
app = FastAPI(title="Bubble Orchestrator API", version="0.3")


# ------------------------------------------------------------
# 📦 Pydantic models
# ------------------------------------------------------------
class ChatTurn(BaseModel):
    role: str
    content: str


class AttachmentIn(BaseModel):
    name: str
    mime_type: str
    data: str  # base64


class ChatRequest(BaseModel):
    message: str
    history: Optional[List[ChatTurn]] = None
    attachments: Optional[List[AttachmentIn]] = None
    model: Optional[str] = None
    mode: str = "standard"
    thinking_budget: int = 0
    project_id: str = "autonomous-project"
    chat_id: str = "default"


class ChatPayload(BaseModel):
    text: str
    clean_text: str
    metadata: Dict[str, Any]
    messages: List[Dict[str, Any]]


def _decode(att: AttachmentIn) -> Attachment:
    try:
        data = base64.b64decode(att.data, validate=True)
    except (binascii.Error, ValueError):
        logger.warning("Attachment %s is not valid base64", att.name)
        data = b""
    return Attachment(data=data, mime_type=att.mime_type, name=att.name)


def to_generation_request(req: ChatRequest, token: CancellationToken, on_chunk=None) -> GenerationRequest:
    return GenerationRequest(
        prompt=req.message,
        attachments=tuple(_decode(a) for a in (req.attachments or [])),
        history=tuple(Message(role=h.role, content=h.content) for h in (req.history or [])),
        model=req.model or "",
        thinking_budget=req.thinking_budget,
        mode=req.mode,
        project_id=req.project_id,
        chat_id=req.chat_id,
        token=token,
        on_chunk=on_chunk,
    )


# ------------------------------------------------------------
# 💬 Chat routes
# ------------------------------------------------------------
@app.post("/chat", response_model=ChatPayload)
def chat(req: ChatRequest, orchestrator: Orchestrator = Depends(get_orchestrator)):
    try:
        result = orchestrator.run(to_generation_request(req, CancellationToken()))
    except Exception as e:
        logger.exception("Chat request failed")
        raise HTTPException(status_code=500, detail="Chat request failed") from e
    last = result.messages[-1]
    return ChatPayload(
        text=last.text,
        clean_text=parse_directives(last.text).clean_text,
        metadata=last.metadata or {},
        messages=[m.to_dict() for m in result.messages],
    )


@app.post("/chat/stream")
async def chat_stream(req: ChatRequest, http: Request, orchestrator: Orchestrator = Depends(get_orchestrator)):
    token = CancellationToken()
    chunks: "queue.Queue[Optional[str]]" = queue.Queue()
    request = to_generation_request(req, token, on_chunk=chunks.put)

    def worker():
        try:
            orchestrator.run(request)
        finally:
            chunks.put(None)

    threading.Thread(target=worker, daemon=True).start()

    def next_chunk():
        try:
            return chunks.get(timeout=POLL_SECONDS)
        except queue.Empty:
            return PENDING

    async def body():
        try:
            while True:
                if await http.is_disconnected():
                    logger.info("Client disconnected from chat %s; cancelling", req.chat_id)
                    return
                item = await run_in_threadpool(next_chunk)
                if item is PENDING:
                    continue
                if item is None:
                    return
                yield item
        finally:
            # Disconnect, task cancellation or a finished run: stop the session either way.
            token.cancel()

    return StreamingResponse(body(), media_type="text/plain; charset=utf-8")


@app.get("/chats/{chat_id}/messages")
def chat_messages(chat_id: str):
    return {"chat_id": chat_id, "messages": [m.to_dict() for m in store.messages(chat_id)]}


# ------------------------------------------------------------
# 🧭 Health checks
# ------------------------------------------------------------
@app.get("/healthz")
def healthz():
    return {
        "ok": True,
        "env": settings.ENV,
        "debug": settings.DEBUG,
        "app": settings.app_name,
    }


@app.get("/health")
def health():
    return {"status": "ok", "env": settings.ENV}


@app.get("/")
def hello():
    return {"message": "Bubble orchestrator running."}
