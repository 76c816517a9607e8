"""API router: health, index status, search, chat streaming, cancel."""

from __future__ import annotations

import json
import logging
import queue
import time
from dataclasses import asdict
from typing import Literal

from fastapi import APIRouter, HTTPException
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field

from designseek import config
from designseek.agent.chat import ChatService, ChatTurn
from designseek.api.generation_manager import TERMINAL_EVENTS, GenerationManager
from designseek.enrichment import EnrichmentPolicy, build_index_context, decide_enrichment
from designseek.index.cache import IndexCache, default_index_cache
from designseek.index.search import FigmaIndexSearcher
from designseek.streaming import cancel_stream_controller

logger = logging.getLogger(__name__)

router = APIRouter()
_generation_manager = GenerationManager()

# Lazy-initialized chat service (needs an API key)
_chat_service: ChatService | None = None


def _get_index_cache() -> IndexCache:
    return default_index_cache()


def _get_searcher() -> FigmaIndexSearcher:
    return FigmaIndexSearcher(_get_index_cache())


def _get_chat_service() -> ChatService | None:
    global _chat_service
    if _chat_service is None:
        if not config.GEMINI_API_KEY:
            return None
        from designseek.agent.provider import GeminiProvider

        logger.info("Initializing chat service (model=%s)", config.GEMINI_MODEL)
        _chat_service = ChatService(_get_searcher(), GeminiProvider())
    return _chat_service


def _sse(event: dict) -> str:
    return f"data: {json.dumps(event)}\n\n"


# ── Health ──


@router.get("/health")
def health():
    return {"status": "ok"}


# ── Index ──


@router.get("/index/status")
def index_status():
    """Build state of the index; counts only once it is built."""
    cache = _get_index_cache()
    state = cache.state
    status: dict = {"state": state, "index_dir": str(config.FIGMA_INDEX_DIR)}
    if state == "built":
        data = cache.get()
        status["nodes"] = len(data.nodes)
        status["tokens"] = len(data.token_map)
        kinds: dict[str, int] = {}
        for node in data.nodes:
            kinds[node.kind] = kinds.get(node.kind, 0) + 1
        status["kinds"] = kinds
    return status


# ── Search ──


class SearchRequest(BaseModel):
    query: str
    platform: Literal["native", "web", "both"] | None = None
    source: Literal["library", "master", "both"] | None = None
    limit: int = Field(10, ge=1, le=100)


@router.post("/search")
def search(req: SearchRequest):
    """Search the design-system index. Also reports the enrichment decision."""
    logger.info("POST /search query=%r platform=%s source=%s", req.query[:120], req.platform, req.source)
    t0 = time.perf_counter()
    outcome = _get_searcher().search(
        req.query, platform=req.platform, source=req.source, limit=req.limit,
    )
    decision = decide_enrichment(outcome, EnrichmentPolicy.from_config())
    logger.info("Search complete: %d match(es), %.2fs", len(outcome.matches), time.perf_counter() - t0)
    return {
        **outcome.to_dict(),
        "summary": build_index_context(outcome, decision, config.PROMPT_MATCH_LIMIT),
        "enrichment": asdict(decision),
    }


# ── Chat ──


class ChatTurnModel(BaseModel):
    role: Literal["user", "assistant"]
    text: str


class ChatRequest(BaseModel):
    message: str = Field(max_length=10000)
    history: list[ChatTurnModel] = Field(default_factory=list)


class CancelRequest(BaseModel):
    stream_id: str = Field(min_length=1)


@router.post("/chat")
def chat(req: ChatRequest):
    """Stream an assistant reply as SSE.

    Events: ``stream`` (carries the stream id for cancellation), ``context``
    (index matches and enrichment), ``delta`` text chunks, then exactly one of
    ``done``, ``cancelled`` or ``error``.
    """
    if not req.message.strip():
        raise HTTPException(status_code=400, detail="Message must not be empty")
    service = _get_chat_service()
    if service is None:
        raise HTTPException(status_code=503, detail="GEMINI_API_KEY not configured")

    logger.info("POST /chat message=%r (%d history turn(s))", req.message[:120], len(req.history))
    context = service.prepare(req.message)
    history = [ChatTurn(role=t.role, text=t.text) for t in req.history]

    stream_id = _generation_manager.start(
        lambda token: service.generate(context, history, cancel_token=token),
    )
    sub_queue = _generation_manager.subscribe(stream_id)
    if sub_queue is None:
        raise HTTPException(status_code=500, detail="Generation stream vanished")

    def event_generator():
        try:
            yield _sse({"type": "stream", "stream_id": stream_id})
            yield _sse({
                "type": "context",
                "matches": [m.to_dict() for m in context.outcome.matches] if context.outcome else [],
                "enrichment": asdict(context.decision),
            })
            while True:
                try:
                    event = sub_queue.get(timeout=30)
                except queue.Empty:
                    yield ": keepalive\n\n"
                    continue
                yield _sse(event)
                if event["type"] in TERMINAL_EVENTS:
                    break
        finally:
            _generation_manager.release(stream_id)

    return StreamingResponse(
        event_generator(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )


@router.post("/chat/cancel")
def cancel_chat(req: CancelRequest):
    """Cancel an in-flight generation. ``cancelled`` is false for unknown ids."""
    cancelled = cancel_stream_controller(req.stream_id)
    logger.info("POST /chat/cancel stream_id=%s cancelled=%s", req.stream_id, cancelled)
    return {"cancelled": cancelled}
