# lead_orchestration/app.py
"""
FastAPI entrypoint for the lead-capture assistant.

Exposes:
- GET  /health            → liveness text
- POST /chat              → one turn, JSON reply + answers snapshot
- POST /chat_stream       → one turn, delivered as a single SSE event
- POST /tool/log_message  → transcript line reported by the widget
- GET  /                  → landing page (when LANDING_DIR exists)

Run locally with: python -m lead_orchestration.app
"""

from __future__ import annotations

import json
import logging
import os
import uuid

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse, PlainTextResponse, StreamingResponse
from fastapi.staticfiles import StaticFiles

from .agent_core import AgentCore, TurnInput
from .config import log_settings, settings
from .llm_planner import LLMPlanner
from .logging_context import set_conv_id
from .memory_store import MemoryStore
from .models import ChatRequest, ChatResponse, LogMessageRequest
from .sheets_gateway import SheetsGateway, TranscriptEntry
from .validator import FieldValidator

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# App & dependencies wiring
# ---------------------------------------------------------------------------

app = FastAPI(title="Saras Lead Orchestrator", version="1.0.0")

if settings.ALLOW_ORIGIN == "*":
    app.add_middleware(
        CORSMiddleware,
        allow_origin_regex=".*",
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["x-conv-id"],
    )
else:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.ALLOW_ORIGIN],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["x-conv-id"],
    )

# Shared in-process singletons
memory_store = MemoryStore()
planner = LLMPlanner()
field_validator = FieldValidator()
sheets_gateway = SheetsGateway()

agent_core = AgentCore(
    memory_store=memory_store,
    planner=planner,
    validator=field_validator,
    sheets_gateway=sheets_gateway,
)

log_settings(settings)


def _turn_from_request(req: ChatRequest) -> TurnInput:
    return TurnInput(
        conversation_id=req.conv_id or str(uuid.uuid4()),
        messages=req.messages,
        lang=req.lang,
        page=req.page,
        user_agent=req.user_agent,
    )


@app.exception_handler(RequestValidationError)
async def bad_request(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.warning("Malformed request to %s: %s", request.url.path, exc.errors())
    return JSONResponse(status_code=400, content={"error": "bad_request"})


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------

@app.get("/health", response_class=PlainTextResponse)
async def health() -> str:
    return "Server is Running"


@app.post("/chat", response_model=ChatResponse)
async def chat(req: ChatRequest):
    """
    Synchronous turn.

    The widget sends:
    {
      "convId": "optional-conversation-id",
      "messages": [{"role": "user", "content": "Hi"}],
      "lang": "en",
      "page": "/landing",
      "userAgent": "Mozilla/5.0 ..."
    }
    """
    turn = _turn_from_request(req)
    headers = {"x-conv-id": turn.conversation_id}
    try:
        result = await agent_core.handle_turn(turn)
    except Exception:
        logger.exception("chat error")
        return JSONResponse(status_code=500, content={"error": "chat_failed"}, headers=headers)

    body = ChatResponse(
        reply=result.reply,
        conv_id=result.conversation_id,
        answers=result.answers,
        done=result.done,
    )
    return JSONResponse(content=body.model_dump(by_alias=True), headers=headers)


@app.post("/chat_stream")
async def chat_stream(req: ChatRequest):
    """
    Same turn as /chat, delivered as one terminal SSE event:
    ``data: {"reply": "...", "convId": "..."}``
    """
    turn = _turn_from_request(req)
    headers = {"x-conv-id": turn.conversation_id}
    try:
        result = await agent_core.handle_turn(turn)
    except Exception:
        logger.exception("chat_stream error")
        return JSONResponse(status_code=500, content={"error": "chat_failed"}, headers=headers)

    payload = json.dumps({"reply": result.reply, "convId": result.conversation_id}, ensure_ascii=False)

    async def events():
        yield f"data: {payload}\n\n"

    headers.update({"Cache-Control": "no-cache, no-transform", "Connection": "keep-alive"})
    return StreamingResponse(events(), media_type="text/event-stream", headers=headers)


@app.post("/tool/log_message")
async def log_message(req: LogMessageRequest) -> JSONResponse:
    set_conv_id(req.conversation_id)
    entry = TranscriptEntry(
        conversation_id=req.conversation_id,
        role=req.role,
        message=req.text,
        phone=req.phone,
        latency_ms=None if req.latency_ms is None else int(req.latency_ms),
        page=req.page,
        user_agent=req.user_agent,
        lang=req.lang,
    )
    try:
        await sheets_gateway.append_chat_log(entry)
    except Exception:
        logger.exception("log_message error")
        return JSONResponse(status_code=500, content={"ok": False})
    return JSONResponse(content={"ok": True})


# Landing page last so the API routes above take precedence.
if os.path.isdir(settings.LANDING_DIR):

    @app.get("/", include_in_schema=False)
    async def landing() -> FileResponse:
        return FileResponse(os.path.join(settings.LANDING_DIR, "landing.html"))

    app.mount("/", StaticFiles(directory=settings.LANDING_DIR), name="landing")


# For local dev convenience:
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "lead_orchestration.app:app",
        host="0.0.0.0",
        port=settings.PORT,
    )
