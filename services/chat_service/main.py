"""
Chat Service -- HTTP front end for the cost-optimized assistant.

Endpoints:
  POST   /chat                     one conversational turn for a user
  POST   /ask                      single-turn question, no history
  GET    /stats                    service + engine usage counters
  DELETE /cache                    drop every cached response
  DELETE /conversations/{user_id}  forget one user's history
  GET    /health, /metrics
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from decimal import Decimal

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from chat_core.conversation import ConversationBuffer, RateLimiter
from chat_core.llm_adapter import (
    ChatOptions,
    CostOptimizedEngine,
    InvalidInput,
    UpstreamError,
    build_engine,
)
from chat_core.logging.logger import setup_logging
from chat_core.observability.metrics import metrics_response
from services.chat_service.assistant import AssistantStats, ChatAssistant, ReplyStatus
from services.chat_service.config import ChatServiceConfig

SERVICE_NAME = "chat_service"
engine: CostOptimizedEngine | None = None
assistant: ChatAssistant | None = None


@asynccontextmanager
async def lifespan(application: FastAPI):
    global engine, assistant
    cfg = ChatServiceConfig.from_env()
    logger = setup_logging(SERVICE_NAME, cfg.log_level)

    engine = build_engine(
        provider_name=cfg.llm_provider,
        api_key=cfg.llm_api_key,
        base_url=cfg.llm_base_url,
        request_timeout=cfg.request_timeout,
        redis_url=cfg.redis_url,
        config=cfg.engine_config(),
    )
    await engine.start()

    assistant = ChatAssistant(
        engine=engine,
        buffer=ConversationBuffer(cfg.max_history_turns, cfg.max_tracked_users),
        limiter=RateLimiter(cfg.rate_limit_ms),
        system_prompt=cfg.system_prompt,
    )
    logger.info(
        "Chat service ready",
        extra={"_extra": {"provider": cfg.llm_provider, "cache": engine.cache_enabled}},
    )

    yield

    logger.info("Shutting down")
    if engine:
        await engine.close()
    engine = None
    assistant = None


app = FastAPI(
    title="Chat Service",
    version="0.1.0",
    description="Cost-optimized LLM chat with complexity routing and response caching",
    lifespan=lifespan,
)


def _get_assistant() -> ChatAssistant:
    if assistant is None:
        raise HTTPException(status_code=503, detail="Assistant not initialized")
    return assistant


# ---------------------------------------------------------------------------
# Health & metrics
# ---------------------------------------------------------------------------

@app.get("/health")
async def health():
    return {
        "status": "ok",
        "service": SERVICE_NAME,
        "cache_enabled": bool(engine and engine.cache_enabled),
    }


@app.get("/metrics")
async def metrics():
    return metrics_response()


# ---------------------------------------------------------------------------
# Chat endpoints
# ---------------------------------------------------------------------------

class ChatRequest(BaseModel):
    user_id: str = Field(min_length=1)
    content: str


class ChatResponse(BaseModel):
    status: ReplyStatus
    reply: str
    model_used: str | None = None
    cost: Decimal | None = None
    served_from_cache: bool = False


@app.post("/chat", response_model=ChatResponse)
async def chat(body: ChatRequest):
    reply = await _get_assistant().handle_message(body.user_id, body.content)
    if reply.status is ReplyStatus.RATE_LIMITED:
        raise HTTPException(status_code=429, detail="Too many messages, slow down")
    if reply.status is ReplyStatus.EMPTY:
        raise HTTPException(status_code=422, detail="Message is empty")

    envelope = reply.envelope
    return ChatResponse(
        status=reply.status,
        reply=reply.text,
        model_used=envelope.model_used if envelope else None,
        cost=envelope.cost if envelope else None,
        served_from_cache=envelope.served_from_cache if envelope else False,
    )


class AskRequest(BaseModel):
    question: str = Field(min_length=1)
    model: str | None = None
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    max_tokens: int = Field(default=1000, ge=1)
    use_cache: bool = True


@app.post("/ask")
async def ask(body: AskRequest):
    current = _get_assistant()
    options = ChatOptions(
        model=body.model,
        temperature=body.temperature,
        max_tokens=body.max_tokens,
        use_cache=body.use_cache,
    )
    try:
        envelope = await current.engine.chat(
            [{"role": "user", "content": body.question}], options
        )
    except InvalidInput as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    except UpstreamError as exc:
        raise HTTPException(status_code=502, detail=str(exc))
    return envelope


@app.get("/stats", response_model=AssistantStats)
async def stats():
    return _get_assistant().stats()


@app.delete("/cache")
async def clear_cache():
    cleared = await _get_assistant().engine.clear_cache()
    return {"cleared": cleared}


@app.delete("/conversations/{user_id}")
async def reset_conversation(user_id: str):
    _get_assistant().reset_conversation(user_id)
    return {"status": "reset", "user_id": user_id}
