"""Chat endpoints — proxy to the language model and transcript history."""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from habitboard.auth import verify_api_key
from habitboard.chat.provider import ChatProvider, is_configured
from habitboard.chat.service import ChatService
from habitboard.config import settings
from habitboard.db import get_store
from habitboard.tracker.store import Store

router = APIRouter(prefix="/chat", tags=["chat"])


class ChatRequest(BaseModel):
    text: str
    session_id: str | None = None
    user_id: str | None = None


def get_provider() -> ChatProvider | None:
    if not is_configured(settings.openai_api_key):
        return None
    return ChatProvider(
        api_key=settings.openai_api_key,
        base_url=settings.openai_base_url,
        model=settings.openai_model,
        max_tokens=settings.chat_max_tokens,
        temperature=settings.chat_temperature,
        timeout=settings.chat_timeout_seconds,
    )


def get_chat_service(
    store: Store = Depends(get_store),
    provider: ChatProvider | None = Depends(get_provider),
) -> ChatService:
    return ChatService(store, provider)


@router.post("")
async def chat(
    body: ChatRequest,
    service: ChatService = Depends(get_chat_service),
    _: str = Depends(verify_api_key),
) -> dict:
    reply = await service.reply(body.text, body.session_id, body.user_id)
    return {
        "received_text": body.text,
        "response": reply.response,
        "session_id": reply.session_id,
        "user_id": reply.user_id,
        "model": reply.model,
        "tokens_used": reply.tokens_used,
        "simulated": reply.simulated,
        "saved": reply.saved,
        "character_count": len(body.text),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/history")
async def history(
    service: ChatService = Depends(get_chat_service),
    _: str = Depends(verify_api_key),
    session_id: str | None = Query(default=None),
    user_id: str = Query(default="anonymous"),
    limit: int = Query(default=20, ge=1, le=200),
) -> dict:
    conversations = await service.history(user_id, session_id, limit)
    return {
        "conversations": [c.model_dump(mode="json") for c in conversations],
        "total": len(conversations),
        "session_id": session_id,
        "user_id": user_id,
    }
