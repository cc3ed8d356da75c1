"""Tests for the chat proxy — provider, fallback modes and transcripts."""

from __future__ import annotations

import httpx
import pytest

from habitboard.chat.provider import ChatProvider, ChatProviderError, is_configured
from habitboard.chat.service import (
    DEFAULT_FALLBACK,
    FALLBACK_RESPONSES,
    SIMULATED_MODEL,
    SIMULATED_RESPONSES,
    ChatService,
)
from habitboard.tracker.errors import ValidationError


def _provider(handler) -> ChatProvider:
    return ChatProvider(api_key="sk-test", transport=httpx.MockTransport(handler))


def _ok(request: httpx.Request) -> httpx.Response:
    assert request.headers["Authorization"] == "Bearer sk-test"
    return httpx.Response(
        200,
        json={
            "model": "gpt-3.5-turbo-0125",
            "choices": [{"message": {"role": "assistant", "content": "Purr. Keep going!"}}],
            "usage": {"total_tokens": 42},
        },
    )


def _error(code: str):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(429, json={"error": {"code": code, "message": "nope"}})
    return handler


class TestProvider:
    @pytest.mark.asyncio
    async def test_completion(self):
        completion = await _provider(_ok).complete("hello")
        assert completion.text == "Purr. Keep going!"
        assert completion.tokens_used == 42
        assert completion.model == "gpt-3.5-turbo-0125"

    @pytest.mark.asyncio
    async def test_error_code_surfaces(self):
        with pytest.raises(ChatProviderError) as exc_info:
            await _provider(_error("rate_limit_exceeded")).complete("hello")
        assert exc_info.value.code == "rate_limit_exceeded"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "payload",
        [
            {"content": b"<html>gateway</html>"},
            {"json": {"choices": [{"role": "assistant"}]}},
            {"json": {"choices": [{"message": None}]}},
            {"json": ["not", "an", "object"]},
        ],
    )
    async def test_malformed_success_body(self, payload):
        provider = _provider(lambda request: httpx.Response(200, **payload))
        with pytest.raises(ChatProviderError) as exc_info:
            await provider.complete("hello")
        assert exc_info.value.code == "malformed_response"

    @pytest.mark.asyncio
    async def test_string_error_field_has_no_code(self):
        provider = _provider(lambda request: httpx.Response(500, json={"error": "upstream down"}))
        with pytest.raises(ChatProviderError) as exc_info:
            await provider.complete("hello")
        assert exc_info.value.code is None

    def test_placeholder_keys_not_configured(self):
        assert not is_configured(None)
        assert not is_configured("tu_api_key_aqui")
        assert is_configured("sk-real")


class TestChatService:
    @pytest.mark.asyncio
    async def test_simulated_without_provider(self, store):
        reply = await ChatService(store).reply("hello")
        assert reply.simulated is True
        assert reply.model == SIMULATED_MODEL
        assert reply.response == SIMULATED_RESPONSES[len("hello") % len(SIMULATED_RESPONSES)]
        assert reply.user_id == "anonymous"
        assert reply.session_id  # generated
        assert store.conversations[0].message == "hello"

    @pytest.mark.asyncio
    async def test_real_reply_persisted(self, store):
        reply = await ChatService(store, _provider(_ok)).reply("hello", session_id="s1", user_id="me")
        assert reply.simulated is False
        assert reply.tokens_used == 42
        [saved] = store.conversations
        assert (saved.session_id, saved.user_id, saved.response) == ("s1", "me", "Purr. Keep going!")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("code", ["insufficient_quota", "rate_limit_exceeded"])
    async def test_known_error_fallbacks(self, store, code):
        reply = await ChatService(store, _provider(_error(code))).reply("hello")
        assert reply.response == FALLBACK_RESPONSES[code]
        assert reply.simulated is True

    @pytest.mark.asyncio
    async def test_unknown_error_fallback(self, store):
        reply = await ChatService(store, _provider(_error("server_error"))).reply("hello")
        assert reply.response == DEFAULT_FALLBACK

    @pytest.mark.asyncio
    async def test_gateway_page_falls_back(self, store):
        provider = _provider(lambda request: httpx.Response(200, content=b"<html>gateway</html>"))
        reply = await ChatService(store, provider).reply("hello")
        assert reply.response == DEFAULT_FALLBACK
        assert reply.simulated is True

    @pytest.mark.asyncio
    async def test_empty_text_rejected(self, store):
        with pytest.raises(ValidationError):
            await ChatService(store).reply("   ")
        assert store.conversations == []

    @pytest.mark.asyncio
    async def test_persist_failure_still_replies(self, store):
        store.fail_on.add("insert_conversation")
        reply = await ChatService(store).reply("hello")
        assert reply.saved is False
        assert reply.response

    @pytest.mark.asyncio
    async def test_history_by_session(self, store):
        service = ChatService(store)
        await service.reply("one", session_id="a")
        await service.reply("two", session_id="b")
        await service.reply("three", session_id="a")

        history = await service.history(session_id="a")
        assert [c.message for c in history] == ["one", "three"]


class TestChatEndpoints:
    @pytest.mark.asyncio
    async def test_post_and_history(self, client):
        resp = await client.post("/chat", json={"text": "hi there", "session_id": "s9"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["session_id"] == "s9"
        assert body["character_count"] == 8

        history = (await client.get("/chat/history?session_id=s9")).json()
        assert history["total"] == 1
        assert history["conversations"][0]["message"] == "hi there"

    @pytest.mark.asyncio
    async def test_empty_text_422(self, client):
        resp = await client.post("/chat", json={"text": ""})
        assert resp.status_code == 422
