"""Chat proxy with a canned-response fallback and persisted transcripts.

Without a configured provider every reply is simulated. Provider failures are
answered with a fallback message instead of an error; the exchange is saved
either way.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass

from habitboard.chat.provider import ChatProvider, ChatProviderError
from habitboard.tracker.errors import StorageError, ValidationError
from habitboard.tracker.models import Conversation
from habitboard.tracker.store import Store

logger = logging.getLogger(__name__)

SIMULATED_MODEL = "simulated"

SIMULATED_RESPONSES = [
    "Meow! 🐱 I'm in simulation mode, but still your favourite PiPa. How can I help?",
    "🐾 Hi! I'm only practising right now, but my little cat brain is ready to help.",
    "😸 Perfect! Running in simulated mode with my cat personality fully intact.",
    "🐱 Meow meow! Simulation mode, but my curious cat spirit is here for you.",
    "🐾 I'm in training mode, but my whiskers tell me you need a hand. Here I am!",
    "😻 Hello human! Simulation mode, but my cat heart is eager to help you.",
    "🐱 Simulated purring activated! What adventure are we planning today?",
    "🐾 Practice mode, with all my feline energy to assist you. Meow!",
]

FALLBACK_RESPONSES = {
    "insufficient_quota": (
        "😿 Oops! I've run out of AI credits and my human needs to top up the account. "
        "Until then I'll keep answering in simulated mode. Meow!"
    ),
    "rate_limit_exceeded": (
        "😸 I'm a bit busy right now, too many questions at once. Try again in a moment, meow!"
    ),
}
DEFAULT_FALLBACK = (
    "😿 I had a small technical hiccup, but I'm still here to help. "
    "My simulated mode works perfectly. What can I do for you?"
)


def simulated_response(message: str) -> str:
    return SIMULATED_RESPONSES[len(message) % len(SIMULATED_RESPONSES)]


def estimate_tokens(message: str, response: str) -> int:
    return len(message) // 4 + len(response) // 4


@dataclass(frozen=True, slots=True)
class ChatReply:
    session_id: str
    user_id: str
    response: str
    model: str
    tokens_used: int
    simulated: bool
    saved: bool


class ChatService:
    def __init__(self, store: Store, provider: ChatProvider | None = None):
        self.store = store
        self.provider = provider

    async def reply(
        self,
        text: str,
        session_id: str | None = None,
        user_id: str | None = None,
    ) -> ChatReply:
        if not text or not text.strip():
            raise ValidationError("Message text cannot be empty")
        session = session_id or str(uuid.uuid4())
        user = user_id or "anonymous"

        simulated = self.provider is None
        if self.provider is None:
            response = simulated_response(text)
            tokens = estimate_tokens(text, response)
            model = SIMULATED_MODEL
        else:
            try:
                completion = await self.provider.complete(text)
                response, tokens, model = completion.text, completion.tokens_used, completion.model
            except ChatProviderError as exc:
                logger.warning("Chat provider failed (%s): %s", exc.code, exc)
                response = FALLBACK_RESPONSES.get(exc.code or "", DEFAULT_FALLBACK)
                tokens = estimate_tokens(text, response)
                model = self.provider.model
                simulated = True

        saved = True
        try:
            await self.store.insert_conversation(
                Conversation(
                    session_id=session,
                    user_id=user,
                    message=text,
                    response=response,
                    tokens_used=tokens,
                    model_used=model,
                )
            )
        except StorageError as exc:
            # The reply still goes out; only the transcript is lost
            logger.error("Could not save conversation for session %s: %s", session, exc)
            saved = False

        return ChatReply(
            session_id=session,
            user_id=user,
            response=response,
            model=model,
            tokens_used=tokens,
            simulated=simulated,
            saved=saved,
        )

    async def history(
        self,
        user_id: str | None = None,
        session_id: str | None = None,
        limit: int = 20,
    ) -> list[Conversation]:
        return await self.store.list_conversations(user_id or "anonymous", session_id, limit)
