# AI INSTRUCTION:
# Instant (guest) mode: one request to the key-less completion service, no loop, no tags,
# no memory or search. The reply arrives whole and is replayed to the caller in small chunks
# so the chat surface streams the same way as the other backends.

from __future__ import annotations
import logging
from typing import Iterable, List, Protocol

from bubble.generate.attachments import inline_prompt
from bubble.generate.prompts import build_system_prompt, conversation_payload, load_persona
from bubble.generate.types import AgentResult, GenerationRequest, Message, OutputMessage

logger = logging.getLogger(__name__)


class CompletionClient(Protocol):
    def complete(self, payload: str) -> str:
        ...


def trim_dangling_user(history: Iterable[Message]) -> List[Message]:
    """History without a trailing user turn (that turn is the prompt being answered)."""
    items = list(history)
    if items and items[-1].role == "user":
        items = items[:-1]
    return items


class InstantResponder:
    def __init__(self, client: CompletionClient, persona_key: str = "bubble-instant", chunk_size: int = 4, delay: float = 0.015):
        self.client = client
        persona = load_persona(persona_key)
        self.system = build_system_prompt(persona.name, persona.style, persona.directives)
        self.chunk_size = chunk_size
        self.delay = delay

    def run(self, request: GenerationRequest) -> AgentResult:
        messages = trim_dangling_user(request.history)
        messages.append(Message("user", inline_prompt(request.prompt, request.attachments)))

        request.token.raise_if_cancelled()
        logger.info("Instant completion for chat %s", request.chat_id)
        text = self.client.complete(conversation_payload(self.system, messages))

        sent: List[str] = []
        for i in range(0, len(text), self.chunk_size):
            if request.token.cancelled:
                break
            piece = text[i:i + self.chunk_size]
            request.emit(piece)
            sent.append(piece)
            if self.delay and request.token.wait(self.delay):
                break

        final = "".join(sent) if request.token.cancelled else text
        message = OutputMessage(project_id=request.project_id, chat_id=request.chat_id, text=final)
        return AgentResult(messages=[message])
