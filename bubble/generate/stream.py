# AI INSTRUCTION:
# One streaming interface over both backends.
# - native opens go through the RetryPolicy
# - every fragment is forwarded to the chunk sink once, in order, before the next is pulled
# - cancellation ends the stream quietly (session.cancelled), it is not an error

from __future__ import annotations
from typing import Iterator, List, Optional, Protocol

from .cancel import CancellationToken
from .retry import RetryPolicy
from .types import Backend, ChunkSink, ContentPart, Message, ModelParams, ProviderSession, TextFragment


class StreamClient(Protocol):
    def open(
        self,
        model: str,
        system: str,
        history: List[Message],
        parts: List[ContentPart],
        params: ModelParams,
    ) -> Iterator[TextFragment]:
        ...


class StreamAdapter:
    def __init__(self, native: Optional[StreamClient] = None, secondary: Optional[StreamClient] = None, retry: Optional[RetryPolicy] = None):
        self.native = native
        self.secondary = secondary
        self.retry = retry or RetryPolicy()

    def has(self, backend: Backend) -> bool:
        return self._client(backend) is not None

    def _client(self, backend: Backend) -> Optional[StreamClient]:
        return self.native if backend is Backend.NATIVE else self.secondary

    def stream(
        self,
        session: ProviderSession,
        system: str,
        history: List[Message],
        parts: List[ContentPart],
        params: ModelParams,
        token: CancellationToken,
        on_chunk: Optional[ChunkSink] = None,
    ) -> Iterator[str]:
        client = self._client(session.backend)
        if client is None:
            raise RuntimeError(f"No client configured for the {session.backend.value} backend")

        def emit(text: str) -> None:
            if on_chunk and text:
                on_chunk(text)

        def open_fn(model: str) -> Iterator[TextFragment]:
            return client.open(model, system, history, parts, params)

        token.raise_if_cancelled()
        if session.backend is Backend.NATIVE:
            fragments = self.retry.call(open_fn, session, token, notify=emit)
        else:
            fragments = open_fn(session.model)

        try:
            for frag in fragments:
                if token.cancelled:
                    session.cancelled = True
                    return
                session.grounding.extend(frag.grounding)
                if not frag.text:
                    continue
                emit(frag.text)
                session.buffer.append(frag.text)
                yield frag.text
        finally:
            close = getattr(fragments, "close", None)
            if close is not None:
                close()
