# AI INSTRUCTION:
# Define a streaming client for the native Gemini API (google-genai).
# It must expose open(model, system, history, parts, params) -> iterator of TextFragment
# and surface grounding (citation) sources separately from text.

from __future__ import annotations
import os
from typing import Iterator, List, Optional

from google import genai
from google.genai import errors, types

from ..errors import ProviderError, classify_status
from ..types import ContentPart, GroundingSource, Message, ModelParams, TextFragment


class NativeStreamClient:
    backend = "native"

    def __init__(self, api_key: Optional[str] = None, client=None, search_tool: bool = True):
        self.client = client or genai.Client(api_key=api_key or os.getenv("GEMINI_API_KEY"))
        self.search_tool = search_tool

    def open(
        self,
        model: str,
        system: str,
        history: List[Message],
        parts: List[ContentPart],
        params: ModelParams,
    ) -> Iterator[TextFragment]:
        contents = self._compose_contents(history, parts)
        config = self._compose_config(system, params)
        try:
            stream = iter(self.client.models.generate_content_stream(model=model, contents=contents, config=config))
            # The SDK only sends the request once the stream is first pulled.
            first = next(stream, None)
        except errors.APIError as e:
            raise self._as_provider_error(e) from e
        return self._fragments(first, stream)

    def _fragments(self, first, stream) -> Iterator[TextFragment]:
        if first is None:
            return
        yield self._to_fragment(first)
        try:
            for chunk in stream:
                yield self._to_fragment(chunk)
        except errors.APIError as e:
            raise self._as_provider_error(e) from e

    def _as_provider_error(self, e: errors.APIError) -> ProviderError:
        code = getattr(e, "code", None)
        message = getattr(e, "message", None) or str(e)
        return ProviderError(classify_status(code, message), message, status=code, backend=self.backend)

    @staticmethod
    def _to_fragment(chunk) -> TextFragment:
        grounding: List[GroundingSource] = []
        candidates = getattr(chunk, "candidates", None) or []
        meta = getattr(candidates[0], "grounding_metadata", None) if candidates else None
        for gc in (getattr(meta, "grounding_chunks", None) or []):
            web = getattr(gc, "web", None)
            if web is not None:
                grounding.append(GroundingSource(uri=web.uri or "", title=web.title or ""))
        return TextFragment(text=getattr(chunk, "text", None) or "", grounding=grounding)

    def _compose_contents(self, history: List[Message], parts: List[ContentPart]) -> List[types.Content]:
        contents = []
        for m in history:
            if not m.content.strip():
                continue
            role = "user" if m.role == "user" else "model"
            contents.append(types.Content(role=role, parts=[types.Part.from_text(text=m.content)]))
        user_parts = []
        for p in parts:
            if p.kind == "image":
                user_parts.append(types.Part.from_bytes(data=p.data, mime_type=p.mime_type))
            else:
                user_parts.append(types.Part.from_text(text=p.text))
        contents.append(types.Content(role="user", parts=user_parts))
        return contents

    def _compose_config(self, system: str, params: ModelParams) -> types.GenerateContentConfig:
        kwargs = {"system_instruction": system}
        if params.temperature is not None:
            kwargs["temperature"] = params.temperature
        if self.search_tool:
            kwargs["tools"] = [types.Tool(google_search=types.GoogleSearch())]
        if params.thinking_budget > 0:
            kwargs["thinking_config"] = types.ThinkingConfig(thinking_budget=params.thinking_budget)
        return types.GenerateContentConfig(**kwargs)
