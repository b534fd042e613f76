# AI INSTRUCTION:
# Define a streaming client for OpenAI-compatible chat completions (OpenRouter style).
# It should follow the same interface as NativeStreamClient.
# Wire format: POST {model, messages, stream: true, temperature}; SSE lines "data: {...}" / "data: [DONE]".

from __future__ import annotations
import base64
import json
import logging
import os
from typing import Any, Dict, Iterable, Iterator, List, Optional

import requests

from ..errors import ErrorKind, ProviderError, classify_status
from ..types import ContentPart, Message, ModelParams, TextFragment

logger = logging.getLogger(__name__)

OPENROUTER_URL = os.getenv("OPENROUTER_URL", "https://openrouter.ai/api/v1/chat/completions")
VISION_HINTS = ("vision", "gemini", "claude", "gpt-4")
DONE = object()


def parse_sse_line(line: str) -> Any:
    """Return the delta text of one SSE line, DONE for the end marker, or None to skip it."""
    line = line.strip()
    if not line.startswith("data: "):
        return None
    data = line[len("data: "):]
    if data == "[DONE]":
        return DONE
    try:
        obj = json.loads(data)
    except json.JSONDecodeError:
        logger.warning("Skipping undecodable stream line: %s", data[:200])
        return None
    try:
        return obj["choices"][0]["delta"].get("content") or None
    except (KeyError, IndexError, TypeError, AttributeError):
        return None


def iter_sse_text(lines: Iterable[Any]) -> Iterator[str]:
    for raw in lines:
        if not raw:
            continue
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8", errors="replace")
        delta = parse_sse_line(raw)
        if delta is DONE:
            return
        if delta:
            yield delta


class CompatStreamClient:
    backend = "secondary"

    def __init__(self, api_key: Optional[str] = None, url: str = OPENROUTER_URL, timeout: float = 180, title: str = "Bubble AI"):
        self.api_key = api_key or os.getenv("OPENROUTER_API_KEY")
        self.url = url
        self.timeout = timeout
        self.title = title

    def open(
        self,
        model: str,
        system: str,
        history: List[Message],
        parts: List[ContentPart],
        params: ModelParams,
    ) -> Iterator[TextFragment]:
        if not self.api_key:
            raise ProviderError(ErrorKind.OTHER, "OpenRouter API key not found.", status=401, backend=self.backend)
        messages = self._compose_messages(model, system, history, parts)
        payload = {
            "model": model,
            "messages": messages,
            "stream": True,
            "temperature": params.temperature if params.temperature is not None else 0.7,
        }
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "X-Title": self.title,
        }
        resp = requests.post(self.url, json=payload, headers=headers, stream=True, timeout=self.timeout)
        if not resp.ok:
            message = self._error_message(resp)
            resp.close()
            raise ProviderError(classify_status(resp.status_code, message), message, status=resp.status_code, backend=self.backend)
        return self._fragments(resp)

    def _fragments(self, resp: requests.Response) -> Iterator[TextFragment]:
        try:
            for text in iter_sse_text(resp.iter_lines()):
                yield TextFragment(text=text)
        finally:
            resp.close()

    @staticmethod
    def _error_message(resp: requests.Response) -> str:
        body = resp.text
        try:
            err = resp.json().get("error") or {}
            detail = err.get("message") if isinstance(err, dict) else str(err)
        except ValueError:
            detail = None
        return f"OpenRouter Error {resp.status_code}: {detail or body}"

    def _compose_messages(self, model: str, system: str, history: List[Message], parts: List[ContentPart]) -> List[Dict[str, Any]]:
        messages: List[Dict[str, Any]] = [{"role": "system", "content": system}]
        for m in history:
            messages.append({"role": "user" if m.role == "user" else "assistant", "content": m.content})

        content: List[Dict[str, Any]] = []
        has_image = False
        for p in parts:
            if p.kind == "image":
                has_image = True
                b64 = base64.b64encode(p.data).decode("ascii")
                content.append({"type": "image_url", "image_url": {"url": f"data:{p.mime_type};base64,{b64}"}})
            else:
                content.append({"type": "text", "text": p.text})

        if has_image and not any(h in model.lower() for h in VISION_HINTS):
            raise ProviderError(
                ErrorKind.OTHER,
                "The selected model does not support image inputs.",
                status=None,
                backend=self.backend,
            )
        messages.append({"role": "user", "content": content})
        return messages
