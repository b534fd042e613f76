# AI INSTRUCTION:
# Client for the key-less "instant" completion service.
# One POST {"message": payload} -> {"status": "success", "response": "..."}; no streaming on the wire.

from __future__ import annotations
import logging
import os

import requests

from ..errors import ErrorKind, ProviderError, classify_status

logger = logging.getLogger(__name__)

FREE_LLM_URL = os.getenv("FREE_LLM_URL", "https://apifreellm.com/api/chat")


class FreeCompletionClient:
    backend = "instant"

    def __init__(self, url: str = FREE_LLM_URL, timeout: float = 60):
        self.url = url
        self.timeout = timeout

    def complete(self, payload: str) -> str:
        resp = requests.post(self.url, json={"message": payload}, timeout=self.timeout)
        if not resp.ok:
            raise ProviderError(
                classify_status(resp.status_code),
                f"HTTP Error: {resp.status_code}",
                status=resp.status_code,
                backend=self.backend,
            )
        data = resp.json()
        if data.get("status") != "success":
            message = data.get("error") or "API returned error status"
            # The service asks callers to wait between requests instead of sending a 429.
            lowered = message.lower()
            kind = ErrorKind.RATE_LIMITED if "rate limit" in lowered or "wait" in lowered else ErrorKind.OTHER
            logger.warning("Instant completion failed: %s", message)
            raise ProviderError(kind, message, backend=self.backend)
        return data.get("response") or ""
