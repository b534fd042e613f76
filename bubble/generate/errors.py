# AI INSTRUCTION:
# Structured provider errors + the mapping to text a user is allowed to see.

from __future__ import annotations
from enum import Enum
from typing import Optional

import requests


class ErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    RATE_LIMITED = "rate_limited"
    OTHER = "other"


class ProviderError(Exception):
    """A failed backend call, already classified for the retry policy."""

    def __init__(self, kind: ErrorKind, message: str, status: Optional[int] = None, backend: str = ""):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.status = status
        self.backend = backend


_NOT_FOUND_HINTS = ("not found", "Requested entity was not found")
_RATE_HINTS = ("429", "quota", "RESOURCE_EXHAUSTED")


def classify_status(status: Optional[int], message: str = "") -> ErrorKind:
    """Map an HTTP status and/or provider message to an ErrorKind."""
    message = message or ""
    if status in (404, 400) or any(h in message for h in _NOT_FOUND_HINTS) or "404" in message:
        return ErrorKind.NOT_FOUND
    if status == 429 or any(h in message for h in _RATE_HINTS):
        return ErrorKind.RATE_LIMITED
    return ErrorKind.OTHER


def user_friendly_error(exc: BaseException) -> str:
    if isinstance(exc, ProviderError):
        if exc.status in (401, 403) or "API key" in exc.message:
            return "The AI provider rejected the API key. Please check your key in settings."
        if exc.kind is ErrorKind.RATE_LIMITED:
            return "The AI service is busy right now (rate limit reached). Please wait a moment and try again."
        if exc.kind is ErrorKind.NOT_FOUND:
            return "The selected model is unavailable. Please pick another model and try again."
        if "image inputs" in exc.message:
            return "The selected model cannot read images. Switch to a vision-capable model and try again."
        if exc.status and exc.status >= 500:
            return "The AI service had an internal problem. Please try again shortly."
    if isinstance(exc, requests.Timeout):
        return "The AI service took too long to respond. Please try again."
    if isinstance(exc, requests.ConnectionError):
        return "Could not reach the AI service. Check your connection and try again."
    return "Something went wrong while generating a response. Please try again."
