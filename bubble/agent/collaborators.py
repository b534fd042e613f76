# AI INSTRUCTION:
# Interfaces of the collaborators the orchestrator talks to, plus small default implementations:
#  - memory: named context layers -> opaque content
#  - router: initial action for a prompt
#  - canvas runner / action executors: take over the session with a rewritten prompt
#  - message store: receives the final messages

from __future__ import annotations
import os
import threading
from collections import defaultdict
from typing import Any, Dict, Iterable, List, Optional, Protocol

import yaml

from bubble.generate.types import AgentResult, GenerationRequest, OutputMessage

from .state import Action


class MemoryProvider(Protocol):
    def get_context(self, layers: List[str]) -> Dict[str, Any]:
        ...


class Router(Protocol):
    def route(self, prompt: str, file_count: int) -> Action:
        ...


class CanvasRunner(Protocol):
    def run(self, request: GenerationRequest) -> AgentResult:
        ...


class ActionExecutor(Protocol):
    def run(self, request: GenerationRequest) -> AgentResult:
        ...


class MessageStore(Protocol):
    def save(self, messages: Iterable[OutputMessage]) -> None:
        ...


class StaticMemory:
    """Dict-backed memory; missing layers come back empty."""

    def __init__(self, layers: Optional[Dict[str, Any]] = None):
        self.layers = dict(layers or {})

    @classmethod
    def from_yaml(cls, path: str) -> "StaticMemory":
        if not os.path.exists(path):
            return cls()
        with open(path, "r", encoding="utf-8") as f:
            return cls(yaml.safe_load(f) or {})

    def get_context(self, layers: List[str]) -> Dict[str, Any]:
        return {name: self.layers.get(name, "") for name in layers}


class SimpleRouter:
    def route(self, prompt: str, file_count: int) -> Action:
        return Action.SIMPLE


class InMemoryMessageStore:
    def __init__(self):
        self._lock = threading.Lock()
        self._by_chat: Dict[str, List[OutputMessage]] = defaultdict(list)

    def save(self, messages: Iterable[OutputMessage]) -> None:
        with self._lock:
            for m in messages:
                self._by_chat[m.chat_id].append(m)

    def messages(self, chat_id: str) -> List[OutputMessage]:
        with self._lock:
            return list(self._by_chat.get(chat_id, []))
