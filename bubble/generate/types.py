# AI INSTRUCTION:
# Define simple, typed dataclasses shared across generator modules.

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

from .cancel import CancellationToken


ChunkSink = Callable[[str], None]


class Backend(str, Enum):
    NATIVE = "native"
    SECONDARY = "secondary"


@dataclass
class Message:
    """Single chat turn: system, user, or assistant."""
    role: str
    content: str


@dataclass(frozen=True)
class Attachment:
    """Raw file sent along with a prompt."""
    data: bytes
    mime_type: str
    name: str


@dataclass
class ContentPart:
    """Backend-neutral piece of a user turn: plain text or inline image bytes."""
    kind: str  # "text" | "image"
    text: str = ""
    data: bytes = b""
    mime_type: str = ""


@dataclass
class ModelParams:
    """LLM parameters per request."""
    temperature: Optional[float] = None
    thinking_budget: int = 0


@dataclass(frozen=True)
class GroundingSource:
    uri: str
    title: str

    def to_dict(self) -> Dict[str, Any]:
        return {"web": {"uri": self.uri, "title": self.title}}


@dataclass
class TextFragment:
    """One streamed piece of output, with any citation sources that came with it."""
    text: str
    grounding: List[GroundingSource] = field(default_factory=list)


@dataclass(frozen=True)
class GenerationRequest:
    """Everything the orchestrator needs for one user turn. Read-only."""
    prompt: str
    attachments: Tuple[Attachment, ...] = ()
    history: Tuple[Message, ...] = ()
    model: str = ""
    thinking_budget: int = 0
    mode: str = "standard"
    project_id: str = "autonomous-project"
    chat_id: str = ""
    token: CancellationToken = field(default_factory=CancellationToken)
    on_chunk: Optional[ChunkSink] = None

    def emit(self, text: str) -> None:
        if self.on_chunk and text:
            self.on_chunk(text)


@dataclass
class ProviderSession:
    """State of a single backend call; discarded once the call resolves."""
    backend: Backend
    model: str
    buffer: List[str] = field(default_factory=list)
    grounding: List[GroundingSource] = field(default_factory=list)
    cancelled: bool = False

    @property
    def text(self) -> str:
        return "".join(self.buffer)


@dataclass
class OutputMessage:
    project_id: str
    chat_id: str
    text: str
    sender: str = "ai"
    metadata: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        out = {"project_id": self.project_id, "chat_id": self.chat_id, "sender": self.sender, "text": self.text}
        if self.metadata:
            out.update(self.metadata)
        return out


@dataclass
class AgentResult:
    """Final response from the orchestrator (or a collaborator it handed off to)."""
    messages: List[OutputMessage]

    @property
    def text(self) -> str:
        return "\n\n".join(m.text for m in self.messages)


@dataclass
class Persona:
    """Describes a persona's tone, style, and behavior directives."""
    key: str
    name: str
    style: str
    directives: str
    meta: Optional[Dict[str, Any]] = None
