# AI INSTRUCTION:
# Loop state for the orchestrator, replaced (never mutated in place) each iteration,
# plus the three outcomes a step can produce: continue, terminate, handoff.

from __future__ import annotations
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Callable, Tuple, Union

from bubble.generate.types import AgentResult, GroundingSource

from .directives import DirectiveKind


class Action(str, Enum):
    SIMPLE = "SIMPLE"
    DEEP_SEARCH = "DEEP_SEARCH"
    IMAGE = "IMAGE"
    PROJECT = "PROJECT"
    CANVAS = "CANVAS"
    STUDY = "STUDY"

    @classmethod
    def for_directive(cls, kind: DirectiveKind) -> "Action":
        return cls(kind.value)


@dataclass(frozen=True)
class LoopState:
    action: Action
    prompt: str
    iteration: int = 0
    response_text: str = ""
    grounding: Tuple[GroundingSource, ...] = ()
    fallback_search_context: str = ""

    def evolve(self, **changes) -> "LoopState":
        return replace(self, **changes)

    def append(self, text: str, grounding=()) -> "LoopState":
        return replace(self, response_text=self.response_text + text, grounding=self.grounding + tuple(grounding))

    @property
    def metadata(self) -> dict:
        if not self.grounding:
            return {}
        return {"groundingMetadata": [g.to_dict() for g in self.grounding]}


@dataclass(frozen=True)
class Continue:
    state: LoopState


@dataclass(frozen=True)
class Terminate:
    state: LoopState


@dataclass(frozen=True)
class Handoff:
    state: LoopState
    call: Callable[[], AgentResult] = field(compare=False)


Outcome = Union[Continue, Terminate, Handoff]
