# Agent package: directive parsing and the orchestration loop.

from .canvas import CanvasAgent
from .collaborators import InMemoryMessageStore, SimpleRouter, StaticMemory
from .directives import Directive, DirectiveKind, ParseResult, has_canvas_close, parse_directives
from .instant import InstantResponder
from .orchestrator import STOPPED_PLACEHOLDER, Orchestrator
from .selection import ModelPlan, is_native_model, plan_model
from .state import Action, LoopState

__all__ = [
    "Action", "CanvasAgent", "Directive", "DirectiveKind", "InMemoryMessageStore", "InstantResponder", "LoopState",
    "ModelPlan", "Orchestrator", "ParseResult", "STOPPED_PLACEHOLDER", "SimpleRouter", "StaticMemory",
    "has_canvas_close", "is_native_model", "parse_directives", "plan_model",
]
