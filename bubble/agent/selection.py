# AI INSTRUCTION:
# Resolve backend + model + thinking budget once per session.

from __future__ import annotations
from dataclasses import dataclass, field
from typing import List

from bubble.generate.types import Backend, GenerationRequest


@dataclass
class ModelPlan:
    backend: Backend
    model: str
    thinking_budget: int = 0
    notices: List[str] = field(default_factory=list)

    @property
    def supports_search(self) -> bool:
        return self.backend is Backend.NATIVE or "perplexity" in self.model.lower()


def is_native_model(model: str) -> bool:
    if not model:
        return True
    lower = model.lower()
    return lower.startswith("gemini") or lower.startswith("veo") or "google" in lower


def plan_model(
    request: GenerationRequest,
    default_model: str = "gemini-2.5-flash",
    deep_model: str = "gemini-3-pro-preview",
    has_secondary: bool = True,
    think_budget: int = 2048,
    deep_budget: int = 8192,
) -> ModelPlan:
    model = (request.model or "").strip() or default_model
    budget = max(0, request.thinking_budget)
    notices: List[str] = []

    native = is_native_model(model)
    if not native and not has_secondary:
        notices.append(f"\n*(OpenRouter key missing, falling back to {default_model}...)*\n")
        model, native = default_model, True

    if request.mode == "deep":
        model = deep_model
        budget = deep_budget
        native = is_native_model(model)
    elif request.mode == "think":
        model = default_model
        budget = think_budget
        native = True

    if budget > 0 and native and "gemini-2.5" not in model and "gemini-3" not in model:
        notices.append(f"\n*(Switched to {default_model} for Thinking mode compatibility)*\n")
        model = default_model

    backend = Backend.NATIVE if native else Backend.SECONDARY
    if backend is Backend.SECONDARY:
        budget = 0
    return ModelPlan(backend=backend, model=model, thinking_budget=budget, notices=notices)
