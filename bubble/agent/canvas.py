# AI INSTRUCTION:
# Default canvas collaborator: one generation turn with the canvas-architect persona
# that turns an app description into a single-file HTML app. Output is returned verbatim.

from __future__ import annotations
import logging
from typing import Callable, Optional

from bubble.generate.attachments import build_user_parts
from bubble.generate.prompts import load_persona, persona_instructions
from bubble.generate.stream import StreamAdapter
from bubble.generate.types import AgentResult, GenerationRequest, ModelParams, OutputMessage, ProviderSession

from .orchestrator import STOPPED_PLACEHOLDER
from .selection import ModelPlan, plan_model

logger = logging.getLogger(__name__)


class CanvasAgent:
    def __init__(
        self,
        adapter: StreamAdapter,
        planner: Optional[Callable[[GenerationRequest], ModelPlan]] = None,
        persona_key: str = "canvas-architect",
        temperature: float = 0.4,
    ):
        self.adapter = adapter
        self.planner = planner or plan_model
        self.persona = load_persona(persona_key)
        self.temperature = temperature

    def run(self, request: GenerationRequest) -> AgentResult:
        plan = self.planner(request)
        session = ProviderSession(backend=plan.backend, model=plan.model)
        system = persona_instructions(self.persona, plan.model)
        params = ModelParams(temperature=self.temperature, thinking_budget=plan.thinking_budget)
        logger.info("Canvas handoff on %s/%s", plan.backend.value, plan.model)
        for _ in self.adapter.stream(
            session,
            system,
            [],
            build_user_parts(request.prompt, request.attachments),
            params,
            request.token,
            request.on_chunk,
        ):
            pass
        text = session.text or (STOPPED_PLACEHOLDER if session.cancelled else "")
        message = OutputMessage(project_id=request.project_id, chat_id=request.chat_id, text=text)
        return AgentResult(messages=[message])
