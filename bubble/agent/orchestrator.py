# AI INSTRUCTION:
# The directive-driven loop.
#  - instant mode goes straight to the key-less completion service
#  - plan backend/model once, optional pre-flight search, then up to max_loops SIMPLE turns
#  - each turn streams to the caller, stops early on a canvas close tag, parses directives
#    and returns Continue / Terminate / Handoff
#  - cancellation always ends in a normal result; other errors become one friendly message

from __future__ import annotations
import logging
from dataclasses import replace
from datetime import datetime
from typing import Callable, Dict, List, Optional

from bubble.generate.attachments import build_user_parts
from bubble.generate.cancel import GenerationCancelled
from bubble.generate.config import load_config
from bubble.generate.errors import ProviderError, user_friendly_error
from bubble.generate.prompts import compose_system_context, date_time_banner, load_persona, persona_instructions
from bubble.generate.stream import StreamAdapter
from bubble.generate.types import (
    AgentResult,
    Backend,
    GenerationRequest,
    GroundingSource,
    Message,
    ModelParams,
    OutputMessage,
    Persona,
    ProviderSession,
)
from bubble.search.augment import SearchAugmenter
from bubble.search.types import Preflight

from .collaborators import ActionExecutor, CanvasRunner, MemoryProvider, MessageStore, Router, SimpleRouter, StaticMemory
from .directives import DirectiveKind, ParseResult, has_canvas_close, parse_directives
from .instant import InstantResponder, trim_dangling_user
from .selection import ModelPlan, plan_model
from .state import Action, Continue, Handoff, LoopState, Outcome, Terminate

logger = logging.getLogger(__name__)

STOPPED_PLACEHOLDER = "(Generation stopped by user)"

# Evaluated in this order after the SEARCH rule; first match wins.
REDIRECTS = (DirectiveKind.IMAGE, DirectiveKind.PROJECT, DirectiveKind.CANVAS, DirectiveKind.STUDY)


class Orchestrator:
    def __init__(
        self,
        adapter: StreamAdapter,
        search: Optional[SearchAugmenter] = None,
        memory: Optional[MemoryProvider] = None,
        canvas: Optional[CanvasRunner] = None,
        router: Optional[Router] = None,
        store: Optional[MessageStore] = None,
        executors: Optional[Dict[Action, ActionExecutor]] = None,
        instant: Optional[InstantResponder] = None,
        persona: Optional[Persona] = None,
        config: Optional[dict] = None,
        default_model: str = "gemini-2.5-flash",
        deep_model: str = "gemini-3-pro-preview",
        clock: Callable[[], datetime] = lambda: datetime.now().astimezone(),
    ):
        self.cfg = config or load_config()
        self.adapter = adapter
        self.search = search or SearchAugmenter(None)
        self.memory = memory or StaticMemory()
        self.canvas = canvas
        self.router = router or SimpleRouter()
        self.store = store
        self.executors = dict(executors or {})
        self.instant = instant
        self.persona = persona or load_persona(self.cfg["persona_key"])
        self.default_model = default_model
        self.deep_model = deep_model
        self.fallback_model = self.cfg["fallback_model"]
        self.max_loops = int(self.cfg["max_loops"])
        self.clock = clock

    # -------------------------
    # Public API
    # -------------------------
    def plan(self, request: GenerationRequest) -> ModelPlan:
        thinking = self.cfg["thinking"]
        return plan_model(
            request,
            default_model=self.default_model,
            deep_model=self.deep_model,
            has_secondary=self.adapter.has(Backend.SECONDARY),
            think_budget=thinking["think_budget"],
            deep_budget=thinking["deep_budget"],
        )

    def run(self, request: GenerationRequest) -> AgentResult:
        state = LoopState(action=Action.SIMPLE, prompt=request.prompt)
        try:
            if request.mode == "instant" and self.instant is not None:
                result = self.instant.run(request)
                if request.token.cancelled and not result.text.strip():
                    return self._finish(self._stopped(state, request))
                return self._finish(result)

            plan = self.plan(request)
            for notice in plan.notices:
                request.emit(notice)

            action = self.router.route(request.prompt, len(request.attachments))
            state = state.evolve(action=action)

            preflight = self.search.preflight(request.prompt, plan.supports_search, request.token, request.on_chunk)
            if preflight is not None:
                state = state.append(preflight.echo_tag, preflight.grounding)

            memory = self.memory.get_context(list(self.cfg["memory_layers"]))
            instructions = persona_instructions(self.persona, plan.model, plan.thinking_budget)

            while state.iteration < self.max_loops:
                if request.token.cancelled:
                    break
                state = state.evolve(iteration=state.iteration + 1)
                outcome = self._step(state, request, plan, instructions, memory, preflight)
                state = outcome.state
                if isinstance(outcome, Terminate):
                    break
                if isinstance(outcome, Handoff):
                    return self._finish(outcome.call())
            if request.token.cancelled:
                return self._finish(self._stopped(state, request))
            return self._finish(self._result(state, request))
        except GenerationCancelled:
            return self._finish(self._stopped(state, request))
        except Exception as e:
            logger.exception("Error in orchestrator run")
            text = f"⚠️ {user_friendly_error(e)}"
            request.emit(text)
            message = OutputMessage(project_id=request.project_id, chat_id=request.chat_id, text=text)
            return self._finish(AgentResult(messages=[message]))

    # -------------------------
    # Loop step
    # -------------------------
    def _step(
        self,
        state: LoopState,
        request: GenerationRequest,
        plan: ModelPlan,
        instructions: str,
        memory: dict,
        preflight: Optional[Preflight],
    ) -> Outcome:
        executor = self.executors.get(state.action)
        if state.action is not Action.SIMPLE and executor is not None:
            return self._handoff(state, request, executor.run)
        if state.action is Action.CANVAS and self.canvas is not None:
            return self._handoff(state, request, self.canvas.run)
        # Actions without an executor re-enter SIMPLE generation with their rewritten prompt.

        enriched = dict(memory)
        if preflight is not None and state.iteration == 1:
            enriched["external_web_search"] = preflight.context
        system = compose_system_context(instructions, enriched, date_time_banner(self.clock()))
        history = self._history(request.history)
        parts = build_user_parts(state.prompt, request.attachments)
        params = ModelParams(temperature=self.cfg["temperature"], thinking_budget=plan.thinking_budget)

        session = self._generate(plan, system, history, parts, params, request)
        generated = session.text
        state = state.append(generated, session.grounding)
        if session.cancelled or request.token.cancelled:
            return Terminate(state)
        return self._route(state, parse_directives(generated), generated, request)

    def _generate(self, plan, system, history, parts, params, request) -> ProviderSession:
        session = ProviderSession(backend=plan.backend, model=plan.model)
        try:
            self._consume(session, system, history, parts, params, request)
        except ProviderError as e:
            native_ok = self.adapter.has(Backend.NATIVE)
            if session.backend is not Backend.SECONDARY or session.buffer or not native_ok:
                raise
            logger.warning("Secondary generation with %s failed (%s). Falling back to %s.", plan.model, e.message, self.fallback_model)
            request.emit(f"\n*({plan.model} failed, falling back to {self.fallback_model}...)*\n")
            session = ProviderSession(backend=Backend.NATIVE, model=self.fallback_model)
            self._consume(session, system, history, parts, params, request)
        if session.backend is plan.backend:
            plan.model = session.model
        return session

    def _consume(self, session, system, history, parts, params, request) -> None:
        seen = ""
        for text in self.adapter.stream(session, system, history, parts, params, request.token, request.on_chunk):
            seen += text
            if has_canvas_close(seen):
                logger.info("Canvas close tag seen; stopping stream early")
                break

    # -------------------------
    # Directive routing
    # -------------------------
    def _route(self, state: LoopState, parsed: ParseResult, generated: str, request: GenerationRequest) -> Outcome:
        deep = parsed.first(DirectiveKind.DEEP_SEARCH)
        if deep is not None and deep.payload.strip():
            return Continue(state.evolve(action=Action.DEEP_SEARCH, prompt=deep.payload))

        searches = parsed.all(DirectiveKind.SEARCH)
        if searches:
            if len(searches) == 1 and not state.fallback_search_context:
                return Terminate(state)
            query = next((d.query for d in searches if d.query), "")
            if query and self.search.wants(query):
                found = self.search.follow_up(query, request.prompt, request.token)
                grounding = tuple(GroundingSource(uri=r.url, title=r.title) for r in found.results)
                return Continue(state.evolve(
                    action=Action.SIMPLE,
                    prompt=found.prompt,
                    fallback_search_context=found.fallback_context,
                    grounding=state.grounding + grounding,
                ))

        for kind in REDIRECTS:
            d = parsed.first(kind)
            if d is None or not d.payload.strip():
                continue
            action = Action.for_directive(kind)
            if action is Action.CANVAS:
                return self._canvas(state, request, d.payload.strip())
            return Continue(state.evolve(action=action, prompt=d.payload))

        if not generated.strip() and state.fallback_search_context:
            request.emit(state.fallback_search_context)
            return Terminate(state.evolve(response_text=state.fallback_search_context))
        return Terminate(state)

    def _canvas(self, state: LoopState, request: GenerationRequest, payload: str) -> Outcome:
        runner = self.executors.get(Action.CANVAS) or self.canvas
        if runner is None:
            logger.warning("Canvas requested but no canvas collaborator is configured")
            return Terminate(state)
        # Text produced before the tag is dropped so the app arrives as a clean message.
        state = state.evolve(action=Action.CANVAS, prompt=payload, response_text="")
        return self._handoff(state, request, runner.run)

    def _handoff(self, state: LoopState, request: GenerationRequest, run: Callable[[GenerationRequest], AgentResult]) -> Handoff:
        request.token.raise_if_cancelled()
        sub_request = _with_prompt(request, state.prompt)
        logger.info("Handing off %s to %s", state.action.value, getattr(run, "__self__", run).__class__.__name__)
        return Handoff(state=state.evolve(response_text=""), call=lambda: run(sub_request))

    # -------------------------
    # Helpers
    # -------------------------
    @staticmethod
    def _history(history) -> List[Message]:
        return trim_dangling_user(history)

    def _result(self, state: LoopState, request: GenerationRequest) -> AgentResult:
        message = OutputMessage(
            project_id=request.project_id,
            chat_id=request.chat_id,
            text=state.response_text,
            metadata=state.metadata or None,
        )
        return AgentResult(messages=[message])

    def _stopped(self, state: LoopState, request: GenerationRequest) -> AgentResult:
        text = state.response_text if state.response_text.strip() else STOPPED_PLACEHOLDER
        message = OutputMessage(project_id=request.project_id, chat_id=request.chat_id, text=text, metadata=state.metadata or None)
        return AgentResult(messages=[message])

    def _finish(self, result: AgentResult) -> AgentResult:
        if self.store is not None:
            self.store.save(result.messages)
        return result


def _with_prompt(request: GenerationRequest, prompt: str) -> GenerationRequest:
    return replace(request, prompt=prompt)
