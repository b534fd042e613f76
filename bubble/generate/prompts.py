# AI INSTRUCTION:
# Provide reusable prompt fragments: persona loading, model identity, memory block, date/time banner.
# These are combined into the system context of every generation turn.

from __future__ import annotations
import json
import os
import re
from datetime import datetime
from typing import Any, Dict, List, Optional

import yaml

from .types import Message, Persona

PERSONAS_PATH = os.path.join(os.path.dirname(__file__), "personas.yaml")
IDENTITY_PLACEHOLDER = "[MODEL_IDENTITY_BLOCK]"


def build_system_prompt(persona_name: str, style: str, directives: str) -> str:
    return f"""You are {persona_name}.
Your style: {style}

Directives:
{directives}
"""


def load_persona(key: str, path: Optional[str] = None) -> Persona:
    """Load persona from personas.yaml next to this module."""
    path = path or PERSONAS_PATH
    if not os.path.exists(path):
        raise FileNotFoundError(f"personas.yaml not found at {path}")
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if key not in data:
        raise KeyError(f"Persona '{key}' not found in personas.yaml")
    p = data[key]
    return Persona(
        key=key,
        name=p.get("name", key),
        style=p.get("style", ""),
        directives=p.get("directives", ""),
        meta=p,
    )


def friendly_model_name(model: str) -> str:
    """'google/gemini-2.5-flash' -> 'Gemini 2.5 Flash'"""
    raw = model.split("/")[-1] or model
    return re.sub(r"\b\w", lambda m: m.group(0).upper(), raw.replace("-", " "))


def model_identity_block(model: str, thinking_budget: int = 0) -> str:
    name = friendly_model_name(model)
    block = (
        f"You are currently running on the model: **{name}**.\n"
        f'If the user asks "Which AI model are you?", reply that you are Bubble, running on {name}.'
    )
    if thinking_budget > 0:
        block += f"\n\n[THINKING ENABLED]\nBudget: {thinking_budget} tokens. MANDATORY: Wrap thought process in <THINK> tags."
    return block


def persona_instructions(persona: Persona, model: str, thinking_budget: int = 0) -> str:
    base = build_system_prompt(persona.name, persona.style, persona.directives)
    return base.replace(IDENTITY_PLACEHOLDER, model_identity_block(model, thinking_budget))


def date_time_banner(now: Optional[datetime] = None) -> str:
    now = now or datetime.now().astimezone()
    return f"[CURRENT DATE & TIME]\n{now.strftime('%A, %B %d, %Y, %I:%M:%S %p %Z').strip()}\n"


def compose_system_context(instructions: str, memory: Dict[str, Any], banner: str) -> str:
    return f"{instructions}\n\n[MEMORY]\n{json.dumps(memory, ensure_ascii=False, default=str)}\n\n{banner}"


def conversation_payload(system: str, messages: List[Message]) -> str:
    """Single-string prompt for completion services that take one message."""
    lines = "\n".join(f"{'User' if m.role == 'user' else 'Assistant'}: {m.content}" for m in messages)
    return f"{system}\n\n=== CONVERSATION HISTORY ===\n{lines}\n\nAssistant:"
