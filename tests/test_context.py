# ===============================================
# tests/test_context.py
# Model selection, attachments, prompt assembly, config and memory.
# ===============================================

from dataclasses import fields
from datetime import datetime, timezone

import pytest

from bubble.agent import StaticMemory, plan_model
from bubble.agent.canvas import CanvasAgent
from bubble.generate import Attachment, Backend, GenerationRequest, ModelParams, StreamAdapter
from bubble.generate.attachments import build_user_parts
from bubble.generate.config import DEFAULTS, load_config
from bubble.generate.prompts import (
    compose_system_context,
    date_time_banner,
    friendly_model_name,
    load_persona,
    persona_instructions,
)

from conftest import ScriptedClient


def _req(**kwargs):
    return GenerationRequest(prompt="hi", **kwargs)


def test_plan_defaults_to_native_default_model():
    plan = plan_model(_req())
    assert (plan.backend, plan.model, plan.thinking_budget) == (Backend.NATIVE, "gemini-2.5-flash", 0)
    assert plan.supports_search


def test_plan_secondary_model():
    plan = plan_model(_req(model="deepseek/deepseek-chat", thinking_budget=1024))
    assert plan.backend is Backend.SECONDARY
    assert plan.thinking_budget == 0
    assert not plan.supports_search
    assert plan_model(_req(model="perplexity/sonar")).supports_search


def test_plan_modes():
    deep = plan_model(_req(mode="deep"))
    assert (deep.model, deep.thinking_budget) == ("gemini-3-pro-preview", 8192)
    think = plan_model(_req(mode="think", model="gemini-2.0-flash"))
    assert (think.model, think.thinking_budget) == ("gemini-2.5-flash", 2048)


def test_plan_thinking_on_old_model_switches_with_notice():
    plan = plan_model(_req(model="gemini-1.5-pro", thinking_budget=512))
    assert plan.model == "gemini-2.5-flash"
    assert "Thinking mode" in plan.notices[0]


def test_plan_without_secondary_key():
    plan = plan_model(_req(model="mistral/large"), has_secondary=False)
    assert plan.backend is Backend.NATIVE
    assert plan.model == "gemini-2.5-flash"
    assert "OpenRouter key missing" in plan.notices[0]


def test_user_parts_keep_prompt_first_and_report_bad_files():
    parts = build_user_parts("look", [
        Attachment(data=b"", mime_type="image/png", name="empty.png"),
        Attachment(data=b"\xff\xfe\xfa", mime_type="text/plain", name="notes.txt"),
        Attachment(data=b"# Title", mime_type="", name="README.md"),
    ])

    assert parts[0].text == "look"
    assert parts[1].text == "[Error attaching image: empty.png]"
    assert parts[2].text == "[Error reading text file: notes.txt]"
    assert parts[3].text == "\n\n--- FILE: README.md ---\n# Title\n--- END FILE ---\n"


def test_friendly_model_name():
    assert friendly_model_name("gemini-2.5-flash") == "Gemini 2.5 Flash"
    assert friendly_model_name("google/gemini-3-pro-preview") == "Gemini 3 Pro Preview"


def test_persona_instructions_fill_identity_block():
    persona = load_persona("bubble-default")
    text = persona_instructions(persona, "gemini-2.5-flash", thinking_budget=2048)

    assert "[MODEL_IDENTITY_BLOCK]" not in text
    assert "Gemini 2.5 Flash" in text
    assert "<THINK>" in text
    assert "<CANVAS_TRIGGER>" in text


def test_unknown_persona_raises():
    with pytest.raises(KeyError):
        load_persona("nobody")


def test_system_context_layout():
    banner = date_time_banner(datetime(2026, 1, 2, 15, 4, 5, tzinfo=timezone.utc))
    assert banner == "[CURRENT DATE & TIME]\nFriday, January 02, 2026, 03:04:05 PM UTC\n"

    ctx = compose_system_context("INSTR", {"personal": "likes tea"}, banner)
    assert ctx.startswith("INSTR\n\n[MEMORY]\n")
    assert '"personal": "likes tea"' in ctx
    assert ctx.endswith(banner)


def test_config_overrides_merge_over_defaults(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("max_loops: 3\nretry:\n  base_delay: 1.0\n", encoding="utf-8")
    cfg = load_config(str(path))

    assert cfg["max_loops"] == 3
    assert cfg["retry"] == {"max_rate_retries": 3, "base_delay": 1.0, "delay_offset": 1.0}
    assert load_config(str(tmp_path / "missing.yaml")) == DEFAULTS


def test_shipped_config_matches_defaults():
    assert load_config() == DEFAULTS


def test_static_memory_from_yaml(tmp_path):
    path = tmp_path / "memory.yaml"
    path.write_text("personal: Sam\ncodebase: monorepo\n", encoding="utf-8")
    memory = StaticMemory.from_yaml(str(path))

    assert memory.get_context(["personal", "aesthetic"]) == {"personal": "Sam", "aesthetic": ""}
    assert StaticMemory.from_yaml(str(tmp_path / "nope.yaml")).get_context(["x"]) == {"x": ""}


def test_canvas_agent_runs_one_turn_with_architect_persona():
    native = ScriptedClient(["<CANVAS>", "<html></html>", "</CANVAS>"])
    result = CanvasAgent(StreamAdapter(native=native)).run(GenerationRequest(prompt="calculator", chat_id="c"))

    assert result.text == "<CANVAS><html></html></CANVAS>"
    call = native.calls[0]
    assert call.history == []
    assert call.parts[0].text == "calculator"
    assert call.params.temperature == 0.4


def test_model_params_carry_only_what_clients_send():
    assert [f.name for f in fields(ModelParams)] == ["temperature", "thinking_budget"]
