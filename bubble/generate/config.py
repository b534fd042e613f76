# Load generation tunables from config.yaml, falling back to built-in defaults.

from __future__ import annotations
import copy
import os
from typing import Any, Dict, Optional

import yaml

CONFIG_PATH = os.path.join(os.path.dirname(__file__), "config.yaml")

DEFAULTS: Dict[str, Any] = {
    "persona_key": "bubble-default",
    "temperature": 0.7,
    "fallback_model": "gemini-2.5-flash",
    "max_loops": 6,
    "thinking": {"think_budget": 2048, "deep_budget": 8192},
    "retry": {"max_rate_retries": 3, "base_delay": 2.0, "delay_offset": 1.0},
    "search": {"result_count": 15},
    "memory_layers": [
        "inner_personal", "outer_personal", "personal",
        "interests", "preferences", "custom",
        "codebase", "aesthetic", "project",
    ],
}


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    out = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(out.get(key), dict):
            out[key] = _merge(out[key], value)
        else:
            out[key] = value
    return out


def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    path = path or CONFIG_PATH
    if not os.path.exists(path):
        return copy.deepcopy(DEFAULTS)
    with open(path, "r", encoding="utf-8") as f:
        return _merge(DEFAULTS, yaml.safe_load(f) or {})
