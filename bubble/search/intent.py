# AI INSTRUCTION:
# Decide whether a prompt needs live information from the web.
# Keep it cheap and stateless: keyword + recency heuristics, no model call.

from __future__ import annotations
import re

_LIVE_PATTERNS = [
    r"\b(latest|newest|recent|recently|current|currently|today|tonight|tomorrow|yesterday)\b",
    r"\b(this|last|next) (week|month|year|season)\b",
    r"\bright now\b",
    r"\b(news|headlines?|breaking)\b",
    r"\b(price|prices|stock|stocks|exchange rate|market cap)\b",
    r"\b(weather|forecast|temperature in)\b",
    r"\b(score|scores|standings|fixtures?|results? of)\b",
    r"\b(release date|released|launch(ed)?|announced?)\b",
    r"\b(who won|who is winning|election)\b",
    r"\b20[2-9]\d\b",
]
_LIVE_RE = re.compile("|".join(_LIVE_PATTERNS), re.IGNORECASE)


def needs_live_info(text: str, supports_search: bool, follow_up: bool = False) -> bool:
    """
    Pre-flight: only when the backend can ground answers and the prompt looks time sensitive.
    Follow-up (the model itself asked via <SEARCH>): any non-blank query is accepted.
    """
    text = (text or "").strip()
    if not text:
        return False
    if follow_up:
        return True
    if not supports_search:
        return False
    return bool(_LIVE_RE.search(text))
