# AI INSTRUCTION:
# Define data models for the search layer.
# These types represent what the web-search collaborator returns and what augmentation hands back.

from __future__ import annotations
from dataclasses import dataclass, field
from typing import List

from bubble.generate.types import GroundingSource


@dataclass
class SearchResult:
    """A single web hit. List order from the provider is relevance order."""
    title: str
    url: str
    content: str = ""
    snippet: str = ""

    @property
    def body(self) -> str:
        return self.content or self.snippet or "(No content available)"


@dataclass
class Preflight:
    """Outcome of the search done before the first generation turn."""
    query: str
    echo_tag: str
    context: str
    results: List[SearchResult] = field(default_factory=list)

    @property
    def grounding(self) -> List[GroundingSource]:
        return [GroundingSource(uri=r.url, title=r.title) for r in self.results]


@dataclass
class FollowUp:
    """Outcome of a search requested by the model mid-conversation."""
    query: str
    prompt: str
    fallback_context: str
    results: List[SearchResult] = field(default_factory=list)
