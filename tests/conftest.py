# ===============================================
# tests/conftest.py
# Shared fakes: scripted stream clients, a recording
# search client and an orchestrator factory.
# ===============================================

from datetime import datetime, timezone
from types import SimpleNamespace

import pytest

from bubble.agent import Orchestrator
from bubble.generate import AgentResult, OutputMessage, RetryPolicy, StreamAdapter, TextFragment
from bubble.search import SearchAugmenter, SearchResult


class ScriptedClient:
    """Replays one scripted turn per open(): a list of fragments, or an exception to raise."""

    def __init__(self, *turns):
        self.turns = list(turns)
        self.calls = []

    def open(self, model, system, history, parts, params):
        self.calls.append(SimpleNamespace(model=model, system=system, history=history, parts=parts, params=params))
        turn = self.turns.pop(0) if self.turns else []
        if isinstance(turn, Exception):
            raise turn
        return iter([f if isinstance(f, TextFragment) else TextFragment(text=f) for f in turn])

    @property
    def prompts(self):
        return [c.parts[0].text for c in self.calls]


class RecordingSearch:
    def __init__(self, results=None, error=None):
        self.results = list(results or [])
        self.error = error
        self.queries = []

    def search(self, query, limit):
        self.queries.append((query, limit))
        if self.error:
            raise self.error
        return list(self.results)


class RecordingCanvas:
    def __init__(self, text="<CANVAS><html></html></CANVAS>"):
        self.text = text
        self.requests = []

    def run(self, request):
        self.requests.append(request)
        return AgentResult(messages=[OutputMessage(project_id=request.project_id, chat_id=request.chat_id, text=self.text)])


class Chunks(list):
    """Chunk sink that remembers everything it was handed."""

    def __call__(self, text):
        self.append(text)


@pytest.fixture
def chunks():
    return Chunks()


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def make_orchestrator(sleeps):
    def _make(native=None, secondary=None, search=None, canvas=None, **kwargs):
        retry = RetryPolicy(sleep=lambda seconds, token: sleeps.append(seconds))
        adapter = StreamAdapter(native=native, secondary=secondary, retry=retry)
        return Orchestrator(
            adapter=adapter,
            search=SearchAugmenter(search),
            canvas=canvas,
            clock=lambda: datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc),
            **kwargs,
        )
    return _make


def hits(*titles):
    return [SearchResult(title=t, url=f"https://example.com/{i}", snippet=f"{t} snippet") for i, t in enumerate(titles)]
