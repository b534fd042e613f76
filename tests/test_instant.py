# ===============================================
# tests/test_instant.py
# Instant (guest) mode: key-less completion client, prompt shaping, chunked replay.
# ===============================================

import pytest

from bubble.agent import InstantResponder
from bubble.generate import Attachment, CancellationToken, ErrorKind, GenerationRequest, Message, ProviderError
from bubble.generate.attachments import inline_prompt
from bubble.generate.clients import free_client
from bubble.generate.clients.free_client import FreeCompletionClient


class FakeResponse:
    def __init__(self, data=None, status_code=200):
        self.data = data
        self.status_code = status_code

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        return self.data


@pytest.fixture
def posted(monkeypatch):
    state = {"calls": [], "response": FakeResponse({"status": "success", "response": "hey"})}

    def fake_post(url, json=None, timeout=None):
        state["calls"].append({"url": url, "json": json})
        return state["response"]

    monkeypatch.setattr(free_client.requests, "post", fake_post)
    return state


class CannedCompletion:
    def __init__(self, text):
        self.text = text
        self.payloads = []

    def complete(self, payload):
        self.payloads.append(payload)
        return self.text


def test_client_posts_single_message(posted):
    assert FreeCompletionClient(url="https://free.test/chat").complete("User: hi") == "hey"
    assert posted["calls"] == [{"url": "https://free.test/chat", "json": {"message": "User: hi"}}]


def test_client_error_status_in_body(posted):
    posted["response"] = FakeResponse({"status": "error", "error": "Rate limit exceeded, please wait 5 seconds"})
    with pytest.raises(ProviderError) as exc:
        FreeCompletionClient().complete("x")
    assert exc.value.kind is ErrorKind.RATE_LIMITED

    posted["response"] = FakeResponse({"status": "error"})
    with pytest.raises(ProviderError) as exc:
        FreeCompletionClient().complete("x")
    assert exc.value.kind is ErrorKind.OTHER
    assert "API returned error status" in str(exc.value)


def test_client_http_error(posted):
    posted["response"] = FakeResponse(status_code=503)
    with pytest.raises(ProviderError) as exc:
        FreeCompletionClient().complete("x")
    assert exc.value.status == 503
    assert "HTTP Error: 503" in str(exc.value)


def test_inline_prompt_notes_images_and_inlines_text():
    text = inline_prompt("fix it", [
        Attachment(data=b"\x89PNG", mime_type="image/png", name="shot.png"),
        Attachment(data=b"x = 1", mime_type="", name="main.py"),
        Attachment(data=b"\xff\xfe", mime_type="text/plain", name="bad.txt"),
        Attachment(data=b"PK", mime_type="application/zip", name="bundle.zip"),
    ])

    assert text.startswith('fix it\n[User attached image: "shot.png"]')
    assert "--- FILE: main.py ---\nx = 1\n--- END FILE ---" in text
    assert "[Error reading file: bad.txt]" in text
    assert "bundle.zip" not in text


def test_payload_has_history_without_dangling_user_turn():
    client = CannedCompletion("ok")
    request = GenerationRequest(
        prompt="and now?",
        history=(Message("user", "hi"), Message("assistant", "hello"), Message("user", "and now?")),
    )
    InstantResponder(client, delay=0).run(request)

    payload = client.payloads[0]
    assert "Instant Mode" in payload
    assert payload.endswith("=== CONVERSATION HISTORY ===\nUser: hi\nAssistant: hello\nUser: and now?\n\nAssistant:")


def test_reply_is_replayed_in_small_chunks():
    seen = []
    result = InstantResponder(CannedCompletion("abcdefghij"), delay=0).run(GenerationRequest(prompt="p", on_chunk=seen.append))

    assert seen == ["abcd", "efgh", "ij"]
    assert result.text == "abcdefghij"


def test_cancel_stops_the_replay():
    token = CancellationToken()
    seen = []

    def sink(text):
        seen.append(text)
        token.cancel()

    result = InstantResponder(CannedCompletion("abcdefghij"), delay=0).run(GenerationRequest(prompt="p", token=token, on_chunk=sink))

    assert seen == ["abcd"]
    assert result.text == "abcd"
