# ===============================================
# tests/test_compat_client.py
# OpenAI-compatible SSE client with requests.post patched out.
# ===============================================

import json
import logging

import pytest

from bubble.generate import ErrorKind, Message, ModelParams, ProviderError
from bubble.generate.clients import compat_client
from bubble.generate.clients.compat_client import DONE, CompatStreamClient, iter_sse_text, parse_sse_line
from bubble.generate.types import ContentPart


class FakeResponse:
    def __init__(self, lines=(), status_code=200, body=None):
        self.lines = list(lines)
        self.status_code = status_code
        self.body = body
        self.closed = False

    @property
    def ok(self):
        return self.status_code < 400

    @property
    def text(self):
        return json.dumps(self.body) if self.body is not None else ""

    def json(self):
        if self.body is None:
            raise ValueError("no body")
        return self.body

    def iter_lines(self):
        return iter(self.lines)

    def close(self):
        self.closed = True


def _delta(text):
    return ("data: " + json.dumps({"choices": [{"delta": {"content": text}}]})).encode()


@pytest.fixture
def posted(monkeypatch):
    state = {"calls": [], "response": FakeResponse()}

    def fake_post(url, json=None, headers=None, stream=False, timeout=None):
        state["calls"].append({"url": url, "json": json, "headers": headers, "stream": stream})
        return state["response"]

    monkeypatch.setattr(compat_client.requests, "post", fake_post)
    return state


def _open(client, model="deepseek/deepseek-chat", parts=None, history=()):
    parts = parts or [ContentPart(kind="text", text="hi")]
    return client.open(model, "be nice", list(history), parts, ModelParams(temperature=0.3))


def test_parse_sse_line():
    assert parse_sse_line('data: {"choices":[{"delta":{"content":"hey"}}]}') == "hey"
    assert parse_sse_line("data: [DONE]") is DONE
    assert parse_sse_line(": keep-alive") is None
    assert parse_sse_line('data: {"choices":[{"delta":{}}]}') is None


def test_stream_stops_at_done_and_skips_noise(posted, caplog):
    resp = FakeResponse([
        b": OPENROUTER PROCESSING",
        _delta("Hel"),
        b"",
        b"data: {not json",
        _delta("lo"),
        b"data: [DONE]",
        _delta("after done"),
    ])
    posted["response"] = resp

    with caplog.at_level(logging.WARNING, logger=compat_client.__name__):
        texts = [f.text for f in _open(CompatStreamClient(api_key="k"))]

    assert texts == ["Hel", "lo"]
    assert resp.closed
    assert "undecodable" in caplog.text


def test_payload_and_headers(posted):
    posted["response"] = FakeResponse([b"data: [DONE]"])
    history = [Message("user", "earlier"), Message("assistant", "answer")]
    list(_open(CompatStreamClient(api_key="k", url="https://router.test/v1"), history=history))

    call = posted["calls"][0]
    assert call["url"] == "https://router.test/v1"
    assert call["stream"] is True
    assert call["headers"]["Authorization"] == "Bearer k"
    body = call["json"]
    assert body["model"] == "deepseek/deepseek-chat"
    assert body["stream"] is True
    assert body["temperature"] == 0.3
    assert [m["role"] for m in body["messages"]] == ["system", "user", "assistant", "user"]
    assert body["messages"][0]["content"] == "be nice"
    assert body["messages"][-1]["content"] == [{"type": "text", "text": "hi"}]


def test_images_are_sent_as_data_urls_to_vision_models(posted):
    posted["response"] = FakeResponse([b"data: [DONE]"])
    parts = [ContentPart(kind="text", text="what is this"), ContentPart(kind="image", data=b"abc", mime_type="image/png")]
    list(_open(CompatStreamClient(api_key="k"), model="anthropic/claude-sonnet", parts=parts))

    image = posted["calls"][0]["json"]["messages"][-1]["content"][1]
    assert image == {"type": "image_url", "image_url": {"url": "data:image/png;base64,YWJj"}}


def test_images_to_text_only_model_are_rejected(posted):
    parts = [ContentPart(kind="image", data=b"abc", mime_type="image/png")]
    with pytest.raises(ProviderError) as exc:
        _open(CompatStreamClient(api_key="k"), model="deepseek/deepseek-chat", parts=parts)
    assert "does not support image inputs" in str(exc.value)
    assert posted["calls"] == []


def test_http_error_is_classified(posted):
    resp = FakeResponse(status_code=429, body={"error": {"message": "Rate limit exceeded"}})
    posted["response"] = resp

    with pytest.raises(ProviderError) as exc:
        _open(CompatStreamClient(api_key="k"))
    assert exc.value.kind is ErrorKind.RATE_LIMITED
    assert exc.value.status == 429
    assert "OpenRouter Error 429: Rate limit exceeded" in str(exc.value)
    assert resp.closed


def test_missing_key_fails_before_any_request(posted, monkeypatch):
    monkeypatch.delenv("OPENROUTER_API_KEY", raising=False)
    with pytest.raises(ProviderError) as exc:
        _open(CompatStreamClient())
    assert exc.value.status == 401
    assert posted["calls"] == []


def test_iter_sse_text_accepts_str_lines():
    assert list(iter_sse_text(['data: {"choices":[{"delta":{"content":"a"}}]}', "data: [DONE]"])) == ["a"]
