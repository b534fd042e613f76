# AI INSTRUCTION:
# Provide a dummy streaming client for local dev and testing without API calls.

from typing import Iterator, List
from ..types import ContentPart, Message, ModelParams, TextFragment


class EchoStreamClient:
    backend = "echo"

    def __init__(self, chunk_size: int = 8):
        self.chunk_size = chunk_size

    def open(self, model: str, system: str, history: List[Message], parts: List[ContentPart], params: ModelParams) -> Iterator[TextFragment]:
        user_text = "".join(p.text for p in parts if p.kind == "text").strip()
        text = f"[ECHO RESPONSE]\n{user_text or '(no user input)'}"
        return (TextFragment(text=text[i:i + self.chunk_size]) for i in range(0, len(text), self.chunk_size))
