# AI INSTRUCTION:
# Parse inline action tags out of one turn of generated text.
# - paired, case-sensitive tags; first occurrence per kind (SEARCH: every occurrence)
# - one left-to-right pass: a tag inside another tag's body is part of that body
# - an open tag with no close tag takes the rest of the text (streams can be cut short)
# The loop only consumes the structured Directive values produced here.

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Tuple


class DirectiveKind(str, Enum):
    SEARCH = "SEARCH"
    DEEP_SEARCH = "DEEP_SEARCH"
    IMAGE = "IMAGE"
    PROJECT = "PROJECT"
    CANVAS = "CANVAS"
    STUDY = "STUDY"


@dataclass(frozen=True)
class Directive:
    kind: DirectiveKind
    payload: str
    position: int
    end: int = -1

    @property
    def query(self) -> str:
        return self.payload.strip()


# kind -> (open spellings, close spellings)
TAGS = {
    DirectiveKind.SEARCH: (("<SEARCH>",), ("</SEARCH>",)),
    DirectiveKind.DEEP_SEARCH: (("<DEEP>",), ("</DEEP>",)),
    DirectiveKind.IMAGE: (("<IMAGE>",), ("</IMAGE>",)),
    DirectiveKind.PROJECT: (("<PROJECT>",), ("</PROJECT>",)),
    DirectiveKind.CANVAS: (
        ("<CANVAS_TRIGGER>", "<CANVASTRIGGER>", "<CANVAS>"),
        ("</CANVAS_TRIGGER>", "</CANVASTRIGGER>", "</CANVAS>"),
    ),
    DirectiveKind.STUDY: (("<STUDY>",), ("</STUDY>",)),
}
CANVAS_CLOSE_TAGS = TAGS[DirectiveKind.CANVAS][1]
OPENERS = {tag: kind for kind, (opens, _) in TAGS.items() for tag in opens}


@dataclass
class ParseResult:
    directives: List[Directive]
    clean_text: str

    def all(self, kind: DirectiveKind) -> List[Directive]:
        return [d for d in self.directives if d.kind is kind]

    def first(self, kind: DirectiveKind) -> Optional[Directive]:
        found = self.all(kind)
        return found[0] if found else None


def _earliest(text: str, needles: Sequence[str], start: int) -> Tuple[int, str]:
    best, tag = -1, ""
    for n in needles:
        i = text.find(n, start)
        if i != -1 and (best == -1 or i < best):
            best, tag = i, n
    return best, tag


def _next(text: str, start: int) -> Optional[Directive]:
    """The first tag of any kind opening at or after `start`, with its body."""
    pos, open_tag = _earliest(text, list(OPENERS), start)
    if pos == -1:
        return None
    kind = OPENERS[open_tag]
    body_start = pos + len(open_tag)
    close_pos, close_tag = _earliest(text, TAGS[kind][1], body_start)
    if close_pos == -1:
        return Directive(kind, text[body_start:], pos, len(text))
    return Directive(kind, text[body_start:close_pos], pos, close_pos + len(close_tag))


def parse_directives(text: str) -> ParseResult:
    found: List[Directive] = []
    spans: List[Directive] = []
    seen = set()
    cursor = 0
    while True:
        d = _next(text, cursor)
        if d is None:
            break
        spans.append(d)
        if d.kind is DirectiveKind.SEARCH or d.kind not in seen:
            found.append(d)
            seen.add(d.kind)
        cursor = d.end
    return ParseResult(directives=found, clean_text=strip_spans(text, spans))


def strip_spans(text: str, directives: Sequence[Directive]) -> str:
    out, cursor = [], 0
    for d in directives:
        out.append(text[cursor:d.position])
        cursor = d.end
    out.append(text[cursor:])
    return "".join(out).strip()


def has_canvas_close(text: str) -> bool:
    return any(tag in text for tag in CANVAS_CLOSE_TAGS)
