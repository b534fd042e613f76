# AI INSTRUCTION:
# Turn user attachments into backend-neutral ContentParts.
# - images stay binary (clients base64 them on the wire)
# - text/code files are inlined as FILE blocks
# - anything else, or anything that fails to decode, becomes a short placeholder

from __future__ import annotations
import logging
import os
from typing import Iterable, List

from .types import Attachment, ContentPart

logger = logging.getLogger(__name__)

TEXT_EXTENSIONS = {".js", ".ts", ".jsx", ".tsx", ".html", ".css", ".json", ".md", ".py", ".lua"}


def is_image(att: Attachment) -> bool:
    return att.mime_type.startswith("image/")


def is_text(att: Attachment) -> bool:
    ext = os.path.splitext(att.name)[1].lower()
    return att.mime_type.startswith("text/") or ext in TEXT_EXTENSIONS


def file_block(name: str, content: str) -> str:
    return f"\n\n--- FILE: {name} ---\n{content}\n--- END FILE ---\n"


def to_parts(attachments: Iterable[Attachment]) -> List[ContentPart]:
    parts: List[ContentPart] = []
    for att in attachments:
        if is_image(att):
            if not att.data:
                logger.warning("Image attachment %s is empty", att.name)
                parts.append(ContentPart(kind="text", text=f"[Error attaching image: {att.name}]"))
                continue
            parts.append(ContentPart(kind="image", data=att.data, mime_type=att.mime_type))
        elif is_text(att):
            try:
                content = att.data.decode("utf-8")
            except UnicodeDecodeError:
                logger.warning("Could not decode text attachment %s", att.name)
                parts.append(ContentPart(kind="text", text=f"[Error reading text file: {att.name}]"))
                continue
            parts.append(ContentPart(kind="text", text=file_block(att.name, content)))
        else:
            parts.append(ContentPart(kind="text", text=f"[Attached file: {att.name} ({att.mime_type or 'unknown type'}) could not be inlined]"))
    return parts


def build_user_parts(prompt: str, attachments: Iterable[Attachment]) -> List[ContentPart]:
    """The current user turn: prompt text first, attachments after it."""
    return [ContentPart(kind="text", text=prompt), *to_parts(attachments)]


def inline_prompt(prompt: str, attachments: Iterable[Attachment]) -> str:
    """Text-only user turn: image notes and inlined text files appended to the prompt."""
    notes, files = [], []
    for att in attachments:
        if is_image(att):
            notes.append(f'\n[User attached image: "{att.name}"]')
        elif is_text(att):
            try:
                files.append(file_block(att.name, att.data.decode("utf-8")))
            except UnicodeDecodeError:
                logger.warning("Could not decode text attachment %s", att.name)
                files.append(f"\n[Error reading file: {att.name}]")
    return prompt + "".join(notes) + "".join(files)
