"""Keyword-based I/O modality extraction from README or page text.

A modality counts as an input (or output) when one of its keywords appears
within 50 characters of an input (or output) context word. When no modality
has such context, any keyword hit counts. When nothing matches at all the
result is [Unknown].
"""

from __future__ import annotations

from .models import IOModality, IOResult

MODALITY_KEYWORDS: dict[IOModality, tuple[str, ...]] = {
    IOModality.TEXT: ("text", "string", "message", "prompt", "query", "chat"),
    IOModality.IMAGE: ("image", "picture", "photo", "png", "jpg", "jpeg", "gif", "svg", "vision"),
    IOModality.AUDIO: ("audio", "sound", "voice", "speech", "mp3", "wav", "music"),
    IOModality.JSON: ("json", "object", "structured", "data", "api"),
    IOModality.CODE: ("code", "script", "program", "function", "snippet"),
    IOModality.FILE: ("file", "document", "pdf", "upload", "download", "attachment"),
    IOModality.VIDEO: ("video", "movie", "mp4", "stream"),
}

INPUT_CONTEXT_KEYWORDS = (
    "input", "accept", "receive", "take", "upload", "send", "submit",
    "provide", "pass", "request", "query", "prompt", "enter",
)

OUTPUT_CONTEXT_KEYWORDS = (
    "output", "return", "generate", "produce", "create", "respond",
    "response", "result", "download", "export", "emit", "yield",
)

CONTEXT_WINDOW = 50


def has_modality(content: str, modality: IOModality) -> bool:
    if modality == IOModality.UNKNOWN or not content:
        return False
    lowered = content.lower()
    return any(keyword in lowered for keyword in MODALITY_KEYWORDS[modality])


def _has_context(content: str, modality: IOModality, context_keywords: tuple[str, ...]) -> bool:
    # First occurrences only
    if modality == IOModality.UNKNOWN:
        return False
    lowered = content.lower()
    for context in context_keywords:
        context_index = lowered.find(context)
        if context_index == -1:
            continue
        for keyword in MODALITY_KEYWORDS[modality]:
            keyword_index = lowered.find(keyword)
            if keyword_index != -1 and abs(context_index - keyword_index) < CONTEXT_WINDOW:
                return True
    return False


def _extract(content: str, context_keywords: tuple[str, ...]) -> list[IOModality]:
    if not content or not isinstance(content, str):
        return [IOModality.UNKNOWN]

    found = [m for m in MODALITY_KEYWORDS if _has_context(content, m, context_keywords)]
    if not found:
        found = [m for m in MODALITY_KEYWORDS if has_modality(content, m)]
    return found or [IOModality.UNKNOWN]


def extract_input_modalities(content: str) -> list[IOModality]:
    return _extract(content, INPUT_CONTEXT_KEYWORDS)


def extract_output_modalities(content: str) -> list[IOModality]:
    return _extract(content, OUTPUT_CONTEXT_KEYWORDS)


def extract_io_modalities(content: str) -> IOResult:
    return IOResult(
        inputs=extract_input_modalities(content),
        outputs=extract_output_modalities(content),
    )


def extract_all_modalities(content: str) -> list[IOModality]:
    if not content:
        return [IOModality.UNKNOWN]
    found = [m for m in MODALITY_KEYWORDS if has_modality(content, m)]
    return found or [IOModality.UNKNOWN]
