"""Helpers for cleaning raw LLM text before parsing or display."""

from __future__ import annotations

import re
from typing import Final

_THINK_MARKER: Final[str] = "</think>"
_NUMERIC_CITATION = re.compile(r"\s*\[\d+(?:\s*,\s*\d+)*\]")


def strip_think_blocks(text: str) -> str:
    """Return the content after the last closing </think> tag.

    Reasoning models prefix their answer with a ``<think>`` block; when the
    marker is missing the whole text is kept. A surrounding JSON code fence
    is removed as well.
    """
    if not text:
        return ""

    idx: int = text.rfind(_THINK_MARKER)
    cleaned: str = (text if idx == -1 else text[idx + len(_THINK_MARKER):]).strip()

    if cleaned.startswith("```json"):
        cleaned = cleaned[len("```json"):].strip()
    elif cleaned.startswith("```"):
        cleaned = cleaned[3:].strip()
    if cleaned.endswith("```"):
        cleaned = cleaned[:-3].strip()

    return cleaned


def sanitize_llm_text(text: str | None) -> str:
    """Strip inline numeric citations (``[1]``, ``[2, 3]``) and collapse spaces.

    Search-grounded models sprinkle citation markers into free text fields;
    they mean nothing once the text is detached from the answer.
    """
    if not text:
        return ""
    cleaned = _NUMERIC_CITATION.sub("", text)
    cleaned = re.sub(r"[ \t]{2,}", " ", cleaned)
    return cleaned.strip()


__all__ = ["strip_think_blocks", "sanitize_llm_text"]
