"""Utilities for recovering the JSON payload from a free-text LLM reply.

Backends asked for structured output usually comply, but search-grounded
models sometimes wrap the payload in prose or a markdown fence. The helpers
here try, in order:

1. the whole (think-stripped, fence-stripped) text,
2. the first fenced code block,
3. the balanced ``{...}`` or ``[...]`` substrings, first one that decodes.
"""

from __future__ import annotations

import json
import re
from typing import Any, Dict, Iterator, List, Optional

from .text_cleaning import strip_think_blocks

__all__ = ["extract_structured_json", "iter_balanced_json"]

_FENCED_BLOCK = re.compile(r"```(?:json)?\s*(.*?)\s*```", flags=re.DOTALL | re.IGNORECASE)
_CLOSERS = {"{": "}", "[": "]"}


def _as_payload(parsed: Any) -> Optional[Dict[str, Any]]:
    if isinstance(parsed, dict):
        return parsed
    # A bare array is the value of the "events" field. Arrays of scalars
    # (e.g. a stray "[1]" citation marker) are not payloads.
    if isinstance(parsed, list) and all(isinstance(item, dict) for item in parsed):
        return {"events": parsed}
    return None


def _try_load(snippet: str) -> Optional[Dict[str, Any]]:
    try:
        return _as_payload(json.loads(snippet))
    except (ValueError, RecursionError):
        return None


def _balanced_spans(text: str) -> Dict[int, int]:
    """Map each opener index to the index just past its matching closer.

    One left-to-right pass with a stack of open positions. A mismatched
    closer invalidates every bracket still open. JSON strings cannot hold a
    raw newline, so a newline always ends a string; a stray quote in prose
    only affects its own line.
    """
    spans: Dict[int, int] = {}
    stack: List[int] = []
    in_string = False
    escaped = False
    for pos, char in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char in ('"', "\n"):
                in_string = False
            continue

        if char == '"':
            in_string = True
        elif char in _CLOSERS:
            stack.append(pos)
        elif char in ("}", "]") and stack:
            start = stack.pop()
            if _CLOSERS[text[start]] != char:
                stack.clear()
                continue
            spans[start] = pos + 1
    return spans


def iter_balanced_json(text: str) -> Iterator[str]:
    """Yield balanced ``{...}`` / ``[...]`` substrings of *text* left to right.

    Brackets inside JSON string literals are ignored. Once a snippet is
    yielded the scan resumes after it, so nested brackets are not yielded
    separately.
    """
    spans = _balanced_spans(text)
    resume = 0
    for start in sorted(spans):
        if start < resume:
            continue
        resume = spans[start]
        yield text[start:resume]


def extract_structured_json(response_text: str) -> Dict[str, Any]:
    """Robustly extract a JSON object from an LLM response.

    Returns
    -------
    dict[str, Any]
        The parsed JSON object. A top-level list of objects is wrapped into
        ``{"events": <list>}`` so callers can always read ``"events"``.

    Raises
    ------
    ValueError
        If no valid JSON snippet can be located in *response_text*.
    """
    cleaned: str = strip_think_blocks(response_text or "")
    if not cleaned:
        raise ValueError("Empty LLM response")

    # 1. Whole string (fast path)
    parsed = _try_load(cleaned)
    if parsed is not None:
        return parsed

    # 2. Fenced block, with or without explicit `json` label
    fenced = _FENCED_BLOCK.search(cleaned)
    if fenced:
        parsed = _try_load(fenced.group(1))
        if parsed is not None:
            return parsed

    # 3. Balanced bracket substrings embedded in prose
    for snippet in iter_balanced_json(cleaned):
        parsed = _try_load(snippet)
        if parsed is not None:
            return parsed

    raise ValueError("Could not locate JSON in LLM response")
