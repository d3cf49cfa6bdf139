"""Utility functions for the escale_events project.

Re-exports the text-cleaning, parsing and datetime helpers so that imports
like `from ..utils import sanitize_llm_text` work as expected.
"""

from .text_cleaning import strip_think_blocks, sanitize_llm_text  # noqa: F401
from .llm_parsing import extract_structured_json, iter_balanced_json  # noqa: F401
from .datetime_utils import (  # noqa: F401
    EventStatus,
    classify_status,
    get_current_timestamp,
    is_past,
    parse_iso_datetime,
    window_end,
)

__all__ = [
    "strip_think_blocks",
    "sanitize_llm_text",
    "extract_structured_json",
    "iter_balanced_json",
    "EventStatus",
    "classify_status",
    "get_current_timestamp",
    "is_past",
    "parse_iso_datetime",
    "window_end",
]
