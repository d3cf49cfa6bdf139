"""Generative backends able to answer a discovery prompt with web grounding.

Each backend turns ``(prompt, schema, window)`` into a :class:`BackendReply`
holding the raw answer text and the raw citation metadata. Parsing and
normalisation happen in :mod:`escale_events.services.discovery`; backends only
raise :class:`DiscoveryError` (or let transport errors through).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional, Protocol

from ..clients.openai_client import get_openai
from ..clients.perplexity_client import PERPLEXITY_CHAT_URL, get_session
from ..config import (
    DISCOVERY_BACKEND,
    OPENAI_DISCOVERY_MODEL,
    PERPLEXITY_CONTEXT_SIZE,
    PERPLEXITY_MODEL,
    REQUEST_TIMEOUT_SECONDS,
)

logger = logging.getLogger(__name__)

SYSTEM_PROMPT: str = (
    "You are Lili, a local Parisian events scout for international students."
    " Search the web for real, verifiable events. Strictly follow the user"
    " instructions and output EXACTLY the JSON that matches the provided"
    " schema, no markdown, no fences, no commentary."
)

# Perplexity date filter format
_PERPLEXITY_DATE_FORMAT = "%m/%d/%Y"


class DiscoveryError(RuntimeError):
    """The generative backend could not produce an answer."""


@dataclass(frozen=True)
class SearchWindow:
    start: date
    end: date


@dataclass
class BackendReply:
    """Raw answer text plus citation dicts (``title`` / ``url`` keys)."""

    text: str
    citations: List[Dict[str, Any]] = field(default_factory=list)


class DiscoveryBackend(Protocol):
    name: str

    def generate_structured_content(
        self, prompt: str, schema: Dict[str, Any], window: SearchWindow
    ) -> BackendReply:
        ...


class PerplexityBackend:
    """Perplexity chat completions with JSON-schema output and web search."""

    name = "perplexity"

    def __init__(
        self,
        model: str = PERPLEXITY_MODEL,
        context_size: str = PERPLEXITY_CONTEXT_SIZE,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
    ) -> None:
        self.model = model
        self.context_size = context_size
        self.timeout = timeout

    def build_payload(
        self, prompt: str, schema: Dict[str, Any], window: SearchWindow
    ) -> Dict[str, Any]:
        return {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            "search_after_date_filter": window.start.strftime(_PERPLEXITY_DATE_FORMAT),
            "search_before_date_filter": window.end.strftime(_PERPLEXITY_DATE_FORMAT),
            "web_search_options": {"search_context_size": self.context_size},
            "response_format": {
                "type": "json_schema",
                "json_schema": {"schema": schema},
            },
        }

    def generate_structured_content(
        self, prompt: str, schema: Dict[str, Any], window: SearchWindow
    ) -> BackendReply:
        response = get_session().post(
            PERPLEXITY_CHAT_URL,
            json=self.build_payload(prompt, schema, window),
            timeout=self.timeout,
        )

        if response.status_code != 200:
            logger.error(
                "Error from Perplexity API: %s - %s", response.status_code, response.text
            )
            raise DiscoveryError(f"Perplexity API error: {response.status_code}")

        body = response.json()
        try:
            text: str = body["choices"][0]["message"]["content"] or ""
        except (KeyError, IndexError, TypeError) as exc:
            raise DiscoveryError("Perplexity response has no message content") from exc

        logger.debug("Raw Perplexity response: %s", text)
        return BackendReply(text=text, citations=self._citations(body))

    @staticmethod
    def _citations(body: Dict[str, Any]) -> List[Dict[str, Any]]:
        search_results = body.get("search_results") or []
        if search_results:
            return [
                {"title": item.get("title"), "url": item.get("url")}
                for item in search_results
                if isinstance(item, dict)
            ]
        # Older responses only carry bare URLs.
        return [{"title": None, "url": url} for url in body.get("citations") or []]


class OpenAIBackend:
    """OpenAI Responses API with the hosted web-search tool."""

    name = "openai"

    def __init__(self, model: str = OPENAI_DISCOVERY_MODEL) -> None:
        self.model = model

    def generate_structured_content(
        self, prompt: str, schema: Dict[str, Any], window: SearchWindow
    ) -> BackendReply:
        response = get_openai().responses.create(
            model=self.model,
            instructions=SYSTEM_PROMPT,
            input=prompt,
            tools=[{"type": "web_search"}],
            text={
                "format": {
                    "type": "json_schema",
                    "name": "event_discovery",
                    "schema": schema,
                    "strict": False,
                }
            },
        )
        text: str = response.output_text or ""
        logger.debug("Raw OpenAI response: %s", text)
        return BackendReply(text=text, citations=self._citations(response))

    @staticmethod
    def _citations(response: Any) -> List[Dict[str, Any]]:
        citations: List[Dict[str, Any]] = []
        for item in getattr(response, "output", None) or []:
            if getattr(item, "type", None) != "message":
                continue
            for part in getattr(item, "content", None) or []:
                for annotation in getattr(part, "annotations", None) or []:
                    if getattr(annotation, "type", None) == "url_citation":
                        citations.append(
                            {
                                "title": getattr(annotation, "title", None),
                                "url": getattr(annotation, "url", None),
                            }
                        )
        return citations


_BACKENDS = {
    PerplexityBackend.name: PerplexityBackend,
    OpenAIBackend.name: OpenAIBackend,
}


def get_backend(name: Optional[str] = None) -> DiscoveryBackend:
    """Instantiate the backend called *name* (defaults to ``DISCOVERY_BACKEND``)."""
    name = (name or DISCOVERY_BACKEND).lower()
    try:
        return _BACKENDS[name]()
    except KeyError:
        raise ValueError(
            f"Unknown discovery backend '{name}', expected one of {sorted(_BACKENDS)}"
        ) from None


__all__ = [
    "BackendReply",
    "DiscoveryBackend",
    "DiscoveryError",
    "OpenAIBackend",
    "PerplexityBackend",
    "SearchWindow",
    "SYSTEM_PROMPT",
    "get_backend",
]
