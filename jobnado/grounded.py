"""LLM calls augmented with Google Search retrieval."""
from __future__ import annotations

from typing import Any

from jobnado.log import get_logger
from jobnado.models import Source

log = get_logger(__name__)


class GroundedResult:
    """Free text plus the citation sources the search layer attached.

    ``sources`` is read from the response's grounding metadata on first
    access; callers that only need the text never touch it.
    """

    def __init__(self, text: str, response: Any = None, sources: list[Source] | None = None) -> None:
        self.text = text
        self._response = response
        self._sources = sources

    @property
    def sources(self) -> list[Source]:
        if self._sources is None:
            self._sources = _extract_sources(self._response)
        return self._sources


def _extract_sources(response: Any) -> list[Source]:
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return []
    metadata = getattr(candidates[0], "grounding_metadata", None)
    chunks = getattr(metadata, "grounding_chunks", None) or []
    sources: list[Source] = []
    for chunk in chunks:
        web = getattr(chunk, "web", None)
        uri = getattr(web, "uri", None) if web else None
        if not uri:
            continue
        sources.append(Source(title=getattr(web, "title", None) or "", uri=uri))
    return sources


class GroundedSearchClient:
    """Wraps ``generate_content`` with the Google Search tool enabled."""

    def __init__(self, api_key: str, model: str, *, client: Any = None) -> None:
        if client is None:
            from google import genai

            client = genai.Client(api_key=api_key)
        self._client = client
        self.model = model

    def search(self, prompt: str) -> GroundedResult:
        from google.genai import types

        response = self._client.models.generate_content(
            model=self.model,
            contents=prompt,
            config=types.GenerateContentConfig(
                tools=[types.Tool(google_search=types.GoogleSearch())],
            ),
        )
        text = getattr(response, "text", None) or ""
        log.debug("Grounded search returned %d chars", len(text))
        return GroundedResult(text=text, response=response)
