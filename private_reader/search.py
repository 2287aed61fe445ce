"""
Web search backends used to attach reading resources to learning modules.

Two backends share one interface: Tavily's search API, and a Gemini call with
the Google Search tool whose grounding metadata lists the pages it consulted.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from private_reader.config import Settings, get_settings
from private_reader.errors import ProviderError
from private_reader.prompts import build_prompt
from private_reader.providers import gemini_status
from private_reader.schemas import Resource

logger = logging.getLogger(__name__)

MAX_QUERY_LENGTH = 400
TRUNCATED_QUERY_LENGTH = 380

TAVILY_SEARCH_URL = "https://api.tavily.com/search"


def truncate_query(query: str) -> str:
    if len(query) > MAX_QUERY_LENGTH:
        return query[:TRUNCATED_QUERY_LENGTH]
    return query


class SearchProvider(Protocol):
    name: str

    def search(self, query: str, max_results: int) -> list[Resource]: ...


class TavilySearch:
    name = "Tavily"

    def __init__(self, settings: Settings, transport: httpx.BaseTransport | None = None) -> None:
        self._settings = settings
        self._api_key = settings.require("tavily_api_key", "TAVILY_API_KEY")
        self._transport = transport

    def search(self, query: str, max_results: int) -> list[Resource]:
        payload = {
            "query": query,
            "max_results": max_results,
            "include_raw_content": self._settings.search_include_raw_content,
        }
        try:
            with httpx.Client(timeout=self._settings.search_timeout, transport=self._transport) as client:
                r = client.post(
                    TAVILY_SEARCH_URL,
                    headers={"Authorization": f"Bearer {self._api_key}", "Content-Type": "application/json"},
                    json=payload,
                )
        except httpx.HTTPError as e:
            raise ProviderError(self.name, f"Tavily API unreachable: {e}") from e

        if r.status_code >= 400:
            raise ProviderError(self.name, f"Tavily API error: {r.status_code} {r.text[:500]}", status_code=r.status_code)

        try:
            data = r.json()
        except ValueError as e:
            raise ProviderError(self.name, "Tavily API returned a non-JSON body") from e
        return [_tavily_resource(item) for item in (data.get("results") or [])[:max_results]]


def _tavily_resource(item: dict[str, Any]) -> Resource:
    return Resource(
        title=item.get("title") or item.get("url") or "",
        url=item.get("url") or "",
        content=item.get("content") or "",
        score=float(item.get("score") or 0.0),
        raw_content=item.get("raw_content") or None,
    )


class GroundedGeminiSearch:
    """Resources taken from the grounding metadata of a search-augmented Gemini call."""

    name = "Gemini grounding"

    def __init__(self, settings: Settings, client: genai.Client | None = None) -> None:
        self._settings = settings
        if client is None:
            api_key = settings.require("gemini_api_key", "GEMINI_API_KEY")
            client = genai.Client(
                api_key=api_key,
                http_options=types.HttpOptions(timeout=int(settings.search_timeout * 1000)),
            )
        self.client = client

    def search(self, query: str, max_results: int) -> list[Resource]:
        try:
            resp = self.client.models.generate_content(
                model=self._settings.grounding_model,
                contents=build_prompt("enrichment", query),
                config=types.GenerateContentConfig(
                    tools=[types.Tool(google_search=types.GoogleSearch())],
                    temperature=0.0,
                ),
            )
        except genai_errors.APIError as e:
            raise ProviderError(self.name, f"Gemini API error: {e.code} - {e.message}", status_code=gemini_status(e)) from e
        except httpx.HTTPError as e:
            raise ProviderError(self.name, f"Gemini API unreachable: {e}") from e

        candidates = resp.candidates or []
        metadata = candidates[0].grounding_metadata if candidates else None
        if metadata is None:
            return []
        return _grounding_resources(metadata)[:max_results]


def _grounding_resources(metadata: Any) -> list[Resource]:
    chunks = metadata.grounding_chunks or []
    snippets: dict[int, list[str]] = {}
    confidence: dict[int, float] = {}
    for support in metadata.grounding_supports or []:
        segment_text = (support.segment.text if support.segment else None) or ""
        scores = support.confidence_scores or []
        for pos, idx in enumerate(support.grounding_chunk_indices or []):
            if segment_text:
                snippets.setdefault(idx, []).append(segment_text)
            if pos < len(scores):
                confidence[idx] = max(confidence.get(idx, 0.0), float(scores[pos]))

    resources: list[Resource] = []
    seen: set[str] = set()
    for idx, chunk in enumerate(chunks):
        web = chunk.web
        if web is None or not web.uri or web.uri in seen:
            continue
        seen.add(web.uri)
        resources.append(
            Resource(
                title=web.title or web.uri,
                url=web.uri,
                content=" ".join(snippets.get(idx, [])),
                score=confidence.get(idx, 0.0),
            )
        )
    resources.sort(key=lambda r: r.score, reverse=True)
    return resources


_BACKENDS: dict[str, type] = {
    "tavily": TavilySearch,
    "gemini": GroundedGeminiSearch,
}


def get_search_provider(settings: Settings | None = None) -> SearchProvider:
    settings = settings or get_settings()
    try:
        cls = _BACKENDS[settings.search_provider]
    except KeyError:
        raise ValueError(f"Unknown SEARCH_PROVIDER {settings.search_provider!r}") from None
    return cls(settings)
