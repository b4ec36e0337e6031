"""
CineChat — TMDB Client

Design patterns:
  - Repository: abstracts TMDB API behind a clean interface
  - Singleton: shared httpx client with connection pooling
  - Semaphore: bounded concurrent requests for batched lookups

Async HTTP client for TMDB API v3, authenticated with the static
``api_key`` query parameter. Errors propagate as ``httpx.HTTPError``;
each caller decides which safe default to fall back to.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional

import httpx

from cinechat.config import settings

logger = logging.getLogger(__name__)

# ── Shared client ─────────────────────────────────────────

_client: Optional[httpx.AsyncClient] = None


async def get_client() -> httpx.AsyncClient:
    global _client
    if _client is None or _client.is_closed:
        _client = httpx.AsyncClient(
            base_url=settings.tmdb_base_url,
            headers={"Accept": "application/json"},
        )
    return _client


async def close_client() -> None:
    global _client
    if _client and not _client.is_closed:
        await _client.aclose()
        _client = None


# ── Bounded request (no retries) ──────────────────────────


_RATE_SEMAPHORE = asyncio.Semaphore(settings.tmdb_max_concurrency)


async def _get(path: str, params: Optional[Dict[str, Any]] = None) -> Any:
    """Execute a single authenticated GET against TMDB."""
    query = {"api_key": settings.tmdb_api_key}
    query.update(params or {})

    client = await get_client()
    async with _RATE_SEMAPHORE:
        resp = await client.get(path, params=query)
    resp.raise_for_status()
    return resp.json()


# ── Payload shaping ───────────────────────────────────────


def _results(data: Any, key: str = "results") -> List[Dict[str, Any]]:
    """The object items under ``key``; anything else in the payload is skipped."""
    items = data.get(key) if isinstance(data, dict) else None
    if not isinstance(items, list):
        return []
    return [item for item in items if isinstance(item, dict)]


# ── Public helpers ────────────────────────────────────────


async def get_genre_list(kind: str, language: str = "en-US") -> Dict[str, int]:
    """
    Return {lowercase genre name: genre_id} for ``movie`` or ``tv``.
    Entries without a string name and an integer id are dropped.
    """
    data = await _get(f"/genre/{kind}/list", {"language": language})
    if not isinstance(data, dict) or not isinstance(data.get("genres"), list):
        raise ValueError(f"Malformed {kind} genre list payload")
    return {
        g["name"].lower(): g["id"]
        for g in _results(data, "genres")
        if isinstance(g.get("name"), str) and isinstance(g.get("id"), int)
    }


async def search_person(name: str, language: str = "en-US") -> List[Dict[str, Any]]:
    """Search people by name. Returns TMDB person results, best match first."""
    data = await _get(
        "/search/person",
        {"query": name, "language": language, "include_adult": "false"},
    )
    return _results(data)


async def search_keyword(text: str) -> List[Dict[str, Any]]:
    """Search TMDB keyword IDs by text. Returns list of {id, name}."""
    data = await _get("/search/keyword", {"query": text, "page": 1})
    return _results(data)


async def discover(kind: str, params: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Execute /discover/{movie|tv} with already-mapped params."""
    data = await _get(f"/discover/{kind}", params)
    return _results(data)


async def get_title_details(kind: str, title_id: str) -> Dict[str, Any]:
    """Fetch full details for a single movie or show, with credits attached."""
    return await _get(f"/{kind}/{title_id}", {"append_to_response": "credits"})
