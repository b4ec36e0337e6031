"""
CineChat — Entity Resolver

Design patterns:
  - Mapper: person / keyword name → TMDB ID resolution
  - Parallel Aggregator: one lookup per name, issued concurrently

Each name costs one TMDB search and contributes the first hit's id, or
nothing. A failed lookup is logged and skipped; the rest of the batch
still resolves.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional


from cinechat.clients.tmdb import search_keyword, search_person
from cinechat.config import settings

logger = logging.getLogger(__name__)


def split_names(raw: Optional[str], sep: str = ",") -> List[str]:
    """Split a delimited name list, dropping blanks."""
    if not raw:
        return []
    return [n.strip() for n in raw.split(sep) if n.strip()]


async def _first_id(
    kind: str,
    name: str,
    search: Callable[[str], Awaitable[List[Dict[str, Any]]]],
) -> Optional[int]:
    try:
        results = await search(name)
    except Exception as exc:
        logger.warning("Error resolving %s %r: %s", kind, name, exc)
        return None
    if not results:
        logger.debug("No %s match for %r", kind, name)
        return None
    return results[0].get("id")


async def _resolve_all(
    kind: str,
    names: Iterable[str],
    search: Callable[[str], Awaitable[List[Dict[str, Any]]]],
) -> List[int]:
    found = await asyncio.gather(*(_first_id(kind, n, search) for n in names))
    ids = [i for i in found if i is not None]
    logger.info("Resolved %d/%d %s names", len(ids), len(found), kind)
    return ids


async def resolve_persons(names: Iterable[str], language: Optional[str] = None) -> List[int]:
    """Resolve actor names to TMDB person IDs."""
    lang = language or settings.default_language

    async def _search(name: str) -> List[Dict[str, Any]]:
        return await search_person(name, language=lang)

    return await _resolve_all("person", names, _search)


async def resolve_keywords(names: Iterable[str]) -> List[int]:
    """Resolve descriptive terms to TMDB keyword IDs."""
    return await _resolve_all("keyword", names, search_keyword)
