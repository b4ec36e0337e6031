"""
CineChat — Catalog Query Executor

Takes a StructuredQuery and runs it against TMDB's discover endpoint for
the requested media kind.

The PARAM_MAP allow-list is the only path from a query field to an
upstream parameter: anything not listed, or set to an empty value, is
never sent.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Union

import httpx

from cinechat.clients.tmdb import discover
from cinechat.config import settings
from cinechat.models import Intent, StructuredQuery

logger = logging.getLogger(__name__)

# ── Allow-list: internal field → TMDB discover parameter ──

PARAM_MAP: Dict[str, str] = {
    "query": "query",
    "with_genres": "with_genres",
    "with_cast": "with_cast",
    "with_crew": "with_crew",
    "with_keywords": "with_keywords",
    "year": "year",
    "primary_release_date_gte": "primary_release_date.gte",
    "primary_release_date_lte": "primary_release_date.lte",
    "first_air_date_gte": "first_air_date.gte",
    "first_air_date_lte": "first_air_date.lte",
    "vote_average_gte": "vote_average.gte",
    "vote_average_lte": "vote_average.lte",
    "vote_count_gte": "vote_count.gte",
    "with_runtime_gte": "with_runtime.gte",
    "with_runtime_lte": "with_runtime.lte",
    "sort_by": "sort_by",
    "with_original_language": "with_original_language",
}


def build_discover_params(query: Union[StructuredQuery, Dict[str, Any]]) -> Dict[str, Any]:
    """Map a query onto TMDB discover parameters through the allow-list."""
    fields = query.model_dump() if isinstance(query, StructuredQuery) else dict(query)

    params: Dict[str, Any] = {"language": fields.get("language") or settings.default_language}
    for key, value in fields.items():
        tmdb_key = PARAM_MAP.get(key)
        if tmdb_key and value:
            params[tmdb_key] = value
    return params


async def execute(query: StructuredQuery, intent: Intent) -> List[Dict[str, Any]]:
    """Run the discover request and stamp each result with its media kind."""
    kind = intent.value
    params = build_discover_params(query)
    logger.info("TMDB discover/%s params=%s", kind, params)

    try:
        results = await discover(kind, params)
    except (httpx.HTTPError, ValueError) as exc:
        logger.error("TMDB discover/%s fetch error: %s", kind, exc)
        return []

    return [{**item, "media_type": kind} for item in results]
