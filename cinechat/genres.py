"""
CineChat — Genre Directory Cache

Process-wide mapping from lowercase genre name to TMDB genre id, for the
movie and TV taxonomies.

Design patterns:
  - Snapshot: an immutable GenreDirectory is swapped in wholesale on each
    successful refresh, so readers never see a partial rebuild
  - Singleton: one shared cache, ``genre_directory``
  - Scheduler: run_periodic() is the independently scheduled refresh task
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional

import httpx

from cinechat.clients.tmdb import get_genre_list
from cinechat.config import settings

logger = logging.getLogger(__name__)


def _frozen(mapping: Optional[Mapping[str, int]] = None) -> Mapping[str, int]:
    return MappingProxyType(dict(mapping or {}))


@dataclass(frozen=True)
class GenreDirectory:
    """One complete, read-only snapshot of both taxonomies."""

    movie: Mapping[str, int] = field(default_factory=_frozen)
    tv: Mapping[str, int] = field(default_factory=_frozen)

    def __post_init__(self) -> None:
        object.__setattr__(self, "movie", _frozen(self.movie))
        object.__setattr__(self, "tv", _frozen(self.tv))

    def for_kind(self, kind: str) -> Mapping[str, int]:
        return self.movie if kind == "movie" else self.tv

    def lookup(self, kind: str, name: str) -> Optional[int]:
        return self.for_kind(kind).get(name.strip().lower())

    @property
    def is_empty(self) -> bool:
        return not self.movie and not self.tv


class GenreDirectoryCache:
    """Owns the current GenreDirectory and knows how to refresh it."""

    def __init__(self, initial: Optional[GenreDirectory] = None) -> None:
        self._snapshot = initial or GenreDirectory()

    @property
    def snapshot(self) -> GenreDirectory:
        return self._snapshot

    def lookup(self, kind: str, name: str) -> Optional[int]:
        return self._snapshot.lookup(kind, name)

    async def refresh(self) -> bool:
        """
        Fetch both taxonomies and replace the snapshot on success.
        On any failure the previous snapshot stays in place.
        """
        try:
            movie = await get_genre_list("movie", settings.default_language)
            tv = await get_genre_list("tv", settings.default_language)
        except (httpx.HTTPError, KeyError, TypeError, ValueError) as exc:
            logger.error("Genre refresh failed, keeping cached directory: %s", exc)
            return False

        self._snapshot = GenreDirectory(movie=movie, tv=tv)
        logger.info("Cached %d movie genres and %d TV genres", len(movie), len(tv))
        return True

    async def run_periodic(self, interval: float) -> None:
        """Refresh now, then every ``interval`` seconds until cancelled."""
        while True:
            try:
                await self.refresh()
            except Exception:
                logger.exception("Unexpected error refreshing genres, will retry next interval")
            await asyncio.sleep(interval)


# Singleton – import this everywhere
genre_directory = GenreDirectoryCache()
