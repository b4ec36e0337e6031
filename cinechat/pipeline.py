"""
CineChat — Pipeline Orchestrator

Design patterns:
  - Chain of Responsibility: phases execute sequentially, each passing
    results to the next
  - Facade: run_pipeline() is the single entry point

Pipeline flow:
  Classify → (movie | tv) Synthesize → Execute → Summarize
           → (other)      General response

Stateless: every call reads only the messages it is handed and the
current genre directory snapshot.
"""

from __future__ import annotations

import logging
import time
from typing import List, Optional, Sequence

from cinechat.agents.catalog_executor import execute
from cinechat.agents.classifier import classify
from cinechat.agents.query_synthesizer import synthesize
from cinechat.agents.responder import respond_general
from cinechat.agents.summarizer import summarize
from cinechat.genres import GenreDirectoryCache, genre_directory
from cinechat.models import ConversationMessage, RespondResponse

logger = logging.getLogger(__name__)


class EmptyConversationError(ValueError):
    """Raised when there is no message to respond to."""


# ── Pipeline Orchestrator (Facade) ────────────────────────


async def run_pipeline(
    messages: Optional[Sequence[ConversationMessage]],
    *,
    genres: Optional[GenreDirectoryCache] = None,
) -> RespondResponse:
    """Answer the trailing message of ``messages``."""
    if not messages:
        raise EmptyConversationError("No messages provided")

    t0 = time.perf_counter()
    history: List[ConversationMessage] = list(messages)
    user_message = history[-1].content
    genres = genres or genre_directory

    # ── Phase 1: Classification ───────────────────────────
    intent = await classify(user_message)
    logger.info("Phase 1 — Classified as %s", intent.value)

    if not intent.is_recommendation:
        text = await respond_general(history)
        logger.info("General response in %d ms", (time.perf_counter() - t0) * 1000)
        return RespondResponse(response=text)

    # ── Phase 2: Query synthesis ──────────────────────────
    query = await synthesize(user_message, intent, genres.snapshot)
    logger.info("Phase 2 — Query: %s", query.as_params())

    # ── Phase 3: Catalog discovery ────────────────────────
    items = await execute(query, intent)
    logger.info("Phase 3 — %d %s results", len(items), intent.value)

    # ── Phase 4: Summary ──────────────────────────────────
    text = await summarize(user_message, items, intent)

    logger.info("Pipeline complete in %d ms", (time.perf_counter() - t0) * 1000)
    return RespondResponse(
        response=text,
        tmdbData=items,
        queryParams=query.as_params(),
        requestType=intent.value,
    )
