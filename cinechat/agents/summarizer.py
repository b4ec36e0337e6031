"""
CineChat — Result Summarizer

Design patterns:
  - Template Method: per-item context block + recommendation prompt
  - Null Object: a fixed "no matches" sentence instead of an LLM call

Turns the top discover results into a short recommendation that only
talks about the titles it was given.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from cinechat.clients import chat_completion
from cinechat.models import Intent

logger = logging.getLogger(__name__)

TOP_N = 5
APOLOGY = "Sorry, I had trouble analyzing the results."


def no_results_message(intent: Intent) -> str:
    return (
        f"I couldn't find any {intent.media_label} matching your criteria. "
        "Please try a different request."
    )


def _format_item(index: int, item: Dict[str, Any], intent: Intent) -> str:
    title = item.get("title") or item.get("name") or "Untitled"
    released = item.get("release_date") or item.get("first_air_date") or "N/A"
    return (
        f"Result {index}:\n"
        f"  Title: {title}\n"
        f"  Release: {released}\n"
        f"  Overview: {item.get('overview', '')}\n"
        f"  Rating: {item.get('vote_average')}/10\n"
        f"  Vote Count: {item.get('vote_count')}\n"
        f"  id: {item.get('id')}\n"
        f"  popularity: {item.get('popularity')}\n"
        f"  media_type: {intent.value}"
    )


def build_context(items: List[Dict[str, Any]], intent: Intent) -> str:
    """Compact context block for the first TOP_N items, catalog order kept."""
    return "\n\n".join(
        _format_item(i, item, intent) for i, item in enumerate(items[:TOP_N], start=1)
    )


async def summarize(original_message: str, items: List[Dict[str, Any]], intent: Intent) -> str:
    if not items:
        return no_results_message(intent)

    assistant = "movie" if intent is Intent.MOVIE else "TV show"
    system_prompt = (
        f'You are a helpful {assistant} assistant. The user asked: "{original_message}"\n'
        "We fetched some TMDB results for them. Summarize or recommend the best match, "
        "mentioning only titles from the results below.\n\n"
        f"Here are the top results:\n\n{build_context(items, intent)}\n\n"
        "Provide a helpful and concise answer for the user."
    )

    try:
        return await chat_completion(
            [{"role": "system", "content": system_prompt}],
            temperature=0.3,
            max_tokens=500,
        )
    except Exception as exc:
        logger.error("Summarizing results failed: %s", exc)
        return APOLOGY
