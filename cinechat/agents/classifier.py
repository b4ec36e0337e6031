"""
CineChat — Intent Classifier

Single constrained LLM call that labels the user's latest message as a
movie request, a TV request, or anything else. Any unexpected output,
and any failure, is treated as general chat.
"""

from __future__ import annotations

import logging

from cinechat.clients import chat_completion
from cinechat.models import Intent

logger = logging.getLogger(__name__)

_SYSTEM_PROMPT = """\
You are a classifier that determines whether the user is explicitly asking for \
a recommendation or discovery of movies or TV shows.
- If the user explicitly wants suggestions, recommendations, or is searching for \
movies, respond with "movie".
- If the user explicitly wants suggestions, recommendations, or is searching for \
TV shows, respond with "tv".
- If the user is asking for opinions, speculation about ratings, or anything \
else that does NOT involve actually finding or recommending a movie or TV show, \
respond with "none".

Only respond with one of the three words: "movie", "tv", or "none".
"""

_LABELS = {"movie": Intent.MOVIE, "tv": Intent.TV}


def parse_label(raw: str) -> Intent:
    """Map raw model output onto an Intent; anything unknown is OTHER."""
    label = raw.strip().strip("\"'.").lower()
    return _LABELS.get(label, Intent.OTHER)


async def classify(message: str) -> Intent:
    messages = [
        {"role": "system", "content": _SYSTEM_PROMPT},
        {"role": "user", "content": message},
    ]
    try:
        raw = await chat_completion(messages, temperature=0.0, max_tokens=1)
    except Exception as exc:
        logger.error("Classification failed, treating as general chat: %s", exc)
        return Intent.OTHER

    intent = parse_label(raw)
    logger.info("Classified %r as %s", message[:80], intent.value)
    return intent
