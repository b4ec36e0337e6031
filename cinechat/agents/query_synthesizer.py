"""
CineChat — Query Synthesizer

Design patterns:
  - Builder: turns free text into a StructuredQuery step by step
  - Mapper: name-based cast / keyword fields → TMDB ID filters

Asks the LLM for a JSON object restricted to the StructuredQuery fields,
then validates it against the schema and resolves named entities.
A response that isn't a JSON object degrades to an empty query, which
still executes as an unfiltered popular-first listing.
"""

from __future__ import annotations

import json
import logging
import re
from datetime import date
from typing import Any, Dict, List, Mapping, Optional

from pydantic import ValidationError

from cinechat.agents.entity_resolver import resolve_keywords, resolve_persons, split_names
from cinechat.clients import chat_completion
from cinechat.genres import GenreDirectory
from cinechat.models import Intent, StructuredQuery

logger = logging.getLogger(__name__)

CAST_SEPARATOR = ","  # TMDB: AND
KEYWORD_SEPARATOR = "|"  # TMDB: OR

# ── System prompt ─────────────────────────────────────────

_SYSTEM_TEMPLATE = """\
You are a system that generates valid TMDB query parameters in JSON format \
given a user's request about {media_label}.
Do not add extra text; just output JSON.

Here is a list of available genres and their corresponding IDs:
{genre_list}

Possible fields:
  query,
  with_genres,
  with_keywords,
{date_fields}
  sort_by,
  with_original_language,
  with_keywords_names,  (e.g. "melancholy, tense, heartbreak, conspiracy")
  vote_average_gte,
  vote_average_lte,
  vote_count_gte,
  with_runtime_gte,
  with_runtime_lte,
  language,  (e.g. "en-US", "es-ES", "fr-FR")
  with_cast_names  (e.g. "tom hanks, leonardo dicaprio")

If the user wants the results in a different language, set "language" to that code \
(for example "fr-FR"). If not specified, you may default to "en-US".

If the user specifies actor names, add "with_cast_names": "Tom Hanks, ..." \
so the system can look up the actors by name.

If the user references abstract or meta traits, add "with_keywords_names": \
"melancholy, tense" so the system can look up the matching keyword IDs. \
Try to add at least 8-9 keywords for an expansive search. \
Only include this parameter if the query is complex or abstract.

Additional rules:
  - "high rated": include "vote_average_gte": "7.0"
  - "popular": "sort_by": "popularity.desc"
  - If both "high rated" and "popular": "vote_average_gte": "7.0" AND "sort_by": "vote_average.desc"
  - Generally, set "vote_count_gte": "1000" or higher to filter out obscure titles, \
but consider that non-English titles might have fewer votes.
  - Always use YYYY-MM-DD format for dates.
  - If "upcoming" is requested, set "{date_prefix}_gte" to today's date ({today}) \
and do NOT include vote_average_gte, vote_average_lte or vote_count_gte.

Only JSON, with no extra text or markdown. Example minimal output:
{{
  "language": "es-ES",
  "with_cast_names": "Tom Hanks",
  "with_keywords_names": "melancholy, heartbreak",
  "vote_average_gte": "7.0"
}}
"""


def _date_prefix(intent: Intent) -> str:
    return "primary_release_date" if intent is Intent.MOVIE else "first_air_date"


def _format_genres(genres: Mapping[str, int]) -> str:
    return ", ".join(f"{name.capitalize()}: {gid}" for name, gid in genres.items())


def build_system_prompt(intent: Intent, directory: GenreDirectory, today: Optional[date] = None) -> str:
    prefix = _date_prefix(intent)
    scope = "For movies only" if intent is Intent.MOVIE else "For TV shows only"
    return _SYSTEM_TEMPLATE.format(
        media_label=intent.media_label,
        genre_list=_format_genres(directory.for_kind(intent.value)) or "(none available)",
        date_fields=f"  {prefix}_gte,  ({scope})\n  {prefix}_lte,  ({scope})",
        date_prefix=prefix,
        today=(today or date.today()).isoformat(),
    )


# ── Output sanitising ─────────────────────────────────────

# A JSON string literal (kept) or a // comment running to end of line (dropped)
_LINE_COMMENT = re.compile(r'("(?:\\.|[^"\\\n])*")|//[^\n]*')


def sanitize_output(raw: str) -> str:
    """Strip markdown fences and ``//`` line comments from model output."""
    cleaned = raw.strip()
    cleaned = re.sub(r"^```(?:json)?\s*", "", cleaned)
    cleaned = re.sub(r"\s*```$", "", cleaned)
    cleaned = _LINE_COMMENT.sub(lambda m: m.group(1) or "", cleaned)
    return cleaned.strip()


def parse_query(raw: str) -> StructuredQuery:
    """Parse sanitised model output; anything but a JSON object is an empty query."""
    cleaned = sanitize_output(raw)

    match = re.search(r"\{.*\}", cleaned, re.DOTALL)
    if match:
        cleaned = match.group(0)

    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError:
        logger.error("Query synthesis returned invalid JSON: %s", raw[:500])
        return StructuredQuery()

    if not isinstance(data, dict):
        logger.error("Query synthesis returned %s, expected an object", type(data).__name__)
        return StructuredQuery()

    unknown = set(data) - set(StructuredQuery.model_fields)
    if unknown:
        logger.debug("Dropping unrecognised query fields: %s", sorted(unknown))

    try:
        return StructuredQuery.model_validate(data)
    except ValidationError as exc:
        logger.error("Query synthesis output failed validation: %s", exc)
        return StructuredQuery()


# ── Entity resolution ─────────────────────────────────────


def merge_keyword_ids(existing: Optional[str], new_ids: List[int]) -> str:
    """Union of existing and newly resolved keyword ids, order kept, no repeats."""
    merged: Dict[str, None] = {}
    for kid in split_names(existing, KEYWORD_SEPARATOR):
        merged[kid] = None
    for kid in new_ids:
        merged[str(kid)] = None
    return KEYWORD_SEPARATOR.join(merged)


async def resolve_named_entities(query: StructuredQuery) -> StructuredQuery:
    """Replace name-based cast / keyword fields with id-based filters."""
    updates: Dict[str, Any] = {"with_cast_names": None, "with_keywords_names": None}

    if query.with_cast_names:
        cast_ids = await resolve_persons(split_names(query.with_cast_names), language=query.language)
        if cast_ids:
            updates["with_cast"] = CAST_SEPARATOR.join(str(i) for i in cast_ids)

    if query.with_keywords_names:
        keyword_ids = await resolve_keywords(split_names(query.with_keywords_names))
        if keyword_ids:
            updates["with_keywords"] = merge_keyword_ids(query.with_keywords, keyword_ids)

    return query.model_copy(update=updates)


# ── Public interface ──────────────────────────────────────


async def synthesize(message: str, intent: Intent, directory: GenreDirectory) -> StructuredQuery:
    """Convert a user message into a resolved StructuredQuery."""
    messages = [
        {"role": "system", "content": build_system_prompt(intent, directory)},
        {"role": "user", "content": message},
    ]

    try:
        raw = await chat_completion(messages, temperature=0.2, max_tokens=300)
    except Exception as exc:
        logger.error("Query synthesis failed: %s", exc)
        return StructuredQuery()

    query = parse_query(raw)
    query = await resolve_named_entities(query)

    logger.info("Synthesized %s query: %s", intent.value, query.as_params())
    return query
