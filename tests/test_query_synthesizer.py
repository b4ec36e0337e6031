"""
Tests for the query synthesizer.
"""

from __future__ import annotations

import json
from datetime import date

import pytest

from cinechat.agents.query_synthesizer import (
    build_system_prompt,
    merge_keyword_ids,
    parse_query,
    resolve_named_entities,
    sanitize_output,
    synthesize,
)
from cinechat.genres import GenreDirectory
from cinechat.models import Intent, StructuredQuery


_DIRECTORY = GenreDirectory(
    movie={"comedy": 35, "horror": 27, "science fiction": 878},
    tv={"animation": 16, "drama": 18},
)


# ── Unit tests (no external calls) ───────────────────────


class TestSanitizeOutput:

    def test_strips_json_fence(self):
        assert sanitize_output('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_strips_bare_fence(self):
        assert sanitize_output('```\n{"a": 1}\n```') == '{"a": 1}'

    def test_strips_line_comments(self):
        raw = '{\n  "sort_by": "popularity.desc", // most popular\n  "with_genres": "27"\n}'
        assert json.loads(sanitize_output(raw)) == {"sort_by": "popularity.desc", "with_genres": "27"}

    def test_keeps_urls(self):
        raw = '{"query": "https://example.com"}'
        assert sanitize_output(raw) == raw

    def test_keeps_slashes_inside_strings(self):
        raw = '{"query": "AC//DC", "sort_by": "popularity.desc"} // band name'
        assert json.loads(sanitize_output(raw)) == {"query": "AC//DC", "sort_by": "popularity.desc"}

    def test_escaped_quote_inside_string(self):
        raw = '{"query": "say \\"hi\\" // not a comment"} // trailing'
        assert json.loads(sanitize_output(raw)) == {"query": 'say "hi" // not a comment'}


class TestParseQuery:

    def test_valid_object(self):
        q = parse_query('{"with_genres": "27,35", "sort_by": "popularity.desc"}')
        assert q.with_genres == "27,35"
        assert q.sort_by == "popularity.desc"

    def test_invalid_json_is_empty(self):
        assert parse_query("Sure! Here are some horror movies.") == StructuredQuery()

    def test_truncated_json_is_empty(self):
        assert parse_query('{"with_genres": "27",') == StructuredQuery()

    def test_array_is_empty(self):
        assert parse_query("[1, 2, 3]") == StructuredQuery()

    def test_surrounding_prose_ignored(self):
        q = parse_query('Here you go:\n{"with_genres": "27"}\nEnjoy!')
        assert q.with_genres == "27"

    def test_unknown_fields_dropped(self):
        q = parse_query('{"with_genres": "27", "api_key": "stolen", "region": "US"}')
        assert q.as_params() == {"with_genres": "27"}

    def test_numbers_carried_as_strings(self):
        q = parse_query('{"vote_average_gte": 7.0, "vote_count_gte": 1000}')
        assert q.vote_average_gte == "7.0"
        assert q.vote_count_gte == "1000"

    def test_list_values_joined(self):
        q = parse_query('{"with_genres": [27, 35]}')
        assert q.with_genres == "27,35"

    def test_nested_object_dropped(self):
        q = parse_query('{"with_genres": {"id": 27}, "sort_by": "popularity.desc"}')
        assert q.with_genres is None
        assert q.sort_by == "popularity.desc"


class TestMergeKeywordIds:

    def test_no_existing(self):
        assert merge_keyword_ids(None, [1, 2]) == "1|2"

    def test_keeps_existing_and_dedupes(self):
        assert merge_keyword_ids("10|20", [20, 30, 30]) == "10|20|30"

    def test_never_drops_existing(self):
        merged = merge_keyword_ids("7|8", [9])
        assert set(merged.split("|")) == {"7", "8", "9"}


class TestBuildSystemPrompt:

    def test_movie_prompt(self):
        prompt = build_system_prompt(Intent.MOVIE, _DIRECTORY, today=date(2026, 1, 2))
        assert "Horror: 27" in prompt
        assert "Science fiction: 878" in prompt
        assert "primary_release_date_gte" in prompt
        assert "first_air_date" not in prompt
        assert "2026-01-02" in prompt

    def test_tv_prompt_uses_tv_genres(self):
        prompt = build_system_prompt(Intent.TV, _DIRECTORY)
        assert "Animation: 16" in prompt
        assert "Horror" not in prompt
        assert "first_air_date_lte" in prompt
        assert "TV shows" in prompt


# ── Entity resolution ─────────────────────────────────────


@pytest.fixture
def mock_resolvers(monkeypatch):
    async def _persons(names, language=None):
        known = {"Tom Hanks": 31}
        return [known[n] for n in names if n in known]

    async def _keywords(names):
        known = {"heist": 10051, "neo-noir": 207268, "betrayal": 10051}
        return [known[n] for n in names if n in known]

    monkeypatch.setattr("cinechat.agents.query_synthesizer.resolve_persons", _persons)
    monkeypatch.setattr("cinechat.agents.query_synthesizer.resolve_keywords", _keywords)


@pytest.mark.asyncio
async def test_cast_partial_resolution(mock_resolvers):
    q = StructuredQuery(with_cast_names="Tom Hanks, Nobody Atall")
    resolved = await resolve_named_entities(q)
    assert resolved.with_cast == "31"
    assert resolved.with_cast_names is None


@pytest.mark.asyncio
async def test_cast_names_removed_when_nothing_resolves(mock_resolvers):
    q = StructuredQuery(with_cast_names="Nobody Atall")
    resolved = await resolve_named_entities(q)
    assert resolved.with_cast is None
    assert "with_cast_names" not in resolved.as_params()


@pytest.mark.asyncio
async def test_keyword_names_merged_into_existing(mock_resolvers):
    q = StructuredQuery(with_keywords="10051|9715", with_keywords_names="heist, neo-noir, betrayal")
    resolved = await resolve_named_entities(q)
    ids = resolved.with_keywords.split("|")
    assert ids == ["10051", "9715", "207268"]
    assert resolved.with_keywords_names is None


@pytest.mark.asyncio
async def test_keyword_names_without_matches_keep_existing(mock_resolvers):
    q = StructuredQuery(with_keywords="9715", with_keywords_names="zzz")
    resolved = await resolve_named_entities(q)
    assert resolved.with_keywords == "9715"
    assert resolved.with_keywords_names is None


# ── End-to-end synthesis (mock LLM) ──────────────────────


def _fake_llm(monkeypatch, answer):
    seen = {}

    async def _fake_chat(messages, **kwargs):
        seen["messages"] = messages
        seen["kwargs"] = kwargs
        if isinstance(answer, Exception):
            raise answer
        return answer

    monkeypatch.setattr("cinechat.agents.query_synthesizer.chat_completion", _fake_chat)
    return seen


@pytest.mark.asyncio
async def test_synthesize_funny_80s_horror(monkeypatch, mock_resolvers):
    seen = _fake_llm(monkeypatch, "```json\n" + json.dumps({
        "with_genres": "27,35",
        "primary_release_date_gte": "1980-01-01",
        "primary_release_date_lte": "1989-12-31",
        "sort_by": "popularity.desc",
        "with_keywords_names": "heist",
    }) + "\n```")

    q = await synthesize("Recommend a funny horror movie from the 80s", Intent.MOVIE, _DIRECTORY)

    genre_ids = q.with_genres.split(",")
    assert str(_DIRECTORY.lookup("movie", "horror")) in genre_ids
    assert str(_DIRECTORY.lookup("movie", "comedy")) in genre_ids
    assert q.primary_release_date_gte == "1980-01-01"
    assert q.primary_release_date_lte == "1989-12-31"
    assert q.with_keywords == "10051"
    assert q.with_keywords_names is None
    assert seen["kwargs"] == {"temperature": 0.2, "max_tokens": 300}


@pytest.mark.asyncio
async def test_synthesize_garbage_is_empty_query(monkeypatch, mock_resolvers):
    _fake_llm(monkeypatch, "I think you would enjoy Gremlins!")
    assert await synthesize("funny horror", Intent.MOVIE, _DIRECTORY) == StructuredQuery()


@pytest.mark.asyncio
async def test_synthesize_llm_failure_is_empty_query(monkeypatch, mock_resolvers):
    _fake_llm(monkeypatch, TimeoutError("slow"))
    assert await synthesize("funny horror", Intent.MOVIE, _DIRECTORY) == StructuredQuery()


def test_parse_query_keeps_double_slash_value():
    q = parse_query('```json\n{\n  "query": "AC//DC", // the band\n  "with_genres": "10402"\n}\n```')
    assert q.query == "AC//DC"
    assert q.with_genres == "10402"
