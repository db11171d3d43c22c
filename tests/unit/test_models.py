"""Tests for domain models."""

from datetime import datetime, timezone

import pytest

from swipenews.models import (
    Article,
    CacheEntry,
    Decision,
    HistoryEntry,
    RefreshEvent,
    is_rate_limit_message,
    parse_published_at,
)


class TestParsePublishedAt:
    @pytest.mark.parametrize(
        "value",
        [
            "2026-02-06T12:00:00Z",
            "2026-02-06T12:00:00.000Z",
            "2026-02-06T12:00:00+00:00",
            "2026-02-06T14:00:00+02:00",
            "Fri, 06 Feb 2026 12:00:00 GMT",
            "2026-02-06 12:00:00 +0000",
            "2026-02-06 12:00:00",
        ],
    )
    def test_formats_normalize_to_utc(self, value):
        parsed = parse_published_at(value)
        assert parsed == datetime(2026, 2, 6, 12, 0, tzinfo=timezone.utc)

    def test_epoch_seconds(self):
        assert parse_published_at(0) == datetime(1970, 1, 1, tzinfo=timezone.utc)

    def test_naive_datetime_assumed_utc(self):
        parsed = parse_published_at(datetime(2026, 2, 6, 12, 0))
        assert parsed.tzinfo == timezone.utc

    @pytest.mark.parametrize("value", [None, "", "yesterday", "not a date", ["2026"]])
    def test_unparseable_returns_none(self, value):
        assert parse_published_at(value) is None


class TestArticle:
    def test_identity_is_url(self, make_article):
        a = make_article(1)
        b = make_article(1, title="Different title", source="AP")
        assert a == b
        assert len({a, b}) == 1

    def test_different_urls_differ(self, make_article):
        assert make_article(1) != make_article(2)

    def test_frozen(self, sample_article):
        with pytest.raises(ValueError):
            sample_article.title = "changed"

    def test_published_at_parsed(self, sample_article):
        assert sample_article.published_at == datetime(2026, 2, 6, 12, 0, tzinfo=timezone.utc)

    def test_bad_timestamp_becomes_none(self):
        article = Article(url="https://x.test/a", title="A", published_at="garbage")
        assert article.published_at is None
        assert article.source == "unknown"


class TestSerialization:
    def test_history_entry_json_roundtrip(self, sample_article):
        entry = HistoryEntry(article=sample_article, decision=Decision.READ)
        restored = HistoryEntry.model_validate_json(entry.model_dump_json())
        assert restored.article.url == sample_article.url
        assert restored.decision is Decision.READ
        assert restored.timestamp == entry.timestamp

    def test_cache_entry_keeps_order(self, make_articles, now):
        articles = make_articles(5)
        entry = CacheEntry(category="general", articles=tuple(articles), fetched_at=now)
        restored = CacheEntry.model_validate_json(entry.model_dump_json())
        assert [a.url for a in restored.articles] == [a.url for a in articles]


class TestRefreshEvent:
    def test_ok_without_error(self):
        assert RefreshEvent(category="general", count=3).ok

    def test_not_ok_with_error(self):
        assert not RefreshEvent(category="general", error="boom").ok


class TestRateLimitMessage:
    @pytest.mark.parametrize(
        "message",
        [
            "gnews: rate limit exceeded (HTTP 429)",
            "You have reached your API limit",
            "Daily limit reached for this key",
            "Too Many Requests",
        ],
    )
    def test_matches(self, message):
        assert is_rate_limit_message(message)

    @pytest.mark.parametrize("message", [None, "", "HTTP 500", "timed out after 3.0s"])
    def test_no_match(self, message):
        assert not is_rate_limit_message(message)
