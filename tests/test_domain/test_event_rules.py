"""
Tests for event domain rules: transitions, filters, cache keys
"""
from datetime import datetime, timedelta, timezone

from event_locator.domain.event import (
    CATEGORIES_CACHE_KEY,
    EVENT_STATUS_ACTIVE,
    EVENT_STATUS_CANCELLED,
    EVENT_STATUS_COMPLETED,
    EventChangeSummary,
    EventFilters,
    can_transition,
    ensure_utc,
    invalidation_patterns,
    item_cache_key,
)


class TestTransitions:
    def test_active_can_be_cancelled_or_completed(self):
        assert can_transition(EVENT_STATUS_ACTIVE, EVENT_STATUS_CANCELLED)
        assert can_transition(EVENT_STATUS_ACTIVE, EVENT_STATUS_COMPLETED)

    def test_no_resurrection(self):
        assert not can_transition(EVENT_STATUS_CANCELLED, EVENT_STATUS_ACTIVE)
        assert not can_transition(EVENT_STATUS_COMPLETED, EVENT_STATUS_ACTIVE)
        assert not can_transition(EVENT_STATUS_COMPLETED, EVENT_STATUS_CANCELLED)

    def test_same_status_is_allowed(self):
        assert can_transition(EVENT_STATUS_ACTIVE, EVENT_STATUS_ACTIVE)


class TestEnsureUtc:
    def test_naive_is_treated_as_utc(self):
        value = ensure_utc(datetime(2026, 5, 1, 12, 0))
        assert value.tzinfo == timezone.utc
        assert value.hour == 12

    def test_aware_is_converted(self):
        value = ensure_utc(datetime(2026, 5, 1, 15, 0, tzinfo=timezone(timedelta(hours=3))))
        assert value.hour == 12

    def test_none(self):
        assert ensure_utc(None) is None


class TestFilters:
    def test_category_is_trimmed(self):
        assert EventFilters(category="  music ").category == "music"
        assert EventFilters(category="   ").category is None

    def test_same_filters_same_key(self):
        a = EventFilters(category="music", name="jazz", limit=20)
        b = EventFilters(category=" music", name="jazz ", limit=20)
        assert a.list_cache_key() == b.list_cache_key()

    def test_any_parameter_changes_the_key(self):
        base = EventFilters(category="music", limit=20)
        assert base.list_cache_key() != EventFilters(category="music", limit=20, offset=20).list_cache_key()
        assert base.list_cache_key() != EventFilters(category="music", limit=10).list_cache_key()

    def test_key_starts_with_category_bucket(self):
        assert EventFilters(category="music").list_cache_key().startswith("event:list:c:music:")
        assert EventFilters().list_cache_key().startswith("event:list:all:")

    def test_nearby_key_depends_on_point(self):
        f = EventFilters(limit=20)
        assert f.nearby_cache_key(40.78, -73.97, 1).startswith("event:nearby:all:")
        assert f.nearby_cache_key(40.78, -73.97, 1) != f.nearby_cache_key(40.78, -73.97, 2)


class TestInvalidationPatterns:
    def test_covers_both_namespaces_and_categories(self):
        patterns = invalidation_patterns({"music", "jazz"})
        assert "event:list:all:*" in patterns
        assert "event:nearby:all:*" in patterns
        assert "event:list:c:music:*" in patterns
        assert "event:list:c:jazz:*" in patterns
        assert "event:nearby:c:jazz:*" in patterns

    def test_glob_characters_are_escaped(self):
        patterns = invalidation_patterns({"a*b"})
        assert "event:list:c:a\\*b:*" in patterns

    def test_item_and_categories_keys(self):
        assert item_cache_key(7) == "event:7"
        assert CATEGORIES_CACHE_KEY == "event:categories"


def test_change_summary_payload():
    summary = EventChangeSummary(event_id=1, title="Jazz Night", category="music", changes="time, location")
    assert summary.to_payload() == {
        "id": 1,
        "title": "Jazz Night",
        "category": "music",
        "changes": "time, location",
    }
