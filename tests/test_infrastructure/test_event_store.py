"""
Tests for SpatialEventStore (SQLite in-memory)
"""
from datetime import timedelta

import pytest

from event_locator.domain.event import (
    EVENT_STATUS_ACTIVE,
    EVENT_STATUS_CANCELLED,
    EVENT_STATUS_COMPLETED,
    EventFilters,
    ensure_utc,
    utcnow,
)
from event_locator.domain.geo import distance_between
from event_locator.infrastructure.stores.events import SpatialEventStore


def _fields(**overrides):
    start = utcnow() + timedelta(days=1)
    data = {
        "title": "Jazz Night",
        "description": "",
        "address": "Central Park",
        "start_time": start,
        "end_time": start + timedelta(hours=3),
        "category": "music",
        "longitude": -73.97,
        "latitude": 40.78,
        "created_by": 1,
    }
    data.update(overrides)
    return data


@pytest.fixture
def store(db_session):
    return SpatialEventStore(db_session)


class TestCreateAndGet:
    def test_round_trip(self, store):
        fields = _fields(ticket_price=25)
        created = store.create(fields)

        fetched = store.get_by_id(created.id)
        assert fetched is not None
        assert fetched.title == "Jazz Night"
        assert fetched.address == "Central Park"
        assert fetched.category == "music"
        assert fetched.longitude == pytest.approx(-73.97)
        assert fetched.latitude == pytest.approx(40.78)
        assert ensure_utc(fetched.start_time) == ensure_utc(fields["start_time"])
        assert ensure_utc(fetched.end_time) == ensure_utc(fields["end_time"])
        assert float(fetched.ticket_price) == 25.0
        assert fetched.status == EVENT_STATUS_ACTIVE
        assert fetched.created_by == 1

    def test_missing_id(self, store):
        assert store.get_by_id(999) is None


class TestSoftDelete:
    def test_delete_is_idempotent(self, store):
        event = store.create(_fields())

        assert store.delete(event.id) is True
        assert store.get_by_id(event.id) is None
        assert store.delete(event.id) is False

    def test_cancelled_hidden_from_listing(self, store):
        keep = store.create(_fields(title="Keep"))
        gone = store.create(_fields(title="Gone"))
        store.delete(gone.id)

        ids = [e.id for e in store.get_all(EventFilters())]
        assert ids == [keep.id]
        assert store.count(EventFilters()) == 1

    def test_completed_cannot_be_cancelled(self, store):
        event = store.create(_fields())
        assert store.complete(event.id) is True
        assert store.delete(event.id) is False
        assert store.get_by_id(event.id).status == EVENT_STATUS_COMPLETED


class TestUpdate:
    def test_patches_only_supplied_fields(self, store):
        event = store.create(_fields(description="old"))
        before = ensure_utc(event.updated_at)

        updated = store.update(event.id, {"title": "Late Jazz"})
        assert updated.title == "Late Jazz"
        assert updated.description == "old"
        assert ensure_utc(updated.updated_at) >= before

    def test_point_needs_both_coordinates(self, store):
        event = store.create(_fields())
        store.update(event.id, {"longitude": 2.35})
        assert store.get_by_id(event.id).longitude == pytest.approx(-73.97)

        store.update(event.id, {"longitude": 2.35, "latitude": 48.85})
        moved = store.get_by_id(event.id)
        assert (moved.latitude, moved.longitude) == (pytest.approx(48.85), pytest.approx(2.35))

    def test_cancelled_event_is_not_updated(self, store):
        event = store.create(_fields())
        store.delete(event.id)
        assert store.update(event.id, {"title": "x"}) is None


class TestListing:
    def test_filters(self, store):
        now = utcnow()
        a = store.create(_fields(title="Morning Yoga", category="sport", address="Riverside", created_by=2,
                                 start_time=now + timedelta(days=1), end_time=now + timedelta(days=1, hours=1)))
        b = store.create(_fields(title="Jazz Night", category="music", address="Central Park",
                                 start_time=now + timedelta(days=3), end_time=now + timedelta(days=3, hours=2)))

        assert [e.id for e in store.get_all(EventFilters(category="sport"))] == [a.id]
        assert [e.id for e in store.get_all(EventFilters(name="jazz"))] == [b.id]
        assert [e.id for e in store.get_all(EventFilters(address="river"))] == [a.id]
        assert [e.id for e in store.get_all(EventFilters(created_by=2))] == [a.id]
        assert [e.id for e in store.get_all(EventFilters(start_date=now + timedelta(days=2)))] == [b.id]
        assert [e.id for e in store.get_all(EventFilters(end_date=now + timedelta(days=2)))] == [a.id]

    def test_name_filter_treats_wildcards_literally(self, store):
        store.create(_fields(title="100% Jazz"))
        store.create(_fields(title="1000 Jazz"))
        assert [e.title for e in store.get_all(EventFilters(name="100%"))] == ["100% Jazz"]

    def test_ordered_by_start_time_and_paginated(self, store):
        now = utcnow()
        created = [
            store.create(_fields(title=f"E{i}", start_time=now + timedelta(days=5 - i),
                                 end_time=now + timedelta(days=5 - i, hours=1)))
            for i in range(5)
        ]
        expected = [e.id for e in reversed(created)]

        assert [e.id for e in store.get_all(EventFilters(limit=2))] == expected[:2]
        assert [e.id for e in store.get_all(EventFilters(limit=2, offset=2))] == expected[2:4]
        assert store.count(EventFilters(limit=2)) == 5

    def test_categories_distinct_sorted_without_cancelled(self, store):
        store.create(_fields(category="music"))
        store.create(_fields(category="music"))
        store.create(_fields(category="art"))
        gone = store.create(_fields(category="sport"))
        store.delete(gone.id)

        assert store.get_categories() == ["art", "music"]

    def test_finished_before(self, store):
        now = utcnow()
        past = store.create(_fields(start_time=now - timedelta(hours=3), end_time=now - timedelta(hours=1)))
        store.create(_fields())

        assert [e.id for e in store.finished_before(now)] == [past.id]


class TestFindNearby:
    CENTER = (40.78, -73.97)

    def _seed(self, store):
        points = {
            "here": (40.78, -73.97),
            "1km": (40.789, -73.97),
            "4km": (40.78, -73.9226),
            "8km": (40.852, -73.97),
            "far": (34.05, -118.24),
        }
        return {
            name: store.create(_fields(title=name, latitude=lat, longitude=lon))
            for name, (lat, lon) in points.items()
        }

    @pytest.mark.parametrize("radius", [0.5, 1.5, 5, 10, 50, 5000])
    def test_every_result_is_within_radius(self, store, radius):
        self._seed(store)
        for event, distance in store.find_nearby(*self.CENTER, radius, EventFilters()):
            assert distance <= radius + 1e-9
            assert distance == pytest.approx(distance_between(*self.CENTER, event.latitude, event.longitude))

    def test_nothing_inside_radius_is_missed(self, store):
        seeded = self._seed(store)
        found = {e.title for e, _ in store.find_nearby(*self.CENTER, 5, EventFilters())}
        assert found == {"here", "1km", "4km"}
        assert seeded["far"].title not in found

    def test_sorted_by_distance(self, store):
        self._seed(store)
        results = store.find_nearby(*self.CENTER, 10, EventFilters())
        distances = [d for _, d in results]
        assert distances == sorted(distances)
        assert results[0][0].title == "here"
        assert results[0][1] == pytest.approx(0.0, abs=1e-6)

    def test_equal_distances_page_by_id(self, store):
        ids = [store.create(_fields(title=f"stage {n}")).id for n in range(3)]

        everything = store.find_nearby(*self.CENTER, 1, EventFilters())
        assert [e.id for e, _ in everything] == sorted(ids)

        middle = store.find_nearby(*self.CENTER, 1, EventFilters(limit=1, offset=1))
        assert [e.id for e, _ in middle] == [sorted(ids)[1]]

    def test_pagination_and_filters(self, store):
        self._seed(store)
        page = store.find_nearby(*self.CENTER, 10, EventFilters(limit=2, offset=1))
        assert [e.title for e, _ in page] == ["1km", "4km"]

        store.create(_fields(title="art show", category="art"))

        art = store.find_nearby(*self.CENTER, 10, EventFilters(category="art"))
        assert [e.title for e, _ in art] == ["art show"]

    def test_cancelled_events_are_excluded(self, store):
        seeded = self._seed(store)
        store.delete(seeded["here"].id)
        found = {e.title for e, _ in store.find_nearby(*self.CENTER, 5, EventFilters())}
        assert "here" not in found

    def test_across_antimeridian(self, store):
        east = store.create(_fields(title="east", latitude=0.0, longitude=179.99))
        results = store.find_nearby(0.0, -179.99, 5, EventFilters())
        assert [e.id for e, _ in results] == [east.id]

    def test_near_pole(self, store):
        other_side = store.create(_fields(title="pole", latitude=89.99, longitude=180.0))
        results = store.find_nearby(89.99, 0.0, 5, EventFilters())
        assert [e.id for e, _ in results] == [other_side.id]
