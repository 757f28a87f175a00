"""
Tests for InterestResolver
"""
from datetime import timedelta

from event_locator.application.interest import InterestResolver
from event_locator.domain.event import utcnow
from event_locator.domain.user import USER_STATUS_SUSPENDED, Recipient
from event_locator.infrastructure.stores.events import SpatialEventStore


def _event(db_session, creator_id, category="music"):
    start = utcnow() + timedelta(days=3)
    return SpatialEventStore(db_session).create(
        {
            "title": "Jazz Night",
            "address": "Central Park",
            "start_time": start,
            "end_time": start + timedelta(hours=2),
            "category": category,
            "longitude": -73.97,
            "latitude": 40.78,
            "created_by": creator_id,
        }
    )


def test_every_reason_counts_once(db_session, make_user, register):
    creator = make_user(categories=("music",))
    fan = make_user(categories=("music", "art"), language="es")
    attendee = make_user()
    make_user(categories=("sports",))
    event = _event(db_session, creator.id)
    register(creator.id, event.id)
    register(attendee.id, event.id)

    recipients = InterestResolver(db_session).find_interested_users(event.id, "music")

    assert recipients == [
        Recipient(user_id=creator.id, language="en"),
        Recipient(user_id=fan.id, language="es"),
        Recipient(user_id=attendee.id, language="en"),
    ]


def test_inactive_users_are_skipped(db_session, make_user, register):
    creator = make_user()
    suspended = make_user(categories=("music",), status=USER_STATUS_SUSPENDED)
    event = _event(db_session, creator.id)
    register(suspended.id, event.id)

    recipients = InterestResolver(db_session).find_interested_users(event.id, "music")

    assert [r.user_id for r in recipients] == [creator.id]


def test_category_match_uses_given_category(db_session, make_user):
    creator = make_user()
    art_fan = make_user(categories=("art",))
    event = _event(db_session, creator.id, category="music")

    # after a category change the new category decides
    recipients = InterestResolver(db_session).find_interested_users(event.id, "art")

    assert [r.user_id for r in recipients] == [creator.id, art_fan.id]


def test_unknown_event_only_matches_category(db_session, make_user):
    fan = make_user(categories=("music",))
    make_user()

    recipients = InterestResolver(db_session).find_interested_users(999, "music")

    assert [r.user_id for r in recipients] == [fan.id]
