"""
Seed demo users and events around Central Park.
Run:  python seed_demo_data.py   (needs DATABASE_URL and REDIS_URL, schema migrated)
"""
import sys
from datetime import timedelta

from sqlalchemy import select

from event_locator.application.events import EventService
from event_locator.application.schemas import EventCreate
from event_locator.container import Container
from event_locator.domain.event import EventFilters, utcnow
from event_locator.domain.user import ROLE_ADMIN, AuthUser
from event_locator.infrastructure.db.models import User, UserPreferredCategory

container = Container()
db = container.session_factory()()

# ── users ────────────────────────────────────────────────────────
DEMO_USERS = [
    ("organizer@example.com", "en", ROLE_ADMIN, ()),
    ("ana@example.com", "es", "user", ("music", "art")),
    ("claire@example.com", "fr", "user", ("sports",)),
]

users = {}
for email, language, role, categories in DEMO_USERS:
    user = db.scalars(select(User).where(User.email == email)).first()
    if user:
        print(f"User already exists: {email} (ID: {user.id})")
    else:
        user = User(email=email, language=language, role=role)
        db.add(user)
        db.flush()
        for category in categories:
            db.add(UserPreferredCategory(user_id=user.id, category=category))
        db.commit()
        print(f"Created user {email} (ID: {user.id}, {language})")
    users[email] = user

organizer = users["organizer@example.com"]
actor = AuthUser(id=organizer.id, role=organizer.role, status=organizer.status)

# ── events ───────────────────────────────────────────────────────
service = EventService(db, container.cache(), container.pipeline(), container.settings())

if service.list_events(EventFilters(created_by=organizer.id)).pagination.total:
    print("Demo events already present, nothing to do")
    db.close()
    sys.exit(0)

base = (utcnow() + timedelta(days=3)).replace(hour=19, minute=0, second=0, microsecond=0)

DEMO_EVENTS = [
    ("Jazz Night", "music", -73.9700, 40.7800, "Central Park, Great Lawn", 0, 3),
    ("Street Art Walk", "art", -73.9857, 40.7484, "Midtown, 5th Ave", 1, 2),
    ("Riverside 10K", "sports", -73.9712, 40.8007, "Riverside Park", 2, 2),
    ("Brooklyn Folk Session", "music", -73.9442, 40.6782, "Prospect Heights", 4, 3),
]

for title, category, lon, lat, address, day, hours in DEMO_EVENTS:
    start = base + timedelta(days=day)
    event = service.create_event(
        EventCreate(
            title=title,
            description=f"{title} - demo event",
            category=category,
            longitude=lon,
            latitude=lat,
            address=address,
            start_time=start,
            end_time=start + timedelta(hours=hours),
        ),
        actor,
    )
    print(f"Created event #{event.id}: {title} ({category}) at {start:%Y-%m-%d %H:%M} UTC")

db.close()
print("Done.")
