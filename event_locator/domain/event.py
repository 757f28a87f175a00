"""Event domain rules: statuses, transitions, query filters and cache keys."""
import hashlib
import json
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

EVENT_STATUS_ACTIVE = "active"
EVENT_STATUS_CANCELLED = "cancelled"
EVENT_STATUS_COMPLETED = "completed"
EVENT_STATUSES = (EVENT_STATUS_ACTIVE, EVENT_STATUS_CANCELLED, EVENT_STATUS_COMPLETED)

# No resurrection: only an active event may change status.
_ALLOWED_TRANSITIONS = {
    EVENT_STATUS_ACTIVE: {EVENT_STATUS_CANCELLED, EVENT_STATUS_COMPLETED},
    EVENT_STATUS_CANCELLED: set(),
    EVENT_STATUS_COMPLETED: set(),
}

REQUIRED_EVENT_FIELDS = (
    "title",
    "address",
    "start_time",
    "end_time",
    "category",
    "longitude",
    "latitude",
)

MUTABLE_EVENT_FIELDS = (
    "title",
    "description",
    "address",
    "start_time",
    "end_time",
    "category",
    "longitude",
    "latitude",
    "ticket_price",
    "status",
)

CACHE_PREFIX = "event:"
CATEGORIES_CACHE_KEY = f"{CACHE_PREFIX}categories"
LIST_NAMESPACE = "list"
NEARBY_NAMESPACE = "nearby"


def can_transition(current: str, new: str) -> bool:
    if current == new:
        return True
    return new in _ALLOWED_TRANSITIONS.get(current, set())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes (SQLite drops tzinfo) and normalise aware ones."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def item_cache_key(event_id: int) -> str:
    return f"{CACHE_PREFIX}{event_id}"


def _glob_escape(value: str) -> str:
    """Escape Redis glob metacharacters so a category matches literally."""
    out = []
    for ch in value:
        if ch in "*?[]\\":
            out.append("\\")
        out.append(ch)
    return "".join(out)


def category_segment(category: str | None) -> str:
    return f"c:{category}" if category else "all"


def invalidation_patterns(categories: set[str]) -> list[str]:
    """Key patterns of every list/nearby view that may contain an event of these categories."""
    patterns = []
    for namespace in (LIST_NAMESPACE, NEARBY_NAMESPACE):
        patterns.append(f"{CACHE_PREFIX}{namespace}:all:*")
        for category in sorted(c for c in categories if c):
            patterns.append(f"{CACHE_PREFIX}{namespace}:c:{_glob_escape(category)}:*")
    return patterns


@dataclass(frozen=True)
class EventFilters:
    """Optional predicates shared by listing, counting and proximity search."""

    name: str | None = None
    category: str | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    address: str | None = None
    created_by: int | None = None
    limit: int | None = None
    offset: int = 0

    def __post_init__(self) -> None:
        # frozen: normalise through object.__setattr__
        if self.category is not None:
            object.__setattr__(self, "category", self.category.strip() or None)
        if self.name is not None:
            object.__setattr__(self, "name", self.name.strip() or None)
        if self.address is not None:
            object.__setattr__(self, "address", self.address.strip() or None)
        object.__setattr__(self, "start_date", ensure_utc(self.start_date))
        object.__setattr__(self, "end_date", ensure_utc(self.end_date))

    def _canonical(self, extra: dict[str, Any]) -> str:
        data = {
            "name": self.name,
            "start_date": self.start_date.isoformat() if self.start_date else None,
            "end_date": self.end_date.isoformat() if self.end_date else None,
            "address": self.address,
            "created_by": self.created_by,
            "limit": self.limit,
            "offset": self.offset,
            **extra,
        }
        return json.dumps(data, sort_keys=True, separators=(",", ":"))

    def fingerprint(self, **extra: Any) -> str:
        """Deterministic cache address: category bucket + digest of everything else."""
        digest = hashlib.sha1(self._canonical(extra).encode("utf-8")).hexdigest()[:20]
        return f"{category_segment(self.category)}:{digest}"

    def list_cache_key(self) -> str:
        return f"{CACHE_PREFIX}{LIST_NAMESPACE}:{self.fingerprint()}"

    def nearby_cache_key(self, latitude: float, longitude: float, radius_km: float) -> str:
        fp = self.fingerprint(lat=round(latitude, 6), lon=round(longitude, 6), radius=round(radius_km, 6))
        return f"{CACHE_PREFIX}{NEARBY_NAMESPACE}:{fp}"


@dataclass(frozen=True)
class EventChangeSummary:
    """What a subscriber needs to know about a mutation to notify people."""

    event_id: int
    title: str
    category: str
    changes: str

    def to_payload(self) -> dict[str, Any]:
        return {
            "id": self.event_id,
            "title": self.title,
            "category": self.category,
            "changes": self.changes,
        }
