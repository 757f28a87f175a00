"""Identity as seen by the core: who is calling, and what the notifier needs to know."""
from dataclasses import dataclass, field

USER_STATUS_ACTIVE = "active"
USER_STATUS_SUSPENDED = "suspended"
USER_STATUS_DELETED = "deleted"

ROLE_USER = "user"
ROLE_ADMIN = "admin"


@dataclass(frozen=True)
class AuthUser:
    """Supplied by authentication on every authenticated request."""

    id: int
    role: str = ROLE_USER
    status: str = USER_STATUS_ACTIVE

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    @property
    def is_active(self) -> bool:
        return self.status == USER_STATUS_ACTIVE

    def can_manage(self, owner_id: int | None) -> bool:
        return self.is_admin or (owner_id is not None and owner_id == self.id)


@dataclass(frozen=True)
class UserProfile:
    id: int
    language: str
    preferred_categories: frozenset[str] = field(default_factory=frozenset)
    status: str = USER_STATUS_ACTIVE
    role: str = ROLE_USER
    email: str | None = None


@dataclass(frozen=True)
class Recipient:
    """One user to notify, with the locale to render in."""

    user_id: int
    language: str
