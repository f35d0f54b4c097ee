"""
users/models.py -- Domain dataclasses for the User resource.

Pattern: Data class (pure data container, zero logic). Uniqueness checks, ID
assignment and partial-update rules live in users/store.py; HTTP shapes live
in api/models.py. Route handlers map between the two.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class User:
    """A single user record.

    id is None until the store assigns one on insert. created_at is stamped
    once at construction and never touched by updates.
    """

    name: str
    email: str
    age: int = 0
    id: int | None = None
    created_at: datetime = field(default_factory=_utcnow)


@dataclass
class UserChanges:
    """A partial update. None means "not supplied" for every field.

    The store still ignores empty strings and non-positive ages, so a client
    cannot blank a name or reset an age to zero through an update.
    """

    name: str | None = None
    email: str | None = None
    age: int | None = None


@dataclass(frozen=True)
class UserStats:
    """Aggregate view over the whole collection at one instant."""

    total_users: int
    average_age: float
