"""
API request and response models for the Users REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in users/models.py, which
own the internal domain representation. Route handlers map between the two.

Every response -- success or error -- is wrapped in the same envelope:
    {"success": bool, "message": str, "data": ...}
"data" is left out of the JSON entirely when there is nothing to return
(routes are registered with response_model_exclude_none=True).
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict

from users.models import User, UserChanges, UserStats

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class UserCreate(BaseModel):
    """Request body for POST /users.

    name and email are Optional at the schema level so a missing or null
    value reaches the handler, which answers with the "required" message
    rather than a generic decode failure. A missing or null age is stored as 0.
    Strict mode rejects values of the wrong JSON type (e.g. "age": "20") the
    same way malformed JSON is rejected.
    """

    model_config = ConfigDict(strict=True)

    name: Optional[str] = None
    email: Optional[str] = None
    age: Optional[int] = None


class UserUpdate(BaseModel):
    """Request body for PUT /users/{user_id}. Every field is optional."""

    model_config = ConfigDict(strict=True)

    name: Optional[str] = None
    email: Optional[str] = None
    age: Optional[int] = None

    def to_changes(self) -> UserChanges:
        return UserChanges(name=self.name, email=self.email, age=self.age)


# ---------------------------------------------------------------------------
# Payload models
# ---------------------------------------------------------------------------


class UserResponse(BaseModel):
    """Public representation of a single user."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    email: str
    age: int
    created_at: datetime

    @classmethod
    def from_domain(cls, user: User) -> "UserResponse":
        """Build a UserResponse from a users.models.User instance."""
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            age=user.age,
            created_at=user.created_at,
        )


class StatsResponse(BaseModel):
    """Payload for GET /stats."""

    model_config = ConfigDict(frozen=True)

    total_users: int
    average_age: float
    server_time: str  # "YYYY-MM-DD HH:MM:SS", server local time

    @classmethod
    def from_domain(cls, stats: UserStats, server_time: datetime) -> "StatsResponse":
        return cls(
            total_users=stats.total_users,
            average_age=stats.average_age,
            server_time=server_time.strftime("%Y-%m-%d %H:%M:%S"),
        )


# ---------------------------------------------------------------------------
# Envelopes
# ---------------------------------------------------------------------------


class Envelope(BaseModel):
    """Uniform wrapper returned by every endpoint, errors included."""

    success: bool
    message: str
    data: Optional[Any] = None


class UserEnvelope(Envelope):
    data: Optional[UserResponse] = None


class UserListEnvelope(Envelope):
    data: list[UserResponse]


class StatsEnvelope(Envelope):
    data: StatsResponse


def error_envelope(message: str) -> dict:
    """Return the JSON body for a failed request."""
    return Envelope(success=False, message=message).model_dump(exclude_none=True)
