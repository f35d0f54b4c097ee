"""
users/store.py -- Thread-safe in-memory persistence layer for User records.

Pattern: Repository. UserStore is the only code that touches the collection;
route handlers call its methods and never reach into the list directly. The
interface is deliberately narrow (list / get / create / update / delete plus
search and stats) so a different backing can replace it without changes to
the handlers.

Concurrency: FastAPI runs sync route handlers in a worker thread pool, so the
collection and the ID counter are guarded by a single lock. Every
check-then-write sequence (email uniqueness on create/update, lookup then
removal on delete) happens inside one critical section.

Records handed out are copies. Mutating a returned User has no effect on the
stored one; changes go through update_user().

Nothing is persisted. Restarting the process discards every record and
resets the counter.

Usage:
    store = UserStore()
    store.seed_defaults()
    user = store.create_user("Alice", "alice@example.com", 31)
    store.update_user(user.id, UserChanges(age=32))
    store.delete_user(user.id)
"""

from __future__ import annotations

import logging
import threading
from dataclasses import replace

from users.models import User, UserChanges, UserStats

logger = logging.getLogger("usersapi.store")

# Demo records loaded by seed_defaults(). IDs 1 and 2 are assigned in order,
# so the first user created through the API receives ID 3.
DEFAULT_USERS: tuple[tuple[str, str, int], ...] = (
    ("Nguyen Van Thao", "thao@example.com", 25),
    ("Tran Thi Mai", "mai@example.com", 30),
)


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class UserStoreError(Exception):
    """Base class for store-level failures that callers are expected to handle."""


class UserNotFoundError(UserStoreError):
    def __init__(self, user_id: int) -> None:
        super().__init__(f"User {user_id} not found")
        self.user_id = user_id


class DuplicateEmailError(UserStoreError):
    def __init__(self, email: str) -> None:
        super().__init__(f"Email already exists: {email}")
        self.email = email


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """In-memory repository for User records.

    Insertion order is preserved. IDs start at 1 and only ever increase; a
    deleted ID is never handed out again.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._users: list[User] = []
        self._next_id = 1

    def seed_defaults(self) -> None:
        """Insert the demo records. Intended for startup on an empty store."""
        for name, email, age in DEFAULT_USERS:
            self.create_user(name, email, age)
        logger.info("Seeded %d default users", len(DEFAULT_USERS))

    # ------------------------------------------------------------------
    # Internal helpers -- callers must hold self._lock
    # ------------------------------------------------------------------

    def _index_of(self, user_id: int) -> int:
        for i, user in enumerate(self._users):
            if user.id == user_id:
                return i
        return -1

    def _email_taken(self, email: str, exclude_index: int = -1) -> bool:
        return any(u.email == email for i, u in enumerate(self._users) if i != exclude_index)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def count(self) -> int:
        with self._lock:
            return len(self._users)

    def list_users(self) -> list[User]:
        """Return every user in insertion order."""
        with self._lock:
            return [replace(u) for u in self._users]

    def get_user(self, user_id: int) -> User | None:
        """Look up a user by ID. Returns None if not found."""
        with self._lock:
            index = self._index_of(user_id)
            return replace(self._users[index]) if index >= 0 else None

    def search_by_name(self, fragment: str) -> list[User]:
        """Return users whose name contains fragment, ignoring case.

        Results keep insertion order. An empty list means no match.
        """
        needle = fragment.lower()
        with self._lock:
            return [replace(u) for u in self._users if needle in u.name.lower()]

    def stats(self) -> UserStats:
        """Return the user count and mean age. Mean age is 0.0 when empty."""
        with self._lock:
            total = len(self._users)
            total_age = sum(u.age for u in self._users)
        average = total_age / total if total else 0.0
        return UserStats(total_users=total, average_age=average)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def create_user(self, name: str, email: str, age: int = 0) -> User:
        """Append a new user and return it with its assigned ID.

        Raises DuplicateEmailError if any existing user has the same email
        (exact, case-sensitive match). The counter is not advanced on failure.
        """
        with self._lock:
            if self._email_taken(email):
                logger.debug("Rejected create: email %s already in use", email)
                raise DuplicateEmailError(email)
            user = User(id=self._next_id, name=name, email=email, age=age)
            self._users.append(user)
            self._next_id += 1
        logger.info("Created user %d (%s)", user.id, user.email)
        return replace(user)

    def update_user(self, user_id: int, changes: UserChanges) -> User:
        """Apply a partial update and return the updated record.

        Rules:
          name  -- applied when non-empty
          email -- applied when non-empty and not used by any other user
          age   -- applied only when strictly positive

        The update is all-or-nothing: on DuplicateEmailError no field changes.

        Raises UserNotFoundError if user_id does not exist.
        """
        with self._lock:
            index = self._index_of(user_id)
            if index < 0:
                raise UserNotFoundError(user_id)
            if changes.email and self._email_taken(changes.email, exclude_index=index):
                logger.debug("Rejected update of user %d: email %s already in use", user_id, changes.email)
                raise DuplicateEmailError(changes.email)

            user = self._users[index]
            if changes.name:
                user.name = changes.name
            if changes.email:
                user.email = changes.email
            if changes.age is not None and changes.age > 0:
                user.age = changes.age
            updated = replace(user)
        logger.info("Updated user %d", user_id)
        return updated

    def delete_user(self, user_id: int) -> None:
        """Remove a user, shifting later records down one position.

        Raises UserNotFoundError if user_id does not exist.
        """
        with self._lock:
            index = self._index_of(user_id)
            if index < 0:
                raise UserNotFoundError(user_id)
            del self._users[index]
        logger.info("Deleted user %d", user_id)
