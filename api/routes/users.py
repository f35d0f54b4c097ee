"""
api/routes/users.py -- User CRUD and search routes for the Users REST API.

Routes (in registration order to avoid FastAPI path capture conflicts):
  GET    /users                -- list all users
  POST   /users                -- create a user
  GET    /users/search?name=   -- case-insensitive name substring search
  *      /users/search         -- any other method: 405
  GET    /users/{user_id}      -- single user
  PUT    /users/{user_id}      -- partial update
  DELETE /users/{user_id}      -- remove a user
  *      /users/{rest:path}    -- anything left over: 400 bad ID or 405

/users/search must be registered before /users/{user_id} or FastAPI would
try to parse the string "search" as a user ID and answer 400.

Request bodies are read raw and decoded here rather than declared as body
parameters. FastAPI only decodes JSON when the Content-Type says so, and it
validates the body before the handler runs; reading it ourselves accepts JSON
under any Content-Type and lets PUT answer 404 for a missing user before the
body is looked at.

Rate limits: @limiter.limit() sits BELOW @router.<method> so the function
FastAPI registers is slowapi's wrapper, which enforces the limit itself. Each
handler therefore needs a `request: Request` parameter.

Error mapping: the store raises UserNotFoundError / DuplicateEmailError and
the handlers translate them to 404 / 409. Bad IDs and a missing search term
are RequestValidationErrors, turned into 400s by the handler in api/main.py.
"""

import re
from typing import Annotated, TypeVar

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import BaseModel, ValidationError

from api.limiter import DEFAULT_LIMIT, limiter
from api.models import UserCreate, UserEnvelope, UserListEnvelope, UserResponse, UserUpdate
from users.store import DuplicateEmailError, UserNotFoundError, UserStore

router = APIRouter(tags=["Users"])

_ALL_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE"]

# What int() would accept as a user ID in the path.
_ID_SEGMENT = re.compile(r"[+-]?\d+")

_Body = TypeVar("_Body", bound=BaseModel)


def _store(request: Request) -> UserStore:
    return request.app.state.user_store


async def _raw_body(request: Request) -> bytes:
    return await request.body()


def _decode(model: type[_Body], raw: bytes) -> _Body:
    """Decode a JSON body into model, whatever Content-Type the client sent."""
    try:
        return model.model_validate_json(raw)
    except ValidationError:
        raise HTTPException(status_code=400, detail="Invalid JSON format")


def _json_body(model: type[BaseModel]) -> dict:
    """openapi_extra documenting a body the handler decodes itself."""
    return {
        "requestBody": {
            "required": True,
            "content": {"application/json": {"schema": model.model_json_schema()}},
        }
    }


def _not_found() -> HTTPException:
    return HTTPException(status_code=404, detail="User not found")


def _email_conflict() -> HTTPException:
    return HTTPException(status_code=409, detail="Email already exists")


def _method_not_allowed() -> HTTPException:
    return HTTPException(status_code=405, detail="Method not allowed")


# ---------------------------------------------------------------------------
# GET /users -- full collection
# ---------------------------------------------------------------------------


@router.get("/users", response_model=UserListEnvelope, response_model_exclude_none=True)
@limiter.limit(DEFAULT_LIMIT)
def list_users(request: Request) -> UserListEnvelope:
    """Return every user in insertion order, unfiltered."""
    users = _store(request).list_users()
    return UserListEnvelope(
        success=True,
        message="Users retrieved successfully",
        data=[UserResponse.from_domain(u) for u in users],
    )


# ---------------------------------------------------------------------------
# POST /users -- create
# ---------------------------------------------------------------------------


@router.post(
    "/users",
    response_model=UserEnvelope,
    response_model_exclude_none=True,
    status_code=201,
    openapi_extra=_json_body(UserCreate),
)
@limiter.limit(DEFAULT_LIMIT)
def create_user(request: Request, raw: Annotated[bytes, Depends(_raw_body)]) -> UserEnvelope:
    """Create a user. name and email are required; email must be unused.

    The new record receives the next sequential ID and the current UTC time
    as created_at. A missing or null age is stored as 0.
    """
    body = _decode(UserCreate, raw)
    if not body.name or not body.email:
        raise HTTPException(status_code=400, detail="Name and email are required")
    try:
        user = _store(request).create_user(body.name, body.email, body.age or 0)
    except DuplicateEmailError:
        raise _email_conflict()
    return UserEnvelope(
        success=True,
        message="User created successfully",
        data=UserResponse.from_domain(user),
    )


# ---------------------------------------------------------------------------
# /users/search -- must be before /users/{user_id}
# ---------------------------------------------------------------------------


@router.get("/users/search", response_model=UserListEnvelope, response_model_exclude_none=True)
@limiter.limit(DEFAULT_LIMIT)
def search_users(
    request: Request,
    name: Annotated[str, Query(min_length=1)],
) -> UserListEnvelope:
    """Return users whose name contains the query string, ignoring case.

    Query params:
        name -- substring to look for (required, non-empty)
    """
    matches = _store(request).search_by_name(name)
    return UserListEnvelope(
        success=True,
        message=f"Found {len(matches)} users",
        data=[UserResponse.from_domain(u) for u in matches],
    )


@router.api_route("/users/search", methods=["POST", "PUT", "PATCH", "DELETE"], include_in_schema=False)
@limiter.limit(DEFAULT_LIMIT)
def search_users_other_methods(request: Request) -> None:
    raise _method_not_allowed()


# ---------------------------------------------------------------------------
# /users/{user_id} -- read, update, delete
# ---------------------------------------------------------------------------


@router.get("/users/{user_id}", response_model=UserEnvelope, response_model_exclude_none=True)
@limiter.limit(DEFAULT_LIMIT)
def get_user(request: Request, user_id: int) -> UserEnvelope:
    """Return a single user by ID."""
    user = _store(request).get_user(user_id)
    if user is None:
        raise _not_found()
    return UserEnvelope(
        success=True,
        message="User retrieved successfully",
        data=UserResponse.from_domain(user),
    )


@router.put(
    "/users/{user_id}",
    response_model=UserEnvelope,
    response_model_exclude_none=True,
    openapi_extra=_json_body(UserUpdate),
)
@limiter.limit(DEFAULT_LIMIT)
def update_user(request: Request, user_id: int, raw: Annotated[bytes, Depends(_raw_body)]) -> UserEnvelope:
    """Apply a partial update.

    The user must exist before the body is decoded. Only non-empty name/email
    and a strictly positive age are applied; any other value leaves the stored
    field untouched. A new email must not belong to another user.
    """
    store = _store(request)
    if store.get_user(user_id) is None:
        raise _not_found()
    body = _decode(UserUpdate, raw)
    try:
        user = store.update_user(user_id, body.to_changes())
    except UserNotFoundError:
        # Deleted by a concurrent request between the check and the update.
        raise _not_found()
    except DuplicateEmailError:
        raise _email_conflict()
    return UserEnvelope(
        success=True,
        message="User updated successfully",
        data=UserResponse.from_domain(user),
    )


@router.delete("/users/{user_id}", response_model=UserEnvelope, response_model_exclude_none=True)
@limiter.limit(DEFAULT_LIMIT)
def delete_user(request: Request, user_id: int) -> UserEnvelope:
    """Delete a user. The ID is never reused."""
    try:
        _store(request).delete_user(user_id)
    except UserNotFoundError:
        raise _not_found()
    return UserEnvelope(success=True, message="User deleted successfully")


# ---------------------------------------------------------------------------
# /users/{rest:path} -- registered LAST, catches what the routes above miss
# ---------------------------------------------------------------------------


@router.api_route("/users/{rest:path}", methods=_ALL_METHODS, include_in_schema=False)
@limiter.limit(DEFAULT_LIMIT)
def unmatched_user_path(request: Request, rest: str) -> None:
    """Answer paths under /users/ that no route above handled.

    An empty or non-numeric ID segment ("/users/", "/users/1/extra") is a bad
    ID. A numeric one means the path was fine but the method was not.
    """
    if not _ID_SEGMENT.fullmatch(rest):
        raise HTTPException(status_code=400, detail="Invalid user ID")
    raise _method_not_allowed()
