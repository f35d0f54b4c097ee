"""
api/routes/stats.py -- Aggregate statistics endpoint.

This is a read-only aggregate route -- no mutations here.
"""

from datetime import datetime

from fastapi import APIRouter, Request

from api.limiter import DEFAULT_LIMIT, limiter
from api.models import StatsEnvelope, StatsResponse
from users.store import UserStore

router = APIRouter(tags=["Stats"])


@router.get("/stats", response_model=StatsEnvelope, response_model_exclude_none=True)
@limiter.limit(DEFAULT_LIMIT)
def get_stats(request: Request) -> StatsEnvelope:
    """Return collection-wide metrics.

    Response data:
      total_users  -- number of stored users
      average_age  -- arithmetic mean of all ages, 0 when there are no users
      server_time  -- current server local time, "YYYY-MM-DD HH:MM:SS"
    """
    store: UserStore = request.app.state.user_store
    return StatsEnvelope(
        success=True,
        message="Statistics retrieved successfully",
        data=StatsResponse.from_domain(store.stats(), datetime.now()),
    )
