"""
api/limiter.py -- Shared slowapi rate limiter instance.

Imported by api/main.py, which mounts SlowAPIMiddleware and attaches this
instance to app.state.limiter, and by the route modules, which decorate each
handler with @limiter.limit(DEFAULT_LIMIT). The middleware cannot resolve
routes that come from an included router, so every route carries the decorator.

Using a single shared instance ensures all routes share the same in-memory
counter store.

RATE_LIMIT_ENABLED=false turns the limiter into a no-op (used by the tests).
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from core.config import get_settings

_settings = get_settings()

DEFAULT_LIMIT = _settings.rate_limit

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[DEFAULT_LIMIT],
    enabled=_settings.rate_limit_enabled,
    storage_uri="memory://",
)
