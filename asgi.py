"""
asgi.py -- Application assembly for the Users API.

The single import target for ASGI servers. main.py points uvicorn here, and
any other deployment (gunicorn with uvicorn workers, a container CMD) should
too, so there is exactly one place that decides what the served app is.

Run with:  uvicorn asgi:app --port 8080 --reload
           python main.py
"""

from api.main import app

__all__ = ["app"]
