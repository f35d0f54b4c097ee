#!/usr/bin/env python3
"""
Users API -- in-memory CRUD service for user records.

Usage:
  python main.py
  python main.py --host 127.0.0.1
  python main.py --log-level debug
  python main.py --no-seed
  python main.py --reload

The server always listens on port 8080. Everything else can also be set in
the environment or a .env file (HOST, LOG_LEVEL, SEED_USERS, CORS_ORIGINS,
RATE_LIMIT, RATE_LIMIT_ENABLED); command-line flags win over both.
"""

import argparse
import os

import uvicorn

from core.config import SERVER_PORT, get_settings

# (method, path, description) -- printed at startup so the routes are visible
# without opening /docs.
_ENDPOINTS: list[tuple[str, str, str]] = [
    ("GET", "/", "Welcome message"),
    ("GET", "/users", "Get all users"),
    ("POST", "/users", "Create new user"),
    ("GET", "/users/{id}", "Get user by ID"),
    ("PUT", "/users/{id}", "Update user by ID"),
    ("DELETE", "/users/{id}", "Delete user by ID"),
    ("GET", "/users/search", "Search users by name"),
    ("GET", "/stats", "Get statistics"),
]


def _print_banner(host: str) -> None:
    print(f"\nUsers API -- starting on {host}:{SERVER_PORT}")
    print("─" * 40)
    print("Available endpoints:")
    for method, path, description in _ENDPOINTS:
        print(f"  {method:<7}{path:<15}- {description}")
    print()


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="users-api",
        description="In-memory CRUD HTTP service for user records.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py
  python main.py --host 127.0.0.1 --log-level debug
  SEED_USERS=false python main.py
        """,
    )
    parser.add_argument(
        "--host",
        default=None,
        help="Bind address (default: HOST setting, 0.0.0.0)",
    )
    parser.add_argument(
        "--log-level",
        choices=["critical", "error", "warning", "info", "debug"],
        default=None,
        metavar="LEVEL",
        help="Log level: critical, error, warning, info, or debug (default: LOG_LEVEL setting, info)",
    )
    parser.add_argument(
        "--no-seed",
        action="store_true",
        help="Start with an empty user collection instead of the two demo users",
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Restart the server when source files change (development only)",
    )
    args = parser.parse_args()

    # Flags are pushed into the environment before the app module is imported
    # by uvicorn, so get_settings() sees them like any other setting.
    if args.log_level:
        os.environ["LOG_LEVEL"] = args.log_level
    if args.no_seed:
        os.environ["SEED_USERS"] = "false"
    get_settings.cache_clear()
    settings = get_settings()

    host = args.host or settings.host
    _print_banner(host)

    # uvicorn exits the process with a non-zero status if the port cannot be bound.
    uvicorn.run(
        "asgi:app",
        host=host,
        port=SERVER_PORT,
        reload=args.reload,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
