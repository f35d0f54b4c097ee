"""Unit tests for main.py -- the command-line launcher.

uvicorn.run is replaced with a recorder so no server is started.
"""

import pytest

import main
from core.config import get_settings


@pytest.fixture
def run_calls(monkeypatch):
    calls: list[tuple[tuple, dict]] = []
    monkeypatch.setattr(main.uvicorn, "run", lambda *a, **kw: calls.append((a, kw)))
    # main() writes flags into os.environ; register the keys so they are restored.
    monkeypatch.setenv("LOG_LEVEL", "INFO")
    monkeypatch.setenv("SEED_USERS", "true")
    yield calls
    get_settings.cache_clear()


def test_runs_asgi_app_on_fixed_port(monkeypatch, run_calls, capsys):
    monkeypatch.setattr("sys.argv", ["main.py"])
    main.main()
    args, kwargs = run_calls[0]
    assert args == ("asgi:app",)
    assert kwargs["port"] == 8080
    assert kwargs["host"] == "0.0.0.0"
    assert kwargs["reload"] is False
    out = capsys.readouterr().out
    assert "/users/search" in out
    assert "8080" in out


def test_flags_override_settings(monkeypatch, run_calls, capsys):
    monkeypatch.setattr("sys.argv", ["main.py", "--host", "127.0.0.1", "--log-level", "debug", "--no-seed"])
    main.main()
    _, kwargs = run_calls[0]
    assert kwargs["host"] == "127.0.0.1"
    assert kwargs["log_level"] == "debug"
    assert get_settings().seed_users is False
