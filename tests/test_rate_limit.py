from __future__ import annotations

from conftest import FakeCatalog
from fastapi.testclient import TestClient

from movie_browser.api.app import create_app
from movie_browser.api.rate_limit import SlidingWindowRateLimiter


def test_rate_limit_returns_429(monkeypatch) -> None:
    # Keep the window long to avoid flakes; use a tiny limit.
    monkeypatch.setenv("MOVIE_BROWSER_RL_GLOBAL", "2")
    monkeypatch.setenv("MOVIE_BROWSER_RL_GLOBAL_WINDOW_S", "60")

    client = TestClient(create_app())

    assert client.get("/health").status_code == 200
    assert client.get("/health").status_code == 200

    r3 = client.get("/health")
    assert r3.status_code == 429
    assert r3.json()["detail"] == "Rate limit exceeded"
    assert r3.headers["retry-after"] == "60"


def test_session_creation_has_its_own_limit(monkeypatch, catalog: FakeCatalog) -> None:
    monkeypatch.setenv("MOVIE_BROWSER_RL_SESSIONS", "1")

    client = TestClient(create_app(catalog=catalog))

    assert client.post("/api/sessions").status_code == 201
    assert client.post("/api/sessions").status_code == 429
    # Other routes are still served.
    assert client.get("/health").status_code == 200


def test_sliding_window_expires_old_hits() -> None:
    now = [100.0]
    limiter = SlidingWindowRateLimiter(clock=lambda: now[0])

    assert limiter.allow(key="k", limit=1, window_s=10) == (True, 0)
    assert limiter.allow(key="k", limit=1, window_s=10) == (False, 0)

    now[0] += 11
    assert limiter.allow(key="k", limit=1, window_s=10) == (True, 0)
