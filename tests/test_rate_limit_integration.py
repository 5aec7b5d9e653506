"""Integration tests for rate limiting with a real HTTP server.

These tests start an actual Uvicorn server so the limiter is keyed by the
real peer address, as it is in deployment.
"""

import threading
import time
from typing import Generator

import httpx
import pytest
import uvicorn

from app.adapters.directory import InMemoryUsernameDirectory
from app.core.app_factory import create_app

HOST = "127.0.0.1"
PORT = 8011


@pytest.fixture(scope="module")
def server() -> Generator[str, None, None]:
    """Run the app in a background thread for the duration of the module."""
    app = create_app(directory=InMemoryUsernameDirectory({"alice": {"email": "alice@example.com"}}))
    config = uvicorn.Config(app, host=HOST, port=PORT, log_level="error", access_log=False)
    uv_server = uvicorn.Server(config)
    thread = threading.Thread(target=uv_server.run, daemon=True)
    thread.start()

    base_url = f"http://{HOST}:{PORT}"
    for _ in range(50):
        try:
            if httpx.get(f"{base_url}/health", timeout=1.0).status_code == 200:
                break
        except (httpx.ConnectError, httpx.ReadTimeout):
            time.sleep(0.1)
    else:
        uv_server.should_exit = True
        pytest.fail("Server failed to start")

    yield base_url

    uv_server.should_exit = True
    thread.join(timeout=5)


def test_lookup_is_throttled_per_client_address(server: str) -> None:
    url = f"{server}/v1/auth/email-for-username"

    with httpx.Client(timeout=5.0) as client:
        statuses = [client.get(url, params={"username": "alice"}).status_code for _ in range(20)]
        blocked = client.get(url, params={"username": "alice"})

        health = client.get(f"{server}/health").json()

    assert statuses == [200] * 20
    assert blocked.status_code == 429
    assert 0 < int(blocked.headers["Retry-After"]) <= 60
    assert blocked.headers["X-RateLimit-Limit"] == "20"
    assert health["rate_limiters"]["username_lookup"] == 1
