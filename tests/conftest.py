"""Shared test fixtures for authpark.

Provides a recording event bus, a scripted replay transport, httpx response
builders, config isolation and output reset. Fixtures are discovered by
pytest and available to all test modules without imports.
"""

from __future__ import annotations

from typing import Any, Callable

import httpx
import pytest

from authpark.events import ALL_EVENTS, Broadcaster
from authpark.exceptions import HTTPRejection
from authpark.models import RequestConfig
from authpark.output import OutputManager, reset_output, set_output


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Install a quiet plain output manager and drop it after the test."""
    set_output(OutputManager(no_color=True, quiet=True))
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


@pytest.fixture
def bus() -> Broadcaster:
    return Broadcaster()


@pytest.fixture
def published(bus: Broadcaster) -> list[tuple[str, Any]]:
    """Every ``(topic, payload)`` published on *bus*, in order."""
    received: list[tuple[str, Any]] = []
    for topic in ALL_EVENTS:
        bus.subscribe(topic, lambda t, payload: received.append((t, payload)))
    return received


# ---------------------------------------------------------------------------
# HTTP builders
# ---------------------------------------------------------------------------


def make_response(status_code: int, config: RequestConfig, json: Any = None) -> httpx.Response:
    return httpx.Response(
        status_code=status_code,
        json=json if json is not None else {},
        request=httpx.Request(config.method, config.url),
    )


@pytest.fixture
def rejection_for() -> Callable[..., HTTPRejection]:
    """Build an :class:`HTTPRejection` for a status and (optional) config."""

    def _build(status: int, config: RequestConfig | None = None, **config_kwargs: Any) -> HTTPRejection:
        config = config or RequestConfig(url="https://api.example.com/items", **config_kwargs)
        return HTTPRejection(make_response(status, config, {"message": "nope"}), config)

    return _build


class ScriptedTransport:
    """Replay transport recording each config and answering from a script.

    ``script`` maps a URL to a status code; unknown URLs answer 200. A
    non-2xx status raises :class:`HTTPRejection`, as the real client does
    for out-of-scope failures.
    """

    def __init__(self) -> None:
        self.calls: list[RequestConfig] = []
        self.script: dict[str, int] = {}

    async def __call__(self, config: RequestConfig) -> httpx.Response:
        self.calls.append(config)
        status = self.script.get(config.url, 200)
        response = make_response(status, config, {"url": config.url})
        if status >= 400:
            raise HTTPRejection(response, config)
        return response


@pytest.fixture
def transport() -> ScriptedTransport:
    return ScriptedTransport()


# ---------------------------------------------------------------------------
# Config isolation
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path, monkeypatch: pytest.MonkeyPatch):
    """Run in an empty working directory with no AUTHPARK_* variables set."""
    for var in [
        "AUTHPARK_BASE_URL",
        "AUTHPARK_TIMEOUT",
        "AUTHPARK_VERIFY_SSL",
        "AUTHPARK_TOKEN_ENV",
    ]:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path
