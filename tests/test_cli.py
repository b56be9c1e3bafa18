"""Tests for the ``authpark`` command line."""

from __future__ import annotations

import functools
import json
from pathlib import Path

import httpx
import pytest
from typer.testing import CliRunner

from authpark import __version__
from authpark.app import app
from authpark.client import AsyncClient

URL = "https://api.example.com/me"


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def serve(monkeypatch: pytest.MonkeyPatch, isolated_config: Path):
    """Route the CLI's client through an ``httpx.MockTransport`` handler."""

    def _install(handler) -> list[httpx.Request]:
        seen: list[httpx.Request] = []

        def recording(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return handler(request)

        monkeypatch.setattr(
            "authpark.app.AsyncClient",
            functools.partial(AsyncClient, transport=httpx.MockTransport(recording)),
        )
        return seen

    return _install


def token_gate(request: httpx.Request) -> httpx.Response:
    if request.headers.get("authorization") == "Bearer good":
        return httpx.Response(200, json={"user": "alice"})
    return httpx.Response(401, json={"message": "login required"})


def _fetch(runner: CliRunner, *args: str, input: str | None = None):
    return runner.invoke(app, ["--no-color", "fetch", *args], input=input)


class TestVersion:
    def test_version(self, runner: CliRunner) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output


class TestFetch:
    def test_success_prints_body(self, runner: CliRunner, serve) -> None:
        serve(lambda r: httpx.Response(200, json={"ok": True}))
        result = _fetch(runner, "get", URL)
        assert result.exit_code == 0, result.output
        assert '"ok": true' in result.output

    def test_sends_headers_and_body(self, runner: CliRunner, serve) -> None:
        seen = serve(lambda r: httpx.Response(201, json={"id": 1}))
        result = _fetch(runner, "post", URL, "-H", "X-Trace: abc", "--data", '{"name": "w"}')
        assert result.exit_code == 0, result.output
        assert seen[0].method == "POST"
        assert seen[0].headers["x-trace"] == "abc"
        assert json.loads(seen[0].content) == {"name": "w"}

    def test_relative_url_with_base_url(self, runner: CliRunner, serve) -> None:
        seen = serve(lambda r: httpx.Response(200, json={}))
        result = _fetch(runner, "get", "/me", "--base-url", "https://api.example.com")
        assert result.exit_code == 0, result.output
        assert str(seen[0].url) == URL


class TestLogin:
    def test_token_from_env(
        self, runner: CliRunner, serve, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("API_TOKEN", "good")
        seen = serve(token_gate)
        result = _fetch(runner, "get", URL, "--token-env", "API_TOKEN", "--no-input")
        assert result.exit_code == 0, result.output
        assert '"user": "alice"' in result.output
        assert [r.headers.get("authorization") for r in seen] == [None, "Bearer good"]

    def test_token_from_prompt(self, runner: CliRunner, serve) -> None:
        serve(token_gate)
        result = _fetch(runner, "get", URL, input="good\n")
        assert result.exit_code == 0, result.output
        assert '"user": "alice"' in result.output
        assert "Retrying 1 parked request(s) with bearer token" in result.output

    def test_empty_prompt_cancels(self, runner: CliRunner, serve) -> None:
        seen = serve(token_gate)
        result = _fetch(runner, "get", URL, input="\n")
        assert result.exit_code == 3
        assert "Login cancelled" in result.output
        assert len(seen) == 1

    def test_no_input_without_token_cancels(self, runner: CliRunner, serve) -> None:
        serve(token_gate)
        result = _fetch(runner, "get", URL, "--no-input")
        assert result.exit_code == 3
        assert "Login cancelled" in result.output

    def test_gives_up_after_max_attempts(self, runner: CliRunner, serve) -> None:
        seen = serve(token_gate)
        result = _fetch(runner, "get", URL, input="bad\nbad\nbad\n")
        assert result.exit_code == 3
        assert len(seen) == 4

    def test_ignore_auth_fails_without_prompt(self, runner: CliRunner, serve) -> None:
        seen = serve(token_gate)
        result = _fetch(runner, "get", URL, "--ignore-auth")
        assert result.exit_code == 3
        assert "HTTP 401: login required" in result.output
        assert len(seen) == 1


class TestErrors:
    def test_forbidden(self, runner: CliRunner, serve) -> None:
        serve(lambda r: httpx.Response(403))
        result = _fetch(runner, "delete", URL)
        assert result.exit_code == 3
        assert "forbidden" in result.output

    def test_not_found(self, runner: CliRunner, serve) -> None:
        serve(lambda r: httpx.Response(404, json={"detail": "no such user"}))
        result = _fetch(runner, "get", URL)
        assert result.exit_code == 4
        assert "HTTP 404: no such user" in result.output

    def test_connection_error(self, runner: CliRunner, serve) -> None:
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        serve(refuse)
        result = _fetch(runner, "get", URL)
        assert result.exit_code == 6
        assert "Connection failed" in result.output

    def test_malformed_header(self, runner: CliRunner, serve) -> None:
        serve(lambda r: httpx.Response(200))
        result = _fetch(runner, "get", URL, "-H", "no-colon")
        assert result.exit_code == 2
        assert "Invalid header" in result.output

    def test_malformed_body(self, runner: CliRunner, serve) -> None:
        serve(lambda r: httpx.Response(200))
        result = _fetch(runner, "post", URL, "--data", "{oops")
        assert result.exit_code == 2
        assert "not valid JSON" in result.output
