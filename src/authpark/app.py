"""Typer application and CLI entry point for authpark.

``authpark fetch METHOD URL`` sends a single request through the auth
interception pipeline. When the server answers 401 (or 400), the request is
parked, a bearer token is obtained from ``--token-env`` or an interactive
prompt, and the parked request is replayed with the token. Declining to
enter a token cancels the login and the command fails with exit code 3.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import sys
from pathlib import Path
from typing import Any, Optional

import httpx
import typer

from authpark import __version__
from authpark.client import AsyncClient
from authpark.config import load_settings
from authpark.events import (
    EVENT_FORBIDDEN,
    EVENT_LOGIN_REQUIRED,
    EVENT_MISSING_PARAMETER,
    Broadcaster,
)
from authpark.exceptions import (
    AuthparkError,
    ConnectionError_,
    InvalidUsageError,
    LoginCancelledError,
)
from authpark.exit_codes import EXIT_GENERIC_FAILURE
from authpark.filters import bearer_updater
from authpark.models import AuthNotification, ClientSettings, RequestConfig
from authpark.output import OutputFormat, OutputManager, get_output, set_output
from authpark.service import AuthService

app = typer.Typer(
    name="authpark",
    help="Send HTTP requests that wait for login instead of failing on 401.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

DEFAULT_MAX_ATTEMPTS = 3


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"authpark {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress non-essential output."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug output."),
) -> None:
    """Initialise output and logging before every sub-command."""
    fmt = OutputFormat.JSON if json_output else OutputFormat.AUTO
    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            stream=sys.stderr,
            format="%(levelname)s %(name)s: %(message)s",
        )


class LoginHandler:
    """Subscriber answering ``loginRequired`` / ``missingParameter`` events.

    The first attempt uses the token from ``settings.token_env`` when set;
    later attempts prompt, unless *no_input* is set. Once no token can be
    obtained, or after *max_attempts*, the login is cancelled with a
    :class:`~authpark.exceptions.LoginCancelledError`.

    The prompt blocks inside the event-loop callback that delivers the
    event, so every other in-flight request stalls until it returns. That is
    acceptable for the single-request ``fetch`` command; a long-running host
    should ask for credentials off the loop and call ``login_confirmed``
    from there.
    """

    def __init__(
        self,
        service: AuthService,
        token_env: Optional[str] = None,
        no_input: bool = False,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ) -> None:
        self._service = service
        self._token_env = token_env
        self._no_input = no_input
        self._max_attempts = max_attempts
        self.attempts = 0

    def __call__(self, topic: str, notification: AuthNotification) -> None:
        output = get_output()
        output.warning(f"{notification.rejection} ({notification.category.value})")
        self.attempts += 1

        token = self._resolve_token()
        if token is None:
            self._service.login_cancelled(
                reason=LoginCancelledError("Login cancelled: no credential available")
            )
            return
        output.info(f"Retrying {self._service.pending} parked request(s) with bearer token")
        self._service.login_confirmed(config_updater=bearer_updater(token))

    def _resolve_token(self) -> Optional[str]:
        if self.attempts > self._max_attempts:
            return None
        if self.attempts == 1 and self._token_env:
            value = os.environ.get(self._token_env)
            if value:
                return value
        if self._no_input:
            return None
        try:
            token = typer.prompt("Bearer token", default="", show_default=False, hide_input=True)
        except typer.Abort:
            return None
        return token.strip() or None


def _report_forbidden(topic: str, notification: AuthNotification) -> None:
    config = notification.rejection.config
    get_output().error(f"Access to {config.method} {config.url} is forbidden")


def _parse_headers(values: list[str]) -> dict[str, str]:
    headers: dict[str, str] = {}
    for raw in values:
        name, sep, value = raw.partition(":")
        if not sep or not name.strip():
            raise InvalidUsageError(f"Invalid header '{raw}', expected 'Name: value'")
        headers[name.strip()] = value.strip()
    return headers


def _parse_body(data: Optional[str]) -> Any:
    if data is None:
        return None
    try:
        return json.loads(data)
    except json.JSONDecodeError as exc:
        raise InvalidUsageError(f"--data is not valid JSON: {exc}") from exc


async def _fetch(settings: ClientSettings, config: RequestConfig, no_input: bool) -> httpx.Response:
    bus = Broadcaster()
    async with AsyncClient(settings, events=bus) as client:
        login = LoginHandler(client.service, token_env=settings.token_env, no_input=no_input)
        bus.subscribe(EVENT_LOGIN_REQUIRED, login)
        bus.subscribe(EVENT_MISSING_PARAMETER, login)
        bus.subscribe(EVENT_FORBIDDEN, _report_forbidden)
        try:
            return await client.send(config)
        except httpx.TransportError as exc:
            raise ConnectionError_(f"Connection failed: {exc}") from exc


@app.command("fetch")
def fetch_command(
    method: str = typer.Argument(..., help="HTTP method."),
    url: str = typer.Argument(..., help="Absolute URL or path relative to the base URL."),
    header: list[str] = typer.Option([], "--header", "-H", help="Request header 'Name: value'."),
    data: Optional[str] = typer.Option(None, "--data", "-d", help="JSON request body."),
    base_url: Optional[str] = typer.Option(None, "--base-url", help="Base URL for relative paths."),
    token_env: Optional[str] = typer.Option(
        None, "--token-env", help="Environment variable holding a bearer token."
    ),
    config_path: Optional[Path] = typer.Option(None, "--config", help="Settings file (JSON)."),
    ignore_auth: bool = typer.Option(
        False, "--ignore-auth", help="Do not wait for login on 400/401."
    ),
    no_input: bool = typer.Option(False, "--no-input", help="Disable interactive prompts."),
) -> None:
    """Send one request, waiting for a login when the server asks for one."""
    output = get_output()
    try:
        settings = load_settings(config_path, base_url=base_url, token_env=token_env)
        config = RequestConfig(
            method=method.upper(),
            url=url,
            headers=_parse_headers(header),
            json_body=_parse_body(data),
            ignore_auth_module=ignore_auth,
        )
        response = asyncio.run(_fetch(settings, config, no_input))
    except AuthparkError as exc:
        output.error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    output.debug(f"HTTP {response.status_code} from {response.url}")
    try:
        body: Any = response.json()
    except ValueError:
        body = response.text
    output.format_response(body)


def main() -> None:
    """CLI entry point invoked by the ``authpark`` console script."""
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        get_output().error(f"Unexpected error: {exc}")
        sys.exit(EXIT_GENERIC_FAILURE)
