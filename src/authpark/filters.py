"""Ready-made classifier hooks and config updaters.

* :func:`host_filter` -- request filter keeping credentials on known hosts.
* :func:`bearer_preprocessor` -- request preprocessor adding a bearer token.
* :func:`header_updater` / :func:`bearer_updater` -- ``config_updater``
  functions for :meth:`~authpark.service.AuthService.login_confirmed`.

Updaters and preprocessors return modified copies; the config passed in is
left as it was.
"""

from __future__ import annotations

import inspect
from typing import Awaitable, Callable, Union

import httpx

from authpark.classifier import RequestFilter
from authpark.models import RequestConfig

TokenProvider = Callable[[], Union[str, Awaitable[str]]]


def host_filter(*hosts: str, base_url: str = "") -> RequestFilter:
    """Select only requests addressed to one of *hosts*.

    Relative URLs are resolved against *base_url* first; a relative URL
    with no base URL never matches. Hostnames compare case-insensitively.

    Example::

        service.set_request_filter(host_filter("api.example.com"))
    """
    allowed = {h.lower() for h in hosts}
    base = httpx.URL(base_url) if base_url else None

    def _filter(config: RequestConfig) -> bool:
        url = httpx.URL(config.url)
        if not url.is_absolute_url:
            if base is None:
                return False
            url = base.join(config.url)
        return url.host.lower() in allowed

    return _filter


def header_updater(name: str, value: str) -> Callable[[RequestConfig], RequestConfig]:
    """Return an updater that sets header *name* to *value*."""

    def _update(config: RequestConfig) -> RequestConfig:
        return _with_header(config, name, value)

    return _update


def bearer_updater(token: str) -> Callable[[RequestConfig], RequestConfig]:
    """Return an updater that sets ``Authorization: Bearer <token>``."""
    return header_updater("Authorization", f"Bearer {token}")


def bearer_preprocessor(
    provider: TokenProvider,
) -> Callable[[RequestConfig], Awaitable[RequestConfig]]:
    """Return a preprocessor adding a bearer token fetched from *provider*.

    *provider* is called for every selected request and may be a plain
    function or a coroutine function. An empty token leaves the request
    unchanged, so the server's 401 starts a login episode.
    """

    async def _preprocess(config: RequestConfig) -> RequestConfig:
        token = provider()
        if inspect.isawaitable(token):
            token = await token
        if not token:
            return config
        return _with_header(config, "Authorization", f"Bearer {token}")

    return _preprocess


def _with_header(config: RequestConfig, name: str, value: str) -> RequestConfig:
    headers = {k: v for k, v in config.headers.items() if k.lower() != name.lower()}
    headers[name] = value
    return config.model_copy(update={"headers": headers})
