"""Asynchronous HTTP client with auth interception.

:class:`AsyncClient` wraps :class:`httpx.AsyncClient` and routes every request
through an :class:`~authpark.interceptor.AuthInterceptor`:

1. The request hook may preprocess the config (e.g. inject a header).
2. The config is sent with httpx.
3. An HTTP error response becomes an
   :class:`~authpark.exceptions.HTTPRejection` and goes through the
   response-error hook, which either raises it or parks the request.

The client's own :meth:`~AsyncClient.send` is the transport injected into
its :class:`~authpark.service.AuthService`, so replayed requests pass through
the same pipeline. A replay that fails with 401 again is parked again and
its original caller keeps waiting.

Example::

    async with AsyncClient(ClientSettings(base_url="https://api.example.com")) as client:
        client.service.set_request_filter(host_filter("api.example.com"))
        response = await client.get("/users")
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from authpark.events import EventBus
from authpark.exceptions import HTTPRejection
from authpark.models import ClientSettings, RequestConfig
from authpark.service import AuthService

logger = logging.getLogger(__name__)


class AsyncClient:
    """Non-blocking HTTP client whose auth failures can be parked and replayed.

    Must be used as an async context manager.

    Args:
        settings: Connection settings (base URL, timeout, SSL verify).
        events: Notification channel handed to the auth service.
        transport: Optional httpx transport, e.g. :class:`httpx.MockTransport`.
    """

    def __init__(
        self,
        settings: Optional[ClientSettings] = None,
        events: Optional[EventBus] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._settings = settings or ClientSettings()
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        self.service = AuthService(transport=self.send, events=events)

    @property
    def settings(self) -> ClientSettings:
        return self._settings

    # ------------------------------------------------------------------ #
    # Async context manager
    # ------------------------------------------------------------------ #

    async def __aenter__(self) -> AsyncClient:
        self._client = httpx.AsyncClient(
            base_url=self._settings.base_url,
            timeout=self._settings.timeout,
            verify=self._settings.verify_ssl,
            follow_redirects=self._settings.follow_redirects,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, *args: object) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    # ------------------------------------------------------------------ #
    # Public request methods
    # ------------------------------------------------------------------ #

    async def send(self, config: RequestConfig) -> httpx.Response:
        """Send *config* through the interception pipeline.

        Returns:
            The successful :class:`httpx.Response`. For a parked request this
            is the response of its replay.

        Raises:
            HTTPRejection: On an error status that is not parked, or the
                reason given to ``login_cancelled`` for a parked one.
            httpx.TransportError: On network failures, unchanged.
        """
        assert self._client is not None, "Client not initialised -- use as async context manager"

        config = await self.service.interceptor.on_request(config)
        response = await self._client.request(**self._request_kwargs(config))
        if response.status_code < 400:
            return response

        logger.debug("%s %s -> HTTP %d", config.method, config.url, response.status_code)
        return await self.service.interceptor.on_response_error(HTTPRejection(response, config))

    async def request(
        self,
        method: str,
        url: str,
        params: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
        json_body: Optional[Any] = None,
        content: Optional[str | bytes] = None,
        ignore_auth_module: bool = False,
        metadata: Optional[dict[str, Any]] = None,
    ) -> httpx.Response:
        """Build a :class:`~authpark.models.RequestConfig` and :meth:`send` it.

        Args:
            method: HTTP method (GET, POST, PUT, PATCH, DELETE).
            url: Absolute URL, or a path relative to ``settings.base_url``.
            params: Query parameters.
            headers: Request headers.
            json_body: JSON-serialisable body.
            content: Raw body.
            ignore_auth_module: Opt out of all auth handling.
            metadata: Free-form data carried with the config, never sent.
        """
        config = RequestConfig(
            method=method.upper(),
            url=url,
            params=dict(params or {}),
            headers=dict(headers or {}),
            json_body=json_body,
            content=content,
            ignore_auth_module=ignore_auth_module,
            metadata=dict(metadata or {}),
        )
        return await self.send(config)

    async def get(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("GET", url, **kwargs)

    async def post(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("POST", url, **kwargs)

    async def put(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("PUT", url, **kwargs)

    async def delete(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("DELETE", url, **kwargs)

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    @staticmethod
    def _request_kwargs(config: RequestConfig) -> dict[str, Any]:
        kwargs: dict[str, Any] = {
            "method": config.method,
            "url": config.url,
            "headers": config.headers,
            "params": config.params,
        }
        if config.json_body is not None:
            kwargs["json"] = config.json_body
        elif config.content is not None:
            kwargs["content"] = config.content
        if config.timeout is not None:
            kwargs["timeout"] = config.timeout
        return kwargs
