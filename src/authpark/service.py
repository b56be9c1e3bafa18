"""Application-facing control surface for the auth interception core.

:class:`AuthService` owns the :class:`~authpark.classifier.Classifier`, the
:class:`~authpark.buffer.RequestBuffer` and the
:class:`~authpark.interceptor.AuthInterceptor` wired between them. The host
uses it to install classifier hooks and to end an authentication episode
with :meth:`~AuthService.login_confirmed` or
:meth:`~AuthService.login_cancelled`.

See Also:
    :class:`~authpark.client.AsyncClient` -- builds an ``AuthService``
    around its own ``send`` method.
"""

from __future__ import annotations

import asyncio
from typing import Any, Optional

from authpark.buffer import ConfigUpdater, RequestBuffer, Transport
from authpark.classifier import (
    Classifier,
    RequestFilter,
    RequestPreprocessor,
    ResponseErrorFilter,
)
from authpark.events import (
    EVENT_LOGIN_CANCELLED,
    EVENT_LOGIN_CONFIRMED,
    Broadcaster,
    EventBus,
)
from authpark.interceptor import AuthInterceptor


class AuthService:
    """Registers classifier hooks and resolves pending auth episodes.

    Args:
        transport: Coroutine function used to replay parked requests.
        events: Notification channel. A private
            :class:`~authpark.events.Broadcaster` is created when omitted.
        classifier: Initial hooks. Defaults to :class:`Classifier` defaults.

    Example::

        service = AuthService(transport=client.send)
        service.set_request_filter(host_filter("api.example.com"))
        ...
        service.login_confirmed(user, bearer_updater(token))
    """

    def __init__(
        self,
        transport: Transport,
        events: Optional[EventBus] = None,
        classifier: Optional[Classifier] = None,
    ) -> None:
        self.events: EventBus = events if events is not None else Broadcaster()
        self.classifier = classifier or Classifier()
        self.buffer = RequestBuffer(transport)
        self.interceptor = AuthInterceptor(self.classifier, self.buffer, self.events)

    @property
    def pending(self) -> int:
        """Number of requests currently parked."""
        return len(self.buffer)

    # ------------------------------------------------------------------ #
    # Classifier registration
    # ------------------------------------------------------------------ #

    def set_response_error_filter(self, func: ResponseErrorFilter) -> None:
        """Install the predicate deciding whether a failed response is considered.

        It receives the :class:`~authpark.exceptions.HTTPRejection` and must
        return ``True`` to process the error or ``False`` to surface it
        unchanged. By default every error is processed.
        """
        self.classifier.response_error_filter = _require_callable(func)

    def set_request_filter(self, func: RequestFilter) -> None:
        """Install the predicate selecting requests for preprocessing.

        By default no request is selected.
        """
        self.classifier.request_filter = _require_callable(func)

    def set_request_preprocessor(self, func: RequestPreprocessor) -> None:
        """Install the transformation applied to requests selected by the filter.

        It receives the :class:`~authpark.models.RequestConfig` and returns
        the config to send, or an awaitable resolving to it.
        """
        self.classifier.request_preprocessor = _require_callable(func)

    # ------------------------------------------------------------------ #
    # Episode resolution
    # ------------------------------------------------------------------ #

    def login_confirmed(
        self,
        data: Any = None,
        config_updater: Optional[ConfigUpdater] = None,
    ) -> list[asyncio.Task[None]]:
        """Announce a successful login and replay every parked request.

        Args:
            data: Passed through as the ``event:auth-loginConfirmed`` payload,
                e.g. details of the user who logged in.
            config_updater: Applied to each parked config before replay,
                typically to add the new credential. Must return the config.

        Returns:
            The scheduled replay tasks.
        """
        self.events.publish(EVENT_LOGIN_CONFIRMED, data)
        return self.buffer.retry_all(config_updater)

    def login_cancelled(self, data: Any = None, reason: Any = None) -> None:
        """End the episode without logging in.

        Parked requests are rejected with *reason* when one is given and
        abandoned otherwise. This happens before ``event:auth-loginCancelled``
        is published, so observers see an empty buffer.

        Args:
            data: Passed through as the event payload.
            reason: Rejection delivered to every parked caller.
        """
        self.buffer.reject_all(reason)
        self.events.publish(EVENT_LOGIN_CANCELLED, data)


def _require_callable(func: Any) -> Any:
    if not callable(func):
        raise TypeError(f"Expected a callable, got {type(func).__name__}")
    return func
