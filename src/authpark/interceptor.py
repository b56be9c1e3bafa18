"""Request/response hooks that park requests failing for lack of credentials.

:class:`AuthInterceptor` is called by the transport on every outgoing request
(:meth:`~AuthInterceptor.on_request`) and on every HTTP error response
(:meth:`~AuthInterceptor.on_response_error`). Failed responses are mapped to
a :class:`~authpark.models.RejectionCategory`:

* ``400`` -> ``missing-parameter``: parked, ``event:auth-missingParameter``.
* ``401`` -> ``login-required``: parked, ``event:auth-loginRequired``.
* ``403`` -> ``forbidden``: ``event:auth-forbidden``, failure surfaced.
* anything else, opted-out or filtered-out -> ``unclassified``: surfaced
  unchanged.

A parked request's caller keeps waiting on a
:class:`~authpark.completion.CompletionHandle` until
:class:`~authpark.service.AuthService` confirms or cancels the login.
"""

from __future__ import annotations

import inspect
import logging
from typing import Awaitable

import httpx

from authpark.buffer import RequestBuffer
from authpark.classifier import Classifier
from authpark.completion import CompletionHandle
from authpark.events import (
    EVENT_FORBIDDEN,
    EVENT_LOGIN_REQUIRED,
    EVENT_MISSING_PARAMETER,
    EventBus,
)
from authpark.exceptions import HTTPRejection
from authpark.models import AuthNotification, RejectionCategory, RequestConfig

logger = logging.getLogger(__name__)

_STATUS_CATEGORIES = {
    400: RejectionCategory.MISSING_PARAMETER,
    401: RejectionCategory.LOGIN_REQUIRED,
    403: RejectionCategory.FORBIDDEN,
}

_CATEGORY_EVENTS = {
    RejectionCategory.MISSING_PARAMETER: EVENT_MISSING_PARAMETER,
    RejectionCategory.LOGIN_REQUIRED: EVENT_LOGIN_REQUIRED,
    RejectionCategory.FORBIDDEN: EVENT_FORBIDDEN,
}


def classify_status(status: int) -> RejectionCategory:
    """Map an HTTP status code to its rejection category."""
    return _STATUS_CATEGORIES.get(status, RejectionCategory.UNCLASSIFIED)


class AuthInterceptor:
    """The interception pipeline.

    Args:
        classifier: Hooks deciding scope and preprocessing. Read on every
            call, so later changes to it take effect immediately.
        buffer: Where in-scope ``400`` / ``401`` failures are parked.
        events: Channel receiving :class:`~authpark.models.AuthNotification`
            payloads.
    """

    def __init__(self, classifier: Classifier, buffer: RequestBuffer, events: EventBus) -> None:
        self._classifier = classifier
        self._buffer = buffer
        self._events = events

    async def on_request(self, config: RequestConfig) -> RequestConfig:
        """Return the config to send, preprocessed if the request filter selects it."""
        if not self._classifier.request_filter(config):
            return config

        result = self._classifier.request_preprocessor(config)
        if inspect.isawaitable(result):
            result = await result
        return result

    def categorize(self, rejection: HTTPRejection) -> RejectionCategory:
        """Return how *rejection* will be handled, without side effects."""
        if not self._classifier.response_error_filter(rejection):
            return RejectionCategory.UNCLASSIFIED
        if rejection.config.ignore_auth_module:
            return RejectionCategory.UNCLASSIFIED
        return classify_status(rejection.status)

    def on_response_error(self, rejection: HTTPRejection) -> Awaitable[httpx.Response]:
        """Handle an HTTP error response.

        Returns:
            For parked requests, an awaitable that settles when the login
            episode is confirmed (replayed response) or cancelled with a
            reason (that reason is raised).

        Raises:
            HTTPRejection: *rejection* itself, for every outcome that is not
                parked.
        """
        category = self.categorize(rejection)

        if category.parks:
            handle: CompletionHandle[httpx.Response] = CompletionHandle()
            self._buffer.append(rejection.config, handle)
            self._notify(category, rejection)
            return handle.wait()

        if category is RejectionCategory.FORBIDDEN:
            self._notify(category, rejection)

        raise rejection

    def _notify(self, category: RejectionCategory, rejection: HTTPRejection) -> None:
        logger.debug(
            "%s for %s %s", category.value, rejection.config.method, rejection.config.url
        )
        self._events.publish(
            _CATEGORY_EVENTS[category],
            AuthNotification(category=category, rejection=rejection),
        )
