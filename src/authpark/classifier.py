"""Pluggable predicates deciding which traffic is subject to auth handling."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Awaitable, Callable, Union

from authpark.models import RequestConfig

if TYPE_CHECKING:
    from authpark.exceptions import HTTPRejection

ResponseErrorFilter = Callable[["HTTPRejection"], bool]
RequestFilter = Callable[[RequestConfig], bool]
RequestPreprocessor = Callable[
    [RequestConfig], Union[RequestConfig, Awaitable[RequestConfig]]
]


def accept_all_errors(rejection: HTTPRejection) -> bool:
    return True


def skip_all_requests(config: RequestConfig) -> bool:
    return False


def unchanged(config: RequestConfig) -> RequestConfig:
    return config


@dataclass
class Classifier:
    """The three hooks consulted by :class:`~authpark.interceptor.AuthInterceptor`.

    The interceptor reads the attributes at decision time, so assigning a
    new function affects every request or response processed afterwards
    and nothing that is already parked.

    Attributes:
        response_error_filter: Returns ``True`` if a failed response should
            be considered for parking. Defaults to accepting every error.
        request_filter: Returns ``True`` if an outgoing request should go
            through :attr:`request_preprocessor`. Defaults to ``False`` so
            installing the interceptor changes nothing until opted in.
        request_preprocessor: Returns the config to send, or an awaitable
            resolving to it. Defaults to identity.
    """

    response_error_filter: ResponseErrorFilter = accept_all_errors
    request_filter: RequestFilter = skip_all_requests
    request_preprocessor: RequestPreprocessor = unchanged
