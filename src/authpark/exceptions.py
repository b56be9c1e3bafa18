"""Exception hierarchy for authpark.

All exceptions inherit from :class:`AuthparkError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`authpark.exit_codes`.
The command-line entry point in :func:`authpark.app.main` catches
``AuthparkError`` and exits with the appropriate code.

Subclass hierarchy::

    AuthparkError (exit 1)
    +-- InvalidUsageError           (exit 2)
    +-- ConfigError                 (exit 1)
    +-- HTTPRejection               (exit 3 / 4 / 5 depending on status)
    +-- LoginCancelledError         (exit 3)
    +-- ConnectionError_            (exit 6)
    +-- RejectedError               (exit 1)
    +-- CompletionError             (exit 1)
        +-- HandleAlreadySettledError
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional

from authpark.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_NOT_FOUND,
    EXIT_SERVER_ERROR,
)

if TYPE_CHECKING:
    import httpx

    from authpark.models import RequestConfig


class AuthparkError(Exception):
    """Base exception for all authpark errors.

    Args:
        message: Human-readable error description.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(AuthparkError):
    """Raised for invalid CLI arguments (malformed headers, bad JSON body)."""

    exit_code = EXIT_INVALID_USAGE


class ConfigError(AuthparkError):
    """Raised for configuration problems (invalid JSON, failed validation)."""

    exit_code = EXIT_GENERIC_FAILURE


class HTTPRejection(AuthparkError):
    """A request that completed with an HTTP error status.

    This is the *rejection* object seen by the response-error filter and
    carried in auth notifications. When a failure is out of scope for auth
    handling, this exact instance is raised to the original caller.

    Args:
        response: The error response returned by the transport.
        config: The request configuration that produced *response*.
    """

    def __init__(self, response: httpx.Response, config: RequestConfig):
        self.response = response
        self.config = config
        self.status = response.status_code
        super().__init__(_describe(response), exit_code=_exit_code_for(self.status))


class LoginCancelledError(AuthparkError):
    """Used as the rejection reason when an authentication episode is abandoned."""

    exit_code = EXIT_AUTH_FAILURE

    def __init__(self, message: str = "Login cancelled"):
        super().__init__(message)


class ConnectionError_(AuthparkError):
    """Raised on network-level failures (timeout, DNS resolution, connection refused).

    Named with a trailing underscore to avoid shadowing the built-in
    ``ConnectionError``.
    """

    exit_code = EXIT_CONNECTION_ERROR


class RejectedError(AuthparkError):
    """Wraps a non-exception rejection reason so it can travel through a future.

    Attributes:
        reason: The original value passed to
            :meth:`~authpark.completion.CompletionHandle.reject`.
    """

    def __init__(self, reason: Any):
        self.reason = reason
        super().__init__(f"Request rejected: {reason!r}")


class CompletionError(AuthparkError):
    """Raised when a :class:`~authpark.completion.CompletionHandle` is misused
    or its replay is cancelled before it could settle the handle.
    """


class HandleAlreadySettledError(CompletionError):
    """Raised when a completion handle is resolved or rejected a second time."""


def _exit_code_for(status: int) -> int:
    if status in (400, 401, 403):
        return EXIT_AUTH_FAILURE
    if status == 404:
        return EXIT_NOT_FOUND
    return EXIT_SERVER_ERROR


def _describe(response: httpx.Response) -> str:
    """Build ``HTTP <status>: <detail>`` from an error response body."""
    try:
        detail = response.json()
        if isinstance(detail, dict):
            msg = detail.get("message") or detail.get("error") or detail.get("detail") or ""
        else:
            msg = str(detail)
    except Exception:
        msg = response.text[:200] if response.text else ""

    prefix = f"HTTP {response.status_code}"
    return f"{prefix}: {msg}" if msg else prefix


def describe_reason(reason: Optional[Any]) -> str:
    """Return a short printable form of a rejection reason."""
    if reason is None:
        return "no reason"
    if isinstance(reason, BaseException):
        return f"{type(reason).__name__}: {reason}"
    return repr(reason)
