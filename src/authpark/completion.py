"""Single-resolution completion handles for parked requests.

A :class:`CompletionHandle` pairs an :class:`asyncio.Future` with an explicit
resolver. The original caller awaits the handle; the request buffer settles
it once, either with the replayed response or with a rejection.
"""

from __future__ import annotations

import asyncio
from typing import Any, Generator, Generic, Optional, TypeVar

from authpark.exceptions import HandleAlreadySettledError, RejectedError

T = TypeVar("T")


class CompletionHandle(Generic[T]):
    """The eventual outcome of one request, as seen by its original caller.

    Exactly one of :meth:`resolve` or :meth:`reject` may be called, once.
    A second call raises :class:`~authpark.exceptions.HandleAlreadySettledError`
    instead of being ignored, so a double settlement shows up as a defect.

    Must be created while an event loop is running (or with an explicit
    *loop*).

    Example::

        handle = CompletionHandle()
        handle.resolve(response)
        assert await handle is response
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        loop = loop or asyncio.get_running_loop()
        self._future: asyncio.Future[T] = loop.create_future()

    @property
    def done(self) -> bool:
        """Whether the handle has been settled."""
        return self._future.done()

    def resolve(self, result: T) -> None:
        """Settle the handle with a successful result."""
        self._ensure_pending()
        self._future.set_result(result)

    def reject(self, error: Any) -> None:
        """Settle the handle with a failure.

        Args:
            error: An exception to raise in the waiting caller. Any other
                value is wrapped in :class:`~authpark.exceptions.RejectedError`.
        """
        self._ensure_pending()
        if not isinstance(error, BaseException):
            error = RejectedError(error)
        self._future.set_exception(error)

    async def wait(self) -> T:
        """Wait for the outcome; returns the result or raises the rejection."""
        return await asyncio.shield(self._future)

    def __await__(self) -> Generator[Any, None, T]:
        return self.wait().__await__()

    def _ensure_pending(self) -> None:
        if self._future.done():
            raise HandleAlreadySettledError("Completion handle was already settled")

    def __repr__(self) -> str:
        state = "settled" if self.done else "pending"
        return f"<CompletionHandle {state}>"
