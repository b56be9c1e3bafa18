"""Buffer of requests parked while authentication is pending.

:class:`RequestBuffer` holds :class:`BufferedEntry` pairs in insertion order.
It is drained as a whole, either by replaying every entry through the
injected transport (:meth:`RequestBuffer.retry_all`) or by rejecting or
abandoning them (:meth:`RequestBuffer.reject_all`).

Both drains swap the live list for a fresh one before touching any entry.
Requests parked while a drain is running land in the new list and wait for
the next episode.
"""

from __future__ import annotations

import asyncio
import functools
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Iterator, Optional

import httpx

from authpark.completion import CompletionHandle
from authpark.exceptions import CompletionError, describe_reason
from authpark.models import RequestConfig

logger = logging.getLogger(__name__)

Transport = Callable[[RequestConfig], Awaitable[httpx.Response]]
ConfigUpdater = Callable[[RequestConfig], RequestConfig]


def identity(config: RequestConfig) -> RequestConfig:
    return config


@dataclass
class BufferedEntry:
    """A parked request and the handle its original caller is waiting on."""

    config: RequestConfig
    handle: CompletionHandle[httpx.Response]


class RequestBuffer:
    """Ordered collection of parked requests.

    Args:
        transport: Coroutine function used to reissue a request during
            :meth:`retry_all`. Its result resolves the entry's handle and
            any exception it raises rejects it.
    """

    def __init__(self, transport: Transport) -> None:
        self._transport = transport
        self._entries: list[BufferedEntry] = []
        self._replays: set[asyncio.Task[None]] = set()

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[BufferedEntry]:
        return iter(list(self._entries))

    def append(self, config: RequestConfig, handle: CompletionHandle[httpx.Response]) -> None:
        """Park *config* at the tail of the buffer."""
        self._entries.append(BufferedEntry(config=config, handle=handle))
        logger.debug(
            "Parked %s %s (%d pending)", config.method, config.url, len(self._entries)
        )

    def retry_all(self, updater: Optional[ConfigUpdater] = None) -> list[asyncio.Task[None]]:
        """Replay every parked request and empty the buffer.

        Each config is passed through *updater* in insertion order and then
        reissued on its own task. Completion order between replays is not
        defined. Nothing is raised to the caller: transport failures and
        updater errors reject the affected entry's handle only. A replay task
        that is cancelled rejects its handle with
        :class:`~authpark.exceptions.CompletionError`.

        Args:
            updater: Transformation applied to each config before replay,
                e.g. to inject a fresh credential. Defaults to identity.

        Returns:
            The scheduled replay tasks, in issuance order.

        Raises:
            RuntimeError: No event loop is running. The buffer is left intact.
        """
        updater = updater or identity
        # raises RuntimeError before anything is taken when no loop is running
        loop = asyncio.get_running_loop()
        entries = self._take()
        if entries:
            logger.debug("Replaying %d parked request(s)", len(entries))

        tasks: list[asyncio.Task[None]] = []
        for entry in entries:
            try:
                config = updater(entry.config)
            except Exception as exc:
                logger.debug("Config updater failed for %s: %s", entry.config.url, exc)
                entry.handle.reject(exc)
                continue
            task = loop.create_task(self._replay(config, entry.handle))
            self._replays.add(task)
            task.add_done_callback(functools.partial(self._replay_done, entry.handle))
            tasks.append(task)
        return tasks

    def reject_all(self, reason: Optional[Any] = None) -> None:
        """Reject every parked request with *reason*, or abandon them.

        With ``reason=None`` the buffer is emptied without settling any
        handle; the waiting callers are never resolved.
        """
        entries = self._take()
        if not entries:
            return
        if reason is None:
            logger.warning(
                "Abandoning %d parked request(s); their callers will never complete",
                len(entries),
            )
            return
        logger.debug("Rejecting %d parked request(s) with %s", len(entries), describe_reason(reason))
        for entry in entries:
            entry.handle.reject(reason)

    async def wait_replays(self, timeout: Optional[float] = None) -> None:
        """Wait until all replays scheduled so far have settled their handles.

        A replay that is parked again and then abandoned by ``reject_all()``
        never finishes, so without *timeout* this waits forever in that case.
        Replays still running at the deadline are left alone.

        Raises:
            asyncio.TimeoutError: *timeout* seconds passed first.
        """
        loop = asyncio.get_running_loop()
        deadline = None if timeout is None else loop.time() + timeout
        while self._replays:
            remaining = None if deadline is None else deadline - loop.time()
            if remaining is not None and remaining <= 0:
                raise asyncio.TimeoutError(f"{len(self._replays)} replay(s) still running")
            await asyncio.wait(list(self._replays), timeout=remaining)

    def _take(self) -> list[BufferedEntry]:
        entries, self._entries = self._entries, []
        return entries

    async def _replay(self, config: RequestConfig, handle: CompletionHandle[httpx.Response]) -> None:
        try:
            response = await self._transport(config)
        except Exception as exc:
            handle.reject(exc)
        else:
            handle.resolve(response)

    def _replay_done(
        self, handle: CompletionHandle[httpx.Response], task: asyncio.Task[None]
    ) -> None:
        self._replays.discard(task)
        # also covers a task cancelled before its coroutine first ran
        if task.cancelled() and not handle.done:
            logger.debug("Replay cancelled; rejecting its caller")
            handle.reject(CompletionError("Replay was cancelled before it completed"))
