"""Cooperative cancellation shared by submission, polling and sleeps."""

from __future__ import annotations

import asyncio
from typing import Awaitable, TypeVar

from genflow.exceptions import GenerationCancelledError

T = TypeVar("T")


class CancellationToken:
    """One token threads through a whole generation call.

    ``cancel()`` may be called from any coroutine or callback on the same
    event loop; pending ``run``/``sleep`` calls reject promptly instead of
    waiting for the next loop boundary.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self.reason: str | None = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self, reason: str | None = None) -> None:
        if self._event.is_set():
            return
        self.reason = reason
        self._event.set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise GenerationCancelledError(self.reason)

    async def run(self, awaitable: Awaitable[T]) -> T:
        """Await ``awaitable`` unless the token fires first.

        The losing side is cancelled; a cancellation wins over a result
        only when it arrives before the awaitable finishes.
        """
        if self._event.is_set():
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise GenerationCancelledError(self.reason)
        task = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
            raise
        finally:
            waiter.cancel()

        if task.done():
            return task.result()

        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
        raise GenerationCancelledError(self.reason)

    async def sleep(self, seconds: float) -> None:
        """Interruptible ``asyncio.sleep``."""
        await self.run(asyncio.sleep(seconds))


async def guarded(awaitable: Awaitable[T], token: CancellationToken | None) -> T:
    """Await through ``token`` when one is given."""
    if token is None:
        return await awaitable
    return await token.run(awaitable)


async def pause(seconds: float, token: CancellationToken | None) -> None:
    if token is None:
        await asyncio.sleep(seconds)
    else:
        await token.sleep(seconds)
