"""
RestRole - Coordination Primitives

Signals shared between the host process and the role manager's background work:
- AbortSource: cooperative cancellation requested at shutdown
- SystemReadySignal: set by the host once the node is ready to serve
- DoAfterSystemReady: schedule a coroutine to run once the node is ready
"""

import asyncio
import logging
from typing import Awaitable, Callable

from restrole.exceptions import AbortRequestedError, SleepAbortedError

logger = logging.getLogger(__name__)


class AbortSource:
    """
    Cooperative cancellation token

    Background work checks it at every suspension point. Requesting an abort
    is idempotent.
    """

    def __init__(self):
        self._aborted = asyncio.Event()

    def RequestAbort(self) -> None:
        """Ask all waiters to stop"""
        if not self._aborted.is_set():
            logger.debug("Abort requested")
        self._aborted.set()

    def AbortRequested(self) -> bool:
        """Check if an abort has been requested"""
        return self._aborted.is_set()

    def CheckAbort(self) -> None:
        """
        Raise if an abort has been requested

        Raises:
            AbortRequestedError: Abort was requested
        """
        if self._aborted.is_set():
            raise AbortRequestedError("Abort requested")

    async def Sleep(self, seconds: float) -> None:
        """
        Sleep unless aborted first

        Args:
            seconds: Sleep duration

        Raises:
            SleepAbortedError: Abort was requested before or during the sleep
        """
        try:
            await asyncio.wait_for(self._aborted.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            return
        raise SleepAbortedError("Sleep aborted")

    async def WaitFor(self, event: asyncio.Event) -> None:
        """
        Wait for an event unless aborted first

        Args:
            event: Event to wait for

        Raises:
            AbortRequestedError: Abort was requested before the event was set
        """
        self.CheckAbort()
        if event.is_set():
            return

        event_waiter = asyncio.ensure_future(event.wait())
        abort_waiter = asyncio.ensure_future(self._aborted.wait())
        try:
            await asyncio.wait({event_waiter, abort_waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            event_waiter.cancel()
            abort_waiter.cancel()

        self.CheckAbort()


class SystemReadySignal:
    """
    Process-wide "system ready" flag

    The host sets it once the node has joined the cluster and can serve
    internal queries.
    """

    def __init__(self):
        self._ready = asyncio.Event()

    def Set(self) -> None:
        """Mark the system ready"""
        if not self._ready.is_set():
            logger.info("System ready")
        self._ready.set()

    def IsSet(self) -> bool:
        """Check if the system is ready"""
        return self._ready.is_set()

    async def Wait(self, abort_source: AbortSource) -> None:
        """
        Wait until the system is ready

        Raises:
            AbortRequestedError: Abort was requested first
        """
        await abort_source.WaitFor(self._ready)


def DoAfterSystemReady(
    ready_signal: SystemReadySignal,
    abort_source: AbortSource,
    func: Callable[[], Awaitable[None]]
) -> "asyncio.Task[None]":
    """
    Run a coroutine in the background once the system is ready

    Args:
        ready_signal: Readiness signal to wait for
        abort_source: Abort source that cancels the wait
        func: Coroutine function to run after readiness

    Returns:
        asyncio.Task: Background task; awaiting it re-raises func's failure
    """
    async def RunWhenReady() -> None:
        await ready_signal.Wait(abort_source)
        abort_source.CheckAbort()
        await func()

    return asyncio.ensure_future(RunWhenReady())


# Process-wide readiness signal
# Set by the host once startup has progressed far enough
system_ready = SystemReadySignal()
