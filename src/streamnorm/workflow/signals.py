"""Signal handling for interruptible directive computation.

SIGTERM and SIGINT set a shutdown event; run_with_shutdown cancels the
running work when it fires. Cancellation reaches every per-stream task,
which kills its ffmpeg child process.
"""

from __future__ import annotations

import asyncio
import logging
import signal
from collections.abc import Coroutine
from typing import Any, TypeVar

from streamnorm.exceptions import ShutdownRequestedError

logger = logging.getLogger(__name__)

T = TypeVar("T")

_SHUTDOWN_SIGNALS = (signal.SIGTERM, signal.SIGINT)


def setup_signal_handlers(
    loop: asyncio.AbstractEventLoop,
    shutdown_event: asyncio.Event,
) -> None:
    """Register SIGTERM and SIGINT handlers that set shutdown_event."""

    def handle_shutdown_signal(sig: signal.Signals) -> None:
        logger.info("Received %s, stopping analysis", sig.name)
        shutdown_event.set()

    for sig in _SHUTDOWN_SIGNALS:
        try:
            loop.add_signal_handler(sig, handle_shutdown_signal, sig)
            logger.debug("Registered handler for %s", sig.name)
        except (ValueError, RuntimeError, NotImplementedError) as e:
            # Not in the main thread, or unsupported on this platform
            logger.warning("Failed to register handler for %s: %s", sig.name, e)


def remove_signal_handlers(loop: asyncio.AbstractEventLoop) -> None:
    for sig in _SHUTDOWN_SIGNALS:
        try:
            loop.remove_signal_handler(sig)
            logger.debug("Removed handler for %s", sig.name)
        except (ValueError, RuntimeError, NotImplementedError):
            pass  # Handler may not have been registered


async def run_with_shutdown(
    coro: Coroutine[Any, Any, T],
    shutdown_event: asyncio.Event | None = None,
) -> T:
    """Run coro until it finishes or a shutdown signal arrives.

    Args:
        coro: The work to run.
        shutdown_event: Event that requests shutdown. A new one wired to
            SIGTERM/SIGINT is used when omitted.

    Returns:
        The coroutine's result.

    Raises:
        ShutdownRequestedError: If shutdown was requested first. The work
            has been cancelled and awaited by then.
    """
    loop = asyncio.get_running_loop()
    event = shutdown_event or asyncio.Event()
    setup_signal_handlers(loop, event)

    work = asyncio.create_task(coro, name="compute-directives")
    waiter = asyncio.create_task(event.wait(), name="shutdown-waiter")
    try:
        await asyncio.wait({work, waiter}, return_when=asyncio.FIRST_COMPLETED)
        if work.done():
            return work.result()

        work.cancel()
        try:
            await work
        except asyncio.CancelledError:
            pass
        raise ShutdownRequestedError("Interrupted by shutdown signal")
    finally:
        waiter.cancel()
        if not work.done():
            work.cancel()
        remove_signal_handlers(loop)
