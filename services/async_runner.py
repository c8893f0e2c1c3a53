"""Utilities to execute coroutines on the main asyncio loop from sync contexts."""

from __future__ import annotations

import asyncio
import threading
from concurrent.futures import Future
from typing import Awaitable, Optional, TypeVar


_loop: Optional[asyncio.AbstractEventLoop] = None
T = TypeVar("T")


def set_main_loop(loop: Optional[asyncio.AbstractEventLoop]) -> None:
    global _loop
    _loop = loop


def _main_loop_available() -> bool:
    return _loop is not None and _loop.is_running() and not _loop.is_closed()


def submit_coroutine(coro: Awaitable[T]) -> Future:
    if _loop is None:
        raise RuntimeError("Asyncio loop is not initialized")
    return asyncio.run_coroutine_threadsafe(coro, _loop)


def run_coroutine_sync(coro: Awaitable[T]) -> T:
    """Run ``coro`` on the main loop and wait for its result.

    Without a running main loop (tests, one-off scripts) the coroutine runs
    on a private loop in the calling thread.
    """
    if _main_loop_available():
        return submit_coroutine(coro).result()

    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


def start_background_loop() -> asyncio.AbstractEventLoop:
    """Start a loop in a daemon thread and register it as the main loop.

    Used when Flask's own server handles requests, so there is no loop of
    ours already running.
    """
    loop = asyncio.new_event_loop()
    ready = threading.Event()

    def _run() -> None:
        asyncio.set_event_loop(loop)
        loop.call_soon(ready.set)
        loop.run_forever()

    threading.Thread(target=_run, name="async-services", daemon=True).start()
    ready.wait()
    set_main_loop(loop)
    return loop
