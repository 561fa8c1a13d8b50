"""Fire-and-forget execution of calendar and reminder side effects."""
from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor, wait
from threading import Lock
from typing import Any, Callable, Optional, Protocol, Set

from core.logging_setup import get_logger
from core.settings import DISPATCH

logger = get_logger("dispatch")


class Dispatcher(Protocol):
    def submit(self, label: str, fn: Callable[..., Any], *args: Any) -> None: ...


class BackgroundDispatcher:
    """Run jobs on worker threads without waiting for them.

    With a single worker (the default) jobs run strictly in submission order,
    so an item's calendar delete can never overtake its earlier create.
    """

    def __init__(self, max_workers: int = DISPATCH.max_workers):
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="wrangle-sync")
        self._pending: Set[Future] = set()
        self._lock = Lock()

    def submit(self, label: str, fn: Callable[..., Any], *args: Any) -> None:
        future = self._executor.submit(fn, *args)
        with self._lock:
            self._pending.add(future)
        future.add_done_callback(lambda f: self._finished(label, f))

    def _finished(self, label: str, future: Future) -> None:
        with self._lock:
            self._pending.discard(future)
        exc = future.exception()
        if exc is not None:
            logger.error("Background job %s failed: %r", label, exc)

    def wait_idle(self, timeout: Optional[float] = None) -> bool:
        with self._lock:
            pending = set(self._pending)
        if not pending:
            return True
        _, not_done = wait(pending, timeout=timeout)
        return not not_done

    def shutdown(self, timeout: float = DISPATCH.shutdown_timeout_sec) -> None:
        self.wait_idle(timeout)
        self._executor.shutdown(wait=False, cancel_futures=True)


class InlineDispatcher:
    """Run jobs immediately on the caller's thread (CLI and tests)."""

    def submit(self, label: str, fn: Callable[..., Any], *args: Any) -> None:
        try:
            fn(*args)
        except Exception:
            logger.exception("Job %s failed", label)

    def wait_idle(self, timeout: Optional[float] = None) -> bool:
        return True

    def shutdown(self, timeout: float = 0) -> None:
        return None


__all__ = ["Dispatcher", "BackgroundDispatcher", "InlineDispatcher"]
