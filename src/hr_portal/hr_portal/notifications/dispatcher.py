from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Optional

from ..core.constants import DEFAULT_NOTIFY_WORKERS

logger = logging.getLogger(__name__)


class BestEffortDispatcher:
    """Runs side effects off the request thread.

    Callers hand work over only after their own write has committed. A failing
    job is logged and dropped; it never reaches the caller.
    """

    def __init__(self, *, max_workers: int = DEFAULT_NOTIFY_WORKERS):
        self._executor = ThreadPoolExecutor(max_workers=max(1, int(max_workers)), thread_name_prefix="notify")

    def submit(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Optional[Future]:
        try:
            future = self._executor.submit(fn, *args, **kwargs)
        except RuntimeError:
            # Executor already shut down (app teardown).
            logger.warning("Dispatcher closed; dropping %s", getattr(fn, "__name__", fn))
            return None
        future.add_done_callback(self._log_failure)
        return future

    def shutdown(self, *, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    @staticmethod
    def _log_failure(future: Future) -> None:
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            logger.warning("Best-effort dispatch failed: %s", exc, exc_info=exc)
