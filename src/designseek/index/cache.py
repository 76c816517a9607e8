"""Build-once, process-lifetime cache for the design-system index."""

from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Callable
from concurrent.futures import Future
from functools import partial
from typing import Literal

from designseek import config
from designseek.index.builder import build_index
from designseek.index.models import IndexData

logger = logging.getLogger(__name__)

CacheState = Literal["idle", "building", "built", "failed"]


class IndexCache:
    """Lazily builds the index exactly once and hands every caller the same result.

    The first caller installs a pending future under the lock and runs the
    build on its own thread; every other caller (concurrent or later) waits
    on that future. There is no refresh path: a new process picks up new
    export files.
    """

    def __init__(self, builder: Callable[[], IndexData]) -> None:
        self._builder = builder
        self._future: Future[IndexData] | None = None
        self._lock = threading.Lock()

    @property
    def state(self) -> CacheState:
        future = self._future
        if future is None:
            return "idle"
        if not future.done():
            return "building"
        return "failed" if future.exception() is not None else "built"

    def _claim(self) -> tuple[Future[IndexData], bool]:
        """Return the shared future and whether this caller must run the build."""
        with self._lock:
            if self._future is not None:
                return self._future, False
            future: Future[IndexData] = Future()
            future.set_running_or_notify_cancel()
            self._future = future
            return future, True

    def get(self, timeout: float | None = None) -> IndexData:
        """Return the index, building it first if no one has yet."""
        future, owner = self._claim()
        if owner:
            self._run_build(future)
        return future.result(timeout=timeout)

    async def get_async(self) -> IndexData:
        """Async variant of ``get``; a first build runs in the default executor."""
        future, owner = self._claim()
        if owner:
            loop = asyncio.get_running_loop()
            await loop.run_in_executor(None, self._run_build, future)
        return await asyncio.wrap_future(future)

    def _run_build(self, future: Future[IndexData]) -> None:
        logger.info("Building Figma index...")
        try:
            data = self._builder()
        except Exception as e:
            logger.exception("Figma index build failed")
            future.set_exception(e)
        else:
            future.set_result(data)


_default_cache: IndexCache | None = None
_default_lock = threading.Lock()


def default_index_cache() -> IndexCache:
    """Process-wide cache bound to ``config.FIGMA_INDEX_DIR``."""
    global _default_cache
    with _default_lock:
        if _default_cache is None:
            _default_cache = IndexCache(partial(build_index, config.FIGMA_INDEX_DIR))
        return _default_cache
