"""Background chat generations with event streaming and cancellation."""

from __future__ import annotations

import logging
import queue
import threading
import uuid
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor
from typing import Any

from designseek.streaming import (
    CancellationSource,
    CancellationToken,
    GenerationCancelled,
    StreamRegistry,
    stream_registry,
)

logger = logging.getLogger(__name__)

TERMINAL_EVENTS = frozenset({"done", "cancelled", "error"})

GenerateFn = Callable[[CancellationToken], Iterable[str]]


class GenerationManager:
    """Runs generations on a thread pool and fans their events out to subscribers.

    Each generation's cancellation source is registered in the stream
    registry under its stream id for as long as it runs, so a separate
    request can cancel it. Events are kept per stream and replayed to late
    subscribers.
    """

    def __init__(self, registry: StreamRegistry | None = None) -> None:
        # Unbounded pool: generations are I/O-bound (provider streaming)
        self._executor = ThreadPoolExecutor(max_workers=None)
        self._registry = registry if registry is not None else stream_registry
        self._streams: dict[str, dict[str, Any]] = {}
        self._subscribers: dict[str, list[queue.Queue]] = {}
        self._lock = threading.Lock()

    def start(self, fn: GenerateFn, stream_id: str | None = None) -> str:
        """Start ``fn(token)`` in the background; its chunks become delta events.

        Returns:
            The stream id (UUID string unless one was given).
        """
        if stream_id is None:
            stream_id = str(uuid.uuid4())
        source = CancellationSource()

        with self._lock:
            self._streams[stream_id] = {
                "id": stream_id,
                "status": "running",
                "events": [],
                "chars": 0,
                "error": None,
            }
            self._subscribers[stream_id] = []
        self._registry.register(stream_id, source)

        def _run():
            try:
                for chunk in fn(source.token):
                    source.token.raise_if_cancelled()
                    self._emit(stream_id, {"type": "delta", "text": chunk})
                source.token.raise_if_cancelled()
                self._finish(stream_id, "completed", {"type": "done"})
            except GenerationCancelled:
                logger.info("Generation %s stopped after cancellation", stream_id)
                self._finish(stream_id, "cancelled", {"type": "cancelled"})
            except Exception as e:
                logger.exception("Generation %s failed", stream_id)
                self._finish(stream_id, "failed", {"type": "error", "error": str(e)}, error=str(e))
            finally:
                self._registry.unregister(stream_id)

        self._executor.submit(_run)
        return stream_id

    def get_status(self, stream_id: str) -> dict | None:
        with self._lock:
            stream = self._streams.get(stream_id)
            if stream is None:
                return None
            return {k: v for k, v in stream.items() if k != "events"}

    def subscribe(self, stream_id: str) -> queue.Queue | None:
        """Queue of events for a stream, pre-filled with everything emitted so far."""
        with self._lock:
            stream = self._streams.get(stream_id)
            if stream is None:
                return None
            q: queue.Queue = queue.Queue()
            for event in stream["events"]:
                q.put_nowait(event)
            self._subscribers[stream_id].append(q)
            return q

    def release(self, stream_id: str) -> None:
        """Forget a stream once its consumer is gone, cancelling it if still running."""
        with self._lock:
            stream = self._streams.pop(stream_id, None)
            self._subscribers.pop(stream_id, None)
        if stream is not None and stream["status"] == "running":
            self._registry.cancel(stream_id)

    def _emit(self, stream_id: str, event: dict) -> None:
        with self._lock:
            stream = self._streams.get(stream_id)
            if stream is None:
                return
            stream["events"].append(event)
            if event["type"] == "delta":
                stream["chars"] += len(event["text"])
            for q in self._subscribers.get(stream_id, []):
                q.put_nowait(event)

    def _finish(self, stream_id: str, status: str, event: dict, error: str | None = None) -> None:
        with self._lock:
            stream = self._streams.get(stream_id)
            if stream is not None:
                stream["status"] = status
                stream["error"] = error
        self._emit(stream_id, event)
