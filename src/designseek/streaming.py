"""Cooperative cancellation for in-flight generations, keyed by stream id."""

from __future__ import annotations

import logging
import threading

logger = logging.getLogger(__name__)


class GenerationCancelled(Exception):
    """Raised by a generation that noticed its token was cancelled."""


class CancellationToken:
    """Read side of a cancellation signal, handed to the long-running task."""

    def __init__(self, event: threading.Event) -> None:
        self._event = event

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise GenerationCancelled()

    def wait(self, timeout: float | None = None) -> bool:
        return self._event.wait(timeout)


class CancellationSource:
    """Owning side of a cancellation signal. Only this side can cancel."""

    def __init__(self) -> None:
        self._event = threading.Event()
        self.token = CancellationToken(self._event)

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()


class StreamRegistry:
    """Maps stream ids to cancellation sources.

    At most one live entry per id: registering again overwrites. Every
    operation is idempotent and safe to call from any thread.
    """

    def __init__(self) -> None:
        self._sources: dict[str, CancellationSource] = {}
        self._lock = threading.Lock()

    def register(self, stream_id: str, source: CancellationSource) -> None:
        with self._lock:
            self._sources[stream_id] = source

    def unregister(self, stream_id: str) -> None:
        """Drop the entry without signalling (normal completion or error)."""
        with self._lock:
            self._sources.pop(stream_id, None)

    def cancel(self, stream_id: str) -> bool:
        """Signal and drop the entry. False when nothing is registered."""
        with self._lock:
            source = self._sources.pop(stream_id, None)
        if source is None:
            return False
        source.cancel()
        logger.info("Stream %s cancelled", stream_id)
        return True

    def __contains__(self, stream_id: object) -> bool:
        with self._lock:
            return stream_id in self._sources

    def __len__(self) -> int:
        with self._lock:
            return len(self._sources)


stream_registry = StreamRegistry()


def register_stream_controller(stream_id: str, source: CancellationSource) -> None:
    stream_registry.register(stream_id, source)


def unregister_stream_controller(stream_id: str) -> None:
    stream_registry.unregister(stream_id)


def cancel_stream_controller(stream_id: str) -> bool:
    return stream_registry.cancel(stream_id)
