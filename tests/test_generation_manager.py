"""Tests for GenerationManager: event fan-out, completion, cancellation, errors."""

from __future__ import annotations

import queue
import time

import pytest

from designseek.api.generation_manager import TERMINAL_EVENTS, GenerationManager
from designseek.streaming import StreamRegistry


def _drain(q: queue.Queue, timeout: float = 5.0) -> list[dict]:
    """Collect events until a terminal one arrives."""
    events = []
    while True:
        event = q.get(timeout=timeout)
        events.append(event)
        if event["type"] in TERMINAL_EVENTS:
            return events


def _wait_until(predicate, timeout: float = 5.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


@pytest.fixture
def registry():
    return StreamRegistry()


@pytest.fixture
def manager(registry):
    return GenerationManager(registry=registry)


class TestCompletion:

    def test_deltas_then_done(self, manager, registry):
        stream_id = manager.start(lambda token: iter(["Hel", "lo"]))
        events = _drain(manager.subscribe(stream_id))
        assert events == [
            {"type": "delta", "text": "Hel"},
            {"type": "delta", "text": "lo"},
            {"type": "done"},
        ]
        status = manager.get_status(stream_id)
        assert status["status"] == "completed"
        assert status["chars"] == 5
        assert "events" not in status
        assert _wait_until(lambda: stream_id not in registry)

    def test_late_subscriber_gets_replay(self, manager):
        stream_id = manager.start(lambda token: iter(["a"]))
        _drain(manager.subscribe(stream_id))
        replay = _drain(manager.subscribe(stream_id))
        assert [e["type"] for e in replay] == ["delta", "done"]

    def test_given_stream_id(self, manager):
        assert manager.start(lambda token: iter([]), stream_id="fixed") == "fixed"
        assert _drain(manager.subscribe("fixed")) == [{"type": "done"}]

    def test_unknown_stream(self, manager):
        assert manager.subscribe("nope") is None
        assert manager.get_status("nope") is None


class TestCancellation:

    def test_cancel_via_registry(self, manager, registry):
        def generate(token):
            yield "first"
            token.wait(5)
            token.raise_if_cancelled()
            yield "never"

        stream_id = manager.start(generate)
        q = manager.subscribe(stream_id)
        assert q.get(timeout=5) == {"type": "delta", "text": "first"}
        assert registry.cancel(stream_id) is True

        events = _drain(q)
        assert events == [{"type": "cancelled"}]
        assert manager.get_status(stream_id)["status"] == "cancelled"

    def test_chunks_after_cancel_are_dropped(self, manager, registry):
        def generate(token):
            yield "first"
            token.wait(5)
            # ignores the token itself; the manager still stops
            yield "late"

        stream_id = manager.start(generate)
        q = manager.subscribe(stream_id)
        q.get(timeout=5)
        registry.cancel(stream_id)
        assert _drain(q) == [{"type": "cancelled"}]

    def test_release_cancels_running_stream(self, manager, registry):
        seen = {}

        def generate(token):
            seen["token"] = token
            yield "x"
            token.wait(5)
            token.raise_if_cancelled()

        stream_id = manager.start(generate)
        manager.subscribe(stream_id).get(timeout=5)
        manager.release(stream_id)
        assert manager.get_status(stream_id) is None
        assert _wait_until(lambda: seen["token"].cancelled)
        assert _wait_until(lambda: stream_id not in registry)

    def test_release_after_completion_is_quiet(self, manager, registry):
        stream_id = manager.start(lambda token: iter(["x"]))
        _drain(manager.subscribe(stream_id))
        manager.release(stream_id)
        manager.release(stream_id)
        assert manager.get_status(stream_id) is None


class TestErrors:

    def test_error_event(self, manager, registry, caplog):
        def generate(token):
            yield "partial"
            raise RuntimeError("provider exploded")

        stream_id = manager.start(generate)
        events = _drain(manager.subscribe(stream_id))
        assert events[-1] == {"type": "error", "error": "provider exploded"}
        status = manager.get_status(stream_id)
        assert status["status"] == "failed"
        assert status["error"] == "provider exploded"
        assert _wait_until(lambda: stream_id not in registry)
        assert "Generation %s failed" % stream_id in caplog.text
