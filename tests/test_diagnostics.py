"""Tests for the diagnostic sink."""

import logging
import threading

from packetcraft.diagnostics import (
    Diagnostic,
    RecordingSink,
    Severity,
    current_sink,
    emit,
    log_sink,
    reset_sink,
    set_sink,
)
from packetcraft.models import UDP


def test_default_sink_logs(caplog):
    with caplog.at_level(logging.WARNING, logger="packetcraft.diagnostics"):
        UDP().craft()
    assert "UDP.craft()" in caplog.text
    assert "Cannot calculate UDP checksum" in caplog.text


def test_set_sink_and_reset():
    seen = []
    token = set_sink(seen.append)
    try:
        emit(Severity.INFO, "test", "hello")
    finally:
        reset_sink(token)
    assert seen == [Diagnostic(Severity.INFO, "test", "hello")]
    assert current_sink() is log_sink


def test_set_sink_none_restores_logging():
    outer = set_sink(lambda d: None)
    inner = set_sink(None)
    assert current_sink() is log_sink
    reset_sink(inner)
    reset_sink(outer)


def test_recording_sink_restores_on_exit():
    before = current_sink()
    with RecordingSink() as sink:
        emit(Severity.ERROR, "x", "boom")
        emit(Severity.WARNING, "y", "careful")
    assert current_sink() is before
    assert len(sink.errors) == 1
    assert len(sink.warnings) == 1


def test_diagnostic_str():
    d = Diagnostic(Severity.WARNING, "UDP.craft()", "oops")
    assert str(d) == "[WARNING] UDP.craft(): oops"


def test_recording_sinks_are_per_thread():
    """Overlapping recorders on two threads each see only their own craft."""
    a_entered = threading.Event()
    b_entered = threading.Event()
    a_crafted = threading.Event()
    counts = {}
    sinks_after = {}

    def thread_a():
        with RecordingSink() as sink:
            a_entered.set()
            b_entered.wait(timeout=5)
            UDP().craft()
            a_crafted.set()
        counts["a"] = len(sink.records)
        sinks_after["a"] = current_sink()

    def thread_b():
        a_entered.wait(timeout=5)
        with RecordingSink() as sink:
            b_entered.set()
            a_crafted.wait(timeout=5)
        counts["b"] = len(sink.records)
        sinks_after["b"] = current_sink()

    threads = [threading.Thread(target=thread_a), threading.Thread(target=thread_b)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=10)

    assert counts == {"a": 1, "b": 0}
    assert sinks_after == {"a": log_sink, "b": log_sink}
    assert current_sink() is log_sink
