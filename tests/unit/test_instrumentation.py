"""Tests for per-stream statistics and their process totals."""

from __future__ import annotations

import json
import logging

import pytest

from bytelimit import instrumentation
from bytelimit.enums import StageState
from bytelimit.instrumentation import StreamStats

pytestmark = pytest.mark.unit


def _finished(kind: str, sizes: list[int], outcome: str) -> StreamStats:
    stats = StreamStats(kind)
    for size in sizes:
        stats.add(size)
    stats.finish(outcome)
    return stats


def test_stream_stats_accumulate_chunks() -> None:
    stats = _finished("stage", [4, 4, 0], StageState.COMPLETED)

    assert stats.chunks == 3
    assert stats.nbytes == 8
    assert stats.outcome == "completed"
    assert stats.elapsed_ms >= 0.0


def test_first_outcome_wins(instrumented: None) -> None:
    stats = _finished("stage", [1], StageState.TERMINATED)
    stats.finish(StageState.CANCELLED)

    assert stats.outcome == "terminated"
    assert instrumentation.snapshot()["streams"]["stage"]["streams"] == 1


def test_disabled_by_default_keeps_no_totals() -> None:
    _finished("pump", [3], StageState.COMPLETED)

    snapshot = instrumentation.snapshot()
    assert snapshot["enabled"] is False
    assert snapshot["streams"] == {}


def test_totals_group_streams_by_kind(instrumented: None) -> None:
    _finished("stage", [4, 4], StageState.TERMINATED)
    _finished("stage", [2], StageState.COMPLETED)
    _finished("pump", [6], StageState.COMPLETED)

    streams = instrumentation.snapshot()["streams"]
    assert streams["stage"]["streams"] == 2
    assert streams["stage"]["bytes"] == 10
    assert streams["stage"]["outcomes"] == {"terminated": 1, "completed": 1}
    assert streams["pump"]["chunks"] == 1


def test_reset_clears_totals(instrumented: None) -> None:
    _finished("stage", [1], StageState.COMPLETED)
    instrumentation.reset()

    assert instrumentation.snapshot()["streams"] == {}


def test_log_events_emit_one_record_per_stream(caplog: pytest.LogCaptureFixture) -> None:
    instrumentation.configure(log_events=True)

    with caplog.at_level(logging.INFO, logger="bytelimit.instrumentation"):
        _finished("stage", [4, 4], StageState.FAILED)

    assert len(caplog.records) == 1
    payload = json.loads(caplog.records[0].getMessage().split(" ", 1)[1])
    assert payload["kind"] == "stage"
    assert payload["chunks"] == 2
    assert payload["bytes"] == 8
    assert payload["outcome"] == "failed"
