"""Traffic statistics for stages and pumps.

Each :class:`~bytelimit.stage.ByteLimitStage` and each :func:`~bytelimit.pipeline.pump`
call keeps a :class:`StreamStats` for the one stream it drives. When that
stream ends its stats are reported once:

* folded into per-kind process totals when ``BYTELIMIT_INSTRUMENTATION`` is
  set (see :func:`snapshot`);
* logged as a single JSON record on this module's logger when
  ``BYTELIMIT_INSTRUMENTATION_LOG`` is set.
"""

from __future__ import annotations

import json
import logging
import os
import threading
import time
from dataclasses import dataclass, field
from typing import Any

log = logging.getLogger(__name__)

INSTRUMENTATION_ENV = "BYTELIMIT_INSTRUMENTATION"
INSTRUMENTATION_LOG_ENV = "BYTELIMIT_INSTRUMENTATION_LOG"


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() in {"1", "true", "yes", "on"}


@dataclass(slots=True)
class StreamStats:
    """Chunks and bytes one stream delivered, and how the stream ended.

    ``elapsed_ms`` runs from creation until :meth:`finish`.
    """

    kind: str
    chunks: int = 0
    nbytes: int = 0
    outcome: str | None = None
    elapsed_ms: float = 0.0
    started_at: float = field(default_factory=time.perf_counter, repr=False)

    @property
    def finished(self) -> bool:
        return self.outcome is not None

    def add(self, size: int) -> None:
        """Account for one delivered chunk of ``size`` bytes."""
        self.chunks += 1
        self.nbytes += size

    def finish(self, outcome: str) -> None:
        """Freeze the stats and report them; later calls are ignored."""
        if self.finished:
            return
        self.outcome = str(outcome)
        self.elapsed_ms = (time.perf_counter() - self.started_at) * 1000.0
        _registry.report(self)

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "chunks": self.chunks,
            "bytes": self.nbytes,
            "outcome": self.outcome,
            "elapsed_ms": round(self.elapsed_ms, 3),
        }


@dataclass(slots=True)
class _Totals:
    streams: int = 0
    chunks: int = 0
    nbytes: int = 0
    elapsed_ms: float = 0.0
    outcomes: dict[str, int] = field(default_factory=dict)

    def add(self, stats: StreamStats) -> None:
        self.streams += 1
        self.chunks += stats.chunks
        self.nbytes += stats.nbytes
        self.elapsed_ms += stats.elapsed_ms
        outcome = stats.outcome or "unknown"
        self.outcomes[outcome] = self.outcomes.get(outcome, 0) + 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "streams": self.streams,
            "chunks": self.chunks,
            "bytes": self.nbytes,
            "elapsed_ms": round(self.elapsed_ms, 3),
            "outcomes": dict(self.outcomes),
        }


class _Registry:
    """Process-wide sink for finished streams."""

    def __init__(self) -> None:
        self.enabled = _env_flag(INSTRUMENTATION_ENV)
        self.log_events = _env_flag(INSTRUMENTATION_LOG_ENV)
        self._lock = threading.Lock()
        self._totals: dict[str, _Totals] = {}

    def report(self, stats: StreamStats) -> None:
        if self.enabled:
            with self._lock:
                self._totals.setdefault(stats.kind, _Totals()).add(stats)
        if self.log_events:
            log.info("bytelimit.stream %s", json.dumps(stats.to_dict(), sort_keys=True))

    def reset(self) -> None:
        with self._lock:
            self._totals.clear()

    def totals(self) -> dict[str, dict[str, Any]]:
        with self._lock:
            return {kind: totals.to_dict() for kind, totals in self._totals.items()}


_registry = _Registry()


def configure(*, enabled: bool | None = None, log_events: bool | None = None) -> None:
    """Override the environment-derived flags at runtime."""
    if enabled is not None:
        _registry.enabled = enabled
    if log_events is not None:
        _registry.log_events = log_events


def is_enabled() -> bool:
    return _registry.enabled


def reset() -> None:
    """Drop the accumulated totals."""
    _registry.reset()


def snapshot() -> dict[str, Any]:
    """Return the totals per stream kind, e.g. ``{"streams": {"stage": {...}}}``."""
    return {"enabled": _registry.enabled, "streams": _registry.totals()}


__all__ = [
    "INSTRUMENTATION_ENV",
    "INSTRUMENTATION_LOG_ENV",
    "StreamStats",
    "configure",
    "is_enabled",
    "reset",
    "snapshot",
]
