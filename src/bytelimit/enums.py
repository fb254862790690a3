"""Enumerations shared by stages and configuration."""

from __future__ import annotations

from enum import StrEnum


class OverflowPolicy(StrEnum):
    """What a stage does with the chunk that would cross its limit."""

    TERMINATE = "terminate"
    FAIL = "fail"


class StageState(StrEnum):
    """Lifecycle of a stage; every state but ACTIVE is terminal."""

    ACTIVE = "active"
    COMPLETED = "completed"
    TERMINATED = "terminated"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self is not StageState.ACTIVE
