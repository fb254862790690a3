"""Pytest fixtures for bytelimit tests."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from hypothesis import Phase, Verbosity, settings

from bytelimit import instrumentation

if TYPE_CHECKING:
    from collections.abc import Generator


settings.register_profile(
    "ci",
    max_examples=100,
    deadline=None,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
)
settings.register_profile(
    "dev",
    max_examples=20,
    deadline=500,
)
settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    deadline=None,
)
settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "dev"))


@pytest.fixture(autouse=True)
def _isolate_instrumentation() -> Generator[None, None, None]:
    """Keep instrumentation totals and flags from leaking between tests."""
    instrumentation.configure(enabled=False, log_events=False)
    instrumentation.reset()
    yield
    instrumentation.configure(enabled=False, log_events=False)
    instrumentation.reset()


@pytest.fixture
def instrumented() -> None:
    """Enable instrumentation for the duration of a test."""
    instrumentation.configure(enabled=True)
