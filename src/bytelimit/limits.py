"""Numeric defaults and bounds - no circular dependencies."""

from __future__ import annotations

KIB = 1024
MIB = 1024 * KIB

DEFAULT_CHUNK_SIZE = 64 * KIB
MAX_CHUNK_SIZE = 64 * MIB

DEFAULT_QUEUE_SIZE = 8
MAX_QUEUE_SIZE = 1024
