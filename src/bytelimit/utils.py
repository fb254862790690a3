"""Small helpers for closing iterators we did not create.

A failing close is logged and dropped so it never replaces the error or
normal end that made us close the iterator.
"""

from __future__ import annotations

import logging

log = logging.getLogger(__name__)


async def aclose_iterator(iterator: object) -> None:
    """Close an async iterator if it supports ``aclose()``."""
    aclose = getattr(iterator, "aclose", None)
    if aclose is None:
        return
    try:
        await aclose()
    except Exception:
        log.warning("Closing upstream %r failed", iterator, exc_info=True)


def close_iterator(iterator: object) -> None:
    """Close a sync iterator if it supports ``close()``."""
    close = getattr(iterator, "close", None)
    if close is None:
        return
    try:
        close()
    except Exception:
        log.warning("Closing upstream %r failed", iterator, exc_info=True)


__all__ = ["aclose_iterator", "close_iterator"]
