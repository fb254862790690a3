"""Human-readable byte sizes for configuration and messages.

Parsing is pydantic's ``ByteSize``: decimal suffixes (KB, MB, GB, or just
K, M, G) are powers of 1000, binary suffixes (KiB, MiB, GiB) powers of 1024,
and fractional results are truncated to whole bytes.
"""

from __future__ import annotations

from pydantic import ByteSize, TypeAdapter, ValidationError

from bytelimit.errors import ConfigurationError

_BYTE_SIZE_ADAPTER = TypeAdapter(ByteSize)


def parse_size(value: str | int, *, field: str = "size") -> ByteSize:
    """Parse a byte count such as ``"512"``, ``"64KiB"`` or ``"1.5 MB"``.

    Raises:
        ConfigurationError: On unparseable input, booleans and negative sizes.
    """
    if isinstance(value, bool):
        raise ConfigurationError(field, "expected a byte size, got a boolean")
    try:
        size = _BYTE_SIZE_ADAPTER.validate_python(value)
    except ValidationError as exc:
        raise ConfigurationError(field, exc.errors()[0]["msg"]) from exc
    if size < 0:
        raise ConfigurationError(field, f"must be non-negative, got {value!r}")
    return size


__all__ = ["parse_size"]
