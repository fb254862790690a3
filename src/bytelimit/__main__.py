"""CLI entry point for bytelimit."""

from __future__ import annotations

import sys

# The package uses ``type`` alias statements, so older interpreters fail at import.
if sys.version_info < (3, 12):  # noqa: UP036
    sys.exit("bytelimit needs Python 3.12 or newer")

from bytelimit.cli import cli  # noqa: E402


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
