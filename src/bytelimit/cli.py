"""Command line interface: copy a byte-limited prefix of a stream to stdout."""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from typing import IO, Any

import click
from pydantic import ByteSize

from bytelimit import __version__, instrumentation
from bytelimit.config import PipelineSettings
from bytelimit.enums import OverflowPolicy
from bytelimit.errors import ConfigurationError, SizeLimitExceeded
from bytelimit.pipeline import buffered, pump
from bytelimit.sizes import parse_size
from bytelimit.sources import read_file_chunks
from bytelimit.stage import ByteLimitStage

log = logging.getLogger(__name__)


class ByteSizeParamType(click.ParamType):
    """Click parameter accepting sizes such as ``4096``, ``64KiB`` or ``1.5MB``."""

    name = "size"

    def convert(self, value: Any, param: click.Parameter | None, ctx: click.Context | None) -> int:
        try:
            return parse_size(value, field=param.name if param and param.name else "size")
        except ConfigurationError as exc:
            self.fail(exc.reason, param, ctx)


BYTE_SIZE = ByteSizeParamType()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


async def _copy(
    source: IO[bytes],
    sink: IO[bytes],
    stage: ByteLimitStage,
    settings: PipelineSettings,
) -> int:
    chunks = buffered(read_file_chunks(source, settings.chunk_size), maxsize=settings.queue_size)
    return await pump(stage.pipe(chunks), sink.write)


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.argument("source", type=click.File("rb"), default="-")
@click.option(
    "-l",
    "--limit",
    type=BYTE_SIZE,
    required=True,
    help="Maximum number of bytes to copy (e.g. 4096, 64KiB, 1.5MB)",
)
@click.option(
    "--fail",
    "fail_on_overflow",
    is_flag=True,
    help="Exit with an error instead of stopping quietly at the limit",
)
@click.option(
    "-c",
    "--chunk-size",
    type=BYTE_SIZE,
    default=None,
    help="Read size (default: $BYTELIMIT_CHUNK_SIZE or 64KiB)",
)
@click.option("--stats", is_flag=True, help="Print stream statistics to stderr when done")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging on stderr")
@click.version_option(__version__, "--version", prog_name="bytelimit")
def cli(
    source: IO[bytes],
    limit: int,
    fail_on_overflow: bool,
    chunk_size: int | None,
    stats: bool,
    verbose: bool,
) -> None:
    """Copy at most LIMIT bytes from SOURCE (default: stdin) to stdout.

    Input is read in chunks and a chunk that would cross the limit is
    dropped whole, so fewer than LIMIT bytes may be written. Up to
    $BYTELIMIT_QUEUE_SIZE chunks are read ahead of the writer.

    \b
    Examples:
        curl -s https://example.com | bytelimit -l 512KiB > head.html
        bytelimit --fail -l 10MB upload.bin > /dev/null
    """
    _configure_logging(verbose)
    try:
        settings = PipelineSettings.from_env()
        if chunk_size is not None:
            settings = PipelineSettings.build(chunk_size=chunk_size, queue_size=settings.queue_size)
    except ConfigurationError as exc:
        raise click.UsageError(str(exc)) from exc

    policy = OverflowPolicy.FAIL if fail_on_overflow else OverflowPolicy.TERMINATE
    stage = ByteLimitStage(limit, policy)
    if stats:
        instrumentation.configure(enabled=True)
        instrumentation.reset()

    sink = click.get_binary_stream("stdout")
    try:
        written = asyncio.run(_copy(source, sink, stage, settings))
    except SizeLimitExceeded as exc:
        log.debug("Stopped after %s: %s", ByteSize(exc.forwarded).human_readable(), exc)
        raise click.ClickException(str(exc)) from exc
    finally:
        sink.flush()
        if stats:
            click.echo(json.dumps(instrumentation.snapshot(), indent=2, sort_keys=True), err=True)

    log.info(
        "Copied %s of %s allowed (%s)",
        ByteSize(written).human_readable(),
        ByteSize(limit).human_readable(),
        stage.state.value,
    )


__all__ = ["BYTE_SIZE", "ByteSizeParamType", "cli"]
