"""CLI run command: transcode an input with live progress."""

import logging
import shlex
import sys
import threading

import click

from transcoder.cli.exit_codes import ExitCode
from transcoder.cli.formatting import format_progress
from transcoder.config import Flags, auto_config
from transcoder.exceptions import (
    ConfigurationError,
    ProbeError,
    ProcessSpawnError,
)
from transcoder.executor import Session
from transcoder.logging import apply_flags
from transcoder.options import Options

logger = logging.getLogger(__name__)


def _split_args(value: str) -> list[str]:
    """Split a shell-quoted option string into tokens."""
    try:
        return shlex.split(value)
    except ValueError as e:
        raise click.BadParameter(f"Cannot parse options {value!r}: {e}") from e


@click.command("run")
@click.option(
    "--input",
    "-i",
    "input_path",
    required=True,
    help="Input path or URL.",
)
@click.option(
    "--output",
    "-o",
    "outputs",
    multiple=True,
    required=True,
    help="Output path. Repeat for multiple outputs.",
)
@click.option(
    "--input-args",
    default=None,
    help="Options placed before -i, as a quoted string.",
)
@click.option(
    "--output-args",
    multiple=True,
    help="Options for one output, as a quoted string. Repeat once per output.",
)
@click.option("--overwrite", "-y", is_flag=True, help="Overwrite existing outputs.")
@click.option(
    "--skip-probe",
    is_flag=True,
    help="Do not probe the input (progress percentage stays at 0).",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Show ffmpeg's own output instead of progress lines.",
)
@click.option("--debug", is_flag=True, help="Log every ffmpeg status line.")
@click.pass_context
def run_command(
    ctx: click.Context,
    input_path: str,
    outputs: tuple[str, ...],
    input_args: str | None,
    output_args: tuple[str, ...],
    overwrite: bool,
    skip_probe: bool,
    verbose: bool,
    debug: bool,
) -> None:
    """Transcode INPUT into one or more outputs with ffmpeg.

    Each --output-args group applies to the output at the same position.
    With a single output, options can be omitted.

    \b
    Example:
        transcoder run -i in.mkv -o out.mp4 --output-args "-c:v libx264 -crf 23"
    """
    try:
        config = auto_config(
            Flags(progress=True, verbose=verbose, debug=debug),
            config_path=ctx.obj.get("config_path"),
        )
    except ConfigurationError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(ExitCode.TOOL_NOT_AVAILABLE)

    apply_flags(config.flags)
    cancel = threading.Event()
    session = Session(config).set_input(input_path).with_cancellation(cancel)
    for output in outputs:
        session.add_output(output)
    if input_args:
        session.add_leading_options(_split_args(input_args))
    if overwrite:
        session.add_leading_options(Options(overwrite=True))
    for group in output_args:
        session.add_options(_split_args(group))
    if skip_probe:
        session.skip_probe()

    try:
        feed = session.run()
    except ProbeError as e:
        click.echo(f"Error: Could not probe input: {e}", err=True)
        sys.exit(ExitCode.OPERATION_FAILED)
    except ProcessSpawnError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(ExitCode.OPERATION_FAILED)
    except ConfigurationError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(ExitCode.CONFIG_ERROR)

    try:
        for progress in feed:
            click.echo(format_progress(progress))
    except KeyboardInterrupt:
        logger.info("Interrupted, stopping ffmpeg")
        cancel.set()
        feed.close()
        session.wait()
        click.echo("Interrupted.", err=True)
        sys.exit(ExitCode.INTERRUPTED)

    session.wait()
    error = session.error()
    if error is not None:
        click.echo(f"Error: {error}", err=True)
        sys.exit(ExitCode.OPERATION_FAILED)

    click.echo(f"Done: {', '.join(outputs)}")
