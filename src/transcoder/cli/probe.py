"""CLI probe command: print ffprobe metadata for an input."""

import logging
import sys
from pathlib import Path

import click

from transcoder.cli.exit_codes import ExitCode
from transcoder.cli.formatting import format_human, format_json
from transcoder.config import ConfigError, get_config
from transcoder.exceptions import ProbeExecutionError, ProbeParseError
from transcoder.introspector import FFprobeProbe
from transcoder.sources import PathSource
from transcoder.tools import find_tool

logger = logging.getLogger(__name__)


@click.command("probe")
@click.argument("file", type=click.Path(exists=False))
@click.option(
    "--format",
    "-f",
    "output_format",
    type=click.Choice(["human", "json"]),
    default="human",
    help="Output format (default: human)",
)
@click.pass_context
def probe_command(ctx: click.Context, file: str, output_format: str) -> None:
    """Probe a media file and display its format and streams.

    FILE is the path (or any URL ffprobe accepts) of the media to probe.
    """
    if "://" not in file and not Path(file).exists():
        click.echo(f"Error: File not found: {file}", err=True)
        sys.exit(ExitCode.TARGET_NOT_FOUND)

    try:
        config = get_config(config_path=ctx.obj.get("config_path"), strict=True)
    except (ConfigError, ValueError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(ExitCode.CONFIG_ERROR)

    ffprobe_path = find_tool("ffprobe", config.tools.ffprobe)
    if ffprobe_path is None:
        click.echo(
            "Error: ffprobe is not installed or not in PATH.\n"
            "Install ffmpeg to use media probing.",
            err=True,
        )
        sys.exit(ExitCode.TOOL_NOT_AVAILABLE)

    logger.debug("Probing %s with %s", file, ffprobe_path)
    try:
        metadata = FFprobeProbe(ffprobe_path).probe(PathSource(file))
    except ProbeParseError as e:
        click.echo(f"Error: Could not parse ffprobe output for: {file}", err=True)
        click.echo(f"Reason: {e}", err=True)
        sys.exit(ExitCode.PARSE_ERROR)
    except ProbeExecutionError as e:
        click.echo(f"Error: Could not probe file: {file}", err=True)
        click.echo(f"Reason: {e}", err=True)
        sys.exit(ExitCode.OPERATION_FAILED)

    if output_format == "json":
        click.echo(format_json(metadata))
    else:
        click.echo(format_human(metadata, file))
