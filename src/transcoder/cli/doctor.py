"""Transcoder doctor command for checking external tool health.

Reports where ffmpeg and ffprobe were found and which versions they are.
"""

import json
import sys

import click

from transcoder.cli.exit_codes import ExitCode
from transcoder.config import ConfigError, get_config
from transcoder.tools import ToolInfo, detect_tool


def _format_status(available: bool) -> str:
    """Format status for display."""
    return "✓" if available else "✗"


def _format_version(version: str | None) -> str:
    """Format version for display."""
    return version if version else "not found"


def _tool_to_dict(info: ToolInfo) -> dict:
    return {
        "name": info.name,
        "status": info.status.value,
        "path": str(info.path) if info.path else None,
        "version": info.version,
        "message": info.status_message,
    }


@click.command("doctor")
@click.option(
    "--json",
    "json_output",
    is_flag=True,
    help="Output results as JSON",
)
@click.pass_context
def doctor_command(ctx: click.Context, json_output: bool) -> None:
    """Check that ffmpeg and ffprobe are available.

    Exit codes:
      0 - Both tools available
      30 - A tool is missing or could not be run
    """
    try:
        config = get_config(config_path=ctx.obj.get("config_path"), strict=True)
    except (ConfigError, ValueError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(ExitCode.CONFIG_ERROR)

    tools = [
        detect_tool("ffmpeg", config.tools.ffmpeg),
        detect_tool("ffprobe", config.tools.ffprobe),
    ]
    all_available = all(t.is_available() for t in tools)

    if json_output:
        click.echo(json.dumps([_tool_to_dict(t) for t in tools], indent=2))
    else:
        click.echo("Transcoder External Tool Health Check")
        click.echo("=" * 40)
        for info in tools:
            status = _format_status(info.is_available())
            version = _format_version(info.version)
            path_info = f" ({info.path})" if info.path else ""
            click.echo(f"  {status} {info.name}: {version}{path_info}")
            if not info.is_available() and info.status_message:
                click.echo(f"    └─ {info.status_message}")
        click.echo()
        if all_available:
            click.echo("✓ All tools available and ready.")
        else:
            click.echo("⚠ Required tools are missing.")
            click.echo("  Install ffmpeg: https://ffmpeg.org/download.html")

    sys.exit(ExitCode.SUCCESS if all_available else ExitCode.TOOL_NOT_AVAILABLE)
