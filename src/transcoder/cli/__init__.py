"""CLI module for transcoder."""

import logging
from pathlib import Path

import click

logger = logging.getLogger(__name__)


def _configure_logging(
    config_path: Path | None,
    log_level: str | None,
    log_file: Path | None,
    log_json: bool,
) -> None:
    """Configure logging from CLI options.

    Args:
        config_path: Config file to read the [logging] section from.
        log_level: Override log level (debug, info, warning, error).
        log_file: Override log file path.
        log_json: Use JSON log format.
    """
    from transcoder.config.logging_factory import configure_logging_from_cli

    try:
        configure_logging_from_cli(
            config_path=config_path,
            level=log_level,
            file=log_file,
            format="json" if log_json else None,
        )
    except ValueError as e:
        raise click.UsageError(f"Invalid logging configuration: {e}") from e


@click.group()
@click.version_option(package_name="transcoder")
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    help="Config file (default: ~/.transcoder/config.toml).",
)
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error"], case_sensitive=False),
    default=None,
    help="Override log level (default: info).",
)
@click.option(
    "--log-file",
    type=click.Path(path_type=Path),
    default=None,
    help="Override log file path.",
)
@click.option(
    "--log-json",
    is_flag=True,
    default=False,
    help="Use JSON log format.",
)
@click.pass_context
def main(
    ctx: click.Context,
    config_path: Path | None,
    log_level: str | None,
    log_file: Path | None,
    log_json: bool,
) -> None:
    """Transcoder - run ffmpeg with typed options and live progress."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path

    _configure_logging(config_path, log_level, log_file, log_json)
    logger.debug("Using config file: %s", config_path or "default")


# Defer import to avoid circular dependency
def _register_commands():
    from transcoder.cli.doctor import doctor_command
    from transcoder.cli.probe import probe_command
    from transcoder.cli.transcode import run_command

    main.add_command(doctor_command)
    main.add_command(probe_command)
    main.add_command(run_command)


_register_commands()
