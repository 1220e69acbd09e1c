"""FFmpeg command assembly and session validation.

Builds the argument vector:

    <ffmpeg> [leading options...] -i <input> [group 0...] <output 0> [group 1...] <output 1> ...

Option groups pair positionally with outputs. When there are more groups
than outputs, every remaining group goes in front of the last output.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from transcoder.exceptions import ConfigurationError
from transcoder.options import ArgumentGroup
from transcoder.sources import InputSource, OutputTarget, PathTarget, StreamTarget


def validate_session(
    ffmpeg_path: Path | str | None,
    input_source: InputSource | None,
    outputs: Sequence[OutputTarget],
    option_groups: Sequence[ArgumentGroup],
) -> None:
    """Check that a session can be turned into a valid ffmpeg command.

    Args:
        ffmpeg_path: Path to the ffmpeg executable.
        input_source: The input descriptor.
        outputs: Output descriptors in order.
        option_groups: Per-output option groups in order.

    Raises:
        ConfigurationError: Describing the first problem found.
    """
    if not ffmpeg_path:
        raise ConfigurationError("ffmpeg binary path not found")

    if input_source is None:
        raise ConfigurationError("missing input option")

    if not outputs:
        raise ConfigurationError("missing output option")

    # More outputs than option groups would produce an invalid command,
    # unless there is a single output
    if len(outputs) > len(option_groups) and len(outputs) != 1:
        raise ConfigurationError(
            f"number of options and output files does not match "
            f"({len(option_groups)} option groups for {len(outputs)} outputs)"
        )

    for index, output in enumerate(outputs):
        if isinstance(output, PathTarget) and output.path == "":
            raise ConfigurationError(f"output at index {index} is an empty string")

    if sum(isinstance(o, StreamTarget) for o in outputs) > 1:
        raise ConfigurationError("only one output can be written to a pipe")


def build_arguments(
    input_source: InputSource,
    outputs: Sequence[OutputTarget],
    leading_options: Sequence[str] = (),
    option_groups: Sequence[ArgumentGroup] = (),
) -> list[str]:
    """Assemble ffmpeg arguments (without the executable).

    Args:
        input_source: The input descriptor.
        outputs: Output descriptors in order; must be non-empty.
        leading_options: Tokens placed before ``-i``.
        option_groups: Per-output option groups.

    Returns:
        Ordered argument tokens.
    """
    args: list[str] = list(leading_options)
    args.extend(["-i", input_source.token])

    output_count = len(outputs)
    group_count = len(option_groups)

    if output_count == 1 and group_count == 0:
        args.append(outputs[0].token)
        return args

    for index, output in enumerate(outputs):
        if index == output_count - 1 and output_count < group_count:
            for group in option_groups[index:]:
                args.extend(group)
        else:
            args.extend(option_groups[index])
        args.append(output.token)

    return args


def build_command(
    ffmpeg_path: Path | str,
    input_source: InputSource,
    outputs: Sequence[OutputTarget],
    leading_options: Sequence[str] = (),
    option_groups: Sequence[ArgumentGroup] = (),
) -> list[str]:
    """Assemble the full ffmpeg command including the executable."""
    return [
        str(ffmpeg_path),
        *build_arguments(input_source, outputs, leading_options, option_groups),
    ]
