"""Clock-time utilities for ffmpeg status output."""


def time_to_seconds(value: str) -> float:
    """Convert an ``HH:MM:SS[.ms]`` clock string to seconds.

    The string must split into exactly three colon-separated fields;
    anything else yields 0.0. A field that is not a number counts as 0.

    Examples:
        >>> time_to_seconds("01:02:03")
        3723.0
        >>> time_to_seconds("00:00:01.50")
        1.5
        >>> time_to_seconds("N/A")
        0.0

    Args:
        value: Clock string as printed by ffmpeg in its ``time=`` field.

    Returns:
        Total seconds as a float.
    """
    parts = value.split(":")
    if len(parts) != 3:
        return 0.0

    hours, minutes, seconds = (_parse_float(part) for part in parts)
    return hours * 3600 + minutes * 60 + seconds


def parse_decimal_seconds(value: str | None) -> float:
    """Parse a decimal-seconds string such as ffprobe's ``"123.456000"``.

    Returns:
        Parsed value, or 0.0 if value is None or not a number.
    """
    if value is None:
        return 0.0
    return _parse_float(value)


def _parse_float(value: str) -> float:
    try:
        result = float(value)
    except ValueError:
        return 0.0
    # nan/inf are valid float() input but meaningless as a clock component
    if result != result or result in (float("inf"), float("-inf")):
        return 0.0
    return result
