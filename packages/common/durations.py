"""Duration parsing for compose-style time strings.

Compose writes durations as ``{value}{unit}`` groups, e.g. ``30s``,
``1m30s``, ``500ms`` or ``2h``. Plain numbers are taken as seconds.
"""

import re

_UNITS: dict[str, float] = {
    "us": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}

_GROUP = re.compile(r"(\d+(?:\.\d+)?)(us|ms|s|m|h)")


class DurationError(ValueError):
    """Raised when a duration string cannot be parsed."""


def parse_duration(value: str | int | float | None, default: float) -> float:
    """Convert a compose duration to seconds.

    Args:
        value: Duration string, number of seconds, or None.
        default: Value returned when ``value`` is None.

    Returns:
        float: Duration in seconds.

    Raises:
        DurationError: If the string is malformed or negative.

    Examples:
        >>> parse_duration("1m30s", 0.0)
        90.0
        >>> parse_duration("500ms", 0.0)
        0.5
        >>> parse_duration(None, 30.0)
        30.0
    """
    if value is None:
        return default
    if isinstance(value, bool):
        raise DurationError(f"Invalid duration: {value!r}")
    if isinstance(value, int | float):
        if value < 0:
            raise DurationError(f"Duration must not be negative: {value}")
        return float(value)

    text = value.strip()
    if not text:
        raise DurationError("Duration cannot be empty")
    try:
        seconds = float(text)
    except ValueError:
        pass
    else:
        if seconds < 0:
            raise DurationError(f"Duration must not be negative: {value}")
        return seconds

    total = 0.0
    position = 0
    for match in _GROUP.finditer(text):
        if match.start() != position:
            raise DurationError(f"Invalid duration: {value!r}")
        total += float(match.group(1)) * _UNITS[match.group(2)]
        position = match.end()

    if position != len(text):
        raise DurationError(f"Invalid duration: {value!r}")
    return total


__all__ = ["DurationError", "parse_duration"]
