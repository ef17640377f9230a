"""Duration strings used by the sweeper settings.

Two spellings are accepted: unit suffixes in descending order (``90s``,
``5m``, ``1h30m``, ``2d``) and ISO-8601 durations (``PT5M``, ``P1DT1H``).
"""

import re

_UNIT_SECONDS = (86400, 3600, 60, 1)
_SUFFIXED = re.compile(r"(?:(\d+)d)?(?:(\d+)h)?(?:(\d+)m)?(?:(\d+)s)?")
_ISO_8601 = re.compile(r"p(?:(\d+)d)?(?:t(?:(\d+)h)?(?:(\d+)m)?(?:(\d+)s)?)?")


class DurationParseError(ValueError):
    """Raised when a duration string cannot be parsed."""

    pass


def parse_duration(text: str) -> int:
    """
    Convert a duration string to whole seconds.

    Raises:
        DurationParseError: If the text is not a duration or adds up to zero

    Examples:
        >>> parse_duration("1h30m")
        5400
        >>> parse_duration("PT10M")
        600
    """
    normalized = re.sub(r"\s+", "", text).lower()
    pattern = _ISO_8601 if normalized.startswith("p") else _SUFFIXED
    match = pattern.fullmatch(normalized)
    if not normalized or match is None:
        raise DurationParseError(
            f"Invalid duration '{text}'. Expected a value like '90s', '5m', '1h30m' or 'PT5M'"
        )

    seconds = sum(
        int(value) * unit for value, unit in zip(match.groups(), _UNIT_SECONDS) if value
    )
    if seconds == 0:
        raise DurationParseError(f"Duration cannot be zero: '{text}'")
    return seconds
