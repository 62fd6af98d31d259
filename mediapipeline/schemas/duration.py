"""Duration parsing and formatting for job specifications.

Three textual forms are accepted: compact unit strings ("1h30m", "90s"),
timecodes ("01:30:00", "00:05:30.500") and ISO 8601 time designators
("PT1H30M"). Durations are formatted back in the compact unit form.
"""

from __future__ import annotations

import json
import re
from datetime import timedelta
from decimal import Decimal

_SECOND_NS = 1_000_000_000
_MAX_NS = 2**63 - 1

_UNIT_NS = {
    "ns": 1,
    "us": 1_000,
    "\u00b5s": 1_000,
    "\u03bcs": 1_000,
    "ms": 1_000_000,
    "s": _SECOND_NS,
    "m": 60 * _SECOND_NS,
    "h": 3600 * _SECOND_NS,
}

_UNITS = "ns|us|\u00b5s|\u03bcs|ms|s|m|h"
_NUMBER = r"\d+\.?\d*|\.\d+"
_UNIT_STRING_RE = re.compile(rf"([-+]?)((?:(?:{_NUMBER})(?:{_UNITS}))+)", re.ASCII)
_UNIT_PART_RE = re.compile(rf"({_NUMBER})({_UNITS})", re.ASCII)
_TIMECODE_RE = re.compile(r"(\d{1,2}):(\d{2}):(\d{2})(?:\.(\d{1,3}))?", re.ASCII)
_ISO_PART_RE = re.compile(r"(\d+)([HMS])", re.ASCII)
_ISO_UNIT_SECONDS = {"H": 3600, "M": 60, "S": 1}


def _to_ns(value: timedelta) -> int:
    return (value // timedelta(microseconds=1)) * 1000


def _from_ns(ns: int) -> timedelta:
    micros = abs(ns) // 1000
    return timedelta(microseconds=-micros if ns < 0 else micros)


def _parse_unit_string(s: str) -> int | None:
    body = s[1:] if s[:1] in "+-" else s
    if body == "0":
        return 0
    match = _UNIT_STRING_RE.fullmatch(s)
    if match is None:
        return None
    total = sum(
        int(Decimal(number) * _UNIT_NS[unit])
        for number, unit in _UNIT_PART_RE.findall(match.group(2))
    )
    if match.group(1) == "-":
        total = -total
    if not -_MAX_NS - 1 <= total <= _MAX_NS:
        return None
    return total


def _parse_timecode(s: str) -> timedelta | None:
    match = _TIMECODE_RE.fullmatch(s)
    if match is None:
        return None
    hours, minutes, seconds, fraction = match.groups()
    result = timedelta(hours=int(hours), minutes=int(minutes), seconds=int(seconds))
    if fraction:
        result += timedelta(milliseconds=int(fraction.ljust(3, "0")))
    return result


def _parse_iso8601(s: str) -> timedelta:
    seconds = sum(
        int(value) * _ISO_UNIT_SECONDS[unit]
        for value, unit in _ISO_PART_RE.findall(s[2:])
    )
    return timedelta(seconds=seconds)


def parse_duration(s: str) -> timedelta:
    """Parse a duration given as a unit string, a timecode or ISO 8601."""
    s = s.strip()
    ns = _parse_unit_string(s)
    if ns is not None:
        return _from_ns(ns)
    timecode = _parse_timecode(s)
    if timecode is not None:
        return timecode
    if s.startswith("PT"):
        return _parse_iso8601(s)
    raise ValueError(f"invalid duration format: {s}")


def _with_fraction(value: int, precision: int) -> str:
    whole, rest = divmod(value, 10**precision)
    digits = f"{rest:0{precision}d}".rstrip("0")
    return f"{whole}.{digits}" if digits else str(whole)


def format_duration(value: timedelta) -> str:
    """Format a duration in the compact unit form, such as "1h2m3.5s"."""
    ns = _to_ns(value)
    if ns == 0:
        return "0s"
    sign = "-" if ns < 0 else ""
    u = abs(ns)
    if u < 1_000:
        return f"{sign}{u}ns"
    if u < 1_000_000:
        return f"{sign}{_with_fraction(u, 3)}\u00b5s"
    if u < _SECOND_NS:
        return f"{sign}{_with_fraction(u, 6)}ms"

    whole_seconds, fraction = divmod(u, _SECOND_NS)
    text = _with_fraction((whole_seconds % 60) * _SECOND_NS + fraction, 9) + "s"
    minutes = whole_seconds // 60
    if minutes:
        text = f"{minutes % 60}m{text}"
        hours = minutes // 60
        if hours:
            text = f"{hours}h{text}"
    return sign + text


def duration_to_json(value: timedelta) -> str:
    """Encode a duration as a JSON string."""
    return json.dumps(format_duration(value))


def duration_from_json(data: str | bytes) -> timedelta:
    """Decode a duration from a JSON string in any accepted format."""
    decoded = json.loads(data)
    if not isinstance(decoded, str):
        raise ValueError("duration must be a JSON string")
    return parse_duration(decoded)