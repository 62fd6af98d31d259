"""Media file probing with ffprobe."""

from __future__ import annotations

import json
import math
import re
import shutil
import subprocess
from datetime import timedelta
from typing import Any

from mediapipeline.schemas.plan import AudioStream, FormatInfo, MediaInfo, VideoStream

_FFPROBE_CANDIDATES = (
    "ffprobe",
    "/usr/local/bin/ffprobe",
    "/opt/homebrew/bin/ffprobe",
    "/usr/bin/ffprobe",
)
_INT_RE = re.compile(r"[+-]?\d+", re.ASCII)


class ProbeError(RuntimeError):
    """Raised when a file cannot be probed or ffprobe output cannot be read."""


def find_ffprobe() -> str:
    """Return the first usable ffprobe candidate, or "" if none is found."""
    for candidate in _FFPROBE_CANDIDATES:
        if shutil.which(candidate) is not None:
            return candidate
    return ""


class Prober:
    """Runs ffprobe on media files and reads back their properties."""

    def __init__(self, ffprobe_path: str | None = None) -> None:
        self.ffprobe_path = find_ffprobe() if ffprobe_path is None else ffprobe_path

    def probe(self, file_path: str, timeout: float | None = None) -> MediaInfo:
        """Probe a media file and return its metadata."""
        if not self.ffprobe_path:
            raise ProbeError("ffprobe not found in PATH")

        args = [
            self.ffprobe_path,
            "-v", "quiet",
            "-print_format", "json",
            "-show_format",
            "-show_streams",
            file_path,
        ]
        try:
            result = subprocess.run(args, capture_output=True, timeout=timeout, check=False)
        except (OSError, subprocess.TimeoutExpired) as exc:
            raise ProbeError(f"ffprobe execution error: {exc}") from exc

        if result.returncode != 0:
            stderr = (result.stderr or b"").decode("utf-8", errors="replace")
            raise ProbeError(f"ffprobe failed: {stderr}")

        return parse_ffprobe_output(result.stdout)


def _parse_float(s: str) -> float | None:
    try:
        return float(s)
    except (TypeError, ValueError):
        return None


def _parse_duration(s: str) -> timedelta:
    seconds = _parse_float(s) if s else None
    if seconds is None or not math.isfinite(seconds):
        return timedelta(0)
    try:
        return timedelta(seconds=seconds)
    except OverflowError:
        return timedelta(0)


def _parse_int(s: str) -> int:
    if not s or _INT_RE.fullmatch(s) is None:
        return 0
    return int(s)


def parse_frame_rate(s: str) -> float:
    """Parse an ffprobe frame rate such as "30/1" or "30000/1001"."""
    if not s:
        return 0.0
    parts = s.split("/")
    if len(parts) != 2:
        return _parse_float(s) or 0.0
    numerator, denominator = _parse_float(parts[0]), _parse_float(parts[1])
    if numerator is None or denominator is None or denominator == 0:
        return 0.0
    return numerator / denominator


def _text(data: dict[str, Any], key: str) -> str:
    value = data.get(key)
    return value if isinstance(value, str) else ""


def _number(data: dict[str, Any], key: str) -> int:
    value = data.get(key)
    return value if isinstance(value, int) and not isinstance(value, bool) else 0


def parse_ffprobe_output(data: bytes | str) -> MediaInfo:
    """Parse ffprobe's JSON output into MediaInfo."""
    try:
        decoded = json.loads(data)
    except (ValueError, UnicodeDecodeError) as exc:
        raise ProbeError(f"failed to parse ffprobe output: {exc}") from exc
    if decoded is None:
        decoded = {}
    if not isinstance(decoded, dict):
        raise ProbeError("failed to parse ffprobe output: expected a JSON object")

    fmt = decoded.get("format") or {}
    info = MediaInfo(
        format=FormatInfo(
            filename=_text(fmt, "filename"),
            format=_text(fmt, "format_name"),
            duration=_parse_duration(_text(fmt, "duration")),
            size=_parse_int(_text(fmt, "size")),
            bit_rate=_parse_int(_text(fmt, "bit_rate")),
            start_time=_parse_duration(_text(fmt, "start_time")),
        )
    )

    for stream in decoded.get("streams") or []:
        codec_type = _text(stream, "codec_type")
        if codec_type == "video":
            info.video_streams.append(
                VideoStream(
                    index=_number(stream, "index"),
                    codec=_text(stream, "codec_name"),
                    width=_number(stream, "width"),
                    height=_number(stream, "height"),
                    frame_rate=parse_frame_rate(_text(stream, "r_frame_rate")),
                    pixel_format=_text(stream, "pix_fmt"),
                    bit_rate=_parse_int(_text(stream, "bit_rate")),
                    duration=_parse_duration(_text(stream, "duration")),
                )
            )
        elif codec_type == "audio":
            info.audio_streams.append(
                AudioStream(
                    index=_number(stream, "index"),
                    codec=_text(stream, "codec_name"),
                    sample_rate=_parse_int(_text(stream, "sample_rate")),
                    channels=_number(stream, "channels"),
                    bit_rate=_parse_int(_text(stream, "bit_rate")),
                    duration=_parse_duration(_text(stream, "duration")),
                )
            )

    return info