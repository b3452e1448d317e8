import math
import re
from dataclasses import dataclass
from pathlib import Path
from pprint import pformat
from typing import Any, Optional

import ffmpeg
from loguru import logger

from .exceptions import NoDurationFoundException, ProbeFailedException
from ..config.encoding import (
    FFPROBE_EXECUTABLE,
    PROBE_SHOW_ENTRIES,
    PROBED_AUDIO_FLOOR_KBPS,
)


def parse_duration(duration_str: str) -> float:
    """
    Parses a duration string into total seconds.

    This function is designed to handle two common duration formats provided by ffprobe:
    1. A simple string representing a floating-point number of seconds (e.g., "3600.5").
    2. A timecode string in the format 'HH:MM:SS.sss' (e.g., "01:00:00.500").
       Hours and minutes are optional in the timecode format.

    Python's `float` always uses '.' as the decimal separator, so the result does
    not depend on the current locale.

    Args:
        duration_str: The string containing the duration to parse.

    Returns:
        The total duration in seconds as a float. Returns 0.0 if parsing fails or
        the value is not finite.
    """
    try:
        value = float(duration_str)
        return value if math.isfinite(value) else 0.0
    except ValueError:
        pattern = r"(?:(\d{1,2}):)?(\d{1,2}):(\d{1,2}(?:\.\d+)?)"
        match = re.fullmatch(pattern, duration_str.strip())
        if match:
            hours_str, minutes_str, seconds_str = match.groups()
            hours = int(hours_str) if hours_str else 0
            minutes = int(minutes_str)
            seconds = float(seconds_str)
            return float(hours * 3600 + minutes * 60 + seconds)
        logger.warning(f"Could not parse duration string: {duration_str}")
    return 0.0


def parse_bit_rate_kbps(bit_rate: Any) -> Optional[int]:
    """
    Converts an ffprobe `bit_rate` value (bits per second) into whole kbps.

    Returns None when the value is missing or not an integer (ffprobe reports
    "N/A" for some streams), so callers can tell "unknown" apart from zero.
    """
    if bit_rate is None:
        return None
    try:
        bits_per_second = int(str(bit_rate).strip())
    except ValueError:
        logger.debug(f"Ignoring unparseable bit_rate value: {bit_rate!r}")
        return None
    return max(PROBED_AUDIO_FLOOR_KBPS, bits_per_second // 1000)


@dataclass(frozen=True)
class MediaMetadata:
    """
    The facts about an input file that the bitrate allocation depends on.

    Attributes:
        duration_seconds: The container duration in seconds. Always positive.
        original_audio_kbps: The bitrate of the first audio stream in kbps, or None
                             when there is no audio stream or its bitrate is unknown.
    """

    duration_seconds: float
    original_audio_kbps: Optional[int] = None

    def __post_init__(self):
        if not (self.duration_seconds > 0 and math.isfinite(self.duration_seconds)):
            raise NoDurationFoundException(
                f"No valid (positive) duration found: {self.duration_seconds}"
            )


def metadata_from_probe(probe: dict) -> MediaMetadata:
    """
    Builds `MediaMetadata` from ffprobe's JSON output.

    The duration is read from the 'format' section only. The audio bitrate is taken
    from the first stream whose `codec_type` is "audio"; later audio streams are
    ignored even when the first one has no usable bit rate.

    Args:
        probe: The parsed JSON document produced by ffprobe.

    Returns:
        The extracted metadata.

    Raises:
        NoDurationFoundException: If the duration is missing or not positive.
    """
    duration = 0.0
    duration_val = (probe.get("format") or {}).get("duration")
    if duration_val is not None:
        duration = parse_duration(str(duration_val))

    if duration <= 0:
        raise NoDurationFoundException(
            f"Could not determine a positive duration (reported: {duration_val!r})"
        )

    audio_kbps = None
    for stream in probe.get("streams") or []:
        codec_type = stream.get("codec_type")
        if not codec_type or codec_type.lower() != "audio":
            continue
        audio_kbps = parse_bit_rate_kbps(stream.get("bit_rate"))
        break

    return MediaMetadata(duration_seconds=duration, original_audio_kbps=audio_kbps)


def probe_metadata(input_path: Path, ffprobe_path: str = FFPROBE_EXECUTABLE) -> MediaMetadata:
    """
    Probes the media file with ffprobe (via the ffmpeg-python library).

    `ffmpeg.probe` waits for ffprobe to exit while draining both of its output
    streams, then decodes the JSON document it printed. It always passes
    `-show_format -show_streams`, so ffprobe prints every field and
    `show_entries` only documents which of them are read here.

    Args:
        input_path: The media file to analyze.
        ffprobe_path: The ffprobe executable, as a path or a name found on PATH.

    Returns:
        The duration and original audio bitrate of the file.

    Raises:
        ProbeFailedException: If ffprobe cannot be run, fails, or prints invalid JSON.
        NoDurationFoundException: If the file's duration cannot be determined.
    """
    try:
        probe = ffmpeg.probe(
            str(input_path),
            cmd=ffprobe_path,
            v="error",
            show_entries=PROBE_SHOW_ENTRIES,
        )
    except ffmpeg.Error as e:
        stderr = e.stderr.decode("utf-8", errors="replace").strip() if e.stderr else ""
        logger.debug(f"ffprobe failed for {input_path}: {stderr}")
        raise ProbeFailedException(stderr or f"ffprobe exited with an error for {input_path}") from e
    except FileNotFoundError as e:
        raise ProbeFailedException(
            f"ffprobe executable not found: '{ffprobe_path}'. Ensure it's in your system's PATH or configured correctly."
        ) from e
    except OSError as e:
        raise ProbeFailedException(f"ffprobe executable could not be run: '{ffprobe_path}': {e}") from e
    except ValueError as e:
        # json.JSONDecodeError is a ValueError subclass.
        raise ProbeFailedException(f"ffprobe returned unreadable output for {input_path}: {e}") from e

    logger.trace(f"Probe data for {input_path.name}:\n{pformat(probe)}")
    metadata = metadata_from_probe(probe)
    logger.debug(f"Metadata for {input_path.name}: {metadata}")
    return metadata
