"""
Derives the video/audio bitrate split that fills a target output size.

All functions in this module are pure: the same inputs always give the same budget,
and nothing outside the arguments is read or changed.
"""
import math
from typing import Optional

from loguru import logger

from ..config.encoding import (
    CONTAINER_OVERHEAD_KBPS,
    DEFAULT_AUDIO_BITRATE_KBPS,
    FALLBACK_AUDIO_FLOOR_KBPS,
    FALLBACK_AUDIO_SHARE,
    KBPS_PER_MB_SECOND,
    MAX_AUDIO_BITRATE_KBPS,
    MAX_AUDIO_SHARE,
    MIN_AUDIO_BITRATE_KBPS,
    MIN_VIDEO_BITRATE_KBPS,
)
from ..domain.exceptions import (
    InvalidTargetSizeException,
    NoDurationFoundException,
    TargetSizeTooSmallException,
)
from ..domain.media import MediaMetadata
from ..domain.models import BitrateBudget


def compute_total_kbps(target_size_mb: float, duration_seconds: float) -> float:
    """
    Returns the total bitrate (kbps) that spends `target_size_mb` over the duration.

    The value is not rounded; rounding only happens once it is split.
    """
    if not duration_seconds > 0:
        raise NoDurationFoundException(f"Duration must be positive, got {duration_seconds}")
    if not target_size_mb > 0:
        raise InvalidTargetSizeException(f"Target size must be positive, got {target_size_mb}")
    return target_size_mb * KBPS_PER_MB_SECOND / duration_seconds


def calculate_audio_bitrate_kbps(
    target_total_kbps: float, original_audio_kbps: Optional[int] = None
) -> int:
    """
    Chooses the audio bitrate for a given total budget.

    The original bitrate (or the default when it is unknown) is first clamped to the
    supported audio range. Only then is it compared against the share of the total
    that audio may take; if it is too large it is replaced with a smaller fixed share
    of the total, never going below the fallback floor.

    Args:
        target_total_kbps: The total bitrate budget in kbps.
        original_audio_kbps: The source audio bitrate, or None if unknown.

    Returns:
        The audio bitrate in kbps.
    """
    base_audio = (
        original_audio_kbps if original_audio_kbps is not None else DEFAULT_AUDIO_BITRATE_KBPS
    )
    audio = min(max(base_audio, MIN_AUDIO_BITRATE_KBPS), MAX_AUDIO_BITRATE_KBPS)

    max_audio_share = target_total_kbps * MAX_AUDIO_SHARE
    if audio > max_audio_share:
        capped = max(FALLBACK_AUDIO_FLOOR_KBPS, math.floor(target_total_kbps * FALLBACK_AUDIO_SHARE))
        logger.debug(
            f"Audio bitrate {audio} kbps exceeds {MAX_AUDIO_SHARE:.0%} of the budget "
            f"({max_audio_share:.2f} kbps). Using {capped} kbps instead."
        )
        audio = capped

    return audio


def calculate_video_bitrate_kbps(target_total_kbps: float, audio_kbps: int) -> int:
    """Whatever is left after audio and container overhead, rounded down."""
    return math.floor(target_total_kbps - audio_kbps - CONTAINER_OVERHEAD_KBPS)


def allocate_bitrate(target_size_mb: float, metadata: MediaMetadata) -> BitrateBudget:
    """
    Splits the bitrate budget for `target_size_mb` between video and audio.

    Args:
        target_size_mb: The requested output size in megabytes (1 MB = 1024 * 1024 bytes).
        metadata: The probed duration and original audio bitrate of the input.

    Returns:
        The total, audio and video bitrates.

    Raises:
        TargetSizeTooSmallException: If the video bitrate would fall below the
                                     minimum acceptable quality.
    """
    total_kbps = compute_total_kbps(target_size_mb, metadata.duration_seconds)
    audio_kbps = calculate_audio_bitrate_kbps(total_kbps, metadata.original_audio_kbps)
    video_kbps = calculate_video_bitrate_kbps(total_kbps, audio_kbps)

    if video_kbps < MIN_VIDEO_BITRATE_KBPS:
        raise TargetSizeTooSmallException(
            f"Target size {target_size_mb} MB is too small for acceptable quality: "
            f"only {video_kbps} kbps would be left for video "
            f"(minimum {MIN_VIDEO_BITRATE_KBPS} kbps)."
        )

    return BitrateBudget(total_kbps=total_kbps, audio_kbps=audio_kbps, video_kbps=video_kbps)
