"""
Defines the value objects passed between the stages of a size-targeted encode.

None of these objects are persisted; they live for the duration of one run and are
owned by the pipeline that created them.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List


@dataclass(frozen=True)
class BitrateBudget:
    """
    The split of the total bitrate between the video and audio streams.

    Attributes:
        total_kbps: The bitrate (kbps) that fills the target size over the full duration.
        audio_kbps: The bitrate given to the audio stream.
        video_kbps: The bitrate given to the video stream.
    """

    total_kbps: float
    audio_kbps: int
    video_kbps: int


@dataclass(frozen=True)
class AttemptResult:
    """
    The measured outcome of one two-pass encode.

    Attributes:
        attempt_number: 1-based index of the attempt.
        requested_video_kbps: The video bitrate FFmpeg was asked for.
        actual_output_bytes: The size of the file FFmpeg produced.
        target_bytes: The size the run is aiming for.
    """

    attempt_number: int
    requested_video_kbps: int
    actual_output_bytes: int
    target_bytes: int

    @property
    def diff_ratio(self) -> float:
        """Relative deviation from the target; positive when the output is too large."""
        return (self.actual_output_bytes - self.target_bytes) / self.target_bytes


class ConvergenceState(Enum):
    ATTEMPTING = "attempting"
    CONVERGED = "converged"
    EXHAUSTED = "exhausted"
    FAILED = "failed"


@dataclass
class ConvergenceOutcome:
    """
    The terminal result of the size convergence loop.

    `state` is CONVERGED when the last attempt landed within tolerance and EXHAUSTED
    when attempts ran out first; in both cases the last output file is kept.
    """

    state: ConvergenceState
    final_video_kbps: int
    attempts: List[AttemptResult] = field(default_factory=list)

    @property
    def last_attempt(self) -> AttemptResult:
        return self.attempts[-1]
