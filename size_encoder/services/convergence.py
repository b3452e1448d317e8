"""
The closed loop that steers the encoder toward the target output size.

Output size scales nearly linearly with the requested video bitrate for a fixed
duration and codec settings, so a single proportional correction after the first
attempt is normally enough. The number of attempts is a hard limit because every
attempt costs two full encoder passes.
"""
import math
from typing import Callable, Optional

from loguru import logger

from ..config.encoding import (
    MAX_ENCODE_ATTEMPTS,
    MIN_VIDEO_BITRATE_KBPS,
    SIZE_TOLERANCE_RATIO,
)
from ..domain.exceptions import EmptyOutputException, EncodingException
from ..domain.models import AttemptResult, ConvergenceOutcome, ConvergenceState
from ..utils.format_utils import format_megabytes, format_ratio
from .encode_invoker import EncodeInvoker


def corrected_video_kbps(video_kbps: int, target_bytes: int, actual_bytes: int) -> int:
    """
    Scales the video bitrate by target/actual, never going below the quality floor.
    """
    adjustment = target_bytes / actual_bytes
    return max(MIN_VIDEO_BITRATE_KBPS, math.floor(video_kbps * adjustment))


class SizeConvergenceLoop:
    """
    Drives up to `max_attempts` encodes, correcting the video bitrate in between.

    States:
        ATTEMPTING: an attempt is running (`attempt_number` tells which one).
        CONVERGED: the last output is within `tolerance` of the target.
        EXHAUSTED: the last permitted attempt missed the tolerance; its output is kept.
        FAILED: the encoder raised; the exception is propagated unchanged.

    Attributes:
        encoder: Performs each attempt and reports the output size.
        target_bytes: The size the output should have.
        on_attempt: Optional callback invoked with every `AttemptResult`.
    """

    def __init__(
        self,
        encoder: EncodeInvoker,
        target_bytes: int,
        max_attempts: int = MAX_ENCODE_ATTEMPTS,
        tolerance: float = SIZE_TOLERANCE_RATIO,
        on_attempt: Optional[Callable[[AttemptResult], None]] = None,
    ):
        if target_bytes <= 0:
            raise ValueError(f"target_bytes must be positive, got {target_bytes}")
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")
        self.encoder = encoder
        self.target_bytes = target_bytes
        self.max_attempts = max_attempts
        self.tolerance = tolerance
        self.on_attempt = on_attempt

        self.state = ConvergenceState.ATTEMPTING
        self.attempt_number = 0
        self.attempts = []

    def run(self, video_kbps: int, audio_kbps: int) -> ConvergenceOutcome:
        """
        Runs attempts until the output converges or attempts are exhausted.

        Args:
            video_kbps: The video bitrate for the first attempt.
            audio_kbps: The audio bitrate, unchanged across attempts.

        Returns:
            The terminal CONVERGED or EXHAUSTED outcome.

        Raises:
            EncodingException: If an attempt fails. No further attempts are made.
        """
        for attempt_number in range(1, self.max_attempts + 1):
            self.attempt_number = attempt_number
            self.state = ConvergenceState.ATTEMPTING
            logger.info(f"Attempt {attempt_number}/{self.max_attempts} at {video_kbps} kbps video...")

            try:
                actual_bytes = self.encoder.encode(video_kbps, audio_kbps)
                # An empty file gives no ratio to correct from. The last attempt keeps it.
                if actual_bytes <= 0 and attempt_number < self.max_attempts:
                    raise EmptyOutputException(
                        f"Attempt {attempt_number} produced an empty output file."
                    )
            except EncodingException as e:
                self.state = ConvergenceState.FAILED
                logger.debug(f"Attempt {attempt_number} failed: {e}")
                raise

            result = AttemptResult(
                attempt_number=attempt_number,
                requested_video_kbps=video_kbps,
                actual_output_bytes=actual_bytes,
                target_bytes=self.target_bytes,
            )
            self.attempts.append(result)
            logger.info(
                f"Resulting size: {format_megabytes(actual_bytes)} "
                f"({format_ratio(result.diff_ratio)} from target)"
            )
            if self.on_attempt:
                self.on_attempt(result)

            if abs(result.diff_ratio) <= self.tolerance:
                self.state = ConvergenceState.CONVERGED
                break
            if attempt_number == self.max_attempts:
                self.state = ConvergenceState.EXHAUSTED
                logger.warning(
                    f"Size is still {format_ratio(result.diff_ratio)} off target after "
                    f"{self.max_attempts} attempts. Keeping the last result."
                )
                break

            video_kbps = corrected_video_kbps(video_kbps, self.target_bytes, actual_bytes)
            logger.info(f"Adjusting video bitrate to {video_kbps} kbps for a more accurate size.")

        return ConvergenceOutcome(
            state=self.state,
            final_video_kbps=self.attempts[-1].requested_video_kbps,
            attempts=list(self.attempts),
        )
