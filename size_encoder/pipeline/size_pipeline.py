"""
The top-level orchestration of a size-targeted encode.

`TargetSizePipeline` validates the request, probes the input, splits the bitrate
budget, and hands over to the size convergence loop. It is also the single place
where fatal errors are handled: every `SizeEncoderException` raised below it is
logged and turned into exit code 1.
"""
import argparse
import math
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional

from loguru import logger

from ..config.encoding import BYTES_PER_MB, OUTPUT_EXTENSION, OUTPUT_SUFFIX
from ..domain.exceptions import (
    InputFileNotFoundException,
    InvalidTargetSizeException,
    SizeEncoderException,
)
from ..domain.media import MediaMetadata, probe_metadata
from ..domain.models import AttemptResult, BitrateBudget, ConvergenceOutcome, ConvergenceState
from ..services.bitrate_allocator import allocate_bitrate
from ..services.convergence import SizeConvergenceLoop
from ..services.encode_invoker import EncodeInvoker, FFmpegTwoPassEncoder
from ..services.logging_service import RunReportLog, build_report_entry
from ..utils.executables import resolve_ffmpeg, resolve_ffprobe
from ..utils.format_utils import format_megabytes

EXIT_SUCCESS = 0
EXIT_FAILURE = 1


def parse_target_size(value: str) -> float:
    """
    Parses the target size in megabytes.

    Python's `float` always expects '.' as the decimal separator, so "12.5" means the
    same thing under every locale.

    Raises:
        InvalidTargetSizeException: If the value is not a positive, finite number.
    """
    try:
        size_mb = float(str(value).strip())
    except ValueError as e:
        raise InvalidTargetSizeException(
            f"Target size must be a positive number of megabytes, got '{value}'."
        ) from e
    if not (size_mb > 0 and math.isfinite(size_mb)):
        raise InvalidTargetSizeException(
            f"Target size must be a positive number of megabytes, got '{value}'."
        )
    return size_mb


def resolve_output_path(input_path: Path, output: Optional[str] = None) -> Path:
    """
    Returns the output path, always with the MP4 extension.

    Without an explicit output the file is written next to the input as
    `<stem>_compressed.mp4`. Any other extension given by the user is replaced.
    """
    if output:
        output_path = Path(output).resolve()
    else:
        output_path = input_path.parent / f"{input_path.stem}{OUTPUT_SUFFIX}{OUTPUT_EXTENSION}"

    if output_path.suffix.lower() != OUTPUT_EXTENSION:
        output_path = output_path.with_suffix(OUTPUT_EXTENSION)
    return output_path


def target_size_bytes(target_size_mb: float) -> int:
    return int(target_size_mb * BYTES_PER_MB)


class TargetSizePipeline:
    """
    Runs one size-targeted encode from parsed command-line arguments.

    The prober and the encoder factory can be replaced, which lets the whole flow run
    against simulated tools.

    Attributes:
        args: The parsed arguments (`input`, `target_size`, `output`, `ffmpeg`,
              `ffprobe`, `report`).
        outcome: The convergence outcome after a successful run.
    """

    def __init__(
        self,
        args: argparse.Namespace,
        prober: Optional[Callable[[Path, str], MediaMetadata]] = None,
        encoder_factory: Optional[Callable[[Path, Path, str], EncodeInvoker]] = None,
    ):
        self.args = args
        self.prober = prober or probe_metadata
        self.encoder_factory = encoder_factory or FFmpegTwoPassEncoder

        self.input_path: Optional[Path] = None
        self.output_path: Optional[Path] = None
        self.target_size_mb: float = 0.0
        self.metadata: Optional[MediaMetadata] = None
        self.budget: Optional[BitrateBudget] = None
        self.attempts: List[AttemptResult] = []
        self.outcome: Optional[ConvergenceOutcome] = None
        self.started_datetime = datetime.now()

    def run(self) -> int:
        """
        Executes the pipeline and returns the process exit code.

        Returns:
            0 when the output was produced (converged or attempts exhausted),
            1 on any fatal error.
        """
        self.started_datetime = datetime.now()
        try:
            self._execute()
        except SizeEncoderException as e:
            logger.error(f"{type(e).__name__}: {e}")
            self._write_report(ConvergenceState.FAILED, error_message=str(e))
            return EXIT_FAILURE

        self._write_report(self.outcome.state)
        logger.success("Done.")
        return EXIT_SUCCESS

    def _execute(self):
        self.input_path = Path(self.args.input).resolve()
        if not self.input_path.is_file():
            raise InputFileNotFoundException(f"Input file not found: {self.input_path}")

        self.target_size_mb = parse_target_size(self.args.target_size)
        self.output_path = resolve_output_path(self.input_path, getattr(self.args, "output", None))
        ffmpeg_path = resolve_ffmpeg(getattr(self.args, "ffmpeg", None))
        ffprobe_path = resolve_ffprobe(getattr(self.args, "ffprobe", None))

        logger.info(f"Input file: {self.input_path}")
        logger.info(f"Target size: {self.target_size_mb:.2f} MB")
        logger.info(f"Output file: {self.output_path}")

        self.metadata = self.prober(self.input_path, ffprobe_path)
        self.budget = allocate_bitrate(self.target_size_mb, self.metadata)

        logger.info(f"Duration: {self.metadata.duration_seconds:.2f} s")
        logger.info(f"Audio bitrate: {self.budget.audio_kbps} kbps")
        logger.info(f"Video bitrate: {self.budget.video_kbps} kbps")

        encoder = self.encoder_factory(self.input_path, self.output_path, ffmpeg_path)
        loop = SizeConvergenceLoop(
            encoder,
            target_size_bytes(self.target_size_mb),
            on_attempt=self.attempts.append,
        )
        self.outcome = loop.run(self.budget.video_kbps, self.budget.audio_kbps)

        final_size = self.outcome.last_attempt.actual_output_bytes
        logger.info(
            f"Finished in state '{self.outcome.state.value}' after {len(self.outcome.attempts)} attempt(s): "
            f"{format_megabytes(final_size)} at {self.outcome.final_video_kbps} kbps video."
        )

    def _write_report(self, state: ConvergenceState, error_message: Optional[str] = None):
        report_path = getattr(self.args, "report", None)
        if not report_path:
            return
        if self.metadata is None or self.budget is None:
            logger.debug("Run stopped before a bitrate budget was known. No report entry written.")
            return
        entry = build_report_entry(
            input_path=self.input_path,
            output_path=self.output_path,
            target_size_mb=self.target_size_mb,
            target_bytes=target_size_bytes(self.target_size_mb),
            metadata=self.metadata,
            budget=self.budget,
            attempts=self.attempts,
            state=state,
            started_datetime=self.started_datetime,
            error_message=error_message,
        )
        RunReportLog(Path(report_path)).write(entry)
