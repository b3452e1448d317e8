"""
Runs one size-targeted encode attempt with FFmpeg.

Each attempt is a two-pass encode: an analysis pass that only writes the rate
control statistics (the "pass log") and a final pass that reads them back to hit
the requested video bitrate as closely as possible. The pass log is scoped to the
attempt and removed afterwards whatever the outcome.
"""
import tempfile
import uuid
from pathlib import Path
from typing import List, Optional

import ffmpeg
from loguru import logger

from ..config.encoding import (
    ANALYSIS_PASS_FORMAT,
    AUDIO_ENCODER,
    FFMPEG_EXECUTABLE,
    OUTPUT_MOVFLAGS,
    PASSLOG_PREFIX,
    VIDEO_ENCODER,
    VIDEO_PRESET,
)
from ..domain.exceptions import EmptyOutputException, EncodePassFailedException
from ..utils.ffmpeg_utils import null_device, run_cmd
from ..utils.format_utils import formatted_size


class EncodeInvoker:
    """
    The narrow interface the size convergence loop talks to.

    An implementation performs one complete encode at the given bitrates and
    returns the size of the file it produced. Any failure is raised as an
    `EncodingException`; a returned value always means the attempt succeeded.
    """

    def encode(self, video_kbps: int, audio_kbps: int) -> int:
        raise NotImplementedError("Subclasses must implement the encode() method.")


class FFmpegTwoPassEncoder(EncodeInvoker):
    """
    Encodes `input_path` into `output_path` with a two-pass libx264/AAC encode.

    Attributes:
        input_path: The source media file.
        output_path: The MP4 file written by the final pass. Overwritten on every attempt.
        ffmpeg_path: The FFmpeg executable, as a path or a name found on PATH.
        passlog_dir: Where pass log files are created. Defaults to the system temp dir.
    """

    def __init__(
        self,
        input_path: Path,
        output_path: Path,
        ffmpeg_path: str = FFMPEG_EXECUTABLE,
        passlog_dir: Optional[Path] = None,
    ):
        self.input_path = input_path
        self.output_path = output_path
        self.ffmpeg_path = ffmpeg_path
        self.passlog_dir = passlog_dir or Path(tempfile.gettempdir())

    def new_passlog_base(self) -> Path:
        """A pass log basename that no other attempt or run shares."""
        return self.passlog_dir / f"{PASSLOG_PREFIX}{uuid.uuid4().hex}"

    def build_analysis_pass_cmd(self, video_kbps: int, passlog_base: Path) -> List[str]:
        """Pass 1: video statistics only, no audio, output discarded."""
        stream = ffmpeg.input(str(self.input_path)).output(
            null_device(),
            **{
                "c:v": VIDEO_ENCODER,
                "b:v": f"{video_kbps}k",
                "preset": VIDEO_PRESET,
                "pass": 1,
                "an": None,
                "f": ANALYSIS_PASS_FORMAT,
                "passlogfile": str(passlog_base),
            },
        )
        return stream.overwrite_output().compile(cmd=self.ffmpeg_path)

    def build_final_pass_cmd(self, video_kbps: int, audio_kbps: int, passlog_base: Path) -> List[str]:
        """Pass 2: the real output with both streams and the moov atom moved to the front."""
        stream = ffmpeg.input(str(self.input_path)).output(
            str(self.output_path),
            **{
                "c:v": VIDEO_ENCODER,
                "b:v": f"{video_kbps}k",
                "preset": VIDEO_PRESET,
                "pass": 2,
                "c:a": AUDIO_ENCODER,
                "b:a": f"{audio_kbps}k",
                "movflags": OUTPUT_MOVFLAGS,
                "passlogfile": str(passlog_base),
            },
        )
        return stream.overwrite_output().compile(cmd=self.ffmpeg_path)

    def _run_pass(self, pass_number: int, cmd_list: List[str]):
        label = "analysis" if pass_number == 1 else "final"
        logger.info(f"FFmpeg pass {pass_number} ({label})...")
        res = run_cmd(cmd_list, show_cmd=True)
        if res is None:
            raise EncodePassFailedException(
                f"FFmpeg pass {pass_number} could not be started ('{self.ffmpeg_path}').",
                pass_number,
            )
        if res.stderr:
            logger.debug(f"FFmpeg pass {pass_number} output:\n{res.stderr.strip()}")
        if res.returncode != 0:
            raise EncodePassFailedException(
                f"FFmpeg pass {pass_number} failed with exit code {res.returncode}.",
                pass_number,
                res.returncode,
            )

    def encode(self, video_kbps: int, audio_kbps: int) -> int:
        """
        Runs both passes and returns the size of the output file in bytes.

        Raises:
            EncodePassFailedException: If either pass cannot be started or exits nonzero.
                                       Pass 2 is never started after a failed pass 1.
            EmptyOutputException: If the output file is missing afterwards.
        """
        passlog_base = self.new_passlog_base()
        try:
            self._run_pass(1, self.build_analysis_pass_cmd(video_kbps, passlog_base))
            self._run_pass(2, self.build_final_pass_cmd(video_kbps, audio_kbps, passlog_base))
        finally:
            cleanup_passlog_files(passlog_base)

        try:
            output_size = self.output_path.stat().st_size
        except FileNotFoundError as e:
            raise EmptyOutputException(f"FFmpeg produced no output at {self.output_path}") from e

        logger.debug(f"Encoded {self.output_path.name}: {formatted_size(output_size)}")
        return output_size


def cleanup_passlog_files(passlog_base: Path):
    """
    Deletes every file whose name starts with the pass log basename.

    libx264 writes several siblings (e.g. `<base>-0.log` and `<base>-0.log.mbtree`),
    so the whole family is removed. Failures are logged and otherwise ignored.
    """
    directory = passlog_base.parent
    if not directory.is_dir():
        return

    for file_path in directory.glob(f"{passlog_base.name}*"):
        try:
            file_path.unlink()
            logger.trace(f"Removed pass log file {file_path}")
        except OSError as e:
            logger.debug(f"Could not remove pass log file {file_path}: {e}")
