"""
Command-Line Interface (CLI) setup for the Size Encoder.

This module uses Python's `argparse` to define and parse the command-line
arguments, configures the loguru logger, and launches the pipeline.
"""
import argparse
import sys
from typing import List, Optional

from loguru import logger

from .config.common import DEFAULT_LOG_LEVEL, LOG_LEVEL_CHOICES, LOGGER_FORMAT
from .pipeline.size_pipeline import EXIT_FAILURE, TargetSizePipeline


class _ArgumentParser(argparse.ArgumentParser):
    """An ArgumentParser that reports usage errors with exit code 1 like every other fatal error."""

    def error(self, message: str):
        self.print_usage(sys.stderr)
        self.exit(EXIT_FAILURE, f"{self.prog}: error: {message}\n")


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="size-encoder",
        description="Re-encode a video so that the output file lands close to a target size.",
        epilog=(
            "The FFmpeg executable comes before the ffprobe executable. "
            "Example: size-encoder input.mkv 25 output.mp4 /opt/ffmpeg/bin/ffmpeg /opt/ffmpeg/bin/ffprobe"
        ),
    )
    parser.add_argument("input", help="Input media file.")
    parser.add_argument(
        "target_size", metavar="target_size_mb", help="Target output size in megabytes (e.g. 25 or 7.5)."
    )
    parser.add_argument(
        "output", nargs="?", default=None,
        help="Output file. Defaults to '<input>_compressed.mp4'; the extension is always .mp4.",
    )
    parser.add_argument(
        "ffmpeg", nargs="?", default=None,
        help="FFmpeg executable. Defaults to 'ffmpeg_dir' from config.user.yaml, then PATH.",
    )
    parser.add_argument(
        "ffprobe", nargs="?", default=None,
        help="ffprobe executable. Defaults to 'ffmpeg_dir' from config.user.yaml, then PATH.",
    )
    parser.add_argument(
        "--log-level", type=str.upper, default=DEFAULT_LOG_LEVEL, choices=LOG_LEVEL_CHOICES,
        help="Set the logging level.",
    )
    parser.add_argument(
        "--report", type=str, default=None,
        help="Append a YAML entry describing the run (bitrates and every attempt) to this file.",
    )
    return parser


def get_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parses command-line arguments for the Size Encoder.

    Returns:
        argparse.Namespace: An object containing the parsed command-line
                            arguments as attributes.
    """
    return build_parser().parse_args(argv)


def configure_logger(level: str = DEFAULT_LOG_LEVEL):
    logger.remove()
    logger.add(sys.stderr, level=level, format=LOGGER_FORMAT)


def main(argv: Optional[List[str]] = None) -> int:
    """Parses arguments, configures logging and runs the pipeline. Returns the exit code."""
    args = get_args(argv)
    configure_logger(args.log_level)
    logger.debug(f"Parsed arguments: {args}")
    return TargetSizePipeline(args).run()
