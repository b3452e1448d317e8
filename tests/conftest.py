"""Shared fixtures and fakes for the Size Encoder tests."""

import argparse
from pathlib import Path
from typing import List, Optional, Tuple

import pytest

from size_encoder.config import common
from size_encoder.config.encoding import BYTES_PER_MB
from size_encoder.services.encode_invoker import EncodeInvoker


def mb(value: float) -> int:
    return int(value * BYTES_PER_MB)


class FakeEncoder(EncodeInvoker):
    """Returns preset output sizes (or raises preset exceptions) in order."""

    def __init__(self, outcomes: List):
        self.outcomes = list(outcomes)
        self.calls: List[Tuple[int, int]] = []

    def encode(self, video_kbps: int, audio_kbps: int) -> int:
        self.calls.append((video_kbps, audio_kbps))
        outcome = self.outcomes[len(self.calls) - 1]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class RecordingFactory:
    """An encoder factory that records how it was called and hands out one FakeEncoder."""

    def __init__(self, outcomes: List):
        self.outcomes = outcomes
        self.created: List[Tuple[Path, Path, str]] = []
        self.encoder: Optional[FakeEncoder] = None

    def __call__(self, input_path: Path, output_path: Path, ffmpeg_path: str) -> FakeEncoder:
        self.created.append((input_path, output_path, ffmpeg_path))
        self.encoder = FakeEncoder(self.outcomes)
        return self.encoder


@pytest.fixture
def input_file(tmp_path) -> Path:
    path = tmp_path / "movie.mkv"
    path.write_bytes(b"not really a video")
    return path


@pytest.fixture
def make_args():
    def _make_args(input, target_size, output=None, ffmpeg=None, ffprobe=None, report=None):
        return argparse.Namespace(
            input=str(input),
            target_size=str(target_size),
            output=str(output) if output else None,
            ffmpeg=ffmpeg,
            ffprobe=ffprobe,
            report=str(report) if report else None,
            log_level="DEBUG",
        )

    return _make_args


@pytest.fixture(autouse=True)
def no_user_config(monkeypatch):
    """Keeps a developer's config.user.yaml from changing which executables the tests see."""
    monkeypatch.setattr(common, "MODULE_PATH", None)
