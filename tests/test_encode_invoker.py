"""Tests for the two-pass FFmpeg encoder."""

import subprocess
from pathlib import Path

import pytest

from size_encoder.domain.exceptions import EmptyOutputException, EncodePassFailedException
from size_encoder.services import encode_invoker
from size_encoder.services.encode_invoker import FFmpegTwoPassEncoder, cleanup_passlog_files


def _value_after(cmd, flag):
    return cmd[cmd.index(flag) + 1]


def _pass_number(cmd):
    return int(_value_after(cmd, "-pass"))


class FakeFFmpeg:
    """Stands in for run_cmd: records commands and simulates the files FFmpeg writes."""

    def __init__(self, returncodes=(0, 0), output_bytes=4096, start_fails=False):
        self.returncodes = list(returncodes)
        self.output_bytes = output_bytes
        self.start_fails = start_fails
        self.commands = []

    def __call__(self, cmd_list, show_cmd=False):
        self.commands.append(cmd_list)
        if self.start_fails:
            return None
        passlog = Path(_value_after(cmd_list, "-passlogfile"))
        if _pass_number(cmd_list) == 1:
            (passlog.parent / f"{passlog.name}-0.log").write_text("stats")
            (passlog.parent / f"{passlog.name}-0.log.mbtree").write_bytes(b"\0" * 8)
        else:
            Path(cmd_list[-2]).write_bytes(b"\0" * self.output_bytes)
        returncode = self.returncodes[len(self.commands) - 1]
        return subprocess.CompletedProcess(cmd_list, returncode, "", "frame=  100 fps=50\n")


@pytest.fixture
def encoder(tmp_path):
    passlog_dir = tmp_path / "passlogs"
    passlog_dir.mkdir()
    return FFmpegTwoPassEncoder(
        tmp_path / "in.mkv", tmp_path / "out.mp4", "/usr/local/bin/ffmpeg", passlog_dir=passlog_dir
    )


def test_analysis_pass_command(encoder):
    base = encoder.passlog_dir / "log"
    cmd = encoder.build_analysis_pass_cmd(1562, base)

    assert cmd[0] == "/usr/local/bin/ffmpeg"
    assert _value_after(cmd, "-i") == str(encoder.input_path)
    assert _value_after(cmd, "-c:v") == "libx264"
    assert _value_after(cmd, "-b:v") == "1562k"
    assert _value_after(cmd, "-preset") == "slow"
    assert _value_after(cmd, "-pass") == "1"
    assert _value_after(cmd, "-f") == "mp4"
    assert _value_after(cmd, "-passlogfile") == str(base)
    assert "-an" in cmd
    assert "-b:a" not in cmd
    assert "-y" in cmd
    assert encode_invoker.null_device() in cmd


def test_final_pass_command(encoder):
    base = encoder.passlog_dir / "log"
    cmd = encoder.build_final_pass_cmd(1446, 128, base)

    assert _value_after(cmd, "-b:v") == "1446k"
    assert _value_after(cmd, "-pass") == "2"
    assert _value_after(cmd, "-c:a") == "aac"
    assert _value_after(cmd, "-b:a") == "128k"
    assert _value_after(cmd, "-movflags") == "+faststart"
    assert _value_after(cmd, "-passlogfile") == str(base)
    assert "-an" not in cmd
    assert str(encoder.output_path) in cmd


def test_passlog_base_is_unique(encoder):
    first, second = encoder.new_passlog_base(), encoder.new_passlog_base()
    assert first != second
    assert first.parent == encoder.passlog_dir
    assert first.name.startswith("size-encoder-passlog-")


def test_encode_runs_both_passes_and_cleans_up(monkeypatch, encoder):
    fake = FakeFFmpeg(output_bytes=4096)
    monkeypatch.setattr(encode_invoker, "run_cmd", fake)
    unrelated = encoder.passlog_dir / "keep-me.log"
    unrelated.write_text("x")

    size = encoder.encode(1562, 128)

    assert size == 4096
    assert [_pass_number(cmd) for cmd in fake.commands] == [1, 2]
    assert _value_after(fake.commands[0], "-passlogfile") == _value_after(fake.commands[1], "-passlogfile")
    assert list(encoder.passlog_dir.iterdir()) == [unrelated]


def test_each_attempt_uses_a_new_passlog(monkeypatch, encoder):
    fake = FakeFFmpeg(returncodes=(0, 0, 0, 0))
    monkeypatch.setattr(encode_invoker, "run_cmd", fake)

    encoder.encode(1562, 128)
    encoder.encode(1446, 128)

    first = _value_after(fake.commands[0], "-passlogfile")
    second = _value_after(fake.commands[2], "-passlogfile")
    assert first != second


def test_failed_analysis_pass_skips_final_pass(monkeypatch, encoder):
    fake = FakeFFmpeg(returncodes=(1, 0))
    monkeypatch.setattr(encode_invoker, "run_cmd", fake)

    with pytest.raises(EncodePassFailedException) as exc_info:
        encoder.encode(1562, 128)

    assert exc_info.value.pass_number == 1
    assert exc_info.value.returncode == 1
    assert len(fake.commands) == 1
    assert list(encoder.passlog_dir.iterdir()) == []


def test_failed_final_pass(monkeypatch, encoder):
    fake = FakeFFmpeg(returncodes=(0, 187))
    monkeypatch.setattr(encode_invoker, "run_cmd", fake)

    with pytest.raises(EncodePassFailedException) as exc_info:
        encoder.encode(1562, 128)

    assert exc_info.value.pass_number == 2
    assert exc_info.value.returncode == 187
    assert list(encoder.passlog_dir.iterdir()) == []


def test_ffmpeg_that_cannot_start(monkeypatch, encoder):
    fake = FakeFFmpeg(start_fails=True)
    monkeypatch.setattr(encode_invoker, "run_cmd", fake)

    with pytest.raises(EncodePassFailedException) as exc_info:
        encoder.encode(1562, 128)

    assert exc_info.value.pass_number == 1
    assert exc_info.value.returncode is None


def test_empty_output_size_is_returned(monkeypatch, encoder):
    monkeypatch.setattr(encode_invoker, "run_cmd", FakeFFmpeg(output_bytes=0))

    assert encoder.encode(1562, 128) == 0


def test_missing_output_is_an_error(monkeypatch, encoder):
    fake = FakeFFmpeg()

    def without_output(cmd_list, show_cmd=False):
        res = fake(cmd_list, show_cmd)
        encoder.output_path.unlink(missing_ok=True)
        return res

    monkeypatch.setattr(encode_invoker, "run_cmd", without_output)

    with pytest.raises(EmptyOutputException):
        encoder.encode(1562, 128)


def test_cleanup_ignores_unlink_errors(monkeypatch, tmp_path):
    base = tmp_path / "size-encoder-passlog-abc"
    (tmp_path / "size-encoder-passlog-abc-0.log").write_text("x")

    def failing_unlink(self, missing_ok=False):
        raise PermissionError("locked")

    monkeypatch.setattr(Path, "unlink", failing_unlink)

    cleanup_passlog_files(base)


def test_cleanup_with_missing_directory(tmp_path):
    cleanup_passlog_files(tmp_path / "gone" / "size-encoder-passlog-abc")
