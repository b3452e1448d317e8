"""Tests for the size convergence loop."""

import pytest

from conftest import FakeEncoder, mb
from size_encoder.domain.exceptions import EmptyOutputException, EncodePassFailedException
from size_encoder.domain.models import ConvergenceState
from size_encoder.services.convergence import SizeConvergenceLoop, corrected_video_kbps


def test_stops_after_first_attempt_within_tolerance():
    encoder = FakeEncoder([mb(25.5)])
    loop = SizeConvergenceLoop(encoder, mb(25))

    outcome = loop.run(1562, 128)

    assert outcome.state is ConvergenceState.CONVERGED
    assert encoder.calls == [(1562, 128)]
    assert len(outcome.attempts) == 1
    assert outcome.final_video_kbps == 1562


def test_undersized_output_within_tolerance_converges():
    encoder = FakeEncoder([mb(24.3)])
    outcome = SizeConvergenceLoop(encoder, mb(25)).run(1000, 96)
    assert outcome.state is ConvergenceState.CONVERGED
    assert outcome.last_attempt.diff_ratio == pytest.approx(-0.028, abs=1e-4)


def test_oversized_output_is_corrected_then_accepted():
    encoder = FakeEncoder([mb(27), mb(26.5)])
    loop = SizeConvergenceLoop(encoder, mb(25))

    outcome = loop.run(1562, 128)

    # floor(1562 * 25 / 27) = 1446
    assert encoder.calls == [(1562, 128), (1446, 128)]
    assert outcome.state is ConvergenceState.EXHAUSTED
    assert outcome.final_video_kbps == 1446
    assert outcome.attempts[0].diff_ratio == pytest.approx(0.08)


def test_second_attempt_can_converge():
    encoder = FakeEncoder([mb(20), mb(25.2)])
    outcome = SizeConvergenceLoop(encoder, mb(25)).run(800, 128)

    assert encoder.calls[1] == (1000, 128)
    assert outcome.state is ConvergenceState.CONVERGED


def test_never_runs_a_third_attempt():
    encoder = FakeEncoder([mb(50), mb(50), mb(50)])
    outcome = SizeConvergenceLoop(encoder, mb(25)).run(2000, 128)

    assert len(encoder.calls) == 2
    assert outcome.state is ConvergenceState.EXHAUSTED


def test_correction_never_drops_below_minimum_video_bitrate():
    encoder = FakeEncoder([mb(250), mb(30)])
    SizeConvergenceLoop(encoder, mb(25)).run(150, 48)

    assert encoder.calls[1] == (100, 48)


def test_corrected_video_kbps():
    assert corrected_video_kbps(1562, mb(25), mb(27)) == 1446
    assert corrected_video_kbps(1000, mb(10), mb(5)) == 2000
    assert corrected_video_kbps(120, mb(1), mb(10)) == 100


def test_encode_failure_is_not_retried():
    error = EncodePassFailedException("pass 1 failed", 1, 1)
    encoder = FakeEncoder([error, mb(25)])
    loop = SizeConvergenceLoop(encoder, mb(25))

    with pytest.raises(EncodePassFailedException):
        loop.run(1562, 128)

    assert len(encoder.calls) == 1
    assert loop.state is ConvergenceState.FAILED
    assert loop.attempts == []


def test_failure_on_second_attempt_keeps_first_result():
    encoder = FakeEncoder([mb(30), EncodePassFailedException("pass 2 failed", 2, 1)])
    loop = SizeConvergenceLoop(encoder, mb(25))

    with pytest.raises(EncodePassFailedException):
        loop.run(1562, 128)

    assert loop.state is ConvergenceState.FAILED
    assert [a.attempt_number for a in loop.attempts] == [1]


def test_empty_output_before_last_attempt_fails_the_run():
    encoder = FakeEncoder([0])
    loop = SizeConvergenceLoop(encoder, mb(25))

    with pytest.raises(EmptyOutputException):
        loop.run(1562, 128)
    assert loop.state is ConvergenceState.FAILED
    assert len(encoder.calls) == 1


def test_empty_output_on_last_attempt_is_exhausted():
    encoder = FakeEncoder([mb(27), 0])
    outcome = SizeConvergenceLoop(encoder, mb(25)).run(1562, 128)

    assert outcome.state is ConvergenceState.EXHAUSTED
    assert outcome.final_video_kbps == 1446
    assert outcome.last_attempt.actual_output_bytes == 0
    assert outcome.last_attempt.diff_ratio == -1.0


def test_on_attempt_receives_every_result():
    seen = []
    encoder = FakeEncoder([mb(27), mb(26)])
    SizeConvergenceLoop(encoder, mb(25), on_attempt=seen.append).run(1562, 128)

    assert [r.attempt_number for r in seen] == [1, 2]
    assert [r.requested_video_kbps for r in seen] == [1562, 1446]
    assert seen[1].actual_output_bytes == mb(26)


def test_rejects_invalid_configuration():
    with pytest.raises(ValueError):
        SizeConvergenceLoop(FakeEncoder([]), 0)
    with pytest.raises(ValueError):
        SizeConvergenceLoop(FakeEncoder([]), mb(25), max_attempts=0)
