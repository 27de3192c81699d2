from __future__ import annotations

import math
import random

import pytest

from coin_vision.core.processing import FrameRateLimiter


def test_first_call_is_admitted_without_warmup() -> None:
    limiter = FrameRateLimiter(10)
    assert limiter.admit(123.456) is True


def test_admits_once_per_interval() -> None:
    limiter = FrameRateLimiter(10)
    assert limiter.admit(0.0)
    assert not limiter.admit(0.05)
    assert not limiter.admit(0.09)
    assert limiter.admit(0.1)
    assert not limiter.admit(0.15)
    assert limiter.admit(0.25)


@pytest.mark.parametrize("rate", [0, -1, -30.5])
def test_non_positive_rate_admits_nothing(rate: float) -> None:
    limiter = FrameRateLimiter(rate)
    assert not any(limiter.admit(t * 0.01) for t in range(500))


def test_backwards_timestamp_is_rejected_and_schedule_kept() -> None:
    limiter = FrameRateLimiter(10)
    assert limiter.admit(1.0)
    assert not limiter.admit(0.5)
    assert not limiter.admit(1.05)
    assert limiter.admit(1.1)


def test_reconfigure_admits_next_frame_immediately() -> None:
    limiter = FrameRateLimiter(1)
    assert limiter.admit(0.0)
    assert not limiter.admit(0.2)
    limiter.reconfigure(2)
    assert limiter.target_fps == 2
    assert limiter.admit(0.3)
    assert not limiter.admit(0.5)
    assert limiter.admit(0.8)


def test_reset_restores_first_call_behaviour() -> None:
    limiter = FrameRateLimiter(1)
    assert limiter.admit(5.0)
    limiter.reset()
    assert limiter.admit(1.0)


def test_evenly_spaced_frames_at_twice_the_rate_admit_every_other() -> None:
    limiter = FrameRateLimiter(15)
    admitted = [i for i in range(30) if limiter.admit(i / 30.0)]
    assert admitted == list(range(0, 30, 2))


@pytest.mark.parametrize("rate", [1, 7.5, 15, 30, 60])
def test_admissions_in_any_window_are_bounded(rate: float) -> None:
    rng = random.Random(1234)
    timestamps = sorted(rng.uniform(0.0, 5.0) for _ in range(2000))
    limiter = FrameRateLimiter(rate)
    admitted = [t for t in timestamps if limiter.admit(t)]

    for window in (0.1, 0.5, 1.0, 2.5):
        bound = math.ceil(window * rate) + 1
        for start in admitted:
            count = sum(1 for t in admitted if start <= t <= start + window)
            assert count <= bound
