from __future__ import annotations

import math

from pytest import approx

from flyingboids.sim.core.rng import DeterministicRng
from flyingboids.sim.utils.math2d import heading_angle, normalize_xy, rotate_xy, sign


def test_normalize_scales_to_requested_magnitude():
    result = normalize_xy(3.0, 4.0)
    assert (result.x, result.y) == (approx(0.6), approx(0.8))

    doubled = normalize_xy(3.0, 4.0, magnitude=2.0)
    assert doubled.length() == approx(2.0)
    assert doubled.x / doubled.y == approx(0.75)


def test_normalize_zero_vector_returns_random_unit_vector():
    rng = DeterministicRng(3)
    for _ in range(50):
        result = normalize_xy(0.0, 0.0, rng=rng)
        assert result.length() == approx(1.0, abs=1e-12)
    assert normalize_xy(0.0, 0.0).length() == approx(1.0, abs=1e-12)


def test_normalize_zero_vector_is_seeded():
    a = normalize_xy(0.0, 0.0, rng=DeterministicRng(11))
    b = normalize_xy(0.0, 0.0, rng=DeterministicRng(11))
    assert (a.x, a.y) == (b.x, b.y)


def test_rotate_turns_clockwise_in_screen_space():
    result = rotate_xy(1.0, 0.0, math.pi / 2)
    assert result.x == approx(0.0, abs=1e-12)
    assert result.y == approx(-1.0)


def test_rotate_preserves_length():
    result = rotate_xy(0.6, -0.8, math.radians(37.0))
    assert result.length() == approx(1.0)


def test_heading_angle_and_sign():
    assert heading_angle(0.0, 1.0) == approx(math.pi / 2)
    assert heading_angle(0.0, 0.0) == 0.0
    assert sign(-3.0) == -1.0
    assert sign(0.0) == 0.0
    assert sign(0.1) == 1.0
