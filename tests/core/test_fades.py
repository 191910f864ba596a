"""Tests for the equal-power fade curve."""

import pytest

from media_sessions.helpers.fades import fade_factor, fade_in_factor, fade_out_factor


def test_fade_factor_boundaries() -> None:
    """The curve starts silent and ends at full gain."""
    assert fade_factor(0) == 0
    assert fade_factor(1) == pytest.approx(1.0)
    # out of range ratios are clamped
    assert fade_factor(-0.5) == 0
    assert fade_factor(2.5) == pytest.approx(1.0)


def test_fade_factor_values() -> None:
    """Test some known points of the curve."""
    assert fade_factor(0.5) == pytest.approx(0.5**0.5)
    assert fade_factor(0.6) == pytest.approx(0.809017, abs=1e-6)
    assert fade_factor(0.8) == pytest.approx(0.951057, abs=1e-6)


def test_fade_factor_is_monotonic() -> None:
    """The gain never decreases while the ratio increases."""
    values = [fade_factor(step / 100) for step in range(101)]
    assert values == sorted(values)
    assert all(0 <= value <= 1 for value in values)


def test_fade_in_and_out_factor() -> None:
    """Test the fade-in and fade-out wrappers."""
    # 3 seconds into a 5 second fade-in window
    assert fade_in_factor(3, 5) == pytest.approx(fade_factor(0.6))
    # 4 seconds before the end of a 5 second fade-out window
    assert fade_out_factor(4, 5) == pytest.approx(fade_factor(0.8))
    assert fade_out_factor(0, 5) == 0
    # no window means no fading at all
    assert fade_in_factor(1, 0) == 1.0
    assert fade_out_factor(1, 0) == 1.0
