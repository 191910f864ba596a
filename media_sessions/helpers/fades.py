"""Equal-power fade curve helpers.

The gain follows ``sqrt(0.5 - 0.5 * cos(pi * x))`` which is 0 at ``x=0``,
1 at ``x=1`` and flat at both ends, keeping the perceived loudness more
constant through the transition than a linear ramp.
"""

from __future__ import annotations

import math


def fade_factor(x: float) -> float:
    """Return the equal-power gain factor for a normalized time ratio."""
    x = min(max(x, 0.0), 1.0)
    # clamp to avoid a tiny negative value under the sqrt due to float rounding
    return math.sqrt(max(0.5 - 0.5 * math.cos(math.pi * x), 0.0))


def fade_in_factor(position: float, fade_window: float) -> float:
    """Return the gain for a fade-in, given the position inside the fade window."""
    if fade_window <= 0:
        return 1.0
    return fade_factor(position / fade_window)


def fade_out_factor(gap: float, fade_window: float) -> float:
    """Return the gain for a fade-out, given the time left until the fade end."""
    if fade_window <= 0:
        return 1.0
    return fade_factor(gap / fade_window)
