"""Millisecond arithmetic shared by the record model and the view."""

import math


def round_ms(value) -> int:
    """Round a millisecond value half-up to an int.

    Anything that is not a finite number (None, empty or non-numeric
    strings, NaN, infinities) becomes 0.
    """
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    if not math.isfinite(number):
        return 0
    return math.floor(number + 0.5)


def clamp(value, low, high):
    """Clamp value into [low, high]."""
    return max(low, min(high, value))
