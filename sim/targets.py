"""Target waveforms for tracking runs.

Every waveform is a plain callable ``(t: float) -> float``.
"""

from __future__ import annotations

import math
from typing import Callable, Dict

TargetFn = Callable[[float], float]


def step_function(t: float) -> float:
    """0 before t=1s, 1 afterwards."""
    return 0.0 if t < 1 else 1.0


def square_wave(t: float) -> float:
    """Square wave between 1 and 0, switching every 10s (starts high)."""
    return 1.0 if math.floor(t / 10) % 2 == 0 else 0.0


def uneven_square_wave(t: float) -> float:
    """Like square_wave, but every other high segment only reaches 0.5."""
    f = math.floor(t / 10)
    if f % 2 != 0:
        return 0.0
    return 0.5 if f % 4 == 0 else 1.0


def sine_wave(t: float) -> float:
    """Unit sine with a 1s period."""
    return math.sin(t * 6.283185)


def constant(value: float) -> TargetFn:
    def _const(t: float) -> float:
        return value

    return _const


WAVEFORMS: Dict[str, TargetFn] = {
    "step": step_function,
    "square": square_wave,
    "uneven_square": uneven_square_wave,
    "sine": sine_wave,
}


def get_waveform(name: str) -> TargetFn:
    try:
        return WAVEFORMS[name]
    except KeyError:
        raise KeyError(f"unknown waveform {name!r}; choose from {sorted(WAVEFORMS)}") from None
