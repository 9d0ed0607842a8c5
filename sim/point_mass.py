from __future__ import annotations

from dataclasses import dataclass


@dataclass
class PointMassParams:
    drag: float = 0.0  # linear drag coeff (1/s), 0 = pure double integrator


class PointMass1D:
    """1-D point mass driven by an acceleration command (no saturation)."""

    def __init__(self, params: PointMassParams | None = None) -> None:
        self.p = params or PointMassParams()
        self.reset()

    def reset(self, position: float = 0.0, velocity: float = 0.0) -> None:
        self.position, self.velocity = position, velocity

    def state(self) -> tuple[float, float]:
        return self.position, self.velocity

    def step(self, dt: float, accel_cmd: float) -> tuple[float, float]:
        # velocity first, then position from the updated velocity
        a = accel_cmd - self.p.drag * self.velocity
        self.velocity += a * dt
        self.position += self.velocity * dt
        return self.state()
