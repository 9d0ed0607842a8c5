from __future__ import annotations

import csv
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple, Union

from control.pid import PIDController, PIDParameters
from sim.point_mass import PointMass1D, PointMassParams
from sim.targets import TargetFn

CSV_HEADER = ["Time", "Target", "State"]


@dataclass
class TrackingResult:
    samples: List[Tuple[float, float, float]] = field(default_factory=list)  # (t, target, state)
    final_target: float = 0.0
    final_state: float = 0.0
    stabilized: bool = True

    @property
    def final_error(self) -> float:
        return self.final_target - self.final_state


def run_tracking(
    params: PIDParameters,
    target_fn: TargetFn,
    max_t: float,
    dt: float = 0.01,
    *,
    should_stabilize: bool = True,
    tolerance: float = 0.05,
    csv_path: Optional[Union[str, Path]] = None,
    plant: Optional[PointMass1D] = None,
) -> TrackingResult:
    """
    Drive a point mass from rest toward ``target_fn(t)`` with a PID controller.

    The controller is seeded at t=0 with target 0 and state 0, then evaluated
    every ``dt`` while t < max_t. Each sample (t, target, state) is recorded and,
    if ``csv_path`` is given, written as a Time,Target,State CSV.

    ``stabilized`` is True when stabilization is not expected, otherwise when the
    final |target - state| is below ``tolerance``.
    """
    if dt <= 0:
        raise ValueError(f"dt must be positive, got {dt}")
    if max_t <= 0:
        raise ValueError(f"max_t must be positive, got {max_t}")

    plant = plant or PointMass1D(PointMassParams())
    plant.reset()
    ctrl = PIDController(params)

    t = 0.0
    target = 0.0
    state, _ = plant.state()
    ctrl.initialize(target, state, t)
    t += dt

    result = TrackingResult()
    while t < max_t:
        target = target_fn(t)
        ctrl.update_target(target)
        u = ctrl.calculate_output(state, t)
        state, _ = plant.step(dt, u)
        result.samples.append((t, target, state))
        t += dt

    result.final_target = target
    result.final_state = state
    result.stabilized = not should_stabilize or abs(target - state) < tolerance

    if csv_path is not None:
        write_csv(csv_path, result.samples)
    return result


def write_csv(path: Union[str, Path], samples: List[Tuple[float, float, float]]) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", newline="") as f:
        w = csv.writer(f)
        w.writerow(CSV_HEADER)
        w.writerows(samples)
    return path
