from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


class ControllerNotInitializedError(RuntimeError):
    """Raised when a controller is evaluated before ``initialize``."""


class DegenerateTimestepError(ValueError):
    """Raised when an evaluation timestamp does not move forward in time."""


@dataclass(frozen=True)
class PIDParameters:
    k_p: float = 0.0
    k_i: float = 0.0
    k_d: float = 0.0


class PIDController:
    """SISO PID controller with trapezoidal error integration.

    The controller has to be seeded with ``initialize(target, state, t)``
    before the first ``calculate_output`` call. Each evaluation mutates
    ``last_timestamp``, ``last_error`` and ``error_integral``, so one instance
    must be driven serially by a single control loop.

    There is no output clamping, integral clamping or derivative filtering.
    A target change feeds straight into the next evaluation: the derivative
    term sees the full error jump.
    """

    def __init__(self, params: PIDParameters) -> None:
        self._params = params
        self.target = 0.0
        self.last_timestamp: Optional[float] = None
        self.last_error: Optional[float] = None
        self.error_integral = 0.0

    @property
    def params(self) -> PIDParameters:
        return self._params

    @params.setter
    def params(self, params: PIDParameters) -> None:
        self._params = params

    @property
    def initialized(self) -> bool:
        return self.last_timestamp is not None

    def initialize(self, target: float, state: float, timestamp: float) -> None:
        """Seed the baseline used by the first derivative and integral step.

        Calling it again re-seeds the controller and zeroes the integral.
        """
        self.target = target
        self.last_error = target - state
        self.last_timestamp = timestamp
        self.error_integral = 0.0

    def update_target(self, target: float) -> None:
        # integral and last_error untouched
        self.target = target

    def calculate_output(self, state: float, timestamp: float) -> float:
        """Compute the control response for a measured state at ``timestamp``.

        Args:
            state: current measurement
            timestamp: current time, strictly later than the previous call

        Returns:
            kp * e + kd * de/dt + ki * integral(e), unclamped

        Raises:
            ControllerNotInitializedError: ``initialize`` was never called
            DegenerateTimestepError: ``timestamp`` is not after the last one;
                the controller state is left untouched
        """
        if self.last_timestamp is None or self.last_error is None:
            raise ControllerNotInitializedError(
                "initialize() must be called before calculate_output()"
            )

        dt = timestamp - self.last_timestamp
        if not dt > 0:
            raise DegenerateTimestepError(
                f"timestamp {timestamp} is not after last timestamp {self.last_timestamp}"
            )

        error = self.target - state
        error_derivative = (error - self.last_error) / dt
        # Trapezoidal rule over the last interval
        self.error_integral += ((error + self.last_error) / 2) * dt

        p = self._params
        response = p.k_p * error + p.k_d * error_derivative + p.k_i * self.error_integral

        self.last_timestamp = timestamp
        self.last_error = error
        return response
