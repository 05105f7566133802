from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Literal, Protocol

from .geometry import Vec2


class Differentiable(Protocol):
    """Anything that can report a velocity vector at (x, y, t)."""
    def vec_at(self, x: float, y: float, t: float = 0.0) -> Vec2: ...


IntegratorName = Literal["euler", "rk4"]


class Integrator(ABC):
    """Fixed arc-length stepper.

    Field samples are normalized before scaling by the step size, so every
    step has length ~h regardless of the local field magnitude. `dt` advances
    the sampling time across stages; dt = 0 freezes the field at `t`.
    """

    def __init__(self, step_size: float, diff: Differentiable) -> None:
        if not step_size > 0.0:
            raise ValueError("step_size must be positive.")
        self.step_size = float(step_size)
        self.diff = diff

    def _sample(self, x: float, y: float, t: float, h: float) -> Vec2:
        return self.diff.vec_at(x, y, t).normalized() * h

    @abstractmethod
    def _advance(self, x: float, y: float, h: float, t: float, dt: float) -> Vec2: ...

    def step(self, x: float, y: float, t: float = 0.0, dt: float = 0.0) -> Vec2:
        return self._advance(x, y, self.step_size, t, dt)

    def step_reverse(self, x: float, y: float, t: float = 0.0, dt: float = 0.0) -> Vec2:
        return self._advance(x, y, -self.step_size, t, dt)


class RungeKutta4(Integrator):
    def _advance(self, x: float, y: float, h: float, t: float, dt: float) -> Vec2:
        k1 = self._sample(x, y, t, h)
        k2 = self._sample(x + k1.x / 2, y + k1.y / 2, t + dt / 2, h)
        k3 = self._sample(x + k2.x / 2, y + k2.y / 2, t + dt / 2, h)
        k4 = self._sample(x + k3.x, y + k3.y, t + dt, h)
        return Vec2(
            x + k1.x / 6 + k2.x / 3 + k3.x / 3 + k4.x / 6,
            y + k1.y / 6 + k2.y / 3 + k3.y / 3 + k4.y / 6,
        )


class Euler(Integrator):
    def _advance(self, x: float, y: float, h: float, t: float, dt: float) -> Vec2:
        k = self._sample(x, y, t, h)
        return Vec2(x + k.x, y + k.y)


def make_integrator(name: IntegratorName, step_size: float, diff: Differentiable) -> Integrator:
    if name == "rk4":
        return RungeKutta4(step_size, diff)
    if name == "euler":
        return Euler(step_size, diff)
    raise ValueError("integrator must be one of {'euler','rk4'}.")
