from __future__ import annotations

import math

import pytest

from streamlines2d import Euler, RungeKutta4, Vec2, make_integrator


class _Constant:
    def __init__(self, vx: float, vy: float) -> None:
        self.v = Vec2(vx, vy)

    def vec_at(self, x: float, y: float, t: float = 0.0) -> Vec2:
        return self.v


class _Rotation:
    def vec_at(self, x: float, y: float, t: float = 0.0) -> Vec2:
        return Vec2(-y, x)


class _Switch:
    """(1, 0) before t = 1, (0, 1) from then on."""
    def vec_at(self, x: float, y: float, t: float = 0.0) -> Vec2:
        return Vec2(1.0, 0.0) if t < 1.0 else Vec2(0.0, 1.0)


@pytest.mark.parametrize("cls", [RungeKutta4, Euler])
def test_uniform_field_moves_one_step(cls):
    # magnitude is normalized away
    integ = cls(0.5, _Constant(10.0, 0.0))
    p = integ.step(1.0, 2.0)
    assert (p.x, p.y) == pytest.approx((1.5, 2.0))
    q = integ.step_reverse(1.0, 2.0)
    assert (q.x, q.y) == pytest.approx((0.5, 2.0))


@pytest.mark.parametrize("cls", [RungeKutta4, Euler])
def test_zero_field_stays_put(cls):
    integ = cls(0.5, _Constant(0.0, 0.0))
    p = integ.step(3.0, -1.0)
    assert (p.x, p.y) == (3.0, -1.0)


def test_rk4_stays_on_circle():
    integ = RungeKutta4(0.01, _Rotation())
    p = Vec2(1.0, 0.0)
    for _ in range(int(2 * math.pi / 0.01)):
        p = integ.step(p.x, p.y)
    assert p.magnitude() == pytest.approx(1.0, abs=1e-6)


def test_euler_drifts_outward_on_circle():
    integ = Euler(0.01, _Rotation())
    p = Vec2(1.0, 0.0)
    for _ in range(int(2 * math.pi / 0.01)):
        p = integ.step(p.x, p.y)
    assert p.magnitude() > 1.0 + 1e-4


def test_rk4_stage_times():
    h = 1.0
    p = RungeKutta4(h, _Switch()).step(0.0, 0.0, t=0.0, dt=2.0)
    assert (p.x, p.y) == pytest.approx((h / 6, 5 * h / 6))
    frozen = RungeKutta4(h, _Switch()).step(0.0, 0.0, t=0.0, dt=0.0)
    assert (frozen.x, frozen.y) == pytest.approx((h, 0.0))


def test_make_integrator():
    diff = _Constant(1.0, 0.0)
    assert isinstance(make_integrator("rk4", 1.0, diff), RungeKutta4)
    assert isinstance(make_integrator("euler", 1.0, diff), Euler)
    with pytest.raises(ValueError):
        make_integrator("midpoint", 1.0, diff)  # type: ignore[arg-type]


@pytest.mark.parametrize("h", [0.0, -1.0])
def test_step_size_must_be_positive(h: float):
    with pytest.raises(ValueError):
        RungeKutta4(h, _Constant(1.0, 0.0))


def test_rk4_uniform_field_ten_steps():
    h = 0.25
    integ = RungeKutta4(h, _Constant(1.0, 0.0))
    p = Vec2(0.0, 0.0)
    for k in range(1, 11):
        p = integ.step(p.x, p.y)
        assert (p.x, p.y) == pytest.approx((k * h, 0.0))
