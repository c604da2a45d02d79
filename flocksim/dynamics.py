"""Robot-model dynamics: PID velocity tracking, acceleration limits, noise and wind."""

from __future__ import annotations

import math
import random
from typing import Sequence

from flocksim.geometry import unit_vector, vector_abs

Vector = tuple[float, float, float]


def _as_vector(values: Sequence[float]) -> Vector:
    if len(values) < 3:
        raise ValueError("a velocity vector needs three components")
    return (float(values[0]), float(values[1]), float(values[2]))


def _require_positive(name: str, value: float) -> None:
    if value <= 0.0:
        raise ValueError(f"{name} must be positive")


def add_noise(
    vector: Sequence[float],
    sigma_outer_xy: float,
    sigma_outer_z: float,
    delta_t: float,
    rng: random.Random | None = None,
) -> Vector:
    """Return ``vector`` plus Gaussian white noise for one time step.

    The horizontal and vertical components have their own diffusion
    coefficients; the noise scales with the square root of ``delta_t``.
    """
    if sigma_outer_xy < 0.0 or sigma_outer_z < 0.0:
        raise ValueError("noise coefficients must not be negative")
    if delta_t < 0.0:
        raise ValueError("time step must not be negative")
    generator = rng if rng is not None else random.Random()
    x, y, z = _as_vector(vector)
    draws = [generator.gauss(0.0, 1.0) for _ in range(3)]
    root_dt = math.sqrt(delta_t)
    scale_xy = math.sqrt(2.0 * sigma_outer_xy) * root_dt
    scale_z = math.sqrt(2.0 * sigma_outer_z) * root_dt
    return (
        x + draws[0] * scale_xy,
        y + draws[1] * scale_xy,
        z + draws[2] * scale_z,
    )


def initial_wind(wind_angle: float) -> Vector:
    """Return the unit wind vector in the XY plane pointing at ``wind_angle``."""
    return (math.cos(wind_angle), math.sin(wind_angle), 0.0)


def step_wind(
    wind: Sequence[float],
    wind_stdev: float,
    delta_t: float,
    rng: random.Random | None = None,
) -> Vector:
    """Advance the wind vector by one random-walk step in the XY plane."""
    if wind_stdev < 0.0:
        raise ValueError("wind deviation must not be negative")
    if delta_t < 0.0:
        raise ValueError("time step must not be negative")
    generator = rng if rng is not None else random.Random()
    x, y, z = _as_vector(wind)
    scale = math.sqrt(2.0 * wind_stdev * delta_t)
    return (
        x + generator.gauss(0.0, 1.0) * scale,
        y + generator.gauss(0.0, 1.0) * scale,
        z,
    )


def pid_velocity(
    real_velocity: Sequence[float],
    preferred_velocity: Sequence[float],
    previous_velocity: Sequence[float],
    delta_t: float,
    tau_xy: float,
    tau_z: float,
) -> Vector:
    """Relax the velocity towards the preferred one with time constants per axis."""
    _require_positive("tau_xy", tau_xy)
    _require_positive("tau_z", tau_z)
    real = _as_vector(real_velocity)
    preferred = _as_vector(preferred_velocity)
    previous = _as_vector(previous_velocity)
    gains = (delta_t / tau_xy, delta_t / tau_xy, delta_t / tau_z)
    x, y, z = (
        r + gain * (p - q)
        for r, p, q, gain in zip(real, preferred, previous, gains)
    )
    return (x, y, z)


def saturate_acceleration(
    previous_velocity: Sequence[float],
    new_velocity: Sequence[float],
    a_max: float,
    delta_t: float,
) -> tuple[Vector, float]:
    """Limit the change of velocity to ``a_max`` and report the acceleration.

    Returns the (possibly clipped) velocity and the magnitude of the
    acceleration that takes it from ``previous_velocity``.
    """
    _require_positive("delta_t", delta_t)
    if a_max < 0.0:
        raise ValueError("maximal acceleration must not be negative")
    previous = _as_vector(previous_velocity)
    new = _as_vector(new_velocity)
    difference = tuple(n - p for n, p in zip(new, previous))
    acceleration = vector_abs(difference) / delta_t
    if acceleration <= a_max:
        return new, acceleration
    direction = unit_vector(difference)
    x, y, z = (p + a_max * delta_t * d for p, d in zip(previous, direction))
    return (x, y, z), a_max