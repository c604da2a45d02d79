"""Per-step helpers of the robot model: integration, targets, timing and radio loss."""

from __future__ import annotations

import math
import random
from typing import NamedTuple, Sequence

Vector = tuple[float, float, float]

# Angle offset of the random heading used by the moving target.
_TARGET_HEADING_OFFSET = 3.14
# Upper bounds of the uniform heading draws for the x and y components.
_TARGET_X_SPREAD = 13.0
_TARGET_Y_SPREAD = 10.0
# Path-loss slope inside an obstacle, in dB per decade of distance.
_OBSTACLE_LOSS_SLOPE = 40.0


class ObstacleLoss(NamedTuple):
    """Distance travelled through an obstacle and the signal loss it causes."""

    distance: float
    loss: float


def _as_vector(values: Sequence[float]) -> Vector:
    if len(values) < 2:
        raise ValueError("a vector needs at least two components")
    z = float(values[2]) if len(values) > 2 else 0.0
    return (float(values[0]), float(values[1]), z)


def step_positions(
    coordinates: Sequence[Sequence[float]],
    velocities: Sequence[Sequence[float]],
    delta_t: float,
) -> list[Vector]:
    """Advance every agent's position by its velocity over one time step."""
    if len(coordinates) != len(velocities):
        raise ValueError("coordinates and velocities must have the same length")
    stepped = []
    for position, velocity in zip(coordinates, velocities):
        x, y, z = (
            p + v * delta_t for p, v in zip(_as_vector(position), _as_vector(velocity))
        )
        stepped.append((x, y, z))
    return stepped


def step_target(
    position: Sequence[float],
    v_flock: float,
    delta_t: float,
    rng: random.Random | None = None,
) -> Vector:
    """Move a target one random step of length scale ``v_flock * delta_t``.

    The target stays on the plane z = 0.
    """
    generator = rng if rng is not None else random.Random()
    x, y, _ = _as_vector(position)
    step = v_flock * delta_t
    x += step * math.cos(
        _TARGET_HEADING_OFFSET + generator.uniform(0.0, _TARGET_X_SPREAD)
    )
    y += step * math.sin(
        _TARGET_HEADING_OFFSET + generator.uniform(0.0, _TARGET_Y_SPREAD)
    )
    return (x, y, 0.0)


def _steps_per_period(period: float, delta_t: float) -> int:
    if delta_t <= 0.0:
        raise ValueError("time step must be positive")
    if period < 0.0:
        raise ValueError("period must not be negative")
    return int(period / delta_t)


def is_gps_tick(time_step: int, t_gps: float, delta_t: float) -> bool:
    """Tell whether ``time_step`` falls on a GPS refresh."""
    steps = _steps_per_period(t_gps, delta_t)
    if steps == 0:
        raise ValueError("GPS period must be at least one time step")
    return time_step % steps == 0


def delay_steps(t_del: float, delta_t: float) -> int:
    """Return the communication delay expressed in whole time steps."""
    return _steps_per_period(t_del, delta_t)


def obstacle_loss(
    first_intersection: Sequence[float], second_intersection: Sequence[float]
) -> ObstacleLoss:
    """Return the path length between two boundary crossings and its loss in dB."""
    distance = math.dist(_as_vector(first_intersection), _as_vector(second_intersection))
    if distance == 0.0:
        raise ValueError("intersection points coincide")
    return ObstacleLoss(distance, _OBSTACLE_LOSS_SLOPE * math.log10(distance))