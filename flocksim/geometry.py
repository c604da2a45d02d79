"""Planar geometry helpers for polygonal obstacles."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Sequence

Vector = tuple[float, float, float]


@dataclass(frozen=True)
class Obstacle:
    """A polygonal obstacle in the XY plane, given by its vertices in order."""

    points: tuple[tuple[float, float], ...]

    def __init__(self, points: Iterable[Sequence[float]]) -> None:
        converted = []
        for point in points:
            if len(point) < 2:
                raise ValueError("obstacle vertices need x and y coordinates")
            converted.append((float(point[0]), float(point[1])))
        object.__setattr__(self, "points", tuple(converted))

    def __len__(self) -> int:
        return len(self.points)

    def edges(self):
        """Yield (start, end) vertex pairs, closing the polygon."""
        count = len(self.points)
        for index, start in enumerate(self.points):
            yield start, self.points[(index + 1) % count]


def vector_abs(vector: Sequence[float]) -> float:
    """Return the Euclidean length of ``vector``."""
    return math.sqrt(sum(component * component for component in vector))


def unit_vector(vector: Sequence[float]) -> tuple[float, ...]:
    """Return ``vector`` scaled to unit length; a zero vector stays zero."""
    length = vector_abs(vector)
    if length == 0.0:
        return tuple(0.0 for _ in vector)
    return tuple(component / length for component in vector)


def point_in_obstacle(obstacle: Obstacle, point: Sequence[float]) -> bool:
    """Tell whether ``point`` lies inside the obstacle (even-odd ray casting)."""
    px, py = point[0], point[1]
    inside = False
    points = obstacle.points
    for (xi, yi), (xj, yj) in zip(points, points[-1:] + points[:-1]):
        if (yi > py) != (yj > py) and px < (xj - xi) * (py - yi) / (yj - yi) + xi:
            inside = not inside
    return inside


def _distance_2d(first: Sequence[float], second: Sequence[float]) -> float:
    return math.hypot(first[0] - second[0], first[1] - second[1])


def _in_shadow(start: Sequence[float], end: Sequence[float], point: Sequence[float]) -> bool:
    """Tell whether ``point`` projects onto the segment between ``start`` and ``end``."""
    ex, ey = end[0] - start[0], end[1] - start[1]
    length_sq = ex * ex + ey * ey
    if length_sq == 0.0:
        return False
    t = ((point[0] - start[0]) * ex + (point[1] - start[1]) * ey) / length_sq
    return 0.0 <= t <= 1.0


def _distance_from_line(
    point: Sequence[float], start: Sequence[float], end: Sequence[float]
) -> float:
    ex, ey = end[0] - start[0], end[1] - start[1]
    length = math.hypot(ex, ey)
    return abs(ex * (start[1] - point[1]) - ey * (start[0] - point[0])) / length


def nearest_point_of_obstacle(
    obstacle: Obstacle, point: Sequence[float]
) -> tuple[Vector, float]:
    """Return the nearest point of the obstacle's boundary and the signed distance to it.

    The distance is negative when ``point`` is inside the obstacle. The result
    is exact for convex polygons.
    """
    if not obstacle.points:
        raise ValueError("obstacle has no vertices")

    nearest_vertex = min(obstacle.points, key=lambda vertex: _distance_2d(point, vertex))
    vertex_distance = _distance_2d(point, nearest_vertex)

    edge_distance = math.inf
    nearest_edge = None
    for start, end in obstacle.edges():
        if _in_shadow(start, end, point):
            distance = _distance_from_line(point, start, end)
            if distance < edge_distance:
                edge_distance = distance
                nearest_edge = (start, end)

    if nearest_edge is None or vertex_distance <= edge_distance:
        nearest: Vector = (nearest_vertex[0], nearest_vertex[1], 0.0)
        distance = vertex_distance
    else:
        start, end = nearest_edge
        ux, uy = unit_vector((end[0] - start[0], end[1] - start[1]))
        projection = (point[0] - start[0]) * ux + (point[1] - start[1]) * uy
        nearest = (start[0] + ux * projection, start[1] + uy * projection, 0.0)
        distance = edge_distance

    sign = -1.0 if point_in_obstacle(obstacle, point) else 1.0
    return nearest, sign * distance