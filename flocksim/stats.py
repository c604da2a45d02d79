"""Flock statistics: clusters, velocity correlation and distance from the arena."""

from __future__ import annotations

import math
import os
from dataclasses import dataclass
from enum import Enum
from typing import Sequence, TextIO

from flocksim.geometry import unit_vector

_HUGE = 2e222

Matrix = Sequence[Sequence[float]]


class SaveMode(Enum):
    """How statistics are written: every step, or time-averaged at the end."""

    TIMELINE = "timeline"
    STAT = "stat"
    STEADYSTAT = "steadystat"


@dataclass(frozen=True)
class ClusterStats:
    """Cluster sizes, velocity correlation and received power inside clusters."""

    avg_corr: float = 0.0
    var_corr: float = 0.0
    min_corr: float = 0.0
    max_corr: float = 0.0
    avg_rp: float = 0.0
    var_rp: float = 0.0
    min_rp: float = 0.0
    max_rp: float = 0.0
    min_cluster_size: int = 0
    max_cluster_size: int = 0
    agents_not_in_cluster: int = 0
    number_of_clusters: int = 0

    @property
    def std_corr(self) -> float:
        return math.sqrt(max(self.var_corr, 0.0))

    @property
    def std_rp(self) -> float:
        return math.sqrt(max(self.var_rp, 0.0))


@dataclass(frozen=True)
class ArenaDistanceStats:
    """Distances of the agents that are outside the arena."""

    avg: float = 0.0
    var: float = 0.0
    minimum: float = 0.0
    maximum: float = 0.0
    outside: int = 0

    @property
    def std(self) -> float:
        return math.sqrt(max(self.var, 0.0))


def construct_adjacency(
    coordinates: Sequence[Sequence[float]], communication_range: float
) -> list[list[int]]:
    """Return the symmetric 0/1 matrix of agent pairs closer than the range."""
    points = [tuple(float(c) for c in point) for point in coordinates]
    count = len(points)
    adjacency = [[0] * count for _ in range(count)]
    for i, first in enumerate(points):
        for j in range(i):
            linked = 1 if math.dist(first, points[j]) < communication_range else 0
            adjacency[i][j] = adjacency[j][i] = linked
    return adjacency


def _communication_type(communication_type: float) -> int:
    kind = int(communication_type)
    if kind not in (0, 1, 2):
        raise ValueError(f"unknown communication type: {communication_type}")
    return kind


def _linked(matrix: Matrix, i: int, k: int, kind: int, threshold: float) -> bool:
    if kind == 0:
        return matrix[i][k] == 1
    return matrix[i][k] >= threshold or matrix[k][i] >= threshold


def cluster_members(
    start: int,
    matrix: Matrix,
    communication_type: float,
    sensitivity_threshold: float = 0.0,
) -> list[int]:
    """Return the sorted indices of the agents reachable from ``start``.

    With communication type 0 ``matrix`` is a 0/1 adjacency matrix; with types
    1 and 2 it holds received powers, and a link exists where either direction
    reaches ``sensitivity_threshold``.
    """
    kind = _communication_type(communication_type)
    count = len(matrix)
    if not 0 <= start < count:
        raise IndexError(f"agent index out of range: {start}")
    visited = {start}
    pending = [start]
    while pending:
        current = pending.pop()
        for other in range(count):
            if other not in visited and _linked(
                matrix, current, other, kind, sensitivity_threshold
            ):
                visited.add(other)
                pending.append(other)
    return sorted(visited)


def cluster_statistics(
    velocities: Sequence[Sequence[float]],
    laplacian: Matrix,
    adjacency: Matrix | None,
    communication_type: float,
    sensitivity_threshold: float = 0.0,
) -> ClusterStats:
    """Compute cluster sizes and in-cluster correlation and power statistics.

    Correlation is the scalar product of unit velocities; received power is
    read from ``laplacian``. Clusters follow ``adjacency`` for communication
    type 0 and ``laplacian`` otherwise.
    """
    kind = _communication_type(communication_type)
    if kind == 0:
        if adjacency is None:
            raise ValueError("communication type 0 needs an adjacency matrix")
        matrix = adjacency
    else:
        matrix = laplacian

    count = len(velocities)
    unlabelled = set(range(count))
    number_of_clusters = 0
    agents_not_in_cluster = 0
    min_size = 0
    max_size = 0

    pairs = 0
    sum_corr = sq_corr = sum_rp = sq_rp = 0.0
    min_corr = min_rp = _HUGE
    max_corr = 0.0
    max_rp = -_HUGE

    for i in range(count):
        members = cluster_members(i, matrix, kind, sensitivity_threshold)
        size = len(members)

        if unlabelled and unlabelled.intersection(members):
            unlabelled.difference_update(members)
            number_of_clusters += 1

        own_direction = unit_vector(velocities[i])
        for j in members:
            if j >= i:
                break
            corr = sum(a * b for a, b in zip(own_direction, unit_vector(velocities[j])))
            power = laplacian[i][j]
            sum_corr += corr
            sq_corr += corr * corr
            sum_rp += power
            sq_rp += power * power
            max_corr = max(max_corr, corr)
            max_rp = max(max_rp, power)
            min_corr = min(min_corr, corr)
            min_rp = min(min_rp, power)
            pairs += 1

        if size >= max_size:
            max_size = size
        # A smaller cluster replaces the minimum only when it is at least two agents smaller.
        if min_size == 0 or size + 1 < min_size:
            min_size = size

        if size <= 1:
            agents_not_in_cluster += 1

    if pairs:
        avg_corr = sum_corr / pairs
        var_corr = sq_corr / pairs - avg_corr * avg_corr
        avg_rp = sum_rp / pairs
        var_rp = sq_rp / pairs - avg_rp * avg_rp
    else:
        avg_corr = var_corr = min_corr = max_corr = 0.0
        avg_rp = var_rp = min_rp = max_rp = 0.0

    return ClusterStats(
        avg_corr=avg_corr,
        var_corr=max(var_corr, 0.0),
        min_corr=min_corr,
        max_corr=max_corr,
        avg_rp=avg_rp,
        var_rp=var_rp,
        min_rp=min_rp,
        max_rp=max_rp,
        min_cluster_size=min_size,
        max_cluster_size=max_size,
        agents_not_in_cluster=agents_not_in_cluster,
        number_of_clusters=number_of_clusters,
    )


def _as_3d(vector: Sequence[float]) -> tuple[float, float, float]:
    components = [float(c) for c in vector[:3]]
    components += [0.0] * (3 - len(components))
    return components[0], components[1], components[2]


def distance_from_arena(
    point: Sequence[float], center: Sequence[float], radius: float, shape: float
) -> float:
    """Return how far ``point`` lies outside the arena; zero inside it.

    Shape 0 is a sphere of ``radius``; shape 1 is a cube of half-edge ``radius``.
    The arena centre lies on the plane z = 0.
    """
    cx, cy = float(center[0]), float(center[1])
    difference = [c - p for c, p in zip((cx, cy, 0.0), _as_3d(point))]
    if shape == 0:
        distance = math.sqrt(sum(c * c for c in difference))
        return distance - radius if distance > radius else 0.0
    if shape == 1:
        from_side = [
            0.0 if -radius < c < radius else abs(c) - radius for c in difference
        ]
        return math.sqrt(sum(c * c for c in from_side))
    raise ValueError(f"unknown arena shape: {shape}")


def arena_distance_statistics(
    coordinates: Sequence[Sequence[float]],
    center: Sequence[float],
    radius: float,
    shape: float,
) -> ArenaDistanceStats:
    """Summarise the distances of the agents outside the arena."""
    distances = [
        d
        for d in (distance_from_arena(p, center, radius, shape) for p in coordinates)
        if d > 0.0
    ]
    if not distances:
        return ArenaDistanceStats()
    count = len(distances)
    avg = sum(distances) / count
    var = sum(d * d for d in distances) / count - avg * avg
    return ArenaDistanceStats(
        avg=avg,
        var=max(var, 0.0),
        minimum=min(distances),
        maximum=max(distances),
        outside=count,
    )


def _divide(numerator: float, denominator: float) -> float:
    if denominator == 0:
        if numerator == 0 or math.isnan(numerator):
            return math.nan
        return math.copysign(math.inf, numerator)
    return numerator / denominator


@dataclass
class _TimeAverage:
    total: float = 0.0
    squares: float = 0.0

    def add(self, value: float, delta_t: float) -> None:
        self.total += value * delta_t
        self.squares += value * value * delta_t

    def mean(self, duration: float) -> float:
        return _divide(self.total, duration)

    def stdev(self, duration: float) -> float:
        mean = self.mean(duration)
        variance = _divide(self.squares, duration) - mean * mean
        if variance < 0.0:
            variance = 0.0
        return math.sqrt(variance)


_ARENA_FILE = "distance_from_arena.dat"
_CORR_FILE = "cluster_dependent_correlation.dat"
_CLUSTER_FILE = "cluster_parameters.dat"
_RP_FILE = "cluster_dependent_received_power.dat"

_STDEV_FILES = {
    _ARENA_FILE: "distance_from_arena_stdev.dat",
    _CORR_FILE: "cluster_dependent_correlation_stdev.dat",
    _CLUSTER_FILE: "cluster_parameters_stdev.dat",
    _RP_FILE: "cluster_dependent_received_power_stdev.dat",
}

_ARENA_TIMELINE_HEADER = (
    "time_(s)\tdistance_from_arena_avg_(cm)\tdistance_from_arena_stdev_(cm)"
    "\tdistance_from_arena_min_(cm)\tdistance_from_arena_max_(cm)\tnumber_of_agents_outside\n"
)
_ARENA_STAT_HEADER = (
    "time_elapsed_near_arena_(s)\tdistance_from_arena_avg_(cm)\tdistance_from_arena_stdev_(cm)"
    "\tdistance_from_arena_min_(cm)\tdistance_from_arena_max_(cm)\tnumber_of_agents_outside\n"
)
_CORR_HEADER = (
    "time_(s)\tcluster_dependent_correlation_avg\tcluster_dependent_correlation_stdev"
    "\tcluster_dependent_correlation_min\tcluster_dependent_correlation_max\n"
)
_CLUSTER_HEADER = (
    "time_(s)\tmin_cluster_size\tmax_cluster_size\tagents_not_in_cluster\tnumber_of_clusters\n"
)
_CLUSTER_STDEV_HEADER = "time_(s)\tmin_cluster_size\tmax_cluster_size\tagents_not_in_cluster\n"
_RP_HEADER = (
    "time_(s)\tcluster_dependent_received_power_avg\tcluster_dependent_received_power_stdev"
    "\tcluster_dependent_received_power_min\tcluster_dependent_received_power_max\n"
)

_STDEV_NOTES = {
    _ARENA_FILE: "distance_from_arena.dat",
    _CORR_FILE: "cluster_dependent_parameters.dat",
    _CLUSTER_FILE: "cluster_parameters.dat",
    _RP_FILE: "cluster_dependent_received_power.dat",
}


def _fields(*values: float) -> str:
    return "\t".join(f"{value:f}" for value in values)


class StatsRecorder:
    """Writes model statistics files into a directory.

    In TIMELINE mode every call to :meth:`record` writes lines; in STAT and
    STEADYSTAT modes values are time-averaged and written by :meth:`close`.
    """

    def __init__(self, directory: str | os.PathLike, save_mode: SaveMode = SaveMode.TIMELINE):
        self.directory = os.fspath(directory)
        self.save_mode = SaveMode(save_mode)
        self._handles: dict[str, TextIO] = {}
        self._last_elapsed = 0.0
        self._last_steady = 0.0
        self.time_near_arena = 0.0
        self._arena = {key: _TimeAverage() for key in ("avg", "std", "min", "max")}
        self._outside = _TimeAverage()
        self._corr = {key: _TimeAverage() for key in ("avg", "std", "min", "max")}
        self._rp = {key: _TimeAverage() for key in ("avg", "std", "min", "max")}
        self._sizes = {key: _TimeAverage() for key in ("min", "max", "independent")}

    @property
    def averaging(self) -> bool:
        return self.save_mode in (SaveMode.STAT, SaveMode.STEADYSTAT)

    def open(self) -> "StatsRecorder":
        """Create the output files and write their headers."""
        if self._handles:
            raise RuntimeError("statistics files are already open")
        try:
            for name in (_ARENA_FILE, _CORR_FILE, _CLUSTER_FILE, _RP_FILE):
                self._open_file(name)
            if not self.averaging:
                self._write(_ARENA_FILE, _ARENA_TIMELINE_HEADER)
            self._write(_CORR_FILE, _CORR_HEADER)
            self._write(_CLUSTER_FILE, _CLUSTER_HEADER)
            self._write(_RP_FILE, _RP_HEADER)
            if self.averaging:
                self._write(_ARENA_FILE, _ARENA_STAT_HEADER)
                for name, stdev_name in _STDEV_FILES.items():
                    self._open_file(stdev_name)
                    self._write(
                        stdev_name,
                        "This file contains standard deviations. Check out "
                        f'"{_STDEV_NOTES[name]}" for more details!\n',
                    )
                self._write(_STDEV_FILES[_ARENA_FILE], _ARENA_STAT_HEADER)
                self._write(_STDEV_FILES[_CORR_FILE], _CORR_HEADER)
                self._write(_STDEV_FILES[_CLUSTER_FILE], _CLUSTER_STDEV_HEADER)
                self._write(_STDEV_FILES[_RP_FILE], _RP_HEADER)
        except BaseException:
            self._close_handles()
            raise
        self.time_near_arena = 0.0
        return self

    def _open_file(self, name: str) -> None:
        self._handles[name] = open(
            os.path.join(self.directory, name), "w", encoding="utf-8"
        )

    def _write(self, name: str, text: str) -> None:
        self._handles[name].write(text)

    def _require_open(self) -> None:
        if not self._handles:
            raise RuntimeError("statistics files are not open")

    def record(
        self,
        elapsed_time: float,
        delta_t: float,
        start_of_steady_state: float,
        arena_stats: ArenaDistanceStats,
        cluster_stats: ClusterStats,
    ) -> None:
        """Write or accumulate one time step's statistics."""
        self._require_open()
        self._last_elapsed = elapsed_time
        self._last_steady = start_of_steady_state
        arena = arena_stats
        cluster = cluster_stats

        if self.save_mode is SaveMode.TIMELINE:
            if arena.avg > 0.0 or elapsed_time == 0.0:
                self._write(
                    _ARENA_FILE,
                    _fields(elapsed_time, arena.avg, arena.std, arena.minimum, arena.maximum)
                    + f"\t{arena.outside:d}\n",
                )
        elif (
            self.save_mode is not SaveMode.STEADYSTAT
            or elapsed_time > start_of_steady_state
        ):
            if arena.avg > 0.0 or self._outside.total == 0.0:
                self._arena["avg"].add(arena.avg, delta_t)
                self._arena["std"].add(arena.std, delta_t)
                self._arena["min"].add(arena.minimum, delta_t)
                self._arena["max"].add(arena.maximum, delta_t)
                self._outside.add(arena.outside, delta_t)
                self.time_near_arena += delta_t

        if self.save_mode is SaveMode.TIMELINE:
            self._write(
                _CORR_FILE,
                _fields(
                    elapsed_time,
                    cluster.avg_corr,
                    cluster.std_corr,
                    cluster.min_corr,
                    cluster.max_corr,
                )
                + "\n",
            )
            self._write(
                _CLUSTER_FILE,
                f"{elapsed_time:f}\t{cluster.min_cluster_size:d}\t{cluster.max_cluster_size:d}"
                f"\t{cluster.agents_not_in_cluster:d}\t{cluster.number_of_clusters:d}\n",
            )
            self._write(
                _RP_FILE,
                _fields(
                    elapsed_time, cluster.avg_rp, cluster.std_rp, cluster.min_rp, cluster.max_rp
                )
                + "\n",
            )
        else:
            self._corr["avg"].add(cluster.avg_corr, delta_t)
            self._corr["std"].add(cluster.std_corr, delta_t)
            self._corr["min"].add(cluster.min_corr, delta_t)
            self._corr["max"].add(cluster.max_corr, delta_t)
            self._sizes["min"].add(cluster.min_cluster_size, delta_t)
            self._sizes["max"].add(cluster.max_cluster_size, delta_t)
            self._sizes["independent"].add(cluster.agents_not_in_cluster, delta_t)
            self._rp["avg"].add(cluster.avg_rp, delta_t)
            self._rp["std"].add(cluster.std_rp, delta_t)
            self._rp["min"].add(cluster.min_rp, delta_t)
            self._rp["max"].add(cluster.max_rp, delta_t)

    def _write_summary(self, elapsed_time: float, start_of_steady_state: float) -> None:
        duration = elapsed_time
        if self.save_mode is SaveMode.STEADYSTAT:
            duration -= start_of_steady_state
        near = self.time_near_arena
        order = ("avg", "std", "min", "max")

        self._write(
            _CORR_FILE,
            _fields(duration, *(self._corr[k].mean(duration) for k in order)) + "\n",
        )
        self._write(
            _CLUSTER_FILE,
            _fields(
                duration,
                *(self._sizes[k].mean(duration) for k in ("min", "max", "independent")),
            )
            + "\n",
        )
        self._write(
            _RP_FILE,
            _fields(duration, *(self._rp[k].mean(duration) for k in order)) + "\n",
        )
        self._write(
            _ARENA_FILE,
            _fields(near, *(self._arena[k].mean(near) for k in order))
            + "\t"
            + f"{self._outside.mean(near):f}\n",
        )

        self._write(
            _STDEV_FILES[_CORR_FILE],
            _fields(duration, *(self._corr[k].stdev(duration) for k in order)) + "\n",
        )
        self._write(
            _STDEV_FILES[_RP_FILE],
            _fields(duration, *(self._rp[k].stdev(duration) for k in order)) + "\n",
        )
        self._write(
            _STDEV_FILES[_CLUSTER_FILE],
            _fields(
                duration,
                *(self._sizes[k].stdev(duration) for k in ("min", "max", "independent")),
            )
            + "\n",
        )
        self._write(
            _STDEV_FILES[_ARENA_FILE],
            _fields(
                near,
                *(self._arena[k].stdev(near) for k in order),
                self._outside.stdev(near),
            )
            + "\n",
        )

    def close(self, elapsed_time: float, start_of_steady_state: float = 0.0) -> None:
        """Write the time averages (in averaging modes) and close every file."""
        self._require_open()
        try:
            if self.averaging:
                self._write_summary(elapsed_time, start_of_steady_state)
        finally:
            self._close_handles()

    def _close_handles(self) -> None:
        for handle in self._handles.values():
            handle.close()
        self._handles.clear()

    def __enter__(self) -> "StatsRecorder":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        if not self._handles:
            return
        if exc_type is None:
            self.close(self._last_elapsed, self._last_steady)
        else:
            self._close_handles()