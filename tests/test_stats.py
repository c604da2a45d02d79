import math

import pytest

from flocksim.stats import (
    ArenaDistanceStats,
    ClusterStats,
    SaveMode,
    StatsRecorder,
    arena_distance_statistics,
    cluster_members,
    cluster_statistics,
    construct_adjacency,
    distance_from_arena,
)


def _lines(path):
    return path.read_text(encoding="utf-8").splitlines()


def test_adjacency_is_symmetric_with_strict_range():
    coords = [(0.0, 0.0, 0.0), (5.0, 0.0, 0.0), (100.0, 0.0, 0.0)]
    adjacency = construct_adjacency(coords, 5.0)
    assert adjacency[0][1] == 0
    adjacency = construct_adjacency(coords, 5.5)
    assert adjacency[0][1] == adjacency[1][0] == 1
    assert adjacency[0][2] == adjacency[2][0] == 0
    assert all(adjacency[i][i] == 0 for i in range(3))


def test_cluster_members_follow_adjacency():
    adjacency = [
        [0, 1, 0, 0],
        [1, 0, 1, 0],
        [0, 1, 0, 0],
        [0, 0, 0, 0],
    ]
    assert cluster_members(0, adjacency, 0) == [0, 1, 2]
    assert cluster_members(2, adjacency, 0) == [0, 1, 2]
    assert cluster_members(3, adjacency, 0) == [3]


def test_cluster_members_power_threshold_either_direction():
    powers = [[3, -50, -90], [-80, 3, -90], [-90, -90, 3]]
    assert cluster_members(0, powers, 1, -60) == [0, 1]
    assert cluster_members(1, powers, 2, -60) == [0, 1]
    assert cluster_members(2, powers, 1, -60) == [2]


def test_cluster_members_rejects_unknown_type():
    with pytest.raises(ValueError):
        cluster_members(0, [[0]], 5)


def test_cluster_statistics_aligned_pair_and_loner():
    velocities = [(1.0, 0.0, 0.0), (2.0, 0.0, 0.0), (0.0, 1.0, 0.0)]
    adjacency = [[0, 1, 0], [1, 0, 0], [0, 0, 0]]
    laplacian = [[0, -60.0, 0], [-60.0, 0, 0], [0, 0, 0]]
    stats = cluster_statistics(velocities, laplacian, adjacency, 0)
    assert stats.avg_corr == pytest.approx(1.0)
    assert stats.var_corr == pytest.approx(0.0)
    assert stats.min_corr == pytest.approx(1.0)
    assert stats.max_corr == pytest.approx(1.0)
    assert stats.avg_rp == pytest.approx(-60.0)
    assert stats.min_rp == stats.max_rp == -60.0
    assert stats.number_of_clusters == 2
    assert stats.max_cluster_size == 2
    assert stats.agents_not_in_cluster == 1
    assert stats.min_cluster_size <= stats.max_cluster_size


def test_cluster_statistics_opposite_velocities():
    velocities = [(1.0, 0.0, 0.0), (-1.0, 0.0, 0.0)]
    adjacency = [[0, 1], [1, 0]]
    laplacian = [[0, -40.0], [-40.0, 0]]
    stats = cluster_statistics(velocities, laplacian, adjacency, 0)
    assert stats.avg_corr == pytest.approx(-1.0)
    assert stats.min_corr == pytest.approx(-1.0)
    assert stats.max_corr == 0.0
    assert stats.number_of_clusters == 1


def test_cluster_statistics_isolated_agents():
    velocities = [(1.0, 0.0, 0.0)] * 3
    adjacency = [[0] * 3 for _ in range(3)]
    stats = cluster_statistics(velocities, adjacency, adjacency, 0)
    assert stats == ClusterStats(
        min_cluster_size=stats.min_cluster_size,
        max_cluster_size=stats.max_cluster_size,
        agents_not_in_cluster=3,
        number_of_clusters=3,
    )
    assert stats.min_cluster_size == stats.max_cluster_size


def test_cluster_statistics_type_zero_needs_adjacency():
    with pytest.raises(ValueError):
        cluster_statistics([(1.0, 0.0, 0.0)], [[0]], None, 0)


def test_distance_from_sphere_arena():
    assert distance_from_arena((3.0, 4.0, 0.0), (0.0, 0.0), 10.0, 0) == 0.0
    assert distance_from_arena((17.0, 0.0, 0.0), (2.0, 0.0), 10.0, 0) == pytest.approx(5.0)


def test_distance_from_cube_arena():
    assert distance_from_arena((9.0, -9.0, 0.0), (0.0, 0.0), 10.0, 1) == 0.0
    assert distance_from_arena((13.0, 0.0, 0.0), (0.0, 0.0), 10.0, 1) == pytest.approx(3.0)
    corner = distance_from_arena((13.0, 14.0, 0.0), (0.0, 0.0), 10.0, 1)
    assert corner == pytest.approx(math.hypot(3.0, 4.0))


def test_distance_from_arena_unknown_shape():
    with pytest.raises(ValueError):
        distance_from_arena((0.0, 0.0, 0.0), (0.0, 0.0), 10.0, 2)


def test_arena_statistics_all_inside():
    stats = arena_distance_statistics([(1.0, 1.0, 0.0), (2.0, 0.0, 0.0)], (0.0, 0.0), 10.0, 0)
    assert stats == ArenaDistanceStats()


def test_arena_statistics_one_outside():
    coords = [(1.0, 1.0, 0.0), (16.0, 0.0, 0.0)]
    stats = arena_distance_statistics(coords, (0.0, 0.0), 10.0, 0)
    assert stats.outside == 1
    assert stats.avg == pytest.approx(6.0)
    assert stats.minimum == stats.maximum == pytest.approx(6.0)
    assert stats.std == pytest.approx(0.0)


def test_timeline_writes_headers_and_lines(tmp_path):
    arena = ArenaDistanceStats(avg=0.0)
    cluster = ClusterStats(min_cluster_size=1, max_cluster_size=3, agents_not_in_cluster=2,
                           number_of_clusters=4)
    with StatsRecorder(tmp_path, SaveMode.TIMELINE) as recorder:
        recorder.record(0.0, 0.1, 0.0, arena, cluster)
        recorder.record(0.1, 0.1, 0.0, arena, cluster)
    arena_lines = _lines(tmp_path / "distance_from_arena.dat")
    assert arena_lines[0].startswith("time_(s)\tdistance_from_arena_avg_(cm)")
    assert len(arena_lines) == 2
    cluster_lines = _lines(tmp_path / "cluster_parameters.dat")
    assert cluster_lines[0] == (
        "time_(s)\tmin_cluster_size\tmax_cluster_size\tagents_not_in_cluster\tnumber_of_clusters"
    )
    assert cluster_lines[1].split("\t")[1:] == ["1", "3", "2", "4"]
    assert len(_lines(tmp_path / "cluster_dependent_correlation.dat")) == 3
    assert not (tmp_path / "cluster_parameters_stdev.dat").exists()


def test_stat_mode_averages_constant_values(tmp_path):
    arena = ArenaDistanceStats(avg=2.0, var=0.0, minimum=1.5, maximum=2.5, outside=3)
    cluster = ClusterStats(avg_corr=0.5, min_corr=0.25, max_corr=0.75, avg_rp=-60.0,
                           min_rp=-70.0, max_rp=-50.0, min_cluster_size=2,
                           max_cluster_size=4, agents_not_in_cluster=1)
    recorder = StatsRecorder(tmp_path, SaveMode.STAT)
    recorder.open()
    recorder.record(0.5, 0.5, 0.0, arena, cluster)
    recorder.record(1.0, 0.5, 0.0, arena, cluster)
    recorder.close(1.0)

    corr = [float(v) for v in _lines(tmp_path / "cluster_dependent_correlation.dat")[-1].split("\t")]
    assert corr == pytest.approx([1.0, 0.5, 0.0, 0.25, 0.75])
    rp = [float(v) for v in _lines(tmp_path / "cluster_dependent_received_power.dat")[-1].split("\t")]
    assert rp == pytest.approx([1.0, -60.0, 0.0, -70.0, -50.0])
    sizes = [float(v) for v in _lines(tmp_path / "cluster_parameters.dat")[-1].split("\t")]
    assert sizes == pytest.approx([1.0, 2.0, 4.0, 1.0])
    dist = [float(v) for v in _lines(tmp_path / "distance_from_arena.dat")[-1].split("\t")]
    assert dist == pytest.approx([1.0, 2.0, 0.0, 1.5, 2.5, 3.0])

    for name in ("cluster_dependent_correlation_stdev.dat", "cluster_parameters_stdev.dat",
                 "cluster_dependent_received_power_stdev.dat", "distance_from_arena_stdev.dat"):
        lines = _lines(tmp_path / name)
        assert lines[0].startswith("This file contains standard deviations.")
        assert all(v == "0.000000" for v in lines[-1].split("\t")[1:])


def test_steadystat_skips_arena_before_steady_state(tmp_path):
    arena = ArenaDistanceStats(avg=2.0, minimum=2.0, maximum=2.0, outside=1)
    with StatsRecorder(tmp_path, SaveMode.STEADYSTAT) as recorder:
        recorder.record(1.0, 1.0, 5.0, arena, ClusterStats())
        assert recorder.time_near_arena == 0.0
        recorder.record(6.0, 1.0, 5.0, arena, ClusterStats())
        assert recorder.time_near_arena == 1.0
    first = _lines(tmp_path / "distance_from_arena.dat")[-1].split("\t")[0]
    assert first == "1.000000"


def test_record_after_close_raises(tmp_path):
    recorder = StatsRecorder(tmp_path)
    recorder.open()
    recorder.close(0.0)
    with pytest.raises(RuntimeError):
        recorder.record(0.0, 0.1, 0.0, ArenaDistanceStats(), ClusterStats())