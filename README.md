# flocksim

Building blocks for simulating flocks of flying robots: polygonal obstacle
geometry, a simple robot dynamics model, colour schemes read from files, and
statistics about clusters and arena boundaries. It has no dependencies beyond
the standard library.

## Modules

- `flocksim.geometry` – `Obstacle` (a polygon in the XY plane),
  `point_in_obstacle` (even-odd ray casting), `nearest_point_of_obstacle`
  (nearest boundary point and a signed distance, negative inside; exact for
  convex polygons), `unit_vector` and `vector_abs`.
- `flocksim.dynamics` – `pid_velocity` relaxes a velocity towards a preferred
  one with separate XY and Z time constants; `saturate_acceleration` clips the
  change of velocity to a maximal acceleration and reports the acceleration;
  `add_noise` adds Gaussian white noise; `initial_wind` and `step_wind` give a
  wind vector and its random walk. Random functions take an optional
  `random.Random`.
- `flocksim.stepping` – `step_positions` (Euler step of all agents),
  `step_target` (a randomly wandering target on z = 0), `is_gps_tick` and
  `delay_steps` (GPS period and delay in whole time steps) and
  `obstacle_loss`, which returns an `ObstacleLoss` with the path length
  between two obstacle crossings and its loss of 40·log10(distance) dB.
- `flocksim.colors` – `ColorConfig` with the default scheme
  (`ColorConfig.for_agents`, `set_agent_color`, `reset_agents_color`),
  `load_color_config` for `name=value` files (`background_r`, `agents_g`,
  `agent_3_b`, …; lines starting with `;` or `#` are comments),
  `ModelSpecificColor` and `apply_model_specific_color` for extra named
  colours, `hsv_to_rgb` for 0–255 HSV input and `lerp_color`.
- `flocksim.stats` – `construct_adjacency`, `cluster_members` and
  `cluster_statistics` (cluster sizes, velocity correlation and received power
  inside clusters, as `ClusterStats`), `distance_from_arena` and
  `arena_distance_statistics` (as `ArenaDistanceStats`) for spherical
  (shape 0) or cubic (shape 1) arenas, and `StatsRecorder`, a context manager
  that writes `.dat` files either line by line (`SaveMode.TIMELINE`) or as
  time averages and standard deviations when closed (`SaveMode.STAT`,
  `SaveMode.STEADYSTAT`).

## Installation

```
pip install .
```

For running the tests:

```
pip install .[test]
pytest
```

## Example

```python
from flocksim.geometry import Obstacle, nearest_point_of_obstacle, point_in_obstacle
from flocksim.dynamics import pid_velocity, saturate_acceleration
from flocksim.stats import SaveMode, StatsRecorder, arena_distance_statistics, cluster_statistics, construct_adjacency

square = Obstacle([(0.0, 0.0), (10.0, 0.0), (10.0, 10.0), (0.0, 10.0)])
print(point_in_obstacle(square, (5.0, 5.0)))          # True
print(nearest_point_of_obstacle(square, (5.0, -3.0)))  # ((5.0, 0.0, 0.0), 3.0)

velocity = pid_velocity((0, 0, 0), (400, 0, 0), (0, 0, 0),
                        delta_t=0.1, tau_xy=1.0, tau_z=1.0)   # (40.0, 0.0, 0.0)
velocity, acceleration = saturate_acceleration((0, 0, 0), velocity,
                                               a_max=250.0, delta_t=0.1)

coordinates = [(0, 0, 0), (500, 0, 0), (9000, 0, 0)]
velocities = [(1, 0, 0), (1, 0, 0), (0, 1, 0)]
adjacency = construct_adjacency(coordinates, communication_range=1000.0)
clusters = cluster_statistics(velocities, adjacency, adjacency, communication_type=0)
arena = arena_distance_statistics(coordinates, center=(0, 0), radius=5000.0, shape=0)

with StatsRecorder("out", SaveMode.STAT) as recorder:
    recorder.record(0.1, 0.1, 0.0, arena, clusters)
```

Lengths are in centimetres and times in seconds.

## What it does not do

flocksim has no simulation driver: it does not compute flocking forces or
preferred velocities, does not hold a parameter set for a flocking model, and
does not read arena or obstacle files. There is no visualisation and no
command-line program; the pieces above are meant to be called from your own
simulation loop.