"""Obstacle geometry, robot dynamics, colour schemes and swarm statistics for flocking simulations."""

__version__ = "0.1.0"

__all__ = ["colors", "dynamics", "geometry", "stats", "stepping"]