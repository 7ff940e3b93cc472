"""Swarm node protocol: pheromone packets, compact frames, terrain cells, profiles and compute jobs."""

__version__ = "0.3.0"

__all__ = [
    "pheromone",
    "compact",
    "terrain_cell",
    "config",
    "compute",
    "ethernet",
]