"""
Age of Conflict simulation core.

Deterministic world generation, region partitioning and a turn-based
faction simulation, exposed to renderers through snapshots and a small
HTTP API.
"""

__version__ = "0.1.0"
