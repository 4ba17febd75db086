"""Parallel execution utilities."""

from .executor import ParallelExecutor, parallel_map

__all__ = [
    "ParallelExecutor",
    "parallel_map",
]
