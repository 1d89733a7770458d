"""Utility functions for git-workty."""

from .threading import (
    is_free_threading_enabled,
    get_optimal_worker_count,
    parallel_map,
)

__all__ = [
    "is_free_threading_enabled",
    "get_optimal_worker_count",
    "parallel_map",
]
