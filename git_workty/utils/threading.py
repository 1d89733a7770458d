"""Threading utilities: worker-count sizing and an order-preserving parallel map."""

import os
import sys
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Optional, Sequence, TypeVar

T = TypeVar("T")
R = TypeVar("R")


def is_free_threading_enabled() -> bool:
    """True on a free-threaded interpreter (3.13+ built and run without the GIL)."""
    gil_enabled = getattr(sys, "_is_gil_enabled", None)
    return gil_enabled is not None and not gil_enabled()


def get_optimal_worker_count(user_specified: Optional[int] = None) -> int:
    """Worker pool size: the user's choice, else sized from the CPU count."""
    if user_specified is not None and user_specified > 0:
        return user_specified

    cpu_count = os.cpu_count() or 1

    if is_free_threading_enabled():
        return min(64, cpu_count * 2)

    # Work is I/O-bound (one git process per task): CPU_count + 4, capped
    return min(32, cpu_count + 4)


def parallel_map(
    func: Callable[[T], R],
    items: Sequence[T],
    max_workers: Optional[int] = None,
    sequential: bool = False,
) -> list[R]:
    """Apply ``func`` to every item concurrently and return results in input order.

    The pool never has more workers than items. Exceptions raised by ``func``
    propagate to the caller.
    """
    if not items:
        return []

    if sequential or len(items) == 1:
        return [func(item) for item in items]

    workers = min(len(items), get_optimal_worker_count(max_workers))
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="workty") as executor:
        return list(executor.map(func, items))
