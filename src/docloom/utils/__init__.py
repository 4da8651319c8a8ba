"""Utility exports for filesystem and concurrency helpers."""

from docloom.utils.concurrency import BoundedSemaphore, WorkerPool, map_in_threads
from docloom.utils.fs import atomic_write

__all__ = [
    "BoundedSemaphore",
    "WorkerPool",
    "atomic_write",
    "map_in_threads",
]
