"""Runtime bookkeeping shared by the matrix layer.

Keeps a thread-local kernel trace (the tag of the last dispatched kernel) and a
process-wide counter of backing stores ever allocated.
"""

from __future__ import annotations

import threading


class Runtime:
    def __init__(self) -> None:
        self._trace = threading.local()
        self._alloc_lock = threading.Lock()
        self._store_allocations = 0

    def note_store_allocated(self) -> None:
        with self._alloc_lock:
            self._store_allocations += 1

    def store_allocations(self) -> int:
        with self._alloc_lock:
            return self._store_allocations

    def record_kernel(self, tag: str) -> None:
        self._trace.last = tag

    def last_kernel(self) -> str:
        return getattr(self._trace, "last", "")

    def clear_kernel(self) -> None:
        self._trace.last = ""


_runtime = Runtime()

note_store_allocated = _runtime.note_store_allocated
store_allocations = _runtime.store_allocations
record_kernel = _runtime.record_kernel
last_kernel = _runtime.last_kernel
clear_kernel = _runtime.clear_kernel
