"""System sampler boundary and the psutil-backed default."""
import os
from typing import Protocol, runtime_checkable

import psutil

_MB = 1024 * 1024


@runtime_checkable
class SystemSampler(Protocol):
    def cpu(self) -> float: ...
    def memory(self) -> float: ...
    def heap(self) -> float: ...


class PsutilSampler:
    """Samples the current process.

    cpu is user CPU time in milliseconds, memory is RSS in MB and heap is
    the process's unique set size (memory private to it) in MB.
    """

    def __init__(self, pid=None):
        self._process = psutil.Process(pid or os.getpid())

    def cpu(self):
        return self._process.cpu_times().user * 1000.0

    def memory(self):
        return self._process.memory_info().rss / _MB

    def heap(self):
        try:
            return self._process.memory_full_info().uss / _MB
        except psutil.AccessDenied:
            return self._process.memory_info().rss / _MB
