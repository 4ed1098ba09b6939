"""
Timing harness for SPONGE benchmark stages
Measures CPU and wall-clock time of a single call
"""

import os
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Tuple


@dataclass(frozen=True)
class Timing:
    """
    CPU and elapsed time of one computation, in seconds

    cpu_time follows R's system.time convention: user + system time of this
    process plus user + system time of waited-for child processes (Rscript).
    """
    cpu_time: float = 0.0
    elapsed_time: float = 0.0

    def __post_init__(self):
        if self.cpu_time < 0 or self.elapsed_time < 0:
            raise ValueError(
                f"Timing values must be non-negative, got cpu_time={self.cpu_time}, "
                f"elapsed_time={self.elapsed_time}"
            )

    def __add__(self, other: "Timing") -> "Timing":
        if not isinstance(other, Timing):
            return NotImplemented
        return Timing(
            cpu_time=self.cpu_time + other.cpu_time,
            elapsed_time=self.elapsed_time + other.elapsed_time
        )

    def to_dict(self) -> Dict[str, float]:
        return {'cputime': self.cpu_time, 'elapsedtime': self.elapsed_time}

    @classmethod
    def from_dict(cls, data: Dict[str, float]) -> "Timing":
        return cls(cpu_time=float(data['cputime']), elapsed_time=float(data['elapsedtime']))


def _cpu_seconds() -> float:
    t = os.times()
    return t.user + t.system + t.children_user + t.children_system


def time_call(func: Callable, *args, **kwargs) -> Tuple[Any, Timing]:
    """
    Run func(*args, **kwargs) and measure it

    Args:
        func: Function to time
        *args: Positional arguments for func
        **kwargs: Keyword arguments for func

    Returns:
        result: Result from func
        timing: Timing of the call

    Exceptions raised by func propagate unchanged; no timing is produced for
    a failed call.
    """
    cpu_start = _cpu_seconds()
    start_time = time.perf_counter()

    result = func(*args, **kwargs)

    elapsed = time.perf_counter() - start_time
    cpu = _cpu_seconds() - cpu_start

    # os.times() has tick resolution; clamp rounding noise
    return result, Timing(cpu_time=max(cpu, 0.0), elapsed_time=max(elapsed, 0.0))


def format_timing(timing: Timing) -> str:
    """Short human-readable form used in log lines"""
    return f"{timing.elapsed_time:.2f}s elapsed, {timing.cpu_time:.2f}s cpu"
