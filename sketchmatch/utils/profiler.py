"""Wall-clock timing for comparisons and rasterization.

Provides:
    - timer(): context manager that hands (name, seconds) to a sink
    - TimerAccumulator: count / mean / last / max over repeated runs

Used by:
    - SimilarityScorer.compare (DEBUG line per comparison)
    - DrawingSession.compare_timer (latency across a session)
    - scripts/compare_drawing.py (elapsed time in the YAML report)

Without a sink, timer() logs at DEBUG, so timings only show up when logging
is configured verbosely.
"""

import logging
import time
from contextlib import contextmanager
from typing import Callable, Dict, Optional

logger = logging.getLogger(__name__)

Sink = Callable[[str, float], None]


def _debug_sink(name: str, seconds: float) -> None:
    logger.debug(f"{name}: {seconds * 1000.0:.2f} ms")


@contextmanager
def timer(name: str, sink: Optional[Sink] = None):
    """Time the enclosed block.

    Parameters
    ----------
    name : str
        Label passed to the sink
    sink : callable, optional
        ``sink(name, seconds)``; defaults to a DEBUG log line. Called even
        when the block raises.

    Examples
    --------
    >>> timings = {}
    >>> with timer("compare", sink=timings.__setitem__):
    ...     scorer.compare(drawn, target)
    >>> timings["compare"]
    """
    t0 = time.perf_counter()
    try:
        yield
    finally:
        (sink or _debug_sink)(name, time.perf_counter() - t0)


class TimerAccumulator:
    """Running statistics over repeated timed blocks.

    Attributes
    ----------
    name : str
        Label used in repr() and as_dict()
    count : int
        Completed measurements
    total_time, last_time, max_time : float
        Seconds
    """

    def __init__(self, name: str):
        self.name = name
        self.reset()

    def reset(self) -> None:
        self.count = 0
        self.total_time = 0.0
        self.last_time = 0.0
        self.max_time = 0.0

    def record(self, seconds: float) -> None:
        self.count += 1
        self.total_time += seconds
        self.last_time = seconds
        self.max_time = max(self.max_time, seconds)

    @contextmanager
    def measure(self):
        """Time the enclosed block and record it."""
        with timer(self.name, sink=lambda _name, seconds: self.record(seconds)):
            yield

    def mean(self) -> float:
        """Mean seconds per measurement (0.0 when nothing was recorded)."""
        if self.count == 0:
            return 0.0
        return self.total_time / self.count

    def as_dict(self) -> Dict[str, float]:
        """Plain summary in milliseconds, for reports."""
        return {
            'count': self.count,
            'mean_ms': self.mean() * 1000.0,
            'last_ms': self.last_time * 1000.0,
            'max_ms': self.max_time * 1000.0,
        }

    def __repr__(self) -> str:
        return f"TimerAccumulator({self.name!r}, count={self.count}, mean={self.mean() * 1000.0:.2f}ms)"
