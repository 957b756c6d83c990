"""Simulation clock: frame deltas, elapsed simulated time and timeouts."""
from __future__ import annotations

from dataclasses import dataclass, field
import heapq
import itertools
from typing import Callable, List, Optional, Set

TimeoutFunction = Callable[[], None]


@dataclass(frozen=True)
class TimingInfo:
    """What one frame looks like to the controllers stepped inside it.

    ``timestamp`` is the host frame time in milliseconds; ``elapsed`` is the
    simulated time in milliseconds once this frame completes; ``dt`` is the
    frame's simulated delta in seconds.
    """

    timestamp: float
    elapsed: float
    dt: float
    step_count: int


@dataclass(order=True)
class _Timeout:
    due: float
    seq: int
    callback: TimeoutFunction = field(compare=False)


class TimeController:
    """Accumulates simulated time only while frames are being committed."""

    def __init__(self, *, max_frame_delta_ms: float = 1000.0 / 30.0) -> None:
        self.max_frame_delta_ms = max_frame_delta_ms
        self._seq = itertools.count()
        self.reset()

    def reset(self) -> None:
        self._elapsed = 0.0
        self._last_timestamp: Optional[float] = None
        self._dt_ms = 0.0
        self._step_count = 0
        self._timeouts: List[_Timeout] = []
        self._cancelled: Set[int] = set()

    @property
    def dt(self) -> float:
        """Delta of the last committed frame, in milliseconds."""
        return self._dt_ms

    @property
    def step_count(self) -> int:
        return self._step_count

    def _delta_ms(self, timestamp: float) -> float:
        if self._last_timestamp is None:
            return 0.0
        return max(0.0, min(timestamp - self._last_timestamp, self.max_frame_delta_ms))

    def frame(self, timestamp: float) -> TimingInfo:
        """Preview the frame ending at ``timestamp`` without committing it."""
        delta = self._delta_ms(timestamp)
        return TimingInfo(
            timestamp=timestamp,
            elapsed=self._elapsed + delta,
            dt=delta / 1000.0,
            step_count=self._step_count + 1,
        )

    def step(self, timestamp: float) -> None:
        """Commit the frame ending at ``timestamp`` and fire due timeouts."""
        delta = self._delta_ms(timestamp)
        self._dt_ms = delta
        self._elapsed += delta
        self._last_timestamp = timestamp
        self._step_count += 1
        self._fire_due()

    def pause(self) -> None:
        # Next frame after resume starts a fresh delta instead of spanning the pause.
        self._last_timestamp = None

    def get_elapsed_time(self) -> float:
        return self._elapsed

    def get_frame_time(self) -> float:
        return self._dt_ms / 1000.0

    def set_timeout(self, callback: TimeoutFunction, delay: float) -> int:
        """Run ``callback`` once ``delay`` simulated milliseconds have elapsed."""
        seq = next(self._seq)
        heapq.heappush(self._timeouts, _Timeout(self._elapsed + max(0.0, delay), seq, callback))
        return seq

    def clear_timeout(self, handle: int) -> None:
        if any(t.seq == handle for t in self._timeouts):
            self._cancelled.add(handle)

    def pending_timeouts(self) -> int:
        return sum(1 for t in self._timeouts if t.seq not in self._cancelled)

    def _fire_due(self) -> None:
        while self._timeouts and self._timeouts[0].due <= self._elapsed:
            timeout = heapq.heappop(self._timeouts)
            if timeout.seq in self._cancelled:
                self._cancelled.discard(timeout.seq)
                continue
            timeout.callback()


__all__ = ["TimingInfo", "TimeController", "TimeoutFunction"]
