"""
Scroll Profiler — Compulsive Scrolling Signals

Turns a stream of (position, timestamp) scroll events into bounded
velocity/direction/dwell samples and classifies short windows of them as
rage scrolling.

The profiler is a two-state machine (idle / scrolling). Entering
`scrolling` happens on any accepted event. Leaving it is driven by a
single debounce deadline (last event + 150 ms) that every event re-arms.
There are no timers: the deadline is settled lazily on every event and
every read, so the transition happens exactly once per quiet period and
always at the same instant for the same input, whatever the read timing.

All times are milliseconds from an injectable clock.
"""

from __future__ import annotations

import threading
import time
from collections import deque
from dataclasses import dataclass
from typing import Callable, Optional

from realitycheck.models import ScrollDirection, ScrollSample, clamp

RAPID_SCROLL_THRESHOLD = 1000.0     # px/s; strictly faster counts as rapid
SCROLL_HISTORY_LIMIT = 100
SCROLL_DEBOUNCE_MS = 150.0
RECENT_WINDOW_MS = 30_000.0
RAGE_WINDOW_MS = 10_000.0
HISTORY_RETENTION_MS = 300_000.0


def monotonic_ms() -> float:
    return time.monotonic() * 1000.0


@dataclass(frozen=True)
class ScrollState:
    """Point-in-time view of the profiler."""
    is_scrolling: bool
    rapid_scroll_count: int
    current_velocity: float
    dwell_time_ms: float

    def to_dict(self) -> dict:
        return {
            "is_scrolling": self.is_scrolling,
            "rapid_scroll_count": self.rapid_scroll_count,
            "current_velocity": round(self.current_velocity, 2),
            "dwell_time_ms": round(self.dwell_time_ms, 2),
        }


def count_direction_changes(samples: list[ScrollSample]) -> int:
    return sum(
        1 for prev, cur in zip(samples, samples[1:])
        if cur.direction != prev.direction
    )


class ScrollProfiler:
    """
    Profiles scroll behavior from position events.

    Safe to share between an event producer and concurrent readers:
    state changes happen under one lock and readers get snapshot copies
    of the immutable sample history.
    """

    def __init__(
        self,
        clock: Optional[Callable[[], float]] = None,
        debounce_ms: float = SCROLL_DEBOUNCE_MS,
        rapid_threshold: float = RAPID_SCROLL_THRESHOLD,
        history_limit: int = SCROLL_HISTORY_LIMIT,
    ):
        self._clock = clock or monotonic_ms
        self.debounce_ms = debounce_ms
        self.rapid_threshold = rapid_threshold
        self._lock = threading.Lock()
        self._history: deque[ScrollSample] = deque(maxlen=history_limit)

        self._active = False
        self._paused = False
        self._scrolling = False
        self._deadline: Optional[float] = None
        self._last_position = 0.0
        self._last_time = 0.0
        self._dwell_start = 0.0
        self._rapid_count = 0

    # --- Lifecycle ---

    @property
    def is_active(self) -> bool:
        return self._active

    @property
    def is_paused(self) -> bool:
        return self._paused

    def start(self, position: float = 0.0, timestamp_ms: Optional[float] = None) -> None:
        with self._lock:
            if self._active:
                return
            now = self._clock() if timestamp_ms is None else float(timestamp_ms)
            self._active = True
            self._paused = False
            self._anchor(position, now)

    def stop(self) -> None:
        with self._lock:
            if not self._active:
                return
            self._settle(self._clock())
            self._active = False
            self._scrolling = False
            self._deadline = None

    def pause(self) -> None:
        """Page hidden: leave the scrolling state and drop the pending deadline."""
        with self._lock:
            if not self._active or self._paused:
                return
            self._paused = True
            self._scrolling = False
            self._deadline = None

    def resume(self, position: float, timestamp_ms: Optional[float] = None) -> None:
        """Page visible again: re-anchor so the gap is not read as a scroll."""
        with self._lock:
            if not self._active:
                return
            self._paused = False
            now = self._clock() if timestamp_ms is None else float(timestamp_ms)
            self._anchor(position, now)

    def _anchor(self, position: float, now: float) -> None:
        self._last_position = float(position)
        self._last_time = now
        self._dwell_start = now

    # --- Events ---

    def handle_scroll(
        self, position: float, timestamp_ms: Optional[float] = None,
    ) -> Optional[ScrollSample]:
        """
        Record one scroll event. Returns the sample, or None when the event
        was ignored (profiler stopped or paused, or no time has elapsed).
        """
        with self._lock:
            if not self._active or self._paused:
                return None

            now = self._clock() if timestamp_ms is None else float(timestamp_ms)
            self._settle(now)

            dt = now - self._last_time
            if dt <= 0:
                return None

            delta = float(position) - self._last_position
            # only a positive delta reads as downward; no movement counts as up
            direction = ScrollDirection.DOWN if delta > 0 else ScrollDirection.UP
            velocity = abs(delta) / dt * 1000.0

            if velocity > self.rapid_threshold:
                self._rapid_count += 1

            sample = ScrollSample(
                velocity=velocity,
                direction=direction,
                dwell_time_ms=0.0 if self._scrolling else now - self._dwell_start,
                rapid_scroll_count=self._rapid_count,
                timestamp_ms=now,
            )
            self._history.append(sample)

            self._scrolling = True
            self._last_position = float(position)
            self._last_time = now
            self._deadline = now + self.debounce_ms
            return sample

    def _settle(self, now: float) -> None:
        """Apply the scrolling→idle transition if its deadline has passed."""
        if self._scrolling and self._deadline is not None and now >= self._deadline:
            self._scrolling = False
            self._dwell_start = self._deadline
            self._deadline = None
            self._rapid_count = max(0, self._rapid_count - 1)

    # --- Queries ---

    def history(self) -> list[ScrollSample]:
        with self._lock:
            return list(self._history)

    def current_state(self) -> ScrollState:
        with self._lock:
            now = self._clock()
            self._settle(now)
            recent = list(self._history)[-3:]
            velocity = (
                sum(s.velocity for s in recent) / len(recent)
                if len(self._history) >= 2 else 0.0
            )
            return ScrollState(
                is_scrolling=self._scrolling,
                rapid_scroll_count=self._rapid_count,
                current_velocity=velocity,
                dwell_time_ms=(
                    0.0 if self._scrolling or not self._active
                    else max(0.0, now - self._dwell_start)
                ),
            )

    def recent_metrics(self, window_ms: float = RECENT_WINDOW_MS) -> list[ScrollSample]:
        """Samples newer than `window_ms` before now, oldest first."""
        with self._lock:
            now = self._clock()
            self._settle(now)
            cutoff = now - window_ms
            return [s for s in self._history if s.timestamp_ms > cutoff]

    def clear_old_history(self, older_than_ms: float = HISTORY_RETENTION_MS) -> int:
        """Drop samples older than the cutoff. Returns how many were removed."""
        with self._lock:
            cutoff = self._clock() - older_than_ms
            kept = [s for s in self._history if s.timestamp_ms > cutoff]
            removed = len(self._history) - len(kept)
            self._history.clear()
            self._history.extend(kept)
            return removed

    def is_rage_scrolling(self) -> bool:
        samples = self.recent_metrics(RAGE_WINDOW_MS)
        if len(samples) < 3:
            return False

        rapid_ratio = self._rapid_ratio(samples)
        reversals = count_direction_changes(samples)
        mean_dwell = sum(s.dwell_time_ms for s in samples) / len(samples)

        return (
            rapid_ratio > 0.6
            or reversals > 3
            or (mean_dwell < 500 and rapid_ratio > 0.4)
        )

    def rage_scroll_intensity(self) -> float:
        samples = self.recent_metrics(RAGE_WINDOW_MS)
        if len(samples) < 2:
            return 0.0

        rapid_ratio = self._rapid_ratio(samples)
        reversal_ratio = count_direction_changes(samples) / max(len(samples) - 1, 1)
        mean_dwell = sum(s.dwell_time_ms for s in samples) / len(samples)
        dwell_score = max(0.0, 1.0 - mean_dwell / 2000.0)

        return clamp(0.4 * rapid_ratio + 0.3 * reversal_ratio + 0.3 * dwell_score)

    def _rapid_ratio(self, samples: list[ScrollSample]) -> float:
        rapid = sum(1 for s in samples if s.velocity > self.rapid_threshold)
        return rapid / len(samples)
