"""Playback buffer tracking for the ABR simulation.

The buffer level is measured in *seconds* of downloaded but not yet played
content.  Each simulated segment adds its playback duration and the time spent
downloading it is drained by playback::

    L' = clamp(L + added - consumed, 0, max_level)

A download that outlasts the buffered content stalls playback; the stall is
modelled as the level clamping to zero, not as an error.
"""

import enum
from typing import Optional

from abrsim.errors import ConfigurationError


class BufferClassification(enum.Enum):
    PANIC = "panic"
    LOW = "low"
    HEALTHY = "healthy"

    def __str__(self) -> str:
        return self.value


class BufferState:
    """Playback buffer with panic/target thresholds and stall accounting.

    Parameters
    ----------
    target_level : float
        Desired steady-state buffer level in seconds (default 20.0).
    panic_level : float
        Level below which the client must downgrade (default 5.0).  Must be
        strictly below ``target_level``.
    initial_level : float
        Starting buffer fill in seconds (default 0.0).
    max_level : float or None
        Buffer capacity in seconds; ``None`` means unbounded.
    """

    def __init__(
        self,
        target_level: float = 20.0,
        panic_level: float = 5.0,
        initial_level: float = 0.0,
        max_level: Optional[float] = None,
    ) -> None:
        if target_level <= 0:
            raise ConfigurationError("target_level must be positive")
        if panic_level <= 0:
            raise ConfigurationError("panic_level must be positive")
        if panic_level >= target_level:
            raise ConfigurationError(
                f"panic_level ({panic_level}) must be below "
                f"target_level ({target_level})"
            )
        if initial_level < 0:
            raise ConfigurationError("initial_level must be >= 0")
        if max_level is not None and max_level < target_level:
            raise ConfigurationError("max_level must be >= target_level")

        self.target_level = target_level
        self.panic_level = panic_level
        self.max_level = max_level
        self.initial_level = initial_level

        self.current_level: float = self._cap(initial_level)
        self.stall_count: int = 0
        self.total_stall_time_s: float = 0.0
        self.last_stall_s: float = 0.0
        self.startup_delay_s: float = 0.0
        self.playing: bool = self.current_level > 0.0

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    def advance(
        self, playback_seconds_added: float, time_elapsed_consumed: float
    ) -> "BufferState":
        """Add downloaded content and drain the time spent obtaining it.

        Returns the buffer itself so calls can be chained.
        """
        if playback_seconds_added < 0 or time_elapsed_consumed < 0:
            raise ValueError("buffer advance amounts must be non-negative")

        # Time spent before playback first starts is startup delay, not a stall
        stall = max(0.0, time_elapsed_consumed - self.current_level)
        if not self.playing:
            self.startup_delay_s += stall
            stall = 0.0
        self.last_stall_s = stall
        if stall > 0.0:
            self.stall_count += 1
            self.total_stall_time_s += stall

        level = self.current_level + playback_seconds_added - time_elapsed_consumed
        self.current_level = self._cap(max(0.0, level))
        if self.current_level > 0.0:
            self.playing = True
        return self

    def classify(self) -> BufferClassification:
        if self.current_level < self.panic_level:
            return BufferClassification.PANIC
        if self.current_level < self.target_level:
            return BufferClassification.LOW
        return BufferClassification.HEALTHY

    @property
    def is_healthy(self) -> bool:
        return self.classify() is BufferClassification.HEALTHY

    def reset(self) -> None:
        """Restore the initial level and clear stall statistics."""
        self.current_level = self._cap(self.initial_level)
        self.stall_count = 0
        self.total_stall_time_s = 0.0
        self.last_stall_s = 0.0
        self.startup_delay_s = 0.0
        self.playing = self.current_level > 0.0

    def __repr__(self) -> str:
        return (
            f"BufferState({self.current_level:.2f}s, "
            f"target={self.target_level}, panic={self.panic_level})"
        )

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _cap(self, level: float) -> float:
        if self.max_level is None:
            return level
        return min(level, self.max_level)
