"""Run configuration for :class:`~abrsim.streamer.AdaptiveBitrateStreamer`."""

import math
import numbers
from typing import Any, Mapping, Optional, Sequence

from abrsim.catalog import DEFAULT_LADDER, QualityCatalog
from abrsim.errors import ConfigurationError
from abrsim.estimator import EstimatorStrategy
from abrsim.network import EXHAUSTION_POLICIES, LOOP, BandwidthTrace


INT_FIELDS = ("bandwidth_window_size", "smoothing_threshold", "min_samples")
REAL_FIELDS = (
    "decay",
    "percentile",
    "safety_margin",
    "target_buffer_seconds",
    "panic_buffer_seconds",
    "segment_duration_seconds",
    "initial_bandwidth_kbps",
    "initial_buffer_seconds",
)
OPTIONAL_REAL_FIELDS = ("max_buffer_seconds", "content_duration_seconds")


def _check_int(name: str, value) -> None:
    if isinstance(value, bool) or not isinstance(value, numbers.Integral):
        raise ConfigurationError(f"{name} must be an integer, got {value!r}")


def _check_real(name: str, value) -> None:
    if (
        isinstance(value, bool)
        or not isinstance(value, numbers.Real)
        or not math.isfinite(value)
    ):
        raise ConfigurationError(f"{name} must be a finite number, got {value!r}")


class StreamerConfig:
    """Validated settings for one simulation run.

    Every check happens here so that a bad configuration fails before any
    segment is simulated.

    Parameters
    ----------
    quality_catalog : sequence of (bitrate_kbps, resolution, codec)
        Ladder definition (default :data:`~abrsim.catalog.DEFAULT_LADDER`).
    bandwidth_window_size : int
        Throughput samples kept by the estimator (default 5).
    estimator_strategy : str or EstimatorStrategy
        ``harmonic``, ``weighted``, ``percentile`` or ``conservative``
        (default ``harmonic``).
    decay : float
        Age decay for ``weighted`` (default 0.8).
    percentile : float
        Percentile for ``percentile`` (default 20.0).
    safety_margin : float
        Fraction of the estimate the selector may use (default 0.9).
    target_buffer_seconds : float
        Healthy buffer level (default 20.0).
    panic_buffer_seconds : float
        Forced-downgrade threshold (default 5.0).
    smoothing_threshold : int
        Agreeing candidates needed for a switch (default 2).
    segment_duration_seconds : float
        Playback duration of each segment (default 4.0).
    simulated_bandwidth_trace : sequence of float or None
        Throughput per download in kbit/s.  May be omitted when throughput
        is passed to each ``step`` call instead.
    initial_bandwidth_kbps : float
        Estimate used before any sample is observed (default 1000.0).
    initial_buffer_seconds : float
        Starting buffer level (default 0.0).
    max_buffer_seconds : float or None
        Buffer capacity; ``None`` for unbounded.
    min_samples : int
        Samples required before the window is trusted (default 1).
    content_duration_seconds : float or None
        Total content length; defaults to the trace length times the segment
        duration.
    on_trace_exhausted : str
        ``loop`` or ``stop`` (default ``loop``).
    """

    FIELDS = (
        "quality_catalog",
        "bandwidth_window_size",
        "estimator_strategy",
        "decay",
        "percentile",
        "safety_margin",
        "target_buffer_seconds",
        "panic_buffer_seconds",
        "smoothing_threshold",
        "segment_duration_seconds",
        "simulated_bandwidth_trace",
        "initial_bandwidth_kbps",
        "initial_buffer_seconds",
        "max_buffer_seconds",
        "min_samples",
        "content_duration_seconds",
        "on_trace_exhausted",
    )

    def __init__(
        self,
        quality_catalog: Optional[Sequence] = None,
        bandwidth_window_size: int = 5,
        estimator_strategy="harmonic",
        decay: float = 0.8,
        percentile: float = 20.0,
        safety_margin: float = 0.9,
        target_buffer_seconds: float = 20.0,
        panic_buffer_seconds: float = 5.0,
        smoothing_threshold: int = 2,
        segment_duration_seconds: float = 4.0,
        simulated_bandwidth_trace: Optional[Sequence[float]] = None,
        initial_bandwidth_kbps: float = 1000.0,
        initial_buffer_seconds: float = 0.0,
        max_buffer_seconds: Optional[float] = None,
        min_samples: int = 1,
        content_duration_seconds: Optional[float] = None,
        on_trace_exhausted: str = LOOP,
    ) -> None:
        self.quality_catalog = list(
            quality_catalog if quality_catalog is not None else DEFAULT_LADDER
        )
        self.bandwidth_window_size = bandwidth_window_size
        self.estimator_strategy = EstimatorStrategy.parse(estimator_strategy)
        self.decay = decay
        self.percentile = percentile
        self.safety_margin = safety_margin
        self.target_buffer_seconds = target_buffer_seconds
        self.panic_buffer_seconds = panic_buffer_seconds
        self.smoothing_threshold = smoothing_threshold
        self.segment_duration_seconds = segment_duration_seconds
        self.simulated_bandwidth_trace = (
            None
            if simulated_bandwidth_trace is None
            else list(simulated_bandwidth_trace)
        )
        self.initial_bandwidth_kbps = initial_bandwidth_kbps
        self.initial_buffer_seconds = initial_buffer_seconds
        self.max_buffer_seconds = max_buffer_seconds
        self.min_samples = min_samples
        self.content_duration_seconds = content_duration_seconds
        self.on_trace_exhausted = on_trace_exhausted

        self._validate()

    # ------------------------------------------------------------------
    # Construction helpers
    # ------------------------------------------------------------------

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "StreamerConfig":
        """Build a config from a plain mapping, rejecting unknown keys."""
        unknown = sorted(set(data) - set(cls.FIELDS))
        if unknown:
            raise ConfigurationError(f"unknown configuration keys: {unknown}")
        return cls(**data)

    def to_dict(self) -> dict:
        data = {name: getattr(self, name) for name in self.FIELDS}
        data["estimator_strategy"] = self.estimator_strategy.value
        return data

    def build_catalog(self) -> QualityCatalog:
        return QualityCatalog(self.quality_catalog)

    def build_trace(self) -> Optional[BandwidthTrace]:
        if self.simulated_bandwidth_trace is None:
            return None
        return BandwidthTrace(self.simulated_bandwidth_trace, self.on_trace_exhausted)

    @property
    def total_segments(self) -> Optional[int]:
        """Segments in the content, or ``None`` when the run is unbounded."""
        if self.content_duration_seconds is not None:
            return math.ceil(
                self.content_duration_seconds / self.segment_duration_seconds
            )
        if self.simulated_bandwidth_trace is not None:
            return len(self.simulated_bandwidth_trace)
        return None

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def _validate(self) -> None:
        for name in INT_FIELDS:
            _check_int(name, getattr(self, name))
        for name in REAL_FIELDS:
            _check_real(name, getattr(self, name))
        for name in OPTIONAL_REAL_FIELDS:
            if getattr(self, name) is not None:
                _check_real(name, getattr(self, name))

        # Component constructors repeat their own checks; the ones here fail
        # early for values the orchestrator uses directly.
        self.build_catalog()

        if self.bandwidth_window_size < 1:
            raise ConfigurationError("bandwidth_window_size must be >= 1")
        if not 0.0 < self.decay < 1.0:
            raise ConfigurationError(f"decay must be in (0, 1), got {self.decay}")
        if not 0.0 < self.percentile <= 100.0:
            raise ConfigurationError(
                f"percentile must be in (0, 100], got {self.percentile}"
            )
        if not 0.0 < self.safety_margin <= 1.0:
            raise ConfigurationError(
                f"safety_margin must be in (0, 1], got {self.safety_margin}"
            )
        if self.target_buffer_seconds <= 0 or self.panic_buffer_seconds <= 0:
            raise ConfigurationError("buffer thresholds must be positive")
        if self.panic_buffer_seconds >= self.target_buffer_seconds:
            raise ConfigurationError(
                "panic_buffer_seconds must be below target_buffer_seconds"
            )
        if self.smoothing_threshold < 1:
            raise ConfigurationError("smoothing_threshold must be >= 1")
        if self.segment_duration_seconds <= 0:
            raise ConfigurationError("segment_duration_seconds must be positive")
        if self.initial_bandwidth_kbps <= 0:
            raise ConfigurationError("initial_bandwidth_kbps must be positive")
        if self.initial_buffer_seconds < 0:
            raise ConfigurationError("initial_buffer_seconds must be >= 0")
        if (
            self.max_buffer_seconds is not None
            and self.max_buffer_seconds < self.target_buffer_seconds
        ):
            raise ConfigurationError(
                "max_buffer_seconds must be >= target_buffer_seconds"
            )
        if not 1 <= self.min_samples <= self.bandwidth_window_size:
            raise ConfigurationError(
                "min_samples must be between 1 and bandwidth_window_size"
            )
        if (
            self.content_duration_seconds is not None
            and self.content_duration_seconds <= 0
        ):
            raise ConfigurationError("content_duration_seconds must be positive")
        if self.on_trace_exhausted not in EXHAUSTION_POLICIES:
            raise ConfigurationError(
                f"on_trace_exhausted must be one of {EXHAUSTION_POLICIES}"
            )
        trace = self.build_trace()
        if trace is not None:
            self.simulated_bandwidth_trace = list(trace.samples)
