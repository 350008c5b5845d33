"""Bandwidth estimation for the ABR simulation.

Throughput samples (kbit/s) observed for each downloaded segment are kept in a
bounded sliding window.  A single estimate of the available bandwidth is
derived from that window by one of a closed set of strategies:

* **harmonic**     – ``n / sum(1 / x_i)``; one slow download dominates.
* **weighted**     – exponentially decaying weights, newest sample first.
* **percentile**   – nearest-rank percentile of the sorted window.
* **conservative** – the minimum of the three above.
"""

import enum
import logging
from collections import deque
from typing import Deque, Iterable, Sequence

import numpy as np

from abrsim.errors import ConfigurationError

logger = logging.getLogger(__name__)

MIN_BANDWIDTH_KBPS = 1.0


class EstimatorStrategy(enum.Enum):
    HARMONIC = "harmonic"
    WEIGHTED = "weighted"
    PERCENTILE = "percentile"
    CONSERVATIVE = "conservative"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, value) -> "EstimatorStrategy":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            choices = ", ".join(s.value for s in cls)
            raise ConfigurationError(
                f"unknown estimator strategy {value!r} (expected one of {choices})"
            ) from None


# ---------------------------------------------------------------------------
# Strategy functions (window is ordered oldest -> newest)
# ---------------------------------------------------------------------------

def harmonic_mean(window: np.ndarray) -> float:
    return float(len(window) / np.sum(1.0 / window))


def decay_weighted_mean(window: np.ndarray, decay: float) -> float:
    # age 0 is the newest sample, i.e. the last element
    ages = np.arange(len(window) - 1, -1, -1)
    weights = decay ** ages
    return float(np.sum(window * weights) / np.sum(weights))


def nearest_rank_percentile(window: np.ndarray, percentile: float) -> float:
    return float(np.percentile(window, percentile, method="inverted_cdf"))


def estimate_window(
    samples: Sequence[float],
    strategy: EstimatorStrategy,
    decay: float = 0.8,
    percentile: float = 20.0,
) -> float:
    """Estimate bandwidth from a non-empty window of throughput samples.

    Samples are floored at :data:`MIN_BANDWIDTH_KBPS` and so is the result,
    which keeps every estimate strictly positive.
    """
    if len(samples) == 0:
        raise ValueError("cannot estimate bandwidth from an empty window")
    window = np.maximum(np.asarray(samples, dtype=float), MIN_BANDWIDTH_KBPS)

    if strategy is EstimatorStrategy.HARMONIC:
        value = harmonic_mean(window)
    elif strategy is EstimatorStrategy.WEIGHTED:
        value = decay_weighted_mean(window, decay)
    elif strategy is EstimatorStrategy.PERCENTILE:
        value = nearest_rank_percentile(window, percentile)
    else:
        value = min(
            harmonic_mean(window),
            decay_weighted_mean(window, decay),
            nearest_rank_percentile(window, percentile),
        )
    return max(MIN_BANDWIDTH_KBPS, value)


class BandwidthEstimator:
    """Sliding-window bandwidth estimator.

    Parameters
    ----------
    window_size : int
        Maximum number of throughput samples retained; the oldest sample is
        evicted on overflow (default 5).
    strategy : EstimatorStrategy or str
        Estimation strategy (default ``harmonic``).
    decay : float
        Per-sample age decay for the ``weighted`` strategy, in (0, 1)
        (default 0.8).
    percentile : float
        Percentile for the ``percentile`` strategy, in (0, 100] (default 20).
    initial_bandwidth_kbps : float
        Estimate returned before enough samples have been observed
        (default 1000.0).
    min_samples : int
        Number of samples required before the window is trusted (default 1).
    """

    def __init__(
        self,
        window_size: int = 5,
        strategy=EstimatorStrategy.HARMONIC,
        decay: float = 0.8,
        percentile: float = 20.0,
        initial_bandwidth_kbps: float = 1000.0,
        min_samples: int = 1,
    ) -> None:
        if window_size < 1:
            raise ConfigurationError("window_size must be >= 1")
        if not 0.0 < decay < 1.0:
            raise ConfigurationError(f"decay must be in (0, 1), got {decay}")
        if not 0.0 < percentile <= 100.0:
            raise ConfigurationError(
                f"percentile must be in (0, 100], got {percentile}"
            )
        if initial_bandwidth_kbps <= 0:
            raise ConfigurationError("initial_bandwidth_kbps must be positive")
        if not 1 <= min_samples <= window_size:
            raise ConfigurationError("min_samples must be in [1, window_size]")

        self.strategy = EstimatorStrategy.parse(strategy)
        self.window_size = window_size
        self.decay = decay
        self.percentile = percentile
        self.initial_bandwidth_kbps = initial_bandwidth_kbps
        self.min_samples = min_samples

        self._history: Deque[float] = deque(maxlen=window_size)

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    @property
    def history(self) -> tuple:
        """Current window, oldest sample first."""
        return tuple(self._history)

    def add_sample(self, throughput_kbps: float) -> None:
        if throughput_kbps <= 0:
            raise ValueError(f"throughput must be positive, got {throughput_kbps}")
        self._history.append(float(throughput_kbps))

    def extend(self, samples: Iterable[float]) -> None:
        for sample in samples:
            self.add_sample(sample)

    def estimate(self) -> float:
        """Return the current bandwidth estimate in kbit/s (always > 0)."""
        if len(self._history) < self.min_samples:
            return max(MIN_BANDWIDTH_KBPS, self.initial_bandwidth_kbps)
        value = estimate_window(
            self._history, self.strategy, self.decay, self.percentile
        )
        logger.debug(
            "%s estimate over %d samples: %.1f kbps",
            self.strategy, len(self._history), value,
        )
        return value

    def reset(self) -> None:
        """Drop all observed samples."""
        self._history.clear()
