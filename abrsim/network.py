"""Simulated network throughput for the ABR simulation.

:class:`SyntheticNetwork` generates reproducible throughput traces with the
same bounded nonlinear process used for the earlier live-stream model, while
:class:`BandwidthTrace` replays a fixed trace one segment at a time and decides
what happens when it runs out.
"""

import logging
import math
import numbers
from typing import List, Optional, Sequence

import numpy as np

from abrsim.errors import ConfigurationError, InputExhausted

logger = logging.getLogger(__name__)

LOOP = "loop"
STOP = "stop"
EXHAUSTION_POLICIES = (LOOP, STOP)


class SyntheticNetwork:
    """Generates time-varying per-segment throughput samples.

    The throughput B(k) for segment k is::

        B(k) = B_base * (1 + A*sin(2π*f*k + φ)) * noise(k) * (1 - congestion(k))

    where ``noise`` is log-normal and ``congestion`` jumps by
    ``congestion_severity`` with probability ``congestion_probability`` and
    otherwise recovers linearly.

    Parameters
    ----------
    base_bandwidth_kbps : float
        Mean available throughput in kbit/s (default 4000.0).
    oscillation_amplitude : float
        Relative amplitude of the sinusoidal component (0–1, default 0.3).
    oscillation_freq : float
        Oscillation frequency in cycles per segment (default 0.05).
    noise_sigma : float
        Std-dev of the log-normal multiplicative noise (default 0.1).
    congestion_probability : float
        Per-segment probability of a congestion event (default 0.02).
    congestion_severity : float
        Fraction of bandwidth lost at congestion onset (0–1, default 0.6).
    congestion_recovery_rate : float
        Congestion recovered per segment (default 0.15).
    floor_kbps : float
        Lower bound on generated samples (default 50.0).
    seed : int or None
        Random seed for reproducibility.
    """

    def __init__(
        self,
        base_bandwidth_kbps: float = 4000.0,
        oscillation_amplitude: float = 0.3,
        oscillation_freq: float = 0.05,
        noise_sigma: float = 0.1,
        congestion_probability: float = 0.02,
        congestion_severity: float = 0.6,
        congestion_recovery_rate: float = 0.15,
        floor_kbps: float = 50.0,
        seed: Optional[int] = None,
    ) -> None:
        if base_bandwidth_kbps <= 0 or floor_kbps <= 0:
            raise ConfigurationError("bandwidths must be positive")
        self.base_bandwidth_kbps = base_bandwidth_kbps
        self.oscillation_amplitude = oscillation_amplitude
        self.oscillation_freq = oscillation_freq
        self.noise_sigma = noise_sigma
        self.congestion_probability = congestion_probability
        self.congestion_severity = congestion_severity
        self.congestion_recovery_rate = congestion_recovery_rate
        self.floor_kbps = floor_kbps

        self._rng = np.random.default_rng(seed)
        self._phase = self._rng.uniform(0, 2 * np.pi)
        self._congestion_level = 0.0
        self._step = 0

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    def step(self) -> float:
        """Return the throughput (kbit/s) for the next segment."""
        k = self._step
        self._step += 1

        sinusoidal = 1.0 + self.oscillation_amplitude * np.sin(
            2 * np.pi * self.oscillation_freq * k + self._phase
        )
        noise = self._rng.lognormal(mean=0.0, sigma=self.noise_sigma)

        # Onset is sudden, recovery is gradual
        if self._rng.random() < self.congestion_probability:
            self._congestion_level = min(
                1.0, self._congestion_level + self.congestion_severity
            )
        else:
            self._congestion_level = max(
                0.0, self._congestion_level - self.congestion_recovery_rate
            )

        availability = 1.0 - self._congestion_level
        return float(
            max(
                self.floor_kbps,
                self.base_bandwidth_kbps * sinusoidal * noise * availability,
            )
        )

    def generate(self, n: int) -> List[float]:
        """Return the next ``n`` samples as a list."""
        return [self.step() for _ in range(n)]

    def reset(self, seed: Optional[int] = None) -> None:
        """Reset the generator to its initial state."""
        if seed is not None:
            self._rng = np.random.default_rng(seed)
        self._phase = self._rng.uniform(0, 2 * np.pi)
        self._congestion_level = 0.0
        self._step = 0


class BandwidthTrace:
    """Cursor over a recorded throughput trace.

    Parameters
    ----------
    samples : sequence of float
        Throughput per segment download in kbit/s; all must be positive.
    on_exhausted : str
        ``"loop"`` replays the trace from the start, ``"stop"`` raises
        :class:`~abrsim.errors.InputExhausted` (default ``"loop"``).
    """

    def __init__(self, samples: Sequence[float], on_exhausted: str = LOOP) -> None:
        samples = list(samples)
        if not samples:
            raise ConfigurationError("bandwidth trace must not be empty")
        for s in samples:
            if (
                isinstance(s, bool)
                or not isinstance(s, numbers.Real)
                or not math.isfinite(s)
                or s <= 0
            ):
                raise ConfigurationError(
                    f"bandwidth trace samples must be finite and positive, got {s!r}"
                )
        samples = [float(s) for s in samples]
        if on_exhausted not in EXHAUSTION_POLICIES:
            raise ConfigurationError(
                f"on_exhausted must be one of {EXHAUSTION_POLICIES}, "
                f"got {on_exhausted!r}"
            )
        self.samples = tuple(samples)
        self.on_exhausted = on_exhausted
        self._position = 0
        self._consumed = 0

    def __len__(self) -> int:
        return len(self.samples)

    @property
    def consumed(self) -> int:
        return self._consumed

    def next(self) -> float:
        if self._position >= len(self.samples):
            if self.on_exhausted == STOP:
                raise InputExhausted(self._consumed)
            if self._consumed == len(self.samples):
                logger.warning(
                    "bandwidth trace exhausted after %d samples; looping",
                    self._consumed,
                )
            self._position = 0

        sample = self.samples[self._position]
        self._position += 1
        self._consumed += 1
        return sample

    def reset(self) -> None:
        self._position = 0
        self._consumed = 0
