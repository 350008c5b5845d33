"""Simulation orchestrator for the ABR client.

Ties together :class:`~abrsim.estimator.BandwidthEstimator`,
:class:`~abrsim.buffer.BufferState`,
:class:`~abrsim.selector.QualitySelector`,
:class:`~abrsim.smoother.Smoother` and
:class:`~abrsim.metrics.SessionMetrics` into a segment-by-segment simulation.

Example usage::

    from abrsim.config import StreamerConfig
    from abrsim.streamer import AdaptiveBitrateStreamer

    config = StreamerConfig(simulated_bandwidth_trace=[6000.0] * 30)
    streamer = AdaptiveBitrateStreamer(config)
    streamer.run()
    AdaptiveBitrateStreamer.print_report(streamer.report())
"""

from __future__ import annotations

import enum
import logging
import math
from dataclasses import dataclass
from typing import List, Optional

from abrsim.buffer import BufferClassification, BufferState
from abrsim.catalog import QualityLevel
from abrsim.config import StreamerConfig
from abrsim.errors import InputExhausted
from abrsim.estimator import MIN_BANDWIDTH_KBPS, BandwidthEstimator
from abrsim.metrics import SessionMetrics
from abrsim.network import BandwidthTrace
from abrsim.selector import QualitySelector
from abrsim.smoother import Smoother

logger = logging.getLogger(__name__)


class StreamerState(enum.Enum):
    IDLE = "idle"
    DOWNLOADING = "downloading"
    BUFFER_UPDATE = "buffer_update"
    DECIDING = "deciding"
    FINISHED = "finished"


@dataclass(frozen=True)
class SegmentInfo:
    """One simulated segment download."""

    sequence_number: int
    quality_level: QualityLevel
    size_bytes: int
    duration_seconds: float
    download_duration: float
    throughput_kbps: float


@dataclass(frozen=True)
class DecisionRecord:
    """Outcome of one simulation step.

    ``chosen_quality_id`` is the level decided at this step, i.e. the one
    used to download segment ``sequence_number + 1``; the level actually
    downloaded here is ``segment.quality_level``.
    """

    sequence_number: int
    chosen_quality_id: int
    estimated_bandwidth_kbps: float
    buffer_level_after: float
    buffer_classification: BufferClassification
    candidate_quality_id: int
    stall_seconds: float
    segment: SegmentInfo

    def as_dict(self) -> dict:
        return {
            "sequence_number": self.sequence_number,
            "downloaded_quality_id": self.segment.quality_level.id,
            "chosen_quality_id": self.chosen_quality_id,
            "candidate_quality_id": self.candidate_quality_id,
            "throughput_kbps": self.segment.throughput_kbps,
            "estimated_bandwidth_kbps": self.estimated_bandwidth_kbps,
            "buffer_level_after": self.buffer_level_after,
            "buffer_classification": self.buffer_classification.value,
            "stall_seconds": self.stall_seconds,
        }


class AdaptiveBitrateStreamer:
    """Segment-by-segment ABR client simulation.

    Each :meth:`step` downloads one segment at the currently confirmed
    quality, feeds the observed throughput to the estimator, advances the
    buffer and decides the quality of the next segment.

    Parameters
    ----------
    config : StreamerConfig or None
        Run configuration (defaults to ``StreamerConfig()``).
    """

    def __init__(self, config: Optional[StreamerConfig] = None) -> None:
        self.config = config if config is not None else StreamerConfig()
        cfg = self.config

        self.catalog = cfg.build_catalog()
        self.estimator = BandwidthEstimator(
            window_size=cfg.bandwidth_window_size,
            strategy=cfg.estimator_strategy,
            decay=cfg.decay,
            percentile=cfg.percentile,
            initial_bandwidth_kbps=cfg.initial_bandwidth_kbps,
            min_samples=cfg.min_samples,
        )
        self.buffer = BufferState(
            target_level=cfg.target_buffer_seconds,
            panic_level=cfg.panic_buffer_seconds,
            initial_level=cfg.initial_buffer_seconds,
            max_level=cfg.max_buffer_seconds,
        )
        self.selector = QualitySelector(self.catalog, cfg.safety_margin)
        self.smoother = Smoother(self.catalog, cfg.smoothing_threshold)
        self.metrics = SessionMetrics(cfg.segment_duration_seconds)
        self.network: Optional[BandwidthTrace] = cfg.build_trace()

        self.state = StreamerState.IDLE
        self._history: List[SegmentInfo] = []
        self._trace: List[DecisionRecord] = []

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def current_quality(self) -> QualityLevel:
        return self.smoother.confirmed

    @property
    def history(self) -> tuple:
        return tuple(self._history)

    @property
    def trace(self) -> tuple:
        return tuple(self._trace)

    @property
    def estimated_bandwidth_kbps(self) -> float:
        return self.estimator.estimate()

    @property
    def finished(self) -> bool:
        return self.state is StreamerState.FINISHED

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    def step(self, throughput_kbps: Optional[float] = None) -> Optional[DecisionRecord]:
        """Simulate one segment download and the following decision.

        Parameters
        ----------
        throughput_kbps : float or None
            Throughput for this download; drawn from the configured trace
            when omitted.

        Returns
        -------
        DecisionRecord, or ``None`` once the simulation has finished.
        """
        if self.state is StreamerState.FINISHED:
            return None

        total = self.config.total_segments
        if total is not None and len(self._history) >= total:
            self._finish("content exhausted")
            return None

        sequence_number = len(self._history)
        duration = self.config.segment_duration_seconds

        # 1. Download at the confirmed quality
        if throughput_kbps is None:
            if self.network is None:
                raise ValueError(
                    "throughput_kbps is required when no bandwidth trace is configured"
                )
            try:
                throughput_kbps = self.network.next()
            except InputExhausted as exc:
                self._finish(str(exc), early=True)
                return None
        throughput_kbps = float(throughput_kbps)
        if not math.isfinite(throughput_kbps):
            raise ValueError(f"throughput must be finite, got {throughput_kbps}")
        throughput_kbps = max(MIN_BANDWIDTH_KBPS, throughput_kbps)
        self.state = StreamerState.DOWNLOADING

        quality = self.current_quality
        size_bytes = int(round(quality.bitrate_kbps * 1000 / 8 * duration))
        download_duration = size_bytes * 8 / 1000 / throughput_kbps
        segment = SegmentInfo(
            sequence_number=sequence_number,
            quality_level=quality,
            size_bytes=size_bytes,
            duration_seconds=duration,
            download_duration=download_duration,
            throughput_kbps=throughput_kbps,
        )
        self._history.append(segment)
        self.estimator.add_sample(throughput_kbps)

        # 2. Buffer gains the segment and drains during the download
        self.state = StreamerState.BUFFER_UPDATE
        self.buffer.advance(duration, download_duration)
        classification = self.buffer.classify()

        # 3. Decide the next quality
        self.state = StreamerState.DECIDING
        estimate = self.estimator.estimate()
        candidate = self.selector.select(estimate, self.buffer, quality)
        chosen = self.smoother.smooth(
            candidate, urgent=classification is BufferClassification.PANIC
        )

        record = DecisionRecord(
            sequence_number=sequence_number,
            chosen_quality_id=chosen.id,
            estimated_bandwidth_kbps=estimate,
            buffer_level_after=self.buffer.current_level,
            buffer_classification=classification,
            candidate_quality_id=candidate.id,
            stall_seconds=self.buffer.last_stall_s,
            segment=segment,
        )
        self._trace.append(record)
        self.metrics.record(record)
        logger.debug(
            "segment %d: q=%d tput=%.1f est=%.1f buffer=%.2fs (%s) -> next q=%d",
            sequence_number, quality.id, throughput_kbps, estimate,
            self.buffer.current_level, classification, chosen.id,
        )

        self.state = StreamerState.IDLE
        return record

    def run(self, max_segments: Optional[int] = None) -> List[DecisionRecord]:
        """Step until the simulation finishes and return the full trace.

        ``max_segments`` bounds runs whose length is otherwise unbounded
        (a looping trace without a content duration never exhausts).
        """
        if self.config.total_segments is None and max_segments is None:
            raise ValueError("max_segments is required for an unbounded run")

        steps = 0
        while max_segments is None or steps < max_segments:
            if self.step() is None:
                break
            steps += 1
        return list(self._trace)

    def report(self) -> dict:
        """Return the QoE metrics of the run plus the per-step ``timeline``."""
        report = self.metrics.compute()
        if report:
            report["startup_delay_s"] = self.buffer.startup_delay_s
        report["timeline"] = [record.as_dict() for record in self._trace]
        return report

    def reset(self) -> None:
        """Restore the initial state so the same config can be replayed."""
        self.estimator.reset()
        self.buffer.reset()
        self.smoother.reset()
        self.metrics.reset()
        if self.network is not None:
            self.network.reset()
        self._history.clear()
        self._trace.clear()
        self.state = StreamerState.IDLE

    # ------------------------------------------------------------------
    # Reporting helpers
    # ------------------------------------------------------------------

    @staticmethod
    def print_report(report: dict) -> None:
        """Print a human-readable summary of a simulation report.

        Parameters
        ----------
        report : dict
            Output of :meth:`report`.
        """
        sep = "-" * 52
        print(sep)
        print(" ABR Simulation – Session Report")
        print(sep)
        keys_fmt = [
            ("total_segments",                "Segments downloaded",          "{:.0f}"),
            ("quality_switch_count",          "Quality switches",             "{:.0f}"),
            ("switch_rate_per_min",           "Switch rate (/min)",           "{:.2f}"),
            ("mean_bitrate_kbps",             "Mean bitrate (kbps)",          "{:.1f}"),
            ("mean_estimated_bandwidth_kbps", "Mean estimate (kbps)",         "{:.1f}"),
            ("mean_buffer_level_s",           "Mean buffer level (s)",        "{:.2f}"),
            ("panic_ratio",                   "Panic ratio",                  "{:.3f}"),
            ("stall_count",                   "Stall events",                 "{:.0f}"),
            ("total_stall_time_s",            "Total stall time (s)",         "{:.2f}"),
            ("startup_delay_s",               "Startup delay (s)",            "{:.2f}"),
        ]
        for key, label, fmt in keys_fmt:
            if key in report:
                value_str = fmt.format(report[key])
                print(f"  {label:<36} {value_str}")
        print(sep)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _finish(self, reason: str, early: bool = False) -> None:
        if early:
            logger.warning("stopping early: %s", reason)
        else:
            logger.info("simulation finished after %d segments: %s",
                        len(self._history), reason)
        self.state = StreamerState.FINISHED
