"""Tests for abrsim.metrics module."""

import pytest

from abrsim.config import StreamerConfig
from abrsim.metrics import SessionMetrics
from abrsim.streamer import AdaptiveBitrateStreamer


def _run(trace):
    config = StreamerConfig(
        quality_catalog=[
            (500, (640, 360), "h264"),
            (1500, (1280, 720), "h264"),
            (3000, (1920, 1080), "h264"),
            (6000, (3840, 2160), "h264"),
        ],
        safety_margin=1.0,
        simulated_bandwidth_trace=trace,
    )
    streamer = AdaptiveBitrateStreamer(config)
    streamer.run()
    return streamer


def test_compute_returns_empty_on_no_data():
    assert SessionMetrics().compute() == {}


def test_drop_scenario_metrics():
    metrics = _run([6000.0] * 10 + [300.0] * 5).metrics.compute()
    assert metrics["total_segments"] == 15
    # 0 -> 1 -> 2 -> 3 on the way up, 3 -> 2 -> 1 -> 0 after the drop
    assert metrics["quality_switch_count"] == 6
    assert metrics["switch_rate_per_min"] == pytest.approx(6 / 1.0)
    assert metrics["stall_count"] == 5
    assert metrics["total_stall_time_s"] > 0.0
    assert metrics["panic_ratio"] == pytest.approx(6 / 15)


def test_stable_network_has_no_stalls():
    metrics = _run([6000.0] * 20).metrics.compute()
    assert metrics["stall_count"] == 0
    assert metrics["total_stall_time_s"] == 0.0
    assert metrics["mean_estimated_bandwidth_kbps"] == pytest.approx(6000.0)
    assert 500.0 <= metrics["mean_bitrate_kbps"] <= 6000.0


def test_reset_clears_data():
    streamer = _run([3000.0] * 5)
    streamer.metrics.reset()
    assert streamer.metrics.compute() == {}
