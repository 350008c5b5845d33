"""Tests for abrsim.network module."""

import pytest

from abrsim.errors import ConfigurationError, InputExhausted
from abrsim.network import BandwidthTrace, SyntheticNetwork


def test_generated_bandwidth_positive():
    net = SyntheticNetwork(seed=1)
    for sample in net.generate(200):
        assert sample > 0


def test_floor_respected_under_congestion():
    net = SyntheticNetwork(
        seed=4, congestion_probability=1.0, congestion_severity=1.0, floor_kbps=75.0
    )
    assert min(net.generate(50)) >= 75.0


def test_deterministic_with_same_seed():
    assert SyntheticNetwork(seed=99).generate(20) == SyntheticNetwork(seed=99).generate(20)


def test_reset_replays_sequence():
    net = SyntheticNetwork(seed=5)
    first = net.generate(30)
    net.reset(seed=5)
    assert net.generate(30) == first


def test_trace_loops_when_exhausted():
    trace = BandwidthTrace([100.0, 200.0], on_exhausted="loop")
    assert [trace.next() for _ in range(5)] == [100.0, 200.0, 100.0, 200.0, 100.0]
    assert trace.consumed == 5


def test_trace_stop_raises_input_exhausted():
    trace = BandwidthTrace([100.0, 200.0], on_exhausted="stop")
    trace.next()
    trace.next()
    with pytest.raises(InputExhausted) as excinfo:
        trace.next()
    assert excinfo.value.consumed == 2


def test_trace_reset():
    trace = BandwidthTrace([100.0, 200.0])
    trace.next()
    trace.reset()
    assert trace.next() == 100.0


@pytest.mark.parametrize(
    "samples, policy",
    [
        ([], "loop"),
        ([100.0, 0.0], "loop"),
        ([100.0, -5.0], "stop"),
        ([100.0], "repeat"),
        ([100.0, float("nan")], "loop"),
        ([float("inf")], "stop"),
        (["100"], "loop"),
    ],
)
def test_invalid_trace_raises(samples, policy):
    with pytest.raises(ConfigurationError):
        BandwidthTrace(samples, on_exhausted=policy)
