"""Tests for abrsim.buffer module."""

import pytest

from abrsim.buffer import BufferClassification, BufferState
from abrsim.errors import ConfigurationError


def test_advance_adds_content_and_drains_elapsed_time():
    buf = BufferState(initial_level=10.0)
    buf.advance(4.0, 1.0)
    assert buf.current_level == pytest.approx(13.0)


def test_advance_returns_buffer():
    buf = BufferState()
    assert buf.advance(4.0, 1.0) is buf


def test_overdrain_clamps_to_zero_and_counts_stall():
    buf = BufferState(initial_level=2.0)
    buf.advance(4.0, 10.0)
    assert buf.current_level == 0.0
    assert buf.stall_count == 1
    assert buf.total_stall_time_s == pytest.approx(8.0)
    assert buf.last_stall_s == pytest.approx(8.0)


@pytest.mark.parametrize(
    "initial, added, consumed",
    [(0.0, 0.0, 5.0), (3.0, 4.0, 100.0), (0.0, 4.0, 4.0), (50.0, 0.0, 49.9)],
)
def test_level_never_negative(initial, added, consumed):
    buf = BufferState(initial_level=initial)
    buf.advance(added, consumed)
    assert buf.current_level >= 0.0


def test_no_stall_when_buffer_covers_download():
    buf = BufferState(initial_level=10.0)
    buf.advance(4.0, 3.0)
    assert buf.stall_count == 0
    assert buf.last_stall_s == 0.0


def test_classification_thresholds():
    buf = BufferState(target_level=20.0, panic_level=5.0, initial_level=4.9)
    assert buf.classify() is BufferClassification.PANIC
    buf.current_level = 5.0
    assert buf.classify() is BufferClassification.LOW
    buf.current_level = 19.9
    assert buf.classify() is BufferClassification.LOW
    buf.current_level = 20.0
    assert buf.classify() is BufferClassification.HEALTHY
    assert buf.is_healthy


def test_buffer_capped_at_max_level():
    buf = BufferState(initial_level=28.0, max_level=30.0)
    buf.advance(4.0, 1.0)
    assert buf.current_level == 30.0


def test_negative_advance_rejected():
    buf = BufferState()
    with pytest.raises(ValueError):
        buf.advance(-1.0, 0.0)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"target_level": 5.0, "panic_level": 5.0},
        {"target_level": 5.0, "panic_level": 10.0},
        {"panic_level": 0.0},
        {"target_level": 0.0},
        {"initial_level": -1.0},
        {"max_level": 10.0},
    ],
)
def test_invalid_thresholds_raise(kwargs):
    with pytest.raises(ConfigurationError):
        BufferState(**kwargs)


def test_reset_clears_stats():
    buf = BufferState(initial_level=1.0)
    for _ in range(3):
        buf.advance(0.0, 2.0)
    buf.reset()
    assert buf.current_level == 1.0
    assert buf.stall_count == 0
    assert buf.total_stall_time_s == 0.0


def test_first_fill_counts_as_startup_delay_not_stall():
    buf = BufferState(initial_level=0.0)
    buf.advance(4.0, 1.5)
    assert buf.stall_count == 0
    assert buf.startup_delay_s == pytest.approx(1.5)
    assert buf.playing
    buf.advance(4.0, 10.0)
    assert buf.stall_count == 1
