"""Tests for the demo runner."""

from main import run_simulation


def test_run_simulation_report():
    report = run_simulation(duration_s=120, seed=1)
    assert report["total_segments"] == 30
    assert len(report["timeline"]) == 30


def test_run_simulation_deterministic():
    a = run_simulation(duration_s=80, seed=7, strategy="conservative")
    b = run_simulation(duration_s=80, seed=7, strategy="conservative")
    assert a == b
