"""Tests for abrsim.selector module."""

import pytest

from abrsim.buffer import BufferState
from abrsim.catalog import DEFAULT_LADDER, QualityCatalog
from abrsim.errors import ConfigurationError
from abrsim.selector import QualitySelector


def _selector(margin=0.9):
    return QualitySelector(QualityCatalog(DEFAULT_LADDER), safety_margin=margin)


def _buf(level):
    return BufferState(target_level=20.0, panic_level=5.0, initial_level=level)


def test_picks_highest_level_within_safety_margin():
    sel = _selector()
    # 4000 * 0.9 = 3600 -> 3000 kbps tier
    level = sel.select(4000.0, _buf(25.0), sel.catalog[3])
    assert level.bitrate_kbps == 3000


def test_margin_applies_to_exact_bitrate():
    assert _selector(0.9).select(6000.0, _buf(25.0)).bitrate_kbps == 3000
    assert _selector(1.0).select(6000.0, _buf(25.0)).bitrate_kbps == 6000


def test_falls_back_to_lowest_when_nothing_fits():
    sel = _selector()
    assert sel.select(100.0, _buf(25.0), sel.catalog[2]) is sel.catalog.lowest


def test_low_buffer_holds_instead_of_upgrading():
    sel = _selector()
    assert sel.select(10000.0, _buf(10.0), sel.catalog[0]) is sel.catalog[0]


def test_low_buffer_still_allows_downgrade():
    sel = _selector()
    # 2000 * 0.9 = 1800 -> 1500 kbps tier
    assert sel.select(2000.0, _buf(10.0), sel.catalog[2]) is sel.catalog[1]


def test_panic_forces_step_down_despite_headroom():
    sel = _selector()
    assert sel.select(100000.0, _buf(1.0), sel.catalog[3]) is sel.catalog[2]


def test_panic_keeps_bandwidth_candidate_when_lower():
    sel = _selector()
    assert sel.select(100.0, _buf(1.0), sel.catalog[3]) is sel.catalog[0]


def test_panic_at_lowest_tier_stays_lowest():
    sel = _selector()
    assert sel.select(100000.0, _buf(0.0), sel.catalog[0]) is sel.catalog[0]


def test_first_decision_defaults_to_lowest_current():
    sel = _selector()
    assert sel.select(100000.0, _buf(10.0)) is sel.catalog.lowest


def test_healthy_buffer_allows_multi_tier_candidate():
    sel = _selector()
    assert sel.select(100000.0, _buf(25.0), sel.catalog[0]) is sel.catalog[3]


@pytest.mark.parametrize("level", [0.0, 3.0, 7.5, 19.0, 20.0, 45.0])
@pytest.mark.parametrize("estimate", [1.0, 499.0, 1200.0, 5000.0, 1e6])
def test_result_always_in_catalog(level, estimate):
    sel = _selector()
    for current in sel.catalog:
        assert sel.select(estimate, _buf(level), current) in sel.catalog


@pytest.mark.parametrize("margin", [0.0, -0.5, 1.5])
def test_invalid_margin_raises(margin):
    with pytest.raises(ConfigurationError):
        _selector(margin)
