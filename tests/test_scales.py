"""
Scale builder tests.
"""

import pytest

from src.chart.aggregator import aggregate
from src.chart.errors import ChartDataError, UnknownBucketError
from src.chart.models import ChartDimensions, OverlayTarget
from src.chart.sample_data import SAMPLE_RECORDS
from src.chart.scales import (
    CATEGORY10,
    BandScale,
    LinearScale,
    OrdinalColorScale,
    build_scales,
    nice_ticks,
    value_domain,
    value_domain_max,
)


# ============================================================
# Band scale
# ============================================================

def test_band_scale_splits_width_evenly():
    band = BandScale(["a", "b", "c"], (0.0, 640.0), padding=0.1)
    step = 640.0 / 3.1

    assert band.step == pytest.approx(step)
    assert band.bandwidth == pytest.approx(step * 0.9)
    assert band.lookup("a") == pytest.approx(step * 0.1)
    assert band.lookup("b") - band.lookup("a") == pytest.approx(step)
    # outer padding is symmetric
    assert 640.0 - (band.lookup("c") + band.bandwidth) == pytest.approx(band.lookup("a"))


def test_band_scale_center():
    band = BandScale(["a"], (0.0, 100.0), padding=0.0)

    assert band.bandwidth == pytest.approx(100.0)
    assert band.center("a") == pytest.approx(50.0)


def test_band_scale_unknown_key_is_explicit():
    band = BandScale(["a"], (0.0, 100.0))

    with pytest.raises(UnknownBucketError) as exc:
        band.lookup("zzz")
    assert exc.value.key == "zzz"

    assert band.get("zzz") is None
    assert band.get("zzz", 0.0) == 0.0
    assert "zzz" not in band


def test_band_scale_rejects_bad_padding():
    with pytest.raises(ChartDataError):
        BandScale(["a"], (0.0, 10.0), padding=1.5)
    with pytest.raises(ChartDataError):
        BandScale(["a"], (0.0, 10.0), padding=-0.1)


# ============================================================
# Linear scale
# ============================================================

def test_linear_scale_is_inverted():
    y = LinearScale((0.0, 50.0), (350.0, 0.0))

    assert y(0) == 350.0
    assert y(50) == 0.0
    assert y(25) == pytest.approx(175.0)


def test_zero_domain_does_not_divide_by_zero():
    y = LinearScale((0.0, 0.0), (350.0, 0.0))

    assert y.is_degenerate
    assert y(0) == 350.0
    assert y.ticks() == [0.0]


def test_nice_ticks():
    assert nice_ticks(0, 50) == [0, 5, 10, 15, 20, 25, 30, 35, 40, 45, 50]
    assert nice_ticks(0, 80) == [0, 10, 20, 30, 40, 50, 60, 70, 80]
    assert nice_ticks(0, 1) == [0.0, 0.1, 0.2, 0.3, 0.4, 0.5, 0.6, 0.7, 0.8, 0.9, 1.0]
    assert nice_ticks(0, 0) == [0.0]


def test_nice_ticks_without_a_usable_step():
    assert nice_ticks(0, 5e-324) == [0.0]
    assert nice_ticks(0, 1e-305) == [0.0]
    assert nice_ticks(0, float("inf")) == [0.0]
    assert nice_ticks(-1e308, 1e308) == [-1e308]


# ============================================================
# Colour scale
# ============================================================

def test_color_scale_cycles_palette():
    keys = [f"c{i}" for i in range(12)]
    color = OrdinalColorScale(keys)

    assert color("c0") == CATEGORY10[0]
    assert color("c9") == CATEGORY10[9]
    assert color("c10") == CATEGORY10[0]
    assert color("c11") == CATEGORY10[1]


def test_color_scale_appends_unknown_keys():
    color = OrdinalColorScale(["A"])

    assert color("B") == CATEGORY10[1]
    assert color.domain == ["A", "B"]


# ============================================================
# Builder
# ============================================================

def test_value_domain_encloses_targets():
    result = aggregate(SAMPLE_RECORDS)

    assert value_domain_max(result) == 80.0
    assert value_domain_max(result, [OverlayTarget(bucket_key="2024-01", target_value=120)]) == 120.0


def test_build_scales_uses_inner_extent():
    dims = ChartDimensions()
    scales = build_scales(aggregate(SAMPLE_RECORDS), dims)

    assert scales.x.range == (0.0, 640.0)
    assert scales.y.range == (350.0, 0.0)
    assert scales.y.domain == (0.0, 80.0)
    assert scales.x.domain == ["2024-01", "2024-02", "2024-03"]


def test_value_domain_spans_every_interval_edge():
    result = aggregate(
        [
            {"date": "b1", "category": "A", "value": 10},
            {"date": "b1", "category": "B", "value": -4},
            {"date": "b2", "category": "A", "value": -5},
        ],
        negative_policy="allow",
    )

    assert result.max_stack == 10.0
    assert result.min_stack == -5.0
    assert value_domain(result) == (-5.0, 10.0)
    assert value_domain(result, [OverlayTarget(bucket_key="b1", target_value=-8)]) == (-8.0, 10.0)
    assert build_scales(result, ChartDimensions()).y.domain == (-5.0, 10.0)


def test_value_domain_rejects_overflow():
    result = aggregate(
        [
            {"date": "b1", "category": "A", "value": 1e308},
            {"date": "b1", "category": "B", "value": 1e308},
        ]
    )

    with pytest.raises(ChartDataError):
        value_domain(result)
    with pytest.raises(ChartDataError):
        value_domain_max(result)
    with pytest.raises(ChartDataError):
        build_scales(result, ChartDimensions())


def test_value_domain_rejects_span_overflow():
    result = aggregate(
        [
            {"date": "b1", "category": "A", "value": -1e308},
            {"date": "b2", "category": "A", "value": 1e308},
        ],
        negative_policy="allow",
    )

    with pytest.raises(ChartDataError):
        value_domain(result)
