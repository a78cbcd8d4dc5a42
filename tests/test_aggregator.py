"""
Aggregator tests.

Covers first-seen ordering, zero-filling of missing pairs, the stack-sum
invariant and the negative / non-finite input policies.
"""

import pandas as pd
import pytest

from src.chart.aggregator import aggregate, apply_negative_policy, coerce_records, to_frame
from src.chart.errors import ChartDataError
from src.chart.models import Record
from src.chart.sample_data import SAMPLE_RECORDS


def rec(bucket, category, value):
    return {"date": bucket, "category": category, "value": value}


# ============================================================
# Scenario A
# ============================================================

def test_two_categories_single_bucket():
    result = aggregate([rec("2024-01", "A", 20), rec("2024-01", "B", 30)])

    assert result.categories == ["A", "B"]
    assert result.bucket_keys == ["2024-01"]

    a, b = result.series
    assert (a.points[0].bottom, a.points[0].top) == (0.0, 20.0)
    assert (b.points[0].bottom, b.points[0].top) == (20.0, 50.0)
    assert result.max_stack == 50.0
    assert result.buckets["2024-01"]["B"].value == 30.0


# ============================================================
# Ordering
# ============================================================

def test_first_seen_order_is_preserved():
    records = [
        rec("2024-03", "C", 1),
        rec("2024-01", "A", 2),
        rec("2024-03", "A", 3),
        rec("2024-02", "B", 4),
    ]
    result = aggregate(records)

    assert result.bucket_keys == ["2024-03", "2024-01", "2024-02"]
    assert result.categories == ["C", "A", "B"]
    assert [s.index for s in result.series] == [0, 1, 2]


def test_reaggregation_is_deterministic():
    first = aggregate(SAMPLE_RECORDS)
    second = aggregate(list(SAMPLE_RECORDS))

    assert first == second


# ============================================================
# Missing pairs & duplicates
# ============================================================

def test_missing_category_defaults_to_zero():
    result = aggregate([rec("b1", "A", 5), rec("b2", "B", 7)])
    buckets = result.buckets

    assert buckets["b1"]["B"].value == 0.0
    assert buckets["b1"]["B"].bottom == buckets["b1"]["B"].top == 5.0
    assert buckets["b2"]["A"].value == 0.0
    assert buckets["b2"]["B"].top == 7.0


def test_duplicate_pairs_are_summed():
    result = aggregate([rec("b1", "A", 5), rec("b1", "A", 6), rec("b1", "B", 1)])

    assert result.buckets["b1"]["A"].value == 11.0
    assert result.totals["b1"] == 12.0


# ============================================================
# Stack-sum invariant
# ============================================================

@pytest.mark.parametrize(
    "records",
    [
        SAMPLE_RECORDS,
        [rec("x", "A", 0.1), rec("x", "B", 0.2), rec("x", "C", 0.3)],
        [rec("x", "A", 1), rec("y", "B", 2), rec("x", "C", 3), rec("y", "A", 4)],
    ],
)
def test_stack_heights_sum_to_bucket_total(records):
    result = aggregate(records)
    parsed = coerce_records(records)

    for key in result.bucket_keys:
        expected = sum(r.value for r in parsed if r.bucket_key == key)
        heights = sum(p.value for p in result.buckets[key].values())
        top_of_last = result.buckets[key][result.categories[-1]].top

        assert heights == pytest.approx(expected)
        assert top_of_last == pytest.approx(expected)
        assert result.totals[key] == pytest.approx(expected)


# ============================================================
# Edge cases
# ============================================================

def test_empty_input():
    result = aggregate([])

    assert result.is_empty
    assert result.series == []
    assert result.max_stack == 0.0


def test_non_finite_value_is_rejected():
    with pytest.raises(ChartDataError) as exc:
        aggregate([rec("b1", "A", 1), rec("b1", "B", float("nan"))])
    assert exc.value.index == 1

    with pytest.raises(ChartDataError):
        aggregate([rec("b1", "A", float("inf"))])


def test_missing_field_is_rejected():
    with pytest.raises(ChartDataError):
        aggregate([{"date": "b1", "value": 3}])


def test_negative_values_allowed_stack_downward():
    result = aggregate([rec("b1", "A", 10), rec("b1", "B", -4)], negative_policy="allow")
    b = result.buckets["b1"]["B"]

    assert (b.bottom, b.top) == (10.0, 6.0)
    assert result.totals["b1"] == 6.0


def test_negative_values_clamped():
    result = aggregate([rec("b1", "A", 10), rec("b1", "B", -4)], negative_policy="clamp")

    assert result.buckets["b1"]["B"].value == 0.0
    assert result.max_stack == 10.0


def test_negative_values_rejected():
    with pytest.raises(ChartDataError):
        aggregate([rec("b1", "A", -1)], negative_policy="reject")


def test_unknown_negative_policy():
    with pytest.raises(ChartDataError):
        apply_negative_policy([Record(bucket_key="b", category="A", value=1)], "ignore")


# ============================================================
# Tabular view
# ============================================================

def test_to_frame_is_long_form():
    frame = to_frame(aggregate(SAMPLE_RECORDS))

    assert isinstance(frame, pd.DataFrame)
    assert len(frame) == 9
    assert list(frame.columns) == ["bucket_key", "category", "order", "value", "bottom", "top"]
    assert (frame["top"] - frame["bottom"]).tolist() == frame["value"].tolist()
