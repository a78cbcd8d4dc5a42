"""
Stack aggregator.

Turns a flat list of (bucket, category, value) records into stacked
intervals:

- buckets and categories keep first-seen order
- a category missing from a bucket contributes 0
- baseline of category i = sum of categories 0..i-1 in that bucket

Pure functions only; the widget owns all state.
"""

import os
from typing import Any, Iterable, List, Mapping, Optional, Union

import pandas as pd
from dotenv import load_dotenv
from pydantic import ValidationError

from src.chart.errors import ChartDataError
from src.chart.models import AggregateResult, OverlayTarget, Record, StackedPoint, StackedSeries
from src.utils.logger import get_logger

load_dotenv()
logger = get_logger(__name__)

# =============================================================================
# CONFIGURATION
# =============================================================================

NEGATIVE_POLICIES = ("allow", "clamp", "reject")
NEGATIVE_VALUE_POLICY = os.getenv("CHART_NEGATIVE_VALUES", "allow").lower()

RecordLike = Union[Record, Mapping[str, Any]]
TargetLike = Union[OverlayTarget, Mapping[str, Any]]

FRAME_COLUMNS = ["bucket_key", "category", "value"]

# =============================================================================
# INPUT COERCION
# =============================================================================

def coerce_records(records: Iterable[RecordLike]) -> List[Record]:
    """
    Validate raw records into Record models.

    Raises ChartDataError naming the first offending position.
    """
    out: List[Record] = []
    for i, raw in enumerate(records):
        if isinstance(raw, Record):
            out.append(raw)
            continue
        try:
            out.append(Record.model_validate(raw))
        except ValidationError as e:
            raise ChartDataError(f"Invalid record at index {i}: {e}", index=i) from e
    return out


def coerce_targets(targets: Optional[Iterable[TargetLike]]) -> List[OverlayTarget]:
    if targets is None:
        return []

    out: List[OverlayTarget] = []
    for i, raw in enumerate(targets):
        if isinstance(raw, OverlayTarget):
            out.append(raw)
            continue
        try:
            out.append(OverlayTarget.model_validate(raw))
        except ValidationError as e:
            raise ChartDataError(f"Invalid target at index {i}: {e}", index=i) from e
    return out


def apply_negative_policy(records: List[Record], policy: Optional[str] = None) -> List[Record]:
    """
    allow  → keep negatives; the stack grows downward from its baseline
    clamp  → negatives contribute 0
    reject → ChartDataError
    """
    policy = (policy or NEGATIVE_VALUE_POLICY).lower()
    if policy not in NEGATIVE_POLICIES:
        raise ChartDataError(f"Unknown negative value policy: {policy!r}")

    if policy == "allow":
        return records

    out: List[Record] = []
    for i, r in enumerate(records):
        if r.value >= 0:
            out.append(r)
        elif policy == "reject":
            raise ChartDataError(
                f"Negative value {r.value} for {r.bucket_key}/{r.category}",
                index=i,
            )
        else:
            out.append(r.model_copy(update={"value": 0.0}))

    return out

# =============================================================================
# AGGREGATION
# =============================================================================

def records_to_frame(records: List[Record]) -> pd.DataFrame:
    if not records:
        return pd.DataFrame(columns=FRAME_COLUMNS)
    return pd.DataFrame([r.model_dump() for r in records], columns=FRAME_COLUMNS)


def aggregate(
    records: Iterable[RecordLike],
    negative_policy: Optional[str] = None,
) -> AggregateResult:
    """
    Group records by bucket and stack categories in first-seen order.

    Duplicate (bucket, category) records are summed so the stack-sum
    invariant holds for any input.
    """
    clean = apply_negative_policy(coerce_records(records), negative_policy)
    df = records_to_frame(clean)

    if df.empty:
        logger.debug("[aggregate] No records; empty stack.")
        return AggregateResult()

    bucket_keys = [str(k) for k in pd.unique(df["bucket_key"])]
    categories = [str(c) for c in pd.unique(df["category"])]

    # unstack sorts both axes; reindex restores first-seen order
    values = (
        df.groupby(["bucket_key", "category"], sort=False)["value"]
        .sum()
        .unstack(fill_value=0.0)
        .reindex(index=bucket_keys, columns=categories, fill_value=0.0)
        .astype(float)
    )
    tops = values.cumsum(axis=1)
    bottoms = tops.shift(1, axis=1, fill_value=0.0)

    series = [
        StackedSeries(
            category=category,
            index=idx,
            points=[
                StackedPoint(
                    bucket_key=key,
                    bottom=float(bottoms.at[key, category]),
                    top=float(tops.at[key, category]),
                )
                for key in bucket_keys
            ],
        )
        for idx, category in enumerate(categories)
    ]
    totals = {key: float(values.loc[key].sum()) for key in bucket_keys}

    logger.debug(
        f"[aggregate] {len(clean)} records → "
        f"{len(bucket_keys)} buckets × {len(categories)} categories"
    )

    return AggregateResult(
        categories=categories,
        bucket_keys=bucket_keys,
        series=series,
        totals=totals,
    )

# =============================================================================
# TABULAR VIEW
# =============================================================================

def to_frame(result: AggregateResult) -> pd.DataFrame:
    """
    Long-form DataFrame of the stacked intervals (one row per segment).

    Used by the UI data table and the Altair preview.
    """
    rows = [
        {
            "bucket_key": p.bucket_key,
            "category": s.category,
            "order": s.index,
            "value": p.value,
            "bottom": p.bottom,
            "top": p.top,
        }
        for s in result.series
        for p in s.points
    ]
    return pd.DataFrame(
        rows,
        columns=["bucket_key", "category", "order", "value", "bottom", "top"],
    )
