"""
Chart renderer.

render(records, targets, dims) -> ChartScene

One pass = aggregate → build scales → emit draw commands. The function is
pure: no state survives between passes, and the caller replaces its
previous scene wholesale (full redraw-and-replace, no element diffing).
"""

import os
from typing import Iterable, List, Optional, Sequence, Tuple

from dotenv import load_dotenv

from src.chart.aggregator import RecordLike, TargetLike, aggregate, coerce_targets
from src.chart.errors import ChartDataError, UnknownBucketError
from src.chart.models import AggregateResult, ChartDimensions, OverlayTarget
from src.chart.scales import ChartScales, build_scales
from src.chart.scene import (
    Axis,
    AxisTick,
    BarRect,
    ChartScene,
    LegendEntry,
    TargetLabel,
    TargetPath,
    Transition,
    format_number,
)
from src.utils.logger import get_logger

load_dotenv()
logger = get_logger(__name__)

# =============================================================================
# CONFIGURATION
# =============================================================================

ENTER_DURATION_MS = 750
ENTER_STAGGER_MS = 50
EXIT_DURATION_MS = 300
OVERLAY_FADE_MS = 750

TARGET_COLOR = "red"
TARGET_STROKE_WIDTH = 2.0
TARGET_LABEL_OFFSET = 5.0

LEGEND_OFFSET_X = 10.0
LEGEND_SPACING = 20.0

UNKNOWN_BUCKET_POLICIES = ("zero", "skip", "raise")
UNKNOWN_BUCKET_POLICY = os.getenv("CHART_UNKNOWN_BUCKET", "zero").lower()

# =============================================================================
# BARS
# =============================================================================

def draw_bars(result: AggregateResult, scales: ChartScales, dims: ChartDimensions) -> List[BarRect]:
    """
    One rect per category per bucket.

    Negative intervals are drawn with their geometry normalised so the
    height stays non-negative; every bar grows out of the zero line.
    """
    baseline = scales.y(0.0)
    bars: List[BarRect] = []

    for series in result.series:
        fill = scales.color(series.category)
        for i, point in enumerate(series.points):
            y_top = scales.y(point.top)
            y_bottom = scales.y(point.bottom)
            bars.append(
                BarRect(
                    id=f"bar-{series.index}-{i}",
                    category=series.category,
                    bucket_key=point.bucket_key,
                    x=scales.x.lookup(point.bucket_key),
                    y=min(y_top, y_bottom),
                    width=scales.x.bandwidth,
                    height=abs(y_bottom - y_top),
                    fill=fill,
                    bottom=point.bottom,
                    top=point.top,
                    enter=Transition(
                        duration_ms=ENTER_DURATION_MS,
                        delay_ms=ENTER_STAGGER_MS * i,
                        start={"y": baseline, "height": 0.0},
                    ),
                )
            )

    return bars

# =============================================================================
# AXES & LEGEND
# =============================================================================

def draw_axes(scales: ChartScales, dims: ChartDimensions) -> Tuple[Axis, Axis]:
    x_axis = Axis(
        orient="bottom",
        offset_y=float(dims.inner_height),
        extent=scales.x.range,
        ticks=[
            AxisTick(label=key, position=scales.x.center(key))
            for key in scales.x.domain
        ],
    )
    y_axis = Axis(
        orient="left",
        extent=scales.y.range,
        ticks=[
            AxisTick(label=format_number(v), position=scales.y(v))
            for v in scales.y.ticks()
        ],
    )
    return x_axis, y_axis


def draw_legend(result: AggregateResult, scales: ChartScales, dims: ChartDimensions) -> List[LegendEntry]:
    x = dims.width - dims.margin.right + LEGEND_OFFSET_X
    return [
        LegendEntry(
            category=category,
            color=scales.color(category),
            x=x,
            y=dims.margin.top + i * LEGEND_SPACING,
        )
        for i, category in enumerate(result.categories)
    ]

# =============================================================================
# OVERLAY
# =============================================================================

def resolve_target_x(
    target: OverlayTarget,
    scales: ChartScales,
    policy: str,
) -> Optional[float]:
    """
    Centre of the target's band, or the policy's answer for unknown keys:
    zero → band start 0, skip → None, raise → UnknownBucketError.
    """
    if target.bucket_key in scales.x:
        return scales.x.center(target.bucket_key)

    if policy == "raise":
        raise UnknownBucketError(target.bucket_key)

    logger.warning(f"[render] Target bucket {target.bucket_key!r} not on x axis ({policy})")
    if policy == "skip":
        return None
    return scales.x.bandwidth / 2


def order_targets(targets: Sequence[OverlayTarget], scales: ChartScales) -> List[OverlayTarget]:
    """Bucket-key order; unknown buckets keep input order after known ones."""
    last = len(scales.x)
    return sorted(
        targets,
        key=lambda t: scales.x.index(t.bucket_key) if t.bucket_key in scales.x else last,
    )


def draw_overlay(
    targets: Sequence[OverlayTarget],
    scales: ChartScales,
    policy: str,
) -> Tuple[Optional[TargetPath], List[TargetLabel]]:
    points: List[Tuple[float, float]] = []
    labels: List[TargetLabel] = []

    for target in order_targets(targets, scales):
        x = resolve_target_x(target, scales, policy)
        if x is None:
            continue
        y = scales.y(target.target_value)
        points.append((x, y))
        labels.append(
            TargetLabel(
                bucket_key=target.bucket_key,
                x=x,
                y=y - TARGET_LABEL_OFFSET,
                text=f"Target: {format_number(target.target_value)}",
                fill=TARGET_COLOR,
            )
        )

    if not points:
        return None, labels

    d = "M" + "L".join(f"{x:g},{y:g}" for x, y in points)
    path = TargetPath(
        d=d,
        points=points,
        stroke=TARGET_COLOR,
        stroke_width=TARGET_STROKE_WIDTH,
        enter=Transition(duration_ms=OVERLAY_FADE_MS, start={"opacity": 0.0}),
    )
    return path, labels

# =============================================================================
# MAIN ENTRYPOINT
# =============================================================================

def empty_scene(dims: Optional[ChartDimensions] = None) -> ChartScene:
    """Scene for a pass that drew nothing."""
    dims = dims or ChartDimensions()
    return ChartScene(
        width=dims.width,
        height=dims.height,
        margin=dims.margin,
        inner_width=dims.inner_width,
        inner_height=dims.inner_height,
        exit=Transition(duration_ms=EXIT_DURATION_MS),
    )


def render(
    records: Iterable[RecordLike],
    targets: Optional[Iterable[TargetLike]] = None,
    dims: Optional[ChartDimensions] = None,
    *,
    padding: Optional[float] = None,
    unknown_bucket: Optional[str] = None,
    negative_policy: Optional[str] = None,
) -> ChartScene:
    """
    Build the full scene for the given data and size.

    `targets=None` renders the bars-only variant; an empty list renders
    no line but still participates in the value domain (as 0).
    """
    dims = dims or ChartDimensions()
    policy = (unknown_bucket or UNKNOWN_BUCKET_POLICY).lower()
    if policy not in UNKNOWN_BUCKET_POLICIES:
        raise ChartDataError(f"Unknown bucket policy: {policy!r}")

    result = aggregate(records, negative_policy=negative_policy)
    target_list = coerce_targets(targets)
    scales = build_scales(result, dims, target_list, padding)

    bars = draw_bars(result, scales, dims)
    x_axis, y_axis = draw_axes(scales, dims)
    legend = draw_legend(result, scales, dims)
    target_line, target_labels = draw_overlay(target_list, scales, policy)

    logger.info(
        f"[render] buckets={len(result.bucket_keys)} categories={len(result.categories)} "
        f"targets={len(target_list)} domain=[{scales.y.domain[0]:g}, {scales.y.domain[1]:g}]"
    )

    return ChartScene(
        width=dims.width,
        height=dims.height,
        margin=dims.margin,
        inner_width=dims.inner_width,
        inner_height=dims.inner_height,
        bucket_keys=result.bucket_keys,
        categories=result.categories,
        value_domain=scales.y.domain,
        bandwidth=scales.x.bandwidth,
        bars=bars,
        x_axis=x_axis,
        y_axis=y_axis,
        legend=legend,
        target_line=target_line,
        target_labels=target_labels,
        exit=Transition(duration_ms=EXIT_DURATION_MS),
    )
