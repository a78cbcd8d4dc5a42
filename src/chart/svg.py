"""
SVG serialisation of a ChartScene.

Produces a self-contained <svg> string:
- element attributes hold the FINAL geometry
- entrance transitions become SMIL <animate> elements (values/keyTimes
  encode the stagger delay, so nothing depends on begin offsets)
- every bar carries a <title> so browsers show a native hover label
  and a data-state; the hovered bar is outlined
- an active Tooltip from the interaction state is drawn on top

All text is HTML-escaped; category and bucket names are user data.
"""

from html import escape
from typing import List, Optional

from src.chart.scene import (
    Axis,
    BarRect,
    ChartScene,
    ElementState,
    LegendEntry,
    TargetLabel,
    TargetPath,
    Tooltip,
    Transition,
    format_number,
)

# =============================================================================
# CONFIGURATION
# =============================================================================

FONT_FAMILY = "sans-serif"
FONT_SIZE = 10
TICK_SIZE = 6
LEGEND_SWATCH = 15
AXIS_COLOR = "currentColor"
HOVER_STROKE = "#333"
HOVER_STROKE_WIDTH = 2


def _n(value: float) -> str:
    """Compact numeric attribute."""
    return f"{value:.2f}".rstrip("0").rstrip(".") if value != int(value) else str(int(value))


def _attr(value: object) -> str:
    return escape(str(value), quote=True)

# =============================================================================
# ANIMATION
# =============================================================================

def _animate(attribute: str, start: float, end: float, transition: Transition) -> str:
    total = transition.duration_ms + transition.delay_ms
    if total <= 0:
        return ""

    if transition.delay_ms:
        hold = transition.delay_ms / total
        values = f"{_n(start)};{_n(start)};{_n(end)}"
        key_times = f' keyTimes="0;{hold:.4f};1"'
    else:
        values = f"{_n(start)};{_n(end)}"
        key_times = ""

    return (
        f'<animate attributeName="{attribute}" values="{values}"{key_times} '
        f'dur="{total}ms" fill="freeze"/>'
    )

# =============================================================================
# ELEMENTS
# =============================================================================

def _bar(bar: BarRect, animate: bool) -> str:
    title = f"{bar.category} · {bar.bucket_key}: {format_number(bar.value)}"
    outline = ""
    if bar.state == ElementState.HOVERED:
        outline = f' stroke="{HOVER_STROKE}" stroke-width="{HOVER_STROKE_WIDTH}"'
    parts = [
        f'<rect class="bar" data-category="{_attr(bar.category)}" '
        f'data-bucket="{_attr(bar.bucket_key)}" id="{_attr(bar.id)}" data-state="{bar.state.value}" '
        f'x="{_n(bar.x)}" y="{_n(bar.y)}" width="{_n(bar.width)}" height="{_n(bar.height)}"{outline}>',
        f"<title>{escape(title)}</title>",
    ]
    if animate and bar.enter is not None:
        for attribute in ("y", "height"):
            start = bar.enter.start.get(attribute)
            if start is not None:
                parts.append(_animate(attribute, start, getattr(bar, attribute), bar.enter))
    parts.append("</rect>")
    return "".join(parts)


def _bar_groups(scene: ChartScene, animate: bool) -> List[str]:
    parts: List[str] = []
    for category in scene.categories:
        bars = scene.bars_for(category)
        if not bars:
            continue
        opacity = bars[0].opacity
        parts.append(
            f'<g class="category" data-category="{_attr(category)}" '
            f'fill="{_attr(bars[0].fill)}" opacity="{_n(opacity)}">'
        )
        parts.extend(_bar(b, animate) for b in bars)
        parts.append("</g>")
    return parts


def _axis(axis: Axis) -> List[str]:
    lo, hi = sorted(axis.extent)
    parts = [
        f'<g class="axis axis-{axis.orient}" transform="translate({_n(axis.offset_x)},{_n(axis.offset_y)})" '
        f'fill="none" font-size="{FONT_SIZE}" font-family="{FONT_FAMILY}">'
    ]

    if axis.orient == "bottom":
        parts.append(
            f'<path class="domain" stroke="{AXIS_COLOR}" '
            f'd="M{_n(lo)},{TICK_SIZE}V0H{_n(hi)}V{TICK_SIZE}"/>'
        )
        for tick in axis.ticks:
            parts.append(
                f'<g class="tick" transform="translate({_n(tick.position)},0)">'
                f'<line stroke="{AXIS_COLOR}" y2="{TICK_SIZE}"/>'
                f'<text fill="{AXIS_COLOR}" y="{TICK_SIZE + 3}" dy="0.71em" '
                f'text-anchor="middle">{escape(tick.label)}</text></g>'
            )
    else:
        parts.append(
            f'<path class="domain" stroke="{AXIS_COLOR}" '
            f'd="M-{TICK_SIZE},{_n(hi)}H0V{_n(lo)}H-{TICK_SIZE}"/>'
        )
        for tick in axis.ticks:
            parts.append(
                f'<g class="tick" transform="translate(0,{_n(tick.position)})">'
                f'<line stroke="{AXIS_COLOR}" x2="-{TICK_SIZE}"/>'
                f'<text fill="{AXIS_COLOR}" x="-{TICK_SIZE + 3}" dy="0.32em" '
                f'text-anchor="end">{escape(tick.label)}</text></g>'
            )

    parts.append("</g>")
    return parts


def _target_line(path: TargetPath, animate: bool) -> str:
    fade = ""
    if animate and path.enter is not None:
        fade = _animate("opacity", path.enter.start.get("opacity", 0.0), 1.0, path.enter)
    return (
        f'<path class="target-line" fill="none" stroke="{_attr(path.stroke)}" '
        f'stroke-width="{_n(path.stroke_width)}" d="{_attr(path.d)}">{fade}</path>'
    )


def _target_label(label: TargetLabel) -> str:
    return (
        f'<text class="target-label" x="{_n(label.x)}" y="{_n(label.y)}" '
        f'text-anchor="middle" fill="{_attr(label.fill)}" '
        f'font-size="{FONT_SIZE}" font-family="{FONT_FAMILY}">{escape(label.text)}</text>'
    )


def _legend(entries: List[LegendEntry]) -> List[str]:
    if not entries:
        return []

    parts = [
        f'<g class="legend" font-family="{FONT_FAMILY}" font-size="{FONT_SIZE}" text-anchor="start">'
    ]
    for entry in entries:
        parts.append(
            f'<g class="legend-entry" data-category="{_attr(entry.category)}" '
            f'transform="translate({_n(entry.x)},{_n(entry.y)})" style="cursor: pointer" '
            f'opacity="{_n(entry.opacity)}">'
            f'<rect x="-{LEGEND_SWATCH + 2}" width="{LEGEND_SWATCH}" height="{LEGEND_SWATCH}" '
            f'fill="{_attr(entry.color)}"/>'
            f'<text x="0" y="12">{escape(entry.category)}</text></g>'
        )
    parts.append("</g>")
    return parts


def _tooltip(tooltip: Tooltip) -> str:
    return (
        f'<g class="tooltip" transform="translate({_n(tooltip.x)},{_n(tooltip.y)})" '
        f'pointer-events="none">'
        f'<rect fill="white" stroke="#999" rx="4" ry="4" '
        f'width="{_n(tooltip.width)}" height="{_n(tooltip.height)}"/>'
        f'<text x="5" y="20" font-family="{FONT_FAMILY}" font-size="12">{escape(tooltip.text)}</text>'
        f"</g>"
    )

# =============================================================================
# PUBLIC API
# =============================================================================

def to_svg(scene: ChartScene, animate: bool = True, title: Optional[str] = None) -> str:
    """Serialise `scene` to an SVG document string."""
    parts = [
        f'<svg xmlns="http://www.w3.org/2000/svg" width="{scene.width}" height="{scene.height}" '
        f'viewBox="0 0 {scene.width} {scene.height}">'
    ]
    if title:
        parts.append(f"<title>{escape(title)}</title>")

    parts.append(
        f'<g class="plot" transform="translate({scene.margin.left},{scene.margin.top})">'
    )
    parts.extend(_bar_groups(scene, animate))

    if scene.target_line is not None:
        parts.append(_target_line(scene.target_line, animate))
    parts.extend(_target_label(label) for label in scene.target_labels)

    for axis in (scene.x_axis, scene.y_axis):
        if axis is not None:
            parts.extend(_axis(axis))
    parts.append("</g>")

    parts.extend(_legend(scene.legend))

    if scene.tooltip is not None:
        parts.append(_tooltip(scene.tooltip))

    parts.append("</svg>")
    return "".join(parts)
