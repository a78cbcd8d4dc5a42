"""
CHART RENDERING COMPONENT
-------------------------

Streamlit adapters for the stacked bar chart.

- render_svg_chart:    embeds the widget's SVG (animations + hover titles)
- build_altair_chart:  the same stacks as a Vega-Lite layer chart, with
                       legend-bound opacity toggling and native tooltips
- render_data_table:   the aggregated segments as a DataFrame

UI-only: no aggregation or scale logic lives here.
"""

from typing import List, Optional, Sequence, Union

import altair as alt
import pandas as pd
import streamlit as st
import streamlit.components.v1 as components

from src.chart.interaction import DIMMED_OPACITY
from src.chart.models import OverlayTarget
from src.chart.scales import CATEGORY10
from src.chart.scene import format_number

# =============================================================================
# SVG
# =============================================================================

def render_svg_chart(svg: str, height: int):
    """
    Embed SVG markup. components.html renders it untouched in an iframe,
    so SMIL animations and <title> hovers run as written.
    """
    components.html(
        f"<div style='font-family:sans-serif'>{svg}</div>",
        height=height + 16,
    )

# =============================================================================
# ALTAIR PREVIEW
# =============================================================================

def build_altair_chart(
    frame: pd.DataFrame,
    categories: Sequence[str],
    bucket_keys: Sequence[str],
    targets: Optional[Sequence[OverlayTarget]] = None,
    height: int = 300,
) -> Union[alt.Chart, alt.LayerChart]:
    """
    Vega-Lite rendition of the stacked intervals in `frame`
    (see src.chart.aggregator.to_frame).
    """
    palette: List[str] = [CATEGORY10[i % len(CATEGORY10)] for i in range(len(categories))]
    legend_pick = alt.selection_point(fields=["category"], bind="legend")
    x = alt.X("bucket_key:N", sort=list(bucket_keys), title=None)

    bars = (
        alt.Chart(frame)
        .mark_bar()
        .encode(
            x=x,
            y=alt.Y("top:Q", title=None),
            y2="bottom:Q",
            color=alt.Color(
                "category:N",
                sort=list(categories),
                scale=alt.Scale(domain=list(categories), range=palette),
            ),
            opacity=alt.condition(legend_pick, alt.value(1.0), alt.value(DIMMED_OPACITY)),
            tooltip=["bucket_key", "category", "value"],
        )
        .add_params(legend_pick)
        .properties(height=height)
    )

    if not targets:
        return bars

    tdf = pd.DataFrame(
        [
            {
                "bucket_key": t.bucket_key,
                "target_value": t.target_value,
                "label": f"Target: {format_number(t.target_value)}",
            }
            for t in targets
        ]
    )
    base = alt.Chart(tdf).encode(x=x, y=alt.Y("target_value:Q"))
    line = base.mark_line(color="red", strokeWidth=2, point=True)
    labels = base.mark_text(color="red", dy=-8).encode(text="label:N")

    return alt.layer(bars, line, labels)


def render_altair_chart(
    frame: pd.DataFrame,
    categories: Sequence[str],
    bucket_keys: Sequence[str],
    targets: Optional[Sequence[OverlayTarget]] = None,
):
    if frame.empty:
        st.info("No chart data to display.")
        return

    chart = build_altair_chart(frame, categories, bucket_keys, targets)
    st.altair_chart(chart, use_container_width=True)

# =============================================================================
# TABLE
# =============================================================================

def render_data_table(frame: pd.DataFrame):
    if frame.empty:
        st.info("No records.")
        return

    st.dataframe(
        frame[["bucket_key", "category", "value", "bottom", "top"]],
        hide_index=True,
        use_container_width=True,
    )
