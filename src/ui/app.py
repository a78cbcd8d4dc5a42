"""
STREAMLIT UI — STACKED BAR CHART
--------------------------------

Responsibilities:
- Own the chart widget across reruns (session state)
- Wire controls to the widget's mutation entry points:
  target inputs, legend toggles, hover inspector, randomize, resize
- Present the SVG chart, an Altair preview and the aggregated table

Design principles:
- UI holds no chart logic; every change goes through the widget
- One full re-render per change (Streamlit reruns the script anyway)

Usage:
    streamlit run src/ui/app.py
"""

import streamlit as st

from src.chart.errors import ChartError
from src.chart.widget import StackedBarChart
from src.ui.components.charts import render_altair_chart, render_data_table, render_svg_chart
from src.utils.logger import get_logger

logger = get_logger(__name__)

# =============================================================================
# PAGE CONFIGURATION
# =============================================================================

st.set_page_config(
    page_title="Stacked Bar Chart",
    page_icon="📊",
    layout="wide",
)

st.markdown("<h1 style='margin-bottom:0.2rem;'>📊 Stacked Bar Chart</h1>", unsafe_allow_html=True)
st.caption("Stacked categories · Quarterly target overlay · Legend toggling")

# =============================================================================
# SESSION STATE INITIALIZATION
# =============================================================================

if "chart" not in st.session_state:
    st.session_state.chart = StackedBarChart()
    logger.info("[ui] Chart widget created")

chart: StackedBarChart = st.session_state.chart

NO_HOVER = "—"

# =============================================================================
# SIDEBAR — SIZE
# =============================================================================

with st.sidebar:
    st.markdown("### 📐 Size")
    width = st.number_input("Width", min_value=200, max_value=2000, value=chart.dimensions.width, step=50)
    height = st.number_input("Height", min_value=120, max_value=1200, value=chart.dimensions.height, step=50)

    if (width, height) != (chart.dimensions.width, chart.dimensions.height):
        try:
            chart.resize(int(width), int(height))
        except ChartError as e:
            st.error(str(e))

# =============================================================================
# TARGET INPUTS
# =============================================================================

if chart.targets:
    st.markdown("### 🎯 Quarterly Targets")
    cols = st.columns(len(chart.targets))

    for i, (col, target) in enumerate(zip(cols, chart.targets)):
        with col:
            new_value = st.number_input(
                f"{target.bucket_key}:",
                value=float(target.target_value),
                step=1.0,
                key=f"target-{i}",
            )
        if new_value != target.target_value:
            try:
                chart.set_target(target.bucket_key, new_value)
            except ChartError as e:
                st.error(str(e))

# =============================================================================
# LEGEND & HOVER CONTROLS
# =============================================================================

col_legend, col_hover = st.columns([0.6, 0.4])

with col_legend:
    st.markdown("#### Legend")
    scene = chart.scene
    if scene.categories:
        legend_cols = st.columns(len(scene.categories))
        for col, category in zip(legend_cols, scene.categories):
            marker = "◻" if chart.interaction.is_dimmed(category) else "■"
            with col:
                if st.button(f"{marker} {category}", key=f"legend-{category}", use_container_width=True):
                    chart.toggle_legend(category)
                    st.rerun()

with col_hover:
    st.markdown("#### Inspect segment")
    labels = {b.id: f"{b.bucket_key} · {b.category}" for b in chart.scene.bars}
    picked = st.selectbox(
        "Segment",
        options=[NO_HOVER] + list(labels),
        format_func=lambda k: labels.get(k, k),
        label_visibility="collapsed",
    )
    if picked == NO_HOVER:
        chart.leave()
    else:
        chart.hover(picked)

# =============================================================================
# CHART
# =============================================================================

if chart.error:
    st.error(f"Chart could not be drawn: {chart.error}")

render_svg_chart(chart.to_svg(), chart.dimensions.height)

if st.button("🎲 Randomize Data"):
    chart.randomize()
    st.rerun()

# =============================================================================
# DETAILS
# =============================================================================

frame = chart.frame()

with st.expander("📈 Vega-Lite preview"):
    render_altair_chart(frame, chart.scene.categories, chart.scene.bucket_keys, chart.targets)

with st.expander("🧮 Stacked segments"):
    render_data_table(frame)
