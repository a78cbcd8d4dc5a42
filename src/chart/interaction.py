"""
Pointer and legend interaction state.

Hover and legend toggles are tracked explicitly here instead of being
read back from rendered attributes:

- hover:  idle ⇄ hovering, at most one tooltip at a time
- legend: each category independently normal ⇄ dimmed

State is local to one render pass; the widget calls reset() whenever it
redraws.
"""

from typing import Optional, Set

from src.chart.scene import BarRect, ChartScene, ElementState, Tooltip
from src.utils.logger import get_logger

logger = get_logger(__name__)

# =============================================================================
# CONFIGURATION
# =============================================================================

FULL_OPACITY = 1.0
DIMMED_OPACITY = 0.2
TOOLTIP_OFFSET = 10.0


class ChartInteraction:
    def __init__(self, dimmed_opacity: float = DIMMED_OPACITY):
        self.dimmed_opacity = dimmed_opacity
        self._dimmed: Set[str] = set()
        self.tooltip: Optional[Tooltip] = None

    # -------------------------------------------------------------------------
    # Hover
    # -------------------------------------------------------------------------

    def pointer_enter(self, bar: BarRect, pointer_x: float, pointer_y: float) -> Tooltip:
        """
        Show the tooltip for `bar` near the pointer, replacing any other.
        """
        self.tooltip = Tooltip(
            bar_id=bar.id,
            category=bar.category,
            bucket_key=bar.bucket_key,
            value=bar.value,
            x=pointer_x - TOOLTIP_OFFSET,
            y=pointer_y - TOOLTIP_OFFSET,
        )
        return self.tooltip

    def pointer_leave(self) -> None:
        self.tooltip = None

    @property
    def hovered_id(self) -> Optional[str]:
        return self.tooltip.bar_id if self.tooltip else None

    # -------------------------------------------------------------------------
    # Legend
    # -------------------------------------------------------------------------

    def is_dimmed(self, category: str) -> bool:
        return category in self._dimmed

    def opacity(self, category: str) -> float:
        return self.dimmed_opacity if category in self._dimmed else FULL_OPACITY

    def toggle_legend(self, category: str) -> float:
        """Flip the category between full and dimmed opacity; returns the new one."""
        if category in self._dimmed:
            self._dimmed.discard(category)
        else:
            self._dimmed.add(category)

        new_opacity = self.opacity(category)
        logger.debug(f"[interaction] legend {category!r} → opacity {new_opacity}")
        return new_opacity

    # -------------------------------------------------------------------------
    # Scene projection
    # -------------------------------------------------------------------------

    def state_of(self, bar: BarRect) -> ElementState:
        if bar.id == self.hovered_id:
            return ElementState.HOVERED
        if bar.category in self._dimmed:
            return ElementState.DIMMED
        return ElementState.NORMAL

    def apply(self, scene: ChartScene) -> ChartScene:
        """Copy of `scene` with current opacities, bar states and tooltip."""
        bars = [
            b.model_copy(update={"opacity": self.opacity(b.category), "state": self.state_of(b)})
            for b in scene.bars
        ]
        legend = [e.model_copy(update={"opacity": self.opacity(e.category)}) for e in scene.legend]

        tooltip = self.tooltip
        if tooltip is not None and scene.bar(tooltip.bar_id) is None:
            tooltip = None

        return scene.model_copy(update={"bars": bars, "legend": legend, "tooltip": tooltip})

    def reset(self) -> None:
        self._dimmed.clear()
        self.tooltip = None
