"""
Stacked bar chart widget.

Responsibilities:
- Own the record array, the target array and the chart size
- Expose the mutation entry points used by the UI shell
  (replace records, randomize, set one target, resize)
- Re-render synchronously after every mutation (last write wins)
- Hold hover / legend interaction state for the current scene

Design principles:
- Rendering itself stays a pure function (src/chart/renderer.py)
- Inputs are validated on the way in; stored state is always valid
- A failed render never propagates to the host: it degrades to an
  empty scene and the message is kept on `error`
"""

import os
from typing import Iterable, List, Optional, Tuple

import numpy as np
import pandas as pd
from dotenv import load_dotenv
from pydantic import ValidationError

from src.chart.aggregator import RecordLike, TargetLike, aggregate, coerce_records, coerce_targets, to_frame
from src.chart.errors import ChartDataError, ChartError, UnknownBucketError
from src.chart.interaction import ChartInteraction
from src.chart.models import ChartDimensions, OverlayTarget, Record
from src.chart.renderer import empty_scene, render
from src.chart.sample_data import DEFAULT_TARGETS, SAMPLE_RECORDS
from src.chart.scene import ChartScene, Tooltip
from src.chart.svg import to_svg
from src.utils.logger import get_logger

load_dotenv()
logger = get_logger(__name__)

# =============================================================================
# CONFIGURATION
# =============================================================================

DEFAULT_WIDTH = int(os.getenv("CHART_WIDTH", "800"))
DEFAULT_HEIGHT = int(os.getenv("CHART_HEIGHT", "400"))

# randomize() draws integers in [RANDOM_MIN, RANDOM_MAX)
RANDOM_MIN = 10
RANDOM_MAX = 60


def _dimensions(width: int, height: int) -> ChartDimensions:
    try:
        return ChartDimensions(width=width, height=height)
    except ValidationError as e:
        raise ChartDataError(f"Invalid chart size {width}x{height}: {e}") from e


class StackedBarChart:
    """
    Stateful shell around render().

    Omitting `initial_data` seeds the built-in sample records; omitting
    `targets` seeds the default quarterly targets. `show_targets=False`
    renders the bars-only variant.
    """

    def __init__(
        self,
        width: Optional[int] = None,
        height: Optional[int] = None,
        initial_data: Optional[Iterable[RecordLike]] = None,
        targets: Optional[Iterable[TargetLike]] = None,
        show_targets: bool = True,
        seed: Optional[int] = None,
        unknown_bucket: Optional[str] = None,
        negative_policy: Optional[str] = None,
        padding: Optional[float] = None,
    ):
        self._dims = _dimensions(width or DEFAULT_WIDTH, height or DEFAULT_HEIGHT)
        self._records: List[Record] = (
            coerce_records(initial_data) if initial_data is not None else list(SAMPLE_RECORDS)
        )

        self._targets: Optional[List[OverlayTarget]] = None
        if show_targets:
            self._targets = coerce_targets(targets) if targets is not None else list(DEFAULT_TARGETS)

        self._rng = np.random.default_rng(seed)
        self._unknown_bucket = unknown_bucket
        self._negative_policy = negative_policy
        self._padding = padding

        self.interaction = ChartInteraction()
        self.render_count = 0
        self.error: Optional[str] = None
        self.scene: ChartScene = empty_scene(self._dims)

        self.refresh()

    # -------------------------------------------------------------------------
    # Read-only state
    # -------------------------------------------------------------------------

    @property
    def records(self) -> Tuple[Record, ...]:
        return tuple(self._records)

    @property
    def targets(self) -> Tuple[OverlayTarget, ...]:
        return tuple(self._targets or ())

    @property
    def dimensions(self) -> ChartDimensions:
        return self._dims

    @property
    def view(self) -> ChartScene:
        """Current scene with interaction state applied."""
        return self.interaction.apply(self.scene)

    def frame(self) -> pd.DataFrame:
        return to_frame(aggregate(self._records, negative_policy=self._negative_policy))

    def to_svg(self, animate: bool = True) -> str:
        return to_svg(self.view, animate=animate)

    # -------------------------------------------------------------------------
    # Render pass
    # -------------------------------------------------------------------------

    def refresh(self) -> ChartScene:
        """Full redraw; discards hover and legend state of the previous pass."""
        self.render_count += 1
        self.interaction.reset()

        try:
            self.scene = render(
                self._records,
                self._targets,
                self._dims,
                padding=self._padding,
                unknown_bucket=self._unknown_bucket,
                negative_policy=self._negative_policy,
            )
            self.error = None
        except ChartError as e:
            logger.error(f"[widget] Render pass #{self.render_count} failed", exc_info=True)
            self.scene = empty_scene(self._dims)
            self.error = str(e)

        return self.scene

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def set_records(self, records: Iterable[RecordLike]) -> ChartScene:
        """Replace the full record array. Raises ChartDataError on bad input."""
        self._records = coerce_records(records)
        logger.info(f"[widget] Records replaced ({len(self._records)} rows)")
        return self.refresh()

    def randomize(self) -> ChartScene:
        """New integer values in [10, 60); bucket and category sets are kept."""
        values = self._rng.integers(RANDOM_MIN, RANDOM_MAX, size=len(self._records))
        return self.set_records(
            r.model_copy(update={"value": float(v)})
            for r, v in zip(self._records, values)
        )

    def set_target(self, bucket_key: str, value: float) -> ChartScene:
        """Replace one target value; the value domain is recomputed."""
        if self._targets is None:
            raise ChartDataError("Targets are disabled for this chart")

        try:
            updated = OverlayTarget(bucket_key=bucket_key, target_value=value)
        except ValidationError as e:
            raise ChartDataError(f"Invalid target for {bucket_key!r}: {e}") from e

        for i, target in enumerate(self._targets):
            if target.bucket_key == bucket_key:
                self._targets[i] = updated
                break
        else:
            raise UnknownBucketError(bucket_key)

        logger.info(f"[widget] Target {bucket_key} = {value}")
        return self.refresh()

    def resize(self, width: int, height: int) -> ChartScene:
        self._dims = _dimensions(width, height)
        return self.refresh()

    # -------------------------------------------------------------------------
    # Interaction
    # -------------------------------------------------------------------------

    def hover(
        self,
        bar_id: str,
        pointer_x: Optional[float] = None,
        pointer_y: Optional[float] = None,
    ) -> Optional[Tooltip]:
        """
        Pointer entered a bar. Coordinates are in outer SVG space and
        default to the top centre of the bar.
        """
        bar = self.scene.bar(bar_id)
        if bar is None:
            logger.debug(f"[widget] hover on unknown bar {bar_id!r}")
            return None

        margin = self._dims.margin
        if pointer_x is None:
            pointer_x = margin.left + bar.x + bar.width / 2
        if pointer_y is None:
            pointer_y = margin.top + bar.y

        return self.interaction.pointer_enter(bar, pointer_x, pointer_y)

    def leave(self) -> None:
        self.interaction.pointer_leave()

    def toggle_legend(self, category: str) -> float:
        return self.interaction.toggle_legend(category)
