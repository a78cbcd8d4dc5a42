"""
Draw-command schemas.

A ChartScene is the complete, declarative output of one render pass:
every rectangle, axis tick, legend entry and overlay primitive with its
final geometry plus the transition metadata needed to animate it in.
Nothing here knows about SVG; see src/chart/svg.py for serialisation.
"""

from enum import Enum
from typing import Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from src.chart.models import Margin

# =============================================================================
# FORMATTING
# =============================================================================

def format_number(value: float) -> str:
    """Render 50.0 as '50' and 52.5 as '52.5'."""
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return repr(value)

# =============================================================================
# PRIMITIVES
# =============================================================================

class ElementState(str, Enum):
    """Per-bar interaction state, projected onto the scene by ChartInteraction."""
    NORMAL = "normal"
    HOVERED = "hovered"
    DIMMED = "dimmed"


class Transition(BaseModel):
    """
    Animation applied to an element.

    `start` holds the attribute values the element animates from; the
    element's own fields are the end state.
    """
    model_config = ConfigDict(frozen=True)

    duration_ms: int = Field(..., ge=0)
    delay_ms: int = Field(default=0, ge=0)
    start: Dict[str, float] = Field(default_factory=dict)


class BarRect(BaseModel):
    """One stacked segment (category × bucket)."""
    model_config = ConfigDict(frozen=True)

    id: str
    category: str
    bucket_key: str
    x: float
    y: float
    width: float
    height: float
    fill: str
    bottom: float = Field(..., description="Interval start in data units.")
    top: float = Field(..., description="Interval end in data units.")
    opacity: float = 1.0
    state: ElementState = ElementState.NORMAL
    enter: Optional[Transition] = None

    @property
    def value(self) -> float:
        return self.top - self.bottom


class AxisTick(BaseModel):
    model_config = ConfigDict(frozen=True)

    label: str
    position: float


class Axis(BaseModel):
    """
    Axis placed at (offset_x, offset_y) inside the plot group.

    `extent` is the pixel range the domain line spans.
    """
    model_config = ConfigDict(frozen=True)

    orient: Literal["bottom", "left"]
    offset_x: float = 0.0
    offset_y: float = 0.0
    extent: Tuple[float, float]
    ticks: List[AxisTick] = Field(default_factory=list)


class LegendEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    category: str
    color: str
    x: float
    y: float
    opacity: float = 1.0


class TargetPath(BaseModel):
    model_config = ConfigDict(frozen=True)

    d: str
    points: List[Tuple[float, float]] = Field(default_factory=list)
    stroke: str = "red"
    stroke_width: float = 2.0
    enter: Optional[Transition] = None


class TargetLabel(BaseModel):
    model_config = ConfigDict(frozen=True)

    bucket_key: str
    x: float
    y: float
    text: str
    fill: str = "red"


class Tooltip(BaseModel):
    """Transient hover label; at most one exists per scene."""
    model_config = ConfigDict(frozen=True)

    bar_id: str
    category: str
    bucket_key: str
    value: float
    x: float
    y: float
    width: float = 120.0
    height: float = 30.0

    @property
    def text(self) -> str:
        return f"{self.category}: {format_number(self.value)}"

# =============================================================================
# SCENE
# =============================================================================

class ChartScene(BaseModel):
    """
    Result of one render pass.

    `exit` is the fade applied to the previous pass's elements before this
    scene replaces them.
    """
    model_config = ConfigDict(frozen=True)

    width: int
    height: int
    margin: Margin
    inner_width: int
    inner_height: int
    bucket_keys: List[str] = Field(default_factory=list)
    categories: List[str] = Field(default_factory=list)
    value_domain: Tuple[float, float] = (0.0, 0.0)
    bandwidth: float = 0.0
    bars: List[BarRect] = Field(default_factory=list)
    x_axis: Optional[Axis] = None
    y_axis: Optional[Axis] = None
    legend: List[LegendEntry] = Field(default_factory=list)
    target_line: Optional[TargetPath] = None
    target_labels: List[TargetLabel] = Field(default_factory=list)
    tooltip: Optional[Tooltip] = None
    exit: Optional[Transition] = None

    @property
    def is_empty(self) -> bool:
        return not self.bars and self.target_line is None

    def bars_for(self, category: str) -> List[BarRect]:
        return [b for b in self.bars if b.category == category]

    def bar(self, bar_id: str) -> Optional[BarRect]:
        return next((b for b in self.bars if b.id == bar_id), None)
