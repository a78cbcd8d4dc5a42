"""
Data schemas for the stacked bar chart.

These schemas are the contract between:
UI shell ↔ Widget ↔ Aggregator ↔ Scale Builder ↔ Renderer

Inputs (Record, OverlayTarget, ChartDimensions) are validated here so the
rest of the pipeline can assume finite numbers and sane extents.
"""

from typing import Dict, List

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator

# =============================================================================
# INPUT SCHEMAS
# =============================================================================

class Record(BaseModel):
    """
    Single input observation.

    Mappings coming from the UI may use `date` for the bucket key, which is
    what the sample data and the randomize control produce.
    """
    model_config = ConfigDict(frozen=True)

    bucket_key: str = Field(
        ...,
        validation_alias=AliasChoices("bucket_key", "bucketKey", "date"),
        description="Discrete grouping key along the x axis (e.g. '2024-01').",
    )
    category: str = Field(
        ...,
        description="Stack layer the value belongs to.",
    )
    value: float = Field(
        ...,
        allow_inf_nan=False,
        description="Finite numeric contribution of this category to the bucket.",
    )


class OverlayTarget(BaseModel):
    """
    Target value drawn as the overlay line for one bucket.
    """
    model_config = ConfigDict(frozen=True)

    bucket_key: str = Field(
        ...,
        validation_alias=AliasChoices("bucket_key", "bucketKey", "date"),
        description="Bucket the target is matched to on the band scale.",
    )
    target_value: float = Field(
        ...,
        validation_alias=AliasChoices("target_value", "targetValue", "value"),
        allow_inf_nan=False,
        description="Finite target value; also widens the value domain.",
    )


class Margin(BaseModel):
    model_config = ConfigDict(frozen=True)

    top: int = 20
    right: int = 120
    bottom: int = 30
    left: int = 40


class ChartDimensions(BaseModel):
    """
    Outer pixel size of the chart plus the margin reserved for axes/legend.
    """
    model_config = ConfigDict(frozen=True)

    width: int = Field(default=800, gt=0, description="Outer SVG width in px.")
    height: int = Field(default=400, gt=0, description="Outer SVG height in px.")
    margin: Margin = Field(default_factory=Margin)

    @model_validator(mode="after")
    def _check_inner_extent(self) -> "ChartDimensions":
        if self.inner_width < 0 or self.inner_height < 0:
            raise ValueError(
                f"Chart {self.width}x{self.height} is smaller than its margins"
            )
        return self

    @property
    def inner_width(self) -> int:
        return self.width - self.margin.left - self.margin.right

    @property
    def inner_height(self) -> int:
        return self.height - self.margin.top - self.margin.bottom

# =============================================================================
# AGGREGATION SCHEMAS
# =============================================================================

class StackedPoint(BaseModel):
    """One category's interval inside one bucket."""
    model_config = ConfigDict(frozen=True)

    bucket_key: str
    bottom: float
    top: float

    @property
    def value(self) -> float:
        return self.top - self.bottom


class StackedSeries(BaseModel):
    """
    All intervals of a single category, one per bucket, in bucket order.
    """
    model_config = ConfigDict(frozen=True)

    category: str
    index: int = Field(..., ge=0, description="Position in first-seen category order.")
    points: List[StackedPoint] = Field(default_factory=list)


class AggregateResult(BaseModel):
    """
    Output of the aggregator.

    `series` is category-major (what the renderer iterates);
    `buckets` offers the bucket-major view of the same intervals.
    """
    model_config = ConfigDict(frozen=True)

    categories: List[str] = Field(default_factory=list)
    bucket_keys: List[str] = Field(default_factory=list)
    series: List[StackedSeries] = Field(default_factory=list)
    totals: Dict[str, float] = Field(
        default_factory=dict,
        description="Sum of input values per bucket.",
    )

    @property
    def is_empty(self) -> bool:
        return not self.bucket_keys

    @property
    def buckets(self) -> Dict[str, Dict[str, StackedPoint]]:
        view: Dict[str, Dict[str, StackedPoint]] = {k: {} for k in self.bucket_keys}
        for s in self.series:
            for p in s.points:
                view[p.bucket_key][s.category] = p
        return view

    def edges(self) -> List[float]:
        return [v for s in self.series for p in s.points for v in (p.bottom, p.top)]

    @property
    def max_stack(self) -> float:
        """Highest interval edge across all layers (0 when empty)."""
        return max(self.edges(), default=0.0)

    @property
    def min_stack(self) -> float:
        """Lowest interval edge; below 0 only when negatives are allowed."""
        return min(self.edges(), default=0.0)
