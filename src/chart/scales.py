"""
Scale builder.

Three mappings derived fresh on every render:

- BandScale:     bucket key  → [start, start + bandwidth) pixel interval
- LinearScale:   value       → pixel y (inverted: 0 sits at inner_height)
- OrdinalColorScale: category → colour from a fixed palette

Lookups of unknown bucket keys are explicit: `lookup` raises, `get`
returns whatever fallback the caller passes.
"""

import math
import os
from typing import Dict, Iterable, List, NamedTuple, Optional, Sequence, Tuple

from dotenv import load_dotenv

from src.chart.errors import ChartDataError, UnknownBucketError
from src.chart.models import AggregateResult, ChartDimensions, OverlayTarget

load_dotenv()

# =============================================================================
# CONFIGURATION
# =============================================================================

DEFAULT_PADDING = float(os.getenv("CHART_BAND_PADDING", "0.1"))
DEFAULT_TICK_COUNT = 10
MIN_TICK_STEP = 1e-300

# d3.schemeCategory10
CATEGORY10: Tuple[str, ...] = (
    "#1f77b4",
    "#ff7f0e",
    "#2ca02c",
    "#d62728",
    "#9467bd",
    "#8c564b",
    "#e377c2",
    "#7f7f7f",
    "#bcbd22",
    "#17becf",
)

_E10 = math.sqrt(50)
_E5 = math.sqrt(10)
_E2 = math.sqrt(2)

# =============================================================================
# BAND SCALE
# =============================================================================

class BandScale:
    """
    Discrete positional scale.

    Inner and outer padding are both `padding` (a fraction of the step);
    leftover space is split by `align` (0.5 = centred).
    """

    def __init__(
        self,
        domain: Sequence[str],
        range_: Tuple[float, float],
        padding: float = DEFAULT_PADDING,
        align: float = 0.5,
    ):
        if not 0.0 <= padding <= 1.0:
            raise ChartDataError(f"Band padding must be within [0, 1], got {padding}")

        self.domain: List[str] = list(dict.fromkeys(domain))
        self.range = range_
        self.padding = padding
        self.align = align

        n = len(self.domain)
        start, stop = range_
        self.step = (stop - start) / max(1.0, n - padding + padding * 2)
        start += (stop - start - self.step * (n - padding)) * align
        self.bandwidth = self.step * (1 - padding)

        self._index: Dict[str, int] = {k: i for i, k in enumerate(self.domain)}
        self._positions = [start + self.step * i for i in range(n)]

    def __contains__(self, key: str) -> bool:
        return key in self._index

    def __len__(self) -> int:
        return len(self.domain)

    def index(self, key: str) -> int:
        try:
            return self._index[key]
        except KeyError:
            raise UnknownBucketError(key) from None

    def lookup(self, key: str) -> float:
        """Band start for `key`; raises UnknownBucketError."""
        return self._positions[self.index(key)]

    def get(self, key: str, default: Optional[float] = None) -> Optional[float]:
        if key not in self._index:
            return default
        return self._positions[self._index[key]]

    def center(self, key: str) -> float:
        return self.lookup(key) + self.bandwidth / 2

# =============================================================================
# LINEAR SCALE
# =============================================================================

def _tick_spec(start: float, stop: float, count: float) -> Tuple[int, int, float]:
    step = (stop - start) / max(0, count)
    power = math.floor(math.log10(step))
    error = step / math.pow(10, power)
    factor = 10 if error >= _E10 else 5 if error >= _E5 else 2 if error >= _E2 else 1

    if power < 0:
        inc = math.pow(10, -power) / factor
        i1 = math.floor(start * inc + 0.5)
        i2 = math.floor(stop * inc + 0.5)
        if i1 / inc < start:
            i1 += 1
        if i2 / inc > stop:
            i2 -= 1
        inc = -inc
    else:
        inc = math.pow(10, power) * factor
        i1 = math.floor(start / inc + 0.5)
        i2 = math.floor(stop / inc + 0.5)
        if i1 * inc < start:
            i1 += 1
        if i2 * inc > stop:
            i2 -= 1

    if i2 < i1 and 0.5 <= count < 2:
        return _tick_spec(start, stop, count * 2)

    return i1, i2, inc


def nice_ticks(start: float, stop: float, count: int = DEFAULT_TICK_COUNT) -> List[float]:
    """Round tick values (1, 2 or 5 × 10^k apart) covering [start, stop]."""
    if count <= 0:
        return []
    if start == stop:
        return [float(start)]

    reverse = stop < start
    lo, hi = (stop, start) if reverse else (start, stop)

    # 10**-power overflows below ~1e-308; an infinite span has no step at all
    step = (hi - lo) / count
    if not math.isfinite(step) or step < MIN_TICK_STEP:
        return [float(start)]

    i1, i2, inc = _tick_spec(lo, hi, count)
    if i2 < i1:
        return []

    if inc < 0:
        ticks = [(i1 + i) / -inc for i in range(i2 - i1 + 1)]
    else:
        ticks = [(i1 + i) * inc for i in range(i2 - i1 + 1)]

    return ticks[::-1] if reverse else ticks


class LinearScale:
    """
    Continuous value → pixel mapping.

    A degenerate domain (d0 == d1, e.g. all-zero data) maps every value to
    the first range value, which yields zero-height bars on the baseline.
    """

    def __init__(self, domain: Tuple[float, float], range_: Tuple[float, float]):
        self.domain = (float(domain[0]), float(domain[1]))
        self.range = (float(range_[0]), float(range_[1]))

    @property
    def is_degenerate(self) -> bool:
        return self.domain[0] == self.domain[1]

    def __call__(self, value: float) -> float:
        d0, d1 = self.domain
        r0, r1 = self.range
        if self.is_degenerate:
            return r0
        return r0 + (value - d0) / (d1 - d0) * (r1 - r0)

    def ticks(self, count: int = DEFAULT_TICK_COUNT) -> List[float]:
        return nice_ticks(self.domain[0], self.domain[1], count)

# =============================================================================
# COLOUR SCALE
# =============================================================================

class OrdinalColorScale:
    """
    Category → colour, cycling through the palette in domain order.

    Unknown categories are appended to the domain on first use, so the
    assignment stays deterministic for a given call order.
    """

    def __init__(self, domain: Iterable[str], palette: Sequence[str] = CATEGORY10):
        if not palette:
            raise ValueError("Colour palette must not be empty")
        self.palette = tuple(palette)
        self._index: Dict[str, int] = {}
        for key in domain:
            self._index.setdefault(key, len(self._index))

    @property
    def domain(self) -> List[str]:
        return list(self._index)

    def __call__(self, key: str) -> str:
        idx = self._index.setdefault(key, len(self._index))
        return self.palette[idx % len(self.palette)]

# =============================================================================
# BUILDER
# =============================================================================

class ChartScales(NamedTuple):
    x: BandScale
    y: LinearScale
    color: OrdinalColorScale


def value_domain(
    result: AggregateResult,
    targets: Optional[Sequence[OverlayTarget]] = None,
) -> Tuple[float, float]:
    """
    Value domain enclosing 0, every interval edge and every target.

    Raises ChartDataError when finite inputs still overflow (e.g. two
    1e308 values stacked), since no pixel mapping exists for them.
    """
    values = result.edges() + [t.target_value for t in targets or ()] + [0.0]
    lo, hi = min(values), max(values)

    if not all(math.isfinite(v) for v in values) or not math.isfinite(hi - lo):
        raise ChartDataError(f"Stacked values overflow the value domain [{lo}, {hi}]")

    return lo, hi


def value_domain_max(
    result: AggregateResult,
    targets: Optional[Sequence[OverlayTarget]] = None,
) -> float:
    """Upper bound of the value domain: encloses stacks and targets."""
    return value_domain(result, targets)[1]


def build_scales(
    result: AggregateResult,
    dims: ChartDimensions,
    targets: Optional[Sequence[OverlayTarget]] = None,
    padding: Optional[float] = None,
) -> ChartScales:
    x = BandScale(
        result.bucket_keys,
        (0.0, float(dims.inner_width)),
        padding=DEFAULT_PADDING if padding is None else padding,
    )
    y = LinearScale(
        value_domain(result, targets),
        (float(dims.inner_height), 0.0),
    )
    color = OrdinalColorScale(result.categories)
    return ChartScales(x=x, y=y, color=color)
