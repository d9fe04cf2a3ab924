"""
array.py — Array Bars Layout
=============================
(ArrayData, step) → SceneGraph of bars, value / index labels and axes.

    bar i  colour  = role(i, step)      current / processed / pending
    bar x          = banded scale over [0, inner_width], padding 0.1
    bar height     = value / max(values) * inner_height
"""

import math
from typing import List, Optional, Tuple

from layout.scene import (
    PALETTE,
    Frame,
    Group,
    Line,
    Rect,
    SceneGraph,
    StepRole,
    Text,
    Transform,
    step_role,
)
from payload.types import ArrayData, StructureKind

BAND_PADDING = 0.1


def layout_array(data: ArrayData, step: int, frame: Optional[Frame] = None) -> SceneGraph:
    frame = frame or Frame.from_config()
    scene = SceneGraph(kind=StructureKind.ARRAY, frame=frame)
    values = list(data.values)

    inner_w = frame.inner_width
    inner_h = frame.inner_height
    peak = max(values) if values else 0
    if not peak or peak <= 0:
        peak = 1

    g = Group(css_class="array", transform=Transform(frame.left, frame.top))
    scene.add(g)

    xs, bandwidth = band_scale(len(values), inner_w, BAND_PADDING)

    bars = g.add(Group(css_class="bars"))
    labels = g.add(Group(css_class="labels"))
    for i, value in enumerate(values):
        role = step_role(i, step)
        height = max(value, 0) / peak * inner_h
        is_current = role is StepRole.CURRENT
        bars.add(Rect(
            x=xs[i],
            y=inner_h - height,
            width=bandwidth,
            height=height,
            fill=PALETTE.role_fill[role],
            stroke=PALETTE.emphasis if is_current else PALETTE.bar_stroke,
            stroke_width=4 if is_current else 2,
            rx=5,
            css_class="bar",
            state=role.value,
            data_id=str(i),
        ))
        centre = xs[i] + bandwidth / 2
        labels.add(Text(
            x=centre, y=inner_h + 20, text=format_value(value),
            size=12, fill=PALETTE.text, css_class="value-label",
        ))
        labels.add(Text(
            x=centre, y=inner_h + 35, text=str(i),
            size=10, fill=PALETTE.muted, css_class="index-label",
        ))

    _axes(g, inner_w, inner_h, peak)
    scene.flags["max_value"] = peak
    return scene


# ---------------------------------------------------------------------------
# Scales
# ---------------------------------------------------------------------------
def band_scale(count: int, extent: float, padding: float = BAND_PADDING) -> Tuple[List[float], float]:
    """
    Uniform bands over [0, extent] with equal inner and outer padding,
    centred.  Returns (band start positions, band width).
    """
    if count <= 0:
        return [], 0.0
    step = extent / max(1.0, count - padding + 2 * padding)
    start = (extent - step * (count - padding)) / 2
    bandwidth = step * (1 - padding)
    return [start + step * i for i in range(count)], bandwidth


def linear_ticks(stop: float, count: int = 5) -> List[float]:
    """Round tick values in [0, stop]."""
    if stop <= 0:
        return [0]
    raw = stop / count
    power = 10 ** math.floor(math.log10(raw))
    error = raw / power
    if error >= 7.07:
        tick = 10 * power
    elif error >= 3.16:
        tick = 5 * power
    elif error >= 1.41:
        tick = 2 * power
    else:
        tick = power
    n = int(math.floor(stop / tick + 1e-9))
    return [round(i * tick, 10) for i in range(n + 1)]


def format_value(value: float) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


# ---------------------------------------------------------------------------
# Axes
# ---------------------------------------------------------------------------
def _axes(g: Group, inner_w: float, inner_h: float, peak: float) -> None:
    axis = g.add(Group(css_class="axis"))
    axis.add(Line(0, inner_h, inner_w, inner_h, stroke=PALETTE.text, css_class="axis-line"))
    axis.add(Line(0, 0, 0, inner_h, stroke=PALETTE.text, css_class="axis-line"))
    for tick in linear_ticks(peak):
        y = inner_h - tick / peak * inner_h
        axis.add(Line(-6, y, 0, y, stroke=PALETTE.text, css_class="axis-tick"))
        axis.add(Text(
            x=-9, y=y, text=format_value(tick), size=12, fill=PALETTE.text,
            anchor="end", dy="0.32em", css_class="axis-label",
        ))
