"""
Widget Layouts
==============

Strategy table turning a BatteryStatus into a DisplayFrame.

The zone size is mapped to a discrete layout class once per render call;
each class has one renderer.

    Class    Zone (w x h)        Content
    XLARGE   > 380 x > 165       title, percent, mAh, detail line, gauge
    LARGE    > 180 x > 145       title, percent, mAh, gauge
    MEDIUM   > 170 x >  65       percent, mAh, gauge
    SMALL    > 150 x >  28       "mAh   percent" on one line, gauge
    TINY     >  65 x >  35       percent, mAh, small gauge
    NONE     anything smaller    nothing

Colour:
    below 30%  -> red
    otherwise  -> green fading to red, g = floor(0xdf * p / 100), r = 0xdf - g
"""

import math
from typing import Callable, Dict, List, Tuple

from battmon.models.output import BatteryStatus, DisplayFrame, LayoutClass


Renderer = Callable[[BatteryStatus], DisplayFrame]

RED = (0xFF, 0, 0)
WHITE = (0xFF, 0xFF, 0xFF)


def resolve_layout(width: int, height: int) -> LayoutClass:
    """Map a zone size to its layout class."""
    if width > 380 and height > 165:
        return LayoutClass.XLARGE
    if width > 180 and height > 145:
        return LayoutClass.LARGE
    if width > 170 and height > 65:
        return LayoutClass.MEDIUM
    if width > 150 and height > 28:
        return LayoutClass.SMALL
    if width > 65 and height > 35:
        return LayoutClass.TINY
    return LayoutClass.NONE


def percent_color(percent: float) -> Tuple[int, int, int]:
    """Gauge colour: green at 100%, red below 30%, graded in between."""
    if percent < 30:
        return RED
    g = math.floor(0xDF * percent / 100)
    return (0xDF - g, g, 0)


def _gauge(percent: int) -> int:
    return min(100, max(0, percent))


def _mah(status: BatteryStatus) -> int:
    return math.floor(status.remaining_mah)


def _frame(
    layout: LayoutClass,
    status: BatteryStatus,
    lines: List[str],
    blink: bool = False,
) -> DisplayFrame:
    return DisplayFrame(
        layout=layout,
        lines=lines,
        gauge_percent=_gauge(status.remaining_percent),
        color=percent_color(status.remaining_percent),
        blink=blink,
    )


# =============================================================================
# Renderers
# =============================================================================

def render_tiny(status: BatteryStatus) -> DisplayFrame:
    return _frame(
        LayoutClass.TINY,
        status,
        [f"{status.remaining_percent}%", f"{_mah(status)}"],
    )


def render_small(status: BatteryStatus) -> DisplayFrame:
    return _frame(
        LayoutClass.SMALL,
        status,
        [f"{_mah(status)}      {status.remaining_percent}%"],
    )


def render_medium(status: BatteryStatus) -> DisplayFrame:
    return _frame(
        LayoutClass.MEDIUM,
        status,
        [f"{status.remaining_percent}%", f"{_mah(status)} mAh"],
    )


def render_large(status: BatteryStatus) -> DisplayFrame:
    return _frame(
        LayoutClass.LARGE,
        status,
        ["BATTERY LEFT", f"{status.remaining_percent}%", f"{_mah(status)}mAh"],
        blink=status.remaining_percent <= 0,
    )


def render_xlarge(status: BatteryStatus) -> DisplayFrame:
    min_cell = min(status.min_cell_voltages) if status.min_cell_voltages else None
    detail = " | ".join([
        f"min {min_cell:.2f}V" if min_cell is not None else "min --",
        f"max {status.max_amps:.1f}A" if status.max_amps is not None else "max --",
        f"used {status.used_mah:.0f}mAh",
        f"{status.cell_count}S",
    ])
    return _frame(
        LayoutClass.XLARGE,
        status,
        ["BATTERY LEFT", f"{status.remaining_percent}%", f"{_mah(status)}mAh", detail],
        blink=status.remaining_percent <= 0,
    )


def render_none(status: BatteryStatus) -> DisplayFrame:
    return DisplayFrame(layout=LayoutClass.NONE)


LAYOUT_RENDERERS: Dict[LayoutClass, Renderer] = {
    LayoutClass.XLARGE: render_xlarge,
    LayoutClass.LARGE: render_large,
    LayoutClass.MEDIUM: render_medium,
    LayoutClass.SMALL: render_small,
    LayoutClass.TINY: render_tiny,
    LayoutClass.NONE: render_none,
}


def writing_frame(layout: LayoutClass) -> DisplayFrame:
    """Frame shown while a session record is being written."""
    lines = [] if layout == LayoutClass.NONE else ["WRITING", "Saving flight log..."]
    return DisplayFrame(layout=layout, lines=lines, color=WHITE, writing=True)


def render(status: BatteryStatus, width: int, height: int) -> DisplayFrame:
    """
    Render a status for a zone.

    Args:
        status: Latest published status
        width: Zone width in pixels
        height: Zone height in pixels

    Returns:
        DisplayFrame for the zone's layout class
    """
    layout = resolve_layout(width, height)
    if status.writing:
        return writing_frame(layout)
    return LAYOUT_RENDERERS[layout](status)
