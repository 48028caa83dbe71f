"""
Layout Tests
============

Tests for layout classes, colours and display frames.
"""

import pytest

from battmon.models import BatteryStatus, LayoutClass
from battmon.render import LAYOUT_RENDERERS, percent_color, render, resolve_layout


def _status(**overrides):
    values = dict(
        timestamp=10.0,
        tick=100,
        remaining_mah=1234.7,
        remaining_percent=62,
        cell_count=4,
        used_mah=365.0,
        min_cell_voltages=[3.81, 3.8, 3.82, 3.81],
        max_amps=31.5,
    )
    values.update(overrides)
    return BatteryStatus(**values)


class TestResolveLayout:
    """Tests for zone size classification."""

    @pytest.mark.parametrize("width,height,expected", [
        (460, 252, LayoutClass.XLARGE),
        (390, 172, LayoutClass.XLARGE),
        (192, 152, LayoutClass.LARGE),
        (225, 98, LayoutClass.MEDIUM),
        (160, 32, LayoutClass.SMALL),
        (70, 39, LayoutClass.TINY),
        (60, 30, LayoutClass.NONE),
    ])
    def test_zone_sizes(self, width, height, expected):
        """Known host zone sizes map to their layout class."""
        assert resolve_layout(width, height) == expected

    def test_bounds_are_exclusive(self):
        """Thresholds are strict: 380 x 166 is not XLARGE."""
        assert resolve_layout(380, 166) != LayoutClass.XLARGE

    def test_every_class_has_a_renderer(self):
        """The strategy table covers every layout class."""
        assert set(LAYOUT_RENDERERS) == set(LayoutClass)


class TestPercentColor:
    """Tests for the gauge colour."""

    def test_red_below_thirty(self):
        assert percent_color(29) == (255, 0, 0)
        assert percent_color(-5) == (255, 0, 0)

    def test_green_at_full(self):
        assert percent_color(100) == (0, 0xDF, 0)

    def test_graded(self):
        """g = floor(0xdf * p / 100), r = 0xdf - g."""
        assert percent_color(50) == (0xDF - 111, 111, 0)


class TestRender:
    """Tests for frame content."""

    def test_large_lines(self):
        frame = render(_status(), 192, 152)
        assert frame.layout == LayoutClass.LARGE
        assert frame.lines == ["BATTERY LEFT", "62%", "1234mAh"]
        assert frame.gauge_percent == 62
        assert frame.blink is False

    def test_xlarge_detail_line(self):
        frame = render(_status(), 390, 172)
        assert frame.lines[-1] == "min 3.80V | max 31.5A | used 365mAh | 4S"

    def test_small_single_line(self):
        frame = render(_status(), 160, 32)
        assert frame.lines == ["1234      62%"]

    def test_blink_and_clamp_when_empty(self):
        """At or below 0% large layouts blink and the gauge is clamped."""
        frame = render(_status(remaining_percent=-8), 390, 172)
        assert frame.blink is True
        assert frame.gauge_percent == 0
        assert frame.color == (255, 0, 0)

    def test_writing_frame(self):
        """A writing status never shows battery data."""
        frame = render(_status(writing=True), 390, 172)
        assert frame.writing is True
        assert frame.lines[0] == "WRITING"
        assert "62%" not in frame.lines

    def test_none_layout_is_empty(self):
        assert render(_status(), 10, 10).lines == []
