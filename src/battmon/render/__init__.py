"""
Render Module
=============

Layout classes and display frames for widget zones.
"""

from battmon.render.layout import (
    LAYOUT_RENDERERS,
    percent_color,
    render,
    resolve_layout,
    writing_frame,
)

__all__ = [
    "LAYOUT_RENDERERS",
    "percent_color",
    "render",
    "resolve_layout",
    "writing_frame",
]
