"""Terminal rendering of a run: live frame and text helpers."""

from .renderer import Renderer, RenderItem, aligned_line, allocate_lines, render
from .styles import Palette, SpinnerFrames
from .text import RESET, ensure_reset, expand_tabs, format_elapsed, truncate_cells, visible_width

__all__ = [
    "RESET",
    "Palette",
    "RenderItem",
    "Renderer",
    "SpinnerFrames",
    "aligned_line",
    "allocate_lines",
    "ensure_reset",
    "expand_tabs",
    "format_elapsed",
    "render",
    "truncate_cells",
    "visible_width",
]
