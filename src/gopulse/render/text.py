"""ANSI- and tab-aware string helpers for a refreshed terminal frame.

Widths are terminal cells, not characters: escape sequences count as
zero and wide glyphs as two (``rich.cells``).
"""

from __future__ import annotations

import re

from rich.cells import cell_len, get_character_cell_size

RESET = "\x1b[0m"
TAB_WIDTH = 8

ANSI_ESCAPE = re.compile(r"\x1b\[[0-?]*[ -/]*[@-~]|\x1b\][^\x07\x1b]*(?:\x07|\x1b\\)")


def _tokens(text: str) -> list[tuple[bool, str]]:
    """Split text into (is_escape, chunk) pieces."""
    pieces: list[tuple[bool, str]] = []
    position = 0
    for match in ANSI_ESCAPE.finditer(text):
        if match.start() > position:
            pieces.append((False, text[position : match.start()]))
        pieces.append((True, match.group()))
        position = match.end()
    if position < len(text):
        pieces.append((False, text[position:]))
    return pieces


def strip_ansi(text: str) -> str:
    return ANSI_ESCAPE.sub("", text)


def visible_width(text: str) -> int:
    return cell_len(strip_ansi(text))


def expand_tabs(text: str, tab_width: int = TAB_WIDTH) -> str:
    """Replace tabs with spaces up to the next tab stop.

    A terminal moves the cursor over a tab without erasing what is under
    it, so an in-place redraw would leave stale characters behind.
    """
    if "\t" not in text:
        return text
    out: list[str] = []
    column = 0
    for is_escape, chunk in _tokens(text):
        if is_escape:
            out.append(chunk)
            continue
        for char in chunk:
            if char == "\n":
                out.append(char)
                column = 0
            elif char == "\t":
                spaces = tab_width - (column % tab_width)
                out.append(" " * spaces)
                column += spaces
            else:
                out.append(char)
                column += get_character_cell_size(char)
    return "".join(out)


def truncate_cells(text: str, width: int) -> str:
    """Cut text to at most ``width`` visible cells, keeping escape sequences."""
    if width <= 0:
        return ""
    if visible_width(text) <= width:
        return text
    out: list[str] = []
    used = 0
    for is_escape, chunk in _tokens(text):
        if is_escape:
            out.append(chunk)
            continue
        for char in chunk:
            size = get_character_cell_size(char)
            if used + size > width:
                return "".join(out)
            out.append(char)
            used += size
    return "".join(out)


def ensure_reset(text: str) -> str:
    """Terminate the line's styling so it cannot bleed into what follows."""
    if not text or text.endswith(RESET):
        return text
    return text + RESET


def format_elapsed(seconds: float) -> str:
    if seconds < 0.05:
        return "0.0s"
    if seconds >= 60:
        return f"{seconds / 60:.1f}m"
    return f"{seconds:.1f}s"
