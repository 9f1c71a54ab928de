"""Tests for palette, icons and spinner frames."""

import pytest

pytestmark = pytest.mark.unit


class TestPalette:
    def test_paint_renders_standard_sgr(self):
        from gopulse.render.styles import Palette

        palette = Palette()

        assert palette.paint(palette.passed, "ok") == "\x1b[32mok\x1b[0m"
        assert palette.paint(palette.failed, "no") == "\x1b[31mno\x1b[0m"
        assert palette.paint(palette.bold, "b") == "\x1b[1mb\x1b[0m"

    def test_disabled_palette_is_plain(self):
        from gopulse.render.styles import Palette

        palette = Palette(enabled=False)

        assert palette.paint(palette.failed, "no") == "no"

    def test_empty_text_not_painted(self):
        from gopulse.render.styles import Palette

        palette = Palette()

        assert palette.paint(palette.failed, "") == ""

    def test_count_colored_only_when_nonzero(self):
        from gopulse.render.styles import Palette

        palette = Palette()

        assert palette.count(palette.failed, "✗ 0", 0) == "✗ 0"
        assert palette.count(palette.failed, "✗ 2", 2) == "\x1b[31m✗ 2\x1b[0m"

    def test_interrupted_uses_skipped_style(self):
        from gopulse.primitives.events import Status
        from gopulse.render.styles import Palette

        palette = Palette()

        assert palette.for_status(Status.INTERRUPTED) == palette.skipped
        assert palette.for_status(Status.RUNNING) is None


class TestSymbols:
    @pytest.mark.parametrize(
        ("passed", "failed", "expected"),
        [
            (0, 1, "✗"),
            (3, 1, "✗"),
            (0, 0, "∅"),
            (2, 0, "✓"),
        ],
    )
    def test_interrupted_heuristic(self, passed, failed, expected):
        from gopulse.primitives.model import Counts
        from gopulse.render.styles import interrupted_symbol

        symbol, _ = interrupted_symbol(Counts(passed=passed, failed=failed))

        assert symbol == expected

    def test_interrupted_policy(self):
        from gopulse.primitives.events import Status
        from gopulse.primitives.model import Counts
        from gopulse.render.styles import interrupted_symbol

        symbol, shown = interrupted_symbol(Counts(passed=4), policy="interrupted")

        assert symbol == "⚠"
        assert shown == Status.INTERRUPTED

    def test_status_symbol(self):
        from gopulse.primitives.events import Status
        from gopulse.primitives.model import Counts
        from gopulse.render.styles import status_symbol

        counts = Counts()
        assert status_symbol(Status.PASSED, counts)[0] == "✓"
        assert status_symbol(Status.FAILED, counts)[0] == "✗"
        assert status_symbol(Status.SKIPPED, counts)[0] == "∅"
        assert status_symbol(Status.PAUSED, counts)[0] == "="


class TestSpinnerFrames:
    def test_frame_is_function_of_time(self):
        from gopulse.render.styles import SpinnerFrames

        spinner = SpinnerFrames("dots")

        assert spinner.frame(0.0) == spinner.frames[0]
        assert spinner.frame(spinner.interval * 3.5) == spinner.frames[3]
        assert spinner.frame(12.34) == spinner.frame(12.34)

    def test_frames_wrap(self):
        from gopulse.render.styles import SpinnerFrames

        spinner = SpinnerFrames("line")
        cycle = spinner.interval * len(spinner.frames)

        assert spinner.frame(cycle + spinner.interval * 0.5) == spinner.frames[0]
