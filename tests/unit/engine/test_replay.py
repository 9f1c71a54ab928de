"""Tests for ReplayReader - timed re-emission of recorded output."""

import pytest

pytestmark = pytest.mark.unit


def _line(timestamp, action="output"):
    return f'{{"Time":"2024-03-01T10:00:{timestamp}Z","Action":"{action}","Package":"p"}}'


class FakeSleep:
    def __init__(self):
        self.calls = []

    async def __call__(self, seconds):
        self.calls.append(seconds)


class TestDelays:
    def test_original_speed(self):
        from gopulse.engine.replay import ReplayReader

        reader = ReplayReader([_line("00.000"), _line("01.500"), _line("02.000")])

        assert reader.delays() == pytest.approx([0.0, 1.5, 0.5])

    def test_rate_scales_gaps(self):
        from gopulse.engine.replay import ReplayReader

        reader = ReplayReader([_line("00.000"), _line("02.000")], rate=0.5)

        assert reader.delays() == pytest.approx([0.0, 1.0])

    def test_zero_rate_is_instant(self):
        from gopulse.engine.replay import ReplayReader

        reader = ReplayReader([_line("00.000"), _line("09.000")], rate=0)

        assert reader.delays() == [0.0, 0.0]

    def test_untimed_lines_inherit_previous(self):
        from gopulse.engine.replay import ReplayReader

        reader = ReplayReader([_line("00.000"), "plain output", _line("03.000")])

        assert [timed.is_event for timed in reader.lines] == [True, False, True]
        assert reader.lines[1].timestamp == reader.lines[0].timestamp
        assert reader.delays() == pytest.approx([0.0, 0.0, 3.0])

    def test_leading_untimed_lines(self):
        from gopulse.engine.replay import ReplayReader

        reader = ReplayReader(["# building", _line("00.000"), _line("01.000")])

        assert reader.delays() == pytest.approx([0.0, 0.0, 1.0])

    def test_backwards_time_does_not_wait(self):
        from gopulse.engine.replay import ReplayReader

        reader = ReplayReader([_line("05.000"), _line("01.000")])

        assert reader.delays() == [0.0, 0.0]

    def test_negative_rate_rejected(self):
        from gopulse.engine.replay import ReplayReader

        with pytest.raises(ValueError, match="replay rate"):
            ReplayReader([], rate=-1)


class TestIteration:
    @pytest.mark.asyncio
    async def test_yields_lines_with_sleeps(self):
        from gopulse.engine.replay import ReplayReader

        sleep = FakeSleep()
        lines = [_line("00.000"), "raw\r\n", _line("00.250")]
        reader = ReplayReader(lines, rate=2.0, sleep=sleep)

        emitted = [line async for line in reader]

        assert emitted == [lines[0], "raw", lines[2]]
        assert sleep.calls == pytest.approx([0.5])

    @pytest.mark.asyncio
    async def test_from_file(self, tmp_path):
        from gopulse.engine.replay import ReplayReader

        path = tmp_path / "run.jsonl"
        path.write_text(_line("00.000") + "\n" + _line("00.100") + "\n", encoding="utf-8")

        reader = ReplayReader.from_file(path, rate=0)
        emitted = [line async for line in reader]

        assert emitted == [_line("00.000"), _line("00.100")]
