"""Tests for TestEvent decoding and the Status/Action enums."""

from datetime import datetime, timezone

import pytest

pytestmark = pytest.mark.unit


class TestStatus:
    """Tests for the closed Status enum."""

    def test_terminal_statuses(self):
        """Passed, failed, skipped and interrupted are terminal."""
        from gopulse.primitives.events import Status

        assert Status.PASSED.is_terminal
        assert Status.FAILED.is_terminal
        assert Status.SKIPPED.is_terminal
        assert Status.INTERRUPTED.is_terminal

    def test_non_terminal_statuses(self):
        from gopulse.primitives.events import Status

        assert not Status.UNKNOWN.is_terminal
        assert not Status.RUNNING.is_terminal
        assert not Status.PAUSED.is_terminal

    def test_from_action(self):
        """Terminal actions map onto their statuses."""
        from gopulse.primitives.events import Status

        assert Status.from_action("pass") == Status.PASSED
        assert Status.from_action("fail") == Status.FAILED
        assert Status.from_action("skip") == Status.SKIPPED


class TestParseEvent:
    """Tests for parse_event - the line decoder."""

    def test_runner_keys(self):
        """The runner's capitalized JSON keys decode into fields."""
        from gopulse.primitives.events import parse_event

        event = parse_event(
            '{"Time":"2024-03-01T10:00:00.5Z","Action":"pass","Package":"example.com/pkg",'
            '"Test":"TestOne","Elapsed":0.25}'
        )

        assert event.action == "pass"
        assert event.package == "example.com/pkg"
        assert event.test == "TestOne"
        assert event.elapsed == 0.25
        expected = datetime(2024, 3, 1, 10, 0, 0, 500000, tzinfo=timezone.utc).timestamp()
        assert event.time == pytest.approx(expected)

    def test_nanosecond_timestamps(self):
        """Fractions beyond microseconds are truncated, not rejected."""
        from gopulse.primitives.events import parse_event

        event = parse_event(
            '{"Time":"2024-03-01T10:00:00.123456789-05:00","Action":"run","Package":"p"}'
        )

        expected = datetime.fromisoformat("2024-03-01T10:00:00.123456-05:00").timestamp()
        assert event.time == pytest.approx(expected)

    def test_output_keeps_trailing_newline(self):
        from gopulse.primitives.events import parse_event

        event = parse_event('{"Action":"output","Package":"p","Test":"T","Output":"hello\\n"}')

        assert event.output == "hello\n"
        assert event.time == 0.0

    def test_unknown_action_still_decodes(self):
        """Unknown actions must survive decoding so the collector can skip them."""
        from gopulse.primitives.events import parse_event

        event = parse_event('{"Action":"attr","Package":"p","Test":"T"}')

        assert event.action == "attr"

    def test_bytes_input(self):
        from gopulse.primitives.events import parse_event

        event = parse_event(b'{"Action":"start","Package":"p"}')

        assert event.action == "start"
        assert event.test == ""

    @pytest.mark.parametrize(
        "line",
        [
            "ok  \texample.com/pkg\t0.01s",
            "[1, 2, 3]",
            '{"Package":"p"}',
            '{"Action":"run","Time":"yesterday"}',
            "",
        ],
    )
    def test_malformed_lines_raise(self, line):
        from gopulse.errors import DecodeError
        from gopulse.primitives.events import parse_event

        with pytest.raises(DecodeError):
            parse_event(line)

    def test_decode_error_is_value_error(self):
        from gopulse.errors import DecodeError
        from gopulse.primitives.events import parse_event

        with pytest.raises(ValueError, match="not a test event"):
            parse_event("FAIL")
        assert issubclass(DecodeError, ValueError)


class TestTestEvent:
    def test_event_is_frozen(self):
        from pydantic import ValidationError

        from gopulse.primitives.events import TestEvent

        event = TestEvent(action="run", package="p", test="T")

        with pytest.raises(ValidationError):
            event.action = "pass"

    def test_key(self):
        from gopulse.primitives.events import TestEvent

        event = TestEvent(action="run", package="example.com/pkg", test="TestA/sub")

        assert event.key == "example.com/pkg/TestA/sub"

    def test_populate_by_field_name(self):
        from gopulse.primitives.events import TestEvent

        event = TestEvent(time=12.5, action="output", output="x")

        assert event.time == 12.5
        assert event.output == "x"
