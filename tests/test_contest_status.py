"""Tests for contest lifecycle resolution and time formatting."""

from datetime import datetime, timezone

import pytest

from ctfbot.utils.contest_status import ContestStatus, resolve_status
from ctfbot.utils.time_format import format_datetime, format_duration, parse_timestamp_ms

START = "2025-01-10T00:00:00Z"
END = "2025-01-20T00:00:00Z"


def ms(iso: str) -> float:
    return parse_timestamp_ms(iso)


class TestResolveStatus:
    def test_ongoing_inside_window(self):
        timing = resolve_status(ms("2025-01-15T00:00:00Z"), START, END)
        assert timing.status == ContestStatus.ONGOING
        assert timing.label == "ONGOING"
        assert timing.timing_primary == "120h 00m 00s remaining"
        assert timing.timing_secondary == "Contest Ends: 2025-01-20 00:00 UTC"

    def test_upcoming_before_start(self):
        timing = resolve_status(ms("2025-01-09T22:30:15Z"), START, END)
        assert timing.status == ContestStatus.UPCOMING
        assert timing.timing_primary == "Contest Opens: 2025-01-10 00:00 UTC (01h 29m 45s until start)"

    def test_ended_after_end(self):
        timing = resolve_status(ms("2025-01-21T00:00:00Z"), START, END)
        assert timing.status == ContestStatus.ENDED
        assert timing.timing_primary is None

    def test_start_is_inclusive_end_is_exclusive(self):
        assert resolve_status(ms(START), START, END).status == ContestStatus.ONGOING
        assert resolve_status(ms(END), START, END).status == ContestStatus.ENDED

    def test_no_window(self):
        timing = resolve_status(ms("2025-01-15T00:00:00Z"))
        assert timing.status == ContestStatus.NONE
        assert timing.label == "NO CONTEST"

    def test_blank_strings_count_as_no_window(self):
        assert resolve_status(0, "  ", "").status == ContestStatus.NONE

    @pytest.mark.parametrize("start,end,primary,secondary", [
        ("not a date", END, None, "Contest Ends: 2025-01-20 00:00 UTC"),
        (START, None, "Contest Opens: 2025-01-10 00:00 UTC", None),
        (START, "garbage", "Contest Opens: 2025-01-10 00:00 UTC", None),
    ])
    def test_unparseable_bound_is_scheduled(self, start, end, primary, secondary):
        timing = resolve_status(ms("2030-01-01T00:00:00Z"), start, end)
        assert timing.status == ContestStatus.SCHEDULED
        assert timing.status.is_upcoming
        assert timing.label == "SCHEDULED"
        assert timing.timing_primary == primary
        assert timing.timing_secondary == secondary

    def test_inverted_window_is_upcoming_then_ended(self):
        start, end = "2025-02-01T00:00:00Z", "2025-01-01T00:00:00Z"
        assert resolve_status(ms("2024-12-15T00:00:00Z"), start, end).status == ContestStatus.UPCOMING
        assert resolve_status(ms("2025-01-15T00:00:00Z"), start, end).status == ContestStatus.UPCOMING
        assert resolve_status(ms("2025-02-01T00:00:00Z"), start, end).status == ContestStatus.ENDED

    def test_pure_function_of_inputs(self):
        now = ms("2025-01-15T00:00:00Z")
        assert resolve_status(now, START, END) == resolve_status(now, START, END)

    def test_offsets_are_honoured(self):
        # 02:00+02:00 is midnight UTC
        timing = resolve_status(ms("2025-01-09T23:59:59Z"), "2025-01-10T02:00:00+02:00", END)
        assert timing.status == ContestStatus.UPCOMING
        assert "(00h 00m 01s until start)" in timing.timing_primary


class TestTimeFormat:
    def test_parse_variants(self):
        expected = datetime(2025, 1, 10, tzinfo=timezone.utc).timestamp() * 1000
        assert parse_timestamp_ms("2025-01-10T00:00:00Z") == expected
        assert parse_timestamp_ms("2025-01-10T00:00:00") == expected
        assert parse_timestamp_ms(datetime(2025, 1, 10)) == expected
        assert parse_timestamp_ms(expected) == expected

    @pytest.mark.parametrize("value", [None, "", "tomorrow", float("nan"), float("inf"), True])
    def test_parse_rejects(self, value):
        assert parse_timestamp_ms(value) is None

    def test_format_duration(self):
        assert format_duration(0) == "00h 00m 00s"
        assert format_duration(-5000) == "00h 00m 00s"
        assert format_duration(61_000) == "00h 01m 01s"
        assert format_duration(7 * 24 * 3600 * 1000) == "168h 00m 00s"

    def test_format_datetime_missing(self):
        assert format_datetime(None) == "—"
