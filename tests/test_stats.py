import pytest
from datetime import datetime, timezone
import math

from services.stats import (
    percent, rate1, round1, average1, safe_int, parse_int, clamp_int,
    iso_to_epoch_ms, parse_iso, effective_resolution_time, utc_weekday,
    start_of_week_utc, to_iso_date, to_iso_timestamp, parse_week_start
)


class TestRates:
    def test_percent_zero_denominator(self):
        assert percent(5, 0) == 0
        assert percent(0, 0) == 0
        assert percent(3, -1) == 0

    def test_percent_full(self):
        for n in (1, 7, 250):
            assert percent(n, n) == 100

    def test_percent_rounds_half_up(self):
        assert percent(1, 8) == 13
        assert percent(1, 3) == 33
        assert percent(2, 3) == 67

    def test_rate1_one_decimal(self):
        assert rate1(1, 3) == 33.3
        assert rate1(2, 3) == 66.7
        assert rate1(1, 0) == 0

    def test_round1_half_up(self):
        assert round1(0.25) == 0.3
        assert round1(-0.25) == -0.2

    def test_average1(self):
        assert average1([]) == 0
        assert average1([4, 5]) == 4.5
        assert average1([1, 2, 2]) == 1.7


class TestSafeInt:
    def test_floors_finite_numbers(self):
        assert safe_int(4) == 4
        assert safe_int(4.9) == 4

    def test_rejects_non_numbers(self):
        assert safe_int("4") == 0
        assert safe_int(None) == 0
        assert safe_int(True) == 0
        assert safe_int(math.nan) == 0
        assert safe_int(math.inf, fallback=-1) == -1

    def test_parse_int_and_clamp(self):
        assert parse_int(None, 8) == 8
        assert parse_int("12", 8) == 12
        assert parse_int("abc", 8) == 8
        assert parse_int("7.9", 8) == 7
        assert clamp_int(100, 4, 24) == 24
        assert clamp_int(1, 4, 24) == 4


class TestTimestamps:
    def test_iso_to_epoch_ms(self):
        assert iso_to_epoch_ms("1970-01-01T00:00:01Z") == 1000
        assert iso_to_epoch_ms("2026-01-10T12:00:00.000Z") == 1768046400000

    def test_unparseable_is_zero(self):
        assert iso_to_epoch_ms(None) == 0
        assert iso_to_epoch_ms("") == 0
        assert iso_to_epoch_ms("not a date") == 0
        assert iso_to_epoch_ms(12345) == 0

    def test_naive_read_as_utc(self):
        assert parse_iso("2026-01-10T12:00:00") == datetime(2026, 1, 10, 12, tzinfo=timezone.utc)

    def test_offset_converted_to_utc(self):
        parsed = parse_iso("2026-01-10T09:00:00+09:00")
        assert parsed == datetime(2026, 1, 10, 0, tzinfo=timezone.utc)

    def test_effective_resolution_prefers_resolved(self, make_decision):
        d = make_decision(created_at="2026-01-10T10:00:00Z", resolved_at="2026-01-12T08:00:00Z")
        assert effective_resolution_time(d) == datetime(2026, 1, 12, 8, tzinfo=timezone.utc)

    def test_effective_resolution_falls_back_to_created(self, make_decision):
        missing = make_decision(created_at="2026-01-10T10:00:00Z", resolved_at=None)
        garbage = make_decision(created_at="2026-01-10T10:00:00Z", resolved_at="garbage")
        expected = datetime(2026, 1, 10, 10, tzinfo=timezone.utc)
        assert effective_resolution_time(missing) == expected
        assert effective_resolution_time(garbage) == expected

    def test_effective_resolution_absent(self, make_decision):
        assert effective_resolution_time(make_decision(created_at=None)) is None

    def test_to_iso_timestamp(self):
        moment = datetime(2026, 1, 10, 12, 0, 5, 123456, tzinfo=timezone.utc)
        assert to_iso_timestamp(moment) == "2026-01-10T12:00:05.123Z"


class TestCalendar:
    def test_utc_weekday_sunday_is_zero(self):
        assert utc_weekday(datetime(2026, 1, 11, tzinfo=timezone.utc)) == 0
        assert utc_weekday(datetime(2026, 1, 17, tzinfo=timezone.utc)) == 6

    def test_start_of_week_is_monday(self):
        sunday_night = datetime(2026, 1, 18, 23, 59, tzinfo=timezone.utc)
        assert to_iso_date(start_of_week_utc(sunday_night)) == "2026-01-12"
        monday = datetime(2026, 1, 19, 0, 0, tzinfo=timezone.utc)
        assert start_of_week_utc(monday) == monday

    def test_parse_week_start_valid(self, fixed_now):
        assert to_iso_date(parse_week_start("2026-01-05", fixed_now)) == "2026-01-05"

    def test_parse_week_start_snaps_to_monday(self, fixed_now):
        assert to_iso_date(parse_week_start("2026-01-08", fixed_now)) == "2026-01-05"

    @pytest.mark.parametrize("raw", [None, "", "2026-1-5", "2026-02-30", "yesterday"])
    def test_parse_week_start_defaults_to_current_week(self, raw, fixed_now):
        assert to_iso_date(parse_week_start(raw, fixed_now)) == "2026-01-19"

    @pytest.mark.parametrize("raw", ["9999-12-31", "9999-12-27", "0001-01-01", "0001-01-07"])
    def test_parse_week_start_at_calendar_limits_defaults_to_current_week(self, raw, fixed_now):
        assert to_iso_date(parse_week_start(raw, fixed_now)) == "2026-01-19"

    def test_parse_week_start_near_limits_kept_when_representable(self, fixed_now):
        assert to_iso_date(parse_week_start("0001-01-08", fixed_now)) == "0001-01-08"
        assert to_iso_date(parse_week_start("9999-12-20", fixed_now)) == "9999-12-20"


class TestTimestampEdges:
    @pytest.mark.parametrize("raw", [
        "0001-01-01T00:00:00+01:00",
        "9999-12-31T23:30:00-05:00",
    ])
    def test_out_of_range_after_utc_conversion(self, raw):
        assert parse_iso(raw) is None
        assert iso_to_epoch_ms(raw) == 0

    def test_out_of_range_resolution_falls_back_to_created(self, make_decision):
        d = make_decision(created_at="2026-01-10T10:00:00Z", resolved_at="0001-01-01T00:00:00+01:00")
        assert effective_resolution_time(d) == datetime(2026, 1, 10, 10, tzinfo=timezone.utc)

    @pytest.mark.parametrize("raw, micro", [
        ("2026-01-10T12:00:00.5Z", 500000),
        ("2026-01-10T12:00:00.12Z", 120000),
        ("2026-01-10T12:00:00.1234567Z", 123456),
    ])
    def test_any_fraction_length(self, raw, micro):
        assert parse_iso(raw) == datetime(2026, 1, 10, 12, 0, 0, micro, tzinfo=timezone.utc)

    def test_datetime_passed_through(self):
        moment = datetime(2026, 1, 10, 12, tzinfo=timezone.utc)
        assert parse_iso(moment) == moment
        assert parse_iso(datetime(2026, 1, 10, 12)) == moment
