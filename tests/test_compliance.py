#!/usr/bin/env python3
"""
test_compliance.py
==================

Daily, weekly and monthly limit checks:
- Daily duty against max FDP, including the home standby 16h ceiling
- Airport standby plus FDP combined limit
- ISO-week duty totals and the consecutive duty days ending on the duty date
- Calendar-month duty and flight totals against limits and buffers
- Records with unparseable dates are skipped, not fatal

Run: python -m pytest tests/test_compliance.py -v
"""

import logging
import pytest
from datetime import date

from core.compliance import ComplianceChecker
from core.errors import InputValidationError
from core.parameters import FTLConfig, StandbyRules
from models.data_models import DutyFactors, FlightRecord, StandbyType


def make_factors(**overrides) -> DutyFactors:
    values = dict(
        report_time="06:00",
        duty_end_time="18:00",
        departure="LHR",
        arrival="LHR",
        home_base="LHR",
        duty_date=date(2025, 1, 18),
    )
    values.update(overrides)
    return DutyFactors(**values)


def home_standby_factors(**overrides) -> DutyFactors:
    return make_factors(
        has_standby=True,
        standby_type=StandbyType.HOME,
        standby_start_time="02:00",
        **overrides
    )


def airport_standby_factors(**overrides) -> DutyFactors:
    values = dict(
        report_time="06:00",
        has_standby=True,
        standby_type=StandbyType.AIRPORT,
    )
    values.update(overrides)
    return make_factors(**values)


def record(day: str, duty_time: float, flight_time: float = 0.0, number: str = "BA100") -> FlightRecord:
    return FlightRecord(
        flight_number=number,
        departure="LHR",
        arrival="LHR",
        report_time="06:00",
        takeoff_time="07:00",
        landing_time="09:00",
        duty_end_time="10:00",
        flight_time=flight_time,
        duty_time=duty_time,
        date=day,
    )


class TestDutyAndFlightTime:

    def setup_method(self):
        self.checker = ComplianceChecker()

    def test_duty_from_report(self):
        assert self.checker.actual_duty_time(make_factors()) == 12.0

    def test_home_standby_duty_offset(self):
        """Home standby from 02:00 counts duty from 04:00"""
        assert self.checker.actual_duty_time(home_standby_factors()) == 14.0

    def test_airport_standby_duty_from_standby_start(self):
        factors = make_factors(
            report_time="06:00",
            duty_end_time="16:00",
            has_standby=True,
            standby_type=StandbyType.AIRPORT,
            standby_start_time="04:00",
        )
        assert self.checker.actual_duty_time(factors) == 12.0

    def test_flight_time_from_blocks(self):
        factors = make_factors(takeoff_time="23:10", landing_time="01:40")
        assert self.checker.flight_time(factors) == 2.5

    def test_explicit_flight_time_wins(self):
        factors = make_factors(takeoff_time="07:00", landing_time="09:00", flight_time_hours=1.75)
        assert self.checker.flight_time(factors) == 1.75

    def test_no_flight_time(self):
        assert self.checker.flight_time(make_factors()) == 0.0


class TestDailyCheck:

    def setup_method(self):
        self.checker = ComplianceChecker()

    def test_within_limit(self):
        result = self.checker.check_daily(12.0, 13.0, make_factors())
        assert result.is_compliant
        assert result.warnings == []

    def test_approaching(self):
        result = self.checker.check_daily(12.5, 13.0, make_factors())
        assert result.warnings == ["Approaching daily duty time limit (12h 30m)"]
        assert result.is_compliant

    def test_exceeded(self):
        result = self.checker.check_daily(13.5, 13.0, make_factors())
        assert result.violations == ["Daily duty time limit exceeded: 13h 30m > 13h"]
        assert not result.is_compliant

    def test_home_standby_discretion_available(self):
        result = self.checker.check_daily(14.0, 13.0, home_standby_factors())
        assert len(result.violations) == 1
        assert "Commanders discretion available to extend by 2h (max 15h)" in result.violations[0]

    def test_home_standby_discretion_beyond_ceiling(self):
        result = self.checker.check_daily(15.5, 13.0, home_standby_factors())
        assert "cannot extend beyond 16h home standby hard limit" in result.violations[0]

    def test_home_standby_hard_limit(self):
        result = self.checker.check_daily(16.5, 17.0, home_standby_factors())
        assert result.violations[0].startswith("Daily duty time limit exceeded: 16h 30m > 16h")
        assert "hard limit of 16h total duty" in result.violations[0]

    def test_home_standby_approaching_restrictive_limit(self):
        result = self.checker.check_daily(12.5, 13.0, home_standby_factors())
        assert result.warnings[0].startswith("Approaching duty limit (12h 30m) - More restrictive limit applies")

    def test_home_standby_approaching_ceiling(self):
        result = self.checker.check_daily(15.5, 17.0, home_standby_factors())
        assert result.warnings[0].startswith("Approaching home standby duty limit (15h 30m)")


class TestAirportStandbyCheck:

    def setup_method(self):
        self.checker = ComplianceChecker()

    def test_fdp_compared_from_report(self):
        """5h standby then a 10h FDP: the FDP alone is checked against max FDP"""
        factors = airport_standby_factors(standby_start_time="01:00", duty_end_time="16:00")
        assert self.checker.actual_duty_time(factors) == 15.0
        assert self.checker.fdp_duty_time(factors, 15.0) == 10.0
        result = self.checker.check(factors, 12.0)
        assert result.is_compliant

    def test_combined_limit_exceeded(self):
        factors = airport_standby_factors(standby_start_time="00:00", duty_end_time="17:00")
        result = self.checker.check(factors, 12.0)
        assert result.violations == ["Airport standby and FDP combined exceed 16h: 17h"]

    def test_combined_limit_with_split_duty(self):
        factors = airport_standby_factors(
            standby_start_time="00:00", duty_end_time="17:00", has_split_duty=True
        )
        assert self.checker.check(factors, 12.0).is_compliant

    def test_counted_from_standby_start_when_configured(self):
        config = FTLConfig(standby_rules=StandbyRules(airport_fdp_starts_at_standby_start=True))
        checker = ComplianceChecker(config)
        factors = airport_standby_factors(standby_start_time="01:00", duty_end_time="16:00")
        assert checker.fdp_duty_time(factors, 15.0) == 15.0
        assert checker.check(factors, 13.0).violations == ["Daily duty time limit exceeded: 15h > 13h"]


class TestWeeklyCheck:

    def setup_method(self):
        self.checker = ComplianceChecker()
        # Mon 13 Jan to Fri 17 Jan 2025, current duty Sat 18 Jan
        self.history = [
            record("2025-01-13", 12.0),
            record("2025-01-14", 12.0),
            record("2025-01-16", 12.0),
            record("2025-01-17", 12.0),
        ]

    def test_approaching_weekly_limit(self):
        result = self.checker.check(make_factors(), 13.0, self.history, duty_time=12.0, flight_time=0.0)
        assert result.warnings == ["Approaching weekly duty time limit (60h)"]
        assert result.is_compliant

    def test_weekly_limit_exceeded(self):
        history = self.history + [record("2025-01-18", 1.0)]
        result = self.checker.check(make_factors(), 13.0, history, duty_time=12.0, flight_time=0.0)
        assert result.violations == ["Weekly duty time limit exceeded: 61h > 60h"]

    def test_previous_iso_week_excluded(self):
        history = self.history + [record("2025-01-12", 10.0)]
        result = self.checker.check(make_factors(), 13.0, history, duty_time=12.0, flight_time=0.0)
        assert result.is_compliant

    def test_consecutive_duty_days(self):
        history = [record(f"2025-01-{day:02d}", 1.0) for day in range(8, 15)]
        factors = make_factors(duty_date=date(2025, 1, 15))
        result = self.checker.check(factors, 13.0, history, duty_time=8.0, flight_time=0.0)
        assert "Maximum consecutive duty days exceeded: 8 > 6" in result.violations

    def test_consecutive_days_from_factors(self):
        factors = make_factors(consecutive_duty_days=7)
        result = self.checker.check(factors, 13.0, [record("2025-01-02", 1.0)], duty_time=8.0, flight_time=0.0)
        assert "Maximum consecutive duty days exceeded: 7 > 6" in result.violations

    def test_streak_counts_distinct_days(self):
        days = [date(2025, 1, 1), date(2025, 1, 2), date(2025, 1, 2), date(2025, 1, 3)]
        assert ComplianceChecker.consecutive_duty_days(days, date(2025, 1, 4)) == 4
        assert ComplianceChecker.consecutive_duty_days([], date(2025, 1, 4)) == 1

    def test_streak_ends_on_duty_date(self):
        days = [date(2025, 1, 1), date(2025, 1, 2), date(2025, 1, 3), date(2025, 1, 5)]
        assert ComplianceChecker.consecutive_duty_days(days, date(2025, 1, 6)) == 2
        # Later records do not extend the run backwards
        assert ComplianceChecker.consecutive_duty_days(days, date(2025, 1, 3)) == 3

    def test_earlier_streak_separated_by_gap_ignored(self):
        """Seven days in a row in June say nothing about a duty in late August"""
        history = [record(f"2025-06-{day:02d}", 1.0) for day in range(1, 8)]
        factors = make_factors(duty_date=date(2025, 8, 20))
        result = self.checker.check(factors, 13.0, history, duty_time=8.0, flight_time=0.0)
        assert not any("consecutive" in v for v in result.violations)
        assert result.is_compliant

    def test_streak_broken_by_day_off(self):
        history = [record(f"2025-01-{day:02d}", 1.0) for day in (8, 9, 10, 12, 13, 14)]
        factors = make_factors(duty_date=date(2025, 1, 15))
        result = self.checker.check(factors, 13.0, history, duty_time=8.0, flight_time=0.0)
        assert not any("consecutive" in v for v in result.violations)

    def test_no_history_skips_cumulative_checks(self):
        result = self.checker.check(make_factors(), 13.0, [], duty_time=12.0, flight_time=0.0)
        assert result.warnings == []
        assert result.violations == []

    def test_history_without_duty_date_raises(self):
        factors = make_factors(duty_date=None)
        with pytest.raises(InputValidationError):
            self.checker.check(factors, 13.0, self.history, duty_time=12.0, flight_time=0.0)

    def test_daily_check_needs_no_date(self):
        result = self.checker.check(make_factors(duty_date=None), 13.0, duty_time=12.0, flight_time=0.0)
        assert result.is_compliant


class TestMonthlyCheck:

    def setup_method(self):
        self.checker = ComplianceChecker()
        self.factors = make_factors(duty_date=date(2025, 1, 20))
        self.days = ["2025-01-02", "2025-01-04", "2025-01-06", "2025-01-08", "2025-01-10"]

    def run(self, history, checker=None, duty_time=10.0):
        checker = checker or self.checker
        return checker.check(self.factors, 13.0, history, duty_time=duty_time, flight_time=0.0)

    def test_approaching_monthly_duty(self):
        result = self.run([record(d, 34.0) for d in self.days], duty_time=12.0)
        assert "Approaching monthly duty time limit (182h)" in result.warnings
        assert result.is_compliant

    def test_monthly_duty_exceeded(self):
        result = self.run([record(d, 37.0) for d in self.days], duty_time=12.0)
        assert "Monthly duty time limit exceeded: 197h > 190h" in result.violations

    def test_previous_month_excluded(self):
        history = [record(d, 34.0) for d in self.days] + [record("2024-12-30", 20.0)]
        result = self.run(history, duty_time=12.0)
        assert result.violations == []

    def test_approaching_monthly_flight(self):
        result = self.run([record(d, 8.0, flight_time=19.9) for d in self.days])
        assert "Approaching monthly flight time limit (99h 30m)" in result.warnings

    def test_monthly_flight_exceeded(self):
        result = self.run([record(d, 8.0, flight_time=20.5) for d in self.days])
        assert "Monthly flight time limit exceeded: 102h 30m > 100h" in result.violations
        assert not result.is_compliant

    def test_planned_buffer_with_conservative_config(self):
        history = [record(d, 8.0, flight_time=19.7) for d in self.days]

        default = self.run(history)
        assert not any("monthly flight" in w for w in default.warnings)

        conservative = self.run(history, checker=ComplianceChecker(FTLConfig.conservative_config()))
        assert "Approaching monthly flight time limit (98h 30m)" in conservative.warnings


class TestUnparseableHistory:

    def test_bad_date_skipped_and_logged(self, caplog):
        checker = ComplianceChecker()
        history = [
            record("2025-01-13", 12.0),
            record("not-a-date", 50.0, number="BA999"),
            record("", 50.0, number="BA998"),
        ]
        with caplog.at_level(logging.WARNING, logger="core.compliance"):
            result = checker.check(make_factors(), 13.0, history, duty_time=12.0, flight_time=0.0)

        assert result.violations == []
        assert "BA999" in caplog.text
        assert "unparseable date" in caplog.text

    def test_history_frame_drops_bad_rows(self):
        df = ComplianceChecker.history_frame([record("2025-01-13", 12.0), record("13/45/2025", 1.0)])
        assert len(df) == 1
        assert df['day'].iloc[0] == date(2025, 1, 13)

    def test_all_bad_dates(self):
        checker = ComplianceChecker()
        result = checker.check(make_factors(), 13.0, [record("garbage", 99.0)], duty_time=12.0, flight_time=0.0)
        assert result.is_compliant
