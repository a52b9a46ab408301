"""
UK CAA FTL Compliance Validation
================================

Checks a duty against the daily FDP limit and the cumulative limits of
ORO.FTL.210, aggregating historical FlightRecords with pandas:

- Daily: actual duty time vs maximum FDP (home standby 16h ceiling,
  airport standby plus FDP 16h or 18h)
- Weekly: duty hours in the ISO week of the duty (60h, buffer 59h)
- Consecutive duty days ending on the duty date (max 6)
- Monthly: duty hours (190h, warning 180h) and flight hours (100h, buffer 99h)
  in the calendar month of the duty

Historical records whose date cannot be parsed are left out of the totals
with a logged warning; they never abort the check.

References: UK CAA ORO.FTL.210, CS FTL.1.225
"""

import logging
from datetime import date
from typing import Iterable, List, Optional

import pandas as pd

from core.errors import InputValidationError
from core.parameters import FTLConfig
from core.time_utils import add_hours, format_hours_and_minutes as fmt, hours_between, parse_record_dates
from models.data_models import ComplianceResult, DutyFactors, FlightRecord, RestFacilityType

logger = logging.getLogger(__name__)


class ComplianceChecker:
    """Validate a duty against UK CAA FTL daily and cumulative limits"""

    def __init__(self, config: FTLConfig = None):
        self.config = config or FTLConfig()

    # ------------------------------------------------------------------
    # Duty and flight time of the current duty
    # ------------------------------------------------------------------

    def actual_duty_time(self, factors: DutyFactors) -> float:
        """
        Duty time for the daily check.

        Home standby counts from standby start plus 2h, airport standby
        from standby start, otherwise from report.
        """
        if factors.is_home_standby and factors.standby_start_time:
            offset = self.config.standby_rules.home_standby_duty_offset_hours
            return hours_between(add_hours(factors.standby_start_time, offset), factors.duty_end_time)
        if factors.is_airport_standby and factors.standby_start_time:
            return hours_between(factors.standby_start_time, factors.duty_end_time)
        return hours_between(factors.report_time, factors.duty_end_time)

    def fdp_duty_time(self, factors: DutyFactors, actual_duty: float) -> float:
        """
        Part of the duty compared with the maximum FDP. Airport standby
        counted from report leaves the standby itself out.
        """
        if (factors.is_airport_standby and factors.standby_start_time
                and not self.config.standby_rules.airport_fdp_starts_at_standby_start):
            return hours_between(factors.report_time, factors.duty_end_time)
        return actual_duty

    @staticmethod
    def flight_time(factors: DutyFactors) -> float:
        if factors.flight_time_hours is not None:
            return factors.flight_time_hours
        if factors.takeoff_time and factors.landing_time:
            return hours_between(factors.takeoff_time, factors.landing_time)
        return 0.0

    # ------------------------------------------------------------------
    # Daily
    # ------------------------------------------------------------------

    def check_daily(self, actual_duty: float, max_fdp: float, factors: DutyFactors) -> ComplianceResult:
        warnings: List[str] = []
        violations: List[str] = []
        home_standby = factors.is_home_standby
        ceiling = self.config.standby_rules.home_standby_max_hours
        margin = self.config.fdp_rules.approaching_limit_margin_hours
        discretion = self.config.fdp_rules.discretion_standard_hours

        max_duty = min(max_fdp, ceiling) if home_standby else max_fdp
        discretion_limit = min(max_duty + discretion, ceiling)
        exceeded = f"Daily duty time limit exceeded: {fmt(actual_duty)} > {fmt(max_duty)}"

        if actual_duty > max_duty:
            if not home_standby:
                violations.append(exceeded)
            elif max_duty < ceiling and actual_duty <= discretion_limit:
                violations.append(
                    f"{exceeded} - More restrictive limit applies. Commanders discretion available "
                    f"to extend by {fmt(discretion)} (max {fmt(discretion_limit)})."
                )
            elif max_duty < ceiling:
                violations.append(
                    f"{exceeded} - More restrictive limit applies. Commanders discretion cannot "
                    f"extend beyond {fmt(ceiling)} home standby hard limit."
                )
            else:
                violations.append(
                    f"{exceeded} - Home standby has a hard limit of {fmt(ceiling)} total duty "
                    f"(standby + FDP). Commanders discretion cannot be applied to increase this limit."
                )
        elif actual_duty > max_duty - margin:
            if not home_standby:
                warnings.append(f"Approaching daily duty time limit ({fmt(actual_duty)})")
            elif max_duty < ceiling:
                warnings.append(
                    f"Approaching duty limit ({fmt(actual_duty)}) - More restrictive limit applies. "
                    f"Commanders discretion available to extend by {fmt(discretion)} "
                    f"(max {fmt(discretion_limit)})."
                )
            else:
                warnings.append(
                    f"Approaching home standby duty limit ({fmt(actual_duty)}) - Maximum "
                    f"{fmt(ceiling)} total duty applies. Commanders discretion not available for home standby."
                )

        return ComplianceResult(warnings=warnings, violations=violations)

    def check_airport_standby(self, total_duty: float, factors: DutyFactors) -> ComplianceResult:
        """Airport standby plus FDP against 16h (18h with in-flight rest or split duty)"""
        rules = self.config.standby_rules
        extended = factors.effective_rest_facility != RestFacilityType.NONE or factors.has_split_duty
        ceiling = rules.airport_standby_extended_max_hours if extended else rules.airport_standby_max_hours
        if total_duty > ceiling:
            return ComplianceResult(violations=[
                f"Airport standby and FDP combined exceed {fmt(ceiling)}: {fmt(total_duty)}"
            ])
        return ComplianceResult()

    # ------------------------------------------------------------------
    # History aggregation
    # ------------------------------------------------------------------

    @staticmethod
    def history_frame(history: Iterable[FlightRecord]) -> pd.DataFrame:
        """
        FlightRecords as a DataFrame with a parsed ``day`` column.

        Records with an unparseable date are dropped.
        """
        df = pd.DataFrame(
            [(r.flight_number, r.date, r.duty_time, r.flight_time) for r in history],
            columns=['flight_number', 'date', 'duty_time', 'flight_time'],
        )
        if df.empty:
            df['day'] = pd.Series(dtype='object')
            return df

        parsed = parse_record_dates(df['date'])
        for _, row in df[parsed.isna()].iterrows():
            logger.warning(
                f"Skipping flight {row['flight_number']} in limit totals: unparseable date {row['date']!r}"
            )
        df = df.assign(day=parsed.dt.date)[parsed.notna()].reset_index(drop=True)
        return df

    @staticmethod
    def consecutive_duty_days(days: Iterable[date], ending: date) -> int:
        """
        Length of the run of duty days that ends on ``ending``.

        Walks back from ``ending`` over the distinct duty dates while each
        is within one day of the next; an earlier run separated by a gap
        does not count. ``ending`` itself is always part of the run.
        """
        streak = 1
        last = ending
        for day in sorted({d for d in days if d < ending}, reverse=True):
            if (last - day).days > 1:
                break
            streak += 1
            last = day
        return streak

    def check_weekly(self, df: pd.DataFrame, current_date: date,
                     duty_time: float, consecutive_days: int = 0) -> ComplianceResult:
        warnings: List[str] = []
        violations: List[str] = []
        limit = self.config.absolute_limits.duty_7_days
        buffer = self.config.buffer_limits.weekly_duty_warning(self.config.buffer_mode)

        iso_year, iso_week = current_date.isocalendar()[0], current_date.isocalendar()[1]
        in_week = df['day'].map(lambda d: d.isocalendar()[:2] == (iso_year, iso_week)).astype(bool)
        weekly_duty = float(df.loc[in_week, 'duty_time'].sum()) + duty_time
        logger.debug(f"ISO week {iso_year}-W{iso_week:02d}: {weekly_duty:.2f}h duty")

        if weekly_duty > limit:
            violations.append(f"Weekly duty time limit exceeded: {fmt(weekly_duty)} > {fmt(limit)}")
        elif weekly_duty > buffer:
            warnings.append(f"Approaching weekly duty time limit ({fmt(weekly_duty)})")

        max_days = self.config.fdp_rules.max_consecutive_duty_days
        streak = max(self.consecutive_duty_days(df['day'], current_date), consecutive_days)
        if streak > max_days:
            violations.append(f"Maximum consecutive duty days exceeded: {streak} > {max_days}")

        return ComplianceResult(warnings=warnings, violations=violations)

    def check_monthly(self, df: pd.DataFrame, current_date: date,
                      duty_time: float, flight_time: float) -> ComplianceResult:
        warnings: List[str] = []
        violations: List[str] = []
        limits = self.config.absolute_limits
        buffers = self.config.buffer_limits

        in_month = df['day'].map(
            lambda d: (d.year, d.month) == (current_date.year, current_date.month)
        ).astype(bool)
        month = df.loc[in_month]
        monthly_duty = float(month['duty_time'].sum()) + duty_time
        monthly_flight = float(month['flight_time'].sum()) + flight_time

        if monthly_duty > limits.duty_28_days:
            violations.append(
                f"Monthly duty time limit exceeded: {fmt(monthly_duty)} > {fmt(limits.duty_28_days)}"
            )
        elif monthly_duty > buffers.duty_28_days_tracking:
            warnings.append(f"Approaching monthly duty time limit ({fmt(monthly_duty)})")

        flight_buffer = buffers.monthly_flight_warning(self.config.buffer_mode)
        if monthly_flight > limits.flight_28_days:
            violations.append(
                f"Monthly flight time limit exceeded: {fmt(monthly_flight)} > {fmt(limits.flight_28_days)}"
            )
        elif monthly_flight > flight_buffer:
            warnings.append(f"Approaching monthly flight time limit ({fmt(monthly_flight)})")

        return ComplianceResult(warnings=warnings, violations=violations)

    # ------------------------------------------------------------------
    # All checks
    # ------------------------------------------------------------------

    def check(
        self,
        factors: DutyFactors,
        max_fdp: float,
        history: Optional[List[FlightRecord]] = None,
        duty_time: Optional[float] = None,
        flight_time: Optional[float] = None,
        current_date: Optional[date] = None
    ) -> ComplianceResult:
        """
        Run the daily check, and the weekly and monthly checks when there
        is flight history. ``current_date`` defaults to the duty date.

        Raises:
            InputValidationError: history given but no date to place the duty in
        """
        duty_time = self.actual_duty_time(factors) if duty_time is None else duty_time
        flight_time = self.flight_time(factors) if flight_time is None else flight_time
        current_date = current_date or factors.duty_date

        results = [self.check_daily(self.fdp_duty_time(factors, duty_time), max_fdp, factors)]
        if factors.is_airport_standby and factors.standby_start_time:
            results.append(self.check_airport_standby(duty_time, factors))
        if history:
            if current_date is None:
                raise InputValidationError(None, "A duty date is required to check cumulative limits")
            df = self.history_frame(history)
            results.append(self.check_weekly(df, current_date, duty_time, factors.consecutive_duty_days))
            results.append(self.check_monthly(df, current_date, duty_time, flight_time))

        return ComplianceResult(
            warnings=[w for r in results for w in r.warnings],
            violations=[v for r in results for v in r.violations],
        )
