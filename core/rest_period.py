"""
Minimum Rest (ORO.FTL.235)
==========================

Required rest is at least as long as the preceding duty, and never less
than 12h at home base or 10h away from base. Duties over 14h require 16h.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Optional

from core.home_base import is_home_base
from core.parameters import FTLConfig
from core.time_utils import add_hours, format_clock_time, format_hours_and_minutes as fmt, parse_clock_time
from models.data_models import RestPeriodResult

logger = logging.getLogger(__name__)


class RestPeriodCalculator:

    def __init__(self, config: FTLConfig = None):
        self.config = config or FTLConfig()

    def required_rest(self, duty_time: float, arrival: str, home_base: str,
                      second_home_base: Optional[str] = None) -> float:
        rules = self.config.rest_rules
        if duty_time > rules.extended_duty_threshold_hours:
            return rules.extended_duty_rest_hours
        at_base = is_home_base(arrival, home_base, second_home_base, self.config.london_home_bases)
        minimum = rules.minimum_rest_home_base_hours if at_base else rules.minimum_rest_away_hours
        return max(minimum, duty_time)

    def calculate(
        self,
        duty_time: float,
        duty_end_time: str,
        arrival: str,
        home_base: str,
        second_home_base: Optional[str] = None,
        duty_end_date: Optional[date] = None
    ) -> RestPeriodResult:
        """
        Required rest and next duty availability.

        ``duty_end_date`` is the calendar date of duty end; when given the
        next availability is also returned as a datetime.
        """
        rules = self.config.rest_rules
        rest = self.required_rest(duty_time, arrival, home_base, second_home_base)
        next_duty = format_clock_time(add_hours(duty_end_time, rest))

        next_duty_dt = None
        if duty_end_date is not None:
            end = datetime.combine(duty_end_date, parse_clock_time(duty_end_time))
            next_duty_dt = end + timedelta(hours=rest)

        if duty_time > rules.extended_duty_threshold_hours:
            explanation = (
                f"Duty of {fmt(duty_time)} exceeds {fmt(rules.extended_duty_threshold_hours)}: "
                f"{fmt(rest)} rest required"
            )
        else:
            at_base = is_home_base(arrival, home_base, second_home_base, self.config.london_home_bases)
            location = "at home base" if at_base else "away from home base"
            explanation = f"Rest {location}: {fmt(rest)} (at least the preceding duty of {fmt(duty_time)})"

        logger.debug(f"Required rest {rest}h, next duty {next_duty}Z")
        return RestPeriodResult(
            required_rest=rest,
            next_duty_available=next_duty,
            next_duty_available_datetime=next_duty_dt,
            explanation=explanation,
        )
