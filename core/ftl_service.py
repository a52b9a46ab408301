"""
UK CAA FTL Calculation Service
==============================

Entry point of the engine: turns a DutyFactors scenario plus flight history
into an FTLCalculationResult.

Pipeline:
    validation -> trip context -> acclimatisation -> maximum FDP
    -> compliance (daily/weekly/monthly) -> minimum rest

The service holds configuration only; every call is computed from its
arguments, so one instance can be shared between threads.
"""

import logging
from datetime import date, timedelta
from typing import List, Optional

from core.compliance import ComplianceChecker
from core.errors import InputValidationError
from core.fdp_calculator import FDPCalculator
from core.parameters import FTLConfig
from core.rest_period import RestPeriodCalculator
from core.time_utils import AirportTimezoneResolver, minutes_of_day
from core.trip_context import apply_trip_context
from core.validation import validate_duty_factors
from models.data_models import DutyFactors, FlightRecord, FTLCalculationResult

logger = logging.getLogger(__name__)


class FTLCalculationService:
    """Assess a duty against UK CAA flight time limitations"""

    def __init__(self, config: FTLConfig = None, tz_resolver: AirportTimezoneResolver = None):
        self.config = config or FTLConfig()
        self.tz_resolver = tz_resolver or AirportTimezoneResolver(self.config.fallback_timezone)
        self.fdp_calculator = FDPCalculator(self.config, self.tz_resolver)
        self.compliance_checker = ComplianceChecker(self.config)
        self.rest_calculator = RestPeriodCalculator(self.config)

    @staticmethod
    def duty_end_date(factors: DutyFactors) -> Optional[date]:
        """Calendar date of duty end (next day when the duty crosses midnight)"""
        if factors.duty_date is None:
            return None
        if minutes_of_day(factors.duty_end_time) < minutes_of_day(factors.report_time):
            return factors.duty_date + timedelta(days=1)
        return factors.duty_date

    def calculate(
        self,
        factors: DutyFactors,
        previous_flights: Optional[List[FlightRecord]] = None
    ) -> FTLCalculationResult:
        """
        Calculate maximum FDP, compliance and required rest for one duty.

        The duty date is required: time zone offsets, cumulative windows and
        the next availability are all taken on it, never on today's date.

        Raises:
            InputValidationError: missing duty date, or malformed time or
                airport code on the duty
            RegulatoryRangeError: duty outside the regulation's tables
        """
        previous_flights = previous_flights or []
        validate_duty_factors(factors)
        if factors.duty_date is None:
            raise InputValidationError(None, "Duty date is required")
        factors = apply_trip_context(factors, previous_flights, self.config.london_home_bases)

        acclimatisation = self.fdp_calculator.resolve_acclimatisation(factors)
        fdp = self.fdp_calculator.calculate(factors, acclimatisation)

        duty_time = self.compliance_checker.actual_duty_time(factors)
        flight_time = self.compliance_checker.flight_time(factors)
        compliance = self.compliance_checker.check(
            factors, fdp.max_fdp, previous_flights,
            duty_time=duty_time, flight_time=flight_time,
        )

        rest = self.rest_calculator.calculate(
            duty_time=duty_time,
            duty_end_time=factors.duty_end_time,
            arrival=factors.arrival,
            home_base=factors.home_base,
            second_home_base=factors.second_home_base,
            duty_end_date=self.duty_end_date(factors),
        )

        # Latest times are quoted without discretion; the discretion variant adds it back
        planned_fdp = fdp.max_fdp - fdp.adjustments.get('commanders_discretion', 0.0)
        latest = self.fdp_calculator.latest_times(factors, planned_fdp)

        warnings = fdp.warnings + compliance.warnings
        violations = fdp.violations + compliance.violations
        explanations = fdp.explanations + [rest.explanation]

        logger.info(
            f"{factors.departure}-{factors.arrival} report {factors.report_time}: "
            f"max FDP {fdp.max_fdp}h, duty {duty_time:.2f}h, "
            f"{len(violations)} violation(s), {len(warnings)} warning(s)"
        )

        return FTLCalculationResult(
            duty_time=duty_time,
            flight_time=flight_time,
            required_rest=rest.required_rest,
            next_duty_available=rest.next_duty_available,
            is_compliant=not violations,
            warnings=warnings,
            violations=violations,
            max_fdp=fdp.max_fdp,
            explanations=explanations,
            acclimatisation=acclimatisation,
            fdp=fdp,
            next_duty_available_datetime=rest.next_duty_available_datetime,
            latest_times=latest,
            rest_explanation=rest.explanation,
        )


def calculate_ftl(
    factors: DutyFactors,
    previous_flights: Optional[List[FlightRecord]] = None,
    config: FTLConfig = None
) -> FTLCalculationResult:
    """Convenience wrapper around FTLCalculationService"""
    return FTLCalculationService(config).calculate(factors, previous_flights)
