"""
Input validation for duty scenarios.

Calculation-critical fields raise; nothing is silently defaulted.
"""

import re

from core.errors import InputValidationError, InvalidAirportCode, InvalidTimeFormat
from core.time_utils import parse_clock_time
from models.data_models import DutyFactors

_AIRPORT_RE = re.compile(r'^[A-Z0-9]{3,4}$')


def validate_time(value: str) -> str:
    """Return value if it is HH:MM (optionally Z-suffixed)"""
    parse_clock_time(value)
    return value


def is_valid_time(value: str) -> bool:
    try:
        parse_clock_time(value)
    except InvalidTimeFormat:
        return False
    return True


def validate_airport_code(code: str) -> str:
    """Return code if it is a 3-letter IATA or 4-letter ICAO code (uppercase)"""
    if not isinstance(code, str) or not _AIRPORT_RE.match(code.strip()):
        raise InvalidAirportCode(code)
    return code.strip()


def validate_duty_factors(factors: DutyFactors) -> DutyFactors:
    """
    Check the fields the calculation depends on.

    Raises:
        InvalidTimeFormat, InvalidAirportCode, InputValidationError
    """
    validate_time(factors.report_time)
    validate_time(factors.duty_end_time)
    for value in (factors.takeoff_time, factors.landing_time):
        if value:
            validate_time(value)
    for value in factors.delayed_report_times:
        validate_time(value)

    validate_airport_code(factors.departure)
    validate_airport_code(factors.arrival)
    validate_airport_code(factors.home_base)
    if factors.second_home_base:
        validate_airport_code(factors.second_home_base)

    if factors.has_standby and factors.standby_start_time:
        validate_time(factors.standby_start_time)
    if factors.has_standby and factors.standby_contact_time:
        validate_time(factors.standby_contact_time)

    if factors.has_split_duty:
        if factors.split_duty_break_hours < 0:
            raise InputValidationError(factors.split_duty_break_hours, "Split duty break must be non-negative")
        if factors.split_duty_break_start:
            validate_time(factors.split_duty_break_start)

    if factors.number_of_sectors < 1:
        raise InputValidationError(factors.number_of_sectors, "Number of sectors must be at least 1")
    if factors.has_augmented_crew and factors.number_of_additional_pilots not in (0, 1, 2):
        raise InputValidationError(
            factors.number_of_additional_pilots, "Number of additional pilots must be 0, 1 or 2"
        )
    if factors.timezone_difference is not None and factors.timezone_difference < 0:
        raise InputValidationError(factors.timezone_difference, "Time zone difference must be non-negative")
    return factors
