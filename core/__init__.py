"""
Core FTL Engine Components
==========================

Main exports for the UK CAA flight time limitations engine.
"""

from core.errors import (
    FTLError,
    InputValidationError,
    InvalidTimeFormat,
    InvalidAirportCode,
    RegulatoryRangeError,
    TimezoneDifferenceOutOfRange,
    UnsupportedSectorCount,
)
from core.parameters import (
    AbsoluteLimits,
    BufferLimits,
    StandbyRules,
    RestRules,
    FDPRules,
    FTLConfig,
)
from core.time_utils import (
    AirportTimezoneResolver,
    parse_clock_time,
    hours_between,
    convert_utc_to_local,
    elapsed_hours_across_dates,
    add_hours,
    format_hours_and_minutes,
    parse_record_date,
)
from core.regulatory_tables import (
    lookup_acclimatised_fdp,
    lookup_unknown_acclimatised_fdp,
    lookup_rostered_extension_fdp,
    lookup_extended_fdp,
    lookup_in_flight_rest_extension,
    lookup_cabin_crew_max_fdp,
    lookup_home_standby_fdp_reduction,
    lookup_airport_standby_fdp_reduction,
    lookup_split_duty_extension,
    get_absolute_limits,
    get_buffer_limits,
    get_standby_rules,
)
from core.acclimatisation import AcclimatisationResolver, determine_acclimatisation
from core.fdp_calculator import FDPCalculator
from core.compliance import ComplianceChecker
from core.rest_period import RestPeriodCalculator
from core.trip_context import apply_trip_context, find_outbound_flight
from core.ftl_service import FTLCalculationService, calculate_ftl

__all__ = [
    # Errors
    'FTLError',
    'InputValidationError',
    'InvalidTimeFormat',
    'InvalidAirportCode',
    'RegulatoryRangeError',
    'TimezoneDifferenceOutOfRange',
    'UnsupportedSectorCount',
    # Parameters
    'AbsoluteLimits',
    'BufferLimits',
    'StandbyRules',
    'RestRules',
    'FDPRules',
    'FTLConfig',
    # Time
    'AirportTimezoneResolver',
    'parse_clock_time',
    'hours_between',
    'convert_utc_to_local',
    'elapsed_hours_across_dates',
    'add_hours',
    'format_hours_and_minutes',
    'parse_record_date',
    # Regulatory tables
    'lookup_acclimatised_fdp',
    'lookup_unknown_acclimatised_fdp',
    'lookup_rostered_extension_fdp',
    'lookup_extended_fdp',
    'lookup_in_flight_rest_extension',
    'lookup_cabin_crew_max_fdp',
    'lookup_home_standby_fdp_reduction',
    'lookup_airport_standby_fdp_reduction',
    'lookup_split_duty_extension',
    'get_absolute_limits',
    'get_buffer_limits',
    'get_standby_rules',
    # Calculators
    'AcclimatisationResolver',
    'determine_acclimatisation',
    'FDPCalculator',
    'ComplianceChecker',
    'RestPeriodCalculator',
    'apply_trip_context',
    'find_outbound_flight',
    # Service
    'FTLCalculationService',
    'calculate_ftl',
]
