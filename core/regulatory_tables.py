"""
Regulatory Table Store
======================

Static UK CAA FTL lookup tables and pure lookup functions.

Tables:
    TABLE_2_ACCLIMATISED: Maximum daily FDP, acclimatised crew (ORO.FTL.205(b)(1))
    TABLE_3_UNKNOWN: Maximum daily FDP, unknown state of acclimatisation (ORO.FTL.205(b)(3))
    ROSTERED_EXTENSION: Maximum daily FDP with rostered extension (ORO.FTL.205(d))
    TABLE_4_EXTENDED: Maximum daily FDP with extension, 1-5 sectors (operator OM-A Table 4)
    IN_FLIGHT_REST: Augmented crew FDP with in-flight rest (CS FTL.1.205(c))
    TABLE_5_CABIN_CREW: Cabin crew FDP by in-flight rest available (operator OM-A Table 5)

Report-time bands are inclusive "HH:MM" pairs; a band whose start is later
than its end wraps across midnight. All tables are module constants and
must not be mutated.

References:
    UK CAA Regulation (EU) 965/2012 Annex III ORO.FTL.205, ORO.FTL.210
    CS FTL.1.205(c)(2) In-flight rest, CS FTL.1.220 Split duty, CS FTL.1.225 Standby
"""

import logging
from typing import Dict, List, Optional, Tuple

from core.errors import UnsupportedSectorCount
from core.parameters import AbsoluteLimits, BufferLimits, FDPRules, StandbyRules
from core.time_utils import (
    MINUTES_PER_DAY,
    TimeLike,
    format_clock_time,
    format_hours_and_minutes,
    hours_between,
    minutes_of_day,
)
from models.data_models import HomeStandbyFDPResult, RestFacilityType, SplitDutyAccommodation, SplitDutyResult

logger = logging.getLogger(__name__)

Band = Tuple[str, str]


# ============================================================================
# TABLE 2 - ACCLIMATISED
# ============================================================================

# Columns: 1-2, 3, 4, 5, 6, 7, 8, 9, 10+ sectors
TABLE_2_ACCLIMATISED: Dict[Band, List[float]] = {
    ('05:00', '05:14'): [12.0, 11.5, 11.0, 10.5, 10.0, 9.5, 9.0, 9.0, 9.0],
    ('05:15', '05:29'): [12.25, 11.75, 11.25, 10.75, 10.25, 9.75, 9.25, 9.0, 9.0],
    ('05:30', '05:44'): [12.5, 12.0, 11.5, 11.0, 10.5, 10.0, 9.5, 9.0, 9.0],
    ('05:45', '05:59'): [12.75, 12.25, 11.75, 11.25, 10.75, 10.25, 9.75, 9.25, 9.0],
    ('06:00', '13:29'): [13.0, 12.5, 12.0, 11.5, 11.0, 10.5, 10.0, 9.5, 9.0],
    ('13:30', '13:59'): [12.75, 12.25, 11.75, 11.25, 10.75, 10.25, 9.75, 9.25, 9.0],
    ('14:00', '14:29'): [12.5, 12.0, 11.5, 11.0, 10.5, 10.0, 9.5, 9.0, 9.0],
    ('14:30', '14:59'): [12.25, 11.75, 11.25, 10.75, 10.25, 9.75, 9.25, 9.0, 9.0],
    ('15:00', '15:29'): [12.0, 11.5, 11.0, 10.5, 10.0, 9.5, 9.0, 9.0, 9.0],
    ('15:30', '15:59'): [11.75, 11.25, 10.75, 10.25, 9.75, 9.25, 9.0, 9.0, 9.0],
    ('16:00', '16:29'): [11.5, 11.0, 10.5, 10.0, 9.5, 9.0, 9.0, 9.0, 9.0],
    ('16:30', '16:59'): [11.25, 10.75, 10.25, 9.75, 9.25, 9.0, 9.0, 9.0, 9.0],
    ('17:00', '04:59'): [11.0, 10.5, 10.0, 9.5, 9.0, 9.0, 9.0, 9.0, 9.0],
}


# ============================================================================
# TABLE 3 - UNKNOWN STATE OF ACCLIMATISATION
# ============================================================================

# Columns: 1-2, 3, 4, 5, 6, 7, 8 sectors
TABLE_3_UNKNOWN: List[float] = [11.0, 10.5, 10.0, 9.5, 9.0, 9.0, 9.0]
TABLE_3_MAX_SECTORS = 8


# ============================================================================
# ROSTERED EXTENSION / TABLE 4
# ============================================================================

# Columns indexed by sectors - 1, last column reused beyond 4 sectors
ROSTERED_EXTENSION: Dict[Band, List[Optional[float]]] = {
    ('06:15', '06:29'): [13.25, 12.75, 12.25, 11.75],
    ('06:30', '06:44'): [13.5, 13.0, 12.5, 12.0],
    ('06:45', '06:59'): [13.75, 13.25, 12.75, 12.25],
    ('07:00', '13:29'): [14.0, 13.5, 13.0, 12.5],
    ('13:30', '13:59'): [13.75, 13.25, 12.75, None],
    ('14:00', '14:29'): [13.5, 13.0, 12.5, None],
}

# Columns: 1-2, 3, 4, 5, 6+ sectors (6+ never permitted)
TABLE_4_EXTENDED: Dict[Band, List[Optional[float]]] = {
    ('06:00', '06:14'): [None, None, None, None, None],
    ('06:15', '06:29'): [13.25, 12.75, 12.25, 11.75, None],
    ('06:30', '06:44'): [13.5, 13.0, 12.5, 12.0, None],
    ('06:45', '06:59'): [13.75, 13.25, 12.75, 12.25, None],
    ('07:00', '13:29'): [14.0, 13.5, 13.0, 12.5, None],
    ('13:30', '13:59'): [13.75, 13.25, 12.75, 12.25, None],
    ('14:00', '14:29'): [13.5, 13.0, 12.5, 12.0, None],
    ('14:30', '14:59'): [13.25, 12.75, 12.25, 11.75, None],
    ('15:00', '15:29'): [13.0, 12.5, 12.0, 11.5, None],
    ('15:30', '15:59'): [12.75, 12.25, None, None, None],
    ('16:00', '16:29'): [12.5, 12.0, None, None, None],
    ('16:30', '16:59'): [12.25, 11.75, None, None, None],
    ('17:00', '17:29'): [12.0, None, None, None, None],
    ('17:30', '17:59'): [11.75, None, None, None, None],
    ('18:00', '18:29'): [11.5, None, None, None, None],
    ('18:30', '18:59'): [11.25, None, None, None, None],
    ('19:00', '05:59'): [None, None, None, None, None],
}


# ============================================================================
# IN-FLIGHT REST (CS FTL.1.205(c))
# ============================================================================

# Key: (additional_crew, is_long_flight) -> {facility_class: max_fdp_hours}
# Long flight: at most 2 sectors, one with flight time > 9h
IN_FLIGHT_REST: Dict[Tuple[int, bool], Dict[str, float]] = {
    (1, False): {'class_1': 16.0, 'class_2': 15.0, 'class_3': 14.0},
    (2, False): {'class_1': 17.0, 'class_2': 16.0, 'class_3': 15.0},
    (1, True): {'class_1': 17.0, 'class_2': 16.0, 'class_3': 15.0},
    (2, True): {'class_1': 18.0, 'class_2': 17.0, 'class_3': 16.0},
}
IN_FLIGHT_REST_DEFAULT = 9.0


# ============================================================================
# TABLE 5 - CABIN CREW IN-FLIGHT REST
# ============================================================================

# (rest_available_up_to_hours, max_fdp_hours), ascending; beyond the last
# threshold the facility maximum applies
TABLE_5_CABIN_CREW: Dict[str, List[Tuple[float, float]]] = {
    'class_1': [(1.5, 14.5), (1.75, 15.0), (2.0, 15.5), (2.25, 16.0),
                (2.58, 16.5), (3.0, 17.0), (3.42, 17.5), (3.83, 18.0)],
    'class_2': [(1.5, 14.5), (2.0, 15.0), (2.33, 15.5), (2.67, 16.0),
                (3.0, 16.5), (3.42, 17.0)],
    'class_3': [(1.5, 14.5), (2.33, 15.0), (2.67, 15.5), (3.0, 16.0)],
}
TABLE_5_FACILITY_MAX = {'class_1': 18.0, 'class_2': 17.0, 'class_3': 16.0}


# ============================================================================
# LOOKUP HELPERS
# ============================================================================

def _in_band(minute: int, band: Band) -> bool:
    start, end = minutes_of_day(band[0]), minutes_of_day(band[1])
    if start <= end:
        return start <= minute <= end
    return minute >= start or minute <= end


def find_band(table: Dict[Band, list], local_time: TimeLike) -> Optional[Band]:
    """Return the band of ``table`` containing local_time, or None."""
    minute = minutes_of_day(local_time)
    for band in table:
        if _in_band(minute, band):
            return band
    return None


def acclimatised_sector_index(sectors: int) -> int:
    """Table 2 column: 1-2 -> 0, 3..10 -> sectors-2, 10+ clamps to 8"""
    if sectors <= 2:
        return 0
    return min(sectors - 2, 8)


# ============================================================================
# LOOKUPS
# ============================================================================

def lookup_acclimatised_fdp(local_report_time: TimeLike, sectors: int) -> float:
    """Table 2 maximum FDP for a local report time and sector count."""
    band = find_band(TABLE_2_ACCLIMATISED, local_report_time)
    # Table 2 bands cover all 24 hours
    value = TABLE_2_ACCLIMATISED[band][acclimatised_sector_index(sectors)]
    logger.debug(f"Table 2 {band[0]}-{band[1]}, {sectors} sectors -> {value}h")
    return value


def lookup_unknown_acclimatised_fdp(sectors: int) -> float:
    """
    Table 3 maximum FDP (unknown state of acclimatisation).

    Raises:
        UnsupportedSectorCount: more than 8 sectors
    """
    if sectors > TABLE_3_MAX_SECTORS:
        raise UnsupportedSectorCount(sectors, TABLE_3_MAX_SECTORS)
    index = 0 if sectors <= 2 else sectors - 2
    return TABLE_3_UNKNOWN[index]


def lookup_rostered_extension_fdp(local_report_time: TimeLike, sectors: int) -> Optional[float]:
    """Rostered extension FDP, or None where no extension is defined."""
    band = find_band(ROSTERED_EXTENSION, local_report_time)
    if band is None:
        return None
    row = ROSTERED_EXTENSION[band]
    return row[max(0, min(sectors - 1, len(row) - 1))]


def lookup_extended_fdp(local_report_time: TimeLike, sectors: int) -> Optional[float]:
    """Table 4 extended FDP, or None where extension is not permitted."""
    band = find_band(TABLE_4_EXTENDED, local_report_time)
    if band is None:
        return None
    row = TABLE_4_EXTENDED[band]
    index = 0 if sectors <= 2 else sectors - 2
    if index >= len(row):
        return None
    return row[index]


def lookup_in_flight_rest_extension(rest_class: str, additional_crew: int, is_long_flight: bool) -> float:
    """
    Maximum FDP with in-flight rest for augmented crew.

    Args:
        rest_class: 'class_1', 'class_2' or 'class_3'
        additional_crew: 1 or 2 additional pilots
        is_long_flight: at most 2 sectors, one over 9h
    """
    row = IN_FLIGHT_REST.get((additional_crew, bool(is_long_flight)), {})
    value = row.get(rest_class)
    if value is None:
        logger.warning(
            f"No in-flight rest entry for {rest_class}, {additional_crew} additional crew; "
            f"using {IN_FLIGHT_REST_DEFAULT}h"
        )
        return IN_FLIGHT_REST_DEFAULT
    return value


def lookup_cabin_crew_max_fdp(rest_facility: RestFacilityType, rest_hours_available: float) -> float:
    """Table 5: cabin crew maximum FDP for the in-flight rest available."""
    if rest_facility == RestFacilityType.NONE:
        return 0.0
    for threshold, max_fdp in TABLE_5_CABIN_CREW[rest_facility.value]:
        if rest_hours_available <= threshold:
            return max_fdp
    return TABLE_5_FACILITY_MAX[rest_facility.value]


def is_home_night_standby(local_standby_start: TimeLike, rules: Optional[StandbyRules] = None) -> bool:
    """True when home standby starts inside the night window (23:00-06:59 local by default)."""
    rules = rules or StandbyRules()
    minute = minutes_of_day(local_standby_start)
    start = minutes_of_day(rules.home_night_exclusion_start)
    end = minutes_of_day(rules.home_night_exclusion_end)
    if start <= end:
        return start <= minute < end
    return minute >= start or minute < end


def lookup_home_standby_fdp_reduction(
    standby_start: TimeLike,
    report_time: TimeLike,
    has_inflight_rest_or_split_duty: bool,
    rules: Optional[StandbyRules] = None,
    contact_time: Optional[TimeLike] = None
) -> HomeStandbyFDPResult:
    """
    FDP reduction for home standby preceding a duty (CS FTL.1.225(b)).

    Standby beyond 6h (8h with in-flight rest or split duty) reduces the
    FDP hour-for-hour. For night standby the time before ``contact_time``
    does not count, so the duration runs from contact to report.
    """
    rules = rules or StandbyRules()
    measured_from = contact_time if contact_time is not None else standby_start
    duration = hours_between(measured_from, report_time)
    threshold = (rules.home_reduction_threshold_extended_hours if has_inflight_rest_or_split_duty
                 else rules.home_reduction_threshold_hours)
    reduction = max(0.0, duration - threshold)

    if reduction > 0:
        explanation = (
            f"Home Standby exceeded {format_hours_and_minutes(threshold)} by "
            f"{format_hours_and_minutes(reduction)}. FDP reduced accordingly."
        )
    else:
        explanation = (
            f"Home Standby ceased within first {format_hours_and_minutes(threshold)}. "
            f"No FDP reduction applied."
        )
    if contact_time is not None:
        explanation = f"Night standby counted from contact at {format_clock_time(contact_time)}. {explanation}"

    return HomeStandbyFDPResult(
        standby_duration=duration,
        threshold=threshold,
        reduction=reduction,
        explanation=explanation,
    )


def lookup_airport_standby_fdp_reduction(
    standby_start: TimeLike,
    report_time: TimeLike,
    rules: Optional[StandbyRules] = None
) -> HomeStandbyFDPResult:
    """
    FDP reduction for airport standby followed by a duty (CS FTL.1.225(a)).

    The FDP counts from report and is reduced by any standby beyond 4h.
    """
    rules = rules or StandbyRules()
    duration = hours_between(standby_start, report_time)
    threshold = rules.airport_reduction_threshold_hours
    reduction = max(0.0, duration - threshold)

    if reduction > 0:
        explanation = (
            f"Airport Standby of {format_hours_and_minutes(duration)} exceeded "
            f"{format_hours_and_minutes(threshold)} by {format_hours_and_minutes(reduction)}. "
            f"FDP reduced accordingly."
        )
    else:
        explanation = (
            f"Airport Standby of {format_hours_and_minutes(duration)} within "
            f"{format_hours_and_minutes(threshold)}. No FDP reduction applied."
        )

    return HomeStandbyFDPResult(
        standby_duration=duration,
        threshold=threshold,
        reduction=reduction,
        explanation=explanation,
    )


def wocl_overlap_hours(local_start: TimeLike, duration_hours: float,
                       wocl_start: TimeLike = "02:00", wocl_end: TimeLike = "06:00") -> float:
    """
    Hours of [local_start, local_start + duration) falling inside the WOCL.

    The period may cross midnight and touch the WOCL on two days.
    """
    start = minutes_of_day(local_start)
    end = start + int(round(duration_hours * 60))
    w_start = minutes_of_day(wocl_start)
    w_end = minutes_of_day(wocl_end)
    if w_end <= w_start:
        w_end += MINUTES_PER_DAY

    overlap = 0
    day = 0
    while day * MINUTES_PER_DAY + w_start < end:
        lo = max(start, day * MINUTES_PER_DAY + w_start)
        hi = min(end, day * MINUTES_PER_DAY + w_end)
        overlap += max(0, hi - lo)
        day += 1
    return overlap / 60.0


def lookup_split_duty_extension(
    break_hours: float,
    accommodation: SplitDutyAccommodation,
    local_break_start: Optional[TimeLike] = None,
    rules: Optional[FDPRules] = None
) -> SplitDutyResult:
    """
    FDP extension for a split duty break (CS FTL.1.220).

    Suitable accommodation earns half of the whole break. Accommodation
    counts at most 6h of the break, less any part inside the WOCL at the
    acclimatised location, and earns half of that.
    """
    rules = rules or FDPRules()
    fraction = rules.split_duty_extension_fraction
    pct = f"{fraction * 100:g}%"

    if accommodation == SplitDutyAccommodation.SUITABLE_ACCOMMODATION:
        extension = break_hours * fraction
        return SplitDutyResult(
            break_duration=break_hours,
            effective_break=break_hours,
            wocl_excluded=0.0,
            extension=extension,
            explanation=f"Suitable accommodation: full {pct} extension ({format_hours_and_minutes(extension)})",
        )

    parts = []
    effective = break_hours
    cap = rules.split_duty_accommodation_max_break_hours
    if effective > cap:
        parts.append(f"{format_hours_and_minutes(cap)} limit applied "
                     f"(exceeded by {format_hours_and_minutes(effective - cap)}).")
        effective = cap

    wocl = 0.0
    if local_break_start is not None:
        wocl = wocl_overlap_hours(local_break_start, break_hours, rules.wocl_start, rules.wocl_end)
    if wocl > 0:
        parts.append(f"WOCL encroachment: {format_hours_and_minutes(wocl)} excluded.")
        effective = max(0.0, effective - wocl)

    extension = effective * fraction
    parts.append(f"Final extension: {format_hours_and_minutes(extension)} "
                 f"({pct} of {format_hours_and_minutes(effective)} effective break time)")
    return SplitDutyResult(
        break_duration=break_hours,
        effective_break=effective,
        wocl_excluded=wocl,
        extension=extension,
        explanation="Accommodation: " + " ".join(parts),
    )


def get_absolute_limits() -> AbsoluteLimits:
    return AbsoluteLimits()


def get_buffer_limits() -> BufferLimits:
    return BufferLimits()


def get_standby_rules() -> StandbyRules:
    return StandbyRules()
