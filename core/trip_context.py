"""
Trip context: time elapsed since the last home-base report.

For an inbound sector (departing an outstation, returning to home base) the
acclimatisation reference is the report time of the outbound sector that
left home base for this outstation on the same trip. The elapsed time is
measured across calendar dates, so a trip spanning several days is not
rounded to whole days.
"""

import logging
from dataclasses import replace
from datetime import date
from typing import FrozenSet, List, Optional

from core.home_base import LONDON_BASES, is_home_base, same_base
from core.time_utils import elapsed_hours_across_dates, parse_record_date
from models.data_models import DutyFactors, FlightRecord

logger = logging.getLogger(__name__)


def _record_date(record: FlightRecord) -> Optional[date]:
    record_date = parse_record_date(record.date)
    if record_date is None:
        logger.warning(f"Ignoring flight {record.flight_number} for trip context: bad date {record.date!r}")
    return record_date


def find_outbound_flight(
    factors: DutyFactors,
    history: List[FlightRecord],
    london_bases: FrozenSet[str] = LONDON_BASES
) -> Optional[FlightRecord]:
    """
    Latest outbound record from home base to the current departure,
    on or before the duty date, on the same trip when a trip number is known.
    """
    candidates = []
    for record in history:
        if not record.is_outbound:
            continue
        if factors.trip_number and record.trip_number != factors.trip_number:
            continue
        if not is_home_base(record.departure, factors.home_base, factors.second_home_base, london_bases):
            continue
        if not same_base(record.arrival, factors.departure, london_bases):
            continue
        record_date = _record_date(record)
        if record_date is None:
            continue
        if factors.duty_date is not None and record_date > factors.duty_date:
            continue
        candidates.append((record_date, record))

    if not candidates:
        return None
    candidates.sort(key=lambda item: item[0])
    return candidates[-1][1]


def apply_trip_context(
    factors: DutyFactors,
    history: Optional[List[FlightRecord]] = None,
    london_bases: FrozenSet[str] = LONDON_BASES
) -> DutyFactors:
    """
    Return factors with ``elapsed_time_hours`` derived from the trip.

    Precedence: an explicit home-base report anchor on the factors, then the
    matching outbound record, then the elapsed time already supplied. A first
    sector from home base has no elapsed time.
    """
    departs_home = is_home_base(factors.departure, factors.home_base, factors.second_home_base, london_bases)
    if factors.is_first_sector and departs_home:
        return replace(factors, elapsed_time_hours=0.0)

    if factors.duty_date is None:
        return factors

    if factors.original_home_base_report_date and factors.original_home_base_report_time:
        elapsed = elapsed_hours_across_dates(
            factors.original_home_base_report_date, factors.original_home_base_report_time,
            factors.duty_date, factors.report_time,
        )
        logger.debug(f"Elapsed time from home-base report anchor: {elapsed:.2f}h")
        return replace(factors, elapsed_time_hours=elapsed)

    arrives_home = is_home_base(factors.arrival, factors.home_base, factors.second_home_base, london_bases)
    if departs_home or not arrives_home or not history:
        return factors

    outbound = find_outbound_flight(factors, history, london_bases)
    if outbound is None:
        logger.debug(f"No outbound sector found for {factors.departure}-{factors.arrival}")
        return factors

    outbound_date = parse_record_date(outbound.date)
    elapsed = elapsed_hours_across_dates(
        outbound_date, outbound.report_time, factors.duty_date, factors.report_time
    )
    logger.debug(
        f"Elapsed time since outbound {outbound.flight_number} ({outbound.date} {outbound.report_time}): "
        f"{elapsed:.2f}h"
    )
    return replace(
        factors,
        elapsed_time_hours=elapsed,
        original_home_base_report_date=outbound_date,
        original_home_base_report_time=outbound.report_time,
    )
