"""
Maximum FDP Calculation
=======================

Seven-step maximum FDP algorithm (ORO.FTL.205, CS FTL.1.205, CS FTL.1.225):

    1. Acclimatisation state (Table 1)
    2. Base FDP (Table 2 with home-base or departure local time, or Table 3)
    3. Rostered extension or split duty extension
    4. In-flight rest (augmented crew) / cabin crew Table 5
    5. Delayed reporting
    6. Commander's discretion
    7. Standby (airport standby beyond 4h, home standby beyond 6h/8h)

Home standby reduction is applied to the result of the seven steps. The 9h
minimum FDP applies to every result except home standby with a standby start
time, where CS FTL.1.225(b) allows the reduced FDP to fall below 9h.

Every step is recorded in the explanation trail of the returned
FDPCalculationResult.
"""

import logging
from datetime import time
from typing import Dict, List, Optional

from core.acclimatisation import AcclimatisationResolver
from core.parameters import FTLConfig
from core.regulatory_tables import (
    is_home_night_standby,
    lookup_acclimatised_fdp,
    lookup_airport_standby_fdp_reduction,
    lookup_cabin_crew_max_fdp,
    lookup_extended_fdp,
    lookup_home_standby_fdp_reduction,
    lookup_in_flight_rest_extension,
    lookup_rostered_extension_fdp,
    lookup_split_duty_extension,
    lookup_unknown_acclimatised_fdp,
)
from core.time_utils import (
    AirportTimezoneResolver,
    add_hours,
    convert_utc_to_local,
    format_clock_time,
    format_hours_and_minutes as fmt,
    hours_between,
    parse_clock_time,
)
from models.data_models import (
    AcclimatisationResult, AcclimatisationResultCode, CrewType, DutyFactors,
    FDPCalculationResult, LatestTimes, RestFacilityType, SplitDutyResult,
)

logger = logging.getLogger(__name__)

EXTENSION_UNAVAILABLE = "Rostered extension requested but not available for this time/sector combination"
SPLIT_DUTY_WITH_EXTENSION = "Split duty extension cannot be combined with an extended FDP"


class FDPCalculator:
    """Compute the maximum FDP for a duty"""

    def __init__(self, config: FTLConfig = None, tz_resolver: AirportTimezoneResolver = None):
        self.config = config or FTLConfig()
        self.tz_resolver = tz_resolver or AirportTimezoneResolver(self.config.fallback_timezone)
        self.acclimatisation_resolver = AcclimatisationResolver(self.config.london_home_bases)

    # ------------------------------------------------------------------
    # Inputs derived from the duty
    # ------------------------------------------------------------------

    def timezone_difference(self, factors: DutyFactors) -> float:
        if factors.timezone_difference is not None:
            return factors.timezone_difference
        return self.tz_resolver.timezone_difference_hours(
            factors.home_base, factors.departure, factors.duty_date
        )

    def is_long_flight(self, factors: DutyFactors) -> bool:
        """At most 2 sectors with one sector over 9h flight time"""
        if factors.is_long_flight:
            return True
        rules = self.config.fdp_rules
        legs = factors.sector_flight_hours
        return (0 < len(legs) <= rules.long_flight_max_sectors
                and any(h > rules.long_flight_sector_hours for h in legs))

    def resolve_acclimatisation(self, factors: DutyFactors) -> AcclimatisationResult:
        return self.acclimatisation_resolver.determine(
            timezone_difference=self.timezone_difference(factors),
            elapsed_hours=factors.elapsed_time_hours,
            is_first_sector=factors.is_first_sector,
            home_base=factors.home_base,
            departure=factors.departure,
            second_home_base=factors.second_home_base,
        )

    def reference_airport(self, factors: DutyFactors, state: AcclimatisationResultCode) -> str:
        """D -> departure local time; B and X -> home base local time"""
        if state == AcclimatisationResultCode.D:
            return factors.departure
        return factors.home_base

    def local_time(self, utc_time: str, airport: str, factors: DutyFactors) -> time:
        return convert_utc_to_local(utc_time, airport, factors.duty_date, self.tz_resolver)

    def augmented_crew_limit(self, additional_pilots: int, facility: RestFacilityType) -> float:
        """
        Fixed augmented limit (17h/18h) capped by rest facility class, and
        bounded by the one-or-two sector in-flight rest entry for the facility.
        """
        rules = self.config.fdp_rules
        limit = rules.augmented_base_hours.get(additional_pilots, max(rules.augmented_base_hours.values()))
        cap = rules.augmented_facility_cap_hours.get(facility.value)
        if cap is not None:
            limit = min(limit, cap)
        if facility != RestFacilityType.NONE:
            limit = min(limit, lookup_in_flight_rest_extension(facility.value, additional_pilots, True))
        return limit

    def split_duty_extension(self, factors: DutyFactors, ref_airport: str) -> SplitDutyResult:
        """Split duty extension, with the break start taken local to ``ref_airport``"""
        local_start = None
        if factors.split_duty_break_start:
            local_start = self.local_time(factors.split_duty_break_start, ref_airport, factors)
        return lookup_split_duty_extension(
            factors.split_duty_break_hours, factors.split_duty_accommodation,
            local_start, self.config.fdp_rules,
        )

    def night_standby_contact(self, factors: DutyFactors) -> Optional[str]:
        """
        Contact time from which night home standby is counted, or None.

        Only standby starting in the night window (home base local time)
        is counted from contact; otherwise the contact time is ignored.
        """
        if not factors.standby_contact_time:
            return None
        local_start = self.local_time(factors.standby_start_time, factors.home_base, factors)
        if not is_home_night_standby(local_start, self.config.standby_rules):
            logger.debug(f"Standby from {format_clock_time(local_start)} local is not night standby")
            return None
        return factors.standby_contact_time

    def commanders_discretion_hours(self, factors: DutyFactors) -> float:
        rules = self.config.fdp_rules
        if factors.additional_crew >= 1 and factors.effective_rest_facility != RestFacilityType.NONE:
            return rules.discretion_augmented_hours
        return rules.discretion_standard_hours

    def _extension_value(self, local_report: time, sectors: int) -> Optional[float]:
        if self.config.fdp_rules.extension_table == 'table_4':
            return lookup_extended_fdp(local_report, sectors)
        return lookup_rostered_extension_fdp(local_report, sectors)

    # ------------------------------------------------------------------
    # Main calculation
    # ------------------------------------------------------------------

    def calculate(self, factors: DutyFactors,
                  acclimatisation: Optional[AcclimatisationResult] = None) -> FDPCalculationResult:
        """
        Run the seven-step calculation.

        Raises:
            InvalidTimeFormat: unparseable report/standby/delayed time
            TimezoneDifferenceOutOfRange: time zone difference above 12h
            UnsupportedSectorCount: unknown acclimatisation with 9+ sectors
        """
        rules = self.config.fdp_rules
        sectors = factors.number_of_sectors
        adjustments: Dict[str, float] = {}
        explanations: List[str] = []
        warnings: List[str] = []

        # Step 1: acclimatisation
        acclimatisation = acclimatisation or self.resolve_acclimatisation(factors)
        state = acclimatisation.result_code
        explanations.append(f"Step 1: Acclimatisation state: {acclimatisation.explanation}")
        logger.debug(f"Step 1 - acclimatisation {state.value}")

        ref_airport = self.reference_airport(factors, state)
        local_report = self.local_time(factors.report_time, ref_airport, factors)

        # Step 2: base FDP
        if state == AcclimatisationResultCode.X:
            base_fdp = lookup_unknown_acclimatised_fdp(sectors)
            explanations.append(
                f"Step 2: Base FDP: {fmt(base_fdp)} (Table 3, unknown acclimatisation, {sectors} sector(s))"
            )
        else:
            base_fdp = lookup_acclimatised_fdp(local_report, sectors)
            explanations.append(
                f"Step 2: Base FDP: {fmt(base_fdp)} (Table 2, report {format_clock_time(local_report)} "
                f"local at {ref_airport}, {sectors} sector(s))"
            )
        fdp = base_fdp
        logger.debug(f"Step 2 - base FDP {base_fdp}h")

        # Step 3: rostered extension
        if factors.has_extended_fdp:
            extended = self._extension_value(local_report, sectors)
            if extended is None:
                warnings.append(EXTENSION_UNAVAILABLE)
                explanations.append("Step 3: Rostered extension not available, base FDP retained")
                logger.warning(f"{EXTENSION_UNAVAILABLE} ({format_clock_time(local_report)}, {sectors} sectors)")
            else:
                fdp = extended
                adjustments['rostered_extension'] = extended
                explanations.append(f"Step 3: Rostered extension applied: {fmt(extended)}")

        # Split duty extends the FDP unless an extended FDP is already in use
        split_duty = None
        if factors.has_split_duty and factors.has_extended_fdp:
            warnings.append(SPLIT_DUTY_WITH_EXTENSION)
            explanations.append("Step 3: Split duty extension not applied with an extended FDP")
        elif factors.has_split_duty:
            split_duty = self.split_duty_extension(factors, ref_airport)
            if split_duty.extension > 0:
                fdp += split_duty.extension
                adjustments['split_duty'] = split_duty.extension
            explanations.append(f"Step 3: Split duty extension: +{fmt(split_duty.extension)} ({split_duty.explanation})")

        # Step 4: in-flight rest
        facility = factors.effective_rest_facility
        if factors.crew_type == CrewType.CABIN_CREW and facility != RestFacilityType.NONE:
            cabin_fdp = lookup_cabin_crew_max_fdp(facility, factors.in_flight_rest_available_hours)
            fdp = cabin_fdp
            adjustments['inflight_rest'] = cabin_fdp
            explanations.append(
                f"Step 4: Cabin crew in-flight rest applied: {fmt(cabin_fdp)} "
                f"({facility.value}, {fmt(factors.in_flight_rest_available_hours)} rest available)"
            )
        elif facility != RestFacilityType.NONE and factors.additional_crew > 0:
            long_flight = self.is_long_flight(factors)
            inflight_fdp = lookup_in_flight_rest_extension(facility.value, factors.additional_crew, long_flight)
            fdp = inflight_fdp
            adjustments['inflight_rest'] = inflight_fdp
            suffix = " (long flight)" if long_flight else ""
            explanations.append(f"Step 4: In-flight rest applied: {fmt(inflight_fdp)}{suffix}")
            logger.debug(f"Step 4 - in-flight rest {inflight_fdp}h, long flight {long_flight}")

        # Augmented crew limit takes priority over the report-time based FDP,
        # but never above the in-flight rest value of step 4
        if (factors.crew_type == CrewType.PILOT and factors.has_augmented_crew
                and factors.number_of_additional_pilots > 0):
            limit = self.augmented_crew_limit(factors.number_of_additional_pilots, factors.rest_facility_type)
            if 'inflight_rest' in adjustments:
                limit = min(limit, adjustments['inflight_rest'])
            fdp = limit
            adjustments['augmented_crew'] = limit
            explanations.append(
                f"Augmented crew limit: {fmt(limit)} ({factors.number_of_additional_pilots} additional "
                f"pilot(s), rest facility {factors.rest_facility_type.value})"
            )

        # Step 5: delayed reporting
        if factors.delayed_report_times and state != AcclimatisationResultCode.X:
            max_delay = max(hours_between(factors.report_time, t) for t in factors.delayed_report_times)
            if max_delay >= rules.delayed_reporting_threshold_hours:
                delayed_local = self.local_time(factors.delayed_report_times[-1], ref_airport, factors)
                original = lookup_acclimatised_fdp(local_report, sectors)
                delayed = lookup_acclimatised_fdp(delayed_local, sectors)
                delay_adjustment = min(original, delayed) - original
                if delay_adjustment != 0:
                    fdp += delay_adjustment
                    adjustments['delayed_reporting'] = delay_adjustment
                explanations.append(
                    f"Step 5: Delayed reporting ({fmt(max_delay)} delay) adjustment: {fmt(delay_adjustment)}"
                    if delay_adjustment else
                    f"Step 5: Delayed reporting ({fmt(max_delay)} delay): no reduction"
                )

        # Step 6: commander's discretion
        if factors.has_commanders_discretion:
            discretion = self.commanders_discretion_hours(factors)
            fdp += discretion
            adjustments['commanders_discretion'] = discretion
            explanations.append(f"Step 6: Commander's discretion: +{fmt(discretion)}")

        # Step 7: standby
        standby_rules = self.config.standby_rules
        airport_standby = None
        if factors.is_airport_standby and factors.standby_start_time:
            if standby_rules.airport_fdp_starts_at_standby_start:
                explanations.append(
                    f"Step 7: Airport standby: FDP counts from standby start "
                    f"{format_clock_time(factors.standby_start_time)}"
                )
            else:
                airport_standby = lookup_airport_standby_fdp_reduction(
                    factors.standby_start_time, factors.report_time, standby_rules
                )
                explanations.append(f"Step 7: {airport_standby.explanation}")
                if airport_standby.applies:
                    fdp -= airport_standby.reduction
                    adjustments['airport_standby'] = -airport_standby.reduction

        home_standby = None
        if factors.is_home_standby and factors.standby_start_time:
            extended_threshold = (facility != RestFacilityType.NONE) or factors.has_split_duty
            home_standby = lookup_home_standby_fdp_reduction(
                factors.standby_start_time, factors.report_time, extended_threshold,
                standby_rules, contact_time=self.night_standby_contact(factors),
            )
            explanations.append(f"Step 7: {home_standby.explanation}")
            if home_standby.applies:
                fdp = max(0.0, fdp - home_standby.reduction)
                adjustments['home_standby'] = -home_standby.reduction
        elif fdp < rules.minimum_fdp_hours:
            explanations.append(f"Minimum FDP of {fmt(rules.minimum_fdp_hours)} applied")
            fdp = rules.minimum_fdp_hours

        if home_standby is not None:
            awake = home_standby.standby_duration + fdp
            if awake > standby_rules.max_awake_hours:
                warnings.append(
                    f"Standby and maximum FDP exceed {fmt(standby_rules.max_awake_hours)} "
                    f"awake: {fmt(awake)}"
                )

        explanations.append(f"Maximum FDP: {fmt(fdp)}")
        logger.debug(f"Max FDP {fdp}h ({state.value}, {sectors} sectors)")

        return FDPCalculationResult(
            max_fdp=fdp,
            acclimatisation_state=state,
            base_fdp=base_fdp,
            adjustments=adjustments,
            explanations=explanations,
            warnings=warnings,
            violations=[],
            home_standby=home_standby,
            airport_standby=airport_standby,
            split_duty=split_duty,
        )

    # ------------------------------------------------------------------
    # Latest on/off-blocks
    # ------------------------------------------------------------------

    def fdp_start_time(self, factors: DutyFactors) -> str:
        """Report, or standby start when airport standby is configured to count from it"""
        if (factors.is_airport_standby and factors.standby_start_time
                and self.config.standby_rules.airport_fdp_starts_at_standby_start):
            return factors.standby_start_time
        return factors.report_time

    def latest_times(self, factors: DutyFactors, max_fdp: float) -> LatestTimes:
        """
        Latest on-blocks = FDP start + max FDP.
        Latest off-blocks = latest on-blocks - block time.
        """
        start = parse_clock_time(self.fdp_start_time(factors))
        discretion = self.commanders_discretion_hours(factors)
        block = factors.block_time_hours

        on_blocks = add_hours(start, max_fdp)
        on_blocks_discretion = add_hours(start, max_fdp + discretion)
        return LatestTimes(
            latest_on_blocks=format_clock_time(on_blocks),
            latest_off_blocks=format_clock_time(add_hours(on_blocks, -block)),
            latest_on_blocks_with_discretion=format_clock_time(on_blocks_discretion),
            latest_off_blocks_with_discretion=format_clock_time(add_hours(on_blocks_discretion, -block)),
        )
