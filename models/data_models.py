"""
data_models.py - Core Data Structures
======================================

Data models for UK CAA flight time limitation calculations: duty inputs,
historical flight records, and the intermediate and final calculation results.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import List, Optional, Dict
from enum import Enum


# ============================================================================
# ENUMS
# ============================================================================

class AcclimatisationResultCode(Enum):
    """
    UK CAA ORO.FTL.105(1) acclimatisation result codes
    Per Table 1 of AMC1 ORO.FTL.105(1)
    """
    B = "B"  # acclimatised to home base time zone
    D = "D"  # acclimatised to the current departure time zone
    X = "X"  # unknown state of acclimatisation


class RestFacilityType(Enum):
    """
    In-flight rest facility classification per CS FTL.1.205(c)
    Determines the maximum FDP for augmented crew operations
    """
    NONE = "none"
    CLASS_1 = "class_1"  # Bunk or flat surface, separated from flight deck and cabin
    CLASS_2 = "class_2"  # Seat reclining >=45deg, curtained from passengers
    CLASS_3 = "class_3"  # Seat reclining >=40deg in cabin or flight deck


class StandbyType(Enum):
    """Standby duty types per ORO.FTL.225"""
    HOME = "home"
    AIRPORT = "airport"


class SplitDutyAccommodation(Enum):
    """Where the split duty break is taken (CS FTL.1.220)"""
    ACCOMMODATION = "accommodation"  # break counted up to 6h, WOCL excluded
    SUITABLE_ACCOMMODATION = "suitable_accommodation"  # full break counted


class PilotType(Enum):
    """Operating role recorded against a historical flight"""
    SINGLE_PILOT = "single"
    MULTI_PILOT = "multi"
    COMMANDER = "commander"
    COPILOT = "copilot"

    @property
    def display_name(self) -> str:
        return {
            PilotType.SINGLE_PILOT: "Single Pilot",
            PilotType.MULTI_PILOT: "Multi Pilot",
            PilotType.COMMANDER: "Commander",
            PilotType.COPILOT: "Co-Pilot",
        }[self]


class CrewType(Enum):
    """Flight crew use the pilot in-flight rest table, cabin crew use Table 5"""
    PILOT = "pilot"
    CABIN_CREW = "cabin_crew"


# ============================================================================
# INPUT STRUCTURES
# ============================================================================

@dataclass
class DutyFactors:
    """
    Duty scenario to be assessed.

    All clock times are "HH:MM" UTC, optionally suffixed with "Z".
    ``number_of_additional_pilots`` is only read when ``has_augmented_crew``
    is set; ``rest_facility_type`` only when ``has_in_flight_rest`` is set.
    """
    report_time: str
    duty_end_time: str
    departure: str
    arrival: str
    home_base: str
    takeoff_time: str = ""
    landing_time: str = ""
    second_home_base: Optional[str] = None
    duty_date: Optional[date] = None

    number_of_sectors: int = 1
    timezone_difference: Optional[float] = None  # derived from home base/departure when None
    elapsed_time_hours: float = 0.0
    is_first_sector: bool = True
    original_home_base_report_time: Optional[str] = None
    original_home_base_report_date: Optional[date] = None
    trip_number: str = ""

    # Crew complement
    crew_type: CrewType = CrewType.PILOT
    has_augmented_crew: bool = False
    number_of_additional_pilots: int = 0
    has_in_flight_rest: bool = False
    rest_facility_type: RestFacilityType = RestFacilityType.NONE
    in_flight_rest_available_hours: float = 0.0
    is_long_flight: bool = False
    sector_flight_hours: List[float] = field(default_factory=list)

    # Extensions
    has_split_duty: bool = False
    split_duty_break_hours: float = 0.0
    split_duty_break_start: Optional[str] = None
    split_duty_accommodation: SplitDutyAccommodation = SplitDutyAccommodation.ACCOMMODATION
    has_extended_fdp: bool = False
    has_commanders_discretion: bool = False
    delayed_report_times: List[str] = field(default_factory=list)

    # Standby
    has_standby: bool = False
    standby_type: Optional[StandbyType] = None
    standby_start_time: Optional[str] = None
    standby_contact_time: Optional[str] = None  # first contact during night standby

    consecutive_duty_days: int = 0
    block_time_hours: float = 0.0
    flight_time_hours: Optional[float] = None

    @property
    def additional_crew(self) -> int:
        """Additional pilots counted only when augmented crew is declared"""
        return self.number_of_additional_pilots if self.has_augmented_crew else 0

    @property
    def effective_rest_facility(self) -> RestFacilityType:
        """Rest facility counted only when in-flight rest is declared"""
        return self.rest_facility_type if self.has_in_flight_rest else RestFacilityType.NONE

    @property
    def is_home_standby(self) -> bool:
        return self.has_standby and self.standby_type == StandbyType.HOME

    @property
    def is_airport_standby(self) -> bool:
        return self.has_standby and self.standby_type == StandbyType.AIRPORT


@dataclass(frozen=True)
class FlightRecord:
    """
    Historical flight used for weekly/monthly aggregation and trip context.

    ``date`` is kept as the string supplied by the upstream parser so a
    malformed value can be skipped during aggregation instead of failing
    the whole record set.
    """
    flight_number: str
    departure: str
    arrival: str
    report_time: str
    takeoff_time: str
    landing_time: str
    duty_end_time: str
    flight_time: float
    duty_time: float
    pilot_type: PilotType = PilotType.MULTI_PILOT
    date: str = ""
    pilot_count: int = 2
    trip_number: str = ""
    is_outbound: bool = False
    elapsed_time_hours: Optional[float] = None
    record_id: Optional[str] = None


# ============================================================================
# RESULT STRUCTURES
# ============================================================================

@dataclass(frozen=True)
class AcclimatisationResult:
    """Acclimatisation state of one sector"""
    is_acclimatised_to_departure: bool
    is_acclimatised_to_home_base: bool
    result_code: AcclimatisationResultCode
    explanation: str


@dataclass(frozen=True)
class HomeStandbyFDPResult:
    """FDP reduction produced by standby preceding the duty"""
    standby_duration: float
    threshold: float
    reduction: float
    explanation: str

    @property
    def applies(self) -> bool:
        return self.reduction > 0


@dataclass(frozen=True)
class SplitDutyResult:
    """FDP extension earned by a split duty break"""
    break_duration: float
    effective_break: float
    wocl_excluded: float
    extension: float
    explanation: str


@dataclass(frozen=True)
class FDPCalculationResult:
    """Outcome of the seven-step maximum FDP calculation"""
    max_fdp: float
    acclimatisation_state: AcclimatisationResultCode
    base_fdp: float
    adjustments: Dict[str, float] = field(default_factory=dict)
    explanations: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    violations: List[str] = field(default_factory=list)
    home_standby: Optional[HomeStandbyFDPResult] = None
    airport_standby: Optional[HomeStandbyFDPResult] = None
    split_duty: Optional[SplitDutyResult] = None


@dataclass(frozen=True)
class LatestTimes:
    """Latest on-blocks/off-blocks derived from the maximum FDP"""
    latest_on_blocks: str
    latest_off_blocks: str
    latest_on_blocks_with_discretion: str
    latest_off_blocks_with_discretion: str


@dataclass(frozen=True)
class RestPeriodResult:
    required_rest: float
    next_duty_available: str
    next_duty_available_datetime: Optional[datetime]
    explanation: str


@dataclass(frozen=True)
class ComplianceResult:
    warnings: List[str] = field(default_factory=list)
    violations: List[str] = field(default_factory=list)

    @property
    def is_compliant(self) -> bool:
        return not self.violations


@dataclass(frozen=True)
class FTLCalculationResult:
    """Final result of assessing one duty against UK CAA FTL"""
    duty_time: float
    flight_time: float
    required_rest: float
    next_duty_available: str
    is_compliant: bool
    warnings: List[str]
    violations: List[str]
    max_fdp: float
    explanations: List[str]
    acclimatisation: Optional[AcclimatisationResult] = None
    fdp: Optional[FDPCalculationResult] = None
    next_duty_available_datetime: Optional[datetime] = None
    latest_times: Optional[LatestTimes] = None
    rest_explanation: str = ""

    def summary(self) -> str:
        """One-line human readable summary"""
        status = "COMPLIANT" if self.is_compliant else "NON-COMPLIANT"
        return (
            f"{status}: duty {self.duty_time:.2f}h / max FDP {self.max_fdp:.2f}h, "
            f"rest {self.required_rest:.1f}h, next duty {self.next_duty_available}"
        )
