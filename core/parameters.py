"""
Configuration & Parameters for FTL Calculations
===============================================

All configuration dataclasses for the UK CAA FTL engine:
- AbsoluteLimits: ORO.FTL.210 duty and flight time ceilings
- BufferLimits: Operator planning/tracking buffers below the absolute limits
- StandbyRules: ORO.FTL.225 airport and home standby rules
- RestRules: ORO.FTL.235 minimum rest
- FDPRules: ORO.FTL.205 floor, discretion, split duty and augmented crew parameters
- FTLConfig: Master configuration container

References:
    UK CAA Regulation (EU) 965/2012 as retained, Annex III Subpart FTL
    CS FTL.1.205, CS FTL.1.225, AMC1 ORO.FTL.105(1)
"""

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Optional


@dataclass(frozen=True)
class AbsoluteLimits:
    """ORO.FTL.210 cumulative limits (hours)"""

    # Duty periods
    duty_7_days: float = 60.0
    duty_14_days: float = 110.0
    duty_28_days: float = 190.0
    duty_12_months: float = 2000.0

    # Flight time
    flight_28_days: float = 100.0
    flight_calendar_year: float = 900.0
    flight_12_months: float = 900.0


@dataclass(frozen=True)
class BufferLimits:
    """
    Operator buffers held below the absolute limits.

    ``planned`` values are used when building a roster, ``tracking`` values
    when monitoring actual hours.
    """
    duty_7_days_planned: float = 59.0
    duty_7_days_tracking: float = 59.0
    duty_28_days_tracking: float = 180.0

    flight_28_days_planned: float = 98.0
    flight_28_days_tracking: float = 99.0
    flight_12_months_planned: float = 898.0
    flight_12_months_tracking: float = 899.0

    # Recurrent extended recovery rest
    recovery_rest_planned: float = 166.0
    recovery_rest_tracking: float = 167.0
    recovery_rest_absolute: float = 168.0

    def weekly_duty_warning(self, mode: str = 'tracking') -> float:
        return self.duty_7_days_planned if mode == 'planned' else self.duty_7_days_tracking

    def monthly_flight_warning(self, mode: str = 'tracking') -> float:
        return self.flight_28_days_planned if mode == 'planned' else self.flight_28_days_tracking


@dataclass(frozen=True)
class StandbyRules:
    """ORO.FTL.225 and CS FTL.1.225 standby parameters"""

    # Airport standby - FDP counts from report and is reduced by standby
    # beyond the threshold; True counts the FDP from standby start instead
    airport_standby_max_hours: float = 16.0  # standby + FDP
    airport_standby_extended_max_hours: float = 18.0  # in-flight rest or split duty
    airport_fdp_starts_at_standby_start: bool = False
    airport_reduction_threshold_hours: float = 4.0

    # Home standby - FDP counts from report
    home_standby_max_hours: float = 16.0
    home_reduction_threshold_hours: float = 6.0
    home_reduction_threshold_extended_hours: float = 8.0  # in-flight rest or split duty
    # Standby starting in this window (home base local) counts from contact
    home_night_exclusion_start: str = "23:00"
    home_night_exclusion_end: str = "07:00"
    # Duty counted from standby start plus this offset when assessing actual duty
    home_standby_duty_offset_hours: float = 2.0

    # Standby time plus maximum FDP
    max_awake_hours: float = 18.0


@dataclass(frozen=True)
class RestRules:
    """ORO.FTL.235 minimum rest"""
    minimum_rest_home_base_hours: float = 12.0
    minimum_rest_away_hours: float = 10.0
    extended_duty_threshold_hours: float = 14.0
    extended_duty_rest_hours: float = 16.0


@dataclass(frozen=True)
class FDPRules:
    """ORO.FTL.205 FDP rules not held in the lookup tables"""
    minimum_fdp_hours: float = 9.0
    discretion_standard_hours: float = 2.0
    discretion_augmented_hours: float = 3.0
    delayed_reporting_threshold_hours: float = 4.0
    long_flight_sector_hours: float = 9.0
    long_flight_max_sectors: int = 2
    approaching_limit_margin_hours: float = 1.0
    max_consecutive_duty_days: int = 6
    # 'rostered' (ORO.FTL.205(d) extension table) or 'table_4' (operator OM-A Table 4)
    extension_table: str = 'rostered'

    # Split duty (CS FTL.1.220): FDP extended by a fraction of the break
    split_duty_extension_fraction: float = 0.5
    split_duty_accommodation_max_break_hours: float = 6.0
    # WOCL, local to the acclimatised location; end exclusive
    wocl_start: str = "02:00"
    wocl_end: str = "06:00"

    # Augmented crew: fixed limit by additional pilots, capped by facility class
    augmented_base_hours: Dict[int, float] = field(default_factory=lambda: {
        1: 17.0,
        2: 18.0,
    })
    augmented_facility_cap_hours: Dict[str, Optional[float]] = field(default_factory=lambda: {
        'class_1': None,   # no cap
        'class_2': 17.0,
        'class_3': 16.0,
        'none': 13.0,
    })


@dataclass
class FTLConfig:
    """Master configuration container"""
    absolute_limits: AbsoluteLimits = field(default_factory=AbsoluteLimits)
    buffer_limits: BufferLimits = field(default_factory=BufferLimits)
    standby_rules: StandbyRules = field(default_factory=StandbyRules)
    rest_rules: RestRules = field(default_factory=RestRules)
    fdp_rules: FDPRules = field(default_factory=FDPRules)

    # Timezone used for airport codes missing from airportsdata
    fallback_timezone: str = "Europe/London"
    # Bases treated as a single home base
    london_home_bases: FrozenSet[str] = frozenset({'LHR', 'LGW', 'STN'})
    # 'tracking' or 'planned' buffer thresholds for warnings
    buffer_mode: str = 'tracking'

    def __post_init__(self):
        if self.buffer_mode not in ('tracking', 'planned'):
            raise ValueError(f"buffer_mode must be 'tracking' or 'planned', got {self.buffer_mode!r}")

    @classmethod
    def default_uk_caa_config(cls):
        return cls()

    @classmethod
    def conservative_config(cls):
        """
        Roster-planning view.
        - Warnings raised against the planned buffers (98h/28 days flight)
        - Earlier "approaching limit" warning on the daily FDP (90 minutes)
        """
        return cls(
            fdp_rules=FDPRules(approaching_limit_margin_hours=1.5),
            buffer_mode='planned',
        )

    @classmethod
    def with_fallback_timezone(cls, timezone_name: str):
        """Default limits with a different fallback zone for unknown airports"""
        return cls(fallback_timezone=timezone_name)
