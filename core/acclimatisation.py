"""
Acclimatisation
===============

Determines a crew member's state of acclimatisation per AMC1 ORO.FTL.105(1)
Table 1, from the time zone difference between the reference time and the
local time where the sector departs, and the time elapsed since reporting
at the reference (home base).

Result codes:
    B = acclimatised to the home base time zone
    D = acclimatised to the current departure time zone
    X = unknown state of acclimatisation

A crew member is acclimatised to any time zone within the 2-hour band
around the reference, so differences of 2h or less are always D.
"""

import logging
from typing import FrozenSet, Optional

from core.errors import TimezoneDifferenceOutOfRange
from core.home_base import LONDON_BASES, is_home_base
from models.data_models import AcclimatisationResult, AcclimatisationResultCode

logger = logging.getLogger(__name__)

_CODES = {
    'B': AcclimatisationResultCode.B,
    'D': AcclimatisationResultCode.D,
    'X': AcclimatisationResultCode.X,
}

_MEANING = {
    AcclimatisationResultCode.B: "acclimatised to home base",
    AcclimatisationResultCode.D: "acclimatised to current departure",
    AcclimatisationResultCode.X: "unknown state of acclimatisation",
}


class AcclimatisationResolver:
    """
    Table 1 resolver.

    Rows are time zone difference bands, columns elapsed time since the
    last home-base report: <48h, 48-71:59, 72-95:59, 96-119:59, >=120h.
    Row boundaries: 2 < d < 4, 4 <= d <= 6, 6 < d <= 9, 9 < d <= 12.
    """

    TABLE_1 = {
        (2, 4):   ['B', 'D', 'D', 'D', 'D'],
        (4, 6):   ['B', 'X', 'D', 'D', 'D'],
        (6, 9):   ['B', 'X', 'X', 'D', 'D'],
        (9, 12):  ['B', 'X', 'X', 'X', 'D'],
    }

    BAND_HOURS = 2
    MAX_DIFFERENCE_HOURS = 12

    def __init__(self, london_bases: FrozenSet[str] = LONDON_BASES):
        self.london_bases = london_bases

    @classmethod
    def row_for(cls, abs_diff: float):
        if 2 < abs_diff < 4:
            return (2, 4)
        if 4 <= abs_diff <= 6:
            return (4, 6)
        if 6 < abs_diff <= 9:
            return (6, 9)
        if 9 < abs_diff <= 12:
            return (9, 12)
        return None

    @staticmethod
    def column_for(elapsed_hours: float) -> int:
        if elapsed_hours < 48:
            return 0
        elif elapsed_hours < 72:
            return 1
        elif elapsed_hours < 96:
            return 2
        elif elapsed_hours < 120:
            return 3
        return 4

    def determine(
        self,
        timezone_difference: float,
        elapsed_hours: float,
        is_first_sector: bool,
        home_base: str,
        departure: str,
        second_home_base: Optional[str] = None
    ) -> AcclimatisationResult:
        """
        Resolve the acclimatisation state of one sector.

        Raises:
            TimezoneDifferenceOutOfRange: difference above 12h
        """
        abs_diff = abs(timezone_difference)

        # First sector from home base: always acclimatised
        if is_first_sector and is_home_base(departure, home_base, second_home_base, self.london_bases):
            return AcclimatisationResult(
                is_acclimatised_to_departure=True,
                is_acclimatised_to_home_base=True,
                result_code=AcclimatisationResultCode.D,
                explanation="Result D: first sector from home base, always acclimatised",
            )

        if abs_diff <= self.BAND_HOURS:
            return AcclimatisationResult(
                is_acclimatised_to_departure=True,
                is_acclimatised_to_home_base=True,
                result_code=AcclimatisationResultCode.D,
                explanation=(
                    f"Result D: {abs_diff:g}h time zone difference is within the "
                    f"{self.BAND_HOURS}h band, acclimatised to current departure"
                ),
            )

        row = self.row_for(abs_diff)
        if row is None:
            raise TimezoneDifferenceOutOfRange(timezone_difference)

        code = _CODES[self.TABLE_1[row][self.column_for(elapsed_hours)]]
        logger.debug(
            f"Table 1 row {row[0]}-{row[1]}h, {elapsed_hours:.1f}h elapsed -> {code.value}"
        )
        return AcclimatisationResult(
            is_acclimatised_to_departure=code == AcclimatisationResultCode.D,
            is_acclimatised_to_home_base=code == AcclimatisationResultCode.B,
            result_code=code,
            explanation=(
                f"Result {code.value}: {_MEANING[code]} "
                f"({abs_diff:g}h time zone difference, {elapsed_hours:.1f}h elapsed)"
            ),
        )


def determine_acclimatisation(
    timezone_difference: float,
    elapsed_hours: float,
    is_first_sector: bool,
    home_base: str,
    departure: str,
    second_home_base: Optional[str] = None
) -> AcclimatisationResult:
    """Module-level shortcut using the default London base grouping"""
    return AcclimatisationResolver().determine(
        timezone_difference, elapsed_hours, is_first_sector,
        home_base, departure, second_home_base,
    )
