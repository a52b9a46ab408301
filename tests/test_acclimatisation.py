#!/usr/bin/env python3
"""
test_acclimatisation.py
=======================

Table 1 acclimatisation resolution (AMC1 ORO.FTL.105(1)):
- Row and column boundaries
- First sector from home base and the 2h band shortcut
- Differences beyond 12h

Run: python -m pytest tests/test_acclimatisation.py -v
"""

import pytest

from core.acclimatisation import AcclimatisationResolver, determine_acclimatisation
from core.errors import TimezoneDifferenceOutOfRange
from models.data_models import AcclimatisationResultCode

B = AcclimatisationResultCode.B
D = AcclimatisationResultCode.D
X = AcclimatisationResultCode.X


def resolve(diff, elapsed, first_sector=False, home_base="LHR", departure="JFK", second_home_base=None):
    return determine_acclimatisation(diff, elapsed, first_sector, home_base, departure, second_home_base)


class TestTableOne:

    @pytest.mark.parametrize("diff, elapsed, expected", [
        # 2 < d < 4
        (3, 10, B),
        (3, 47.9, B),
        (3, 48, D),
        (3, 130, D),
        # 4 <= d <= 6
        (4, 47, B),
        (4, 48, X),
        (5, 71.9, X),
        (6, 72, D),
        # 6 < d <= 9
        (7, 60, X),
        (7, 80, X),
        (9, 96, D),
        # 9 < d <= 12
        (10, 95, X),
        (10, 119.9, X),
        (12, 120, D),
    ])
    def test_grid(self, diff, elapsed, expected):
        assert resolve(diff, elapsed).result_code == expected

    def test_flags_follow_code(self):
        result = resolve(5, 10)
        assert result.result_code == B
        assert result.is_acclimatised_to_home_base
        assert not result.is_acclimatised_to_departure

        result = resolve(5, 50)
        assert result.result_code == X
        assert not result.is_acclimatised_to_home_base
        assert not result.is_acclimatised_to_departure

        result = resolve(5, 100)
        assert result.result_code == D
        assert result.is_acclimatised_to_departure

    def test_explanation_names_result(self):
        assert resolve(7, 60).explanation.startswith("Result X:")
        assert resolve(3, 10).explanation.startswith("Result B:")

    def test_negative_difference_uses_magnitude(self):
        assert resolve(-5, 50).result_code == X

    def test_row_boundaries(self):
        assert AcclimatisationResolver.row_for(2) is None
        assert AcclimatisationResolver.row_for(3.5) == (2, 4)
        assert AcclimatisationResolver.row_for(4) == (4, 6)
        assert AcclimatisationResolver.row_for(6) == (4, 6)
        assert AcclimatisationResolver.row_for(6.5) == (6, 9)
        assert AcclimatisationResolver.row_for(12) == (9, 12)
        assert AcclimatisationResolver.row_for(12.5) is None


class TestShortcuts:

    def test_first_sector_from_home_base(self):
        result = resolve(8, 0, first_sector=True, departure="LHR")
        assert result.result_code == D
        assert result.is_acclimatised_to_home_base
        assert result.is_acclimatised_to_departure

    def test_first_sector_from_london_equivalent_base(self):
        """LGW counts as home for an LHR-based crew member"""
        result = resolve(8, 0, first_sector=True, home_base="LHR", departure="LGW")
        assert result.result_code == D

    def test_first_sector_from_second_home_base(self):
        result = resolve(8, 0, first_sector=True, home_base="LHR", departure="MAN", second_home_base="MAN")
        assert result.result_code == D

    def test_first_sector_away_from_base_uses_table(self):
        result = resolve(5, 50, first_sector=True, departure="JFK")
        assert result.result_code == X

    @pytest.mark.parametrize("diff", [0, 1, 2, -2])
    def test_within_two_hour_band(self, diff):
        result = resolve(diff, 60)
        assert result.result_code == D
        assert result.is_acclimatised_to_home_base


class TestOutOfRange:

    def test_thirteen_hours_raises(self):
        with pytest.raises(TimezoneDifferenceOutOfRange):
            resolve(13, 50)

    def test_out_of_range_first_sector_from_home_is_accepted(self):
        """The home base shortcut is taken before the table is consulted"""
        assert resolve(13, 0, first_sector=True, departure="LHR").result_code == D

    def test_deterministic(self):
        resolver = AcclimatisationResolver()
        first = resolver.determine(7, 80, False, "LHR", "SIN")
        second = resolver.determine(7, 80, False, "LHR", "SIN")
        assert first == second
