"""
Home base matching.

The London airports are one base for FTL purposes: a crew member based at
LHR who finishes at LGW has returned to home base.
"""

from typing import FrozenSet, Optional

LONDON_BASES: FrozenSet[str] = frozenset({'LHR', 'LGW', 'STN'})


def _norm(code: Optional[str]) -> str:
    return (code or "").strip().upper()


def same_base(a: str, b: str, london_bases: FrozenSet[str] = LONDON_BASES) -> bool:
    a, b = _norm(a), _norm(b)
    if not a or not b:
        return False
    if a == b:
        return True
    return a in london_bases and b in london_bases


def is_home_base(
    airport: str,
    home_base: str,
    second_home_base: Optional[str] = None,
    london_bases: FrozenSet[str] = LONDON_BASES
) -> bool:
    """True if airport is the home base or the second home base."""
    if same_base(airport, home_base, london_bases):
        return True
    return bool(second_home_base) and same_base(airport, second_home_base, london_bases)
