"""
FTL Calculation Errors
======================

Validation failures cover malformed input strings. Regulatory range failures
cover inputs the regulation does not define a limit for; the engine raises
rather than inventing a plausible-looking number.
"""


class FTLError(Exception):
    """Base class for all calculation errors"""


class InputValidationError(FTLError, ValueError):
    """Malformed input value"""

    def __init__(self, value, message: str):
        self.value = value
        super().__init__(message)


class InvalidTimeFormat(InputValidationError):
    def __init__(self, value):
        super().__init__(value, f"Invalid time format: {value!r} (expected HH:MM, optionally Z-suffixed)")


class InvalidAirportCode(InputValidationError):
    def __init__(self, value):
        super().__init__(value, f"Invalid airport code: {value!r} (expected 3 or 4 character IATA/ICAO code)")


class RegulatoryRangeError(FTLError):
    """Input lies outside the domain covered by the regulation"""


class TimezoneDifferenceOutOfRange(RegulatoryRangeError):
    def __init__(self, timezone_difference):
        self.timezone_difference = timezone_difference
        super().__init__(
            f"Time zone difference of {timezone_difference}h exceeds the 12h "
            f"covered by the acclimatisation table"
        )


class UnsupportedSectorCount(RegulatoryRangeError):
    def __init__(self, sectors: int, maximum: int = 8):
        self.sectors = sectors
        self.maximum = maximum
        super().__init__(
            f"{sectors} sectors not permitted in unknown state of acclimatisation "
            f"(maximum {maximum})"
        )
