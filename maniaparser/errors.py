"""
Exception classes raised while reading, validating or writing charts.

Every error derives from :class:`ValueError`, so callers that only care about "bad input" can keep catching that.
"""

__all__ = [
    "ChartError",
    "ParseError",
    "WriteError",
    "InvalidTempo",
    "MalformedGrid",
    "EmptyChart",
    "LaneOutOfRange",
    "UnsupportedKeyCount",
]


class ChartError(ValueError):
    """Base class for all chart-related errors."""

    pass


class ParseError(ChartError):
    """Raised when a chart file cannot be decoded."""

    pass


class WriteError(ChartError):
    """Raised when a chart cannot be represented in the target format."""

    pass


class InvalidTempo(ParseError):
    """Raised when tempo data is non-positive, non-finite or out of order."""

    pass


class MalformedGrid(ParseError):
    """Raised when a note row does not match the chart's key count."""

    pass


class EmptyChart(ChartError):
    """Raised when a chart has no notes or no timing information."""

    pass


class LaneOutOfRange(ChartError):
    """Raised when a note sits on a lane outside of ``[1, key_count]``."""

    def __init__(self, lane: int, key_count: int):
        super().__init__(f"lane out of range for {key_count}K chart (got {lane})")
        self.lane = lane
        self.key_count = key_count


class UnsupportedKeyCount(ParseError, WriteError):
    """Raised when a format has no representation for a chart's key count."""

    def __init__(self, key_count: int, fmt: str):
        super().__init__(f"{fmt} does not support {key_count}K charts")
        self.key_count = key_count
        self.fmt = fmt
