"""
Classes and functions that provide general utility.
"""
import math
import re

from collections.abc import Iterable, Iterator
from decimal import Decimal
from numbers import Real
from typing import TypeVar

__all__ = [
    "clamp",
    "to_millis",
    "to_seconds",
    "parse_int",
    "format_number",
    "split_tags",
    "strip_comments",
    "nonempty_lines",
]

T = TypeVar("T", int, float, Real, Decimal)

TAG_SEPARATOR_REGEX = re.compile(r"[,\s]+")


def clamp(value: T, low_bound: T | None = None, high_bound: T | None = None) -> T:
    """
    Clamp a value to a range.

    If a bound is set to `None`, then the value will not be clamped on that side.

    :param value: The value to clamp.
    :param low_bound: The lower value to clamp to. If `None`, the low side is unbounded.
    :param high_bound: The higher value to clamp to. If `None`, the high side is unbounded.
    :returns: The clamped value.
    """
    if low_bound is not None and high_bound is not None and low_bound > high_bound:
        raise ValueError("low bound cannot be larger than high bound")
    if low_bound is not None and value < low_bound:
        return low_bound
    if high_bound is not None and value > high_bound:
        return high_bound
    return value


def to_millis(seconds: float) -> float:
    """Convert seconds to milliseconds."""
    return seconds * 1000


def to_seconds(millis: float) -> float:
    """Convert milliseconds to seconds."""
    return millis / 1000


def parse_int(s: str | int | float) -> int:
    """
    Parse an integer that may have been written as a decimal number.

    Fractional parts are truncated, e.g. ``"1234.56"`` becomes 1234.

    :raises ValueError: if the value is not a finite number.
    """
    if isinstance(s, int):
        return s
    value = float(s)
    if not math.isfinite(value):
        raise ValueError(f"expected a finite number (got {s})")
    return int(value)


def format_number(value: float, max_decimals: int = 3) -> str:
    """
    Format a number without trailing zeroes, e.g. ``120.0`` becomes ``"120"`` and ``0.12500`` becomes ``"0.125"``.

    :param value: The number to format.
    :param max_decimals: Maximum number of digits after the decimal point.
    """
    s = f"{value:.{max_decimals}f}"
    if "." in s:
        s = s.rstrip("0").rstrip(".")
    if s == "-0":
        s = "0"
    return s


def split_tags(s: str, sep: str | None = None) -> list[str]:
    """
    Split a tag string into individual tags.

    :param s: The raw tag string.
    :param sep: Separator to split on. If `None`, commas and whitespace both separate tags.
    """
    if sep is None:
        parts = TAG_SEPARATOR_REGEX.split(s)
    else:
        parts = s.split(sep)
    return [part.strip() for part in parts if part.strip()]


def strip_comments(s: str, marker: str = "//") -> str:
    """Remove everything from ``marker`` to the end of each line."""
    return "\n".join(line.split(marker, 1)[0] for line in s.splitlines())


def nonempty_lines(lines: Iterable[str]) -> Iterator[str]:
    """Yield stripped lines, skipping blank ones."""
    for line in lines:
        line = line.strip()
        if line:
            yield line
