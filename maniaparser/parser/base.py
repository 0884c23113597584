"""
Abstract base classes for parsers and writers.
"""
import logging

from abc import abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import ClassVar, TextIO

from ..classes.base import AbstractDataclass
from ..classes.chart import CanonicalChart
from ..classes.enums import ChartFormat
from ..classes.sound import SoundBank
from ..errors import ChartError, LaneOutOfRange, ParseError, UnsupportedKeyCount, WriteError

__all__ = [
    "Parser",
    "Writer",
]

logger = logging.getLogger(__name__)


@dataclass
class Parser(AbstractDataclass):
    """
    An abstract base class for parsers that read a specific format.
    """

    chart_format: ClassVar[ChartFormat]

    _file_path: Path | None = field(default=None, init=False, repr=False)

    @abstractmethod
    def _parse(self, raw: str) -> CanonicalChart:
        """Decode a chart. Low-level errors may propagate, they are wrapped by :meth:`parse_str`."""
        pass

    def parse_str(self, raw: str) -> CanonicalChart:
        """
        Parse a chart from a string.

        :raises ParseError: if the input is malformed.
        """
        try:
            chart = self._parse(raw)
        except ChartError:
            raise
        except (ValueError, KeyError, IndexError, TypeError, AttributeError) as e:
            raise ParseError(f"malformed {self.chart_format.name.lower()} chart: {e}") from e
        logger.info(
            f"parsed {self.chart_format.name.lower()} chart: {len(chart.notes)} notes, "
            f"{len(chart.timing)} timing changes"
        )
        return chart

    def parse(self, f: TextIO) -> CanonicalChart:
        """Parse a file, producing a canonical chart."""
        if hasattr(f, "name") and isinstance(f.name, str):
            self._file_path = Path(f.name).resolve()
        return self.parse_str(f.read())

    @property
    def file_path(self) -> Path | None:
        """Path to the last parsed file, if it was read from disk."""
        return self._file_path


@dataclass
class Writer(AbstractDataclass):
    """
    An abstract base class for writers that produce a specific format.
    """

    chart_format: ClassVar[ChartFormat]
    supported_key_counts: ClassVar[frozenset[int] | None] = None
    """Key counts the format can represent. `None` means any."""

    @abstractmethod
    def _write(self, chart: CanonicalChart, sound_bank: SoundBank | None) -> str:
        pass

    def check_key_count(self, chart: CanonicalChart) -> int:
        """
        Return the chart's key count.

        :raises UnsupportedKeyCount: if the format cannot represent it.
        """
        key_count = chart.key_count()
        if self.supported_key_counts is not None and key_count not in self.supported_key_counts:
            raise UnsupportedKeyCount(key_count, self.chart_format.name.lower())
        return key_count

    def write_str(self, chart: CanonicalChart, sound_bank: SoundBank | None = None) -> str:
        """
        Encode a chart to a string.

        :param chart: The chart to encode.
        :param sound_bank: Sound bank to resolve samples against. Defaults to the chart's own.
        :raises WriteError: if the chart has no tempo, or cannot be represented in this format.
        :raises LaneOutOfRange: if a note lies outside ``[1, key_count]``.
        """
        if not chart.timing.has_tempo:
            raise WriteError("chart has no tempo changes")
        key_count = self.check_key_count(chart)
        for note in chart.notes:
            if not 1 <= note.lane <= key_count:
                raise LaneOutOfRange(note.lane, key_count)
        if sound_bank is None:
            sound_bank = chart.sound_bank
        chart.timing.sort()
        chart.notes.sort()
        return self._write(chart, sound_bank)

    def write(self, chart: CanonicalChart, f: TextIO, sound_bank: SoundBank | None = None) -> None:
        """Write a chart to a file. Nothing is written if encoding fails."""
        f.write(self.write_str(chart, sound_bank))
