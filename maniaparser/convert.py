"""
Format registry and one-call conversion between chart formats.
"""
import logging

from pathlib import Path

from .classes.chart import CanonicalChart
from .classes.enums import ChartFormat
from .classes.sound import SoundBank
from .parser.base import Parser, Writer
from .parser.fsc import FscParser, FscWriter
from .parser.osu import OsuParser, OsuWriter
from .parser.qua import QuaParser, QuaWriter
from .parser.sm import SMParser, SMWriter

__all__ = [
    "PARSERS",
    "WRITERS",
    "detect_format",
    "get_parser",
    "get_writer",
    "parse_chart",
    "write_chart",
    "convert",
]

# fmt: off
PARSERS: dict[ChartFormat, type[Parser]] = {
    ChartFormat.STEPMANIA: SMParser,
    ChartFormat.OSU      : OsuParser,
    ChartFormat.QUAVER   : QuaParser,
    ChartFormat.FLUXIS   : FscParser,
}
WRITERS: dict[ChartFormat, type[Writer]] = {
    ChartFormat.STEPMANIA: SMWriter,
    ChartFormat.OSU      : OsuWriter,
    ChartFormat.QUAVER   : QuaWriter,
    ChartFormat.FLUXIS   : FscWriter,
}
# fmt: on

logger = logging.getLogger(__name__)


def detect_format(path: str | Path) -> ChartFormat:
    """
    Guess a chart's format from its file suffix.

    :raises ValueError: if the suffix is not recognized.
    """
    suffix = Path(path).suffix.lower().lstrip(".")
    try:
        return ChartFormat(suffix)
    except ValueError as e:
        raise ValueError(f"unrecognized chart file extension (got {Path(path).suffix!r})") from e


def get_parser(fmt: ChartFormat, **kwargs) -> Parser:
    """Return a new parser for a format. Keyword arguments are passed to the parser."""
    return PARSERS[fmt](**kwargs)


def get_writer(fmt: ChartFormat, **kwargs) -> Writer:
    """Return a new writer for a format. Keyword arguments are passed to the writer."""
    return WRITERS[fmt](**kwargs)


def parse_chart(raw: str, fmt: ChartFormat) -> CanonicalChart:
    """
    Parse a chart in a given format.

    :raises ParseError: if the input is malformed.
    """
    return get_parser(fmt).parse_str(raw)


def write_chart(chart: CanonicalChart, fmt: ChartFormat, sound_bank: SoundBank | None = None) -> str:
    """
    Encode a chart in a given format.

    :raises WriteError: if the chart cannot be represented in the format.
    """
    return get_writer(fmt).write_str(chart, sound_bank)


def convert(raw: str, source: ChartFormat, target: ChartFormat) -> str:
    """
    Convert a chart from one format to another.

    :param raw: The chart in the ``source`` format.
    :param source: Format of the input.
    :param target: Format of the output.
    :returns: The chart in the ``target`` format.
    :raises ParseError: if the input is malformed.
    :raises WriteError: if the chart cannot be represented in the ``target`` format.
    """
    chart = parse_chart(raw, source)
    logger.debug(f"converting {source} to {target}")
    return write_chart(chart, target)
