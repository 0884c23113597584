"""
Conversion of rhythm game charts between StepMania, osu!mania, Quaver and fluXis formats.
"""
from .classes import (
    CanonicalChart,
    ChartFormat,
)

from .convert import (
    convert,
    detect_format,
    parse_chart,
    write_chart,
)

__version__ = "0.1.0"
