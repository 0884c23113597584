"""
General purpose enumerations.
"""
from enum import Enum, auto, unique

__all__ = [
    "TimingChangeType",
    "KeyType",
    "HitSoundType",
    "ChartFormat",
]


@unique
class TimingChangeType(Enum):
    """Enumeration for the kinds of timing changes."""

    TEMPO = auto()
    SCROLL_VELOCITY = auto()

    def __str__(self) -> str:
        name_parts = [s.capitalize() for s in self.name.split("_")]
        return " ".join(name_parts)


@unique
class KeyType(Enum):
    """Enumeration for the kinds of objects a lane can hold at a given time."""

    EMPTY = auto()
    NORMAL = auto()
    LONG_START = auto()
    LONG_END = auto()
    MINE = auto()
    FAKE = auto()
    UNKNOWN = auto()

    def __str__(self) -> str:
        name_parts = [s.capitalize() for s in self.name.split("_")]
        return "".join(name_parts)


@unique
class HitSoundType(Enum):
    """Enumeration for the built-in hitsounds, valued by their osu! bit."""

    NORMAL = 0
    WHISTLE = 2
    FINISH = 4
    CLAP = 8

    def __str__(self) -> str:
        return f"{self.name.capitalize()} ({self.value})"


@unique
class ChartFormat(Enum):
    """Enumeration for the supported chart formats, valued by their file suffix."""

    STEPMANIA = "sm"
    OSU = "osu"
    QUAVER = "qua"
    FLUXIS = "fsc"

    def __str__(self) -> str:
        return f"{self.name.capitalize()} (.{self.value})"

    @property
    def suffix(self) -> str:
        """File suffix, including the leading dot."""
        return f".{self.value}"
