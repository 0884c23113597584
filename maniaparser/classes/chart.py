"""
Classes that represent chart-related entities.
"""
import logging

from dataclasses import dataclass, field

from .base import Validateable
from .enums import KeyType
from .grid import NoteRow, build_rows
from .notes import NoteSequence
from .sound import SoundBank
from .timing import TempoMap, TimingSequence
from ..errors import EmptyChart, InvalidTempo, LaneOutOfRange

__all__ = [
    "DEFAULT_KEY_COUNT",
    "ChartMetadata",
    "ChartInfo",
    "CanonicalChart",
]

DEFAULT_KEY_COUNT = 4
"""Key count assumed when a chart declares none and has no notes."""

DEFAULT_OVERALL_DIFFICULTY = 7.2
DEFAULT_HP_DRAIN = 8.5

# fmt: off
DEFAULT_TITLE       = "Unknown Title"
DEFAULT_ARTIST      = "Unknown Artist"
DEFAULT_CREATOR     = "Unknown Creator"
DEFAULT_DIFFICULTY  = "Converted"
# fmt: on

logger = logging.getLogger(__name__)


@dataclass
class ChartMetadata:
    """A class that represents the descriptive information of a chart."""

    title: str = DEFAULT_TITLE
    alt_title: str = ""
    artist: str = DEFAULT_ARTIST
    alt_artist: str = ""
    creator: str = DEFAULT_CREATOR
    genre: str = ""
    source: str = ""
    tags: list[str] = field(default_factory=list)


@dataclass
class ChartInfo(Validateable):
    """
    A class that represents the gameplay-related information of a chart.

    ``audio_offset`` is the time (ms) of the first tempo change. ``key_count`` may be left as `None`, in which case it
    is derived from the notes.
    """

    song_path: str = ""
    bg_path: str = ""
    video_path: str = ""
    preview_time: int = 0
    audio_offset: int = 0
    key_count: int | None = None
    difficulty_name: str = DEFAULT_DIFFICULTY
    overall_difficulty: float = DEFAULT_OVERALL_DIFFICULTY
    hp_drain: float = DEFAULT_HP_DRAIN

    def __post_init__(self):
        self.validate()

    def __setattr__(self, name, value):
        super().__setattr__(name, value)
        if name == "key_count":
            self.validate()

    def validate(self):
        if self.key_count is not None and self.key_count < 1:
            raise ValueError(f"key count must be positive (got {self.key_count})")


@dataclass
class CanonicalChart(Validateable):
    """
    A format-independent chart.

    Parsers fill the timelines while reading; afterwards the chart is treated as read-only, except for registering
    additional samples in the sound bank.
    """

    metadata: ChartMetadata = field(default_factory=ChartMetadata)
    chart_info: ChartInfo = field(default_factory=ChartInfo)
    timing: TimingSequence = field(default_factory=TimingSequence)
    notes: NoteSequence = field(default_factory=NoteSequence)
    sound_bank: SoundBank | None = None

    def key_count(self) -> int:
        """Return the declared key count, else the highest lane used, else :data:`DEFAULT_KEY_COUNT`."""
        if self.chart_info.key_count is not None:
            return self.chart_info.key_count
        if len(self.notes) == 0:
            return DEFAULT_KEY_COUNT
        return max(note.lane for note in self.notes)

    def start_time(self) -> int:
        """Return the time of the earliest note, or 0 for an empty chart."""
        if len(self.notes) == 0:
            return 0
        return min(note.time for note in self.notes)

    def end_time(self) -> int:
        """Return the latest time any note is hit or released, or 0 for an empty chart."""
        if len(self.notes) == 0:
            return 0
        return max(note.end_time for note in self.notes)

    def max_combo(self) -> int:
        """Return the combo a full clear yields: one per note, plus one per long note with a resolved end."""
        combo = 0
        for note in self.notes:
            match note.key_type:
                case KeyType.NORMAL:
                    combo += 1
                case KeyType.LONG_START:
                    combo += 2 if note.key.is_long else 1
        return combo

    def tempo_map(self) -> TempoMap:
        """
        Build the tempo map of this chart.

        :raises InvalidTempo: if the tempo changes are invalid.
        """
        return TempoMap(self.timing.tempo_breakpoints(), start_offset=self.chart_info.audio_offset)

    def to_rows(self) -> list[NoteRow]:
        """Lay the notes out as rows, one per distinct time."""
        self.notes.sort()
        return build_rows(self.notes, self.key_count())

    def validate(self):
        """
        Check the chart for problems that make it unusable.

        :raises EmptyChart: if the chart has no notes or no timing changes.
        :raises InvalidTempo: if a tempo change is not positive.
        :raises LaneOutOfRange: if a note lies outside ``[1, key_count]``.
        """
        if len(self.notes) == 0:
            raise EmptyChart("chart has no notes")
        if len(self.timing) == 0:
            raise EmptyChart("chart has no timing changes")
        for tc in self.timing.tempo_changes():
            if tc.value <= 0:
                raise InvalidTempo(f"bpm must be positive (got {tc.value} at {tc.time}ms)")
        key_count = self.key_count()
        for note in self.notes:
            if not 1 <= note.lane <= key_count:
                raise LaneOutOfRange(note.lane, key_count)
        logger.debug(f"validated chart: {len(self.notes)} notes, {len(self.timing)} timing changes, {key_count}K")
