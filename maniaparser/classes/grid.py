"""
Conversion between lane-indexed note rows and flat lists of note events.

Row-based formats store a chart as a grid: one row per distinct time, one cell per lane. Long notes are split into a
start cell and an end cell, and flattening pairs them back together.
"""
import itertools
import logging

from collections import deque
from collections.abc import Iterable
from dataclasses import dataclass, field

from .enums import KeyType
from .notes import Key, NoteEvent
from ..errors import LaneOutOfRange, MalformedGrid

__all__ = [
    "NoteRow",
    "flatten_rows",
    "build_rows",
]

logger = logging.getLogger(__name__)


@dataclass
class NoteRow:
    """A class that represents every lane at one point in time."""

    time: int
    beat: float
    keys: list[Key] = field(default_factory=list)

    @classmethod
    def empty(cls, time: int, beat: float, key_count: int) -> "NoteRow":
        return cls(time, beat, [Key.empty() for _ in range(key_count)])

    def is_empty(self) -> bool:
        return all(key.is_empty for key in self.keys)


def flatten_rows(rows: Iterable[NoteRow], key_count: int) -> list[NoteEvent]:
    """
    Turn note rows into note events, pairing long note starts with their ends.

    A long note end is paired with the most recent unpaired start on the same lane that is not later than it. Ends
    without a start are kept as-is. Starts left unpaired keep no end time. Both cases are logged as warnings.

    :param rows: Rows in ascending time order.
    :param key_count: Expected width of every row.
    :returns: The non-empty cells as note events, in row order then lane order.
    :raises MalformedGrid: if a row's width differs from ``key_count``.
    """
    notes: list[NoteEvent] = []
    pending: list[deque[int]] = [deque() for _ in range(key_count)]

    for row in rows:
        if len(row.keys) != key_count:
            raise MalformedGrid(f"row at {row.time}ms has {len(row.keys)} lanes, expected {key_count}")
        for lane_index, key in enumerate(row.keys):
            if key.is_empty:
                continue
            lane = lane_index + 1
            match key.key_type:
                case KeyType.LONG_START:
                    pending[lane_index].append(len(notes))
                case KeyType.LONG_END:
                    queue = pending[lane_index]
                    match_pos = None
                    for pos, note_index in enumerate(queue):
                        if notes[note_index].time <= row.time:
                            match_pos = pos
                    if match_pos is None:
                        logger.warning(f"unmatched LongEnd in lane {lane} at {row.time}ms")
                    else:
                        start_index = queue[match_pos]
                        del queue[match_pos]
                        notes[start_index].key = Key.long_start(row.time)
            notes.append(NoteEvent(row.time, row.beat, lane, key))

    for lane_index, queue in enumerate(pending):
        if queue:
            logger.warning(f"{len(queue)} unmatched LongStart(s) in lane {lane_index + 1}")

    return notes


def _should_replace(current: Key, incoming: Key) -> bool:
    match incoming.key_type:
        case KeyType.LONG_START:
            return True
        case KeyType.NORMAL | KeyType.LONG_END:
            return current.key_type != KeyType.LONG_START
        case KeyType.MINE | KeyType.FAKE | KeyType.UNKNOWN:
            return current.is_empty
    return False


def build_rows(notes: Iterable[NoteEvent], key_count: int) -> list[NoteRow]:
    """
    Group note events sharing a time into rows.

    When several notes land on the same cell, a long note start always wins, normal notes and long note ends never
    replace a long note start, and mines, fakes and unknown objects only fill an empty cell.

    :param notes: Note events in any order.
    :param key_count: Width of every row.
    :returns: One row per distinct note time, in ascending order.
    :raises LaneOutOfRange: if a note's lane is outside ``[1, key_count]``.
    """
    rows: list[NoteRow] = []
    ordered = sorted(notes, key=lambda note: note.time)
    for time, group in itertools.groupby(ordered, key=lambda note: note.time):
        group = list(group)
        row = NoteRow.empty(time, group[0].beat, key_count)
        for note in group:
            if not 1 <= note.lane <= key_count:
                raise LaneOutOfRange(note.lane, key_count)
            cell = note.lane - 1
            if _should_replace(row.keys[cell], note.key):
                row.keys[cell] = note.key
        rows.append(row)
    return rows
