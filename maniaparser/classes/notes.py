"""
Classes that represent notes and the objects placed on lanes.
"""
from collections.abc import Iterable
from dataclasses import dataclass, field

from .enums import KeyType
from .sound import KeySound
from .timeline import Timeline

__all__ = [
    "Key",
    "NoteEvent",
    "NoteSequence",
]


@dataclass(frozen=True)
class Key:
    """
    An immutable class that represents what a lane holds at one point in time.

    ``end_time`` is only meaningful for long note starts, and is `None` until the start is paired with an end.
    """

    key_type: KeyType
    end_time: int | None = None

    def __post_init__(self):
        if self.end_time is not None and self.key_type != KeyType.LONG_START:
            raise ValueError(f"only long note starts can have an end time (got {self.key_type})")

    def __str__(self) -> str:
        if self.end_time is not None:
            return f"{self.key_type}({self.end_time})"
        return str(self.key_type)

    @classmethod
    def empty(cls) -> "Key":
        return cls(KeyType.EMPTY)

    @classmethod
    def normal(cls) -> "Key":
        return cls(KeyType.NORMAL)

    @classmethod
    def long_start(cls, end_time: int | None = None) -> "Key":
        return cls(KeyType.LONG_START, end_time)

    @classmethod
    def long_end(cls) -> "Key":
        return cls(KeyType.LONG_END)

    @classmethod
    def mine(cls) -> "Key":
        return cls(KeyType.MINE)

    @classmethod
    def fake(cls) -> "Key":
        return cls(KeyType.FAKE)

    @classmethod
    def unknown(cls) -> "Key":
        return cls(KeyType.UNKNOWN)

    @property
    def is_empty(self) -> bool:
        return self.key_type == KeyType.EMPTY

    @property
    def is_long(self) -> bool:
        """Whether this is a long note start with a resolved end time."""
        return self.key_type == KeyType.LONG_START and self.end_time is not None


@dataclass
class NoteEvent:
    """A class that represents a single object on a lane. Lanes are 1-indexed."""

    time: int
    beat: float
    lane: int
    key: Key = field(default_factory=Key.normal)
    key_sound: KeySound = field(default_factory=KeySound)

    @property
    def key_type(self) -> KeyType:
        return self.key.key_type

    @property
    def end_time(self) -> int:
        """Time at which the object is released. Equal to ``time`` for anything but a paired long note."""
        if self.key.end_time is not None:
            return self.key.end_time
        return self.time


class NoteSequence(Timeline[NoteEvent]):
    """An ordered list of note events."""

    def __init__(self, items: Iterable[NoteEvent] = ()):
        super().__init__(lambda note: note.time, ())
        for note in items:
            self.add_note(note, keep_sorted=False)

    def add_note(self, note: NoteEvent, *, keep_sorted: bool = True) -> bool:
        """
        Add a note, dropping empty keys.

        :param note: The note to add.
        :param keep_sorted: If `True`, insert at the note's ordered position. Otherwise append.
        :returns: `True` if the note was added.
        """
        if note.key.is_empty:
            return False
        if keep_sorted:
            self.add_sorted(note)
        else:
            self.add(note)
        return True

    def lanes(self) -> set[int]:
        """Return the set of lanes that hold at least one note."""
        return {note.lane for note in self}

    def of_type(self, key_type: KeyType) -> list[NoteEvent]:
        """Return the notes of one key type, in time order."""
        self.sort()
        return [note for note in self if note.key_type == key_type]
