"""
Classes that represent tempo, scroll velocity and the conversion between time and beats.
"""
import bisect
import itertools
import logging
import math

from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from .base import Validateable
from .enums import TimingChangeType
from .timeline import Timeline
from ..errors import InvalidTempo

__all__ = [
    "DEFAULT_BPM",
    "TimingChange",
    "TimingSequence",
    "TempoMap",
]

DEFAULT_BPM = 120.0
"""Tempo assumed when a chart carries no tempo information at all."""

MS_PER_MINUTE = 60000

logger = logging.getLogger(__name__)


@dataclass
class TimingChange(Validateable):
    """
    A class that represents a change of tempo or scroll velocity.

    ``value`` is the BPM for tempo changes and the multiplier for scroll velocity changes.
    """

    time: int
    beat: float
    kind: TimingChangeType
    value: float

    def __post_init__(self):
        self.validate()

    def validate(self):
        match self.kind:
            case TimingChangeType.TEMPO:
                if not math.isfinite(self.value) or self.value <= 0:
                    raise InvalidTempo(f"bpm must be positive and finite (got {self.value} at {self.time}ms)")
            case TimingChangeType.SCROLL_VELOCITY:
                if not math.isfinite(self.value):
                    raise ValueError(f"scroll velocity must be finite (got {self.value} at {self.time}ms)")

    @classmethod
    def tempo(cls, time: int, bpm: float, beat: float = 0.0) -> "TimingChange":
        """Create a tempo change."""
        return cls(time, beat, TimingChangeType.TEMPO, bpm)

    @classmethod
    def velocity(cls, time: int, multiplier: float, beat: float = 0.0) -> "TimingChange":
        """Create a scroll velocity change."""
        return cls(time, beat, TimingChangeType.SCROLL_VELOCITY, multiplier)

    @property
    def is_tempo(self) -> bool:
        return self.kind == TimingChangeType.TEMPO


class TimingSequence(Timeline[TimingChange]):
    """An ordered list of tempo and scroll velocity changes."""

    def __init__(self, items: Iterable[TimingChange] = ()):
        super().__init__(lambda tc: tc.time, items)

    def tempo_changes(self) -> Iterator[TimingChange]:
        """Iterate over tempo changes only, in time order."""
        self.sort()
        return (tc for tc in self if tc.kind == TimingChangeType.TEMPO)

    def velocity_changes(self) -> Iterator[TimingChange]:
        """Iterate over scroll velocity changes only, in time order."""
        self.sort()
        return (tc for tc in self if tc.kind == TimingChangeType.SCROLL_VELOCITY)

    @property
    def has_tempo(self) -> bool:
        return any(tc.kind == TimingChangeType.TEMPO for tc in self)

    def bpms(self) -> list[float]:
        """Return the tempo values, in time order."""
        return [tc.value for tc in self.tempo_changes()]

    def bpm_times(self) -> list[int]:
        """Return the times of the tempo changes, in time order."""
        return [tc.time for tc in self.tempo_changes()]

    def tempo_breakpoints(self) -> list[tuple[int, float]]:
        """Return ``(time, bpm)`` pairs suitable for building a :class:`TempoMap`."""
        return [(tc.time, tc.value) for tc in self.tempo_changes()]


class TempoMap:
    """
    A read-only structure that converts between wall-clock time (ms) and beat positions.

    Between two tempo breakpoints the beat advances linearly at ``bpm / 60000`` beats per millisecond. A stop freezes
    the beat for its duration: every time inside ``[start, start + duration)`` maps to the beat at the stop's start.

    :param tempo_breakpoints: ``(time, bpm)`` pairs in ascending time order.
    :param stops: ``(time, duration)`` pairs, both in milliseconds.
    :param start_offset: Time at which beat 0 sits. Defaults to the time of the first breakpoint.
    :raises InvalidTempo: if a bpm is non-positive or non-finite, if the breakpoints are out of order, or if a stop has
        a negative or non-finite duration.
    """

    def __init__(
        self,
        tempo_breakpoints: Iterable[tuple[float, float]],
        stops: Iterable[tuple[float, float]] = (),
        start_offset: float | None = None,
    ):
        breakpoints = list(tempo_breakpoints)
        for time, bpm in breakpoints:
            if not math.isfinite(bpm) or bpm <= 0:
                raise InvalidTempo(f"bpm must be positive and finite (got {bpm} at {time}ms)")
        for (time_a, _), (time_b, _) in itertools.pairwise(breakpoints):
            if time_b < time_a:
                raise InvalidTempo(f"tempo breakpoints are not in ascending order ({time_b}ms after {time_a}ms)")

        self._is_default = not breakpoints
        if self._is_default:
            logger.debug(f"no tempo breakpoints, assuming {DEFAULT_BPM} bpm from 0ms")
            breakpoints = [(0, DEFAULT_BPM)]

        stop_list = sorted(stops)
        for time, duration in stop_list:
            if not math.isfinite(duration) or duration < 0:
                raise InvalidTempo(f"stop duration must be non-negative (got {duration} at {time}ms)")

        self._times = [float(t) for t, _ in breakpoints]
        self._bpms = [float(b) for _, b in breakpoints]
        self._stops = [(float(t), float(d)) for t, d in stop_list]
        self._offset = float(self._times[0] if start_offset is None else start_offset)

        # Beats are measured against stop-free "musical" time
        self._beats: list[float] = []
        for i, time in enumerate(self._times):
            if i == 0:
                elapsed = self._musical_time(time) - self._musical_time(self._offset)
                self._beats.append(elapsed * self._bpms[0] / MS_PER_MINUTE)
            else:
                elapsed = self._musical_time(time) - self._musical_time(self._times[i - 1])
                self._beats.append(self._beats[-1] + elapsed * self._bpms[i - 1] / MS_PER_MINUTE)

        self._stop_beats = [self.beat_from_time(t) for t, _ in self._stops]

    @classmethod
    def from_beats(
        cls,
        offset: float,
        bpms: Iterable[tuple[float, float]],
        stops: Iterable[tuple[float, float]] = (),
    ) -> "TempoMap":
        """
        Build a tempo map from beat-anchored tempo changes and stops.

        :param offset: Time (ms) of beat 0.
        :param bpms: ``(beat, bpm)`` pairs. The first tempo also applies before its beat.
        :param stops: ``(beat, duration)`` pairs, duration in milliseconds.
        :returns: A :class:`TempoMap` whose breakpoints and stops are anchored in time.
        """
        tempo_list = sorted(bpms, key=lambda pair: pair[0])
        stop_list = sorted(stops, key=lambda pair: pair[0])
        for beat, bpm in tempo_list:
            if not math.isfinite(bpm) or bpm <= 0:
                raise InvalidTempo(f"bpm must be positive and finite (got {bpm} at beat {beat})")
        for beat, duration in stop_list:
            if not math.isfinite(duration) or duration < 0:
                raise InvalidTempo(f"stop duration must be non-negative (got {duration} at beat {beat})")

        # Anchors are resolved in beat order, tempo changes first on ties
        events = sorted(
            [(beat, 0, bpm) for beat, bpm in tempo_list] + [(beat, 1, duration) for beat, duration in stop_list],
            key=lambda ev: (ev[0], ev[1]),
        )
        time_breakpoints: list[tuple[float, float]] = []
        time_stops: list[tuple[float, float]] = []
        cur_beat, cur_time = 0.0, float(offset)
        cur_bpm = tempo_list[0][1] if tempo_list else DEFAULT_BPM
        for beat, is_stop, value in events:
            cur_time += (beat - cur_beat) * MS_PER_MINUTE / cur_bpm
            cur_beat = beat
            if is_stop:
                time_stops.append((cur_time, value))
                cur_time += value
            else:
                time_breakpoints.append((cur_time, value))
                cur_bpm = value

        return cls(time_breakpoints, time_stops, start_offset=offset)

    def _musical_time(self, time: float) -> float:
        frozen = 0.0
        for start, duration in self._stops:
            if time <= start:
                break
            frozen += min(time - start, duration)
        return time - frozen

    def _segment_for_time(self, time: float) -> int:
        return max(bisect.bisect_right(self._times, time) - 1, 0)

    def beat_from_time(self, time: float) -> float:
        """
        Convert a time in milliseconds to a beat position.

        Times before the first breakpoint are extrapolated with the first tempo.
        """
        i = self._segment_for_time(time)
        elapsed = self._musical_time(time) - self._musical_time(self._times[i])
        beat = self._beats[i] + elapsed * self._bpms[i] / MS_PER_MINUTE
        if self._is_default and beat < 0:
            return 0.0
        return beat

    def time_from_beat(self, beat: float) -> float:
        """
        Convert a beat position to a time in milliseconds.

        A note placed exactly on a stop's beat lands at the end of that stop.
        """
        i = max(bisect.bisect_right(self._beats, beat) - 1, 0)
        musical = self._musical_time(self._times[i]) + (beat - self._beats[i]) * MS_PER_MINUTE / self._bpms[i]
        frozen = sum(duration for (_, duration), stop_beat in zip(self._stops, self._stop_beats) if stop_beat <= beat)
        return musical + frozen

    def bpm_at(self, time: float) -> float:
        """Return the tempo in effect at a given time."""
        return self._bpms[self._segment_for_time(time)]

    @property
    def offset(self) -> float:
        """Time of beat 0, in milliseconds."""
        return self._offset

    @property
    def breakpoints(self) -> list[tuple[float, float]]:
        """The ``(time, bpm)`` breakpoints, in ascending order."""
        return list(zip(self._times, self._bpms))

    @property
    def stops(self) -> list[tuple[float, float]]:
        """The ``(time, duration)`` stops, in ascending order."""
        return list(self._stops)

    @property
    def is_default(self) -> bool:
        """Whether the map was built without any tempo breakpoints."""
        return self._is_default
