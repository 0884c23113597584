"""
Reader and writer for StepMania ``.sm`` charts.
"""
import logging
import math

from dataclasses import dataclass
from typing import ClassVar

from .base import Parser, Writer
from ..classes.chart import (
    DEFAULT_ARTIST,
    DEFAULT_CREATOR,
    DEFAULT_TITLE,
    CanonicalChart,
    ChartInfo,
    ChartMetadata,
)
from ..classes.enums import ChartFormat, KeyType
from ..classes.grid import NoteRow, build_rows, flatten_rows
from ..classes.notes import Key, NoteEvent, NoteSequence
from ..classes.sound import SoundBank
from ..classes.timing import DEFAULT_BPM, TempoMap, TimingChange, TimingSequence
from ..errors import ParseError
from ..utils import (
    format_number,
    nonempty_lines,
    strip_comments,
    to_millis,
    to_seconds,
)

__all__ = [
    "SMParser",
    "SMWriter",
]

BEATS_PER_MEASURE = 4
TICKS_PER_BEAT = 48
TICKS_PER_MEASURE = BEATS_PER_MEASURE * TICKS_PER_BEAT
"""Finest subdivision of a measure the writer can place a note on."""

MEASURE_SNAPS = [4, 8, 12, 16, 24, 32, 48, 64, 96, 192]
"""Row counts tried, smallest first, when laying out a measure."""

# fmt: off
STEPS_TYPE_KEY_COUNT = {
    "dance-single": 4,
    "pump-single" : 5,
    "dance-solo"  : 6,
    "dance-double": 8,
    "pump-double" : 10,
}
CHAR_KEY_MAP = {
    "0": Key.empty(),
    "1": Key.normal(),
    "2": Key.long_start(),
    "3": Key.long_end(),
    "4": Key.long_start(),
    "M": Key.mine(),
    "F": Key.fake(),
}
KEY_CHAR_MAP = {
    KeyType.EMPTY     : "0",
    KeyType.NORMAL    : "1",
    KeyType.LONG_START: "2",
    KeyType.LONG_END  : "3",
    KeyType.MINE      : "M",
    KeyType.FAKE      : "F",
    KeyType.UNKNOWN   : "0",
}
# fmt: on
KEY_COUNT_STEPS_TYPE = {v: k for k, v in STEPS_TYPE_KEY_COUNT.items()}
SM_DIFFICULTIES = ["Beginner", "Easy", "Medium", "Hard", "Challenge", "Edit"]

logger = logging.getLogger(__name__)


def _parse_beat_pairs(raw: str, tag: str) -> list[tuple[float, float]]:
    pairs = []
    for entry in raw.split(","):
        entry = entry.strip()
        if not entry:
            continue
        if "=" not in entry:
            raise ParseError(f'malformed {tag} entry "{entry}"')
        beat_str, value_str = entry.split("=", 1)
        try:
            pairs.append((float(beat_str), float(value_str)))
        except ValueError as e:
            raise ParseError(f'malformed {tag} entry "{entry}"') from e
    return pairs


def _stops_from_velocities(timing: TimingSequence) -> list[tuple[int, int]]:
    """Recover stops from scroll velocity changes: a zero velocity lasts until the next velocity change."""
    stops = []
    velocities = list(timing.velocity_changes())
    for cur, nxt in zip(velocities, velocities[1:]):
        if cur.value == 0 and nxt.time > cur.time:
            stops.append((cur.time, nxt.time - cur.time))
    return stops


@dataclass
class _NotesSection:
    steps_type: str
    description: str
    difficulty: str
    meter: str
    note_data: str


@dataclass
class SMParser(Parser):
    """
    A parser for StepMania charts.

    :param difficulty: Difficulty (e.g. ``"Hard"``) or edit description of the chart to read. If `None`, the first
        chart in the file is read.
    """

    chart_format: ClassVar[ChartFormat] = ChartFormat.STEPMANIA

    difficulty: str | None = None

    def _parse(self, raw: str) -> CanonicalChart:
        uncommented = strip_comments(raw)
        if not uncommented.strip():
            raise ParseError("empty chart data")

        metadata = ChartMetadata()
        chart_info = ChartInfo()
        offset = 0.0
        bpms: list[tuple[float, float]] = []
        stops: list[tuple[float, float]] = []
        sections: list[_NotesSection] = []

        for section in uncommented.split(";"):
            if ":" not in section:
                continue
            header, content = section.split(":", 1)
            header = header.strip().lstrip("#").upper()
            content = content.strip()
            match header:
                case "TITLE":
                    metadata.title = content or DEFAULT_TITLE
                case "SUBTITLE":
                    metadata.source = content
                case "ARTIST":
                    metadata.artist = content or DEFAULT_ARTIST
                case "TITLETRANSLIT":
                    metadata.alt_title = content
                case "ARTISTTRANSLIT":
                    metadata.alt_artist = content
                case "GENRE":
                    metadata.genre = content
                case "CREDIT":
                    metadata.creator = content or DEFAULT_CREATOR
                case "BACKGROUND":
                    chart_info.bg_path = content
                case "MUSIC":
                    chart_info.song_path = content
                case "OFFSET":
                    offset = -to_millis(float(content or 0))
                case "SAMPLESTART":
                    chart_info.preview_time = round(to_millis(float(content or 0)))
                case "BPMS":
                    bpms = _parse_beat_pairs(content, "BPMS")
                case "STOPS" | "FREEZES":
                    stops = []
                    for beat, seconds in _parse_beat_pairs(content, "STOPS"):
                        if seconds < 0:
                            logger.warning(f"skipping negative stop at beat {beat} ({seconds}s)")
                        elif seconds > 0:
                            stops.append((beat, to_millis(seconds)))
                case "NOTES":
                    parts = content.split(":", 5)
                    if len(parts) != 6:
                        raise ParseError(f"NOTES section has {len(parts)} fields, expected 6")
                    steps_type, description, difficulty, meter, _, note_data = (p.strip() for p in parts)
                    sections.append(_NotesSection(steps_type, description, difficulty, meter, note_data))
                case _:
                    logger.debug(f"ignoring tag #{header}")

        if not bpms:
            logger.warning(f"no BPMS found, assuming {format_number(DEFAULT_BPM)} bpm")
            bpms = [(0.0, DEFAULT_BPM)]
        tempo_map = TempoMap.from_beats(offset, bpms, stops)
        chart_info.audio_offset = round(offset)

        timing = TimingSequence()
        for time, bpm in tempo_map.breakpoints:
            timing.add_sorted(TimingChange.tempo(round(time), bpm, tempo_map.beat_from_time(time)))
        for time, duration in tempo_map.stops:
            beat = tempo_map.beat_from_time(time)
            timing.add_sorted(TimingChange.velocity(round(time), 0.0, beat))
            timing.add_sorted(TimingChange.velocity(round(time + duration), 1.0, beat))

        notes = NoteSequence()
        if sections:
            section = self._select_section(sections)
            chart_info.difficulty_name = section.difficulty
            if section.difficulty.lower() == "edit" and section.description:
                chart_info.difficulty_name = section.description
            rows = self._parse_note_data(section, tempo_map)
            key_count = self._key_count(section, rows)
            chart_info.key_count = key_count
            for note in flatten_rows(self._to_rows(rows, key_count), key_count):
                notes.add_note(note, keep_sorted=False)
        else:
            logger.warning("no NOTES section found")

        return CanonicalChart(metadata, chart_info, timing, notes)

    def _select_section(self, sections: list[_NotesSection]) -> _NotesSection:
        if self.difficulty is None:
            return sections[0]
        wanted = self.difficulty.lower()
        for section in sections:
            if wanted in (section.difficulty.lower(), section.description.lower()):
                return section
        raise ParseError(f'no chart with difficulty "{self.difficulty}"')

    def _parse_note_data(self, section: _NotesSection, tempo_map: TempoMap) -> list[tuple[int, float, str]]:
        rows = []
        for m_no, measure in enumerate(section.note_data.split(",")):
            lines = list(nonempty_lines(measure.splitlines()))
            for i, line in enumerate(lines):
                beat = m_no * BEATS_PER_MEASURE + i * BEATS_PER_MEASURE / len(lines)
                rows.append((round(tempo_map.time_from_beat(beat)), beat, line))
        return rows

    def _key_count(self, section: _NotesSection, rows: list[tuple[int, float, str]]) -> int:
        if section.steps_type in STEPS_TYPE_KEY_COUNT:
            return STEPS_TYPE_KEY_COUNT[section.steps_type]
        key_count = len(rows[0][2]) if rows else 4
        logger.warning(f'unknown steps type "{section.steps_type}", assuming {key_count}K from note data')
        return key_count

    def _to_rows(self, rows: list[tuple[int, float, str]], key_count: int) -> list[NoteRow]:
        note_rows = []
        for time, beat, line in rows:
            keys = []
            for c in line:
                key = CHAR_KEY_MAP.get(c.upper())
                if key is None:
                    logger.debug(f'unknown note character "{c}" at beat {beat}')
                    key = Key.unknown()
                keys.append(key)
            note_rows.append(NoteRow(time, beat, keys))
        return note_rows


@dataclass
class SMWriter(Writer):
    """A writer for StepMania charts."""

    chart_format: ClassVar[ChartFormat] = ChartFormat.STEPMANIA
    supported_key_counts: ClassVar[frozenset[int] | None] = frozenset(STEPS_TYPE_KEY_COUNT.values())

    meter: int | None = None
    """Numeric difficulty written to the chart. Derived from the overall difficulty if `None`."""

    def _write(self, chart: CanonicalChart, sound_bank: SoundBank | None) -> str:
        key_count = chart.key_count()
        stops = _stops_from_velocities(chart.timing)
        tempo_map = TempoMap(chart.timing.tempo_breakpoints(), stops, start_offset=chart.chart_info.audio_offset)

        ticks = [(self._to_tick(tempo_map.beat_from_time(note.time)), note) for note in chart.notes]
        ticks.extend(self._missing_long_ends(chart, tempo_map))
        ticks = self._separate_long_ends(ticks)

        # Shift by whole measures so that no note has a negative beat
        min_tick = min((tick for tick, _ in ticks), default=0)
        shift_measures = math.ceil(-min_tick / TICKS_PER_MEASURE) if min_tick < 0 else 0
        shift_beats = shift_measures * BEATS_PER_MEASURE
        if shift_measures:
            logger.info(f"shifting chart by {shift_measures} measure(s) to avoid negative beats")
            origin_time = tempo_map.time_from_beat(-shift_beats)
        else:
            origin_time = tempo_map.offset

        shifted = [
            NoteEvent(tick + shift_measures * TICKS_PER_MEASURE, 0.0, note.lane, note.key) for tick, note in ticks
        ]
        rows = build_rows(shifted, key_count)

        lines = [
            f"#TITLE:{chart.metadata.title};",
            f"#SUBTITLE:{chart.metadata.source};",
            f"#ARTIST:{chart.metadata.artist};",
            f"#TITLETRANSLIT:{chart.metadata.alt_title};",
            f"#ARTISTTRANSLIT:{chart.metadata.alt_artist};",
            f"#GENRE:{chart.metadata.genre};",
            f"#CREDIT:{chart.metadata.creator};",
            f"#BACKGROUND:{chart.chart_info.bg_path};",
            f"#MUSIC:{chart.chart_info.song_path};",
            f"#OFFSET:{format_number(-to_seconds(origin_time), 6)};",
            f"#SAMPLESTART:{format_number(to_seconds(chart.chart_info.preview_time), 6)};",
            "#SELECTABLE:YES;",
            f"#BPMS:{self._format_bpms(tempo_map, shift_beats)};",
            f"#STOPS:{self._format_stops(tempo_map, shift_beats)};",
            "",
        ]

        difficulty, description = self._difficulty(chart)
        steps_type = KEY_COUNT_STEPS_TYPE[key_count]
        meter = self.meter if self.meter is not None else max(1, round(chart.chart_info.overall_difficulty))
        lines += [
            f"//---------------{steps_type} - {description}----------------",
            "#NOTES:",
            f"     {steps_type}:",
            f"     {description}:",
            f"     {difficulty}:",
            f"     {meter}:",
            "     0,0,0,0,0:",
        ]
        lines += self._format_measures(rows, key_count)
        lines.append(";")
        return "\n".join(lines) + "\n"

    @staticmethod
    def _to_tick(beat: float) -> int:
        return round(beat * TICKS_PER_BEAT)

    def _missing_long_ends(self, chart: CanonicalChart, tempo_map: TempoMap) -> list[tuple[int, NoteEvent]]:
        existing = {(note.lane, note.time) for note in chart.notes if note.key_type == KeyType.LONG_END}
        synthesized = []
        for note in chart.notes:
            if note.key.is_long and (note.lane, note.key.end_time) not in existing:
                beat = tempo_map.beat_from_time(note.key.end_time)
                end = NoteEvent(note.key.end_time, beat, note.lane, Key.long_end())
                synthesized.append((self._to_tick(beat), end))
        return synthesized

    @staticmethod
    def _separate_long_ends(ticks: list[tuple[int, NoteEvent]]) -> list[tuple[int, NoteEvent]]:
        """Move long note ends that round onto their start's tick one tick later."""
        start_ticks = {(note.lane, note.key.end_time): tick for tick, note in ticks if note.key.is_long}
        separated = []
        for tick, note in ticks:
            start_tick = start_ticks.get((note.lane, note.time))
            if note.key_type == KeyType.LONG_END and start_tick is not None and tick <= start_tick:
                logger.debug(f"moving long note end at {note.time}ms to tick {start_tick + 1}")
                tick = start_tick + 1
            separated.append((tick, note))
        return separated

    @staticmethod
    def _format_bpms(tempo_map: TempoMap, shift_beats: int) -> str:
        entries = []
        for i, (time, bpm) in enumerate(tempo_map.breakpoints):
            beat = 0.0 if i == 0 else tempo_map.beat_from_time(time) + shift_beats
            entries.append(f"{format_number(beat)}={format_number(bpm)}")
        return ",".join(entries)

    @staticmethod
    def _format_stops(tempo_map: TempoMap, shift_beats: int) -> str:
        entries = []
        for time, duration in tempo_map.stops:
            beat = tempo_map.beat_from_time(time) + shift_beats
            entries.append(f"{format_number(beat)}={format_number(to_seconds(duration), 6)}")
        return ",".join(entries)

    @staticmethod
    def _difficulty(chart: CanonicalChart) -> tuple[str, str]:
        name = chart.chart_info.difficulty_name
        for difficulty in SM_DIFFICULTIES:
            if name.lower() == difficulty.lower():
                return difficulty, chart.metadata.creator
        return "Edit", name

    @staticmethod
    def _format_measures(rows: list[NoteRow], key_count: int) -> list[str]:
        last_tick = rows[-1].time if rows else 0
        measure_count = last_tick // TICKS_PER_MEASURE + 1
        measures: list[dict[int, NoteRow]] = [{} for _ in range(measure_count)]
        for row in rows:
            measures[row.time // TICKS_PER_MEASURE][row.time % TICKS_PER_MEASURE] = row

        lines = []
        for m_no, measure in enumerate(measures):
            snap = next(s for s in MEASURE_SNAPS if all(pos % (TICKS_PER_MEASURE // s) == 0 for pos in measure))
            step = TICKS_PER_MEASURE // snap
            if m_no > 0:
                lines.append(",")
            for pos in range(0, TICKS_PER_MEASURE, step):
                row = measure.get(pos)
                if row is None:
                    lines.append("0" * key_count)
                else:
                    lines.append("".join(KEY_CHAR_MAP[key.key_type] for key in row.keys))
        return lines
