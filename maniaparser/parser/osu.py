"""
Reader and writer for osu!mania ``.osu`` beatmaps.
"""
import logging
import re

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
from ..classes.enums import ChartFormat, HitSoundType, KeyType, TimingChangeType
from ..classes.notes import Key, NoteEvent, NoteSequence
from ..classes.sound import KeySound, SoundBank, SoundEffect
from ..classes.timing import TempoMap, TimingChange, TimingSequence
from ..errors import InvalidTempo, ParseError
from ..utils import clamp, format_number, parse_int, split_tags

__all__ = [
    "OsuParser",
    "OsuWriter",
]

FILE_HEADER = "osu file format v14"
MANIA_MODE = 3
PLAYFIELD_WIDTH = 512
HOLD_Y = 192
MAX_KEY_COUNT = 18

# fmt: off
HIT_CIRCLE  = 0b00000001
MANIA_HOLD  = 0b10000000
# fmt: on

HITSOUND_PRIORITY = [HitSoundType.CLAP, HitSoundType.FINISH, HitSoundType.WHISTLE]
"""Only one hitsound survives conversion; the first bit set in this order wins."""

SECTION_REGEX = re.compile(r"^\[(\w+)\]$")
KEY_VALUE_SECTIONS = {"General", "Editor", "Metadata", "Difficulty"}

logger = logging.getLogger(__name__)


def _unquote(s: str) -> str:
    return s.strip().strip('"')


def _split_sections(raw: str) -> tuple[dict[str, dict[str, str]], dict[str, list[str]]]:
    key_values: dict[str, dict[str, str]] = {name: {} for name in KEY_VALUE_SECTIONS}
    lists: dict[str, list[str]] = {"Events": [], "TimingPoints": [], "HitObjects": []}
    section = None
    for line_no, line in enumerate(raw.splitlines()):
        line = line.strip()
        if not line or line.startswith("//"):
            continue
        if m := SECTION_REGEX.match(line):
            section = m.group(1)
            continue
        if section in KEY_VALUE_SECTIONS:
            if ":" not in line:
                logger.warning(f'unrecognized line at line {line_no + 1}: "{line}"')
                continue
            key, value = line.split(":", 1)
            key_values[section][key.strip()] = value.strip()
        elif section in lists:
            lists[section].append(line)
        elif section is None and not line.startswith("osu file format"):
            logger.warning(f'unrecognized line at line {line_no + 1}: "{line}"')
    return key_values, lists


def _parse_key_sound(hit_sound: int, hit_sample: str, sound_bank: SoundBank) -> KeySound:
    hitsound_type = HitSoundType.NORMAL
    for candidate in HITSOUND_PRIORITY:
        if hit_sound & candidate.value:
            hitsound_type = candidate
            break

    fields = hit_sample.split(":") if hit_sample else []
    volume = parse_int(fields[3]) if len(fields) > 3 and fields[3] else 0
    volume = clamp(volume, 0, 100) or 100
    filename = fields[4].strip() if len(fields) > 4 else ""
    if filename:
        return KeySound(volume, hitsound_type, sound_bank.add_sound_sample(filename))
    return KeySound(volume, hitsound_type)


@dataclass
class OsuParser(Parser):
    """A parser for osu! beatmaps. Only the mania mode is accepted."""

    chart_format: ClassVar[ChartFormat] = ChartFormat.OSU

    def _parse(self, raw: str) -> CanonicalChart:
        if not raw.strip():
            raise ParseError("empty chart data")
        key_values, lists = _split_sections(raw)
        general = key_values["General"]
        meta = key_values["Metadata"]
        difficulty = key_values["Difficulty"]

        mode = parse_int(general.get("Mode", 0))
        if mode != MANIA_MODE:
            raise ParseError(f"only osu!mania beatmaps are supported (got mode {mode})")
        key_count = parse_int(difficulty.get("CircleSize", 0))
        if not 1 <= key_count <= MAX_KEY_COUNT:
            raise ParseError(f"invalid key count (got {difficulty.get('CircleSize')})")

        metadata = ChartMetadata(
            title=meta.get("Title") or DEFAULT_TITLE,
            alt_title=meta.get("TitleUnicode", ""),
            artist=meta.get("Artist") or DEFAULT_ARTIST,
            alt_artist=meta.get("ArtistUnicode", ""),
            creator=meta.get("Creator") or DEFAULT_CREATOR,
            source=meta.get("Source", ""),
            tags=split_tags(meta.get("Tags", ""), " "),
        )
        chart_info = ChartInfo(
            song_path=general.get("AudioFilename", ""),
            preview_time=max(parse_int(general.get("PreviewTime", 0)), 0),
            key_count=key_count,
            difficulty_name=meta.get("Version", ""),
        )
        if "OverallDifficulty" in difficulty:
            chart_info.overall_difficulty = float(difficulty["OverallDifficulty"])
        if "HPDrainRate" in difficulty:
            chart_info.hp_drain = float(difficulty["HPDrainRate"])

        sound_bank = SoundBank()
        if chart_info.song_path:
            sound_bank.audio_tracks.append(chart_info.song_path)
        self._parse_events(lists["Events"], chart_info, sound_bank)

        timing = self._parse_timing_points(lists["TimingPoints"])
        bpm_times = timing.bpm_times()
        chart_info.audio_offset = bpm_times[0] if bpm_times else 0
        tempo_map = TempoMap(timing.tempo_breakpoints(), start_offset=chart_info.audio_offset)
        for tc in timing:
            tc.beat = tempo_map.beat_from_time(tc.time)

        notes = NoteSequence()
        for line in lists["HitObjects"]:
            self._parse_hit_object(line, key_count, tempo_map, notes, sound_bank)

        return CanonicalChart(metadata, chart_info, timing, notes, sound_bank)

    def _parse_events(self, lines: list[str], chart_info: ChartInfo, sound_bank: SoundBank) -> None:
        for line in lines:
            parts = [p.strip() for p in line.split(",")]
            match parts[0]:
                case "0" if len(parts) >= 3:
                    chart_info.bg_path = _unquote(parts[2])
                case "1" | "Video" if len(parts) >= 3:
                    chart_info.video_path = _unquote(parts[2])
                case "5" | "Sample" if len(parts) >= 4:
                    index = sound_bank.add_sound_sample(_unquote(parts[3]))
                    volume = clamp(parse_int(parts[4]), 0, 100) if len(parts) > 4 else 100
                    sound_bank.add_sound_effect(SoundEffect(parse_int(parts[1]), index, volume))
                case _:
                    logger.debug(f'ignoring event "{line}"')

    def _parse_timing_points(self, lines: list[str]) -> TimingSequence:
        timing = TimingSequence()
        for line in lines:
            parts = line.split(",")
            if len(parts) < 2:
                raise ParseError(f'timing point has too few fields: "{line}"')
            time = parse_int(parts[0])
            beat_length = float(parts[1])
            uninherited = parts[6].strip() != "0" if len(parts) > 6 else True
            if uninherited:
                if beat_length <= 0:
                    raise InvalidTempo(f"invalid beat length at {time}ms (got {beat_length})")
                timing.add_sorted(TimingChange.tempo(time, 60000 / beat_length))
            else:
                multiplier = -100 / beat_length if beat_length < 0 else 1.0
                timing.add_sorted(TimingChange.velocity(time, multiplier))
        return timing

    def _parse_hit_object(
        self, line: str, key_count: int, tempo_map: TempoMap, notes: NoteSequence, sound_bank: SoundBank
    ) -> None:
        parts = line.split(",")
        if len(parts) < 5:
            raise ParseError(f'hit object has too few fields: "{line}"')
        x = parse_int(parts[0])
        time = parse_int(parts[2])
        object_type = int(parts[3])
        hit_sound = int(parts[4])
        lane = clamp(x * key_count // PLAYFIELD_WIDTH, 0, key_count - 1) + 1
        beat = tempo_map.beat_from_time(time)

        if object_type & MANIA_HOLD:
            if len(parts) < 6:
                raise ParseError(f'hold note has no end time: "{line}"')
            end_str, _, hit_sample = parts[5].partition(":")
            end_time = parse_int(end_str)
            key_sound = _parse_key_sound(hit_sound, hit_sample, sound_bank)
            if end_time <= time:
                logger.warning(f"hold at {time}ms ends at {end_time}ms, reading it as a normal note")
                notes.add_note(NoteEvent(time, beat, lane, Key.normal(), key_sound))
                return
            notes.add_note(NoteEvent(time, beat, lane, Key.long_start(end_time), key_sound))
            notes.add_note(NoteEvent(end_time, tempo_map.beat_from_time(end_time), lane, Key.long_end()))
        elif object_type & HIT_CIRCLE:
            hit_sample = parts[5] if len(parts) > 5 else ""
            key_sound = _parse_key_sound(hit_sound, hit_sample, sound_bank)
            notes.add_note(NoteEvent(time, beat, lane, Key.normal(), key_sound))
        else:
            logger.warning(f"skipping non-mania hit object at {time}ms (type {object_type})")


@dataclass
class OsuWriter(Writer):
    """A writer for osu!mania beatmaps."""

    chart_format: ClassVar[ChartFormat] = ChartFormat.OSU
    supported_key_counts: ClassVar[frozenset[int] | None] = frozenset(range(1, MAX_KEY_COUNT + 1))

    approach_rate: float = 5.0
    slider_multiplier: float = 1.4
    sample_set: str = "Soft"

    def _write(self, chart: CanonicalChart, sound_bank: SoundBank | None) -> str:
        key_count = chart.key_count()
        metadata = chart.metadata
        chart_info = chart.chart_info

        sections = [
            FILE_HEADER,
            "",
            "[General]",
            f"AudioFilename: {chart_info.song_path}",
            "AudioLeadIn: 0",
            f"PreviewTime: {chart_info.preview_time}",
            "Countdown: 0",
            f"SampleSet: {self.sample_set}",
            "StackLeniency: 0.7",
            f"Mode: {MANIA_MODE}",
            "LetterboxInBreaks: 0",
            "SpecialStyle: 0",
            "WidescreenStoryboard: 1",
            "",
            "[Editor]",
            "DistanceSpacing: 1",
            "BeatDivisor: 4",
            "GridSize: 4",
            "TimelineZoom: 1",
            "",
            "[Metadata]",
            f"Title:{metadata.title.replace(chr(10), '')}",
            f"TitleUnicode:{metadata.alt_title or metadata.title}",
            f"Artist:{metadata.artist}",
            f"ArtistUnicode:{metadata.alt_artist or metadata.artist}",
            f"Creator:{metadata.creator}",
            f"Version:{chart_info.difficulty_name}",
            f"Source:{metadata.source}",
            f"Tags:{' '.join(metadata.tags)}",
            "BeatmapID:0",
            "BeatmapSetID:-1",
            "",
            "[Difficulty]",
            f"HPDrainRate:{format_number(chart_info.hp_drain, 1)}",
            f"CircleSize:{key_count}",
            f"OverallDifficulty:{format_number(chart_info.overall_difficulty, 1)}",
            f"ApproachRate:{format_number(self.approach_rate, 1)}",
            f"SliderMultiplier:{format_number(self.slider_multiplier, 2)}",
            "SliderTickRate:1",
            "",
            "[Events]",
            "//Background and Video events",
        ]
        if chart_info.bg_path.strip():
            sections.append(f'0,0,"{chart_info.bg_path}",0,0')
        if chart_info.video_path.strip():
            sections.append(f'Video,0,"{chart_info.video_path}"')
        sections.append("//Break Periods")
        sections.append("//Storyboard Sound Samples")
        if sound_bank is not None:
            for effect in sound_bank.sound_effects:
                path = sound_bank.get_sound_sample(effect.sample) or ""
                sections.append(f'Sample,{effect.time},0,"{path}",{effect.volume}')

        sections += ["", "[TimingPoints]"]
        sections += [self._format_timing_change(tc) for tc in chart.timing]
        sections += ["", "", "[HitObjects]"]
        for note in chart.notes:
            line = self._format_note(note, key_count, sound_bank)
            if line is not None:
                sections.append(line)
        return "\n".join(sections) + "\n"

    @staticmethod
    def _format_timing_change(tc: TimingChange) -> str:
        match tc.kind:
            case TimingChangeType.TEMPO:
                beat_length = 60000 / tc.value
                uninherited = 1
            case TimingChangeType.SCROLL_VELOCITY:
                beat_length = -100 / abs(tc.value) if tc.value != 0 else -10000.0
                uninherited = 0
        return f"{tc.time},{format_number(beat_length, 12)},4,1,0,100,{uninherited},0"

    @staticmethod
    def _format_note(note: NoteEvent, key_count: int, sound_bank: SoundBank | None) -> str | None:
        x = int((note.lane - 0.5) * PLAYFIELD_WIDTH / key_count)
        key_sound = note.key_sound
        filename = ""
        if key_sound.has_custom and sound_bank is not None:
            filename = sound_bank.get_sound_sample(key_sound.sample) or ""
        volume = 0 if key_sound.volume >= 100 else key_sound.volume
        hit_sample = f"0:0:0:{volume}:{filename}"
        hit_sound = key_sound.hitsound_type.value

        match note.key_type:
            case KeyType.NORMAL:
                return f"{x},{HOLD_Y},{note.time},{HIT_CIRCLE},{hit_sound},{hit_sample}"
            case KeyType.LONG_START:
                if note.key.end_time is None:
                    logger.warning(f"writing unterminated long note at {note.time}ms as a normal note")
                    return f"{x},{HOLD_Y},{note.time},{HIT_CIRCLE},{hit_sound},{hit_sample}"
                return f"{x},{HOLD_Y},{note.time},{MANIA_HOLD},{hit_sound},{note.key.end_time}:{hit_sample}"
        return None
