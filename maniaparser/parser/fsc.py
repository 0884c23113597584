"""
Reader and writer for fluXis ``.fsc`` charts, which are JSON documents.
"""
import json
import logging

from dataclasses import dataclass
from typing import Any, ClassVar

from .base import Parser, Writer
from ..classes.chart import (
    DEFAULT_ARTIST,
    DEFAULT_CREATOR,
    DEFAULT_KEY_COUNT,
    DEFAULT_TITLE,
    CanonicalChart,
    ChartInfo,
    ChartMetadata,
)
from ..classes.enums import ChartFormat, HitSoundType, KeyType
from ..classes.notes import Key, NoteEvent, NoteSequence
from ..classes.sound import KeySound, SoundBank
from ..classes.timing import TempoMap, TimingChange, TimingSequence
from ..errors import LaneOutOfRange, ParseError
from ..utils import parse_int, split_tags

__all__ = [
    "FscParser",
    "FscWriter",
]

TICK_TYPE = 1
DEFAULT_SIGNATURE = 4

# fmt: off
HITSOUND_NAMES = {
    HitSoundType.NORMAL : ":normal",
    HitSoundType.WHISTLE: ":whistle",
    HitSoundType.FINISH : ":finish",
    HitSoundType.CLAP   : ":clap",
}
# fmt: on
NAME_HITSOUNDS = {v: k for k, v in HITSOUND_NAMES.items()}

logger = logging.getLogger(__name__)


def _get(mapping: dict[str, Any], key: str, default: Any = None) -> Any:
    """Look a key up ignoring case, as fluXis writers disagree on capitalization."""
    if key in mapping:
        return mapping[key]
    lowered = key.lower()
    for k, v in mapping.items():
        if k.lower() == lowered:
            return v
    return default


@dataclass
class FscParser(Parser):
    """A parser for fluXis charts."""

    chart_format: ClassVar[ChartFormat] = ChartFormat.FLUXIS

    def _parse(self, raw: str) -> CanonicalChart:
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise ParseError(f"invalid fsc file: {e}") from e
        if not isinstance(data, dict):
            raise ParseError("fsc file must contain an object")

        meta = _get(data, "Metadata") or {}
        metadata = ChartMetadata(
            title=_get(meta, "title") or DEFAULT_TITLE,
            alt_title=_get(meta, "title-rm") or "",
            artist=_get(meta, "artist") or DEFAULT_ARTIST,
            alt_artist=_get(meta, "artist-rm") or "",
            creator=_get(meta, "mapper") or DEFAULT_CREATOR,
            source=_get(meta, "source") or "",
            tags=split_tags(_get(meta, "tags") or ""),
        )
        hit_objects = [ho for ho in _get(data, "HitObjects") or [] if _get(ho, "type", 0) != TICK_TYPE]
        skipped = len(_get(data, "HitObjects") or []) - len(hit_objects)
        if skipped:
            logger.warning(f"skipped {skipped} tick note(s)")
        lanes = [parse_int(_get(ho, "lane")) for ho in hit_objects]
        key_count = max(lanes, default=DEFAULT_KEY_COUNT)
        for lane in lanes:
            if lane < 1:
                raise LaneOutOfRange(lane, max(key_count, 1))

        chart_info = ChartInfo(
            song_path=_get(data, "AudioFile") or "",
            bg_path=_get(data, "BackgroundFile") or "",
            video_path=_get(data, "VideoFile") or "",
            preview_time=parse_int(_get(meta, "previewtime") or 0),
            key_count=key_count,
            difficulty_name=_get(meta, "difficulty") or "",
        )
        if _get(data, "AccuracyDifficulty") is not None:
            chart_info.overall_difficulty = float(_get(data, "AccuracyDifficulty"))
        if _get(data, "HealthDifficulty") is not None:
            chart_info.hp_drain = float(_get(data, "HealthDifficulty"))

        sound_bank = SoundBank()
        if chart_info.song_path:
            sound_bank.audio_tracks.append(chart_info.song_path)

        timing = TimingSequence()
        for tp in _get(data, "TimingPoints") or []:
            timing.add_sorted(TimingChange.tempo(parse_int(_get(tp, "time", 0)), float(_get(tp, "bpm"))))
        for sv in _get(data, "ScrollVelocities") or []:
            multiplier = float(_get(sv, "multiplier", 1.0))
            timing.add_sorted(TimingChange.velocity(parse_int(_get(sv, "time", 0)), multiplier))
        bpm_times = timing.bpm_times()
        chart_info.audio_offset = bpm_times[0] if bpm_times else 0
        tempo_map = TempoMap(timing.tempo_breakpoints(), start_offset=chart_info.audio_offset)
        for tc in timing:
            tc.beat = tempo_map.beat_from_time(tc.time)

        notes = NoteSequence()
        for hit_object in hit_objects:
            self._parse_hit_object(hit_object, tempo_map, notes, sound_bank)

        return CanonicalChart(metadata, chart_info, timing, notes, sound_bank)

    def _parse_hit_object(
        self, hit_object: dict[str, Any], tempo_map: TempoMap, notes: NoteSequence, sound_bank: SoundBank
    ) -> None:
        time = parse_int(_get(hit_object, "time", 0))
        lane = parse_int(_get(hit_object, "lane"))
        hold_time = parse_int(_get(hit_object, "holdtime", 0))
        beat = tempo_map.beat_from_time(time)

        hitsound = (_get(hit_object, "hitsound") or "").strip()
        if not hitsound or hitsound.lower() in NAME_HITSOUNDS:
            key_sound = KeySound(hitsound_type=NAME_HITSOUNDS.get(hitsound.lower(), HitSoundType.NORMAL))
        else:
            key_sound = KeySound.with_sample(sound_bank.add_sound_sample(hitsound))

        if hold_time > 0:
            end_time = time + hold_time
            notes.add_note(NoteEvent(time, beat, lane, Key.long_start(end_time), key_sound))
            notes.add_note(NoteEvent(end_time, tempo_map.beat_from_time(end_time), lane, Key.long_end()))
        else:
            notes.add_note(NoteEvent(time, beat, lane, Key.normal(), key_sound))


@dataclass
class FscWriter(Writer):
    """A writer for fluXis charts."""

    chart_format: ClassVar[ChartFormat] = ChartFormat.FLUXIS

    indent: int | None = 2

    def _write(self, chart: CanonicalChart, sound_bank: SoundBank | None) -> str:
        metadata = chart.metadata
        chart_info = chart.chart_info
        data = {
            "AudioFile": chart_info.song_path,
            "BackgroundFile": chart_info.bg_path,
            "CoverFile": "",
            "VideoFile": chart_info.video_path,
            "EffectFile": "",
            "StoryboardFile": "",
            "Metadata": {
                "title": metadata.title,
                "title-rm": metadata.alt_title,
                "artist": metadata.artist,
                "artist-rm": metadata.alt_artist,
                "mapper": metadata.creator,
                "difficulty": chart_info.difficulty_name,
                "source": metadata.source,
                "tags": ",".join(metadata.tags),
                "previewtime": chart_info.preview_time,
            },
            "HitObjects": [],
            "TimingPoints": [
                {"time": tc.time, "bpm": tc.value, "signature": DEFAULT_SIGNATURE}
                for tc in chart.timing.tempo_changes()
            ],
            "ScrollVelocities": [{"time": tc.time, "multiplier": tc.value} for tc in chart.timing.velocity_changes()],
            "HitSoundFades": [],
            "AccuracyDifficulty": chart_info.overall_difficulty,
            "HealthDifficulty": chart_info.hp_drain,
        }
        for note in chart.notes:
            hit_object = self._format_note(note, sound_bank)
            if hit_object is not None:
                data["HitObjects"].append(hit_object)
        return json.dumps(data, indent=self.indent, ensure_ascii=False) + "\n"

    @staticmethod
    def _format_note(note: NoteEvent, sound_bank: SoundBank | None) -> dict[str, Any] | None:
        if note.key_type not in (KeyType.NORMAL, KeyType.LONG_START):
            return None
        hit_object: dict[str, Any] = {"time": note.time, "lane": note.lane}
        if note.key.end_time is not None:
            hit_object["holdtime"] = note.key.end_time - note.time
        key_sound = note.key_sound
        hitsound = HITSOUND_NAMES[key_sound.hitsound_type]
        if key_sound.has_custom and sound_bank is not None:
            hitsound = sound_bank.get_sound_sample(key_sound.sample) or hitsound
        hit_object["hitsound"] = hitsound
        return hit_object
