"""
Reader and writer for Quaver ``.qua`` charts, which are YAML documents.
"""
import logging

from dataclasses import dataclass
from typing import Any, ClassVar

import yaml

from .base import Parser, Writer
from ..classes.chart import (
    DEFAULT_ARTIST,
    DEFAULT_CREATOR,
    DEFAULT_TITLE,
    CanonicalChart,
    ChartInfo,
    ChartMetadata,
)
from ..classes.enums import ChartFormat, HitSoundType, KeyType
from ..classes.notes import Key, NoteEvent, NoteSequence
from ..classes.sound import KeySound, SoundBank, SoundEffect
from ..classes.timing import TempoMap, TimingChange, TimingSequence
from ..errors import LaneOutOfRange, ParseError, UnsupportedKeyCount
from ..utils import clamp, parse_int, split_tags

__all__ = [
    "QuaParser",
    "QuaWriter",
]

# fmt: off
MODE_KEY_COUNT = {
    "keys4": 4,
    "keys7": 7,
}
KEY_COUNT_MODE = {
    4: ("Keys4", False),
    5: ("Keys4", True),
    7: ("Keys7", False),
    8: ("Keys7", True),
}
HITSOUND_NAMES = {
    HitSoundType.WHISTLE: "Whistle",
    HitSoundType.FINISH : "Finish",
    HitSoundType.CLAP   : "Clap",
}
# fmt: on

logger = logging.getLogger(__name__)


def _parse_hitsound(value: str | None) -> HitSoundType:
    if not value:
        return HitSoundType.NORMAL
    flags = {flag.strip().lower() for flag in str(value).split(",")}
    for hitsound_type in (HitSoundType.CLAP, HitSoundType.FINISH, HitSoundType.WHISTLE):
        if HITSOUND_NAMES[hitsound_type].lower() in flags:
            return hitsound_type
    return HitSoundType.NORMAL


@dataclass
class QuaParser(Parser):
    """A parser for Quaver charts."""

    chart_format: ClassVar[ChartFormat] = ChartFormat.QUAVER

    def _parse(self, raw: str) -> CanonicalChart:
        try:
            data = yaml.safe_load(raw)
        except yaml.YAMLError as e:
            raise ParseError(f"invalid qua file: {e}") from e
        if not isinstance(data, dict):
            raise ParseError("qua file must contain a mapping")

        mode = str(data.get("Mode", ""))
        if mode.lower() not in MODE_KEY_COUNT:
            raise UnsupportedKeyCount(parse_int(mode[4:]) if mode[4:].isdigit() else 0, "qua")
        key_count = MODE_KEY_COUNT[mode.lower()]
        if data.get("HasScratchKey"):
            key_count += 1

        metadata = ChartMetadata(
            title=str(data.get("Title") or DEFAULT_TITLE),
            artist=str(data.get("Artist") or DEFAULT_ARTIST),
            creator=str(data.get("Creator") or DEFAULT_CREATOR),
            source=str(data.get("Source") or ""),
            tags=split_tags(str(data.get("Tags") or "")),
        )
        chart_info = ChartInfo(
            song_path=str(data.get("AudioFile") or ""),
            bg_path=str(data.get("BackgroundFile") or ""),
            preview_time=parse_int(data.get("SongPreviewTime") or 0),
            key_count=key_count,
            difficulty_name=str(data.get("DifficultyName") or ""),
        )

        sound_bank = SoundBank()
        if chart_info.song_path:
            sound_bank.audio_tracks.append(chart_info.song_path)
        for sample in data.get("CustomAudioSamples") or []:
            sound_bank.add_sound_sample(str(sample["Path"]))
        for effect in data.get("SoundEffects") or []:
            sound_bank.add_sound_effect(
                SoundEffect(
                    parse_int(effect.get("StartTime") or 0),
                    parse_int(effect["Sample"]) - 1,
                    clamp(parse_int(effect.get("Volume") or 100), 0, 100),
                )
            )

        timing = TimingSequence()
        for tp in data.get("TimingPoints") or []:
            timing.add_sorted(TimingChange.tempo(parse_int(tp.get("StartTime") or 0), float(tp["Bpm"])))
        for sv in data.get("SliderVelocities") or []:
            multiplier = sv.get("Multiplier")
            multiplier = 1.0 if multiplier is None else float(multiplier)
            timing.add_sorted(TimingChange.velocity(parse_int(sv.get("StartTime") or 0), multiplier))
        bpm_times = timing.bpm_times()
        chart_info.audio_offset = bpm_times[0] if bpm_times else 0
        tempo_map = TempoMap(timing.tempo_breakpoints(), start_offset=chart_info.audio_offset)
        for tc in timing:
            tc.beat = tempo_map.beat_from_time(tc.time)

        notes = NoteSequence()
        for hit_object in data.get("HitObjects") or []:
            self._parse_hit_object(hit_object, key_count, tempo_map, notes)

        return CanonicalChart(metadata, chart_info, timing, notes, sound_bank)

    def _parse_hit_object(
        self, hit_object: dict[str, Any], key_count: int, tempo_map: TempoMap, notes: NoteSequence
    ) -> None:
        time = parse_int(hit_object.get("StartTime") or 0)
        lane = parse_int(hit_object["Lane"])
        if not 1 <= lane <= key_count:
            raise LaneOutOfRange(lane, key_count)
        beat = tempo_map.beat_from_time(time)

        hitsound_type = _parse_hitsound(hit_object.get("HitSound"))
        key_sounds = hit_object.get("KeySounds") or []
        if key_sounds:
            first = key_sounds[0]
            volume = clamp(parse_int(first.get("Volume") or 100), 0, 100)
            key_sound = KeySound(volume, hitsound_type, parse_int(first["Sample"]) - 1)
        else:
            key_sound = KeySound(hitsound_type=hitsound_type)

        end_time = hit_object.get("EndTime")
        if end_time is not None and parse_int(end_time) > time:
            end_time = parse_int(end_time)
            notes.add_note(NoteEvent(time, beat, lane, Key.long_start(end_time), key_sound))
            notes.add_note(NoteEvent(end_time, tempo_map.beat_from_time(end_time), lane, Key.long_end()))
        else:
            notes.add_note(NoteEvent(time, beat, lane, Key.normal(), key_sound))


@dataclass
class QuaWriter(Writer):
    """A writer for Quaver charts."""

    chart_format: ClassVar[ChartFormat] = ChartFormat.QUAVER
    supported_key_counts: ClassVar[frozenset[int] | None] = frozenset(KEY_COUNT_MODE)

    initial_scroll_velocity: float = 1.0

    def _write(self, chart: CanonicalChart, sound_bank: SoundBank | None) -> str:
        mode, has_scratch = KEY_COUNT_MODE[chart.key_count()]
        data = {
            "AudioFile": chart.chart_info.song_path,
            "SongPreviewTime": chart.chart_info.preview_time,
            "BackgroundFile": chart.chart_info.bg_path,
            "MapId": -1,
            "MapSetId": -1,
            "Mode": mode,
            "Title": chart.metadata.title.replace("\n", ""),
            "Artist": chart.metadata.artist,
            "Source": chart.metadata.source,
            "Tags": ",".join(chart.metadata.tags),
            "Creator": chart.metadata.creator,
            "DifficultyName": chart.chart_info.difficulty_name,
            "BPMDoesNotAffectScrollVelocity": True,
            "InitialScrollVelocity": self.initial_scroll_velocity,
            "HasScratchKey": has_scratch,
            "EditorLayers": [],
            "CustomAudioSamples": [],
            "SoundEffects": [],
            "TimingPoints": [{"StartTime": tc.time, "Bpm": tc.value} for tc in chart.timing.tempo_changes()],
            "SliderVelocities": [
                {"StartTime": tc.time, "Multiplier": tc.value} for tc in chart.timing.velocity_changes()
            ],
            "HitObjects": [],
        }
        if sound_bank is not None:
            data["CustomAudioSamples"] = [{"Path": path} for path in sound_bank.sample_paths]
            data["SoundEffects"] = [
                {"StartTime": effect.time, "Sample": effect.sample + 1, "Volume": effect.volume}
                for effect in sound_bank.sound_effects
            ]

        for note in chart.notes:
            hit_object = self._format_note(note, sound_bank)
            if hit_object is not None:
                data["HitObjects"].append(hit_object)

        return yaml.safe_dump(data, sort_keys=False, allow_unicode=True, default_flow_style=False)

    @staticmethod
    def _format_note(note: NoteEvent, sound_bank: SoundBank | None) -> dict[str, Any] | None:
        if note.key_type not in (KeyType.NORMAL, KeyType.LONG_START):
            return None
        hit_object: dict[str, Any] = {"StartTime": note.time, "Lane": note.lane}
        if note.key.end_time is not None:
            hit_object["EndTime"] = note.key.end_time
        key_sound = note.key_sound
        if key_sound.hitsound_type != HitSoundType.NORMAL:
            hit_object["HitSound"] = HITSOUND_NAMES[key_sound.hitsound_type]
        key_sounds = []
        if key_sound.has_custom and sound_bank is not None and sound_bank.get_sound_sample(key_sound.sample):
            key_sounds.append({"Sample": key_sound.sample + 1, "Volume": key_sound.volume})
        hit_object["KeySounds"] = key_sounds
        return hit_object
