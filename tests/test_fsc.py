import json
import logging

import pytest

from maniaparser.classes.enums import HitSoundType, KeyType, TimingChangeType
from maniaparser.classes.sound import KeySound
from maniaparser.errors import InvalidTempo, LaneOutOfRange, ParseError
from maniaparser.parser.fsc import FscParser, FscWriter


def test_parse_metadata(fsc_chart):
    chart = FscParser().parse_str(fsc_chart)
    assert chart.metadata.title == "Flux Song"
    assert chart.metadata.artist == "Flux Artist"
    assert chart.metadata.creator == "FluxMapper"
    assert chart.metadata.tags == ["x", "y"]
    assert chart.chart_info.difficulty_name == "Expert"
    assert chart.chart_info.preview_time == 2000
    assert chart.chart_info.overall_difficulty == 8.0
    assert chart.chart_info.hp_drain == 7.0


def test_parse_skips_ticks(fsc_chart, caplog):
    with caplog.at_level(logging.WARNING):
        chart = FscParser().parse_str(fsc_chart)
    assert "skipped 1 tick note(s)" in caplog.text
    assert chart.key_count() == 3
    assert 5 not in chart.notes.lanes()


def test_parse_hit_objects(fsc_chart):
    chart = FscParser().parse_str(fsc_chart)
    assert [(n.time, n.lane, n.key_type) for n in chart.notes] == [
        (0, 1, KeyType.NORMAL),
        (400, 2, KeyType.LONG_START),
        (800, 2, KeyType.LONG_END),
        (800, 3, KeyType.NORMAL),
    ]
    assert [n.beat for n in chart.notes] == pytest.approx([0.0, 1.0, 2.0, 2.0])
    assert chart.notes[1].key.end_time == 800
    assert chart.notes[1].key_sound.hitsound_type == HitSoundType.CLAP
    assert chart.notes[3].key_sound == KeySound.with_sample(0)
    assert chart.sound_bank.sample_paths == ["drum.wav"]


def test_parse_timing(fsc_chart):
    chart = FscParser().parse_str(fsc_chart)
    assert [(tc.time, tc.kind, tc.value) for tc in chart.timing] == [
        (0, TimingChangeType.TEMPO, 150.0),
        (400, TimingChangeType.SCROLL_VELOCITY, 1.5),
    ]


def test_write_then_parse(fsc_chart):
    chart = FscParser().parse_str(fsc_chart)
    output = FscWriter().write_str(chart)
    data = json.loads(output)
    assert data["Metadata"]["tags"] == "x,y"
    assert data["HitObjects"] == [
        {"time": 0, "lane": 1, "hitsound": ":normal"},
        {"time": 400, "lane": 2, "holdtime": 400, "hitsound": ":clap"},
        {"time": 800, "lane": 3, "hitsound": "drum.wav"},
    ]
    assert data["TimingPoints"] == [{"time": 0, "bpm": 150.0, "signature": 4}]

    reparsed = FscParser().parse_str(output)
    assert [(n.time, n.lane, n.key, n.key_sound) for n in reparsed.notes] == [
        (n.time, n.lane, n.key, n.key_sound) for n in chart.notes
    ]
    assert reparsed.metadata == chart.metadata


def test_write_compact(simple_chart):
    output = FscWriter(indent=None).write_str(simple_chart)
    assert output.count("\n") == 1
    assert json.loads(output)["HitObjects"][2]["holdtime"] == 1000


def test_key_count_defaults_without_notes():
    chart = FscParser().parse_str('{"TimingPoints": [{"time": 0, "bpm": 120}]}')
    assert chart.key_count() == 4
    assert len(chart.notes) == 0


def test_invalid_json_raises():
    with pytest.raises(ParseError):
        FscParser().parse_str('{"HitObjects": [')


def test_non_object_raises():
    with pytest.raises(ParseError):
        FscParser().parse_str("[1, 2, 3]")


def test_missing_bpm_raises(fsc_chart):
    with pytest.raises(ParseError):
        FscParser().parse_str(fsc_chart.replace('"bpm": 150, ', ""))


def test_lane_below_one_raises(fsc_chart):
    with pytest.raises(LaneOutOfRange) as excinfo:
        FscParser().parse_str(fsc_chart.replace('{"time": 0, "lane": 1}', '{"time": 0, "lane": 0}'))
    assert excinfo.value.lane == 0


def test_non_finite_bpm_raises(fsc_chart):
    with pytest.raises(InvalidTempo):
        FscParser().parse_str(fsc_chart.replace('"bpm": 150', '"bpm": NaN'))


def test_negative_hold_time_is_read_as_normal(fsc_chart):
    chart = FscParser().parse_str(fsc_chart.replace('"holdtime": 400', '"holdtime": -400'))
    assert chart.notes.of_type(KeyType.LONG_START) == []
    assert chart.notes.of_type(KeyType.LONG_END) == []
