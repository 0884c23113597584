import math

import pytest

from maniaparser.classes.timing import TempoMap, TimingChange, TimingSequence
from maniaparser.errors import InvalidTempo


def test_beat_from_time_across_tempo_change():
    tempo_map = TempoMap([(0, 120.0), (2000, 240.0)])
    assert tempo_map.beat_from_time(1000) == pytest.approx(2.0)
    assert tempo_map.beat_from_time(2000) == pytest.approx(4.0)
    assert tempo_map.beat_from_time(2500) == pytest.approx(6.0)


def test_time_from_beat_across_tempo_change():
    tempo_map = TempoMap([(0, 120.0), (2000, 240.0)])
    assert tempo_map.time_from_beat(2.0) == pytest.approx(1000)
    assert tempo_map.time_from_beat(6.0) == pytest.approx(2500)


@pytest.mark.parametrize("time", [0, 250, 1999, 2000, 3333, 10000])
def test_round_trip_without_stops(time):
    tempo_map = TempoMap([(0, 120.0), (2000, 240.0), (5000, 97.5)])
    assert tempo_map.time_from_beat(tempo_map.beat_from_time(time)) == pytest.approx(time)


def test_stop_freezes_beat():
    # 500ms stop at beat 4 (2000ms at 120bpm)
    tempo_map = TempoMap([(0, 120.0)], stops=[(2000, 500)])
    for time in (2000, 2100, 2250, 2499):
        assert tempo_map.beat_from_time(time) == pytest.approx(4.0)
    assert tempo_map.beat_from_time(2500) == pytest.approx(4.0)
    assert tempo_map.beat_from_time(3000) == pytest.approx(5.0)


def test_note_on_stop_beat_lands_after_stop():
    tempo_map = TempoMap([(0, 120.0)], stops=[(2000, 500)])
    assert tempo_map.time_from_beat(3.0) == pytest.approx(1500)
    assert tempo_map.time_from_beat(4.0) == pytest.approx(2500)
    assert tempo_map.time_from_beat(5.0) == pytest.approx(3000)


@pytest.mark.parametrize("time", [0, 1000, 1999, 2500, 4000])
def test_round_trip_outside_stop_windows(time):
    tempo_map = TempoMap([(0, 120.0)], stops=[(2000, 500)])
    assert tempo_map.time_from_beat(tempo_map.beat_from_time(time)) == pytest.approx(time)


def test_start_offset_moves_beat_zero():
    tempo_map = TempoMap([(0, 120.0)], start_offset=500)
    assert tempo_map.beat_from_time(500) == pytest.approx(0.0)
    assert tempo_map.beat_from_time(0) == pytest.approx(-1.0)
    assert tempo_map.offset == 500


def test_times_before_first_breakpoint_extrapolate():
    tempo_map = TempoMap([(1000, 60.0)])
    assert tempo_map.beat_from_time(0) == pytest.approx(-1.0)
    assert tempo_map.time_from_beat(-2.0) == pytest.approx(-1000)


def test_empty_map_defaults_to_120bpm():
    tempo_map = TempoMap([])
    assert tempo_map.is_default
    assert tempo_map.beat_from_time(1000) == pytest.approx(2.0)
    assert tempo_map.beat_from_time(-1000) == 0.0


@pytest.mark.parametrize("bpm", [0.0, -120.0, math.nan, math.inf])
def test_invalid_bpm_raises(bpm):
    with pytest.raises(InvalidTempo):
        TempoMap([(0, 120.0), (1000, bpm)])


def test_unordered_breakpoints_raise():
    with pytest.raises(InvalidTempo):
        TempoMap([(1000, 120.0), (0, 140.0)])


def test_negative_stop_raises():
    with pytest.raises(InvalidTempo):
        TempoMap([(0, 120.0)], stops=[(1000, -10)])


def test_bpm_at():
    tempo_map = TempoMap([(0, 120.0), (2000, 240.0)])
    assert tempo_map.bpm_at(1999) == 120.0
    assert tempo_map.bpm_at(2000) == 240.0
    assert tempo_map.bpm_at(-50) == 120.0


def test_from_beats_resolves_anchor_times():
    tempo_map = TempoMap.from_beats(100, bpms=[(0, 120.0), (8, 240.0)], stops=[(4, 500.0)])
    assert tempo_map.breakpoints == [(100.0, 120.0), (4600.0, 240.0)]
    assert tempo_map.stops == [(2100.0, 500.0)]
    assert tempo_map.beat_from_time(4600) == pytest.approx(8.0)
    assert tempo_map.time_from_beat(10.0) == pytest.approx(5100)


def test_from_beats_rejects_invalid_bpm():
    with pytest.raises(InvalidTempo):
        TempoMap.from_beats(0, bpms=[(0, 0.0)])


def test_timing_sequence_views():
    timing = TimingSequence()
    timing.add(TimingChange.tempo(1000, 180.0))
    timing.add(TimingChange.velocity(500, 0.5))
    timing.add(TimingChange.tempo(0, 120.0))

    assert [tc.time for tc in timing.tempo_changes()] == [0, 1000]
    assert [tc.value for tc in timing.velocity_changes()] == [0.5]
    assert timing.bpms() == [120.0, 180.0]
    assert timing.bpm_times() == [0, 1000]
    assert timing.has_tempo


def test_timing_change_rejects_non_positive_tempo():
    with pytest.raises(InvalidTempo):
        TimingChange.tempo(0, 0.0)


@pytest.mark.parametrize("bpm", [math.nan, math.inf, -120.0])
def test_timing_change_rejects_non_finite_tempo(bpm):
    with pytest.raises(InvalidTempo):
        TimingChange.tempo(0, bpm)


def test_timing_change_rejects_non_finite_velocity():
    with pytest.raises(ValueError) as excinfo:
        TimingChange.velocity(0, math.inf)
    assert not isinstance(excinfo.value, InvalidTempo)
