import pytest

import convert_chart
from maniaparser import convert, detect_format, parse_chart, write_chart
from maniaparser.classes.enums import ChartFormat, KeyType
from maniaparser.convert import get_parser, get_writer
from maniaparser.errors import ChartError, LaneOutOfRange, UnsupportedKeyCount
from maniaparser.parser import OsuWriter, SMParser


@pytest.mark.parametrize(
    "path, expected",
    [
        ("chart.sm", ChartFormat.STEPMANIA),
        ("dir/Map [Hard].osu", ChartFormat.OSU),
        ("song.QUA", ChartFormat.QUAVER),
        ("song.fsc", ChartFormat.FLUXIS),
    ],
)
def test_detect_format(path, expected):
    assert detect_format(path) == expected


def test_detect_format_rejects_unknown_suffix():
    with pytest.raises(ValueError):
        detect_format("chart.ksh")


def test_registry_passes_options():
    assert get_parser(ChartFormat.STEPMANIA, difficulty="Hard").difficulty == "Hard"
    assert isinstance(get_parser(ChartFormat.STEPMANIA), SMParser)
    assert isinstance(get_writer(ChartFormat.OSU), OsuWriter)


def test_osu_to_qua(osu_chart):
    output = convert(osu_chart, ChartFormat.OSU, ChartFormat.QUAVER)
    chart = parse_chart(output, ChartFormat.QUAVER)
    assert [(n.time, n.lane, n.key_type) for n in chart.notes] == [
        (1000, 1, KeyType.NORMAL),
        (1500, 2, KeyType.NORMAL),
        (2500, 3, KeyType.LONG_START),
        (3000, 3, KeyType.LONG_END),
        (3500, 4, KeyType.NORMAL),
    ]
    assert chart.sound_bank.sample_paths == ["clap.wav", "hit.wav"]
    assert chart.notes[2].key_sound.sample == 1
    assert chart.sound_bank.sound_effects[0].sample == 0


def test_osu_to_sm(osu_chart):
    output = convert(osu_chart, ChartFormat.OSU, ChartFormat.STEPMANIA)
    assert "#BPMS:0=120,4=240;" in output
    chart = parse_chart(output, ChartFormat.STEPMANIA)
    assert [n.time for n in chart.notes] == [1000, 1500, 2500, 3000, 3500]
    assert chart.chart_info.difficulty_name == "Insane"


def test_qua_to_osu(qua_chart):
    output = convert(qua_chart, ChartFormat.QUAVER, ChartFormat.OSU)
    chart = parse_chart(output, ChartFormat.OSU)
    assert chart.key_count() == 7
    assert [(n.time, n.lane) for n in chart.notes] == [(0, 4), (100, 1), (500, 7), (900, 7)]


def test_sm_to_fsc(sm_chart):
    output = convert(sm_chart, ChartFormat.STEPMANIA, ChartFormat.FLUXIS)
    chart = parse_chart(output, ChartFormat.FLUXIS)
    assert [n.time for n in chart.notes if n.key_type != KeyType.LONG_END] == [
        100,
        600,
        1100,
        1600,
        2600,
        4600,
        4600,
    ]


def test_fsc_to_qua_rejects_key_count(fsc_chart):
    with pytest.raises(UnsupportedKeyCount):
        convert(fsc_chart, ChartFormat.FLUXIS, ChartFormat.QUAVER)


def test_qua_with_lane_beyond_mode_is_rejected(qua_chart):
    with pytest.raises(LaneOutOfRange):
        convert(qua_chart.replace("Mode: Keys7", "Mode: Keys4"), ChartFormat.QUAVER, ChartFormat.OSU)


def test_write_chart_rejects_lane_beyond_key_count(qua_chart):
    chart = parse_chart(qua_chart, ChartFormat.QUAVER)
    chart.notes[1].lane = 9
    with pytest.raises(LaneOutOfRange):
        write_chart(chart, ChartFormat.OSU)


def test_write_chart_uses_given_sound_bank(osu_chart):
    chart = parse_chart(osu_chart, ChartFormat.OSU)
    bank = chart.sound_bank
    chart.sound_bank = None
    assert 'Sample,3000,0,"clap.wav",70' in write_chart(chart, ChartFormat.OSU, bank)
    assert "clap.wav" not in write_chart(chart, ChartFormat.OSU)


def test_cli_converts_files(tmp_path, osu_chart, capsys):
    in_path = tmp_path / "song.osu"
    in_path.write_text(osu_chart, encoding="utf-8")
    out_dir = tmp_path / "out"
    out_dir.mkdir()

    assert convert_chart.main([str(in_path), "--to", "qua", "--output-dir", str(out_dir), "--validate"]) == 0
    out_path = out_dir / "song.qua"
    assert out_path.exists()
    assert str(out_path) in capsys.readouterr().out
    assert len(parse_chart(out_path.read_text(encoding="utf-8"), ChartFormat.QUAVER).notes) == 5


def test_cli_reads_sm_difficulty(tmp_path, sm_chart):
    in_path = tmp_path / "song.sm"
    in_path.write_text(sm_chart, encoding="utf-8")
    assert convert_chart.main([str(in_path), "--to", "osu", "--difficulty", "Hard", "--log-level", "debug"]) == 0
    assert (tmp_path / "song.osu").exists()


def test_cli_reports_errors(tmp_path, sm_chart, capsys):
    in_path = tmp_path / "song.sm"
    in_path.write_text(sm_chart, encoding="utf-8")
    assert convert_chart.main([str(in_path), "--to", "qua", "--difficulty", "Beginner"]) == 3
    assert "ParseError" in capsys.readouterr().out

    assert convert_chart.main([str(tmp_path / "chart.txt"), "--to", "sm"]) == 3


def test_errors_are_value_errors():
    assert issubclass(ChartError, ValueError)
    assert issubclass(UnsupportedKeyCount, ChartError)
