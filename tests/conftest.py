import pytest

from maniaparser.classes.chart import CanonicalChart, ChartInfo
from maniaparser.classes.notes import Key, NoteEvent, NoteSequence
from maniaparser.classes.timing import TimingChange, TimingSequence


SM_CHART = """\
#TITLE:Test Song;
#SUBTITLE:Test Source;
#ARTIST:Test Artist;
#CREDIT:Charter;
#MUSIC:song.ogg;
#BACKGROUND:bg.png;
#OFFSET:-0.100;
#SAMPLESTART:12.5;
#BPMS:0.000=120.000,8.000=240.000;
#STOPS:4.000=0.500;
//---------------dance-single - ----------------
#NOTES:
     dance-single:
     Charter:
     Hard:
     10:
     0,0,0,0,0:
1000
0100
0010
0001
,
2000
0000
3000
0000
,
1001 // jump
0000
M000
0000
;
"""

OSU_CHART = """\
osu file format v14

[General]
AudioFilename: audio.mp3
PreviewTime: 1000
Mode: 3

[Metadata]
Title:Osu Song
TitleUnicode:Osu Song (Unicode)
Artist:Osu Artist
ArtistUnicode:Osu Artist
Creator:Mapper
Version:Insane
Source:Game
Tags:tag1 tag2

[Difficulty]
HPDrainRate:8
CircleSize:4
OverallDifficulty:8
ApproachRate:5

[Events]
//Background and Video events
0,0,"bg.jpg",0,0
//Storyboard Sound Samples
Sample,3000,0,"clap.wav",70

[TimingPoints]
0,500,4,1,0,100,1,0
2000,250,4,1,0,100,1,0
2000,-50,4,1,0,100,0,0

[HitObjects]
64,192,1000,1,0,0:0:0:0:
192,192,1500,1,8,0:0:0:0:
320,192,2500,128,2,3000:0:0:0:80:hit.wav
448,192,3500,1,0,0:0:0:0:
"""

QUA_CHART = """\
AudioFile: audio.mp3
SongPreviewTime: 1500
BackgroundFile: bg.png
MapId: -1
MapSetId: -1
Mode: Keys7
Title: Qua Song
Artist: Qua Artist
Source: ''
Tags: a, b
Creator: QuaMapper
DifficultyName: Hard
BPMDoesNotAffectScrollVelocity: true
InitialScrollVelocity: 1
HasScratchKey: false
EditorLayers: []
CustomAudioSamples:
- Path: kick.wav
SoundEffects:
- StartTime: 500
  Sample: 1
  Volume: 50
TimingPoints:
- StartTime: 100
  Bpm: 150
SliderVelocities:
- StartTime: 100
  Multiplier: 0.75
- StartTime: 900
HitObjects:
- StartTime: 100
  Lane: 1
  KeySounds: []
- StartTime: 500
  Lane: 7
  EndTime: 900
  HitSound: Clap
  KeySounds:
  - Sample: 1
    Volume: 60
- Lane: 4
  KeySounds: []
"""

FSC_CHART = """\
{
  "AudioFile": "song.mp3",
  "BackgroundFile": "bg.png",
  "VideoFile": "",
  "Metadata": {
    "Title": "Flux Song",
    "artist": "Flux Artist",
    "mapper": "FluxMapper",
    "difficulty": "Expert",
    "tags": "x,y",
    "previewtime": 2000
  },
  "HitObjects": [
    {"time": 0, "lane": 1},
    {"time": 400, "lane": 2, "holdtime": 400, "hitsound": ":clap"},
    {"time": 600, "lane": 5, "type": 1},
    {"time": 800, "lane": 3, "hitsound": "drum.wav"}
  ],
  "TimingPoints": [{"time": 0, "bpm": 150, "signature": 4}],
  "ScrollVelocities": [{"time": 400, "multiplier": 1.5}],
  "AccuracyDifficulty": 8,
  "HealthDifficulty": 7
}
"""


@pytest.fixture
def sm_chart() -> str:
    return SM_CHART


@pytest.fixture
def osu_chart() -> str:
    return OSU_CHART


@pytest.fixture
def qua_chart() -> str:
    return QUA_CHART


@pytest.fixture
def fsc_chart() -> str:
    return FSC_CHART


@pytest.fixture
def simple_chart() -> CanonicalChart:
    # 4K chart at a constant 120bpm: three taps and one long note
    timing = TimingSequence([TimingChange.tempo(0, 120.0, 0.0)])
    notes = NoteSequence(
        [
            NoteEvent(0, 0.0, 1, Key.normal()),
            NoteEvent(500, 1.0, 2, Key.normal()),
            NoteEvent(1000, 2.0, 3, Key.long_start(2000)),
            NoteEvent(1500, 3.0, 4, Key.normal()),
        ]
    )
    return CanonicalChart(chart_info=ChartInfo(key_count=4), timing=timing, notes=notes)
