from .chart import (
    CanonicalChart,
    ChartInfo,
    ChartMetadata,
)

from .enums import (
    ChartFormat,
    HitSoundType,
    KeyType,
    TimingChangeType,
)

from .grid import (
    NoteRow,
    build_rows,
    flatten_rows,
)

from .notes import (
    Key,
    NoteEvent,
    NoteSequence,
)

from .sound import (
    KeySound,
    SoundBank,
    SoundEffect,
)

from .timeline import (
    Timeline,
)

from .timing import (
    TempoMap,
    TimingChange,
    TimingSequence,
)
