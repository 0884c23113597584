from .base import (
    Parser,
    Writer,
)

from .fsc import (
    FscParser,
    FscWriter,
)

from .osu import (
    OsuParser,
    OsuWriter,
)

from .qua import (
    QuaParser,
    QuaWriter,
)

from .sm import (
    SMParser,
    SMWriter,
)
