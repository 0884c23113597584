"""
Classes that represent hitsounds, custom samples and sound effects.
"""
import logging

from dataclasses import dataclass, field

from .base import Validateable
from .enums import HitSoundType

__all__ = [
    "KeySound",
    "SoundEffect",
    "SoundBank",
]

DEFAULT_VOLUME = 100

logger = logging.getLogger(__name__)


@dataclass
class KeySound(Validateable):
    """
    A class that represents the sound played when a note is hit.

    ``sample`` is an index into the chart's :class:`SoundBank`, and is `None` when the note uses a built-in hitsound.
    """

    volume: int = DEFAULT_VOLUME
    hitsound_type: HitSoundType = HitSoundType.NORMAL
    sample: int | None = None

    def __post_init__(self):
        self.validate()

    def validate(self):
        if not 0 <= self.volume <= 100:
            raise ValueError(f"volume out of range (got {self.volume})")
        if self.sample is not None and self.sample < 0:
            raise ValueError(f"sample index cannot be negative (got {self.sample})")

    @property
    def has_custom(self) -> bool:
        return self.sample is not None

    @classmethod
    def with_sample(cls, sample: int, volume: int = DEFAULT_VOLUME) -> "KeySound":
        return cls(volume, HitSoundType.NORMAL, sample)


@dataclass
class SoundEffect(Validateable):
    """A class that represents a sample played at a fixed time, independent of any note."""

    time: int
    sample: int
    volume: int = DEFAULT_VOLUME

    def __post_init__(self):
        self.validate()

    def validate(self):
        if not 0 <= self.volume <= 100:
            raise ValueError(f"volume out of range (got {self.volume})")
        if self.sample < 0:
            raise ValueError(f"sample index cannot be negative (got {self.sample})")


@dataclass
class SoundBank:
    """
    A class that owns every audio file a chart refers to.

    Sample paths are stored once each; their index is their insertion order and never changes.
    """

    audio_tracks: list[str] = field(default_factory=list)
    sound_effects: list[SoundEffect] = field(default_factory=list)
    _sample_paths: list[str] = field(default_factory=list, init=False, repr=False)
    _sample_index: dict[str, int] = field(default_factory=dict, init=False, repr=False)

    def add_sound_sample(self, path: str) -> int:
        """
        Register a sample path.

        :param path: Path of the sample, relative to the chart.
        :returns: The index of the sample. A path that was already registered keeps its index.
        """
        if path in self._sample_index:
            return self._sample_index[path]
        index = len(self._sample_paths)
        self._sample_paths.append(path)
        self._sample_index[path] = index
        logger.debug(f"registered sample {index}: {path}")
        return index

    def get_sound_sample(self, index: int) -> str | None:
        """Return the path of a sample, or `None` if the index is unknown."""
        if 0 <= index < len(self._sample_paths):
            return self._sample_paths[index]
        return None

    def get_index(self, path: str) -> int | None:
        """Return the index of a registered path, or `None`."""
        return self._sample_index.get(path)

    def add_sound_effect(self, effect: SoundEffect) -> None:
        if self.get_sound_sample(effect.sample) is None:
            raise ValueError(f"sound effect refers to unknown sample (got {effect.sample})")
        self.sound_effects.append(effect)

    @property
    def sample_paths(self) -> list[str]:
        return list(self._sample_paths)

    def __len__(self) -> int:
        return len(self._sample_paths)

    def is_empty(self) -> bool:
        return not self._sample_paths and not self.sound_effects
