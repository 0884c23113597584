"""
Base, generic classes supporting other more specialized classes.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass

__all__ = [
    "AbstractDataclass",
    "Validateable",
]


@dataclass
class AbstractDataclass(ABC):
    """An abstract base class for dataclasses."""

    def __new__(cls, *args, **kwargs):
        if cls == AbstractDataclass or cls.__bases__[0] == AbstractDataclass:
            raise TypeError("Cannot instantiate abstract class.")
        return super().__new__(cls)


class Validateable(ABC):
    """An abstract base class for classes that require validation."""

    @abstractmethod
    def validate(self):
        """
        Perform validation on the object.

        :raises ValueError: if any of the input is invalid.
        """
        pass
