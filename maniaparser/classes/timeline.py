"""
A lazily sorted container for time-stamped items.
"""
import bisect

from collections.abc import Callable, Iterable, Iterator
from typing import Generic, TypeVar, overload

__all__ = [
    "Timeline",
]

T = TypeVar("T")


class Timeline(Generic[T]):
    """
    A list of items kept in ascending time order, sorting only when needed.

    Appending with :meth:`add` is cheap and only marks the container as unsorted when the new item is earlier than
    the latest item seen so far. :meth:`add_sorted` keeps the container ordered on every insertion. Sorting is stable,
    so items sharing a time stay in insertion order.

    :param time_of: Function that extracts the time of an item.
    :param items: Initial items, appended in order.
    """

    def __init__(self, time_of: Callable[[T], float], items: Iterable[T] = ()):
        self._time_of = time_of
        self._items: list[T] = []
        self._sorted = True
        self.extend(items)

    def add(self, item: T) -> None:
        """Append an item without sorting."""
        if self._items and self._time_of(item) < self._time_of(self._items[-1]):
            self._sorted = False
        self._items.append(item)

    def add_sorted(self, item: T) -> None:
        """Insert an item at its ordered position, after any items sharing its time."""
        self.sort()
        index = bisect.bisect_right(self._items, self._time_of(item), key=self._time_of)
        self._items.insert(index, item)

    def extend(self, items: Iterable[T]) -> None:
        """Append several items without sorting."""
        for item in items:
            self.add(item)

    def sort(self) -> None:
        """Sort the items by time. Does nothing if the container is already sorted."""
        if self._sorted:
            return
        self._items.sort(key=self._time_of)
        self._sorted = True

    @property
    def is_sorted(self) -> bool:
        """Whether the items are known to be in ascending time order."""
        return self._sorted

    def first(self) -> T | None:
        """Return the earliest item, or `None` if the container is empty."""
        self.sort()
        return self._items[0] if self._items else None

    def last(self) -> T | None:
        """Return the latest item, or `None` if the container is empty."""
        self.sort()
        return self._items[-1] if self._items else None

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(self._items)

    @overload
    def __getitem__(self, index: int) -> T:
        ...

    @overload
    def __getitem__(self, index: slice) -> list[T]:
        ...

    def __getitem__(self, index):
        return self._items[index]

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._items!r}, sorted={self._sorted})"
