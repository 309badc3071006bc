"""
Registry - Id-keyed collections with tagged lookups.

Lookups never return None: they return Present(value) or Absent(key),
so a missing id has to be handled where it is looked up.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, Generic, Iterator, TypeVar, Union

T = TypeVar("T")


@dataclass(frozen=True)
class Present(Generic[T]):
    value: T

    @property
    def found(self) -> bool:
        return True


@dataclass(frozen=True)
class Absent:
    key: str

    @property
    def found(self) -> bool:
        return False


Lookup = Union[Present[T], Absent]


class DuplicateIdError(ValueError):
    """Raised when an id is registered twice."""


class Registry(Generic[T]):
    """
    Ordered id -> item mapping.

    Items must carry an `id` attribute. Registration order is kept
    so listings are stable.
    """

    def __init__(self, items: list[T] | None = None, key: Callable[[T], str] = lambda item: item.id):
        self._items: dict[str, T] = {}
        self._key = key
        for item in items or []:
            self.register(item)

    def register(self, item: T) -> T:
        item_id = self._key(item)
        if item_id in self._items:
            raise DuplicateIdError(f"Duplicate id: {item_id}")
        self._items[item_id] = item
        return item

    def lookup(self, item_id: str) -> Lookup[T]:
        item = self._items.get(item_id)
        if item is None:
            return Absent(item_id)
        return Present(item)

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._items

    def __iter__(self) -> Iterator[T]:
        return iter(self._items.values())

    def __len__(self) -> int:
        return len(self._items)

    def ids(self) -> list[str]:
        return list(self._items)

    def all(self) -> list[T]:
        return list(self._items.values())
