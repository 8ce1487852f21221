"""
Persistent Sorted Map

This module provides ImmutableSortedMap, the ordered map used by the option
position collection to index symbols by strike price and by expiration date.

An ImmutableSortedMap never changes after construction. Updates such as
set_item() and remove() return a new map and leave the receiver untouched,
so earlier snapshots stay valid no matter what is derived from them later.
Keys are kept in ascending order and located with bisect, which makes
range filtering a matter of slicing the key sequence.

Usage:
    from optionmatcher.core.sorted_map import ImmutableSortedMap

    strikes = ImmutableSortedMap.EMPTY
    strikes = strikes.set_item(Decimal('100'), frozenset({call}))
    strikes = strikes.set_item(Decimal('95'), frozenset({put}))

    list(strikes)                 # [Decimal('95'), Decimal('100')]
    strikes.key_slice(1, None)    # sub-map with only the 100 strike
"""

from bisect import bisect_left, bisect_right
from typing import Any, Dict, Generic, Iterator, Optional, Tuple, TypeVar

K = TypeVar('K')
V = TypeVar('V')


class ImmutableSortedMap(Generic[K, V]):
    """
    Immutable mapping with keys kept in ascending order.

    The key tuple and the backing dict are private and never mutated;
    derived maps get their own copies.

    Example:
        >>> m = ImmutableSortedMap({3: 'c', 1: 'a'})
        >>> list(m.items())
        [(1, 'a'), (3, 'c')]
        >>> m.remove(1) is m
        False
        >>> len(m)
        2
    """

    __slots__ = ('_keys', '_items')

    EMPTY: "ImmutableSortedMap"

    def __init__(self, items: Optional[Dict[K, V]] = None) -> None:
        items = dict(items) if items else {}
        self._keys: Tuple[K, ...] = tuple(sorted(items))
        self._items: Dict[K, V] = items

    @classmethod
    def _from_sorted(cls, keys: Tuple[K, ...], items: Dict[K, V]) -> "ImmutableSortedMap[K, V]":
        instance = cls.__new__(cls)
        instance._keys = keys
        instance._items = items
        return instance

    # =========================================================================
    # Read Access
    # =========================================================================

    @property
    def is_empty(self) -> bool:
        """True if the map has no entries."""
        return not self._keys

    @property
    def min_key(self) -> Optional[K]:
        """Smallest key, or None if empty."""
        return self._keys[0] if self._keys else None

    @property
    def max_key(self) -> Optional[K]:
        """Largest key, or None if empty."""
        return self._keys[-1] if self._keys else None

    def get(self, key: K, default: Any = None) -> Any:
        return self._items.get(key, default)

    def keys(self) -> Tuple[K, ...]:
        return self._keys

    def values(self) -> Iterator[V]:
        return (self._items[key] for key in self._keys)

    def items(self) -> Iterator[Tuple[K, V]]:
        return ((key, self._items[key]) for key in self._keys)

    def to_dict(self) -> Dict[K, V]:
        """Return a mutable copy of the entries."""
        return dict(self._items)

    def index_left(self, key: K) -> int:
        """Position of the first key >= key."""
        return bisect_left(self._keys, key)

    def index_right(self, key: K) -> int:
        """Position of the first key > key."""
        return bisect_right(self._keys, key)

    # =========================================================================
    # Persistent Updates
    # =========================================================================

    def set_item(self, key: K, value: V) -> "ImmutableSortedMap[K, V]":
        """Return a new map with key bound to value."""
        items = dict(self._items)
        if key in items:
            items[key] = value
            return self._from_sorted(self._keys, items)

        items[key] = value
        index = bisect_left(self._keys, key)
        keys = self._keys[:index] + (key,) + self._keys[index:]
        return self._from_sorted(keys, items)

    def remove(self, key: K) -> "ImmutableSortedMap[K, V]":
        """Return a new map without key (the receiver itself if key is absent)."""
        if key not in self._items:
            return self

        items = dict(self._items)
        del items[key]
        index = bisect_left(self._keys, key)
        return self._from_sorted(self._keys[:index] + self._keys[index + 1:], items)

    def key_slice(self, start: Optional[int], stop: Optional[int]) -> "ImmutableSortedMap[K, V]":
        """Return the sub-map covering keys[start:stop]."""
        keys = self._keys[start:stop]
        if keys == self._keys:
            return self
        return self._from_sorted(keys, {key: self._items[key] for key in keys})

    # =========================================================================
    # Special Methods
    # =========================================================================

    def __getitem__(self, key: K) -> V:
        return self._items[key]

    def __contains__(self, key: object) -> bool:
        return key in self._items

    def __len__(self) -> int:
        return len(self._keys)

    def __iter__(self) -> Iterator[K]:
        return iter(self._keys)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ImmutableSortedMap):
            return NotImplemented
        return self._items == other._items

    __hash__ = None

    def __repr__(self) -> str:
        entries = ", ".join(f"{key!r}: {value!r}" for key, value in self.items())
        return f"ImmutableSortedMap({{{entries}}})"


ImmutableSortedMap.EMPTY = ImmutableSortedMap()


__all__ = [
    'ImmutableSortedMap',
]
