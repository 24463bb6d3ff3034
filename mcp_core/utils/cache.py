"""Bounded in-process cache with FIFO eviction."""

from typing import Generic, Hashable, Iterator, Optional, TypeVar

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class BoundedCache(Generic[K, V]):
    """
    Mapping that holds at most `capacity` entries.

    Eviction is FIFO by first insertion: when a new key would exceed the
    capacity, the oldest inserted key is dropped. Overwriting an existing key
    keeps its original position.
    """

    def __init__(self, capacity: int = 100):
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self.capacity = capacity
        self._data: dict[K, V] = {}

    def get(self, key: K, default: Optional[V] = None) -> Optional[V]:
        return self._data.get(key, default)

    def put(self, key: K, value: V) -> Optional[K]:
        """
        Store a value.

        Returns:
            The evicted key, if any
        """
        evicted = None
        if key not in self._data and len(self._data) >= self.capacity:
            evicted = next(iter(self._data))
            del self._data[evicted]
        self._data[key] = value
        return evicted

    def keys(self) -> list[K]:
        return list(self._data)

    def clear(self) -> None:
        self._data.clear()

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __len__(self) -> int:
        return len(self._data)

    def __iter__(self) -> Iterator[K]:
        return iter(list(self._data))
