"""
Weighted random choice over (item, weight) pairs.

Used by theme selection, palette collections and the multi preset generator.
"""

from typing import Generic, Iterable, Iterator, List, Optional, Sequence, Tuple, TypeVar

from ..utils.random import get_rng

T = TypeVar("T")


class EmptyCollectionError(ValueError):
    """Raised when sampling from a weighted list with nothing to choose."""


class WeightedList(Generic[T]):
    """A list of items, each with a selection weight."""

    def __init__(self, items: Optional[Iterable[Tuple[T, float]]] = None):
        self._items: List[Tuple[T, float]] = []
        for item, weight in items or ():
            self.push(item, weight)

    def push(self, item: T, weight: float) -> None:
        if weight < 0:
            raise ValueError(f"Negative weight {weight} for {item!r}")
        self._items.append((item, float(weight)))

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[T]:
        return (item for item, _ in self._items)

    def __getitem__(self, index: int) -> T:
        return self._items[index][0]

    def items(self) -> Sequence[Tuple[T, float]]:
        return tuple(self._items)

    def total_weight(self) -> float:
        return sum(weight for _, weight in self._items)

    def get_random_index(self) -> int:
        """Index of a weighted random item."""
        total = self.total_weight()
        if not self._items or total <= 0:
            raise EmptyCollectionError("Cannot choose from an empty weighted list")

        remaining = get_rng().uniform(0.0, total)
        for i, (_, weight) in enumerate(self._items):
            if remaining < weight:
                return i
            remaining -= weight

        # Float rounding can leave a sliver past the last positive weight
        for i in range(len(self._items) - 1, -1, -1):
            if self._items[i][1] > 0:
                return i
        raise EmptyCollectionError("Cannot choose from an empty weighted list")

    def get_random(self) -> T:
        return self._items[self.get_random_index()][0]

    def __repr__(self) -> str:
        return f"WeightedList({self._items!r})"
