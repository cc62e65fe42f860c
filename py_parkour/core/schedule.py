"""
Timed material schedules for blinking and animated cells.

A schedule cycles through material variants, each shown for a fixed number of
ticks. The host queries it once per tick per animated cell.
"""

from dataclasses import dataclass
from typing import Iterable, Sequence, Tuple

from .materials import Material


@dataclass(frozen=True)
class MaterialVariant:
    """A material as shown by a schedule entry.

    Non-solid variants are meant to be drawn as a small display that the agent
    cannot stand on.
    """

    material: Material
    solid: bool = True

    @classmethod
    def block(cls, material: Material) -> "MaterialVariant":
        return cls(material, True)

    @classmethod
    def small(cls, material: Material) -> "MaterialVariant":
        return cls(material, False)


class TimedMaterialSchedule:
    """Ordered (variant, duration) entries plus a phase offset."""

    __slots__ = ("_entries", "_offset", "_total")

    def __init__(self, entries: Iterable[Tuple[MaterialVariant, int]], offset: int = 0):
        entries = tuple((variant, int(duration)) for variant, duration in entries)
        if not entries:
            raise ValueError("Timed material schedule needs at least one entry")
        if any(duration < 0 for _, duration in entries):
            raise ValueError(f"Negative duration in schedule: {entries!r}")

        total = sum(duration for _, duration in entries)
        if total <= 0:
            raise ValueError("Timed material schedule has zero total duration")

        self._entries = entries
        self._offset = int(offset)
        self._total = total

    @property
    def entries(self) -> Sequence[Tuple[MaterialVariant, int]]:
        return self._entries

    @property
    def offset(self) -> int:
        return self._offset

    @property
    def total_duration(self) -> int:
        return self._total

    def query(self, tick: int) -> MaterialVariant:
        """Variant visible at ``tick``."""
        position = (tick + self._offset) % self._total

        for variant, duration in self._entries:
            if position < duration:
                return variant
            position -= duration

        # Unreachable: position < total
        return self._entries[0][0]

    def __eq__(self, other) -> bool:
        if not isinstance(other, TimedMaterialSchedule):
            return NotImplemented
        return self._entries == other._entries and self._offset == other._offset

    def __hash__(self) -> int:
        return hash((self._entries, self._offset))

    def __repr__(self) -> str:
        return f"TimedMaterialSchedule({list(self._entries)!r}, offset={self._offset})"
