"""
Environment mutation surface.

Generated segments are written into a host world through ``GridEnvironment``.
``InMemoryGrid`` is a dictionary-backed implementation used by the sample
script and the tests.
"""

from typing import Dict, Iterator, Optional, Protocol, Tuple

from .grid import GridPos
from .materials import AIR, Material


class GridEnvironment(Protocol):
    def set_cell(self, pos: GridPos, material: Material) -> None:
        ...

    def remove_cell(self, pos: GridPos) -> None:
        ...

    def get_cell(self, pos: GridPos) -> Material:
        ...


class InMemoryGrid:
    """Sparse voxel grid. Unset cells read as air."""

    def __init__(self):
        self._cells: Dict[GridPos, Material] = {}

    def set_cell(self, pos: GridPos, material: Material) -> None:
        if material.kind is AIR.kind:
            self._cells.pop(pos, None)
        else:
            self._cells[pos] = material

    def remove_cell(self, pos: GridPos) -> None:
        self._cells.pop(pos, None)

    def get_cell(self, pos: GridPos) -> Material:
        return self._cells.get(pos, AIR)

    def is_solid(self, pos: GridPos) -> bool:
        return self.get_cell(pos).is_solid

    def __contains__(self, pos: GridPos) -> bool:
        return pos in self._cells

    def __len__(self) -> int:
        return len(self._cells)

    def __iter__(self) -> Iterator[Tuple[GridPos, Material]]:
        return iter(self._cells.items())

    def bounds(self) -> Optional[Tuple[GridPos, GridPos]]:
        """Inclusive (min, max) corners of the non-air cells."""
        if not self._cells:
            return None
        xs, ys, zs = zip(*self._cells)
        return GridPos(min(xs), min(ys), min(zs)), GridPos(max(xs), max(ys), max(zs))
