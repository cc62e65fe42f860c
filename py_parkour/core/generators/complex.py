"""
Connector grid (maze) generator.

Cells on a coarse grid expose up to four directional connectors, each tagged
with a type name. A cell's connector on side S is ``(name, exit)``: a path
entering through S leaves through ``exit``. Two cells may only sit next to
each other if their facing connectors carry the same name.

The path is grown by a randomized depth-first search from the origin toward
the far z boundary. Paths may run through already placed cells; before a cell
is committed the search follows the committed connectors ahead of it to make
sure they do not close into a loop.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, NamedTuple, Optional, Set, Tuple

import structlog

from ...utils.random import get_rng
from ..grid import GridPos, ORIGIN
from ..segment import GenerateResult
from .base import GeneratorKind, GeneratorParams, SegmentGenerator

logger = structlog.get_logger()

# World cells per grid cell
GRID_PITCH = 3

# Node expansions allowed in one search before it is restarted
SEARCH_STEP_LIMIT = 5_000


class Direction(Enum):
    TOP = "top"
    BOTTOM = "bottom"
    LEFT = "left"
    RIGHT = "right"

    def opposite(self) -> "Direction":
        return _OPPOSITE[self]

    def left(self) -> "Direction":
        return _LEFT[self]

    def right(self) -> "Direction":
        return _RIGHT[self]

    def mirror_horizontal(self) -> "Direction":
        if self is Direction.LEFT:
            return Direction.RIGHT
        if self is Direction.RIGHT:
            return Direction.LEFT
        return self

    def forward_and_orthogonal(self) -> Tuple["Direction", "Direction", "Direction"]:
        return self, self.left(), self.right()

    @property
    def offset(self) -> GridPos:
        return _OFFSETS[self]


_OPPOSITE = {
    Direction.TOP: Direction.BOTTOM,
    Direction.BOTTOM: Direction.TOP,
    Direction.LEFT: Direction.RIGHT,
    Direction.RIGHT: Direction.LEFT,
}
_LEFT = {
    Direction.TOP: Direction.LEFT,
    Direction.BOTTOM: Direction.RIGHT,
    Direction.LEFT: Direction.BOTTOM,
    Direction.RIGHT: Direction.TOP,
}
_RIGHT = {value: key for key, value in _LEFT.items()}
_OFFSETS = {
    Direction.TOP: GridPos(0, 0, 1),
    Direction.BOTTOM: GridPos(0, 0, -1),
    Direction.LEFT: GridPos(-1, 0, 0),
    Direction.RIGHT: GridPos(1, 0, 0),
}

# Where a side's connector material is drawn, relative to the cell's base
_RENDER_OFFSETS = {
    Direction.BOTTOM: GridPos(0, 0, 0),
    Direction.TOP: GridPos(0, 0, 2),
    Direction.LEFT: GridPos(-1, 0, 1),
    Direction.RIGHT: GridPos(1, 0, 1),
}
_FILLER_OFFSET = GridPos(0, 0, 1)


class Connector(NamedTuple):
    name: str
    exit: Direction


@dataclass(frozen=True)
class ComplexCell:
    top: Optional[Connector] = None
    bottom: Optional[Connector] = None
    left: Optional[Connector] = None
    right: Optional[Connector] = None

    def get(self, side: Direction) -> Optional[Connector]:
        return getattr(self, side.value)

    def connectors(self) -> Iterable[Tuple[Direction, Connector]]:
        for side in Direction:
            connector = self.get(side)
            if connector is not None:
                yield side, connector

    def validate(self) -> None:
        """Raise ``ValueError`` unless every connector's exit leads back to it."""
        for side, connector in self.connectors():
            if connector.exit is side:
                raise ValueError(f"Connector on {side.value} exits through itself: {self}")
            target = self.get(connector.exit)
            if target is None or target.exit is not side:
                raise ValueError(
                    f"Connector on {side.value} exits {connector.exit.value} "
                    f"which does not lead back: {self}"
                )

    def rotate_cw(self) -> "ComplexCell":
        def turn(connector: Optional[Connector]) -> Optional[Connector]:
            if connector is None:
                return None
            return Connector(connector.name, connector.exit.right())

        return ComplexCell(
            top=turn(self.left),
            bottom=turn(self.right),
            left=turn(self.bottom),
            right=turn(self.top),
        )

    def mirror_horizontal(self) -> "ComplexCell":
        def mirror(connector: Optional[Connector]) -> Optional[Connector]:
            if connector is None:
                return None
            return Connector(connector.name, connector.exit.mirror_horizontal())

        return ComplexCell(
            top=mirror(self.top),
            bottom=mirror(self.bottom),
            left=mirror(self.right),
            right=mirror(self.left),
        )

    def get_all_rotations(self) -> List["ComplexCell"]:
        """All rotated and mirrored versions, without duplicates."""
        seen = []
        current = self
        for _ in range(4):
            for variant in (current, current.mirror_horizontal()):
                if variant not in seen:
                    seen.append(variant)
            current = current.rotate_cw()
        return seen


CellGrid = Dict[GridPos, ComplexCell]


def get_end_of_path(
    grid: CellGrid, pos: GridPos, direction: Direction, name: str
) -> Optional[Tuple[GridPos, Direction, str]]:
    """
    Follow committed connectors from ``pos`` moving in ``direction``.

    Returns the first empty position reached, the direction it is entered
    from and the connector name leading into it, or None if the path loops.
    """
    current_pos = pos
    current_direction = direction
    current_name = name
    seen = set()

    while True:
        cell = grid.get(current_pos)
        if cell is None:
            return current_pos, current_direction, current_name

        entry = cell.get(current_direction.opposite())
        if entry is None:
            return current_pos, current_direction, current_name

        key = (current_pos, current_direction)
        if key in seen:
            return None
        seen.add(key)

        current_direction = entry.exit
        current_pos = current_pos + current_direction.offset
        current_name = cell.get(current_direction).name

        if current_direction is direction and current_pos == pos:
            return None


def find_asymmetric_connectors(grid: CellGrid) -> List[Tuple[GridPos, Direction]]:
    """Connectors whose neighbour does not connect back with the same name."""
    problems = []
    for pos, cell in grid.items():
        for side, connector in cell.connectors():
            neighbour = grid.get(pos + side.offset)
            if neighbour is None:
                continue
            back = neighbour.get(side.opposite())
            if back is None or back.name != connector.name:
                problems.append((pos, side))
    return problems


class _MazeSearch:
    """One randomized DFS over a fresh grid."""

    def __init__(self, generator: "ComplexGenerator", min_pos: GridPos, max_pos: GridPos):
        self.generator = generator
        self.min_pos = min_pos
        self.max_pos = max_pos
        self.grid: CellGrid = {}
        self.visited: Set[GridPos] = set()
        self.steps = 0

    def in_bounds(self, pos: GridPos) -> bool:
        return (
            self.min_pos.x <= pos.x <= self.max_pos.x
            and self.min_pos.y <= pos.y <= self.max_pos.y
            and self.min_pos.z <= pos.z <= self.max_pos.z
        )

    def get_placement(
        self, pos: GridPos, direction: Direction, name: str
    ) -> Optional[Tuple[GridPos, Direction, List[ComplexCell]]]:
        """Next empty position after the cell at ``pos`` and the cells that fit it."""
        cell = self.grid.get(pos)
        if cell is None:
            return None

        entry = cell.get(direction.opposite())
        if entry is None:
            return None

        # An existing neighbour on the exit side must connect back
        exit_name = cell.get(entry.exit).name
        neighbour = self.grid.get(pos + entry.exit.offset)
        if neighbour is not None:
            back = neighbour.get(entry.exit.opposite())
            if back is None or back.name != exit_name:
                return None

        for forward in direction.forward_and_orthogonal():
            if get_end_of_path(self.grid, pos, forward, name) is None:
                return None

        end_pos, end_direction, end_name = get_end_of_path(self.grid, pos, direction, name)

        def fits(candidate: ComplexCell) -> bool:
            for side in end_direction.forward_and_orthogonal():
                neighbour = self.grid.get(end_pos + side.offset)
                if neighbour is None:
                    continue
                ours = candidate.get(side)
                theirs = neighbour.get(side.opposite())
                if (ours is None) != (theirs is None):
                    return False
                if ours is not None and ours.name != theirs.name:
                    return False
            return True

        candidates = [
            c for c in self.generator.cells_by_side(end_direction.opposite(), end_name) if fits(c)
        ]
        if not candidates:
            return None
        return end_pos, end_direction, candidates

    def dfs(
        self, current_pos: GridPos, current_direction: Direction, candidates: List[ComplexCell]
    ) -> Optional[GridPos]:
        self.steps += 1
        if self.steps > SEARCH_STEP_LIMIT:
            return None

        candidates = list(candidates)
        get_rng().shuffle(candidates)

        for cell in candidates:
            exit_direction = cell.get(current_direction.opposite()).exit
            name = cell.get(exit_direction).name
            pos = current_pos + exit_direction.offset

            if not self.in_bounds(pos):
                continue
            if pos in self.visited and pos not in self.grid:
                continue
            self.visited.add(pos)

            self.grid[current_pos] = cell
            if pos.z == self.max_pos.z:
                return current_pos

            placement = self.get_placement(current_pos, current_direction, name)
            if placement is not None:
                found = self.dfs(*placement)
                if found is not None:
                    return found
            del self.grid[current_pos]

            if self.steps > SEARCH_STEP_LIMIT:
                return None

        return None

    def run(self) -> Optional[GridPos]:
        start = self.generator.cells_by_side(Direction.BOTTOM)
        return self.dfs(ORIGIN, Direction.TOP, start)


@dataclass
class ComplexGenerator(SegmentGenerator):
    """
    Maze of connector cells.

    Connector names double as palette names for the connector's material;
    ``filler`` is drawn at every cell's centre. Bounds are in grid cells.
    """

    base_cells: Tuple[ComplexCell, ...]
    filler: str
    min_pos: GridPos = GridPos(-3, 0, 0)
    max_pos: GridPos = GridPos(3, 0, 6)

    kind = GeneratorKind.COMPLEX

    def __post_init__(self):
        if not self.base_cells:
            raise ValueError("Complex generator needs at least one cell")

        self.cells: List[ComplexCell] = []
        for cell in self.base_cells:
            cell.validate()
            for variant in cell.get_all_rotations():
                if variant not in self.cells:
                    self.cells.append(variant)

        self._by_side: Dict[Direction, Dict[str, List[ComplexCell]]] = {side: {} for side in Direction}
        for cell in self.cells:
            for side, connector in cell.connectors():
                self._by_side[side].setdefault(connector.name, []).append(cell)

        if not self._by_side[Direction.BOTTOM]:
            raise ValueError("Complex generator cells have no connectors")
        if not (self.min_pos.x <= 0 <= self.max_pos.x and self.min_pos.z <= 0 < self.max_pos.z):
            raise ValueError(f"Maze bounds {self.min_pos}..{self.max_pos} must contain the origin")

    def cells_by_side(self, side: Direction, name: Optional[str] = None) -> List[ComplexCell]:
        """Cells with a connector on ``side``, optionally of one type name."""
        by_name = self._by_side[side]
        if name is not None:
            return list(by_name.get(name, ()))
        return [cell for cells in by_name.values() for cell in cells]

    def material_names(self) -> Iterable[str]:
        names = {self.filler}
        for cell in self.cells:
            names.update(connector.name for _, connector in cell.connectors())
        return sorted(names)

    def build_grid(self, max_restarts: int) -> Tuple[CellGrid, Optional[GridPos]]:
        """Search for a maze, restarting up to ``max_restarts`` times."""
        for attempt in range(max_restarts + 1):
            search = _MazeSearch(self, self.min_pos, self.max_pos)
            last = search.run()
            if last is None:
                logger.debug("Maze search failed, restarting", attempt=attempt, steps=search.steps)
                continue

            problems = find_asymmetric_connectors(search.grid)
            if problems:
                logger.debug("Maze has asymmetric connectors, restarting", problems=len(problems))
                continue

            return search.grid, last

        logger.warning("Maze search failed, using straight path", restarts=max_restarts)
        return {}, None

    def generate(self, params: GeneratorParams) -> GenerateResult:
        palette = params.palette
        grid, last = self.build_grid(params.max_search_restarts)

        cells = {}
        if last is None:
            depth = self.max_pos.z * GRID_PITCH
            for z in range(depth + 1):
                cells[GridPos(0, 0, z)] = palette.get(self.filler)
            return GenerateResult(start=ORIGIN, end=GridPos(0, 0, depth), cells=cells)

        for pos, cell in grid.items():
            base = pos.scale(GRID_PITCH)
            for side, connector in cell.connectors():
                cells[base + _RENDER_OFFSETS[side]] = palette.get(connector.name)
            cells[base + _FILLER_OFFSET] = palette.get(self.filler)

        # The last cell exits toward the far boundary
        last_cell = grid[last]
        exit_side = max(
            (side for side, _ in last_cell.connectors()),
            key=lambda side: (last + side.offset).z,
        )
        end = last.scale(GRID_PITCH) + _RENDER_OFFSETS[exit_side]

        logger.debug("Maze generated", cells=len(grid), end=end)

        return GenerateResult(start=ORIGIN, end=end, cells=cells)
