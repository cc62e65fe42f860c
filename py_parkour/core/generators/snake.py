"""
Snake generator.

A winding path of timed cells. Only a moving window of the path is solid at
any tick, so the agent has to keep up with it.

The path is built by a randomized backtracking depth-first search over (x, z)
that refuses steps which would run next to an earlier part of the path. If a
search gets stuck it is thrown away and started again from scratch.
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional, Set, Tuple

import structlog

from ...utils.random import gen_bool, gen_range, get_rng
from ..grid import GridPos, ORIGIN, horizontal_dirs
from ..materials import Material
from ..schedule import MaterialVariant, TimedMaterialSchedule
from ..segment import ChildLayout, GenerateResult
from .base import GeneratorKind, GeneratorParams, SegmentGenerator

logger = structlog.get_logger()

# Node expansions allowed in one search before it is restarted
SEARCH_STEP_LIMIT = 20_000

DROP_CHANCE = 0.1
DROP_COOLDOWN = 3
DROP_RANGE = (3, 5)


def _side_dirs(direction: GridPos) -> Tuple[GridPos, GridPos]:
    if direction.x != 0:
        return GridPos(0, 0, 1), GridPos(0, 0, -1)
    return GridPos(1, 0, 0), GridPos(-1, 0, 0)


def _in_bounds(pos: GridPos, min_pos: GridPos, max_pos: GridPos) -> bool:
    return min_pos.x <= pos.x <= max_pos.x and min_pos.z <= pos.z <= max_pos.z


def _search_flat_path(min_pos: GridPos, max_pos: GridPos) -> Optional[List[GridPos]]:
    """One DFS attempt from the origin to the far z boundary, or None if stuck."""
    rng = get_rng()

    def shuffled_dirs() -> List[GridPos]:
        dirs = horizontal_dirs()
        rng.shuffle(dirs)
        return dirs

    path = [ORIGIN]
    visited: Set[GridPos] = {ORIGIN}
    stack = [shuffled_dirs()]
    steps = 0

    while stack:
        if path[-1].z == max_pos.z:
            return path

        steps += 1
        if steps > SEARCH_STEP_LIMIT:
            return None

        current = path[-1]
        candidates = stack[-1]

        next_pos = None
        while candidates:
            direction = candidates.pop()
            pos = current + direction
            if not _in_bounds(pos, min_pos, max_pos):
                continue
            if pos in visited or pos + direction in visited:
                continue
            if any(pos + side in visited for side in _side_dirs(direction)):
                continue
            next_pos = pos
            break

        if next_pos is None:
            # Dead end; backtrack
            stack.pop()
            visited.discard(path.pop())
            continue

        visited.add(next_pos)
        path.append(next_pos)
        stack.append(shuffled_dirs())

    return None


def _straight_path(max_pos: GridPos) -> List[GridPos]:
    return [GridPos(0, 0, z) for z in range(max_pos.z + 1)]


def _split_drop(total: int) -> List[int]:
    steps = []
    while total > 0:
        step = min(gen_range(1, 2), total)
        steps.append(step)
        total -= step
    return steps


def add_drops(flat: List[GridPos], min_y: int) -> List[GridPos]:
    """
    Give a flat path heights, occasionally dropping 3 to 5 cells.

    A drop repeats the current (x, z) at lower heights in steps of one or two
    cells; the path continues from the bottom of the drop.
    """
    path = []
    y = 0
    cooldown = DROP_COOLDOWN

    for i, pos in enumerate(flat):
        path.append(GridPos(pos.x, y, pos.z))

        cooldown -= 1
        if i == 0 or i == len(flat) - 1 or cooldown > 0:
            continue
        if not gen_bool(DROP_CHANCE):
            continue

        total = gen_range(*DROP_RANGE)
        if y - total < min_y:
            continue

        for step in _split_drop(total):
            y -= step
            path.append(GridPos(pos.x, y, pos.z))
        cooldown = DROP_COOLDOWN

    return path


def build_snake_path(min_pos: GridPos, max_pos: GridPos, max_restarts: int) -> List[GridPos]:
    """
    Build a snake path from the origin to ``max_pos.z``.

    Args:
        min_pos: Inclusive lower bounds; y bounds how far drops may go
        max_pos: Inclusive upper bounds; the path ends on ``max_pos.z``
        max_restarts: Searches to try before falling back to a straight path

    Returns:
        Path cells in walking order, starting at the origin
    """
    for attempt in range(max_restarts + 1):
        flat = _search_flat_path(min_pos, max_pos)
        if flat is not None:
            return add_drops(flat, min_pos.y)
        logger.debug("Snake search exhausted, restarting", attempt=attempt)

    logger.warning("Snake search failed, using straight path", restarts=max_restarts)
    return add_drops(_straight_path(max_pos), min_pos.y)


def split_runs(path: List[GridPos]) -> List[List[GridPos]]:
    """Split a path into contiguous runs at the same height."""
    runs: List[List[GridPos]] = []
    for pos in path:
        if runs and runs[-1][-1].y == pos.y:
            runs[-1].append(pos)
        else:
            runs.append([pos])
    return runs


@dataclass
class SnakeGenerator(SegmentGenerator):
    """
    Chasing-lights path of ``material``.

    ``snake_length`` cells are solid at a time for each of ``snake_count``
    snakes spread over the path; the window advances one cell every ``delay``
    ticks.
    """

    material: str
    snake_count: int = 1
    snake_length: int = 6
    delay: int = 10
    reverse: bool = False
    min_pos: GridPos = GridPos(-5, -10, 0)
    max_pos: GridPos = GridPos(5, 0, 20)

    kind = GeneratorKind.SNAKE

    def __post_init__(self):
        if self.snake_count < 1 or self.snake_length < 1 or self.delay < 1:
            raise ValueError(
                f"Snake count, length and delay must be positive: "
                f"{self.snake_count}, {self.snake_length}, {self.delay}"
            )
        if not (self.min_pos.x <= 0 <= self.max_pos.x and self.min_pos.z <= 0 < self.max_pos.z):
            raise ValueError(f"Snake bounds {self.min_pos}..{self.max_pos} must contain the origin")

    def material_names(self) -> Iterable[str]:
        return (self.material,)

    def schedule_for(self, index: int, total: int, material: Material) -> TimedMaterialSchedule:
        return TimedMaterialSchedule(
            [
                (MaterialVariant.block(material), self.snake_length * self.delay),
                (MaterialVariant.small(material), max(0, total - self.snake_length) * self.delay),
            ],
            offset=index * self.delay,
        )

    def generate(self, params: GeneratorParams) -> GenerateResult:
        palette = params.palette
        path = build_snake_path(self.min_pos, self.max_pos, params.max_search_restarts)

        total = len(path) // self.snake_count

        timed_cells = {}
        materials = {}
        for i, pos in enumerate(path):
            index = len(path) - i - 1 if self.reverse else i
            material = palette.get(self.material)
            materials[pos] = material
            timed_cells[pos] = self.schedule_for(index, total, material)

        children = [
            ChildLayout({pos: materials[pos] for pos in run})
            for run in split_runs(path)
        ]

        max_z = max(pos.z for pos in path)
        ends = [pos for pos in path if pos.z == max_z]
        end = ends[int(get_rng().integers(len(ends)))]

        return GenerateResult(
            start=ORIGIN,
            end=end,
            children=children,
            timed_cells=timed_cells,
        )
