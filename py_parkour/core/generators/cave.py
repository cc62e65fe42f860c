"""
Cave generator.

A solid volume with a chain of ascending platforms carved through it. Each
platform is reached by a simulated running jump whose heading is limited so
the jump stays inside the cave's width; the cells the jump passes through are
carved out so the path stays open.
"""

from dataclasses import dataclass
from typing import Iterable, List, Set, Tuple

import structlog

from ...utils.random import gen_range, gen_uniform
from ..grid import GridPos, get_min_max_yaw
from ..materials import AIR
from ..segment import ChildLayout, GenerateResult
from ..trajectory import JumpSimulation, TrajectoryState, simulate_jump
from .base import GeneratorKind, GeneratorParams, SegmentGenerator, check_range

logger = structlog.get_logger()

XZ = Tuple[int, int]


def _out_of_bounds(width: int):
    def reject(state: TrajectoryState) -> bool:
        return state.pos[0] < 1.0 or state.pos[0] >= width - 1.0

    return reject


@dataclass
class CaveGenerator(SegmentGenerator):
    """
    Cave filled with ``material``.

    Size ranges are inclusive (x, y, z) bounds for the random volume.
    """

    material: str
    min_size: GridPos = GridPos(10, 12, 15)
    max_size: GridPos = GridPos(20, 18, 60)

    kind = GeneratorKind.CAVE

    def __post_init__(self):
        for axis in range(3):
            check_range("cave size", (self.min_size[axis], self.max_size[axis]))
        if self.min_size.x < 3:
            raise ValueError(f"Cave needs a width of at least 3, got {self.min_size.x}")

    def material_names(self) -> Iterable[str]:
        return (self.material,)

    def _target_y(self, prev: GridPos, height: int) -> int:
        if prev.y <= 3:
            return prev.y + 2
        if prev.y >= height - 5:
            return prev.y
        return prev.y + gen_range(0, 2)

    def _platform_jump(
        self, prev: GridPos, size: GridPos, max_attempts: int
    ) -> Tuple[int, JumpSimulation]:
        """Simulate the jump to the next platform, retrying headings that leave the cave."""
        reject = _out_of_bounds(size.x)
        min_yaw, max_yaw = get_min_max_yaw(prev, size.x)

        for _ in range(max_attempts):
            yaw = -gen_uniform(min_yaw, max_yaw)
            target_y = self._target_y(prev, size.y)

            jump = simulate_jump(TrajectoryState.running_jump_block(prev, yaw), target_y, reject)
            if jump is not None:
                return target_y, jump

        logger.warning(
            "Platform jump out of bounds, using straight heading",
            prev=prev,
            size=size,
            attempts=max_attempts,
            min_yaw=min_yaw,
            max_yaw=max_yaw,
        )
        target_y = self._target_y(prev, size.y)
        jump = simulate_jump(TrajectoryState.running_jump_block(prev, 0.0), target_y)
        if jump is None:
            raise RuntimeError(f"Straight platform jump from {prev} did not land")
        return target_y, jump

    def generate(self, params: GeneratorParams) -> GenerateResult:
        palette = params.palette
        size = GridPos(
            gen_range(self.min_size.x, self.max_size.x),
            gen_range(self.min_size.y, self.max_size.y),
            gen_range(self.min_size.z, self.max_size.z),
        )

        start = GridPos(size.x // 2, 1, 0)

        air: Set[GridPos] = set()
        children: List[ChildLayout] = []
        lines = []

        prev = start
        prev_xz_air: Set[XZ] = {
            (start.x + dx, start.z + dz) for dx in (-1, 0, 1) for dz in (-1, 0, 1)
        }
        floor_level = 1

        while prev.z < size.z - 1:
            target_y, jump = self._platform_jump(prev, size, params.max_platform_attempts)
            pos = jump.landing
            yaw = jump.state.yaw

            intersected = {
                b for b in jump.cells
                if (yaw >= 0 and b.x >= pos.x) or (yaw <= 0 and b.x <= pos.x)
            }

            xz_air = {(b.x, b.z) for b in intersected}
            all_xz = prev_xz_air | xz_air

            open_left = all((prev.x - 1, prev.z + dz) in all_xz for dz in (-1, 0, 1))
            open_right = all((prev.x + 1, prev.z + dz) in all_xz for dz in (-1, 0, 1))

            no_air: Set[GridPos] = set()

            if not (open_left or open_right):
                # Staircase down from the previous platform so it is not left floating
                floor_level = max(floor_level, prev.y - 1)
                floor_level = min(floor_level, target_y - 2)

                if children:
                    stairs = children[-1].cells
                    block = palette.get(self.material)
                    for z in range(1, prev.y - floor_level + 1):
                        for y in range(floor_level, prev.y - z + 1):
                            stairs[GridPos(prev.x, y, prev.z + z)] = block
                            stairs[GridPos(prev.x + z - 1, y, prev.z + 1)] = block
                            stairs[GridPos(prev.x - z + 1, y, prev.z + 1)] = block

                for y in range(1, floor_level):
                    no_air.update(
                        (
                            GridPos(prev.x - 1, y, prev.z),
                            GridPos(prev.x + 1, y, prev.z),
                            GridPos(prev.x - 1, y, prev.z + 1),
                            GridPos(prev.x, y, prev.z + 1),
                            GridPos(prev.x + 1, y, prev.z + 1),
                        )
                    )
            else:
                floor_level = min(floor_level, target_y - 2)
                floor_level = max(floor_level, target_y - 3)

            for b in intersected:
                if b in no_air:
                    continue
                for y in range(floor_level, b.y + 1):
                    air.add(GridPos(b.x, y, b.z))

            platform = {pos: palette.get(self.material)}
            for y in range(1, pos.y):
                platform[GridPos(pos.x, y, pos.z)] = palette.get(self.material)
            children.append(ChildLayout(platform))

            lines.extend(jump.lines)
            prev = pos
            prev_xz_air = xz_air

        end = prev
        depth = end.z + 1

        cells = {}
        for x in range(-1, size.x + 1):
            for y in range(-1, size.y + 1):
                for z in range(depth):
                    pos = GridPos(x, y, z)
                    if pos - start in params.jump_cells:
                        continue
                    cells[pos] = palette.get(self.material)

        for pos in air:
            cells[pos] = AIR

        cells[start] = palette.get(self.material)

        logger.debug("Cave generated", size=size, depth=depth, platforms=len(children))

        return GenerateResult(start=start, end=end, cells=cells, lines=lines, children=children)
