"""
Indoor generator.

A walled room with a ceiling and an optional floor, crossed by a chain of
platforms. The room depth follows from where the last platform lands.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

import structlog

from ...utils.random import gen_range, gen_uniform
from ..grid import GridPos, get_min_max_yaw
from ..materials import BuiltPalette, Material
from ..segment import ChildLayout, GenerateResult
from ..trajectory import JumpSimulation, TrajectoryState, simulate_jump
from .base import GeneratorKind, GeneratorParams, SegmentGenerator, check_range

logger = structlog.get_logger()

ROOM_HEIGHT = 7


@dataclass
class IndoorGenerator(SegmentGenerator):
    """
    Room built from ``walls`` with ``platforms`` to jump across.

    If ``floor`` is None there is no floor. A single liquid floor material gets
    a sub-floor of ``walls`` beneath it and platforms one level lower, since
    the agent cannot jump out of a liquid.
    """

    walls: str
    platforms: str
    floor: Optional[str] = None
    width_range: Tuple[int, int] = (5, 10)
    depth_range: Tuple[int, int] = (15, 30)

    kind = GeneratorKind.INDOOR

    def __post_init__(self):
        check_range("room width", self.width_range)
        check_range("room depth", self.depth_range)
        if self.width_range[0] < 3:
            raise ValueError(f"Room needs a width of at least 3, got {self.width_range[0]}")

    def material_names(self) -> Iterable[str]:
        names = [self.walls, self.platforms]
        if self.floor is not None:
            names.append(self.floor)
        return names

    def _platform_level(self, palette: BuiltPalette) -> int:
        if self.floor is None:
            return 0
        if palette.is_liquid(self.floor):
            return 1
        return 2

    def _platform_jump(self, prev: GridPos, width: int, level: int, max_attempts: int) -> JumpSimulation:
        def reject(state: TrajectoryState) -> bool:
            return state.pos[0] < 1.0 or state.pos[0] >= width - 1.0

        min_yaw, max_yaw = get_min_max_yaw(prev, width)
        for _ in range(max_attempts):
            yaw = -gen_uniform(min_yaw, max_yaw)
            jump = simulate_jump(TrajectoryState.running_jump_block(prev, yaw), level + 1, reject)
            if jump is not None:
                return jump

        logger.warning(
            "Platform jump out of bounds, using straight heading",
            prev=prev,
            width=width,
            attempts=max_attempts,
        )
        jump = simulate_jump(TrajectoryState.running_jump_block(prev, 0.0), level + 1)
        if jump is None:
            raise RuntimeError(f"Straight platform jump from {prev} did not land")
        return jump

    def generate(self, params: GeneratorParams) -> GenerateResult:
        palette = params.palette
        width = gen_range(*self.width_range)
        depth = gen_range(*self.depth_range)

        cells: Dict[GridPos, Material] = {}

        def put(pos: GridPos, name: str) -> None:
            if pos - start not in params.jump_cells:
                cells[pos] = palette.get(name)

        level = self._platform_level(palette)
        start = GridPos(gen_range(1, width - 2), level, 0)

        if level > 0:
            for x in range(1, width - 1):
                put(GridPos(x, 1, 0), self.walls)
        cells[start] = palette.get(self.platforms)

        children: List[ChildLayout] = []
        lines = []
        prev = start
        while prev.z < depth - 1:
            jump = self._platform_jump(prev, width, level, params.max_platform_attempts)
            prev = jump.landing
            children.append(ChildLayout({prev: palette.get(self.platforms)}))
            lines.extend(jump.lines)

        end = prev
        depth = end.z + 1

        if self.floor is not None:
            floor_y = 0
            first_z = 0
            if palette.is_liquid(self.floor):
                for x in range(1, width - 1):
                    for z in range(depth):
                        put(GridPos(x, 0, z), self.walls)
                floor_y = 1
                first_z = 1

            for x in range(1, width - 1):
                for z in range(first_z, depth):
                    put(GridPos(x, floor_y, z), self.floor)

        for y in range(ROOM_HEIGHT):
            for z in range(depth):
                put(GridPos(0, y, z), self.walls)
                put(GridPos(width - 1, y, z), self.walls)

        for x in range(width):
            for z in range(depth):
                put(GridPos(x, ROOM_HEIGHT, z), self.walls)

        logger.debug("Indoor room generated", width=width, depth=depth, platforms=len(children))

        return GenerateResult(start=start, end=end, cells=cells, lines=lines, children=children)
