"""
Head jump generator.

A bar hangs three cells above the cell ahead of the start. Jumping forward
hits the bar and the agent drops onto a platform further down.
"""

from dataclasses import dataclass
from typing import Iterable

from ...utils.random import gen_range, random_yaw_dist
from ..grid import GridPos, Line3, ORIGIN
from ..segment import ChildLayout, GenerateResult
from ..trajectory import TrajectoryState
from .base import GeneratorKind, GeneratorParams, SegmentGenerator

BAR_HEIGHT = 3
BAR_HALF_WIDTH = 2
HEAD_HIT_YAW = 35.0

# Ticks of falling after the hit; four to six ticks drop exactly one cell
FALL_TICKS = (4, 10)
SHORT_FALL_TICKS = (4, 6)


@dataclass
class HeadJumpGenerator(SegmentGenerator):
    """Start cell, ceiling bar and landing platform, all from ``material``."""

    material: str

    kind = GeneratorKind.HEAD_JUMP

    def material_names(self) -> Iterable[str]:
        return (self.material,)

    def generate(self, params: GeneratorParams) -> GenerateResult:
        palette = params.palette

        cells = {ORIGIN: palette.get(self.material)}
        for x in range(-BAR_HALF_WIDTH, BAR_HALF_WIDTH + 1):
            cells[GridPos(x, BAR_HEIGHT, 1)] = palette.get(self.material)

        ticks = gen_range(*(FALL_TICKS if params.direction.go_down() else SHORT_FALL_TICKS))
        initial = TrajectoryState.head_hit_jump(ORIGIN, random_yaw_dist(HEAD_HIT_YAW))
        state = initial
        lines = []
        path = set()
        for _ in range(ticks):
            new_state = state.tick()
            lines.append(Line3(state.position(), new_state.position()))
            state = new_state
            path |= state.get_intersected_blocks()

        landing = state.get_block_pos()
        # The fall starts against the bar
        path -= set(cells)

        return GenerateResult(
            start=ORIGIN,
            end=landing,
            cells=cells,
            lines=lines,
            children=[ChildLayout({landing: palette.get(self.material)})],
            path_cells=path,
        )
