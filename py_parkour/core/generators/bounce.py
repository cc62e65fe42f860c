"""
Slime bounce generator.

The agent keeps falling past the landing cell onto a pad that throws it back
up with part of its falling speed. The pad is lowered one cell at a time
until the bounce climbs high enough to clear the platform it ends on.
"""

import math
from dataclasses import dataclass
from typing import Dict, Iterable, List, NamedTuple, Optional, Set, Tuple

import structlog

from ...utils.random import gen_range, gen_uniform
from ..grid import GridPos, Line3, ORIGIN
from ..materials import Material
from ..segment import ChildLayout, GenerateResult
from ..trajectory import MAX_JUMP_TICKS, TrajectoryState
from .base import GeneratorKind, GeneratorParams, SegmentGenerator, check_range

logger = structlog.get_logger()

BOUNCE_FACTOR = 0.8
MAX_PAD_DEPTH = 12
PAD_RADIUS = 1

# Headings beyond this are nudged back toward straight ahead
STEER_LIMIT = math.radians(30.0)
STEER_DEGREES = 15.0


def bounce_yaw(yaw: float) -> float:
    """Heading held while bouncing, nudged by up to 15 degrees."""
    if yaw > STEER_LIMIT:
        return yaw - math.radians(gen_uniform(0.0, STEER_DEGREES))
    if yaw < -STEER_LIMIT:
        return yaw + math.radians(gen_uniform(0.0, STEER_DEGREES))
    return yaw + math.radians(gen_uniform(-STEER_DEGREES, STEER_DEGREES))


class Bounce(NamedTuple):
    """A bounce off a pad at ``pad.y`` ending above ``landing``."""

    pad: GridPos
    landing: GridPos
    lines: List[Line3]
    cells: Set[GridPos]


def _advance(state: TrajectoryState, lines: List[Line3], cells: Set[GridPos]) -> TrajectoryState:
    new_state = state.tick()
    lines.append(Line3(state.position(), new_state.position()))
    cells |= new_state.get_intersected_blocks()
    return new_state


def simulate_bounce(arrival: TrajectoryState, depth: int, rise: int, settle: int) -> Optional[Bounce]:
    """
    Drop ``arrival`` onto a pad ``depth`` cells below the landing cell.

    The bounce has to climb at least ``rise + settle`` cells above the pad;
    it then falls ``settle`` cells from its apex before it lands.

    Returns:
        The bounce, or None if it does not climb high enough
    """
    pad_top = 1 - depth
    lines: List[Line3] = []
    cells: Set[GridPos] = set()

    state = arrival
    for _ in range(MAX_JUMP_TICKS):
        if state.pos[1] <= pad_top:
            break
        state = _advance(state, lines, cells)

    pad = GridPos(math.floor(state.pos[0]), -depth, math.floor(state.pos[2]))
    state = TrajectoryState(
        (state.pos[0], pad_top, state.pos[2]),
        (state.vel[0], -state.vel[1] * BOUNCE_FACTOR, state.vel[2]),
        state.yaw,
    )

    for _ in range(MAX_JUMP_TICKS):
        if state.vel[1] <= 0.0:
            break
        state = _advance(state, lines, cells)

    if state.get_block_pos().y - pad.y < rise + settle:
        return None

    floor_y = math.floor(state.pos[1])
    for _ in range(MAX_JUMP_TICKS):
        new_state = state.tick()
        if new_state.pos[1] <= floor_y - settle:
            break
        lines.append(Line3(state.position(), new_state.position()))
        cells |= new_state.get_intersected_blocks()
        state = new_state

    return Bounce(pad, state.get_block_pos(), lines, cells)


@dataclass
class BounceGenerator(SegmentGenerator):
    """
    A 3x3 ``pad`` below the landing cell and a ``platform`` to bounce onto.

    ``rise_range`` bounds how many cells above the pad the platform sits.
    """

    pad: str
    platform: str
    rise_range: Tuple[int, int] = (1, 3)

    kind = GeneratorKind.BOUNCE

    def __post_init__(self):
        check_range("bounce rise", self.rise_range)
        if self.rise_range[0] < 1:
            raise ValueError(f"Bounce must rise at least one cell, got {self.rise_range[0]}")

    def material_names(self) -> Iterable[str]:
        return (self.pad, self.platform)

    def _arrival(self, params: GeneratorParams) -> TrajectoryState:
        if params.approach is not None:
            return params.approach
        # Dropped from one cell above the landing cell
        return TrajectoryState((0.5, 2.0, 0.5), (0.0, 0.0, 0.0), params.yaw)

    def generate(self, params: GeneratorParams) -> GenerateResult:
        palette = params.palette
        arrival = self._arrival(params)
        arrival = arrival.with_yaw(bounce_yaw(arrival.yaw))

        rise = gen_range(*self.rise_range)
        settle = gen_range(0, 1)

        bounce = None
        for depth in range(MAX_PAD_DEPTH + 1):
            bounce = simulate_bounce(arrival, depth, rise, settle)
            if bounce is not None:
                break

        if bounce is None:
            logger.warning("Bounce never cleared its platform, using pad only", rise=rise, settle=settle)
            return GenerateResult(start=ORIGIN, end=ORIGIN, cells=self._pad_cells(ORIGIN, params))

        cells = self._pad_cells(bounce.pad, params)
        return GenerateResult(
            start=ORIGIN,
            end=bounce.landing,
            cells=cells,
            lines=bounce.lines,
            children=[ChildLayout({bounce.landing: palette.get(self.platform)})],
            path_cells=bounce.cells - set(cells) - {bounce.landing},
        )

    def _pad_cells(self, centre: GridPos, params: GeneratorParams) -> Dict[GridPos, Material]:
        material = params.palette.get(self.pad)
        return {
            centre.offset(dx, 0, dz): material
            for dx in range(-PAD_RADIUS, PAD_RADIUS + 1)
            for dz in range(-PAD_RADIUS, PAD_RADIUS + 1)
        }
