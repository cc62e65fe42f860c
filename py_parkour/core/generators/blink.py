"""
Blink blocks generator.

Pairs of pads placed side by side, one blinking in while the other blinks
out. Both pads stay solid for ``overlap`` ticks around each switch so the
agent can step across.
"""

from dataclasses import dataclass
from typing import Iterable, Tuple

from ...utils.random import gen_bool, gen_range, random_sign, random_yaw
from ..grid import GridPos, ORIGIN
from ..materials import AIR, BuiltPalette
from ..schedule import MaterialVariant, TimedMaterialSchedule
from ..segment import ChildLayout, GenerateResult
from ..trajectory import TrajectoryState, simulate_jump
from .base import GeneratorKind, GeneratorParams, SegmentGenerator

JUMP_RANGE = (1, 5)


@dataclass
class BlinkBlocksGenerator(SegmentGenerator):
    """
    Blinking pads of ``on`` and ``off`` materials.

    ``size`` is the (x, z) footprint of one pad.
    """

    on: str
    off: str
    size: Tuple[int, int] = (3, 3)
    delay: int = 60
    overlap: int = 10

    kind = GeneratorKind.BLINK

    def __post_init__(self):
        if self.size[0] < 1 or self.size[1] < 1:
            raise ValueError(f"Blink pad size must be positive, got {self.size}")
        if self.delay < 1 or self.overlap < 0:
            raise ValueError(f"Invalid blink timing: delay={self.delay}, overlap={self.overlap}")

    def material_names(self) -> Iterable[str]:
        return (self.on, self.off)

    def on_schedule(self, palette: BuiltPalette) -> TimedMaterialSchedule:
        material = palette.get(self.on)
        return TimedMaterialSchedule(
            [
                (MaterialVariant.block(material), self.delay + self.overlap * 2),
                (MaterialVariant.small(material), self.delay),
            ],
            offset=self.overlap,
        )

    def off_schedule(self, palette: BuiltPalette) -> TimedMaterialSchedule:
        material = palette.get(self.off)
        return TimedMaterialSchedule(
            [
                (MaterialVariant.small(material), self.delay),
                (MaterialVariant.block(material), self.delay + self.overlap * 2),
            ],
            offset=0,
        )

    def _pad_pair(self, pos: GridPos, palette: BuiltPalette) -> Tuple[ChildLayout, GridPos]:
        """Two pads next to each other, and the cell to jump on from."""
        width, depth = self.size
        off_first = gen_bool()

        first = self.off_schedule(palette) if off_first else self.on_schedule(palette)
        second = self.on_schedule(palette) if off_first else self.off_schedule(palette)

        side = (width + 1) * random_sign()

        child = ChildLayout()
        for shift, schedule in ((0, first), (side, second)):
            for x in range(width):
                for z in range(depth):
                    cell = pos + (shift + x - width // 2, 0, z)
                    child.cells[cell] = AIR
                    child.timed_cells[cell] = schedule

        exit_pos = pos + (side if gen_bool() else 0, 0, depth - 1)
        return child, exit_pos

    def generate(self, params: GeneratorParams) -> GenerateResult:
        palette = params.palette

        child, pos = self._pad_pair(ORIGIN, palette)
        # The agent lands on the first pair
        child.reached = True
        children = [child]

        lines = []
        for _ in range(gen_range(*JUMP_RANGE)):
            target_y = pos.y + 1 + params.direction.get_y_offset()
            jump = simulate_jump(TrajectoryState.running_jump_block(pos, random_yaw()), target_y)
            if jump is None:
                break
            lines.extend(jump.lines)

            child, pos = self._pad_pair(jump.landing, palette)
            children.append(child)

        return GenerateResult(start=ORIGIN, end=pos, lines=lines, children=children)
