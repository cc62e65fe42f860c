"""Run-up ramp generator."""

from dataclasses import dataclass
from typing import Iterable, Tuple

from ...utils.random import gen_range
from ..grid import GridPos, JumpDirection, ORIGIN
from ..segment import GenerateResult
from .base import GeneratorKind, GeneratorParams, SegmentGenerator, check_range


@dataclass
class RunUpGenerator(SegmentGenerator):
    """
    A ramp three cells wide.

    Every step is one ``block`` cell up and two cells forward; the gap
    between steps is bridged by a bottom ``slab`` on the upper row and a top
    slab under it. Longer ramps are only built when the course has to climb.
    """

    block: str
    slab: str
    length_range: Tuple[int, int] = (2, 4)

    kind = GeneratorKind.RUN_UP

    def __post_init__(self):
        check_range("run-up length", self.length_range)
        if self.length_range[0] < 2:
            raise ValueError(f"Run-up needs at least two steps, got {self.length_range[0]}")

    def material_names(self) -> Iterable[str]:
        return (self.block, self.slab)

    def generate(self, params: GeneratorParams) -> GenerateResult:
        palette = params.palette
        low, high = self.length_range
        length = gen_range(low, high) if params.direction is JumpDirection.UP else low

        cells = {}
        for x in (-1, 0, 1):
            for step in range(length):
                cells[GridPos(x, step, step * 2)] = palette.get(self.block)
                if step > 0:
                    cells[GridPos(x, step, step * 2 - 1)] = palette.get(self.slab, (("type", "bottom"),))
                    cells[GridPos(x, step - 1, step * 2 - 1)] = palette.get(self.slab, (("type", "top"),))

        return GenerateResult(
            start=ORIGIN,
            end=GridPos(0, length - 1, length * 2 - 2),
            cells=cells,
        )
