"""Single cell generator."""

from dataclasses import dataclass
from typing import Iterable

from ..grid import ORIGIN
from ..segment import GenerateResult
from .base import GeneratorKind, GeneratorParams, SegmentGenerator


@dataclass
class SingleGenerator(SegmentGenerator):
    """One cell from ``material`` at the start position."""

    material: str

    kind = GeneratorKind.SINGLE

    def material_names(self) -> Iterable[str]:
        return (self.material,)

    def generate(self, params: GeneratorParams) -> GenerateResult:
        return GenerateResult(
            start=ORIGIN,
            end=ORIGIN,
            cells={ORIGIN: params.palette.get(self.material)},
        )
