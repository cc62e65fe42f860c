"""
Common generator contract.

Every variant implements ``generate(params) -> GenerateResult``. Results are
relative to the generator's own start cell; the orchestrator places them.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, Iterable, List, Optional, Tuple

from ..grid import GridPos, JumpDirection, Line3
from ..materials import BuiltPalette
from ..segment import GenerateResult
from ..trajectory import TrajectoryState


class GeneratorKind(str, Enum):
    SINGLE = "single"
    CAVE = "cave"
    INDOOR = "indoor"
    SNAKE = "snake"
    COMPLEX = "complex"
    BLINK = "blink"
    ISLAND = "island"
    CUSTOM = "custom"
    MULTI_CUSTOM = "multi_custom"
    HEAD_JUMP = "head_jump"
    RUN_UP = "run_up"
    BOUNCE = "bounce"


@dataclass
class GeneratorParams:
    """
    Inputs for one generation.

    ``jump_cells``, ``lines`` and ``approach`` describe the jump onto the
    landing cell, which becomes the result's start cell, and are relative to
    it. ``approach`` is the last state of that jump; it is None for the first
    segment of a course.

    Only the cave and indoor generators keep ``jump_cells`` clear themselves;
    every other result is checked against the approach by the orchestrator.
    ``lines`` is carried for hosts that draw the approach and no generator
    reads it.
    """

    palette: BuiltPalette
    direction: JumpDirection = JumpDirection.NONE
    yaw: float = 0.0
    jump_cells: FrozenSet[GridPos] = frozenset()
    lines: List[Line3] = field(default_factory=list)
    approach: Optional[TrajectoryState] = None
    max_platform_attempts: int = 100
    max_search_restarts: int = 50


class SegmentGenerator:
    """Base class of all generator variants."""

    kind: GeneratorKind

    def generate(self, params: GeneratorParams) -> GenerateResult:
        raise NotImplementedError

    def material_names(self) -> Iterable[str]:
        """Palette names this generator reads."""
        return ()

    def validate(self, palette_names: Iterable[str]) -> None:
        """Raise ``ValueError`` if the generator needs names the palette lacks."""
        available = set(palette_names)
        missing = sorted(set(self.material_names()) - available)
        if missing:
            raise ValueError(f"{self.kind.value} generator uses unknown material names: {missing}")


def check_range(name: str, bounds: Tuple[float, float]) -> None:
    low, high = bounds
    if low > high:
        raise ValueError(f"Invalid {name} range: {low} > {high}")
